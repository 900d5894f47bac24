"""
TIR Replay — Errors
=====================
Error types for the replay and projection rebuild layer.
"""


class ReplayError(Exception):
    """Base error for all replay operations."""
    pass


class ReplayChainBrokenError(ReplayError):
    """Hash-chain integrity failed; replay refused."""

    def __init__(self, projection_name: str, detail: str):
        self.projection_name = projection_name
        self.detail = detail
        super().__init__(
            f"Replay refused: hash-chain broken while rebuilding "
            f"{projection_name}: {detail}"
        )


class ReplayApplyError(ReplayError):
    """A projection raised while applying a stored event."""

    def __init__(self, projection_name: str, height: int, event_type: str, detail: str):
        self.projection_name = projection_name
        self.height = height
        self.event_type = event_type
        self.detail = detail
        super().__init__(
            f"Replay of {projection_name} failed at height {height} "
            f"({event_type}): {detail}"
        )
