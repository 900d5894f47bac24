"""
TIR Replay — Public API
=========================
Projections are disposable; the ledger is truth.
"""

from core.replay.errors import (
    ReplayApplyError,
    ReplayChainBrokenError,
    ReplayError,
)
from core.replay.projection_rebuilder import (
    ProjectionProtocol,
    RebuildResult,
    rebuild_projection,
)

__all__ = [
    "ProjectionProtocol",
    "RebuildResult",
    "ReplayApplyError",
    "ReplayChainBrokenError",
    "ReplayError",
    "rebuild_projection",
]
