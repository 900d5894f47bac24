"""
TIR Bootstrap — System Errors
===============================
Raised while wiring the four registries when the ledger they would be
built on, or the wiring itself, cannot be trusted.
"""


class SystemBootstrapError(Exception):
    """
    A startup check failed; no Registries object is returned.

    Attributes:
        invariant: Short name of the failed check (e.g. 'HASH_CHAIN_INTEGRITY').
        detail:    What the check found.
    """

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"TIR registries refused to start [{invariant}]: {detail}")
