"""
TIR Ledger — Errors and Rejection Codes
=========================================
"""


class LedgerRejectionCode:
    """Why the ledger refused to append an entry."""

    DUPLICATE_EVENT_ID = "DUPLICATE_EVENT_ID"
    UNREGISTERED_EVENT_TYPE = "UNREGISTERED_EVENT_TYPE"
    MALFORMED_EVENT = "MALFORMED_EVENT"


class LedgerError(Exception):
    """Base error for ledger operations."""


class LedgerIntegrityError(LedgerError):
    """Stored chain does not verify: entry tampered, reordered or lost."""

    def __init__(self, height: int, detail: str):
        self.height = height
        self.detail = detail
        super().__init__(f"Ledger integrity failure at height {height}: {detail}")
