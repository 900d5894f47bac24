"""
TIR Ledger — Public API
=========================
Append-only, hash-chained record of every transaction the registries
accept or reject. The ledger is truth; projections are disposable.
"""

from core.ledger.errors import (
    LedgerError,
    LedgerIntegrityError,
    LedgerRejectionCode,
)
from core.ledger.factory import (
    build_event_data,
)
from core.ledger.hashing import (
    GENESIS_HASH,
    canonical_serialize,
    compute_event_hash,
)
from core.ledger.registry import EventTypeRegistry
from core.ledger.store import InMemoryLedger, PersistResult

__all__ = [
    "GENESIS_HASH",
    "canonical_serialize",
    "compute_event_hash",
    "EventTypeRegistry",
    "InMemoryLedger",
    "PersistResult",
    "LedgerError",
    "LedgerIntegrityError",
    "LedgerRejectionCode",
    "build_event_data",
]
