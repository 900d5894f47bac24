"""
TIR Command Layer — System Governance
========================================
Every state transition begins as a Command.
Every Command produces exactly one Outcome.
REJECTED commands are first-class citizens.

Command → Outcome → Event chain is fully deterministic.
"""

from core.commands.base import (
    ACTOR_HUMAN,
    ACTOR_SYSTEM,
    Command,
    VALID_ACTOR_TYPES,
    derive_rejection_event_type,
    derive_source_engine,
)
from core.commands.outcomes import (
    CommandOutcome,
    CommandStatus,
    QueryOutcome,
    QueryStatus,
)
from core.commands.rejection import (
    ErrorKind,
    ReasonCode,
    RejectionReason,
)
from core.commands.validator import (
    CommandValidationError,
    validate_command,
)
from core.commands.dispatcher import (
    CommandDispatcher,
    PolicyEvaluator,
)
from core.commands.bus import (
    CommandBus,
    CommandBusError,
    CommandResult,
    KeyedLock,
    NoHandlerRegistered,
    persist_rejection_event,
)

__all__ = [
    # ── Base ──────────────────────────────────────────────────
    "ACTOR_HUMAN",
    "ACTOR_SYSTEM",
    "Command",
    "VALID_ACTOR_TYPES",
    "derive_rejection_event_type",
    "derive_source_engine",
    # ── Outcomes ──────────────────────────────────────────────
    "CommandOutcome",
    "CommandStatus",
    "QueryOutcome",
    "QueryStatus",
    # ── Rejection ─────────────────────────────────────────────
    "ErrorKind",
    "RejectionReason",
    "ReasonCode",
    # ── Validator ─────────────────────────────────────────────
    "CommandValidationError",
    "validate_command",
    # ── Dispatcher ────────────────────────────────────────────
    "CommandDispatcher",
    "PolicyEvaluator",
    # ── Bus ────────────────────────────────────────────────────
    "CommandBus",
    "CommandBusError",
    "CommandResult",
    "KeyedLock",
    "NoHandlerRegistered",
    "persist_rejection_event",
]
