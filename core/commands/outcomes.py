"""
TIR Command Layer — Outcome Contracts
========================================
Every Command produces exactly one Outcome. No exceptions.
Every read produces exactly one QueryOutcome.

ACCEPTED  → command applied, state transition recorded on the ledger.
REJECTED  → command denied, reason is mandatory and auditable.
FOUND     → lookup returned the requested projection.
NOT_FOUND → lookup target absent, reason is mandatory.

Rules:
- Exactly one outcome per command
- Outcome is immutable (frozen dataclass)
- REJECTED / NOT_FOUND must contain reason (RejectionReason)
- ACCEPTED / FOUND must NOT contain reason
- occurred_at is mandatory on command outcomes
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import uuid

from core.commands.rejection import RejectionReason


# ══════════════════════════════════════════════════════════════
# COMMAND STATUS
# ══════════════════════════════════════════════════════════════

class CommandStatus(Enum):
    """Binary command decision. No middle ground."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


# ══════════════════════════════════════════════════════════════
# COMMAND OUTCOME
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CommandOutcome:
    """
    Deterministic result of command evaluation.

    Fields:
        command_id:  The command this outcome belongs to.
        status:      ACCEPTED or REJECTED.
        reason:      RejectionReason (mandatory if REJECTED, None if ACCEPTED).
        occurred_at: When the decision was made.

    Invariants:
        - REJECTED + reason is None → ValueError
        - ACCEPTED + reason is not None → ValueError
    """

    command_id: uuid.UUID
    status: CommandStatus
    reason: Optional[RejectionReason]
    occurred_at: datetime

    def __post_init__(self):
        if not isinstance(self.command_id, uuid.UUID):
            raise ValueError("command_id must be UUID.")

        if not isinstance(self.status, CommandStatus):
            raise ValueError(
                f"status must be CommandStatus, got {type(self.status).__name__}."
            )

        if self.status == CommandStatus.REJECTED and self.reason is None:
            raise ValueError(
                "REJECTED outcome must include a RejectionReason. "
                "No silent rejections allowed."
            )

        if self.status == CommandStatus.ACCEPTED and self.reason is not None:
            raise ValueError(
                "ACCEPTED outcome must NOT include a RejectionReason."
            )

        if not isinstance(self.occurred_at, datetime):
            raise ValueError("occurred_at must be a datetime.")

    @classmethod
    def accepted(cls, command_id: uuid.UUID, occurred_at: datetime) -> "CommandOutcome":
        return cls(
            command_id=command_id,
            status=CommandStatus.ACCEPTED,
            reason=None,
            occurred_at=occurred_at,
        )

    @classmethod
    def rejected(
        cls,
        command_id: uuid.UUID,
        reason: RejectionReason,
        occurred_at: datetime,
    ) -> "CommandOutcome":
        return cls(
            command_id=command_id,
            status=CommandStatus.REJECTED,
            reason=reason,
            occurred_at=occurred_at,
        )

    @property
    def is_accepted(self) -> bool:
        return self.status == CommandStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == CommandStatus.REJECTED


# ══════════════════════════════════════════════════════════════
# QUERY OUTCOME
# ══════════════════════════════════════════════════════════════

class QueryStatus(Enum):
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class QueryOutcome:
    """
    Result of a read-only lookup.

    A record whose fields happen to hold default values is still FOUND;
    absence is always NOT_FOUND with a reason.
    """

    status: QueryStatus
    value: Any = None
    reason: Optional[RejectionReason] = None

    def __post_init__(self):
        if not isinstance(self.status, QueryStatus):
            raise ValueError(
                f"status must be QueryStatus, got {type(self.status).__name__}."
            )

        if self.status == QueryStatus.NOT_FOUND:
            if self.reason is None:
                raise ValueError("NOT_FOUND outcome must include a RejectionReason.")
            if self.value is not None:
                raise ValueError("NOT_FOUND outcome must not carry a value.")

        if self.status == QueryStatus.FOUND and self.reason is not None:
            raise ValueError("FOUND outcome must NOT include a RejectionReason.")

    @classmethod
    def found(cls, value: Any) -> "QueryOutcome":
        return cls(status=QueryStatus.FOUND, value=value)

    @classmethod
    def not_found(cls, reason: RejectionReason) -> "QueryOutcome":
        return cls(status=QueryStatus.NOT_FOUND, reason=reason)

    @property
    def is_found(self) -> bool:
        return self.status == QueryStatus.FOUND
