"""TIR Allowance Ledger - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from core.commands.base import ACTOR_HUMAN, Command
from core.identity.principal import PrincipalLike, as_principal

ALLOWANCE_FUND_CREATE_REQUEST = "allowance.fund.create.request"
ALLOWANCE_MILESTONE_ADD_REQUEST = "allowance.milestone.add.request"
ALLOWANCE_MILESTONE_COMPLETE_REQUEST = "allowance.milestone.complete.request"
ALLOWANCE_MILESTONE_RELEASE_REQUEST = "allowance.milestone.release.request"
ALLOWANCE_FUND_CLOSE_REQUEST = "allowance.fund.close.request"

ALLOWANCE_COMMAND_TYPES = frozenset({
    ALLOWANCE_FUND_CREATE_REQUEST,
    ALLOWANCE_MILESTONE_ADD_REQUEST,
    ALLOWANCE_MILESTONE_COMPLETE_REQUEST,
    ALLOWANCE_MILESTONE_RELEASE_REQUEST,
    ALLOWANCE_FUND_CLOSE_REQUEST,
})


def _cmd(command_type: str, payload: dict, *, caller: PrincipalLike,
         command_id, correlation_id, issued_at, actor_type=ACTOR_HUMAN) -> Command:
    return Command(
        command_id=command_id or uuid.uuid4(),
        command_type=command_type,
        actor_id=as_principal(caller).address,
        actor_type=actor_type,
        payload=payload,
        issued_at=issued_at,
        correlation_id=correlation_id or uuid.uuid4(),
        source_engine="allowance",
    )


def _require_text(value, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be non-empty.")


def _require_str(value, field_name: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")


def _require_amount(value, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{field_name} must be integer >= 0.")


@dataclass(frozen=True)
class AllowanceCreateRequest:
    project_id: str
    tenant: PrincipalLike
    total_amount: int

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_amount(self.total_amount, "total_amount")
        object.__setattr__(self, "tenant", as_principal(self.tenant))

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            ALLOWANCE_FUND_CREATE_REQUEST,
            {
                "project_id": self.project_id,
                "tenant": self.tenant.address,
                "total_amount": self.total_amount,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class MilestoneAddRequest:
    project_id: str
    milestone_id: str
    description: str
    amount: int

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.milestone_id, "milestone_id")
        _require_str(self.description, "description")
        _require_amount(self.amount, "amount")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            ALLOWANCE_MILESTONE_ADD_REQUEST,
            {
                "project_id": self.project_id,
                "milestone_id": self.milestone_id,
                "description": self.description,
                "amount": self.amount,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class MilestoneCompleteRequest:
    project_id: str
    milestone_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.milestone_id, "milestone_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            ALLOWANCE_MILESTONE_COMPLETE_REQUEST,
            {"project_id": self.project_id, "milestone_id": self.milestone_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class FundsReleaseRequest:
    project_id: str
    milestone_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.milestone_id, "milestone_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            ALLOWANCE_MILESTONE_RELEASE_REQUEST,
            {"project_id": self.project_id, "milestone_id": self.milestone_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class AllowanceCloseRequest:
    project_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            ALLOWANCE_FUND_CLOSE_REQUEST,
            {"project_id": self.project_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )
