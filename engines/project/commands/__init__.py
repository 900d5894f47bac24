"""TIR Project Registry - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from core.commands.base import ACTOR_HUMAN, Command
from core.identity.principal import PrincipalLike, as_principal

PROJECT_SCOPE_CREATE_REQUEST = "project.scope.create.request"
PROJECT_SCOPE_APPROVE_REQUEST = "project.scope.approve.request"
PROJECT_MODIFICATION_ADD_REQUEST = "project.modification.add.request"
PROJECT_MODIFICATION_APPROVE_REQUEST = "project.modification.approve.request"
PROJECT_MODIFICATION_COMPLETE_REQUEST = "project.modification.complete.request"

PROJECT_COMMAND_TYPES = frozenset({
    PROJECT_SCOPE_CREATE_REQUEST,
    PROJECT_SCOPE_APPROVE_REQUEST,
    PROJECT_MODIFICATION_ADD_REQUEST,
    PROJECT_MODIFICATION_APPROVE_REQUEST,
    PROJECT_MODIFICATION_COMPLETE_REQUEST,
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
        source_engine="project",
    )


def _require_text(value, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be non-empty.")


def _require_str(value, field_name: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")


def _require_date(value, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{field_name} must be integer >= 0.")


@dataclass(frozen=True)
class ProjectCreateRequest:
    project_id: str
    property_id: str
    landlord: PrincipalLike
    description: str
    start_date: int
    end_date: int

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.property_id, "property_id")
        _require_str(self.description, "description")
        _require_date(self.start_date, "start_date")
        _require_date(self.end_date, "end_date")
        object.__setattr__(self, "landlord", as_principal(self.landlord))

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROJECT_SCOPE_CREATE_REQUEST,
            {
                "project_id": self.project_id,
                "property_id": self.property_id,
                "landlord": self.landlord.address,
                "description": self.description,
                "start_date": self.start_date,
                "end_date": self.end_date,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ProjectApproveRequest:
    project_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROJECT_SCOPE_APPROVE_REQUEST,
            {"project_id": self.project_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ModificationAddRequest:
    project_id: str
    modification_id: str
    description: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.modification_id, "modification_id")
        _require_str(self.description, "description")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROJECT_MODIFICATION_ADD_REQUEST,
            {
                "project_id": self.project_id,
                "modification_id": self.modification_id,
                "description": self.description,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ModificationApproveRequest:
    project_id: str
    modification_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.modification_id, "modification_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROJECT_MODIFICATION_APPROVE_REQUEST,
            {"project_id": self.project_id, "modification_id": self.modification_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ModificationCompleteRequest:
    project_id: str
    modification_id: str

    def __post_init__(self):
        _require_text(self.project_id, "project_id")
        _require_text(self.modification_id, "modification_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROJECT_MODIFICATION_COMPLETE_REQUEST,
            {"project_id": self.project_id, "modification_id": self.modification_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )
