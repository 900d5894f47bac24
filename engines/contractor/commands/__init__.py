"""TIR Contractor Registry - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from core.commands.base import ACTOR_HUMAN, Command
from core.identity.principal import PrincipalLike, as_principal

CONTRACTOR_PROFILE_REGISTER_REQUEST = "contractor.profile.register.request"
CONTRACTOR_PROFILE_VERIFY_REQUEST = "contractor.profile.verify.request"
CONTRACTOR_ASSIGNMENT_CREATE_REQUEST = "contractor.assignment.create.request"
CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST = "contractor.assignment.complete.request"

CONTRACTOR_COMMAND_TYPES = frozenset({
    CONTRACTOR_PROFILE_REGISTER_REQUEST,
    CONTRACTOR_PROFILE_VERIFY_REQUEST,
    CONTRACTOR_ASSIGNMENT_CREATE_REQUEST,
    CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST,
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
        source_engine="contractor",
    )


def _require_text(value, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be non-empty.")


def _require_str(value, field_name: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")


@dataclass(frozen=True)
class ContractorRegisterRequest:
    contractor_id: str
    name: str
    specialties: Iterable[str]
    license_number: str

    def __post_init__(self):
        _require_text(self.contractor_id, "contractor_id")
        _require_str(self.name, "name")
        _require_str(self.license_number, "license_number")
        if isinstance(self.specialties, str):
            raise ValueError("specialties must be a collection of strings, not a string.")
        specialties = frozenset(self.specialties)
        for specialty in specialties:
            _require_text(specialty, "specialty")
        object.__setattr__(self, "specialties", specialties)

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            CONTRACTOR_PROFILE_REGISTER_REQUEST,
            {
                "contractor_id": self.contractor_id,
                "name": self.name,
                "specialties": sorted(self.specialties),
                "license_number": self.license_number,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ContractorVerifyRequest:
    contractor_id: str
    insurance_verified: bool

    def __post_init__(self):
        _require_text(self.contractor_id, "contractor_id")
        if not isinstance(self.insurance_verified, bool):
            raise ValueError("insurance_verified must be a bool.")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            CONTRACTOR_PROFILE_VERIFY_REQUEST,
            {"contractor_id": self.contractor_id, "insurance_verified": self.insurance_verified},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class AssignmentCreateRequest:
    contractor_id: str
    project_id: str

    def __post_init__(self):
        _require_text(self.contractor_id, "contractor_id")
        _require_text(self.project_id, "project_id")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            CONTRACTOR_ASSIGNMENT_CREATE_REQUEST,
            {"contractor_id": self.contractor_id, "project_id": self.project_id},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class AssignmentCompleteRequest:
    contractor_id: str
    project_id: str
    rating: int

    def __post_init__(self):
        _require_text(self.contractor_id, "contractor_id")
        _require_text(self.project_id, "project_id")
        # Range is enforced by rating_must_be_in_range_policy.
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ValueError("rating must be an integer.")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST,
            {
                "contractor_id": self.contractor_id,
                "project_id": self.project_id,
                "rating": self.rating,
            },
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )
