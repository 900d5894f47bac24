"""TIR Property Registry - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from core.commands.base import ACTOR_HUMAN, Command
from core.identity.principal import PrincipalLike, as_principal

PROPERTY_RECORD_REGISTER_REQUEST = "property.record.register.request"
PROPERTY_OWNERSHIP_TRANSFER_REQUEST = "property.ownership.transfer.request"
PROPERTY_CONDITION_UPDATE_REQUEST = "property.condition.update.request"

PROPERTY_COMMAND_TYPES = frozenset({
    PROPERTY_RECORD_REGISTER_REQUEST,
    PROPERTY_OWNERSHIP_TRANSFER_REQUEST,
    PROPERTY_CONDITION_UPDATE_REQUEST,
})

UNVERIFIED_CONDITION = "unverified"


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
        source_engine="property",
    )


def _require_text(value, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be non-empty.")


def _require_str(value, field_name: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")


@dataclass(frozen=True)
class PropertyRegisterRequest:
    property_id: str
    physical_address: str

    def __post_init__(self):
        _require_text(self.property_id, "property_id")
        _require_str(self.physical_address, "physical_address")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROPERTY_RECORD_REGISTER_REQUEST,
            {"property_id": self.property_id, "physical_address": self.physical_address},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class OwnershipTransferRequest:
    property_id: str
    new_owner: PrincipalLike

    def __post_init__(self):
        _require_text(self.property_id, "property_id")
        object.__setattr__(self, "new_owner", as_principal(self.new_owner))

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROPERTY_OWNERSHIP_TRANSFER_REQUEST,
            {"property_id": self.property_id, "new_owner": self.new_owner.address},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )


@dataclass(frozen=True)
class ConditionUpdateRequest:
    property_id: str
    condition: str

    def __post_init__(self):
        _require_text(self.property_id, "property_id")
        _require_str(self.condition, "condition")

    def to_command(self, *, caller: PrincipalLike, command_id=None,
                   correlation_id=None, issued_at: datetime) -> Command:
        return _cmd(
            PROPERTY_CONDITION_UPDATE_REQUEST,
            {"property_id": self.property_id, "condition": self.condition},
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=issued_at,
        )
