"""TIR Property Registry - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from engines.property.commands import (
    PROPERTY_CONDITION_UPDATE_REQUEST,
    PROPERTY_OWNERSHIP_TRANSFER_REQUEST,
    PROPERTY_RECORD_REGISTER_REQUEST,
    UNVERIFIED_CONDITION,
)

PROPERTY_RECORD_REGISTERED_V1 = "property.record.registered.v1"
PROPERTY_OWNERSHIP_TRANSFERRED_V1 = "property.ownership.transferred.v1"
PROPERTY_CONDITION_UPDATED_V1 = "property.condition.updated.v1"

PROPERTY_EVENT_TYPES = (
    PROPERTY_RECORD_REGISTERED_V1,
    PROPERTY_OWNERSHIP_TRANSFERRED_V1,
    PROPERTY_CONDITION_UPDATED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    PROPERTY_RECORD_REGISTER_REQUEST: PROPERTY_RECORD_REGISTERED_V1,
    PROPERTY_OWNERSHIP_TRANSFER_REQUEST: PROPERTY_OWNERSHIP_TRANSFERRED_V1,
    PROPERTY_CONDITION_UPDATE_REQUEST: PROPERTY_CONDITION_UPDATED_V1,
}

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "correlation_id": str(command.correlation_id),
        "command_id": str(command.command_id),
    }

def build_property_registered_payload(command: Command, *, inspection_height: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "property_id": command.payload["property_id"],
        "physical_address": command.payload["physical_address"],
        "owner": command.actor_id,
        "condition": UNVERIFIED_CONDITION,
        "inspection_height": inspection_height,
        "registered_at": command.issued_at.isoformat(),
    })
    return payload

def build_ownership_transferred_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "property_id": command.payload["property_id"],
        "previous_owner": command.actor_id,
        "new_owner": command.payload["new_owner"],
        "transferred_at": command.issued_at.isoformat(),
    })
    return payload

def build_condition_updated_payload(command: Command, *, inspection_height: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "property_id": command.payload["property_id"],
        "condition": command.payload["condition"],
        "inspection_height": inspection_height,
        "inspected_at": command.issued_at.isoformat(),
    })
    return payload
