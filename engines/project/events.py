"""TIR Project Registry - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from engines.project.commands import (
    PROJECT_MODIFICATION_ADD_REQUEST,
    PROJECT_MODIFICATION_APPROVE_REQUEST,
    PROJECT_MODIFICATION_COMPLETE_REQUEST,
    PROJECT_SCOPE_APPROVE_REQUEST,
    PROJECT_SCOPE_CREATE_REQUEST,
)

PROJECT_SCOPE_CREATED_V1 = "project.scope.created.v1"
PROJECT_SCOPE_APPROVED_V1 = "project.scope.approved.v1"
PROJECT_MODIFICATION_ADDED_V1 = "project.modification.added.v1"
PROJECT_MODIFICATION_APPROVED_V1 = "project.modification.approved.v1"
PROJECT_MODIFICATION_COMPLETED_V1 = "project.modification.completed.v1"

PROJECT_EVENT_TYPES = (
    PROJECT_SCOPE_CREATED_V1,
    PROJECT_SCOPE_APPROVED_V1,
    PROJECT_MODIFICATION_ADDED_V1,
    PROJECT_MODIFICATION_APPROVED_V1,
    PROJECT_MODIFICATION_COMPLETED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    PROJECT_SCOPE_CREATE_REQUEST: PROJECT_SCOPE_CREATED_V1,
    PROJECT_SCOPE_APPROVE_REQUEST: PROJECT_SCOPE_APPROVED_V1,
    PROJECT_MODIFICATION_ADD_REQUEST: PROJECT_MODIFICATION_ADDED_V1,
    PROJECT_MODIFICATION_APPROVE_REQUEST: PROJECT_MODIFICATION_APPROVED_V1,
    PROJECT_MODIFICATION_COMPLETE_REQUEST: PROJECT_MODIFICATION_COMPLETED_V1,
}

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "correlation_id": str(command.correlation_id),
        "command_id": str(command.command_id),
    }

def build_project_created_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "property_id": command.payload["property_id"],
        "tenant": command.actor_id,
        "landlord": command.payload["landlord"],
        "description": command.payload["description"],
        "start_date": command.payload["start_date"],
        "end_date": command.payload["end_date"],
        "created_at": command.issued_at.isoformat(),
    })
    return payload

def build_project_approved_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "approved_at": command.issued_at.isoformat(),
    })
    return payload

def build_modification_added_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "modification_id": command.payload["modification_id"],
        "description": command.payload["description"],
        "added_at": command.issued_at.isoformat(),
    })
    return payload

def build_modification_approved_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "modification_id": command.payload["modification_id"],
        "approved_at": command.issued_at.isoformat(),
    })
    return payload

def build_modification_completed_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "modification_id": command.payload["modification_id"],
        "completed_at": command.issued_at.isoformat(),
    })
    return payload
