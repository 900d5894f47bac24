"""TIR Contractor Registry - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from engines.contractor.commands import (
    CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST,
    CONTRACTOR_ASSIGNMENT_CREATE_REQUEST,
    CONTRACTOR_PROFILE_REGISTER_REQUEST,
    CONTRACTOR_PROFILE_VERIFY_REQUEST,
)

CONTRACTOR_PROFILE_REGISTERED_V1 = "contractor.profile.registered.v1"
CONTRACTOR_PROFILE_VERIFIED_V1 = "contractor.profile.verified.v1"
CONTRACTOR_ASSIGNMENT_CREATED_V1 = "contractor.assignment.created.v1"
CONTRACTOR_ASSIGNMENT_COMPLETED_V1 = "contractor.assignment.completed.v1"

CONTRACTOR_EVENT_TYPES = (
    CONTRACTOR_PROFILE_REGISTERED_V1,
    CONTRACTOR_PROFILE_VERIFIED_V1,
    CONTRACTOR_ASSIGNMENT_CREATED_V1,
    CONTRACTOR_ASSIGNMENT_COMPLETED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    CONTRACTOR_PROFILE_REGISTER_REQUEST: CONTRACTOR_PROFILE_REGISTERED_V1,
    CONTRACTOR_PROFILE_VERIFY_REQUEST: CONTRACTOR_PROFILE_VERIFIED_V1,
    CONTRACTOR_ASSIGNMENT_CREATE_REQUEST: CONTRACTOR_ASSIGNMENT_CREATED_V1,
    CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST: CONTRACTOR_ASSIGNMENT_COMPLETED_V1,
}

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "correlation_id": str(command.correlation_id),
        "command_id": str(command.command_id),
    }

def build_contractor_registered_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "contractor_id": command.payload["contractor_id"],
        "name": command.payload["name"],
        "registrant": command.actor_id,
        "specialties": sorted(command.payload["specialties"]),
        "license_number": command.payload["license_number"],
        "registered_at": command.issued_at.isoformat(),
    })
    return payload

def build_contractor_verified_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "contractor_id": command.payload["contractor_id"],
        "insurance_verified": command.payload["insurance_verified"],
        "verified_at": command.issued_at.isoformat(),
    })
    return payload

def build_assignment_created_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "contractor_id": command.payload["contractor_id"],
        "project_id": command.payload["project_id"],
        "assigned_at": command.issued_at.isoformat(),
    })
    return payload

def build_assignment_completed_payload(command: Command, *, contractor_rating: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "contractor_id": command.payload["contractor_id"],
        "project_id": command.payload["project_id"],
        "performance_rating": command.payload["rating"],
        "contractor_rating": contractor_rating,
        "completed_at": command.issued_at.isoformat(),
    })
    return payload
