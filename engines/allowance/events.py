"""TIR Allowance Ledger - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from engines.allowance.commands import (
    ALLOWANCE_FUND_CLOSE_REQUEST,
    ALLOWANCE_FUND_CREATE_REQUEST,
    ALLOWANCE_MILESTONE_ADD_REQUEST,
    ALLOWANCE_MILESTONE_COMPLETE_REQUEST,
    ALLOWANCE_MILESTONE_RELEASE_REQUEST,
)

ALLOWANCE_FUND_CREATED_V1 = "allowance.fund.created.v1"
ALLOWANCE_MILESTONE_ADDED_V1 = "allowance.milestone.added.v1"
ALLOWANCE_MILESTONE_COMPLETED_V1 = "allowance.milestone.completed.v1"
ALLOWANCE_MILESTONE_RELEASED_V1 = "allowance.milestone.released.v1"
ALLOWANCE_FUND_CLOSED_V1 = "allowance.fund.closed.v1"

ALLOWANCE_EVENT_TYPES = (
    ALLOWANCE_FUND_CREATED_V1,
    ALLOWANCE_MILESTONE_ADDED_V1,
    ALLOWANCE_MILESTONE_COMPLETED_V1,
    ALLOWANCE_MILESTONE_RELEASED_V1,
    ALLOWANCE_FUND_CLOSED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    ALLOWANCE_FUND_CREATE_REQUEST: ALLOWANCE_FUND_CREATED_V1,
    ALLOWANCE_MILESTONE_ADD_REQUEST: ALLOWANCE_MILESTONE_ADDED_V1,
    ALLOWANCE_MILESTONE_COMPLETE_REQUEST: ALLOWANCE_MILESTONE_COMPLETED_V1,
    ALLOWANCE_MILESTONE_RELEASE_REQUEST: ALLOWANCE_MILESTONE_RELEASED_V1,
    ALLOWANCE_FUND_CLOSE_REQUEST: ALLOWANCE_FUND_CLOSED_V1,
}

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "correlation_id": str(command.correlation_id),
        "command_id": str(command.command_id),
    }

def build_allowance_created_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "landlord": command.actor_id,
        "tenant": command.payload["tenant"],
        "total_amount": command.payload["total_amount"],
        "created_at": command.issued_at.isoformat(),
    })
    return payload

def build_milestone_added_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "milestone_id": command.payload["milestone_id"],
        "description": command.payload["description"],
        "amount": command.payload["amount"],
        "added_at": command.issued_at.isoformat(),
    })
    return payload

def build_milestone_completed_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "milestone_id": command.payload["milestone_id"],
        "completed_at": command.issued_at.isoformat(),
    })
    return payload

def build_funds_released_payload(command: Command, *, amount: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "milestone_id": command.payload["milestone_id"],
        "amount": amount,
        "released_at": command.issued_at.isoformat(),
    })
    return payload

def build_allowance_closed_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": command.payload["project_id"],
        "closed_at": command.issued_at.isoformat(),
    })
    return payload
