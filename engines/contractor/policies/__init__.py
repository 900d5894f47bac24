"""TIR Contractor Registry - policies."""

from __future__ import annotations

from core.commands.base import Command
from core.commands.rejection import ErrorKind, RejectionReason
from core.identity.principal import is_administrator


def _assignment_key(command: Command) -> tuple[str, str]:
    return (command.payload.get("contractor_id", ""), command.payload.get("project_id", ""))


def contractor_must_not_exist_policy(command: Command, contractor_lookup) -> RejectionReason | None:
    contractor_id = command.payload.get("contractor_id", "")
    if contractor_lookup(contractor_id) is not None:
        return RejectionReason(
            code="CONTRACTOR_ALREADY_EXISTS",
            message=f"Contractor '{contractor_id}' already exists.",
            policy_name="contractor_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=301,
        )
    return None


def contractor_must_exist_policy(command: Command, contractor_lookup) -> RejectionReason | None:
    contractor_id = command.payload.get("contractor_id", "")
    if contractor_lookup(contractor_id) is None:
        return RejectionReason(
            code="CONTRACTOR_NOT_FOUND",
            message=f"Contractor '{contractor_id}' not found.",
            policy_name="contractor_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=302,
        )
    return None


def caller_must_be_administrator_policy(command: Command, config) -> RejectionReason | None:
    if not is_administrator(command.actor_id, config):
        return RejectionReason(
            code="NOT_ADMINISTRATOR",
            message="Only the administrator may verify contractors.",
            policy_name="caller_must_be_administrator_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=303,
        )
    return None


def contractor_must_be_verified_policy(command: Command, contractor_lookup) -> RejectionReason | None:
    contractor = contractor_lookup(command.payload.get("contractor_id", ""))
    if contractor is None:
        return None
    if not contractor.verified:
        return RejectionReason(
            code="CONTRACTOR_NOT_VERIFIED",
            message=f"Contractor '{contractor.contractor_id}' is not verified.",
            policy_name="contractor_must_be_verified_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=304,
        )
    return None


def assignment_must_not_exist_policy(command: Command, assignment_lookup) -> RejectionReason | None:
    key = _assignment_key(command)
    if assignment_lookup(*key) is not None:
        return RejectionReason(
            code="ALREADY_ASSIGNED",
            message=f"Contractor '{key[0]}' is already assigned to project '{key[1]}'.",
            policy_name="assignment_must_not_exist_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=305,
        )
    return None


def assignment_must_exist_policy(command: Command, assignment_lookup) -> RejectionReason | None:
    key = _assignment_key(command)
    if assignment_lookup(*key) is None:
        return RejectionReason(
            code="ASSIGNMENT_NOT_FOUND",
            message=f"No assignment of contractor '{key[0]}' to project '{key[1]}'.",
            policy_name="assignment_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=306,
        )
    return None


def assignment_must_be_assigned_policy(command: Command, assignment_lookup) -> RejectionReason | None:
    assignment = assignment_lookup(*_assignment_key(command))
    if assignment is None:
        return None
    if not assignment.assigned:
        return RejectionReason(
            code="NOT_ASSIGNED",
            message="Assignment is not active.",
            policy_name="assignment_must_be_assigned_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=307,
        )
    return None


def assignment_must_not_be_completed_policy(command: Command, assignment_lookup) -> RejectionReason | None:
    assignment = assignment_lookup(*_assignment_key(command))
    if assignment is None:
        return None
    if assignment.completed:
        return RejectionReason(
            code="ASSIGNMENT_ALREADY_COMPLETED",
            message="Assignment is already completed.",
            policy_name="assignment_must_not_be_completed_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=308,
        )
    return None


def rating_must_be_in_range_policy(command: Command, config) -> RejectionReason | None:
    rating = command.payload.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, int) or not 0 <= rating <= config.max_rating:
        return RejectionReason(
            code="INVALID_RATING",
            message=f"rating must be an integer in 0..{config.max_rating}, got {rating!r}.",
            policy_name="rating_must_be_in_range_policy",
            kind=ErrorKind.INVALID_INPUT,
            legacy_code=309,
        )
    return None
