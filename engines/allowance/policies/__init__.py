"""TIR Allowance Ledger - policies."""

from __future__ import annotations

from core.commands.base import Command
from core.commands.rejection import ErrorKind, RejectionReason
from core.identity.principal import same_principal

AMOUNT_FIELDS = ("total_amount", "amount")


def _milestone_key(command: Command) -> tuple[str, str]:
    return (command.payload.get("project_id", ""), command.payload.get("milestone_id", ""))


def amount_must_be_non_negative_policy(command: Command) -> RejectionReason | None:
    for field_name in AMOUNT_FIELDS:
        if field_name not in command.payload:
            continue
        value = command.payload[field_name]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return RejectionReason(
                code="INVALID_AMOUNT",
                message=f"{field_name} must be integer >= 0, got {value!r}.",
                policy_name="amount_must_be_non_negative_policy",
                kind=ErrorKind.INVALID_INPUT,
            )
    return None


def allowance_must_not_exist_policy(command: Command, allowance_lookup) -> RejectionReason | None:
    project_id = command.payload.get("project_id", "")
    if allowance_lookup(project_id) is not None:
        return RejectionReason(
            code="ALLOWANCE_ALREADY_EXISTS",
            message=f"Allowance for project '{project_id}' already exists.",
            policy_name="allowance_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=401,
        )
    return None


def allowance_must_exist_policy(command: Command, allowance_lookup) -> RejectionReason | None:
    project_id = command.payload.get("project_id", "")
    if allowance_lookup(project_id) is None:
        return RejectionReason(
            code="ALLOWANCE_NOT_FOUND",
            message=f"Allowance for project '{project_id}' not found.",
            policy_name="allowance_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=402,
        )
    return None


def caller_must_be_landlord_policy(command: Command, allowance_lookup) -> RejectionReason | None:
    allowance = allowance_lookup(command.payload.get("project_id", ""))
    if allowance is None:
        return None
    if not same_principal(command.actor_id, allowance.landlord):
        return RejectionReason(
            code="NOT_LANDLORD",
            message=f"Caller is not the landlord of allowance '{allowance.project_id}'.",
            policy_name="caller_must_be_landlord_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=403,
        )
    return None


def caller_must_be_tenant_policy(command: Command, allowance_lookup) -> RejectionReason | None:
    allowance = allowance_lookup(command.payload.get("project_id", ""))
    if allowance is None:
        return None
    if not same_principal(command.actor_id, allowance.tenant):
        return RejectionReason(
            code="NOT_TENANT",
            message=f"Caller is not the tenant of allowance '{allowance.project_id}'.",
            policy_name="caller_must_be_tenant_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=407,
        )
    return None


def allowance_must_be_active_policy(command: Command, allowance_lookup, config) -> RejectionReason | None:
    if not config.enforce_allowance_closure:
        return None
    allowance = allowance_lookup(command.payload.get("project_id", ""))
    if allowance is None:
        return None
    if not allowance.is_active:
        return RejectionReason(
            code="ALLOWANCE_CLOSED",
            message=f"Allowance '{allowance.project_id}' is closed.",
            policy_name="allowance_must_be_active_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=411,
        )
    return None


def milestone_must_not_exist_policy(command: Command, milestone_lookup) -> RejectionReason | None:
    key = _milestone_key(command)
    if milestone_lookup(*key) is not None:
        return RejectionReason(
            code="MILESTONE_ALREADY_EXISTS",
            message=f"Milestone '{key[1]}' already exists on allowance '{key[0]}'.",
            policy_name="milestone_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=404,
        )
    return None


def amount_must_fit_remaining_policy(
    command: Command, allowance_lookup, unpaid_total_lookup, config,
) -> RejectionReason | None:
    """
    amount <= remaining_amount at call time.

    With config.reserve_milestone_capacity, unpaid milestones already
    added are counted against remaining_amount as well.
    """
    allowance = allowance_lookup(command.payload.get("project_id", ""))
    if allowance is None:
        return None

    capacity = allowance.remaining_amount
    if config.reserve_milestone_capacity:
        capacity -= unpaid_total_lookup(allowance.project_id)

    amount = command.payload.get("amount", 0)
    if amount > capacity:
        return RejectionReason(
            code="EXCEEDS_REMAINING",
            message=f"Milestone amount {amount} exceeds available allowance {capacity}.",
            policy_name="amount_must_fit_remaining_policy",
            kind=ErrorKind.INVALID_INPUT,
            legacy_code=405,
        )
    return None


def milestone_must_exist_policy(command: Command, milestone_lookup) -> RejectionReason | None:
    key = _milestone_key(command)
    if milestone_lookup(*key) is None:
        return RejectionReason(
            code="MILESTONE_NOT_FOUND",
            message=f"Milestone '{key[1]}' not found on allowance '{key[0]}'.",
            policy_name="milestone_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=406,
        )
    return None


def milestone_must_not_be_completed_policy(command: Command, milestone_lookup) -> RejectionReason | None:
    milestone = milestone_lookup(*_milestone_key(command))
    if milestone is None:
        return None
    if milestone.completed:
        return RejectionReason(
            code="MILESTONE_ALREADY_COMPLETED",
            message=f"Milestone '{milestone.milestone_id}' is already completed.",
            policy_name="milestone_must_not_be_completed_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=408,
        )
    return None


def milestone_must_be_completed_policy(command: Command, milestone_lookup) -> RejectionReason | None:
    milestone = milestone_lookup(*_milestone_key(command))
    if milestone is None:
        return None
    if not milestone.completed:
        return RejectionReason(
            code="MILESTONE_NOT_COMPLETED",
            message=f"Milestone '{milestone.milestone_id}' is not completed.",
            policy_name="milestone_must_be_completed_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=409,
        )
    return None


def milestone_must_not_be_paid_policy(command: Command, milestone_lookup) -> RejectionReason | None:
    milestone = milestone_lookup(*_milestone_key(command))
    if milestone is None:
        return None
    if milestone.paid:
        return RejectionReason(
            code="MILESTONE_ALREADY_PAID",
            message=f"Milestone '{milestone.milestone_id}' is already paid.",
            policy_name="milestone_must_not_be_paid_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=410,
        )
    return None
