"""TIR Property Registry - policies."""

from __future__ import annotations

from core.commands.base import Command
from core.commands.rejection import ErrorKind, RejectionReason
from core.identity.principal import is_administrator, same_principal


def registration_must_be_by_administrator_policy(command: Command, config) -> RejectionReason | None:
    if not config.property_registration_requires_admin:
        return None
    if not is_administrator(command.actor_id, config):
        return RejectionReason(
            code="REGISTRATION_NOT_AUTHORIZED",
            message="Only the administrator may register properties.",
            policy_name="registration_must_be_by_administrator_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=100,
        )
    return None


def property_must_not_exist_policy(command: Command, property_lookup) -> RejectionReason | None:
    property_id = command.payload.get("property_id", "")
    if property_lookup(property_id) is not None:
        return RejectionReason(
            code="PROPERTY_ALREADY_EXISTS",
            message=f"Property '{property_id}' already exists.",
            policy_name="property_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=101,
        )
    return None


def property_must_exist_policy(command: Command, property_lookup) -> RejectionReason | None:
    property_id = command.payload.get("property_id", "")
    if property_lookup(property_id) is None:
        return RejectionReason(
            code="PROPERTY_NOT_FOUND",
            message=f"Property '{property_id}' not found.",
            policy_name="property_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=102,
        )
    return None


def caller_must_be_owner_policy(command: Command, property_lookup) -> RejectionReason | None:
    record = property_lookup(command.payload.get("property_id", ""))
    if record is None:
        return None
    if not same_principal(command.actor_id, record.owner):
        return RejectionReason(
            code="NOT_PROPERTY_OWNER",
            message=f"Caller is not the owner of property '{record.property_id}'.",
            policy_name="caller_must_be_owner_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=103,
        )
    return None


def caller_must_be_administrator_policy(command: Command, config) -> RejectionReason | None:
    if not is_administrator(command.actor_id, config):
        return RejectionReason(
            code="NOT_ADMINISTRATOR",
            message="Only the administrator may update property condition.",
            policy_name="caller_must_be_administrator_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=104,
        )
    return None
