"""TIR Project Registry - policies."""

from __future__ import annotations

from core.commands.base import Command
from core.commands.rejection import ErrorKind, RejectionReason
from core.identity.principal import same_principal


def _modification_key(command: Command) -> tuple[str, str]:
    return (command.payload.get("project_id", ""), command.payload.get("modification_id", ""))


def project_must_not_exist_policy(command: Command, project_lookup) -> RejectionReason | None:
    project_id = command.payload.get("project_id", "")
    if project_lookup(project_id) is not None:
        return RejectionReason(
            code="PROJECT_ALREADY_EXISTS",
            message=f"Project '{project_id}' already exists.",
            policy_name="project_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=201,
        )
    return None


def project_must_exist_policy(command: Command, project_lookup) -> RejectionReason | None:
    project_id = command.payload.get("project_id", "")
    if project_lookup(project_id) is None:
        return RejectionReason(
            code="PROJECT_NOT_FOUND",
            message=f"Project '{project_id}' not found.",
            policy_name="project_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=202,
        )
    return None


def caller_must_be_landlord_policy(command: Command, project_lookup) -> RejectionReason | None:
    project = project_lookup(command.payload.get("project_id", ""))
    if project is None:
        return None
    if not same_principal(command.actor_id, project.landlord):
        return RejectionReason(
            code="NOT_LANDLORD",
            message=f"Caller is not the landlord of project '{project.project_id}'.",
            policy_name="caller_must_be_landlord_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=203,
        )
    return None


def caller_must_be_tenant_policy(command: Command, project_lookup) -> RejectionReason | None:
    project = project_lookup(command.payload.get("project_id", ""))
    if project is None:
        return None
    if not same_principal(command.actor_id, project.tenant):
        return RejectionReason(
            code="NOT_TENANT",
            message=f"Caller is not the tenant of project '{project.project_id}'.",
            policy_name="caller_must_be_tenant_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=204,
        )
    return None


def caller_must_be_party_policy(command: Command, project_lookup) -> RejectionReason | None:
    project = project_lookup(command.payload.get("project_id", ""))
    if project is None:
        return None
    if not any(same_principal(command.actor_id, party) for party in (project.tenant, project.landlord)):
        return RejectionReason(
            code="NOT_PROJECT_PARTY",
            message=f"Caller is neither tenant nor landlord of project '{project.project_id}'.",
            policy_name="caller_must_be_party_policy",
            kind=ErrorKind.UNAUTHORIZED,
            legacy_code=207,
        )
    return None


def modification_must_not_exist_policy(command: Command, modification_lookup) -> RejectionReason | None:
    key = _modification_key(command)
    if modification_lookup(*key) is not None:
        return RejectionReason(
            code="MODIFICATION_ALREADY_EXISTS",
            message=f"Modification '{key[1]}' already exists on project '{key[0]}'.",
            policy_name="modification_must_not_exist_policy",
            kind=ErrorKind.ALREADY_EXISTS,
            legacy_code=205,
        )
    return None


def modification_must_exist_policy(command: Command, modification_lookup) -> RejectionReason | None:
    key = _modification_key(command)
    if modification_lookup(*key) is None:
        return RejectionReason(
            code="MODIFICATION_NOT_FOUND",
            message=f"Modification '{key[1]}' not found on project '{key[0]}'.",
            policy_name="modification_must_exist_policy",
            kind=ErrorKind.NOT_FOUND,
            legacy_code=206,
        )
    return None


def modification_must_be_approved_policy(command: Command, modification_lookup) -> RejectionReason | None:
    modification = modification_lookup(*_modification_key(command))
    if modification is None:
        return None
    if not modification.approved:
        return RejectionReason(
            code="MODIFICATION_NOT_APPROVED",
            message=f"Modification '{modification.modification_id}' is not approved.",
            policy_name="modification_must_be_approved_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=208,
        )
    return None


def modification_must_not_be_completed_policy(command: Command, modification_lookup) -> RejectionReason | None:
    modification = modification_lookup(*_modification_key(command))
    if modification is None:
        return None
    if modification.completed:
        return RejectionReason(
            code="MODIFICATION_ALREADY_COMPLETED",
            message=f"Modification '{modification.modification_id}' is already completed.",
            policy_name="modification_must_not_be_completed_policy",
            kind=ErrorKind.INVALID_STATE,
            legacy_code=209,
        )
    return None
