"""TIR Project Registry - application service."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from typing import Dict, Optional, Tuple

from core.commands.base import Command
from core.commands.bus import CommandResult
from core.commands.outcomes import QueryOutcome
from core.engines.service import ProjectionStore, RegistryService, not_found
from core.identity.principal import Principal, PrincipalLike
from engines.project.commands import (
    ModificationAddRequest,
    ModificationApproveRequest,
    ModificationCompleteRequest,
    PROJECT_COMMAND_TYPES,
    PROJECT_MODIFICATION_ADD_REQUEST,
    PROJECT_MODIFICATION_APPROVE_REQUEST,
    PROJECT_MODIFICATION_COMPLETE_REQUEST,
    PROJECT_SCOPE_APPROVE_REQUEST,
    PROJECT_SCOPE_CREATE_REQUEST,
    ProjectApproveRequest,
    ProjectCreateRequest,
)
from engines.project.events import (
    COMMAND_TO_EVENT_TYPE,
    PROJECT_EVENT_TYPES,
    PROJECT_MODIFICATION_ADDED_V1,
    PROJECT_MODIFICATION_APPROVED_V1,
    PROJECT_MODIFICATION_COMPLETED_V1,
    PROJECT_SCOPE_APPROVED_V1,
    PROJECT_SCOPE_CREATED_V1,
    build_modification_added_payload,
    build_modification_approved_payload,
    build_modification_completed_payload,
    build_project_approved_payload,
    build_project_created_payload,
)
from engines.project.policies import (
    caller_must_be_landlord_policy,
    caller_must_be_party_policy,
    caller_must_be_tenant_policy,
    modification_must_be_approved_policy,
    modification_must_exist_policy,
    modification_must_not_be_completed_policy,
    modification_must_not_exist_policy,
    project_must_exist_policy,
    project_must_not_exist_policy,
)

ModificationKey = Tuple[str, str]


class ProjectStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"


@dataclass(frozen=True)
class ProjectRecord:
    project_id: str
    property_id: str
    tenant: Principal
    landlord: Principal
    description: str
    status: ProjectStatus
    start_date: int
    end_date: int
    approved: bool


@dataclass(frozen=True)
class ModificationRecord:
    project_id: str
    modification_id: str
    description: str
    approved: bool
    completed: bool

    @property
    def key(self) -> ModificationKey:
        return (self.project_id, self.modification_id)


class ProjectProjectionStore(ProjectionStore):
    projection_name = "project_registry"
    event_types = PROJECT_EVENT_TYPES

    def __init__(self):
        self._projects: Dict[str, ProjectRecord] = {}
        self._modifications: Dict[ModificationKey, ModificationRecord] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        if event_type == PROJECT_SCOPE_CREATED_V1:
            self._projects[payload["project_id"]] = ProjectRecord(
                project_id=payload["project_id"],
                property_id=payload["property_id"],
                tenant=Principal(payload["tenant"]),
                landlord=Principal(payload["landlord"]),
                description=payload["description"],
                status=ProjectStatus.PENDING,
                start_date=payload["start_date"],
                end_date=payload["end_date"],
                approved=False,
            )
        elif event_type == PROJECT_SCOPE_APPROVED_V1:
            project = self._projects[payload["project_id"]]
            self._projects[project.project_id] = replace(
                project, status=ProjectStatus.APPROVED, approved=True
            )
        elif event_type == PROJECT_MODIFICATION_ADDED_V1:
            key = (payload["project_id"], payload["modification_id"])
            self._modifications[key] = ModificationRecord(
                project_id=key[0],
                modification_id=key[1],
                description=payload["description"],
                approved=False,
                completed=False,
            )
        elif event_type == PROJECT_MODIFICATION_APPROVED_V1:
            key = (payload["project_id"], payload["modification_id"])
            self._modifications[key] = replace(self._modifications[key], approved=True)
        elif event_type == PROJECT_MODIFICATION_COMPLETED_V1:
            key = (payload["project_id"], payload["modification_id"])
            self._modifications[key] = replace(self._modifications[key], completed=True)

    def truncate(self) -> None:
        self._projects.clear()
        self._modifications.clear()

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        return self._projects.get(project_id)

    def get_modification(self, project_id: str, modification_id: str) -> Optional[ModificationRecord]:
        return self._modifications.get((project_id, modification_id))

    def snapshot(self) -> dict:
        return {
            "projects": dict(self._projects),
            "modifications": dict(self._modifications),
        }


PAYLOAD_BUILDERS = {
    PROJECT_SCOPE_CREATE_REQUEST: build_project_created_payload,
    PROJECT_SCOPE_APPROVE_REQUEST: build_project_approved_payload,
    PROJECT_MODIFICATION_ADD_REQUEST: build_modification_added_payload,
    PROJECT_MODIFICATION_APPROVE_REQUEST: build_modification_approved_payload,
    PROJECT_MODIFICATION_COMPLETE_REQUEST: build_modification_completed_payload,
}


class ProjectRegistry(RegistryService):
    """
    Renovation projects and tenant-proposed modifications.

    The tenant creates the project and proposes modifications; the
    landlord approves both. Modifications may be proposed before the
    project itself is approved.
    """

    engine_name = "project"
    command_types = PROJECT_COMMAND_TYPES
    command_to_event_type = COMMAND_TO_EVENT_TYPE
    payload_builders = PAYLOAD_BUILDERS
    lock_field = "project_id"

    def __init__(self, *, projection_store: ProjectProjectionStore | None = None, **kwargs):
        super().__init__(
            projection_store=projection_store or ProjectProjectionStore(),
            **kwargs,
        )

    def _policy_chain(self, command: Command):
        store = self._projection_store
        projects = store.get_project
        modifications = store.get_modification
        command_type = command.command_type

        if command_type == PROJECT_SCOPE_CREATE_REQUEST:
            return (partial(project_must_not_exist_policy, project_lookup=projects),)
        if command_type == PROJECT_SCOPE_APPROVE_REQUEST:
            return (
                partial(project_must_exist_policy, project_lookup=projects),
                partial(caller_must_be_landlord_policy, project_lookup=projects),
            )
        if command_type == PROJECT_MODIFICATION_ADD_REQUEST:
            return (
                partial(project_must_exist_policy, project_lookup=projects),
                partial(caller_must_be_tenant_policy, project_lookup=projects),
                partial(modification_must_not_exist_policy, modification_lookup=modifications),
            )
        if command_type == PROJECT_MODIFICATION_APPROVE_REQUEST:
            return (
                partial(project_must_exist_policy, project_lookup=projects),
                partial(caller_must_be_landlord_policy, project_lookup=projects),
                partial(modification_must_exist_policy, modification_lookup=modifications),
            )
        return (
            partial(project_must_exist_policy, project_lookup=projects),
            partial(modification_must_exist_policy, modification_lookup=modifications),
            partial(caller_must_be_party_policy, project_lookup=projects),
            partial(modification_must_be_approved_policy, modification_lookup=modifications),
            partial(modification_must_not_be_completed_policy, modification_lookup=modifications),
        )

    # ── Mutations ─────────────────────────────────────────────

    def create_project(self, project_id: str, property_id: str, landlord: PrincipalLike,
                       description: str, start_date: int, end_date: int,
                       caller: PrincipalLike, **kw) -> CommandResult:
        request = ProjectCreateRequest(
            project_id, property_id, landlord, description, start_date, end_date
        )
        return self._submit(request, caller, **kw)

    def approve_project(self, project_id: str, caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(ProjectApproveRequest(project_id), caller, **kw)

    def add_modification(self, project_id: str, modification_id: str, description: str,
                         caller: PrincipalLike, **kw) -> CommandResult:
        request = ModificationAddRequest(project_id, modification_id, description)
        return self._submit(request, caller, **kw)

    def approve_modification(self, project_id: str, modification_id: str,
                             caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(ModificationApproveRequest(project_id, modification_id), caller, **kw)

    def complete_modification(self, project_id: str, modification_id: str,
                              caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(ModificationCompleteRequest(project_id, modification_id), caller, **kw)

    # ── Reads ─────────────────────────────────────────────────

    def get_project(self, project_id: str) -> QueryOutcome:
        project = self._projection_store.get_project(project_id)
        if project is None:
            return not_found(
                "PROJECT_NOT_FOUND", f"Project '{project_id}' not found.",
                "get_project", legacy_code=202,
            )
        return QueryOutcome.found(project)

    def get_modification(self, project_id: str, modification_id: str) -> QueryOutcome:
        modification = self._projection_store.get_modification(project_id, modification_id)
        if modification is None:
            return not_found(
                "MODIFICATION_NOT_FOUND",
                f"Modification '{modification_id}' not found on project '{project_id}'.",
                "get_modification", legacy_code=206,
            )
        return QueryOutcome.found(modification)
