"""TIR Contractor Registry - application service."""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import partial
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from core.commands.base import Command
from core.commands.bus import CommandResult
from core.commands.outcomes import QueryOutcome
from core.engines.service import ProjectionStore, RegistryService, not_found
from core.identity.principal import Principal, PrincipalLike
from engines.contractor.commands import (
    AssignmentCompleteRequest,
    AssignmentCreateRequest,
    CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST,
    CONTRACTOR_ASSIGNMENT_CREATE_REQUEST,
    CONTRACTOR_COMMAND_TYPES,
    CONTRACTOR_PROFILE_REGISTER_REQUEST,
    CONTRACTOR_PROFILE_VERIFY_REQUEST,
    ContractorRegisterRequest,
    ContractorVerifyRequest,
)
from engines.contractor.events import (
    COMMAND_TO_EVENT_TYPE,
    CONTRACTOR_ASSIGNMENT_COMPLETED_V1,
    CONTRACTOR_ASSIGNMENT_CREATED_V1,
    CONTRACTOR_EVENT_TYPES,
    CONTRACTOR_PROFILE_REGISTERED_V1,
    CONTRACTOR_PROFILE_VERIFIED_V1,
    build_assignment_completed_payload,
    build_assignment_created_payload,
    build_contractor_registered_payload,
    build_contractor_verified_payload,
)
from engines.contractor.policies import (
    assignment_must_be_assigned_policy,
    assignment_must_exist_policy,
    assignment_must_not_be_completed_policy,
    assignment_must_not_exist_policy,
    caller_must_be_administrator_policy,
    contractor_must_be_verified_policy,
    contractor_must_exist_policy,
    contractor_must_not_exist_policy,
    rating_must_be_in_range_policy,
)

AssignmentKey = Tuple[str, str]


@dataclass(frozen=True)
class ContractorRecord:
    contractor_id: str
    name: str
    registrant: Principal
    specialties: FrozenSet[str]
    license_number: str
    insurance_verified: bool
    verified: bool
    rating: int


@dataclass(frozen=True)
class AssignmentRecord:
    contractor_id: str
    project_id: str
    assigned: bool
    completed: bool
    performance_rating: int

    @property
    def key(self) -> AssignmentKey:
        return (self.contractor_id, self.project_id)


def smoothed_rating(current: int, performance: int) -> int:
    """
    First score is taken as-is; later scores are averaged with the
    running rating and floored. This is not a mean over history.
    """
    if current == 0:
        return performance
    return (current + performance) // 2


class ContractorProjectionStore(ProjectionStore):
    projection_name = "contractor_registry"
    event_types = CONTRACTOR_EVENT_TYPES

    def __init__(self):
        self._contractors: Dict[str, ContractorRecord] = {}
        self._assignments: Dict[AssignmentKey, AssignmentRecord] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        if event_type == CONTRACTOR_PROFILE_REGISTERED_V1:
            self._contractors[payload["contractor_id"]] = ContractorRecord(
                contractor_id=payload["contractor_id"],
                name=payload["name"],
                registrant=Principal(payload["registrant"]),
                specialties=frozenset(payload["specialties"]),
                license_number=payload["license_number"],
                insurance_verified=False,
                verified=False,
                rating=0,
            )
        elif event_type == CONTRACTOR_PROFILE_VERIFIED_V1:
            contractor = self._contractors[payload["contractor_id"]]
            self._contractors[contractor.contractor_id] = replace(
                contractor,
                insurance_verified=payload["insurance_verified"],
                verified=True,
            )
        elif event_type == CONTRACTOR_ASSIGNMENT_CREATED_V1:
            key = (payload["contractor_id"], payload["project_id"])
            self._assignments[key] = AssignmentRecord(
                contractor_id=key[0],
                project_id=key[1],
                assigned=True,
                completed=False,
                performance_rating=0,
            )
        elif event_type == CONTRACTOR_ASSIGNMENT_COMPLETED_V1:
            key = (payload["contractor_id"], payload["project_id"])
            self._assignments[key] = replace(
                self._assignments[key],
                completed=True,
                performance_rating=payload["performance_rating"],
            )
            contractor = self._contractors[payload["contractor_id"]]
            self._contractors[contractor.contractor_id] = replace(
                contractor, rating=payload["contractor_rating"]
            )

    def truncate(self) -> None:
        self._contractors.clear()
        self._assignments.clear()

    def get_contractor(self, contractor_id: str) -> Optional[ContractorRecord]:
        return self._contractors.get(contractor_id)

    def get_assignment(self, contractor_id: str, project_id: str) -> Optional[AssignmentRecord]:
        return self._assignments.get((contractor_id, project_id))

    def snapshot(self) -> dict:
        return {
            "contractors": dict(self._contractors),
            "assignments": dict(self._assignments),
        }


PAYLOAD_BUILDERS = {
    CONTRACTOR_PROFILE_REGISTER_REQUEST: build_contractor_registered_payload,
    CONTRACTOR_PROFILE_VERIFY_REQUEST: build_contractor_verified_payload,
    CONTRACTOR_ASSIGNMENT_CREATE_REQUEST: build_assignment_created_payload,
    CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST: build_assignment_completed_payload,
}


class ContractorRegistry(RegistryService):
    """
    Contractor profiles, administrator verification and per-project
    assignments with a terminal performance rating.

    Profile:     Unregistered → Registered → Verified
    Assignment:  Unassigned → Assigned → Completed

    Every command locks on the contractor, since completing an
    assignment also rewrites the contractor's rating.
    """

    engine_name = "contractor"
    command_types = CONTRACTOR_COMMAND_TYPES
    command_to_event_type = COMMAND_TO_EVENT_TYPE
    payload_builders = PAYLOAD_BUILDERS
    lock_field = "contractor_id"

    def __init__(self, *, projection_store: ContractorProjectionStore | None = None, **kwargs):
        super().__init__(
            projection_store=projection_store or ContractorProjectionStore(),
            **kwargs,
        )

    def _policy_chain(self, command: Command):
        store = self._projection_store
        contractor_lookup = store.get_contractor
        assignment_lookup = store.get_assignment

        if command.command_type == CONTRACTOR_PROFILE_REGISTER_REQUEST:
            return (
                partial(contractor_must_not_exist_policy, contractor_lookup=contractor_lookup),
            )
        if command.command_type == CONTRACTOR_PROFILE_VERIFY_REQUEST:
            return (
                partial(contractor_must_exist_policy, contractor_lookup=contractor_lookup),
                partial(caller_must_be_administrator_policy, config=self._config),
            )
        if command.command_type == CONTRACTOR_ASSIGNMENT_CREATE_REQUEST:
            return (
                partial(contractor_must_exist_policy, contractor_lookup=contractor_lookup),
                partial(contractor_must_be_verified_policy, contractor_lookup=contractor_lookup),
                partial(assignment_must_not_exist_policy, assignment_lookup=assignment_lookup),
            )
        return (
            partial(assignment_must_exist_policy, assignment_lookup=assignment_lookup),
            partial(assignment_must_be_assigned_policy, assignment_lookup=assignment_lookup),
            partial(assignment_must_not_be_completed_policy, assignment_lookup=assignment_lookup),
            partial(rating_must_be_in_range_policy, config=self._config),
        )

    def _payload_context(self, command: Command) -> dict:
        if command.command_type != CONTRACTOR_ASSIGNMENT_COMPLETE_REQUEST:
            return {}
        contractor = self._projection_store.get_contractor(command.payload["contractor_id"])
        return {
            "contractor_rating": smoothed_rating(contractor.rating, command.payload["rating"]),
        }

    # ── Mutations ─────────────────────────────────────────────

    def register(self, contractor_id: str, name: str, specialties: Iterable[str],
                 license_number: str, caller: PrincipalLike, **kw) -> CommandResult:
        request = ContractorRegisterRequest(contractor_id, name, specialties, license_number)
        return self._submit(request, caller, **kw)

    def verify(self, contractor_id: str, insurance_verified: bool,
               caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(ContractorVerifyRequest(contractor_id, insurance_verified), caller, **kw)

    def assign(self, contractor_id: str, project_id: str,
               caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(AssignmentCreateRequest(contractor_id, project_id), caller, **kw)

    def complete_assignment(self, contractor_id: str, project_id: str, rating: int,
                            caller: PrincipalLike, **kw) -> CommandResult:
        request = AssignmentCompleteRequest(contractor_id, project_id, rating)
        return self._submit(request, caller, **kw)

    # ── Reads ─────────────────────────────────────────────────

    def get_contractor(self, contractor_id: str) -> QueryOutcome:
        contractor = self._projection_store.get_contractor(contractor_id)
        if contractor is None:
            return not_found(
                "CONTRACTOR_NOT_FOUND", f"Contractor '{contractor_id}' not found.",
                "get_contractor", legacy_code=302,
            )
        return QueryOutcome.found(contractor)

    def get_assignment(self, contractor_id: str, project_id: str) -> QueryOutcome:
        assignment = self._projection_store.get_assignment(contractor_id, project_id)
        if assignment is None:
            return not_found(
                "ASSIGNMENT_NOT_FOUND",
                f"No assignment of contractor '{contractor_id}' to project '{project_id}'.",
                "get_assignment", legacy_code=306,
            )
        return QueryOutcome.found(assignment)

    def is_contractor_verified(self, contractor_id: str) -> QueryOutcome:
        outcome = self.get_contractor(contractor_id)
        if not outcome.is_found:
            return outcome
        return QueryOutcome.found(outcome.value.verified)
