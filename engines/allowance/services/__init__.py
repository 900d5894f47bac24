"""TIR Allowance Ledger - application service."""

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
from engines.allowance.commands import (
    ALLOWANCE_COMMAND_TYPES,
    ALLOWANCE_FUND_CLOSE_REQUEST,
    ALLOWANCE_FUND_CREATE_REQUEST,
    ALLOWANCE_MILESTONE_ADD_REQUEST,
    ALLOWANCE_MILESTONE_COMPLETE_REQUEST,
    ALLOWANCE_MILESTONE_RELEASE_REQUEST,
    AllowanceCloseRequest,
    AllowanceCreateRequest,
    FundsReleaseRequest,
    MilestoneAddRequest,
    MilestoneCompleteRequest,
)
from engines.allowance.events import (
    ALLOWANCE_EVENT_TYPES,
    ALLOWANCE_FUND_CLOSED_V1,
    ALLOWANCE_FUND_CREATED_V1,
    ALLOWANCE_MILESTONE_ADDED_V1,
    ALLOWANCE_MILESTONE_COMPLETED_V1,
    ALLOWANCE_MILESTONE_RELEASED_V1,
    COMMAND_TO_EVENT_TYPE,
    build_allowance_closed_payload,
    build_allowance_created_payload,
    build_funds_released_payload,
    build_milestone_added_payload,
    build_milestone_completed_payload,
)
from engines.allowance.policies import (
    allowance_must_be_active_policy,
    allowance_must_exist_policy,
    allowance_must_not_exist_policy,
    amount_must_be_non_negative_policy,
    amount_must_fit_remaining_policy,
    caller_must_be_landlord_policy,
    caller_must_be_tenant_policy,
    milestone_must_be_completed_policy,
    milestone_must_exist_policy,
    milestone_must_not_be_completed_policy,
    milestone_must_not_be_paid_policy,
    milestone_must_not_exist_policy,
)

MilestoneKey = Tuple[str, str]


class AllowanceStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class AllowanceRecord:
    project_id: str
    landlord: Principal
    tenant: Principal
    total_amount: int
    released_amount: int
    remaining_amount: int
    status: AllowanceStatus

    @property
    def is_active(self) -> bool:
        return self.status == AllowanceStatus.ACTIVE

    @property
    def is_balanced(self) -> bool:
        return self.total_amount == self.released_amount + self.remaining_amount


@dataclass(frozen=True)
class MilestoneRecord:
    project_id: str
    milestone_id: str
    description: str
    amount: int
    completed: bool
    paid: bool

    @property
    def key(self) -> MilestoneKey:
        return (self.project_id, self.milestone_id)


class AllowanceProjectionStore(ProjectionStore):
    projection_name = "allowance_ledger"
    event_types = ALLOWANCE_EVENT_TYPES

    def __init__(self):
        self._allowances: Dict[str, AllowanceRecord] = {}
        self._milestones: Dict[MilestoneKey, MilestoneRecord] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        if event_type == ALLOWANCE_FUND_CREATED_V1:
            self._allowances[payload["project_id"]] = AllowanceRecord(
                project_id=payload["project_id"],
                landlord=Principal(payload["landlord"]),
                tenant=Principal(payload["tenant"]),
                total_amount=payload["total_amount"],
                released_amount=0,
                remaining_amount=payload["total_amount"],
                status=AllowanceStatus.ACTIVE,
            )
        elif event_type == ALLOWANCE_MILESTONE_ADDED_V1:
            key = (payload["project_id"], payload["milestone_id"])
            self._milestones[key] = MilestoneRecord(
                project_id=key[0],
                milestone_id=key[1],
                description=payload["description"],
                amount=payload["amount"],
                completed=False,
                paid=False,
            )
        elif event_type == ALLOWANCE_MILESTONE_COMPLETED_V1:
            key = (payload["project_id"], payload["milestone_id"])
            self._milestones[key] = replace(self._milestones[key], completed=True)
        elif event_type == ALLOWANCE_MILESTONE_RELEASED_V1:
            key = (payload["project_id"], payload["milestone_id"])
            allowance = self._allowances[payload["project_id"]]
            amount = payload["amount"]
            # Both balances move in one record swap.
            self._allowances[allowance.project_id] = replace(
                allowance,
                released_amount=allowance.released_amount + amount,
                remaining_amount=allowance.remaining_amount - amount,
            )
            self._milestones[key] = replace(self._milestones[key], paid=True)
        elif event_type == ALLOWANCE_FUND_CLOSED_V1:
            allowance = self._allowances[payload["project_id"]]
            self._allowances[allowance.project_id] = replace(
                allowance, status=AllowanceStatus.CLOSED
            )

    def truncate(self) -> None:
        self._allowances.clear()
        self._milestones.clear()

    def get_allowance(self, project_id: str) -> Optional[AllowanceRecord]:
        return self._allowances.get(project_id)

    def get_milestone(self, project_id: str, milestone_id: str) -> Optional[MilestoneRecord]:
        return self._milestones.get((project_id, milestone_id))

    def milestones_for(self, project_id: str) -> Tuple[MilestoneRecord, ...]:
        return tuple(
            milestone for key, milestone in sorted(self._milestones.items())
            if key[0] == project_id
        )

    def unpaid_milestone_total(self, project_id: str) -> int:
        return sum(m.amount for m in self.milestones_for(project_id) if not m.paid)

    def list_allowances(self) -> Tuple[AllowanceRecord, ...]:
        return tuple(self._allowances[k] for k in sorted(self._allowances))

    def snapshot(self) -> dict:
        return {
            "allowances": dict(self._allowances),
            "milestones": dict(self._milestones),
        }


PAYLOAD_BUILDERS = {
    ALLOWANCE_FUND_CREATE_REQUEST: build_allowance_created_payload,
    ALLOWANCE_MILESTONE_ADD_REQUEST: build_milestone_added_payload,
    ALLOWANCE_MILESTONE_COMPLETE_REQUEST: build_milestone_completed_payload,
    ALLOWANCE_MILESTONE_RELEASE_REQUEST: build_funds_released_payload,
    ALLOWANCE_FUND_CLOSE_REQUEST: build_allowance_closed_payload,
}


class AllowanceLedger(RegistryService):
    """
    Per-project improvement allowance with milestone escrow.

    Invariant: total_amount == released_amount + remaining_amount.
    Only a funds release moves the two balances, and it moves both.

    By default addMilestone checks the amount against remaining_amount
    alone, so milestones added one after another can jointly exceed the
    allowance. config.reserve_milestone_capacity closes that gap.
    """

    engine_name = "allowance"
    command_types = ALLOWANCE_COMMAND_TYPES
    command_to_event_type = COMMAND_TO_EVENT_TYPE
    payload_builders = PAYLOAD_BUILDERS
    lock_field = "project_id"

    def __init__(self, *, projection_store: AllowanceProjectionStore | None = None, **kwargs):
        super().__init__(
            projection_store=projection_store or AllowanceProjectionStore(),
            **kwargs,
        )

    def _policy_chain(self, command: Command):
        store = self._projection_store
        allowances = store.get_allowance
        milestones = store.get_milestone
        active = partial(allowance_must_be_active_policy, allowance_lookup=allowances, config=self._config)
        command_type = command.command_type

        if command_type == ALLOWANCE_FUND_CREATE_REQUEST:
            return (
                amount_must_be_non_negative_policy,
                partial(allowance_must_not_exist_policy, allowance_lookup=allowances),
            )
        if command_type == ALLOWANCE_MILESTONE_ADD_REQUEST:
            return (
                amount_must_be_non_negative_policy,
                partial(allowance_must_exist_policy, allowance_lookup=allowances),
                partial(caller_must_be_landlord_policy, allowance_lookup=allowances),
                active,
                partial(milestone_must_not_exist_policy, milestone_lookup=milestones),
                partial(
                    amount_must_fit_remaining_policy,
                    allowance_lookup=allowances,
                    unpaid_total_lookup=store.unpaid_milestone_total,
                    config=self._config,
                ),
            )
        if command_type == ALLOWANCE_MILESTONE_COMPLETE_REQUEST:
            return (
                partial(allowance_must_exist_policy, allowance_lookup=allowances),
                partial(caller_must_be_tenant_policy, allowance_lookup=allowances),
                active,
                partial(milestone_must_exist_policy, milestone_lookup=milestones),
                partial(milestone_must_not_be_completed_policy, milestone_lookup=milestones),
            )
        if command_type == ALLOWANCE_MILESTONE_RELEASE_REQUEST:
            return (
                partial(allowance_must_exist_policy, allowance_lookup=allowances),
                partial(caller_must_be_landlord_policy, allowance_lookup=allowances),
                partial(milestone_must_exist_policy, milestone_lookup=milestones),
                partial(milestone_must_be_completed_policy, milestone_lookup=milestones),
                partial(milestone_must_not_be_paid_policy, milestone_lookup=milestones),
            )
        return (
            partial(allowance_must_exist_policy, allowance_lookup=allowances),
            partial(caller_must_be_landlord_policy, allowance_lookup=allowances),
        )

    def _payload_context(self, command: Command) -> dict:
        if command.command_type != ALLOWANCE_MILESTONE_RELEASE_REQUEST:
            return {}
        milestone = self._projection_store.get_milestone(
            command.payload["project_id"], command.payload["milestone_id"]
        )
        return {"amount": milestone.amount}

    # ── Mutations ─────────────────────────────────────────────

    def create_allowance(self, project_id: str, tenant: PrincipalLike, total_amount: int,
                         caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(AllowanceCreateRequest(project_id, tenant, total_amount), caller, **kw)

    def add_milestone(self, project_id: str, milestone_id: str, description: str,
                      amount: int, caller: PrincipalLike, **kw) -> CommandResult:
        request = MilestoneAddRequest(project_id, milestone_id, description, amount)
        return self._submit(request, caller, **kw)

    def complete_milestone(self, project_id: str, milestone_id: str,
                           caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(MilestoneCompleteRequest(project_id, milestone_id), caller, **kw)

    def release_funds(self, project_id: str, milestone_id: str,
                      caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(FundsReleaseRequest(project_id, milestone_id), caller, **kw)

    def close_allowance(self, project_id: str, caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(AllowanceCloseRequest(project_id), caller, **kw)

    # ── Reads ─────────────────────────────────────────────────

    def get_allowance(self, project_id: str) -> QueryOutcome:
        allowance = self._projection_store.get_allowance(project_id)
        if allowance is None:
            return not_found(
                "ALLOWANCE_NOT_FOUND", f"Allowance for project '{project_id}' not found.",
                "get_allowance", legacy_code=402,
            )
        return QueryOutcome.found(allowance)

    def get_milestone(self, project_id: str, milestone_id: str) -> QueryOutcome:
        milestone = self._projection_store.get_milestone(project_id, milestone_id)
        if milestone is None:
            return not_found(
                "MILESTONE_NOT_FOUND",
                f"Milestone '{milestone_id}' not found on allowance '{project_id}'.",
                "get_milestone", legacy_code=406,
            )
        return QueryOutcome.found(milestone)
