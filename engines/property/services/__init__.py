"""TIR Property Registry - application service."""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import partial
from typing import Callable, Dict, Optional

from core.commands.base import Command
from core.commands.bus import CommandResult
from core.commands.outcomes import QueryOutcome
from core.engines.service import ProjectionStore, RegistryService, not_found
from core.identity.principal import Principal, PrincipalLike
from engines.property.commands import (
    ConditionUpdateRequest,
    OwnershipTransferRequest,
    PROPERTY_COMMAND_TYPES,
    PROPERTY_CONDITION_UPDATE_REQUEST,
    PROPERTY_OWNERSHIP_TRANSFER_REQUEST,
    PROPERTY_RECORD_REGISTER_REQUEST,
    PropertyRegisterRequest,
)
from engines.property.events import (
    COMMAND_TO_EVENT_TYPE,
    PROPERTY_CONDITION_UPDATED_V1,
    PROPERTY_EVENT_TYPES,
    PROPERTY_OWNERSHIP_TRANSFERRED_V1,
    PROPERTY_RECORD_REGISTERED_V1,
    build_condition_updated_payload,
    build_ownership_transferred_payload,
    build_property_registered_payload,
)
from engines.property.policies import (
    caller_must_be_administrator_policy,
    caller_must_be_owner_policy,
    property_must_exist_policy,
    property_must_not_exist_policy,
    registration_must_be_by_administrator_policy,
)


@dataclass(frozen=True)
class PropertyRecord:
    property_id: str
    owner: Principal
    physical_address: str
    condition: str
    last_inspection_height: int
    verified: bool


class PropertyProjectionStore(ProjectionStore):
    projection_name = "property_registry"
    event_types = PROPERTY_EVENT_TYPES

    def __init__(self):
        self._properties: Dict[str, PropertyRecord] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        if event_type == PROPERTY_RECORD_REGISTERED_V1:
            self._properties[payload["property_id"]] = PropertyRecord(
                property_id=payload["property_id"],
                owner=Principal(payload["owner"]),
                physical_address=payload["physical_address"],
                condition=payload["condition"],
                last_inspection_height=payload["inspection_height"],
                verified=False,
            )
        elif event_type == PROPERTY_OWNERSHIP_TRANSFERRED_V1:
            record = self._properties[payload["property_id"]]
            self._properties[record.property_id] = replace(
                record, owner=Principal(payload["new_owner"])
            )
        elif event_type == PROPERTY_CONDITION_UPDATED_V1:
            record = self._properties[payload["property_id"]]
            self._properties[record.property_id] = replace(
                record,
                condition=payload["condition"],
                last_inspection_height=payload["inspection_height"],
                verified=True,
            )

    def truncate(self) -> None:
        self._properties.clear()

    def get_property(self, property_id: str) -> Optional[PropertyRecord]:
        return self._properties.get(property_id)

    def snapshot(self) -> dict:
        return dict(self._properties)


PAYLOAD_BUILDERS = {
    PROPERTY_RECORD_REGISTER_REQUEST: build_property_registered_payload,
    PROPERTY_OWNERSHIP_TRANSFER_REQUEST: build_ownership_transferred_payload,
    PROPERTY_CONDITION_UPDATE_REQUEST: build_condition_updated_payload,
}


class PropertyRegistry(RegistryService):
    """
    Property records, ownership and verified/condition status.

    Condition updates stamp the ledger height observed at execution into
    the event, so a rebuilt projection carries the same height.
    """

    engine_name = "property"
    command_types = PROPERTY_COMMAND_TYPES
    command_to_event_type = COMMAND_TO_EVENT_TYPE
    payload_builders = PAYLOAD_BUILDERS
    lock_field = "property_id"

    def __init__(self, *, ledger_height: Callable[[], int],
                 projection_store: PropertyProjectionStore | None = None, **kwargs):
        self._ledger_height = ledger_height
        super().__init__(
            projection_store=projection_store or PropertyProjectionStore(),
            **kwargs,
        )

    def _policy_chain(self, command: Command):
        lookup = self._projection_store.get_property
        if command.command_type == PROPERTY_RECORD_REGISTER_REQUEST:
            return (
                partial(registration_must_be_by_administrator_policy, config=self._config),
                partial(property_must_not_exist_policy, property_lookup=lookup),
            )
        if command.command_type == PROPERTY_OWNERSHIP_TRANSFER_REQUEST:
            return (
                partial(property_must_exist_policy, property_lookup=lookup),
                partial(caller_must_be_owner_policy, property_lookup=lookup),
            )
        return (
            partial(property_must_exist_policy, property_lookup=lookup),
            partial(caller_must_be_administrator_policy, config=self._config),
        )

    def _payload_context(self, command: Command) -> dict:
        if command.command_type in (PROPERTY_RECORD_REGISTER_REQUEST, PROPERTY_CONDITION_UPDATE_REQUEST):
            return {"inspection_height": self._ledger_height()}
        return {}

    # ── Mutations ─────────────────────────────────────────────

    def register(self, property_id: str, physical_address: str,
                 caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(PropertyRegisterRequest(property_id, physical_address), caller, **kw)

    def transfer_ownership(self, property_id: str, new_owner: PrincipalLike,
                           caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(OwnershipTransferRequest(property_id, new_owner), caller, **kw)

    def update_condition(self, property_id: str, condition: str,
                         caller: PrincipalLike, **kw) -> CommandResult:
        return self._submit(ConditionUpdateRequest(property_id, condition), caller, **kw)

    # ── Reads ─────────────────────────────────────────────────

    def get_property(self, property_id: str) -> QueryOutcome:
        record = self._projection_store.get_property(property_id)
        if record is None:
            return not_found(
                "PROPERTY_NOT_FOUND", f"Property '{property_id}' not found.",
                "get_property", legacy_code=102,
            )
        return QueryOutcome.found(record)

    def is_property_verified(self, property_id: str) -> QueryOutcome:
        outcome = self.get_property(property_id)
        if not outcome.is_found:
            return outcome
        return QueryOutcome.found(outcome.value.verified)
