"""
TIR Engines — Registry Service Base
=====================================
Shared execution path for the four registries.

Execution flow (runs under the bus's per-entity lock):
    1. Evaluate the engine's policy chain → first rejection wins
    2. REJECTED → record rejection event, no state change
    3. Build payload → build event → persist on the ledger
    4. Ledger accepted → apply to projection store
    5. Ledger refused → REJECTED (LEDGER_REJECTED), no state change

Every precondition is evaluated before the ledger is touched, and the
projection only changes after the ledger has accepted the event. A failed
check therefore never leaves partial state behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, Mapping, Optional, Protocol

from core.commands.base import Command
from core.commands.bus import CommandResult, persist_rejection_event
from core.commands.outcomes import CommandOutcome, QueryOutcome
from core.commands.rejection import ErrorKind, ReasonCode, RejectionReason
from core.config.settings import RegistryConfig
from core.identity.principal import PrincipalLike
from core.ledger.factory import build_event_data
from core.replay.projection_rebuilder import RebuildResult, rebuild_projection
from core.time.clock import Clock, get_default_clock


class EventFactoryProtocol(Protocol):
    def __call__(self, *, command: Command, event_type: str, payload: dict) -> dict: ...


class PersistEventProtocol(Protocol):
    def __call__(self, *, event_data: dict, context: Any, registry: Any, **kw) -> Any: ...


CommandPolicy = Callable[[Command], Optional[RejectionReason]]


@dataclass(frozen=True)
class ExecutionResult:
    event_type: str
    event_data: dict
    persist_result: Any
    projection_applied: bool


def _is_persist_accepted(result: Any) -> bool:
    if hasattr(result, "accepted"):
        return bool(result.accepted)
    if isinstance(result, dict):
        return bool(result.get("accepted"))
    return bool(result)


def not_found(code: str, message: str, policy_name: str, legacy_code: Optional[int] = None) -> QueryOutcome:
    return QueryOutcome.not_found(
        RejectionReason(
            code=code,
            message=message,
            policy_name=policy_name,
            kind=ErrorKind.NOT_FOUND,
            legacy_code=legacy_code,
        )
    )


class ProjectionStore:
    """
    Base for engine projection stores.

    Subclasses own their maps and implement apply() and truncate().
    Records are immutable; apply() swaps whole records.
    """

    projection_name: str = ""
    event_types: tuple = ()

    def apply(self, event_type: str, payload: dict) -> None:
        raise NotImplementedError

    def truncate(self) -> None:
        raise NotImplementedError


class RegistryService:
    """
    Command handler base shared by every registry engine.

    Subclasses declare:
        engine_name            logger suffix and lock namespace
        command_types          command types routed to this service
        command_to_event_type  accepted command type → event type
        payload_builders       command type → payload builder
        lock_field             payload field naming the locked entity
    and implement _policy_chain(command).
    """

    engine_name: str = ""
    command_types: frozenset = frozenset()
    command_to_event_type: Mapping[str, str] = {}
    payload_builders: Mapping[str, Callable[..., dict]] = {}
    lock_field: str = ""

    def __init__(
        self,
        *,
        command_bus,
        config: RegistryConfig,
        persist_event: PersistEventProtocol,
        event_type_registry,
        projection_store: ProjectionStore,
        event_factory: EventFactoryProtocol = build_event_data,
        clock: Optional[Clock] = None,
    ):
        self._command_bus = command_bus
        self._config = config
        self._persist_event = persist_event
        self._event_type_registry = event_type_registry
        self._projection_store = projection_store
        self._event_factory = event_factory
        self._clock = clock or get_default_clock()
        self._logger = logging.getLogger(f"tir.{self.engine_name}")

        for event_type in sorted(set(self.command_to_event_type.values())):
            self._event_type_registry.register(event_type)
        for command_type in sorted(self.command_types):
            self._command_bus.register_handler(command_type, self)

    # ══════════════════════════════════════════════════════════
    # HOOKS
    # ══════════════════════════════════════════════════════════

    def _policy_chain(self, command: Command) -> Iterable[CommandPolicy]:
        raise NotImplementedError

    def _payload_context(self, command: Command) -> Dict[str, Any]:
        """Extra keyword arguments for the payload builder."""
        return {}

    def lock_key(self, command: Command) -> Hashable:
        return (self.engine_name, command.payload.get(self.lock_field))

    # ══════════════════════════════════════════════════════════
    # EXECUTION
    # ══════════════════════════════════════════════════════════

    def execute(self, command: Command) -> CommandResult:
        if command.command_type not in self.command_types:
            raise ValueError(
                f"Unsupported {self.engine_name} command type: {command.command_type}"
            )

        for policy in self._policy_chain(command):
            rejection = policy(command)
            if rejection is not None:
                return self._reject(command, rejection)

        event_type = self.command_to_event_type[command.command_type]
        payload_builder = self.payload_builders.get(command.command_type)
        if payload_builder is None:
            raise ValueError(f"No payload builder for: {command.command_type}")

        payload = payload_builder(command, **self._payload_context(command))
        event_data = self._event_factory(
            command=command,
            event_type=event_type,
            payload=payload,
        )
        persist_result = self._persist_event(
            event_data=event_data,
            context=None,
            registry=self._event_type_registry,
        )

        if not _is_persist_accepted(persist_result):
            inner = getattr(persist_result, "rejection", None)
            detail = f"[{inner.code}] {inner.message}" if inner is not None else "append refused."
            self._logger.warning(
                f"Command {command.command_id} ({command.command_type}) refused by ledger: {detail}"
            )
            reason = RejectionReason(
                code=ReasonCode.LEDGER_REJECTED,
                message=f"Ledger refused the event: {detail}",
                policy_name="ledger",
                kind=ErrorKind.INVALID_STATE,
            )
            return CommandResult(
                outcome=CommandOutcome.rejected(command.command_id, reason, self._clock.now_utc()),
                execution_result=ExecutionResult(
                    event_type=event_type,
                    event_data=event_data,
                    persist_result=persist_result,
                    projection_applied=False,
                ),
            )

        self._projection_store.apply(event_type, payload)
        self._logger.info(
            f"Command {command.command_id} accepted: {event_type} by {command.actor_id}"
        )
        return CommandResult(
            outcome=CommandOutcome.accepted(command.command_id, self._clock.now_utc()),
            execution_result=ExecutionResult(
                event_type=event_type,
                event_data=event_data,
                persist_result=persist_result,
                projection_applied=True,
            ),
        )

    def _reject(self, command: Command, reason: RejectionReason) -> CommandResult:
        self._logger.info(
            f"Command {command.command_id} ({command.command_type}) rejected by "
            f"'{reason.policy_name}': [{reason.code}] {reason.message}"
        )
        outcome = CommandOutcome.rejected(command.command_id, reason, self._clock.now_utc())
        persisted = persist_rejection_event(
            command,
            outcome,
            persist_event=self._persist_event,
            event_type_registry=self._event_type_registry,
        )
        return CommandResult(outcome=outcome, rejection_event_persisted=persisted)

    # ══════════════════════════════════════════════════════════
    # SUBMISSION
    # ══════════════════════════════════════════════════════════

    def _submit(self, request, caller: PrincipalLike, command_id=None, correlation_id=None) -> CommandResult:
        command = request.to_command(
            caller=caller,
            command_id=command_id,
            correlation_id=correlation_id,
            issued_at=self._clock.now_utc(),
        )
        return self._command_bus.handle(command)

    # ══════════════════════════════════════════════════════════
    # PROJECTION
    # ══════════════════════════════════════════════════════════

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def projection_store(self):
        return self._projection_store

    def rebuild(self, ledger) -> RebuildResult:
        return rebuild_projection(self._projection_store, ledger)
