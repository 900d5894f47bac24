"""
TIR Command Layer — Command Bus
==================================
The transaction dispatcher in front of the four registries.

Flow:
    1. Dispatch command → get Outcome (structure + global policies)
    2. REJECTED → record rejection event on the ledger, return
    3. ACCEPTED → take the per-entity lock → engine handler executes

The host ledger used to serialize every transaction. Here requests may
arrive concurrently, so the bus serializes commands that touch the same
entity key (e.g. ("allowance", "proj-1")). Commands on different keys run
in parallel; the ledger append itself is serialized by the ledger.

The CommandBus does NOT:
- Evaluate registry rules
- Modify projections
- Contain engine-specific logic
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator, Optional, Protocol

from core.commands.base import Command, derive_rejection_event_type
from core.commands.dispatcher import CommandDispatcher
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import RejectionReason

logger = logging.getLogger("tir.commands")

REJECTION_EVENT_VERSION = 1


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class EngineHandlerProtocol(Protocol):
    """
    Engine service handler. Executes a dispatched command and returns
    a CommandResult. May expose lock_key(command) to name the entity
    the command mutates.
    """

    def execute(self, command: Command) -> "CommandResult":
        ...


class PersistEventProtocol(Protocol):
    def __call__(self, *, event_data: dict, context: Any, registry: Any, **kwargs: Any) -> Any:
        ...


# ══════════════════════════════════════════════════════════════
# COMMAND BUS ERRORS
# ══════════════════════════════════════════════════════════════

class CommandBusError(Exception):
    """Base error for command bus operations."""
    pass


class NoHandlerRegistered(CommandBusError):
    """No engine service handler registered for command type."""

    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"No engine service handler registered for "
            f"command type '{command_type}'."
        )


# ══════════════════════════════════════════════════════════════
# COMMAND RESULT
# ══════════════════════════════════════════════════════════════

class CommandResult:
    """
    Tagged result of one transaction: outcome + execution details.

    Success carries nothing but the acknowledgment; failure carries
    exactly one RejectionReason.
    """

    def __init__(
        self,
        outcome: CommandOutcome,
        execution_result: Any = None,
        rejection_event_persisted: bool = False,
    ):
        self.outcome = outcome
        self.execution_result = execution_result
        self.rejection_event_persisted = rejection_event_persisted

    @property
    def is_accepted(self) -> bool:
        return self.outcome.is_accepted

    @property
    def is_rejected(self) -> bool:
        return self.outcome.is_rejected

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.outcome.reason

    @property
    def legacy_code(self) -> Optional[int]:
        return None if self.outcome.reason is None else self.outcome.reason.legacy_code

    def as_legacy(self) -> dict:
        """Wire shape of the legacy contract surface: {"ok": True} or {"err": code}."""
        if self.is_accepted:
            return {"ok": True}
        return {"err": self.legacy_code if self.legacy_code is not None else self.reason.code}

    def __repr__(self) -> str:
        if self.is_accepted:
            return "CommandResult(ACCEPTED)"
        return f"CommandResult(REJECTED, {self.reason.code})"


def _is_persist_accepted(persist_result: Any) -> bool:
    if hasattr(persist_result, "accepted"):
        return bool(getattr(persist_result, "accepted"))
    if isinstance(persist_result, dict):
        return bool(persist_result.get("accepted"))
    return bool(persist_result)


# ══════════════════════════════════════════════════════════════
# REJECTION EVENTS
# ══════════════════════════════════════════════════════════════

def ensure_rejection_event_type_registered(registry: Any, command_type: str) -> str:
    """Rejection types are derived, not declared. Register lazily."""
    event_type = derive_rejection_event_type(command_type)
    if registry is not None and not registry.is_registered(event_type):
        registry.register(event_type)
    return event_type


def build_rejection_event_data(command: Command, outcome: CommandOutcome) -> Dict[str, Any]:
    """
    Envelope for a refused command: <engine>.<domain>.<action>.rejected
    carrying the rejection reason and the original payload.
    """
    if not outcome.is_rejected:
        raise ValueError("Rejection events can only be built from REJECTED outcomes.")

    return {
        "event_id": uuid.uuid4(),
        "event_type": derive_rejection_event_type(command.command_type),
        "event_version": REJECTION_EVENT_VERSION,
        "source_engine": command.source_engine,
        "actor_type": command.actor_type,
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "causation_id": command.command_id,
        "payload": {
            "command_id": str(command.command_id),
            "command_type": command.command_type,
            "rejection": outcome.reason.to_dict(),
            "original_payload": dict(command.payload),
        },
        "created_at": outcome.occurred_at,
    }


def persist_rejection_event(
    command: Command,
    outcome: CommandOutcome,
    *,
    persist_event: PersistEventProtocol,
    event_type_registry: Any,
) -> bool:
    """
    Record a REJECTED outcome on the ledger.

    Rejection events are history, not state: no projection consumes them.
    """
    ensure_rejection_event_type_registered(event_type_registry, command.command_type)
    event_data = build_rejection_event_data(command, outcome)

    logger.info(
        f"Persisting rejection event for command "
        f"{command.command_id}: {event_data['event_type']} "
        f"(reason: {outcome.reason.code})"
    )
    persist_result = persist_event(
        event_data=event_data,
        context=None,
        registry=event_type_registry,
    )
    return _is_persist_accepted(persist_result)


# ══════════════════════════════════════════════════════════════
# PER-KEY LOCKS
# ══════════════════════════════════════════════════════════════

class KeyedLock:
    """
    One re-entrant lock per entity key, kept only while some thread
    holds or waits for it. The map never outgrows the keys in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._users: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[threading.RLock]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield lock
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# ══════════════════════════════════════════════════════════════
# COMMAND BUS
# ══════════════════════════════════════════════════════════════

class CommandBus:
    """
    Orchestration layer for the command lifecycle.

    Usage:
        bus = CommandBus(
            dispatcher=dispatcher,
            persist_event=ledger.persist_event,
            event_type_registry=registry,
        )
        bus.register_handler("project.scope.approve.request", project_service)
        result = bus.handle(command)
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        persist_event: PersistEventProtocol,
        event_type_registry: Any,
    ):
        self._dispatcher = dispatcher
        self._persist_event = persist_event
        self._event_type_registry = event_type_registry
        self._handlers: Dict[str, Any] = {}
        self._locks = KeyedLock()

    # ══════════════════════════════════════════════════════════
    # HANDLER REGISTRATION
    # ══════════════════════════════════════════════════════════

    def register_handler(self, command_type: str, handler: Any) -> None:
        if not command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{command_type}' must end with '.request'."
            )

        if not hasattr(handler, "execute") or not callable(handler.execute):
            raise TypeError("Handler must have callable .execute() method.")

        existing = self._handlers.get(command_type)
        if existing is not None and existing is not handler:
            raise CommandBusError(
                f"command_type '{command_type}' already has a handler."
            )

        self._handlers[command_type] = handler
        logger.info(f"Handler registered: {command_type}")

    def has_handler(self, command_type: str) -> bool:
        return command_type in self._handlers

    # ══════════════════════════════════════════════════════════
    # HANDLE
    # ══════════════════════════════════════════════════════════

    def handle(self, command: Command) -> CommandResult:
        """
        Full command lifecycle. Never returns None; every command leaves
        either a state-changing event or a rejection event behind.
        """
        outcome = self._dispatcher.dispatch(command)

        if outcome.is_rejected:
            persisted = persist_rejection_event(
                command,
                outcome,
                persist_event=self._persist_event,
                event_type_registry=self._event_type_registry,
            )
            return CommandResult(outcome=outcome, rejection_event_persisted=persisted)

        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise NoHandlerRegistered(command.command_type)

        key = self._lock_key(handler, command)
        with self._locks.hold(key):
            logger.debug(
                f"Executing command {command.command_id} "
                f"({command.command_type}) under lock {key!r}"
            )
            execution_result = handler.execute(command)

        # Registry handlers decide the final outcome themselves.
        if isinstance(execution_result, CommandResult):
            return execution_result
        return CommandResult(outcome=outcome, execution_result=execution_result)

    @staticmethod
    def _lock_key(handler: Any, command: Command) -> Hashable:
        resolver = getattr(handler, "lock_key", None)
        if callable(resolver):
            return resolver(command)
        return (command.source_engine,)
