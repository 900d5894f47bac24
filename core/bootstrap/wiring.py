"""
TIR Bootstrap — Registry Wiring
=================================
Constructs the four registries around one ledger.

    ledger ─┬─ EventTypeRegistry
            └─ CommandDispatcher → CommandBus ─┬─ PropertyRegistry
                                               ├─ ContractorRegistry
                                               ├─ ProjectRegistry
                                               └─ AllowanceLedger

The registries never call each other. They share the ledger, the bus
and the configured administrator, nothing else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from core.bootstrap.self_check import run_bootstrap_checks
from core.commands.bus import CommandBus
from core.commands.dispatcher import CommandDispatcher
from core.config.settings import RegistryConfig
from core.ledger.registry import EventTypeRegistry
from core.ledger.store import InMemoryLedger
from core.replay.projection_rebuilder import RebuildResult
from core.time.clock import Clock, get_default_clock
from engines.allowance.services import AllowanceLedger
from engines.contractor.services import ContractorRegistry
from engines.project.services import ProjectRegistry
from engines.property.services import PropertyRegistry

logger = logging.getLogger("tir.bootstrap")


@dataclass(frozen=True)
class Registries:
    config: RegistryConfig
    ledger: InMemoryLedger
    event_type_registry: EventTypeRegistry
    command_bus: CommandBus
    properties: PropertyRegistry
    contractors: ContractorRegistry
    projects: ProjectRegistry
    allowances: AllowanceLedger

    @property
    def services(self) -> tuple:
        return (self.properties, self.contractors, self.projects, self.allowances)

    def rebuild_all(self) -> Tuple[RebuildResult, ...]:
        """Replay the ledger into every projection, in a fixed order."""
        return tuple(service.rebuild(self.ledger) for service in self.services)


def build_registries(
    config: RegistryConfig,
    clock: Optional[Clock] = None,
    ledger: Optional[InMemoryLedger] = None,
) -> Registries:
    """
    Wire the registries. A ledger passed in (e.g. loaded from an export)
    is verified and replayed so projections start from its history.
    """
    clock = clock or get_default_clock()
    event_type_registry = EventTypeRegistry()
    ledger = ledger if ledger is not None else InMemoryLedger(registry=event_type_registry)

    dispatcher = CommandDispatcher(clock=clock)
    command_bus = CommandBus(
        dispatcher=dispatcher,
        persist_event=ledger.persist_event,
        event_type_registry=event_type_registry,
    )

    shared = dict(
        command_bus=command_bus,
        config=config,
        persist_event=ledger.persist_event,
        event_type_registry=event_type_registry,
        clock=clock,
    )
    registries = Registries(
        config=config,
        ledger=ledger,
        event_type_registry=event_type_registry,
        command_bus=command_bus,
        properties=PropertyRegistry(ledger_height=lambda: ledger.height, **shared),
        contractors=ContractorRegistry(**shared),
        projects=ProjectRegistry(**shared),
        allowances=AllowanceLedger(**shared),
    )

    run_bootstrap_checks(
        ledger=ledger,
        command_bus=command_bus,
        event_type_registry=event_type_registry,
        services=registries.services,
    )

    if ledger.height:
        registries.rebuild_all()
        logger.info(f"Registries rebuilt from {ledger.height} ledger entries")

    return registries
