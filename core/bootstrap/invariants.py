"""
TIR Bootstrap — Invariant Checks
==================================
Each function verifies one wiring law.
If any check fails → SystemBootstrapError is raised.

These checks do NOT:
- Auto-fix anything
- Register missing handlers
- Silence failures
"""

import logging

from core.bootstrap.errors import SystemBootstrapError
from core.ledger.errors import LedgerIntegrityError

logger = logging.getLogger("tir.bootstrap")


# ══════════════════════════════════════════════════════════════
# CHECK 1: Ledger Hash-Chain Integrity
# ══════════════════════════════════════════════════════════════

def check_hash_chain_integrity(ledger):
    """A ledger handed in at startup must verify before anything runs on it."""
    try:
        ledger.verify_chain()
    except LedgerIntegrityError as exc:
        raise SystemBootstrapError(
            invariant="HASH_CHAIN_INTEGRITY",
            detail=str(exc),
        ) from exc

    logger.info(f"✓ Ledger hash chain verified ({ledger.height} entries).")


# ══════════════════════════════════════════════════════════════
# CHECK 2: Every Command Type Has A Handler
# ══════════════════════════════════════════════════════════════

def check_handler_coverage(command_bus, services):
    missing = sorted(
        command_type
        for service in services
        for command_type in service.command_types
        if not command_bus.has_handler(command_type)
    )
    if missing:
        raise SystemBootstrapError(
            invariant="HANDLER_COVERAGE",
            detail=f"No handler registered for: {missing}",
        )

    logger.info("✓ Every registry command type has a handler.")


# ══════════════════════════════════════════════════════════════
# CHECK 3: Registry Sanity
# ══════════════════════════════════════════════════════════════

def check_registry_sanity(event_type_registry, services):
    """Every event type a projection consumes must be appendable."""
    missing = sorted(
        event_type
        for service in services
        for event_type in service.projection_store.event_types
        if not event_type_registry.is_registered(event_type)
    )
    if missing:
        raise SystemBootstrapError(
            invariant="EVENT_TYPE_REGISTRY",
            detail=f"Event types not registered: {missing}",
        )

    logger.info(f"✓ Event type registry sane ({event_type_registry.count()} types).")
