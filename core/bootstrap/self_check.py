"""
TIR Bootstrap — Self-Check Orchestrator
=========================================
Runs all invariant checks once the registries are wired.
If any check fails → SystemBootstrapError propagates.

Check order:
1. Ledger hash-chain integrity
2. Handler coverage
3. Event type registry sanity

No auto-fix. No fallback. No silence.
"""

import logging

from core.bootstrap.invariants import (
    check_handler_coverage,
    check_hash_chain_integrity,
    check_registry_sanity,
)

logger = logging.getLogger("tir.bootstrap")


def run_bootstrap_checks(*, ledger, command_bus, event_type_registry, services):
    logger.info("═══ TIR Bootstrap Self-Check Starting ═══")

    check_hash_chain_integrity(ledger)
    check_handler_coverage(command_bus, services)
    check_registry_sanity(event_type_registry, services)

    logger.info("═══ TIR Bootstrap Self-Check PASSED ═══")
