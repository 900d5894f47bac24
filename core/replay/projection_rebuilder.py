"""
TIR Replay — Projection Rebuilder
===================================
Rebuilds a projection store from the ledger.

Rebuild flow:
    1. Verify the ledger hash chain
    2. Truncate the projection
    3. Re-apply every owned event in ledger order

Rules:
- Projections are disposable; they can be rebuilt from events
- Rebuild MUST use the same apply() path as live execution
- Rebuild MUST NOT create new events
- Rejection events never reach a projection
- A broken chain leaves the projection untouched
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol, runtime_checkable

from core.ledger.errors import LedgerIntegrityError
from core.replay.errors import ReplayApplyError, ReplayChainBrokenError

logger = logging.getLogger("tir.replay")


# ══════════════════════════════════════════════════════════════
# PROJECTION PROTOCOL
# ══════════════════════════════════════════════════════════════

@runtime_checkable
class ProjectionProtocol(Protocol):
    """
    Interface that projections must implement for rebuild support.

    projection_name: Unique identifier used in logs and results.
    event_types:     Event types this projection consumes.
    truncate():      Clear all projection data.
    apply():         Apply one accepted event.
    """

    @property
    def projection_name(self) -> str: ...

    @property
    def event_types(self) -> Iterable[str]: ...

    def truncate(self) -> None: ...

    def apply(self, event_type: str, payload: dict) -> None: ...


class LedgerReaderProtocol(Protocol):
    def verify_chain(self) -> bool: ...

    def entries(self, event_types: Any = None) -> tuple: ...


# ══════════════════════════════════════════════════════════════
# REBUILD RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RebuildResult:
    """Structured result of a projection rebuild."""

    projection_name: str
    events_applied: int
    chain_verified: bool


# ══════════════════════════════════════════════════════════════
# PROJECTION REBUILD
# ══════════════════════════════════════════════════════════════

def rebuild_projection(
    projection: ProjectionProtocol,
    ledger: LedgerReaderProtocol,
) -> RebuildResult:
    """
    Full projection rebuild: verify → truncate → replay.

    Raises:
        ReplayChainBrokenError: ledger chain does not verify.
        ReplayApplyError: projection failed on a stored event.
    """
    name = projection.projection_name
    logger.info(f"Projection rebuild starting: {name}")

    # ── Step 1: Verify chain before touching anything ─────────
    try:
        ledger.verify_chain()
    except LedgerIntegrityError as exc:
        logger.error(f"Projection rebuild refused: {name}: {exc}")
        raise ReplayChainBrokenError(name, str(exc)) from exc

    entries = ledger.entries(event_types=projection.event_types)

    # ── Step 2: Truncate ──────────────────────────────────────
    projection.truncate()

    # ── Step 3: Replay in ledger order ────────────────────────
    applied = 0
    for entry in entries:
        try:
            projection.apply(entry["event_type"], entry["payload"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ReplayApplyError(
                name, entry.get("height", -1), entry["event_type"], str(exc)
            ) from exc
        applied += 1

    logger.info(f"Projection rebuild complete: {name}: {applied} events applied")
    return RebuildResult(projection_name=name, events_applied=applied, chain_verified=True)
