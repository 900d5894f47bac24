"""
TIR Ledger — In-Memory Append-Only Store
==========================================
Stand-in for the host ledger the registries run on.

Write flow (single lock, all-or-nothing):
    1. Check envelope shape
    2. Check event type is registered
    3. Check event_id is new (idempotency)
    4. Chain hash to the current tip
    5. Append, advance height

If ANY step fails → deterministic rejection. Nothing is appended.

This store does NOT:
- Interpret payload meaning
- Touch projections
- Retry on failure
- Delete or rewrite entries
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from core.commands.rejection import ErrorKind, RejectionReason
from core.ledger.errors import LedgerIntegrityError, LedgerRejectionCode
from core.ledger.hashing import (
    GENESIS_HASH,
    canonical_serialize,
    compute_event_hash,
    hash_body,
)
from core.ledger.registry import EventTypeRegistry

logger = logging.getLogger("tir.ledger")

_REQUIRED_FIELDS = ("event_id", "event_type", "payload")


@dataclass(frozen=True)
class PersistResult:
    """Outcome of a single append."""

    accepted: bool
    height: int
    event_hash: Optional[str] = None
    rejection: Optional[RejectionReason] = None


def _ledger_rejection(code: str, message: str) -> RejectionReason:
    return RejectionReason(
        code=code,
        message=message,
        policy_name="ledger",
        kind=ErrorKind.INVALID_STATE,
    )


class InMemoryLedger:
    """
    Totally ordered, hash-chained event log.

    height is the 1-based position of the latest entry (0 when empty).
    Entries are copied in and copied out; callers never hold a
    reference into ledger storage.
    """

    def __init__(self, registry: Optional[EventTypeRegistry] = None):
        self._registry = registry
        self._entries: list[dict[str, Any]] = []
        self._event_ids: set[str] = set()
        self._tip_hash = GENESIS_HASH
        self._lock = threading.Lock()

    # ══════════════════════════════════════════════════════════
    # WRITE PATH
    # ══════════════════════════════════════════════════════════

    def persist_event(
        self,
        *,
        event_data: dict[str, Any],
        context: Any = None,
        registry: Optional[EventTypeRegistry] = None,
        **kwargs: Any,
    ) -> PersistResult:
        registry = registry if registry is not None else self._registry

        missing = [name for name in _REQUIRED_FIELDS if name not in event_data]
        if missing:
            return self._reject(
                LedgerRejectionCode.MALFORMED_EVENT,
                f"Event is missing required fields: {missing}.",
            )

        event_type = event_data["event_type"]
        if registry is not None and not registry.is_registered(event_type):
            return self._reject(
                LedgerRejectionCode.UNREGISTERED_EVENT_TYPE,
                f"Event type '{event_type}' is not registered.",
            )

        event_id = str(event_data["event_id"])
        with self._lock:
            if event_id in self._event_ids:
                return self._reject(
                    LedgerRejectionCode.DUPLICATE_EVENT_ID,
                    f"Event with ID {event_id} already exists.",
                    height=len(self._entries),
                )

            stored = copy.deepcopy(event_data)
            stored["previous_event_hash"] = self._tip_hash
            stored["event_hash"] = compute_event_hash(hash_body(stored), self._tip_hash)
            stored["height"] = len(self._entries) + 1

            self._entries.append(stored)
            self._event_ids.add(event_id)
            self._tip_hash = stored["event_hash"]
            height = stored["height"]

        logger.debug(f"Appended {event_type} at height {height}")
        return PersistResult(accepted=True, height=height, event_hash=stored["event_hash"])

    __call__ = persist_event

    def _reject(self, code: str, message: str, height: Optional[int] = None) -> PersistResult:
        logger.warning(f"Ledger rejected append: [{code}] {message}")
        return PersistResult(
            accepted=False,
            height=self.height if height is None else height,
            rejection=_ledger_rejection(code, message),
        )

    # ══════════════════════════════════════════════════════════
    # READ PATH
    # ══════════════════════════════════════════════════════════

    @property
    def height(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def tip_hash(self) -> str:
        with self._lock:
            return self._tip_hash

    def entries(self, event_types: Optional[Iterable[str]] = None) -> tuple[dict[str, Any], ...]:
        """Copies of stored entries in ledger order, optionally filtered by type."""
        wanted = None if event_types is None else frozenset(event_types)
        with self._lock:
            selected = [
                entry for entry in self._entries
                if wanted is None or entry["event_type"] in wanted
            ]
            return tuple(copy.deepcopy(selected))

    def verify_chain(self) -> bool:
        """
        Recompute every hash in order.

        Raises LedgerIntegrityError on the first broken link.
        """
        with self._lock:
            entries = list(self._entries)

        previous = GENESIS_HASH
        for position, entry in enumerate(entries, start=1):
            if entry.get("height") != position:
                raise LedgerIntegrityError(
                    position, f"stored height {entry.get('height')!r} is out of sequence."
                )
            if entry.get("previous_event_hash") != previous:
                raise LedgerIntegrityError(
                    position, "previous_event_hash does not match the preceding entry."
                )
            expected = compute_event_hash(hash_body(entry), previous)
            if entry.get("event_hash") != expected:
                raise LedgerIntegrityError(
                    position,
                    f"stored hash '{entry.get('event_hash')}' != recomputed '{expected}'.",
                )
            previous = expected
        return True

    # ══════════════════════════════════════════════════════════
    # EXPORT / IMPORT
    # ══════════════════════════════════════════════════════════

    def export_jsonl(self, path: Union[str, Path]) -> int:
        """Write one canonical JSON entry per line. Returns entry count."""
        entries = self.entries()
        with open(path, "w", encoding="utf-8") as handle:
            for entry in entries:
                handle.write(canonical_serialize(entry))
                handle.write("\n")
        logger.info(f"Exported {len(entries)} ledger entries to {path}")
        return len(entries)

    @classmethod
    def load_jsonl(
        cls,
        path: Union[str, Path],
        registry: Optional[EventTypeRegistry] = None,
    ) -> "InMemoryLedger":
        """
        Rebuild a ledger from an export, verifying the chain as stored.

        Raises LedgerIntegrityError if any entry was altered.
        """
        ledger = cls(registry=registry)
        with open(path, "r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise LedgerIntegrityError(line_number, f"invalid JSON: {exc}") from exc
                ledger._entries.append(entry)
                ledger._event_ids.add(str(entry.get("event_id")))
                ledger._tip_hash = entry.get("event_hash", "")

        ledger.verify_chain()
        logger.info(f"Loaded {ledger.height} ledger entries from {path}")
        return ledger
