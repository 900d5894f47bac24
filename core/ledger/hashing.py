"""
TIR Ledger — Hash Computation
===============================
Computes entry hashes using SHA-256.

Formula:
    event_hash = SHA256(canonical_json(body) + previous_event_hash)

    body = {"event_id", "event_type", "payload"}

Rules:
- Canonical JSON: sorted keys, compact separators
- No salt, no randomness; determinism is mandatory
- First entry chains from GENESIS_HASH
- Same input ALWAYS produces same output
"""

import hashlib
import json
from typing import Any


GENESIS_HASH = "GENESIS"


def canonical_serialize(value: Any) -> str:
    """
    Deterministic JSON. UUIDs and datetimes serialize through str(),
    so an entry reloaded from an export hashes identically.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=str,
    )


def hash_body(event_data: dict) -> dict:
    """The part of an event envelope covered by the chain."""
    return {
        "event_id": str(event_data["event_id"]),
        "event_type": event_data["event_type"],
        "payload": event_data["payload"],
    }


def compute_event_hash(body: Any, previous_event_hash: str) -> str:
    """64-character lowercase hex SHA-256 digest chained to the previous entry."""
    hash_input = canonical_serialize(body) + previous_event_hash
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
