"""
TIR Ledger — Event Envelope Factory
=====================================
Builds the envelope the ledger stores for an accepted command.

event_id = command_id, so one command can never be recorded twice.
Rejection envelopes are built by the command bus, which owns the
rejection lifecycle.
"""

from __future__ import annotations

from typing import Any

from core.commands.base import Command

EVENT_VERSION = 1


def build_event_data(*, command: Command, event_type: str, payload: dict) -> dict[str, Any]:
    return {
        "event_id": command.command_id,
        "event_type": event_type,
        "event_version": EVENT_VERSION,
        "source_engine": command.source_engine,
        "actor_type": command.actor_type,
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "causation_id": command.command_id,
        "payload": dict(payload),
        "created_at": command.issued_at,
    }
