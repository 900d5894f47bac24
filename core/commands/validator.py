"""
TIR Command Layer — Command Validator
========================================
Second look at a Command right before its policies run.

Command.__post_init__ already guards the envelope shape. This pass
re-checks what a Command built by hand (or unpickled, or produced by a
replaying client) could still get wrong:

- the object is a Command at all
- actor_id is a usable Principal address
- command_type still has the engine.domain.action.request shape
- payload is ledger-safe: string keys, JSON scalar/list/dict values

A payload that the ledger cannot hash canonically would be accepted
here and then refused at persist time, after policies already ran.
Refusing it up front keeps the rejection structural.

If invalid → CommandValidationError (structured, auditable).
"""

from __future__ import annotations

from core.commands.base import Command, VALID_ACTOR_TYPES
from core.commands.rejection import ReasonCode
from core.identity.principal import Principal


_LEDGER_SCALARS = (str, int, float, bool, type(None))


# ══════════════════════════════════════════════════════════════
# VALIDATION ERRORS
# ══════════════════════════════════════════════════════════════

class CommandValidationError(Exception):
    """Structured validation failure for commands."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


# ══════════════════════════════════════════════════════════════
# PAYLOAD SHAPE
# ══════════════════════════════════════════════════════════════

def _find_unhashable(value, path: str):
    """Return the dotted path of the first value the ledger cannot store, or None."""
    if isinstance(value, _LEDGER_SCALARS):
        return None
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            found = _find_unhashable(item, f"{path}[{index}]")
            if found:
                return found
        return None
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                return f"{path}.<{type(key).__name__} key>"
            found = _find_unhashable(item, f"{path}.{key}")
            if found:
                return found
        return None
    return f"{path} ({type(value).__name__})"


# ══════════════════════════════════════════════════════════════
# VALIDATOR
# ══════════════════════════════════════════════════════════════

def validate_command(command: Command) -> None:
    """
    Validate a command before dispatch.

    Raises:
        CommandValidationError: INVALID_COMMAND_STRUCTURE, INVALID_ACTOR,
            INVALID_COMMAND_TYPE or INVALID_PAYLOAD.
    """
    if not isinstance(command, Command):
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_STRUCTURE,
            message=f"Expected Command, got {type(command).__name__}.",
        )

    # ── caller ────────────────────────────────────────────────
    if command.actor_type not in VALID_ACTOR_TYPES:
        raise CommandValidationError(
            code=ReasonCode.INVALID_ACTOR,
            message=f"actor_type '{command.actor_type}' not valid.",
        )
    try:
        Principal(command.actor_id)
    except ValueError as exc:
        raise CommandValidationError(
            code=ReasonCode.INVALID_ACTOR,
            message=f"actor_id is not a principal address: {exc}",
        ) from exc

    # ── routing ───────────────────────────────────────────────
    parts = command.command_type.split(".")
    if len(parts) < 4 or parts[-1] != "request" or not all(parts):
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_TYPE,
            message=(
                f"command_type '{command.command_type}' must follow "
                f"engine.domain.action.request format."
            ),
        )

    # ── payload ───────────────────────────────────────────────
    if not isinstance(command.payload, dict):
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_STRUCTURE,
            message="payload must be a dict.",
        )
    bad = _find_unhashable(command.payload, "payload")
    if bad:
        raise CommandValidationError(
            code=ReasonCode.INVALID_PAYLOAD,
            message=f"{bad} cannot be written to the ledger.",
        )
