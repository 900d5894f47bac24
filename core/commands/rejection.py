"""
TIR Command Layer — Rejection Model
======================================
Structured rejection reasons for denied commands and failed lookups.

This is NOT an event. It is an explanation structure
that becomes PART of the rejection event's payload.

Every rejection must be:
- Deterministic (same input → same rejection)
- Auditable (code + message + policy)
- Machine-readable (code + kind + legacy_code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# ERROR KIND (taxonomy independent of numeric codes)
# ══════════════════════════════════════════════════════════════

class ErrorKind(Enum):
    """Why a command was refused, regardless of which registry refused it."""
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_STATE = "INVALID_STATE"
    INVALID_INPUT = "INVALID_INPUT"


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'MILESTONE_ALREADY_PAID').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        kind:        ErrorKind bucket.
        legacy_code: Numeric code used by the legacy contract surface
                     (None for infrastructure rejections).

    Two rejections may share a legacy_code but never a code.
    """

    code: str
    message: str
    policy_name: str
    kind: ErrorKind = ErrorKind.INVALID_INPUT
    legacy_code: Optional[int] = None

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

        if not isinstance(self.kind, ErrorKind):
            raise ValueError(
                f"kind must be ErrorKind, got {type(self.kind).__name__}."
            )

        if self.legacy_code is not None and not isinstance(self.legacy_code, int):
            raise ValueError("legacy_code must be an integer or None.")

    def to_dict(self) -> dict:
        """Serialize for event payload."""
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "kind": self.kind.value,
            "legacy_code": self.legacy_code,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Infrastructure rejection codes. Engines declare their own
    domain codes next to their policies.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Command structure ─────────────────────────────────────
    INVALID_COMMAND_STRUCTURE = "INVALID_COMMAND_STRUCTURE"
    INVALID_COMMAND_TYPE = "INVALID_COMMAND_TYPE"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"

    # ── Actor ─────────────────────────────────────────────────
    INVALID_ACTOR = "INVALID_ACTOR"

    # ── Ledger ────────────────────────────────────────────────
    LEDGER_REJECTED = "LEDGER_REJECTED"
