"""
TIR Command Layer — Command Dispatcher
=========================================
Accept Command → Validate → Evaluate global policies → Produce Outcome.

The Dispatcher is the first DECISION MAKER. It decides whether a command
is well-formed enough to be handed to its registry.

The Dispatcher DOES NOT:
- Persist events
- Touch projections
- Evaluate registry-specific rules (engines own those)

It only produces a deterministic CommandOutcome.

Policy evaluation is pluggable: policies are registered as callables
that return Optional[RejectionReason]. If any policy rejects, the
command is REJECTED with the first rejection reason.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from core.commands.base import Command
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import ErrorKind, RejectionReason
from core.commands.validator import CommandValidationError, validate_command
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("tir.commands")


# ══════════════════════════════════════════════════════════════
# POLICY TYPE
# ══════════════════════════════════════════════════════════════

# A global policy is a callable:
#   (Command) → Optional[RejectionReason]
#   Returns None if policy passes, RejectionReason if it rejects.
PolicyEvaluator = Callable[[Command], Optional[RejectionReason]]


# ══════════════════════════════════════════════════════════════
# COMMAND DISPATCHER
# ══════════════════════════════════════════════════════════════

class CommandDispatcher:
    """
    Evaluate a command through validation and global policies.

    Usage:
        dispatcher = CommandDispatcher(clock=FixedClock(...))
        dispatcher.register_policy(maintenance_window_guard)

        outcome = dispatcher.dispatch(command)

    Policies are evaluated in registration order.
    First rejection wins; remaining policies are skipped.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or get_default_clock()
        self._policies: List[PolicyEvaluator] = []

    def register_policy(self, policy: PolicyEvaluator) -> None:
        if not callable(policy):
            raise TypeError(
                f"Policy must be callable, got {type(policy).__name__}."
            )
        self._policies.append(policy)

        policy_name = getattr(policy, "__qualname__", str(policy))
        logger.debug(f"Policy registered: {policy_name}")

    # ══════════════════════════════════════════════════════════
    # DISPATCH
    # ══════════════════════════════════════════════════════════

    def dispatch(self, command: Command) -> CommandOutcome:
        """
        Evaluate command and produce outcome.

        Flow:
        1. Validate structure → if fails, REJECTED (INVALID_INPUT)
        2. Evaluate policies → if any rejects, REJECTED
        3. All clear → ACCEPTED (handed to the engine)
        """
        if not isinstance(command, Command):
            raise TypeError(
                f"dispatch expects Command, got {type(command).__name__}."
            )

        now = self._clock.now_utc()

        # ── Step 1: Structural validation ─────────────────────
        try:
            validate_command(command)
        except CommandValidationError as exc:
            logger.info(
                f"Command {command.command_id} validation failed: "
                f"[{exc.code}] {exc.message}"
            )
            return CommandOutcome.rejected(
                command_id=command.command_id,
                reason=RejectionReason(
                    code=exc.code,
                    message=exc.message,
                    policy_name="command_validator",
                    kind=ErrorKind.INVALID_INPUT,
                ),
                occurred_at=now,
            )

        # ── Step 2: Policy evaluation ─────────────────────────
        for policy in self._policies:
            rejection = policy(command)
            if rejection is not None:
                if not isinstance(rejection, RejectionReason):
                    raise TypeError(
                        f"Policy must return RejectionReason or None, "
                        f"got {type(rejection).__name__}."
                    )

                logger.info(
                    f"Command {command.command_id} rejected by "
                    f"policy '{rejection.policy_name}': "
                    f"[{rejection.code}] {rejection.message}"
                )
                return CommandOutcome.rejected(
                    command_id=command.command_id,
                    reason=rejection,
                    occurred_at=now,
                )

        # ── Step 3: All clear ─────────────────────────────────
        logger.debug(f"Command {command.command_id} passed dispatch")
        return CommandOutcome.accepted(command.command_id, now)
