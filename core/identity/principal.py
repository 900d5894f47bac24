"""
TIR Identity — Principal
==========================
Caller identity supplied by the execution environment per transaction.

The registries treat a Principal as opaque: equality is the only
operation they perform on it. Authentication happens upstream and is
trusted here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Principal:
    """Opaque, comparable caller identity (e.g. a ledger account address)."""

    address: str

    def __post_init__(self):
        if not isinstance(self.address, str) or not self.address.strip():
            raise ValueError("Principal address must be a non-empty string.")
        if self.address != self.address.strip():
            raise ValueError("Principal address must not carry surrounding whitespace.")

    def __str__(self) -> str:
        return self.address


PrincipalLike = Union[Principal, str]


def as_principal(value: PrincipalLike) -> Principal:
    """Coerce a raw address to a Principal. Principals pass through untouched."""
    if isinstance(value, Principal):
        return value
    return Principal(value)


def same_principal(actor_id: str, principal: PrincipalLike) -> bool:
    """Compare a command's actor_id against an expected identity."""
    return actor_id == as_principal(principal).address


def is_administrator(actor: PrincipalLike, config) -> bool:
    """True when actor is the administrator configured for this deployment."""
    address = actor.address if isinstance(actor, Principal) else actor
    return address == config.administrator.address
