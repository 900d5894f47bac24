"""
TIR Core Config — Deployment Settings
=======================================
Doctrine: No hardcoded identities in engine logic.
The administrator Principal and the optional hardening switches come
from deployment configuration, never from source code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.identity.principal import Principal, PrincipalLike, as_principal


ENV_ADMINISTRATOR = "TIR_ADMINISTRATOR"
ENV_PROPERTY_REGISTRATION_REQUIRES_ADMIN = "TIR_PROPERTY_REGISTRATION_REQUIRES_ADMIN"
ENV_RESERVE_MILESTONE_CAPACITY = "TIR_RESERVE_MILESTONE_CAPACITY"
ENV_ENFORCE_ALLOWANCE_CLOSURE = "TIR_ENFORCE_ALLOWANCE_CLOSURE"
ENV_MAX_RATING = "TIR_MAX_RATING"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


class ConfigError(Exception):
    """Deployment configuration is missing or malformed."""


# ══════════════════════════════════════════════════════════════
# REGISTRY CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RegistryConfig:
    """
    Settings shared by the four registries.

    Fields:
        administrator:
            The single Principal allowed to update property condition
            and verify contractors.
        property_registration_requires_admin:
            Restrict property registration to the administrator.
        reserve_milestone_capacity:
            Count unpaid milestones against remaining funds when adding
            a milestone, so milestones can never jointly overcommit.
        enforce_allowance_closure:
            Refuse milestone operations on a closed allowance.
        max_rating:
            Upper bound of contractor performance ratings.
    """

    administrator: Principal
    property_registration_requires_admin: bool = False
    reserve_milestone_capacity: bool = False
    enforce_allowance_closure: bool = False
    max_rating: int = 5

    def __post_init__(self) -> None:
        if not isinstance(self.administrator, Principal):
            raise ConfigError("administrator must be a Principal.")
        if not isinstance(self.max_rating, int) or self.max_rating < 1:
            raise ConfigError(f"max_rating must be an integer >= 1, got {self.max_rating!r}.")

    @classmethod
    def for_administrator(cls, administrator: PrincipalLike, **overrides) -> "RegistryConfig":
        return cls(administrator=as_principal(administrator), **overrides)


# ══════════════════════════════════════════════════════════════
# ENVIRONMENT LOADING
# ══════════════════════════════════════════════════════════════

def _parse_flag(environ: Mapping[str, str], name: str) -> bool:
    raw = environ.get(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}.")


def load_config(environ: Optional[Mapping[str, str]] = None) -> RegistryConfig:
    """
    Build RegistryConfig from environment variables.

    TIR_ADMINISTRATOR is required; every switch defaults to off.
    """
    env = os.environ if environ is None else environ

    administrator = env.get(ENV_ADMINISTRATOR, "").strip()
    if not administrator:
        raise ConfigError(f"{ENV_ADMINISTRATOR} must be set to the administrator address.")

    raw_rating = env.get(ENV_MAX_RATING, "").strip()
    try:
        max_rating = int(raw_rating) if raw_rating else 5
    except ValueError as exc:
        raise ConfigError(f"{ENV_MAX_RATING} must be an integer, got {raw_rating!r}.") from exc

    return RegistryConfig(
        administrator=Principal(administrator),
        property_registration_requires_admin=_parse_flag(
            env, ENV_PROPERTY_REGISTRATION_REQUIRES_ADMIN
        ),
        reserve_milestone_capacity=_parse_flag(env, ENV_RESERVE_MILESTONE_CAPACITY),
        enforce_allowance_closure=_parse_flag(env, ENV_ENFORCE_ALLOWANCE_CLOSURE),
        max_rating=max_rating,
    )
