"""
TIR Identity — Public API
===========================
"""

from core.identity.principal import (
    Principal,
    PrincipalLike,
    as_principal,
    is_administrator,
    same_principal,
)

__all__ = [
    "Principal",
    "PrincipalLike",
    "as_principal",
    "is_administrator",
    "same_principal",
]
