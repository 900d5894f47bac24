"""
TIR Bootstrap — Wiring and Self-Defense
=========================================
Builds the registries and refuses to hand out an unsafe wiring.
"""

from core.bootstrap.errors import SystemBootstrapError
from core.bootstrap.self_check import run_bootstrap_checks
from core.bootstrap.wiring import Registries, build_registries

__all__ = [
    "Registries",
    "SystemBootstrapError",
    "build_registries",
    "run_bootstrap_checks",
]
