"""
TIR Core Config — Public API
===============================
Deployment settings. Doctrine: no hardcoded identities in engine logic.
"""

from core.config.settings import (
    ConfigError,
    RegistryConfig,
    load_config,
)

__all__ = [
    "ConfigError",
    "RegistryConfig",
    "load_config",
]
