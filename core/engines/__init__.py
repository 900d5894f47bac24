"""
TIR Engines — Shared Registry Machinery
=========================================
Each registry engine is a RegistryService subclass plus a
ProjectionStore subclass. The base owns the command lifecycle;
engines own their policies, payloads and records.
"""

from core.engines.service import (
    CommandPolicy,
    ExecutionResult,
    ProjectionStore,
    RegistryService,
    not_found,
)

__all__ = [
    "CommandPolicy",
    "ExecutionResult",
    "ProjectionStore",
    "RegistryService",
    "not_found",
]
