"""
TIR Core Time — Public API
============================
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SteppingClock,
    SystemClock,
    get_default_clock,
    set_default_clock,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SteppingClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
]
