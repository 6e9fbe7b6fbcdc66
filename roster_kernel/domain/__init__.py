"""
Pure domain layer.

Value objects and rules with NO dependencies on ORM, database or I/O
(SystemClock aside).  All domain objects are immutable and deterministic.
"""

from roster_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from roster_kernel.domain.period import Period
from roster_kernel.domain.sharing import SharingEdge, SharingGraph, parse_sharing_payload
from roster_kernel.domain.shift_codes import (
    SHIFT_CATEGORIES,
    VALID_SHIFT_CODES,
    DayCategory,
    ShiftCode,
    classify,
    parse_shift_code,
)
from roster_kernel.domain.values import validate_daily_wage, validate_percentage

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Period",
    "SharingEdge",
    "SharingGraph",
    "parse_sharing_payload",
    "SHIFT_CATEGORIES",
    "VALID_SHIFT_CODES",
    "DayCategory",
    "ShiftCode",
    "classify",
    "parse_shift_code",
    "validate_daily_wage",
    "validate_percentage",
]
