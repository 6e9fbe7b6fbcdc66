"""
Period -- the (year, month) pair scoping a roster and every derived figure.

Responsibility:
    Validate period bounds at the boundary and answer calendar questions
    (days in month, first/last day, day-range checks).

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.

Invariants enforced:
    - 1 <= month <= 12.
    - MIN_YEAR <= year <= MAX_YEAR (Gregorian).
    - 1 <= day <= days_in_month for every day accepted by ``validate_day``.

Failure modes:
    - InvalidPeriodError on out-of-range year/month or non-integer input.
    - InvalidDayError on out-of-range or non-integer day.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from roster_kernel.exceptions import InvalidDayError, InvalidPeriodError

MIN_YEAR = 1900
MAX_YEAR = 9999

# Thai Buddhist Era is Gregorian + 543
BUDDHIST_ERA_OFFSET = 543


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, order=True)
class Period:
    """A calendar month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not (_is_int(self.year) and _is_int(self.month)):
            raise InvalidPeriodError(self.year, self.month)
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(self.year, self.month)
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise InvalidPeriodError(self.year, self.month)

    @classmethod
    def of(cls, year: int, month: int) -> Period:
        return cls(year=year, month=month)

    @classmethod
    def from_buddhist_year(cls, buddhist_year: int, month: int) -> Period:
        """Build a period from a B.E. year as shown in Thai rosters."""
        if not _is_int(buddhist_year):
            raise InvalidPeriodError(buddhist_year, month)
        return cls(year=buddhist_year - BUDDHIST_ERA_OFFSET, month=month)

    @classmethod
    def containing(cls, day: date) -> Period:
        return cls(year=day.year, month=day.month)

    @property
    def buddhist_year(self) -> int:
        return self.year + BUDDHIST_ERA_OFFSET

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    def days(self) -> range:
        return range(1, self.days_in_month + 1)

    def validate_day(self, day: object) -> int:
        """Return ``day`` if it lies within this period, else raise."""
        if not _is_int(day) or not 1 <= day <= self.days_in_month:
            raise InvalidDayError(day, self.days_in_month)
        return day

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
