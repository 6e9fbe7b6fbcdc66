"""
Immutable DTOs returned by selectors and services.

Pure domain objects with no ORM dependencies: callers (HTTP handlers,
report renderers, the cost engine) never hold live ORM instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from roster_kernel.domain.period import Period
from roster_kernel.domain.shift_codes import ShiftCode


@dataclass(frozen=True)
class ProjectInfo:
    """A building-management project (juristic entity)."""

    id: UUID
    name: str
    is_active: bool
    deactivated_on: date | None = None
    location: str | None = None
    theme_color: str | None = None

    def was_active_on(self, day: date) -> bool:
        """Active on ``day``: never deactivated, or deactivated after it."""
        if self.deactivated_on is None:
            return self.is_active
        return self.deactivated_on > day

    def active_for(self, period: Period, today: date) -> bool:
        """
        Whether the project counts as active for ``period``.

        A period containing or following ``today`` is judged on current
        state; a past period on the state at its first day.
        """
        if period >= Period.containing(today):
            return self.is_active
        return self.was_active_on(period.first_day)


@dataclass(frozen=True)
class StaffInfo:
    """A staff member owned by exactly one project."""

    id: UUID
    project_id: UUID
    name: str
    daily_wage: Decimal
    is_active: bool = True
    position: str | None = None
    staff_type: str = "REGULAR"
    default_shift: ShiftCode | None = None


@dataclass(frozen=True)
class RosterInfo:
    """One roster per (project, year, month)."""

    id: UUID
    project_id: UUID
    year: int
    month: int

    @property
    def period(self) -> Period:
        return Period(self.year, self.month)


@dataclass(frozen=True)
class RosterEntryInfo:
    """One cell of the roster grid: (roster, staff, day) -> shift code."""

    id: UUID
    roster_id: UUID
    staff_id: UUID
    day: int
    shift_code: ShiftCode
    is_late: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class MonthlyAttendanceInfo:
    """Materialised attendance row for (staff, project, year, month)."""

    id: UUID
    staff_id: UUID
    project_id: UUID
    year: int
    month: int
    work_days: int
    absent_days: int
    late_days: int
    sick_leave_days: int
    personal_leave_days: int
    vacation_days: int
    off_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    expected_salary: Decimal
    deduction_amount: Decimal
    uncapped_deduction: Decimal
    net_salary: Decimal
    entries_fingerprint: str
    remark: str | None = None
