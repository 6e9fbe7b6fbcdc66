"""
Module: roster_engines.attendance
Responsibility:
    Convert one staff member's per-day shift codes for a period into
    day-category counts and the salary figures derived from them:
    expected salary, deduction and net salary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import roster_kernel domain/db-types/logging.

Invariants enforced:
    - Partition: worked + off + absent + sick + personal + vacation
      == days in the period.  Unrecorded days count as OFF.
    - Every shift code is validated against the closed vocabulary;
      unknown codes raise, they never fall back to OFF or absence.
    - Non-negativity: deduction is clamped to expected salary, so
      net salary >= 0 for any deduction inputs.
    - Decimal only; amounts rounded through round_money().

Failure modes:
    - InvalidShiftCodeError on a code outside the vocabulary.
    - InvalidDayError on a day outside the period.
    - InvalidInputError on a day recorded twice or a late flag on a day
      that is not a worked day.
    - InvalidWageError on a non-positive wage.

Usage:
    from roster_engines.attendance import AttendanceAggregator, DayRecord

    result = AttendanceAggregator().aggregate(
        records=[DayRecord(1, ShiftCode.MORNING), DayRecord(2, ShiftCode.ABSENT)],
        period=Period(2025, 1),
        daily_wage=Decimal("450"),
    )
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from roster_engines.tracer import traced_engine
from roster_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO, round_money, to_decimal
from roster_kernel.domain.period import Period
from roster_kernel.domain.shift_codes import (
    LEAVE_CATEGORIES,
    DayCategory,
    ShiftCode,
    classify,
    parse_shift_code,
)
from roster_kernel.domain.values import validate_daily_wage
from roster_kernel.exceptions import InvalidInputError
from roster_kernel.logging_config import get_logger

logger = get_logger("engines.attendance")


@dataclass(frozen=True)
class DeductionPolicy:
    """
    Deduction parameters for one aggregation run.

    Guarantees:
        - Rates and amounts are non-negative Decimals.
    """

    absence_deduction_rate: Decimal = Decimal("1")
    late_deduction_amount: Decimal = Decimal("0")
    paid_leave_categories: frozenset[DayCategory] = field(
        default_factory=lambda: frozenset({DayCategory.SICK_LEAVE, DayCategory.VACATION})
    )
    decimal_places: int = MONEY_DECIMAL_PLACES

    def __post_init__(self) -> None:
        rate = to_decimal(self.absence_deduction_rate)
        late = to_decimal(self.late_deduction_amount)
        if rate < ZERO or late < ZERO:
            raise ValueError("Deduction rate and late amount cannot be negative")
        object.__setattr__(self, "absence_deduction_rate", rate)
        object.__setattr__(self, "late_deduction_amount", late)


@dataclass(frozen=True)
class DayRecord:
    """One recorded day for one staff member."""

    day: int
    shift_code: ShiftCode
    is_late: bool = False


@dataclass(frozen=True)
class AttendanceResult:
    """
    Attendance and salary figures for one staff member and period.

    Guarantees:
        - ``days_in_period`` equals the sum of the six category counts.
        - ``0 <= deduction_amount <= expected_salary``.
        - ``net_salary == expected_salary - deduction_amount``.
    """

    staff_id: UUID | None
    period: Period
    daily_wage: Decimal
    worked_days: int
    off_days: int
    absent_days: int
    sick_leave_days: int
    personal_leave_days: int
    vacation_days: int
    late_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    expected_salary: Decimal
    deduction_amount: Decimal
    uncapped_deduction: Decimal
    net_salary: Decimal

    @property
    def days_in_period(self) -> int:
        return self.period.days_in_month

    @property
    def recorded_total(self) -> int:
        return (
            self.worked_days
            + self.off_days
            + self.absent_days
            + self.sick_leave_days
            + self.personal_leave_days
            + self.vacation_days
        )

    @property
    def is_deduction_capped(self) -> bool:
        return self.uncapped_deduction > self.deduction_amount

    def category_counts(self) -> dict[DayCategory, int]:
        return {
            DayCategory.WORKED: self.worked_days,
            DayCategory.OFF: self.off_days,
            DayCategory.ABSENT: self.absent_days,
            DayCategory.SICK_LEAVE: self.sick_leave_days,
            DayCategory.PERSONAL_LEAVE: self.personal_leave_days,
            DayCategory.VACATION: self.vacation_days,
        }


def _normalize(record: Any) -> DayRecord:
    # Accept DayRecord, RosterEntryInfo or a (day, code) pair
    if isinstance(record, tuple):
        return DayRecord(record[0], parse_shift_code(record[1]))
    return DayRecord(
        record.day,
        parse_shift_code(record.shift_code),
        bool(getattr(record, "is_late", False)),
    )


class AttendanceAggregator:
    """
    Aggregate per-day shift codes into attendance counts and salary.

    Contract:
        Pure function of (records, period, wage, policy).  No I/O.
    Guarantees:
        - Deduction = absent x wage x rate + late x late amount, capped
          at expected salary.
        - Paid/unpaid leave split follows ``policy.paid_leave_categories``;
          the split is reporting only and does not change cost.
    """

    @traced_engine(
        "attendance", "1.0",
        fingerprint_fields=("records", "period", "daily_wage", "policy"),
    )
    def aggregate(
        self,
        records: Sequence[Any],
        period: Period,
        daily_wage: Decimal,
        policy: DeductionPolicy | None = None,
        staff_id: UUID | None = None,
    ) -> AttendanceResult:
        """
        Aggregate one staff member's records for ``period``.

        Args:
            records: DayRecord-like items (``day``, ``shift_code`` and
                optional ``is_late``) or ``(day, code)`` pairs.
            period: The period the records belong to.
            daily_wage: Positive daily wage.
            policy: Deduction parameters (defaults when omitted).
            staff_id: Carried through to the result for reporting.

        Returns:
            AttendanceResult for the whole period.
        """
        policy = policy or DeductionPolicy()
        wage = validate_daily_wage(daily_wage)

        days: Counter[DayCategory] = Counter()
        seen: set[int] = set()
        late_days = 0
        for raw in records:
            record = _normalize(raw)
            day = period.validate_day(record.day)
            if day in seen:
                raise InvalidInputError(f"Day {day} recorded more than once for {period}")
            seen.add(day)
            category = classify(record.shift_code)
            if record.is_late:
                if category is not DayCategory.WORKED:
                    raise InvalidInputError(
                        f"Day {day} is marked late but is not a worked day "
                        f"({record.shift_code.value})"
                    )
                late_days += 1
            days[category] += 1

        # Days with no entry are scheduled off
        days[DayCategory.OFF] += period.days_in_month - len(seen)

        places = policy.decimal_places
        expected = round_money(wage * days[DayCategory.WORKED], places)
        uncapped = round_money(
            wage * days[DayCategory.ABSENT] * policy.absence_deduction_rate
            + policy.late_deduction_amount * late_days,
            places,
        )
        deduction = min(uncapped, expected)
        net = expected - deduction

        paid_leave = sum(
            days[c] for c in LEAVE_CATEGORIES if c in policy.paid_leave_categories
        )
        unpaid_leave = sum(
            days[c] for c in LEAVE_CATEGORIES if c not in policy.paid_leave_categories
        )

        result = AttendanceResult(
            staff_id=staff_id,
            period=period,
            daily_wage=wage,
            worked_days=days[DayCategory.WORKED],
            off_days=days[DayCategory.OFF],
            absent_days=days[DayCategory.ABSENT],
            sick_leave_days=days[DayCategory.SICK_LEAVE],
            personal_leave_days=days[DayCategory.PERSONAL_LEAVE],
            vacation_days=days[DayCategory.VACATION],
            late_days=late_days,
            paid_leave_days=paid_leave,
            unpaid_leave_days=unpaid_leave,
            expected_salary=expected,
            deduction_amount=deduction,
            uncapped_deduction=uncapped,
            net_salary=net,
        )

        if result.is_deduction_capped:
            logger.warning("deduction_capped", extra={
                "staff_id": staff_id,
                "period": str(period),
                "expected_salary": expected,
                "uncapped_deduction": uncapped,
            })
        logger.debug("attendance_computed", extra={
            "staff_id": staff_id,
            "period": str(period),
            "worked_days": result.worked_days,
            "absent_days": result.absent_days,
            "net_salary": net,
        })
        return result

    def empty(
        self,
        period: Period,
        daily_wage: Decimal,
        staff_id: UUID | None = None,
    ) -> AttendanceResult:
        """Result for a period with no roster yet: every day OFF, zero cost."""
        return self.aggregate([], period, daily_wage, staff_id=staff_id)


def total_net_salary(results: Sequence[AttendanceResult]) -> Decimal:
    return sum((r.net_salary for r in results), ZERO)
