"""
Module: roster_engines.project_cost
Responsibility:
    Sum attendance results across every staff member of one project for
    one period to produce the project's original cost (sum of net
    salaries) together with its expected-salary and deduction totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - original_cost == sum of staff net salaries, never raw worked-day pay.
    - Every staff record passed in belongs to the project being costed.
    - Idempotence: identical inputs give identical results.

Failure modes:
    - StaffProjectMismatchError if a staff member of another project is
      passed in.
    - InconsistentError if an attendance result belongs to another period.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from roster_engines.attendance import (
    AttendanceAggregator,
    AttendanceResult,
    DeductionPolicy,
)
from roster_engines.tracer import traced_engine
from roster_kernel.db.types import ZERO
from roster_kernel.domain.dtos import StaffInfo
from roster_kernel.domain.period import Period
from roster_kernel.exceptions import InconsistentError, StaffProjectMismatchError
from roster_kernel.logging_config import get_logger

logger = get_logger("engines.project_cost")


@dataclass(frozen=True)
class StaffRecords:
    """A staff member with the roster records for the period being costed."""

    staff: StaffInfo
    records: Sequence[Any] = ()


@dataclass(frozen=True)
class ProjectCostResult:
    """
    Labor cost of one project for one period, before sharing.

    Guarantees:
        - ``original_cost == expected_salary_total - deduction_total``.
    """

    project_id: UUID
    period: Period
    staff_results: tuple[AttendanceResult, ...]
    original_cost: Decimal
    expected_salary_total: Decimal
    deduction_total: Decimal

    @property
    def staff_count(self) -> int:
        return len(self.staff_results)

    def for_staff(self, staff_id: UUID) -> AttendanceResult | None:
        for result in self.staff_results:
            if result.staff_id == staff_id:
                return result
        return None


class ProjectCostCalculator:
    """
    Compute a project's original cost for a period.

    Contract:
        ``calculate`` aggregates raw records through the attendance
        aggregator; ``summarize`` accepts already-computed attendance
        (for example from the attendance cache).  Both are pure.
    """

    def __init__(self, aggregator: AttendanceAggregator | None = None):
        self._aggregator = aggregator or AttendanceAggregator()

    def calculate(
        self,
        project_id: UUID,
        period: Period,
        staff_records: Sequence[StaffRecords],
        policy: DeductionPolicy | None = None,
    ) -> ProjectCostResult:
        """Aggregate each staff member's records, then summarize."""
        results = []
        for item in staff_records:
            if item.staff.project_id != project_id:
                raise StaffProjectMismatchError(
                    str(item.staff.id), str(item.staff.project_id), str(project_id),
                )
            results.append(
                self._aggregator.aggregate(
                    item.records,
                    period,
                    item.staff.daily_wage,
                    policy=policy,
                    staff_id=item.staff.id,
                )
            )
        return self.summarize(project_id, period, results)

    @traced_engine("project_cost", "1.0", fingerprint_fields=("project_id", "period"))
    def summarize(
        self,
        project_id: UUID,
        period: Period,
        attendance: Sequence[AttendanceResult],
    ) -> ProjectCostResult:
        """
        Sum attendance results into the project's original cost.

        Raises:
            InconsistentError: If a result belongs to a different period.
        """
        for result in attendance:
            if result.period != period:
                raise InconsistentError(
                    f"Attendance for {result.period} passed to cost of {period}"
                )

        expected = sum((r.expected_salary for r in attendance), ZERO)
        deduction = sum((r.deduction_amount for r in attendance), ZERO)
        original = sum((r.net_salary for r in attendance), ZERO)

        logger.info("project_cost_computed", extra={
            "project_id": project_id,
            "period": str(period),
            "staff_count": len(attendance),
            "original_cost": original,
        })
        return ProjectCostResult(
            project_id=project_id,
            period=period,
            staff_results=tuple(attendance),
            original_cost=original,
            expected_salary_total=expected,
            deduction_total=deduction,
        )
