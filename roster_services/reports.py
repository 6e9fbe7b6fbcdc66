"""
roster_services.reports -- Monthly deduction report and financial overview.

Responsibility:
    Shape engine results into the two tabular reports the roster
    application prints or exports: the per-project monthly deduction
    sheet (one row per staff member plus column totals) and the
    cross-project financial overview (staff count and original cost per
    project plus a grand total).  Rendering to CSV/PDF is left to the
    presentation layer.

Architecture position:
    Services -- orchestration over the cost engine facade.  Read-only
    apart from the attendance-cache writes the engine performs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from roster_engines.attendance import AttendanceResult
from roster_kernel.db.types import ZERO
from roster_kernel.domain.dtos import ProjectInfo, StaffInfo
from roster_kernel.domain.period import Period
from roster_kernel.logging_config import get_logger
from roster_kernel.selectors.project_selector import ProjectSelector
from roster_kernel.selectors.staff_selector import StaffSelector
from roster_services.cost_engine import CostEngine

logger = get_logger("services.reports")


@dataclass(frozen=True)
class DeductionReportRow:
    staff: StaffInfo
    attendance: AttendanceResult
    remark: str | None = None


@dataclass(frozen=True)
class DeductionReportTotals:
    work_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    paid_leave_days: int = 0
    unpaid_leave_days: int = 0
    expected_salary: Decimal = ZERO
    deduction_amount: Decimal = ZERO
    net_salary: Decimal = ZERO


@dataclass(frozen=True)
class DeductionReport:
    """Monthly deduction sheet for one project."""

    project: ProjectInfo
    period: Period
    currency: str
    rows: tuple[DeductionReportRow, ...]
    totals: DeductionReportTotals


@dataclass(frozen=True)
class OverviewLine:
    project: ProjectInfo
    staff_count: int
    original_cost: Decimal


@dataclass(frozen=True)
class FinancialOverview:
    """Original cost of every project active for the period."""

    period: Period
    currency: str
    lines: tuple[OverviewLine, ...]
    grand_total: Decimal

    @property
    def total_staff(self) -> int:
        return sum(line.staff_count for line in self.lines)


class ReportService:
    """Builds report DTOs from the cost engine."""

    def __init__(self, engine: CostEngine):
        self.engine = engine
        self._projects = ProjectSelector(engine.session)
        self._staff = StaffSelector(engine.session)

    def monthly_deduction_report(self, project_id: UUID, year: int, month: int) -> DeductionReport:
        """
        Per-staff attendance and deduction for a project and period.

        Remarks come from the attendance cache row when one exists.
        """
        period = Period(year, month)
        project = self._projects.get(project_id)
        staff_by_id = {
            s.id: s
            for s in self._staff.list_for_project(
                project_id, include_inactive=self.engine.config.include_inactive_staff,
            )
        }
        detail = self.engine.project_cost_detail(project_id, period)

        rows = []
        for result in detail.staff_results:
            staff = staff_by_id[result.staff_id]
            cached = self.engine.attendance_cache.find(staff, period)
            rows.append(
                DeductionReportRow(
                    staff=staff,
                    attendance=result,
                    remark=cached.remark if cached is not None else None,
                )
            )

        totals = DeductionReportTotals(
            work_days=sum(r.attendance.worked_days for r in rows),
            absent_days=sum(r.attendance.absent_days for r in rows),
            late_days=sum(r.attendance.late_days for r in rows),
            paid_leave_days=sum(r.attendance.paid_leave_days for r in rows),
            unpaid_leave_days=sum(r.attendance.unpaid_leave_days for r in rows),
            expected_salary=detail.expected_salary_total,
            deduction_amount=detail.deduction_total,
            net_salary=detail.original_cost,
        )
        logger.info("deduction_report_built", extra={
            "project_id": project_id,
            "period": str(period),
            "row_count": len(rows),
            "net_salary_total": totals.net_salary,
        })
        return DeductionReport(
            project=project,
            period=period,
            currency=self.engine.config.currency,
            rows=tuple(rows),
            totals=totals,
        )

    def financial_overview(self, year: int, month: int) -> FinancialOverview:
        period = Period(year, month)
        projects = self._projects.list_active_for_period(period, self.engine.clock.today())
        lines = []
        for project in projects:
            detail = self.engine.project_cost_detail(project.id, period)
            lines.append(
                OverviewLine(
                    project=project,
                    staff_count=detail.staff_count,
                    original_cost=detail.original_cost,
                )
            )
        grand_total = sum((line.original_cost for line in lines), ZERO)
        logger.info("financial_overview_built", extra={
            "period": str(period),
            "project_count": len(lines),
            "grand_total": grand_total,
        })
        return FinancialOverview(
            period=period,
            currency=self.engine.config.currency,
            lines=tuple(lines),
            grand_total=grand_total,
        )
