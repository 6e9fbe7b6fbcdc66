"""
roster_services -- orchestration over the roster kernel and engines.

Responsibility:
    The outer service layer: the ``CostEngine`` facade that collaborators
    call, the attendance cache and the report builders.

Architecture position:
    Services -- imports roster_kernel, roster_engines and roster_config.
    Nothing in the kernel or the engines imports from here.
"""

from roster_services.attendance_cache import AttendanceCacheService, attendance_fingerprint
from roster_services.cost_engine import CostEngine, deduction_policy_from_config
from roster_services.reports import (
    DeductionReport,
    DeductionReportRow,
    DeductionReportTotals,
    FinancialOverview,
    OverviewLine,
    ReportService,
)

__all__ = [
    "AttendanceCacheService",
    "CostEngine",
    "DeductionReport",
    "DeductionReportRow",
    "DeductionReportTotals",
    "FinancialOverview",
    "OverviewLine",
    "ReportService",
    "attendance_fingerprint",
    "deduction_policy_from_config",
]
