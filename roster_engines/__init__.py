"""
Module: roster_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines:
    attendance aggregation, project cost, cost sharing and portfolio.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import roster_kernel domain, db-types and logging.
    MUST NOT import roster_services or roster_config.

Invariants enforced:
    - Purity: engines never read the clock.  "Today" is passed in by
      the caller where it matters (counterpart activity checks).
    - Decimal-only arithmetic; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine``, emitting
    ROSTER_ENGINE_TRACE records with an input fingerprint.
"""

from roster_engines.attendance import (
    AttendanceAggregator,
    AttendanceResult,
    DayRecord,
    DeductionPolicy,
)
from roster_engines.cost_sharing import (
    CostSharingResolver,
    CostSharingResult,
    EdgeShare,
    allocate_shares,
    check_counterparts_active,
    edge_share,
)
from roster_engines.portfolio import (
    PortfolioAggregator,
    PortfolioLine,
    PortfolioResult,
    PortfolioTotals,
    required_cost_ids,
)
from roster_engines.project_cost import (
    ProjectCostCalculator,
    ProjectCostResult,
    StaffRecords,
)

__all__ = [
    "AttendanceAggregator",
    "AttendanceResult",
    "DayRecord",
    "DeductionPolicy",
    "CostSharingResolver",
    "CostSharingResult",
    "EdgeShare",
    "allocate_shares",
    "check_counterparts_active",
    "edge_share",
    "PortfolioAggregator",
    "PortfolioLine",
    "PortfolioResult",
    "PortfolioTotals",
    "required_cost_ids",
    "ProjectCostCalculator",
    "ProjectCostResult",
    "StaffRecords",
]
