"""
roster_services.cost_engine -- The cost-sharing and payroll-deduction facade.

Responsibility:
    Expose the engine interface external collaborators call:

        compute_attendance(staff_id, year, month)        -> AttendanceResult
        compute_project_cost(project_id, year, month)    -> Decimal
        compute_cost_sharing(project_id, year, month,
                             original_cost=None)         -> CostSharingResult
        compute_portfolio(year, month, project_ids=None) -> PortfolioResult
        has_reciprocal_sharing(source_id, dest_id)       -> bool

    It loads records through kernel selectors, validates the boundary
    contracts (period bounds) and delegates every calculation to the pure
    engines in ``roster_engines``.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Reads only;
    the single write it may perform is the attendance-cache
    materialisation, flushed into the caller's session.

Invariants enforced:
    - Boundary validation: periods are validated before any query runs.
    - A period with no roster yields zero counts and zero cost.
    - Single-hop sharing: every source's ORIGINAL cost feeds shared-in.
    - Fail closed: an edge whose counterpart is not active for the period
      raises InactiveProjectReferenceError (see ProjectInfo.active_for).
    - Portfolio evaluation is read-only.  With a session factory and
      ``portfolio_max_workers > 1`` original costs are computed in a
      bounded thread pool, one session per task.

Failure modes:
    - StaffNotFoundError / ProjectNotFoundError for unknown ids.
    - InvalidPeriodError for out-of-range periods.
    - InactiveProjectReferenceError, NegativeNetCostError from sharing.

Audit relevance:
    Every computation is traced by the engines (ROSTER_ENGINE_TRACE) and
    logged under the ``roster_kernel.services.cost_engine`` logger with
    the period and project bound into LogContext.

Usage:
    with session_scope() as session:
        engine = CostEngine(session, get_active_config())
        result = engine.compute_cost_sharing(project_id, 2025, 1)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from roster_config.schema import EngineConfig
from roster_engines.attendance import AttendanceAggregator, AttendanceResult, DeductionPolicy
from roster_engines.cost_sharing import (
    CostSharingResolver,
    CostSharingResult,
    check_counterparts_active,
)
from roster_engines.portfolio import PortfolioAggregator, PortfolioResult, required_cost_ids
from roster_engines.project_cost import ProjectCostCalculator, ProjectCostResult
from roster_kernel.domain.clock import Clock, SystemClock
from roster_kernel.domain.dtos import StaffInfo
from roster_kernel.domain.period import Period
from roster_kernel.exceptions import ProjectNotFoundError
from roster_kernel.logging_config import LogContext, get_logger
from roster_kernel.selectors.project_selector import ProjectSelector
from roster_kernel.selectors.roster_selector import RosterSelector
from roster_kernel.selectors.staff_selector import StaffSelector
from roster_services.attendance_cache import AttendanceCacheService

logger = get_logger("services.cost_engine")


def deduction_policy_from_config(config: EngineConfig) -> DeductionPolicy:
    return DeductionPolicy(
        absence_deduction_rate=config.absence_deduction_rate,
        late_deduction_amount=config.late_deduction_amount,
        paid_leave_categories=config.paid_leave_categories,
        decimal_places=config.money_decimal_places,
    )


class CostEngine:
    """
    Facade over selectors and pure engines.

    Contract:
        Receives the caller's Session.  Never commits.
    Guarantees:
        - Identical stored state gives identical results (idempotence).
        - Reciprocal sharing is reported, never rejected.
    """

    def __init__(
        self,
        session: Session,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        session_factory: Callable[[], Session] | None = None,
        store_attendance: bool = True,
    ):
        self.session = session
        self.config = config or EngineConfig.with_defaults()
        self.clock = clock or SystemClock()
        self._session_factory = session_factory
        self._store_attendance = store_attendance
        self.policy = deduction_policy_from_config(self.config)

        self._projects = ProjectSelector(session)
        self._staff = StaffSelector(session)
        self._rosters = RosterSelector(session)
        self._aggregator = AttendanceAggregator()
        self._calculator = ProjectCostCalculator(self._aggregator)
        self._resolver = CostSharingResolver()
        self._portfolio = PortfolioAggregator(self._resolver)
        self.attendance_cache = AttendanceCacheService(
            session, self._aggregator, store=store_attendance,
        )

    # Attendance

    def _attendance_for(self, staff: StaffInfo, period: Period) -> AttendanceResult:
        if self.config.use_attendance_cache:
            return self.attendance_cache.get_or_compute(staff, period, self.policy)
        entries = self._rosters.entries_for_staff(staff.project_id, staff.id, period)
        return self._aggregator.aggregate(
            entries, period, staff.daily_wage, policy=self.policy, staff_id=staff.id,
        )

    def compute_attendance(self, staff_id: UUID, year: int, month: int) -> AttendanceResult:
        """
        Attendance and salary of one staff member for a period.

        Raises:
            InvalidPeriodError: year/month out of range.
            StaffNotFoundError: unknown staff.
        """
        period = Period(year, month)
        staff = self._staff.get(staff_id)
        with LogContext.bind(project_id=str(staff.project_id), period=str(period)):
            return self._attendance_for(staff, period)

    # Project cost

    def project_cost_detail(self, project_id: UUID, period: Period) -> ProjectCostResult:
        """Original cost with the per-staff attendance behind it."""
        self._projects.get(project_id)
        staff_list = self._staff.list_for_project(
            project_id, include_inactive=self.config.include_inactive_staff,
        )
        with LogContext.bind(project_id=str(project_id), period=str(period)):
            attendance = [self._attendance_for(staff, period) for staff in staff_list]
            return self._calculator.summarize(project_id, period, attendance)

    def compute_project_cost(self, project_id: UUID, year: int, month: int) -> Decimal:
        """
        A project's original cost: the sum of its staff net salaries.

        Works for any project, active or not, so that the cost of a
        sharing source can be computed while reporting on a destination.
        """
        period = Period(year, month)
        return self.project_cost_detail(project_id, period).original_cost

    # Sharing

    def compute_cost_sharing(
        self,
        project_id: UUID,
        year: int,
        month: int,
        original_cost: Decimal | None = None,
    ) -> CostSharingResult:
        """
        Shared-out, shared-in and net cost for one project.

        ``original_cost`` defaults to the project's computed original cost.
        The original cost of each incoming edge's source is always
        computed independently.

        Raises:
            ProjectNotFoundError: unknown project or edge counterpart.
            InactiveProjectReferenceError: counterpart inactive for the period.
            NegativeNetCostError: shared-out exceeds the project's cost.
        """
        period = Period(year, month)
        self._projects.get(project_id)
        # Full graph: a source's share to this project depends on its other edges
        graph = self._projects.sharing_graph()
        counterparts = self._projects.get_many(graph.counterparts(project_id))
        check_counterparts_active(
            project_id, graph, counterparts, period, self.clock.today(),
        )

        if original_cost is None:
            original_cost = self.project_cost_detail(project_id, period).original_cost
        source_costs = {
            edge.source_project_id: self.project_cost_detail(
                edge.source_project_id, period,
            ).original_cost
            for edge in graph.incoming(project_id)
        }
        with LogContext.bind(project_id=str(project_id), period=str(period)):
            return self._resolver.resolve(
                project_id,
                period,
                original_cost,
                graph,
                source_costs,
                decimal_places=self.config.money_decimal_places,
            )

    def has_reciprocal_sharing(self, source_id: UUID, destination_id: UUID) -> bool:
        """True when edges exist in both directions between the two projects."""
        return self._projects.sharing_graph_for(source_id).has_reciprocal(
            source_id, destination_id,
        )

    # Portfolio

    def _original_costs(self, project_ids: Sequence[UUID], period: Period) -> dict[UUID, ProjectCostResult]:
        workers = min(self.config.portfolio_max_workers, max(len(project_ids), 1))
        if self._session_factory is None or workers <= 1:
            return {pid: self.project_cost_detail(pid, period) for pid in project_ids}

        def work(project_id: UUID) -> ProjectCostResult:
            session = self._session_factory()
            try:
                engine = CostEngine(
                    session, self.config, self.clock, store_attendance=False,
                )
                return engine.project_cost_detail(project_id, period)
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="portfolio") as pool:
            details = list(pool.map(work, project_ids))
        return dict(zip(project_ids, details))

    def compute_portfolio(
        self,
        year: int,
        month: int,
        project_ids: Sequence[UUID] | None = None,
    ) -> PortfolioResult:
        """
        Per-project original/shared/net cost plus grand totals.

        The default project set is every project active for the period.
        An explicit subset is reported with its conservation gap instead
        of being required to close.

        Note: worker sessions only see committed data; commit roster
        writes before a parallel portfolio run.
        """
        period = Period(year, month)
        today = self.clock.today()
        if project_ids is None:
            projects = self._projects.list_active_for_period(period, today)
        else:
            lookup = self._projects.get_many(project_ids)
            projects = []
            for pid in project_ids:
                if pid not in lookup:
                    raise ProjectNotFoundError(str(pid))
                projects.append(lookup[pid])
        included = [p.id for p in projects]

        graph = self._projects.sharing_graph()
        referenced = set()
        for project_id in included:
            referenced |= graph.counterparts(project_id)
        counterparts = self._projects.get_many(referenced)
        for project_id in included:
            check_counterparts_active(project_id, graph, counterparts, period, today)

        needed = sorted(required_cost_ids(included, graph), key=str)
        with LogContext.bind(period=str(period)):
            details = self._original_costs(needed, period)
            result = self._portfolio.compute(
                period,
                included,
                {pid: detail.original_cost for pid, detail in details.items()},
                graph,
                project_names={p.id: p.name for p in projects},
                staff_counts={pid: details[pid].staff_count for pid in included},
                decimal_places=self.config.money_decimal_places,
            )
        return result
