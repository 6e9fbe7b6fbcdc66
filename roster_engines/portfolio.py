"""
Module: roster_engines.portfolio
Responsibility:
    Resolve cost sharing for a set of projects in one period and produce
    per-project lines plus grand totals, warnings for reciprocal and
    over-allocated sharing, and the conservation check.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Original costs are
    computed by the caller (possibly in parallel) and passed in.

Invariants enforced:
    - Conservation: when every project referenced by an edge touching the
      included set is itself included, sum(shared_out) == sum(shared_in)
      exactly.  A closed portfolio with a gap raises InconsistentError.
    - Totals are the plain sums of the per-project lines.

Failure modes:
    - MissingOriginalCostError when the original cost of an included
      project or of a source feeding one is missing.
    - Errors of the Cost-Sharing Resolver propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from roster_engines.cost_sharing import CostSharingResolver, CostSharingResult
from roster_engines.tracer import traced_engine
from roster_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO
from roster_kernel.domain.period import Period
from roster_kernel.domain.sharing import SharingGraph
from roster_kernel.exceptions import InconsistentError, MissingOriginalCostError
from roster_kernel.logging_config import get_logger

logger = get_logger("engines.portfolio")


@dataclass(frozen=True)
class PortfolioLine:
    """One project's row in the portfolio report."""

    project_id: UUID
    project_name: str
    original_cost: Decimal
    shared_out: Decimal
    shared_in: Decimal
    net_cost: Decimal
    staff_count: int = 0
    has_reciprocal_sharing: bool = False


@dataclass(frozen=True)
class PortfolioTotals:
    original_cost: Decimal = ZERO
    shared_out: Decimal = ZERO
    shared_in: Decimal = ZERO
    net_cost: Decimal = ZERO


@dataclass(frozen=True)
class PortfolioResult:
    """
    Portfolio figures for one period.

    Guarantees:
        - ``is_closed`` implies ``conservation_gap == 0``.
    """

    period: Period
    lines: tuple[PortfolioLine, ...]
    totals: PortfolioTotals
    excluded_counterparts: tuple[UUID, ...] = ()
    reciprocal_pairs: tuple[tuple[UUID, UUID], ...] = ()
    over_allocated_sources: tuple[UUID, ...] = ()

    @property
    def conservation_gap(self) -> Decimal:
        return self.totals.shared_out - self.totals.shared_in

    @property
    def is_closed(self) -> bool:
        """Every project on the far end of an included edge is included."""
        return not self.excluded_counterparts

    @property
    def warnings(self) -> tuple[str, ...]:
        messages = [
            f"Reciprocal cost sharing between {a} and {b}"
            for a, b in self.reciprocal_pairs
        ]
        messages.extend(
            f"Project {source} shares out more than 100%"
            for source in self.over_allocated_sources
        )
        if not self.is_closed:
            messages.append(
                f"{len(self.excluded_counterparts)} sharing counterpart(s) outside "
                f"the report; shared totals differ by {self.conservation_gap}"
            )
        return tuple(messages)

    def line_for(self, project_id: UUID) -> PortfolioLine | None:
        for line in self.lines:
            if line.project_id == project_id:
                return line
        return None


def required_cost_ids(project_ids: Sequence[UUID], graph: SharingGraph) -> frozenset[UUID]:
    """Projects whose original cost is needed to report on ``project_ids``."""
    needed = set(project_ids)
    for project_id in project_ids:
        needed.update(e.source_project_id for e in graph.incoming(project_id))
    return frozenset(needed)


class PortfolioAggregator:
    """
    Aggregate per-project sharing results into a portfolio report.

    Contract:
        Pure.  Project order in the result follows ``project_ids``.
    """

    def __init__(self, resolver: CostSharingResolver | None = None):
        self._resolver = resolver or CostSharingResolver()

    def compute(
        self,
        period: Period,
        project_ids: Sequence[UUID],
        original_costs: Mapping[UUID, Decimal],
        graph: SharingGraph,
        project_names: Mapping[UUID, str] | None = None,
        staff_counts: Mapping[UUID, int] | None = None,
        decimal_places: int = MONEY_DECIMAL_PLACES,
    ) -> PortfolioResult:
        """Resolve every included project, then aggregate."""
        results = []
        for project_id in project_ids:
            if project_id not in original_costs:
                raise MissingOriginalCostError(str(project_id), f"portfolio {period}")
            results.append(
                self._resolver.resolve(
                    project_id,
                    period,
                    original_costs[project_id],
                    graph,
                    original_costs,
                    decimal_places=decimal_places,
                )
            )
        return self.aggregate(period, results, graph, project_names, staff_counts)

    @traced_engine("portfolio", "1.0", fingerprint_fields=("period", "results"))
    def aggregate(
        self,
        period: Period,
        results: Sequence[CostSharingResult],
        graph: SharingGraph,
        project_names: Mapping[UUID, str] | None = None,
        staff_counts: Mapping[UUID, int] | None = None,
    ) -> PortfolioResult:
        """
        Build lines and grand totals from per-project results.

        Raises:
            InconsistentError: If the portfolio is closed but shared-out
                and shared-in totals differ.
        """
        names = project_names or {}
        counts = staff_counts or {}
        included = {r.project_id for r in results}

        lines = tuple(
            PortfolioLine(
                project_id=r.project_id,
                project_name=names.get(r.project_id, str(r.project_id)),
                original_cost=r.original_cost,
                shared_out=r.shared_out,
                shared_in=r.shared_in,
                net_cost=r.net_cost,
                staff_count=counts.get(r.project_id, 0),
                has_reciprocal_sharing=r.has_reciprocal_sharing,
            )
            for r in results
        )
        totals = PortfolioTotals(
            original_cost=sum((line.original_cost for line in lines), ZERO),
            shared_out=sum((line.shared_out for line in lines), ZERO),
            shared_in=sum((line.shared_in for line in lines), ZERO),
            net_cost=sum((line.net_cost for line in lines), ZERO),
        )

        excluded: set[UUID] = set()
        for project_id in included:
            excluded.update(graph.counterparts(project_id) - included)

        result = PortfolioResult(
            period=period,
            lines=lines,
            totals=totals,
            excluded_counterparts=tuple(sorted(excluded, key=str)),
            reciprocal_pairs=tuple(
                pair for pair in graph.reciprocal_pairs() if set(pair) <= included
            ),
            over_allocated_sources=tuple(
                source for source in graph.over_allocated_sources() if source in included
            ),
        )

        if result.is_closed and result.conservation_gap != ZERO:
            raise InconsistentError(
                f"Shared cost not conserved for {period}: "
                f"out={totals.shared_out} in={totals.shared_in}"
            )

        logger.info("portfolio_computed", extra={
            "period": str(period),
            "project_count": len(lines),
            "original_cost_total": totals.original_cost,
            "net_cost_total": totals.net_cost,
            "conservation_gap": result.conservation_gap,
            "is_closed": result.is_closed,
        })
        for warning in result.warnings:
            logger.warning("portfolio_warning", extra={
                "period": str(period),
                "detail": warning,
            })
        return result
