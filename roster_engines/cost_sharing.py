"""
Module: roster_engines.cost_sharing
Responsibility:
    Redistribute a project's original cost across its sharing edges:
    shared-out to destinations, shared-in from sources, and the net cost
    that results.  Also validates that every counterpart of an edge is
    active for the period being resolved, and surfaces reciprocal
    (A->B and B->A) edges as warnings.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The caller supplies the
    sharing graph, the original cost of every source project and (for the
    active-counterpart check) the project records and today's date.

Invariants enforced:
    - Single hop: shared-in is computed from the SOURCE's original cost,
      never from the source's own net cost, so chains do not compound.
    - Conservation: a source's outgoing shares are allocated once by
      ``allocate_shares`` and the same amount is used as the source's
      shared-out and the destination's shared-in.
    - Rounding never overdraws a source: shares are rounded on the
      running percentage total, so a source sharing out at most 100%
      never shares out more than its original cost.
    - net_cost = original_cost - shared_out + shared_in, and is never
      negative (NegativeNetCostError otherwise).

Failure modes:
    - InvalidInputError on a negative original cost.
    - MissingOriginalCostError when the cost of an incoming edge's source
      is missing.
    - NegativeNetCostError when shared-out exceeds what the project has.
    - InactiveProjectReferenceError / ProjectNotFoundError from
      ``check_counterparts_active``.

Audit relevance:
    Every resolution emits ``cost_sharing_resolved`` with the three
    figures; reciprocal edges emit ``reciprocal_sharing_detected``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from roster_engines.tracer import traced_engine
from roster_kernel.db.types import HUNDRED, MONEY_DECIMAL_PLACES, ZERO, round_money, to_decimal
from roster_kernel.domain.dtos import ProjectInfo
from roster_kernel.domain.period import Period
from roster_kernel.domain.sharing import SharingEdge, SharingGraph
from roster_kernel.exceptions import (
    InactiveProjectReferenceError,
    InvalidInputError,
    MissingOriginalCostError,
    NegativeNetCostError,
    ProjectNotFoundError,
)
from roster_kernel.logging_config import get_logger

logger = get_logger("engines.cost_sharing")


def edge_share(
    original_cost: Decimal,
    percentage: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> Decimal:
    """Amount moved along one edge: original_cost x percentage / 100, rounded."""
    return round_money(original_cost * percentage / HUNDRED, decimal_places)


def allocate_shares(
    original_cost: Decimal,
    edges: Sequence[SharingEdge],
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> dict[tuple[UUID, UUID], Decimal]:
    """
    Amount moved along each outgoing edge of one source, keyed by edge.

    Each share is the difference of ``edge_share`` over the running
    percentage total, so the shares sum to the rounded total share and
    none is negative.  Edge order decides which edge absorbs a rounding
    unit.
    """
    amounts: dict[tuple[UUID, UUID], Decimal] = {}
    cumulative = ZERO
    allocated = ZERO
    for edge in edges:
        cumulative += edge.percentage
        running = edge_share(original_cost, cumulative, decimal_places)
        amounts[edge.key] = running - allocated
        allocated = running
    return amounts


@dataclass(frozen=True)
class EdgeShare:
    """One edge's contribution, as seen from either end."""

    source_project_id: UUID
    destination_project_id: UUID
    percentage: Decimal
    source_original_cost: Decimal
    amount: Decimal


@dataclass(frozen=True)
class CostSharingResult:
    """
    Shared and net cost of one project for one period.

    Guarantees:
        - ``net_cost == original_cost - shared_out + shared_in``.
        - ``shared_out == sum(e.amount for e in outgoing)``.
        - ``shared_in == sum(e.amount for e in incoming)``.
    """

    project_id: UUID
    period: Period
    original_cost: Decimal
    shared_out: Decimal
    shared_in: Decimal
    net_cost: Decimal
    outgoing: tuple[EdgeShare, ...] = ()
    incoming: tuple[EdgeShare, ...] = ()
    reciprocal_project_ids: tuple[UUID, ...] = ()
    outgoing_percentage_total: Decimal = ZERO

    @property
    def has_reciprocal_sharing(self) -> bool:
        return bool(self.reciprocal_project_ids)

    @property
    def is_over_allocated(self) -> bool:
        return self.outgoing_percentage_total > HUNDRED

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "original_cost": self.original_cost,
            "shared_out": self.shared_out,
            "shared_in": self.shared_in,
            "net_cost": self.net_cost,
        }


def check_counterparts_active(
    project_id: UUID,
    graph: SharingGraph,
    projects: Mapping[UUID, ProjectInfo],
    period: Period,
    today: date,
) -> None:
    """
    Fail closed when an edge touching ``project_id`` references a project
    that is missing or not active for ``period``.

    A period containing or following ``today`` requires counterparts to be
    active now; a past period requires them to have been active when the
    period began.

    Raises:
        ProjectNotFoundError: A counterpart no longer exists.
        InactiveProjectReferenceError: A counterpart is not active for the period.
    """
    for counterpart_id in sorted(graph.counterparts(project_id), key=str):
        counterpart = projects.get(counterpart_id)
        if counterpart is None:
            raise ProjectNotFoundError(str(counterpart_id))
        if not counterpart.active_for(period, today):
            raise InactiveProjectReferenceError(
                str(counterpart_id), str(project_id), str(period),
            )


class CostSharingResolver:
    """
    Resolve shared-out, shared-in and net cost for one project.

    Contract:
        Pure function of (graph, original costs).  No I/O.
    Guarantees:
        - Single-hop resolution (see module invariants).
        - Reciprocal edges are reported, never rejected.
    Non-goals:
        - Does not clamp over-allocated sources; a source sharing out
          more than 100% fails with NegativeNetCostError here.
    """

    @traced_engine(
        "cost_sharing", "1.0",
        fingerprint_fields=("project_id", "period", "original_cost", "graph", "source_costs"),
    )
    def resolve(
        self,
        project_id: UUID,
        period: Period,
        original_cost: Decimal,
        graph: SharingGraph,
        source_costs: Mapping[UUID, Decimal],
        decimal_places: int = MONEY_DECIMAL_PLACES,
    ) -> CostSharingResult:
        """
        Resolve sharing for ``project_id``.

        Args:
            project_id: Project being reported.
            period: Period the costs belong to.
            original_cost: The project's own original cost.
            graph: Sharing edges touching ``project_id`` plus every outgoing
                edge of each of its sources.
            source_costs: Original cost of every source of an incoming edge.
            decimal_places: Rounding of the edge shares.
        """
        try:
            original = to_decimal(original_cost)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from None
        if original < ZERO:
            raise InvalidInputError(f"Original cost cannot be negative: {original}")

        outgoing_amounts = allocate_shares(
            original, graph.outgoing(project_id), decimal_places,
        )
        outgoing = tuple(
            EdgeShare(
                source_project_id=edge.source_project_id,
                destination_project_id=edge.destination_project_id,
                percentage=edge.percentage,
                source_original_cost=original,
                amount=outgoing_amounts[edge.key],
            )
            for edge in graph.outgoing(project_id)
        )

        incoming_shares: list[EdgeShare] = []
        for edge in graph.incoming(project_id):
            if edge.source_project_id not in source_costs:
                raise MissingOriginalCostError(
                    str(edge.source_project_id), str(project_id),
                )
            source_cost = source_costs[edge.source_project_id]
            source_amounts = allocate_shares(
                source_cost, graph.outgoing(edge.source_project_id), decimal_places,
            )
            incoming_shares.append(
                EdgeShare(
                    source_project_id=edge.source_project_id,
                    destination_project_id=edge.destination_project_id,
                    percentage=edge.percentage,
                    source_original_cost=source_cost,
                    amount=source_amounts[edge.key],
                )
            )
        incoming = tuple(incoming_shares)

        shared_out = sum((s.amount for s in outgoing), ZERO)
        shared_in = sum((s.amount for s in incoming), ZERO)
        net_cost = original - shared_out + shared_in

        if net_cost < ZERO:
            raise NegativeNetCostError(str(project_id), str(net_cost))

        reciprocal = graph.reciprocal_counterparts(project_id)
        for counterpart_id in reciprocal:
            logger.warning("reciprocal_sharing_detected", extra={
                "project_id": project_id,
                "counterpart_project_id": counterpart_id,
                "period": str(period),
            })

        logger.info("cost_sharing_resolved", extra={
            "project_id": project_id,
            "period": str(period),
            "original_cost": original,
            "shared_out": shared_out,
            "shared_in": shared_in,
            "net_cost": net_cost,
        })

        return CostSharingResult(
            project_id=project_id,
            period=period,
            original_cost=original,
            shared_out=shared_out,
            shared_in=shared_in,
            net_cost=net_cost,
            outgoing=outgoing,
            incoming=incoming,
            reciprocal_project_ids=reciprocal,
            outgoing_percentage_total=graph.outgoing_total(project_id),
        )
