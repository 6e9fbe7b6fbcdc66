"""
Service layer for projects and cost-sharing edges.

Projects are soft-deactivated, never deleted.  Edge writes validate the
percentage, self-sharing and the ordered-pair uniqueness before touching
the database, apply the over-allocation policy, and log a warning when a
write creates a reciprocal pair.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select

from roster_kernel.db.types import HUNDRED
from roster_kernel.domain.clock import Clock, SystemClock
from roster_kernel.domain.dtos import ProjectInfo
from roster_kernel.domain.sharing import SharingEdge, SharingGraph, parse_sharing_payload
from roster_kernel.exceptions import (
    DuplicateSharingEdgeError,
    ProjectNotFoundError,
    SharingEdgeNotFoundError,
    SharingOverAllocatedError,
)
from roster_kernel.logging_config import get_logger
from roster_kernel.models.project import CostSharingModel, ProjectModel
from roster_kernel.services.base import BaseService

logger = get_logger("services.project")


class ProjectService(BaseService[ProjectModel]):
    """
    Service for managing projects and their sharing edges.

    Contract:
        All public methods return DTOs or edges, never ORM instances.
    Guarantees:
        - ``reject_over_allocation``: an edge write that would make a
          source's outgoing total exceed 100 raises
          SharingOverAllocatedError and writes nothing.
        - Deactivation records ``deactivated_on`` from the injected clock.
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        reject_over_allocation: bool = True,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._reject_over_allocation = reject_over_allocation

    def _get_by_id(self, project_id: UUID) -> ProjectModel:
        project = self.session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    def _find_edge_row(
        self, source_project_id: UUID, destination_project_id: UUID,
    ) -> CostSharingModel | None:
        stmt = select(CostSharingModel).where(
            CostSharingModel.source_project_id == source_project_id,
            CostSharingModel.destination_project_id == destination_project_id,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _graph(self) -> SharingGraph:
        rows = self.session.execute(select(CostSharingModel)).scalars().all()
        return SharingGraph.from_edges(row.to_edge() for row in rows)

    # Projects

    def create_project(
        self,
        name: str,
        actor_id: UUID,
        location: str | None = None,
        theme_color: str | None = None,
    ) -> ProjectInfo:
        project = ProjectModel(
            name=name,
            location=location,
            theme_color=theme_color,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(project)
        self.session.flush()
        logger.info("project_created", extra={"project_id": project.id, "project_name": name})
        return project.to_dto()

    def update_project(
        self,
        project_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        location: str | None = None,
        theme_color: str | None = None,
    ) -> ProjectInfo:
        """Update display fields; theme metadata never affects cost."""
        project = self._get_by_id(project_id)
        if name is not None:
            project.name = name
        if location is not None:
            project.location = location
        if theme_color is not None:
            project.theme_color = theme_color
        project.updated_by_id = actor_id
        self.session.flush()
        return project.to_dto()

    def deactivate_project(self, project_id: UUID, actor_id: UUID) -> ProjectInfo:
        """
        Soft-deactivate a project.

        Historical periods that began before today stay computable; current
        totals that reference this project through an edge fail closed.
        """
        project = self._get_by_id(project_id)
        if project.is_active:
            project.is_active = False
            project.deactivated_on = self._clock.today()
            project.updated_by_id = actor_id
            self.session.flush()
            logger.info("project_deactivated", extra={
                "project_id": project_id,
                "deactivated_on": project.deactivated_on,
            })
        return project.to_dto()

    def reactivate_project(self, project_id: UUID, actor_id: UUID) -> ProjectInfo:
        project = self._get_by_id(project_id)
        if not project.is_active:
            project.is_active = True
            project.deactivated_on = None
            project.updated_by_id = actor_id
            self.session.flush()
            logger.info("project_reactivated", extra={"project_id": project_id})
        return project.to_dto()

    # Sharing edges

    def _check_allocation(self, graph: SharingGraph, source_project_id: UUID) -> None:
        total = graph.outgoing_total(source_project_id)
        if total <= HUNDRED:
            return
        if self._reject_over_allocation:
            raise SharingOverAllocatedError(str(source_project_id), str(total))
        logger.warning("sharing_over_allocated", extra={
            "source_project_id": source_project_id,
            "total_percentage": total,
        })

    def _warn_if_reciprocal(self, graph: SharingGraph, edge: SharingEdge) -> None:
        if graph.has_reciprocal(edge.source_project_id, edge.destination_project_id):
            logger.warning("reciprocal_sharing_detected", extra={
                "source_project_id": edge.source_project_id,
                "destination_project_id": edge.destination_project_id,
            })

    def add_sharing(
        self,
        source_project_id: UUID,
        destination_project_id: UUID,
        percentage: Decimal | int | str,
        actor_id: UUID,
    ) -> SharingEdge:
        """
        Add one edge.

        Raises:
            InvalidPercentageError, SelfSharingError: invalid edge.
            ProjectNotFoundError: either end does not exist.
            DuplicateSharingEdgeError: the ordered pair already has an edge.
            SharingOverAllocatedError: policy rejects the new total.
        """
        edge = SharingEdge(source_project_id, destination_project_id, percentage)
        self._get_by_id(source_project_id)
        self._get_by_id(destination_project_id)

        current = self._graph()
        if current.has_edge(*edge.key):
            raise DuplicateSharingEdgeError(
                str(source_project_id), str(destination_project_id),
            )
        updated = SharingGraph.from_edges(current.edges + (edge,))
        self._check_allocation(updated, source_project_id)

        self.session.add(
            CostSharingModel(
                source_project_id=edge.source_project_id,
                destination_project_id=edge.destination_project_id,
                percentage=edge.percentage,
                created_by_id=actor_id,
            )
        )
        self.session.flush()
        self._warn_if_reciprocal(updated, edge)
        logger.info("sharing_edge_added", extra={
            "source_project_id": source_project_id,
            "destination_project_id": destination_project_id,
            "percentage": edge.percentage,
        })
        return edge

    def update_sharing(
        self,
        source_project_id: UUID,
        destination_project_id: UUID,
        percentage: Decimal | int | str,
        actor_id: UUID,
    ) -> SharingEdge:
        edge = SharingEdge(source_project_id, destination_project_id, percentage)
        row = self._find_edge_row(source_project_id, destination_project_id)
        if row is None:
            raise SharingEdgeNotFoundError(str(source_project_id), str(destination_project_id))

        current = self._graph()
        updated = SharingGraph.from_edges(
            edge if e.key == edge.key else e for e in current.edges
        )
        self._check_allocation(updated, source_project_id)

        row.percentage = edge.percentage
        row.updated_by_id = actor_id
        self.session.flush()
        logger.info("sharing_edge_updated", extra={
            "source_project_id": source_project_id,
            "destination_project_id": destination_project_id,
            "percentage": edge.percentage,
        })
        return edge

    def remove_sharing(self, source_project_id: UUID, destination_project_id: UUID) -> None:
        row = self._find_edge_row(source_project_id, destination_project_id)
        if row is None:
            raise SharingEdgeNotFoundError(str(source_project_id), str(destination_project_id))
        self.session.delete(row)
        self.session.flush()
        logger.info("sharing_edge_removed", extra={
            "source_project_id": source_project_id,
            "destination_project_id": destination_project_id,
        })

    def replace_sharing(
        self,
        source_project_id: UUID,
        payload: Iterable[Mapping[str, object]],
        actor_id: UUID,
    ) -> tuple[SharingEdge, ...]:
        """
        Replace every outgoing edge of a source with a validated payload.

        The payload is the loosely-typed row list sent by the project
        form; it is validated in full before any row is deleted.
        """
        self._get_by_id(source_project_id)
        edges = parse_sharing_payload(source_project_id, payload)
        for edge in edges:
            self._get_by_id(edge.destination_project_id)

        current = self._graph()
        updated = SharingGraph.from_edges(
            tuple(e for e in current.edges if e.source_project_id != source_project_id)
            + edges
        )
        self._check_allocation(updated, source_project_id)

        self.session.execute(
            delete(CostSharingModel).where(
                CostSharingModel.source_project_id == source_project_id,
            )
        )
        for edge in edges:
            self.session.add(
                CostSharingModel(
                    source_project_id=edge.source_project_id,
                    destination_project_id=edge.destination_project_id,
                    percentage=edge.percentage,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()
        for edge in edges:
            self._warn_if_reciprocal(updated, edge)
        logger.info("sharing_edges_replaced", extra={
            "source_project_id": source_project_id,
            "edge_count": len(edges),
        })
        return edges
