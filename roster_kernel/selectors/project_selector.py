"""
Read-only queries over projects and cost-sharing edges.

The sharing edges are always handed out as a ``SharingGraph`` or as
``SharingEdge`` tuples so that callers work on a closed adjacency
structure rather than on live ORM relationships.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import or_, select

from roster_kernel.domain.dtos import ProjectInfo
from roster_kernel.domain.period import Period
from roster_kernel.domain.sharing import SharingEdge, SharingGraph
from roster_kernel.exceptions import ProjectNotFoundError
from roster_kernel.models.project import CostSharingModel, ProjectModel
from roster_kernel.selectors.base import BaseSelector


class ProjectSelector(BaseSelector[ProjectModel]):
    """Selector for projects and their sharing edges."""

    def find(self, project_id: UUID) -> ProjectInfo | None:
        project = self.session.get(ProjectModel, project_id)
        return project.to_dto() if project is not None else None

    def get(self, project_id: UUID) -> ProjectInfo:
        """
        Get a project by ID.

        Raises:
            ProjectNotFoundError: If no such project exists.
        """
        project = self.find(project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    def get_many(self, project_ids: Iterable[UUID]) -> dict[UUID, ProjectInfo]:
        """Projects keyed by id; missing ids are simply absent from the result."""
        ids = list(set(project_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(ProjectModel).where(ProjectModel.id.in_(ids))
        ).scalars().all()
        return {row.id: row.to_dto() for row in rows}

    def list_projects(self, include_inactive: bool = False) -> list[ProjectInfo]:
        stmt = select(ProjectModel)
        if not include_inactive:
            stmt = stmt.where(ProjectModel.is_active.is_(True))
        stmt = stmt.order_by(ProjectModel.name, ProjectModel.id)
        return [row.to_dto() for row in self.session.execute(stmt).scalars().all()]

    def list_active_for_period(self, period: Period, today: date) -> list[ProjectInfo]:
        """
        Projects that count as active for ``period``.

        Current and future periods use the live active flag; past periods
        include projects deactivated after the period began.
        """
        stmt = (
            select(ProjectModel)
            .where(
                or_(
                    ProjectModel.is_active.is_(True),
                    ProjectModel.deactivated_on.is_not(None),
                )
            )
            .order_by(ProjectModel.name, ProjectModel.id)
        )
        projects = [row.to_dto() for row in self.session.execute(stmt).scalars().all()]
        return [p for p in projects if p.active_for(period, today)]

    # Sharing edges

    def edges_from(self, source_project_id: UUID) -> tuple[SharingEdge, ...]:
        stmt = (
            select(CostSharingModel)
            .where(CostSharingModel.source_project_id == source_project_id)
            .order_by(CostSharingModel.created_at, CostSharingModel.id)
        )
        return tuple(row.to_edge() for row in self.session.execute(stmt).scalars().all())

    def edges_to(self, destination_project_id: UUID) -> tuple[SharingEdge, ...]:
        stmt = (
            select(CostSharingModel)
            .where(CostSharingModel.destination_project_id == destination_project_id)
            .order_by(CostSharingModel.created_at, CostSharingModel.id)
        )
        return tuple(row.to_edge() for row in self.session.execute(stmt).scalars().all())

    def find_edge(
        self, source_project_id: UUID, destination_project_id: UUID,
    ) -> SharingEdge | None:
        stmt = select(CostSharingModel).where(
            CostSharingModel.source_project_id == source_project_id,
            CostSharingModel.destination_project_id == destination_project_id,
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return row.to_edge() if row is not None else None

    def sharing_graph(self) -> SharingGraph:
        """Every stored edge as one adjacency structure."""
        stmt = select(CostSharingModel).order_by(
            CostSharingModel.created_at, CostSharingModel.id,
        )
        return SharingGraph.from_edges(
            row.to_edge() for row in self.session.execute(stmt).scalars().all()
        )

    def sharing_graph_for(self, project_id: UUID) -> SharingGraph:
        """Edges where ``project_id`` is the source or the destination."""
        stmt = (
            select(CostSharingModel)
            .where(
                or_(
                    CostSharingModel.source_project_id == project_id,
                    CostSharingModel.destination_project_id == project_id,
                )
            )
            .order_by(CostSharingModel.created_at, CostSharingModel.id)
        )
        return SharingGraph.from_edges(
            row.to_edge() for row in self.session.execute(stmt).scalars().all()
        )
