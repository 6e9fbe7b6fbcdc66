"""
Project and CostSharing ORM models.

Projects are soft-deactivated (never hard-deleted) so that historical
reports stay computable; ``deactivated_on`` records the day the project
stopped being active.  Cost-sharing edges are stored one row per ordered
(source, destination) pair.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase


class ProjectModel(TrackedBase):
    """
    ORM model for a project.

    Guarantees:
        - ``is_active`` False implies ``deactivated_on`` is set by the
          service that deactivated it.
        - Theme metadata is presentation-only and never read by the engine.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    theme_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deactivated_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("idx_project_active", "is_active"),
    )

    def to_dto(self):
        from roster_kernel.domain.dtos import ProjectInfo
        return ProjectInfo(
            id=self.id,
            name=self.name,
            is_active=self.is_active,
            deactivated_on=self.deactivated_on,
            location=self.location,
            theme_color=self.theme_color,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} active={self.is_active}>"


class CostSharingModel(TrackedBase):
    """
    ORM model for a directed cost-sharing edge.

    Guarantees:
        - At most one row per (source, destination) (uq_cost_sharing_pair).
        - 0 <= percentage <= 100 (ck_cost_sharing_percentage).
        - source != destination (ck_cost_sharing_not_self).
    """

    __tablename__ = "cost_sharing_edges"

    source_project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id"), nullable=False,
    )
    destination_project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id"), nullable=False,
    )
    percentage: Mapped[Decimal] = mapped_column(Numeric(9, 4), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "source_project_id", "destination_project_id",
            name="uq_cost_sharing_pair",
        ),
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_cost_sharing_percentage",
        ),
        CheckConstraint(
            "source_project_id <> destination_project_id",
            name="ck_cost_sharing_not_self",
        ),
        Index("idx_cost_sharing_source", "source_project_id"),
        Index("idx_cost_sharing_destination", "destination_project_id"),
    )

    def to_edge(self):
        from roster_kernel.domain.sharing import SharingEdge
        return SharingEdge(
            source_project_id=self.source_project_id,
            destination_project_id=self.destination_project_id,
            percentage=Decimal(self.percentage),
        )

    def __repr__(self) -> str:
        return (
            f"<CostSharingModel {self.source_project_id} -> "
            f"{self.destination_project_id} {self.percentage}%>"
        )
