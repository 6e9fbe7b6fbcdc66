"""
Staff ORM model.

Staff are owned by exactly one project.  A staff member who leaves is
deactivated, never deleted once roster entries exist, so that past
attendance and cost stay reconstructible.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase


class StaffType:
    """Staff type codes shown on the roster screens."""

    REGULAR = "REGULAR"
    SPARE = "SPARE"


class StaffModel(TrackedBase):
    """
    ORM model for a staff member.

    Guarantees:
        - daily_wage > 0 (ck_staff_daily_wage_positive).
        - default_shift, when set, is a vocabulary code (validated by
          StaffService before it is stored).
    """

    __tablename__ = "staff"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    staff_type: Mapped[str] = mapped_column(
        String(20), default=StaffType.REGULAR, nullable=False,
    )
    daily_wage: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    default_shift: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("daily_wage > 0", name="ck_staff_daily_wage_positive"),
        Index("idx_staff_project", "project_id"),
        Index("idx_staff_project_active", "project_id", "is_active"),
    )

    def to_dto(self):
        from roster_kernel.domain.dtos import StaffInfo
        from roster_kernel.domain.shift_codes import ShiftCode

        return StaffInfo(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            daily_wage=Decimal(self.daily_wage),
            is_active=self.is_active,
            position=self.position,
            staff_type=self.staff_type,
            default_shift=ShiftCode(self.default_shift) if self.default_shift else None,
        )

    def __repr__(self) -> str:
        return f"<StaffModel {self.name} wage={self.daily_wage} active={self.is_active}>"
