"""
Roster and RosterEntry ORM models.

A roster is the container for one (project, year, month); it is created
lazily the first time the period is opened.  Each entry is one cell of
the staff x day grid.
"""

from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster_kernel.db.base import TrackedBase


class RosterModel(TrackedBase):
    """
    ORM model for a monthly roster.

    Guarantees:
        - One roster per (project, year, month) (uq_roster_project_period).
        - 1 <= month <= 12 (ck_roster_month).
    """

    __tablename__ = "rosters"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    entries: Mapped[list["RosterEntryModel"]] = relationship(
        back_populates="roster",
        order_by="RosterEntryModel.day",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "year", "month", name="uq_roster_project_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_roster_month"),
    )

    def to_dto(self):
        from roster_kernel.domain.dtos import RosterInfo
        return RosterInfo(
            id=self.id,
            project_id=self.project_id,
            year=self.year,
            month=self.month,
        )

    def __repr__(self) -> str:
        return f"<RosterModel {self.project_id} {self.year:04d}-{self.month:02d}>"


class RosterEntryModel(TrackedBase):
    """
    ORM model for one (roster, staff, day) cell.

    Guarantees:
        - One entry per (roster, staff, day) (uq_roster_entry_cell).
        - 1 <= day <= 31 at the database level; the exact
          days-in-month bound is checked by RosterService.
    """

    __tablename__ = "roster_entries"

    roster_id: Mapped[UUID] = mapped_column(ForeignKey("rosters.id"), nullable=False)
    staff_id: Mapped[UUID] = mapped_column(ForeignKey("staff.id"), nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    shift_code: Mapped[str] = mapped_column(String(10), nullable=False)
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    roster: Mapped[RosterModel] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("roster_id", "staff_id", "day", name="uq_roster_entry_cell"),
        CheckConstraint("day >= 1 AND day <= 31", name="ck_roster_entry_day"),
        Index("idx_roster_entry_staff", "staff_id"),
    )

    def to_dto(self):
        from roster_kernel.domain.dtos import RosterEntryInfo
        from roster_kernel.domain.shift_codes import ShiftCode

        return RosterEntryInfo(
            id=self.id,
            roster_id=self.roster_id,
            staff_id=self.staff_id,
            day=self.day,
            shift_code=ShiftCode(self.shift_code),
            is_late=self.is_late,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<RosterEntryModel staff={self.staff_id} day={self.day} {self.shift_code}>"
