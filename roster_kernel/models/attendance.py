"""
MonthlyAttendance ORM model -- materialised attendance per (staff, period).

The row is a cache of what the attendance aggregator computes from
roster entries.  ``entries_fingerprint`` is the hash of the entries the
row was derived from; a reader that sees a different fingerprint must
recompute.  The row is never authoritative.

Roster writes mark affected rows stale by overwriting the fingerprint
with ``STALE_FINGERPRINT`` so that the free-text remark survives.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase

STALE_FINGERPRINT = "stale"


class MonthlyAttendanceModel(TrackedBase):
    """ORM model for one materialised attendance row."""

    __tablename__ = "monthly_attendance"

    staff_id: Mapped[UUID] = mapped_column(ForeignKey("staff.id"), nullable=False)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    work_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    absent_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    late_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sick_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    personal_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    vacation_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    off_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    paid_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unpaid_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    expected_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    deduction_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    uncapped_deduction: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    entries_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "staff_id", "project_id", "year", "month",
            name="uq_monthly_attendance_staff_period",
        ),
        Index("idx_monthly_attendance_project_period", "project_id", "year", "month"),
    )

    def to_dto(self):
        from roster_kernel.domain.dtos import MonthlyAttendanceInfo
        return MonthlyAttendanceInfo(
            id=self.id,
            staff_id=self.staff_id,
            project_id=self.project_id,
            year=self.year,
            month=self.month,
            work_days=self.work_days,
            absent_days=self.absent_days,
            late_days=self.late_days,
            sick_leave_days=self.sick_leave_days,
            personal_leave_days=self.personal_leave_days,
            vacation_days=self.vacation_days,
            off_days=self.off_days,
            paid_leave_days=self.paid_leave_days,
            unpaid_leave_days=self.unpaid_leave_days,
            expected_salary=Decimal(self.expected_salary),
            deduction_amount=Decimal(self.deduction_amount),
            uncapped_deduction=Decimal(self.uncapped_deduction),
            net_salary=Decimal(self.net_salary),
            entries_fingerprint=self.entries_fingerprint,
            remark=self.remark,
        )

    def __repr__(self) -> str:
        return (
            f"<MonthlyAttendanceModel staff={self.staff_id} "
            f"{self.year:04d}-{self.month:02d} net={self.net_salary}>"
        )
