"""
roster_services.attendance_cache -- MonthlyAttendance materialisation.

Responsibility:
    Memoise attendance results per (staff, project, period) in the
    ``monthly_attendance`` table.  Each stored row carries the SHA-256
    fingerprint of the inputs it was derived from (the staff member's
    roster entries, daily wage and deduction policy).  A read recomputes
    the fingerprint from current roster entries; on mismatch the row is
    recomputed and overwritten.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

Invariants enforced:
    - The cache is never authoritative: a stored row is only returned when
      its fingerprint equals the fingerprint of the current entries.
    - Roster writes in ``RosterService`` mark affected rows stale, so a
      concurrent reader that skips the fingerprint check still cannot
      serve a pre-write row as fresh.
    - ``store=False`` turns the service into a pure reader (portfolio
      worker threads never write).

Failure modes:
    - A lost insert race or a database lock while storing is logged and
      the computed result is returned; the row is left to the other writer.
    - ``set_remark`` on a ``store=False`` instance raises
      AttendanceCacheReadOnlyError.
    - Errors from the attendance aggregator propagate; nothing is stored
      when aggregation fails.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from roster_engines.attendance import AttendanceAggregator, AttendanceResult, DeductionPolicy
from roster_kernel.domain.dtos import MonthlyAttendanceInfo, RosterEntryInfo, StaffInfo
from roster_kernel.domain.period import Period
from roster_kernel.exceptions import AttendanceCacheReadOnlyError
from roster_kernel.logging_config import get_logger
from roster_kernel.models.attendance import MonthlyAttendanceModel
from roster_kernel.selectors.roster_selector import RosterSelector
from roster_kernel.utils.hashing import hash_payload

logger = get_logger("services.attendance_cache")


def attendance_fingerprint(
    entries: Sequence[RosterEntryInfo],
    daily_wage,
    policy: DeductionPolicy,
) -> str:
    """Fingerprint of everything an attendance result is derived from."""
    return hash_payload({
        "entries": [
            [entry.day, entry.shift_code.value, entry.is_late]
            for entry in sorted(entries, key=lambda e: e.day)
        ],
        "daily_wage": daily_wage,
        "policy": {
            "absence_deduction_rate": policy.absence_deduction_rate,
            "late_deduction_amount": policy.late_deduction_amount,
            "paid_leave_categories": sorted(c.value for c in policy.paid_leave_categories),
            "decimal_places": policy.decimal_places,
        },
    })


def _result_from_row(row: MonthlyAttendanceModel, staff: StaffInfo, period: Period) -> AttendanceResult:
    info = row.to_dto()
    return AttendanceResult(
        staff_id=staff.id,
        period=period,
        daily_wage=staff.daily_wage,
        worked_days=info.work_days,
        off_days=info.off_days,
        absent_days=info.absent_days,
        sick_leave_days=info.sick_leave_days,
        personal_leave_days=info.personal_leave_days,
        vacation_days=info.vacation_days,
        late_days=info.late_days,
        paid_leave_days=info.paid_leave_days,
        unpaid_leave_days=info.unpaid_leave_days,
        expected_salary=info.expected_salary,
        deduction_amount=info.deduction_amount,
        uncapped_deduction=info.uncapped_deduction,
        net_salary=info.net_salary,
    )


class AttendanceCacheService:
    """
    Read-through cache of attendance results.

    Contract:
        Receives the caller's Session; flushes only.
    Guarantees:
        - ``get_or_compute`` returns exactly what the aggregator would
          return for the current roster entries.
        - Concurrent readers never fail each other: the row is written in
          a savepoint, and a reader that loses the insert race keeps its
          computed result.
    """

    def __init__(
        self,
        session: Session,
        aggregator: AttendanceAggregator | None = None,
        store: bool = True,
    ):
        self.session = session
        self._aggregator = aggregator or AttendanceAggregator()
        self._roster_selector = RosterSelector(session)
        self._store = store

    def _find_row(self, staff: StaffInfo, period: Period) -> MonthlyAttendanceModel | None:
        stmt = select(MonthlyAttendanceModel).where(
            MonthlyAttendanceModel.staff_id == staff.id,
            MonthlyAttendanceModel.project_id == staff.project_id,
            MonthlyAttendanceModel.year == period.year,
            MonthlyAttendanceModel.month == period.month,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _lookup(
        self,
        staff: StaffInfo,
        period: Period,
        policy: DeductionPolicy,
    ) -> tuple[MonthlyAttendanceModel | None, AttendanceResult, str, bool]:
        """(row, result, fingerprint, hit) for the current roster entries."""
        entries = self._roster_selector.entries_for_staff(staff.project_id, staff.id, period)
        fingerprint = attendance_fingerprint(entries, staff.daily_wage, policy)

        row = self._find_row(staff, period)
        if row is not None and row.entries_fingerprint == fingerprint:
            logger.debug("attendance_cache_hit", extra={
                "staff_id": staff.id,
                "period": str(period),
            })
            return row, _result_from_row(row, staff, period), fingerprint, True

        result = self._aggregator.aggregate(
            entries, period, staff.daily_wage, policy=policy, staff_id=staff.id,
        )
        logger.debug("attendance_cache_miss", extra={
            "staff_id": staff.id,
            "period": str(period),
            "stale_row": row is not None,
        })
        return row, result, fingerprint, False

    def get_or_compute(
        self,
        staff: StaffInfo,
        period: Period,
        policy: DeductionPolicy,
        actor_id: UUID | None = None,
    ) -> AttendanceResult:
        """Return the cached result if still valid, else recompute (and store)."""
        row, result, fingerprint, hit = self._lookup(staff, period, policy)
        if not hit and self._store:
            self._store_result(row, staff, period, result, fingerprint, actor_id or staff.id)
        return result

    def _store_result(
        self,
        row: MonthlyAttendanceModel | None,
        staff: StaffInfo,
        period: Period,
        result: AttendanceResult,
        fingerprint: str,
        actor_id: UUID,
    ) -> None:
        """
        Materialise ``result`` inside a savepoint.

        Losing the insert race to another reader (IntegrityError) or
        waiting out a database lock (OperationalError) leaves the row to
        the other writer; the caller's transaction stays usable and the
        computed result is still returned.
        """
        try:
            with self.session.begin_nested():
                self._write(row, staff, period, result, fingerprint, actor_id)
        except IntegrityError:
            if self._find_row(staff, period) is None:
                raise
            logger.info("attendance_cache_write_lost", extra={
                "staff_id": staff.id,
                "period": str(period),
            })
        except OperationalError as exc:
            logger.warning("attendance_cache_write_skipped", extra={
                "staff_id": staff.id,
                "period": str(period),
                "error": str(exc.orig),
            })

    def _write(
        self,
        row: MonthlyAttendanceModel | None,
        staff: StaffInfo,
        period: Period,
        result: AttendanceResult,
        fingerprint: str,
        actor_id: UUID,
    ) -> MonthlyAttendanceModel:
        if row is None:
            row = MonthlyAttendanceModel(
                staff_id=staff.id,
                project_id=staff.project_id,
                year=period.year,
                month=period.month,
                created_by_id=actor_id,
            )
            self.session.add(row)
        else:
            row.updated_by_id = actor_id
        row.work_days = result.worked_days
        row.absent_days = result.absent_days
        row.late_days = result.late_days
        row.sick_leave_days = result.sick_leave_days
        row.personal_leave_days = result.personal_leave_days
        row.vacation_days = result.vacation_days
        row.off_days = result.off_days
        row.paid_leave_days = result.paid_leave_days
        row.unpaid_leave_days = result.unpaid_leave_days
        row.expected_salary = result.expected_salary
        row.deduction_amount = result.deduction_amount
        row.uncapped_deduction = result.uncapped_deduction
        row.net_salary = result.net_salary
        row.entries_fingerprint = fingerprint
        self.session.flush()
        return row

    def find(self, staff: StaffInfo, period: Period) -> MonthlyAttendanceInfo | None:
        """The stored row as-is (may be stale); for inspection and remarks."""
        row = self._find_row(staff, period)
        return row.to_dto() if row is not None else None

    def set_remark(
        self,
        staff: StaffInfo,
        period: Period,
        remark: str | None,
        policy: DeductionPolicy,
        actor_id: UUID,
    ) -> MonthlyAttendanceInfo:
        """
        Attach a free-text remark, materialising the row if needed.

        Unlike a read, this is a user write: conflicts propagate.

        Raises:
            AttendanceCacheReadOnlyError: the service was built with ``store=False``.
        """
        if not self._store:
            raise AttendanceCacheReadOnlyError(str(staff.id), str(period))

        row, result, fingerprint, hit = self._lookup(staff, period, policy)
        if not hit:
            row = self._write(row, staff, period, result, fingerprint, actor_id)
        row.remark = remark
        row.updated_by_id = actor_id
        self.session.flush()
        return row.to_dto()
