"""
Module: roster_kernel.services.roster_service
Responsibility:
    Write path for rosters and roster entries: lazy roster creation,
    single-cell upsert, all-or-nothing batch upsert, entry delete, plus
    the read models the roster screen needs (matrix and day statistics).

Architecture position:
    Kernel > Services.  Flushes only; the caller owns the transaction.

Invariants enforced:
    - Day is within 1..days-in-month of the roster's period.
    - Shift code is in the closed vocabulary; nothing is coerced.
    - The entry's staff belongs to the roster's project.
    - A late flag only appears on a worked-shift entry.
    - One entry per (roster, staff, day): concurrent writes to the same
      cell are last-writer-wins under a row lock; an insert race is
      resolved by retrying as an update.  Different cells never block
      each other.
    - Batch upsert validates every cell before writing and applies all
      cells inside one savepoint.
    - Every entry write marks the MonthlyAttendance row of the affected
      (staff, project, period) stale so the cache cannot silently diverge.

Failure modes:
    - RosterNotFoundError, StaffNotFoundError, ProjectNotFoundError,
      RosterEntryNotFoundError on missing records.
    - InvalidDayError, InvalidShiftCodeError, InvalidInputError on bad
      cell input (before any write).
    - StaffProjectMismatchError when staff and roster projects differ.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from roster_kernel.domain.dtos import RosterEntryInfo, RosterInfo, StaffInfo
from roster_kernel.domain.period import Period
from roster_kernel.domain.shift_codes import (
    DayCategory,
    ShiftCode,
    classify,
    parse_shift_code,
)
from roster_kernel.exceptions import (
    InvalidInputError,
    ProjectNotFoundError,
    RosterEntryNotFoundError,
    RosterNotFoundError,
    StaffNotFoundError,
    StaffProjectMismatchError,
)
from roster_kernel.logging_config import get_logger
from roster_kernel.models.attendance import STALE_FINGERPRINT, MonthlyAttendanceModel
from roster_kernel.models.project import ProjectModel
from roster_kernel.models.roster import RosterEntryModel, RosterModel
from roster_kernel.models.staff import StaffModel
from roster_kernel.services.base import BaseService

logger = get_logger("services.roster")


@dataclass(frozen=True)
class EntryInput:
    """One requested cell write."""

    staff_id: UUID
    day: int
    shift_code: ShiftCode | str
    is_late: bool = False
    notes: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> EntryInput:
        try:
            staff_id = data["staff_id"]
            return cls(
                staff_id=staff_id if isinstance(staff_id, UUID) else UUID(str(staff_id)),
                day=data["day"],
                shift_code=data["shift_code"],
                is_late=bool(data.get("is_late", False)),
                notes=data.get("notes"),
            )
        except (KeyError, ValueError) as exc:
            raise InvalidInputError(f"Malformed roster entry {dict(data)!r}: {exc}") from None


@dataclass(frozen=True)
class _ValidatedCell:
    staff_id: UUID
    day: int
    shift_code: ShiftCode
    is_late: bool
    notes: str | None


@dataclass(frozen=True)
class RosterCell:
    """One cell of the roster grid as displayed."""

    day: int
    shift_code: ShiftCode
    is_recorded: bool
    is_late: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class RosterMatrixRow:
    staff: StaffInfo
    cells: tuple[RosterCell, ...]


@dataclass(frozen=True)
class RosterMatrix:
    """
    Staff x day grid for one roster.

    Unrecorded cells show the staff member's default shift (or OFF) with
    ``is_recorded=False``.  The prefill is display only; cost is always
    computed from recorded entries.
    """

    roster: RosterInfo
    rows: tuple[RosterMatrixRow, ...]

    @property
    def period(self) -> Period:
        return self.roster.period


@dataclass(frozen=True)
class DayStats:
    """Counts for one day of a roster."""

    day: int
    by_category: dict[DayCategory, int] = field(default_factory=dict)
    by_shift_code: dict[ShiftCode, int] = field(default_factory=dict)

    @property
    def recorded(self) -> int:
        return sum(self.by_shift_code.values())

    @property
    def on_duty(self) -> int:
        return self.by_category.get(DayCategory.WORKED, 0)


class RosterService(BaseService[RosterModel]):
    """Service for roster and roster-entry writes."""

    # Lookups

    def _get_roster(self, roster_id: UUID) -> RosterModel:
        roster = self.session.get(RosterModel, roster_id)
        if roster is None:
            raise RosterNotFoundError(str(roster_id))
        return roster

    def _get_staff(self, staff_id: UUID) -> StaffModel:
        staff = self.session.get(StaffModel, staff_id)
        if staff is None:
            raise StaffNotFoundError(str(staff_id))
        return staff

    def _find_roster(self, project_id: UUID, period: Period) -> RosterModel | None:
        stmt = select(RosterModel).where(
            RosterModel.project_id == project_id,
            RosterModel.year == period.year,
            RosterModel.month == period.month,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _locked_entry(self, roster_id: UUID, staff_id: UUID, day: int) -> RosterEntryModel | None:
        stmt = (
            select(RosterEntryModel)
            .where(
                RosterEntryModel.roster_id == roster_id,
                RosterEntryModel.staff_id == staff_id,
                RosterEntryModel.day == day,
            )
            .with_for_update()
        )
        return self.session.execute(stmt).scalar_one_or_none()

    # Rosters

    def get_or_create_roster(self, project_id: UUID, period: Period, actor_id: UUID) -> RosterInfo:
        """
        Return the roster for (project, period), creating it on first use.

        A concurrent creator losing the unique-key race re-reads the
        winner's row.
        """
        if self.session.get(ProjectModel, project_id) is None:
            raise ProjectNotFoundError(str(project_id))

        roster = self._find_roster(project_id, period)
        if roster is not None:
            return roster.to_dto()

        try:
            with self.session.begin_nested():
                roster = RosterModel(
                    project_id=project_id,
                    year=period.year,
                    month=period.month,
                    created_by_id=actor_id,
                )
                self.session.add(roster)
        except IntegrityError:
            roster = self._find_roster(project_id, period)
            if roster is None:
                raise
            return roster.to_dto()

        logger.info("roster_created", extra={
            "roster_id": roster.id,
            "project_id": project_id,
            "period": str(period),
        })
        return roster.to_dto()

    # Entries

    def _validate_cell(self, roster: RosterModel, period: Period, cell: EntryInput) -> _ValidatedCell:
        day = period.validate_day(cell.day)
        code = parse_shift_code(cell.shift_code)
        if cell.is_late and classify(code) is not DayCategory.WORKED:
            raise InvalidInputError(
                f"Late flag requires a working shift, got {code.value!r} on day {day}"
            )
        staff = self._get_staff(cell.staff_id)
        if staff.project_id != roster.project_id:
            raise StaffProjectMismatchError(
                str(staff.id), str(staff.project_id), str(roster.project_id),
            )
        return _ValidatedCell(staff.id, day, code, cell.is_late, cell.notes)

    def _invalidate_attendance(self, roster: RosterModel, staff_ids: set[UUID]) -> None:
        if not staff_ids:
            return
        self.session.execute(
            update(MonthlyAttendanceModel)
            .where(
                MonthlyAttendanceModel.staff_id.in_(staff_ids),
                MonthlyAttendanceModel.project_id == roster.project_id,
                MonthlyAttendanceModel.year == roster.year,
                MonthlyAttendanceModel.month == roster.month,
            )
            .values(entries_fingerprint=STALE_FINGERPRINT)
        )

    def _write_cell(self, roster: RosterModel, cell: _ValidatedCell, actor_id: UUID) -> RosterEntryModel:
        entry = self._locked_entry(roster.id, cell.staff_id, cell.day)
        if entry is None:
            try:
                with self.session.begin_nested():
                    entry = RosterEntryModel(
                        roster_id=roster.id,
                        staff_id=cell.staff_id,
                        day=cell.day,
                        shift_code=cell.shift_code.value,
                        is_late=cell.is_late,
                        notes=cell.notes,
                        created_by_id=actor_id,
                    )
                    self.session.add(entry)
                return entry
            except IntegrityError:
                # Another writer inserted the cell first; last writer wins
                entry = self._locked_entry(roster.id, cell.staff_id, cell.day)
                if entry is None:
                    raise

        entry.shift_code = cell.shift_code.value
        entry.is_late = cell.is_late
        entry.notes = cell.notes
        entry.updated_by_id = actor_id
        self.session.flush()
        return entry

    def upsert_entry(
        self,
        roster_id: UUID,
        staff_id: UUID,
        day: int,
        shift_code: ShiftCode | str,
        actor_id: UUID,
        is_late: bool = False,
        notes: str | None = None,
    ) -> RosterEntryInfo:
        """Create or overwrite one (roster, staff, day) cell."""
        roster = self._get_roster(roster_id)
        period = Period(roster.year, roster.month)
        cell = self._validate_cell(
            roster, period, EntryInput(staff_id, day, shift_code, is_late, notes),
        )

        entry = self._write_cell(roster, cell, actor_id)
        self._invalidate_attendance(roster, {cell.staff_id})
        self.session.flush()

        logger.info("roster_entry_upserted", extra={
            "roster_id": roster_id,
            "staff_id": staff_id,
            "day": cell.day,
            "shift_code": cell.shift_code.value,
        })
        return entry.to_dto()

    def batch_upsert_entries(
        self,
        roster_id: UUID,
        cells: Sequence[EntryInput | Mapping[str, object]],
        actor_id: UUID,
    ) -> tuple[RosterEntryInfo, ...]:
        """
        Apply many cell writes as one unit.

        Every cell is validated before the first write.  The writes run
        inside a savepoint, so a failure part-way leaves no cell changed.

        Raises:
            InvalidInputError: a cell appears twice in the batch, or any
                single-cell validation error.
        """
        roster = self._get_roster(roster_id)
        period = Period(roster.year, roster.month)

        validated: list[_ValidatedCell] = []
        seen: set[tuple[UUID, int]] = set()
        for raw in cells:
            cell = raw if isinstance(raw, EntryInput) else EntryInput.from_mapping(raw)
            checked = self._validate_cell(roster, period, cell)
            key = (checked.staff_id, checked.day)
            if key in seen:
                raise InvalidInputError(
                    f"Staff {checked.staff_id} day {checked.day} appears twice in the batch"
                )
            seen.add(key)
            validated.append(checked)

        with self.session.begin_nested():
            entries = [self._write_cell(roster, cell, actor_id) for cell in validated]
            self._invalidate_attendance(roster, {cell.staff_id for cell in validated})

        logger.info("roster_entries_batch_upserted", extra={
            "roster_id": roster_id,
            "entry_count": len(entries),
        })
        return tuple(entry.to_dto() for entry in entries)

    def delete_entry(self, entry_id: UUID) -> None:
        """Remove one cell; the day reverts to unrecorded (OFF for cost)."""
        entry = self.session.get(RosterEntryModel, entry_id)
        if entry is None:
            raise RosterEntryNotFoundError(str(entry_id))
        roster = self._get_roster(entry.roster_id)
        staff_id = entry.staff_id
        self.session.delete(entry)
        self._invalidate_attendance(roster, {staff_id})
        self.session.flush()
        logger.info("roster_entry_deleted", extra={
            "roster_id": roster.id,
            "staff_id": staff_id,
            "entry_id": entry_id,
        })

    # Read models for the roster screen

    def day_stats(self, roster_id: UUID, day: int) -> DayStats:
        roster = self._get_roster(roster_id)
        Period(roster.year, roster.month).validate_day(day)
        stmt = select(RosterEntryModel.shift_code).where(
            RosterEntryModel.roster_id == roster_id,
            RosterEntryModel.day == day,
        )
        codes = [ShiftCode(code) for code in self.session.execute(stmt).scalars().all()]
        return DayStats(
            day=day,
            by_category=dict(Counter(classify(code) for code in codes)),
            by_shift_code=dict(Counter(codes)),
        )

    def roster_matrix(self, project_id: UUID, period: Period, actor_id: UUID) -> RosterMatrix:
        """
        Build the grid for (project, period), creating the roster if needed.

        Rows cover active staff and any inactive staff with entries in this
        roster, regular staff first.
        """
        roster_info = self.get_or_create_roster(project_id, period, actor_id)
        entries = self.session.execute(
            select(RosterEntryModel).where(RosterEntryModel.roster_id == roster_info.id)
        ).scalars().all()
        by_cell = {(e.staff_id, e.day): e for e in entries}
        staff_with_entries = {e.staff_id for e in entries}

        staff_rows = self.session.execute(
            select(StaffModel)
            .where(StaffModel.project_id == project_id)
            .order_by(StaffModel.staff_type, StaffModel.name, StaffModel.id)
        ).scalars().all()

        rows = []
        for staff in staff_rows:
            if not staff.is_active and staff.id not in staff_with_entries:
                continue
            default = ShiftCode(staff.default_shift) if staff.default_shift else ShiftCode.OFF
            cells = []
            for day in period.days():
                entry = by_cell.get((staff.id, day))
                if entry is None:
                    cells.append(RosterCell(day=day, shift_code=default, is_recorded=False))
                else:
                    cells.append(RosterCell(
                        day=day,
                        shift_code=ShiftCode(entry.shift_code),
                        is_recorded=True,
                        is_late=entry.is_late,
                        notes=entry.notes,
                    ))
            rows.append(RosterMatrixRow(staff=staff.to_dto(), cells=tuple(cells)))

        return RosterMatrix(roster=roster_info, rows=tuple(rows))
