"""
Read-only queries over rosters and roster entries.

A period with no roster is not an error on the read path: ``find_roster``
returns None and the entry queries return empty tuples.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from roster_kernel.domain.dtos import RosterEntryInfo, RosterInfo
from roster_kernel.domain.period import Period
from roster_kernel.exceptions import RosterNotFoundError
from roster_kernel.models.roster import RosterEntryModel, RosterModel
from roster_kernel.selectors.base import BaseSelector


class RosterSelector(BaseSelector[RosterModel]):
    """Selector for rosters and their entries."""

    def find_roster(self, project_id: UUID, period: Period) -> RosterInfo | None:
        stmt = select(RosterModel).where(
            RosterModel.project_id == project_id,
            RosterModel.year == period.year,
            RosterModel.month == period.month,
        )
        roster = self.session.execute(stmt).scalar_one_or_none()
        return roster.to_dto() if roster is not None else None

    def get_roster(self, roster_id: UUID) -> RosterInfo:
        roster = self.session.get(RosterModel, roster_id)
        if roster is None:
            raise RosterNotFoundError(str(roster_id))
        return roster.to_dto()

    def entries_for_roster(self, roster_id: UUID) -> tuple[RosterEntryInfo, ...]:
        stmt = (
            select(RosterEntryModel)
            .where(RosterEntryModel.roster_id == roster_id)
            .order_by(RosterEntryModel.day, RosterEntryModel.staff_id)
        )
        return tuple(row.to_dto() for row in self.session.execute(stmt).scalars().all())

    def entries_for_staff(
        self, project_id: UUID, staff_id: UUID, period: Period,
    ) -> tuple[RosterEntryInfo, ...]:
        """Entries of one staff member in the project's roster for ``period``, by day."""
        stmt = (
            select(RosterEntryModel)
            .join(RosterModel, RosterEntryModel.roster_id == RosterModel.id)
            .where(
                RosterModel.project_id == project_id,
                RosterModel.year == period.year,
                RosterModel.month == period.month,
                RosterEntryModel.staff_id == staff_id,
            )
            .order_by(RosterEntryModel.day)
        )
        return tuple(row.to_dto() for row in self.session.execute(stmt).scalars().all())

    def entries_for_day(self, roster_id: UUID, day: int) -> tuple[RosterEntryInfo, ...]:
        stmt = (
            select(RosterEntryModel)
            .where(
                RosterEntryModel.roster_id == roster_id,
                RosterEntryModel.day == day,
            )
            .order_by(RosterEntryModel.staff_id)
        )
        return tuple(row.to_dto() for row in self.session.execute(stmt).scalars().all())

    def find_entry(
        self, roster_id: UUID, staff_id: UUID, day: int,
    ) -> RosterEntryInfo | None:
        """The entry at one (roster, staff, day) cell, if recorded."""
        stmt = select(RosterEntryModel).where(
            RosterEntryModel.roster_id == roster_id,
            RosterEntryModel.staff_id == staff_id,
            RosterEntryModel.day == day,
        )
        entry = self.session.execute(stmt).scalar_one_or_none()
        return entry.to_dto() if entry is not None else None
