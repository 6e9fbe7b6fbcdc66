"""Read-only queries over staff."""

from uuid import UUID

from sqlalchemy import func, select

from roster_kernel.domain.dtos import StaffInfo
from roster_kernel.exceptions import StaffNotFoundError
from roster_kernel.models.roster import RosterEntryModel
from roster_kernel.models.staff import StaffModel
from roster_kernel.selectors.base import BaseSelector


class StaffSelector(BaseSelector[StaffModel]):
    """Selector for staff members."""

    def find(self, staff_id: UUID) -> StaffInfo | None:
        staff = self.session.get(StaffModel, staff_id)
        return staff.to_dto() if staff is not None else None

    def get(self, staff_id: UUID) -> StaffInfo:
        """
        Get a staff member by ID.

        Raises:
            StaffNotFoundError: If no such staff member exists.
        """
        staff = self.find(staff_id)
        if staff is None:
            raise StaffNotFoundError(str(staff_id))
        return staff

    def list_for_project(
        self,
        project_id: UUID,
        include_inactive: bool = False,
    ) -> list[StaffInfo]:
        """Staff of a project ordered by type then name (regular staff first)."""
        stmt = select(StaffModel).where(StaffModel.project_id == project_id)
        if not include_inactive:
            stmt = stmt.where(StaffModel.is_active.is_(True))
        stmt = stmt.order_by(StaffModel.staff_type, StaffModel.name, StaffModel.id)
        return [row.to_dto() for row in self.session.execute(stmt).scalars().all()]

    def count_entries(self, staff_id: UUID) -> int:
        """Number of roster entries recorded for the staff member, any period."""
        stmt = select(func.count(RosterEntryModel.id)).where(
            RosterEntryModel.staff_id == staff_id,
        )
        return self.session.execute(stmt).scalar_one()
