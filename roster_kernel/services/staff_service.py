"""
Service layer for staff.

Staff leave a project by being deactivated.  Hard delete is only allowed
while no roster entry references the staff member; otherwise
StaffReferencedError tells the caller to deactivate instead.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, select, update

from roster_kernel.domain.dtos import StaffInfo
from roster_kernel.domain.shift_codes import ShiftCode, parse_shift_code
from roster_kernel.domain.values import validate_daily_wage
from roster_kernel.exceptions import (
    ProjectNotFoundError,
    StaffNotFoundError,
    StaffReferencedError,
)
from roster_kernel.logging_config import get_logger
from roster_kernel.models.attendance import STALE_FINGERPRINT, MonthlyAttendanceModel
from roster_kernel.models.project import ProjectModel
from roster_kernel.models.roster import RosterEntryModel
from roster_kernel.models.staff import StaffModel, StaffType
from roster_kernel.services.base import BaseService

logger = get_logger("services.staff")


class StaffService(BaseService[StaffModel]):
    """Service for managing staff members."""

    def _get_by_id(self, staff_id: UUID) -> StaffModel:
        staff = self.session.get(StaffModel, staff_id)
        if staff is None:
            raise StaffNotFoundError(str(staff_id))
        return staff

    def create_staff(
        self,
        project_id: UUID,
        name: str,
        daily_wage: Decimal | int | str,
        actor_id: UUID,
        position: str | None = None,
        staff_type: str = StaffType.REGULAR,
        default_shift: ShiftCode | str | None = None,
    ) -> StaffInfo:
        """
        Create a staff member for a project.

        Raises:
            ProjectNotFoundError: project does not exist.
            InvalidWageError: wage is not a positive decimal.
            InvalidShiftCodeError: default shift outside the vocabulary.
        """
        wage = validate_daily_wage(daily_wage)
        shift = parse_shift_code(default_shift) if default_shift is not None else None
        if self.session.get(ProjectModel, project_id) is None:
            raise ProjectNotFoundError(str(project_id))

        staff = StaffModel(
            project_id=project_id,
            name=name,
            position=position,
            staff_type=staff_type,
            daily_wage=wage,
            default_shift=shift.value if shift else None,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(staff)
        self.session.flush()
        logger.info("staff_created", extra={
            "staff_id": staff.id,
            "project_id": project_id,
            "daily_wage": wage,
        })
        return staff.to_dto()

    def update_staff(
        self,
        staff_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        position: str | None = None,
        staff_type: str | None = None,
        daily_wage: Decimal | int | str | None = None,
        default_shift: ShiftCode | str | None = None,
    ) -> StaffInfo:
        """
        Update staff details.

        Note: a wage change applies to every period recomputed afterwards;
        cached attendance rows of the staff member are marked stale.
        """
        staff = self._get_by_id(staff_id)
        if daily_wage is not None:
            staff.daily_wage = validate_daily_wage(daily_wage)
            self.session.execute(
                update(MonthlyAttendanceModel)
                .where(MonthlyAttendanceModel.staff_id == staff_id)
                .values(entries_fingerprint=STALE_FINGERPRINT)
            )
        if default_shift is not None:
            staff.default_shift = parse_shift_code(default_shift).value
        if name is not None:
            staff.name = name
        if position is not None:
            staff.position = position
        if staff_type is not None:
            staff.staff_type = staff_type
        staff.updated_by_id = actor_id
        self.session.flush()
        return staff.to_dto()

    def set_active(self, staff_id: UUID, is_active: bool, actor_id: UUID) -> StaffInfo:
        staff = self._get_by_id(staff_id)
        staff.is_active = is_active
        staff.updated_by_id = actor_id
        self.session.flush()
        logger.info("staff_status_changed", extra={
            "staff_id": staff_id,
            "is_active": is_active,
        })
        return staff.to_dto()

    def toggle_active(self, staff_id: UUID, actor_id: UUID) -> StaffInfo:
        staff = self._get_by_id(staff_id)
        return self.set_active(staff_id, not staff.is_active, actor_id)

    def deactivate_staff(self, staff_id: UUID, actor_id: UUID) -> StaffInfo:
        return self.set_active(staff_id, False, actor_id)

    def delete_staff(self, staff_id: UUID) -> None:
        """
        Hard-delete a staff member with no roster history.

        Raises:
            StaffNotFoundError: no such staff member.
            StaffReferencedError: roster entries exist; deactivate instead.
        """
        staff = self._get_by_id(staff_id)
        entry_count = self.session.execute(
            select(func.count(RosterEntryModel.id)).where(
                RosterEntryModel.staff_id == staff_id,
            )
        ).scalar_one()
        if entry_count:
            raise StaffReferencedError(str(staff_id), entry_count)

        self.session.execute(
            delete(MonthlyAttendanceModel).where(
                MonthlyAttendanceModel.staff_id == staff_id,
            )
        )
        self.session.delete(staff)
        self.session.flush()
        logger.info("staff_deleted", extra={"staff_id": staff_id})
