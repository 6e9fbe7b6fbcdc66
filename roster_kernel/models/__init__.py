"""ORM models for the roster kernel."""

from roster_kernel.models.attendance import MonthlyAttendanceModel
from roster_kernel.models.project import CostSharingModel, ProjectModel
from roster_kernel.models.roster import RosterEntryModel, RosterModel
from roster_kernel.models.staff import StaffModel, StaffType

__all__ = [
    "ProjectModel",
    "CostSharingModel",
    "StaffModel",
    "StaffType",
    "RosterModel",
    "RosterEntryModel",
    "MonthlyAttendanceModel",
]
