"""Read-only selectors returning frozen DTOs."""

from roster_kernel.selectors.base import BaseSelector
from roster_kernel.selectors.project_selector import ProjectSelector
from roster_kernel.selectors.roster_selector import RosterSelector
from roster_kernel.selectors.staff_selector import StaffSelector

__all__ = [
    "BaseSelector",
    "ProjectSelector",
    "RosterSelector",
    "StaffSelector",
]
