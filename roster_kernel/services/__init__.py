"""Kernel write services (flush only; the caller commits)."""

from roster_kernel.services.base import BaseService
from roster_kernel.services.project_service import ProjectService
from roster_kernel.services.roster_service import (
    DayStats,
    EntryInput,
    RosterCell,
    RosterMatrix,
    RosterMatrixRow,
    RosterService,
)
from roster_kernel.services.staff_service import StaffService

__all__ = [
    "BaseService",
    "DayStats",
    "EntryInput",
    "ProjectService",
    "RosterCell",
    "RosterMatrix",
    "RosterMatrixRow",
    "RosterService",
    "StaffService",
]
