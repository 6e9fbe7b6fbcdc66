"""
Tests for StaffService and StaffSelector.

Covers:
- Creation and wage validation
- Updates, activation toggling
- Hard delete guard for staff with roster history
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from roster_kernel.domain.period import Period
from roster_kernel.domain.shift_codes import ShiftCode
from roster_kernel.exceptions import (
    InvalidShiftCodeError,
    InvalidWageError,
    ProjectNotFoundError,
    StaffNotFoundError,
    StaffReferencedError,
)
from roster_kernel.models.staff import StaffType

JANUARY = Period(2025, 1)


class TestCreateStaff:

    def test_create(self, staff_service, create_project, test_actor_id):
        project = create_project()
        staff = staff_service.create_staff(
            project.id, "Somchai", "450", test_actor_id,
            position="Security", default_shift="1",
        )

        assert staff.project_id == project.id
        assert staff.daily_wage == Decimal("450")
        assert staff.staff_type == StaffType.REGULAR
        assert staff.default_shift is ShiftCode.MORNING
        assert staff.is_active

    @pytest.mark.parametrize("wage", ["0", "-10", "abc"])
    def test_invalid_wage(self, staff_service, create_project, test_actor_id, wage):
        project = create_project()
        with pytest.raises(InvalidWageError):
            staff_service.create_staff(project.id, "X", wage, test_actor_id)

    def test_float_wage_rejected(self, staff_service, create_project, test_actor_id):
        project = create_project()
        with pytest.raises(InvalidWageError):
            staff_service.create_staff(project.id, "X", 450.0, test_actor_id)

    def test_invalid_default_shift(self, staff_service, create_project, test_actor_id):
        project = create_project()
        with pytest.raises(InvalidShiftCodeError):
            staff_service.create_staff(project.id, "X", "450", test_actor_id, default_shift="Z")

    def test_unknown_project(self, staff_service, test_actor_id):
        with pytest.raises(ProjectNotFoundError):
            staff_service.create_staff(uuid4(), "X", "450", test_actor_id)


class TestUpdateStaff:

    def test_update_fields(self, staff_service, create_project, create_staff, test_actor_id):
        staff = create_staff(create_project())
        updated = staff_service.update_staff(
            staff.id, test_actor_id, name="Renamed", daily_wage="500",
            staff_type=StaffType.SPARE, default_shift="2",
        )

        assert updated.name == "Renamed"
        assert updated.daily_wage == Decimal("500")
        assert updated.staff_type == StaffType.SPARE
        assert updated.default_shift is ShiftCode.AFTERNOON

    def test_invalid_wage_update(self, staff_service, create_project, create_staff, test_actor_id):
        staff = create_staff(create_project())
        with pytest.raises(InvalidWageError):
            staff_service.update_staff(staff.id, test_actor_id, daily_wage="0")

    def test_unknown_staff(self, staff_service, test_actor_id):
        with pytest.raises(StaffNotFoundError):
            staff_service.update_staff(uuid4(), test_actor_id, name="X")


class TestActivation:

    def test_toggle(self, staff_service, create_project, create_staff, test_actor_id):
        staff = create_staff(create_project())
        assert not staff_service.toggle_active(staff.id, test_actor_id).is_active
        assert staff_service.toggle_active(staff.id, test_actor_id).is_active

    def test_list_excludes_inactive_by_default(
        self, staff_service, staff_selector, create_project, create_staff, test_actor_id,
    ):
        project = create_project()
        active = create_staff(project)
        inactive = create_staff(project)
        staff_service.deactivate_staff(inactive.id, test_actor_id)

        assert [s.id for s in staff_selector.list_for_project(project.id)] == [active.id]
        listed = staff_selector.list_for_project(project.id, include_inactive=True)
        assert {s.id for s in listed} == {active.id, inactive.id}


class TestDeleteStaff:

    def test_delete_without_history(self, staff_service, staff_selector, create_project, create_staff):
        staff = create_staff(create_project())
        staff_service.delete_staff(staff.id)
        assert staff_selector.find(staff.id) is None

    def test_delete_with_entries_refused(
        self, staff_service, staff_selector, create_project, create_staff, record_shifts,
    ):
        staff = create_staff(create_project())
        record_shifts(staff, JANUARY, {1: "1", 2: "1"})

        with pytest.raises(StaffReferencedError) as exc_info:
            staff_service.delete_staff(staff.id)

        assert exc_info.value.entry_count == 2
        assert staff_selector.find(staff.id) is not None
        assert staff_selector.count_entries(staff.id) == 2

    def test_delete_clears_cached_attendance(
        self, staff_service, staff_selector, cost_engine, create_project, create_staff,
    ):
        staff = create_staff(create_project())
        cost_engine.compute_attendance(staff.id, 2025, 1)
        assert cost_engine.attendance_cache.find(staff, JANUARY) is not None

        staff_service.delete_staff(staff.id)

        assert staff_selector.find(staff.id) is None
        assert cost_engine.attendance_cache.find(staff, JANUARY) is None

    def test_unknown_staff(self, staff_service):
        with pytest.raises(StaffNotFoundError):
            staff_service.delete_staff(uuid4())
