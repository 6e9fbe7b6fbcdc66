"""
Tests for the CostEngine facade against a real database.

Covers:
- Attendance and original cost from stored roster entries
- The reference sharing scenario end to end
- Reciprocal sharing detection
- Portfolio totals (default set, explicit subset)
- Fail-closed counterpart checks against deactivated projects
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from roster_kernel.domain.period import Period
from roster_kernel.exceptions import (
    InactiveProjectReferenceError,
    InvalidPeriodError,
    ProjectNotFoundError,
    StaffNotFoundError,
)

JANUARY = Period(2025, 1)


@pytest.fixture
def scenario(create_project, create_staff, work_days, project_service, test_actor_id):
    """
    P1: one staff at 450/day working 24 days of January (10800).
    P2: one staff at 500/day working one day (500).
    P3: no staff.
    P1 shares 30% to P2 and 20% to P3.
    """
    p1, p2, p3 = create_project("P1"), create_project("P2"), create_project("P3")
    guard = create_staff(p1, "450")
    work_days(guard, JANUARY, range(1, 25))
    cleaner = create_staff(p2, "500")
    work_days(cleaner, JANUARY, [1])
    project_service.add_sharing(p1.id, p2.id, "30", test_actor_id)
    project_service.add_sharing(p1.id, p3.id, "20", test_actor_id)
    return p1, p2, p3, guard


class TestAttendance:

    def test_compute_attendance(self, cost_engine, create_project, create_staff, record_shifts):
        staff = create_staff(create_project(), "450")
        record_shifts(staff, JANUARY, {1: "1", 2: ("2", True), 3: "ข", 4: "ป"})

        result = cost_engine.compute_attendance(staff.id, 2025, 1)

        assert result.worked_days == 2
        assert result.absent_days == 1
        assert result.sick_leave_days == 1
        assert result.off_days == 27
        assert result.expected_salary == Decimal("900.00")
        assert result.deduction_amount == Decimal("450.00")
        assert result.net_salary == Decimal("450.00")

    def test_unknown_staff(self, cost_engine):
        with pytest.raises(StaffNotFoundError):
            cost_engine.compute_attendance(uuid4(), 2025, 1)

    def test_invalid_period(self, cost_engine, create_project, create_staff):
        staff = create_staff(create_project())
        with pytest.raises(InvalidPeriodError):
            cost_engine.compute_attendance(staff.id, 2025, 13)


class TestProjectCost:

    def test_reference_original_cost(self, cost_engine, scenario):
        p1, p2, p3, _ = scenario
        assert cost_engine.compute_project_cost(p1.id, 2025, 1) == Decimal("10800")
        assert cost_engine.compute_project_cost(p2.id, 2025, 1) == Decimal("500")
        assert cost_engine.compute_project_cost(p3.id, 2025, 1) == Decimal("0")

    def test_period_without_roster_costs_nothing(self, cost_engine, scenario):
        p1, _, _, _ = scenario
        assert cost_engine.compute_project_cost(p1.id, 2025, 2) == Decimal("0")

    def test_inactive_staff_still_counted(self, cost_engine, staff_service, scenario, test_actor_id):
        p1, _, _, guard = scenario
        staff_service.deactivate_staff(guard.id, test_actor_id)
        assert cost_engine.compute_project_cost(p1.id, 2025, 1) == Decimal("10800")

    def test_unknown_project(self, cost_engine):
        with pytest.raises(ProjectNotFoundError):
            cost_engine.compute_project_cost(uuid4(), 2025, 1)


class TestCostSharing:

    def test_source(self, cost_engine, scenario):
        p1, _, _, _ = scenario
        result = cost_engine.compute_cost_sharing(p1.id, 2025, 1)

        assert result.shared_out == Decimal("5400")
        assert result.shared_in == Decimal("0")
        assert result.net_cost == Decimal("5400")

    def test_destination(self, cost_engine, scenario):
        _, p2, p3, _ = scenario

        p2_result = cost_engine.compute_cost_sharing(p2.id, 2025, 1)
        assert p2_result.shared_in == Decimal("3240")
        assert p2_result.net_cost == Decimal("3740")

        p3_result = cost_engine.compute_cost_sharing(p3.id, 2025, 1)
        assert p3_result.net_cost == Decimal("2160")

    def test_explicit_original_cost(self, cost_engine, scenario):
        p1, _, _, _ = scenario
        result = cost_engine.compute_cost_sharing(p1.id, 2025, 1, original_cost=Decimal("1000"))
        assert result.shared_out == Decimal("500")
        assert result.net_cost == Decimal("500")

    def test_roster_change_is_reflected(self, cost_engine, scenario, record_shifts):
        _, p2, _, guard = scenario
        assert cost_engine.compute_cost_sharing(p2.id, 2025, 1).shared_in == Decimal("3240")

        # Day 24 becomes an absence: 23 worked days, one absent day deducted
        record_shifts(guard, JANUARY, {24: "ข"})

        # Source cost 10350 - 450 = 9900; 30% of it
        assert cost_engine.compute_cost_sharing(p2.id, 2025, 1).shared_in == Decimal("2970")


class TestReciprocalSharing:

    def test_symmetric(self, cost_engine, create_project, project_service, test_actor_id):
        a, b, c = create_project(), create_project(), create_project()
        project_service.add_sharing(a.id, b.id, "30", test_actor_id)
        assert not cost_engine.has_reciprocal_sharing(a.id, b.id)

        project_service.add_sharing(b.id, a.id, "20", test_actor_id)
        assert cost_engine.has_reciprocal_sharing(a.id, b.id)
        assert cost_engine.has_reciprocal_sharing(b.id, a.id)
        assert not cost_engine.has_reciprocal_sharing(a.id, c.id)


class TestDeactivatedCounterparts:

    def test_current_period_fails_closed(self, cost_engine, project_service, scenario, test_actor_id):
        p1, p2, p3, _ = scenario
        project_service.deactivate_project(p3.id, test_actor_id)

        with pytest.raises(InactiveProjectReferenceError):
            cost_engine.compute_cost_sharing(p1.id, 2025, 6)
        # P2 has no edge to P3
        assert cost_engine.compute_cost_sharing(p2.id, 2025, 6).net_cost == Decimal("0")

    def test_past_period_still_computable(self, cost_engine, project_service, scenario, test_actor_id):
        p1, _, p3, _ = scenario
        project_service.deactivate_project(p3.id, test_actor_id)

        assert cost_engine.compute_cost_sharing(p1.id, 2025, 1).net_cost == Decimal("5400")

    def test_reactivation_restores_current_period(self, cost_engine, project_service, scenario, test_actor_id):
        p1, _, p3, _ = scenario
        project_service.deactivate_project(p3.id, test_actor_id)
        project_service.reactivate_project(p3.id, test_actor_id)

        assert cost_engine.compute_cost_sharing(p1.id, 2025, 6).shared_out == Decimal("0")


class TestPortfolio:

    def test_default_set_is_closed(self, cost_engine, scenario):
        p1, p2, p3, _ = scenario
        result = cost_engine.compute_portfolio(2025, 1)

        assert result.is_closed
        assert {line.project_id for line in result.lines} >= {p1.id, p2.id, p3.id}
        assert result.line_for(p1.id).net_cost == Decimal("5400")
        assert result.line_for(p2.id).net_cost == Decimal("3740")
        assert result.line_for(p3.id).net_cost == Decimal("2160")
        assert result.line_for(p1.id).staff_count == 1
        assert result.totals.shared_out == result.totals.shared_in
        assert result.totals.net_cost == result.totals.original_cost

    def test_explicit_subset_reports_gap(self, cost_engine, scenario):
        p1, p2, p3, _ = scenario
        result = cost_engine.compute_portfolio(2025, 1, [p1.id, p2.id])

        assert [line.project_id for line in result.lines] == [p1.id, p2.id]
        assert not result.is_closed
        assert result.excluded_counterparts == (p3.id,)
        assert result.conservation_gap == Decimal("2160")
        assert result.totals.original_cost == Decimal("11300")

    def test_unknown_project_in_subset(self, cost_engine, scenario):
        p1, _, _, _ = scenario
        with pytest.raises(ProjectNotFoundError):
            cost_engine.compute_portfolio(2025, 1, [p1.id, uuid4()])

    def test_deactivated_counterpart_fails_current_period(
        self, cost_engine, project_service, scenario, test_actor_id,
    ):
        _, _, p3, _ = scenario
        project_service.deactivate_project(p3.id, test_actor_id)
        with pytest.raises(InactiveProjectReferenceError):
            cost_engine.compute_portfolio(2025, 6)

    def test_deactivated_project_kept_in_past_period(
        self, cost_engine, project_service, scenario, test_actor_id,
    ):
        _, _, p3, _ = scenario
        project_service.deactivate_project(p3.id, test_actor_id)

        result = cost_engine.compute_portfolio(2025, 1)
        assert result.line_for(p3.id).net_cost == Decimal("2160")
        assert result.is_closed
