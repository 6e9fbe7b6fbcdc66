"""
Tests for the monthly attendance cache.

Covers:
- Rows are materialised with the fingerprint of their inputs
- Roster and wage writes mark rows stale, and reads recompute them
- Remarks survive recomputation
- Read-only instances never write and refuse remarks
- A reader that loses the insert race keeps its computed result
"""

import sqlite3
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from roster_engines.attendance import AttendanceAggregator, DeductionPolicy
from roster_kernel.domain.period import Period
from roster_kernel.exceptions import AttendanceCacheReadOnlyError
from roster_kernel.models.attendance import STALE_FINGERPRINT
from roster_services.attendance_cache import (
    AttendanceCacheService,
    attendance_fingerprint,
)
from roster_services.cost_engine import CostEngine

JANUARY = Period(2025, 1)


@pytest.fixture
def cache(session):
    return AttendanceCacheService(session)


@pytest.fixture
def policy():
    return DeductionPolicy()


class TestFingerprint:

    def test_depends_on_wage_and_policy(self, policy):
        base = attendance_fingerprint([], Decimal("450"), policy)
        assert base == attendance_fingerprint([], Decimal("450"), DeductionPolicy())
        assert base != attendance_fingerprint([], Decimal("500"), policy)
        assert base != attendance_fingerprint(
            [], Decimal("450"), DeductionPolicy(late_deduction_amount=Decimal("50")),
        )


class TestMaterialisation:

    def test_row_stored_with_fingerprint(
        self, cache, policy, roster_selector, create_project, create_staff, work_days,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, range(1, 11))

        result = cache.get_or_compute(staff, JANUARY, policy)
        row = cache.find(staff, JANUARY)

        entries = roster_selector.entries_for_staff(staff.project_id, staff.id, JANUARY)
        assert row.entries_fingerprint == attendance_fingerprint(entries, staff.daily_wage, policy)
        assert row.work_days == 10
        assert row.off_days == 21
        assert row.net_salary == result.net_salary == Decimal("4500.00")

    def test_hit_returns_same_result(
        self, cache, policy, create_project, create_staff, record_shifts, captured_logs,
    ):
        staff = create_staff(create_project(), "450")
        record_shifts(staff, JANUARY, {1: "1", 2: "ข", 3: ("1", True)})

        first = cache.get_or_compute(staff, JANUARY, policy)
        second = cache.get_or_compute(staff, JANUARY, policy)

        assert first == second
        assert any(r["message"] == "attendance_cache_hit" for r in captured_logs())

    def test_matches_aggregator(self, cache, policy, roster_selector, create_project, create_staff, record_shifts):
        staff = create_staff(create_project(), "450")
        record_shifts(staff, JANUARY, {1: "1", 2: "พ", 3: "ก", 4: "ดึก"})
        cache.get_or_compute(staff, JANUARY, policy)

        cached = cache.get_or_compute(staff, JANUARY, policy)
        entries = roster_selector.entries_for_staff(staff.project_id, staff.id, JANUARY)
        fresh = AttendanceAggregator().aggregate(
            entries, JANUARY, staff.daily_wage, policy=policy, staff_id=staff.id,
        )
        assert cached == fresh


class TestInvalidation:

    def test_roster_write_marks_stale_then_recomputes(
        self, cache, policy, create_project, create_staff, work_days, record_shifts,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1, 2])
        cache.get_or_compute(staff, JANUARY, policy)

        record_shifts(staff, JANUARY, {3: "1"})
        assert cache.find(staff, JANUARY).entries_fingerprint == STALE_FINGERPRINT

        result = cache.get_or_compute(staff, JANUARY, policy)
        assert result.worked_days == 3
        assert cache.find(staff, JANUARY).entries_fingerprint != STALE_FINGERPRINT
        assert cache.find(staff, JANUARY).work_days == 3

    def test_roster_write_for_other_period_leaves_row(
        self, cache, policy, create_project, create_staff, work_days,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1])
        cache.get_or_compute(staff, JANUARY, policy)

        work_days(staff, Period(2025, 2), [1])

        assert cache.find(staff, JANUARY).entries_fingerprint != STALE_FINGERPRINT

    def test_wage_change_marks_stale(
        self, cache, policy, staff_service, staff_selector, create_project, create_staff, work_days,
        test_actor_id,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1, 2])
        cache.get_or_compute(staff, JANUARY, policy)

        staff_service.update_staff(staff.id, test_actor_id, daily_wage="500")
        assert cache.find(staff, JANUARY).entries_fingerprint == STALE_FINGERPRINT

        updated = staff_selector.get(staff.id)
        assert cache.get_or_compute(updated, JANUARY, policy).net_salary == Decimal("1000.00")


class TestRemarks:

    def test_remark_survives_recompute(
        self, cache, policy, create_project, create_staff, work_days, record_shifts, test_actor_id,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1])

        info = cache.set_remark(staff, JANUARY, "Uniform deduction pending", policy, test_actor_id)
        assert info.remark == "Uniform deduction pending"

        record_shifts(staff, JANUARY, {2: "1"})
        cache.get_or_compute(staff, JANUARY, policy)

        row = cache.find(staff, JANUARY)
        assert row.work_days == 2
        assert row.remark == "Uniform deduction pending"


class TestReadOnly:

    def test_store_false_never_writes(self, session, policy, create_project, create_staff, work_days):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1])
        reader = AttendanceCacheService(session, store=False)

        assert reader.get_or_compute(staff, JANUARY, policy).worked_days == 1
        assert reader.find(staff, JANUARY) is None

    def test_engine_without_storage(self, session, engine_config, deterministic_clock, create_project, create_staff):
        staff = create_staff(create_project(), "450")
        engine = CostEngine(session, engine_config, deterministic_clock, store_attendance=False)

        engine.compute_attendance(staff.id, 2025, 1)

        assert engine.attendance_cache.find(staff, JANUARY) is None

    def test_remark_refused(self, session, policy, create_project, create_staff, work_days, test_actor_id):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1])
        reader = AttendanceCacheService(session, store=False)

        with pytest.raises(AttendanceCacheReadOnlyError) as exc_info:
            reader.set_remark(staff, JANUARY, "note", policy, test_actor_id)

        assert exc_info.value.code == "ATTENDANCE_CACHE_READ_ONLY"
        assert reader.find(staff, JANUARY) is None


def _miss_first_lookup(monkeypatch, service):
    """Make the first row lookup miss, as if another writer had not committed yet."""
    real_find = service._find_row
    calls = []

    def find(staff, period):
        calls.append(period)
        return None if len(calls) == 1 else real_find(staff, period)

    monkeypatch.setattr(service, "_find_row", find)


class TestStoreConflicts:

    def test_lost_insert_race_keeps_result(
        self, session, policy, monkeypatch, create_project, create_staff, work_days, captured_logs,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, range(1, 6))
        winner = AttendanceCacheService(session).get_or_compute(staff, JANUARY, policy)

        loser = AttendanceCacheService(session)
        _miss_first_lookup(monkeypatch, loser)
        result = loser.get_or_compute(staff, JANUARY, policy)

        assert result == winner
        assert loser.find(staff, JANUARY).work_days == 5
        assert any(r["message"] == "attendance_cache_write_lost" for r in captured_logs())

    def test_locked_database_skips_store(
        self, cache, policy, monkeypatch, create_project, create_staff, work_days, captured_logs,
    ):
        staff = create_staff(create_project(), "450")
        work_days(staff, JANUARY, [1, 2])

        def locked(*args, **kwargs):
            raise OperationalError(
                "INSERT INTO monthly_attendance", {}, sqlite3.OperationalError("database is locked"),
            )

        monkeypatch.setattr(cache, "_write", locked)
        result = cache.get_or_compute(staff, JANUARY, policy)

        assert result.worked_days == 2
        assert cache.find(staff, JANUARY) is None
        skipped = [r for r in captured_logs() if r["message"] == "attendance_cache_write_skipped"]
        assert skipped and skipped[0]["error"] == "database is locked"
