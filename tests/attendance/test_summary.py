from __future__ import annotations

from datetime import datetime, timezone

from src.keshav.keshav.attendance.model import AttendanceRecord
from src.keshav.keshav.attendance.summary import AttendanceSummaryService, build_summary
from src.keshav.keshav.members.model import Member, RosterEntry
from src.keshav.keshav.scope.model import AccessScope, GlobalScope, UnitScope, Unrecognized

T0 = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)


def entry(member_id, mandal_id, mandal_name="Unknown"):
    return RosterEntry(Member(member_id=member_id, name=member_id, mandal_id=mandal_id, mandal_name=mandal_name))


ROSTER = [
    entry("1", "m1", "Bapunagar"),
    entry("2", "m1", "Bapunagar"),
    entry("3", "m2", "Amraiwadi"),
    entry("4", "m2", "Amraiwadi"),
    entry("5", "m3", "Chandkheda"),
    entry("6", None),
]


class StaticRoster:
    def list_project_roster(self, project_id):
        return list(ROSTER)


class StaticAttendance:
    def __init__(self, member_ids):
        self.calls = 0
        self.records = [AttendanceRecord(f"r{m}", "e1", m, T0) for m in member_ids]

    def list_for_event(self, event_id):
        self.calls += 1
        return [r for r in self.records if r.event_id == event_id]


def test_build_summary_groups_and_orders_by_present():
    summary = build_summary("e1", ROSTER, {"3", "4", "1", "5"})

    assert [(r.mandal_name, r.registered, r.present, r.percent) for r in summary.rows] == [
        ("Amraiwadi", 2, 2, 100),
        ("Bapunagar", 2, 1, 50),
        ("Chandkheda", 1, 1, 100),
        ("Unknown", 1, 0, 0),
    ]
    assert (summary.registered, summary.present, summary.percent) == (6, 4, 67)


def test_build_summary_ignores_present_ids_outside_roster():
    summary = build_summary("e1", ROSTER[:2], {"1", "99"})

    assert summary.present == 1
    assert summary.rows[0].mandal_id == "m1"


def test_summary_service_respects_scope():
    attendance = StaticAttendance(["1", "3", "5"])
    svc = AttendanceSummaryService(StaticRoster(), attendance)

    access = AccessScope(role=None, scope=UnitScope(frozenset({"m1"})))
    summary = svc.summarize(access, project_id="p1", event_id="e1")

    assert [(r.mandal_id, r.registered, r.present) for r in summary.rows] == [("m1", 2, 1)]
    assert summary.percent == 50


def test_summary_service_global_scope_counts_everything():
    svc = AttendanceSummaryService(StaticRoster(), StaticAttendance(["1", "2", "6"]))

    summary = svc.summarize(AccessScope(role=None, scope=GlobalScope()), project_id="p1", event_id="e1")

    assert (summary.registered, summary.present) == (6, 3)


def test_summary_service_nothing_visible_skips_attendance_fetch():
    attendance = StaticAttendance(["1"])
    svc = AttendanceSummaryService(StaticRoster(), attendance)

    summary = svc.summarize(AccessScope(role=None, scope=Unrecognized("x")), project_id="p1", event_id="e1")

    assert summary.rows == ()
    assert summary.percent == 0
    assert attendance.calls == 0
