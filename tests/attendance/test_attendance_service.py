from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from src.keshav.keshav.attendance.feed import InMemoryChangeFeed
from src.keshav.keshav.attendance.model import AttendanceRecord
from src.keshav.keshav.attendance.service import AttendanceService
from src.keshav.keshav.core.enums import PresenceFilter, ScanOutcome, SessionState
from src.keshav.keshav.core.exceptions import AuthorizationError, FetchError, NotFoundError, ValidationError
from src.keshav.keshav.members.model import Member, RosterEntry
from src.keshav.keshav.projects.model import Event, Project
from src.keshav.keshav.scope.resolver import ScopeResolver
from src.keshav.keshav.users.model import UserProfile

T0 = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)


class InMemoryAttendance:
    def __init__(self, records=()):
        self.records = {r.record_id: r for r in records}
        self.fail_reads = False
        self._id = 0

    def list_for_event(self, event_id: str):
        if self.fail_reads:
            raise ConnectionError("offline")
        return [r for r in self.records.values() if r.event_id == event_id]

    def insert(self, *, event_id: str, member_id: str, marked_by=None) -> AttendanceRecord:
        self._id += 1
        record = AttendanceRecord(f"new-{self._id}", event_id, member_id, T0, marked_by)
        self.records[record.record_id] = record
        return record

    def delete_for_member(self, *, event_id: str, member_id: str):
        gone = [k for k, r in self.records.items() if r.event_id == event_id and r.member_id == member_id]
        for k in gone:
            del self.records[k]
        return gone


class InMemoryRoster:
    def __init__(self, entries):
        self.entries = list(entries)

    def list_project_roster(self, project_id: str):
        return list(self.entries)


class InMemoryProjects:
    def __init__(self):
        self.projects = {"p1": Project("p1", "Shibir"), "p2": Project("p2", "Other")}
        self.events = {"e1": Event("e1", "p1", "Day 1", is_primary=True), "e2": Event("e2", "p2", "Day 1")}

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.projects.get(project_id)

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.events.get(event_id)


class NoAssignments:
    def list_nirikshak_mandal_ids(self, user_id: str):
        return []

    def get_kshetra_id_for_mandal(self, mandal_id: str):
        return None


def entry(member_id, name, *, code=None, qr=None, gender="Yuvak", mandal="m1", mandal_name="Mandal One"):
    member = Member(
        member_id=member_id,
        name=name,
        surname="Shah",
        internal_code=code,
        gender=gender,
        mandal_id=mandal,
        kshetra_id="k1",
        mandal_name=mandal_name,
    )
    return RosterEntry(member, seat_number="A1", external_qr=qr)


ROSTER = [
    entry("a", "Amit", code="K-001", qr="QR-AMIT"),
    entry("b", "Bhavin", code="K-002", mandal="m2", mandal_name="Mandal Two"),
    entry("c", "Chirag", code="K-003"),
    entry("d", "Darshana", code="K-004", gender="Yuvati"),
]


def profile(role="taker", **overrides) -> UserProfile:
    data = dict(user_id="u-1", full_name="Desk", username="desk", password_hash="x", role=role, gender="Yuvak")
    data.update(overrides)
    return UserProfile(**data)


def make_service(records=()):
    attendance = InMemoryAttendance(records)
    svc = AttendanceService(
        attendance,
        InMemoryRoster(ROSTER),
        InMemoryProjects(),
        ScopeResolver(NoAssignments()),
        InMemoryChangeFeed(),
        timeout=1.0,
    )
    return svc, attendance


def open_session(svc, user=None, **kwargs):
    return asyncio.run(svc.open_session(user or profile(), project_id="p1", event_id="e1", **kwargs))


def test_open_session_filters_roster_and_loads_presence():
    svc, _ = make_service([AttendanceRecord("r1", "e1", "a", T0)])

    session = open_session(svc)

    assert [e.member_id for e in session.roster] == ["a", "b", "c"]
    assert session.can_mark
    assert session.present_count == 1
    assert session.engine.state is SessionState.READY


def test_open_session_unknown_or_mismatched_event():
    svc, _ = make_service()

    with pytest.raises(NotFoundError):
        asyncio.run(svc.open_session(profile(), project_id="p1", event_id="missing"))
    with pytest.raises(NotFoundError):
        asyncio.run(svc.open_session(profile(), project_id="p1", event_id="e2"))


def test_open_session_propagates_fetch_error():
    svc, attendance = make_service()
    attendance.fail_reads = True

    with pytest.raises(FetchError):
        open_session(svc)


def test_list_members_filters():
    svc, _ = make_service([AttendanceRecord("r1", "e1", "a", T0)])
    session = open_session(svc)

    assert [e.member_id for e in session.list_members(presence=PresenceFilter.PRESENT)] == ["a"]
    assert [e.member_id for e in session.list_members(presence=PresenceFilter.ABSENT)] == ["b", "c"]
    assert [e.member_id for e in session.list_members(search="k-003")] == ["c"]
    assert [e.member_id for e in session.list_members(search="  BHAV ")] == ["b"]
    assert [e.member_id for e in session.list_members(mandal_id="m2")] == ["b"]


def test_to_ui_reports_presence_and_mandal():
    svc, _ = make_service([AttendanceRecord("r1", "e1", "a", T0)])
    session = open_session(svc)

    row = session.to_ui(session.roster[0])

    assert row.full_name == "Amit Shah"
    assert row.mandal_name == "Mandal One"
    assert row.present is True
    assert row.scanned_at == T0.isoformat()


def test_scan_outcomes():
    svc, attendance = make_service()
    session = open_session(svc)

    async def scenario():
        first = await session.scan("QR-AMIT")
        again = await session.scan("K-001")
        missing = await session.scan("K-404")
        other_gender = await session.scan("K-004")
        return first, again, missing, other_gender

    first, again, missing, other_gender = asyncio.run(scenario())

    assert first.success and first.message == "Amit In!" and first.outcome is ScanOutcome.SUCCESS
    assert not again.success and again.message == "Already In" and again.outcome is ScanOutcome.WARNING
    assert not missing.success and missing.message == "Not in Roster"
    assert other_gender.message == "Not in Roster"
    assert [r.member_id for r in attendance.records.values()] == ["a"]
    assert attendance.records["new-1"].marked_by == "u-1"


def test_scan_rejects_blank_code():
    svc, _ = make_service()
    session = open_session(svc)

    with pytest.raises(ValidationError):
        asyncio.run(session.scan("   "))


def test_read_only_session_cannot_mark():
    svc, attendance = make_service()
    session = open_session(svc, read_only=True)

    assert not session.can_mark
    result = asyncio.run(session.scan("K-001"))
    assert result.message == "Read Only"
    with pytest.raises(AuthorizationError):
        asyncio.run(session.mark("a"))
    assert attendance.records == {}


def test_viewer_role_cannot_mark():
    svc, _ = make_service()
    session = open_session(svc, profile("sanchalak", assigned_mandal_id="m1"))

    assert [e.member_id for e in session.roster] == ["a", "c"]
    with pytest.raises(AuthorizationError):
        asyncio.run(session.mark("a"))


def test_mark_toggles_visible_members_only():
    svc, attendance = make_service()
    session = open_session(svc)

    async def scenario():
        on = await session.mark("b")
        off = await session.mark("b")
        return on, off

    assert asyncio.run(scenario()) == (True, False)
    assert attendance.records == {}
    with pytest.raises(ValidationError):
        asyncio.run(session.mark("d"))


def test_close_session_closes_engine():
    svc, _ = make_service()
    session = open_session(svc)

    session.close()

    assert session.engine.state is SessionState.CLOSED
