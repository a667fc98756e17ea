from __future__ import annotations

from src.keshav.keshav.members.model import Member, RosterEntry
from src.keshav.keshav.scope.model import (
    AccessScope,
    GlobalScope,
    OpenScope,
    RegionScope,
    UnitScope,
    Unrecognized,
)
from src.keshav.keshav.scope.visibility import compute_visible_roster


def entry(member_id, name, surname="", *, gender="Yuvak", mandal="m1", kshetra="k1") -> RosterEntry:
    return RosterEntry(
        Member(member_id=member_id, name=name, surname=surname, gender=gender, mandal_id=mandal, kshetra_id=kshetra)
    )


ROSTER = [
    entry("1", "ravi", "Shah", mandal="m1", kshetra="k1"),
    entry("2", "Amit", "Patel", mandal="m2", kshetra="k1"),
    entry("3", "Bhavna", "Desai", gender="Yuvati", mandal="m1", kshetra="k1"),
    entry("4", "Chetan", "Joshi", mandal="m3", kshetra="k2"),
    entry("5", "Amit", "Bhatt", mandal=None, kshetra=None),
]


def ids(entries):
    return [e.member_id for e in entries]


def test_global_scope_sees_everyone_sorted_case_insensitively():
    access = AccessScope(role=None, scope=GlobalScope(), demographic="Yuvak", demographic_exempt=True)

    assert ids(compute_visible_roster(access, ROSTER)) == ["5", "2", "3", "4", "1"]


def test_global_scope_ignores_demographic_even_without_exemption():
    access = AccessScope(role=None, scope=GlobalScope(), demographic="Yuvak")

    assert len(compute_visible_roster(access, ROSTER)) == len(ROSTER)


def test_open_scope_applies_demographic_gate():
    access = AccessScope(role=None, scope=OpenScope(), demographic="Yuvati")

    assert ids(compute_visible_roster(access, ROSTER)) == ["3"]


def test_open_scope_without_demographic_sees_all():
    access = AccessScope(role=None, scope=OpenScope())

    assert len(compute_visible_roster(access, ROSTER)) == 5


def test_unit_scope_filters_by_mandal_and_gender():
    access = AccessScope(role=None, scope=UnitScope(frozenset({"m1", "m2"})), demographic="Yuvak")

    assert ids(compute_visible_roster(access, ROSTER)) == ["2", "1"]


def test_empty_unit_scope_sees_nothing():
    access = AccessScope(role=None, scope=UnitScope(frozenset()))

    assert compute_visible_roster(access, ROSTER) == []


def test_region_scope_filters_by_kshetra():
    access = AccessScope(role=None, scope=RegionScope("k1"))

    assert ids(compute_visible_roster(access, ROSTER)) == ["2", "3", "1"]


def test_unrecognized_scope_sees_nothing():
    access = AccessScope(role=None, scope=Unrecognized("ghost"))

    assert compute_visible_roster(access, ROSTER) == []
