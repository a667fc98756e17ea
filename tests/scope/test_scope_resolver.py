from __future__ import annotations

from typing import Optional

from src.keshav.keshav.core.enums import Role
from src.keshav.keshav.scope.model import GlobalScope, OpenScope, RegionScope, UnitScope, Unrecognized
from src.keshav.keshav.scope.resolver import ScopeResolver
from src.keshav.keshav.users.model import UserProfile


class InMemoryAssignments:
    def __init__(self, nirikshak=None, kshetra_by_mandal=None):
        self.nirikshak = nirikshak or {}
        self.kshetra_by_mandal = kshetra_by_mandal or {}

    def list_nirikshak_mandal_ids(self, user_id: str):
        return list(self.nirikshak.get(user_id, []))

    def get_kshetra_id_for_mandal(self, mandal_id: str) -> Optional[str]:
        return self.kshetra_by_mandal.get(mandal_id)


def profile(role: str, **overrides) -> UserProfile:
    data = dict(user_id="u-1", full_name="Someone", username="someone", password_hash="x", role=role)
    data.update(overrides)
    return UserProfile(**data)


def test_admin_is_global_and_exempt():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile(" Admin ", gender="Yuvak"))

    assert access.role is Role.ADMIN
    assert access.scope == GlobalScope()
    assert access.is_global
    assert access.demographic_exempt
    assert access.can_mark


def test_taker_gets_open_scope_with_demographic():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("taker", gender="Yuvati"))

    assert access.scope == OpenScope()
    assert access.demographic == "Yuvati"
    assert not access.demographic_exempt
    assert access.can_mark


def test_sanchalak_sees_own_mandal_only():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("sanchalak", assigned_mandal_id="m1"))

    assert access.scope == UnitScope(frozenset({"m1"}))
    assert not access.can_mark


def test_sanchalak_without_mandal_sees_nothing():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("sanchalak"))

    assert access.scope == UnitScope(frozenset())


def test_nirikshak_unions_assignments_with_own_mandal():
    assignments = InMemoryAssignments(nirikshak={"u-1": ["m2", "m3"]})

    access = ScopeResolver(assignments).resolve(profile("nirikshak", assigned_mandal_id="m1"))

    assert access.scope == UnitScope(frozenset({"m1", "m2", "m3"}))


def test_nirdeshak_uses_assigned_kshetra():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("nirdeshak", assigned_kshetra_id="k1"))

    assert access.scope == RegionScope("k1")
    assert not access.can_mark


def test_project_admin_falls_back_to_mandal_kshetra():
    assignments = InMemoryAssignments(kshetra_by_mandal={"m1": "k9"})

    access = ScopeResolver(assignments).resolve(profile("project_admin", assigned_mandal_id="m1"))

    assert access.scope == RegionScope("k9")
    assert access.can_mark


def test_region_role_without_kshetra_fails_closed():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("nirdeshak", assigned_mandal_id="m-unknown"))

    assert isinstance(access.scope, Unrecognized)


def test_unknown_role_fails_closed():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("superuser"))

    assert access.role is None
    assert access.scope == Unrecognized("superuser")
    assert not access.can_mark


def test_sanchalak_falls_back_to_home_mandal():
    access = ScopeResolver(InMemoryAssignments()).resolve(profile("sanchalak", mandal_id="m7"))

    assert access.scope == UnitScope(frozenset({"m7"}))


def test_assigned_mandal_wins_over_home_mandal():
    access = ScopeResolver(InMemoryAssignments()).resolve(
        profile("sanchalak", assigned_mandal_id="m1", mandal_id="m7")
    )

    assert access.scope == UnitScope(frozenset({"m1"}))


def test_nirdeshak_falls_back_to_home_kshetra_then_home_mandal():
    resolver = ScopeResolver(InMemoryAssignments(kshetra_by_mandal={"m7": "k7"}))

    assert resolver.resolve(profile("nirdeshak", kshetra_id="k3")).scope == RegionScope("k3")
    assert resolver.resolve(profile("nirdeshak", mandal_id="m7")).scope == RegionScope("k7")
