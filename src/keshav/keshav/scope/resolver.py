from __future__ import annotations

import logging

from ..core.constants import DEMOGRAPHIC_EXEMPT_ROLES, MARKING_ROLES
from ..core.enums import Role
from ..users.model import UserProfile
from .model import AccessScope, GlobalScope, OpenScope, RegionScope, Scope, UnitScope, Unrecognized
from .repository import ScopeRepository

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Turns a profile's role string into a closed `Scope` variant.

    Assignment tables are consulted here only; callers match on the result.
    """

    def __init__(self, assignments: ScopeRepository):
        self._assignments = assignments

    def resolve(self, profile: UserProfile) -> AccessScope:
        role = Role.parse(profile.role)
        scope = self._scope_for(role, profile)
        return AccessScope(
            role=role,
            scope=scope,
            demographic=profile.gender or None,
            demographic_exempt=role in DEMOGRAPHIC_EXEMPT_ROLES,
            can_mark=role in MARKING_ROLES,
        )

    def _scope_for(self, role: Role | None, profile: UserProfile) -> Scope:
        if role is Role.ADMIN:
            return GlobalScope()

        if role is Role.TAKER:
            return OpenScope()

        if role is Role.SANCHALAK:
            own = profile.scope_mandal_id
            return UnitScope(frozenset([own]) if own else frozenset())

        if role is Role.NIRIKSHAK:
            unit_ids = set(self._assignments.list_nirikshak_mandal_ids(profile.user_id))
            if profile.scope_mandal_id:
                unit_ids.add(profile.scope_mandal_id)
            return UnitScope(frozenset(unit_ids))

        if role in (Role.NIRDESHAK, Role.PROJECT_ADMIN):
            region_id = profile.scope_kshetra_id
            if not region_id and profile.scope_mandal_id:
                region_id = self._assignments.get_kshetra_id_for_mandal(profile.scope_mandal_id)
            if region_id:
                return RegionScope(region_id)
            logger.warning("No kshetra resolvable for %s (%s)", profile.user_id, profile.role)
            return Unrecognized(profile.role)

        return Unrecognized(profile.role or "")
