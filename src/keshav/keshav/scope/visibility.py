from __future__ import annotations

from typing import Iterable, List

from ..members.model import RosterEntry
from .model import AccessScope, GlobalScope, OpenScope, RegionScope, UnitScope, Unrecognized


def _in_scope(access: AccessScope, entry: RosterEntry) -> bool:
    scope = access.scope
    if isinstance(scope, GlobalScope):
        return True
    if isinstance(scope, Unrecognized):
        return False

    if access.demographic and not access.demographic_exempt and entry.gender != access.demographic:
        return False

    if isinstance(scope, OpenScope):
        return True
    if isinstance(scope, UnitScope):
        return entry.mandal_id is not None and entry.mandal_id in scope.unit_ids
    if isinstance(scope, RegionScope):
        return entry.kshetra_id is not None and entry.kshetra_id == scope.region_id
    return False


def roster_sort_key(entry: RosterEntry) -> tuple[str, str]:
    return ((entry.name or "").casefold(), (entry.surname or "").casefold())


def compute_visible_roster(access: AccessScope, roster: Iterable[RosterEntry]) -> List[RosterEntry]:
    """Filter a roster down to what `access` may see, ordered by name then surname.

    Pure function; unknown scopes yield an empty list.
    """

    return sorted((e for e in roster if _in_scope(access, e)), key=roster_sort_key)
