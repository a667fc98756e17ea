from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Union

from ..core.enums import Role


@dataclass(frozen=True)
class GlobalScope:
    """Sees every row."""


@dataclass(frozen=True)
class UnitScope:
    """Sees rows whose mandal is in `unit_ids`. An empty set sees nothing."""

    unit_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RegionScope:
    """Sees rows whose mandal belongs to the kshetra `region_id`."""

    region_id: str


@dataclass(frozen=True)
class OpenScope:
    """Sees every row, still subject to the demographic gate (desk takers)."""


@dataclass(frozen=True)
class Unrecognized:
    """Fail-closed scope for unknown roles or unresolvable assignments."""

    role: str = ""


Scope = Union[GlobalScope, UnitScope, RegionScope, OpenScope, Unrecognized]


@dataclass(frozen=True)
class AccessScope:
    """Resolved permissions of one caller, computed once per view."""

    role: Optional[Role]
    scope: Scope
    demographic: Optional[str] = None
    demographic_exempt: bool = False
    can_mark: bool = False

    @property
    def is_global(self) -> bool:
        return isinstance(self.scope, GlobalScope)
