from __future__ import annotations

from typing import Protocol, Sequence

from .model import RosterEntry


class RosterRepository(Protocol):
    def list_project_roster(self, project_id: str) -> Sequence[RosterEntry]:
        """All members registered to a project, unfiltered."""

        raise NotImplementedError
