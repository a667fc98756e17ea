from __future__ import annotations

from typing import Optional, Protocol

from .model import Event, Project


class ProjectRepository(Protocol):
    def get_project(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def get_event(self, event_id: str) -> Optional[Event]:
        raise NotImplementedError
