from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    type: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Event:
    """A named occurrence of a project. `is_primary` marks the dashboard event."""

    event_id: str
    project_id: str
    name: str
    date: Optional[date] = None
    is_primary: bool = False
