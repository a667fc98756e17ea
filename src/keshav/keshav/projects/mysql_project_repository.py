from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Event, Project
from .repository import ProjectRepository


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_project(self, project_id: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, type, is_active FROM projects WHERE id=%s", (project_id,))
            r = fetchone(cur)
            if not r:
                return None
            return Project(
                project_id=str(r["id"]),
                name=r["name"],
                type=r.get("type"),
                is_active=bool(r.get("is_active", True)),
            )

    def get_event(self, event_id: str) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, project_id, name, date, is_primary FROM events WHERE id=%s",
                (event_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Event(
                event_id=str(r["id"]),
                project_id=str(r["project_id"]),
                name=r["name"],
                date=r.get("date"),
                is_primary=bool(r.get("is_primary", False)),
            )
