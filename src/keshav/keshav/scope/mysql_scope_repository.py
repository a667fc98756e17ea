from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import ScopeRepository


class MySQLScopeRepository(ScopeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_nirikshak_mandal_ids(self, user_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT mandal_id FROM nirikshak_assignments WHERE nirikshak_id=%s",
                (user_id,),
            )
            return [str(r["mandal_id"]) for r in fetchall(cur)]

    def get_kshetra_id_for_mandal(self, mandal_id: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT kshetra_id FROM mandals WHERE id=%s", (mandal_id,))
            row = fetchone(cur)
            if not row or not row.get("kshetra_id"):
                return None
            return str(row["kshetra_id"])
