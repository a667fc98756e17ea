from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import UserProfile
from .repository import UserProfileRepository

_COLUMNS = """
    id, full_name, username, password_hash, role, gender,
    assigned_mandal_id, assigned_kshetra_id, is_active, mandal_id, kshetra_id
"""


def _to_profile(row: dict) -> UserProfile:
    return UserProfile(
        user_id=str(row["id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=row.get("role") or "",
        gender=row.get("gender"),
        assigned_mandal_id=row.get("assigned_mandal_id"),
        assigned_kshetra_id=row.get("assigned_kshetra_id"),
        is_active=bool(row.get("is_active", True)),
        mandal_id=row.get("mandal_id"),
        kshetra_id=row.get("kshetra_id"),
    )


class MySQLUserProfileRepository(UserProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM user_profiles WHERE id=%s", (user_id,))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def get_by_username(self, username: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM user_profiles WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_profile(row) if row else None
