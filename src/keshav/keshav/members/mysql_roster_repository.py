from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Member, RosterEntry
from .repository import RosterRepository


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_project_roster(self, project_id: str) -> Sequence[RosterEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    m.id AS member_id, m.name, m.surname, m.internal_code, m.mobile,
                    m.designation, m.gender, m.mandal_id,
                    md.name AS mandal_name, md.kshetra_id,
                    r.seat_number, r.exam_level, r.external_qr
                FROM project_registrations r
                JOIN members m ON m.id = r.member_id
                LEFT JOIN mandals md ON md.id = m.mandal_id
                WHERE r.project_id=%s
                """,
                (project_id,),
            )
            rows = fetchall(cur)
            return [
                RosterEntry(
                    member=Member(
                        member_id=str(r["member_id"]),
                        name=r["name"],
                        surname=r.get("surname") or "",
                        internal_code=r.get("internal_code"),
                        gender=r.get("gender"),
                        mandal_id=r.get("mandal_id"),
                        kshetra_id=r.get("kshetra_id"),
                        mandal_name=r.get("mandal_name") or "Unknown",
                        designation=r.get("designation"),
                        mobile=r.get("mobile"),
                    ),
                    seat_number=r.get("seat_number"),
                    exam_level=r.get("exam_level"),
                    external_qr=r.get("external_qr"),
                )
                for r in rows
            ]
