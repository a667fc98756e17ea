from __future__ import annotations

import uuid
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc, parse_timestamp, to_db_timestamp
from ..core.constants import ATTENDANCE_TABLE
from ..core.enums import ChangeKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository


def _record_change(cur, *, kind: ChangeKind, record_id: str, event_id: str, member_id=None, scanned_at=None) -> None:
    cur.execute(
        """
        INSERT INTO attendance_changes(table_name, kind, record_id, event_id, member_id, scanned_at)
        VALUES(%s,%s,%s,%s,%s,%s)
        """,
        (ATTENDANCE_TABLE, kind.value, record_id, event_id, member_id, scanned_at),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Attendance rows plus the `attendance_changes` outbox in one transaction."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, event_id, member_id, scanned_at, marked_by
                FROM attendance
                WHERE event_id=%s
                """,
                (event_id,),
            )
            return [
                AttendanceRecord(
                    record_id=str(r["id"]),
                    event_id=str(r["event_id"]),
                    member_id=str(r["member_id"]),
                    scanned_at=parse_timestamp(r["scanned_at"]),
                    marked_by=r.get("marked_by"),
                )
                for r in fetchall(cur)
            ]

    def insert(self, *, event_id: str, member_id: str, marked_by: Optional[str] = None) -> AttendanceRecord:
        record = AttendanceRecord(
            record_id=str(uuid.uuid4()),
            event_id=event_id,
            member_id=member_id,
            scanned_at=now_utc(),
            marked_by=marked_by,
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(id, event_id, member_id, scanned_at, marked_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (record.record_id, event_id, member_id, to_db_timestamp(record.scanned_at), marked_by),
            )
            _record_change(
                cur,
                kind=ChangeKind.INSERT,
                record_id=record.record_id,
                event_id=event_id,
                member_id=member_id,
                scanned_at=to_db_timestamp(record.scanned_at),
            )
        return record

    def delete_for_member(self, *, event_id: str, member_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id FROM attendance WHERE event_id=%s AND member_id=%s FOR UPDATE",
                (event_id, member_id),
            )
            record_ids = [str(r["id"]) for r in fetchall(cur)]
            if not record_ids:
                return []

            cur.execute(
                f"DELETE FROM attendance WHERE id IN ({in_clause(record_ids)})",
                tuple(record_ids),
            )
            for record_id in record_ids:
                # Deletes only retain the id and event, like a realtime provider would.
                _record_change(cur, kind=ChangeKind.DELETE, record_id=record_id, event_id=event_id)
            return record_ids
