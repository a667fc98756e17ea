from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import parse_timestamp
from ..core.constants import DEFAULT_CHANGE_FEED_BATCH, DEFAULT_CHANGE_FEED_POLL_SECONDS
from ..core.enums import ChangeKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .feed import ChangeFeed, Predicate, Subscription
from .model import ChangeNotification

logger = logging.getLogger(__name__)

# First poll replays this much history so writes racing the initial load are
# not missed. Replays are harmless: inserts are idempotent, unknown deletes dropped.
REPLAY_SECONDS = 5


class MySQLPollingSubscription:
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        table: str,
        predicate: Optional[Predicate],
        *,
        poll_seconds: float,
        batch_size: int,
    ):
        self._conn_factory = conn_factory
        self._table = table
        self._predicate = predicate
        self._poll_seconds = poll_seconds
        self._batch_size = batch_size
        self._cursor: Optional[int] = None
        self._buffer: list[ChangeNotification] = []
        self._closed = False
        self._wakeup = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._wakeup.set()

    def __aiter__(self) -> AsyncIterator[ChangeNotification]:
        return self

    async def __anext__(self) -> ChangeNotification:
        while not self._closed:
            if self._buffer:
                return self._buffer.pop(0)

            try:
                rows = await asyncio.to_thread(self._poll)
            except mysql.connector.Error:
                logger.warning("Change feed poll failed; retrying in %ss", self._poll_seconds, exc_info=True)
                rows = []

            if self._closed:
                break

            for row in rows:
                self._cursor = int(row["change_id"])
                note = self._to_notification(row)
                if self._predicate is None or self._predicate(note):
                    self._buffer.append(note)

            if not self._buffer:
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self._poll_seconds)
                except asyncio.TimeoutError:
                    pass
        raise StopAsyncIteration

    def _poll(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            if self._cursor is None:
                cur.execute(
                    """
                    SELECT change_id, kind, record_id, event_id, member_id, scanned_at
                    FROM attendance_changes
                    WHERE table_name=%s AND created_at >= NOW(6) - INTERVAL %s SECOND
                    ORDER BY change_id
                    LIMIT %s
                    """,
                    (self._table, REPLAY_SECONDS, self._batch_size),
                )
            else:
                cur.execute(
                    """
                    SELECT change_id, kind, record_id, event_id, member_id, scanned_at
                    FROM attendance_changes
                    WHERE table_name=%s AND change_id > %s
                    ORDER BY change_id
                    LIMIT %s
                    """,
                    (self._table, self._cursor, self._batch_size),
                )
            rows = fetchall(cur)
            if self._cursor is None and not rows:
                cur.execute("SELECT COALESCE(MAX(change_id), 0) AS last_id FROM attendance_changes")
                self._cursor = int(fetchall(cur)[0]["last_id"])
            return rows

    def _to_notification(self, row: dict) -> ChangeNotification:
        kind = ChangeKind(row["kind"])
        if kind is ChangeKind.DELETE:
            return ChangeNotification.deleted(str(row["record_id"]), event_id=row.get("event_id"))
        return ChangeNotification(
            kind=kind,
            record_id=str(row["record_id"]),
            table=self._table,
            event_id=row.get("event_id"),
            member_id=row.get("member_id"),
            scanned_at=parse_timestamp(row.get("scanned_at")),
        )


class MySQLChangeFeed(ChangeFeed):
    """Change feed over the `attendance_changes` outbox table (polling)."""

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        poll_seconds: float = DEFAULT_CHANGE_FEED_POLL_SECONDS,
        batch_size: int = DEFAULT_CHANGE_FEED_BATCH,
    ):
        self._conn_factory = conn_factory
        self._poll_seconds = float(poll_seconds)
        self._batch_size = int(batch_size)

    def subscribe(self, table: str, *, predicate: Optional[Predicate] = None) -> Subscription:
        return MySQLPollingSubscription(
            self._conn_factory,
            table,
            predicate,
            poll_seconds=self._poll_seconds,
            batch_size=self._batch_size,
        )
