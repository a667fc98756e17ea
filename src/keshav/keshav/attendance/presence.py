"""Presence reconciliation for one open event view.

Keeps `member_id -> scanned_at` (the presence map) in sync with the record
store across three sources: the initial bulk load, change-feed notifications,
and local optimistic toggles.

Delete notifications identify rows only by record id, so a reverse index
`record_id -> member_id` is maintained next to the presence map. Entries are
added and removed together. A member counts as present once a backing record
is known or an optimistic mark is outstanding.

Everything runs on one event loop. Blocking store calls are pushed to a worker
thread and bounded by a timeout; all map mutations happen on the loop.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

from ..common.datetime_utils import now_utc
from ..core.constants import ATTENDANCE_TABLE, DEFAULT_FETCH_TIMEOUT_SECONDS, SYNC_FAILED_MESSAGE
from ..core.enums import ChangeKind, SessionState
from ..core.exceptions import FetchError, SessionClosedError, SyncError
from .feed import ChangeFeed, Subscription
from .model import AttendanceRecord, ChangeNotification
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class PresenceEngine:
    def __init__(
        self,
        attendance: AttendanceRepository,
        feed: ChangeFeed,
        event_id: str,
        *,
        marked_by: Optional[str] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._feed = feed
        self._event_id = event_id
        self._marked_by = marked_by
        self._timeout = float(timeout)
        self._clock = clock

        self._state = SessionState.UNINITIALIZED
        self._present: Dict[str, datetime] = {}
        self._record_ids: Dict[str, str] = {}
        # Records hidden by a local unmark whose delete has not resolved yet.
        self._retired: Dict[str, Tuple[str, datetime]] = {}
        self._member_locks: Dict[str, asyncio.Lock] = {}
        # Toggles per member whose write has not resolved yet.
        self._pending_marks: Dict[str, int] = {}
        self._pending_unmarks: Dict[str, int] = {}

        self._subscription: Optional[Subscription] = None
        self._consumer: Optional[asyncio.Task] = None

    # -- read side -------------------------------------------------------

    @property
    def event_id(self) -> str:
        return self._event_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def presence(self) -> Mapping[str, datetime]:
        return MappingProxyType(self._present)

    @property
    def reverse_index(self) -> Mapping[str, str]:
        return MappingProxyType(self._record_ids)

    def is_present(self, member_id: str) -> bool:
        return member_id in self._present

    def scanned_at(self, member_id: str) -> Optional[datetime]:
        return self._present.get(member_id)

    # -- lifecycle -------------------------------------------------------

    async def __aenter__(self) -> "PresenceEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Tear the view down. Late fetch/mutation results are discarded."""

        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        if self._subscription is not None:
            self._subscription.close()
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
        self._member_locks.clear()
        logger.debug("Presence view for event %s closed", self._event_id)

    def _ensure_open(self) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("Attendance view is closed")

    def _ensure_ready(self) -> None:
        self._ensure_open()
        if self._state is not SessionState.READY:
            raise SessionClosedError("Attendance view is not loaded yet")

    async def _call(self, fn, /, *args, **kwargs):
        return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=self._timeout)

    # -- initial load ----------------------------------------------------

    async def load_initial(self) -> Mapping[str, datetime]:
        """Fetch every attendance row for the event and swap in fresh maps.

        On failure the previous maps stay as they were and `FetchError` is
        raised so the caller can offer a retry.
        """

        self._ensure_open()
        previous_state = self._state
        if previous_state is SessionState.UNINITIALIZED:
            self._state = SessionState.LOADING

        try:
            records = await self._call(self._attendance.list_for_event, self._event_id)
        except Exception as exc:
            if self._state is SessionState.LOADING:
                self._state = previous_state
            logger.warning("Attendance load failed for event %s: %r", self._event_id, exc)
            raise FetchError("Failed to load attendance.") from exc

        if self._state is SessionState.CLOSED:
            return self.presence

        present: Dict[str, datetime] = {}
        record_ids: Dict[str, str] = {}
        for record in records:
            present[record.member_id] = record.scanned_at
            record_ids[record.record_id] = record.member_id

        retired = self._carry_pending(present, record_ids)
        self._present = present
        self._record_ids = record_ids
        self._retired = retired
        self._state = SessionState.READY
        logger.info("Loaded %d attendance rows for event %s", len(record_ids), self._event_id)
        return self.presence

    # -- realtime --------------------------------------------------------

    def _accepts(self, note: ChangeNotification) -> bool:
        if note.kind is ChangeKind.INSERT:
            return note.event_id == self._event_id
        # Deletes may carry nothing but the id; let the reverse index decide.
        return note.event_id in (None, self._event_id)

    async def subscribe(self) -> Subscription:
        """Open the change-feed subscription and start folding notifications in.

        Returns the handle; closing it (or the engine) stops delivery.
        """

        self._ensure_open()
        if self._subscription is not None and not self._subscription.closed:
            return self._subscription

        subscription = self._feed.subscribe(ATTENDANCE_TABLE, predicate=self._accepts)
        self._subscription = subscription
        self._consumer = asyncio.get_running_loop().create_task(self._consume(subscription))
        logger.info("Realtime connected for event %s", self._event_id)
        return subscription

    async def _consume(self, subscription: Subscription) -> None:
        async for note in subscription:
            if self._state is SessionState.CLOSED:
                break
            self.apply_notification(note)

    def apply_notification(self, note: ChangeNotification) -> bool:
        """Fold one change notification into the maps. Returns True if anything changed."""

        if self._state is SessionState.CLOSED or note.table != ATTENDANCE_TABLE:
            return False
        if note.kind is ChangeKind.INSERT:
            return self._apply_insert(note)
        return self._apply_delete(note.record_id)

    def _apply_insert(self, note: ChangeNotification) -> bool:
        if note.event_id != self._event_id or not note.member_id:
            return False
        if note.record_id in self._record_ids or note.record_id in self._retired:
            return False

        self._record_ids[note.record_id] = note.member_id
        if note.member_id in self._present:
            return True
        self._present[note.member_id] = note.scanned_at or self._clock()
        logger.debug("Remote mark: member %s at event %s", note.member_id, self._event_id)
        return True

    def _apply_delete(self, record_id: str) -> bool:
        member_id = self._record_ids.pop(record_id, None)
        if member_id is None:
            # Either a delete we already applied locally or a record this view
            # never saw (inserted and deleted before the feed caught up).
            self._retired.pop(record_id, None)
            return False

        if not self._has_record(member_id):
            self._present.pop(member_id, None)
        logger.debug("Remote unmark: member %s at event %s", member_id, self._event_id)
        return True

    def _has_record(self, member_id: str) -> bool:
        return any(m == member_id for m in self._record_ids.values())

    # -- local optimistic toggles ----------------------------------------

    def _lock_for(self, member_id: str) -> asyncio.Lock:
        lock = self._member_locks.get(member_id)
        if lock is None:
            lock = self._member_locks[member_id] = asyncio.Lock()
        return lock

    async def toggle(self, member_id: str) -> bool:
        """Flip a member's presence now and write it through to the store.

        Returns the new local presence. On a failed write the inverse of the
        flip is applied to the *current* state and `SyncError` is raised.
        Writes for the same member are issued one at a time, in toggle order.
        """

        self._ensure_ready()
        marking = member_id not in self._present
        pending = self._pending_marks if marking else self._pending_unmarks
        if marking:
            self._present[member_id] = self._clock()
        else:
            self._retire(member_id)
        pending[member_id] = pending.get(member_id, 0) + 1

        try:
            return await self._write(member_id, marking)
        finally:
            left = pending.pop(member_id) - 1
            if left:
                pending[member_id] = left

    async def _write(self, member_id: str, marking: bool) -> bool:
        async with self._lock_for(member_id):
            if self._state is SessionState.CLOSED:
                return marking
            try:
                if marking:
                    record = await self._call(
                        self._attendance.insert,
                        event_id=self._event_id,
                        member_id=member_id,
                        marked_by=self._marked_by,
                    )
                else:
                    deleted = await self._call(
                        self._attendance.delete_for_member, event_id=self._event_id, member_id=member_id
                    )
            except Exception as exc:
                if self._state is SessionState.CLOSED:
                    return marking
                if marking:
                    self._undo_mark(member_id)
                else:
                    self._undo_unmark(member_id)
                logger.warning(
                    "Attendance sync failed for member %s at event %s: %r", member_id, self._event_id, exc
                )
                raise SyncError(SYNC_FAILED_MESSAGE) from exc

            if self._state is SessionState.CLOSED:
                return marking
            if marking:
                self._learn(record)
            else:
                self._settle_unmark(member_id, deleted)
        return marking

    def _retire(self, member_id: str) -> None:
        scanned_at = self._present.pop(member_id)
        for record_id in [r for r, m in self._record_ids.items() if m == member_id]:
            del self._record_ids[record_id]
            self._retired[record_id] = (member_id, scanned_at)

    def _learn(self, record: AttendanceRecord) -> None:
        member_id = record.member_id
        if record.record_id in self._retired:
            return
        if member_id not in self._present and self._pending_unmarks.get(member_id):
            # Unmarked again while the insert was in flight; the queued delete owns it.
            self._retired[record.record_id] = (member_id, record.scanned_at)
            return

        backed = any(m == member_id for r, m in self._record_ids.items() if r != record.record_id)
        self._record_ids[record.record_id] = member_id
        if not backed:
            # Replace the optimistic local time with the stored one.
            self._present[member_id] = record.scanned_at

    def _carry_pending(self, present: Dict[str, datetime], record_ids: Dict[str, str]) -> Dict[str, Tuple[str, datetime]]:
        """Re-apply toggles whose writes are still queued onto freshly fetched maps.

        Returns the retired map for the refreshed view.
        """

        retired: Dict[str, Tuple[str, datetime]] = {}
        for member_id in set(self._pending_marks) | set(self._pending_unmarks):
            if member_id in self._present:
                present.setdefault(member_id, self._present[member_id])
                continue

            # Locally absent: the fetched rows belong to the queued delete.
            scanned_at = present.pop(member_id, None) or self._clock()
            for record_id in [r for r, m in record_ids.items() if m == member_id]:
                del record_ids[record_id]
                retired[record_id] = (member_id, scanned_at)
            for record_id, entry in self._retired.items():
                if entry[0] == member_id:
                    retired.setdefault(record_id, entry)
        return retired

    def _settle_unmark(self, member_id: str, deleted) -> None:
        # The store deleted every row for the member, including any that
        # arrived while the delete was queued.
        for record_id in deleted or ():
            self._retired.pop(record_id, None)
            self._record_ids.pop(record_id, None)
        for record_id in [r for r, (m, _) in self._retired.items() if m == member_id]:
            del self._retired[record_id]
        if not self._has_record(member_id) and not self._pending_marks.get(member_id):
            self._present.pop(member_id, None)

    def _undo_mark(self, member_id: str) -> None:
        # A remote insert may have landed meanwhile; then the member stays present.
        if not self._has_record(member_id) and self._pending_marks.get(member_id, 0) <= 1:
            self._present.pop(member_id, None)

    def _undo_unmark(self, member_id: str) -> None:
        # Only records still retired come back; ones deleted remotely stay gone.
        restored = [(r, ts) for r, (m, ts) in self._retired.items() if m == member_id]
        for record_id, scanned_at in restored:
            del self._retired[record_id]
            self._record_ids[record_id] = member_id
            self._present.setdefault(member_id, scanned_at)
