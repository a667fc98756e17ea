from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import ATTENDANCE_TABLE
from ..core.enums import ChangeKind, ScanOutcome


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: member M was marked present at event E."""

    record_id: str
    event_id: str
    member_id: str
    scanned_at: datetime
    marked_by: Optional[str] = None


@dataclass(frozen=True)
class ChangeNotification:
    """One row change delivered by a change feed.

    Inserts carry the full new row. Deletes carry the record id and whatever
    columns the provider retained (often nothing else).
    """

    kind: ChangeKind
    record_id: str
    table: str = ATTENDANCE_TABLE
    event_id: Optional[str] = None
    member_id: Optional[str] = None
    scanned_at: Optional[datetime] = None

    @classmethod
    def inserted(cls, record: AttendanceRecord) -> "ChangeNotification":
        return cls(
            kind=ChangeKind.INSERT,
            record_id=record.record_id,
            event_id=record.event_id,
            member_id=record.member_id,
            scanned_at=record.scanned_at,
        )

    @classmethod
    def deleted(cls, record_id: str, *, event_id: Optional[str] = None) -> "ChangeNotification":
        return cls(kind=ChangeKind.DELETE, record_id=record_id, event_id=event_id)


@dataclass(frozen=True)
class ScanResult:
    success: bool
    message: str
    outcome: ScanOutcome = ScanOutcome.SUCCESS
    member_id: Optional[str] = None


@dataclass(frozen=True)
class MandalSummaryRow:
    mandal_id: Optional[str]
    mandal_name: str
    registered: int
    present: int

    @property
    def percent(self) -> int:
        return round(self.present * 100 / self.registered) if self.registered else 0


@dataclass(frozen=True)
class AttendanceSummary:
    """Read-model for the per-mandal summary view."""

    event_id: str
    rows: tuple[MandalSummaryRow, ...]
    registered: int
    present: int

    @property
    def percent(self) -> int:
        return round(self.present * 100 / self.registered) if self.registered else 0
