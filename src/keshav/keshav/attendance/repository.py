from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, *, event_id: str, member_id: str, marked_by: Optional[str] = None) -> AttendanceRecord:
        """Create an attendance row and return it with its server-assigned id."""

        raise NotImplementedError

    def delete_for_member(self, *, event_id: str, member_id: str) -> Sequence[str]:
        """Delete rows matching {event_id, member_id}; return the deleted record ids."""

        raise NotImplementedError
