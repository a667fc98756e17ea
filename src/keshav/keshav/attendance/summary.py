from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..members.model import RosterEntry
from ..members.repository import RosterRepository
from ..scope.model import AccessScope
from ..scope.visibility import compute_visible_roster
from .model import AttendanceSummary, MandalSummaryRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def build_summary(event_id: str, roster: Iterable[RosterEntry], present_ids: Iterable[str]) -> AttendanceSummary:
    """Group registered/present counts by mandal, busiest mandals first."""

    present = set(present_ids)
    groups: Dict[Optional[str], Dict[str, object]] = {}
    total_registered = 0
    total_present = 0

    for entry in roster:
        key = entry.mandal_id
        group = groups.setdefault(
            key,
            {"name": entry.member.mandal_name or "Unknown", "registered": 0, "present": 0},
        )
        group["registered"] += 1
        total_registered += 1
        if entry.member_id in present:
            group["present"] += 1
            total_present += 1

    rows = sorted(
        (
            MandalSummaryRow(
                mandal_id=mandal_id,
                mandal_name=str(g["name"]),
                registered=int(g["registered"]),
                present=int(g["present"]),
            )
            for mandal_id, g in groups.items()
        ),
        key=lambda r: (-r.present, r.mandal_name.casefold()),
    )
    return AttendanceSummary(event_id=event_id, rows=tuple(rows), registered=total_registered, present=total_present)


class AttendanceSummaryService:
    """Use case: per-mandal registered vs present counts for one event."""

    def __init__(self, roster: RosterRepository, attendance: AttendanceRepository):
        self._roster = roster
        self._attendance = attendance

    def summarize(self, access: AccessScope, *, project_id: str, event_id: str) -> AttendanceSummary:
        visible = compute_visible_roster(access, self._roster.list_project_roster(project_id))
        if not visible:
            logger.info("Summary for event %s: nothing visible for role %s", event_id, access.role)
            return AttendanceSummary(event_id=event_id, rows=(), registered=0, present=0)

        present_ids = {r.member_id for r in self._attendance.list_for_event(event_id)}
        return build_summary(event_id, visible, present_ids)
