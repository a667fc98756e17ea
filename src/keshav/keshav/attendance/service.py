from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS
from ..core.enums import PresenceFilter, ScanOutcome
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..members.model import RosterEntry
from ..members.repository import RosterRepository
from ..projects.model import Event, Project
from ..projects.repository import ProjectRepository
from ..scope.model import AccessScope
from ..scope.resolver import ScopeResolver
from ..scope.visibility import compute_visible_roster
from ..users.model import UserProfile
from .feed import ChangeFeed
from .model import ScanResult
from .presence import PresenceEngine
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemberRowUI:
    member_id: str
    full_name: str
    internal_code: Optional[str]
    mandal_id: Optional[str]
    mandal_name: str
    designation: Optional[str]
    seat_number: Optional[str]
    present: bool
    scanned_at: Optional[str]


class AttendanceSession:
    """One opened marking view: visible roster plus its presence engine."""

    def __init__(
        self,
        *,
        project: Project,
        event: Event,
        access: AccessScope,
        roster: Sequence[RosterEntry],
        engine: PresenceEngine,
    ):
        self.project = project
        self.event = event
        self.access = access
        self.roster = list(roster)
        self.engine = engine
        self._by_id: Dict[str, RosterEntry] = {e.member_id: e for e in self.roster}

    @property
    def can_mark(self) -> bool:
        return self.access.can_mark

    @property
    def present_count(self) -> int:
        return sum(1 for e in self.roster if self.engine.is_present(e.member_id))

    def list_members(
        self,
        *,
        search: str = "",
        presence: PresenceFilter = PresenceFilter.ALL,
        mandal_id: Optional[str] = None,
    ) -> List[RosterEntry]:
        needle = (search or "").strip().lower()
        out: List[RosterEntry] = []
        for entry in self.roster:
            if mandal_id and entry.mandal_id != mandal_id:
                continue
            if needle and needle not in entry.search_text():
                continue
            is_present = self.engine.is_present(entry.member_id)
            if presence is PresenceFilter.PRESENT and not is_present:
                continue
            if presence is PresenceFilter.ABSENT and is_present:
                continue
            out.append(entry)
        return out

    def to_ui(self, entry: RosterEntry) -> MemberRowUI:
        scanned_at = self.engine.scanned_at(entry.member_id)
        return MemberRowUI(
            member_id=entry.member_id,
            full_name=entry.full_name,
            internal_code=entry.member.internal_code,
            mandal_id=entry.mandal_id,
            mandal_name=entry.member.mandal_name,
            designation=entry.member.designation,
            seat_number=entry.seat_number,
            present=scanned_at is not None,
            scanned_at=scanned_at.isoformat() if scanned_at else None,
        )

    async def mark(self, member_id: str) -> bool:
        """Toggle a visible member. Returns the new presence."""

        if not self.can_mark:
            raise AuthorizationError("Read only")
        if member_id not in self._by_id:
            raise ValidationError("Not in roster")
        return await self.engine.toggle(member_id)

    async def scan(self, code: str) -> ScanResult:
        if not self.can_mark:
            return ScanResult(False, "Read Only", ScanOutcome.ERROR)

        code = require_non_empty(code, "QR code")
        entry = next((e for e in self.roster if e.matches_code(code)), None)
        if entry is None:
            return ScanResult(False, "Not in Roster", ScanOutcome.ERROR)
        if self.engine.is_present(entry.member_id):
            return ScanResult(False, "Already In", ScanOutcome.WARNING, entry.member_id)

        await self.engine.toggle(entry.member_id)
        return ScanResult(True, f"{entry.name} In!", ScanOutcome.SUCCESS, entry.member_id)

    def close(self) -> None:
        self.engine.close()


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        projects: ProjectRepository,
        resolver: ScopeResolver,
        feed: ChangeFeed,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ):
        self._attendance = attendance
        self._roster = roster
        self._projects = projects
        self._resolver = resolver
        self._feed = feed
        self._timeout = float(timeout)

    def resolve_scope(self, profile: UserProfile, *, read_only: bool = False) -> AccessScope:
        access = self._resolver.resolve(profile)
        if read_only and access.can_mark:
            access = replace(access, can_mark=False)
        return access

    def load_context(self, project_id: str, event_id: str) -> tuple[Project, Event]:
        project = self._projects.get_project(project_id)
        event = self._projects.get_event(event_id)
        if not project or not event or event.project_id != project.project_id:
            raise NotFoundError("Event not found")
        return project, event

    async def open_session(
        self,
        profile: UserProfile,
        *,
        project_id: str,
        event_id: str,
        live: bool = False,
        read_only: bool = False,
    ) -> AttendanceSession:
        """Build the marking view for `profile`; subscribes to realtime when `live`."""

        project, event = self.load_context(project_id, event_id)
        access = self.resolve_scope(profile, read_only=read_only)
        visible = compute_visible_roster(access, self._roster.list_project_roster(project_id))

        engine = PresenceEngine(
            self._attendance,
            self._feed,
            event.event_id,
            marked_by=profile.user_id,
            timeout=self._timeout,
        )
        try:
            await engine.load_initial()
            if live:
                await engine.subscribe()
        except BaseException:
            engine.close()
            raise

        logger.info(
            "Opened attendance for event %s: %d visible members (role=%s)",
            event.event_id,
            len(visible),
            access.role.value if access.role else profile.role,
        )
        return AttendanceSession(project=project, event=event, access=access, roster=visible, engine=engine)
