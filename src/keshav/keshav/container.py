from __future__ import annotations

from dataclasses import dataclass

from .attendance.feed import ChangeFeed
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_change_feed import MySQLChangeFeed
from .attendance.service import AttendanceService
from .attendance.summary import AttendanceSummaryService
from .core.constants import DEFAULT_CHANGE_FEED_POLL_SECONDS, DEFAULT_FETCH_TIMEOUT_SECONDS
from .database.connection import DatabaseConnection, DBConfig
from .members.mysql_roster_repository import MySQLRosterRepository
from .projects.mysql_project_repository import MySQLProjectRepository
from .scope.mysql_scope_repository import MySQLScopeRepository
from .scope.resolver import ScopeResolver
from .users.mysql_user_profile_repository import MySQLUserProfileRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    profiles_repo: MySQLUserProfileRepository
    scope_repo: MySQLScopeRepository
    roster_repo: MySQLRosterRepository
    projects_repo: MySQLProjectRepository
    attendance_repo: MySQLAttendanceRepository
    change_feed: ChangeFeed

    auth_service: AuthService
    scope_resolver: ScopeResolver
    attendance_service: AttendanceService
    attendance_summary_service: AttendanceSummaryService


def build_container(
    *,
    db_config: dict,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    poll_seconds: float = DEFAULT_CHANGE_FEED_POLL_SECONDS,
) -> Container:
    """Wire the app once at process start; the handles live until process exit."""

    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    profiles_repo = MySQLUserProfileRepository(conn)
    scope_repo = MySQLScopeRepository(conn)
    roster_repo = MySQLRosterRepository(conn)
    projects_repo = MySQLProjectRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    change_feed = MySQLChangeFeed(conn, poll_seconds=poll_seconds)

    scope_resolver = ScopeResolver(scope_repo)

    return Container(
        conn=conn,
        profiles_repo=profiles_repo,
        scope_repo=scope_repo,
        roster_repo=roster_repo,
        projects_repo=projects_repo,
        attendance_repo=attendance_repo,
        change_feed=change_feed,
        auth_service=AuthService(profiles_repo),
        scope_resolver=scope_resolver,
        attendance_service=AttendanceService(
            attendance_repo,
            roster_repo,
            projects_repo,
            scope_resolver,
            change_feed,
            timeout=fetch_timeout,
        ),
        attendance_summary_service=AttendanceSummaryService(roster_repo, attendance_repo),
    )
