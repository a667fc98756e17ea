"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Role

ATTENDANCE_TABLE = "attendance"

DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_CHANGE_FEED_POLL_SECONDS = 1.0
DEFAULT_CHANGE_FEED_BATCH = 200

# Roles allowed to mark/unmark attendance.
MARKING_ROLES = frozenset({Role.ADMIN, Role.TAKER, Role.PROJECT_ADMIN})

# Roles that see members of every gender.
DEMOGRAPHIC_EXEMPT_ROLES = frozenset({Role.ADMIN})

SYNC_FAILED_MESSAGE = "Sync failed. Check connection."
