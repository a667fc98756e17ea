from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role names as stored on user profiles."""

    ADMIN = "admin"
    SANCHALAK = "sanchalak"
    NIRIKSHAK = "nirikshak"
    NIRDESHAK = "nirdeshak"
    PROJECT_ADMIN = "project_admin"
    TAKER = "taker"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Normalize a free-form role string; None when unrecognized."""

        cleaned = (value or "").strip().lower()
        try:
            return cls(cleaned)
        except ValueError:
            return None


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    DELETE = "DELETE"


class SessionState(str, Enum):
    """Lifecycle of one opened event view."""

    UNINITIALIZED = "UNINITIALIZED"
    LOADING = "LOADING"
    READY = "READY"
    CLOSED = "CLOSED"


class PresenceFilter(str, Enum):
    ALL = "all"
    PRESENT = "present"
    ABSENT = "absent"


class ScanOutcome(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
