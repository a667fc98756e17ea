from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.exceptions import AuthenticationError, NotFoundError
from .model import UserProfile
from .repository import UserProfileRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    full_name: str
    role: str


class AuthService:
    """Use case: authenticate an operator and look up their profile."""

    def __init__(self, profiles: UserProfileRepository):
        self._profiles = profiles

    def authenticate(self, username: str, password: str) -> SessionUser:
        username = require_non_empty(username, "Username")
        profile = self._profiles.get_by_username(username)
        if not profile or not profile.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(profile.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("Rejected login for %s", username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=profile.user_id, full_name=profile.full_name, role=profile.role)

    def get_profile(self, user_id: Optional[str]) -> UserProfile:
        profile = self._profiles.get_by_id(user_id) if user_id else None
        if not profile or not profile.is_active:
            raise NotFoundError("Profile not found")
        return profile
