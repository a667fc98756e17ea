from __future__ import annotations

from typing import Optional, Protocol

from .model import UserProfile


class UserProfileRepository(Protocol):
    """Repository interface for operator profiles.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[UserProfile]:
        raise NotImplementedError
