from __future__ import annotations

from typing import Optional, Protocol, Sequence


class ScopeRepository(Protocol):
    """Role assignment lookups used to resolve a caller's scope."""

    def list_nirikshak_mandal_ids(self, user_id: str) -> Sequence[str]:
        raise NotImplementedError

    def get_kshetra_id_for_mandal(self, mandal_id: str) -> Optional[str]:
        raise NotImplementedError
