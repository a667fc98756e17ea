from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserProfile:
    """Domain entity: an operator account.

    `role` keeps the raw stored string; it is interpreted once by the scope
    resolver and never compared ad hoc elsewhere.
    """

    user_id: str
    full_name: str
    username: str
    password_hash: str
    role: str
    gender: Optional[str] = None
    assigned_mandal_id: Optional[str] = None
    assigned_kshetra_id: Optional[str] = None
    is_active: bool = True
    # Home mandal/kshetra of the operator as a member; fallback for scope.
    mandal_id: Optional[str] = None
    kshetra_id: Optional[str] = None

    @property
    def scope_mandal_id(self) -> Optional[str]:
        return self.assigned_mandal_id or self.mandal_id

    @property
    def scope_kshetra_id(self) -> Optional[str]:
        return self.assigned_kshetra_id or self.kshetra_id
