from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Member:
    """Domain entity: a registered volunteer. Read-only for attendance."""

    member_id: str
    name: str
    surname: str = ""
    internal_code: Optional[str] = None
    gender: Optional[str] = None
    mandal_id: Optional[str] = None
    kshetra_id: Optional[str] = None
    mandal_name: str = "Unknown"
    designation: Optional[str] = None
    mobile: Optional[str] = None


@dataclass(frozen=True)
class RosterEntry:
    """Read-model: a member registered to a project, with registration details."""

    member: Member
    seat_number: Optional[str] = None
    exam_level: Optional[str] = None
    external_qr: Optional[str] = None

    @property
    def member_id(self) -> str:
        return self.member.member_id

    @property
    def name(self) -> str:
        return self.member.name

    @property
    def surname(self) -> str:
        return self.member.surname

    @property
    def gender(self) -> Optional[str]:
        return self.member.gender

    @property
    def mandal_id(self) -> Optional[str]:
        return self.member.mandal_id

    @property
    def kshetra_id(self) -> Optional[str]:
        return self.member.kshetra_id

    @property
    def full_name(self) -> str:
        return f"{self.member.name} {self.member.surname}".strip()

    def matches_code(self, code: str) -> bool:
        """True when `code` is this member's internal code, badge QR, or id."""

        return code in (self.member.internal_code, self.external_qr, self.member.member_id)

    def search_text(self) -> str:
        return f"{self.member.name} {self.member.surname} {self.member.internal_code or ''}".lower()
