from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Member:
    """Domain entity: a club member (admin, coach or athlete).

    Identity and credentials live in the external auth service; this is only
    what the attendance core needs to scope and label statistics.
    """

    member_id: int
    full_name: str
    unit_id: Optional[int]
    role: Role
    nickname: Optional[str] = None
    is_active: bool = True

    @property
    def is_participant(self) -> bool:
        return self.role == Role.ATHLETE
