from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from .model import Member


class MemberRepository(Protocol):
    def get_by_id(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    def list_participants(
        self,
        *,
        unit_ids: Optional[Collection[int]] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[Member]:
        """Active athletes in the given units (``None`` = all units).

        ``member_id`` narrows the result to that single participant.
        """

        raise NotImplementedError
