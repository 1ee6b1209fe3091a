from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..core.enums import ScopeKind


@dataclass(frozen=True)
class CallerScope:
    """What a caller may see, as decided by the external scope resolver.

    For ``ALL`` the ``unit_ids`` set is empty and means "every unit".
    """

    kind: ScopeKind
    unit_ids: FrozenSet[int] = field(default_factory=frozenset)
    member_id: Optional[int] = None

    @classmethod
    def for_member(cls, member_id: int, unit_id: int) -> "CallerScope":
        return cls(kind=ScopeKind.SELF, unit_ids=frozenset({int(unit_id)}), member_id=int(member_id))

    @classmethod
    def for_units(cls, *unit_ids: int) -> "CallerScope":
        return cls(kind=ScopeKind.UNIT, unit_ids=frozenset(int(u) for u in unit_ids))

    @classmethod
    def everything(cls) -> "CallerScope":
        return cls(kind=ScopeKind.ALL)

    @property
    def scope_id(self) -> str:
        if self.kind == ScopeKind.SELF:
            return f"member:{self.member_id}"
        if self.kind == ScopeKind.UNIT:
            return "units:" + ",".join(str(u) for u in sorted(self.unit_ids))
        return "all"

    @property
    def unit_filter(self) -> Optional[FrozenSet[int]]:
        """Unit ids to query, or None when every unit is in scope."""
        return None if self.kind == ScopeKind.ALL else self.unit_ids

    @property
    def is_multi_scope(self) -> bool:
        return self.kind != ScopeKind.SELF

    def covers_unit(self, unit_id: int) -> bool:
        return self.kind == ScopeKind.ALL or int(unit_id) in self.unit_ids
