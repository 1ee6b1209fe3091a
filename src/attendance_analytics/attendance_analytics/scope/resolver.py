from __future__ import annotations

from typing import Protocol

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..members.repository import MemberRepository
from .model import CallerScope


class ScopeResolver(Protocol):
    def resolve_scope(self, caller_id: int) -> CallerScope:
        raise NotImplementedError


class RoleScopeResolver(ScopeResolver):
    """Glue resolver: admins see everything, coaches their club, athletes themselves."""

    def __init__(self, members: MemberRepository):
        self._members = members

    def resolve_scope(self, caller_id: int) -> CallerScope:
        member = self._members.get_by_id(int(caller_id))
        if not member or not member.is_active:
            raise AuthorizationError("unknown caller")

        if member.role == Role.ADMIN:
            return CallerScope.everything()
        if member.unit_id is None:
            raise AuthorizationError("caller is not assigned to a unit")
        if member.role == Role.COACH:
            return CallerScope.for_units(member.unit_id)
        return CallerScope.for_member(member.member_id, member.unit_id)
