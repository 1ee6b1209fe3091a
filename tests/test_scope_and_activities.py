from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from attendance_analytics.activities.service import ActivityAdminService
from attendance_analytics.config.logging import build_logging_config
from attendance_analytics.core.enums import ActivityStatus, Role, ScopeKind
from attendance_analytics.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from attendance_analytics.members.model import Member
from attendance_analytics.scope.model import CallerScope
from attendance_analytics.scope.resolver import RoleScopeResolver

from fakes import make_activity, make_member

START = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def test_roles_map_to_scopes(members):
    members.add(make_member(100, "An", 10))
    resolver = RoleScopeResolver(members)

    assert resolver.resolve_scope(1) == CallerScope.everything()
    assert resolver.resolve_scope(2) == CallerScope.for_units(10)
    athlete = resolver.resolve_scope(100)
    assert athlete.kind == ScopeKind.SELF
    assert athlete.member_id == 100
    assert athlete.scope_id == "member:100"


def test_unknown_inactive_or_unassigned_callers_are_rejected(members):
    members.add(Member(member_id=300, full_name="Old", unit_id=10, role=Role.COACH, is_active=False))
    members.add(make_member(301, "Floating", None))
    resolver = RoleScopeResolver(members)

    for caller in (999, 300, 301):
        with pytest.raises(AuthorizationError):
            resolver.resolve_scope(caller)


def test_scope_helpers():
    unit = CallerScope.for_units(20, 10)

    assert unit.scope_id == "units:10,20"
    assert unit.unit_filter == frozenset({10, 20})
    assert unit.covers_unit(10) and not unit.covers_unit(30)
    assert CallerScope.everything().unit_filter is None
    assert CallerScope.everything().covers_unit(30)
    assert not CallerScope.for_member(1, 10).is_multi_scope


def test_cancel_activity_invalidates_unit_reports(container, activities, members):
    members.add(make_member(100, "An", 10))
    activities.add(make_activity(1, 10, START))
    activities.add(make_activity(2, 10, START + timedelta(days=1)))
    scope = CallerScope.for_units(10)
    day_range = (date(2025, 1, 1), date(2025, 1, 31))
    (before,) = container.report_service.get_attendance_report(scope, *day_range)
    assert before.total_activities == 2

    container.activity_admin_service.cancel_activity(1, scope=scope)

    (after,) = container.report_service.get_attendance_report(scope, *day_range)
    assert after.total_activities == 1
    assert activities.get_by_id(1).status == ActivityStatus.CANCELLED


def test_update_activity_validation(activities):
    activities.add(make_activity(1, 10, START))
    service = ActivityAdminService(activities)

    with pytest.raises(NotFoundError):
        service.update_activity(9, scope=CallerScope.everything(), location="x")
    with pytest.raises(AuthorizationError):
        service.update_activity(1, scope=CallerScope.for_member(100, 10), location="x")
    with pytest.raises(ValidationError):
        service.update_activity(1, scope=CallerScope.everything(), ends_at=START - timedelta(minutes=1))

    moved = service.update_activity(1, scope=CallerScope.for_units(10), location=" Pool B ")
    assert moved.location == "Pool B"
    assert moved.starts_at == START


def test_logging_config_formats():
    standard = build_logging_config(level="DEBUG")
    structured = build_logging_config(fmt="json")

    assert standard["handlers"]["console"]["formatter"] == "standard"
    assert standard["loggers"]["attendance_analytics"]["level"] == "DEBUG"
    assert structured["handlers"]["console"]["formatter"] == "json"
