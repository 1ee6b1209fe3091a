from __future__ import annotations

from datetime import datetime

import pytest

from attendance_analytics.common.clock import FixedClock
from attendance_analytics.container import wire_services
from attendance_analytics.core.enums import Role
from attendance_analytics.members.unit_model import Unit

from fakes import (
    UTC,
    InMemoryActivities,
    InMemoryAttendance,
    InMemoryLeaveRequests,
    InMemoryMembers,
    InMemoryUnits,
    make_member,
)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 1, 10, 8, 0, tzinfo=UTC))


@pytest.fixture
def activities() -> InMemoryActivities:
    return InMemoryActivities()


@pytest.fixture
def members() -> InMemoryMembers:
    return InMemoryMembers(
        [
            make_member(1, "Admin", None, Role.ADMIN),
            make_member(2, "Coach Kim", 10, Role.COACH),
            make_member(3, "Coach Lee", 20, Role.COACH),
        ]
    )


@pytest.fixture
def units() -> InMemoryUnits:
    return InMemoryUnits([Unit(unit_id=10, name="Swimming"), Unit(unit_id=20, name="Athletics")])


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def leave_requests(activities) -> InMemoryLeaveRequests:
    return InMemoryLeaveRequests(activities)


@pytest.fixture
def container(activities, members, units, attendance, leave_requests, clock):
    return wire_services(
        activities_repo=activities,
        members_repo=members,
        units_repo=units,
        attendance_repo=attendance,
        leave_repo=leave_requests,
        clock=clock,
    )
