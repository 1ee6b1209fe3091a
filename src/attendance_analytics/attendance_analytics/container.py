from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .activities.mysql_activity_repository import MySQLActivityRepository
from .activities.repository import ActivityRepository
from .activities.service import ActivityAdminService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import CheckInService
from .attendance.validator import CheckInWindow
from .common.clock import Clock, SystemClock
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.repository import LeaveRequestRepository
from .leave.service import LeaveService
from .members.mysql_member_repository import MySQLMemberRepository
from .members.mysql_unit_repository import MySQLUnitRepository
from .members.repository import MemberRepository
from .members.unit_repository import UnitRepository
from .reports.aggregator import BulkAggregator
from .reports.cache import AggregationCache
from .reports.service import ReportService
from .scope.resolver import RoleScopeResolver, ScopeResolver


@dataclass(frozen=True)
class Container:
    clock: Clock

    activities_repo: ActivityRepository
    members_repo: MemberRepository
    units_repo: UnitRepository
    attendance_repo: AttendanceRepository
    leave_repo: LeaveRequestRepository

    cache: AggregationCache
    scope_resolver: ScopeResolver
    check_in_service: CheckInService
    activity_admin_service: ActivityAdminService
    report_service: ReportService
    leave_service: LeaveService

    conn: Optional[DatabaseConnection] = None


def wire_services(
    *,
    activities_repo: ActivityRepository,
    members_repo: MemberRepository,
    units_repo: UnitRepository,
    attendance_repo: AttendanceRepository,
    leave_repo: LeaveRequestRepository,
    clock: Optional[Clock] = None,
    scope_resolver: Optional[ScopeResolver] = None,
    early_minutes: int = constants.CHECKIN_EARLY_MINUTES,
    late_minutes: int = constants.CHECKIN_LATE_MINUTES,
    leave_notice_hours: float = constants.LEAVE_MIN_NOTICE_HOURS,
    cache_ttl_seconds: float = constants.REPORT_CACHE_TTL_SECONDS,
    report_timeout: Optional[float] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services over any repository implementations."""
    clock = clock or SystemClock()
    cache = AggregationCache(clock, default_ttl=cache_ttl_seconds)

    check_in_service = CheckInService(
        attendance_repo,
        activities_repo,
        members_repo,
        cache=cache,
        clock=clock,
        window=CheckInWindow(early_minutes=early_minutes, late_minutes=late_minutes),
    )
    activity_admin_service = ActivityAdminService(activities_repo, cache=cache)
    report_service = ReportService(
        BulkAggregator(activities_repo, members_repo, units_repo, attendance_repo),
        cache,
        default_timeout=report_timeout,
    )
    leave_service = LeaveService(
        leave_repo,
        activities_repo,
        members_repo,
        attendance_repo,
        check_in_service,
        clock=clock,
        min_notice_hours=leave_notice_hours,
    )

    return Container(
        clock=clock,
        activities_repo=activities_repo,
        members_repo=members_repo,
        units_repo=units_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        cache=cache,
        scope_resolver=scope_resolver or RoleScopeResolver(members_repo),
        check_in_service=check_in_service,
        activity_admin_service=activity_admin_service,
        report_service=report_service,
        leave_service=leave_service,
        conn=conn,
    )


def build_container(*, settings) -> Container:
    """Wire the MySQL-backed services from a settings module."""
    conn = DatabaseConnection(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))

    return wire_services(
        activities_repo=MySQLActivityRepository(conn),
        members_repo=MySQLMemberRepository(conn),
        units_repo=MySQLUnitRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_repo=MySQLLeaveRequestRepository(conn),
        early_minutes=int(getattr(settings, "CHECKIN_EARLY_MINUTES", constants.CHECKIN_EARLY_MINUTES)),
        late_minutes=int(getattr(settings, "CHECKIN_LATE_MINUTES", constants.CHECKIN_LATE_MINUTES)),
        leave_notice_hours=float(getattr(settings, "LEAVE_MIN_NOTICE_HOURS", constants.LEAVE_MIN_NOTICE_HOURS)),
        cache_ttl_seconds=float(getattr(settings, "REPORT_CACHE_TTL_SECONDS", constants.REPORT_CACHE_TTL_SECONDS)),
        report_timeout=getattr(settings, "REPORT_TIMEOUT_SECONDS", None),
        conn=conn,
    )
