from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone

import pytest

from attendance_analytics.core.enums import ActivityStatus, AggregationKind, ParticipationStatus, RecordedBy
from attendance_analytics.core.exceptions import (
    ActivityCancelledError,
    AuthorizationError,
    DuplicateCheckInError,
    NotFoundError,
    StoreError,
    ValidationError,
    WindowClosedError,
    WindowNotOpenError,
)
from attendance_analytics.scope.model import CallerScope

from fakes import make_activity, make_member

START = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
ATHLETE = 100
OTHER_UNIT_ATHLETE = 200


@pytest.fixture
def seeded(activities, members):
    activities.add(make_activity(1, 10, START))
    activities.add(make_activity(2, 20, START))
    activities.add(make_activity(3, 10, START, status=ActivityStatus.CANCELLED))
    members.add(make_member(ATHLETE, "An Nguyen", 10))
    members.add(make_member(OTHER_UNIT_ATHLETE, "Binh Tran", 20))


@pytest.fixture
def service(container, seeded):
    return container.check_in_service


def test_check_in_before_start_is_present(service, attendance):
    result = service.check_in(1, ATHLETE, now=START - timedelta(minutes=25))

    assert result.status == ParticipationStatus.PRESENT
    stored = attendance.find_record(1, ATHLETE)
    assert stored.record_id == result.record_id
    assert stored.recorded_by == RecordedBy.SELF
    assert stored.check_in_time == START - timedelta(minutes=25)


def test_check_in_after_start_is_late(service):
    result = service.check_in(1, ATHLETE, now=START + timedelta(minutes=10))

    assert result.status == ParticipationStatus.LATE


def test_check_in_uses_clock_when_now_missing(service, clock):
    clock.set(START - timedelta(minutes=1))

    result = service.check_in(1, ATHLETE)

    assert result.check_in_time == START - timedelta(minutes=1)


def test_too_early_and_too_late_are_rejected(service, attendance):
    with pytest.raises(WindowNotOpenError):
        service.check_in(1, ATHLETE, now=START - timedelta(minutes=31))
    with pytest.raises(WindowClosedError):
        service.check_in(1, ATHLETE, now=START + timedelta(minutes=16))

    assert attendance.count() == 0


def test_second_check_in_is_duplicate(service):
    service.check_in(1, ATHLETE, now=START)

    with pytest.raises(DuplicateCheckInError):
        service.check_in(1, ATHLETE, now=START + timedelta(minutes=1))


def test_duplicate_is_reported_before_window(service):
    service.check_in(1, ATHLETE, now=START)

    with pytest.raises(DuplicateCheckInError):
        service.check_in(1, ATHLETE, now=START + timedelta(hours=3))


def test_unknown_activity_or_participant(service):
    with pytest.raises(NotFoundError):
        service.check_in(999, ATHLETE, now=START)
    with pytest.raises(NotFoundError):
        service.check_in(1, 999, now=START)
    # coaches are not participants
    with pytest.raises(NotFoundError):
        service.check_in(1, 2, now=START)


def test_cancelled_activity_is_rejected(service):
    with pytest.raises(ActivityCancelledError):
        service.check_in(3, ATHLETE, now=START)


def test_other_units_activity_is_rejected(service):
    with pytest.raises(AuthorizationError):
        service.check_in(2, ATHLETE, now=START)


def test_insert_conflict_maps_to_duplicate(service, attendance):
    # Simulates a concurrent insert landing between read-check and write.
    attendance.seed(1, ATHLETE, ParticipationStatus.PRESENT)
    attendance.find_record = lambda activity_id, participant_id: None

    with pytest.raises(DuplicateCheckInError):
        service.check_in(1, ATHLETE, now=START)

    assert attendance.count() == 1


def test_concurrent_check_ins_store_one_record(service, attendance):
    racers = 8
    attendance.find_barrier = threading.Barrier(racers)

    def attempt(_):
        try:
            service.check_in(1, ATHLETE, now=START)
            return "ok"
        except DuplicateCheckInError:
            return "duplicate"

    with ThreadPoolExecutor(max_workers=racers) as pool:
        outcomes = list(pool.map(attempt, range(racers)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == racers - 1
    assert attendance.count() == 1


def test_store_failure_propagates_without_record(service, attendance):
    attendance.fail_inserts_with = StoreError("connection lost")

    with pytest.raises(StoreError):
        service.check_in(1, ATHLETE, now=START)

    assert attendance.count() == 0


def test_check_in_invalidates_cached_reports(container, seeded):
    scope = CallerScope.for_units(10)
    day = date(2025, 1, 10)
    before = container.report_service.get_attendance_report(scope, day, day)
    assert before[0].counts.present == 0

    container.check_in_service.check_in(1, ATHLETE, now=START)

    after = container.report_service.get_attendance_report(scope, day, day)
    assert after[0].counts.present == 1
    assert after[0].rate == 100.0


def test_check_in_keeps_other_units_cache(container, seeded, attendance):
    day = date(2025, 1, 10)
    container.report_service.get_attendance_report(CallerScope.for_units(20), day, day)
    calls = attendance.bulk_calls

    container.check_in_service.check_in(1, ATHLETE, now=START)
    container.report_service.get_attendance_report(CallerScope.for_units(20), day, day)

    assert attendance.bulk_calls == calls


def test_mark_absent_has_no_check_in_time(service, attendance):
    result = service.mark_attendance(
        1,
        ATHLETE,
        ParticipationStatus.ABSENT,
        reviewer_id=2,
        scope=CallerScope.for_units(10),
        notes="  sick  ",
    )

    stored = attendance.get_by_id(result.record_id)
    assert result.check_in_time is None
    assert stored.recorded_by == RecordedBy.REVIEWER
    assert stored.reviewer_id == 2
    assert stored.notes == "sick"


def test_mark_present_stamps_now(service, clock):
    result = service.mark_attendance(
        1, ATHLETE, ParticipationStatus.PRESENT, reviewer_id=2, scope=CallerScope.for_units(10)
    )

    assert result.check_in_time == clock.now()


def test_mark_requires_reviewer_scope(service):
    with pytest.raises(AuthorizationError):
        service.mark_attendance(
            1, ATHLETE, ParticipationStatus.PRESENT, reviewer_id=3, scope=CallerScope.for_units(20)
        )
    with pytest.raises(AuthorizationError):
        service.mark_attendance(
            1, ATHLETE, ParticipationStatus.PRESENT, reviewer_id=ATHLETE, scope=CallerScope.for_member(ATHLETE, 10)
        )


def test_mark_rejects_participant_from_other_unit(service):
    with pytest.raises(ValidationError):
        service.mark_attendance(
            1, OTHER_UNIT_ATHLETE, ParticipationStatus.PRESENT, reviewer_id=1, scope=CallerScope.everything()
        )


def test_mark_twice_is_duplicate(service):
    scope = CallerScope.for_units(10)
    service.mark_attendance(1, ATHLETE, ParticipationStatus.EXCUSED, reviewer_id=2, scope=scope)

    with pytest.raises(DuplicateCheckInError):
        service.mark_attendance(1, ATHLETE, ParticipationStatus.PRESENT, reviewer_id=2, scope=scope)


def test_override_changes_status_and_reviewer(service, attendance):
    checked_in = service.check_in(1, ATHLETE, now=START + timedelta(minutes=5))

    updated = service.override_record(
        checked_in.record_id,
        status=ParticipationStatus.EXCUSED,
        reviewer_id=2,
        scope=CallerScope.for_units(10),
        notes="traffic",
    )

    assert updated.status == ParticipationStatus.EXCUSED
    assert updated.check_in_time == START + timedelta(minutes=5)
    assert attendance.get_by_id(checked_in.record_id).reviewer_id == 2


def test_override_unknown_record(service):
    with pytest.raises(NotFoundError):
        service.override_record(42, status=ParticipationStatus.PRESENT, reviewer_id=1, scope=CallerScope.everything())


def test_override_outside_scope(service):
    checked_in = service.check_in(1, ATHLETE, now=START)

    with pytest.raises(AuthorizationError):
        service.override_record(
            checked_in.record_id,
            status=ParticipationStatus.ABSENT,
            reviewer_id=3,
            scope=CallerScope.for_units(20),
        )


def test_history_is_newest_first_and_limited(service, activities, attendance):
    for i in range(4, 8):
        activities.add(make_activity(i, 10, START + timedelta(days=i)))
        attendance.seed(i, ATHLETE, ParticipationStatus.PRESENT)

    history = service.get_history(ATHLETE, limit=2)

    assert [r.activity_id for r in history] == [7, 6]
    with pytest.raises(ValidationError):
        service.get_history(ATHLETE, limit=0)


def test_report_counts_after_mark(container, seeded):
    container.check_in_service.mark_attendance(
        1, ATHLETE, ParticipationStatus.LATE, reviewer_id=1, scope=CallerScope.everything()
    )

    stats = container.report_service.get_attendance_report(
        CallerScope.everything(),
        date(2025, 1, 10),
        date(2025, 1, 10),
        kind=AggregationKind.PER_PARTICIPANT,
    )

    by_id = {s.scope_id: s for s in stats}
    assert by_id[f"member:{ATHLETE}"].counts.late == 1
