from __future__ import annotations

import random
import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from attendance_analytics.core.enums import ActivityStatus, AggregationKind, ParticipationStatus, StatKind
from attendance_analytics.core.exceptions import AggregationTimeoutError
from attendance_analytics.reports.aggregator import BulkAggregator, default_kind_for
from attendance_analytics.reports.model import DateRange, attendance_rate
from attendance_analytics.scope.model import CallerScope

from fakes import InMemoryAttendance, make_activity, make_member

FIRST_DAY = date(2025, 1, 1)
RANGE = DateRange.of(FIRST_DAY, date(2025, 1, 31))


def _session(day_offset: int) -> datetime:
    d = FIRST_DAY + timedelta(days=day_offset)
    return datetime(d.year, d.month, d.day, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def two_athletes(activities, members, attendance):
    """Ten swimming sessions; A attends 9 (one late), B attends 5."""
    members.add(make_member(100, "A", 10))
    members.add(make_member(101, "B", 10))
    for i in range(1, 11):
        activities.add(make_activity(i, 10, _session(i)))
    for i in range(1, 9):
        attendance.seed(i, 100, ParticipationStatus.PRESENT)
    attendance.seed(9, 100, ParticipationStatus.LATE)
    for i in range(1, 6):
        attendance.seed(i, 101, ParticipationStatus.PRESENT)
    attendance.seed(6, 101, ParticipationStatus.ABSENT)


@pytest.fixture
def aggregator(activities, members, units, attendance):
    return BulkAggregator(activities, members, units, attendance)


def test_participant_rates_sorted_descending(aggregator, two_athletes):
    stats = aggregator.aggregate(CallerScope.for_units(10), RANGE)

    assert [(s.label, s.rate) for s in stats] == [("A", 90.0), ("B", 50.0)]
    a, b = stats
    assert a.kind == StatKind.PARTICIPANT
    assert a.total_activities == 10
    assert (a.counts.present, a.counts.late) == (8, 1)
    assert a.unrecorded == 1
    assert (b.counts.absent, b.unrecorded) == (1, 4)


def test_one_call_per_store_method(aggregator, two_athletes, activities, members, attendance, units):
    aggregator.aggregate(CallerScope.everything(), RANGE, AggregationKind.PER_PARTICIPANT)

    assert (activities.range_calls, members.participant_calls, attendance.bulk_calls) == (1, 1, 1)
    assert units.calls == 0

    aggregator.aggregate(CallerScope.everything(), RANGE, AggregationKind.PER_UNIT)
    assert units.calls == 1
    assert attendance.bulk_calls == 2


def test_no_activities_gives_zero_rate(aggregator, members, attendance):
    members.add(make_member(100, "A", 10))

    stats = aggregator.aggregate(CallerScope.for_units(10), RANGE)

    assert len(stats) == 1
    assert stats[0].rate == 0.0
    assert stats[0].total_activities == 0
    assert attendance.bulk_calls == 0


def test_result_independent_of_record_order(activities, members, units, two_athletes, attendance):
    records = attendance.bulk_fetch_records(range(1, 11))
    baseline = BulkAggregator(activities, members, units, attendance).aggregate(CallerScope.for_units(10), RANGE)

    shuffled = InMemoryAttendance()
    random.Random(7).shuffle(records)
    for r in records:
        shuffled.seed(r.activity_id, r.participant_id, r.status)

    again = BulkAggregator(activities, members, units, shuffled).aggregate(CallerScope.for_units(10), RANGE)

    assert again == baseline


def test_self_scope_sees_only_own_row(aggregator, two_athletes):
    stats = aggregator.aggregate(CallerScope.for_member(101, 10), RANGE)

    assert [s.scope_id for s in stats] == ["member:101"]
    assert stats[0].rate == 50.0


def test_cancelled_activities_are_not_counted(aggregator, two_athletes, activities):
    activities.add(make_activity(11, 10, _session(11), status=ActivityStatus.CANCELLED))

    report = aggregator.build_report(CallerScope.for_units(10), RANGE)

    assert report.activity_count == 10
    assert report.stats[0].total_activities == 10


def test_records_on_other_units_activities_are_ignored(aggregator, two_athletes, activities, attendance):
    activities.add(make_activity(50, 20, _session(3)))
    attendance.seed(50, 100, ParticipationStatus.PRESENT)

    stats = aggregator.aggregate(CallerScope.everything(), RANGE, AggregationKind.PER_PARTICIPANT)

    a = next(s for s in stats if s.label == "A")
    assert a.counts.present == 8
    assert a.total_activities == 10


def test_per_unit_and_system_wide(aggregator, two_athletes, activities, members, attendance):
    members.add(make_member(200, "C", 20))
    activities.add(make_activity(60, 20, _session(2)))
    activities.add(make_activity(61, 20, _session(4)))
    attendance.seed(60, 200, ParticipationStatus.PRESENT)
    attendance.seed(61, 200, ParticipationStatus.LATE)

    units = aggregator.aggregate(CallerScope.everything(), RANGE)
    assert [(s.label, s.rate) for s in units] == [("Athletics", 100.0), ("Swimming", 70.0)]
    swimming = units[1]
    assert swimming.kind == StatKind.UNIT
    assert (swimming.participants, swimming.expected, swimming.counts.attended) == (2, 20, 14)

    (overall,) = aggregator.aggregate(CallerScope.everything(), RANGE, AggregationKind.SYSTEM_WIDE)
    assert overall.kind == StatKind.SYSTEM
    assert overall.label == "All units"
    assert overall.expected == 22
    assert overall.counts.attended == 16
    assert overall.rate == attendance_rate(16, 22)


def test_range_bounds_are_inclusive(aggregator, activities, members, attendance):
    members.add(make_member(100, "A", 10))
    activities.add(make_activity(1, 10, datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)))
    activities.add(make_activity(2, 10, datetime(2025, 1, 31, 23, 30, tzinfo=timezone.utc)))
    activities.add(make_activity(3, 10, datetime(2025, 2, 1, 0, 0, tzinfo=timezone.utc)))

    report = aggregator.build_report(CallerScope.for_units(10), RANGE)

    assert report.activity_count == 2


def test_default_kinds():
    assert default_kind_for(CallerScope.for_member(1, 10)) == AggregationKind.PER_PARTICIPANT
    assert default_kind_for(CallerScope.for_units(10)) == AggregationKind.PER_PARTICIPANT
    assert default_kind_for(CallerScope.everything()) == AggregationKind.PER_UNIT


@pytest.mark.parametrize(
    "attended, expected, rate",
    [(9, 10, 90.0), (1, 3, 33.3), (2, 3, 66.7), (1, 8, 12.5), (1, 16, 6.3), (0, 0, 0.0), (5, 0, 0.0)],
)
def test_rate_rounds_half_up(attended, expected, rate):
    assert attendance_rate(attended, expected) == rate


def test_participant_rows_carry_nickname_and_activity(aggregator, activities, members, attendance):
    members.add(make_member(100, "Somchai Jaidee", 10, nickname="Chai"))
    members.add(make_member(101, "B", 10))
    activities.add(make_activity(1, 10, _session(1)))
    attendance.seed(1, 100, ParticipationStatus.PRESENT)

    stats = aggregator.aggregate(CallerScope.for_units(10), RANGE)

    assert [(s.label, s.nickname, s.active_participants) for s in stats] == [
        ("Somchai Jaidee", "Chai", 1),
        ("B", None, 0),
    ]


def test_system_row_counts_distinct_active_participants(aggregator, two_athletes, members):
    members.add(make_member(102, "C", 10))

    (overall,) = aggregator.aggregate(CallerScope.everything(), RANGE, AggregationKind.SYSTEM_WIDE)

    assert overall.participants == 3
    assert overall.active_participants == 2


def test_participant_filter_limits_participant_query(aggregator, two_athletes):
    stats = aggregator.aggregate(CallerScope.for_units(10), RANGE, participant_id=101)

    assert [(s.label, s.rate) for s in stats] == [("B", 50.0)]


def test_cancelled_aggregation_skips_remaining_store_calls(aggregator, two_athletes, members, attendance):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(AggregationTimeoutError):
        aggregator.build_report(CallerScope.for_units(10), RANGE, cancel=cancel)

    assert members.participant_calls == 0
    assert attendance.bulk_calls == 0
