from __future__ import annotations

import threading
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence

from ..activities.model import ScheduledActivity
from ..activities.repository import ActivityRepository
from ..attendance.model import ParticipationRecord
from ..attendance.repository import AttendanceRepository
from ..config.logging import get_logger
from ..core.constants import SYSTEM_WIDE_LABEL
from ..core.enums import AggregationKind, ParticipationStatus, ScopeKind, StatKind
from ..core.exceptions import AggregationTimeoutError
from ..members.model import Member
from ..members.repository import MemberRepository
from ..members.unit_repository import UnitRepository
from ..scope.model import CallerScope
from .model import AggregatedStat, AttendanceReport, DateRange, StatusCounts

logger = get_logger(__name__)


def default_kind_for(scope: CallerScope) -> AggregationKind:
    if scope.kind == ScopeKind.ALL:
        return AggregationKind.PER_UNIT
    return AggregationKind.PER_PARTICIPANT


class BulkAggregator:
    """Turns raw participation records into per-scope statistics.

    Every aggregation issues a fixed number of store calls regardless of how
    many participants or units are involved: one for the activities in range,
    one for the participants, one bulk fetch for all records (plus one for
    unit labels on unit-level reports). Grouping happens in memory.
    """

    def __init__(
        self,
        activities: ActivityRepository,
        members: MemberRepository,
        units: UnitRepository,
        attendance: AttendanceRepository,
    ):
        self._activities = activities
        self._members = members
        self._units = units
        self._attendance = attendance

    def aggregate(
        self,
        scope: CallerScope,
        date_range: DateRange,
        kind: Optional[AggregationKind] = None,
        *,
        participant_id: Optional[int] = None,
    ) -> List[AggregatedStat]:
        return list(self.build_report(scope, date_range, kind, participant_id=participant_id).stats)

    def build_report(
        self,
        scope: CallerScope,
        date_range: DateRange,
        kind: Optional[AggregationKind] = None,
        *,
        participant_id: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> AttendanceReport:
        """Aggregate records for ``scope`` over ``date_range``.

        ``participant_id`` narrows the rows to one participant inside the
        scope. When ``cancel`` is set between store calls the aggregation
        stops before issuing the next one.
        """
        kind = kind or default_kind_for(scope)
        unit_filter = scope.unit_filter
        if scope.kind == ScopeKind.SELF:
            participant_id = scope.member_id

        activities = [
            a
            for a in self._activities.list_in_range(start=date_range.start, end=date_range.end, unit_ids=unit_filter)
            if not a.is_cancelled
        ]
        _raise_if_cancelled(cancel)
        participants = self._members.list_participants(unit_ids=unit_filter, member_id=participant_id)
        _raise_if_cancelled(cancel)
        activity_ids = {a.activity_id for a in activities}
        records = self._attendance.bulk_fetch_records(activity_ids) if activity_ids else []

        logger.debug(
            "aggregating %s for %s: %d activities, %d participants, %d records",
            kind.value,
            scope.scope_id,
            len(activities),
            len(participants),
            len(records),
        )

        records_by_participant = _group_records(activities, participants, records)
        activities_per_unit = Counter(a.unit_id for a in activities)

        if kind == AggregationKind.PER_PARTICIPANT:
            stats = self._per_participant(participants, records_by_participant, activities_per_unit)
        elif kind == AggregationKind.PER_UNIT:
            stats = self._per_unit(scope, participants, records_by_participant, activities_per_unit)
        else:
            stats = [self._system_wide(activities, participants, records_by_participant, activities_per_unit)]

        stats.sort(key=AggregatedStat.sort_key)
        return AttendanceReport(
            kind=kind,
            date_range=date_range,
            activity_count=len(activities),
            stats=tuple(stats),
        )

    def _per_participant(
        self,
        participants: Sequence[Member],
        records_by_participant: Dict[int, List[ParticipationStatus]],
        activities_per_unit: Counter,
    ) -> List[AggregatedStat]:
        out = []
        for m in participants:
            total = activities_per_unit.get(m.unit_id, 0)
            out.append(
                AggregatedStat.build(
                    kind=StatKind.PARTICIPANT,
                    scope_id=f"member:{m.member_id}",
                    label=m.full_name,
                    total_activities=total,
                    participants=1,
                    active_participants=1 if records_by_participant.get(m.member_id) else 0,
                    expected=total,
                    counts=StatusCounts.from_statuses(records_by_participant.get(m.member_id, [])),
                    nickname=m.nickname,
                )
            )
        return out

    def _per_unit(
        self,
        scope: CallerScope,
        participants: Sequence[Member],
        records_by_participant: Dict[int, List[ParticipationStatus]],
        activities_per_unit: Counter,
    ) -> List[AggregatedStat]:
        units = self._units.list_units(unit_ids=scope.unit_filter)

        members_by_unit: Dict[int, List[Member]] = defaultdict(list)
        for m in participants:
            members_by_unit[m.unit_id].append(m)

        out = []
        for unit in units:
            members = members_by_unit.get(unit.unit_id, [])
            total = activities_per_unit.get(unit.unit_id, 0)
            counts = StatusCounts()
            for m in members:
                counts = counts + StatusCounts.from_statuses(records_by_participant.get(m.member_id, []))
            out.append(
                AggregatedStat.build(
                    kind=StatKind.UNIT,
                    scope_id=f"unit:{unit.unit_id}",
                    label=unit.name,
                    total_activities=total,
                    participants=len(members),
                    active_participants=sum(1 for m in members if records_by_participant.get(m.member_id)),
                    expected=total * len(members),
                    counts=counts,
                )
            )
        return out

    def _system_wide(
        self,
        activities: Sequence[ScheduledActivity],
        participants: Sequence[Member],
        records_by_participant: Dict[int, List[ParticipationStatus]],
        activities_per_unit: Counter,
    ) -> AggregatedStat:
        expected = sum(activities_per_unit.get(m.unit_id, 0) for m in participants)
        counts = StatusCounts.from_statuses(
            status for statuses in records_by_participant.values() for status in statuses
        )
        return AggregatedStat.build(
            kind=StatKind.SYSTEM,
            scope_id="all",
            label=SYSTEM_WIDE_LABEL,
            total_activities=len(activities),
            participants=len(participants),
            active_participants=sum(1 for statuses in records_by_participant.values() if statuses),
            expected=expected,
            counts=counts,
        )


def _group_records(
    activities: Sequence[ScheduledActivity],
    participants: Sequence[Member],
    records: Sequence[ParticipationRecord],
) -> Dict[int, List[ParticipationStatus]]:
    """participant id -> statuses of their records on their own unit's activities.

    Records from outside the resolved activities/participants are ignored, so
    the result depends only on the set of records, not their order.
    """
    unit_by_activity = {a.activity_id: a.unit_id for a in activities}
    unit_by_participant = {m.member_id: m.unit_id for m in participants}

    grouped: Dict[int, List[ParticipationStatus]] = defaultdict(list)
    for r in records:
        activity_unit = unit_by_activity.get(r.activity_id)
        if activity_unit is None or r.participant_id not in unit_by_participant:
            continue
        if unit_by_participant[r.participant_id] != activity_unit:
            continue
        grouped[r.participant_id].append(r.status)
    return grouped


def _raise_if_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise AggregationTimeoutError("aggregation aborted after its deadline")
