from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from ..common.validators import require_date_range
from ..core.enums import AggregationKind, ParticipationStatus, StatKind


def attendance_rate(attended: int, expected: int) -> float:
    """Percentage of expected participations attended, rounded half-up to 0.1."""
    if expected <= 0:
        return 0.0
    pct = Decimal(int(attended)) * 100 / Decimal(int(expected))
    return float(pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @classmethod
    def of(cls, start: date, end: date) -> "DateRange":
        require_date_range(start, end)
        return cls(start=start, end=end)

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class StatusCounts:
    present: int = 0
    late: int = 0
    absent: int = 0
    excused: int = 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[ParticipationStatus]) -> "StatusCounts":
        c = Counter(statuses)
        return cls(
            present=c[ParticipationStatus.PRESENT],
            late=c[ParticipationStatus.LATE],
            absent=c[ParticipationStatus.ABSENT],
            excused=c[ParticipationStatus.EXCUSED],
        )

    @property
    def attended(self) -> int:
        return self.present + self.late

    @property
    def recorded(self) -> int:
        return self.present + self.late + self.absent + self.excused

    def __add__(self, other: "StatusCounts") -> "StatusCounts":
        return StatusCounts(
            present=self.present + other.present,
            late=self.late + other.late,
            absent=self.absent + other.absent,
            excused=self.excused + other.excused,
        )


@dataclass(frozen=True)
class AggregatedStat:
    """One row of aggregated attendance, tagged by what it describes.

    ``expected`` is the number of participations that could have been
    recorded: the activity count for a participant row, and activities times
    participants for unit and system rows. ``active_participants`` counts the
    participants with at least one record in range.
    """

    kind: StatKind
    scope_id: str
    label: str
    total_activities: int
    participants: int
    active_participants: int
    expected: int
    counts: StatusCounts
    rate: float
    nickname: Optional[str] = None

    @classmethod
    def build(
        cls,
        *,
        kind: StatKind,
        scope_id: str,
        label: str,
        total_activities: int,
        participants: int,
        active_participants: int,
        expected: int,
        counts: StatusCounts,
        nickname: Optional[str] = None,
    ) -> "AggregatedStat":
        if expected <= 0:
            # No activity could have been attended: report an all-zero row.
            counts = StatusCounts()
            expected = 0
            active_participants = 0
        return cls(
            kind=kind,
            scope_id=scope_id,
            label=label,
            total_activities=total_activities,
            participants=participants,
            active_participants=active_participants,
            expected=expected,
            counts=counts,
            rate=attendance_rate(counts.attended, expected),
            nickname=nickname,
        )

    @property
    def unrecorded(self) -> int:
        return max(self.expected - self.counts.recorded, 0)

    def sort_key(self) -> Tuple[float, str, str]:
        return (-self.rate, self.label, self.scope_id)


@dataclass(frozen=True)
class AttendanceReport:
    """Cached result of one aggregation call."""

    kind: AggregationKind
    date_range: DateRange
    activity_count: int
    stats: Tuple[AggregatedStat, ...]


@dataclass(frozen=True)
class ReportRow:
    label: str
    total_activities: int
    participants: int
    active_participants: int
    expected: int
    present: int
    late: int
    absent: int
    excused: int
    unrecorded: int
    rate: float
    nickname: Optional[str] = None
    scope_id: Optional[str] = None
    is_total: bool = False

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "nickname": self.nickname or "",
            "total_activities": self.total_activities,
            "participants": self.participants,
            "active_participants": self.active_participants,
            "expected": self.expected,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "excused": self.excused,
            "unrecorded": self.unrecorded,
            "rate": f"{self.rate:.1f}",
        }


REPORT_FIELDNAMES = [
    "label",
    "nickname",
    "total_activities",
    "participants",
    "active_participants",
    "expected",
    "present",
    "late",
    "absent",
    "excused",
    "unrecorded",
    "rate",
]
