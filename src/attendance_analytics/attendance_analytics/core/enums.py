from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Member role, used to derive the caller's report scope."""

    ADMIN = "admin"
    COACH = "coach"
    ATHLETE = "athlete"


class ParticipationStatus(str, Enum):
    """Attendance status stored on a participation record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class ActivityStatus(str, Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecordedBy(str, Enum):
    SELF = "self"
    REVIEWER = "reviewer"


class ScopeKind(str, Enum):
    """What a caller is allowed to see: themselves, their unit(s) or everything."""

    SELF = "self"
    UNIT = "unit"
    ALL = "all"


class AggregationKind(str, Enum):
    PER_PARTICIPANT = "per_participant"
    PER_UNIT = "per_unit"
    SYSTEM_WIDE = "system_wide"


class StatKind(str, Enum):
    """Tag of an aggregated stat row."""

    PARTICIPANT = "participant"
    UNIT = "unit"
    SYSTEM = "system"


class InsertOutcome(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
