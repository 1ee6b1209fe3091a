"""Time-bounded cache for aggregation results.

Entries are keyed by the full caller scope, so two callers with different
scopes never share a value even when their data overlaps. An index from unit
(and member, for self-scoped keys) to cache keys lets a write invalidate only
the entries it can affect; keys covering every unit sit in a wildcard bucket
that every invalidation clears. Expired entries are swept on every miss, and
once ``max_entries`` is reached the oldest entry is evicted.

Each index bucket carries a version. A miss snapshots the versions of its
buckets before computing and only stores the value if none of them moved,
so a value computed across an invalidation is handed back to its caller but
never written into the cache.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, FrozenSet, Hashable, Optional, Set, Tuple

from ..common.clock import Clock, SystemClock
from ..config.logging import get_logger
from ..core.constants import REPORT_CACHE_MAX_ENTRIES, REPORT_CACHE_TTL_SECONDS
from ..core.enums import AggregationKind, ScopeKind
from ..scope.model import CallerScope
from .model import DateRange

logger = get_logger(__name__)

_ALL_UNITS = ("units", "*")


@dataclass(frozen=True)
class CacheKey:
    scope_kind: ScopeKind
    scope_id: str
    unit_ids: FrozenSet[int]
    member_id: Optional[int]
    start: date
    end: date
    aggregation: AggregationKind
    participant_filter: Optional[int] = None

    @classmethod
    def for_report(
        cls,
        scope: CallerScope,
        date_range: DateRange,
        aggregation: AggregationKind,
        participant_id: Optional[int] = None,
    ) -> "CacheKey":
        return cls(
            scope_kind=scope.kind,
            scope_id=scope.scope_id,
            unit_ids=frozenset(scope.unit_ids),
            member_id=scope.member_id,
            start=date_range.start,
            end=date_range.end,
            aggregation=aggregation,
            participant_filter=None if participant_id is None else int(participant_id),
        )

    def buckets(self) -> Tuple[Hashable, ...]:
        if self.scope_kind == ScopeKind.ALL:
            return (_ALL_UNITS,)
        out: list[Hashable] = [("units", u) for u in sorted(self.unit_ids)]
        if self.member_id is not None:
            out.append(("member", self.member_id))
        return tuple(out)


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    value: Any
    created_at: datetime
    ttl: timedelta

    def is_fresh(self, now: datetime) -> bool:
        return now - self.created_at < self.ttl


class AggregationCache:
    def __init__(
        self,
        clock: Optional[Clock] = None,
        *,
        default_ttl: timedelta | int | float = REPORT_CACHE_TTL_SECONDS,
        max_entries: int = REPORT_CACHE_MAX_ENTRIES,
    ):
        self._clock = clock or SystemClock()
        if not isinstance(default_ttl, timedelta):
            default_ttl = timedelta(seconds=float(default_ttl))
        self._default_ttl = default_ttl
        self._max_entries = max(int(max_entries), 1)
        self._lock = threading.RLock()
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._index: Dict[Hashable, Set[CacheKey]] = {}
        self._versions: Dict[Hashable, int] = {}
        self._generation = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def get(self, key: CacheKey) -> Optional[Any]:
        now = self._clock.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(now):
                self._drop(key)
                return None
            return entry.value

    def get_or_compute(
        self,
        key: CacheKey,
        compute: Callable[[], Any],
        ttl: timedelta | int | float | None = None,
    ) -> Any:
        now = self._clock.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(now):
                return entry.value
            if entry is not None:
                self._drop(key)
            self._sweep(now)
            snapshot = self._snapshot(key)

        # Computed outside the lock: concurrent misses may compute twice.
        value = compute()

        if ttl is None:
            ttl = self._default_ttl
        elif not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=float(ttl))

        with self._lock:
            if self._snapshot(key) != snapshot:
                logger.debug("discarding value for %s: invalidated during compute", key.scope_id)
                return value
            self._drop(key)
            while len(self._entries) >= self._max_entries:
                # Insertion order: the first key is the oldest entry.
                self._drop(next(iter(self._entries)))
            self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock.now(), ttl=ttl)
            for bucket in key.buckets():
                self._index.setdefault(bucket, set()).add(key)
        return value

    def invalidate(self, *, unit_id: Optional[int] = None, participant_id: Optional[int] = None) -> int:
        """Drop every entry whose scope may include the unit or participant.

        Wildcard (all-units) entries are always dropped.
        """
        buckets: list[Hashable] = [_ALL_UNITS]
        if unit_id is not None:
            buckets.append(("units", int(unit_id)))
        if participant_id is not None:
            buckets.append(("member", int(participant_id)))

        removed = 0
        with self._lock:
            for bucket in buckets:
                self._versions[bucket] = self._versions.get(bucket, 0) + 1
                for key in list(self._index.get(bucket, ())):
                    if key in self._entries:
                        self._drop(key)
                        removed += 1
        if removed:
            logger.debug("invalidated %d cached reports (unit=%s, participant=%s)", removed, unit_id, participant_id)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
            self._index.clear()

    def _snapshot(self, key: CacheKey) -> Tuple[int, ...]:
        return (self._generation,) + tuple(self._versions.get(b, 0) for b in key.buckets())

    def _sweep(self, now: datetime) -> int:
        """Drop every expired entry. Caller holds the lock."""
        expired = [k for k, e in self._entries.items() if not e.is_fresh(now)]
        for k in expired:
            self._drop(k)
        return len(expired)

    def _drop(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        for bucket in key.buckets():
            keys = self._index.get(bucket)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._index[bucket]
