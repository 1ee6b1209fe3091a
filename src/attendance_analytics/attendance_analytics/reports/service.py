from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date
from typing import List, Optional

from ..common.validators import require_positive_timeout
from ..config.logging import get_logger
from ..core.enums import AggregationKind, ScopeKind
from ..core.exceptions import AggregationTimeoutError, AuthorizationError
from ..scope.model import CallerScope
from .aggregator import BulkAggregator, default_kind_for
from .cache import AggregationCache, CacheKey
from .formatter import ReportFormatter
from .model import AggregatedStat, AttendanceReport, DateRange, ReportRow

logger = get_logger(__name__)


class ReportService:
    """Scope-checked, cached access to attendance aggregations.

    With a timeout, each aggregation runs on its own short-lived worker. On
    expiry the worker is told to stop before its next store call and left to
    finish alone, so an abandoned aggregation never holds up later reports.
    """

    def __init__(
        self,
        aggregator: BulkAggregator,
        cache: AggregationCache,
        *,
        formatter: Optional[ReportFormatter] = None,
        default_timeout: Optional[float] = None,
    ):
        self._aggregator = aggregator
        self._cache = cache
        self._formatter = formatter or ReportFormatter()
        self._default_timeout = default_timeout

    def get_attendance_report(
        self,
        scope: CallerScope,
        start: date,
        end: date,
        *,
        kind: Optional[AggregationKind] = None,
        participant_id: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[AggregatedStat]:
        report = self._load(scope, start, end, kind=kind, participant_id=participant_id, timeout=timeout)
        return list(report.stats)

    def export_report_rows(
        self,
        scope: CallerScope,
        start: date,
        end: date,
        *,
        kind: Optional[AggregationKind] = None,
        participant_id: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[ReportRow]:
        report = self._load(scope, start, end, kind=kind, participant_id=participant_id, timeout=timeout)
        # A system-wide report is already a single total.
        with_totals = scope.is_multi_scope and report.kind != AggregationKind.SYSTEM_WIDE
        return self._formatter.format_report(report, with_totals=with_totals)

    def _load(
        self,
        scope: CallerScope,
        start: date,
        end: date,
        *,
        kind: Optional[AggregationKind],
        participant_id: Optional[int],
        timeout: Optional[float],
    ) -> AttendanceReport:
        date_range = DateRange.of(start, end)
        kind = kind or default_kind_for(scope)
        timeout = require_positive_timeout(timeout if timeout is not None else self._default_timeout)
        if participant_id is not None and scope.kind == ScopeKind.SELF and int(participant_id) != scope.member_id:
            raise AuthorizationError("not allowed to view another participant's attendance")

        key = CacheKey.for_report(scope, date_range, kind, participant_id)
        return self._cache.get_or_compute(
            key,
            lambda: self._compute(scope, date_range, kind, participant_id, timeout),
        )

    def _compute(
        self,
        scope: CallerScope,
        date_range: DateRange,
        kind: AggregationKind,
        participant_id: Optional[int],
        timeout: Optional[float],
    ) -> AttendanceReport:
        if timeout is None:
            return self._aggregator.build_report(scope, date_range, kind, participant_id=participant_id)

        cancel = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="report")
        future = executor.submit(
            self._aggregator.build_report,
            scope,
            date_range,
            kind,
            participant_id=participant_id,
            cancel=cancel,
        )
        executor.shutdown(wait=False)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            cancel.set()
            logger.warning(
                "aggregation %s for %s (%s..%s) exceeded %.1fs",
                kind.value,
                scope.scope_id,
                date_range.start,
                date_range.end,
                timeout,
            )
            raise AggregationTimeoutError(f"report did not finish within {timeout:g} seconds") from None
