from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.constants import TOTAL_ROW_LABEL
from .model import AggregatedStat, AttendanceReport, ReportRow, StatusCounts, attendance_rate


class ReportFormatter:
    """Turns aggregated stats into ordered rows for export."""

    def __init__(self, *, total_label: str = TOTAL_ROW_LABEL):
        self._total_label = total_label

    def format(
        self,
        stats: Sequence[AggregatedStat],
        *,
        with_totals: bool = False,
        activity_count: Optional[int] = None,
    ) -> List[ReportRow]:
        rows = [self._row(s) for s in stats]
        if with_totals:
            rows.append(self._totals(stats, activity_count))
        return rows

    def format_report(self, report: AttendanceReport, *, with_totals: bool) -> List[ReportRow]:
        return self.format(report.stats, with_totals=with_totals, activity_count=report.activity_count)

    @staticmethod
    def _row(s: AggregatedStat) -> ReportRow:
        return ReportRow(
            label=s.label,
            total_activities=s.total_activities,
            participants=s.participants,
            active_participants=s.active_participants,
            expected=s.expected,
            present=s.counts.present,
            late=s.counts.late,
            absent=s.counts.absent,
            excused=s.counts.excused,
            unrecorded=s.unrecorded,
            rate=s.rate,
            nickname=s.nickname,
            scope_id=s.scope_id,
        )

    def _totals(self, stats: Sequence[AggregatedStat], activity_count: Optional[int]) -> ReportRow:
        counts = StatusCounts()
        for s in stats:
            counts = counts + s.counts
        expected = sum(s.expected for s in stats)
        unrecorded = sum(s.unrecorded for s in stats)
        if activity_count is None:
            activity_count = sum(s.total_activities for s in stats)

        # Rate over the summed counts, not an average of row rates.
        return ReportRow(
            label=self._total_label,
            total_activities=activity_count,
            participants=sum(s.participants for s in stats),
            active_participants=sum(s.active_participants for s in stats),
            expected=expected,
            present=counts.present,
            late=counts.late,
            absent=counts.absent,
            excused=counts.excused,
            unrecorded=unrecorded,
            rate=attendance_rate(counts.attended, expected),
            is_total=True,
        )
