from __future__ import annotations

import csv
import io
from datetime import date, timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_user_id, error_response, login_required
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AggregationKind
from ..core.exceptions import DomainError, StoreError, ValidationError
from ..container import Container
from .model import REPORT_FIELDNAMES, AggregatedStat


def _parse_range(today: date) -> tuple[date, date]:
    try:
        end = parse_iso_date(request.args["end"]) if request.args.get("end") else today
        start = (
            parse_iso_date(request.args["start"])
            if request.args.get("start")
            else end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        )
    except ValueError:
        raise ValidationError("dates must use the YYYY-MM-DD format") from None
    return start, end


def _parse_kind():
    value = request.args.get("kind")
    if not value:
        return None
    try:
        return AggregationKind(value)
    except ValueError:
        raise ValidationError("kind must be one of per_participant, per_unit, system_wide") from None


def _parse_participant():
    value = request.args.get("participant_id")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError("participant_id must be an integer") from None


def _stat_json(s: AggregatedStat) -> dict:
    return {
        "kind": s.kind.value,
        "scope_id": s.scope_id,
        "label": s.label,
        "nickname": s.nickname,
        "total_activities": s.total_activities,
        "participants": s.participants,
        "active_participants": s.active_participants,
        "expected": s.expected,
        "present": s.counts.present,
        "late": s.counts.late,
        "absent": s.counts.absent,
        "excused": s.counts.excused,
        "unrecorded": s.unrecorded,
        "rate": s.rate,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/attendance", methods=["GET"], endpoint="api_attendance_report")
    @login_required
    def api_attendance_report():
        try:
            start, end = _parse_range(container.clock.now().date())
            scope = container.scope_resolver.resolve_scope(current_user_id())
            stats = container.report_service.get_attendance_report(
                scope, start, end, kind=_parse_kind(), participant_id=_parse_participant()
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify(
            {
                "success": True,
                "scope": scope.kind.value,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "stats": [_stat_json(s) for s in stats],
            }
        )

    @app.route("/api/reports/attendance.csv", methods=["GET"], endpoint="api_attendance_report_csv")
    @login_required
    def api_attendance_report_csv():
        try:
            start, end = _parse_range(container.clock.now().date())
            scope = container.scope_resolver.resolve_scope(current_user_id())
            rows = container.report_service.export_report_rows(
                scope, start, end, kind=_parse_kind(), participant_id=_parse_participant()
            )
        except (DomainError, StoreError) as e:
            return error_response(e)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow(row.as_dict())

        # BOM so spreadsheet apps detect UTF-8 names.
        csv_bytes = out.getvalue().encode("utf-8-sig")
        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
