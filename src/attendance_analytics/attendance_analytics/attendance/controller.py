from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_instant
from ..common.web import current_user_id, error_response, login_required
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ParticipationStatus
from ..core.exceptions import DomainError, StoreError, ValidationError
from ..container import Container
from .model import CheckInResult, ParticipationRecord


def _parse_status(value) -> ParticipationStatus:
    try:
        return ParticipationStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("status must be one of present, late, absent, excused") from None


def _parse_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None


def _result_json(result: CheckInResult) -> dict:
    return {
        "success": True,
        "record_id": result.record_id,
        "activity_id": result.activity_id,
        "participant_id": result.participant_id,
        "status": result.status.value,
        "check_in_time": format_instant(result.check_in_time),
    }


def _record_json(r: ParticipationRecord) -> dict:
    return {
        "record_id": r.record_id,
        "activity_id": r.activity_id,
        "participant_id": r.participant_id,
        "status": r.status.value,
        "check_in_time": format_instant(r.check_in_time),
        "recorded_by": r.recorded_by.value,
        "reviewer_id": r.reviewer_id,
        "notes": r.notes,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities/<int:activity_id>/check-in", methods=["POST"], endpoint="api_check_in")
    @login_required
    def api_check_in(activity_id: int):
        try:
            result = container.check_in_service.check_in(activity_id, current_user_id())
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify(_result_json(result)), 201

    @app.route("/api/activities/<int:activity_id>/attendance", methods=["POST"], endpoint="api_mark_attendance")
    @login_required
    def api_mark_attendance(activity_id: int):
        """Reviewer attendance sheet: record a status for one participant."""
        data = request.get_json(silent=True) or {}
        try:
            reviewer_id = current_user_id()
            scope = container.scope_resolver.resolve_scope(reviewer_id)
            result = container.check_in_service.mark_attendance(
                activity_id,
                _parse_int(data.get("participant_id"), "participant_id"),
                _parse_status(data.get("status")),
                reviewer_id=reviewer_id,
                scope=scope,
                notes=data.get("notes"),
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify(_result_json(result)), 201

    @app.route("/api/attendance/<int:record_id>", methods=["PATCH"], endpoint="api_override_attendance")
    @login_required
    def api_override_attendance(record_id: int):
        data = request.get_json(silent=True) or {}
        try:
            reviewer_id = current_user_id()
            scope = container.scope_resolver.resolve_scope(reviewer_id)
            record = container.check_in_service.override_record(
                record_id,
                status=_parse_status(data.get("status")),
                notes=data.get("notes"),
                reviewer_id=reviewer_id,
                scope=scope,
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "record": _record_json(record)})

    @app.route("/api/me/attendance", methods=["GET"], endpoint="api_my_attendance")
    @login_required
    def api_my_attendance():
        try:
            limit = _parse_int(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "limit")
            records = container.check_in_service.get_history(current_user_id(), limit=limit)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "records": [_record_json(r) for r in records]})
