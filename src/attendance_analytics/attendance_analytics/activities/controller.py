from __future__ import annotations

from datetime import datetime

from flask import Flask, jsonify, request

from ..common.datetime_utils import ensure_aware, format_instant
from ..common.web import current_user_id, error_response, login_required
from ..core.enums import ActivityStatus
from ..core.exceptions import DomainError, StoreError, ValidationError
from ..container import Container
from .model import ScheduledActivity


def _parse_instant(value, field_name: str):
    if value is None:
        return None
    try:
        return ensure_aware(datetime.fromisoformat(str(value)))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp") from None


def _parse_activity_status(value):
    if value is None:
        return None
    try:
        return ActivityStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("unknown activity status") from None


def _activity_json(a: ScheduledActivity) -> dict:
    return {
        "activity_id": a.activity_id,
        "unit_id": a.unit_id,
        "title": a.title,
        "starts_at": format_instant(a.starts_at),
        "ends_at": format_instant(a.ends_at),
        "location": a.location,
        "status": a.status.value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities/<int:activity_id>", methods=["PATCH"], endpoint="api_update_activity")
    @login_required
    def api_update_activity(activity_id: int):
        data = request.get_json(silent=True) or {}
        try:
            scope = container.scope_resolver.resolve_scope(current_user_id())
            activity = container.activity_admin_service.update_activity(
                activity_id,
                scope=scope,
                status=_parse_activity_status(data.get("status")),
                location=data.get("location"),
                starts_at=_parse_instant(data.get("starts_at"), "starts_at"),
                ends_at=_parse_instant(data.get("ends_at"), "ends_at"),
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "activity": _activity_json(activity)})
