from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_instant
from ..common.web import current_user_id, error_response, login_required
from ..core.constants import DEFAULT_PENDING_LIMIT
from ..core.exceptions import DomainError, StoreError, ValidationError
from ..container import Container
from .model import LeaveRequest


def _request_json(r: LeaveRequest) -> dict:
    return {
        "request_id": r.request_id,
        "activity_id": r.activity_id,
        "participant_id": r.participant_id,
        "reason": r.reason,
        "status": r.status.value,
        "requested_at": format_instant(r.requested_at),
        "decided_by": r.decided_by,
        "decided_at": format_instant(r.decided_at),
        "reviewer_note": r.reviewer_note,
    }


def _parse_limit(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("limit must be an integer") from None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities/<int:activity_id>/leave", methods=["POST"], endpoint="api_request_leave")
    @login_required
    def api_request_leave(activity_id: int):
        data = request.get_json(silent=True) or {}
        try:
            leave = container.leave_service.request_leave(activity_id, current_user_id(), data.get("reason"))
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "request": _request_json(leave)}), 201

    @app.route("/api/leave-requests", methods=["GET"], endpoint="api_pending_leave")
    @login_required
    def api_pending_leave():
        try:
            scope = container.scope_resolver.resolve_scope(current_user_id())
            limit = _parse_limit(request.args.get("limit", DEFAULT_PENDING_LIMIT))
            pending = container.leave_service.list_pending(scope, limit=limit)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "requests": [_request_json(r) for r in pending]})

    @app.route("/api/leave-requests/<int:request_id>/approve", methods=["POST"], endpoint="api_approve_leave")
    @login_required
    def api_approve_leave(request_id: int):
        data = request.get_json(silent=True) or {}
        try:
            reviewer_id = current_user_id()
            scope = container.scope_resolver.resolve_scope(reviewer_id)
            leave = container.leave_service.approve_leave(
                request_id, reviewer_id=reviewer_id, scope=scope, note=data.get("note")
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "request": _request_json(leave)})

    @app.route("/api/leave-requests/<int:request_id>/reject", methods=["POST"], endpoint="api_reject_leave")
    @login_required
    def api_reject_leave(request_id: int):
        data = request.get_json(silent=True) or {}
        try:
            reviewer_id = current_user_id()
            scope = container.scope_resolver.resolve_scope(reviewer_id)
            leave = container.leave_service.reject_leave(
                request_id, reviewer_id=reviewer_id, scope=scope, note=data.get("note")
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"success": True, "request": _request_json(leave)})
