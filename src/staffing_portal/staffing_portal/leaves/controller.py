from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import civil_date_of, now_utc, parse_iso_date
from ..core.enums import ErrorKind, HalfDayType, LEAVE_APPROVER_ROLES, LeaveStatus
from ..core.http import current_role, current_user_id, error_response, login_required, to_jsonable
from ..notifications.dispatcher import dispatch_events
from ..container import Container
from .model import LeaveUpdate, NewLeaveRequest


def _bad_input(message: str):
    return jsonify({"error": ErrorKind.INVALID_LEAVE_INPUT.value, "message": message}), 400


def _optional_date(value):
    return parse_iso_date(value) if value else None


def _half_day_type(value) -> Optional[HalfDayType]:
    return HalfDayType(value) if value else None


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    def _respond(result, *, status: int = 200):
        if not result.ok:
            return error_response(result)
        dispatch_events(container.notifier, result.effects)
        return jsonify({"success": True, "data": to_jsonable(result.value)}), status

    @app.route("/api/leaves", methods=["GET"], endpoint="list_leaves")
    @login_required
    def list_leaves():
        if request.args.get("status") == LeaveStatus.PENDING.value:
            if current_role() not in LEAVE_APPROVER_ROLES:
                return jsonify({"error": ErrorKind.FORBIDDEN.value, "message": "Forbidden"}), 403
            leaves = service.list_pending()
        else:
            leaves = service.list_my_leaves(user_id=current_user_id())
        return jsonify({"leaves": to_jsonable(leaves)})

    @app.route("/api/leaves", methods=["POST"], endpoint="create_leave")
    @login_required
    def create_leave():
        payload = request.get_json(silent=True) or {}
        try:
            new = NewLeaveRequest(
                leave_type=payload.get("leaveType") or payload.get("leave_type"),
                start_date=parse_iso_date(payload.get("startDate") or payload.get("start_date") or ""),
                end_date=parse_iso_date(payload.get("endDate") or payload.get("end_date") or ""),
                reason=payload.get("reason") or "",
                is_half_day=bool(payload.get("isHalfDay") or payload.get("is_half_day")),
                half_day_type=_half_day_type(payload.get("halfDayType") or payload.get("half_day_type")),
                notes=payload.get("notes"),
            )
        except ValueError as e:
            return _bad_input(f"Invalid leave request: {e}")

        result = service.create_leave(current_role=current_role(), user_id=current_user_id(), request=new)
        return _respond(result, status=201)

    @app.route("/api/leaves/<int:request_id>", methods=["PATCH"], endpoint="update_leave")
    @login_required
    def update_leave(request_id: int):
        payload = request.get_json(silent=True) or {}
        is_half_day = payload.get("isHalfDay", payload.get("is_half_day"))
        try:
            update = LeaveUpdate(
                leave_type=payload.get("leaveType") or payload.get("leave_type"),
                start_date=_optional_date(payload.get("startDate") or payload.get("start_date")),
                end_date=_optional_date(payload.get("endDate") or payload.get("end_date")),
                is_half_day=None if is_half_day is None else bool(is_half_day),
                half_day_type=_half_day_type(payload.get("halfDayType") or payload.get("half_day_type")),
                reason=payload.get("reason"),
                notes=payload.get("notes"),
            )
        except ValueError as e:
            return _bad_input(f"Invalid leave update: {e}")

        result = service.update_leave(user_id=current_user_id(), request_id=request_id, update=update)
        return _respond(result)

    @app.route("/api/leaves/<int:request_id>", methods=["DELETE"], endpoint="cancel_leave")
    @login_required
    def cancel_leave(request_id: int):
        result = service.cancel_leave(current_role=current_role(), user_id=current_user_id(), request_id=request_id)
        return _respond(result)

    @app.route("/api/leaves/<int:request_id>/approve", methods=["POST"], endpoint="decide_leave")
    @login_required
    def decide_leave(request_id: int):
        payload = request.get_json(silent=True) or {}
        result = service.decide_leave(
            current_role=current_role(),
            approver_id=current_user_id(),
            request_id=request_id,
            action=payload.get("action") or "",
            rejection_reason=payload.get("rejectionReason") or payload.get("rejection_reason"),
        )
        return _respond(result)

    @app.route("/api/leaves/balances", methods=["GET"], endpoint="leave_balances")
    @login_required
    def balances():
        year = request.args.get("year", type=int) or civil_date_of(now_utc()).year
        return jsonify({"year": year, "balances": to_jsonable(service.get_balances(user_id=current_user_id(), year=year))})
