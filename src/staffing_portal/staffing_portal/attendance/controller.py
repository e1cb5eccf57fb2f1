from __future__ import annotations

import csv
import hmac
import io
from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import civil_date_of, now_utc, parse_iso_date
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ADMIN_ROLES, ATTENDANCE_ROLES
from ..core.http import current_user_id, error_response, login_required, roles_required, to_jsonable
from ..notifications.dispatcher import dispatch_events
from ..reports.service import EXPORT_FIELDS
from ..container import Container


def _float_or_none(value):
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _respond(result, *, status: int = 200):
        if not result.ok:
            return error_response(result)
        dispatch_events(container.notifier, result.effects)
        return jsonify({"success": True, "data": to_jsonable(result.value)}), status

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @roles_required(ATTENDANCE_ROLES, "Only staff and finance users can check in")
    def check_in():
        payload = request.get_json(silent=True) or {}
        result = service.check_in(
            current_user_id(),
            work_location=payload.get("workLocation") or payload.get("work_location"),
            latitude=_float_or_none(payload.get("latitude")),
            longitude=_float_or_none(payload.get("longitude")),
            address=payload.get("address"),
            notes=payload.get("notes"),
            late_reason=payload.get("lateReason") or payload.get("late_reason"),
        )
        return _respond(result, status=201)

    @app.route("/api/attendance/location", methods=["POST"], endpoint="attendance_location")
    @login_required
    def record_location():
        payload = request.get_json(silent=True) or {}
        session_id = payload.get("sessionId") or payload.get("session_id")
        if not session_id:
            return jsonify({"error": "InvalidInput", "message": "Session ID is required"}), 400

        result = service.record_location(
            int(session_id),
            current_user_id(),
            latitude=_float_or_none(payload.get("latitude")),
            longitude=_float_or_none(payload.get("longitude")),
            address=payload.get("address"),
            accuracy=_float_or_none(payload.get("accuracy")),
        )
        return _respond(result, status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def check_out():
        payload = request.get_json(silent=True) or {}
        result = service.check_out(
            current_user_id(),
            latitude=_float_or_none(payload.get("latitude")),
            longitude=_float_or_none(payload.get("longitude")),
            address=payload.get("address"),
            notes=payload.get("notes"),
        )
        return _respond(result)

    @app.route("/api/attendance/current", methods=["GET"], endpoint="attendance_current")
    @login_required
    def current():
        return jsonify(to_jsonable(service.get_current(current_user_id())))

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        limit = request.args.get("limit", type=int) or DEFAULT_HISTORY_LIMIT
        return jsonify({"sessions": to_jsonable(service.get_history(current_user_id(), limit=limit))})

    @app.route("/api/attendance/auto-checkout", methods=["POST"], endpoint="attendance_auto_checkout")
    def auto_checkout():
        secret = app.config.get("CRON_SECRET") or ""
        supplied = request.headers.get("Authorization", "")
        if not secret or not hmac.compare_digest(supplied, f"Bearer {secret}"):
            return jsonify({"error": "Unauthorized"}), 401

        result = service.auto_checkout()
        if not result.ok:
            return error_response(result)
        dispatch_events(container.notifier, result.effects)

        report = result.value
        return jsonify(
            {
                "success": True,
                "message": f"Auto-checked out {report.processed} sessions",
                "processed": report.processed,
                "results": to_jsonable(report.results),
            }
        )

    def _write_export_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance/export.csv", methods=["GET"], endpoint="attendance_export_csv")
    @roles_required(ADMIN_ROLES)
    def export_csv():
        today = civil_date_of(now_utc())
        try:
            start = parse_iso_date(request.args.get("start") or (today - timedelta(days=30)).isoformat())
            end = parse_iso_date(request.args.get("end") or today.isoformat())
        except ValueError:
            return jsonify({"error": "InvalidRange", "message": "Dates must be YYYY-MM-DD"}), 400
        if end < start:
            return jsonify({"error": "InvalidRange", "message": "End date must be after or equal to start date"}), 400

        data = container.export_service.build_export(
            start=start,
            end=end,
            user_id=request.args.get("user_id", type=int),
        )
        filename = f"attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_export_csv(data=data, filename=filename)
