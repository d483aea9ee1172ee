from datetime import datetime

import pytz
from flask import Blueprint, current_app, jsonify, request

from ..integrations.analytics import session_summary
from ..integrations.errors import SheetsError, classify_error
from ..utils.columns import is_date_header
from . import outcome_response, services

URL_PREFIX = "/attendance"
bp = Blueprint("attendance", __name__)

STATUS_OPTIONS = ("Present", "Absent")


def _sheet(payload=None) -> str:
    payload = payload or {}
    return (
        payload.get("sheet")
        or request.args.get("sheet")
        or current_app.config.get("STUDENTS_SHEET", "Students")
    )


def _today() -> str:
    tz_name = current_app.config.get("TZ", "Asia/Kolkata")
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        current_app.logger.warning("Invalid timezone '%s'; defaulting to UTC", tz_name)
        tz = pytz.UTC
    return datetime.now(tz).date().isoformat()


@bp.get("/dates")
def dates():
    sheet = _sheet()
    try:
        found = services().writer.existing_date_columns(sheet)
    except SheetsError as exc:
        current_app.logger.exception("Error checking existing dates", extra={"sheet": sheet})
        return jsonify({"error": classify_error(exc)}), 502
    return jsonify({"sheet": sheet, "dates": found})


@bp.post("/columns")
def add_column():
    payload = request.get_json(silent=True) or {}
    date_str = (payload.get("date") or _today()).strip()
    if not is_date_header(date_str):
        return jsonify({"error": "Date must be formatted as YYYY-MM-DD"}), 400
    outcome = services().writer.add_date_column(_sheet(payload), date_str)
    return outcome_response(outcome, created=not outcome.to_dict().get("isExisting", True))


@bp.put("/<student_id>")
def update_one(student_id: str):
    payload = request.get_json(silent=True) or {}
    column = (payload.get("column") or "").strip().upper()
    status = (payload.get("status") or "").strip()
    if not column or not status:
        return jsonify({"error": "Both column and status are required"}), 400
    outcome = services().writer.update_attendance_by_student_id(_sheet(payload), student_id, column, status)
    return outcome_response(outcome)


@bp.post("/")
def record():
    """Take the register for one date.

    Body: ``{"date": "YYYY-MM-DD", "statuses": [{"id": "1", "status": "Present"}, ...]}``
    """
    app = current_app
    payload = request.get_json(silent=True) or {}
    date_str = (payload.get("date") or _today()).strip()
    if not is_date_header(date_str):
        return jsonify({"error": "Date must be formatted as YYYY-MM-DD"}), 400

    entries = []
    for item in payload.get("statuses") or []:
        student_id = str(item.get("id", "")).strip()
        status = str(item.get("status", "")).strip()
        if not student_id or status not in STATUS_OPTIONS:
            continue
        entries.append((student_id, status))
    if not entries:
        return jsonify({"error": "No students were selected for update."}), 400

    sheet = _sheet(payload)
    result = services().writer.record_attendance(sheet, date_str, entries)
    result["summary"] = session_summary([status for _, status in entries])

    if result["status"] == "failed":
        result["message"] = f"Failed to record attendance. {result['column'].get('error', '')}".strip()
        code = 502
    elif result["simulated"]:
        signed_in = services().auth.is_signed_in()
        listing = ", ".join(f"{sid}: {status}" for sid, status in entries)
        if signed_in:
            result["message"] = (
                "DEMO MODE: Your Google account doesn't have permission to write to this sheet. "
                f"Attendance for {date_str} would be recorded as: {listing}"
            )
        else:
            result["message"] = (
                f"DEMO MODE: Sign in with Google to save attendance. For now, attendance for "
                f"{date_str} would be recorded as: {listing}"
            )
        code = 202
    elif result["partial"]:
        result["message"] = (
            f"PARTIAL UPDATE: {result['applied']} of {len(entries)} attendance records for "
            f"{date_str} were saved; the rest could not be written."
        )
        code = 207
    else:
        created = not result["column"].get("isExisting")
        result["message"] = (
            f"Attendance for {date_str} recorded successfully! New column was created."
            if created
            else f"Attendance for {date_str} updated successfully! Existing column was updated."
        )
        code = 200

    app.logger.info(
        "Attendance submission handled",
        extra={"date": date_str, "status": result["status"], "students": len(entries)},
    )
    return jsonify(result), code
