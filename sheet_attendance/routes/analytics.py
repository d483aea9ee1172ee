from flask import Blueprint, current_app, jsonify, request

from ..integrations.analytics import ALL, attendance_summary
from ..integrations.errors import SheetsError, classify_error
from . import services

URL_PREFIX = "/analytics"
bp = Blueprint("analytics", __name__)


@bp.get("/")
def index():
    app = current_app
    sheet = request.args.get("sheet") or app.config.get("STUDENTS_SHEET", "Students")
    school = request.args.get("school") or ALL
    class_ = request.args.get("class") or ALL
    date = request.args.get("date") or ALL
    try:
        grid = services().client.fetch_range(sheet, app.config.get("DEFAULT_RANGE", "A1:Z1000"))
    except SheetsError as exc:
        app.logger.exception("Failed to load attendance grid", extra={"sheet": sheet})
        return jsonify({"error": classify_error(exc)}), 502

    summary = attendance_summary(grid, school=school, class_=class_, date=date)
    summary["fromSample"] = grid.from_sample
    app.logger.debug(
        "Analytics prepared",
        extra={
            "sheet": sheet,
            "dates": len(summary["trend"]),
            "students": len(summary["students"]),
        },
    )
    return jsonify(summary)
