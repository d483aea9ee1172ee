from flask import Blueprint, current_app, jsonify, request

from ..integrations.errors import SheetsError
from ..integrations.records import (
    StudentRecord,
    generate_student_id,
    get_student_data,
    normalize_phone,
    student_to_row,
)
from ..integrations.writer import Applied
from . import outcome_response, services

URL_PREFIX = "/students"
bp = Blueprint("students", __name__)

REQUIRED_FIELDS = ("name", "school", "class")


def _sheet() -> str:
    return request.args.get("sheet") or current_app.config.get("STUDENTS_SHEET", "Students")


def _header(sheet_name: str):
    try:
        return services().client.fetch_range(sheet_name, "A1:Z1").header
    except SheetsError:
        current_app.logger.warning("Header lookup failed; using default column order", extra={"sheet": sheet_name})
        return []


def _record_from_request(student_id: str = "") -> StudentRecord:
    payload = request.get_json(silent=True) or {}
    record = StudentRecord.from_dict(payload)
    if student_id:
        record.id = student_id
    return record


def _missing(record: StudentRecord):
    values = {"name": record.name, "school": record.school, "class": record.class_}
    return [f for f in REQUIRED_FIELDS if not values[f]]


@bp.get("/")
def index():
    app = current_app
    sheet = _sheet()
    cell_range = request.args.get("range") or app.config.get("DEFAULT_RANGE", "A1:Z1000")
    try:
        students = get_student_data(services().client, sheet, cell_range)
    except SheetsError as exc:
        app.logger.exception("Failed to load students", extra={"sheet": sheet})
        return jsonify({"error": str(exc)}), 502

    payload = []
    for student in students:
        item = student.to_dict()
        item["mobileDigits"] = normalize_phone(student.mobile_number)
        payload.append(item)
    app.logger.debug("Students listed", extra={"sheet": sheet, "count": len(payload)})
    return jsonify({"sheet": sheet, "students": payload})


@bp.get("/next-id")
def next_id():
    return jsonify({"studentId": generate_student_id(services().client, _sheet())})


@bp.post("/")
def create():
    app = current_app
    sheet = _sheet()
    record = _record_from_request()
    if _missing(record):
        return jsonify({"error": "Please fill in all required fields", "missing": _missing(record)}), 400
    if not record.id:
        record.id = generate_student_id(services().client, sheet)

    outcome = services().writer.append_row(sheet, student_to_row(record, _header(sheet)))
    app.logger.info(
        "Add student handled",
        extra={"student_id": record.id, "status": outcome.to_dict()["status"]},
    )
    if isinstance(outcome, Applied):
        message = f"Student {record.name} added with ID {record.id}."
    else:
        message = f"DEMO MODE: student {record.name} was not added to the sheet."
    return outcome_response(outcome, message, created=True)


@bp.put("/<student_id>")
def update(student_id: str):
    app = current_app
    record = _record_from_request(student_id)
    if _missing(record):
        return jsonify({"error": "Please fill in all required fields", "missing": _missing(record)}), 400

    writer = services().writer
    row = student_to_row(record, _header(writer.students_sheet), fill=None)
    outcome = writer.update_student_by_id(student_id, row)
    app.logger.info(
        "Update student handled",
        extra={"student_id": student_id, "status": outcome.to_dict()["status"]},
    )
    if isinstance(outcome, Applied):
        message = f"Student {student_id} updated."
    else:
        message = f"DEMO MODE: student {student_id} was not updated in the sheet."
    return outcome_response(outcome, message)


@bp.delete("/<student_id>")
def delete(student_id: str):
    app = current_app
    outcome = services().writer.delete_student_by_id(student_id)
    app.logger.info(
        "Delete student handled",
        extra={"student_id": student_id, "status": outcome.to_dict()["status"]},
    )
    if isinstance(outcome, Applied):
        message = f"Student {student_id} deleted."
    else:
        message = f"DEMO MODE: student {student_id} was not deleted from the sheet."
    return outcome_response(outcome, message)
