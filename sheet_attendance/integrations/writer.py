"""Mutating operations against the roster workbook.

Every operation follows the same shape: look up what is needed with the
read client, try the real write through the authorised gspread client, and
fall back to a simulated outcome when there is no write-capable session or
the write is rejected.  Nothing here raises to the caller; failures come
back as :class:`Failed`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..utils.columns import column_index_to_letter, is_date_header, resolve_columns
from .auth import AuthSession
from .errors import AUTH_MESSAGE, SheetsError, StudentNotFoundError, classify_error, error_kind
from .sheets_client import SheetGrid, SheetsClient

log = logging.getLogger(__name__)

FULL_RANGE = "A1:Z1000"
HEADER_RANGE = "A1:Z1"
USER_ENTERED = {"valueInputOption": "USER_ENTERED"}


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Applied:
    operation: str
    details: Dict[str, Any] = field(default_factory=dict)
    simulated = False

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "applied", "operation": self.operation, "simulated": False, **self.details}


@dataclass(frozen=True)
class Simulated:
    operation: str
    details: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    simulated = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "simulated",
            "operation": self.operation,
            "simulated": True,
            "reason": self.reason,
            **self.details,
        }


@dataclass(frozen=True)
class Failed:
    operation: str
    reason: str
    kind: str = "error"
    simulated = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "failed",
            "operation": self.operation,
            "simulated": False,
            "error": self.reason,
            "kind": self.kind,
        }


WriteOutcome = Union[Applied, Simulated, Failed]


@dataclass
class StudentRow:
    row_index: int  # 1-based sheet row
    id_column: int
    header: List[str]
    grid: SheetGrid


def _overlay(existing: Sequence[str], row_data: Sequence[Optional[str]]) -> List[str]:
    """``None`` in ``row_data`` keeps the cell already in the sheet."""
    return [
        (existing[i] if i < len(existing) else "") if value is None else value
        for i, value in enumerate(row_data)
    ]


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class WriteCoordinator:
    def __init__(self, client: SheetsClient, auth: AuthSession, students_sheet: str = "Students"):
        self.client = client
        self.auth = auth
        self.students_sheet = students_sheet

    def _spreadsheet(self):
        return self.auth.spreadsheet(self.client.spreadsheet_id)

    def _not_signed_in(self, operation: str) -> str:
        log.info("%s: not signed in with write access; using simulation mode.", operation)
        return "Not signed in with a write-capable Google account."

    # -- lookups ---------------------------------------------------------

    def find_student_row(self, sheet_name: str, student_id: str) -> StudentRow:
        grid = self.client.fetch_range(sheet_name, FULL_RANGE)
        if grid.from_sample:
            log.warning("Looking up student %s in sample data for %s", student_id, sheet_name)
        header = grid.header
        id_col = resolve_columns(header).id

        matches = [i for i, row in enumerate(grid) if i > 0 and id_col < len(row) and row[id_col] == student_id]
        if not matches:
            raise StudentNotFoundError(student_id)
        if len(matches) > 1:
            log.warning(
                "Duplicate student id %s on rows %s; using the first",
                student_id,
                [m + 1 for m in matches],
            )
        return StudentRow(row_index=matches[0] + 1, id_column=id_col, header=header, grid=grid)

    def existing_date_columns(self, sheet_name: str) -> List[str]:
        grid = self.client.fetch_range(sheet_name, HEADER_RANGE)
        return [h for h in grid.header if is_date_header(h)]

    # -- columns ---------------------------------------------------------

    def add_date_column(self, sheet_name: str, date_str: str) -> WriteOutcome:
        op = "add_date_column"
        try:
            headers = self.client.fetch_range(sheet_name, HEADER_RANGE).header
            if not headers:
                return Failed(op, "Could not retrieve headers")
        except SheetsError as exc:
            log.exception("Error adding/updating date column %s", date_str)
            return Failed(op, classify_error(exc), error_kind(exc))

        is_existing = date_str in headers
        column_index = headers.index(date_str) if is_existing else len(headers)
        column_letter = column_index_to_letter(column_index)
        details = {
            "columnIndex": column_index,
            "columnLetter": column_letter,
            "isExisting": is_existing,
        }

        if not self.auth.is_signed_in():
            return Simulated(op, details, self._not_signed_in(op))

        if is_existing:
            log.info('Using existing date column "%s" at %s1', date_str, column_letter)
            return Applied(op, details)
        try:
            self._spreadsheet().values_update(
                f"{sheet_name}!{column_letter}1",
                params=USER_ENTERED,
                body={"values": [[date_str]]},
            )
        except Exception as exc:
            log.exception("Adding date column %s at %s1 failed", date_str, column_letter)
            return Simulated(op, details, classify_error(exc))

        log.info('Added date column "%s" at %s1', date_str, column_letter)
        return Applied(op, details)

    def update_attendance_by_student_id(
        self, sheet_name: str, student_id: str, column_letter: str, status: str
    ) -> WriteOutcome:
        op = "update_attendance"
        try:
            found = self.find_student_row(sheet_name, student_id)
        except SheetsError as exc:
            log.warning("Attendance update for %s failed: %s", student_id, exc)
            return Failed(op, classify_error(exc), error_kind(exc))

        cell = f"{column_letter}{found.row_index}"
        details = {
            "studentId": student_id,
            "studentRowIndex": found.row_index,
            "dateColumnLetter": column_letter,
            "value": status,
        }
        if not self.auth.is_signed_in():
            return Simulated(op, details, self._not_signed_in(op))
        try:
            self._spreadsheet().values_update(
                f"{sheet_name}!{cell}", params=USER_ENTERED, body={"values": [[status]]}
            )
        except Exception as exc:
            log.exception("Updating %s for student %s failed", cell, student_id)
            return Simulated(op, details, classify_error(exc))

        log.debug('Updated %s to "%s" for student %s', cell, status, student_id)
        return Applied(op, details)

    def record_attendance(
        self, sheet_name: str, date_str: str, statuses: Sequence[Tuple[str, str]]
    ) -> Dict[str, Any]:
        """Add (or reuse) the date column, then write one status per student."""
        column = self.add_date_column(sheet_name, date_str)
        result: Dict[str, Any] = {"date": date_str, "column": column.to_dict(), "updates": []}
        if isinstance(column, Failed):
            result.update(status="failed", simulated=False)
            return result
        if isinstance(column, Simulated):
            result.update(status="simulated", simulated=True, partial=False)
            return result

        outcomes = [
            self.update_attendance_by_student_id(
                sheet_name, student_id, column.details["columnLetter"], status
            )
            for student_id, status in statuses
        ]
        result["updates"] = [o.to_dict() for o in outcomes]
        applied = sum(1 for o in outcomes if isinstance(o, Applied))
        result.update(
            status="applied" if applied == len(outcomes) else "partial",
            simulated=False,
            partial=applied != len(outcomes),
            applied=applied,
        )
        return result

    # -- rows ------------------------------------------------------------

    def append_row(self, sheet_name: str, values: List[str]) -> WriteOutcome:
        op = "append_row"
        if self.auth.is_signed_in():
            try:
                response = self._spreadsheet().values_append(
                    f"{sheet_name}!A1",
                    params={**USER_ENTERED, "insertDataOption": "INSERT_ROWS"},
                    body={"values": [values]},
                )
                log.info("Row appended to %s", sheet_name)
                return Applied(op, {"values": values, "updates": (response or {}).get("updates", {})})
            except Exception:
                log.exception("Authenticated append failed; falling back to API key.")
        else:
            log.info("Not signed in; trying API key append for %s", sheet_name)

        try:
            response = self.client.append_with_api_key(sheet_name, values)
        except Exception as exc:
            log.warning("API key append to %s rejected: %s", sheet_name, exc)
            return Simulated(op, {"values": values}, classify_error(exc))
        return Applied(op, {"values": values, "updates": (response or {}).get("updates", {})})

    def update_student_by_id(self, student_id: str, row_data: Sequence[Optional[str]]) -> WriteOutcome:
        op = "update_student"
        sheet = self.students_sheet
        try:
            found = self.find_student_row(sheet, student_id)
        except SheetsError as exc:
            log.warning("Updating student %s failed: %s", student_id, exc)
            return Failed(op, classify_error(exc), error_kind(exc))

        row_data = _overlay(found.grid[found.row_index - 1], row_data)
        last_letter = column_index_to_letter(max(len(row_data), 1) - 1)
        cell_range = f"{sheet}!A{found.row_index}:{last_letter}{found.row_index}"
        details = {"studentId": student_id, "rowIndex": found.row_index, "range": cell_range}
        if not self.auth.is_signed_in():
            return Simulated(op, details, AUTH_MESSAGE)
        try:
            self._spreadsheet().values_update(cell_range, params=USER_ENTERED, body={"values": [row_data]})
        except Exception as exc:
            log.exception("Updating student %s failed", student_id)
            return Simulated(op, details, classify_error(exc))

        log.info("Student %s updated at row %d", student_id, found.row_index)
        return Applied(op, details)

    def delete_student_by_id(self, student_id: str) -> WriteOutcome:
        """Removes the whole row; every row below shifts up by one."""
        op = "delete_student"
        sheet = self.students_sheet
        try:
            found = self.find_student_row(sheet, student_id)
        except SheetsError as exc:
            log.warning("Deleting student %s failed: %s", student_id, exc)
            return Failed(op, classify_error(exc), error_kind(exc))

        details = {"studentId": student_id, "rowIndex": found.row_index}
        if not self.auth.is_signed_in():
            return Simulated(op, details, AUTH_MESSAGE)

        sheet_id = self.client.get_sheet_metadata(sheet).get("sheetId", 0)
        body = {
            "requests": [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": sheet_id,
                            "dimension": "ROWS",
                            "startIndex": found.row_index - 1,
                            "endIndex": found.row_index,
                        }
                    }
                }
            ]
        }
        try:
            self._spreadsheet().batch_update(body)
        except Exception as exc:
            log.exception("Deleting student %s failed", student_id)
            return Simulated(op, details, classify_error(exc))

        log.info("Student %s deleted (row %d)", student_id, found.row_index)
        return Applied(op, details)
