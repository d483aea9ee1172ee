"""Conversion between roster rows and student records."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

from ..utils.columns import NEW_ROW_ORDER, ColumnMap, resolve_columns
from .errors import SheetsError
from .sheets_client import sample_grid

log = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class StudentRecord:
    id: str
    name: str
    class_: str
    school: str
    mobile_number: str = ""

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        return {
            "id": data["id"],
            "name": data["name"],
            "class": data["class_"],
            "school": data["school"],
            "mobileNumber": data["mobile_number"],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, str]) -> "StudentRecord":
        return cls(
            id=str(payload.get("id", "") or "").strip(),
            name=str(payload.get("name", "") or "").strip(),
            class_=str(payload.get("class", "") or "").strip(),
            school=str(payload.get("school", "") or "").strip(),
            mobile_number=str(payload.get("mobileNumber", "") or "").strip(),
        )


def _placeholder_id(ordinal: int) -> str:
    return f"S{ordinal:03d}"


def _cell(row: Sequence[str], idx: int) -> str:
    if idx < len(row) and row[idx] is not None:
        return str(row[idx])
    return ""


def row_to_student(row: Sequence[str], columns: ColumnMap, ordinal: int) -> StudentRecord:
    """``ordinal`` is the 1-based position of the row below the header."""
    row = row or []
    return StudentRecord(
        id=_cell(row, columns.id) or _placeholder_id(ordinal),
        name=_cell(row, columns.name) or f"Student {ordinal}",
        class_=_cell(row, columns.class_) or "N/A",
        school=_cell(row, columns.school) or "N/A",
        mobile_number=_cell(row, columns.mobile),
    )


def grid_to_students(grid: Sequence[Sequence[str]]) -> List[StudentRecord]:
    """One record per data row; rows with missing cells get placeholders."""
    if not grid:
        return []
    columns = resolve_columns(grid[0])
    log.debug("Column indices resolved: %s", columns.as_dict())
    return [row_to_student(row, columns, i) for i, row in enumerate(grid[1:], start=1)]


def student_to_row(
    student: StudentRecord, header: Optional[Sequence[str]] = None, fill: Optional[str] = ""
) -> List[Optional[str]]:
    """Lay a record out in the columns the given header resolves to.

    A field is only placed in a column a header rule matched, or at its
    positional default when that lies past the end of the header; columns
    the header gives to something else (dates, notes) get ``fill``.  Pass
    ``fill=None`` to mark those cells as "keep what is there" for
    :meth:`WriteCoordinator.update_student_by_id`.  Without a header the
    roster's entry order (id, name, school, class, mobile) is used.
    """
    values = {
        "id": student.id,
        "name": student.name,
        "class": student.class_,
        "school": student.school,
        "mobile": student.mobile_number,
    }
    if not header:
        return [values[field] for field in NEW_ROW_ORDER]

    columns = resolve_columns(header)
    placed: Dict[int, str] = {}
    # The first field to claim a column keeps it (e.g. a single "Phone"
    # column resolving as both id and mobile).
    for field in ("id", "name", "class", "school", "mobile"):
        idx = columns.index_of(field)
        if field not in columns.matched and idx < len(header):
            continue
        placed.setdefault(idx, values[field])
    if not placed:
        return []

    row: List[Optional[str]] = [fill] * (max(placed) + 1)
    for idx, value in placed.items():
        row[idx] = value
    return row


def parse_leading_int(value) -> Optional[int]:
    match = _LEADING_INT_RE.match(str(value or ""))
    return int(match.group(1)) if match else None


def next_student_id(grid: Sequence[Sequence[str]]) -> str:
    """``max(numeric ids in column A) + 1``; ``"1"`` for an empty roster."""
    highest = 0
    for row in grid[1:]:
        if not row:
            continue
        value = parse_leading_int(row[0])
        if value is not None and value > highest:
            highest = value
    return str(highest + 1)


def fallback_student_id() -> str:
    return str(int(time.time()))


def normalize_phone(value) -> str:
    return re.sub(r"\D", "", str(value or ""))


# ---------------------------------------------------------------------------
# Client-backed helpers
# ---------------------------------------------------------------------------


def get_student_data(client, sheet_name: str = "Students", cell_range: str = "A1:Z1000") -> List[StudentRecord]:
    """Student records for a sheet of any layout.

    An empty sheet is treated like a failed read: with sample data enabled
    the sample roster is returned, otherwise ``SheetsError`` propagates.
    """
    log.debug("Getting student data for sheet %s", sheet_name)
    grid = client.fetch_range(sheet_name, cell_range)
    if not grid:
        if not client.use_sample_data_on_error:
            raise SheetsError("No student data found in the sheet")
        log.warning("No student data found in %s; using sample data", sheet_name)
        grid = sample_grid(sheet_name)
        if len(grid) <= 1:
            raise SheetsError("No sample student data available")
    return grid_to_students(grid)


def generate_student_id(client, sheet_name: str = "Students") -> str:
    """Next sequential id, or a timestamp id when the roster can't be read.

    Two clients generating ids at the same time can collide; nothing locks
    the sheet between this read and the append that follows it.
    """
    try:
        grid = client.fetch_range(sheet_name, "A1:A1000")
        return next_student_id(grid)
    except Exception:
        log.exception("Error generating student ID; using timestamp fallback")
        return fallback_student_id()
