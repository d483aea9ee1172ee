"""Attendance aggregates computed from a freshly fetched roster grid.

Nothing here is cached: every dashboard request recomputes from the grid it
was handed.  A cell counts towards ``total`` whenever it is non-blank; it
counts as present/absent by case-insensitive substring, so "Late" or a typo
raises the denominator without raising either numerator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ..utils.columns import ColumnMap, DateColumn, chronological, date_columns, resolve_analytics_columns

ALL = "All"
LOWEST_STUDENT_LIMIT = 10


@dataclass
class AttendanceAggregate:
    present: int = 0
    absent: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return (self.present / self.total) * 100 if self.total > 0 else 0.0

    @property
    def absent_rate(self) -> float:
        return (self.absent / self.total) * 100 if self.total > 0 else 0.0

    def add(self, status) -> None:
        text = "" if status is None else str(status)
        if not text:
            return
        self.total += 1
        lowered = text.lower()
        if "present" in lowered:
            self.present += 1
        elif "absent" in lowered:
            self.absent += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "present": self.present,
            "absent": self.absent,
            "total": self.total,
            "attendanceRate": self.rate,
        }


def tally(statuses: Iterable) -> AttendanceAggregate:
    agg = AttendanceAggregate()
    for status in statuses:
        agg.add(status)
    return agg


# ---------------------------------------------------------------------------
# Grid helpers
# ---------------------------------------------------------------------------


class RosterView:
    """Positional DataFrame over the data rows plus the resolved columns."""

    def __init__(self, grid: Sequence[Sequence[str]]):
        header = list(grid[0]) if grid else []
        rows = [list(r or []) for r in grid[1:]]
        width = max([len(header)] + [len(r) for r in rows])
        padded = [[("" if c is None else str(c)) for c in r] + [""] * (width - len(r)) for r in rows]

        self.header = header
        self.columns: ColumnMap = resolve_analytics_columns(header)
        self.date_columns: List[DateColumn] = date_columns(header)
        self.frame = pd.DataFrame(padded, columns=list(range(width)), dtype=str)

    def _series(self, idx: int) -> pd.Series:
        if idx in self.frame.columns:
            return self.frame[idx]
        return pd.Series([""] * len(self.frame), index=self.frame.index, dtype=str)

    def filtered(self, school: str = ALL, class_: str = ALL) -> pd.DataFrame:
        mask = pd.Series(True, index=self.frame.index)
        if school != ALL:
            mask &= self._series(self.columns.school) == school
        if class_ != ALL:
            mask &= self._series(self.columns.class_) == class_
        return self.frame[mask]

    def target_columns(self, date: str = ALL) -> List[DateColumn]:
        if date == ALL:
            return list(self.date_columns)
        return [col for col in self.date_columns if col.header == date][:1]

    def distinct(self, idx: int) -> List[str]:
        seen: List[str] = []
        for value in self._series(idx):
            if value and value not in seen:
                seen.append(value)
        return seen


def _cell(row: pd.Series, idx: int) -> str:
    return row[idx] if idx in row.index else ""


def _tally_frame(frame: pd.DataFrame, cols: Sequence[DateColumn]) -> AttendanceAggregate:
    agg = AttendanceAggregate()
    for _, row in frame.iterrows():
        for col in cols:
            agg.add(_cell(row, col.index))
    return agg


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def filter_options(grid: Sequence[Sequence[str]]) -> Dict[str, List[str]]:
    view = RosterView(grid)
    return {
        "schools": [ALL] + view.distinct(view.columns.school),
        "classes": [ALL] + view.distinct(view.columns.class_),
        "dates": [ALL] + [col.header for col in view.date_columns],
    }


def overall_attendance(grid, school: str = ALL, class_: str = ALL, date: str = ALL) -> AttendanceAggregate:
    view = RosterView(grid)
    if not view.date_columns:
        return AttendanceAggregate()
    return _tally_frame(view.filtered(school, class_), view.target_columns(date))


def attendance_by_school(grid, date: str = ALL) -> List[Dict[str, Any]]:
    """One aggregate per school.  Only the date filter applies; school and
    class filters are not consulted."""
    view = RosterView(grid)
    schools = view.distinct(view.columns.school)
    if not view.date_columns or not schools:
        return []
    cols = view.target_columns(date)
    out = []
    for school in schools:
        agg = _tally_frame(view.filtered(school=school), cols)
        out.append({"name": school, **agg.to_dict()})
    return out


def lowest_attendance_students(
    grid,
    school: str = ALL,
    class_: str = ALL,
    date: str = ALL,
    limit: int = LOWEST_STUDENT_LIMIT,
) -> List[Dict[str, Any]]:
    view = RosterView(grid)
    if not view.date_columns:
        return []
    cols = view.target_columns(date)
    c = view.columns
    students = []
    for _, row in view.filtered(school, class_).iterrows():
        agg = tally(_cell(row, col.index) for col in cols)
        if agg.total == 0:
            continue
        students.append(
            {
                "id": _cell(row, c.id),
                "name": _cell(row, c.name),
                "class": _cell(row, c.class_),
                "school": _cell(row, c.school),
                **agg.to_dict(),
            }
        )
    students.sort(key=lambda s: s["attendanceRate"])
    return students[:limit]


def attendance_trend(grid, school: str = ALL, class_: str = ALL) -> List[Dict[str, Any]]:
    """Per-date aggregates in calendar order; ignores the date filter."""
    view = RosterView(grid)
    frame = view.filtered(school, class_)
    return [
        {"date": col.header, **_tally_frame(frame, [col]).to_dict()}
        for col in chronological(view.date_columns)
    ]


def attendance_summary(grid, school: str = ALL, class_: str = ALL, date: str = ALL) -> Dict[str, Any]:
    overall = overall_attendance(grid, school, class_, date)
    return {
        "filters": {"school": school, "class": class_, "date": date},
        "options": filter_options(grid),
        "overall": [
            {"name": "Present", "value": overall.present, "percentage": overall.rate},
            {"name": "Absent", "value": overall.absent, "percentage": overall.absent_rate},
        ],
        "totals": overall.to_dict(),
        "schools": attendance_by_school(grid, date),
        "students": lowest_attendance_students(grid, school, class_, date),
        "trend": attendance_trend(grid, school, class_),
    }


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def session_summary(statuses: Sequence[Optional[str]]) -> Dict[str, Any]:
    """Counts shown after a register is taken.

    Unlike the aggregates above this matches "Present"/"Absent" exactly and
    divides by the number of students in the session, blank or not.
    """
    count = len(statuses)
    present = sum(1 for s in statuses if s == "Present")
    absent = sum(1 for s in statuses if s == "Absent")
    return {
        "students": count,
        "present": present,
        "absent": absent,
        "presentPercent": _half_up(present / count * 100) if count else 0,
        "absentPercent": _half_up(absent / count * 100) if count else 0,
    }
