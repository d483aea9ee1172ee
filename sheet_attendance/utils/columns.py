"""Header heuristics for loosely structured roster sheets.

The roster is maintained by hand, so column order is not guaranteed.  Each
logical field is resolved by walking an ordered list of match rules; the
first rule that finds a header wins.  Every field also carries a positional
default so resolution never fails, even when the guess is wrong.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

DATE_HEADER_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# (field, keywords) in precedence order.  A field may appear more than once;
# a later entry is only consulted when the earlier ones found nothing.
MATCH_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("id", ("id",)),
    ("id", ("number", "phone")),
    ("name", ("name",)),
    ("class", ("class",)),
    ("school", ("school",)),
    ("mobile", ("mobile", "phone", "contact")),
)

DEFAULT_INDEX: Dict[str, int] = {
    "id": 0,
    "name": 1,
    "class": 2,
    "school": 3,
    "mobile": 4,
}

# Column order used when a brand new roster row is written without a header.
NEW_ROW_ORDER = ("id", "name", "school", "class", "mobile")


@dataclass(frozen=True)
class ColumnMap:
    id: int
    name: int
    class_: int
    school: int
    mobile: int
    # Fields found by a header rule; the rest sit at their DEFAULT_INDEX.
    matched: FrozenSet[str] = frozenset()

    def index_of(self, field: str) -> int:
        return getattr(self, "class_" if field == "class" else field)

    def as_dict(self) -> Dict[str, int]:
        return {field: self.index_of(field) for field in DEFAULT_INDEX}


@dataclass(frozen=True)
class DateColumn:
    index: int
    header: str

    @property
    def day(self) -> date:
        return date.fromisoformat(self.header)


def _first_match(headers: Sequence[str], keywords: Tuple[str, ...]) -> Optional[int]:
    for idx, header in enumerate(headers):
        text = str(header or "").lower()
        if not text:
            continue
        if any(keyword in text for keyword in keywords):
            return idx
    return None


def resolve_columns(headers: Sequence[str]) -> ColumnMap:
    """Map a header row to field indices.

    Unmatched fields silently fall back to ``DEFAULT_INDEX``.
    """
    found: Dict[str, int] = {}
    for field, keywords in MATCH_RULES:
        if field in found:
            continue
        idx = _first_match(headers or [], keywords)
        if idx is not None:
            found[field] = idx

    resolved = {field: found.get(field, default) for field, default in DEFAULT_INDEX.items()}
    return ColumnMap(
        id=resolved["id"],
        name=resolved["name"],
        class_=resolved["class"],
        school=resolved["school"],
        mobile=resolved["mobile"],
        matched=frozenset(found),
    )


def resolve_analytics_columns(headers: Sequence[str]) -> ColumnMap:
    """Like :func:`resolve_columns`, but the name column is the first header
    containing "name" that does not also mention "school" (so "School Name"
    is never taken for the student's name)."""
    columns = resolve_columns(headers)
    for idx, header in enumerate(headers or []):
        text = str(header or "").lower()
        if "name" in text and "school" not in text:
            return replace(columns, name=idx, matched=columns.matched | {"name"})
    return replace(columns, name=DEFAULT_INDEX["name"], matched=columns.matched - {"name"})


def is_date_header(header: str) -> bool:
    return bool(DATE_HEADER_RE.match(str(header or "")))


def date_columns(headers: Sequence[str]) -> List[DateColumn]:
    """Attendance columns in header order."""
    return [DateColumn(idx, h) for idx, h in enumerate(headers or []) if is_date_header(h)]


def chronological(columns: Sequence[DateColumn]) -> List[DateColumn]:
    """Sort by calendar date; headers that look like dates but are not real
    days (``2024-02-30``) sort last in their original order."""

    def key(col: DateColumn):
        try:
            return (0, col.day)
        except ValueError:
            return (1, date.max)

    return sorted(columns, key=key)


def column_index_to_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        raise ValueError("Column index must be non-negative")
    letters = ""
    while index >= 0:
        letters = chr(65 + index % 26) + letters
        index = index // 26 - 1
    return letters
