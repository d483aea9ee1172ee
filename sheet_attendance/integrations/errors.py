"""Error types raised by the sheet integration and their user-facing text."""

from __future__ import annotations

from typing import Optional

import gspread
import requests

AUTH_MESSAGE = (
    "Authentication error: You need to sign in with your Google account "
    "to write to Google Sheets."
)
PERMISSION_MESSAGE = (
    "Permission denied: Make sure your Google Sheet is shared with edit permissions."
)


class SheetsError(Exception):
    """Base class for spreadsheet integration failures."""


class SheetAccessError(SheetsError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SheetNotFoundError(SheetsError):
    def __init__(self, sheet_name: str):
        super().__init__(f'Sheet "{sheet_name}" not found')
        self.sheet_name = sheet_name


class StudentNotFoundError(SheetsError):
    def __init__(self, student_id: str):
        super().__init__(f"Student with ID {student_id} not found")
        self.student_id = student_id


def status_of(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an exception, if any."""
    if isinstance(exc, SheetAccessError):
        return exc.status
    if isinstance(exc, (requests.HTTPError, gspread.exceptions.APIError)):
        response = getattr(exc, "response", None)
        if response is not None:
            return getattr(response, "status_code", None)
    return None


def classify_error(exc: BaseException) -> str:
    status = status_of(exc)
    if status == 401:
        return AUTH_MESSAGE
    if status == 403:
        return PERMISSION_MESSAGE
    return str(exc)


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, StudentNotFoundError):
        return "not_found"
    status = status_of(exc)
    if status == 401:
        return "auth"
    if status == 403:
        return "permission"
    if status == 404:
        return "not_found"
    return "error"
