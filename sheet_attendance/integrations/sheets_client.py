#!/usr/bin/env python3
"""Read access to the roster workbook through the public Sheets REST API.

Reads only need the API key, so they go through plain ``requests`` calls
rather than the authorised client.  Rate limiting (HTTP 429) is retried with
exponential backoff; any other failure can be papered over with a fixed
sample roster so the dashboard still renders during demos.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .errors import SheetAccessError, SheetNotFoundError

log = logging.getLogger(__name__)

API_ROOT = "https://sheets.googleapis.com/v4/spreadsheets"
MAX_RETRIES = 3
METADATA_RETRIES = 2
NO_DATA = [["No Data Available"]]

SAMPLE_STUDENTS = [
    ["ID", "Name", "Class", "School"],
    ["1", "Harshavardhan", "6th Class", "BV & B N high school Jandrapet"],
    ["2", "Lakshmi priya p", "9th Class", "BV & B N high school Jandrapet"],
    ["3", "Madhu sree", "8th Class", "BV & B N high school Jandrapet"],
    ["4", "Muthukuri.thirupathamma", "10th Class", "BV & B N high school Jandrapet"],
    ["5", "Pallavi p", "11th Class", "BV & B N high school Jandrapet"],
    ["6", "Varshini D.", "12th Class", "BV & B N high school Jandrapet"],
    ["7", "Nitya Sri", "6th Class", "BV & B N high school Jandrapet"],
    ["8", "KOLLURU Sir Vidya", "7th Class", "BV & B N high school Jandrapet"],
    ["9", "Perikala Bhavishya", "8th Class", "BV & B N high school Jandrapet"],
    ["10", "Shanmukha priya", "9th Class", "BV & B N high school Jandrapet"],
    ["11", "M.Manasvi", "10th Class", "BV & B N high school Jandrapet"],
    ["12", "MANCHIKANTI NIHARIKA", "11th Class", "BV & B N high school Jandrapet"],
    ["13", "MANCHIKANTI VEERA VENKAT SIVA SAI VARUN", "12th Class", "BV & B N high school Jandrapet"],
    ["14", "KOLLURU shanvitha sir ram", "6th Class", "BV & B N high school Jandrapet"],
    ["15", "Hema sai", "7th Class", "BV & B N high school Jandrapet"],
    ["16", "Mokshitha", "8th Class", "BV & B N high school Jandrapet"],
]

SAMPLE_SHEETS = {"students": SAMPLE_STUDENTS}


class SheetGrid(list):
    """Rows of cell strings; row 0 is the header.

    ``from_sample`` is set when the rows are the built-in sample roster rather
    than what the remote sheet returned.
    """

    def __init__(self, rows: Iterable[Iterable[Any]] = (), from_sample: bool = False):
        super().__init__([list(r) for r in rows])
        self.from_sample = from_sample

    @property
    def header(self) -> List[str]:
        return self[0] if self else []

    @property
    def data_rows(self) -> List[List[str]]:
        return self[1:]


def _pad_rows(values: List[List[Any]]) -> List[List[str]]:
    if not values:
        return []
    width = len(values[0])
    out = []
    for row in values:
        cells = ["" if c is None else str(c) for c in row]
        if len(cells) < width:
            cells.extend([""] * (width - len(cells)))
        out.append(cells)
    return out


def sample_grid(sheet_name: str) -> SheetGrid:
    rows = SAMPLE_SHEETS.get((sheet_name or "").lower(), NO_DATA)
    return SheetGrid(rows, from_sample=True)


class SheetsClient:
    """Read-side client for one spreadsheet.

    The only state carried across calls is ``is_accessible``, recorded by
    :meth:`check_access`.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        api_key: str,
        use_sample_data_on_error: bool = True,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.api_key = api_key
        self.use_sample_data_on_error = use_sample_data_on_error
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep
        self.is_accessible = False

    @classmethod
    def from_config(cls, config, **kwargs) -> "SheetsClient":
        return cls(
            spreadsheet_id=config.get("SPREADSHEET_ID", ""),
            api_key=config.get("GOOGLE_API_KEY", ""),
            use_sample_data_on_error=config.get("USE_SAMPLE_DATA_ON_ERROR", True),
            timeout=config.get("REQUEST_TIMEOUT", 30),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @property
    def spreadsheet_url(self) -> str:
        return f"{API_ROOT}/{self.spreadsheet_id}"

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {"key": self.api_key, **params}
        log.debug("GET %s params=%s", url, {k: v for k, v in params.items() if k != "key"})
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _backoff(self, attempt: int) -> None:
        wait = 2 ** attempt
        log.warning("Rate limit exceeded. Retry attempt %d in %ds", attempt + 1, wait)
        self.sleep(wait)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_access(self) -> bool:
        """Probe the spreadsheet title.  Failures are logged, never raised."""
        log.info("Checking access to spreadsheet %s", self.spreadsheet_id)
        try:
            data = self._get(self.spreadsheet_url, {"fields": "properties.title"})
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status == 404:
                log.error("Spreadsheet not found. Please check your spreadsheet ID.")
            elif status == 403:
                log.error(
                    "Permission denied. Make sure your spreadsheet is shared publicly "
                    "or with the appropriate permissions."
                )
            else:
                log.error("Error checking spreadsheet access (status=%s): %s", status, exc)
            self.is_accessible = False
            return False
        except requests.RequestException as exc:
            log.error("Error checking spreadsheet access: %s", exc)
            self.is_accessible = False
            return False

        log.info("Spreadsheet is accessible: %s", data.get("properties", {}).get("title", ""))
        self.is_accessible = True
        return True

    def fetch_range(self, sheet_name: str = "Students", cell_range: str = "A1:Z1000") -> SheetGrid:
        url = f"{self.spreadsheet_url}/values/{sheet_name}!{cell_range}"
        attempt = 0
        while True:
            try:
                data = self._get(url, {"majorDimension": "ROWS"})
                values = _pad_rows(data.get("values") or [])
                log.debug("Fetched %d rows from %s!%s", len(values), sheet_name, cell_range)
                return SheetGrid(values)
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status == 429:
                    if attempt < MAX_RETRIES:
                        self._backoff(attempt)
                        attempt += 1
                        continue
                    log.warning(
                        "Rate limit persisted after %d retries; using sample data for %s",
                        MAX_RETRIES,
                        sheet_name,
                    )
                    return sample_grid(sheet_name)
                error = SheetAccessError(f"Error fetching sheet data: {exc}", status)
            except (requests.RequestException, ValueError) as exc:
                error = SheetAccessError(f"Error fetching sheet data: {exc}")

            if self.use_sample_data_on_error:
                log.warning("API error (%s), using sample data for %s", error, sheet_name)
                return sample_grid(sheet_name)
            log.error("Fetching %s!%s failed: %s", sheet_name, cell_range, error)
            raise error

    def get_sheet_metadata(self, sheet_name: str = "Students") -> Dict[str, Any]:
        """Properties of the named tab, or a mock when the lookup fails."""
        attempt = 0
        while True:
            try:
                data = self._get(self.spreadsheet_url, {"fields": "sheets.properties"})
                for sheet in data.get("sheets", []):
                    props = sheet.get("properties", {})
                    if props.get("title", "").lower() == sheet_name.lower():
                        return props
                raise SheetNotFoundError(sheet_name)
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status == 429 and attempt < METADATA_RETRIES:
                    self._backoff(attempt)
                    attempt += 1
                    continue
                log.warning("Error getting sheet metadata for %s: %s", sheet_name, exc)
            except (requests.RequestException, ValueError, SheetNotFoundError) as exc:
                log.warning("Error getting sheet metadata for %s: %s", sheet_name, exc)

            log.info("Using mock metadata for %s", sheet_name)
            return {
                "title": sheet_name,
                "gridProperties": {"rowCount": 100, "columnCount": 10},
            }

    def append_with_api_key(self, sheet_name: str, values: List[str]) -> Dict[str, Any]:
        """Unauthenticated append.  The API rejects writes made with a bare key
        unless the sheet is publicly editable, so this usually raises 401/403."""
        url = f"{self.spreadsheet_url}/values/{sheet_name}!A1:append"
        response = self.session.post(
            url,
            json={"values": [values]},
            params={
                "key": self.api_key,
                "valueInputOption": "USER_ENTERED",
                "insertDataOption": "INSERT_ROWS",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()
