"""Write-capable Google credentials for the roster workbook.

Reads go through the public API key; anything that mutates the sheet needs
an authorised gspread client.  ``AuthSession`` owns that client for the
lifetime of the app and is passed explicitly to the code that writes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

import gspread
from google.oauth2.credentials import Credentials as UserCredentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials

log = logging.getLogger(__name__)

DEFAULT_SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)


def _parse_info(raw: str, label: str) -> Optional[Dict[str, Any]]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    # maybe it's a filepath
    try:
        with open(raw, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError):
        log.exception("Failed to parse credentials from %s", label)
        return None


class AuthSession:
    def __init__(
        self,
        service_account_json: str = "",
        authorized_user_json: str = "",
        client_id: str = "",
        scopes: Sequence[str] = DEFAULT_SCOPES,
    ):
        self.service_account_json = service_account_json
        self.authorized_user_json = authorized_user_json
        self.client_id = client_id
        self.scopes = list(scopes)
        self._client: Optional[gspread.Client] = None
        self.account: str = ""

    @classmethod
    def from_config(cls, config) -> "AuthSession":
        return cls(
            service_account_json=config.get("GOOGLE_SERVICE_ACCOUNT_JSON", ""),
            authorized_user_json=config.get("GOOGLE_AUTHORIZED_USER_JSON", ""),
            client_id=config.get("GOOGLE_OAUTH_CLIENT_ID", ""),
            scopes=config.get("SHEETS_SCOPES", DEFAULT_SCOPES),
        )

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> "AuthSession":
        """Load whichever credentials are configured.  Never raises; a failure
        leaves the session signed out so reads keep working."""
        info = _parse_info(self.service_account_json, "GOOGLE_SERVICE_ACCOUNT_JSON")
        if info is None:
            info = _parse_info(self.authorized_user_json, "GOOGLE_AUTHORIZED_USER_JSON")
        if info is None:
            log.info("No Google credentials configured; writes will be simulated.")
            return self
        try:
            self.sign_in(info)
        except Exception:
            log.exception("Failed to initialise Google credentials; continuing signed out.")
        return self

    def dispose(self) -> None:
        if self._client is not None:
            log.debug("Disposing Google Sheets client for %s", self.account or "<unknown>")
        self.sign_out()

    def __enter__(self) -> "AuthSession":
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # -- state -------------------------------------------------------------

    def sign_in(self, info: Dict[str, Any]) -> None:
        if info.get("type") == "service_account":
            creds = ServiceAccountCredentials.from_service_account_info(info, scopes=self.scopes)
            account = info.get("client_email", "")
        else:
            if self.client_id and info.get("client_id") and info["client_id"] != self.client_id:
                log.warning(
                    "Authorized user token was issued for a different OAuth client",
                    extra={"expected": self.client_id},
                )
            creds = UserCredentials.from_authorized_user_info(info, scopes=self.scopes)
            account = info.get("account", "") or info.get("client_id", "")
        self.use_client(gspread.authorize(creds), account)

    def use_client(self, client: gspread.Client, account: str = "") -> None:
        self._client = client
        self.account = account
        log.info("Signed in to Google Sheets as %s", account or "<unknown>")

    def sign_out(self) -> None:
        self._client = None
        self.account = ""

    def is_signed_in(self) -> bool:
        return self._client is not None

    def spreadsheet(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        if self._client is None:
            raise RuntimeError("Not signed in to Google Sheets.")
        return self._client.open_by_key(spreadsheet_id)
