"""Record-access layer for the roster workbook.

``SheetServices`` bundles the read client, the auth session and the write
coordinator for one spreadsheet.  The app factory builds one and stores it
on ``app.extensions``; routes fetch it with :func:`get_services`.
"""

from __future__ import annotations

import logging
from typing import Optional

from .auth import AuthSession
from .sheets_client import SheetsClient
from .writer import WriteCoordinator

log = logging.getLogger(__name__)

EXTENSION_KEY = "sheet_services"


class SheetServices:
    def __init__(self, client: SheetsClient, auth: AuthSession, students_sheet: str = "Students"):
        self.client = client
        self.auth = auth
        self.students_sheet = students_sheet
        self.writer = WriteCoordinator(client, auth, students_sheet)

    @classmethod
    def from_config(cls, config, client: Optional[SheetsClient] = None, auth: Optional[AuthSession] = None):
        client = client or SheetsClient.from_config(config)
        auth = auth or AuthSession.from_config(config)
        return cls(client, auth, config.get("STUDENTS_SHEET", "Students"))

    def init(self) -> "SheetServices":
        self.auth.init()
        # Access is probed once at startup; a failure only flips the flag.
        self.client.check_access()
        return self

    def dispose(self) -> None:
        self.auth.dispose()
        self.client.session.close()

    def __enter__(self) -> "SheetServices":
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def get_services(app) -> SheetServices:
    return app.extensions[EXTENSION_KEY]
