"""Shared fixtures; the fakes themselves live in ``tests/fakes.py``."""

import pytest

from sheet_attendance import create_app
from sheet_attendance.integrations import SheetServices
from sheet_attendance.integrations.auth import AuthSession
from sheet_attendance.integrations.sheets_client import SheetsClient
from tests.fakes import SPREADSHEET_ID, FakeGspreadClient, FakeSession, FakeSpreadsheet, FakeWorkbook


@pytest.fixture
def workbook():
    return FakeWorkbook()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client(workbook, sleeps):
    return SheetsClient(
        spreadsheet_id=SPREADSHEET_ID,
        api_key="test-key",
        session=FakeSession(workbook),
        sleep=sleeps.append,
    )


@pytest.fixture
def spreadsheet(workbook):
    return FakeSpreadsheet(workbook)


@pytest.fixture
def signed_in(spreadsheet):
    auth = AuthSession()
    auth.use_client(FakeGspreadClient(spreadsheet), "staff@example.org")
    return auth


@pytest.fixture
def signed_out():
    return AuthSession()


@pytest.fixture
def services(client, signed_in):
    return SheetServices(client, signed_in)


@pytest.fixture
def app(services):
    app = create_app({"TESTING": True, "LOG_TO_FILE": False, "LOG_LEVEL": "INFO"}, services=services)
    yield app
    services.dispose()


@pytest.fixture
def http(app):
    return app.test_client()
