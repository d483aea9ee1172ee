import json

import gspread
import pytest
import requests

from sheet_attendance.integrations import SheetServices
from sheet_attendance.integrations.auth import AuthSession
from sheet_attendance.integrations.errors import (
    AUTH_MESSAGE,
    PERMISSION_MESSAGE,
    SheetAccessError,
    StudentNotFoundError,
    classify_error,
    error_kind,
)
from tests.fakes import FakeResponse


def _http_error(status):
    return requests.HTTPError(f"{status} Error", response=FakeResponse(status))


@pytest.mark.parametrize(
    "status, message",
    [(401, AUTH_MESSAGE), (403, PERMISSION_MESSAGE)],
)
def test_classify_error_maps_auth_statuses(status, message):
    assert classify_error(_http_error(status)) == message
    assert classify_error(SheetAccessError("nope", status)) == message


def test_classify_error_passes_other_messages_through():
    assert classify_error(ValueError("boom")) == "boom"
    assert classify_error(_http_error(500)) == "500 Error"


def test_error_kind():
    assert error_kind(StudentNotFoundError("3")) == "not_found"
    assert error_kind(_http_error(401)) == "auth"
    assert error_kind(_http_error(403)) == "permission"
    assert error_kind(_http_error(404)) == "not_found"
    assert error_kind(RuntimeError("x")) == "error"


def test_auth_without_credentials_stays_signed_out():
    with AuthSession() as auth:
        assert auth.is_signed_in() is False
        with pytest.raises(RuntimeError):
            auth.spreadsheet("sheet-123")


def test_auth_bad_credentials_do_not_raise(tmp_path):
    path = tmp_path / "creds.json"
    path.write_text("{not json", encoding="utf-8")
    auth = AuthSession(service_account_json=str(path)).init()
    assert auth.is_signed_in() is False


def test_auth_service_account_sign_in(monkeypatch):
    seen = {}

    def fake_authorize(creds):
        seen["creds"] = creds
        return object()

    monkeypatch.setattr(
        "sheet_attendance.integrations.auth.ServiceAccountCredentials.from_service_account_info",
        lambda info, scopes: ("sa", info["client_email"], tuple(scopes)),
    )
    monkeypatch.setattr(gspread, "authorize", fake_authorize)

    info = {"type": "service_account", "client_email": "bot@proj.iam.gserviceaccount.com"}
    auth = AuthSession(service_account_json=json.dumps(info)).init()

    assert auth.is_signed_in()
    assert auth.account == "bot@proj.iam.gserviceaccount.com"
    assert seen["creds"][0] == "sa"
    auth.dispose()
    assert auth.is_signed_in() is False


def test_services_lifecycle(client, signed_in, workbook):
    with SheetServices(client, signed_in) as services:
        assert services.client.is_accessible is True
        assert services.writer.students_sheet == "Students"
    assert signed_in.is_signed_in() is False
    assert client.session.closed is True
