import pytest

from sheet_attendance.integrations.errors import SheetAccessError
from sheet_attendance.integrations.sheets_client import SAMPLE_STUDENTS, SheetsClient
from tests.fakes import FakeSession, FakeWorkbook


def test_fetch_range_pads_short_rows(client):
    grid = client.fetch_range("Students", "A1:Z1000")
    assert not grid.from_sample
    assert all(len(row) == 7 for row in grid)
    assert grid[4] == ["7", "Dev", "7th Class", "Chirala", "", "", ""]


def test_fetch_range_sends_key_and_major_dimension(client, workbook):
    client.fetch_range("Students", "A1:Z1")
    method, url, params = workbook.requests[-1]
    assert method == "GET"
    assert url.endswith("/spreadsheets/sheet-123/values/Students!A1:Z1")
    assert params == {"key": "test-key", "majorDimension": "ROWS"}


def test_empty_sheet_returns_empty_grid(client, workbook):
    workbook.sheets["Blank"] = []
    grid = client.fetch_range("Blank", "A1:Z1000")
    assert grid == []
    assert not grid.from_sample


def test_rate_limit_is_retried_with_backoff(client, workbook, sleeps):
    workbook.get_failures = [429, 429]
    grid = client.fetch_range("Students", "A1:Z1000")
    assert sleeps == [1, 2]
    assert grid[1][1] == "Asha"
    assert not grid.from_sample


def test_persistent_rate_limit_falls_back_to_sample(client, workbook, sleeps):
    workbook.get_failures = [429, 429, 429, 429]
    grid = client.fetch_range("Students", "A1:Z1000")
    assert sleeps == [1, 2, 4]
    assert grid == SAMPLE_STUDENTS
    assert grid != []
    assert grid.from_sample


def test_persistent_rate_limit_falls_back_even_when_flag_off(workbook, sleeps):
    client = SheetsClient("sheet-123", "k", use_sample_data_on_error=False, session=FakeSession(workbook), sleep=sleeps.append)
    workbook.get_failures = [429] * 4
    assert client.fetch_range("Students") == SAMPLE_STUDENTS


def test_other_errors_use_sample_without_retry(client, workbook, sleeps):
    workbook.get_failures = [500]
    grid = client.fetch_range("students", "A1:Z1000")
    assert sleeps == []
    assert grid == SAMPLE_STUDENTS


def test_unknown_sheet_falls_back_to_no_data(client):
    grid = client.fetch_range("Teachers", "A1:Z1000")
    assert grid == [["No Data Available"]]
    assert grid.from_sample


def test_errors_propagate_when_sample_disabled(sleeps):
    client = SheetsClient(
        "sheet-123", "k", use_sample_data_on_error=False, session=FakeSession(FakeWorkbook()), sleep=sleeps.append
    )
    client.session.workbook.get_failures = [403]
    with pytest.raises(SheetAccessError) as info:
        client.fetch_range("Students")
    assert info.value.status == 403


def test_check_access_records_flag(client, workbook):
    assert client.check_access() is True
    assert client.is_accessible is True

    workbook.get_failures = [404]
    assert client.check_access() is False
    assert client.is_accessible is False


def test_get_sheet_metadata_finds_tab_case_insensitively(client):
    assert client.get_sheet_metadata("students") == {"title": "Students", "sheetId": 0}


def test_get_sheet_metadata_mock_on_error(client, workbook, sleeps):
    workbook.get_failures = [429, 429, 429]
    props = client.get_sheet_metadata("Students")
    assert sleeps == [1, 2]
    assert props == {"title": "Students", "gridProperties": {"rowCount": 100, "columnCount": 10}}


def test_get_sheet_metadata_mock_for_missing_tab(client):
    assert client.get_sheet_metadata("Archive")["title"] == "Archive"
