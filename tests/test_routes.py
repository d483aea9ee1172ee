import pytest

from sheet_attendance import create_app
from sheet_attendance.integrations import SheetServices


@pytest.fixture
def demo_http(client, signed_out):
    services = SheetServices(client, signed_out)
    app = create_app({"TESTING": True, "LOG_TO_FILE": False}, services=services)
    yield app.test_client()
    services.dispose()


def test_healthz(http):
    resp = http.get("/healthz")
    assert resp.status_code == 200
    assert resp.data == b"ok"


def test_unknown_route_is_json_404(http):
    resp = http.get("/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not Found"}


# -- students ---------------------------------------------------------------


def test_list_students(http):
    resp = http.get("/students/")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["sheet"] == "Students"
    assert [s["id"] for s in body["students"]] == ["1", "2", "5", "7"]
    asha = body["students"][0]
    assert asha["class"] == "6th Class"
    assert asha["mobileNumber"] == "98480 12345"
    assert asha["mobileDigits"] == "9848012345"


def test_next_id(http):
    assert http.get("/students/next-id").get_json() == {"studentId": "8"}


def test_create_student_requires_fields(http):
    resp = http.post("/students/", json={"name": "Eshan"})
    assert resp.status_code == 400
    assert resp.get_json()["missing"] == ["school", "class"]


def test_create_student_generates_id(http, workbook):
    resp = http.post(
        "/students/",
        json={"name": "Eshan", "school": "Chirala", "class": "6th Class", "mobileNumber": "99"},
    )
    assert resp.status_code == 201
    assert resp.get_json()["message"] == "Student Eshan added with ID 8."
    assert workbook.sheets["Students"][-1][:5] == ["8", "Eshan", "6th Class", "Chirala", "99"]


def test_create_student_in_demo_mode(demo_http, workbook):
    resp = demo_http.post("/students/", json={"name": "Eshan", "school": "Chirala", "class": "6th Class"})
    assert resp.status_code == 202
    body = resp.get_json()
    assert body["simulated"] is True
    assert body["message"].startswith("DEMO MODE")
    assert len(workbook.sheets["Students"]) == 5


def test_update_student(http, workbook):
    resp = http.put("/students/2", json={"name": "Bala K", "school": "Jandrapet", "class": "8th Class"})
    assert resp.status_code == 200
    assert workbook.sheets["Students"][2][:4] == ["2", "Bala K", "8th Class", "Jandrapet"]


def test_update_unknown_student_is_404(http):
    resp = http.put("/students/99", json={"name": "X", "school": "Y", "class": "Z"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Student with ID 99 not found"


def test_delete_student(http, workbook):
    resp = http.delete("/students/5")
    assert resp.status_code == 200
    assert [row[0] for row in workbook.sheets["Students"]] == ["ID", "1", "2", "7"]


def test_delete_in_demo_mode_keeps_row(demo_http, workbook):
    resp = demo_http.delete("/students/5")
    assert resp.status_code == 202
    assert "not deleted" in resp.get_json()["message"]
    assert len(workbook.sheets["Students"]) == 5


# -- attendance -------------------------------------------------------------


def test_attendance_dates(http):
    body = http.get("/attendance/dates").get_json()
    assert body["dates"] == ["2024-01-07", "2024-01-14"]


def test_add_column_rejects_bad_date(http):
    assert http.post("/attendance/columns", json={"date": "07/01/2024"}).status_code == 400


def test_add_column_created_then_reused(http):
    first = http.post("/attendance/columns", json={"date": "2024-01-21"})
    second = http.post("/attendance/columns", json={"date": "2024-01-21"})
    assert first.status_code == 201
    assert second.status_code == 200
    assert second.get_json()["columnLetter"] == "H"


def test_update_one_attendance_cell(http, workbook):
    resp = http.put("/attendance/7", json={"column": "g", "status": "Present"})
    assert resp.status_code == 200
    assert workbook.sheets["Students"][4][6] == "Present"


def test_record_attendance_new_column(http, workbook):
    resp = http.post(
        "/attendance/",
        json={
            "date": "2024-01-21",
            "statuses": [
                {"id": "1", "status": "Present"},
                {"id": "2", "status": "Absent"},
                {"id": "5", "status": "Late"},
            ],
        },
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"].endswith("New column was created.")
    assert body["summary"] == {
        "students": 2,
        "present": 1,
        "absent": 1,
        "presentPercent": 50,
        "absentPercent": 50,
    }
    assert workbook.sheets["Students"][2][7] == "Absent"


def test_record_attendance_existing_column(http):
    resp = http.post("/attendance/", json={"date": "2024-01-07", "statuses": [{"id": "7", "status": "Absent"}]})
    assert resp.status_code == 200
    assert resp.get_json()["message"].endswith("Existing column was updated.")


def test_record_attendance_needs_a_valid_status(http):
    resp = http.post("/attendance/", json={"date": "2024-01-21", "statuses": [{"id": "1", "status": ""}]})
    assert resp.status_code == 400


def test_record_attendance_partial(http):
    resp = http.post(
        "/attendance/",
        json={"date": "2024-01-21", "statuses": [{"id": "1", "status": "Present"}, {"id": "40", "status": "Absent"}]},
    )
    assert resp.status_code == 207
    assert resp.get_json()["message"].startswith("PARTIAL UPDATE: 1 of 2")


def test_record_attendance_demo_mode(demo_http):
    resp = demo_http.post("/attendance/", json={"date": "2024-01-21", "statuses": [{"id": "1", "status": "Present"}]})
    assert resp.status_code == 202
    body = resp.get_json()
    assert body["simulated"] is True
    assert "Sign in with Google" in body["message"]
    assert "1: Present" in body["message"]


# -- reads ------------------------------------------------------------------


def test_sheet_values(http):
    body = http.get("/sheets/Students?range=A1:B2").get_json()
    assert body["values"] == [["ID", "Name"], ["1", "Asha"]]
    assert body["fromSample"] is False


def test_missing_sheet_serves_sample(http):
    body = http.get("/sheets/Teachers").get_json()
    assert body["values"] == [["No Data Available"]]
    assert body["fromSample"] is True


def test_analytics_summary(http):
    body = http.get("/analytics/?school=Jandrapet").get_json()
    assert body["filters"] == {"school": "Jandrapet", "class": "All", "date": "All"}
    assert body["totals"]["present"] == 3
    assert body["totals"]["total"] == 4
    assert body["options"]["schools"] == ["All", "Jandrapet", "Chirala"]
    assert [point["date"] for point in body["trend"]] == ["2024-01-07", "2024-01-14"]
    assert body["fromSample"] is False


# -- admin ------------------------------------------------------------------


def test_admin_access(http):
    body = http.get("/admin/access").get_json()
    assert body == {"ok": True, "spreadsheetId": "sheet-123"}


def test_admin_session(http, demo_http):
    assert http.get("/admin/session").get_json() == {"signedIn": True, "account": "staff@example.org"}
    assert demo_http.get("/admin/session").get_json() == {"signedIn": False, "account": ""}


def test_update_student_keeps_attendance_cells(http, workbook):
    http.put("/students/1", json={"name": "Asha K", "school": "Jandrapet", "class": "6th Class"})
    assert workbook.sheets["Students"][1][5:] == ["Present", "Present"]


def test_update_student_on_roster_without_mobile_column(http, workbook):
    workbook.sheets["Students"] = [
        ["ID", "Name", "Class", "School", "2024-01-07", "2024-01-14"],
        ["1", "Asha", "6th Class", "Jandrapet", "Present", "Absent"],
    ]
    resp = http.put(
        "/students/1",
        json={"name": "Asha", "school": "Jandrapet", "class": "7th Class", "mobileNumber": "99"},
    )
    assert resp.status_code == 200
    assert workbook.sheets["Students"][1] == ["1", "Asha", "7th Class", "Jandrapet", "Present", "Absent"]
