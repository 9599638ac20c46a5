"""
Report API tests.

Sessions are placed in January 2024 (2024-01-01 is a Monday) so every day in
range is in the past. Users work Mon..Fri with an 8h target.
"""

import csv
import io
from datetime import datetime

import pytest

from teamclock.extensions import db
from teamclock.services import report_service


def _by_date(days):
    return {d["date"]: d for d in days}


@pytest.fixture
def january(employee, session_factory):
    # Mon: 8h net, Tue: 4h, Sat: 2h
    session_factory(
        employee, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 17, 30),
        breaks=[(datetime(2024, 1, 1, 12), datetime(2024, 1, 1, 12, 30))],
    )
    session_factory(employee, datetime(2024, 1, 2, 9), datetime(2024, 1, 2, 13))
    session_factory(employee, datetime(2024, 1, 6, 10), datetime(2024, 1, 6, 12), is_manual=True)
    return employee


class TestMonthlyReport:

    def test_rows_and_statuses(self, client, january, employee_headers):
        resp = client.get("/api/reports/monthly?year=2024&month=1", headers=employee_headers)
        assert resp.status_code == 200
        data = resp.json

        days = _by_date(data["days"])
        assert len(days) == 31
        assert days["2024-01-01"]["worked_hours"] == pytest.approx(8.0)
        assert days["2024-01-01"]["status"] == "MET"
        assert days["2024-01-02"]["status"] == "MISSED"
        assert days["2024-01-06"]["status"] == "OFF"
        assert days["2024-01-06"]["has_manual_entries"] is True

        summary = data["summary"]
        assert summary["worked_hours"] == pytest.approx(14.0)
        assert summary["target_hours"] == pytest.approx(23 * 8.0)
        assert summary["balance_hours"] == pytest.approx(14.0 - 23 * 8.0)
        assert data["to_date"] == summary

    def test_invalid_month(self, client, employee_headers):
        resp = client.get("/api/reports/monthly?year=2024&month=13", headers=employee_headers)
        assert resp.status_code == 400

    def test_missing_params(self, client, employee_headers):
        resp = client.get("/api/reports/monthly", headers=employee_headers)
        assert resp.status_code == 400

    def test_month_ending_on_last_calendar_day(self, client, employee_headers):
        resp = client.get("/api/reports/monthly?year=9999&month=12", headers=employee_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Date out of range"

        resp = client.get("/api/reports/monthly?year=9999&month=11", headers=employee_headers)
        assert resp.status_code == 200
        assert {d["status"] for d in resp.json["days"]} <= {"PENDING", "OFF"}


class TestCalendar:

    def test_week_totals(self, client, january, employee_headers):
        resp = client.get("/api/reports/calendar?start=2024-01-01&end=2024-01-07", headers=employee_headers)
        assert resp.status_code == 200
        days = _by_date(resp.json["days"])
        assert list(days) == [f"2024-01-0{i}" for i in range(1, 8)]
        assert days["2024-01-02"]["worked_hours"] == pytest.approx(4.0)
        assert days["2024-01-02"]["balance_hours"] == pytest.approx(-4.0)
        assert days["2024-01-07"]["is_work_day"] is False
        assert resp.json["summary"]["target_hours"] == pytest.approx(40.0)

    def test_bad_range(self, client, employee_headers):
        assert client.get("/api/reports/calendar?start=2024-01-07&end=2024-01-01", headers=employee_headers).status_code == 400
        assert client.get("/api/reports/calendar?start=2024-01-01&end=2025-06-01", headers=employee_headers).status_code == 400
        assert client.get("/api/reports/calendar?start=nope&end=2024-01-01", headers=employee_headers).status_code == 400
        assert client.get("/api/reports/calendar", headers=employee_headers).status_code == 400

    def test_range_at_calendar_limits(self, client, employee_headers):
        resp = client.get("/api/reports/calendar?start=9999-12-01&end=9999-12-31", headers=employee_headers)
        assert resp.status_code == 400
        resp = client.get("/api/reports/calendar?start=0001-01-01&end=0001-01-05", headers=employee_headers)
        assert resp.status_code == 400

    def test_project_timezone_moves_day(self, client, project_a, employee, session_factory, employee_headers):
        project_a.timezone = "America/New_York"
        db.session.commit()
        # 03:00 UTC on the 3rd is 22:00 on the 2nd in New York
        session_factory(employee, datetime(2024, 1, 3, 3), datetime(2024, 1, 3, 5))

        resp = client.get("/api/reports/calendar?start=2024-01-02&end=2024-01-03", headers=employee_headers)
        days = _by_date(resp.json["days"])
        assert days["2024-01-02"]["worked_hours"] == pytest.approx(2.0)
        assert days["2024-01-03"]["worked_hours"] == 0


class TestDayDetails:

    def test_entries_and_balance(self, client, january, employee_headers):
        resp = client.get("/api/reports/day-details?date=2024-01-01", headers=employee_headers)
        assert resp.status_code == 200
        assert len(resp.json["entries"]) == 1
        assert len(resp.json["entries"][0]["breaks"]) == 1
        assert resp.json["balance"]["balance_hours"] == pytest.approx(0.0)

    def test_missing_date(self, client, employee_headers):
        assert client.get("/api/reports/day-details", headers=employee_headers).status_code == 400

    def test_last_calendar_day(self, client, employee_headers):
        assert client.get("/api/reports/day-details?date=9999-12-31", headers=employee_headers).status_code == 400


class TestDashboardBalance:

    def test_running_timer_marks_active(self, client, employee_headers):
        client.post("/api/time-entries/start", headers=employee_headers)
        resp = client.get("/api/reports/balance", headers=employee_headers)
        assert resp.status_code == 200
        data = resp.json
        assert data["currently_active"] is True
        assert data["balance"] == pytest.approx(data["total_worked_hours"] - data["total_target_hours"])

    def test_range_starts_at_account_creation(self, employee, session_factory):
        employee.created_at = datetime(2024, 1, 1, 8)
        db.session.commit()
        session_factory(employee, datetime(2023, 12, 29, 9), datetime(2023, 12, 29, 17))
        session_factory(employee, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 17))

        data = report_service.dashboard_balance(employee, now=datetime(2024, 1, 3, 12))
        assert data["range_start"] == "2024-01-01"
        assert data["range_end"] == "2024-01-03"
        assert data["total_worked_hours"] == pytest.approx(8.0)
        assert data["total_target_hours"] == pytest.approx(24.0)
        assert data["balance"] == pytest.approx(-16.0)
        assert data["days_worked"] == 3
        assert data["currently_active"] is False


class TestReportAccess:

    def test_manager_reads_report_of_direct_report(self, client, january, manager_headers):
        resp = client.get(f"/api/reports/calendar?start=2024-01-01&end=2024-01-01&user_id={january.id}", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["user_id"] == january.id

    def test_manager_cannot_read_outside_chain(self, client, other_employee, manager_headers):
        resp = client.get(f"/api/reports/balance?user_id={other_employee.id}", headers=manager_headers)
        assert resp.status_code == 403

    def test_employee_cannot_read_others(self, client, manager, employee_headers):
        resp = client.get(f"/api/reports/balance?user_id={manager.id}", headers=employee_headers)
        assert resp.status_code == 403

    def test_admin_reads_anyone(self, client, other_employee, admin_headers):
        resp = client.get(f"/api/reports/balance?user_id={other_employee.id}", headers=admin_headers)
        assert resp.status_code == 200

    def test_other_project_user_not_found(self, client, outsider, admin_headers):
        resp = client.get(f"/api/reports/balance?user_id={outsider.id}", headers=admin_headers)
        assert resp.status_code == 404


class TestCsvExport:

    def _rows(self, resp):
        text = resp.get_data(as_text=True)
        assert text.startswith("\ufeff")
        return list(csv.reader(io.StringIO(text[1:])))

    def test_one_row_per_day(self, client, january, employee_headers, session_factory):
        session_factory(january, datetime(2024, 1, 2, 14), datetime(2024, 1, 2, 15), description="Client call")

        resp = client.get("/api/reports/export?year=2024&month=1", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.headers["Content-Disposition"] == f'attachment; filename="report-{january.id}-2024-01.csv"'

        rows = self._rows(resp)
        assert rows[0][:3] == ["Date", "Day", "Employee"]
        assert len(rows) == 1 + 31

        by_date = {row[0]: row for row in rows[1:]}
        monday = by_date["2024-01-01"]
        assert monday[1:5] == ["Monday", "Eve", "09:00", "17:30"]
        assert monday[5:10] == ["8.00", "0.50", "8.00", "0.00", "MET"]

        tuesday = by_date["2024-01-02"]
        assert tuesday[3:6] == ["09:00", "15:00", "5.00"]
        assert tuesday[9] == "MISSED"
        assert tuesday[11] == "Client call"

        saturday = by_date["2024-01-06"]
        assert saturday[9] == "OFF"
        assert saturday[10] == "Yes"

    def test_manager_exports_report_of_direct_report(self, client, january, manager_headers):
        resp = client.get(f"/api/reports/export?year=2024&month=1&user_id={january.id}", headers=manager_headers)
        assert resp.status_code == 200

    def test_employee_cannot_export_others(self, client, manager, employee_headers):
        resp = client.get(f"/api/reports/export?year=2024&month=1&user_id={manager.id}", headers=employee_headers)
        assert resp.status_code == 403

    def test_invalid_params(self, client, employee_headers):
        assert client.get("/api/reports/export?year=2024", headers=employee_headers).status_code == 400
        assert client.get("/api/reports/export?year=2024&month=13", headers=employee_headers).status_code == 400
        assert client.get("/api/reports/export?year=9999&month=12", headers=employee_headers).status_code == 400
