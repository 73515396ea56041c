from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from salescrm.data_management.export import (
    CRMExport,
    build_attendance_rows,
    build_comprehensive_rows,
    build_sales_rows,
    build_user_rows,
    export_to_csv,
)
from salescrm.data_management.metrics import CRMMetrics


USERS = [
    {"id": "ADM", "name": "Admin", "role": "admin"},
    {"id": "M1", "name": "Mira", "role": "manager", "target": 1000},
    {"id": "E1", "name": "Eko", "username": "e.one", "role": "employee", "manager": "M1", "target": 500},
    {"id": "E2", "name": "Ena", "role": "employee", "manager": "M1", "isActive": False},
]

SALES = [
    {"id": "s1", "userId": "E1", "date": "2024-05-03", "totalAmount": 400, "productName": "Joy", "quantity": 2, "unitPrice": 200},
    {"id": "s2", "userId": "E1", "date": "2024-05-10", "totalAmount": 200, "productName": "Play", "quantity": 1, "unitPrice": 200},
    {"id": "s3", "userId": "M1", "date": "2024-04-20", "totalAmount": 300, "productName": "Epic", "quantity": 1, "unitPrice": 300},
]

ATTENDANCE = [
    {"id": "a1", "userId": "E1", "date": "2024-05-10", "status": "present",
     "checkIn": "2024-05-10T09:00:00", "checkOut": "2024-05-10T17:30:00"},
    {"id": "a2", "userId": "M1", "date": "2024-05-10", "status": "late", "checkIn": "2024-05-10T10:00:00"},
    {"id": "a3", "userId": "E1", "date": "2024-05-09", "status": "absent"},
]


# =============================================================================
# CSV
# =============================================================================

def test_export_to_csv_quotes_every_value():
    csv_text = export_to_csv([
        {"Name": "Eko", "Amount": 200, "Note": None},
        {"Name": 'Say "hi"', "Amount": 0, "Note": "x"},
    ])
    assert csv_text.split("\n") == [
        "Name,Amount,Note",
        '"Eko","200",""',
        '"Say ""hi""","0","x"',
    ]


def test_export_to_csv_empty():
    assert export_to_csv([]) == ""


def test_export_rows_filter_by_date_range():
    rows = build_sales_rows(SALES, USERS, "2024-05-01", "2024-05-31")
    assert [r["Sales Person"] for r in rows] == ["Eko", "Eko"]
    assert rows[0]["Total Amount"] == 400

    att_rows = build_attendance_rows(ATTENDANCE, USERS, "2024-05-10", "2024-05-10")
    assert [r["Status"] for r in att_rows] == ["present", "late"]
    assert att_rows[0]["Check In"] == "09:00"


def test_user_rows():
    rows = build_user_rows(USERS)
    assert rows[3]["Status"] == "Inactive"
    assert rows[0]["Last Login"] == "Never"


def test_comprehensive_rows_join_sales_and_attendance():
    rows = build_comprehensive_rows(SALES, ATTENDANCE, USERS, "2024-05-10", "2024-05-10")
    eko = next(r for r in rows if r["Employee Name"] == "Eko")
    assert eko["Total Sales"] == 200
    assert eko["Sales Count"] == 1
    assert eko["Attendance Status"] == "present"
    assert eko["Sales Details"] == "Play (1x200)"

    mira = next(r for r in rows if r["Employee Name"] == "Mira")
    assert mira["Sales Count"] == 0
    assert mira["Attendance Status"] == "late"


def test_excel_workbook_has_one_sheet_per_export():
    output = CRMExport().create_workbook({
        "Sales": build_sales_rows(SALES, USERS),
        "Attendance": build_attendance_rows(ATTENDANCE, USERS),
        "Empty": [],
    })
    workbook = load_workbook(BytesIO(output.getvalue()))
    assert workbook.sheetnames == ["Sales", "Attendance"]
    assert workbook["Sales"]["A1"].value == "Date"
    assert workbook["Sales"].max_row == 4


# =============================================================================
# METRICS
# =============================================================================

def test_dashboard_stats():
    stats = CRMMetrics(USERS, SALES, ATTENDANCE).get_dashboard_stats(today=date(2024, 5, 10))

    assert stats["totalEmployees"] == 3
    assert stats["activeEmployees"] == 2
    assert stats["presentToday"] == 1
    assert stats["lateToday"] == 1
    assert stats["absentToday"] == 0
    assert stats["salesToday"] == 200
    assert stats["salesThisMonth"] == 600
    assert stats["totalRevenue"] == 900
    assert stats["topPerformer"]["userId"] == "E1"
    assert stats["averageAchievement"] == 60.0


def test_team_performance():
    team = CRMMetrics(USERS, SALES, ATTENDANCE).get_team_performance("2024-05")
    eko = team[team["userId"] == "E1"].iloc[0]
    assert eko["sales"] == 600
    assert eko["deals"] == 2
    assert eko["achievement"] == 120.0
    assert team.iloc[0]["userId"] == "E1"
    assert "ADM" not in set(team["userId"])


def test_monthly_sales_zero_fills():
    monthly = CRMMetrics(USERS, SALES, ATTENDANCE).get_monthly_sales(months=3, as_of=date(2024, 6, 15))
    assert list(monthly["month"]) == ["2024-04", "2024-05", "2024-06"]
    assert list(monthly["totalAmount"]) == [300, 600, 0]
    assert list(monthly["deals"]) == [1, 2, 0]


def test_attendance_summary():
    summary = CRMMetrics(USERS, SALES, ATTENDANCE).get_attendance_summary("2024-05")
    eko = summary[summary["userId"] == "E1"].iloc[0]
    assert eko["present"] == 1
    assert eko["absent"] == 1
    assert eko["totalHours"] == 8.5
    assert eko["attendanceRate"] == 50.0


def test_metrics_handle_empty_collections():
    metrics = CRMMetrics(USERS, [], [])
    stats = metrics.get_dashboard_stats(today=date(2024, 5, 10))
    assert stats["totalRevenue"] == 0
    assert stats["topPerformer"] is None
    assert metrics.get_monthly_sales(months=2, as_of=date(2024, 5, 1))["totalAmount"].sum() == 0
