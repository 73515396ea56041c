import pytest

from salescrm.data_management.access_control import get_visible_sales_records
from salescrm.data_management.data_integrity import (
    check_referential_integrity,
    fix_data_issues,
    validate_all_data,
    validate_attendance_data,
    validate_before_save,
    validate_sales_data,
    validate_user_data,
)


def _user(uid, **extra):
    user = {"id": uid, "employeeId": uid, "name": f"User {uid}", "username": uid.lower(),
            "role": "employee", "phone": "9876543210", "designation": "Exec", "isActive": True}
    user.update(extra)
    return user


def _sale(sid, user_id, **extra):
    sale = {"id": sid, "userId": user_id, "quantity": 2, "unitPrice": 100, "discount": 0,
            "totalAmount": 200, "date": "2024-01-01", "productName": "X", "customer": "C",
            "customerEmail": "c@x.com"}
    sale.update(extra)
    return sale


def _attendance(aid, user_id, **extra):
    record = {"id": aid, "userId": user_id, "date": "2024-01-01", "status": "present",
              "checkIn": "2024-01-01T09:00:00", "checkOut": "2024-01-01T18:00:00"}
    record.update(extra)
    return record


@pytest.fixture
def messy():
    users = [
        _user("A1", role="manager", username="Asha  One", isActive=None),
        _user("E1", manager="A1"),
        _user("E2", manager="A1", isActive=False),
    ]
    sales = [
        _sale("s1", "E1", totalAmount=199),
        _sale("s2", "GHOST"),
        _sale("s3", "E2", quantity=3, unitPrice=50, discount=10, totalAmount=150),
        _sale("s4", "A1", quantity="abc"),
    ]
    attendance = [
        _attendance("a1", "E1"),
        _attendance("a2", "GHOST"),
    ]
    return users, sales, attendance


# =============================================================================
# VALIDATION
# =============================================================================

def test_clean_data_is_valid():
    users = [_user("E1")]
    result = validate_all_data(users, [_sale("s1", "E1")], [_attendance("a1", "E1")])
    assert result.is_valid
    assert result.errors == []
    assert result.to_dict() == {"isValid": True, "errors": [], "warnings": []}


def test_duplicate_employee_id_detected_case_insensitively():
    users = [_user("BM001"), _user("X", employeeId="bm001", username="other")]
    result = validate_user_data(users)
    assert not result.is_valid
    assert "Duplicate employee ID found: bm001" in result.errors


def test_duplicate_username_and_invalid_role():
    users = [_user("E1", username="same"), _user("E2", username="SAME", role="boss")]
    errors = validate_user_data(users).errors
    assert "Duplicate username found: SAME" in errors
    assert "User E2 has invalid role: boss" in errors


def test_missing_optional_user_fields_are_warnings():
    result = validate_user_data([_user("E1", phone=None, designation="")])
    assert result.is_valid
    assert result.warnings == ["User E1 has no phone number", "User E1 has no designation"]


def test_empty_required_user_fields():
    errors = validate_user_data([{"id": "x", "role": "employee"}]).errors
    assert "User at index 0 has empty name" in errors
    assert "User at index 0 has empty employee ID" in errors
    assert "User at index 0 has empty username" in errors


def test_sales_validation_flags_each_problem(messy):
    users, sales, _ = messy
    errors = validate_sales_data(sales, users).errors
    assert "Sales record s3 has incorrect total amount: expected 140, got 150" in errors
    assert "Sales record s2 references non-existent user: GHOST" in errors
    assert "Sales record s3 has invalid total amount: None" in errors
    assert "Sales record s4 has invalid quantity: abc" in errors


def test_sales_total_within_tolerance_is_accepted():
    users = [_user("E1")]
    result = validate_sales_data([_sale("s1", "E1", unitPrice=33.333, quantity=3, totalAmount=99.99)], users)
    assert result.is_valid


def test_sales_without_contact_only_warns():
    result = validate_sales_data([_sale("s1", "E1", customerEmail=None)], [_user("E1")])
    assert result.is_valid
    assert result.warnings == ["Sales record s1 has no customer contact information"]


def test_attendance_ordering_error_and_its_fix():
    users = [_user("E1")]
    backwards = _attendance("a1", "E1", checkIn="2024-01-01T18:00:00", checkOut="2024-01-01T09:00:00")
    message = "Attendance record a1 has check-out time before check-in time"

    assert message in validate_attendance_data([backwards], users).errors

    swapped = dict(backwards, checkIn=backwards["checkOut"], checkOut=backwards["checkIn"])
    assert message not in validate_attendance_data([swapped], users).errors


def test_attendance_warnings():
    users = [_user("E1")]
    long_shift = _attendance("a1", "E1", checkIn="2024-01-01T08:00:00", checkOut="2024-01-02T10:00:00")
    no_check_in = _attendance("a2", "E1", checkIn=None, checkOut=None)
    result = validate_attendance_data([long_shift, no_check_in], users)

    assert result.is_valid
    assert "Attendance record a1 has unusually long work hours: 26.00 hours" in result.warnings
    assert "Attendance record a2 marked as present but no check-in time" in result.warnings


def test_attendance_invalid_status_and_date():
    errors = validate_attendance_data(
        [_attendance("a1", "E1", status="holiday", date="not-a-date")], [_user("E1")]
    ).errors
    assert "Attendance record a1 has invalid status: holiday" in errors
    assert "Attendance record a1 has invalid date: not-a-date" in errors


def test_unparseable_timestamps_are_not_ordered():
    record = _attendance("a1", "E1", checkIn="garbage", checkOut="2024-01-01T09:00:00")
    errors = validate_attendance_data([record], [_user("E1")]).errors
    assert not any("check-out time before" in e for e in errors)


# =============================================================================
# REPAIR
# =============================================================================

def test_repair_applies_documented_fixes(messy):
    users, sales, attendance = messy
    result = fix_data_issues(users, sales, attendance)

    assert result.users[0]["username"] == "asha.one"
    assert result.users[0]["isActive"] is True
    assert result.users[2]["isActive"] is False
    assert [s["id"] for s in result.sales] == ["s1", "s3", "s4"]
    assert result.sales[0]["totalAmount"] == 200
    assert result.sales[1]["totalAmount"] == 140
    assert result.sales[2]["quantity"] == "abc"
    assert [a["id"] for a in result.attendance] == ["a1"]

    assert result.fixes_applied == [
        "Fixed username format for A1",
        "Set active status for A1",
        "Fixed total amount calculation for sales record s1",
        "Removed sales record s2 with invalid user reference",
        "Fixed total amount calculation for sales record s3",
        "Removed attendance record a2 with invalid user reference",
    ]


def test_repair_does_not_mutate_inputs(messy):
    users, sales, attendance = messy
    fix_data_issues(users, sales, attendance)
    assert users[0]["username"] == "Asha  One"
    assert sales[0]["totalAmount"] == 199
    assert len(sales) == 4


def test_repair_is_idempotent(messy):
    first = fix_data_issues(*messy)
    second = fix_data_issues(first.users, first.sales, first.attendance)

    assert second.fixes_applied == []
    assert second.users == first.users
    assert second.sales == first.sales
    assert second.attendance == first.attendance


def test_repair_leaves_only_resolvable_references(messy):
    result = fix_data_issues(*messy)
    user_ids = {u["id"] for u in result.users}
    assert all(s["userId"] in user_ids for s in result.sales)
    assert all(a["userId"] in user_ids for a in result.attendance)


def test_repaired_totals_match_line_amounts(messy):
    result = fix_data_issues(*messy)
    for sale in result.sales:
        if isinstance(sale["quantity"], (int, float)):
            expected = sale["quantity"] * sale["unitPrice"] - (sale.get("discount") or 0)
            assert abs(sale["totalAmount"] - expected) <= 0.01


def test_repair_leaves_missing_totals_to_validation():
    users = [_user("E1")]
    sales = [_sale("s1", "E1", totalAmount=None)]
    result = fix_data_issues(users, sales, [])

    assert result.fixes_applied == []
    assert result.sales[0]["totalAmount"] is None
    assert validate_sales_data(result.sales, result.users).errors == [
        "Sales record s1 has invalid total amount: None"
    ]


def test_repair_does_not_touch_duplicates():
    users = [_user("E1"), _user("E2", employeeId="E1", username="e2")]
    result = fix_data_issues(users, [], [])
    assert result.fixes_applied == []
    assert not validate_user_data(result.users).is_valid


def test_repair_rejects_non_list_input():
    with pytest.raises(TypeError):
        fix_data_issues({"not": "a list"}, [], [])
    with pytest.raises(TypeError):
        fix_data_issues([], None, [])


def test_repair_clears_seeded_total_fault():
    users = [_user("E1")]
    sales = [_sale("s1", "E1", totalAmount=150)]
    assert not validate_sales_data(sales, users).is_valid

    repaired = fix_data_issues(users, sales, [])
    assert validate_sales_data(repaired.sales, repaired.users).is_valid


def test_end_to_end_example(sample_users, sample_sales):
    validation = validate_sales_data(sample_sales, sample_users)
    assert validation.errors == ["Sales record s1 has incorrect total amount: expected 200, got 199"]

    repaired = fix_data_issues(sample_users, sample_sales, [])
    s1 = repaired.sales[0]
    assert s1["totalAmount"] == 200
    assert [f for f in repaired.fixes_applied if "s1" in f] == [
        "Fixed total amount calculation for sales record s1"
    ]

    manager, employee = repaired.users
    assert get_visible_sales_records(manager, repaired.sales, repaired.users) == [s1]
    assert get_visible_sales_records(employee, repaired.sales, repaired.users) == [s1]

    e2 = {"id": "E2", "employeeId": "E2", "username": "e.two", "role": "employee", "manager": "A1"}
    assert get_visible_sales_records(e2, repaired.sales, repaired.users + [e2]) == []


# =============================================================================
# WRITE-PATH GUARDS
# =============================================================================

def test_validate_before_save():
    assert validate_before_save("users", [_user("E1")])
    assert not validate_before_save("users", [{"id": "E1"}])
    assert validate_before_save("sales", [_sale("s1", "E1")])
    assert not validate_before_save("sales", [_sale("s1", "E1", totalAmount=0)])
    assert validate_before_save("attendance", [_attendance("a1", "E1")])
    assert not validate_before_save("attendance", [{"id": "a1", "userId": "E1"}])
    assert not validate_before_save("targets", [])
    assert not validate_before_save("sales", "nope")
    assert validate_before_save("sales", [])


def test_check_referential_integrity(messy):
    users, sales, attendance = messy
    report = check_referential_integrity(users, sales, attendance)
    assert report["isValid"] is False
    assert report["errors"] == [
        "Sales record s2 references non-existent user GHOST",
        "Attendance record a2 references non-existent user GHOST",
    ]
    assert check_referential_integrity(users, [], [])["isValid"] is True
