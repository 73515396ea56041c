from datetime import datetime

import pytest

from salescrm.data_management.constants import LOG_KEYS
from salescrm.data_management.services import (
    PermissionDeniedError,
    RecordNotFoundError,
    ValidationFailedError,
)


ADMIN = {"id": "ADM", "employeeId": "ADM", "role": "admin"}


def _new_employee(**overrides):
    data = {"employeeId": "bm300", "name": "Neha  Rao", "password": "neha@2024",
            "role": "employee", "manager": "A1", "email": "neha@company.com"}
    data.update(overrides)
    return data


# =============================================================================
# EMPLOYEES
# =============================================================================

def test_add_employee(service, seeded_storage):
    user = service.add_employee(_new_employee(), actor=ADMIN)

    assert user["id"] == "BM300"
    assert user["employeeId"] == "BM300"
    assert user["username"] == "neha.rao"
    assert user["isActive"] is True
    assert seeded_storage.get_users()[-1]["id"] == "BM300"


def test_add_employee_reports_every_problem(service):
    with pytest.raises(ValidationFailedError) as exc:
        service.add_employee(_new_employee(employeeId="e1", username="E.ONE", password="abc", email="nope"))

    errors = exc.value.errors
    assert "Employee ID E1 already exists" in errors
    assert "Username e.one already exists" in errors
    assert "Invalid email format" in errors
    assert any("Password" in e for e in errors)


def test_add_employee_requires_admin(service):
    with pytest.raises(PermissionDeniedError):
        service.add_employee(_new_employee(), actor={"id": "A1", "role": "manager"})


def test_update_user_profile(service, seeded_storage):
    updated = service.update_user_profile("E1", {"phone": "9876543210", "id": "HACK"}, actor_id="E1")

    assert updated["id"] == "E1"
    assert updated["phone"] == "9876543210"
    assert "lastUpdated" in updated
    assert seeded_storage.get_users()[1]["phone"] == "9876543210"
    assert seeded_storage.get_current_user() is None
    log = seeded_storage.get_log(LOG_KEYS["PROFILE_UPDATE"])
    assert log[-1]["userId"] == "E1"
    assert log[-1]["fields"] == ["phone"]


def test_update_unknown_user(service):
    with pytest.raises(RecordNotFoundError):
        service.update_user_profile("NOPE", {"name": "x"})


def test_delete_employee_does_not_cascade(service, seeded_storage):
    assert service.delete_employee("E1", actor=ADMIN) is True
    assert service.delete_employee("E1", actor=ADMIN) is False
    assert [s["userId"] for s in seeded_storage.get_sales_records()] == ["E1"]
    assert not service.run_validation().is_valid


def test_toggle_active(service):
    assert service.toggle_active("E1")["isActive"] is False
    assert service.toggle_active("E1")["isActive"] is True


def test_reset_user_password(service, seeded_storage):
    assert service.reset_user_password("E1", "fresh@123") is True
    assert seeded_storage.get_users()[1]["password"] == "fresh@123"
    assert service.reset_user_password("NOPE", "fresh@123") is False
    with pytest.raises(ValidationFailedError):
        service.reset_user_password("E1", "short")


def test_record_login(service, seeded_storage, sample_users):
    user = service.record_login(sample_users[0])
    assert user["lastLogin"]
    assert seeded_storage.get_users()[0]["lastLogin"] == user["lastLogin"]
    assert seeded_storage.get_log(LOG_KEYS["LOGIN"])[-1]["userId"] == "A1"


# =============================================================================
# SALES
# =============================================================================

def test_create_sale_derives_total(service, seeded_storage):
    sale = service.create_sale({
        "productName": "  <Galaxy Projector> ",
        "customer": "Acme",
        "quantity": "3",
        "unitPrice": 100,
        "discount": 25,
    }, "E1")

    assert sale["productName"] == "Galaxy Projector"
    assert sale["quantity"] == 3
    assert sale["totalAmount"] == 275
    assert sale["userId"] == "E1"
    assert sale["submittedAt"]
    assert seeded_storage.get_sales_records()[-1]["id"] == sale["id"]
    assert seeded_storage.get_log(LOG_KEYS["SALES"])[-1]["action"] == "create"


def test_create_sale_rejects_bad_input(service, seeded_storage):
    with pytest.raises(ValidationFailedError) as exc:
        service.create_sale({"productName": "", "customer": "Acme", "quantity": 0, "unitPrice": 10}, "E1")
    assert "Product name is required" in exc.value.errors
    assert len(seeded_storage.get_sales_records()) == 1


def test_sale_writes_ignore_unrelated_stored_rows(service, seeded_storage, sample_sales):
    legacy = {**sample_sales[0], "id": "s0", "quantity": 1, "unitPrice": 10, "discount": 10, "totalAmount": 0}
    seeded_storage.save_sales_records(sample_sales + [legacy])

    sale = service.create_sale({"productName": "Screen", "customer": "Acme", "quantity": 1, "unitPrice": 50}, "E1")
    assert sale["totalAmount"] == 50
    assert service.edit_sale("s1", {"quantity": 3})["totalAmount"] == 300
    assert service.delete_sale(sale["id"]) is True
    assert [s["id"] for s in seeded_storage.get_sales_records()] == ["s1", "s0"]


def test_create_sale_rejects_full_discount(service):
    with pytest.raises(ValidationFailedError) as exc:
        service.create_sale({"productName": "Screen", "customer": "Acme", "quantity": 1,
                             "unitPrice": 50, "discount": 50}, "E1")
    assert exc.value.errors == ["Discount must be less than the sale amount"]


def test_edit_sale_recomputes_total(service):
    edited = service.edit_sale("s1", {"quantity": 5, "userId": "A1"}, actor_id="A1")
    assert edited["totalAmount"] == 500
    assert edited["userId"] == "E1"

    with pytest.raises(RecordNotFoundError):
        service.edit_sale("missing", {"quantity": 1})


def test_delete_sale(service, seeded_storage):
    assert service.delete_sale("s1") is True
    assert seeded_storage.get_sales_records() == []
    assert service.delete_sale("s1") is False


# =============================================================================
# ATTENDANCE
# =============================================================================

def test_check_in_is_once_per_day(service, seeded_storage):
    first = service.check_in("E1")
    again = service.check_in("E1")

    assert again["id"] == first["id"]
    assert first["status"] == "present"
    assert len(seeded_storage.get_attendance_records()) == 1


def test_check_out_requires_check_in(service):
    with pytest.raises(RecordNotFoundError):
        service.check_out("E1")

    service.check_in("E1", now=datetime.now())
    record = service.check_out("E1")
    assert record["checkOut"]


def test_mark_attendance_rules(service, seeded_storage, sample_users):
    manager, employee = sample_users

    absent = service.mark_attendance("E1", "absent", manager)
    assert absent["status"] == "absent"
    assert "checkIn" not in absent

    late = service.mark_attendance("E1", "late", manager)
    assert late["id"] == absent["id"]
    assert late["status"] == "late"
    assert len(seeded_storage.get_attendance_records()) == 1

    with pytest.raises(PermissionDeniedError):
        service.mark_attendance("A1", "present", employee)
    with pytest.raises(ValidationFailedError):
        service.mark_attendance("E1", "holiday", manager)


def test_mark_present_synthesizes_check_in(service, sample_users):
    record = service.mark_attendance("E1", "present", sample_users[0])
    assert record["checkIn"]


# =============================================================================
# INTEGRITY / EXPORT LOG
# =============================================================================

def test_repair_data_persists_fixes(service, seeded_storage):
    assert not service.run_validation().is_valid

    result = service.repair_data(actor_id="A1")

    assert "Fixed total amount calculation for sales record s1" in result.fixes_applied
    assert seeded_storage.get_sales_records()[0]["totalAmount"] == 200
    assert all(u["isActive"] is True for u in seeded_storage.get_users())
    assert service.repair_data().fixes_applied == []


def test_log_data_export_is_attributed_to_the_exporter(service, seeded_storage):
    entry = service.log_data_export("sales_csv", 12, "A1")
    assert entry["userId"] == "A1"
    assert seeded_storage.get_log(LOG_KEYS["EXPORT"]) == [entry]
