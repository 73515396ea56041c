import pandas as pd
import pytest

from salescrm.data_management.access_control import (
    AccessControl,
    can_view_user_data,
    get_reporting_structure,
    get_team_hierarchy,
    get_visible_attendance_records,
    get_visible_sales_records,
    get_visible_users,
)


@pytest.fixture
def org():
    users = [
        {"id": "ADM", "role": "admin", "manager": None},
        {"id": "M1", "role": "manager", "manager": "ADM"},
        {"id": "M2", "role": "manager", "manager": "ADM"},
        {"id": "E1", "role": "employee", "manager": "M1"},
        {"id": "E2", "role": "employee", "manager": "M1"},
        {"id": "E3", "role": "employee", "manager": "M2"},
        {"id": "X1", "role": "intern", "manager": "M1"},
    ]
    sales = [{"id": f"s-{u['id']}", "userId": u["id"]} for u in users]
    attendance = [{"id": f"a-{u['id']}", "userId": u["id"]} for u in users]
    return users, sales, attendance


def _by_id(users, uid):
    return next(u for u in users if u["id"] == uid)


def test_admin_sees_everything(org):
    users, sales, attendance = org
    admin = _by_id(users, "ADM")
    assert get_visible_users(admin, users) == users
    assert get_visible_sales_records(admin, sales, users) == sales
    assert get_visible_attendance_records(admin, attendance, users) == attendance


def test_employee_sees_only_self(org):
    users, sales, attendance = org
    e1 = _by_id(users, "E1")
    assert get_visible_users(e1, users) == [e1]
    assert get_visible_sales_records(e1, sales, users) == [{"id": "s-E1", "userId": "E1"}]
    assert get_visible_attendance_records(e1, attendance, users) == [{"id": "a-E1", "userId": "E1"}]


def test_unknown_role_is_treated_as_employee(org):
    users, sales, _ = org
    intern = _by_id(users, "X1")
    assert get_visible_users(intern, users) == [intern]
    assert [s["id"] for s in get_visible_sales_records(intern, sales, users)] == ["s-X1"]


def test_manager_sees_self_and_direct_reports(org):
    users, sales, attendance = org
    m1 = _by_id(users, "M1")

    assert [u["id"] for u in get_visible_users(m1, users)] == ["M1", "E1", "E2", "X1"]
    visible_sales = get_visible_sales_records(m1, sales, users)
    assert {s["userId"] for s in visible_sales} == {"M1", "E1", "E2", "X1"}
    assert "E3" not in {a["userId"] for a in get_visible_attendance_records(m1, attendance, users)}


def test_manager_scoping_is_one_level_deep():
    users = [
        {"id": "M1", "role": "manager", "manager": None},
        {"id": "M2", "role": "manager", "manager": "M1"},
        {"id": "E9", "role": "employee", "manager": "M2"},
    ]
    sales = [{"id": "s9", "userId": "E9"}, {"id": "s2", "userId": "M2"}]
    m1 = users[0]
    assert [s["id"] for s in get_visible_sales_records(m1, sales, users)] == ["s2"]


def test_visibility_is_a_subset(org):
    users, sales, _ = org
    for actor in users:
        visible = get_visible_users(actor, users)
        assert all(u in users for u in visible)
        assert all(s in sales for s in get_visible_sales_records(actor, sales, users))


def test_can_view_user_data(org):
    users, _, _ = org
    assert can_view_user_data(_by_id(users, "ADM"), "E3", users)
    assert can_view_user_data(_by_id(users, "M1"), "E1", users)
    assert not can_view_user_data(_by_id(users, "M1"), "E3", users)
    assert can_view_user_data(_by_id(users, "E1"), "E1", users)
    assert not can_view_user_data(_by_id(users, "E1"), "E2", users)


def test_team_hierarchy(org):
    users, _, _ = org
    team = get_team_hierarchy("M2", users)
    assert team["manager"]["id"] == "M2"
    assert [u["id"] for u in team["teamMembers"]] == ["E3"]
    assert get_team_hierarchy("E1", users) is None
    assert get_team_hierarchy("nobody", users) is None


def test_reporting_structure(org):
    users, _, _ = org
    structure = get_reporting_structure(users)
    assert set(structure) == {"M1", "M2"}
    assert [u["id"] for u in structure["M1"]] == ["E1", "E2", "X1"]


def test_access_control_levels(org):
    users, _, _ = org
    assert AccessControl(_by_id(users, "ADM"), users).get_access_level() == "full"
    assert AccessControl(_by_id(users, "M1"), users).get_access_level() == "team"
    assert AccessControl(_by_id(users, "E1"), users).get_access_level() == "self"
    assert AccessControl(None, users).get_access_level() == "self"


def test_access_control_permissions(org):
    users, _, _ = org
    admin = AccessControl(_by_id(users, "ADM"), users)
    manager = AccessControl(_by_id(users, "M1"), users)
    employee = AccessControl(_by_id(users, "E1"), users)

    assert admin.can_manage_users() and admin.can_mark_attendance()
    assert not manager.can_manage_users() and manager.can_mark_attendance()
    assert not employee.can_manage_users() and not employee.can_mark_attendance()


def test_filter_dataframe(org):
    users, sales, _ = org
    df = pd.DataFrame(sales)

    manager = AccessControl(_by_id(users, "M1"), users)
    assert sorted(manager.filter_dataframe(df)["userId"]) == ["E1", "E2", "M1", "X1"]

    employee = AccessControl(_by_id(users, "E1"), users)
    assert list(employee.filter_dataframe(df)["userId"]) == ["E1"]
    assert employee.filter_dataframe(df[["id"]]).empty

    admin = AccessControl(_by_id(users, "ADM"), users)
    assert admin.filter_dataframe(df) is df


def test_validate_selected_users(org):
    users, _, _ = org
    manager = AccessControl(_by_id(users, "M1"), users)
    assert manager.validate_selected_users(["E1", "E3", "M1"]) == ["E1", "M1"]
    assert manager.get_accessible_user_ids() == ["M1", "E1", "E2", "X1"]
