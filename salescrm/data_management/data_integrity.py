# salescrm/data_management/data_integrity.py
"""
Data Integrity for CRM collections

Cross-collection checks over users, sales and attendance:
- validate_user_data / validate_sales_data / validate_attendance_data
- validate_all_data: the three combined
- fix_data_issues: deterministic, idempotent repair of a fixed set of issues
- validate_before_save / check_referential_integrity: quick write-path guards

Everything here is pure: collections in, results out. Persisting a repair
is the caller's job (see CRMService.repair_data).

Repair deliberately leaves duplicate employee IDs / usernames and bad
dates alone; those need a human decision and stay reported as errors.
"""

import logging
import re
from dataclasses import dataclass, field
from collections.abc import Hashable
from typing import Any, Dict, List, Set

from .constants import TOTAL_AMOUNT_TOLERANCE, MAX_SHIFT_HOURS
from .date_utils import parse_timestamp
from .models import (
    Role, AttendanceStatus, to_number, expected_sale_total, has_active_flag,
)

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r'\s+')


@dataclass
class DataValidationResult:
    """Outcome of a validation pass. Errors block, warnings inform."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }


@dataclass
class RepairResult:
    """Repaired collections plus one message per fix applied."""
    users: List[Dict]
    sales: List[Dict]
    attendance: List[Dict]
    fixes_applied: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'users': self.users,
            'sales': self.sales,
            'attendance': self.attendance,
            'fixesApplied': list(self.fixes_applied),
        }


# =============================================================================
# HELPERS
# =============================================================================

def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _normalize_key(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ''


def _user_ids(users: List[Dict]) -> Set[Any]:
    return {u.get('id') for u in users if isinstance(u.get('id'), Hashable)}


def _resolves(record: Dict, user_ids: Set[Any]) -> bool:
    user_id = record.get('userId')
    return isinstance(user_id, Hashable) and user_id in user_ids


def _fmt(value: Any) -> str:
    number = to_number(value)
    return f"{number:g}" if number is not None else str(value)


def normalize_username(username: str) -> str:
    """Lowercase, whitespace runs replaced by '.'"""
    return WHITESPACE_PATTERN.sub('.', username.lower())


# =============================================================================
# VALIDATION
# =============================================================================

def validate_user_data(users: List[Dict]) -> DataValidationResult:
    """Duplicate keys, required fields and role checks over the user list."""
    result = DataValidationResult()

    seen_employee_ids: Set[str] = set()
    seen_usernames: Set[str] = set()

    for index, user in enumerate(users):
        employee_id = user.get('employeeId')
        label = employee_id if not _is_blank(employee_id) else f"at index {index}"

        # Case-insensitive duplicate detection; blank values are reported below
        emp_key = _normalize_key(employee_id)
        if emp_key:
            if emp_key in seen_employee_ids:
                result.errors.append(f"Duplicate employee ID found: {employee_id}")
            seen_employee_ids.add(emp_key)

        username = user.get('username')
        user_key = _normalize_key(username)
        if user_key:
            if user_key in seen_usernames:
                result.errors.append(f"Duplicate username found: {username}")
            seen_usernames.add(user_key)

        if _is_blank(user.get('name')):
            result.errors.append(f"User at index {index} has empty name")

        if _is_blank(employee_id):
            result.errors.append(f"User at index {index} has empty employee ID")

        if _is_blank(username):
            result.errors.append(f"User at index {index} has empty username")

        if Role.parse(user.get('role')) is Role.UNKNOWN:
            result.errors.append(f"User {label} has invalid role: {user.get('role')}")

        if not user.get('phone'):
            result.warnings.append(f"User {label} has no phone number")

        if not user.get('designation'):
            result.warnings.append(f"User {label} has no designation")

    return result


def validate_sales_data(sales: List[Dict], users: List[Dict]) -> DataValidationResult:
    """Referential, required-field, numeric and total-consistency checks."""
    result = DataValidationResult()
    user_ids = _user_ids(users)

    for sale in sales:
        sale_id = sale.get('id')

        if not _resolves(sale, user_ids):
            result.errors.append(
                f"Sales record {sale_id} references non-existent user: {sale.get('userId')}"
            )

        if _is_blank(sale.get('productName')):
            result.errors.append(f"Sales record {sale_id} has empty product name")

        if _is_blank(sale.get('customer')):
            result.errors.append(f"Sales record {sale_id} has empty customer name")

        for field_name, label in (('quantity', 'quantity'),
                                  ('unitPrice', 'unit price'),
                                  ('totalAmount', 'total amount')):
            value = to_number(sale.get(field_name))
            if value is None or value <= 0:
                result.errors.append(
                    f"Sales record {sale_id} has invalid {label}: {sale.get(field_name)}"
                )

        expected = expected_sale_total(sale)
        actual = to_number(sale.get('totalAmount'))
        if expected is not None and actual is not None and abs(actual - expected) > TOTAL_AMOUNT_TOLERANCE:
            result.errors.append(
                f"Sales record {sale_id} has incorrect total amount: "
                f"expected {_fmt(expected)}, got {_fmt(actual)}"
            )

        if parse_timestamp(sale.get('date')) is None:
            result.errors.append(f"Sales record {sale_id} has invalid date: {sale.get('date')}")

        if not sale.get('customerEmail') and not sale.get('customerPhone'):
            result.warnings.append(f"Sales record {sale_id} has no customer contact information")

    return result


def validate_attendance_data(attendance: List[Dict], users: List[Dict]) -> DataValidationResult:
    """Referential, date, status and check-in/check-out ordering checks."""
    result = DataValidationResult()
    user_ids = _user_ids(users)

    for record in attendance:
        record_id = record.get('id')

        if not _resolves(record, user_ids):
            result.errors.append(
                f"Attendance record {record_id} references non-existent user: {record.get('userId')}"
            )

        if parse_timestamp(record.get('date')) is None:
            result.errors.append(f"Attendance record {record_id} has invalid date: {record.get('date')}")

        status = AttendanceStatus.parse(record.get('status'))
        if status is AttendanceStatus.UNKNOWN:
            result.errors.append(f"Attendance record {record_id} has invalid status: {record.get('status')}")

        if record.get('checkIn') and record.get('checkOut'):
            check_in = parse_timestamp(record['checkIn'])
            check_out = parse_timestamp(record['checkOut'])

            # Unparseable timestamps cannot be ordered; nothing to compare
            if check_in is not None and check_out is not None:
                if check_out <= check_in:
                    result.errors.append(
                        f"Attendance record {record_id} has check-out time before check-in time"
                    )

                total_hours = (check_out - check_in).total_seconds() / 3600
                if total_hours > MAX_SHIFT_HOURS:
                    result.warnings.append(
                        f"Attendance record {record_id} has unusually long work hours: {total_hours:.2f} hours"
                    )

        if status is AttendanceStatus.PRESENT and not record.get('checkIn'):
            result.warnings.append(
                f"Attendance record {record_id} marked as present but no check-in time"
            )

    return result


def validate_all_data(
    users: List[Dict],
    sales: List[Dict],
    attendance: List[Dict]
) -> DataValidationResult:
    """Run all three validators; valid only when each one is."""
    parts = [
        validate_user_data(users),
        validate_sales_data(sales, users),
        validate_attendance_data(attendance, users),
    ]

    combined = DataValidationResult()
    for part in parts:
        combined.errors.extend(part.errors)
        combined.warnings.extend(part.warnings)

    logger.info(
        f"Data validation: {len(combined.errors)} errors, {len(combined.warnings)} warnings "
        f"({len(users)} users, {len(sales)} sales, {len(attendance)} attendance)"
    )
    return combined


# =============================================================================
# REPAIR
# =============================================================================

def fix_data_issues(
    users: List[Dict],
    sales: List[Dict],
    attendance: List[Dict]
) -> RepairResult:
    """
    Repair the known, mechanical issues in the collections.

    Fixes, in order:
        1. username normalized to lowercase with whitespace -> '.'
        2. missing isActive defaulted to True
        3. sales records with an unknown userId dropped
        4. totalAmount recomputed when off by more than the tolerance
           (a missing or non-numeric total is left for a person to fix)
        5. attendance records with an unknown userId dropped

    Input lists are not mutated. Running the result through again yields
    the same collections and no fixes.

    Raises:
        TypeError: if any collection is not a list
    """
    for name, collection in (('users', users), ('sales', sales), ('attendance', attendance)):
        if not isinstance(collection, list):
            raise TypeError(f"{name} must be a list, got {type(collection).__name__}")

    fixes: List[str] = []

    fixed_users = []
    for user in users:
        fixed = dict(user)
        label = fixed.get('employeeId') or fixed.get('id')

        username = fixed.get('username')
        if isinstance(username, str):
            normalized = normalize_username(username)
            if normalized != username:
                fixed['username'] = normalized
                fixes.append(f"Fixed username format for {label}")

        if not has_active_flag(fixed):
            fixed['isActive'] = True
            fixes.append(f"Set active status for {label}")

        fixed_users.append(fixed)

    user_ids = _user_ids(fixed_users)

    fixed_sales = []
    for sale in sales:
        if not _resolves(sale, user_ids):
            fixes.append(f"Removed sales record {sale.get('id')} with invalid user reference")
            continue

        fixed = dict(sale)
        expected = expected_sale_total(fixed)
        actual = to_number(fixed.get('totalAmount'))
        if expected is not None and actual is not None and abs(actual - expected) > TOTAL_AMOUNT_TOLERANCE:
            fixed['totalAmount'] = expected
            fixes.append(f"Fixed total amount calculation for sales record {fixed.get('id')}")

        fixed_sales.append(fixed)

    fixed_attendance = []
    for record in attendance:
        if not _resolves(record, user_ids):
            fixes.append(f"Removed attendance record {record.get('id')} with invalid user reference")
            continue
        fixed_attendance.append(dict(record))

    logger.info(f"🔧 Data repair applied {len(fixes)} fixes")

    return RepairResult(
        users=fixed_users,
        sales=fixed_sales,
        attendance=fixed_attendance,
        fixes_applied=fixes,
    )


# =============================================================================
# WRITE-PATH GUARDS
# =============================================================================

def validate_before_save(data_type: str, data: Any) -> bool:
    """Minimal shape check before a collection is persisted."""
    if not isinstance(data, list):
        return False

    def _all(predicate) -> bool:
        return all(isinstance(item, dict) and predicate(item) for item in data)

    if data_type == 'users':
        return _all(lambda u: bool(u.get('id')) and bool(u.get('employeeId')))
    if data_type == 'sales':
        return _all(lambda s: bool(s.get('id')) and bool(s.get('userId'))
                    and (to_number(s.get('totalAmount')) or 0) > 0)
    if data_type == 'attendance':
        return _all(lambda a: bool(a.get('id')) and bool(a.get('userId')) and bool(a.get('date')))

    logger.warning(f"validate_before_save: unknown data type '{data_type}'")
    return False


def check_referential_integrity(
    users: List[Dict],
    sales: List[Dict],
    attendance: List[Dict]
) -> Dict[str, Any]:
    """Dangling userId references only; cheaper than validate_all_data."""
    user_ids = _user_ids(users)
    errors = []

    for sale in sales:
        if not _resolves(sale, user_ids):
            errors.append(f"Sales record {sale.get('id')} references non-existent user {sale.get('userId')}")

    for record in attendance:
        if not _resolves(record, user_ids):
            errors.append(
                f"Attendance record {record.get('id')} references non-existent user {record.get('userId')}"
            )

    return {'isValid': len(errors) == 0, 'errors': errors}


__all__ = [
    'DataValidationResult',
    'RepairResult',
    'normalize_username',
    'validate_user_data',
    'validate_sales_data',
    'validate_attendance_data',
    'validate_all_data',
    'fix_data_issues',
    'validate_before_save',
    'check_referential_integrity',
]
