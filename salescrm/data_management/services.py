# salescrm/data_management/services.py
"""
CRM Service for business operations

Employee management, sales entry, attendance and integrity maintenance.
Every mutation follows the same shape: read the full collection, compute
the new full collection, write it back through the real-time manager
(last writer wins for the whole collection).
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .access_control import AccessControl
from .constants import LOG_KEYS
from .data_integrity import (
    DataValidationResult, RepairResult, validate_all_data, fix_data_issues,
    validate_before_save, normalize_username,
)
from .date_utils import now_iso, today_str
from .models import AttendanceStatus, compute_total_amount, is_user_active, to_number
from .realtime_sync import RealTimeDataManager
from .storage import CRMStorage
from .validation import (
    is_valid_employee_id, is_valid_email, is_valid_phone,
    check_password_strength, sanitize, validate_sales_record_input,
)

logger = logging.getLogger(__name__)

SALE_TEXT_FIELDS = [
    'productName', 'customer', 'customerEmail', 'customerPhone',
    'customerCompany', 'customerAddress', 'notes', 'territory', 'leadSource',
]

# ==================== CUSTOM EXCEPTIONS ====================
class CRMError(Exception):
    """Base exception for CRM operations"""
    pass

class RecordNotFoundError(CRMError):
    """Raised when a referenced record does not exist"""
    pass

class ValidationFailedError(CRMError):
    """Raised when input fails validation; carries every message"""
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

class PermissionDeniedError(CRMError):
    """Raised when the actor may not perform the operation"""
    pass


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


# ==================== CRM SERVICE ====================
class CRMService:
    """Business operations over storage, written through the sync manager."""

    def __init__(self, storage: CRMStorage, manager: RealTimeDataManager):
        self.storage = storage
        self.manager = manager

    # ==================== EMPLOYEES ====================

    def add_employee(self, user_data: Dict, actor: Optional[Dict] = None) -> Dict:
        """
        Create a user. The id is the employee id.

        Raises:
            PermissionDeniedError: actor given and not an admin
            ValidationFailedError: bad or duplicate employee id / username,
                weak password, bad contact details
        """
        users = self.storage.get_users()
        if actor is not None and not AccessControl(actor, users).can_manage_users():
            raise PermissionDeniedError("Only administrators can add employees")

        errors = []
        employee_id = sanitize(user_data.get('employeeId')).upper()
        name = sanitize(user_data.get('name'))
        username = sanitize(user_data.get('username')) or name
        username = normalize_username(username) if username else ''

        if not name:
            errors.append("Name is required")
        if not is_valid_employee_id(employee_id):
            errors.append("Employee ID must be 3-10 uppercase letters or digits")
        if any((u.get('employeeId') or '').lower() == employee_id.lower() for u in users):
            errors.append(f"Employee ID {employee_id} already exists")
        if not username:
            errors.append("Username is required")
        elif any((u.get('username') or '').lower() == username for u in users):
            errors.append(f"Username {username} already exists")

        password_ok, password_errors = check_password_strength(user_data.get('password'))
        if not password_ok:
            errors.extend(password_errors)

        if user_data.get('email') and not is_valid_email(user_data['email']):
            errors.append("Invalid email format")
        if user_data.get('phone') and not is_valid_phone(user_data['phone']):
            errors.append("Invalid phone number format")

        if errors:
            raise ValidationFailedError(errors)

        new_user = {
            **user_data,
            'id': employee_id,
            'employeeId': employee_id,
            'name': name,
            'username': username,
            'role': user_data.get('role') or 'employee',
            'manager': user_data.get('manager') or None,
            'target': to_number(user_data.get('target')) or 0,
            'isActive': user_data.get('isActive', True),
            'joinDate': user_data.get('joinDate') or today_str(),
        }

        self.manager.update_users(users + [new_user], actor_id=(actor or {}).get('id'))
        logger.info(f"👤 Added employee {employee_id} ({new_user['role']})")
        return new_user

    def update_user_profile(self, user_id: str, updates: Dict, actor_id: Optional[str] = None) -> Dict:
        """
        Merge a partial patch into a user and log the changed fields.

        Raises:
            RecordNotFoundError: unknown user id
        """
        users = self.storage.get_users()
        index = next((i for i, u in enumerate(users) if u.get('id') == user_id), None)
        if index is None:
            raise RecordNotFoundError(f"User {user_id} not found")

        patch = {k: v for k, v in updates.items() if k != 'id'}
        updated = {**users[index], **patch, 'lastUpdated': now_iso()}
        users[index] = updated
        self.manager.update_users(users, actor_id=actor_id)

        self.storage.append_log(LOG_KEYS['PROFILE_UPDATE'], {
            'timestamp': updated['lastUpdated'],
            'userId': user_id,
            'fields': sorted(patch.keys()),
            'updatedBy': actor_id,
        })
        return updated

    def delete_employee(self, user_id: str, actor: Optional[Dict] = None) -> bool:
        """
        Remove a user. Sales, attendance and reports pointing at them are left
        as they are; data validation will flag them.
        """
        users = self.storage.get_users()
        if actor is not None and not AccessControl(actor, users).can_manage_users():
            raise PermissionDeniedError("Only administrators can delete employees")

        remaining = [u for u in users if u.get('id') != user_id]
        if len(remaining) == len(users):
            return False

        self.manager.update_users(remaining, actor_id=(actor or {}).get('id'))
        logger.info(f"🗑️ Deleted employee {user_id}")
        return True

    def toggle_active(self, user_id: str, actor_id: Optional[str] = None) -> Dict:
        users = self.storage.get_users()
        user = next((u for u in users if u.get('id') == user_id), None)
        if user is None:
            raise RecordNotFoundError(f"User {user_id} not found")
        return self.update_user_profile(user_id, {'isActive': not is_user_active(user)}, actor_id)

    def reset_user_password(self, employee_id: str, new_password: str) -> bool:
        """Admin reset by employee id. Returns False for an unknown id."""
        ok, errors = check_password_strength(new_password)
        if not ok:
            raise ValidationFailedError(errors)

        users = self.storage.get_users()
        for user in users:
            if user.get('employeeId') == employee_id:
                user['password'] = new_password
                self.manager.update_users(users)
                return True
        return False

    def record_login(self, user: Dict) -> Dict:
        """Stamp lastLogin and append to the login log."""
        timestamp = now_iso()
        users = self.storage.get_users()
        updated_users = [
            {**u, 'lastLogin': timestamp} if u.get('id') == user.get('id') else u
            for u in users
        ]
        self.manager.update_users(updated_users, actor_id=user.get('id'))
        self.storage.append_log(LOG_KEYS['LOGIN'], {
            'timestamp': timestamp,
            'userId': user.get('id'),
            'employeeId': user.get('employeeId'),
        })
        return {**user, 'lastLogin': timestamp}

    # ==================== SALES ====================

    def create_sale(self, fields: Dict, user_id: str) -> Dict:
        """
        Validate and append a sales record owned by user_id.

        Raises:
            ValidationFailedError: input fails the sales entry rules
        """
        ok, errors = validate_sales_record_input(fields)
        if not ok:
            raise ValidationFailedError(errors)

        sale = self._build_sale(fields)
        sale.update({
            'id': fields.get('id') or _new_id(),
            'userId': user_id,
            'date': fields.get('date') or today_str(),
            'submittedAt': now_iso(),
        })

        sales = self.storage.get_sales_records()
        sales.append(sale)
        self._save_sales(sales, [sale], actor_id=user_id)

        self.storage.append_log(LOG_KEYS['SALES'], {
            'timestamp': sale['submittedAt'],
            'action': 'create',
            'saleId': sale['id'],
            'userId': user_id,
            'totalAmount': sale['totalAmount'],
        })
        logger.info(f"💰 Sale {sale['id']} recorded for {user_id}: {sale['totalAmount']:,.2f}")
        return sale

    def edit_sale(self, sale_id: str, updates: Dict, actor_id: Optional[str] = None) -> Dict:
        """
        Apply edits to a sale and re-derive totalAmount.

        Raises:
            RecordNotFoundError: unknown sale id
            ValidationFailedError: edited record fails the sales entry rules
        """
        sales = self.storage.get_sales_records()
        index = next((i for i, s in enumerate(sales) if s.get('id') == sale_id), None)
        if index is None:
            raise RecordNotFoundError(f"Sales record {sale_id} not found")

        merged = {**sales[index], **{k: v for k, v in updates.items() if k not in ('id', 'userId')}}
        ok, errors = validate_sales_record_input(merged)
        if not ok:
            raise ValidationFailedError(errors)

        edited = {**merged, **self._build_sale(merged), 'lastUpdated': now_iso()}
        sales[index] = edited
        self._save_sales(sales, [edited], actor_id=actor_id)

        self.storage.append_log(LOG_KEYS['SALES'], {
            'timestamp': edited['lastUpdated'],
            'action': 'edit',
            'saleId': sale_id,
            'userId': actor_id,
            'totalAmount': edited['totalAmount'],
        })
        return edited

    def delete_sale(self, sale_id: str, actor_id: Optional[str] = None) -> bool:
        sales = self.storage.get_sales_records()
        remaining = [s for s in sales if s.get('id') != sale_id]
        if len(remaining) == len(sales):
            return False

        self._save_sales(remaining, [], actor_id=actor_id)
        self.storage.append_log(LOG_KEYS['SALES'], {
            'timestamp': now_iso(),
            'action': 'delete',
            'saleId': sale_id,
            'userId': actor_id,
        })
        return True

    def _build_sale(self, fields: Dict) -> Dict:
        """Sanitized copy of the entry with numeric fields and derived total."""
        sale = dict(fields)
        for name in SALE_TEXT_FIELDS:
            if name in sale and sale[name] is not None:
                sale[name] = sanitize(sale[name])

        sale['quantity'] = to_number(fields.get('quantity'))
        sale['unitPrice'] = to_number(fields.get('unitPrice'))
        sale['discount'] = to_number(fields.get('discount')) or 0
        sale['totalAmount'] = compute_total_amount(sale['quantity'], sale['unitPrice'], sale['discount'])
        return sale

    def _save_sales(self, sales: List[Dict], written: List[Dict], actor_id: Optional[str]) -> None:
        # Only the records being written are checked; stored rows are left to repair
        if not validate_before_save('sales', written):
            raise ValidationFailedError(["Sales record is missing an id, owner or positive total"])
        self.manager.update_sales(sales, actor_id=actor_id)

    # ==================== ATTENDANCE ====================

    def get_today_record(self, user_id: str, attendance: Optional[List[Dict]] = None) -> Optional[Dict]:
        records = attendance if attendance is not None else self.storage.get_attendance_records()
        today = today_str()
        return next(
            (r for r in records if r.get('userId') == user_id and r.get('date') == today),
            None,
        )

    def check_in(self, user_id: str, now: Optional[datetime] = None) -> Dict:
        """
        Create today's record for the user with checkIn set.
        Returns the existing record when already checked in today.
        """
        now = now or datetime.now()
        attendance = self.storage.get_attendance_records()
        existing = self.get_today_record(user_id, attendance)
        if existing is not None:
            logger.info(f"{user_id} already has an attendance record for today")
            return existing

        record = {
            'id': _new_id(),
            'userId': user_id,
            'date': now.strftime('%Y-%m-%d'),
            'checkIn': now.isoformat(),
            'status': AttendanceStatus.PRESENT.value,
        }
        self._save_attendance(attendance + [record], actor_id=user_id, action='check_in', record=record)
        return record

    def check_out(self, user_id: str, now: Optional[datetime] = None) -> Dict:
        """
        Set checkOut on today's record.

        Raises:
            RecordNotFoundError: no check-in today
        """
        now = now or datetime.now()
        attendance = self.storage.get_attendance_records()
        existing = self.get_today_record(user_id, attendance)
        if existing is None:
            raise RecordNotFoundError(f"No attendance record for {user_id} today")

        updated = {**existing, 'checkOut': now.isoformat()}
        records = [updated if r.get('id') == existing.get('id') else r for r in attendance]
        self._save_attendance(records, actor_id=user_id, action='check_out', record=updated)
        return updated

    def mark_attendance(self, user_id: str, status: str, marked_by: Dict) -> Dict:
        """
        Mark today's status for someone else (manager/admin).

        An existing record for today gets its status replaced; otherwise a new
        record is created, with checkIn only for present / late.

        Raises:
            ValidationFailedError: unknown status
            PermissionDeniedError: marker cannot mark or cannot see the user
        """
        parsed = AttendanceStatus.parse(status)
        if parsed is AttendanceStatus.UNKNOWN:
            raise ValidationFailedError([f"Invalid attendance status: {status}"])

        access = AccessControl(marked_by, self.storage.get_users())
        if not access.can_mark_attendance() or not access.can_view(user_id):
            raise PermissionDeniedError(f"{marked_by.get('id')} cannot mark attendance for {user_id}")

        attendance = self.storage.get_attendance_records()
        existing = self.get_today_record(user_id, attendance)

        if existing is not None:
            record = {**existing, 'status': parsed.value}
            records = [record if r.get('id') == existing.get('id') else r for r in attendance]
        else:
            record = {
                'id': _new_id(),
                'userId': user_id,
                'date': today_str(),
                'status': parsed.value,
            }
            if parsed in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
                record['checkIn'] = now_iso()
            records = attendance + [record]

        self._save_attendance(records, actor_id=marked_by.get('id'), action='mark', record=record)
        return record

    def _save_attendance(self, records: List[Dict], actor_id: Optional[str], action: str, record: Dict) -> None:
        self.manager.update_attendance(records, actor_id=actor_id)
        self.storage.append_log(LOG_KEYS['ATTENDANCE'], {
            'timestamp': now_iso(),
            'action': action,
            'recordId': record.get('id'),
            'userId': record.get('userId'),
            'status': record.get('status'),
            'actorId': actor_id,
        })

    # ==================== INTEGRITY ====================

    def run_validation(self) -> DataValidationResult:
        return validate_all_data(
            self.storage.get_users(),
            self.storage.get_sales_records(),
            self.storage.get_attendance_records(),
        )

    def repair_data(self, actor_id: Optional[str] = None) -> RepairResult:
        """Apply fix_data_issues to stored data and persist changed collections."""
        users = self.storage.get_users()
        sales = self.storage.get_sales_records()
        attendance = self.storage.get_attendance_records()

        result = fix_data_issues(users, sales, attendance)
        if not result.fixes_applied:
            logger.info("No data issues to repair")
            return result

        if result.users != users:
            self.manager.update_users(result.users, actor_id=actor_id)
        if result.sales != sales:
            self.manager.update_sales(result.sales, actor_id=actor_id)
        if result.attendance != attendance:
            self.manager.update_attendance(result.attendance, actor_id=actor_id)

        logger.info(f"🔧 Repaired stored data: {len(result.fixes_applied)} fixes")
        return result

    # ==================== EXPORT LOG ====================

    def log_data_export(self, export_type: str, record_count: int, user_id: Optional[str]) -> Dict[str, Any]:
        """Record an export, attributed to the exporting user."""
        entry = {
            'timestamp': now_iso(),
            'exportType': export_type,
            'recordCount': record_count,
            'userId': user_id,
        }
        self.storage.append_log(LOG_KEYS['EXPORT'], entry)
        return entry


__all__ = [
    'CRMService',
    'CRMError',
    'RecordNotFoundError',
    'ValidationFailedError',
    'PermissionDeniedError',
]
