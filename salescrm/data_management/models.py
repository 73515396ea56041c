# salescrm/data_management/models.py
"""
Record vocabulary for users, sales and attendance.

Records stay plain JSON dicts (that is how they are stored), but the
closed value sets are parsed into enums at the boundary, and the
"absent field means default" rules live here instead of at each call site.
"""

from enum import Enum
from typing import Any, Dict, Optional


class _ClosedEnum(str, Enum):
    """str enum whose parse() never raises; unmatched input maps to UNKNOWN."""

    @classmethod
    def parse(cls, value: Any) -> "_ClosedEnum":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNKNOWN


class Role(_ClosedEnum):
    ADMIN = 'admin'
    MANAGER = 'manager'
    EMPLOYEE = 'employee'
    UNKNOWN = 'unknown'


class AttendanceStatus(_ClosedEnum):
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'
    UNKNOWN = 'unknown'


class PaymentStatus(_ClosedEnum):
    PAID = 'paid'
    PENDING = 'pending'
    PARTIAL = 'partial'
    OVERDUE = 'overdue'
    UNKNOWN = 'unknown'


class Priority(_ClosedEnum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'
    UNKNOWN = 'unknown'


class DealStage(_ClosedEnum):
    PROSPECT = 'prospect'
    QUALIFIED = 'qualified'
    PROPOSAL = 'proposal'
    NEGOTIATION = 'negotiation'
    CLOSED_WON = 'closed-won'
    CLOSED_LOST = 'closed-lost'
    UNKNOWN = 'unknown'


# =====================================================================
# FIELD ACCESSORS
# =====================================================================

def get_role(user: Optional[Dict]) -> Role:
    if not user:
        return Role.UNKNOWN
    return Role.parse(user.get('role'))


def is_user_active(user: Dict) -> bool:
    """isActive is tri-state: only an explicit False means inactive."""
    return user.get('isActive') is not False


def has_active_flag(user: Dict) -> bool:
    """True when isActive is explicitly stored (True or False)."""
    return user.get('isActive') is not None


def to_number(value: Any) -> Optional[float]:
    """Numeric value as float, or None for missing / non-numeric input."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def get_user_target(user: Dict) -> float:
    return to_number(user.get('target')) or 0.0


def get_discount(sale: Dict) -> float:
    return to_number(sale.get('discount')) or 0.0


def compute_total_amount(quantity: Any, unit_price: Any, discount: Any = 0) -> Optional[float]:
    """quantity * unitPrice - discount, or None when an operand is not numeric."""
    qty = to_number(quantity)
    price = to_number(unit_price)
    if qty is None or price is None:
        return None
    return qty * price - (to_number(discount) or 0.0)


def expected_sale_total(sale: Dict) -> Optional[float]:
    return compute_total_amount(sale.get('quantity'), sale.get('unitPrice'), sale.get('discount'))


__all__ = [
    'Role',
    'AttendanceStatus',
    'PaymentStatus',
    'Priority',
    'DealStage',
    'get_role',
    'is_user_active',
    'has_active_flag',
    'to_number',
    'get_user_target',
    'get_discount',
    'compute_total_amount',
    'expected_sale_total',
]
