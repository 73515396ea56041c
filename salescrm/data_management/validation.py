# salescrm/data_management/validation.py
"""
Input validation for single fields and sales entry forms.

Pure functions, no I/O. Multi-rule checks return every violated rule,
not just the first.
"""

import re
from typing import Any, Dict, List, Tuple

from .models import compute_total_amount, to_number

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{0,15}$')
PHONE_STRIP_PATTERN = re.compile(r'[\s\-()]')
EMPLOYEE_ID_PATTERN = re.compile(r'^[A-Z0-9]{3,10}$')
TAG_CHARS_PATTERN = re.compile(r'[<>]')

MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_phone(phone: Any) -> bool:
    """Spaces, hyphens and parentheses are ignored; optional leading '+'."""
    if not isinstance(phone, str):
        return False
    return PHONE_PATTERN.fullmatch(PHONE_STRIP_PATTERN.sub('', phone)) is not None


def is_valid_employee_id(employee_id: Any) -> bool:
    """3-10 characters, uppercase letters and digits only."""
    return isinstance(employee_id, str) and EMPLOYEE_ID_PATTERN.fullmatch(employee_id) is not None


def check_password_strength(password: Any) -> Tuple[bool, List[str]]:
    """
    Check a password against the strength rules.

    Returns:
        Tuple of (is_valid, errors)
    """
    password = password if isinstance(password, str) else ''
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if not re.search(r'[A-Za-z]', password):
        errors.append("Password must contain at least one letter")

    if not re.search(r'[0-9]', password):
        errors.append("Password must contain at least one number")

    return len(errors) == 0, errors


def sanitize(value: Any) -> str:
    """Trim whitespace and strip literal '<' / '>' characters."""
    if value is None:
        return ''
    return TAG_CHARS_PATTERN.sub('', str(value).strip())


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_sales_record_input(fields: Dict) -> Tuple[bool, List[str]]:
    """
    Validate a sales entry form before it becomes a record.

    Optional contact fields are only checked when non-empty.

    Returns:
        Tuple of (is_valid, errors)
    """
    errors = []

    if _is_blank(fields.get('productName')):
        errors.append("Product name is required")

    if _is_blank(fields.get('customer')):
        errors.append("Customer name is required")

    quantity = to_number(fields.get('quantity'))
    if quantity is None or quantity <= 0:
        errors.append("Quantity must be greater than 0")

    unit_price = to_number(fields.get('unitPrice'))
    if unit_price is None or unit_price <= 0:
        errors.append("Unit price must be greater than 0")

    discount = fields.get('discount')
    if discount not in (None, ''):
        discount_value = to_number(discount)
        if discount_value is None or discount_value < 0:
            errors.append("Discount cannot be negative")
        elif (quantity or 0) > 0 and (unit_price or 0) > 0 \
                and compute_total_amount(quantity, unit_price, discount_value) <= 0:
            errors.append("Discount must be less than the sale amount")

    email = fields.get('customerEmail')
    if email and not is_valid_email(email):
        errors.append("Invalid email format")

    phone = fields.get('customerPhone')
    if phone and not is_valid_phone(phone):
        errors.append("Invalid phone number format")

    return len(errors) == 0, errors


__all__ = [
    'is_valid_email',
    'is_valid_phone',
    'is_valid_employee_id',
    'check_password_strength',
    'sanitize',
    'validate_sales_record_input',
]
