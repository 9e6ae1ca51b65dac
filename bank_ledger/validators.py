"""Pure input predicates used by front-ends before calling the ledger."""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Type

MAX_TRANSACTION_AMOUNT = Decimal("1000000")

_EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
_PHONE_SEPARATORS = re.compile(r'[\s\-()]')


def _non_blank_between(value: Any, low: int, high: int) -> bool:
    return isinstance(value, str) and bool(value.strip()) and low <= len(value) <= high


def is_valid_customer_name(name: str) -> bool:
    return _non_blank_between(name, 2, 100)


def is_valid_age(age: int) -> bool:
    return isinstance(age, int) and not isinstance(age, bool) and 18 <= age <= 120


def is_valid_phone_number(phone_number: str) -> bool:
    """10-15 digits once spaces, dashes and parentheses are removed"""
    if not isinstance(phone_number, str) or not phone_number.strip():
        return False
    cleaned = _PHONE_SEPARATORS.sub('', phone_number)
    return cleaned.isdigit() and 10 <= len(cleaned) <= 15


def is_valid_account_number(account_number: str) -> bool:
    return (isinstance(account_number, str) and account_number.isdigit()
            and 6 <= len(account_number) <= 20)


def is_valid_transaction_amount(amount: Any) -> bool:
    """Positive and at most one million"""
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and Decimal("0") < value <= MAX_TRANSACTION_AMOUNT


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and bool(_EMAIL_PATTERN.match(email))


def is_valid_address(address: str) -> bool:
    return _non_blank_between(address, 10, 200)


def is_valid_nationality(nationality: str) -> bool:
    return _non_blank_between(nationality, 2, 50)


def is_valid_complaint_narration(narration: str) -> bool:
    return _non_blank_between(narration, 10, 1000)


def is_valid_enum_value(enum_type: Type[Enum], value: Any) -> bool:
    """Accepts a member of ``enum_type`` or one of its stored ordinals"""
    if isinstance(value, enum_type):
        return True
    try:
        enum_type(value)
    except ValueError:
        return False
    return True
