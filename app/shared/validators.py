"""Shared validation utilities"""

import math
import re
from datetime import datetime
from typing import Optional


def validate_ph_mobile(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Philippine mobile number to E.164 format.

    Accepts 09XXXXXXXXX, 9XXXXXXXXX, 639XXXXXXXXX and +639XXXXXXXXX with
    any spacing or punctuation.

    Raises:
        ValueError: If the number is not a Philippine mobile number
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("63") and len(digits) == 12:
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10 or not digits.startswith("9"):
        raise ValueError("Mobile number must be a valid Philippine mobile number (09XXXXXXXXX)")

    return f"+63{digits}"


def validate_date_string(value: Optional[str]) -> Optional[str]:
    """Check a YYYY-MM-DD date string; returns it unchanged"""
    if not value:
        return value
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError("Date must be in YYYY-MM-DD format") from e
    return value


def is_number(value) -> bool:
    """True for finite ints and floats, False for bools, NaN, infinity and numeric strings"""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
