# scan_hub/services/ean13.py
"""
EAN-13 checksum validation.

Weights alternate 1/3 starting with the first digit (1-based odd positions
weigh 1, even positions weigh 3); the 13th digit is the check digit.
"""
from __future__ import annotations
from typing import Sequence

from scan_hub.errors import InvalidFormatError

EAN13_LENGTH = 13


def calculate_check_digit(digits: Sequence[int]) -> int:
    """Check digit for the first 12 digits of an EAN-13."""
    total = sum(d * (3 if (i + 1) % 2 == 0 else 1) for i, d in enumerate(digits[:12]))
    return (10 - (total % 10)) % 10


def is_valid(code: str) -> bool:
    """True if code is exactly 13 ASCII digits with a matching check digit."""
    if not isinstance(code, str) or len(code) != EAN13_LENGTH:
        return False
    if not all(c in "0123456789" for c in code):
        return False
    digits = [int(c) for c in code]
    return calculate_check_digit(digits) == digits[12]


def require_valid(code: str) -> str:
    if not is_valid(code):
        raise InvalidFormatError("EAN-13 check failed")
    return code


def with_check_digit(first12: str) -> str:
    """Append the check digit to a 12-digit payload."""
    if len(first12) != 12 or not all(c in "0123456789" for c in first12):
        raise InvalidFormatError("Expected 12 digits")
    return first12 + str(calculate_check_digit([int(c) for c in first12]))
