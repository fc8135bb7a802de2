"""Confirmation codes for physical handoffs.

Each job carries two short numeric secrets: one proving the package left
the locker, one proving it reached the recipient. The delivery code is
handed to the customer outside this system; the worker has to obtain it
from them at the door. We only ever compare codes, never re-issue them.
"""

import hmac
import secrets
from typing import Optional, Tuple

DEFAULT_CODE_DIGITS = 4


def generate_confirmation_code(digits: int = DEFAULT_CODE_DIGITS) -> str:
    """Generate a zero-padded numeric code, e.g. ``"0384"``.

    Drawn uniformly from ``[0, 10**digits)`` with a CSPRNG.
    """
    if digits < 1:
        raise ValueError("digits must be at least 1")
    return str(secrets.randbelow(10**digits)).zfill(digits)


def generate_code_pair(digits: int = DEFAULT_CODE_DIGITS) -> Tuple[str, str]:
    """Generate independent (pickup, delivery) codes."""
    return generate_confirmation_code(digits), generate_confirmation_code(digits)


def codes_match(expected: Optional[str], supplied: Optional[str]) -> bool:
    """Exact comparison of a stored code with a supplied one.

    Case-sensitive and whitespace-sensitive; missing values never match.
    """
    if not expected or not supplied:
        return False
    if not isinstance(supplied, str):
        return False
    return hmac.compare_digest(expected.encode(), supplied.encode())
