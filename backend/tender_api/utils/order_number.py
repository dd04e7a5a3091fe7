from __future__ import annotations
"""Order number generation: ORD-<last 6 digits of epoch ms>-<3 uppercase base-36 chars>."""
import secrets
import string
import time
from typing import Callable, Optional

BASE36 = string.digits + string.ascii_uppercase
ORDER_NUMBER_PREFIX = 'ORD'
MAX_ATTEMPTS = 5


def generate_order_number(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    stamp = str(now_ms)[-6:].rjust(6, '0')
    suffix = ''.join(secrets.choice(BASE36) for _ in range(3))
    return f"{ORDER_NUMBER_PREFIX}-{stamp}-{suffix}"


def unique_order_number(exists: Callable[[str], bool]) -> str:
    """Generate an order number not already taken according to exists().

    The orders table also carries a unique constraint, so a concurrent insert racing
    past this check fails the transaction instead of duplicating a number.
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = generate_order_number()
        if not exists(candidate):
            return candidate
    raise RuntimeError('Could not allocate a unique order number')
