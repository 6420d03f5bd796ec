"""
Order number generation.

Format: ORD-<6-digit timestamp suffix>-<3-digit random>, e.g. ORD-482913-057.
Consumers treat it as an opaque display string. Two submissions in the same
millisecond window can draw the same random part, so callers must handle a
uniqueness violation on write (see OrderSubmissionService).
"""

import random
import re
import time

ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d{6}-\d{3}$")


def generate_order_number(now_ms: int | None = None, rng: random.Random | None = None) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    rng = rng or random
    timestamp_suffix = now_ms % 1_000_000
    disambiguator = rng.randint(0, 999)
    return f"ORD-{timestamp_suffix:06d}-{disambiguator:03d}"


def is_valid_order_number(value: str) -> bool:
    return bool(ORDER_NUMBER_PATTERN.match(value))
