"""Human-readable order numbers.

Format: ``LP-<epoch milliseconds>-<5 upper-case base-36 chars>``, e.g.
``LP-1718000000000-7QX2K``. Uniqueness relies on the timestamp plus the
random suffix; the database column is unique and the service retries on
the rare collision.
"""

import re
import secrets
import string
import time
from typing import Callable, Optional

ORDER_NUMBER_PREFIX = "LP"
SUFFIX_LENGTH = 5
SUFFIX_ALPHABET = string.digits + string.ascii_uppercase

ORDER_NUMBER_RE = re.compile(r"^LP-\d{13,}-[0-9A-Z]{5}$")


def generate_order_number(clock: Optional[Callable[[], float]] = None) -> str:
    now = (clock or time.time)()
    millis = int(now * 1000)
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{ORDER_NUMBER_PREFIX}-{millis}-{suffix}"
