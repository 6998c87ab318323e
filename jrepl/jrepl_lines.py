"""
Line addressing for slice commands.

User-facing line numbers are 1-based. Negative numbers count from the tail,
with `-1` meaning the slot after the last line, and the literal `-` is the
append sentinel.
"""

import re
from typing import Optional

APPEND = "-"

_INT_RE = re.compile(r'^[+-]?\d+$')


def is_line_ref(ref: Optional[str]) -> bool:
    """True if `ref` is the append sentinel or an integer literal."""
    if not ref:
        return False
    return ref == APPEND or bool(_INT_RE.match(ref))


def resolve(ref: Optional[str], current_size: int) -> Optional[int]:
    """Map a line reference to a 0-based index into the valid statements.

    Returns None when `ref` is missing or not parseable.
    """
    if not is_line_ref(ref):
        return None
    if ref == APPEND:
        return current_size
    n = int(ref)
    if n >= 0:
        return n - 1
    # Asymmetric with the positive case: -1 lands one past the last line.
    return current_size - (-n) + 1
