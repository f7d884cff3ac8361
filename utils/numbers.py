from __future__ import annotations

import math
import re
from typing import Optional

# Longest numeric prefix, e.g. "101.2 F" -> "101.2", "98.6°" -> "98.6".
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_leading_float(text: Optional[str]) -> Optional[float]:
    """
    Parse the numeric prefix of ``text`` and return it if finite.

    Trailing units or words are ignored. Returns None for empty input,
    text without a leading number, or a value that is not finite.
    """
    if text is None:
        return None
    match = _LEADING_NUMBER.match(str(text))
    if match is None:
        return None
    value = float(match.group(1))
    if not math.isfinite(value):
        return None
    return value
