from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal

_MMSS_RE = re.compile(r"^(\d+):(\d+(?:\.\d+)?)$")
_SECONDS_RE = re.compile(r"^\d+(?:\.\d+)?$")


class LrcParseError(ValueError):
    pass


def round_half_up(value: float, places: int = 2) -> float:
    """
    Round like a person would: 0.125 -> 0.13 (not banker's rounding).

    Goes through repr() so that binary noise (2.675 == 2.67499...) does not
    decide the direction.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_timestamp(seconds: float) -> str:
    # whole centiseconds first, so 59.999 becomes 01:00.00 and never 00:60.00
    cs = int(round_half_up(max(seconds, 0.0) * 100, 0))
    m, rem = divmod(cs, 6000)
    s, frac = divmod(rem, 100)
    return f"{m:02d}:{s:02d}.{frac:02d}"


def parse_lrc_time(text: str) -> float:
    """
    Accepts 1:23.45, 01:23.45, [01:23.45], 123.45 and 90.
    """
    trimmed = text.strip().replace("[", "").replace("]", "")
    m = _MMSS_RE.match(trimmed)
    if m:
        return int(m.group(1)) * 60 + float(m.group(2))
    if _SECONDS_RE.match(trimmed):
        return float(trimmed)
    raise LrcParseError(f"Invalid LRC time: {text!r}")
