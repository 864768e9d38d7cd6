from __future__ import annotations

import re
from typing import Sequence

from lyric_sync.lrc.model import LrcEntry
from lyric_sync.lrc.timecode import round_half_up

_PUNCT_RE = re.compile(r"[.,!?…\"'’()–—-]")


def normalize_line(s: str) -> str:
    return _PUNCT_RE.sub("", s).lower().strip()


def _lines_match(plain: str, lrc_text: str) -> bool:
    if plain == lrc_text:
        return True
    a = normalize_line(plain)
    b = normalize_line(lrc_text)
    # an empty side is a substring of anything, so it always matches
    return a == b or b in a or a in b


def match_lrc_to_plain_lines(
    plain_lines: Sequence[str],
    entries: Sequence[LrcEntry],
) -> list[float | None]:
    """
    Greedy chronological matching.

    One cursor walks the (time sorted) entries and only advances on a match,
    so a plain line without a counterpart is skipped and the same entry is
    tried against the next plain line. Insertions and deletions are handled,
    reordering is not.
    """
    result: list[float | None] = [None] * len(plain_lines)
    k = 0
    for i, plain in enumerate(plain_lines):
        if k >= len(entries):
            break
        entry = entries[k]
        if _lines_match(plain, entry.text):
            result[i] = round_half_up(entry.time, 2)
            k += 1
    return result
