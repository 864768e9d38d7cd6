from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from lyric_sync.lrc.model import Word

WORD_DURATION_MIN_S = 0.4
WORD_DURATION_MAX_S = 1.5
WORD_DURATION_FALLBACK_S = 0.6


@dataclass(frozen=True, slots=True)
class WordSegment:
    text: str
    time: float | None
    is_word: bool


def active_word_index(words: Sequence[Word], time_s: float) -> int | None:
    for i in range(len(words) - 1, -1, -1):
        if time_s >= words[i].time:
            return i
    return None


def word_progress(words: Sequence[Word], index: int, time_s: float) -> float:
    """
    Fill fraction (0..1) of words[index] at time_s.

    A word ends where the next one starts; the last word lasts as long as the
    gap before it, bounded to 0.4..1.5s.
    """
    word = words[index]
    start = word.time
    if index + 1 < len(words):
        end = words[index + 1].time
    else:
        estimated = start - words[index - 1].time if index > 0 else WORD_DURATION_FALLBACK_S
        end = start + max(WORD_DURATION_MIN_S, min(WORD_DURATION_MAX_S, estimated))

    if time_s <= start:
        return 0.0
    if time_s >= end:
        return 1.0
    return (time_s - start) / max(end - start, 0.001)


def split_line_into_segments(line_text: str, words: Sequence[Word]) -> list[WordSegment]:
    if not words:
        return [
            WordSegment(text=part, time=None, is_word=bool(part.strip()))
            for part in re.split(r"(\s+)", line_text)
            if part
        ]

    segments: list[WordSegment] = []
    pos = 0
    for w in words:
        start = line_text.find(w.text, pos)
        if start == -1:
            continue
        if start > pos:
            segments.append(WordSegment(text=line_text[pos:start], time=None, is_word=False))
        segments.append(WordSegment(text=w.text, time=w.time, is_word=True))
        pos = start + len(w.text)
    if pos < len(line_text):
        segments.append(WordSegment(text=line_text[pos:], time=None, is_word=False))
    return segments
