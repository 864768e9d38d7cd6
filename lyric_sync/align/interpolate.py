from __future__ import annotations

import math
from dataclasses import replace
from typing import Sequence

from lyric_sync.lrc.model import Word
from lyric_sync.lrc.timecode import round_half_up

DEFAULT_LINE_GAP_S = 2.0
MIN_EXTRAPOLATION_DELTA_S = 0.5
MIN_WORD_SPAN_S = 0.5


def _extrapolation_delta(times: list[float | None], a: int, b: int) -> float:
    if a == b:
        return DEFAULT_LINE_GAP_S
    ta, tb = times[a], times[b]
    assert ta is not None and tb is not None
    return max(MIN_EXTRAPOLATION_DELTA_S, (tb - ta) / (b - a))


def interpolate_line_times(times: Sequence[float | None]) -> list[float]:
    """
    Fill None slots from the known anchors.

    - between two anchors: linear by position
    - before the first / after the last anchor: extrapolate with the average
      step of the two outermost anchors (2s if there is only one, never below
      0.5s); leading values stop at 0.0
    - no anchors at all: 2, 4, 6, ...

    Known values are returned untouched, computed ones rounded to 2 decimals.
    """
    result: list[float | None] = list(times)
    n = len(result)
    known = [i for i, t in enumerate(result) if t is not None]
    if not known:
        return [round_half_up(DEFAULT_LINE_GAP_S * (i + 1), 2) for i in range(n)]

    for left, right in zip(known, known[1:]):
        t_left = result[left]
        t_right = result[right]
        assert t_left is not None and t_right is not None
        span = right - left
        for i in range(left + 1, right):
            frac = (i - left) / span
            result[i] = round_half_up(t_left + (t_right - t_left) * frac, 2)

    first = known[0]
    second = known[1] if len(known) > 1 else first
    delta_lead = _extrapolation_delta(result, first, second)
    for i in range(first - 1, -1, -1):
        nxt = result[i + 1]
        assert nxt is not None
        result[i] = max(0.0, round_half_up(nxt - delta_lead, 2))

    last = known[-1]
    prev = known[-2] if len(known) > 1 else last
    delta_trail = _extrapolation_delta(result, prev, last)
    for i in range(last + 1, n):
        before = result[i - 1]
        assert before is not None
        result[i] = round_half_up(before + delta_trail, 2)

    return [t for t in result if t is not None]


def distribute_word_times(line_start: float, line_end: float, words: Sequence[Word]) -> list[Word]:
    """
    Give every word with a NaN time a slot proportional to its index inside
    [line_start, line_end]. Valid times are kept (rounded to 2 decimals); all
    values are clamped to the line bounds. A monotonic pass lifts only the
    filled-in words, never the ones that came with a time.
    """
    n = len(words)
    if n == 0:
        return []
    if n == 1:
        w = words[0]
        t = w.time if math.isfinite(w.time) else round_half_up(line_start, 2)
        return [replace(w, time=t)]

    duration = max(MIN_WORD_SPAN_S, line_end - line_start)
    lo = round_half_up(line_start, 2)
    hi = round_half_up(line_end, 2)

    out: list[Word] = []
    for i, w in enumerate(words):
        if math.isfinite(w.time):
            t = round_half_up(w.time, 2)
        else:
            t = round_half_up(line_start + (i / (n - 1)) * duration, 2)
        out.append(replace(w, time=min(max(t, lo), hi)))

    for i in range(1, n):
        if out[i].time < out[i - 1].time and not math.isfinite(words[i].time):
            out[i] = replace(out[i], time=out[i - 1].time)
    return out
