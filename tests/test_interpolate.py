import math

from lyric_sync.align.interpolate import distribute_word_times, interpolate_line_times
from lyric_sync.lrc.model import Word


def test_single_anchor_uses_default_step():
    assert interpolate_line_times([None, None, 5.0, None]) == [1.0, 3.0, 5.0, 7.0]


def test_no_anchors_builds_ladder():
    assert interpolate_line_times([None, None, None]) == [2.0, 4.0, 6.0]
    assert interpolate_line_times([]) == []


def test_fills_between_anchors():
    assert interpolate_line_times([1.0, None, None, 4.0]) == [1.0, 2.0, 3.0, 4.0]


def test_extrapolates_with_outer_step():
    assert interpolate_line_times([None, 10.0, 13.0]) == [7.0, 10.0, 13.0]
    assert interpolate_line_times([10.0, 13.0, None]) == [10.0, 13.0, 16.0]


def test_extrapolation_step_is_clamped():
    assert interpolate_line_times([None, 5.0, 5.1, None]) == [4.5, 5.0, 5.1, 5.6]


def test_leading_extrapolation_stops_at_zero():
    assert interpolate_line_times([None, None, 1.0]) == [0.0, 0.0, 1.0]


def test_interpolation_is_idempotent_on_full_input():
    times = [1.0, 2.5, 4.0]
    once = interpolate_line_times(times)
    assert once == times
    assert interpolate_line_times(once) == once


def test_interpolation_is_monotonic():
    out = interpolate_line_times([None, 2.0, None, None, 8.0, None])
    assert out == sorted(out)


def _words(*times):
    return [Word(text=f"w{i}", time=t) for i, t in enumerate(times)]


def test_distribute_spreads_missing_words():
    out = distribute_word_times(10.0, 12.0, _words(math.nan, math.nan, math.nan))
    assert [w.time for w in out] == [10.0, 11.0, 12.0]


def test_distribute_keeps_known_times():
    out = distribute_word_times(10.0, 12.0, _words(math.nan, 10.7, math.nan))
    assert [w.time for w in out] == [10.0, 10.7, 12.0]


def test_distribute_single_word_anchors_at_start():
    assert distribute_word_times(3.456, 5.0, _words(math.nan))[0].time == 3.46
    assert distribute_word_times(3.0, 5.0, _words(4.25))[0].time == 4.25


def test_distribute_clamps_into_line():
    out = distribute_word_times(10.0, 12.0, _words(9.0, math.nan))
    assert [w.time for w in out] == [10.0, 12.0]


def test_distribute_lifts_only_filled_words():
    lifted = distribute_word_times(10.0, 12.0, _words(11.5, math.nan, math.nan))
    assert [w.time for w in lifted] == [11.5, 11.5, 12.0]

    kept = distribute_word_times(10.0, 12.0, _words(math.nan, math.nan, 10.2))
    assert [w.time for w in kept] == [10.0, 11.0, 10.2]
