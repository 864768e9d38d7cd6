from lyric_sync.align.matcher import match_lrc_to_plain_lines, normalize_line
from lyric_sync.lrc.model import LrcEntry


def test_matcher_skips_unmatched_plain_lines():
    entries = [LrcEntry(1.0, "A"), LrcEntry(3.0, "C")]
    assert match_lrc_to_plain_lines(["A", "B", "C"], entries) == [1.0, None, 3.0]


def test_matcher_normalizes_punctuation_and_case():
    assert normalize_line(" Hello, World! ") == "hello world"
    assert match_lrc_to_plain_lines(["Hello, World!"], [LrcEntry(2.0, "hello world")]) == [2.0]


def test_matcher_accepts_substrings():
    entries = [LrcEntry(2.0, "hello world")]
    assert match_lrc_to_plain_lines(["hello world (yeah)"], entries) == [2.0]


def test_matcher_does_not_handle_reordering():
    entries = [LrcEntry(1.0, "A"), LrcEntry(2.0, "B")]
    assert match_lrc_to_plain_lines(["B", "A"], entries) == [None, 1.0]


def test_matcher_stops_when_entries_run_out():
    assert match_lrc_to_plain_lines(["a", "b"], [LrcEntry(1.0, "a")]) == [1.0, None]


def test_matcher_rounds_to_centiseconds():
    assert match_lrc_to_plain_lines(["a"], [LrcEntry(1.005, "a")]) == [1.01]
