import math

import pytest

from lyric_sync.align.repair import (
    LineChange,
    LineRange,
    WordTimingStat,
    align_line_timestamps,
    extract_plain_lines,
    make_diff_summary,
    preserve_and_realign_word_times,
    repair_synced_lyrics,
)
from lyric_sync.errors import RepairError
from lyric_sync.lrc.model import Word


def test_repair_keeps_timestamps_when_line_count_matches():
    preview = repair_synced_lyrics("hello\nworld!", "[00:01.00] hello\n[00:03.00] world")
    assert preview.repaired_synced == "[00:01.00] hello\n[00:03.00] world!"
    assert preview.repaired_word_synced == "[00:01.00]<00:01.00>hello\n[00:03.00]<00:03.00>world!"

    summary = preview.diff_summary
    assert summary.lines_added == 0
    assert summary.lines_removed == 0
    assert not summary.line_count_changed
    assert summary.lines_modified == (LineChange(1, "[00:03.00] world", "[00:03.00] world!"),)
    assert summary.interpolated_line_ranges == (LineRange(1, 1),)


def test_repair_interpolates_inserted_line():
    preview = repair_synced_lyrics(
        "one\ntwo\nnew line\nthree",
        "[00:01.00] one\n[00:02.00] two\n[00:05.00] three",
    )
    assert preview.repaired_synced == (
        "[00:01.00] one\n[00:02.00] two\n[00:03.50] new line\n[00:05.00] three"
    )
    assert preview.diff_summary.lines_added == 1
    assert preview.diff_summary.line_count_changed


def test_repair_without_previous_sync_uses_ladder():
    preview = repair_synced_lyrics("a\nb")
    assert preview.repaired_synced == "[00:02.00] a\n[00:04.00] b"


def test_repair_preserves_word_timings():
    preview = repair_synced_lyrics(
        "hello world\nbye",
        "[00:01.00] hello wrold\n[00:03.00] bye",
        "[00:01.00]<00:01.00>hello <00:01.50>wrold\n[00:03.00]<00:03.00>bye",
    )
    assert preview.repaired_word_synced == (
        "[00:01.00]<00:01.00>hello <00:03.00>world\n[00:03.00]<00:03.00>bye"
    )
    assert preview.diff_summary.word_timing_preserved == (
        WordTimingStat(line_index=0, preserved_count=1, total_words=2),
        WordTimingStat(line_index=1, preserved_count=1, total_words=1),
    )


def test_repair_rejects_empty_input():
    with pytest.raises(RepairError):
        repair_synced_lyrics("  \n\n")


def test_repair_rejects_output_that_does_not_round_trip():
    # a lyric line that itself looks like a timestamp decodes to two entries
    with pytest.raises(RepairError):
        repair_synced_lyrics("[00:09.00] sneaky")


def test_extract_plain_lines_from_html():
    html = "<p>Hello &amp; goodbye</p><p>second<br>third   line</p><p><br></p>"
    assert extract_plain_lines(html) == ["Hello & goodbye", "second", "third line"]


def test_extract_plain_lines_from_text():
    assert extract_plain_lines("a\n\n b\r\nc") == ["a", " b", "c"]
    assert extract_plain_lines("") == []


def test_align_line_timestamps():
    assert align_line_timestamps(["x", "y"], None) == [None, None]
    assert align_line_timestamps(["x"], "[00:01.00] a") == [1.0]
    assert align_line_timestamps(["a", "new", "b"], "[00:01.00] a\n[00:02.00] b") == [1.0, None, 2.0]


def test_preserve_and_realign_word_times():
    out = preserve_and_realign_word_times("hello there", [Word("Hello,", 1.25)])
    assert [(w.text, w.start, w.end) for w in out] == [("hello", 0, 5), ("there", 6, 11)]
    assert out[0].time == 1.25
    assert math.isnan(out[1].time)
    assert preserve_and_realign_word_times("   ", None) == []


def test_make_diff_summary_counts_positions():
    summary = make_diff_summary("a\nb", "a\nb\nc")
    assert summary.lines_added == 1
    assert summary.lines_removed == 0
    assert summary.line_count_changed
    assert summary.interpolated_line_ranges == (LineRange(2, 2),)
    assert summary.word_timing_preserved == ()

    shrunk = make_diff_summary("a\nb\nc", "a")
    assert shrunk.lines_removed == 2
