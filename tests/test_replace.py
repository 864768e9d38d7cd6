from lyric_sync.lrc.parse import parse_lrc
from lyric_sync.lrc.replace import (
    CaseMatch,
    TextChange,
    apply_case_transformation,
    count_word_occurrences,
    detect_case_variants,
    detect_text_changes,
    extract_line_text,
    find_lines_with_word,
    get_line_timestamp,
    replace_lyrics_in_lrc,
    validate_lyrics_consistency,
)

LRC = "[00:01.00] teh cat\n[00:02.00]<00:02.00>Teh <00:02.50>dog\n[00:03.00] TEH end"


def test_replace_keeps_tags_and_case():
    res = replace_lyrics_in_lrc(LRC, "teh", "the")
    assert res.updated == "[00:01.00] the cat\n[00:02.00]<00:02.00>The <00:02.50>dog\n[00:03.00] THE end"
    assert res.replaced_count == 3
    assert res.case_matches == (CaseMatch(0, "teh"), CaseMatch(1, "Teh"), CaseMatch(2, "TEH"))


def test_replace_only_selected_lines():
    res = replace_lyrics_in_lrc(LRC, "teh", "the", line_numbers=[1])
    assert res.updated.split("\n")[0] == "[00:01.00] teh cat"
    assert res.updated.split("\n")[1] == "[00:02.00]<00:02.00>The <00:02.50>dog"
    assert res.replaced_count == 1


def test_replace_whole_words_only():
    res = replace_lyrics_in_lrc("[00:01.00] tehran teh", "teh", "the")
    assert res.updated == "[00:01.00] tehran the"


def test_replace_number_leaves_timestamp_tags_alone():
    lrc = "[01:02.50] 50 cent\n[00:03.50]<00:03.50>50 <00:04.50>ways\n[01:04.00]<01:04.50>next line"
    res = replace_lyrics_in_lrc(lrc, "50", "fifty")
    assert res.updated == (
        "[01:02.50] fifty cent\n[00:03.50]<00:03.50>fifty <00:04.50>ways\n[01:04.00]<01:04.50>next line"
    )
    assert res.replaced_count == 2
    assert [e.time for e in parse_lrc(res.updated)] == [3.5, 62.5, 64.0]


def test_replace_noop_on_empty_search():
    res = replace_lyrics_in_lrc(LRC, " ", "x")
    assert res.updated == LRC
    assert res.replaced_count == 0


def test_case_helpers():
    assert apply_case_transformation("Intergrated", "integrated") == "Integrated"
    assert apply_case_transformation("INTERGRATED", "integrated") == "INTEGRATED"
    assert apply_case_transformation("intergrated", "Integrated") == "integrated"
    assert detect_case_variants("la La la LA", "la") == [("la", 2), ("La", 1), ("LA", 1)]


def test_line_helpers():
    assert extract_line_text("[00:01.00]<00:01.00>hi <1.5>there") == "hi there"
    assert count_word_occurrences("la la land", "la") == 2
    assert find_lines_with_word("[00:01.00] hi\n[00:02.00] bye hi", "bye") == [1]
    ts = get_line_timestamp("[1:02.5] x")
    assert ts is not None
    assert (ts.mins, ts.secs, ts.formatted) == (1, 2.5, "01:02.50")
    assert get_line_timestamp("nope") is None


def test_detect_text_changes():
    assert detect_text_changes("a b\nc", "a x\nc") == [TextChange("b", "x", 0)]


def test_validate_lyrics_consistency():
    res = validate_lyrics_consistency("one two three", "[00:01.00] one two\n[00:02.00] three")
    assert res.is_consistent
    assert (res.plain_word_count, res.synced_word_count, res.tolerance) == (3, 3, 1)
    assert not validate_lyrics_consistency("one two", None).is_consistent
    assert not validate_lyrics_consistency("a b c d", "[00:01.00] a").is_consistent
