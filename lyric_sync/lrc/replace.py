"""
Edit the text of synced lyrics in place while keeping every [mm:ss.xx] and
<mm:ss.xx> tag where it is.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

import regex

_LINE_TAG_RE = regex.compile(r"\[\d+:\d+(?:\.\d+)?\]")
_WORD_TAG_RE = regex.compile(r"<(?:\d+:)?\d+(?:\.\d+)?>")
_FIRST_TAG_RE = regex.compile(r"\[(\d+):(\d+(?:\.\d+)?)\]")
_ANY_TAG_RE = regex.compile(r"(\[\d+:\d+(?:\.\d+)?\]|<(?:\d+:)?\d+(?:\.\d+)?>)")


@dataclass(frozen=True, slots=True)
class CaseMatch:
    line: int
    variant: str


@dataclass(frozen=True, slots=True)
class ReplaceResult:
    updated: str
    replaced_count: int
    case_matches: tuple[CaseMatch, ...]


@dataclass(frozen=True, slots=True)
class TextChange:
    old_word: str
    new_word: str
    line_number: int


@dataclass(frozen=True, slots=True)
class ConsistencyCheckResult:
    is_consistent: bool
    plain_word_count: int
    synced_word_count: int
    tolerance: int


@dataclass(frozen=True, slots=True)
class LineTimestamp:
    mins: int
    secs: float
    formatted: str


def _word_re(word: str, ignore_case: bool = False) -> regex.Pattern[str]:
    flags = regex.IGNORECASE if ignore_case else 0
    return regex.compile(r"\b" + regex.escape(word) + r"\b", flags)


def extract_line_text(lrc_line: str) -> str:
    return _WORD_TAG_RE.sub("", _LINE_TAG_RE.sub("", lrc_line)).strip()


def detect_case_variants(text: str, search: str) -> list[tuple[str, int]]:
    """Spellings of `search` found in text, most frequent first."""
    counts = Counter(m.group(0) for m in _word_re(search, ignore_case=True).finditer(text))
    return counts.most_common()


def apply_case_transformation(source_word: str, target_word: str) -> str:
    if not source_word or not target_word:
        return target_word
    if source_word.isupper():
        return target_word.upper()
    if source_word[0].isupper() and source_word[1:] == source_word[1:].lower():
        return target_word[0].upper() + target_word[1:].lower()
    return target_word.lower()


def replace_lyrics_in_lrc(
    lrc_content: str,
    search: str,
    replacement: str,
    line_numbers: Iterable[int] | None = None,
) -> ReplaceResult:
    """
    Whole-word replacement across all case variants of `search`; each variant
    keeps its casing ("Teh" -> "The", "TEH" -> "THE"). Only lines listed in
    line_numbers (0-based) are touched when given.
    """
    if not lrc_content.strip() or not search.strip():
        return ReplaceResult(updated=lrc_content, replaced_count=0, case_matches=())

    only = set(line_numbers) if line_numbers is not None else None
    variants = [v for v, _count in detect_case_variants(lrc_content, search)]
    finder = _word_re(search, ignore_case=True)

    case_matches: list[CaseMatch] = []
    replaced = 0
    out: list[str] = []
    for idx, line in enumerate(lrc_content.split("\n")):
        text = extract_line_text(line)
        if (only is not None and idx not in only) or not text:
            out.append(line)
            continue

        found = {m.group(0) for m in finder.finditer(text)}
        if not found:
            out.append(line)
            continue
        for variant in sorted(found):
            case_matches.append(CaseMatch(line=idx, variant=variant))

        # odd pieces are tags and stay untouched
        pieces = _ANY_TAG_RE.split(line)
        for variant in variants:
            new_text = apply_case_transformation(variant, replacement)
            pattern = _word_re(variant)
            for k in range(0, len(pieces), 2):
                pieces[k], n = pattern.subn(lambda _m: new_text, pieces[k])
                replaced += n
        out.append("".join(pieces))

    return ReplaceResult(updated="\n".join(out), replaced_count=replaced, case_matches=tuple(case_matches))


def detect_text_changes(old_plain: str, new_plain: str) -> list[TextChange]:
    """Word-by-word positional diff of two plain texts."""
    old_lines = old_plain.split("\n")
    new_lines = new_plain.split("\n")
    changes: list[TextChange] = []
    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else ""
        new_line = new_lines[i] if i < len(new_lines) else ""
        if old_line == new_line:
            continue
        old_words = old_line.split()
        new_words = new_line.split()
        for old_word, new_word in zip(old_words, new_words):
            if old_word != new_word:
                changes.append(TextChange(old_word=old_word, new_word=new_word, line_number=i))
    return changes


def count_word_occurrences(text: str, word: str) -> int:
    return len(_word_re(word).findall(text))


def find_lines_with_word(lrc_content: str, word: str) -> list[int]:
    pattern = _word_re(word)
    return [
        idx
        for idx, line in enumerate(lrc_content.split("\n"))
        if pattern.search(extract_line_text(line))
    ]


def get_words_on_line(lrc_line: str) -> list[str]:
    return extract_line_text(lrc_line).split()


def get_line_timestamp(lrc_line: str) -> LineTimestamp | None:
    m = _FIRST_TAG_RE.search(lrc_line)
    if m is None:
        return None
    mins = int(m.group(1))
    secs = float(m.group(2))
    return LineTimestamp(mins=mins, secs=secs, formatted=f"{mins:02d}:{secs:05.2f}")


def _count_lrc_words(lrc_content: str) -> int:
    return sum(len(get_words_on_line(line)) for line in lrc_content.split("\n"))


def validate_lyrics_consistency(
    plain_text: str,
    synced_content: str | None,
    tolerance_percent: float = 5,
) -> ConsistencyCheckResult:
    """
    Compare word counts of plain and synced lyrics; instrumental breaks and
    formatting make a small difference acceptable.
    """
    plain_count = len(plain_text.split())
    tolerance = math.ceil(plain_count * tolerance_percent / 100)
    if not synced_content:
        return ConsistencyCheckResult(
            is_consistent=False,
            plain_word_count=plain_count,
            synced_word_count=0,
            tolerance=tolerance,
        )
    synced_count = _count_lrc_words(synced_content)
    return ConsistencyCheckResult(
        is_consistent=abs(plain_count - synced_count) <= tolerance,
        plain_word_count=plain_count,
        synced_word_count=synced_count,
        tolerance=tolerance,
    )
