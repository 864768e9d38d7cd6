from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Sequence

import regex

from lyric_sync.errors import RepairError
from lyric_sync.lrc.export import export_enhanced_lrc, export_lrc
from lyric_sync.lrc.model import LrcDocument, Word
from lyric_sync.lrc.parse import is_fully_stamped, parse_enhanced_lrc, parse_lrc
from lyric_sync.lrc.timecode import round_half_up

from .interpolate import DEFAULT_LINE_GAP_S, distribute_word_times, interpolate_line_times
from .matcher import match_lrc_to_plain_lines

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_BR_RE = re.compile(r"<\s*br\s*/?\s*>", re.IGNORECASE)
_P_CLOSE_RE = re.compile(r"<\s*/p\s*>", re.IGNORECASE)
_P_OPEN_RE = re.compile(r"<\s*p\s*>", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")
_NON_ALNUM_RE = regex.compile(r"[^\p{L}\p{N}]+")

_ENTITIES = (
    ("&apos;", "'"),
    ("&quot;", '"'),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)
WORD_TIME_TOLERANCE_S = 0.001


@dataclass(frozen=True, slots=True)
class LineChange:
    index: int
    before: str
    after: str


@dataclass(frozen=True, slots=True)
class WordTimingStat:
    line_index: int
    preserved_count: int
    total_words: int


@dataclass(frozen=True, slots=True)
class LineRange:
    start_index: int
    end_index: int


@dataclass(frozen=True, slots=True)
class DiffSummary:
    line_count_changed: bool
    lines_added: int
    lines_removed: int
    lines_modified: tuple[LineChange, ...]
    word_timing_preserved: tuple[WordTimingStat, ...]
    interpolated_line_ranges: tuple[LineRange, ...]


@dataclass(frozen=True, slots=True)
class RepairPreview:
    repaired_synced: str
    repaired_word_synced: str | None
    diff_summary: DiffSummary


def extract_plain_lines(html_or_plain: str) -> list[str]:
    """
    Split editor content into non-empty lyric lines.

    HTML is recognised by the presence of any tag: <br> and </p> become line
    breaks, other tags are dropped and a handful of entities decoded.
    """
    if not html_or_plain:
        return []
    if not _HTML_TAG_RE.search(html_or_plain):
        return [ln for ln in re.split(r"\r?\n", html_or_plain) if ln.strip()]

    text = _BR_RE.sub("\n", html_or_plain)
    text = _P_CLOSE_RE.sub("\n", text)
    text = _P_OPEN_RE.sub("", text)
    text = _HTML_TAG_RE.sub("", text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    text = text.replace("\r", "").strip()
    lines = (_WS_RE.sub(" ", ln).strip() for ln in text.split("\n"))
    return [ln for ln in lines if ln]


def align_line_timestamps(plain_lines: Sequence[str], existing_synced: str | None) -> list[float | None]:
    if not existing_synced:
        return [None] * len(plain_lines)
    entries = parse_lrc(existing_synced)
    if len(entries) == len(plain_lines):
        logger.debug("Line counts match (%d), keeping timestamps 1:1", len(entries))
        return [e.time for e in entries]
    logger.debug(
        "Line counts differ (synced=%d, plain=%d), using greedy matching",
        len(entries),
        len(plain_lines),
    )
    return match_lrc_to_plain_lines(plain_lines, entries)


def normalize_word(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text.lower())


def preserve_and_realign_word_times(plain_line: str, parsed_words: Sequence[Word] | None) -> list[Word]:
    """
    Tokenise the corrected line and borrow times from the old words: exact
    text first, then case/punctuation-insensitive. Tokens with no match get
    NaN so the distributor can place them.
    """
    tokens = plain_line.split()
    if not tokens:
        return []
    candidates = [w for w in (parsed_words or ()) if w is not None]

    out: list[Word] = []
    cursor = 0
    for tok in tokens:
        found = plain_line.find(tok, cursor)
        start = found if found >= 0 else cursor
        end = start + len(tok)
        cursor = end + (1 if plain_line[end : end + 1] == " " else 0)

        match = next((w for w in candidates if w.text == tok), None)
        if match is None:
            norm = normalize_word(tok)
            match = next((w for w in candidates if normalize_word(w.text) == norm), None)

        if match is not None and math.isfinite(match.time):
            time = round_half_up(match.time, 3)
        else:
            time = math.nan
        out.append(Word(text=tok, time=time, start=start, end=end))
    return out


def build_word_timestamps_map(
    plain_lines: Sequence[str],
    parsed_enhanced: LrcDocument | None = None,
    line_times: Sequence[float] | None = None,
) -> dict[int, list[Word]]:
    old_lines = parsed_enhanced.lines if parsed_enhanced is not None else ()
    word_map: dict[int, list[Word]] = {}
    for i, line_text in enumerate(plain_lines):
        old = old_lines[i] if i < len(old_lines) else None
        preserved = preserve_and_realign_word_times(line_text, old.words if old else None)

        if line_times is not None and i < len(line_times):
            start = line_times[i]
        elif old is not None:
            start = old.line_time
        else:
            start = 0.0
        if line_times is not None and i + 1 < len(line_times):
            end = line_times[i + 1]
        else:
            end = start + DEFAULT_LINE_GAP_S
        word_map[i] = distribute_word_times(start, end, preserved)
    return word_map


def _interpolated_ranges(before: list[str], after: list[str]) -> tuple[LineRange, ...]:
    total = max(len(before), len(after))
    ranges: list[LineRange] = []
    range_start: int | None = None
    for i in range(total):
        b = before[i] if i < len(before) else None
        a = after[i] if i < len(after) else None
        if b != a:
            if range_start is None:
                range_start = i
        elif range_start is not None:
            ranges.append(LineRange(range_start, i - 1))
            range_start = None
    if range_start is not None:
        ranges.append(LineRange(range_start, total - 1))
    return tuple(ranges)


def _word_stats(original_word_synced: str | None, repaired_word_synced: str | None) -> tuple[WordTimingStat, ...]:
    if not original_word_synced and not repaired_word_synced:
        return ()
    before = parse_enhanced_lrc(original_word_synced).lines if original_word_synced else ()
    after = parse_enhanced_lrc(repaired_word_synced).lines if repaired_word_synced else ()

    stats: list[WordTimingStat] = []
    for i in range(max(len(before), len(after))):
        before_words = before[i].words if i < len(before) else ()
        after_words = after[i].words if i < len(after) else ()
        preserved = sum(
            1
            for w in after_words
            if any(
                bw.text == w.text and abs(bw.time - w.time) < WORD_TIME_TOLERANCE_S
                for bw in before_words
            )
        )
        stats.append(WordTimingStat(line_index=i, preserved_count=preserved, total_words=len(after_words)))
    return tuple(stats)


def make_diff_summary(
    original_synced: str | None,
    repaired_synced: str,
    original_word_synced: str | None = None,
    repaired_word_synced: str | None = None,
) -> DiffSummary:
    """
    Positional comparison of the encoded line arrays; not a semantic diff.
    """
    before = re.split(r"\r?\n", original_synced or "")
    after = re.split(r"\r?\n", repaired_synced or "")

    added = removed = 0
    modified: list[LineChange] = []
    for i in range(max(len(before), len(after))):
        if i >= len(before):
            added += 1
        elif i >= len(after):
            removed += 1
        elif before[i] != after[i]:
            modified.append(LineChange(index=i, before=before[i], after=after[i]))

    return DiffSummary(
        line_count_changed=len(before) != len(after),
        lines_added=added,
        lines_removed=removed,
        lines_modified=tuple(modified),
        word_timing_preserved=_word_stats(original_word_synced, repaired_word_synced),
        interpolated_line_ranges=_interpolated_ranges(before, after),
    )


def _validate(plain_lines: Sequence[str], synced: str, word_synced: str | None) -> None:
    if not is_fully_stamped(synced) or len(parse_lrc(synced)) != len(plain_lines):
        raise RepairError("Repaired synced LRC is not fully stamped.")
    if word_synced is not None:
        doc = parse_enhanced_lrc(word_synced)
        if len(doc.lines) != len(plain_lines):
            raise RepairError(
                f"Repaired word-synced LRC does not round-trip "
                f"({len(doc.lines)} lines decoded, {len(plain_lines)} expected)."
            )


def repair_synced_lyrics(
    plain_or_html: str,
    existing_synced: str | None = None,
    existing_word_synced: str | None = None,
) -> RepairPreview:
    """
    Re-time corrected lyrics while keeping as many old timestamps as possible.

    Raises RepairError when the result would not be safe to persist.
    """
    plain_lines = extract_plain_lines(plain_or_html)
    if not plain_lines:
        raise RepairError("No lyric lines to repair.")

    aligned = align_line_timestamps(plain_lines, existing_synced)
    missing = sum(1 for t in aligned if t is None)
    if missing:
        logger.info("Interpolating %d of %d line timestamps", missing, len(aligned))
        line_times = interpolate_line_times(aligned)
    else:
        line_times = [t for t in aligned if t is not None]

    parsed_enhanced = parse_enhanced_lrc(existing_word_synced) if existing_word_synced else None
    word_map = build_word_timestamps_map(plain_lines, parsed_enhanced, line_times)

    repaired_synced = export_lrc(plain_lines, line_times)
    repaired_word_synced = export_enhanced_lrc(plain_lines, line_times, word_map) if word_map else None

    try:
        _validate(plain_lines, repaired_synced, repaired_word_synced)
    except RepairError:
        logger.warning("Rejecting repair of %d lines", len(plain_lines))
        raise

    summary = make_diff_summary(existing_synced, repaired_synced, existing_word_synced, repaired_word_synced)
    return RepairPreview(
        repaired_synced=repaired_synced,
        repaired_word_synced=repaired_word_synced,
        diff_summary=summary,
    )
