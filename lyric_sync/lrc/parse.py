from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .model import LrcDocument, LrcEntry, TimedLine, Word
from .timecode import LrcParseError, parse_lrc_time, round_half_up

__all__ = [
    "LrcParseError",
    "LrcParseStats",
    "is_fully_stamped",
    "is_likely_synced",
    "parse_enhanced_lrc",
    "parse_lrc",
    "parse_lrc_time",
    "parse_lrc_with_stats",
    "parse_metadata",
]

logger = logging.getLogger(__name__)

_LINE_TAG_RE = re.compile(r"\[(\d+):(\d+(?:\.\d+)?)\]")  # [mm:ss] / [mm:ss.xx]
_WORD_TAG_RE = re.compile(r"<(?:\d+:)?\d+(?:\.\d+)?>")  # <mm:ss.xx> / <ss.xx>
_WORD_SPAN_RE = re.compile(r"<((?:\d+:)?\d+(?:\.\d+)?)>([^<]*)")
_META_RE = re.compile(r"^\[([a-zA-Z]+):(.+)\]$")
_LEADING_TAG_RE = re.compile(r"^\[\d+:\d+(?:\.\d+)?\]")


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    entries_total: int
    lines_with_timestamps: int
    lines_ignored: int
    metadata_total: int


@dataclass(frozen=True, slots=True)
class _Segment:
    time: float
    raw: str


def _tag_seconds(m: re.Match[str]) -> float:
    return round_half_up(int(m.group(1)) * 60 + float(m.group(2)), 3)


def _split_segments(line: str) -> list[_Segment]:
    """
    Every line tag owns the text up to the next tag. A tag with a blank span
    that sits right before another tag shares that tag's text, so
    "[00:10][00:40]chorus" yields "chorus" twice.
    """
    tags = list(_LINE_TAG_RE.finditer(line))
    raws: list[str] = []
    for k, m in enumerate(tags):
        end = tags[k + 1].start() if k + 1 < len(tags) else len(line)
        raws.append(line[m.end() : end])
    for k in range(len(tags) - 2, -1, -1):
        if not raws[k].strip():
            raws[k] = raws[k + 1]
    return [_Segment(time=_tag_seconds(m), raw=raw) for m, raw in zip(tags, raws)]


def _strip_word_tags(raw: str) -> str:
    return _WORD_TAG_RE.sub("", raw).strip()


def _decode(text: str) -> tuple[list[tuple[_Segment, ...]], dict[str, str], LrcParseStats]:
    metadata: dict[str, str] = {}
    per_line: list[tuple[_Segment, ...]] = []

    total = 0
    lines_with_ts = 0
    ignored = 0

    for raw in (text or "").splitlines():
        total += 1
        line = raw.strip()
        if not line:
            ignored += 1
            continue

        segments = _split_segments(line)
        if not segments:
            meta = _META_RE.match(line)
            if meta:
                metadata[meta.group(1).lower()] = meta.group(2).strip()
            else:
                ignored += 1
            continue

        lines_with_ts += 1
        per_line.append(tuple(segments))

    stats = LrcParseStats(
        lines_total=total,
        entries_total=sum(len(s) for s in per_line),
        lines_with_timestamps=lines_with_ts,
        lines_ignored=ignored,
        metadata_total=len(metadata),
    )
    return per_line, metadata, stats


def parse_lrc(text: str) -> list[LrcEntry]:
    """
    Line-level decode.

    - [mm:ss] and [mm:ss.xx] tags, several per raw line
    - <..> word tags are stripped from the text
    - untagged lines are dropped, metadata lines are skipped
    - entries sorted by time (stable, raw order kept on ties)
    - empty text is kept (instrumental break)
    """
    entries, _stats = parse_lrc_with_stats(text)
    return entries


def parse_lrc_with_stats(text: str) -> tuple[list[LrcEntry], LrcParseStats]:
    per_line, _metadata, stats = _decode(text)
    entries = [
        LrcEntry(time=seg.time, text=_strip_word_tags(seg.raw))
        for segments in per_line
        for seg in segments
    ]
    entries.sort(key=lambda e: e.time)
    return entries, stats


def parse_metadata(text: str) -> dict[str, str]:
    _per_line, metadata, _stats = _decode(text)
    return metadata


def _locate(clean: str, token: str, cursor: int) -> tuple[int, int] | None:
    pattern = re.compile(r"(?<!\S)" + re.escape(token) + r"(?!\S)")
    m = pattern.search(clean, cursor)
    if m is None:
        return None
    return m.start(), m.end()


def _timed_line(seg: _Segment) -> TimedLine:
    # only the first word after a <time> tag owns that time
    explicit: list[tuple[str, float]] = []
    for wm in _WORD_SPAN_RE.finditer(seg.raw):
        tokens = wm.group(2).split()
        if not tokens:
            continue
        t = round_half_up(parse_lrc_time(wm.group(1)), 3)
        explicit.append((tokens[0], t))

    clean = _strip_word_tags(seg.raw)
    # a tag inside a word (<t>he<t>llo) times a fragment, not a word
    whole = set(clean.split())
    explicit = [(tok, t) for tok, t in explicit if tok in whole]
    words: list[Word] = []
    cursor = 0
    j = 0
    for token in clean.split():
        if j < len(explicit) and explicit[j][0] == token:
            time, is_explicit = explicit[j][1], True
            j += 1
        else:
            time, is_explicit = seg.time, False

        pos = _locate(clean, token, cursor)
        if pos is None:
            logger.debug("Word %r not found in %r after %d", token, clean, cursor)
            start, end = cursor, min(cursor + len(token), len(clean))
        else:
            start, end = pos
        cursor = max(cursor, end)
        words.append(Word(text=token, time=time, start=start, end=end, explicit=is_explicit))

    return TimedLine(line_time=seg.time, text=clean, words=tuple(words))


def parse_enhanced_lrc(text: str) -> LrcDocument:
    """
    Word-level decode of [mm:ss.xx]<mm:ss.xx>word ... lines.

    Words without an explicit tag get the line time and explicit=False.
    Never raises; garbage decodes to an empty document.
    """
    per_line, metadata, _stats = _decode(text)
    lines = [_timed_line(seg) for segments in per_line for seg in segments]
    lines.sort(key=lambda ln: ln.line_time)
    return LrcDocument(lines=tuple(lines), metadata=metadata)


def is_likely_synced(text: str) -> bool:
    rows = [r.strip() for r in (text or "").splitlines() if r.strip()]
    if not rows:
        return False
    stamped = sum(1 for r in rows if _LEADING_TAG_RE.match(r))
    return stamped * 2 >= len(rows)


def is_fully_stamped(text: str) -> bool:
    rows = [r.strip() for r in (text or "").splitlines() if r.strip()]
    return bool(rows) and all(_LEADING_TAG_RE.match(r) for r in rows)
