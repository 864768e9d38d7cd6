from __future__ import annotations

import json
import math
from typing import Mapping, Sequence

from .model import LrcDocument, Word
from .timecode import format_timestamp


def export_lrc(lines: Sequence[str], times: Sequence[float | None]) -> str:
    """
    [MM:SS.ff] text per stamped line. Lines whose time is None are left out,
    so a partially stamped sheet cannot round-trip through this function.
    """
    out: list[str] = []
    for text, t in zip(lines, times):
        if t is None:
            continue
        out.append(f"[{format_timestamp(t)}] {text}" if text else f"[{format_timestamp(t)}]")
    return "\n".join(out)


def _word_offset(line_text: str, w: Word, pos: int) -> int:
    if w.start >= pos and line_text[w.start : w.start + len(w.text)] == w.text:
        return w.start
    return line_text.find(w.text, pos)


def export_enhanced_lrc(
    lines: Sequence[str],
    times: Sequence[float | None],
    word_map: Mapping[int, Sequence[Word]],
) -> str:
    out: list[str] = []
    for i, (line_text, t) in enumerate(zip(lines, times)):
        if t is None:
            continue
        built = f"[{format_timestamp(t)}]"
        words = word_map.get(i) or ()
        pos = 0
        for w in words:
            if not w.text or not math.isfinite(w.time):
                continue
            start = _word_offset(line_text, w, pos)
            if start == -1:
                continue
            built += line_text[pos:start] + f"<{format_timestamp(w.time)}>{w.text}"
            pos = start + len(w.text)
        built += line_text[pos:]
        out.append(built)
    return "\n".join(out)


def document_word_map(doc: LrcDocument) -> dict[int, list[Word]]:
    # words that fell back to the line time carry no tag of their own
    return {
        i: [w for w in line.words if w.explicit]
        for i, line in enumerate(doc.lines)
        if any(w.explicit for w in line.words)
    }


def export_json(doc: LrcDocument) -> str:
    return json.dumps(
        {
            "metadata": doc.metadata,
            "lines": [
                {
                    "time": line.line_time,
                    "text": line.text,
                    "words": [
                        {"text": w.text, "time": w.time, "start": w.start, "end": w.end}
                        for w in line.words
                        if w.explicit
                    ],
                }
                for line in doc.lines
            ],
        },
        ensure_ascii=False,
        indent=2,
    )
