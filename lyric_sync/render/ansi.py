from __future__ import annotations

from dataclasses import dataclass

from lyric_sync.align.repair import DiffSummary

CSI = "\x1b["


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = _sgr(36, 1)  # cyan bold
    added: str = _sgr(32)  # green
    removed: str = _sgr(31)  # red
    dim: str = _sgr(90)  # bright black
    warning: str = _sgr(33, 1)  # yellow bold
    reset: str = _sgr(0)


_PLAIN = Theme(title="", added="", removed="", dim="", warning="", reset="")


def render_diff(summary: DiffSummary, theme: Theme | None = None, color: bool = True) -> str:
    th = (theme or Theme()) if color else _PLAIN
    out: list[str] = []

    out.append(f"{th.title}Repair preview{th.reset}")
    out.append(
        f"lines added={summary.lines_added} removed={summary.lines_removed} "
        f"modified={len(summary.lines_modified)}"
    )
    if summary.line_count_changed:
        out.append(f"{th.warning}line count changed{th.reset}")

    for change in summary.lines_modified:
        out.append(f"{th.dim}@{change.index}{th.reset}")
        out.append(f"{th.removed}- {change.before}{th.reset}")
        out.append(f"{th.added}+ {change.after}{th.reset}")

    if summary.interpolated_line_ranges:
        ranges = ", ".join(
            str(r.start_index) if r.start_index == r.end_index else f"{r.start_index}-{r.end_index}"
            for r in summary.interpolated_line_ranges
        )
        out.append(f"changed ranges: {ranges}")

    if summary.word_timing_preserved:
        kept = sum(s.preserved_count for s in summary.word_timing_preserved)
        total = sum(s.total_words for s in summary.word_timing_preserved)
        out.append(f"word timings preserved: {kept}/{total}")

    return "\n".join(out) + "\n"
