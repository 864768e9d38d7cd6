from __future__ import annotations

from pathlib import Path

import typer

from lyric_sync.align.repair import repair_synced_lyrics
from lyric_sync.config import config_keys, load_config, save_config_value
from lyric_sync.errors import LyricSyncError
from lyric_sync.logging_setup import setup_logging
from lyric_sync.lrc.export import document_word_map, export_enhanced_lrc, export_json, export_lrc
from lyric_sync.lrc.parse import parse_enhanced_lrc, parse_lrc_with_stats
from lyric_sync.lrc.replace import replace_lyrics_in_lrc, validate_lyrics_consistency
from lyric_sync.render.ansi import render_diff
from lyric_sync.sync.tracker import LineTracker


app = typer.Typer(no_args_is_help=True, add_completion=False)

_TRUE = ("1", "true", "yes", "play", "playing")


def _read(path: Path | None) -> str | None:
    if path is None:
        return None
    return path.read_text(encoding="utf-8")


def _write_or_echo(data: str, out: Path | None) -> None:
    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=not data.endswith("\n"))


@app.callback()
def main_options(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    setup_logging(debug)


@app.command()
def parse(
    lrc_path: Path,
    enhanced: bool = typer.Option(False, "--enhanced", help="Also report word-level timing"),
):
    """Parse LRC and print stats."""
    text = lrc_path.read_text(encoding="utf-8")
    entries, stats = parse_lrc_with_stats(text)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_with_timestamps={stats.lines_with_timestamps}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"entries_total={stats.entries_total}")
    typer.echo(f"metadata_total={stats.metadata_total}")
    if entries:
        typer.echo(f"first={entries[0].time:.2f} last={entries[-1].time:.2f}")
    if enhanced:
        doc = parse_enhanced_lrc(text)
        words = [w for line in doc.lines for w in line.words]
        typer.echo(f"words_total={len(words)}")
        typer.echo(f"words_timed={sum(1 for w in words if w.explicit)}")


@app.command()
def export(
    lrc_path: Path,
    fmt: str = typer.Option("lrc", "--format", case_sensitive=False, help="lrc|enhanced|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Re-encode LRC (normalized) as line-level, enhanced or JSON."""
    doc = parse_enhanced_lrc(lrc_path.read_text(encoding="utf-8"))
    texts = [line.text for line in doc.lines]
    times = [line.line_time for line in doc.lines]
    fmt_l = fmt.lower()
    if fmt_l == "json":
        data = export_json(doc)
    elif fmt_l == "lrc":
        data = export_lrc(texts, times)
    elif fmt_l == "enhanced":
        data = export_enhanced_lrc(texts, times, document_word_map(doc))
    else:
        raise typer.BadParameter("format must be one of: lrc, enhanced, json")
    _write_or_echo(data, out)


@app.command()
def repair(
    plain_path: Path,
    synced_path: Path | None = typer.Argument(None, help="Existing line-synced LRC"),
    word_synced: Path | None = typer.Option(None, "--word-synced", help="Existing enhanced LRC"),
    out_synced: Path | None = typer.Option(None, "--out-synced", help="Write repaired line-synced LRC"),
    out_word_synced: Path | None = typer.Option(None, "--out-word-synced", help="Write repaired enhanced LRC"),
    no_color: bool = typer.Option(False, "--no-color", help="Plain diff output"),
):
    """
    Re-time corrected lyrics (plain text or editor HTML), keeping old timestamps.
    """
    try:
        preview = repair_synced_lyrics(
            plain_path.read_text(encoding="utf-8"),
            _read(synced_path),
            _read(word_synced),
        )
    except LyricSyncError as e:
        typer.echo(f"Repair failed: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(render_diff(preview.diff_summary, color=not no_color), nl=False)
    if out_synced:
        out_synced.write_text(preview.repaired_synced + "\n", encoding="utf-8")
    else:
        typer.echo(preview.repaired_synced)
    if out_word_synced and preview.repaired_word_synced is not None:
        out_word_synced.write_text(preview.repaired_word_synced + "\n", encoding="utf-8")


@app.command()
def replace(
    lrc_path: Path,
    search: str,
    replacement: str,
    line: list[int] | None = typer.Option(None, "--line", help="0-based line to touch (repeatable)"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Replace a word in synced lyrics without touching timestamps."""
    result = replace_lyrics_in_lrc(lrc_path.read_text(encoding="utf-8"), search, replacement, line or None)
    typer.echo(f"replaced={result.replaced_count}", err=True)
    _write_or_echo(result.updated, out)


@app.command()
def check(
    plain_path: Path,
    synced_path: Path,
    tolerance: float = typer.Option(5.0, "--tolerance", help="Allowed word count difference in percent"),
):
    """Compare word counts of plain and synced lyrics."""
    res = validate_lyrics_consistency(
        plain_path.read_text(encoding="utf-8"),
        synced_path.read_text(encoding="utf-8"),
        tolerance,
    )
    typer.echo(f"plain_words={res.plain_word_count}")
    typer.echo(f"synced_words={res.synced_word_count}")
    typer.echo(f"tolerance={res.tolerance}")
    typer.echo("consistent" if res.is_consistent else "inconsistent")
    if not res.is_consistent:
        raise typer.Exit(code=1)


def _parse_sample(row: str) -> tuple[float, bool, float | None]:
    parts = [p.strip() for p in row.split(",")]
    if len(parts) < 2:
        raise typer.BadParameter(f"expected position_ms,playing[,now_ms]: {row!r}")
    try:
        position = float(parts[0])
        now = float(parts[2]) if len(parts) > 2 and parts[2] else None
    except ValueError:
        raise typer.BadParameter(f"expected numeric position_ms and now_ms: {row!r}") from None
    return position, parts[1].lower() in _TRUE, now


@app.command()
def follow(
    lrc_path: Path,
    samples_path: Path,
):
    """
    Replay position samples (position_ms,playing[,now_ms] per line) through the
    live line tracker and print the active line for each.
    """
    cfg = load_config()
    doc = parse_enhanced_lrc(lrc_path.read_text(encoding="utf-8"))
    tracker = LineTracker.from_lines(doc.lines, settings=cfg.tracker_settings())

    for row in samples_path.read_text(encoding="utf-8").splitlines():
        if not row.strip() or row.lstrip().startswith("#"):
            continue
        position, playing, now = _parse_sample(row)
        # without an explicit clock the position doubles as wall time
        idx = tracker.update(position, playing, now_ms=position if now is None else now)
        if idx is None:
            typer.echo(f"{position:.0f} -> -")
        else:
            typer.echo(f"{position:.0f} -> {idx} {doc.lines[idx].text}")


@app.command()
def config(key: str, value: float):
    """Persist a tracker threshold (milliseconds)."""
    try:
        path = save_config_value(key, value)
    except KeyError:
        typer.echo(f"Unknown key {key!r}; expected one of: {', '.join(config_keys())}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Saved {key}={value} to {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
