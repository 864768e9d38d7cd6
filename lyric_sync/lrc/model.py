from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class LrcEntry:
    time: float
    text: str


@dataclass(frozen=True, slots=True)
class Word:
    text: str
    time: float
    start: int = 0
    end: int = 0
    # False when the time fell back to the line time while decoding
    explicit: bool = True


@dataclass(frozen=True, slots=True)
class TimedLine:
    line_time: float
    text: str
    words: tuple[Word, ...] = ()


@dataclass(frozen=True, slots=True)
class LrcDocument:
    lines: tuple[TimedLine, ...]
    metadata: dict[str, str] = field(default_factory=dict)
