from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from lyric_sync.lrc.model import LrcEntry, TimedLine

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True, slots=True)
class TrackerSettings:
    seek_threshold_ms: float = 800.0
    resume_grace_ms: float = 1200.0
    min_dwell_ms: float = 120.0
    # how far before a line start a forward move may already happen
    forward_lead_ms: float = 0.0
    backward_margin_ms: float = 1000.0
    jitter_reverse_ms: float = 550.0


@dataclass(slots=True)
class LineTracker:
    """
    Position -> active line resolver with hysteresis.

    Fed one (position, playing) sample per poll or frame. Forward moves are
    cheap, backward moves need a real seek or a clear fall-behind, and a
    short window after resume lets the cursor catch up in one jump.
    One instance per displayed song; calls must be serialized by the owner.
    """

    times_ms: list[float | None]
    settings: TrackerSettings = field(default_factory=TrackerSettings)
    clock: Callable[[], float] = _monotonic_ms

    last_stable_idx: int | None = None
    last_change_ms: float = 0.0
    last_position_ms: float = 0.0
    resume_grace_until_ms: float = 0.0
    was_paused: bool = True
    _next_known: list[float | None] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # time of the next stamped line after each slot
        self._next_known = [None] * len(self.times_ms)
        upcoming: float | None = None
        for i in range(len(self.times_ms) - 1, -1, -1):
            self._next_known[i] = upcoming
            if self.times_ms[i] is not None:
                upcoming = self.times_ms[i]

    @classmethod
    def from_times(
        cls,
        times_s: Sequence[float | None],
        settings: TrackerSettings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "LineTracker":
        times_ms = [None if t is None else t * 1000.0 for t in times_s]
        return cls(
            times_ms=times_ms,
            settings=settings or TrackerSettings(),
            clock=clock or _monotonic_ms,
        )

    @classmethod
    def from_lines(
        cls,
        lines: Sequence[TimedLine] | Sequence[LrcEntry],
        settings: TrackerSettings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "LineTracker":
        times = [ln.line_time if isinstance(ln, TimedLine) else ln.time for ln in lines]
        return cls.from_times(times, settings=settings, clock=clock)

    def reset(self) -> None:
        self.last_stable_idx = None
        self.last_change_ms = 0.0
        self.last_position_ms = 0.0
        self.resume_grace_until_ms = 0.0
        self.was_paused = True

    def naive_index(self, position_ms: float) -> int | None:
        """Last stamped line that started at or before position_ms."""
        target: int | None = None
        for i, t in enumerate(self.times_ms):
            if t is None or position_ms < t:
                continue
            nxt = self._next_known[i]
            target = i
            if nxt is None or position_ms < nxt:
                break
        return target

    def update(
        self,
        position_ms: float,
        is_playing: bool,
        *,
        auto_follow: bool = True,
        now_ms: float | None = None,
    ) -> int | None:
        if not is_playing:
            self.was_paused = True
            return None
        if not auto_follow:
            return None

        now = self.clock() if now_ms is None else now_ms
        cfg = self.settings

        delta = position_ms - self.last_position_ms
        self.last_position_ms = position_ms

        if self.was_paused:
            self.was_paused = False
            self.resume_grace_until_ms = now + cfg.resume_grace_ms
        in_grace = now < self.resume_grace_until_ms
        is_seek = abs(delta) > cfg.seek_threshold_ms and not in_grace
        if is_seek:
            logger.debug("Seek detected: %+.0fms to %.0fms", delta, position_ms)

        target = self.naive_index(position_ms)
        if target is None:
            return None

        stable = self.last_stable_idx
        if stable is None:
            return self._commit(target, now)
        if target == stable:
            return stable

        if target > stable:
            target_time = self.times_ms[target]
            assert target_time is not None
            if is_seek or (in_grace and target - stable > 1):
                return self._commit(target, now)
            reached = position_ms >= target_time - cfg.forward_lead_ms
            dwelled = now - self.last_change_ms >= cfg.min_dwell_ms
            if reached and dwelled:
                return self._commit(target, now)
            return stable

        # backward
        if is_seek and abs(delta) >= cfg.jitter_reverse_ms:
            return self._commit(target, now)
        stable_time = self.times_ms[stable]
        if stable_time is not None and position_ms < stable_time - cfg.backward_margin_ms:
            return self._commit(target, now)
        return stable

    def _commit(self, idx: int, now: float) -> int:
        if idx != self.last_stable_idx:
            logger.debug("Active line %s -> %d", self.last_stable_idx, idx)
        self.last_stable_idx = idx
        self.last_change_ms = now
        return idx
