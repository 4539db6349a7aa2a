"""Deadline monitor for timed attempts."""
from typing import Callable, Optional


def seconds_remaining(started_at: float, duration_seconds: float, now: float) -> float:
    return max(0.0, duration_seconds - (now - started_at))


def is_expired(started_at: float, duration_seconds: float, now: float) -> bool:
    return seconds_remaining(started_at, duration_seconds, now) == 0


def format_remaining(seconds: float, show_hours: bool = True) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if not show_hours:
        return f"{hours * 60 + minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class DeadlineMonitor:
    """Samples remaining time and signals expiry exactly once.

    The caller decides the cadence (a one-second tick, or every user event).
    Each call to ``tick`` recomputes the remaining time from the fixed start
    instant, so a late first observation after a suspend still expires.
    Warning marks fire at most once each, the first time remaining time is
    at or below the mark.
    """

    def __init__(
        self,
        started_at: float,
        duration_seconds: float,
        on_expire: Callable[[float], None],
        warning_marks: tuple = (),
        on_warning: Optional[Callable[[int], None]] = None,
    ):
        self.started_at = started_at
        self.duration_seconds = duration_seconds
        self._on_expire = on_expire
        self._on_warning = on_warning
        self._pending_marks = sorted(warning_marks, reverse=True)
        self.expired = False

    @property
    def deadline(self) -> float:
        return self.started_at + self.duration_seconds

    def remaining(self, now: float) -> float:
        return seconds_remaining(self.started_at, self.duration_seconds, now)

    def tick(self, now: float) -> float:
        remaining = self.remaining(now)
        if self.expired:
            return remaining
        if remaining == 0:
            self.expired = True
            self._pending_marks = []
            self._on_expire(self.deadline)
            return remaining
        fired = [m for m in self._pending_marks if remaining <= m]
        if fired:
            self._pending_marks = [m for m in self._pending_marks if remaining > m]
            if self._on_warning:
                # Only the tightest crossed mark is announced
                self._on_warning(min(fired))
        return remaining
