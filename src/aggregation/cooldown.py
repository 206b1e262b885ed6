"""
Per-label cooldown for the live-mode logging sink.

A label that was just logged is held in cooldown for a fixed duration so a
part that stays in frame is not logged on every tick.
"""

from __future__ import annotations

from typing import Dict, Optional

DEFAULT_COOLDOWN_MS = 5000
# Coarser gate than the display threshold: only these are offered for logging.
LOG_MIN_CONFIDENCE = 0.5


class CooldownState:
    """
    Label -> last-logged time plus the set of labels currently cooling down.

    Active entries carry their expiry time and are dropped when next checked,
    which matches a timer that removes the label after the duration.
    All times are epoch milliseconds supplied by the caller.
    """

    def __init__(self, duration_ms: int = DEFAULT_COOLDOWN_MS):
        self.duration_ms = int(duration_ms)
        self.last_logged: Dict[str, int] = {}
        self._active: Dict[str, int] = {}

    def _expire(self, now: int) -> None:
        for label in [k for k, until in self._active.items() if now >= until]:
            del self._active[label]

    def active_labels(self, now: Optional[int] = None) -> set[str]:
        if now is not None:
            self._expire(now)
        return set(self._active)

    def is_active(self, label: str, now: int) -> bool:
        self._expire(now)
        return label in self._active

    def should_emit(self, label: str, now: int) -> bool:
        """True iff label is idle and its last emission is at least duration_ms old."""
        if self.is_active(label, now):
            return False
        return now - self.last_logged.get(label, 0) >= self.duration_ms

    def mark_emitted(self, label: str, now: int) -> None:
        """Record an emission and start the label's cooldown window."""
        self.last_logged[label] = now
        self._active[label] = now + self.duration_ms

    def try_acquire(self, label: str, now: int) -> bool:
        """should_emit() and, when it passes, mark_emitted() in one step."""
        if not self.should_emit(label, now):
            return False
        self.mark_emitted(label, now)
        return True

    def reset(self) -> None:
        self.last_logged.clear()
        self._active.clear()

    def __len__(self) -> int:
        return len(self.last_logged)
