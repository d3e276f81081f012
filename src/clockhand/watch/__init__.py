"""Watch subsystem: change detection, notification state and the polling loop."""

from .detector import ChangeDetector, EventChangeDetector
from .loop import WatchLoop, reminder_for
from .oracle import HarvestOracle, TimerSnapshot, TimerStatusOracle, timer_covers
from .state import WatchState, advance, mark_notified

__all__ = [
    "ChangeDetector",
    "EventChangeDetector",
    "HarvestOracle",
    "TimerSnapshot",
    "TimerStatusOracle",
    "WatchLoop",
    "WatchState",
    "advance",
    "mark_notified",
    "reminder_for",
    "timer_covers",
]
