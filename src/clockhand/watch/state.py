"""Per-project notification state for the watch loop."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class WatchState:
    """What the loop last saw for one project.

    ``notified_since_change`` is only true while ``last_fingerprint`` is the
    fingerprint a notification already fired for.
    """

    last_fingerprint: Optional[str] = None
    notified_since_change: bool = False


def advance(state: WatchState, new_fingerprint: str) -> tuple[WatchState, bool]:
    """Fold a new fingerprint into ``state``.

    Returns the next state and whether the project is a notification
    candidate on this tick.
    """
    if state.last_fingerprint is None:
        # First observation is the baseline, nothing has changed yet.
        return WatchState(last_fingerprint=new_fingerprint), False

    if new_fingerprint == state.last_fingerprint:
        return state, not state.notified_since_change

    return WatchState(last_fingerprint=new_fingerprint), True


def mark_notified(state: WatchState) -> WatchState:
    return replace(state, notified_since_change=True)
