"""Whether a Harvest timer is running, as seen by the watch loop."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ..errors import ClockhandError, ServiceUnavailable
from ..harvest import HarvestClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerSnapshot:
    """Harvest's timer state at one instant."""

    running: bool
    project_id: Optional[int] = None
    entry_id: Optional[int] = None
    project_name: Optional[str] = None
    task_name: Optional[str] = None
    hours: Optional[float] = None
    notes: Optional[str] = None
    spent_date: Optional[str] = None

    @classmethod
    def idle(cls) -> "TimerSnapshot":
        return cls(running=False)

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> "TimerSnapshot":
        project = entry.get("project") or {}
        task = entry.get("task") or {}
        return cls(
            running=bool(entry.get("is_running")),
            project_id=project.get("id"),
            entry_id=entry.get("id"),
            project_name=project.get("name"),
            task_name=task.get("name"),
            hours=entry.get("hours"),
            notes=entry.get("notes"),
            spent_date=entry.get("spent_date"),
        )


class TimerStatusOracle(Protocol):
    def current(self) -> TimerSnapshot:
        """Raises ServiceUnavailable when Harvest can't answer."""
        ...


def timer_covers(snapshot: TimerSnapshot, project_id: Optional[int]) -> bool:
    """Whether ``snapshot`` counts as a timer for ``project_id``.

    Per-project when both sides know the project, otherwise any running
    timer counts.
    """
    if not snapshot.running:
        return False
    if project_id is None or snapshot.project_id is None:
        return True
    return snapshot.project_id == project_id


class HarvestOracle:
    """Running-timer lookups against Harvest, optionally cached for ``ttl`` seconds."""

    def __init__(self, client: HarvestClient, ttl: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self.client = client
        self.ttl = ttl
        self._clock = clock
        self._cached: Optional[TimerSnapshot] = None
        self._cached_at = 0.0

    def current(self) -> TimerSnapshot:
        """The running timer, or raises ServiceUnavailable for any failed lookup."""
        now = self._clock()
        if self._cached is not None and now - self._cached_at < self.ttl:
            return self._cached

        try:
            entry = self.client.running_timer()
            snapshot = TimerSnapshot.from_entry(entry) if entry else TimerSnapshot.idle()
        except ServiceUnavailable:
            raise
        except (ClockhandError, KeyError, TypeError, AttributeError, ValueError) as e:
            raise ServiceUnavailable(f"Unexpected answer from Harvest: {e}") from e
        logger.debug("Timer snapshot: %s", snapshot)

        self._cached = snapshot
        self._cached_at = now
        return snapshot
