"""The watch loop: poll projects, remind when no timer covers an edited one."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from ..config import ProjectWatch
from ..errors import ServiceUnavailable
from ..notify import Notifier
from .detector import ChangeDetector
from .oracle import TimerSnapshot, TimerStatusOracle, timer_covers
from .state import WatchState, advance, mark_notified

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0  # seconds
RECOMMENDED_MIN_INTERVAL = 1.0


def reminder_for(project: ProjectWatch, snapshot: TimerSnapshot) -> tuple[str, str]:
    """Notification title and body for a project with no covering timer."""
    body = f"Start a timer for {project.name}"
    if snapshot.running:
        return "Timer running for other project", body
    return "Timer not running", body


class WatchLoop:
    """Polls a fixed set of projects on an interval.

    State lives on the instance, so independent loops never share it.
    """

    def __init__(
        self,
        projects: Sequence[ProjectWatch],
        oracle: TimerStatusOracle,
        notifier: Notifier,
        detector=None,
        interval: float = DEFAULT_INTERVAL,
        max_workers: Optional[int] = None,
    ):
        self.projects = list(projects)
        self.oracle = oracle
        self.notifier = notifier
        self.detector = detector if detector is not None else ChangeDetector()
        self.interval = interval
        self.max_workers = max_workers
        # Keyed by position: the same directory may be listed twice.
        self.states: dict[int, WatchState] = {i: WatchState() for i in range(len(self.projects))}

        if interval < RECOMMENDED_MIN_INTERVAL:
            logger.warning("Polling every %.2fs is wasteful on large trees", interval)

    def _fingerprints(self) -> list[Optional[str]]:
        def compute(project: ProjectWatch) -> Optional[str]:
            try:
                return self.detector.fingerprint(project.root)
            except OSError as e:
                logger.warning("Could not scan %s: %s", project.root, e)
                return None

        if len(self.projects) <= 1:
            return [compute(p) for p in self.projects]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(compute, self.projects))

    def tick(self) -> list[ProjectWatch]:
        """Run one polling cycle. Returns the projects that were notified."""
        candidates: list[int] = []
        for i, fingerprint in enumerate(self._fingerprints()):
            if fingerprint is None:
                continue
            self.states[i], consider = advance(self.states[i], fingerprint)
            if consider:
                candidates.append(i)

        if not candidates:
            return []

        try:
            snapshot = self.oracle.current()
        except ServiceUnavailable as e:
            logger.warning("Timer status unknown, skipping notifications this tick: %s", e)
            return []

        notified = []
        for i in candidates:
            project = self.projects[i]
            if timer_covers(snapshot, project.project_id):
                logger.debug("Timer running for %s", project.name)
                continue

            title, body = reminder_for(project, snapshot)
            logger.info("%s: %s", title, body)
            try:
                self.notifier.notify(title, body)
            except Exception as e:
                logger.error("Notification for %s failed: %s", project.name, e)
            self.states[i] = mark_notified(self.states[i])
            notified.append(project)

        return notified

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Tick until ``stop_event`` is set."""
        stop_event = stop_event or threading.Event()
        try:
            while not stop_event.is_set():
                self.tick()
                stop_event.wait(self.interval)
        finally:
            self.detector.close()
