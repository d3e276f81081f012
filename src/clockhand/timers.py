"""Timer commands: start, stop, status, note and report."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from .config import ProjectWatch
from .errors import ClockhandError, ConfigInvalid, NoRunningTimer, TimerNotFound
from .harvest import HarvestClient
from .notes import merge
from .watch.oracle import TimerSnapshot

logger = logging.getLogger(__name__)


def harvest_clock_time(moment: datetime) -> str:
    """Harvest's started_time format, e.g. '8:05am'."""
    hour = moment.hour % 12 or 12
    suffix = "am" if moment.hour < 12 else "pm"
    return f"{hour}:{moment.minute:02d}{suffix}"


def report_start(today: date, weeks: int = 2) -> date:
    """Monday of the ISO week ``weeks - 1`` weeks before ``today``'s."""
    start_of_week = today - timedelta(days=today.isoweekday() - 1)
    return start_of_week - timedelta(weeks=max(weeks, 1) - 1)


def _pick_day_entry(entries: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not entries:
        return None
    for entry in entries:
        if entry.get("is_running"):
            return entry
    return max(entries, key=lambda e: e.get("updated_at") or "")


class TimerController:
    """One-shot timer operations against Harvest.

    ``project`` is the clockhand.json found for the working directory, if any.
    """

    def __init__(
        self,
        client: HarvestClient,
        project: Optional[ProjectWatch] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.project = project
        self._now = now

    def _require_project(self) -> ProjectWatch:
        if self.project is None or self.project.project_id is None:
            raise ConfigInvalid("No clockhand.json found here; run this inside a project directory")
        return self.project

    def _task_id(self, project: ProjectWatch) -> int:
        if project.task_id is not None:
            return project.task_id
        assignments = self.client.task_assignments(project.project_id)
        if not assignments:
            raise ConfigInvalid(
                f"Harvest project {project.project_id} has no active tasks; "
                f"set harvest_task_id in {project.config_path}"
            )
        return assignments[0]["task"]["id"]

    def start(self, add_minutes: Optional[int] = None) -> TimerSnapshot:
        """Start (or resume) a timer for the current project.

        With ``add_minutes`` a new entry is created whose start time is that
        many minutes before now.
        """
        if add_minutes is not None and add_minutes < 0:
            raise ValueError("add_minutes can't be negative")

        project = self._require_project()
        running = self.client.running_timer()
        if running:
            snapshot = TimerSnapshot.from_entry(running)
            if snapshot.project_id == project.project_id:
                if add_minutes:
                    raise ClockhandError(f"A timer is already running for {project.name}; stop it first")
                logger.info("Timer already running for %s", project.name)
                return snapshot

        now = self._now()
        task_id = self._task_id(project)

        if not add_minutes:
            today = now.date()
            for entry in self.client.list_time_entries(today, today, project_id=project.project_id):
                if (entry.get("task") or {}).get("id") == task_id and not entry.get("is_running"):
                    logger.info("Resuming entry %s", entry["id"])
                    return TimerSnapshot.from_entry(self.client.restart_time_entry(entry["id"]))

        started = now - timedelta(minutes=add_minutes or 0)
        entry = self.client.create_time_entry(
            project_id=project.project_id,
            task_id=task_id,
            spent_date=started.date(),
            started_time=harvest_clock_time(started) if add_minutes else None,
        )
        return TimerSnapshot.from_entry(entry)

    def stop(self) -> TimerSnapshot:
        running = self.client.running_timer()
        if not running:
            raise NoRunningTimer("No timer is running")
        return TimerSnapshot.from_entry(self.client.stop_time_entry(running["id"]))

    def status(self) -> TimerSnapshot:
        running = self.client.running_timer()
        return TimerSnapshot.from_entry(running) if running else TimerSnapshot.idle()

    def note(self, message: str, day: Optional[date] = None, key: Optional[str] = None) -> TimerSnapshot:
        """Upsert ``message`` into the description of ``day``'s timer."""
        day = day or self._now().date()
        project_id = self.project.project_id if self.project else None

        entry = _pick_day_entry(self.client.list_time_entries(day, day, project_id=project_id))
        if entry is None:
            raise TimerNotFound(f"No timer found for {day.isoformat()}")

        notes = merge(entry.get("notes"), day, message, key)
        if notes == (entry.get("notes") or ""):
            logger.info("Note already present on entry %s", entry["id"])
            return TimerSnapshot.from_entry(entry)
        return TimerSnapshot.from_entry(self.client.update_notes(entry["id"], notes))

    def report(self, weeks: int = 2) -> list[dict[str, Any]]:
        """Time entries from the start of the ISO week ``weeks - 1`` weeks ago."""
        today = self._now().date()
        return self.client.list_time_entries(from_date=report_start(today, weeks))
