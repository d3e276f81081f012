"""clockhand CLI - reminds you to run your Harvest timer."""

import logging
import signal
import threading
from datetime import date, datetime
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config import load_access_token, load_watch_list, read_project_config
from ..errors import ClockhandError
from ..formatting import decimal_hours_to_string, strip_newlines_and_tabs, truncate_with_ellipsis
from ..harvest import HarvestClient
from ..notify import DesktopNotifier
from ..paths import find_project_config
from ..timers import TimerController
from ..watch import ChangeDetector, EventChangeDetector, HarvestOracle, TimerSnapshot, WatchLoop

app = typer.Typer(
    name="clockhand",
    help="Reminds you to run a Harvest timer while you work on a project",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _fail(e: Exception) -> NoReturn:
    err_console.print(f"[bold red]Error:[/] {escape(str(e))}", soft_wrap=True)
    raise typer.Exit(1)


def _version_callback(value: bool):
    if value:
        rprint(f"clockhand {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _controller(with_project: bool = True) -> TimerController:
    """Only start and note read the clockhand.json above the working directory."""
    client = HarvestClient(load_access_token())
    project = None
    if with_project:
        config_path = find_project_config(Path.cwd())
        project = read_project_config(config_path) if config_path else None
    return TimerController(client, project)


def _print_snapshot(snapshot: TimerSnapshot) -> None:
    if not snapshot.running:
        rprint("[yellow]idle[/] - no timer running")
        return

    hours = decimal_hours_to_string(snapshot.hours or 0.0).strip()
    rprint(f"[bold green]running[/] {snapshot.project_name} [dim]({snapshot.task_name})[/] {hours}")
    if snapshot.notes:
        rprint(f"[dim]{escape(snapshot.notes)}[/]")


def _setup_signal_handlers(stop_event: threading.Event):
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


@app.command()
def watch(
    project_config_paths: List[str] = typer.Argument(
        ...,
        help="Project clockhand.json files to watch, e.g. ~/code/*/clockhand.json",
    ),
    interval: float = typer.Option(60.0, "--interval", "-i", help="Seconds between polls", min=0.0),
    events: bool = typer.Option(False, "--events", help="Use filesystem events instead of polling"),
    cache_ttl: float = typer.Option(0.0, "--cache-ttl", help="Reuse Harvest's timer status for this many seconds"),
):
    """Notify when a watched project changes while no timer runs for it."""
    projects, errors = load_watch_list(project_config_paths)
    for error in errors:
        err_console.print(f"[yellow]Skipping:[/] {escape(str(error))}", soft_wrap=True)
    if not projects:
        _fail(ClockhandError("No valid project configs to watch"))

    try:
        client = HarvestClient(load_access_token())
    except ClockhandError as e:
        _fail(e)

    detector = EventChangeDetector() if events else ChangeDetector()
    loop = WatchLoop(
        projects,
        oracle=HarvestOracle(client, ttl=cache_ttl),
        notifier=DesktopNotifier(),
        detector=detector,
        interval=interval,
    )

    for project in projects:
        rprint(f"Watching [bold]{project.root}[/] [dim]({project.name})[/]")

    stop_event = threading.Event()
    _setup_signal_handlers(stop_event)
    try:
        loop.run(stop_event)
    finally:
        client.close()
    rprint("[dim]Stopped watching[/]")


@app.command()
def start(
    add: Optional[int] = typer.Option(None, "--add", help="Backdate the start by this many minutes", min=0),
):
    """Start a timer for the project in the current directory."""
    try:
        _print_snapshot(_controller().start(add_minutes=add))
    except ClockhandError as e:
        _fail(e)


@app.command()
def stop():
    """Stop the running timer."""
    try:
        snapshot = _controller(with_project=False).stop()
    except ClockhandError as e:
        _fail(e)
    hours = decimal_hours_to_string(snapshot.hours or 0.0).strip()
    rprint(f"[bold green]✓[/] Stopped {snapshot.project_name} at {hours}")


@app.command()
def status():
    """Show the running timer."""
    try:
        _print_snapshot(_controller(with_project=False).status())
    except ClockhandError as e:
        _fail(e)


def _parse_day(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


@app.command()
def note(
    message: str = typer.Argument(..., help="Note text"),
    day: Optional[str] = typer.Option(None, "--day", "-d", help="Day of the timer (YYYY-MM-DD), default today"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Keep separate notes for the same day"),
):
    """Add or replace today's note on the day's timer."""
    spent_day = _parse_day(day)
    try:
        snapshot = _controller().note(message, day=spent_day, key=key)
    except (ClockhandError, ValueError) as e:
        _fail(e)
    rprint("[bold green]✓[/] Note saved")
    if snapshot.notes:
        rprint(f"[dim]{escape(snapshot.notes)}[/]")


@app.command()
def report(
    weeks: int = typer.Option(2, "--weeks", "-w", help="Number of ISO weeks to include", min=1),
):
    """Print timers for the most recent weeks."""
    try:
        entries = _controller(with_project=False).report(weeks=weeks)
    except ClockhandError as e:
        _fail(e)

    if not entries:
        rprint("[yellow]No timers found[/]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Project ID", style="dim")
    table.add_column("Project", style="white")
    table.add_column("Time", justify="right")
    table.add_column("Notes", style="dim")

    for entry in entries:
        project = entry.get("project") or {}
        table.add_row(
            entry.get("spent_date", ""),
            str(project.get("id", "")),
            strip_newlines_and_tabs(project.get("name", "")),
            decimal_hours_to_string(entry.get("hours") or 0.0),
            truncate_with_ellipsis(entry.get("notes") or "(none)", 60),
        )

    console.print(table)


@app.command("test-notification")
def test_notification():
    """Send a test desktop notification."""
    try:
        DesktopNotifier().notify(
            "Test notification from clockhand",
            f"This is a test notification at {datetime.now().astimezone().strftime('%a, %d %b %Y %H:%M:%S %z')}",
        )
    except Exception as e:
        _fail(e)
    rprint("[bold green]✓[/] Notification sent")
