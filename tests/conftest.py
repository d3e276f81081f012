"""Shared test fixtures for clockhand tests."""

import json
from pathlib import Path

import httpx
import pytest

from clockhand.config import AccessToken, ProjectWatch
from clockhand.errors import ServiceUnavailable
from clockhand.harvest import HarvestClient
from clockhand.watch import TimerSnapshot


class RecordingNotifier:
    """Notifier that remembers what it was asked to show."""

    def __init__(self, fail: bool = False):
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))
        if self.fail:
            raise RuntimeError("notification daemon is gone")


class ScriptedOracle:
    """Oracle whose answer the test sets; ``down`` makes it raise."""

    def __init__(self, snapshot: TimerSnapshot = None):
        self.snapshot = snapshot or TimerSnapshot.idle()
        self.down = False
        self.calls = 0

    def current(self) -> TimerSnapshot:
        self.calls += 1
        if self.down:
            raise ServiceUnavailable("Harvest timed out")
        return self.snapshot


class FakeDetector:
    """Detector whose fingerprints are set by the test, keyed by root."""

    def __init__(self):
        self.fingerprints: dict[Path, str] = {}
        self.closed = False

    def fingerprint(self, root: Path) -> str:
        return self.fingerprints.get(root, "empty")

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_notifier():
    return RecordingNotifier


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector()


@pytest.fixture
def make_project(tmp_path):
    """Create a project directory with a clockhand.json and return its ProjectWatch."""

    def _make(name: str = "acme", project_id: int = 101, task_id=None) -> ProjectWatch:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        config = {"harvest_project_id": project_id, "name": name}
        if task_id is not None:
            config["harvest_task_id"] = task_id
        config_path = root / "clockhand.json"
        config_path.write_text(json.dumps(config))
        return ProjectWatch(
            root=root.resolve(),
            project_id=project_id,
            name=name,
            config_path=config_path,
            task_id=task_id,
        )

    return _make


class FakeHarvest:
    """In-memory stand-in for the Harvest API behind httpx.MockTransport."""

    def __init__(self):
        self.entries: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.task_assignments = {101: [{"task": {"id": 7, "name": "Development"}}]}
        self.fail_with = None
        self._next_id = 1000

    def add_entry(self, **fields) -> dict:
        self._next_id += 1
        entry = {
            "id": self._next_id,
            "spent_date": "2026-10-17",
            "hours": 0.0,
            "notes": None,
            "is_running": False,
            "updated_at": f"2026-10-17T10:00:{self._next_id % 60:02d}Z",
            "project": {"id": 101, "name": "acme"},
            "task": {"id": 7, "name": "Development"},
        }
        entry.update(fields)
        self.entries.append(entry)
        return entry

    def _find(self, entry_id: int) -> dict:
        for entry in self.entries:
            if entry["id"] == entry_id:
                return entry
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            if isinstance(self.fail_with, Exception):
                raise self.fail_with
            return httpx.Response(self.fail_with, text="nope")

        path = request.url.path.removeprefix("/v2")
        params = request.url.params
        parts = path.strip("/").split("/")

        if path == "/users/me":
            return httpx.Response(200, json={"id": 42, "first_name": "Jane"})

        if path == "/time_entries" and request.method == "GET":
            entries = list(self.entries)
            if params.get("is_running") == "true":
                entries = [e for e in entries if e["is_running"]]
            if "project_id" in params:
                entries = [e for e in entries if e["project"]["id"] == int(params["project_id"])]
            if "from" in params:
                entries = [e for e in entries if e["spent_date"] >= params["from"]]
            if "to" in params:
                entries = [e for e in entries if e["spent_date"] <= params["to"]]
            per_page = int(params.get("per_page", 100))
            return httpx.Response(200, json={"time_entries": entries[:per_page]})

        if path == "/time_entries" and request.method == "POST":
            payload = json.loads(request.content)
            for entry in self.entries:
                entry["is_running"] = False
            entry = self.add_entry(
                spent_date=payload["spent_date"],
                notes=payload.get("notes"),
                is_running=True,
                started_time=payload.get("started_time"),
                project={"id": payload["project_id"], "name": "acme"},
                task={"id": payload["task_id"], "name": "Development"},
            )
            return httpx.Response(201, json=entry)

        if parts[0] == "projects" and parts[-1] == "task_assignments":
            return httpx.Response(200, json={"task_assignments": self.task_assignments.get(int(parts[1]), [])})

        if parts[0] == "time_entries" and request.method == "PATCH":
            entry = self._find(int(parts[1]))
            if entry is None:
                return httpx.Response(404, json={"error": "not_found"})
            if len(parts) == 3 and parts[2] == "stop":
                entry["is_running"] = False
            elif len(parts) == 3 and parts[2] == "restart":
                for other in self.entries:
                    other["is_running"] = False
                entry["is_running"] = True
            else:
                entry.update(json.loads(request.content))
            return httpx.Response(200, json=entry)

        return httpx.Response(404, json={"error": "not_found"})


@pytest.fixture
def harvest() -> FakeHarvest:
    return FakeHarvest()


@pytest.fixture
def harvest_client(harvest) -> HarvestClient:
    client = HarvestClient(
        AccessToken(token="secret", account_id=123),
        transport=httpx.MockTransport(harvest.handler),
    )
    yield client
    client.close()
