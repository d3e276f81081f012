"""Directory change detection.

``ChangeDetector`` polls: it hashes every file's relative path, mtime and
size, so any add, remove or modification changes the fingerprint. Mtime is
used instead of content hashes to keep a scan cheap on large trees.

``EventChangeDetector`` gets the same answer from watchdog events instead
of a full walk.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Iterator

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "__pycache__",
        "node_modules",
        ".venv",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
    }
)


class ChangeDetector:
    """Polling fingerprint of a directory tree."""

    def __init__(self, ignore_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS):
        self.ignore_dirs = frozenset(ignore_dirs)

    def fingerprint(self, root: Path) -> str:
        digest = hashlib.sha1()
        for rel_path, mtime_ns, size in sorted(self._scan(Path(root))):
            digest.update(f"{rel_path}\0{mtime_ns}\0{size}\n".encode("utf-8", "surrogateescape"))
        return digest.hexdigest()

    def _scan(self, root: Path) -> Iterator[tuple[str, int, int]]:
        stack = [root]
        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError as e:
                # Vanished or unreadable; picked up again on the next tick.
                logger.debug("Skipping directory %s: %s", directory, e)
                continue

            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name not in self.ignore_dirs:
                            stack.append(Path(entry.path))
                        continue
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    st = entry.stat(follow_symlinks=False)
                except OSError as e:
                    logger.debug("Skipping %s: %s", entry.path, e)
                    continue

                rel_path = Path(entry.path).relative_to(root).as_posix()
                yield rel_path, st.st_mtime_ns, st.st_size

    def close(self) -> None:
        pass


class _GenerationHandler(FileSystemEventHandler):
    """Counts relevant file events under one root."""

    def __init__(self, root: Path, ignore_dirs: frozenset[str]):
        self.root = root
        self.ignore_dirs = ignore_dirs
        self.generation = 0
        self._lock = threading.Lock()

    def _ignored(self, path: str) -> bool:
        try:
            parts = Path(path).relative_to(self.root).parts
        except ValueError:
            return False
        return any(part in self.ignore_dirs for part in parts)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if all(not p or self._ignored(p) for p in paths):
            return
        with self._lock:
            self.generation += 1


class EventChangeDetector:
    """Fingerprints backed by a watchdog observer.

    A root is scheduled the first time it is fingerprinted; its fingerprint
    changes whenever a non-ignored event arrives under it.
    """

    def __init__(self, ignore_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS, observer=None):
        self.ignore_dirs = frozenset(ignore_dirs)
        self._observer = observer if observer is not None else Observer()
        self._handlers: dict[Path, _GenerationHandler] = {}
        self._lock = threading.Lock()
        self._started = False

    def _handler_for(self, root: Path) -> _GenerationHandler:
        with self._lock:
            handler = self._handlers.get(root)
            if handler is None:
                handler = _GenerationHandler(root, self.ignore_dirs)
                self._observer.schedule(handler, str(root), recursive=True)
                self._handlers[root] = handler
                if not self._started:
                    self._observer.start()
                    self._started = True
                logger.debug("Scheduled watchdog handler for %s", root)
            return handler

    def fingerprint(self, root: Path) -> str:
        root = Path(root).resolve()
        handler = self._handler_for(root)
        return f"{root}:{handler.generation}"

    def close(self) -> None:
        if self._started:
            self._observer.stop()
            self._observer.join()
            self._started = False
