"""Upserting clockhand notes into a Harvest time entry's description.

Each note is one line tagged with the day it belongs to and an optional key::

    [2026-10-17] reviewed the staging deploy
    [2026-10-17 standup] talked through the migration plan

A note for the same ``(day, key)`` replaces the tagged line; anything else
is appended on its own line. Lines without a tag are left alone, and
trailing newlines stay at the end of the description.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

MARKER_RE = re.compile(r"^\[(\d{4}-\d{2}-\d{2})(?: ([^\]\n]+))?\] ?(.*)$")


@dataclass(frozen=True)
class NoteSegment:
    """One line of a description."""

    raw: str
    day: Optional[date] = None
    key: Optional[str] = None
    text: str = ""

    @property
    def is_note(self) -> bool:
        return self.day is not None

    @classmethod
    def parse(cls, line: str) -> "NoteSegment":
        match = MARKER_RE.match(line)
        if not match:
            return cls(raw=line, text=line)
        try:
            day = date.fromisoformat(match.group(1))
        except ValueError:
            return cls(raw=line, text=line)
        return cls(raw=line, day=day, key=match.group(2), text=match.group(3))

    @classmethod
    def note(cls, day: date, message: str, key: Optional[str] = None) -> "NoteSegment":
        tag = day.isoformat() if key is None else f"{day.isoformat()} {key}"
        return cls(raw=f"[{tag}] {message}", day=day, key=key, text=message)


def normalize_message(message: str) -> str:
    """Collapse a message onto one line."""
    text = " ".join(message.split())
    if not text:
        raise ValueError("note message is empty")
    return text


def normalize_key(key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    key = " ".join(key.split())
    if not key:
        return None
    if "]" in key:
        raise ValueError("note key can't contain ']'")
    return key


@dataclass
class DayDescription:
    """A time entry description split into lines, read for one day."""

    day: date
    segments: list[NoteSegment] = field(default_factory=list)
    trailer: str = ""

    @classmethod
    def parse(cls, text: Optional[str], day: date) -> "DayDescription":
        text = text or ""
        body = text.rstrip("\n")
        trailer = text[len(body):]
        if not body:
            return cls(day=day, trailer=trailer)
        return cls(day=day, segments=[NoteSegment.parse(line) for line in body.split("\n")], trailer=trailer)

    def _matches(self, segment: NoteSegment, key: Optional[str]) -> bool:
        return segment.day == self.day and segment.key == key

    def note_for(self, key: Optional[str] = None) -> Optional[str]:
        key = normalize_key(key)
        for segment in self.segments:
            if self._matches(segment, key):
                return segment.text
        return None

    def upsert(self, message: str, key: Optional[str] = None) -> "DayDescription":
        key = normalize_key(key)
        new_segment = NoteSegment.note(self.day, normalize_message(message), key)

        segments: list[NoteSegment] = []
        replaced = False
        for segment in self.segments:
            if self._matches(segment, key):
                if not replaced:
                    segments.append(new_segment)
                    replaced = True
                # Later copies of the same tag are dropped.
                continue
            segments.append(segment)

        if not replaced:
            segments.append(new_segment)
        return DayDescription(day=self.day, segments=segments, trailer=self.trailer)

    def render(self) -> str:
        return "\n".join(segment.raw for segment in self.segments) + self.trailer


def merge(existing: Optional[str], day: date, message: str, key: Optional[str] = None) -> str:
    """Return ``existing`` with the note for ``(day, key)`` set to ``message``."""
    return DayDescription.parse(existing, day).upsert(message, key).render()
