"""
Data model: window observations, history entries, blocked apps, warnings.

Backend payloads are plain mappings. Each model has a from_payload() that
returns None for anything it cannot use, so callers never deal with
half-built objects.
"""

import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def _text(payload, *keys) -> str:
    """First non-None value among keys, as a string. Missing → ""."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return str(value)
    return ""


@dataclass(frozen=True)
class WindowObservation:
    title: str = ""
    exe: str = ""

    @property
    def is_valid(self) -> bool:
        # Empty is a value; only both-empty is unusable.
        return bool(self.title) or bool(self.exe)

    def is_equivalent(self, other: Optional["WindowObservation"]) -> bool:
        return other is not None and self.title == other.title and self.exe == other.exe

    @classmethod
    def from_payload(cls, payload) -> Optional["WindowObservation"]:
        if isinstance(payload, WindowObservation):
            return payload
        if not isinstance(payload, dict):
            return None
        return cls(title=_text(payload, "title", "Title"), exe=_text(payload, "exe", "Exe"))


_sequence = itertools.count(1)


def next_sequence_id() -> int:
    return next(_sequence)


@dataclass(frozen=True)
class HistoryEntry:
    observation: WindowObservation
    created_at: float = field(default_factory=time.time)
    sequence_id: int = field(default_factory=next_sequence_id)

    @property
    def time_text(self) -> str:
        return datetime.fromtimestamp(self.created_at).strftime("%H:%M:%S")

    @property
    def date_text(self) -> str:
        return datetime.fromtimestamp(self.created_at).strftime("%Y-%m-%d")

    @property
    def terminal_line(self) -> str:
        obs = self.observation
        return f"Active Window Changed: [{obs.exe or 'unknown'}] {obs.title or 'Unknown'}"


@dataclass(frozen=True)
class BlockedApp:
    executable_name: str
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.executable_name

    @classmethod
    def from_payload(cls, payload) -> Optional["BlockedApp"]:
        if isinstance(payload, BlockedApp):
            return payload
        if not isinstance(payload, dict):
            return None
        exe = _text(payload, "executableName", "ExecutableName")
        if not exe:
            return None
        return cls(executable_name=exe, display_name=_text(payload, "displayName", "DisplayName"))


def parse_blocklist(payload) -> list:
    """Backend list → BlockedApps, first entry wins per executable name."""
    if not isinstance(payload, (list, tuple)):
        return []
    apps = []
    seen = set()
    for item in payload:
        app = BlockedApp.from_payload(item)
        if app is None or app.executable_name in seen:
            continue
        seen.add(app.executable_name)
        apps.append(app)
    return apps


@dataclass(frozen=True)
class WarningEvent:
    executable_name: str
    display_name: str = ""
    title: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.executable_name

    @classmethod
    def from_payload(cls, payload) -> Optional["WarningEvent"]:
        if isinstance(payload, WarningEvent):
            return payload
        if not isinstance(payload, dict):
            return None
        exe = _text(payload, "executableName", "ExecutableName")
        if not exe:
            return None
        title = _text(payload, "title", "Title")
        return cls(
            executable_name=exe,
            display_name=_text(payload, "displayName", "DisplayName"),
            title=title or None,
        )


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one Mutation Coordinator operation."""
    kind: str
    ok: bool
    error: Optional[Exception] = None
    refresh_error: Optional[Exception] = None
