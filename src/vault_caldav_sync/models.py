"""
Pure data models. No HTTP or filesystem imports.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import time
from pathlib import Path

DEFAULT_CONFIG = Path.home() / ".config/vault-caldav-sync.conf"

# Front matter `type` value that marks a note as a calendar event.
EVENT_MARKER = "calendar-event"

# Suffix appended to freshly generated event UIDs.
DEFAULT_UID_NAMESPACE = "obsidian.md"


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""

    pass


class UnsupportedEventError(CalendarSyncError):
    """Remote event has a shape that cannot be stored as a local record."""

    pass


@dataclass
class SyncConfig:
    """Configuration for calendar sync operation."""

    vault_path: Path
    events_directory: str
    username: str
    app_password: str
    calendar_url: str
    timezone: str | None = None
    dry_run: bool = False
    verbose: bool = False

    @property
    def events_root(self) -> Path:
        return self.vault_path / self.events_directory


@dataclass
class SyncStats:
    """Statistics for a full sync pass."""

    pushed: int = 0
    failed: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    fetched: bool = False


@dataclass
class LocalEvent:
    """An event note read from the vault."""

    date: date
    summary: str
    start_time: time | None = None
    end_time: time | None = None
    description: str = ""
    location: str | None = None
    url: str | None = None
    guid: str | None = None
    path: Path | None = None


@dataclass
class CalendarEvent:
    """
    A single VEVENT.

    ``start`` and ``end`` are ``date`` values for all-day events and
    ``datetime`` values for timed events, never mixed within one event.
    """

    uid: str
    start: date | datetime
    end: date | datetime | None = None
    summary: str = ""
    description: str = ""
    location: str | None = None
    url: str | None = None
    created: datetime | None = None
    stamp: datetime | None = None

    @property
    def value_type(self) -> str:
        return "DATE-TIME" if isinstance(self.start, datetime) else "DATE"

    @property
    def all_day(self) -> bool:
        return self.value_type == "DATE"


@dataclass
class PublishResult:
    """Identifiers the server confirmed after a successful push."""

    uid: str
    url: str | None = None


@dataclass
class EventDraft:
    """A record to be created in the vault from a remote event."""

    name: str
    body: str
    properties: dict[str, str] = field(default_factory=dict)
