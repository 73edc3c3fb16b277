"""
Shared pytest fixtures, iCal helpers and vault helpers.
"""

import json
import logging
from pathlib import Path

import pytest

from tests.fake_server import COLLECTION_URL
from tests.fake_server import FakeCalDAVServer
from vault_caldav_sync.caldav_client import CalDAVClient
from vault_caldav_sync.models import SyncConfig
from vault_caldav_sync.models import SyncStats

EVENTS_DIR = "Calendar/Events"


def make_vevent(
    uid: str,
    summary: str = "Test Event",
    dtstart: str = "DTSTART:20240501T100000Z",
    dtend: str | None = "DTEND:20240501T110000Z",
    extra_lines: tuple = (),
) -> str:
    """Return a minimal, valid VEVENT iCal string (no VCALENDAR wrapper)."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"SUMMARY:{summary}",
        dtstart,
    ]
    if dtend:
        lines.append(dtend)
    lines.append("DTSTAMP:20240424T000000Z")
    lines.extend(extra_lines)
    lines.append("END:VEVENT")
    return "\r\n".join(lines) + "\r\n"


def wrap_vcalendar(*vevents: str) -> str:
    """Wrap VEVENT strings in a minimal VCALENDAR."""
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//TestSuite//EN\r\n" + "".join(vevents) + "END:VCALENDAR\r\n"
    )


def write_note(root: Path, name: str, body: str = "", **props) -> Path:
    """Create a note with JSON-valued front matter under root."""
    root.mkdir(parents=True, exist_ok=True)
    lines = ["---"] + [f"{k}: {json.dumps(v)}" for k, v in props.items()] + ["---", body]
    path = root / f"{name}.md"
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


class RecordingNotifier:
    """Notifier that keeps every message for later assertions."""

    def __init__(self):
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def sync_config(tmp_path):
    config = SyncConfig(
        vault_path=tmp_path / "vault",
        events_directory=EVENTS_DIR,
        username="user@example.com",
        app_password="app-secret",
        calendar_url=COLLECTION_URL,
        timezone="UTC",
    )
    config.events_root.mkdir(parents=True)
    return config


@pytest.fixture
def events_root(sync_config):
    return sync_config.events_root


@pytest.fixture
def fake_server():
    return FakeCalDAVServer()


@pytest.fixture
def caldav_client(sync_config, fake_server):
    return CalDAVClient(sync_config, transport=fake_server.transport())


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")


@pytest.fixture
def sync_stats():
    return SyncStats()
