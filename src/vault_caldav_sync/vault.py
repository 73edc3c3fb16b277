"""
Markdown note storage for event records.

A record is a ``.md`` file whose front matter block (between ``---``
lines) holds the event metadata; everything after it is the description.
"""

import json
import logging
import os
import re
import tempfile
from datetime import date
from datetime import time
from pathlib import Path
from typing import Any
from typing import Callable

import yaml

from vault_caldav_sync.models import EVENT_MARKER
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import EventDraft
from vault_caldav_sync.models import LocalEvent

FRONTMATTER_DELIMITER = "---"

# Clock times such as 10:00 would otherwise resolve to base-60 integers.
_CLOCK_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(?::\d{2})?$")
_STR_TAG = "tag:yaml.org,2002:str"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates and clock times as plain strings."""


def _build_resolvers() -> dict:
    resolvers = {}
    for first, entries in yaml.SafeLoader.yaml_implicit_resolvers.items():
        kept = [(tag, regexp) for tag, regexp in entries if tag != _TIMESTAMP_TAG]
        if first is not None and first in "0123456789":
            kept.insert(0, (_STR_TAG, _CLOCK_TIME_RE))
        resolvers[first] = kept
    return resolvers


_FrontmatterLoader.yaml_implicit_resolvers = _build_resolvers()


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """
    Split note text into (metadata, body).

    Notes without a front matter block return an empty dict and the whole
    text as body.  A single blank line after the block is not part of the
    body.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONTMATTER_DELIMITER:
        return {}, content

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n") == FRONTMATTER_DELIMITER:
            raw = "".join(lines[1:idx])
            body = "".join(lines[idx + 1 :])
            break
    else:
        return {}, content

    try:
        metadata = yaml.load(raw, Loader=_FrontmatterLoader) or {}
    except yaml.YAMLError as e:
        raise CalendarSyncError(f"Invalid front matter: {e}") from e
    if not isinstance(metadata, dict):
        raise CalendarSyncError("Front matter is not a key/value map")

    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return metadata, body


def render_note(metadata: dict[str, Any], body: str) -> str:
    """Serialize metadata as ``key: <JSON value>`` lines followed by the body."""
    lines = [FRONTMATTER_DELIMITER]
    for key, value in metadata.items():
        if value is None:
            continue
        lines.append(f"{key}: {json.dumps(value, ensure_ascii=False, default=str)}")
    lines.append(FRONTMATTER_DELIMITER)
    return "\n".join(lines) + "\n\n" + body


def _parse_time(value: str) -> time:
    hour, _, rest = value.partition(":")
    return time.fromisoformat(f"{int(hour):02d}:{rest}")


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def event_from_note(path: Path, content: str) -> LocalEvent | None:
    """
    Build a LocalEvent from note text, or None when the note is not an event.

    Raises ValueError for malformed dates or times.
    """
    metadata, body = split_frontmatter(content)
    if metadata.get("type") != EVENT_MARKER or not metadata.get("date"):
        return None

    start_time = _optional_str(metadata.get("start_time"))
    end_time = _optional_str(metadata.get("end_time"))

    return LocalEvent(
        date=date.fromisoformat(str(metadata["date"])),
        start_time=_parse_time(start_time) if start_time else None,
        end_time=_parse_time(end_time) if end_time else None,
        summary=path.stem,
        description=body,
        location=_optional_str(metadata.get("location")),
        url=_optional_str(metadata.get("url")),
        guid=_optional_str(metadata.get("guid")),
        path=path,
    )


class EventVault:
    """Event notes stored under one directory of a vault."""

    def __init__(self, root: Path):
        self.root = root
        self.logger = logging.getLogger(__name__)

    def list_records(self) -> list[Path]:
        """Return every note under the events directory, sorted by path."""
        if not self.root.is_dir():
            raise CalendarSyncError(f"Events directory not found: {self.root}")
        return sorted(p for p in self.root.rglob("*.md") if p.is_file())

    def read_metadata(self, path: Path) -> dict[str, Any]:
        metadata, _ = split_frontmatter(path.read_text(encoding="utf-8"))
        return metadata

    def read_guid(self, path: Path) -> str | None:
        """Return the guid a note currently carries, if any."""
        try:
            return _optional_str(self.read_metadata(path).get("guid"))
        except (OSError, CalendarSyncError, ValueError) as e:
            self.logger.warning(f"Cannot read {path}: {e}")
            return None

    def read_event(self, path: Path) -> LocalEvent | None:
        """Return the note as a LocalEvent, or None if it is not a valid event."""
        try:
            content = path.read_text(encoding="utf-8")
            return event_from_note(path, content)
        except (OSError, CalendarSyncError, ValueError) as e:
            self.logger.warning(f"Skipping {path}: {e}")
            return None

    def update_metadata(self, path: Path, edit: Callable[[dict[str, Any]], None]) -> None:
        """Apply edit to the note's metadata and rewrite the note in one step."""
        metadata, body = split_frontmatter(path.read_text(encoding="utf-8"))
        edit(metadata)
        self._write_atomic(path, render_note(metadata, body))

    def create_record(self, draft: EventDraft) -> Path:
        """Create a new note for draft, adding a numeric suffix on name clashes."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / f"{draft.name}.md"
        counter = 1
        while path.exists():
            path = self.root / f"{draft.name} {counter}.md"
            counter += 1

        path.write_text(render_note(draft.properties, draft.body), encoding="utf-8")
        self.logger.debug(f"Created note {path}")
        return path

    @staticmethod
    def _write_atomic(path: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
