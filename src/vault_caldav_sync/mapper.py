"""
Conversion between vault event notes and ICS events.
"""

import re
import uuid
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from datetime import tzinfo
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from vault_caldav_sync.models import DEFAULT_UID_NAMESPACE
from vault_caldav_sync.models import EVENT_MARKER
from vault_caldav_sync.models import CalendarEvent
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import EventDraft
from vault_caldav_sync.models import LocalEvent
from vault_caldav_sync.models import UnsupportedEventError

# Characters that cannot appear in a note name.
_PATH_HOSTILE_RE = re.compile(r"[/\\:]")

_UNTITLED = "Untitled event"


def new_identifier(namespace: str = DEFAULT_UID_NAMESPACE) -> str:
    """Return a fresh event UID of the form ``<uuid4>@<namespace>``."""
    return f"{uuid.uuid4()}@{namespace}"


def sanitize_name(summary: str | None) -> str:
    """Turn an event summary into a usable note name."""
    name = _PATH_HOSTILE_RE.sub("_", summary or "").strip()
    return name or _UNTITLED


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return the ZoneInfo for name, or None to use the system local zone."""
    if not name:
        return None
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise CalendarSyncError(f"Unknown timezone: {name!r}") from e


def _localize(naive: datetime, tz: tzinfo | None) -> datetime:
    # astimezone() on a naive value treats it as system local time
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def _to_local(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        return value  # floating time, already local
    if tz is None:
        return value.astimezone()
    return value.astimezone(tz)


def to_ics_event(
    record: LocalEvent,
    tz: tzinfo | None = None,
    now: datetime | None = None,
    namespace: str = DEFAULT_UID_NAMESPACE,
) -> CalendarEvent:
    """
    Build the ICS event for a vault note.

    A note without a guid gets a newly generated UID; the note itself is
    not touched, the caller stores the UID once the push is confirmed.

    Timed events are interpreted in ``tz`` (system local zone when None)
    and emitted in UTC; without an end time they last one hour.  Notes
    without a start time become all-day events covering exactly one day.
    """
    now = now or datetime.now(timezone.utc)
    uid = record.guid or new_identifier(namespace)

    if record.start_time is not None:
        start = _localize(datetime.combine(record.date, record.start_time), tz)
        start = start.astimezone(timezone.utc)
        if record.end_time is not None:
            end = _localize(datetime.combine(record.date, record.end_time), tz)
            end = end.astimezone(timezone.utc)
        else:
            end = start + timedelta(hours=1)
    else:
        start = record.date
        end = record.date + timedelta(days=1)

    return CalendarEvent(
        uid=uid,
        summary=record.summary,
        description=record.description,
        location=record.location,
        created=now,
        stamp=now,
        start=start,
        end=end,
    )


def from_ics_event(event: CalendarEvent, tz: tzinfo | None = None) -> EventDraft:
    """
    Build the note draft for a remote event that has no local copy.

    Raises UnsupportedEventError for timed events that end on another
    calendar day than they start.  All-day events are always stored as a
    single day regardless of their remote span.
    """
    start = event.start
    end = event.end
    start_time = end_time = None

    if isinstance(start, datetime):
        start = _to_local(start, tz)
        if isinstance(end, datetime):
            end = _to_local(end, tz)
            if end.date() != start.date():
                raise UnsupportedEventError(
                    f"Multi-day event is not supported: {event.summary!r} ({event.uid})"
                )
            end_time = end.strftime("%H:%M")
        start_time = start.strftime("%H:%M")
        day: date = start.date()
    else:
        day = start

    properties = {
        "type": EVENT_MARKER,
        "date": day.strftime("%Y-%m-%d"),
        "guid": event.uid,
        "url": event.url,
        "location": event.location,
        "start_time": start_time,
        "end_time": end_time,
    }

    return EventDraft(
        name=sanitize_name(event.summary),
        body=event.description or "",
        properties={k: v for k, v in properties.items() if v is not None},
    )
