"""
iCalendar (de)serialization for CalDAV payloads.
"""

import logging
from datetime import date
from datetime import datetime
from xml.etree import ElementTree

from icalendar import Calendar
from icalendar import Event

from vault_caldav_sync.models import CalendarEvent

PRODID = "-//Example Corp.//CalDAV Client//EN"
VERSION = "2.0"

_CALENDAR_DATA_TAG = "{urn:ietf:params:xml:ns:caldav}calendar-data"

_logger = logging.getLogger(__name__)


def serialize_calendar(events: list[CalendarEvent]) -> str:
    """Render events as a VCALENDAR document."""
    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", VERSION)

    for event in events:
        ev = Event()
        ev.add("uid", event.uid)
        ev.add("summary", event.summary)
        if event.description:
            ev.add("description", event.description)
        if event.location:
            ev.add("location", event.location)
        if event.created:
            ev.add("created", event.created)
        if event.stamp:
            ev.add("dtstamp", event.stamp)
        ev.add("dtstart", event.start)
        if event.end is not None:
            ev.add("dtend", event.end)
        if event.url:
            ev.add("url", event.url)
        cal.add_component(ev)

    return cal.to_ical().decode("utf-8")


def _extract_calendar_data(text: str) -> str:
    """Pull the ICS payloads out of a WebDAV multistatus body."""
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise ValueError(f"Malformed multistatus body: {e}") from e
    chunks = [el.text.strip() for el in root.iter(_CALENDAR_DATA_TAG) if el.text]
    return "\r\n".join(chunks)


def _decoded(component, name: str):
    if name not in component:
        return None
    return component.decoded(name)


def _text(component, name: str) -> str | None:
    value = component.get(name)
    return str(value) if value is not None else None


def _parse_vevent(component) -> CalendarEvent | None:
    uid = _text(component, "uid")
    start = _decoded(component, "dtstart")
    if not uid or not isinstance(start, date):
        _logger.debug("Skipping VEVENT without UID or DTSTART")
        return None

    end = _decoded(component, "dtend")
    if end is None:
        duration = _decoded(component, "duration")
        if duration is not None:
            end = start + duration

    created = _decoded(component, "created")
    stamp = _decoded(component, "dtstamp")

    return CalendarEvent(
        uid=uid,
        start=start,
        end=end,
        summary=_text(component, "summary") or "",
        description=_text(component, "description") or "",
        location=_text(component, "location"),
        url=_text(component, "url"),
        created=created if isinstance(created, datetime) else None,
        stamp=stamp if isinstance(stamp, datetime) else None,
    )


def parse_calendar(text: str) -> list[CalendarEvent]:
    """
    Parse every VEVENT of an ICS document, in document order.

    Also accepts a multistatus XML response whose ``calendar-data``
    elements carry the ICS text.  An empty multistatus yields no events.

    Raises ValueError when the text is not iCalendar data.
    """
    if text.lstrip().startswith("<"):
        text = _extract_calendar_data(text)
        if not text:
            return []

    calendars = Calendar.from_ical(text, multiple=True)

    events = []
    for cal in calendars:
        for component in cal.walk("VEVENT"):
            event = _parse_vevent(component)
            if event is not None:
                events.append(event)
    return events
