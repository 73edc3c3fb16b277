"""
Unit tests for iCalendar (de)serialization in vault_caldav_sync.ics.
"""

from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from tests.conftest import make_vevent
from tests.conftest import wrap_vcalendar
from vault_caldav_sync.ics import PRODID
from vault_caldav_sync.ics import parse_calendar
from vault_caldav_sync.ics import serialize_calendar
from vault_caldav_sync.models import CalendarEvent

UTC = timezone.utc
NOW = datetime(2024, 4, 30, 12, 0, tzinfo=UTC)


class TestSerialize:
    def test_header_and_timed_event(self):
        event = CalendarEvent(
            uid="abc@obsidian.md",
            summary="Standup",
            description="Daily",
            location="Room 4",
            created=NOW,
            stamp=NOW,
            start=datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
            end=datetime(2024, 5, 1, 11, 0, tzinfo=UTC),
        )
        text = serialize_calendar([event])

        assert text.startswith("BEGIN:VCALENDAR")
        assert f"PRODID:{PRODID}" in text
        assert "VERSION:2.0" in text
        assert "UID:abc@obsidian.md" in text
        assert "DTSTART:20240501T100000Z" in text
        assert "DTEND:20240501T110000Z" in text
        assert "CREATED:20240430T120000Z" in text
        assert "DTSTAMP:20240430T120000Z" in text
        assert text.count("BEGIN:VEVENT") == 1

    def test_all_day_uses_date_values(self):
        event = CalendarEvent(
            uid="d@x", summary="Holiday", start=date(2024, 5, 1), end=date(2024, 5, 2)
        )
        text = serialize_calendar([event])

        assert "DTSTART;VALUE=DATE:20240501" in text
        assert "DTEND;VALUE=DATE:20240502" in text

    def test_serialized_event_parses_back(self):
        event = CalendarEvent(
            uid="rt@x",
            summary="Review, part 1; draft",
            description="Line one\nLine two",
            location="HQ",
            start=datetime(2024, 5, 1, 10, 0, tzinfo=UTC),
            end=datetime(2024, 5, 1, 11, 0, tzinfo=UTC),
        )
        [parsed] = parse_calendar(serialize_calendar([event]))

        assert parsed.uid == event.uid
        assert parsed.summary == event.summary
        assert parsed.description == event.description
        assert parsed.location == event.location
        assert parsed.start == event.start
        assert parsed.end == event.end


class TestParse:
    def test_events_in_document_order(self):
        text = wrap_vcalendar(
            make_vevent("b@x", "Second"),
            make_vevent("a@x", "First"),
        )
        events = parse_calendar(text)
        assert [e.uid for e in events] == ["b@x", "a@x"]

    def test_value_types(self):
        text = wrap_vcalendar(
            make_vevent("t@x"),
            make_vevent(
                "d@x",
                dtstart="DTSTART;VALUE=DATE:20240501",
                dtend="DTEND;VALUE=DATE:20240503",
            ),
        )
        timed, all_day = parse_calendar(text)

        assert timed.value_type == "DATE-TIME"
        assert timed.start == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        assert all_day.value_type == "DATE"
        assert all_day.end == date(2024, 5, 3)

    def test_url_and_optional_fields(self):
        text = wrap_vcalendar(make_vevent("u@x", extra_lines=("URL:https://cal.example/abc",)))
        [event] = parse_calendar(text)

        assert event.url == "https://cal.example/abc"
        assert event.location is None
        assert event.description == ""

    def test_duration_sets_end(self):
        text = wrap_vcalendar(make_vevent("dur@x", dtend=None, extra_lines=("DURATION:PT45M",)))
        [event] = parse_calendar(text)
        assert event.end - event.start == timedelta(minutes=45)

    def test_missing_end(self):
        [event] = parse_calendar(wrap_vcalendar(make_vevent("open@x", dtend=None)))
        assert event.end is None

    def test_multistatus_body(self):
        body = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<d:multistatus xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav">'
            "<d:response><d:propstat><d:prop><c:calendar-data>"
            + wrap_vcalendar(make_vevent("m1@x", "One"))
            + "</c:calendar-data></d:prop></d:propstat></d:response>"
            "<d:response><d:propstat><d:prop><c:calendar-data>"
            + wrap_vcalendar(make_vevent("m2@x", "Two"))
            + "</c:calendar-data></d:prop></d:propstat></d:response>"
            "</d:multistatus>"
        )
        assert [e.uid for e in parse_calendar(body)] == ["m1@x", "m2@x"]

    def test_multistatus_without_calendar_data(self):
        body = '<d:multistatus xmlns:d="DAV:"><d:response/></d:multistatus>'
        assert parse_calendar(body) == []

    def test_malformed_xml_raises(self):
        with pytest.raises(ValueError):
            parse_calendar("<d:multistatus xmlns:d='DAV:'>")
