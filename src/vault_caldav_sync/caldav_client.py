"""
Minimal async CalDAV transport: push single events, read the collection.
"""

import logging
from urllib.parse import quote

import httpx

from vault_caldav_sync.ics import parse_calendar
from vault_caldav_sync.ics import serialize_calendar
from vault_caldav_sync.models import CalendarEvent
from vault_caldav_sync.models import PublishResult
from vault_caldav_sync.models import SyncConfig

ICS_CONTENT_TYPE = "text/calendar"


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


class CalDAVClient:
    """
    Wrapper for the CalDAV requests used by the sync engine.

    Every request carries HTTP Basic credentials; no session state is kept
    between requests.  Failures never raise: publish() returns None and
    fetch_collection() returns None, after logging the cause.
    """

    def __init__(self, config: SyncConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._auth = httpx.BasicAuth(config.username, config.app_password)
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self):
        self._http = httpx.AsyncClient(auth=self._auth, transport=self._transport)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def collection_url(self) -> str:
        url = self.config.calendar_url
        return url if url.endswith("/") else url + "/"

    def event_url(self, uid: str) -> str:
        return self.collection_url + quote(uid, safe="@")

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            # Lazily opened for callers that skip the context manager
            self._http = httpx.AsyncClient(auth=self._auth, transport=self._transport)
        return self._http

    async def publish(self, event: CalendarEvent) -> PublishResult | None:
        """
        Store one event on the server and read it back.

        Returns the server-confirmed identifiers, or None when the PUT or
        the follow-up PROPFIND fails.  A PUT the server accepted but whose
        read-back fails is still reported as a failure.
        """
        url = self.event_url(event.uid)
        payload = serialize_calendar([event])

        try:
            put = await self.http.put(
                url,
                content=payload.encode("utf-8"),
                headers={"Content-Type": ICS_CONTENT_TYPE},
            )
            if not _is_success(put):
                self.logger.error(f"PUT {url} failed with status {put.status_code}")
                return None

            check = await self.http.request("PROPFIND", f"{url}.ics")
            if not _is_success(check):
                self.logger.error(
                    f"Event {event.uid} was stored but read-back failed "
                    f"with status {check.status_code}"
                )
                return None
        except httpx.HTTPError as e:
            self.logger.error(f"Sync request for {event.uid} failed: {e}")
            return None

        try:
            confirmed = parse_calendar(check.text)
        except ValueError as e:
            self.logger.debug(f"Read-back body for {event.uid} is not iCalendar data: {e}")
            confirmed = []

        if not confirmed:
            return PublishResult(uid=event.uid)
        return PublishResult(uid=confirmed[0].uid or event.uid, url=confirmed[0].url)

    async def fetch_collection(self) -> list[CalendarEvent] | None:
        """
        Fetch every event of the calendar collection.

        Returns None (not an empty list) when the collection could not be
        read, so callers can tell "nothing observed" from "no events".
        """
        url = self.collection_url
        try:
            response = await self.http.request("PROPFIND", url)
        except httpx.HTTPError as e:
            self.logger.error(f"Request error fetching {url}: {e}")
            return None

        if not _is_success(response):
            self.logger.error(f"Request error fetching {url}: status {response.status_code}")
            return None

        try:
            events = parse_calendar(response.text)
        except ValueError as e:
            self.logger.error(f"Could not parse calendar collection from {url}: {e}")
            return None

        self.logger.debug(f"Fetched {len(events)} remote event(s)")
        return events
