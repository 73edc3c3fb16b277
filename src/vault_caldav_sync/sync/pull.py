"""
Calendar → vault: create notes for remote events that have no local copy.
"""

from datetime import tzinfo

from vault_caldav_sync.mapper import from_ics_event
from vault_caldav_sync.models import CalendarEvent
from vault_caldav_sync.models import SyncConfig
from vault_caldav_sync.models import SyncStats
from vault_caldav_sync.models import UnsupportedEventError
from vault_caldav_sync.notify import Notifier
from vault_caldav_sync.vault import EventVault

MULTI_DAY_WARNING = "Multi-day event is not supported"


def import_remote_events(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    vault: EventVault,
    notifier: Notifier,
    remote_events: list[CalendarEvent],
    known_uids: set[str],
    tz: tzinfo | None = None,
) -> None:
    """Materialize every remote event whose UID is not in known_uids, in server order."""
    for event in remote_events:
        if event.uid in known_uids:
            continue

        try:
            draft = from_ics_event(event, tz)
        except UnsupportedEventError as e:
            logger.warning(str(e))
            notifier.notify(f"{MULTI_DAY_WARNING}: {event.summary}")
            stats.skipped += 1
            continue

        if config.dry_run:
            logger.info(f"[DRY RUN] [CALENDAR→VAULT] Would CREATE: {draft.name}")
            stats.imported += 1
            known_uids.add(event.uid)
            continue

        try:
            path = vault.create_record(draft)
        except OSError as e:
            logger.error(f"Failed to create note for {event.uid}: {e}")
            stats.errors += 1
            continue

        # A collection may list the same UID more than once
        known_uids.add(event.uid)
        stats.imported += 1
        logger.debug(f"Imported {event.uid} as {path}")
