"""
Vault → calendar: publish notes and record the server-confirmed identifiers.
"""

from datetime import tzinfo
from pathlib import Path

from vault_caldav_sync.caldav_client import CalDAVClient
from vault_caldav_sync.mapper import to_ics_event
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import LocalEvent
from vault_caldav_sync.models import SyncConfig
from vault_caldav_sync.models import SyncStats
from vault_caldav_sync.vault import EventVault


async def sync_event(client: CalDAVClient, record: LocalEvent, tz: tzinfo | None = None) -> bool:
    """
    Publish one note and capture the identifiers the server confirmed.

    On success record.guid and record.url are updated in memory; the
    caller is responsible for writing them back to the note.  On failure
    the record is left untouched.
    """
    event = to_ics_event(record, tz)
    result = await client.publish(event)
    if result is None:
        return False

    record.guid = result.uid
    record.url = result.url
    return True


def store_identifiers(vault: EventVault, record: LocalEvent) -> None:
    """Write record.guid and record.url back into the note's front matter."""

    def _edit(metadata):
        metadata["guid"] = record.guid
        metadata["url"] = record.url

    vault.update_metadata(record.path, _edit)


async def push_record(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    client: CalDAVClient,
    vault: EventVault,
    path: Path,
    known_uids: set[str],
    tz: tzinfo | None = None,
) -> bool:
    """Push one note as part of a full pass.  Never raises for per-note failures."""
    # Read before the first await so the set sees the pre-sync guid.
    guid = vault.read_guid(path)
    if guid:
        known_uids.add(guid)

    record = vault.read_event(path)
    if record is None:
        logger.debug(f"Not an event note: {path}")
        return False

    if config.dry_run:
        logger.info(f"[DRY RUN] [VAULT→CALENDAR] Would PUSH: {record.summary}")
        stats.pushed += 1
        return True

    if not await sync_event(client, record, tz):
        logger.warning(f"Failed to sync {record.summary}")
        stats.failed += 1
        return False

    # Keeps the import phase from pulling back the event we just created
    known_uids.add(record.guid)

    try:
        store_identifiers(vault, record)
    except (OSError, CalendarSyncError, ValueError) as e:
        logger.error(f"Pushed {record.summary} but could not update {path}: {e}")
        stats.errors += 1
        return False

    stats.pushed += 1
    logger.debug(f"Pushed {record.summary} as {record.guid}")
    return True
