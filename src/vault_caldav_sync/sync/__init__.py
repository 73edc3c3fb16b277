"""
CalendarSynchronizer: thin orchestrator that delegates to sync submodules.
"""

import asyncio
import logging
from pathlib import Path

from vault_caldav_sync.caldav_client import CalDAVClient
from vault_caldav_sync.mapper import resolve_timezone
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import SyncConfig
from vault_caldav_sync.models import SyncStats
from vault_caldav_sync.notify import LogNotifier
from vault_caldav_sync.notify import Notifier
from vault_caldav_sync.sync.pull import import_remote_events
from vault_caldav_sync.sync.push import push_record
from vault_caldav_sync.sync.push import store_identifiers
from vault_caldav_sync.sync.push import sync_event
from vault_caldav_sync.vault import EventVault


class CalendarSynchronizer:
    """Main synchronization engine."""

    def __init__(
        self,
        config: SyncConfig,
        client: CalDAVClient,
        vault: EventVault | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config
        self.client = client
        self.vault = vault or EventVault(config.events_root)
        self.notifier = notifier or LogNotifier()
        self.logger = logging.getLogger(__name__)
        self.tz = resolve_timezone(config.timezone)

    async def sync_file(self, path: Path | None) -> bool:
        """Sync a single note with the calendar."""
        if path is None or not path.is_file():
            self.notifier.notify("No active note to synchronize")
            return False

        record = self.vault.read_event(path)
        if record is None:
            self.notifier.notify(f"{path.stem} is not a calendar event")
            return False

        if self.config.dry_run:
            self.logger.info(f"[DRY RUN] [VAULT→CALENDAR] Would PUSH: {record.summary}")
            return True

        if not await sync_event(self.client, record, self.tz):
            self.notifier.notify(f"Failed to sync {record.summary}")
            return False

        try:
            store_identifiers(self.vault, record)
        except (OSError, CalendarSyncError, ValueError) as e:
            self.logger.error(f"Pushed {record.summary} but could not update {path}: {e}")
            self.notifier.notify(f"Failed to sync {record.summary}")
            return False

        self.notifier.notify(f"Synced {record.summary}")
        return True

    async def run(self) -> SyncStats:
        """Execute a full pass: push every note, then import unknown remote events."""
        stats = SyncStats()
        paths = self.vault.list_records()
        self.logger.info(f"Pushing {len(paths)} note(s) from {self.vault.root}...")

        known_uids: set[str] = set()
        await asyncio.gather(
            *(
                push_record(
                    self.config,
                    stats,
                    self.logger,
                    self.client,
                    self.vault,
                    path,
                    known_uids,
                    self.tz,
                )
                for path in paths
            )
        )

        self.logger.info("Fetching remote calendar...")
        remote_events = await self.client.fetch_collection()
        if remote_events is None:
            self.notifier.notify("Could not fetch the calendar; no remote events imported")
            return stats

        stats.fetched = True
        import_remote_events(
            self.config,
            stats,
            self.logger,
            self.vault,
            self.notifier,
            remote_events,
            known_uids,
            self.tz,
        )
        self.notifier.notify("All events synchronized")
        return stats
