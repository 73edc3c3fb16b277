"""
Persisted settings: loaded once at startup, saved on explicit edit.
"""

from configparser import ConfigParser
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import fields
from pathlib import Path

from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import SyncConfig

SECTION = "caldav-sync"


@dataclass
class Settings:
    """User settings as stored in the config file."""

    vault_path: str = "."
    events_directory: str = ""
    username: str = ""
    app_password: str = ""
    calendar_url: str = ""
    timezone: str = ""

    @classmethod
    def keys(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def set(self, key: str, value: str) -> None:
        if key not in self.keys():
            raise CalendarSyncError(
                f"Unknown setting {key!r}; expected one of: {', '.join(self.keys())}"
            )
        setattr(self, key, value)

    def to_sync_config(self, dry_run: bool = False, verbose: bool = False) -> SyncConfig:
        return SyncConfig(
            vault_path=Path(self.vault_path).expanduser(),
            events_directory=self.events_directory.strip("/"),
            username=self.username,
            app_password=self.app_password,
            calendar_url=self.calendar_url,
            timezone=self.timezone or None,
            dry_run=dry_run,
            verbose=verbose,
        )


def load_settings(config_path: Path) -> Settings:
    """Read settings from config_path; a missing file yields the defaults."""
    settings = Settings()
    if not config_path.exists():
        return settings
    parser = ConfigParser(interpolation=None)
    parser.read(config_path)
    if SECTION not in parser:
        return settings
    for key, value in parser[SECTION].items():
        if key in Settings.keys():
            setattr(settings, key, value)
    return settings


def save_settings(config_path: Path, settings: Settings) -> None:
    """Write settings to config_path, readable by the owner only."""
    parser = ConfigParser(interpolation=None)
    parser[SECTION] = asdict(settings)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as fh:
        parser.write(fh)
    config_path.chmod(0o600)
