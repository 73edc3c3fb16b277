"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging
from urllib.parse import urlparse

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from vault_caldav_sync.mapper import resolve_timezone
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import SyncConfig

logger = logging.getLogger(__name__)


def run_preflight_checks(cfg: SyncConfig, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    issues: list[tuple[str, str, str]] = []  # (label, detail, hint)

    # 1. Calendar URL
    parsed = urlparse(cfg.calendar_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        logger.error("Calendar URL is not an http(s) URL: %r", cfg.calendar_url)
        issues.append(
            (
                "Calendar URL",
                f"Not an http(s) URL: {cfg.calendar_url or '(empty)'}",
                "Run: vault-caldav-sync config set calendar_url https://...",
            )
        )

    # 2. Credentials
    for value, key in ((cfg.username, "username"), (cfg.app_password, "app_password")):
        if not value:
            logger.error("Missing setting: %s", key)
            issues.append(
                (
                    "Credentials",
                    f"{key} is not set",
                    f"Run: vault-caldav-sync config set {key} ...",
                )
            )

    # 3. Events directory
    if not cfg.events_root.is_dir():
        logger.error("Events directory not found: %s", cfg.events_root)
        issues.append(
            (
                "Events directory",
                f"Not a directory: {cfg.events_root}",
                "Check vault_path and events_directory",
            )
        )

    # 4. Timezone
    try:
        resolve_timezone(cfg.timezone)
    except CalendarSyncError as e:
        logger.error("%s", e)
        issues.append(("Timezone", str(e), "Use an IANA name such as Europe/Moscow"))

    if issues:
        _print_issues(issues, console)
        return False

    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
