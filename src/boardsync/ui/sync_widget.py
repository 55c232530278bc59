"""Sync status indicator widget for a board header."""

from __future__ import annotations

import time

from rich.text import Text
from textual.widgets import Static

from boardsync.sync.protocol import SyncSnapshot
from boardsync.sync.queue import SyncQueue

ICON_SYNC_IDLE = "✓"
ICON_SYNC_ACTIVE = "⟳"
ICON_SYNC_PENDING = "…"
ICON_SYNC_OFFLINE = "⏸"


def _ago(seconds: float) -> str:
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    return f"{int(seconds // 3600)}h ago"


def _current_icon(snapshot: SyncSnapshot) -> tuple[str, str]:
    """Return (icon, style) for a queue snapshot."""
    if not snapshot.online:
        return ICON_SYNC_OFFLINE, "yellow"
    if snapshot.is_processing:
        return ICON_SYNC_ACTIVE, "cyan"
    if snapshot.queue_length:
        return ICON_SYNC_PENDING, "yellow"
    return ICON_SYNC_IDLE, "green"


def status_text(snapshot: SyncSnapshot, now: float | None = None) -> Text:
    """Render a snapshot as one line of styled text."""
    icon, style = _current_icon(snapshot)
    text = Text(f"{icon} ", style=style)
    if not snapshot.online:
        text.append("offline", style="bold yellow")
    elif snapshot.is_processing:
        text.append("syncing", style="cyan")
    else:
        text.append("synced" if not snapshot.queue_length else "waiting")
    if snapshot.queue_length:
        text.append(f" · {snapshot.queue_length} pending", style="yellow")
    if snapshot.total_failed:
        text.append(f" · {snapshot.total_failed} failed", style="bold red")
    if snapshot.last_sync is not None:
        now = time.time() if now is None else now
        text.append(f" · {_ago(max(now - snapshot.last_sync, 0))}", style="dim")
    return text


class SyncWidget(Static):
    """Shows the sync queue status. Click to retry immediately."""

    DEFAULT_CSS = """
    SyncWidget {
        width: auto;
        height: 1;
        padding: 0 1;
    }
    """

    def __init__(self, queue: SyncQueue, **kwargs) -> None:
        super().__init__(status_text(queue.status), **kwargs)
        self.queue = queue
        self._unwatch = None

    def on_mount(self) -> None:
        self._unwatch = self.queue.watch(self._on_status)
        self.update(status_text(self.queue.status))

    def on_unmount(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None

    def _on_status(self, snapshot: SyncSnapshot) -> None:
        self.update(status_text(snapshot))

    def on_click(self, event) -> None:
        event.stop()
        if self.queue.started:
            self.queue.force_sync()
