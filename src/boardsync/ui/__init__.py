"""Textual widgets for boardsync."""

from boardsync.ui.sync_widget import SyncWidget, status_text

__all__ = ["SyncWidget", "status_text"]
