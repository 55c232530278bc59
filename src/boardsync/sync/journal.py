"""YAML journal that keeps pending queue items across sessions."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import yaml

from boardsync.sync.protocol import SyncQueueItem


class QueueJournal:
    """Stores the pending queue as a YAML list.

    Writes go through a temp file and os.replace so a crash mid-write
    leaves the previous journal intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[SyncQueueItem]:
        """Read pending items, or [] if the journal doesn't exist."""
        if not self.path.exists():
            return []
        data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or []
        if not isinstance(data, list):
            raise ValueError(f"Malformed queue journal: {self.path}")
        return [SyncQueueItem.from_dict(entry) for entry in data]

    def save(self, items: list[SyncQueueItem]) -> None:
        """Replace the journal with items. An empty queue removes the file."""
        if not items:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump([item.to_dict() for item in items], sort_keys=False)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".queue-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
