"""Background synchronization: queue, worker, protocol, journal."""

from boardsync.sync.journal import QueueJournal
from boardsync.sync.protocol import SyncConfig, SyncQueueItem, SyncSnapshot
from boardsync.sync.queue import SyncQueue
from boardsync.sync.worker import SyncWorker

__all__ = [
    "QueueJournal",
    "SyncConfig",
    "SyncQueue",
    "SyncQueueItem",
    "SyncSnapshot",
    "SyncWorker",
]
