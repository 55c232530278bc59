"""Error types for board moves and remote synchronization."""


class BoardSyncError(Exception):
    """Base class for boardsync errors."""


class ItemNotFound(BoardSyncError):
    """Raised when an item id no longer resolves to a live item."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class InvalidDropTarget(BoardSyncError):
    """Raised when a gesture ends without a usable drop target."""

    def __init__(self, reason: str = "cannot drop here"):
        self.reason = reason
        super().__init__(reason)


class SyncFailure(BoardSyncError):
    """Base class for failures reported by a remote gateway."""

    permanent = False


class TransientSyncFailure(SyncFailure):
    """Network or timeout failure. Retried with backoff."""


class PermanentSyncFailure(SyncFailure):
    """Validation rejection or exhausted retries. Triggers rollback."""

    permanent = True
