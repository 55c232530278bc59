"""Message protocol between the UI side and the sync worker.

Commands and events cross the boundary as plain dicts with a "type"
key. Payloads are deep-copied on the way in and out so neither side
ever holds a reference into the other's state.
"""

from __future__ import annotations

import copy
import time
from dataclasses import asdict, dataclass, field, fields
from typing import Any

# Commands (UI -> worker)
INIT = "INIT"
ENQUEUE = "ENQUEUE"
FORCE_SYNC = "FORCE_SYNC"
CLEAR_QUEUE = "CLEAR_QUEUE"
SET_CONFIG = "SET_CONFIG"
GET_STATUS = "GET_STATUS"
SHUTDOWN = "SHUTDOWN"

# Events (worker -> UI)
STATUS_UPDATE = "STATUS_UPDATE"
OPERATION_COMPLETED = "OPERATION_COMPLETED"
OPERATION_FAILED = "OPERATION_FAILED"
STOPPED = "STOPPED"


@dataclass
class SyncConfig:
    """Retry policy and connectivity for the drain loop."""

    retry_limit: int = 3
    base_backoff_ms: int = 2000
    max_backoff_ms: int = 60000
    online: bool = True

    def merged(self, changes: dict[str, Any]) -> SyncConfig:
        """Return a copy with known keys from changes applied."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown sync config keys: {', '.join(sorted(unknown))}")
        data = asdict(self)
        data.update(changes)
        return SyncConfig(**data)

    def backoff_seconds(self, attempt: int) -> float:
        """Delay before retry number attempt (1-based), capped."""
        delay_ms = self.base_backoff_ms * 2 ** max(attempt - 1, 0)
        return min(delay_ms, self.max_backoff_ms) / 1000


@dataclass
class SyncQueueItem:
    """One pending remote operation. Owned by the worker once enqueued."""

    operation_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: float = field(default_factory=time.time)
    attempt_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(asdict(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncQueueItem:
        return cls(
            operation_type=data["operation_type"],
            payload=copy.deepcopy(data.get("payload") or {}),
            id=data.get("id"),
            created_at=data.get("created_at") or time.time(),
            attempt_count=int(data.get("attempt_count", 0)),
        )


@dataclass(frozen=True)
class SyncSnapshot:
    """Aggregate queue status reported to the UI."""

    queue_length: int = 0
    is_processing: bool = False
    last_sync: float | None = None
    total_succeeded: int = 0
    total_failed: int = 0
    online: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncSnapshot:
        return cls(**data)


def message(kind: str, **data: Any) -> dict[str, Any]:
    """Build a message dict. Values are deep-copied."""
    return {"type": kind, **copy.deepcopy(data)}
