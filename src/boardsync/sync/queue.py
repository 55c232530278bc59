"""UI-side handle on the background sync worker.

SyncQueue starts a SyncWorker as its own task, sends it commands and
pumps its events back. Success/failure callbacks never cross into the
worker: they stay in a local table keyed by queue item id.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from boardsync.gateway import RemoteGateway
from boardsync.ids import new_id
from boardsync.sync import protocol
from boardsync.sync.journal import QueueJournal
from boardsync.sync.protocol import SyncConfig, SyncQueueItem, SyncSnapshot, message
from boardsync.sync.worker import SyncWorker

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[str], None]
StatusCallback = Callable[[SyncSnapshot], None]
Notify = Callable[[str], None]

PENDING_MODES = ("flush", "discard", "keep")


class SyncQueue:
    """Ordered queue of remote operations drained in the background.

    Lifecycle: construct, ``await start()``, enqueue freely, then
    ``await close()`` at session end.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        config: SyncConfig | None = None,
        journal: QueueJournal | None = None,
        notify: Notify | None = None,
    ):
        self._gateway = gateway
        self._config = config or SyncConfig()
        self._journal = journal
        self._notify = notify
        self._callbacks: dict[str, tuple[SuccessCallback | None, FailureCallback | None]] = {}
        self._outstanding: set[str] = set()
        self._watchers: list[StatusCallback] = []
        self._status: SyncSnapshot | None = None
        self._changed = asyncio.Event()
        self._inbox: asyncio.Queue | None = None
        self._worker_task: asyncio.Task | None = None
        self._pump_task: asyncio.Task | None = None
        self._stopped = asyncio.Event()

    # --- Lifecycle ---

    @property
    def started(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def start(self) -> None:
        """Spawn the worker and send INIT with the current config."""
        if self.started:
            return
        self._inbox = asyncio.Queue()
        outbox: asyncio.Queue = asyncio.Queue()
        worker = SyncWorker(self._gateway, self._inbox, outbox, journal=self._journal)
        self._stopped.clear()
        self._status = None
        self._worker_task = asyncio.create_task(worker.run(), name="sync-worker")
        self._pump_task = asyncio.create_task(self._pump(outbox), name="sync-events")
        self._send(protocol.INIT, config=_config_dict(self._config))

    async def close(self, pending: str = "flush", timeout: float | None = None) -> int:
        """End the session. Returns how many operations were left pending.

        pending="flush" waits for the queue to drain (keeping leftovers on
        timeout), "discard" drops them, "keep" leaves them in the journal.
        """
        if pending not in PENDING_MODES:
            raise ValueError(f"pending must be one of {', '.join(PENDING_MODES)}")
        if not self.started:
            return 0
        if pending == "flush":
            try:
                await asyncio.wait_for(self.wait_idle(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("sync did not finish within %ss; keeping pending operations", timeout)
        elif pending == "discard":
            self.clear_queue()
        self._send(protocol.SHUTDOWN)
        await self._stopped.wait()
        await self._worker_task
        self._pump_task.cancel()
        try:
            await self._pump_task
        except asyncio.CancelledError:
            pass
        left = self.status.queue_length
        if left and self._journal is None:
            logger.warning("discarding %d pending operations with no journal", left)
        self._callbacks.clear()
        self._outstanding.clear()
        self._worker_task = None
        self._pump_task = None
        return left

    async def __aenter__(self) -> SyncQueue:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- Commands ---

    def _send(self, kind: str, **data: Any) -> None:
        if self._inbox is None:
            raise RuntimeError("SyncQueue is not started")
        self._inbox.put_nowait(message(kind, **data))

    def enqueue(
        self,
        operation_type: str,
        payload: dict[str, Any],
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
        item_id: str | None = None,
    ) -> str:
        """Hand an operation to the worker. Returns its correlation id."""
        item = SyncQueueItem(operation_type=operation_type, payload=payload, id=item_id or new_id())
        self._send(protocol.ENQUEUE, item=item.to_dict())
        if on_success is not None or on_failure is not None:
            self._callbacks[item.id] = (on_success, on_failure)
        self._outstanding.add(item.id)
        self._changed.clear()
        return item.id

    def force_sync(self) -> None:
        """Skip any backoff wait and retry now."""
        self._send(protocol.FORCE_SYNC)

    def clear_queue(self) -> None:
        """Abandon every pending operation. Callbacks are dropped, not called."""
        self._callbacks.clear()
        self._outstanding.clear()
        self._send(protocol.CLEAR_QUEUE)

    def set_config(self, **changes: Any) -> None:
        """Change retry policy or connectivity on the fly."""
        self._config = self._config.merged(changes)
        self._send(protocol.SET_CONFIG, config=changes)

    def request_status(self) -> None:
        self._send(protocol.GET_STATUS)

    @property
    def config(self) -> SyncConfig:
        return self._config

    # --- Status ---

    @property
    def status(self) -> SyncSnapshot:
        return self._status or SyncSnapshot(online=self._config.online)

    def watch(self, callback: StatusCallback) -> Callable[[], None]:
        """Call callback(snapshot) on every status update. Returns an unwatch callable."""
        self._watchers.append(callback)
        return lambda: callback in self._watchers and self._watchers.remove(callback)

    def _settled(self) -> bool:
        if self._status is None:
            return False
        if not self._status.online:
            return True
        if self._outstanding:
            return False
        return self._status.queue_length == 0 and not self._status.is_processing

    async def wait_idle(self) -> SyncSnapshot:
        """Wait until everything submitted so far has completed or failed.

        While offline, resolves as soon as the worker reports its status.
        """
        while not self._settled():
            self._changed.clear()
            await self._changed.wait()
        return self.status

    # --- Event pump ---

    async def _pump(self, outbox: asyncio.Queue) -> None:
        while True:
            event = await outbox.get()
            try:
                self._dispatch(event)
            except Exception:
                logger.exception("error handling sync event %s", event.get("type"))
            finally:
                self._changed.set()

    def _dispatch(self, event: dict[str, Any]) -> None:
        kind = event.get("type")
        if kind == protocol.STATUS_UPDATE:
            self._status = SyncSnapshot.from_dict(event["snapshot"])
            for cb in list(self._watchers):
                cb(self._status)
        elif kind == protocol.OPERATION_COMPLETED:
            item_id = event["item_id"]
            self._outstanding.discard(item_id)
            on_success, _ = self._callbacks.pop(item_id, (None, None))
            if on_success is not None:
                on_success(event.get("result"))
        elif kind == protocol.OPERATION_FAILED:
            item_id = event["item_id"]
            if not event.get("permanent"):
                logger.info("sync %s will retry: %s", item_id, event.get("error"))
                return
            self._outstanding.discard(item_id)
            _, on_failure = self._callbacks.pop(item_id, (None, None))
            error = event.get("error") or "unknown error"
            if on_failure is not None:
                on_failure(error)
            if self._notify is not None:
                self._notify(f"Sync failed: {error}")
        elif kind == protocol.STOPPED:
            self._stopped.set()


def _config_dict(config: SyncConfig) -> dict[str, Any]:
    return {
        "retry_limit": config.retry_limit,
        "base_backoff_ms": config.base_backoff_ms,
        "max_backoff_ms": config.max_backoff_ms,
        "online": config.online,
    }
