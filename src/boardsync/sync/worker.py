"""Background sync worker.

An actor that owns the pending queue. It reads command dicts from an
inbox, drains the queue against a RemoteGateway one item at a time,
and posts event dicts to an outbox. Gateway calls run in a thread via
asyncio.to_thread so blocking network I/O never stalls the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from boardsync.errors import PermanentSyncFailure, TransientSyncFailure
from boardsync.gateway import RemoteGateway, dispatch
from boardsync.ids import new_id
from boardsync.sync import protocol
from boardsync.sync.journal import QueueJournal
from boardsync.sync.protocol import SyncConfig, SyncQueueItem, SyncSnapshot, message

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (TransientSyncFailure, TimeoutError, ConnectionError)


def is_transient(exc: BaseException) -> bool:
    """Network and timeout failures are retried; everything else is final."""
    if isinstance(exc, PermanentSyncFailure):
        return False
    return isinstance(exc, TRANSIENT_ERRORS)


class SyncWorker:
    """Single-consumer drain loop with retry, backoff and a status feed."""

    def __init__(
        self,
        gateway: RemoteGateway,
        inbox: asyncio.Queue,
        outbox: asyncio.Queue,
        journal: QueueJournal | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._gateway = gateway
        self._inbox = inbox
        self._outbox = outbox
        self._journal = journal
        self._clock = clock
        self._config = SyncConfig()
        self._items: list[SyncQueueItem] = []
        self._drain_task: asyncio.Task | None = None
        self._wake = asyncio.Event()
        self._last_sync: float | None = None
        self._succeeded = 0
        self._failed = 0
        self._last_status: SyncSnapshot | None = None
        self._journal_lock = asyncio.Lock()

    # --- Actor loop ---

    async def run(self) -> None:
        """Process commands until SHUTDOWN."""
        try:
            while True:
                command = await self._inbox.get()
                kind = command.get("type")
                if kind == protocol.SHUTDOWN:
                    await self._shutdown()
                    return
                try:
                    await self._handle(kind, command)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("sync worker failed handling %s", kind)
        finally:
            await self._stop_drain()

    async def _handle(self, kind: str, command: dict[str, Any]) -> None:
        if kind == protocol.INIT:
            self._config = SyncConfig().merged(command.get("config") or {})
            if self._journal is not None:
                restored = await asyncio.to_thread(self._journal.load)
                if restored:
                    logger.info("restored %d pending operations from journal", len(restored))
                self._items = restored + self._items
            self._send_status(force=True)
            self._wake_drain()
        elif kind == protocol.ENQUEUE:
            item = SyncQueueItem.from_dict(command["item"])
            if item.id is None:
                item.id = new_id()
            self._items.append(item)
            logger.debug("queued %s %s", item.operation_type, item.id)
            await self._persist()
            self._send_status()
            self._wake_drain()
        elif kind == protocol.FORCE_SYNC:
            self._wake_drain(force=True)
        elif kind == protocol.CLEAR_QUEUE:
            await self._stop_drain()
            dropped = len(self._items)
            self._items = []
            logger.info("cleared %d pending operations", dropped)
            await self._persist()
            self._send_status()
        elif kind == protocol.SET_CONFIG:
            self._config = self._config.merged(command.get("config") or {})
            self._send_status()
            self._wake_drain(force=True)
        elif kind == protocol.GET_STATUS:
            self._send_status(force=True)
        else:
            logger.warning("unknown sync command: %r", kind)

    async def _shutdown(self) -> None:
        await self._stop_drain()
        await self._persist()
        self._send_status()
        self._post(message(protocol.STOPPED, pending=len(self._items)))

    # --- Drain ---

    @property
    def processing(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def _wake_drain(self, force: bool = False) -> None:
        """Start the drain loop if idle; force also cuts a backoff wait short."""
        if force:
            self._wake.set()
        if self.processing or not self._items or not self._config.online:
            return
        self._drain_task = asyncio.create_task(self._drain())

    async def _stop_drain(self) -> None:
        task = self._drain_task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _drain(self) -> None:
        self._send_status(processing=True)
        try:
            while self._items and self._config.online:
                item = self._items[0]
                await self._attempt(item)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("sync drain loop crashed")
        finally:
            self._send_status(processing=False)

    async def _attempt(self, item: SyncQueueItem) -> None:
        self._wake.clear()
        item.attempt_count += 1
        try:
            result = await asyncio.to_thread(dispatch, self._gateway, item.operation_type, item.payload)
        except Exception as exc:
            if not is_transient(exc):
                await self._finish_failed(item, exc)
                return
            if item.attempt_count >= self._config.retry_limit:
                await self._finish_failed(item, exc)
                return
            delay = self._config.backoff_seconds(item.attempt_count)
            logger.warning(
                "sync %s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                item.operation_type,
                item.id,
                item.attempt_count,
                self._config.retry_limit,
                delay,
                exc,
            )
            self._post(
                message(
                    protocol.OPERATION_FAILED,
                    item_id=item.id,
                    error=str(exc),
                    permanent=False,
                    attempt_count=item.attempt_count,
                )
            )
            await self._persist()
            await self._backoff(delay)
            return

        self._items.remove(item)
        self._succeeded += 1
        self._last_sync = self._clock()
        logger.debug("synced %s %s after %d attempts", item.operation_type, item.id, item.attempt_count)
        self._post(
            message(
                protocol.OPERATION_COMPLETED,
                item_id=item.id,
                result=result,
                attempt_count=item.attempt_count,
            )
        )
        await self._persist()
        self._send_status()

    async def _finish_failed(self, item: SyncQueueItem, exc: BaseException) -> None:
        self._items.remove(item)
        self._failed += 1
        logger.error(
            "sync %s %s failed permanently after %d attempts: %s",
            item.operation_type,
            item.id,
            item.attempt_count,
            exc,
        )
        self._post(
            message(
                protocol.OPERATION_FAILED,
                item_id=item.id,
                error=str(exc),
                permanent=True,
                attempt_count=item.attempt_count,
            )
        )
        await self._persist()
        self._send_status()

    async def _backoff(self, delay: float) -> None:
        """Sleep for delay, or until FORCE_SYNC / SET_CONFIG wakes us."""
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # --- Outbox ---

    async def _persist(self) -> None:
        """Write the current queue to the journal.

        Saves are serialized and the snapshot is taken under the lock, so
        the last save to finish always holds the newest queue. A save
        interrupted by cancellation still completes before the lock is
        released.
        """
        if self._journal is None:
            return
        async with self._journal_lock:
            pending = [SyncQueueItem.from_dict(item.to_dict()) for item in self._items]
            save = asyncio.ensure_future(asyncio.to_thread(self._journal.save, pending))
            try:
                await asyncio.shield(save)
            except asyncio.CancelledError:
                await save
                raise

    def _post(self, event: dict[str, Any]) -> None:
        self._outbox.put_nowait(event)

    def snapshot(self, processing: bool | None = None) -> SyncSnapshot:
        return SyncSnapshot(
            queue_length=len(self._items),
            is_processing=self.processing if processing is None else processing,
            last_sync=self._last_sync,
            total_succeeded=self._succeeded,
            total_failed=self._failed,
            online=self._config.online,
        )

    def _send_status(self, force: bool = False, processing: bool | None = None) -> None:
        status = self.snapshot(processing)
        if not force and status == self._last_status:
            return
        self._last_status = status
        self._post(message(protocol.STATUS_UPDATE, snapshot=status.to_dict()))
