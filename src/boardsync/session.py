"""A working session: boards, the sync queue and the mutator wired together."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from boardsync.consistency import ConsistencyManager
from boardsync.constants import TERMINAL_STATUSES
from boardsync.errors import InvalidDropTarget
from boardsync.gateway import RemoteGateway
from boardsync.model.board import Board
from boardsync.mutator import OptimisticMutator
from boardsync.resolver import MoveResolver
from boardsync.sync.journal import QueueJournal
from boardsync.sync.protocol import SyncConfig
from boardsync.sync.queue import SyncQueue

logger = logging.getLogger(__name__)

DROP_REJECTED = "Cannot drop here"


class Session:
    """Owns one ConsistencyManager, one SyncQueue and one OptimisticMutator.

    Use as an async context manager, or call start()/close() directly.
    notify(message) receives user-facing messages such as rejected drops
    and permanent sync failures.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        boards: Iterable[Board] = (),
        config: SyncConfig | None = None,
        journal: QueueJournal | None = None,
        notify: Callable[[str], None] | None = None,
        terminal_statuses: Iterable[str] = TERMINAL_STATUSES,
    ):
        self.notify = notify or (lambda message: logger.info("%s", message))
        self.manager = ConsistencyManager(boards, terminal_statuses=terminal_statuses)
        self.queue = SyncQueue(gateway, config=config, journal=journal, notify=self.notify)
        self.mutator = OptimisticMutator(self.manager, self.queue)

    async def start(self) -> None:
        await self.queue.start()

    async def close(self, pending: str = "flush", timeout: float | None = None) -> int:
        return await self.queue.close(pending=pending, timeout=timeout)

    async def __aenter__(self) -> Session:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def resolver(self, board_id: str) -> MoveResolver:
        """A MoveResolver reading board_id's live index."""
        self.manager.board(board_id)
        return MoveResolver(lambda: self.manager.index(board_id))

    def finish_drag(self, resolver: MoveResolver) -> str | None:
        """Drop the resolver's gesture and commit it. Returns the queue id."""
        try:
            intent = resolver.drop()
        except InvalidDropTarget as e:
            logger.debug("drop rejected: %s", e.reason)
            self.notify(DROP_REJECTED)
            return None
        return self.mutator.commit(intent)
