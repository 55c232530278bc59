"""Optimistic mutations with rollback.

Each mutation is applied to visible state right away through the
ConsistencyManager, then handed to the SyncQueue with callbacks bound
to that one commit. A permanent sync failure runs the commit's inverse.
"""

from __future__ import annotations

import logging
from typing import Any

from boardsync.consistency import ConsistencyManager, Removal
from boardsync.constants import CREATE, DELETE, REORDER, UPDATE
from boardsync.errors import InvalidDropTarget, ItemNotFound
from boardsync.model.item import Item, item_to_dict
from boardsync.resolver import MoveIntent
from boardsync.sync.queue import SyncQueue

logger = logging.getLogger(__name__)


class OptimisticMutator:
    """Applies changes locally first and reconciles with the remote store."""

    def __init__(self, manager: ConsistencyManager, queue: SyncQueue):
        self.manager = manager
        self.queue = queue

    def _columns(self, board_id: str) -> dict[str, list[str]]:
        return self.manager.index(board_id).to_dict()

    # --- Moves ---

    def commit(self, intent: MoveIntent) -> str | None:
        """Apply a move and queue it. Returns the queue id, or None if nothing happened."""
        try:
            result = self.manager.apply_move(intent)
        except ItemNotFound:
            logger.info("move of %s ignored: item no longer exists", intent.item_id)
            return None
        except InvalidDropTarget as e:
            logger.info("move of %s ignored: %s", intent.item_id, e.reason)
            return None
        if not result.changed:
            return None

        item = result.item
        payload = {
            "board_id": item.board_id,
            "item": {
                "id": item.id,
                "status": item.status,
                "position": item.position,
                "completed_at": item.completed_at,
            },
            "columns": result.board.index.to_dict(),
        }
        try:
            return self.queue.enqueue(
                REORDER,
                payload,
                on_failure=lambda error: self.rollback(result.inverse, before=result.before),
            )
        except RuntimeError:
            # Queue not running: the move can never reach the remote store
            self.rollback(result.inverse, before=result.before)
            raise

    def rollback(self, inverse: MoveIntent, before: Item | None = None) -> None:
        """Re-apply the ConsistencyManager with an inverse intent.

        Moving back into a terminal column does not count as completing
        the item again, so terminal watchers are not called.
        """
        logger.warning(
            "rolling back move of %s to %s[%s]", inverse.item_id, inverse.target_column, inverse.target_index
        )
        try:
            self.manager.apply_move(inverse, notify_terminal=False)
            if before is not None:
                self.manager.replace_item(before)
        except (ItemNotFound, InvalidDropTarget) as e:
            logger.warning("rollback of %s skipped: %s", inverse.item_id, e)

    # --- Create / delete / edit ---

    def create_item(
        self,
        board_id: str,
        column: str,
        position: int | None = None,
        **fields: Any,
    ) -> tuple[Item, str]:
        """Create an item locally and queue its creation. Returns (item, queue id)."""
        item = self.manager.add_item(board_id, column, position, **fields)
        payload = {
            "board_id": board_id,
            "item": item_to_dict(self.manager.find_item(item.id)),
            "columns": self._columns(board_id),
        }

        def undo(error: str) -> None:
            logger.warning("rolling back creation of %s", item.id)
            try:
                self.manager.remove_item(item.id)
            except ItemNotFound:
                return
            self.manager.purge_item(item.id)

        try:
            return item, self.queue.enqueue(CREATE, payload, on_failure=undo)
        except RuntimeError as e:
            undo(str(e))
            raise

    def delete_item(self, item_id: str) -> str | None:
        """Remove an item locally and queue the delete. Returns the queue id."""
        try:
            removal = self.manager.remove_item(item_id)
        except ItemNotFound:
            logger.info("delete of %s ignored: item no longer exists", item_id)
            return None
        board_id = removal.item.board_id
        payload = {"board_id": board_id, "item_id": item_id, "columns": removal.board.index.to_dict()}
        try:
            return self.queue.enqueue(
                DELETE,
                payload,
                on_success=lambda result: self.manager.purge_item(item_id),
                on_failure=lambda error: self.restore(removal),
            )
        except RuntimeError:
            self.restore(removal)
            raise

    def restore(self, removal: Removal) -> None:
        """Bring back an item whose delete was rejected."""
        logger.warning(
            "restoring %s to %s[%d]", removal.item.id, removal.placement.column, removal.placement.index
        )
        self.manager.restore_item(removal)

    def update_item(self, item_id: str, **fields: Any) -> str | None:
        """Edit item fields (title, free-form data) and queue the update."""
        try:
            before, after = self.manager.update_fields(item_id, **fields)
        except ItemNotFound:
            logger.info("update of %s ignored: item no longer exists", item_id)
            return None
        if before == after:
            return None
        payload = {
            "board_id": after.board_id,
            "item": {"id": after.id, "title": after.title, "data": dict(after.data)},
        }

        def undo(error: str) -> None:
            logger.warning("rolling back update of %s", item_id)
            try:
                self.manager.replace_item(before)
            except ItemNotFound:
                pass

        try:
            return self.queue.enqueue(UPDATE, payload, on_failure=undo)
        except RuntimeError as e:
            undo(str(e))
            raise
