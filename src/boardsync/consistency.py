"""Single writer for item fields and board indexes.

Every change to an item's status/position and to its board's
OrderedIndex goes through ConsistencyManager, under the board's lock,
so nobody can observe the two representations disagreeing. Readers
get immutable Board snapshots.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable

from boardsync.constants import DELETED, TERMINAL_STATUSES
from boardsync.errors import InvalidDropTarget, ItemNotFound
from boardsync.ids import next_item_id
from boardsync.model.board import Board
from boardsync.model.index import OrderedIndex, Placement, move_item, remove_item
from boardsync.model.item import Item
from boardsync.resolver import MoveIntent

logger = logging.getLogger(__name__)

BoardCallback = Callable[[Board, str], None]
TerminalCallback = Callable[[Item], None]


@dataclass(frozen=True)
class MoveResult:
    """Outcome of apply_move: new state plus the intent that undoes it."""

    board: Board
    item: Item
    before: Item
    inverse: MoveIntent
    changed: bool


@dataclass(frozen=True)
class Removal:
    """A tombstoned item and where it stood, for restore_item()."""

    item: Item
    placement: Placement
    board: Board


class _BoardState:
    """Mutable board internals. Never handed out."""

    def __init__(self, board: Board):
        self.id = board.id
        self.name = board.name
        self.index = board.index
        self.items: dict[str, Item] = dict(board.items)
        self.lock = threading.RLock()

    def snapshot(self) -> Board:
        return Board(id=self.id, name=self.name, index=self.index, items=self.items)

    def renumber(self, columns: Iterable[str]) -> None:
        """Rewrite status/position of every item in columns from the index."""
        for col in set(columns):
            for rank, item_id in enumerate(self.index.columns.get(col, ())):
                item = self.items[item_id]
                if item.status != col or item.position != rank:
                    self.items[item_id] = replace(item, status=col, position=rank)


class ConsistencyManager:
    """Owns boards and applies every mutation to them atomically."""

    def __init__(
        self,
        boards: Iterable[Board] = (),
        terminal_statuses: Iterable[str] = TERMINAL_STATUSES,
        clock: Callable[[], float] = time.time,
    ):
        self._boards: dict[str, _BoardState] = {}
        self._owner: dict[str, str] = {}
        self._watchers: dict[str, list[BoardCallback]] = {}
        self._terminal_watchers: list[TerminalCallback] = []
        self.terminal_statuses = frozenset(terminal_statuses)
        self._clock = clock
        for board in boards:
            self.add_board(board)

    # --- Boards ---

    def add_board(self, board: Board) -> None:
        if board.id in self._boards:
            raise ValueError(f"Board already registered: {board.id}")
        state = _BoardState(board)
        self._boards[board.id] = state
        for item_id in state.items:
            self._owner[item_id] = board.id

    def board(self, board_id: str) -> Board:
        """Immutable snapshot of a board."""
        state = self._boards.get(board_id)
        if state is None:
            raise KeyError(f"Board not found: {board_id}")
        with state.lock:
            return state.snapshot()

    def boards(self) -> list[Board]:
        return [self.board(board_id) for board_id in self._boards]

    def find_item(self, item_id: str) -> Item:
        """Look up a live item on any board."""
        state = self._state_for(item_id)
        item = state.items[item_id]
        if item.status == DELETED:
            raise ItemNotFound(item_id)
        return item

    def _state_for(self, item_id: str) -> _BoardState:
        board_id = self._owner.get(item_id)
        if board_id is None:
            raise ItemNotFound(item_id)
        return self._boards[board_id]

    # --- Watchers ---

    def watch(self, board_id: str, callback: BoardCallback) -> Callable[[], None]:
        """Call callback(board, reason) after every change. Returns an unwatch callable."""
        watchers = self._watchers.setdefault(board_id, [])
        watchers.append(callback)
        return lambda: callback in watchers and watchers.remove(callback)

    def watch_terminal(self, callback: TerminalCallback) -> Callable[[], None]:
        """Call callback(item) when an item enters a terminal status."""
        self._terminal_watchers.append(callback)
        return lambda: callback in self._terminal_watchers and self._terminal_watchers.remove(callback)

    def _emit(self, board: Board, reason: str, entered_terminal: Item | None = None) -> None:
        for cb in list(self._watchers.get(board.id, ())):
            cb(board, reason)
        if entered_terminal is not None:
            for cb in list(self._terminal_watchers):
                cb(entered_terminal)

    def _terminal_fields(self, item: Item, new_status: str) -> Item:
        was = item.status in self.terminal_statuses
        now = new_status in self.terminal_statuses
        if now and not was:
            return replace(item, completed_at=self._clock())
        if was and not now:
            return replace(item, completed_at=None)
        return item

    # --- Moves ---

    def apply_move(self, intent: MoveIntent, notify_terminal: bool = True) -> MoveResult:
        """Apply intent to both the item and its board index as one unit.

        Raises ItemNotFound for unknown or deleted items and
        InvalidDropTarget for unknown target columns; neither mutates.
        With notify_terminal=False, entering a terminal status does not
        call terminal watchers (used when undoing a move).
        """
        state = self._state_for(intent.item_id)
        with state.lock:
            item = state.items[intent.item_id]
            if item.status == DELETED:
                raise ItemNotFound(intent.item_id)
            if intent.target_column not in state.index.columns:
                raise InvalidDropTarget(f"unknown column {intent.target_column!r}")

            new_index, previous = move_item(
                state.index,
                intent.item_id,
                intent.source_column,
                intent.target_column,
                intent.target_index,
            )
            if previous is None:
                previous = Placement(item.status, item.position)
            changed = new_index is not state.index

            entered_terminal = None
            if changed:
                was_terminal = item.status in self.terminal_statuses
                state.items[item.id] = self._terminal_fields(item, intent.target_column)
                state.index = new_index
                state.renumber({previous.column, intent.target_column})
                if notify_terminal and intent.target_column in self.terminal_statuses and not was_terminal:
                    entered_terminal = state.items[item.id]

            moved = state.items[item.id]
            board = state.snapshot()

        inverse = MoveIntent(
            item_id=intent.item_id,
            source_column=moved.status,
            target_column=previous.column,
            target_index=previous.index,
        )
        if changed:
            logger.debug(
                "moved %s %s[%d] -> %s[%d]",
                item.id,
                previous.column,
                previous.index,
                moved.status,
                moved.position,
            )
            self._emit(board, "move", entered_terminal)
        return MoveResult(board=board, item=moved, before=item, inverse=inverse, changed=changed)

    # --- Create / delete / edit ---

    def add_item(
        self,
        board_id: str,
        column: str,
        position: int | None = None,
        item_id: str | None = None,
        **fields: Any,
    ) -> Item:
        """Create an item in column at position (None appends)."""
        state = self._boards.get(board_id)
        if state is None:
            raise KeyError(f"Board not found: {board_id}")
        with state.lock:
            if column not in state.index.columns:
                raise InvalidDropTarget(f"unknown column {column!r}")
            if item_id is None:
                item_id = next_item_id(state.items)
            if item_id in state.items or item_id in self._owner:
                raise ValueError(f"Item already exists: {item_id}")
            now = self._clock()
            item = Item(
                id=item_id,
                board_id=board_id,
                status=column,
                created_at=now,
                completed_at=now if column in self.terminal_statuses else None,
            )
            state.items[item_id] = item.with_fields(**fields) if fields else item
            state.index, _ = move_item(state.index, item_id, None, column, position)
            state.renumber({column})
            self._owner[item_id] = board_id
            created = state.items[item_id]
            board = state.snapshot()
        self._emit(board, "create")
        return created

    def remove_item(self, item_id: str) -> Removal:
        """Tombstone an item: drop it from the index, mark it deleted."""
        state = self._state_for(item_id)
        with state.lock:
            item = state.items[item_id]
            if item.status == DELETED:
                raise ItemNotFound(item_id)
            state.index, placement = remove_item(state.index, item_id)
            if placement is None:
                placement = Placement(item.status, item.position)
            state.items[item_id] = replace(item, status=DELETED, position=0)
            state.renumber({placement.column})
            board = state.snapshot()
        self._emit(board, "delete")
        return Removal(item=item, placement=placement, board=board)

    def restore_item(self, removal: Removal) -> Board:
        """Undo remove_item: put the item back where it stood."""
        item = removal.item
        state = self._state_for(item.id)
        with state.lock:
            column = removal.placement.column
            if column not in state.index.columns:
                column = state.index.column_ids[0]
            state.index, _ = move_item(state.index, item.id, None, column, removal.placement.index)
            state.items[item.id] = replace(item, status=column)
            state.renumber({column})
            board = state.snapshot()
        self._emit(board, "restore")
        return board

    def purge_item(self, item_id: str) -> None:
        """Forget a tombstone once the remote store confirmed the delete."""
        board_id = self._owner.get(item_id)
        if board_id is None:
            return
        state = self._boards[board_id]
        with state.lock:
            item = state.items.get(item_id)
            if item is None or item.status != DELETED:
                return
            del state.items[item_id]
            del self._owner[item_id]

    def update_fields(self, item_id: str, **fields: Any) -> tuple[Item, Item]:
        """Edit non-positional fields. Returns (before, after)."""
        for key in ("id", "board_id", "status", "position"):
            if key in fields:
                raise ValueError(f"{key} cannot be edited directly; move the item instead")
        state = self._state_for(item_id)
        with state.lock:
            before = state.items[item_id]
            if before.status == DELETED:
                raise ItemNotFound(item_id)
            after = before.with_fields(**fields)
            state.items[item_id] = after
            board = state.snapshot()
        self._emit(board, "update")
        return before, after

    def replace_item(self, item: Item) -> Board:
        """Put back an earlier version of an item's fields.

        Status and position stay as indexed; completed_at is restored only
        when the item is back in the status it had.
        """
        state = self._state_for(item.id)
        with state.lock:
            current = state.items[item.id]
            if current.status == DELETED:
                raise ItemNotFound(item.id)
            completed_at = item.completed_at if current.status == item.status else current.completed_at
            state.items[item.id] = replace(
                item, status=current.status, position=current.position, completed_at=completed_at
            )
            board = state.snapshot()
        self._emit(board, "update")
        return board

    def validate(self, board_id: str):
        """Violation report for a board. Diagnostics only."""
        return self.board(board_id).validate()

    def index(self, board_id: str) -> OrderedIndex:
        return self.board(board_id).index
