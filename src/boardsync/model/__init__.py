"""Board data model: items, ordered indexes, board snapshots."""

from boardsync.model.board import Board, board_from_dict, board_to_dict, create_board
from boardsync.model.index import (
    OrderedIndex,
    Placement,
    Violation,
    insert_item,
    move_item,
    remove_item,
    validate,
)
from boardsync.model.item import Item, item_from_dict, item_to_dict

__all__ = [
    "Board",
    "Item",
    "OrderedIndex",
    "Placement",
    "Violation",
    "board_from_dict",
    "board_to_dict",
    "create_board",
    "insert_item",
    "item_from_dict",
    "item_to_dict",
    "move_item",
    "remove_item",
    "validate",
]
