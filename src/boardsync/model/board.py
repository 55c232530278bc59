"""Board snapshots and board-level helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from boardsync.constants import BOARD_TEMPLATES, DELETED
from boardsync.model.index import OrderedIndex, Violation, validate
from boardsync.model.item import Item, item_from_dict, item_to_dict


@dataclass(frozen=True)
class Board:
    """Immutable view of one board: its items and its ordered index."""

    id: str
    name: str = ""
    index: OrderedIndex = field(default_factory=OrderedIndex)
    items: Mapping[str, Item] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", MappingProxyType(dict(self.items)))

    @property
    def column_ids(self) -> list[str]:
        return self.index.column_ids

    def live_items(self) -> list[Item]:
        return [i for i in self.items.values() if i.status != DELETED]

    def column_items(self, column: str) -> list[Item]:
        """Items of a column in index order."""
        return [self.items[item_id] for item_id in self.index.columns.get(column, ())]

    def validate(self) -> list[Violation]:
        return validate(self.index, self.items)


def create_board(board_id: str, name: str = "", template: str = "kanban", columns=None) -> Board:
    """Create an empty board from a template or an explicit column list."""
    if columns is None:
        if template not in BOARD_TEMPLATES:
            raise ValueError(f"Unknown board template: {template}")
        columns = BOARD_TEMPLATES[template]
    return Board(id=board_id, name=name, index=OrderedIndex.empty(columns))


def board_to_dict(board: Board) -> dict[str, Any]:
    """Serialize a board (including tombstones) to plain data."""
    return {
        "id": board.id,
        "name": board.name,
        "columns": board.index.to_dict(),
        "items": {item_id: item_to_dict(item) for item_id, item in board.items.items()},
    }


def board_from_dict(data: dict[str, Any]) -> Board:
    """Rebuild a board from board_to_dict output."""
    items = {str(k): item_from_dict(v) for k, v in (data.get("items") or {}).items()}
    columns = {str(col): [str(i) for i in ids or []] for col, ids in (data.get("columns") or {}).items()}
    return Board(
        id=str(data["id"]),
        name=data.get("name", ""),
        index=OrderedIndex(columns),
        items=items,
    )
