"""Board items (tasks and user stories)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from boardsync.constants import DELETED


@dataclass(frozen=True)
class Item:
    """A task or user story.

    ``status`` names the column the item occupies and must match the
    column holding its id in the board's OrderedIndex. ``position`` is
    the item's dense rank in that column.
    """

    id: str
    board_id: str
    status: str
    position: int = 0
    title: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    created_at: float | None = None
    completed_at: float | None = None

    @property
    def deleted(self) -> bool:
        return self.status == DELETED

    def with_fields(self, **changes: Any) -> Item:
        """Return a copy with changes applied. Unknown keys go into data."""
        known = {k: v for k, v in changes.items() if k in _ITEM_FIELDS}
        extra = {k: v for k, v in changes.items() if k not in _ITEM_FIELDS}
        if extra:
            data = dict(self.data)
            for key, value in extra.items():
                if value is None:
                    data.pop(key, None)
                else:
                    data[key] = value
            known["data"] = data
        return replace(self, **known)


_ITEM_FIELDS = {"title", "created_at", "completed_at"}


def item_to_dict(item: Item) -> dict[str, Any]:
    """Convert an item to a plain dict, dropping empty optional values."""
    result: dict[str, Any] = {
        "id": item.id,
        "board_id": item.board_id,
        "status": item.status,
        "position": item.position,
    }
    if item.title:
        result["title"] = item.title
    if item.data:
        result["data"] = dict(item.data)
    if item.created_at is not None:
        result["created_at"] = item.created_at
    if item.completed_at is not None:
        result["completed_at"] = item.completed_at
    return result


def item_from_dict(data: dict[str, Any]) -> Item:
    """Build an item from a dict produced by item_to_dict."""
    return Item(
        id=str(data["id"]),
        board_id=str(data["board_id"]),
        status=str(data["status"]),
        position=int(data.get("position", 0)),
        title=data.get("title", ""),
        data=dict(data.get("data") or {}),
        created_at=data.get("created_at"),
        completed_at=data.get("completed_at"),
    )
