"""Turn a drag gesture into a single MoveIntent.

A gesture runs through an explicit state machine:

    IDLE -> DRAGGING -> (over target)* -> DROPPED | CANCELLED

Each pointer move runs a collision cascade over the visible drop
targets: pointer containment first, then rectangle overlap, then
nearest corners. The first policy that returns anything wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Sequence

from textual.geometry import Offset, Region

from boardsync.constants import TARGET_SEPARATOR
from boardsync.errors import InvalidDropTarget
from boardsync.model.index import OrderedIndex


@dataclass(frozen=True)
class MoveIntent:
    """Resolved outcome of a gesture, consumed once by the ConsistencyManager."""

    item_id: str
    source_column: str | None
    target_column: str
    target_index: int | None = None


@dataclass(frozen=True)
class DropTarget:
    """A droppable area on screen: a column background or a card."""

    target_id: str
    region: Region


class GesturePhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


def target_id(column_id: str, item_id: str | None = None) -> str:
    """Encode a drop target id: "column" or "column:item"."""
    if item_id is None:
        return column_id
    return f"{column_id}{TARGET_SEPARATOR}{item_id}"


def parse_target_id(value: str) -> tuple[str, str | None]:
    """Split a drop target id into (column_id, item_id or None)."""
    column_id, sep, item_id = value.partition(TARGET_SEPARATOR)
    if not sep or not item_id:
        return column_id, None
    return column_id, item_id


# --- Collision policies ---

CollisionPolicy = Callable[[Offset, Region, Sequence[DropTarget]], list[DropTarget]]


def pointer_within(pointer: Offset, rect: Region, targets: Sequence[DropTarget]) -> list[DropTarget]:
    """Targets containing the pointer, smallest (innermost) first."""
    hits = [t for t in targets if t.region.contains_point(pointer)]
    return sorted(hits, key=lambda t: t.region.area)


def rect_intersection(pointer: Offset, rect: Region, targets: Sequence[DropTarget]) -> list[DropTarget]:
    """Targets overlapping the dragged rectangle, largest overlap first."""
    scored = []
    for target in targets:
        overlap = rect.intersection(target.region).area
        if overlap > 0:
            scored.append((overlap, target))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [target for _, target in scored]


def _corners(region: Region) -> list[tuple[int, int]]:
    x, y, width, height = region
    return [(x, y), (x + width, y), (x, y + height), (x + width, y + height)]


def closest_corners(pointer: Offset, rect: Region, targets: Sequence[DropTarget]) -> list[DropTarget]:
    """All targets, ordered by summed distance between matching corners."""

    def distance(target: DropTarget) -> float:
        pairs = zip(_corners(rect), _corners(target.region))
        return sum(math.hypot(ax - bx, ay - by) for (ax, ay), (bx, by) in pairs)

    return sorted(targets, key=distance)


DEFAULT_CASCADE: tuple[CollisionPolicy, ...] = (pointer_within, rect_intersection, closest_corners)


def detect_collisions(
    pointer: Offset,
    rect: Region,
    targets: Sequence[DropTarget],
    cascade: Iterable[CollisionPolicy] = DEFAULT_CASCADE,
) -> list[DropTarget]:
    """Run policies in order; return the first non-empty result."""
    for policy in cascade:
        hits = policy(pointer, rect, targets)
        if hits:
            return hits
    return []


class MoveResolver:
    """State machine for a single drag gesture.

    index_provider returns the board's current OrderedIndex; it is read
    when a target is resolved and again on drop, so ranks reflect any
    moves that landed during the drag.
    """

    def __init__(
        self,
        index_provider: Callable[[], OrderedIndex],
        cascade: Iterable[CollisionPolicy] = DEFAULT_CASCADE,
    ):
        self._index_provider = index_provider
        self._cascade = tuple(cascade)
        self._reset()

    def _reset(self) -> None:
        self.phase = GesturePhase.IDLE
        self.item_id: str | None = None
        self.source_column: str | None = None
        self.target: str | None = None
        self._origin_rect: Region | None = None
        self._origin_pointer: Offset | None = None

    @property
    def active(self) -> bool:
        return self.phase is GesturePhase.DRAGGING

    def start(
        self,
        item_id: str,
        source_column: str,
        rect: Region | None = None,
        pointer: Offset | None = None,
    ) -> None:
        """Begin dragging item_id out of source_column."""
        if self.active:
            raise RuntimeError("gesture already in progress")
        self._reset()
        self.phase = GesturePhase.DRAGGING
        self.item_id = item_id
        self.source_column = source_column
        self._origin_rect = rect or Region(0, 0, 0, 0)
        self._origin_pointer = pointer or Offset(0, 0)

    def dragged_rect(self, pointer: Offset) -> Region:
        """Where the dragged card sits for a given pointer position."""
        return self._origin_rect.translate(pointer - self._origin_pointer)

    def over(self, pointer: Offset, targets: Sequence[DropTarget]) -> str | None:
        """Pointer moved. Resolve the hovered target; returns the current target id.

        An empty resolution keeps the previous target.
        """
        if not self.active:
            return self.target
        index = self._index_provider()
        usable = [t for t in targets if parse_target_id(t.target_id)[0] in index.columns]
        hits = detect_collisions(pointer, self.dragged_rect(pointer), usable, self._cascade)
        if hits:
            self.target = hits[0].target_id
        return self.target

    def hover(self, target: str) -> str | None:
        """Keyboard navigation: hover a target id directly."""
        if not self.active:
            return self.target
        column_id, _ = parse_target_id(target)
        if column_id in self._index_provider().columns:
            self.target = target
        return self.target

    def drop(self) -> MoveIntent:
        """Finish the gesture.

        Returns the MoveIntent, or raises InvalidDropTarget (and moves
        to CANCELLED) if no target was ever resolved.
        """
        if not self.active:
            raise InvalidDropTarget("no gesture in progress")
        if self.target is None:
            self.phase = GesturePhase.CANCELLED
            raise InvalidDropTarget()

        index = self._index_provider()
        column_id, sibling_id = parse_target_id(self.target)
        if column_id not in index.columns:
            self.phase = GesturePhase.CANCELLED
            raise InvalidDropTarget(f"column {column_id!r} no longer exists")

        siblings = index.columns[column_id]
        if sibling_id is not None and sibling_id in siblings:
            target_index = siblings.index(sibling_id)
        else:
            target_index = len(siblings)
            if self.item_id in siblings:
                target_index -= 1

        self.phase = GesturePhase.DROPPED
        return MoveIntent(
            item_id=self.item_id,
            source_column=self.source_column,
            target_column=column_id,
            target_index=target_index,
        )

    def cancel(self) -> None:
        """Explicit abort (escape key). Discards all captured state."""
        self._reset()
        self.phase = GesturePhase.CANCELLED
