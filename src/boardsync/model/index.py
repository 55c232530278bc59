"""Per-board ordered index: column id -> ordered, duplicate-free item ids.

The index is immutable. Every operation returns a new index, plus the
placement the item had before, so callers can build the inverse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple

from boardsync.constants import DELETED


class Placement(NamedTuple):
    """Where an id sits: column and rank within it."""

    column: str
    index: int


class Violation(NamedTuple):
    """One invariant breach found by validate()."""

    kind: str
    item_id: str | None
    detail: str


@dataclass(frozen=True)
class OrderedIndex:
    """Ordered column lists of one board."""

    columns: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {col: tuple(ids) for col, ids in self.columns.items()}
        object.__setattr__(self, "columns", MappingProxyType(frozen))

    @classmethod
    def empty(cls, column_ids: Iterable[str]) -> OrderedIndex:
        return cls({col: () for col in column_ids})

    @property
    def column_ids(self) -> list[str]:
        return list(self.columns.keys())

    def locate(self, item_id: str) -> Placement | None:
        """Find the first placement of item_id, or None."""
        for col, ids in self.columns.items():
            if item_id in ids:
                return Placement(col, ids.index(item_id))
        return None

    def __contains__(self, item_id: str) -> bool:
        return self.locate(item_id) is not None

    def __len__(self) -> int:
        return sum(len(ids) for ids in self.columns.values())

    def to_dict(self) -> dict[str, list[str]]:
        return {col: list(ids) for col, ids in self.columns.items()}

    def _replace(self, changes: dict[str, list[str]]) -> OrderedIndex:
        columns = {col: changes.get(col, ids) for col, ids in self.columns.items()}
        return OrderedIndex(columns)


def _clamp(position: int | None, length: int) -> int:
    if position is None:
        return length
    return max(0, min(position, length))


def move_item(
    index: OrderedIndex,
    item_id: str,
    from_column: str | None,
    to_column: str,
    to_index: int | None = None,
) -> tuple[OrderedIndex, Placement | None]:
    """Move item_id into to_column at to_index.

    The id is removed from wherever it currently sits, preferring
    from_column, so a stale source never duplicates it. to_index is
    clamped to the target column; None appends. Returns the new index
    and the previous placement (None if the id was not indexed).
    """
    if to_column not in index.columns:
        raise KeyError(to_column)

    if from_column in index.columns and item_id in index.columns[from_column]:
        previous = Placement(from_column, index.columns[from_column].index(item_id))
    else:
        previous = index.locate(item_id)

    if previous is not None and previous.column == to_column:
        ids = [i for i in index.columns[to_column] if i != item_id]
        target = _clamp(to_index, len(ids))
        if target == previous.index:
            return index, previous
        ids.insert(target, item_id)
        return index._replace({to_column: ids}), previous

    changes: dict[str, list[str]] = {}
    if previous is not None:
        changes[previous.column] = [i for i in index.columns[previous.column] if i != item_id]
    ids = list(index.columns[to_column])
    ids.insert(_clamp(to_index, len(ids)), item_id)
    changes[to_column] = ids
    return index._replace(changes), previous


def insert_item(index: OrderedIndex, item_id: str, column: str, position: int | None = None) -> OrderedIndex:
    """Insert a new id. Equivalent to a move with no source."""
    new_index, _ = move_item(index, item_id, None, column, position)
    return new_index


def remove_item(index: OrderedIndex, item_id: str) -> tuple[OrderedIndex, Placement | None]:
    """Remove item_id from every column. No-op if absent."""
    previous = index.locate(item_id)
    if previous is None:
        return index, None
    changes = {col: [i for i in ids if i != item_id] for col, ids in index.columns.items() if item_id in ids}
    return index._replace(changes), previous


def validate(index: OrderedIndex, items: Mapping | None = None) -> list[Violation]:
    """Report duplicate, orphaned, miscounted and mis-statused ids.

    items maps id -> Item. Without it only duplicates are checked.
    """
    violations: list[Violation] = []
    seen: dict[str, str] = {}
    for col, ids in index.columns.items():
        for item_id in ids:
            if item_id in seen:
                violations.append(
                    Violation("duplicate", item_id, f"in {seen[item_id]!r} and {col!r}")
                )
                continue
            seen[item_id] = col

    if items is None:
        return violations

    for item_id, col in seen.items():
        item = items.get(item_id)
        if item is None or item.status == DELETED:
            violations.append(Violation("orphan", item_id, f"listed in {col!r} but not live"))
        elif item.status != col:
            violations.append(
                Violation("status-mismatch", item_id, f"status {item.status!r} but listed in {col!r}")
            )

    live = [i for i in items.values() if i.status != DELETED]
    if len(live) != len(index):
        violations.append(
            Violation("count-mismatch", None, f"{len(live)} live items, {len(index)} indexed")
        )
    return violations
