"""In-memory remote store for tests and demos."""

from __future__ import annotations

import copy
import threading
from collections import deque
from typing import Any

from boardsync.errors import PermanentSyncFailure, TransientSyncFailure


class InMemoryGateway:
    """RemoteGateway backed by dicts.

    Failures can be scripted: ``fail_next(exc, times=n)`` makes the next
    n calls raise exc, and ``offline = True`` makes every call fail
    transiently until it is cleared.
    """

    def __init__(self):
        self.items: dict[str, dict[str, Any]] = {}
        self.indexes: dict[str, dict[str, list[str]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.offline = False
        self._failures: deque[BaseException] = deque()
        self._lock = threading.Lock()

    def fail_next(self, exc: BaseException, times: int = 1) -> None:
        for _ in range(times):
            self._failures.append(exc)

    def _check(self, name: str, arg: Any) -> None:
        with self._lock:
            self.calls.append((name, copy.deepcopy(arg)))
            if self.offline:
                raise TransientSyncFailure("remote store unreachable")
            if self._failures:
                raise self._failures.popleft()

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._check("create_item", payload)
        if "id" not in payload:
            raise PermanentSyncFailure("item payload has no id")
        self.items[payload["id"]] = copy.deepcopy(payload)
        return copy.deepcopy(payload)

    def update_item(self, item_id: str, changes: dict[str, Any]) -> None:
        self._check("update_item", {"id": item_id, **changes})
        if item_id not in self.items:
            raise PermanentSyncFailure(f"Item not found: {item_id}")
        self.items[item_id].update(copy.deepcopy(changes))

    def delete_item(self, item_id: str) -> None:
        self._check("delete_item", item_id)
        self.items.pop(item_id, None)

    def update_board_index(self, board_id: str, columns: dict[str, list[str]]) -> None:
        self._check("update_board_index", {"board_id": board_id, "columns": columns})
        unknown = [i for ids in columns.values() for i in ids if i not in self.items]
        if unknown:
            raise PermanentSyncFailure(f"Index references unknown items: {', '.join(unknown)}")
        self.indexes[board_id] = copy.deepcopy(columns)
