"""Remote store contract and operation dispatch."""

from __future__ import annotations

from typing import Any, Protocol

from boardsync.constants import CREATE, DELETE, REORDER, UPDATE
from boardsync.errors import PermanentSyncFailure


class RemoteGateway(Protocol):
    """Interface any remote store client must implement.

    Calls are blocking and must be idempotent for the same logical
    operation: the queue resubmits after transient failures without
    knowing whether the earlier attempt landed. Raise
    TransientSyncFailure for network trouble and PermanentSyncFailure
    for rejections.
    """

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    def update_item(self, item_id: str, changes: dict[str, Any]) -> None: ...

    def delete_item(self, item_id: str) -> None: ...

    def update_board_index(self, board_id: str, columns: dict[str, list[str]]) -> None: ...


def dispatch(gateway: RemoteGateway, operation_type: str, payload: dict[str, Any]) -> Any:
    """Run one queue operation against gateway. Returns the result payload.

    Payloads carrying "board_id" and "columns" also push the board index,
    after the item call, so the two never reach the store out of order.
    """
    result: Any = None
    if operation_type == CREATE:
        result = gateway.create_item(payload["item"])
    elif operation_type in (UPDATE, REORDER):
        item = payload["item"]
        changes = {k: v for k, v in item.items() if k != "id"}
        gateway.update_item(item["id"], changes)
        result = {"id": item["id"]}
    elif operation_type == DELETE:
        gateway.delete_item(payload["item_id"])
        result = {"id": payload["item_id"]}
    else:
        raise PermanentSyncFailure(f"Unsupported operation type: {operation_type}")

    if "columns" in payload and "board_id" in payload:
        gateway.update_board_index(payload["board_id"], payload["columns"])
    return result
