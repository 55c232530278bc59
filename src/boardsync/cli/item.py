"""Handlers for 'boardsync item' commands."""

from boardsync.cli._common import (
    error,
    find_board,
    find_column,
    find_item,
    load_boards_or_die,
    output_json,
    output_result,
    reload_item,
    report_sync,
    run_session,
)
from boardsync.model.item import item_to_dict
from boardsync.resolver import MoveIntent

RESERVED_FIELDS = {"id", "board_id", "status", "position", "title", "created_at", "completed_at"}


def _parse_fields(pairs: list[str] | None, json_mode: bool) -> dict:
    """Turn ["key=value", ...] into a dict. An empty value clears the key."""
    fields = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Expected key=value, got '{pair}'", json_mode)
        if key in RESERVED_FIELDS:
            error(f"Cannot set '{key}' as a field (use 'item move' or --title)", json_mode)
        fields[key] = value or None
    return fields


def _item_data(item) -> dict | None:
    return item_to_dict(item) if item is not None else None


def item_list(args) -> int:
    """List live items of a board grouped by column."""
    board = find_board(load_boards_or_die(args), args.board, args.json)
    columns = [c for c in board.column_ids if not args.column or c == args.column]

    if args.json:
        output_json([item_to_dict(item) for col in columns for item in board.column_items(col)])
        return 0

    for col in columns:
        print(col)
        for item in board.column_items(col):
            print(f"  {item.id}  {item.title}")
    return 0


def item_add(args) -> int:
    """Create an item and sync it."""
    board = find_board(load_boards_or_die(args), args.board, args.json)
    column = find_column(board, args.column or board.column_ids[0], args.json)
    fields = _parse_fields(args.field, args.json)
    position = args.position - 1 if args.position is not None else None

    async def action(session):
        item, _ = session.mutator.create_item(board.id, column, position, title=args.title, **fields)
        return item.id

    item_id, summary = run_session(args, action)
    report_sync(summary, args.json)
    item = reload_item(args, board.id, item_id)
    text = f"Created item {item_id} in {column}" if item else f"Item {item_id} was rolled back"
    output_result({"id": item_id, "item": _item_data(item), "sync": summary}, text, args.json)
    return 0 if item else 1


def item_move(args) -> int:
    """Move an item to a column (and position) and sync it."""
    board = find_board(load_boards_or_die(args), args.board, args.json)
    item = find_item(board, args.id, args.json)
    column = find_column(board, args.column, args.json)
    position = args.position - 1 if args.position is not None else None
    intent = MoveIntent(item_id=item.id, source_column=item.status, target_column=column, target_index=position)

    async def action(session):
        return session.mutator.commit(intent)

    queued, summary = run_session(args, action)
    report_sync(summary, args.json)
    moved = reload_item(args, board.id, item.id)
    if queued is None:
        text = f"Item {item.id} already at {moved.status}[{moved.position + 1}]"
    else:
        text = f"Item {item.id} now at {moved.status}[{moved.position + 1}]"
    output_result({"item": _item_data(moved), "moved": queued is not None, "sync": summary}, text, args.json)
    return 0


def item_delete(args) -> int:
    """Delete an item and sync the delete."""
    board = find_board(load_boards_or_die(args), args.board, args.json)
    item = find_item(board, args.id, args.json)

    async def action(session):
        return session.mutator.delete_item(item.id)

    _, summary = run_session(args, action)
    report_sync(summary, args.json)
    restored = reload_item(args, board.id, item.id)
    text = f"Delete of item {item.id} was rolled back" if restored else f"Deleted item {item.id}"
    output_result({"id": item.id, "deleted": restored is None, "sync": summary}, text, args.json)
    return 1 if restored else 0


def item_set(args) -> int:
    """Edit an item's title or data fields and sync the change."""
    board = find_board(load_boards_or_die(args), args.board, args.json)
    item = find_item(board, args.id, args.json)
    fields = _parse_fields(args.field, args.json)
    if args.title is not None:
        fields["title"] = args.title
    if not fields:
        error("Nothing to set (use --title or --field key=value)", args.json)

    async def action(session):
        return session.mutator.update_item(item.id, **fields)

    _, summary = run_session(args, action)
    report_sync(summary, args.json)
    updated = reload_item(args, board.id, item.id)
    output_result({"item": _item_data(updated), "sync": summary}, f"Updated item {item.id}", args.json)
    return 0
