"""Handlers for 'boardsync board' commands."""

from boardsync.cli._common import find_board, load_boards_or_die, output_json


def _board_data(board) -> dict:
    return {
        "id": board.id,
        "name": board.name,
        "columns": [
            {
                "id": col,
                "items": [{"id": item.id, "title": item.title} for item in board.column_items(col)],
            }
            for col in board.column_ids
        ],
        "violations": [v._asdict() for v in board.validate()],
    }


def board_show(args) -> int:
    """Print a board's columns and items in order."""
    boards = load_boards_or_die(args)
    board = find_board(boards, args.board, args.json)
    data = _board_data(board)

    if args.json:
        output_json(data)
        return 0

    print(f"{board.id}  {board.name}")
    for col in data["columns"]:
        count = len(col["items"])
        print(f"  {col['id']:<16} {count} {'item' if count == 1 else 'items'}")
        for item in col["items"]:
            print(f"    {item['id']}  {item['title']}")
    for v in data["violations"]:
        print(f"  ! {v['kind']}: {v['detail']}")
    return 0


def board_list(args) -> int:
    """List every board in the state directory."""
    boards = load_boards_or_die(args)

    if args.json:
        output_json([{"id": b.id, "name": b.name, "items": len(b.live_items())} for b in boards])
        return 0

    for b in boards:
        print(f"{b.id}  {b.name}  ({len(b.live_items())} items)")
    return 0
