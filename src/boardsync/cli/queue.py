"""Handlers for 'boardsync queue' commands."""

from datetime import datetime

from boardsync.cli._common import load_boards_or_die, output_json, output_result, purge_settled, state_dir
from boardsync.consistency import ConsistencyManager


def _describe(op) -> str:
    payload = op.payload
    target = payload.get("item_id") or (payload.get("item") or {}).get("id", "?")
    return f"{op.operation_type} {target}"


def queue_status(args) -> int:
    """Show operations waiting in the journal."""
    pending = state_dir(args).journal.load()

    if args.json:
        output_json(
            {
                "queue_length": len(pending),
                "items": [op.to_dict() for op in pending],
            }
        )
        return 0

    if not pending:
        print("queue empty")
        return 0
    print(f"{len(pending)} pending")
    for op in pending:
        queued = datetime.fromtimestamp(op.created_at).strftime("%Y-%m-%d %H:%M:%S")
        print(f"  {op.id[:8]}  {_describe(op):<24} queued {queued}  attempts {op.attempt_count}")
    return 0


def queue_clear(args) -> int:
    """Abandon every pending operation. Local state keeps its changes."""
    boards = load_boards_or_die(args)
    state = state_dir(args)
    dropped = len(state.journal.load())
    state.journal.save([])

    manager = ConsistencyManager(boards)
    purge_settled(manager, state)
    state.save_boards(manager.boards())

    output_result({"cleared": dropped}, f"Cleared {dropped} pending operation(s)", args.json)
    return 0
