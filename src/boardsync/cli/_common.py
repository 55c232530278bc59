"""Shared helpers for CLI command handlers."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

from git import Repo

from boardsync.config import read_config, sync_config
from boardsync.consistency import ConsistencyManager
from boardsync.constants import DELETE, DELETED
from boardsync.gateway.git import GitGateway
from boardsync.model.board import Board
from boardsync.session import Session
from boardsync.store import StateDir


def state_dir(args) -> StateDir:
    return StateDir(Path(args.state).resolve())


def load_boards_or_die(args) -> list[Board]:
    """Load all boards from the state directory. Exit 1 if not initialized."""
    try:
        return state_dir(args).load_boards()
    except Exception as e:
        error(str(e), args.json)


def find_board(boards: list[Board], board_id: str, json_mode: bool) -> Board:
    """Lookup board by ID. Exit 1 listing available boards if not found."""
    for board in boards:
        if board.id == board_id:
            return board
    available = "\n".join(f"  {b.id}  {b.name}" for b in boards)
    error(f"Board '{board_id}' not found. Available:\n{available}", json_mode)


def find_column(board: Board, column: str, json_mode: bool) -> str:
    """Check a column exists on board. Exit 1 listing columns if not."""
    if column in board.index.columns:
        return column
    error(f"Column '{column}' not found. Available: {', '.join(board.column_ids)}", json_mode)


def find_item(board: Board, item_id: str, json_mode: bool):
    """Lookup a live item by ID. Exit 1 if not found."""
    item = board.items.get(item_id)
    if item is None or item.status == DELETED:
        error(f"Item '{item_id}' not found.", json_mode)
    return item


def open_gateway(args) -> GitGateway:
    """Open the git store named by --remote. Exit 1 if it isn't a repository."""
    settings = read_config(args.remote)
    try:
        return GitGateway(Path(args.remote).resolve(), push_remote=settings["push_remote"] or None)
    except ValueError as e:
        error(str(e), args.json)


def ensure_store(path: str) -> Path:
    """Create the git store at path if there isn't one yet."""
    repo_path = Path(path).resolve()
    if not (repo_path / ".git").exists():
        Repo.init(repo_path)
    return repo_path


def purge_settled(manager: ConsistencyManager, state: StateDir) -> None:
    """Drop tombstones whose delete is no longer waiting in the journal."""
    pending = {
        op.payload.get("item_id") for op in state.journal.load() if op.operation_type == DELETE
    }
    for board in manager.boards():
        for item in board.items.values():
            if item.status == DELETED and item.id not in pending:
                manager.purge_item(item.id)


def run_session(args, action: Callable[[Session], Awaitable[Any]]) -> tuple[Any, dict]:
    """Run action inside a Session over the saved boards, then persist.

    Waits up to --timeout seconds for the queue to drain; whatever is
    left stays in the journal for the next run. Returns
    (action result, sync summary).
    """
    boards = load_boards_or_die(args)
    gateway = open_gateway(args)
    state = state_dir(args)
    settings = read_config(args.remote)
    config = sync_config(settings, online=False if getattr(args, "offline", False) else None)
    messages: list[str] = []

    async def _run():
        session = Session(gateway, boards, config=config, journal=state.journal, notify=messages.append)
        await session.start()
        try:
            result = await action(session)
        finally:
            pending = await session.close(pending="flush", timeout=args.timeout)
        purge_settled(session.manager, state)
        state.save_boards(session.manager.boards())
        status = session.queue.status
        summary = {
            "pending": pending,
            "succeeded": status.total_succeeded,
            "failed": status.total_failed,
            "messages": messages,
        }
        return result, summary

    return asyncio.run(_run())


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def report_sync(summary: dict, json_mode: bool) -> None:
    """Print sync messages and leftover count to stderr in text mode."""
    if json_mode:
        return
    for message in summary["messages"]:
        print(f"warning: {message}", file=sys.stderr)
    if summary["pending"]:
        print(f"{summary['pending']} operation(s) pending sync", file=sys.stderr)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)


def reload_item(args, board_id: str, item_id: str):
    """Read an item back from saved state after a session, or None if gone."""
    for board in state_dir(args).load_boards():
        if board.id == board_id:
            item = board.items.get(item_id)
            if item is not None and item.status != DELETED:
                return item
    return None
