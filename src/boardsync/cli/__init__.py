"""CLI argument parser and dispatch for boardsync."""

import argparse

from boardsync.cli.board import board_list, board_show
from boardsync.cli.config import config_set, config_show
from boardsync.cli.init import init_board
from boardsync.cli.item import item_add, item_delete, item_list, item_move, item_set
from boardsync.cli.queue import queue_clear, queue_status
from boardsync.cli.sync import sync
from boardsync.constants import BOARD_TEMPLATES

DEFAULT_STATE = ".boardsync"
DEFAULT_BOARD = "main"


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--state", default=DEFAULT_STATE, help=f"Local state directory (default: {DEFAULT_STATE})")
    common.add_argument("--remote", default=".", help="Path to the git store repository (default: .)")
    common.add_argument("--board", default=DEFAULT_BOARD, help=f"Board ID (default: {DEFAULT_BOARD})")
    common.add_argument("--json", action="store_true", help="Machine-readable JSON output")

    # Commands that run the sync queue
    syncing = argparse.ArgumentParser(add_help=False)
    syncing.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for the queue to drain (default: 30)"
    )
    syncing.add_argument("--offline", action="store_true", help="Queue changes without contacting the store")

    parser = argparse.ArgumentParser(
        prog="boardsync",
        description="Board reordering with offline sync to a git store",
        parents=[common],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- init ---
    init_p = nouns.add_parser("init", help="Create a board", parents=[common])
    init_p.add_argument("--template", choices=sorted(BOARD_TEMPLATES), default="kanban", help="Column template")
    init_p.add_argument("--name", help="Board display name")
    init_p.set_defaults(func=init_board)

    # --- board ---
    board_p = nouns.add_parser("board", help="Board operations", parents=[common])
    board_verbs = board_p.add_subparsers(dest="verb")

    board_show_p = board_verbs.add_parser("show", help="Show columns and items", parents=[common])
    board_show_p.set_defaults(func=board_show)

    board_list_p = board_verbs.add_parser("list", help="List boards", parents=[common])
    board_list_p.set_defaults(func=board_list)

    # board with no verb = show
    board_p.set_defaults(func=board_show)

    # --- item ---
    item_p = nouns.add_parser("item", help="Item operations", parents=[common])
    item_verbs = item_p.add_subparsers(dest="verb")

    item_list_p = item_verbs.add_parser("list", help="List items", parents=[common])
    item_list_p.add_argument("--column", dest="column", help="Filter by column ID")
    item_list_p.set_defaults(func=item_list)

    item_add_p = item_verbs.add_parser("add", help="Create an item", parents=[common, syncing])
    item_add_p.add_argument("title", help="Item title")
    item_add_p.add_argument("--column", dest="column", help="Target column ID (default: first column)")
    item_add_p.add_argument("--position", type=int, help="Position in column (1-indexed)")
    item_add_p.add_argument("--field", action="append", metavar="KEY=VALUE", help="Extra data field")
    item_add_p.set_defaults(func=item_add)

    item_move_p = item_verbs.add_parser("move", help="Move an item", parents=[common, syncing])
    item_move_p.add_argument("id", help="Item ID")
    item_move_p.add_argument("--column", dest="column", required=True, help="Target column ID")
    item_move_p.add_argument("--position", type=int, help="Position in column (1-indexed, default: end)")
    item_move_p.set_defaults(func=item_move)

    item_delete_p = item_verbs.add_parser("delete", help="Delete an item", parents=[common, syncing])
    item_delete_p.add_argument("id", help="Item ID")
    item_delete_p.set_defaults(func=item_delete)

    item_set_p = item_verbs.add_parser("set", help="Edit item fields", parents=[common, syncing])
    item_set_p.add_argument("id", help="Item ID")
    item_set_p.add_argument("--title", help="New title")
    item_set_p.add_argument("--field", action="append", metavar="KEY=VALUE", help="Set (or with empty value, clear) a field")
    item_set_p.set_defaults(func=item_set)

    # item with no verb = list
    item_p.set_defaults(func=item_list, column=None)

    # --- queue ---
    queue_p = nouns.add_parser("queue", help="Pending sync operations", parents=[common])
    queue_verbs = queue_p.add_subparsers(dest="verb")

    queue_status_p = queue_verbs.add_parser("status", help="Show pending operations", parents=[common])
    queue_status_p.set_defaults(func=queue_status)

    queue_clear_p = queue_verbs.add_parser("clear", help="Abandon pending operations", parents=[common])
    queue_clear_p.set_defaults(func=queue_clear)

    # queue with no verb = status
    queue_p.set_defaults(func=queue_status)

    # --- sync ---
    sync_p = nouns.add_parser("sync", help="Replay pending operations", parents=[common, syncing])
    sync_p.add_argument("-d", "--daemon", action="store_true", help="Run as background daemon")
    sync_p.add_argument("--interval", type=int, help="Daemon sync interval in seconds (default: sync-interval)")
    sync_p.set_defaults(func=sync)

    # --- config ---
    config_p = nouns.add_parser("config", help="Sync settings", parents=[common])
    config_verbs = config_p.add_subparsers(dest="verb")

    config_show_p = config_verbs.add_parser("show", help="Show settings", parents=[common])
    config_show_p.set_defaults(func=config_show)

    config_set_p = config_verbs.add_parser("set", help="Write a setting", parents=[common])
    config_set_p.add_argument("key", help="Setting name, e.g. retry-limit")
    config_set_p.add_argument("value", help="New value")
    config_set_p.set_defaults(func=config_set)

    # config with no verb = show
    config_p.set_defaults(func=config_show)

    return parser
