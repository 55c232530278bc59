"""Handlers for 'boardsync sync' command."""

import logging
import signal
import sys
import time

from boardsync.cli._common import output_json, report_sync, run_session
from boardsync.config import read_config

logger = logging.getLogger(__name__)


async def _replay(session) -> None:
    """No new mutations; the worker replays the journal on INIT."""


def _do_sync(args) -> tuple[int, dict]:
    """Replay pending operations once. Returns (exit_code, summary)."""
    _, summary = run_session(args, _replay)
    return (1 if summary["failed"] else 0), summary


def sync(args) -> int:
    """One-shot sync handler. Dispatches to daemon if -d."""
    if args.daemon:
        return sync_daemon(args)

    exit_code, summary = _do_sync(args)

    if args.json:
        output_json(summary)
    else:
        report_sync(summary, args.json)
        if summary["succeeded"]:
            print(f"synced: {summary['succeeded']}")
        if summary["failed"]:
            print(f"failed: {summary['failed']}", file=sys.stderr)
        if not summary["succeeded"] and not summary["failed"] and not summary["pending"]:
            print("nothing to do")

    return exit_code


def sync_daemon(args) -> int:
    """Loop _do_sync on interval. SIGINT/SIGTERM stops cleanly."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        level=logging.INFO,
    )

    running = True

    def _stop(signum, frame):
        nonlocal running
        running = False

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    interval = args.interval or read_config(args.remote)["sync_interval"]

    while running:
        exit_code, summary = _do_sync(args)
        for message in summary["messages"]:
            logger.error("%s", message)
        if summary["succeeded"]:
            logger.info("synced %d operation(s)", summary["succeeded"])
        if summary["pending"]:
            logger.info("%d operation(s) still pending", summary["pending"])

        # One-second naps so a signal stops us promptly
        for _ in range(interval):
            if not running:
                break
            time.sleep(1)

    logger.info("stopped")
    return 0
