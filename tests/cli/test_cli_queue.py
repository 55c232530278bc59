"""Tests for 'boardsync queue', 'boardsync sync' and 'boardsync config'."""

import json

import pytest

from boardsync.cli.config import config_set, config_show
from boardsync.cli.item import item_add, item_delete
from boardsync.cli.queue import queue_clear, queue_status
from boardsync.cli.sync import sync
from boardsync.gateway.git import GitGateway
from boardsync.store import StateDir


def _offline_add(args_factory, title):
    return item_add(args_factory(title=title, column=None, position=None, field=None, offline=True))


def test_queue_empty(initialized, capsys):
    assert queue_status(initialized()) == 0
    assert "queue empty" in capsys.readouterr().out


def test_queue_lists_pending(initialized, capsys):
    _offline_add(initialized, "One")
    _offline_add(initialized, "Two")
    capsys.readouterr()

    assert queue_status(initialized(json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["queue_length"] == 2
    assert [op["operation_type"] for op in data["items"]] == ["create", "create"]

    assert queue_status(initialized()) == 0
    out = capsys.readouterr().out
    assert "2 pending" in out
    assert "create 1" in out


def test_sync_replays_journal(initialized, capsys):
    _offline_add(initialized, "One")
    capsys.readouterr()

    assert sync(initialized(daemon=False, interval=None)) == 0
    assert "synced: 1" in capsys.readouterr().out
    assert GitGateway(initialized().remote).read_item("1")["title"] == "One"
    assert StateDir(initialized().state).journal.load() == []


def test_sync_nothing_to_do(initialized, capsys):
    assert sync(initialized(daemon=False, interval=None, json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["pending"] == 0
    assert data["succeeded"] == 0


def test_queue_clear(initialized, capsys):
    _offline_add(initialized, "One")
    item_delete(initialized(id="1", offline=True))
    capsys.readouterr()

    assert queue_clear(initialized()) == 0
    assert "Cleared 2 pending operation(s)" in capsys.readouterr().out
    assert StateDir(initialized().state).journal.load() == []
    board = StateDir(initialized().state).load_boards()[0]
    assert "1" not in board.items


def test_config_set_and_show(initialized, capsys):
    assert config_set(initialized(key="retry-limit", value="5")) == 0
    capsys.readouterr()
    assert config_show(initialized(json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["retry_limit"] == 5


def test_config_set_unknown(initialized, capsys):
    with pytest.raises(SystemExit):
        config_set(initialized(key="colour", value="blue"))
    assert "Unknown setting" in capsys.readouterr().err
