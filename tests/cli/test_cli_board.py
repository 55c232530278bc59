"""Tests for 'boardsync init' and 'boardsync board' commands."""

import json

import pytest
from git import Repo

from boardsync.cli.board import board_list, board_show
from boardsync.cli.init import init_board
from boardsync.gateway.git import GitGateway


def test_init_creates_board_and_store(make_args, capsys, tmp_path):
    assert init_board(make_args(template="scrum", name=None)) == 0
    out = capsys.readouterr().out
    assert "Initialized board 'main'" in out
    assert "productBacklog" in out

    store = tmp_path / "store"
    assert Repo(store).head.is_valid()
    assert GitGateway(store).read_board_index("main") == {
        "productBacklog": [],
        "sprintBacklog": [],
        "inProgress": [],
        "testing": [],
        "done": [],
    }
    assert (tmp_path / "state" / "boards.yaml").exists()


def test_init_twice(initialized, capsys):
    args = initialized(template="kanban", name=None, json=True)
    assert init_board(args) == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"board": "main", "columns": ["todo", "inProgress", "done"], "created": False}


def test_init_second_board(initialized, capsys):
    assert init_board(initialized(board="ops", template="kanban", name="Ops")) == 0
    capsys.readouterr()
    assert board_list(initialized(json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert [b["id"] for b in data] == ["main", "ops"]


def test_board_show(initialized, capsys):
    assert board_show(initialized()) == 0
    out = capsys.readouterr().out
    assert "main  Main" in out
    assert "todo" in out
    assert "0 items" in out


def test_board_show_json(initialized, capsys):
    assert board_show(initialized(json=True)) == 0
    data = json.loads(capsys.readouterr().out)
    assert [c["id"] for c in data["columns"]] == ["todo", "inProgress", "done"]
    assert data["violations"] == []


def test_board_show_unknown(initialized, capsys):
    with pytest.raises(SystemExit) as exc:
        board_show(initialized(board="nope"))
    assert exc.value.code == 1
    assert "Board 'nope' not found" in capsys.readouterr().err


def test_board_before_init(make_args, capsys):
    with pytest.raises(SystemExit):
        board_show(make_args())
    assert "boardsync init" in capsys.readouterr().err
