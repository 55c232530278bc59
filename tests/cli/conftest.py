"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest

from boardsync.cli.init import init_board


@pytest.fixture
def make_args(tmp_path):
    """Build a Namespace with the common options filled in."""

    def _make(**kwargs):
        values = {
            "state": str(tmp_path / "state"),
            "remote": str(tmp_path / "store"),
            "board": "main",
            "json": False,
            "timeout": 10.0,
            "offline": False,
        }
        values.update(kwargs)
        return Namespace(**values)

    return _make


@pytest.fixture
def initialized(make_args, capsys):
    """A kanban board 'main' registered in a fresh git store."""
    assert init_board(make_args(template="kanban", name="Main")) == 0
    capsys.readouterr()
    return make_args
