"""Shared fixtures for boardsync tests."""

import pytest
from git import Repo

from boardsync.consistency import ConsistencyManager
from boardsync.gateway.memory import InMemoryGateway
from boardsync.model.board import Board
from boardsync.model.index import OrderedIndex
from boardsync.model.item import Item, item_to_dict
from boardsync.sync.protocol import SyncConfig


def _build_board(columns, board_id="b1", name="Test"):
    items = {}
    for col, ids in columns.items():
        for rank, item_id in enumerate(ids):
            items[item_id] = Item(id=item_id, board_id=board_id, status=col, position=rank, title=f"Item {item_id}")
    return Board(id=board_id, name=name, index=OrderedIndex(columns), items=items)


@pytest.fixture
def make_board():
    """Factory: build a consistent Board from {column: [ids]}."""
    return _build_board


@pytest.fixture
def board():
    """Kanban board with three items in todo and one in done."""
    return _build_board({"todo": ["1", "2", "3"], "inProgress": [], "done": ["4"]})


@pytest.fixture
def manager(board):
    clock = iter(range(1000, 100000))
    return ConsistencyManager([board], clock=lambda: next(clock))


@pytest.fixture
def gateway(board):
    """InMemoryGateway that already knows every item of the board."""
    gw = InMemoryGateway()
    for item in board.items.values():
        gw.items[item.id] = item_to_dict(item)
    gw.indexes[board.id] = board.index.to_dict()
    return gw


@pytest.fixture
def fast_config():
    """Retry policy with millisecond backoff."""
    return SyncConfig(retry_limit=3, base_backoff_ms=1, max_backoff_ms=5)


@pytest.fixture
def store_repo(tmp_path):
    """Empty git repository used as the remote store."""
    repo_path = tmp_path / "store"
    repo_path.mkdir()
    Repo.init(repo_path)
    return repo_path
