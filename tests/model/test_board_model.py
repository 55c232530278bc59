"""Tests for Board snapshots, templates and serialization."""

import pytest

from boardsync.model.board import board_from_dict, board_to_dict, create_board
from boardsync.model.item import Item, item_from_dict, item_to_dict


def test_create_board_kanban():
    board = create_board("b1", name="Team")
    assert board.column_ids == ["todo", "inProgress", "done"]
    assert board.name == "Team"
    assert len(board.index) == 0


def test_create_board_scrum():
    board = create_board("s1", template="scrum")
    assert board.column_ids == ["productBacklog", "sprintBacklog", "inProgress", "testing", "done"]


def test_create_board_explicit_columns():
    board = create_board("b1", columns=["a", "b"])
    assert board.column_ids == ["a", "b"]


def test_create_board_unknown_template():
    with pytest.raises(ValueError, match="Unknown board template"):
        create_board("b1", template="waterfall")


def test_column_items_in_index_order(make_board):
    board = make_board({"todo": ["3", "1", "2"], "done": []})
    assert [i.id for i in board.column_items("todo")] == ["3", "1", "2"]
    assert board.column_items("missing") == []


def test_items_mapping_is_read_only(board):
    with pytest.raises(TypeError):
        board.items["9"] = None


def test_board_round_trip_keeps_tombstones(make_board):
    board = make_board({"todo": ["1"], "done": []})
    items = dict(board.items)
    items["2"] = Item(id="2", board_id="b1", status="deleted", title="gone")
    board = type(board)(id=board.id, name=board.name, index=board.index, items=items)

    restored = board_from_dict(board_to_dict(board))
    assert restored == board
    assert [i.id for i in restored.live_items()] == ["1"]
    assert restored.validate() == []


def test_item_dict_omits_empty_fields():
    item = Item(id="1", board_id="b1", status="todo")
    assert item_to_dict(item) == {"id": "1", "board_id": "b1", "status": "todo", "position": 0}


def test_item_round_trip_with_data():
    item = Item(
        id="7",
        board_id="b1",
        status="done",
        position=2,
        title="Ship it",
        data={"points": 3},
        created_at=10.0,
        completed_at=20.0,
    )
    assert item_from_dict(item_to_dict(item)) == item


def test_with_fields_splits_known_and_data():
    item = Item(id="1", board_id="b1", status="todo", data={"points": 1, "tag": "x"})
    changed = item.with_fields(title="New", points=5, tag=None)
    assert changed.title == "New"
    assert changed.data == {"points": 5}
    assert item.data == {"points": 1, "tag": "x"}
