"""Tests for ID generation."""

from boardsync.ids import new_id, next_item_id


def test_first_id():
    assert next_item_id([]) == "1"


def test_numeric_ids_compare_as_numbers():
    assert next_item_id(["9", "10", "2"]) == "11"
    assert next_item_id(["007"]) == "8"


def test_non_numeric_ids_are_skipped():
    assert next_item_id(["fish", "3", "a1"]) == "4"
    assert next_item_id(["fish"]) == "1"


def test_new_id_is_unique_hex():
    a, b = new_id(), new_id()
    assert a != b
    assert len(a) == 32
    int(a, 16)
