"""Tests for the shared ordering and hierarchy helpers."""

import pytest

from src.services.exceptions import ValidationError
from src.services.ordering_utils import (
    move_item,
    next_sort_order,
    renumber,
    validate_no_cycle,
)


class Item:
    def __init__(self, name, sort_order=0):
        self.name = name
        self.sort_order = sort_order


class TestMoveItem:
    def test_move_forward(self):
        assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]

    def test_move_backward(self):
        assert move_item(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_input_not_modified(self):
        items = ["a", "b"]
        move_item(items, 0, 1)
        assert items == ["a", "b"]

    @pytest.mark.parametrize("from_index, to_index", [(-1, 0), (0, 3), (3, 0)])
    def test_out_of_range(self, from_index, to_index):
        with pytest.raises(ValidationError):
            move_item(["a", "b", "c"], from_index, to_index)

    def test_empty_list(self):
        with pytest.raises(ValidationError):
            move_item([], 0, 0)


class TestRenumber:
    def test_assigns_positions(self):
        items = [Item("a", 7), Item("b", 3), Item("c", 3)]
        renumber(items)
        assert [i.sort_order for i in items] == [0, 1, 2]

    def test_accepts_generator(self):
        items = [Item("a", 5), Item("b", 5)]
        renumber(item for item in items)
        assert [i.sort_order for i in items] == [0, 1]


class TestNextSortOrder:
    def test_no_siblings(self):
        assert next_sort_order([]) == 0

    def test_after_highest(self):
        assert next_sort_order([Item("a", 0), Item("b", 4), Item("c", 2)]) == 5

    def test_none_treated_as_zero(self):
        assert next_sort_order([Item("a", None)]) == 1


class TestValidateNoCycle:
    def test_root_is_always_safe(self):
        assert validate_no_cycle(["b"], "a", None)

    def test_self_parent(self):
        assert not validate_no_cycle([], "a", "a")

    def test_descendant_parent(self):
        assert not validate_no_cycle(["b", "c"], "a", "c")

    def test_unrelated_parent(self):
        assert validate_no_cycle(["b", "c"], "a", "d")
