from __future__ import annotations

import pytest

from slidesync.core.shapes.zorder import (
    move_to_just_behind,
    move_to_just_in_front,
    move_until_behind,
    sort_by_z_order,
)


@pytest.fixture
def stack(slide):
    return [slide.add_shape(name) for name in "ABCDE"]


def _names(slide):
    return [s.name for s in slide.shapes]


@pytest.mark.parametrize("shift,dest", [(4, 1), (0, 3), (2, 0), (1, 4)])
def test_move_to_just_behind(slide, stack, shift, dest):
    move_to_just_behind(stack[shift], stack[dest])
    assert stack[shift].z_order_position == stack[dest].z_order_position - 1


@pytest.mark.parametrize("shift,dest", [(4, 1), (0, 3), (3, 4), (1, 0)])
def test_move_to_just_in_front(slide, stack, shift, dest):
    move_to_just_in_front(stack[shift], stack[dest])
    assert stack[shift].z_order_position == stack[dest].z_order_position + 1


def test_other_shapes_keep_relative_order(slide, stack):
    move_to_just_behind(stack[4], stack[1])
    assert _names(slide) == ["A", "E", "B", "C", "D"]


def test_move_until_behind_is_noop_when_in_front(slide, stack):
    move_until_behind(stack[3], stack[1])
    assert _names(slide) == list("ABCDE")


def test_sort_by_z_order_front_to_back(slide, stack):
    assert [s.name for s in sort_by_z_order(stack)] == list("EDCBA")
