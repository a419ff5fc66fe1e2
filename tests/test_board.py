"""Tests du moteur de plateau Threes! (glissades, score, pose de tuiles)."""

from __future__ import annotations

import numpy as np
import pytest

from threes.engine.actions import NoOp, Place, Slide
from threes.engine.board import Board, intrinsic_score
from threes.engine.rules import DOWN, ILLEGAL, INITIAL, LEFT, RIGHT, UP, rank_score, tile_value


def _board_with_row(row, index: int = 0) -> Board:
    grid = [[0] * 4 for _ in range(4)]
    grid[index] = list(row)
    return Board(grid)


class TestRules:
    """Valeurs et scores des tuiles."""

    def test_tile_values(self):
        assert [tile_value(rank) for rank in range(7)] == [0, 1, 2, 3, 6, 12, 24]

    def test_rank_scores(self):
        assert rank_score(1) == 0
        assert rank_score(2) == 0
        assert rank_score(3) == 3
        assert rank_score(4) == 9
        assert rank_score(5) == 27

    def test_intrinsic_score_sums_cells(self):
        grid = [[3, 4, 0, 0], [1, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 5]]
        assert intrinsic_score(grid) == 3 + 9 + 27
        assert Board(grid).value() == 39


class TestSlide:
    """Sémantique de glissade: un pas par tuile, fusions 1+2 et n+n."""

    def test_one_and_two_merge_into_three(self):
        board = _board_with_row([1, 2, 0, 0])

        reward = board.slide(LEFT)

        assert reward == 3
        assert board.grid[0].tolist() == [3, 0, 0, 0]
        assert board.last == LEFT

    def test_equal_tiles_merge_to_next_rank(self):
        board = _board_with_row([3, 3, 0, 0])

        reward = board.slide(LEFT)

        assert board.grid[0].tolist() == [4, 0, 0, 0]
        assert reward == 9 - 6

    def test_tiles_move_a_single_step(self):
        board = _board_with_row([0, 0, 0, 3])

        assert board.slide(LEFT) == 0
        assert board.grid[0].tolist() == [0, 0, 3, 0]

    def test_merged_tile_does_not_merge_again(self):
        board = _board_with_row([3, 3, 3, 0])

        board.slide(LEFT)

        assert board.grid[0].tolist() == [4, 3, 0, 0]

    def test_right_slide_mirrors_left(self):
        board = _board_with_row([1, 2, 0, 0])

        assert board.slide(RIGHT) == 0
        assert board.grid[0].tolist() == [0, 1, 2, 0]

    def test_vertical_slides(self):
        grid = [[0] * 4 for _ in range(4)]
        grid[1][2] = 3
        board = Board(grid)

        assert board.slide(UP) == 0
        assert board(2) == 3

        assert board.slide(DOWN) == 0
        assert board(6) == 3

    def test_illegal_slide_returns_sentinel_and_keeps_board(self):
        board = _board_with_row([1, 2, 0, 0])
        before = board.copy()

        assert board.slide(UP) == ILLEGAL
        assert board == before
        assert board.last == INITIAL

    def test_same_basic_tiles_do_not_merge(self):
        board = _board_with_row([1, 1, 0, 0])

        assert board.slide(LEFT) == ILLEGAL

    def test_max_rank_does_not_merge(self):
        board = _board_with_row([15, 15, 0, 0])

        assert board.slide(LEFT) == ILLEGAL

    def test_unknown_direction_is_illegal(self):
        board = _board_with_row([0, 1, 0, 0])

        assert board.slide(7) == ILLEGAL

    def test_state_after_slide_leaves_board_untouched(self):
        board = _board_with_row([1, 2, 0, 0])

        after = board.state_after_slide(LEFT)

        assert after[0].tolist() == [3, 0, 0, 0]
        assert board.grid[0].tolist() == [1, 2, 0, 0]

    def test_grid_is_a_copy(self):
        board = _board_with_row([1, 2, 0, 0])

        grid = board.grid
        grid[0, 0] = 9

        assert board(0) == 1


class TestPlace:
    """Pose de tuiles, indice et sac de tuiles de base."""

    def test_place_sets_tile_and_hint(self):
        board = Board()

        assert board.place(5, 1, 2) == 0
        assert board(5) == 1
        assert board.hint == 2

    def test_place_draws_tile_and_hint_from_bag(self):
        board = Board()

        board.place(0, 1, 2)

        assert board.bag(1) == 3
        assert board.bag(2) == 3
        assert board.bag(3) == 4

    def test_hinted_tile_is_not_drawn_twice(self):
        board = Board()
        board.place(0, 1, 2)

        board.place(1, 2, 3)

        assert board.bag(1) == 3
        assert board.bag(2) == 3
        assert board.bag(3) == 3

    def test_empty_bag_refills(self):
        board = Board(bag=[0, 0, 0])

        assert board.bag(1) == 4
        board.place(0, 1, 3)
        assert board.bag(1) == 3
        assert board.bag(2) == 4
        assert board.bag(3) == 3

    def test_place_on_occupied_cell_is_illegal(self):
        board = Board()
        board.place(0, 1, 2)

        assert board.place(0, 2, 1) == ILLEGAL

    def test_place_out_of_range_is_illegal(self):
        assert Board().place(16, 1, 2) == ILLEGAL

    def test_bag_must_have_one_counter_per_tile(self):
        with pytest.raises(ValueError):
            Board(bag=[1, 2])


class TestActions:
    """Actions appliquées au plateau."""

    def test_slide_action_delegates_to_board(self):
        board = _board_with_row([1, 2, 0, 0])

        assert Slide(LEFT).apply(board) == 3

    def test_place_action_delegates_to_board(self):
        board = Board()

        assert Place(position=3, tile=2, hint=1).apply(board) == 0
        assert board(3) == 2

    def test_noop_is_illegal_when_applied(self):
        assert NoOp().apply(Board()) == ILLEGAL

    def test_actions_are_value_types(self):
        assert Slide(2) == Slide(2)
        assert Place(1, 2, 3) != Place(1, 2, 1)


class TestFromValues:
    def test_converts_display_values_to_ranks(self):
        board = Board.from_values([[1, 2, 3, 6], [12, 0, 0, 0], [0] * 4, [0] * 4])

        assert board.grid[0].tolist() == [1, 2, 3, 4]
        assert board(4) == 5
        assert isinstance(board.grid, np.ndarray)

    def test_rejects_unknown_values(self):
        with pytest.raises(ValueError):
            Board.from_values([[5, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
