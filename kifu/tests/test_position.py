"""
Tests for board positions.

Tests:
- Placement, capture and pass
- Ko, suicide and self-capture
- Handicap placement and move numbering
- History chain invariants
"""

import pytest

from ..engine_core.errors import IllegalMove
from ..engine_core.position import BoardPosition
from ..engine_core.types import Move, StoneColor
from .conftest import board_from_rows, play

KO_SHAPE = [
    ".XO......",
    "XO.O.....",
    ".XO......",
    ".........",
    ".........",
    ".........",
    ".........",
    ".........",
    ".........",
]


class TestPlacement:
    """Tests for ordinary moves."""

    def test_move_places_stone_and_flips_turn(self, empty_board):
        """A placement puts the mover's stone and passes the turn."""
        position = empty_board.make_move(Move.place(2, 3))

        assert position[2, 3] is StoneColor.BLACK
        assert position.next_to_move is StoneColor.WHITE
        assert position.last_move == Move.place(2, 3)
        assert position.last_move_number == 1
        assert position.previous_position is empty_board

    def test_parent_is_untouched(self, empty_board):
        """Playing a move never modifies the position it was played from."""
        empty_board.make_move(Move.place(4, 4))

        assert empty_board[4, 4] is StoneColor.EMPTY
        assert empty_board.next_to_move is StoneColor.BLACK
        assert empty_board.stone_count(StoneColor.BLACK) == 0

    def test_occupied_point_is_illegal(self, empty_board):
        """Cannot play on a stone."""
        position = play(empty_board, (4, 4))

        with pytest.raises(IllegalMove) as exc:
            position.make_move(Move.place(4, 4))
        assert exc.value.reason == IllegalMove.OCCUPIED

    def test_out_of_bounds_is_illegal(self, empty_board):
        """Cannot play outside the board."""
        with pytest.raises(IllegalMove) as exc:
            empty_board.make_move(Move.place(9, 0))
        assert exc.value.reason == IllegalMove.OUT_OF_BOUNDS

    def test_rectangular_board_bounds(self):
        """Rows are bounded by height and columns by width."""
        position = BoardPosition(width=13, height=9)

        assert position.make_move(Move.place(8, 12))[8, 12] is StoneColor.BLACK
        with pytest.raises(IllegalMove):
            position.make_move(Move.place(12, 8))

    def test_pass_keeps_grid(self, empty_board):
        """A pass changes only the turn and the move number."""
        before = play(empty_board, (3, 3))
        after = before.make_move(Move.pass_())

        assert after.same_position_as(before)
        assert after.last_move.is_pass
        assert after.last_move_number == 2
        assert after.next_to_move is StoneColor.BLACK

    def test_str_draws_board(self):
        """String form uses X, O and dots."""
        position = board_from_rows(["X.", ".O"])

        assert str(position) == "X.\n.O"


class TestCaptures:
    """Tests for captures, ko and suicide."""

    def test_capture_removes_group(self):
        """A group without liberties is removed and credited to the mover."""
        position = board_from_rows([
            "OX.",
            "...",
            "...",
        ])

        result = position.make_move(Move.place(1, 0))

        assert result[0, 0] is StoneColor.EMPTY
        assert result.captures[StoneColor.BLACK] == 1
        assert result.captures[StoneColor.WHITE] == 0

    def test_multi_stone_capture(self):
        """Whole groups are captured at once."""
        position = board_from_rows([
            "OO.X.",
            "XX...",
            ".....",
        ])
        result = position.make_move(Move.place(0, 2))

        assert result[0, 0] is StoneColor.EMPTY
        assert result[0, 1] is StoneColor.EMPTY
        assert result.captures[StoneColor.BLACK] == 2

    def test_suicide_is_illegal(self):
        """A move leaving its own group without liberties is rejected."""
        position = board_from_rows([
            ".O.",
            "O..",
            "...",
        ])

        with pytest.raises(IllegalMove) as exc:
            position.make_move(Move.place(0, 0))
        assert exc.value.reason == IllegalMove.SUICIDE

    def test_self_capture_when_allowed(self):
        """With self-capture allowed, the own group is removed and the opponent credited."""
        position = board_from_rows([
            ".O.",
            "O..",
            "...",
        ])

        result = position.make_move(Move.place(0, 0), allow_self_capture=True)

        assert result[0, 0] is StoneColor.EMPTY
        assert result.captures[StoneColor.WHITE] == 1
        assert result.next_to_move is StoneColor.WHITE

    def test_capture_takes_precedence_over_suicide(self):
        """A move that captures is legal even if it had no liberty before."""
        position = board_from_rows(KO_SHAPE)

        result = position.make_move(Move.place(1, 2))

        assert result[1, 1] is StoneColor.EMPTY
        assert result.captures[StoneColor.BLACK] == 1

    def test_immediate_ko_recapture_is_illegal(self):
        """Retaking the ko at once would repeat the previous board."""
        after_take = board_from_rows(KO_SHAPE).make_move(Move.place(1, 2))

        with pytest.raises(IllegalMove) as exc:
            after_take.make_move(Move.place(1, 1))
        assert exc.value.reason == IllegalMove.KO

    def test_ko_recapture_with_ignore_ko(self):
        """Analysis may retake the ko when ko is ignored."""
        root = board_from_rows(KO_SHAPE)
        after_take = root.make_move(Move.place(1, 2))

        retaken = after_take.make_move(Move.place(1, 1), ignore_ko=True)

        assert retaken.same_position_as(root)
        assert retaken.captures[StoneColor.WHITE] == 1

    def test_ko_recapture_after_exchange(self):
        """Once both sides have played elsewhere the ko may be retaken."""
        after_take = board_from_rows(KO_SHAPE).make_move(Move.place(1, 2))

        position = play(after_take, (6, 6), (7, 7))
        retaken = position.make_move(Move.place(1, 1))

        assert retaken[1, 2] is StoneColor.EMPTY

    def test_captures_never_decrease(self, empty_board):
        """Capture counts are non-decreasing along a branch."""
        position = play(empty_board, (0, 1), (0, 0), (1, 0), (5, 5), (4, 4))

        counts = [
            (p.captures[StoneColor.BLACK], p.captures[StoneColor.WHITE])
            for p in reversed(list(position.ancestors()))
        ]
        for earlier, later in zip(counts, counts[1:]):
            assert later[0] >= earlier[0]
            assert later[1] >= earlier[1]
        assert counts[-1] == (1, 0)


class TestHandicapAndHistory:
    """Tests for handicap placement and move numbering."""

    def test_handicap_placement_keeps_turn(self, empty_board):
        """Handicap stones do not pass the turn or deepen the history."""
        position = empty_board.make_handicap_placement(Move.place(2, 2))
        position = position.make_handicap_placement(Move.place(6, 6))

        assert position[2, 2] is StoneColor.BLACK
        assert position[6, 6] is StoneColor.BLACK
        assert position.next_to_move is StoneColor.BLACK
        assert position.previous_position is None
        assert position.last_move_number == 0
        assert position.handicap_placements == 2
        assert position.move_index == 2

    def test_handicap_stone_color_after_turn_passes(self, empty_board):
        """The last handicap stone stays black once white is to move."""
        position = empty_board.make_handicap_placement(Move.place(2, 2))
        position = position.make_handicap_placement(Move.place(6, 6))
        position.next_to_move = StoneColor.WHITE

        assert position.last_move_color is StoneColor.BLACK

    def test_handicap_pass_is_illegal(self, empty_board):
        """A pass cannot place a handicap stone."""
        with pytest.raises(IllegalMove) as exc:
            empty_board.make_handicap_placement(Move.pass_())
        assert exc.value.reason == IllegalMove.PASS_NOT_ALLOWED

    def test_handicap_on_occupied_point_is_illegal(self, empty_board):
        """Handicap stones need an empty point."""
        position = empty_board.make_handicap_placement(Move.place(2, 2))

        with pytest.raises(IllegalMove):
            position.make_handicap_placement(Move.place(2, 2))

    def test_move_index_counts_handicap(self, empty_board):
        """Moves after free handicap are numbered after the handicap stones."""
        position = empty_board.make_handicap_placement(Move.place(2, 2))
        position.next_to_move = StoneColor.WHITE
        position = play(position, (4, 4), (5, 5))

        assert position.last_move_number == 2
        assert position.move_index == 3

    def test_chain_length_matches_move_number(self, empty_board):
        """Following predecessors reaches the root in last_move_number steps."""
        position = play(empty_board, (0, 0), (1, 1), None, (2, 2), (3, 3))

        chain = list(position.ancestors())

        assert len(chain) == position.last_move_number + 1
        assert chain[-1] is empty_board
        assert [p.last_move_number for p in chain] == [5, 4, 3, 2, 1, 0]

    def test_last_move_color(self, empty_board):
        """The last mover is the opposite of the player to move."""
        position = play(empty_board, (3, 3))

        assert position.last_move_color is StoneColor.BLACK
        assert empty_board.last_move_color is None

    def test_groups_and_liberties(self):
        """Groups are found by connectivity and their liberties counted."""
        position = board_from_rows([
            "XX.",
            "X.O",
            "...",
        ])

        assert position.group_at((0, 0)) == {(0, 0), (0, 1), (1, 0)}
        assert position.liberties_of((0, 0)) == {(0, 2), (1, 1), (2, 0)}
        assert position.group_at((1, 1)) == set()

    def test_uids_are_unique(self, empty_board):
        """Every position gets its own uid."""
        a = empty_board.make_move(Move.place(0, 0))
        b = empty_board.make_move(Move.place(0, 0))

        assert a.uid != b.uid
        assert a.same_position_as(b)
