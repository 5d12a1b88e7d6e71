import pytest

from board import Board, get_rules
from go_utils import BLACK, EMPTY, WHITE


def test_from_diagram_dimensions():
    b = Board.from_diagram(["X.O", "...", ".X.", "..."])
    assert (b.width, b.height) == (3, 4)
    assert b.board[0, 0] == BLACK
    assert b.board[0, 2] == WHITE
    assert b.board[2, 1] == BLACK


def test_from_diagram_rejects_ragged_rows():
    with pytest.raises(ValueError):
        Board.from_diagram(["X..", ".."])


def test_capture_counts_prisoners():
    b = Board.from_diagram([".X.", "XO.", ".X."])
    captures = b.play(2, 1, BLACK)
    assert captures == [(1, 1)]
    assert b.board[1, 1] == EMPTY
    assert b.black_prisoners == 1
    assert b.white_prisoners == 0
    assert b.color_to_move() == "white"


def test_illegal_moves_raise():
    b = Board.from_diagram([".X", "X."])
    with pytest.raises(ValueError):
        b.play(1, 0)
    with pytest.raises(ValueError):
        b.play(0, 0, WHITE)
    with pytest.raises(ValueError):
        b.play(5, 5)


def test_default_komi_follows_ruleset():
    assert Board(9, ruleset="japanese").komi == 6.5
    assert Board(9, ruleset="chinese").komi == 7.5
    assert Board(9, ruleset="chinese", komi=0.5).komi == 0.5


def test_rule_flags():
    jp = get_rules("Japanese")
    assert not jp.score_stones and jp.score_prisoners and not jp.score_territory_in_seki
    cn = get_rules("chinese")
    assert cn.score_stones and not cn.score_prisoners and cn.score_territory_in_seki
    with pytest.raises(ValueError):
        get_rules("tromp-taylor-ish")


def test_handicap_adjustment():
    assert Board(9, ruleset="chinese", handicap=3).handicap_point_adjustment_for_white() == 3
    assert Board(9, ruleset="aga", handicap=3).handicap_point_adjustment_for_white() == 2
    assert Board(9, ruleset="japanese", handicap=3).handicap_point_adjustment_for_white() == 0
    assert Board(9, ruleset="chinese").handicap_point_adjustment_for_white() == 0
