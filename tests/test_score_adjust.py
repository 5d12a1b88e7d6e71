import numpy as np
import pytest

from board import Board
from score_adjust import adjust_estimate, is_territory_counting


def test_territory_counting_hides_live_stones(corner_rows):
    engine = Board.from_diagram(corner_rows, ruleset="japanese")
    area = np.ones((5, 5))
    adjusted = adjust_estimate(engine, engine.board, area, float(area.sum()))
    for x, y in [(0, 0), (1, 0), (0, 1)]:
        assert adjusted.ownership[y, x] == 0
    assert adjusted.ownership[4, 4] == 1
    # every stone costs its owner a point under territory counting
    assert adjusted.score == pytest.approx(22.0)
    # the input map is left alone
    assert area[0, 0] == 1


def test_area_counting_leaves_estimate_untouched(corner_rows):
    engine = Board.from_diagram(corner_rows, ruleset="chinese")
    area = np.ones((5, 5))
    adjusted = adjust_estimate(engine, engine.board, area, 25.0)
    np.testing.assert_array_equal(adjusted.ownership, area)
    assert adjusted.score == pytest.approx(25.0)


def test_dead_stones_keep_their_ownership_but_still_cost_a_point():
    engine = Board.from_diagram(["XO", ".."], ruleset="japanese")
    # white stone owned by black: dead
    area = np.array([[1.0, 1.0], [1.0, 1.0]])
    adjusted = adjust_estimate(engine, engine.board, area, 4.0)
    assert adjusted.ownership[0, 0] == 0
    assert adjusted.ownership[0, 1] == 1
    # -1 for the black stone, +1 for the white one
    assert adjusted.score == pytest.approx(4.0)


def test_prisoners_are_added_once():
    engine = Board(3, ruleset="japanese")
    engine.captures_black = 2
    engine.captures_white = 1
    adjusted = adjust_estimate(engine, engine.board, np.zeros((3, 3)), 0.0)
    assert adjusted.score == pytest.approx(1.0)


def test_prisoners_ignored_under_area_counting():
    engine = Board(3, ruleset="chinese")
    engine.captures_black = 2
    adjusted = adjust_estimate(engine, engine.board, np.zeros((3, 3)), 0.0)
    assert adjusted.score == pytest.approx(0.0)


@pytest.mark.parametrize("ruleset,handicap,expected", [
    ("chinese", 2, 8.0),
    ("aga", 3, 8.0),
    ("japanese", 4, 10.0),
    ("chinese", 0, 10.0),
])
def test_handicap_correction_for_white(ruleset, handicap, expected):
    engine = Board(3, ruleset=ruleset, handicap=handicap)
    adjusted = adjust_estimate(engine, engine.board, np.zeros((3, 3)), 10.0)
    assert adjusted.score == pytest.approx(expected)


def test_regime_detection():
    assert is_territory_counting(Board(3, ruleset="japanese"))
    assert is_territory_counting(Board(3, ruleset="korean"))
    assert not is_territory_counting(Board(3, ruleset="chinese"))
    assert not is_territory_counting(Board(3, ruleset="aga"))
