from typing import NamedTuple

import numpy as np

from go_utils import BLACK, WHITE


class AdjustedEstimate(NamedTuple):
    score: float
    ownership: np.ndarray


def is_territory_counting(engine) -> bool:
    # Stones-and-prisoners mixes are not handled; only the two pure regimes
    return (not engine.score_stones) and engine.score_prisoners


def adjust_estimate(engine, board: np.ndarray, area_map: np.ndarray, score: float) -> AdjustedEstimate:
    """
    Convert an area-style ownership estimate into one that follows the
    engine's ruleset.

    - board: [y, x] grid of EMPTY/BLACK/WHITE as the estimator currently sees it
    - area_map: ownership under area rules, positive for Black, negative for White
    - score: estimated Black-minus-White score, captures not included

    Under territory counting every stone costs its owner one point (a prisoner
    once removed, or a live stone standing on a point that is not territory)
    and stones whose ownership agrees with their colour are shown as neutral.
    Prisoners already taken are then added in.
    """
    adjusted = float(score) - float(engine.handicap_point_adjustment_for_white())
    board = np.asarray(board)
    area_map = np.asarray(area_map)
    ownership = area_map.astype(np.float64, copy=True)

    if not is_territory_counting(engine):
        return AdjustedEstimate(adjusted, ownership)

    height, width = board.shape
    for y in range(height):
        for x in range(width):
            stone = int(board[y, x])
            if stone == BLACK:
                if area_map[y, x] > 0:
                    ownership[y, x] = 0.0
                adjusted -= 1
            elif stone == WHITE:
                if area_map[y, x] < 0:
                    ownership[y, x] = 0.0
                adjusted += 1

    adjusted += engine.black_prisoners
    adjusted -= engine.white_prisoners
    return AdjustedEstimate(adjusted, ownership)
