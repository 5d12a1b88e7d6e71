"""
Shared pytest fixtures and helpers.

Positions are written as ASCII diagrams: 'X' black, 'O' white, '.' empty,
top row first (y = 0).
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from board import Board  # noqa: E402


class FixedEstimator:
    """Local estimator returning a fixed ownership map, recording each call."""

    def __init__(self, ownership):
        self.ownership = np.asarray(ownership, dtype=np.float64)
        self.calls: List[np.ndarray] = []

    def __call__(self, board, color_to_move, trials, tolerance):
        self.calls.append(np.array(board, copy=True))
        return self.ownership.copy()


class RecordingCallback:
    def __init__(self):
        self.removals = []
        self.updates = 0

    def set_for_removal(self, x, y, removed):
        self.removals.append((x, y, removed))

    def update_score_estimation(self):
        self.updates += 1


@pytest.fixture
def make_board() -> Callable[..., Board]:
    def _make(rows, ruleset: str = "japanese", komi: Optional[float] = None, **kwargs) -> Board:
        return Board.from_diagram(rows, ruleset=ruleset, komi=komi, **kwargs)
    return _make


@pytest.fixture
def fixed_estimator() -> Callable[..., FixedEstimator]:
    return FixedEstimator


@pytest.fixture
def recording_callback() -> RecordingCallback:
    return RecordingCallback()


# 5x5 position with a living black corner group of three stones
CORNER_GROUP = [
    "XX...",
    "X....",
    ".....",
    ".....",
    ".....",
]

# Two dead white stones above a black wall, one white stone below it
DEAD_STONES = [
    "......",
    ".O..O.",
    "......",
    "XXXXXX",
    "......",
    "..O...",
]


@pytest.fixture
def corner_rows() -> List[str]:
    return list(CORNER_GROUP)


@pytest.fixture
def dead_stone_rows() -> List[str]:
    return list(DEAD_STONES)
