from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

import rules
from go_utils import BLACK, EMPTY, WHITE, opponent


@dataclass(frozen=True)
class GoRules:
    """Scoring flags of a ruleset.

    Area counting scores stones plus territory; territory counting scores
    territory plus prisoners. Mixed flag combinations are not supported by
    the estimator.
    """
    name: str
    score_stones: bool
    score_prisoners: bool
    score_territory: bool = True
    score_territory_in_seki: bool = False
    default_komi: float = 6.5


RULESETS: Dict[str, GoRules] = {
    "japanese": GoRules("japanese", score_stones=False, score_prisoners=True,
                        score_territory_in_seki=False, default_komi=6.5),
    "korean": GoRules("korean", score_stones=False, score_prisoners=True,
                      score_territory_in_seki=False, default_komi=6.5),
    "chinese": GoRules("chinese", score_stones=True, score_prisoners=False,
                       score_territory_in_seki=True, default_komi=7.5),
    "aga": GoRules("aga", score_stones=True, score_prisoners=False,
                   score_territory_in_seki=True, default_komi=7.5),
    "ing": GoRules("ing", score_stones=True, score_prisoners=False,
                   score_territory_in_seki=True, default_komi=8.0),
    "nz": GoRules("nz", score_stones=True, score_prisoners=False,
                  score_territory_in_seki=True, default_komi=7.0),
}


def get_rules(name: str) -> GoRules:
    try:
        return RULESETS[name.lower()]
    except KeyError:
        raise ValueError(f"unknown ruleset {name!r}; expected one of {sorted(RULESETS)}")


class Board:
    """
    Minimal game engine: a width x height grid of EMPTY/BLACK/WHITE indexed
    [y, x], with captures, prisoner counts, komi, handicap and the ruleset
    flags the score estimator reads.
    """

    def __init__(self, width: int = 19, height: Optional[int] = None,
                 ruleset: str = "japanese", komi: Optional[float] = None,
                 handicap: int = 0, forbid_suicide: bool = True):
        self.width = int(width)
        self.height = int(width if height is None else height)
        if self.width < 1 or self.height < 1:
            raise ValueError("board dimensions must be positive")
        self.rules = get_rules(ruleset)
        self.komi = float(self.rules.default_komi if komi is None else komi)
        self.handicap = int(handicap)
        self._forbid_suicide = bool(forbid_suicide)
        # 0 empty, 1 black stone, 2 white stone
        self.board = np.zeros((self.height, self.width), dtype=np.int8)
        self.turn = BLACK
        # Stones captured BY each player
        self.captures_black = 0
        self.captures_white = 0

    @classmethod
    def from_diagram(cls, rows: Iterable[str], **kwargs) -> "Board":
        """Build a position from rows of 'X' (black), 'O' (white) and '.'; top row is y=0."""
        lines = [r.replace(" ", "") for r in rows if r.strip()]
        if not lines:
            raise ValueError("empty diagram")
        width = len(lines[0])
        if any(len(r) != width for r in lines):
            raise ValueError("diagram rows have different lengths")
        b = cls(width, len(lines), **kwargs)
        for y, row in enumerate(lines):
            for x, ch in enumerate(row):
                if ch in ("X", "x", "B", "b"):
                    b.board[y, x] = BLACK
                elif ch in ("O", "o", "W", "w"):
                    b.board[y, x] = WHITE
                elif ch != ".":
                    raise ValueError(f"unexpected diagram character {ch!r}")
        return b

    # -------------------- rule flags --------------------

    @property
    def score_stones(self) -> bool:
        return self.rules.score_stones

    @property
    def score_prisoners(self) -> bool:
        return self.rules.score_prisoners

    @property
    def score_territory(self) -> bool:
        return self.rules.score_territory

    @property
    def score_territory_in_seki(self) -> bool:
        return self.rules.score_territory_in_seki

    @property
    def black_prisoners(self) -> int:
        return int(self.captures_black)

    @property
    def white_prisoners(self) -> int:
        return int(self.captures_white)

    def handicap_point_adjustment_for_white(self) -> float:
        """Points White is owed under area rules for Black's extra handicap stones."""
        if self.handicap <= 0:
            return 0.0
        if self.rules.name == "chinese":
            return float(self.handicap)
        if self.rules.name == "aga":
            return float(self.handicap - 1)
        return 0.0

    def color_to_move(self) -> str:
        return "black" if self.turn == BLACK else "white"

    # -------------------- moves --------------------

    def pass_turn(self) -> None:
        self.turn = opponent(self.turn)

    def play(self, x: int, y: int, color: Optional[int] = None) -> List[tuple]:
        """Play a stone for `color` (default: side to move); returns captured points."""
        self._check_bounds(x, y)
        color = self.turn if color is None else int(color)
        if self.board[y, x] != EMPTY:
            raise ValueError("Illegal move: point already occupied")
        opp = opponent(color)
        new_board, captures, captured_any = rules.simulate_place_and_capture(self.board, x, y, color, opp)
        if self._forbid_suicide and rules.is_suicide_after(new_board, x, y, captured_any):
            raise ValueError("Illegal move: suicide")
        self.board = new_board
        if color == BLACK:
            self.captures_black += len(captures)
        else:
            self.captures_white += len(captures)
        self.turn = opp
        return captures

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"point ({x}, {y}) is off the {self.width}x{self.height} board")
