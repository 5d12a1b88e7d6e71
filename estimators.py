"""
Ownership sources.

A local estimator is any callable

    estimator(board, color_to_move, trials, tolerance) -> ownership

where `board` is a [y, x] array with dead stones already removed
(black = 1, empty = 0, white = -1), `color_to_move` is "black" or "white",
`trials` is the playout budget (ignored by estimators that do not sample)
and `tolerance` in [0, 1] is the confidence needed before a point is
considered owned. The returned array holds 1 for Black, -1 for White and 0
for neutral.

A remote scorer is an async callable taking a ScoreEstimateRequest and
returning a ScoreEstimateResponse.
"""

import asyncio
import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp
import numpy as np

import rules
from errors import RemoteServiceError


logger = logging.getLogger(__name__)

LocalEstimator = Callable[[np.ndarray, str, int, float], np.ndarray]


def _threshold(avg: np.ndarray, tolerance: float) -> np.ndarray:
    out = np.zeros(avg.shape, dtype=np.int8)
    out[avg > tolerance] = 1
    out[avg < -tolerance] = -1
    return out


def area_ownership(grid: np.ndarray) -> np.ndarray:
    """Stones count for their colour, empty regions for the only colour bordering them."""
    grid = np.asarray(grid, dtype=np.int8)
    owner = grid.copy()
    height, width = grid.shape
    seen = np.zeros(grid.shape, dtype=bool)
    for y, x in zip(*np.nonzero(grid == 0)):
        if seen[y, x]:
            continue
        region = rules.flood_fill(grid, int(x), int(y))
        border = set()
        for px, py in region:
            seen[py, px] = True
            for nx, ny in rules.neighbors(width, height, px, py):
                if grid[ny, nx] != 0:
                    border.add(int(grid[ny, nx]))
        if len(border) == 1:
            color = border.pop()
            for px, py in region:
                owner[py, px] = color
    return owner


class PlayoutEstimator:
    """
    Monte-Carlo ownership: play random games to the end from the position,
    never filling a player's own single-point eyes, and average who owns each
    point at the end.
    """

    def __init__(self, seed: Optional[int] = None, max_moves_factor: int = 3):
        self.rng = np.random.RandomState(seed)
        self.max_moves_factor = int(max_moves_factor)

    def __call__(self, board: np.ndarray, color_to_move: str, trials: int, tolerance: float) -> np.ndarray:
        grid = np.asarray(board, dtype=np.int8)
        height, width = grid.shape
        adj = rules.adjacency(width, height)
        start = [int(v) for v in grid.reshape(-1)]
        max_moves = self.max_moves_factor * width * height
        trials = max(1, int(trials))
        totals = np.zeros(grid.shape, dtype=np.float64)
        to_move = 1 if color_to_move == "black" else -1
        for _ in range(trials):
            cells = list(start)
            self._playout(cells, adj, to_move, max_moves)
            totals += area_ownership(np.array(cells, dtype=np.int8).reshape(height, width))
        return _threshold(totals / float(trials), float(tolerance))

    def _playout(self, cells: List[int], adj: List[List[int]], color: int, max_moves: int) -> None:
        empties = [i for i, v in enumerate(cells) if v == 0]
        passes = 0
        for _ in range(max_moves):
            if self._random_move(cells, adj, empties, color):
                passes = 0
            else:
                passes += 1
                if passes >= 2:
                    return
            color = -color

    def _random_move(self, cells: List[int], adj: List[List[int]], empties: List[int], color: int) -> bool:
        # empties[:untried] are the points not yet rejected for this move
        untried = len(empties)
        while untried:
            i = int(self.rng.randint(untried))
            p = empties[i]
            if not rules.is_own_eye(cells, adj, p, color):
                captured = rules.play_in_place(cells, adj, p, color)
                if captured is not None:
                    empties[i] = empties[-1]
                    empties.pop()
                    empties.extend(captured)
                    return True
            untried -= 1
            empties[i], empties[untried] = empties[untried], empties[i]
        return False


class VoronoiEstimator:
    """Each empty point goes to the colour of its nearest stone; ties stay neutral."""

    def __call__(self, board: np.ndarray, color_to_move: str, trials: int, tolerance: float) -> np.ndarray:
        grid = np.asarray(board, dtype=np.int8)
        dist_black = self._distances(grid, 1)
        dist_white = self._distances(grid, -1)
        out = np.zeros(grid.shape, dtype=np.int8)
        out[dist_black < dist_white] = 1
        out[dist_white < dist_black] = -1
        return out

    @staticmethod
    def _distances(grid: np.ndarray, color: int) -> np.ndarray:
        height, width = grid.shape
        dist = np.full(grid.shape, np.inf)
        queue = deque()
        for y, x in zip(*np.nonzero(grid == color)):
            dist[y, x] = 0
            queue.append((int(x), int(y)))
        while queue:
            x, y = queue.popleft()
            for nx, ny in rules.neighbors(width, height, x, y):
                # Distances only flow through empty points
                if grid[ny, nx] == 0 and dist[ny, nx] == np.inf:
                    dist[ny, nx] = dist[y, x] + 1
                    queue.append((nx, ny))
        return dist


# -------------------- remote scoring --------------------

@dataclass
class ScoreEstimateRequest:
    player_to_move: str
    width: int
    height: int
    # [y][x] with black = 1, white = -1, removed stones and empty = 0
    board_state: List[List[int]]
    rules: str
    black_prisoners: Optional[int] = None
    white_prisoners: Optional[int] = None
    komi: Optional[float] = None
    jwt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ScoreEstimateResponse:
    ownership: List[List[float]]
    score: Optional[float] = None
    win_rate: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreEstimateResponse":
        ownership = [[float(v) for v in row] for row in data["ownership"]]
        score = data.get("score")
        win_rate = data.get("win_rate")
        return cls(
            ownership=ownership,
            score=None if score is None else float(score),
            win_rate=None if win_rate is None else float(win_rate),
        )


RemoteScorer = Callable[[ScoreEstimateRequest], Awaitable[ScoreEstimateResponse]]


class HttpRemoteScorer:
    """POST the request as JSON to a scoring service and decode its answer."""

    def __init__(self, url: str, token: str = "", timeout: float = 30.0):
        self.url = url
        self.token = token
        self.timeout = float(timeout)

    async def __call__(self, request: ScoreEstimateRequest) -> ScoreEstimateResponse:
        request.jwt = self.token
        payload = request.to_dict()
        logger.debug(f"posting score estimate request to {self.url} ({request.width}x{request.height})")
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(self.url, json=payload) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        raise RemoteServiceError(
                            f"scoring service answered HTTP {resp.status}",
                            status=resp.status,
                            context={"url": self.url, "body": body[:200]},
                        )
                    data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise RemoteServiceError(f"scoring service unreachable: {e}", context={"url": self.url}) from e
        except asyncio.TimeoutError as e:
            raise RemoteServiceError("scoring service timed out", context={"url": self.url}) from e
        try:
            return ScoreEstimateResponse.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteServiceError("malformed scoring response", context={"url": self.url}) from e
