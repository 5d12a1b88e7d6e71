"""
Interactive score estimation for a finished (or nearly finished) game.

The estimator snapshots the engine's board, partitions it into connected
groups and asks an ownership source for a heat map. The user then marks dead
stones; every change re-runs the estimate. `score()` is the authoritative
count: it works from the board with dead stones taken off and the territory
classification of a freshly built group graph, and does not look at the
heat map at all.

Ordering of estimates: every call to `estimate_score` takes a new generation
number and its result is only applied if no later call has started in the
meantime (last-started wins).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from config import EstimatorConfig
from errors import ConfigurationError, MalformedInputError, RemoteServiceError
from estimators import (HttpRemoteScorer, LocalEstimator, PlayoutEstimator, RemoteScorer,
                        ScoreEstimateRequest)
from go_utils import BLACK, EMPTY, WHITE, encode_move, encode_moves, make_matrix, sorted_move_string, to_signed
from removal import RemovalPropagation
from score_adjust import adjust_estimate
from stone_groups import ConnectedGroup, GroupGraph, SekiRule


logger = logging.getLogger(__name__)


@dataclass
class PlayerScore:
    total: float = 0.0
    stones: int = 0
    territory: int = 0
    prisoners: int = 0
    # Encoded coordinates credited to the player, for display
    scoring_positions: str = ""
    handicap: int = 0
    komi: float = 0.0


class ScoreEstimator:
    def __init__(self,
                 engine,
                 trials: Optional[int] = None,
                 tolerance: Optional[float] = None,
                 prefer_remote: Optional[bool] = None,
                 callback: Any = None,
                 local_estimator: Optional[LocalEstimator] = None,
                 remote_scorer: Optional[RemoteScorer] = None,
                 config: Optional[EstimatorConfig] = None,
                 seki_rule: Optional[SekiRule] = None):
        self.config = config or EstimatorConfig()
        self.engine = engine
        self.width = int(engine.width)
        self.height = int(engine.height)
        board = np.asarray(engine.board)
        if board.shape != (self.height, self.width):
            raise MalformedInputError(
                "engine board does not match its reported dimensions",
                context={"width": self.width, "height": self.height, "shape": tuple(board.shape)},
            )
        self.callback = callback
        self.color_to_move = engine.color_to_move()
        self.board = board.astype(np.int8, copy=True)
        self.removal = make_matrix(self.width, self.height, 0, dtype=np.int8)
        self.ownership = make_matrix(self.width, self.height, 0)
        self.estimated_hard_score = 0.0
        self.amount = float("nan")
        self.winner = ""
        self.win_rate: Optional[float] = None
        self.trials = int(trials or self.config.trials)
        self.tolerance = float(self.config.tolerance if tolerance is None else tolerance)
        self.prefer_remote = bool(self.config.prefer_remote if prefer_remote is None else prefer_remote)
        self.seki_rule = seki_rule
        self.local_estimator = local_estimator or PlayoutEstimator(seed=self.config.seed)
        if remote_scorer is None and self.config.remote_url:
            remote_scorer = HttpRemoteScorer(self.config.remote_url, self.config.remote_token,
                                             self.config.remote_timeout)
        self.remote_scorer = remote_scorer
        self.black = PlayerScore()
        self.white = PlayerScore()

        self._generation = 0
        self._initial_task: Optional[asyncio.Task] = None
        self._initial_error: Optional[BaseException] = None
        self._refresh_task: Optional[asyncio.Task] = None

        self.reset_groups()
        self._start_initial_estimate()

    # -------------------- readiness --------------------

    def _start_initial_estimate(self) -> None:
        coro = self.estimate_score(self.trials, self.tolerance)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None:
            # No event loop: run the first estimate to completion right here
            try:
                asyncio.run(coro)
            except Exception as e:
                logger.warning(f"initial score estimate failed: {e}")
                self._initial_error = e
            return
        self._initial_task = loop.create_task(coro)
        self._initial_task.add_done_callback(self._log_initial_failure)

    @staticmethod
    def _log_initial_failure(task: "asyncio.Task") -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"initial score estimate failed: {task.exception()}")

    async def when_ready(self) -> None:
        """Wait for the estimate started at construction; re-raises its failure."""
        if self._initial_task is not None:
            await self._initial_task
        elif self._initial_error is not None:
            raise self._initial_error

    # -------------------- estimation --------------------

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, token: int) -> bool:
        if token != self._generation:
            logger.debug(f"dropping stale estimate {token} (latest is {self._generation})")
            return True
        return False

    def _use_remote(self) -> bool:
        limit = int(self.config.remote_max_size)
        if not self.prefer_remote or self.height > limit or self.width > limit:
            return False
        return self.remote_scorer is not None

    def _signed_board(self) -> np.ndarray:
        """Board as estimators see it: black 1, white -1, removed stones and empty 0."""
        signed = to_signed(self.board)
        signed[self.removal != 0] = 0
        return signed

    async def estimate_score(self, trials: Optional[int] = None, tolerance: Optional[float] = None) -> None:
        if self._use_remote():
            await self.estimate_score_remote()
        else:
            await self.estimate_score_local(trials, tolerance)

    async def estimate_score_remote(self) -> None:
        if self.remote_scorer is None:
            raise ConfigurationError("Remote scoring not set up")
        token = self._next_generation()
        engine = self.engine
        komi = float(engine.komi)
        captures_delta = (engine.black_prisoners - engine.white_prisoners) if engine.score_prisoners else 0

        request = ScoreEstimateRequest(
            player_to_move=engine.color_to_move(),
            width=self.width,
            height=self.height,
            board_state=self._signed_board().tolist(),
            rules=engine.rules.name,
            black_prisoners=int(engine.black_prisoners),
            white_prisoners=int(engine.white_prisoners),
            komi=komi,
        )
        logger.info(f"requesting remote score estimate for {self.width}x{self.height} board")
        response = await self.remote_scorer(request)

        ownership = np.asarray(response.ownership, dtype=np.float64)
        if ownership.shape != (self.height, self.width):
            raise RemoteServiceError(
                "ownership map does not match the board",
                context={"shape": tuple(ownership.shape), "width": self.width, "height": self.height},
            )
        score_estimate = float(np.where(ownership > 0, 1, -1).sum())
        score = float(response.score or 0.0)
        # The service always scores with the reference komi
        score += float(self.config.reference_komi) - komi
        score += captures_delta
        score -= engine.handicap_point_adjustment_for_white()

        if self._is_stale(token):
            return
        self.win_rate = response.win_rate
        self.update_estimate(score_estimate, ownership, score)

    async def estimate_score_local(self, trials: Optional[int] = None, tolerance: Optional[float] = None) -> None:
        token = self._next_generation()
        trials = int(trials or self.trials or 1000)
        tolerance = float(self.tolerance if tolerance is None else tolerance)
        board = self._signed_board()

        ownership = await asyncio.to_thread(
            self.local_estimator, board, self.engine.color_to_move(), trials, tolerance
        )
        ownership = np.asarray(ownership, dtype=np.float64)
        estimated_score = float(ownership.sum())
        adjusted = adjust_estimate(self.engine, self.board, ownership, estimated_score)

        if self._is_stale(token):
            return
        self.update_estimate(adjusted.score, adjusted.ownership)

    def update_estimate(self, estimated_score: float, ownership: np.ndarray, score: Optional[float] = None) -> None:
        self.ownership = np.asarray(ownership, dtype=np.float64)
        self.estimated_hard_score = float(estimated_score) - float(self.engine.komi)

        if score is None:
            self.winner = "Black" if self.estimated_hard_score > 0 else "White"
            self.amount = abs(self.estimated_hard_score)
        else:
            self.winner = "Black" if score > 0 else "White"
            self.amount = abs(float(score))

        self._call_back("update_score_estimation")

    def _call_back(self, name: str, *args) -> None:
        fn: Optional[Callable] = getattr(self.callback, name, None)
        if fn is None:
            return
        try:
            fn(*args)
        except Exception:
            logger.exception(f"score estimator callback {name} failed")

    def _on_point_removed(self, x: int, y: int, removed: int) -> None:
        fn = getattr(self.callback, "set_for_removal", None)
        if fn is not None:
            fn(x, y, removed)

    async def _refresh_quietly(self) -> None:
        try:
            await self.estimate_score(self.trials, self.tolerance)
        except Exception as e:
            logger.warning(f"score estimate refresh failed: {e}")

    def _refresh(self) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._refresh_quietly())
            return None
        self._refresh_task = loop.create_task(self._refresh_quietly())
        return self._refresh_task

    # -------------------- groups & removal --------------------

    def reset_groups(self) -> None:
        self.groups = GroupGraph(self.board, seki_rule=self.seki_rule)
        for group in self.groups:
            group.removed = any(self.removal[y, x] for x, y in group.points)
        self._removal_ops = RemovalPropagation(self.groups, self.removal, self._on_point_removed)

    @property
    def group_list(self):
        return self.groups.groups

    def get_group(self, x: int, y: int) -> Optional[ConnectedGroup]:
        return self.groups.group_at(x, y)

    def foreach_group(self, fn: Callable[[ConnectedGroup], None]) -> None:
        self.groups.foreach_group(fn)

    def handle_click(self, x: int, y: int, mod_key: bool = False) -> Optional[asyncio.Task]:
        """
        Plain click marks the whole dead shape at (x, y); with the modifier key
        only the single group there is flipped. Either way the estimate is
        refreshed, and a failing refresh is logged, not raised.
        """
        if mod_key:
            group = self.get_group(x, y)
            if group is not None:
                self.set_removed(x, y, not group.removed)
        else:
            self.toggle_meta_group_removal(x, y)
        return self._refresh()

    def toggle_meta_group_removal(self, x: int, y: int):
        return self._removal_ops.toggle_meta_group_removal(x, y)

    def set_removed(self, x: int, y: int, removed: bool):
        return self._removal_ops.set_removed(x, y, bool(removed))

    def clear_removed(self) -> None:
        self._removal_ops.clear_removed()

    # -------------------- encodings --------------------

    def get_probably_dead(self) -> str:
        points = []
        for y in range(self.height):
            for x in range(self.width):
                current = int(self.board[y, x])
                own = float(self.ownership[y, x])
                if own < -self.tolerance:
                    estimated = WHITE
                elif own > self.tolerance:
                    estimated = BLACK
                else:
                    estimated = EMPTY
                if estimated == EMPTY or (current != EMPTY and current != estimated):
                    points.append((x, y))
        return sorted_move_string(points)

    def get_stone_removal_string(self) -> str:
        ys, xs = np.nonzero(self.removal)
        return sorted_move_string(zip(xs.tolist(), ys.tolist()))

    # -------------------- final scoring --------------------

    def score(self) -> "ScoreEstimator":
        """
        Official count from the current removal state: dead stones come off,
        territory is classified on the cleaned board, and each side's stones,
        territory, prisoners, komi and handicap are tallied per the ruleset.

        Territory flagged as seki is skipped unless the ruleset scores it; with
        the default seki rule that includes territory next to unfilled dame.
        """
        engine = self.engine
        self.white = PlayerScore(handicap=int(engine.handicap), komi=float(engine.komi))
        self.black = PlayerScore()

        board = np.asarray(engine.board).astype(np.int8, copy=True)
        removed_black = int(((self.removal != 0) & (board == BLACK)).sum())
        removed_white = int(((self.removal != 0) & (board == WHITE)).sum())
        board[self.removal != 0] = EMPTY
        self.board = board

        if engine.score_territory:
            graph = GroupGraph(board, seki_rule=self.seki_rule)
            for group in graph:
                if not group.is_territory:
                    continue
                if not engine.score_territory_in_seki and group.is_territory_in_seki:
                    continue
                player = self.black if group.territory_color == BLACK else self.white
                player.territory += len(group.points)
                player.scoring_positions += encode_moves(group.points)

        if engine.score_stones:
            for y in range(self.height):
                for x in range(self.width):
                    if board[y, x] == BLACK:
                        self.black.stones += 1
                        self.black.scoring_positions += encode_move(x, y)
                    elif board[y, x] == WHITE:
                        self.white.stones += 1
                        self.white.scoring_positions += encode_move(x, y)

        if engine.score_prisoners:
            self.black.prisoners = int(engine.black_prisoners) + removed_white
            self.white.prisoners = int(engine.white_prisoners) + removed_black

        for player in (self.black, self.white):
            player.total = player.stones + player.territory + player.prisoners + player.komi
            if engine.score_stones:
                player.total += player.handicap

        return self
