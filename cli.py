import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional

from board import Board, RULESETS
from config import EstimatorConfig
from estimators import PlayoutEstimator, VoronoiEstimator
from go_utils import GTP_ALPHABET, gtp_coord, parse_gtp_coord
from score_estimator import ScoreEstimator


HELP = ("Commands: boardsize W [H] | rules NAME | komi K | handicap N | play b|w COORD|pass | "
        "showboard | estimate | toggle COORD | remove COORD | dead | removed | score | exit")


class ReviewSession:
    """State for one interactive scoring review: the game plus its estimator."""

    def __init__(self, config: EstimatorConfig, width: int = 9, height: Optional[int] = None,
                 ruleset: str = "japanese", komi: Optional[float] = None, voronoi: bool = True):
        self.config = config
        self.voronoi = bool(voronoi)
        self.board = Board(width, height, ruleset=ruleset, komi=komi)
        self.estimator: Optional[ScoreEstimator] = None

    def _local_estimator(self):
        if self.voronoi:
            return VoronoiEstimator()
        return PlayoutEstimator(seed=self.config.seed)

    def ensure_estimator(self) -> ScoreEstimator:
        if self.estimator is None:
            self.estimator = ScoreEstimator(self.board, config=self.config,
                                            local_estimator=self._local_estimator())
        return self.estimator

    def invalidate(self) -> None:
        self.estimator = None


def render_board(b: Board, removal=None) -> str:
    """Text diagram; removed stones are shown in lower case."""
    lines = ["Turn: " + ("B" if b.color_to_move() == "black" else "W")]
    lines.append("   " + " ".join(GTP_ALPHABET[:b.width]))
    for y in range(b.height):
        row_syms = []
        for x in range(b.width):
            v = int(b.board[y, x])
            dead = removal is not None and bool(removal[y, x])
            if v == 1:
                row_syms.append("x" if dead else "X")
            elif v == 2:
                row_syms.append("o" if dead else "O")
            else:
                row_syms.append("," if dead else ".")
        lines.append(f"{b.height - y:>2} " + " ".join(row_syms))
    return "\n".join(lines)


def _format_score(se: ScoreEstimator) -> str:
    b, w = se.black, se.white
    diff = b.total - w.total
    if diff > 0:
        head = f"B+{diff:.1f}"
    elif diff < 0:
        head = f"W+{-diff:.1f}"
    else:
        head = "Draw"
    return (f"{head} (B: stones={b.stones} territory={b.territory} prisoners={b.prisoners} total={b.total:g}; "
            f"W: stones={w.stones} territory={w.territory} prisoners={w.prisoners} komi={w.komi:g} "
            f"handicap={w.handicap} total={w.total:g})")


def handle_command(session: ReviewSession, line: str) -> str:
    """Run one command and return the reply ('= ...' on success, '? ...' on error)."""
    parts = line.split()
    if not parts:
        return ""
    cmd = parts[0].lower()
    b = session.board

    if cmd == "help":
        return "= " + HELP
    if cmd == "boardsize":
        try:
            w = int(parts[1])
            h = int(parts[2]) if len(parts) > 2 else w
            if not (1 <= w <= 25 and 1 <= h <= 25):
                raise ValueError()
        except (IndexError, ValueError):
            return "? usage: boardsize W [H] (1..25)"
        session.board = Board(w, h, ruleset=b.rules.name, komi=b.komi, handicap=b.handicap)
        session.invalidate()
        return f"= size set to {w}x{h}"
    if cmd == "rules":
        if len(parts) < 2 or parts[1].lower() not in RULESETS:
            return "? usage: rules " + "|".join(sorted(RULESETS))
        nb = Board(b.width, b.height, ruleset=parts[1].lower(), handicap=b.handicap)
        nb.board = b.board.copy()
        nb.turn = b.turn
        nb.captures_black, nb.captures_white = b.captures_black, b.captures_white
        session.board = nb
        session.invalidate()
        return f"= rules {nb.rules.name} (komi {nb.komi:g})"
    if cmd in ("komi", "handicap"):
        try:
            value = float(parts[1]) if cmd == "komi" else int(parts[1])
        except (IndexError, ValueError):
            return f"? usage: {cmd} VALUE"
        setattr(b, cmd, value)
        session.invalidate()
        return f"= {cmd} {value:g}"
    if cmd in ("showboard", "show_board"):
        removal = session.estimator.removal if session.estimator is not None else None
        return "=\n" + render_board(b, removal)
    if cmd == "play":
        if len(parts) < 3:
            return "? usage: play b|w COORD|pass"
        color = parts[1].lower()
        if color not in ("b", "black", "w", "white"):
            return "? invalid color (use b|w)"
        try:
            pt = parse_gtp_coord(parts[2], b.width, b.height)
        except ValueError:
            return "? invalid coordinate (e.g., A7 or PASS)"
        b.turn = 1 if color.startswith("b") else 2
        if pt is None:
            b.pass_turn()
            session.invalidate()
            return "= pass"
        try:
            captures = b.play(*pt)
        except ValueError as e:
            return f"? {e}"
        session.invalidate()
        return f"= played {parts[2].upper()}" + (f" capturing {len(captures)}" if captures else "")
    if cmd == "estimate":
        se = session.ensure_estimator()
        return f"= {se.winner} by {se.amount:.1f}"
    if cmd in ("toggle", "remove"):
        if len(parts) < 2:
            return f"? usage: {cmd} COORD"
        try:
            pt = parse_gtp_coord(parts[1], b.width, b.height)
        except ValueError:
            pt = None
        if pt is None:
            return "? invalid coordinate"
        se = session.ensure_estimator()
        # 'toggle' marks the whole dead shape, 'remove' just the one group
        se.handle_click(pt[0], pt[1], mod_key=(cmd == "remove"))
        state = "removed" if se.removal[pt[1], pt[0]] else "restored"
        return f"= {state} {gtp_coord(pt[0], pt[1], b.height)}; {se.winner} by {se.amount:.1f}"
    if cmd == "dead":
        return "= " + session.ensure_estimator().get_probably_dead()
    if cmd == "removed":
        return "= " + session.ensure_estimator().get_stone_removal_string()
    if cmd in ("score", "finalscore"):
        return "= " + _format_score(session.ensure_estimator().score())
    return "? unknown command"


def cli(session: ReviewSession) -> None:
    print("score review ready. " + HELP)
    while True:
        try:
            line = input("> ").strip()
        except EOFError:
            break
        if not line:
            continue
        if line.split()[0].lower() in ("exit", "quit"):
            break
        print(handle_command(session, line))


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="interactive Go score review")
    parser.add_argument("--size", type=int, default=9)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--rules", default="japanese", choices=sorted(RULESETS))
    parser.add_argument("--komi", type=float, default=None)
    parser.add_argument("--trials", type=int, default=None)
    parser.add_argument("--tolerance", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--playouts", action="store_true",
                        help="estimate with random playouts instead of nearest-stone distance")
    parser.add_argument("--remote-url", default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = EstimatorConfig.from_env()
    overrides = {}
    if args.trials is not None:
        overrides["trials"] = args.trials
    if args.tolerance is not None:
        overrides["tolerance"] = args.tolerance
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.remote_url:
        overrides["remote_url"] = args.remote_url
        overrides["prefer_remote"] = True
    if overrides:
        cfg = replace(cfg, **overrides)

    session = ReviewSession(cfg, args.size, args.height, ruleset=args.rules, komi=args.komi,
                            voronoi=not args.playouts)
    cli(session)


if __name__ == "__main__":
    main(sys.argv[1:])
