from typing import Iterable, List, Optional, Tuple

import numpy as np


EMPTY = 0
BLACK = 1
WHITE = 2

# SGF-style coordinate alphabet, one character per axis
COORD_ALPHABET = "abcdefghijklmnopqrstuvwxyz"
# Sorts after every letter; one per full pass of the alphabet for axes >= 26
EXTENDED_PREFIX = "~"


def make_matrix(width: int, height: int, fill: float = 0, dtype=np.float64) -> np.ndarray:
    """Return a (height, width) array indexed [y, x]."""
    return np.full((int(height), int(width)), fill, dtype=dtype)


def opponent(color: int) -> int:
    if color == BLACK:
        return WHITE
    if color == WHITE:
        return BLACK
    return EMPTY


def to_signed(board: np.ndarray) -> np.ndarray:
    """Convert a 0/1/2 board into the 0/1/-1 representation estimators use."""
    signed = np.zeros(board.shape, dtype=np.int8)
    signed[board == BLACK] = 1
    signed[board == WHITE] = -1
    return signed


def _encode_axis(c: int) -> str:
    c = int(c)
    if c < 0:
        raise ValueError(f"negative coordinate: {c}")
    laps, rest = divmod(c, len(COORD_ALPHABET))
    return EXTENDED_PREFIX * laps + COORD_ALPHABET[rest]


def encode_move(x: int, y: int) -> str:
    """
    Token for (x, y). Coordinates below 26 are one letter each ("aa" .. "zz");
    larger ones carry a '~' per 26, so tokens keep sorting in (x, y) order on
    boards of any size.
    """
    return _encode_axis(x) + _encode_axis(y)


def encode_moves(points: Iterable[Tuple[int, int]]) -> str:
    return "".join(encode_move(x, y) for x, y in points)


def decode_moves(encoded: str) -> List[Tuple[int, int]]:
    coords: List[int] = []
    laps = 0
    for ch in encoded:
        if ch == EXTENDED_PREFIX:
            laps += 1
            continue
        idx = COORD_ALPHABET.find(ch)
        if idx < 0:
            raise ValueError(f"unexpected character {ch!r} in encoded moves")
        coords.append(laps * len(COORD_ALPHABET) + idx)
        laps = 0
    if laps or len(coords) % 2 != 0:
        raise ValueError("encoded move string is truncated")
    return list(zip(coords[0::2], coords[1::2]))


def sorted_move_string(points: Iterable[Tuple[int, int]]) -> str:
    """Concatenate the encoded tokens of `points` in lexicographic token order."""
    return "".join(sorted(encode_move(x, y) for x, y in points))


# Human-facing coordinates (A1 bottom-left, 'I' skipped per Go convention)
GTP_ALPHABET = "ABCDEFGHJKLMNOPQRSTUVWXYZ"


def parse_gtp_coord(s: str, width: int, height: int) -> Optional[Tuple[int, int]]:
    """Parse 'D4' style coordinates into (x, y); returns None for PASS."""
    if s is None:
        raise ValueError("empty coord")
    s = s.strip().upper()
    if s == "PASS":
        return None
    if len(s) < 2:
        raise ValueError("coord too short")
    letters = GTP_ALPHABET[:width]
    if s[0] not in letters:
        raise ValueError("invalid column letter")
    try:
        row_num = int(s[1:])
    except ValueError:
        raise ValueError("invalid row number")
    if not (1 <= row_num <= height):
        raise ValueError("row out of range")
    return letters.index(s[0]), height - row_num


def gtp_coord(x: int, y: int, height: int) -> str:
    return f"{GTP_ALPHABET[int(x)]}{int(height) - int(y)}"
