from __future__ import annotations

from typing import Generator, List, Optional, Set, Tuple

import numpy as np


def neighbors(width: int, height: int, x: int, y: int) -> Generator[Tuple[int, int], None, None]:
    """Yield board-adjacent coordinates within bounds (left, right, up, down)."""
    if x > 0:
        yield x - 1, y
    if x < width - 1:
        yield x + 1, y
    if y > 0:
        yield x, y - 1
    if y < height - 1:
        yield x, y + 1


def flood_fill(grid: np.ndarray, x: int, y: int) -> List[Tuple[int, int]]:
    """
    Return every point of the maximal 4-connected region sharing the value at
    (x, y), in the order the iterative fill reaches them. Works for empty
    regions as well as stones.
    """
    value = int(grid[y, x])
    height, width = grid.shape
    stack: List[Tuple[int, int]] = [(x, y)]
    visited: Set[Tuple[int, int]] = {(x, y)}
    order: List[Tuple[int, int]] = []
    while stack:
        cx, cy = stack.pop()
        order.append((cx, cy))
        for nx, ny in neighbors(width, height, cx, cy):
            if (nx, ny) not in visited and int(grid[ny, nx]) == value:
                visited.add((nx, ny))
                stack.append((nx, ny))
    return order


def collect_group_and_liberties(grid: np.ndarray, x: int, y: int) -> Tuple[Set[Tuple[int, int]], Set[Tuple[int, int]]]:
    """
    Given a grid and a starting stone at (x, y), return the connected group set
    and its liberties set.
    """
    color = int(grid[y, x])
    assert color != 0
    height, width = grid.shape
    stack: List[Tuple[int, int]] = [(x, y)]
    visited: Set[Tuple[int, int]] = {(x, y)}
    libs: Set[Tuple[int, int]] = set()
    while stack:
        cx, cy = stack.pop()
        for nx, ny in neighbors(width, height, cx, cy):
            v = int(grid[ny, nx])
            if v == 0:
                libs.add((nx, ny))
            elif v == color and (nx, ny) not in visited:
                visited.add((nx, ny))
                stack.append((nx, ny))
    return visited, libs


def simulate_place_and_capture(grid: np.ndarray,
                               x: int,
                               y: int,
                               color: int,
                               opp: int) -> Tuple[np.ndarray, List[Tuple[int, int]], bool]:
    """
    Simulate placing a stone of `color` at (x, y) on a COPY of grid.
    Returns (new_grid, captured_points, captured_any). Works with either the
    0/1/2 or the 0/1/-1 encoding, since the opponent value is passed in.
    """
    height, width = grid.shape
    new_grid = grid.copy()
    new_grid[y, x] = color
    captures: List[Tuple[int, int]] = []
    for nx, ny in neighbors(width, height, x, y):
        if int(new_grid[ny, nx]) == opp:
            group, libs = collect_group_and_liberties(new_grid, nx, ny)
            if len(libs) == 0:
                for gx, gy in group:
                    captures.append((gx, gy))
                    new_grid[gy, gx] = 0
    return new_grid, captures, bool(captures)


def is_suicide_after(grid: np.ndarray, x: int, y: int, captured_any: bool) -> bool:
    """
    After a hypothetical placement (and applying captures if any), return True
    if the placed stone's group has no liberties AND no captures occurred.
    """
    _group, libs = collect_group_and_liberties(grid, x, y)
    return (not captured_any) and (len(libs) == 0)


# -------------------- flat boards --------------------
# Playouts work on a flat list indexed y * width + x with signed stones
# (1 / -1 / 0) and a precomputed neighbour table, placing stones in place.


def adjacency(width: int, height: int) -> List[List[int]]:
    """Neighbour indices of every point of a flat width x height board."""
    return [[ny * width + nx for nx, ny in neighbors(width, height, i % width, i // width)]
            for i in range(width * height)]


def dead_chain(cells: List[int], adj: List[List[int]], start: int) -> List[int]:
    """Points of the chain at `start` if it has no liberty, otherwise []."""
    color = cells[start]
    stack = [start]
    seen = {start}
    while stack:
        p = stack.pop()
        for n in adj[p]:
            v = cells[n]
            if v == 0:
                return []
            if v == color and n not in seen:
                seen.add(n)
                stack.append(n)
    return list(seen)


def play_in_place(cells: List[int], adj: List[List[int]], p: int, color: int) -> Optional[List[int]]:
    """
    Put a `color` stone on the empty point p and take off opponent chains left
    without liberties. Returns the captured points, or None with the board
    unchanged when the move would be suicide.
    """
    cells[p] = color
    captured: List[int] = []
    for n in adj[p]:
        if cells[n] == -color:
            chain = dead_chain(cells, adj, n)
            for q in chain:
                cells[q] = 0
            captured.extend(chain)
    if not captured and dead_chain(cells, adj, p):
        cells[p] = 0
        return None
    return captured


def is_own_eye(cells: List[int], adj: List[List[int]], p: int, color: int) -> bool:
    """True if every orthogonal neighbour of the empty point p is `color`."""
    return all(cells[n] == color for n in adj[p])
