import numpy as np

import rules


def _flat(rows):
    grid = np.array(rows, dtype=np.int8)
    height, width = grid.shape
    return [int(v) for v in grid.reshape(-1)], rules.adjacency(width, height), width


def test_adjacency_matches_neighbors():
    adj = rules.adjacency(3, 2)
    assert adj[0] == [1, 3]
    assert sorted(adj[4]) == [1, 3, 5]
    assert len(adj) == 6


def test_flood_fill_collects_region():
    grid = np.array([
        [1, 1, 0],
        [0, 1, 0],
        [0, 0, -1],
    ], dtype=np.int8)
    assert sorted(rules.flood_fill(grid, 0, 0)) == [(0, 0), (1, 0), (1, 1)]
    assert sorted(rules.flood_fill(grid, 2, 0)) == [(2, 0), (2, 1)]


def test_play_in_place_refuses_suicide():
    cells, adj, width = _flat([
        [0, -1, 0],
        [-1, 0, 0],
    ])
    assert rules.play_in_place(cells, adj, 0, 1) is None
    assert cells == [0, -1, 0, -1, 0, 0]


def test_play_in_place_captures_before_checking_liberties():
    cells, adj, width = _flat([
        [0, -1, 1],
        [-1, 1, 0],
        [0, 0, 0],
    ])
    # the corner stone has no liberty of its own until the white stone on its right comes off
    captured = rules.play_in_place(cells, adj, 0, 1)
    assert captured == [1]
    assert cells[:3] == [1, 0, 1]
    assert cells[width] == -1


def test_own_eye():
    cells, adj, width = _flat([
        [0, 1, 0],
        [1, 0, 0],
    ])
    assert rules.is_own_eye(cells, adj, 0, 1)
    assert not rules.is_own_eye(cells, adj, 0, -1)
    assert not rules.is_own_eye(cells, adj, 2, 1)
