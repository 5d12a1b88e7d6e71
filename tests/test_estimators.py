import numpy as np
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer

from errors import RemoteServiceError
from estimators import (HttpRemoteScorer, PlayoutEstimator, ScoreEstimateRequest,
                        ScoreEstimateResponse, VoronoiEstimator, area_ownership)


def test_voronoi_assigns_nearest_colour():
    board = np.array([[1, 0, 0, 0, -1]], dtype=np.int8)
    ownership = VoronoiEstimator()(board, "black", 0, 0.0)
    assert ownership.tolist() == [[1, 1, 0, -1, -1]]


def test_voronoi_on_empty_board_is_neutral():
    ownership = VoronoiEstimator()(np.zeros((3, 4), dtype=np.int8), "white", 0, 0.0)
    assert not ownership.any()


def test_area_ownership_counts_surrounded_space():
    board = np.array([
        [0, 1, 0],
        [1, 1, -1],
        [0, -1, 0],
    ], dtype=np.int8)
    assert area_ownership(board).tolist() == [
        [1, 1, 0],
        [1, 1, -1],
        [0, -1, -1],
    ]


@pytest.mark.parametrize("to_move", ["black", "white"])
def test_playouts_leave_two_eyed_group_alone(to_move):
    # black owns the board with two single-point eyes: no legal, non-eye-filling moves
    board = np.array([
        [0, 1, 1],
        [1, 1, 1],
        [1, 1, 0],
    ], dtype=np.int8)
    ownership = PlayoutEstimator(seed=7)(board, to_move, 5, 0.25)
    assert ownership.tolist() == [[1, 1, 1], [1, 1, 1], [1, 1, 1]]


def test_playouts_are_reproducible_with_a_seed():
    board = np.zeros((4, 4), dtype=np.int8)
    board[1, 1] = 1
    board[2, 2] = -1
    a = PlayoutEstimator(seed=3)(board, "black", 4, 0.25)
    b = PlayoutEstimator(seed=3)(board, "black", 4, 0.25)
    np.testing.assert_array_equal(a, b)
    assert set(np.unique(a).tolist()) <= {-1, 0, 1}


def test_playouts_finish_on_a_full_size_board():
    board = np.zeros((19, 19), dtype=np.int8)
    board[3, 3] = 1
    board[15, 15] = -1
    ownership = PlayoutEstimator(seed=5)(board, "black", 3, 0.0)
    assert ownership.shape == (19, 19)
    assert set(np.unique(ownership).tolist()) <= {-1, 0, 1}
    # after a full random game almost every point belongs to someone
    assert np.count_nonzero(ownership) > 19 * 19 // 2


def test_request_omits_unset_fields():
    request = ScoreEstimateRequest("black", 2, 1, [[1, 0]], "japanese")
    assert request.to_dict() == {
        "player_to_move": "black",
        "width": 2,
        "height": 1,
        "board_state": [[1, 0]],
        "rules": "japanese",
        "jwt": "",
    }


def test_response_decoding():
    resp = ScoreEstimateResponse.from_dict({"ownership": [[1, -1]], "score": "2.5"})
    assert resp.ownership == [[1.0, -1.0]]
    assert resp.score == 2.5
    assert resp.win_rate is None


async def _serve(handler):
    app = web.Application()
    app.router.add_post("/score", handler)
    server = AiohttpTestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_http_scorer_round_trip():
    received = {}

    async def handler(request):
        received.update(await request.json())
        return web.json_response({"ownership": [[1, -1]], "score": 1.5, "win_rate": 0.6})

    server = await _serve(handler)
    try:
        scorer = HttpRemoteScorer(str(server.make_url("/score")), token="secret", timeout=5.0)
        resp = await scorer(ScoreEstimateRequest("white", 2, 1, [[1, -1]], "chinese", komi=7.5))
    finally:
        await server.close()
    assert received["jwt"] == "secret"
    assert received["board_state"] == [[1, -1]]
    assert received["komi"] == 7.5
    assert resp.score == 1.5
    assert resp.win_rate == 0.6


@pytest.mark.asyncio
async def test_http_scorer_reports_error_status():
    async def handler(request):
        return web.Response(status=503, text="overloaded")

    server = await _serve(handler)
    try:
        scorer = HttpRemoteScorer(str(server.make_url("/score")), timeout=5.0)
        with pytest.raises(RemoteServiceError) as info:
            await scorer(ScoreEstimateRequest("black", 1, 1, [[0]], "japanese"))
    finally:
        await server.close()
    assert info.value.status == 503


@pytest.mark.asyncio
async def test_http_scorer_rejects_malformed_body():
    async def handler(request):
        return web.json_response({"score": 1.0})

    server = await _serve(handler)
    try:
        scorer = HttpRemoteScorer(str(server.make_url("/score")), timeout=5.0)
        with pytest.raises(RemoteServiceError):
            await scorer(ScoreEstimateRequest("black", 1, 1, [[0]], "japanese"))
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_http_scorer_unreachable():
    scorer = HttpRemoteScorer("http://127.0.0.1:9/score", timeout=2.0)
    with pytest.raises(RemoteServiceError):
        await scorer(ScoreEstimateRequest("black", 1, 1, [[0]], "japanese"))
