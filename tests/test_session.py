import random

import pytest
from pydantic import ValidationError

from slide_core import DIRECTION, GameProgressState, get_empty_cells
from slide_session import GameSession, GameSettings, apply_move, is_move_available, new_game
from conftest import ExplodingRandom, ScriptedRandom


def empty(n=4):
    return [[0] * n for _ in range(n)]


def test_new_game_defaults():
    session = new_game(rng=random.Random(3))
    assert session.size == 4
    assert len(get_empty_cells(session.board)) == 14
    assert session.score == 0
    assert session.best_score == 0
    assert session.status == GameProgressState.IN_PROGRESS
    assert session.win_tile == 2048


def test_new_game_uses_settings_and_keeps_best_score():
    session = new_game(GameSettings(size=5, win_tile=512), best_score=300, rng=random.Random(3))
    assert session.size == 5
    assert session.win_tile == 512
    assert session.best_score == 300


def test_new_game_starting_tiles_follow_four_probability():
    session = new_game(GameSettings(four_probability=1.0), rng=ScriptedRandom(rolls=[0.5, 0.5]))
    assert sorted(v for row in session.board for v in row if v) == [4, 4]

    session = new_game(GameSettings(four_probability=0.0), rng=ScriptedRandom(rolls=[0.0, 0.0]))
    assert sorted(v for row in session.board for v in row if v) == [2, 2]


@pytest.mark.parametrize("win_tile", [2, 4])
def test_win_tile_must_exceed_starting_tiles(win_tile):
    with pytest.raises(ValidationError):
        GameSettings(win_tile=win_tile)
    with pytest.raises(ValidationError):
        GameSession(board=empty(), win_tile=win_tile)


def test_smallest_win_tile_starts_in_progress():
    session = new_game(GameSettings(win_tile=8, four_probability=1.0), rng=random.Random(0))
    assert session.status == GameProgressState.IN_PROGRESS


@pytest.mark.parametrize("board", [
    [[2, 0], [0]],
    [[3, 0], [0, 0]],
    [[-2, 0], [0, 0]],
    [],
])
def test_session_rejects_malformed_board(board):
    with pytest.raises(ValidationError):
        GameSession(board=board)


def test_session_is_frozen():
    session = GameSession(board=empty())
    with pytest.raises(ValidationError):
        session.score = 10


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SLIDE2048_SIZE", "6")
    monkeypatch.setenv("SLIDE2048_WIN_TILE", "256")
    settings = GameSettings.from_env()
    assert settings.size == 6
    assert settings.win_tile == 256
    assert settings.four_probability == 0.1


def test_settings_reject_tiny_board():
    with pytest.raises(ValidationError):
        GameSettings(size=1)


def test_noop_move_returns_same_session_without_spawning():
    board = empty()
    board[0][0] = 2
    board[1][0] = 4
    session = GameSession(board=board, score=12, best_score=20)

    next_session, result = apply_move(session, DIRECTION.LEFT, ExplodingRandom())
    assert next_session is session
    assert next_session.board == board
    assert next_session.score == 12
    assert result.changed is False
    assert result.score_gained == 0
    assert result.spawned_tile is None


def test_move_updates_score_best_score_and_spawns():
    board = empty()
    board[0][2] = 2
    board[0][3] = 2
    session = GameSession(board=board, score=10, best_score=10)

    next_session, result = apply_move(session, DIRECTION.LEFT, ScriptedRandom(picks=[0], rolls=[0.9]))
    assert result.changed is True
    assert result.score_gained == 4
    assert result.spawned_tile == (0, 1, 2)
    assert next_session.board[0] == [4, 2, 0, 0]
    assert next_session.score == 14
    assert next_session.best_score == 14
    # the original session is left as it was
    assert session.board[0] == [0, 0, 2, 2]
    assert session.score == 10


def test_best_score_not_lowered():
    board = empty()
    board[3][0] = 8
    board[3][3] = 8
    session = GameSession(board=board, score=0, best_score=500)
    next_session, _ = apply_move(session, DIRECTION.RIGHT, random.Random(1))
    assert next_session.score == 16
    assert next_session.best_score == 500


def test_merge_only_move_on_full_board_spawns_into_vacated_cell():
    board = [
        [2, 2, 4, 8],
        [4, 8, 16, 32],
        [8, 16, 32, 64],
        [16, 32, 64, 128],
    ]
    session = GameSession(board=board)
    next_session, result = apply_move(session, DIRECTION.LEFT, ScriptedRandom(rolls=[0.5]))
    assert result.changed is True
    assert result.score_gained == 4
    assert result.spawned_tile == (0, 3, 2)
    assert next_session.board[0] == [4, 4, 8, 2]
    assert get_empty_cells(next_session.board) == []


def test_tile_sum_and_invariants_over_random_play():
    rng = random.Random(42)
    session = new_game(rng=rng)
    directions = list(DIRECTION)
    for _ in range(300):
        before = sum(map(sum, session.board))
        score_before = session.score
        session_after, result = apply_move(session, rng.choice(directions), rng)
        after = sum(map(sum, session_after.board))
        if result.changed:
            assert result.spawned_tile is not None
            assert after == before + result.spawned_tile.value
            assert session_after.score == score_before + result.score_gained
        else:
            assert after == before
            assert session_after is session
        assert session_after.score >= score_before
        assert all(v == 0 or (v >= 2 and v & (v - 1) == 0) for row in session_after.board for v in row)
        session = session_after
        if not is_move_available(session.board):
            break


def test_reaching_win_tile_sets_won_and_play_continues():
    board = empty()
    board[0][0] = 4
    board[0][1] = 4
    session = GameSession(board=board, win_tile=8)

    session, result = apply_move(session, DIRECTION.LEFT, ScriptedRandom())
    assert result.changed is True
    assert session.status == GameProgressState.GAME_WON

    session, result = apply_move(session, DIRECTION.DOWN, ScriptedRandom())
    assert result.changed is True
    assert session.status == GameProgressState.GAME_WON


def test_lost_is_final():
    session = GameSession(board=[[2, 4], [8, 0]])
    session, result = apply_move(session, DIRECTION.RIGHT, ScriptedRandom(rolls=[0.05]))
    assert result.spawned_tile == (1, 0, 4)
    assert session.board == [[2, 4], [4, 8]]
    assert session.status == GameProgressState.GAME_OVER
    assert is_move_available(session.board) is False

    for direction in DIRECTION:
        next_session, result = apply_move(session, direction, ExplodingRandom())
        assert result.changed is False
        assert next_session.status == GameProgressState.GAME_OVER


def test_won_status_is_kept_after_later_moves():
    board = empty(2)
    board[0][0] = 16
    board[0][1] = 2
    session = GameSession(board=board, status=GameProgressState.GAME_WON)
    session, result = apply_move(session, DIRECTION.DOWN, ScriptedRandom())
    assert result.changed is True
    assert session.status == GameProgressState.GAME_WON


def test_won_status_survives_a_stuck_board():
    session = GameSession(board=[[2, 4], [8, 0]], status=GameProgressState.GAME_WON)
    session, result = apply_move(session, DIRECTION.RIGHT, ScriptedRandom(rolls=[0.05]))
    assert result.changed is True
    assert session.board == [[2, 4], [4, 8]]
    assert is_move_available(session.board) is False
    assert session.status == GameProgressState.GAME_WON
