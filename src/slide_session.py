# slide_session.py
# Game session state and the two operations that produce new sessions:
# starting a game and applying a move.

from typing import List, Optional, Tuple
import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slide_core import (
    DEFAULT_FOUR_PROBABILITY,
    DEFAULT_WIN_TILE,
    DIRECTION,
    GameProgressState,
    RandomSource,
    SpawnedTile,
    determine_game_status,
    initialize_board,
    is_move_available,
    process_move,
    spawn_tile,
    validate_board,
)

__all__ = [
    "GameSettings",
    "GameSession",
    "MoveResult",
    "new_game",
    "apply_move",
    "is_move_available",
]

logger = logging.getLogger(__name__)


class GameSettings(BaseModel):
    """Tunables for a game instance."""
    size: int = Field(default=4, gt=1, description="Dimension N of the N x N board.")
    win_tile: int = Field(default=DEFAULT_WIN_TILE, gt=4, description="Tile value that wins the game.")
    four_probability: float = Field(
        default=DEFAULT_FOUR_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Chance that a spawned tile is a 4 instead of a 2.",
    )

    @classmethod
    def from_env(cls, prefix: str = "SLIDE2048_") -> "GameSettings":
        """Builds settings from `<prefix>SIZE`, `<prefix>WIN_TILE` and `<prefix>FOUR_PROBABILITY`."""
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(prefix + name.upper())
            if raw is not None:
                values[name] = raw
        return cls(**values)


class GameSession(BaseModel):
    """A snapshot of one game. Sessions are never mutated; moves return a new one."""
    model_config = ConfigDict(frozen=True)

    board: List[List[int]]
    score: int = Field(default=0, ge=0)
    best_score: int = Field(default=0, ge=0)
    status: GameProgressState = GameProgressState.IN_PROGRESS
    win_tile: int = Field(default=DEFAULT_WIN_TILE, gt=4)
    four_probability: float = Field(default=DEFAULT_FOUR_PROBABILITY, ge=0.0, le=1.0)

    @field_validator("board")
    @classmethod
    def _check_board(cls, board: List[List[int]]) -> List[List[int]]:
        validate_board(board)
        return board

    @property
    def size(self) -> int:
        return len(self.board)


class MoveResult(BaseModel):
    """What a single move did. Produced fresh for each move."""
    changed: bool
    score_gained: int = Field(default=0, ge=0)
    spawned_tile: Optional[SpawnedTile] = None


def new_game(
    settings: Optional[GameSettings] = None,
    best_score: int = 0,
    rng: Optional[RandomSource] = None,
) -> GameSession:
    """
    Starts a game: an empty board with two spawned tiles and score 0.
    Args:
        settings (GameSettings): Board size, win tile and spawn odds. Defaults apply when omitted.
        best_score (int): Best score carried over from earlier games.
        rng (RandomSource): Source of randomness for the starting tiles.
    Returns:
        GameSession: The fresh session.
    """
    settings = settings or GameSettings()
    board, score, _ = initialize_board(settings.size, rng, settings.four_probability)
    session = GameSession(
        board=board,
        score=score,
        best_score=best_score,
        status=determine_game_status(board, settings.win_tile),
        win_tile=settings.win_tile,
        four_probability=settings.four_probability,
    )
    logger.debug("New %dx%d game, win tile %d", settings.size, settings.size, settings.win_tile)
    return session


def _next_status(current: GameProgressState, board: List[List[int]], win_tile: int) -> GameProgressState:
    # Won and lost are one-way; only a new game leaves them.
    if current is not GameProgressState.IN_PROGRESS:
        return current
    return determine_game_status(board, win_tile)


def apply_move(
    session: GameSession,
    direction: DIRECTION,
    rng: Optional[RandomSource] = None,
) -> Tuple[GameSession, MoveResult]:
    """
    Applies a move and returns the resulting session together with what happened.

    A move that would not change the board returns the same session and spawns
    nothing. Otherwise the score grows by the merged values, one tile is spawned
    and the status is re-evaluated. Moves are still processed after a win.

    Args:
        session (GameSession): The session before the move.
        direction (DIRECTION): The direction to move.
        rng (RandomSource): Source of randomness for the spawned tile.
    Returns:
        Tuple[GameSession, MoveResult]: The new session and the move result.
    """
    board, score_gained, changed = process_move(session.board, direction)
    if not changed:
        return session, MoveResult(changed=False)

    board, spawned = spawn_tile(board, rng, session.four_probability)
    score = session.score + score_gained
    status = _next_status(session.status, board, session.win_tile)
    if status is not session.status:
        logger.info("Game status changed from %s to %s at score %d", session.status.name, status.name, score)

    next_session = session.model_copy(update={
        "board": board,
        "score": score,
        "best_score": max(session.best_score, score),
        "status": status,
    })
    return next_session, MoveResult(changed=True, score_gained=score_gained, spawned_tile=spawned)
