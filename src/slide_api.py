from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from typing import List, Optional
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import logging

import slide_core
from slide_session import GameSession, GameSettings, apply_move, new_game

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Sliding Tile Game API",
    description="A stateless API for playing the sliding-tile game. "\
                "Manage your game state (board, score, best score, status) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=4,
        gt=1, # Board size must be at least 2x2
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: int = Field(
        default=slide_core.DEFAULT_WIN_TILE,
        gt=4, # Starting tiles are 2 or 4
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )
    best_score: int = Field(default=0, ge=0, description="Best score from earlier games, carried over.")


class SpawnedTileData(BaseModel):
    row: int
    col: int
    value: int


class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The N x N game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    best_score: int = Field(..., ge=0, description="Best score seen so far, including this game.")
    progress: slide_core.GameProgressState = Field(
        ...,
        description="Current progress state of the game (IN_PROGRESS, GAME_WON, GAME_OVER)."
    )
    win_tile: int = Field(..., gt=4, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    move_available: bool = Field(..., description="Whether any move can still change the board.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current N x N game board state before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    best_score: int = Field(default=0, ge=0, description="Best score before the move.")
    progress: slide_core.GameProgressState = Field(
        default=slide_core.GameProgressState.IN_PROGRESS,
        description="Progress state before the move; GAME_WON and GAME_OVER are kept once reached."
    )
    direction: slide_core.DIRECTION = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT)."
    )
    win_tile: int = Field(..., gt=4, description="The win condition tile for this game instance.")


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_gained: int = Field(default=0, ge=0, description="Score gained by this move.")
    spawned_tile: Optional[SpawnedTileData] = Field(
        default=None,
        description="The tile placed after an effective move, if any."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


def _state_fields(session: GameSession) -> dict:
    return dict(
        board=session.board,
        score=session.score,
        best_score=session.best_score,
        progress=session.status,
        win_tile=session.win_tile,
        board_size=session.size,
        move_available=slide_core.is_move_available(session.board),
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New Game")
@limiter.limit("100/minute")
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game based on the provided settings (size and win_tile).

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4). Default is 4.
    - **win_tile**: Tile value to reach to win (e.g., 2048). Default is 2048.
    - **best_score**: Best score to carry into the new game. Default is 0.

    Returns the initial game state, including the board with two random tiles,
    score (0), progress status (IN_PROGRESS), and the specified win_tile.
    """
    try:
        session = new_game(
            GameSettings(size=settings.size, win_tile=settings.win_tile),
            best_score=settings.best_score,
        )
        return GameStateData(**_state_fields(session))
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected error in /game/new")
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit("100/minute")
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    Requires the current `board` state, `score`, the `direction` of the move,
    and the `win_tile` for this game instance.

    The API will:
    1. Attempt to process the move (slide tiles, merge).
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (IN_PROGRESS, GAME_WON, GAME_OVER).

    Returns the updated game state, whether the move was effective, and an optional message.
    """
    try:
        session = GameSession(
            board=request_data.board,
            score=request_data.score,
            best_score=max(request_data.best_score, request_data.score),
            status=request_data.progress,
            win_tile=request_data.win_tile,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")

    try:
        next_session, result = apply_move(session, request_data.direction)
    except Exception as e:
        logger.exception("Unexpected error in /game/move")
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    message_for_client: Optional[str] = None
    if not result.changed:
        message_for_client = "Move was not effective; board state unchanged by slide."
    if next_session.status == slide_core.GameProgressState.GAME_WON:
        message_for_client = "Congratulations! You won!"
    elif next_session.status == slide_core.GameProgressState.GAME_OVER:
        message_for_client = "Game Over. No more valid moves."

    spawned = result.spawned_tile
    return MoveResponseData(
        **_state_fields(next_session),
        move_was_effective=result.changed,
        score_gained=result.score_gained,
        spawned_tile=SpawnedTileData(**spawned._asdict()) if spawned else None,
        message=message_for_client
    )


class BoardCheckData(BaseModel):
    """A board to evaluate without moving."""
    board: List[List[int]] = Field(..., description="The N x N game board to evaluate.")
    win_tile: int = Field(default=slide_core.DEFAULT_WIN_TILE, gt=4, description="The win condition tile.")


class BoardCheckResult(BaseModel):
    progress: slide_core.GameProgressState
    move_available: bool


@app.post("/game/check", response_model=BoardCheckResult, summary="Evaluate a Board")
@limiter.limit("100/minute")
async def check_board(request: Request, request_data: BoardCheckData):
    """Reports the progress state of a board and whether any move is still possible."""
    try:
        slide_core.validate_board(request_data.board)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")

    return BoardCheckResult(
        progress=slide_core.determine_game_status(request_data.board, request_data.win_tile),
        move_available=slide_core.is_move_available(request_data.board),
    )
