# slide_core.py
# Stateless grid logic for the sliding-tile game: collapsing lines, moving the
# board in one of four directions, spawning tiles and detecting terminal states.

from enum import Enum
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple
import logging
import random

logger = logging.getLogger(__name__)

Grid = List[List[int]]

DEFAULT_WIN_TILE = 2048
DEFAULT_FOUR_PROBABILITY = 0.1


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    IN_PROGRESS = 1
    GAME_OVER = 2  # Lost
    GAME_WON = 3


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4


class RandomSource(Protocol):
    """The subset of `random.Random` the spawner relies on."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence): ...


class SpawnedTile(NamedTuple):
    row: int
    col: int
    value: int


# (transpose, reverse) applied before the leftward pass and undone after it.
_ORIENTATIONS = {
    DIRECTION.LEFT: (False, False),
    DIRECTION.RIGHT: (False, True),
    DIRECTION.UP: (True, False),
    DIRECTION.DOWN: (True, True),
}

_default_rng = random.Random()

# --- Board Helper Functions ---

def get_board_size(board: Grid) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Grid): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def _is_tile_value(value: int) -> bool:
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


def validate_board(board: Grid) -> int:
    """
    Checks that a board is square and that every cell is empty or a power of two >= 2.
    Args:
        board (Grid): The board to check.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is malformed.
    """
    n = get_board_size(board)
    for r, row in enumerate(board):
        for c, value in enumerate(row):
            if isinstance(value, bool) or not isinstance(value, int) or not _is_tile_value(value):
                raise ValueError(f"Invalid tile value {value!r} at ({r}, {c}).")
    return n


def get_empty_cells(board: Grid) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board.
    Args:
        board (Grid): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells, in row-major order.
    """
    n = get_board_size(board)
    return [(row, col) for row in range(n) for col in range(n) if board[row][col] == 0]


def copy_board(board: Grid) -> Grid:
    return [list(row) for row in board]

# --- Tile Spawning ---

def spawn_tile(
    board: Grid,
    rng: Optional[RandomSource] = None,
    four_probability: float = DEFAULT_FOUR_PROBABILITY,
) -> Tuple[Grid, Optional[SpawnedTile]]:
    """
    Places a new tile (2, or 4 with `four_probability`) on a uniformly chosen empty cell.
    Args:
        board (Grid): The current game board. It is not modified.
        rng (RandomSource): Source of randomness. Defaults to a module-level `random.Random`.
        four_probability (float): Chance that the new tile is a 4.
    Returns:
        Tuple[Grid, Optional[SpawnedTile]]: A new board and the tile that was placed,
                                            or a copy of the board and None if it is full.
    """
    rng = rng if rng is not None else _default_rng
    new_board = copy_board(board)
    empty_cells = get_empty_cells(board)
    if not empty_cells:
        logger.debug("No empty cell left, nothing spawned")
        return new_board, None

    row, col = rng.choice(empty_cells)
    value = 4 if rng.random() < four_probability else 2
    new_board[row][col] = value
    logger.debug("Spawned %d at (%d, %d)", value, row, col)
    return new_board, SpawnedTile(row, col, value)


def initialize_board(
    size: int = 4,
    rng: Optional[RandomSource] = None,
    four_probability: float = DEFAULT_FOUR_PROBABILITY,
) -> Tuple[Grid, int, GameProgressState]:
    """
    Initializes a new game board with two random tiles.
    Args:
        size (int): The dimension of the N x N game board. Default is 4.
        rng (RandomSource): Source of randomness for the starting tiles.
        four_probability (float): Chance that a starting tile is a 4.
    Returns:
        Tuple[Grid, int, GameProgressState]: The initial board, score (0),
                                             and game state (IN_PROGRESS).
    Raises:
        ValueError: If board size is not an integer greater than 1.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 1:
        raise ValueError("Board size must be an integer greater than 1.")

    current_board: Grid = [[0] * size for _ in range(size)]
    current_board, _ = spawn_tile(current_board, rng, four_probability)
    current_board, _ = spawn_tile(current_board, rng, four_probability)

    return current_board, 0, GameProgressState.IN_PROGRESS

# --- Line Collapsing ---

def collapse_line(line: Sequence[int]) -> Tuple[List[int], int, bool]:
    """
    Slides and merges one line toward its head (index 0).

    Zeros are dropped, then the remaining tiles are scanned head-first: two equal
    neighbours become one tile of double value and the scan moves past both, so a
    tile takes part in at most one merge. The result is padded with zeros.

    Args:
        line (Sequence[int]): The line, ordered so that index 0 is the destination edge.
    Returns:
        Tuple[List[int], int, bool]: The collapsed line, the score gained (sum of the
                                     merged values) and whether the line changed.
    """
    tiles = [value for value in line if value != 0]
    collapsed: List[int] = []
    score_gained = 0
    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged_value = tiles[i] * 2
            collapsed.append(merged_value)
            score_gained += merged_value
            i += 2
        else:
            collapsed.append(tiles[i])
            i += 1
    collapsed += [0] * (len(line) - len(collapsed))

    changed = any(a != b for a, b in zip(collapsed, line))
    return collapsed, score_gained, changed

# --- Board Transformations ---

def transpose_board(board: Grid) -> Grid:
    """
    Transposes a given board (swaps rows and columns).
    Returns:
        Grid: A new transposed board.
    """
    return [list(column) for column in zip(*board)]


def reverse_rows(board: Grid) -> Grid:
    """
    Reverses each row in a given board.
    Returns:
        Grid: A new board with rows reversed.
    """
    return [row[::-1] for row in board]


def _orient(board: Grid, transpose: bool, reverse: bool) -> Grid:
    oriented = transpose_board(board) if transpose else copy_board(board)
    return reverse_rows(oriented) if reverse else oriented


def _unorient(board: Grid, transpose: bool, reverse: bool) -> Grid:
    restored = reverse_rows(board) if reverse else board
    return transpose_board(restored) if transpose else restored

# --- Core Game Move Processing ---

def process_move(board: Grid, direction: DIRECTION) -> Tuple[Grid, int, bool]:
    """
    Processes a move in the specified direction without touching the input board.

    Every direction is the leftward pass seen through an orientation: columns
    become rows by transposing, and the far edge becomes the head by reversing.

    Args:
        board (Grid): The current game board.
        direction (DIRECTION): The direction to move.
    Returns:
        Tuple[Grid, int, bool]:
            - The new board state after the move.
            - The score gained from this move.
            - A boolean indicating if the board changed as a result of the move.
    """
    transpose, reverse = _ORIENTATIONS[direction]
    lines = _orient(board, transpose, reverse)

    total_score = 0
    board_changed = False
    collapsed_lines = []
    for line in lines:
        collapsed, score, changed = collapse_line(line)
        collapsed_lines.append(collapsed)
        total_score += score
        board_changed = board_changed or changed

    new_board = _unorient(collapsed_lines, transpose, reverse)
    logger.debug("Move %s: changed=%s score=%d", direction.name, board_changed, total_score)
    return new_board, total_score, board_changed

# --- Game State Checks ---

def check_for_win(board: Grid, win_tile: int = DEFAULT_WIN_TILE) -> bool:
    """
    Check if any tile has reached `win_tile`.
    """
    return any(value >= win_tile for row in board for value in row)


def is_move_available(board: Grid) -> bool:
    """
    Checks whether any move can change the board.

    A move exists when there is an empty cell or two equal neighbours. Only the
    right and down neighbours are compared, which covers every adjacent pair.

    Args:
        board (Grid): The game board.
    Returns:
        bool: True if some move is possible, False otherwise.
    """
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            current = board[r][c]
            if current == 0:
                return True
            if c < n - 1 and board[r][c + 1] == current:
                return True
            if r < n - 1 and board[r + 1][c] == current:
                return True
    return False


def determine_game_status(board: Grid, win_tile: int = DEFAULT_WIN_TILE) -> GameProgressState:
    """
    Determines the current progress state of the game based on the board.
    Args:
        board (Grid): The current game board.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        GameProgressState: GAME_WON if a tile reached `win_tile`, GAME_OVER if no
                           move is possible, IN_PROGRESS otherwise.
    """
    if check_for_win(board, win_tile):
        return GameProgressState.GAME_WON
    if not is_move_available(board):
        return GameProgressState.GAME_OVER
    return GameProgressState.IN_PROGRESS
