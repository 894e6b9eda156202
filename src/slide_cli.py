# slide_cli.py
# This file is intended to be run to play the sliding-tile game on the CLI

import logging
import os

from slide_core import DIRECTION, GameProgressState
from slide_session import GameSession, GameSettings, apply_move, is_move_available, new_game

logger = logging.getLogger(__name__)

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}


def main():
    logging.basicConfig(level=os.environ.get("SLIDE2048_LOG_LEVEL", "WARNING").upper())
    settings = GameSettings.from_env()

    # 1. Initialize game
    session = new_game(settings)
    display_board_state(session)

    # 2. Game Loop; play continues after a win, and a stuck board offers a restart
    while True:
        if is_move_available(session.board):
            prompt = "Enter move (W/A/S/D for Up/Left/Down/Right, R to restart, Q to quit): "
        else:
            print("No more moves possible. Better luck next time!")
            prompt = "Press R to restart or Q to quit: "
        move_input = input(prompt).strip().upper()

        if move_input == 'Q':
            print("Quitting game.")
            break

        if move_input == 'R':
            session = new_game(settings, best_score=session.best_score)
            display_board_state(session)
            continue

        chosen_direction = DIRECTION_KEYS.get(move_input)
        if not chosen_direction:
            print("Invalid input. Use W, A, S, D.")
            continue

        # 3. Process the move; a tile is spawned only when the board changed
        previous_status = session.status
        session, result = apply_move(session, chosen_direction)
        if not result.changed:
            print("Move did not change the board. Try a different direction.")
            continue

        display_board_state(session)
        if previous_status != GameProgressState.GAME_WON and session.status == GameProgressState.GAME_WON:
            print(f"You win! You reached the {session.win_tile} tile. Keep going or press Q to quit.")

    # 4. Game Ended
    print("\n--- Final Board State ---")
    display_board_state(session)


def render_board(session: GameSession) -> str:
    """Formats the board, score, and game status as plain text."""
    width = max(len(str(value)) for row in session.board for value in row) + 1
    lines = [
        f"Score: {session.score}    Best: {session.best_score}",
        {
            GameProgressState.IN_PROGRESS: f"Status: {session.status.name}",
            GameProgressState.GAME_WON: "YOU WON!",
            GameProgressState.GAME_OVER: "GAME OVER!",
        }[session.status],
    ]
    for row in session.board:
        lines.append("".join((str(value) if value else ".").rjust(width) for value in row))
    lines.append("-" * (session.size * width))
    return "\n".join(lines)


def display_board_state(session: GameSession):
    """Prints the board, score, and game status to the console."""
    print()
    print(render_board(session))


if __name__ == "__main__":
    main()
