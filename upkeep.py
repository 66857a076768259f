"""
Upkeep for Uros: the turn state machine and game-over detection.

Every successful placement runs through advance_turn:
- Count the placement against the current turn
- Hand the turn over once the required placements are made (1 on the opening
  turn, 2 on every turn after it)
- Check whether the player about to move can still play, and latch the result
  if not
"""

from typing import Dict, Optional

from models import BLUE, RED, opponent_of
from placement import has_open_house_cell, has_placeable_tile
from state import GameState, log_event
from villages import decide_winner, score_players


def advance_turn(game_state: GameState) -> None:
    """
    Record one successful placement and move the turn machine forward.

    Args:
        game_state: State that has just had a tile or house placed
    """
    game_state.move_count += 1
    game_state.placements_this_turn += 1

    if game_state.placements_this_turn >= game_state.placements_required:
        previous = game_state.current_player
        if game_state.is_first_turn:
            game_state.current_player = BLUE
            game_state.is_first_turn = False
        else:
            game_state.current_player = opponent_of(previous)
        game_state.placements_this_turn = 0
        game_state.placements_required = 2
        log_event(game_state, f"Turn passes from {previous} to {game_state.current_player}",
                  previous_player=previous, next_player=game_state.current_player)

    check_game_over(game_state)


def can_move(game_state: GameState, player_id: str) -> bool:
    """True if the player has at least one legal tile or house placement."""
    if has_placeable_tile(game_state):
        return True
    player = game_state.get_player_by_id(player_id)
    return player is not None and player.houses > 0 and has_open_house_cell(game_state)


def check_game_over(game_state: GameState) -> bool:
    """
    Check whether the player about to move is out of play.

    The game ends when that player has no houses left and no reedbed tile fits
    on the board, or when they have no legal move of any kind.

    Returns:
        True if the game is over (newly or already)
    """
    if game_state.game_over:
        return True

    player = game_state.get_player_by_id(game_state.current_player)
    if player is None:
        return False

    if can_move(game_state, player.id):
        return False

    reason = 'out_of_houses' if player.houses == 0 else 'no_legal_moves'
    end_game(game_state, reason)
    return True


def end_game(game_state: GameState, reason: str = 'out_of_houses') -> None:
    """
    Latch the final result. Scores are computed once and never again.

    Args:
        game_state: State to finish
        reason: Why the game ended, recorded in the log
    """
    if game_state.game_over:
        return

    scores = score_players(game_state)
    game_state.final_scores = scores
    game_state.winner = decide_winner(scores[RED], scores[BLUE])
    game_state.game_over = True

    outcome = f"{game_state.winner} wins" if game_state.winner else "draw"
    log_event(game_state, f"Game over: {outcome}", reason=reason, winner=game_state.winner,
              final_scores={pid: score.to_dict() for pid, score in scores.items()})


def get_final_result(game_state: GameState) -> Optional[Dict]:
    """
    Get the latched result of a finished game.

    Returns:
        Dict with 'winner' (None for a draw) and 'scores', or None while the
        game is running
    """
    if not game_state.game_over:
        return None
    return {
        'winner': game_state.winner,
        'is_draw': game_state.winner is None,
        'scores': {pid: score.to_dict() for pid, score in game_state.final_scores.items()},
    }
