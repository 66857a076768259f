"""
Simulation harness for Uros.

Search strategies never touch the authoritative game: they clone it, play
speculative moves on the clone and score the result. This module provides the
clone, the uniformly random playout used by Monte-Carlo search, the playout
scoring scheme, and a bot-vs-bot match runner used by the CLI and the tests.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models import BLUE, RED, Player, VillageScore, opponent_of
from moves import Move, apply_move, random_legal_move
from state import GameState
from villages import score_players

logger = logging.getLogger(__name__)

MAX_MATCH_MOVES = 500  # Safety valve for run_match


def clone_state(game_state: GameState) -> GameState:
    """
    Deep copy a game state for lookahead.

    Tiles, house grids and players are copied; board cells are re-pointed at
    the copied placed tiles. The event log is not carried over and the clone
    does not record one.
    """
    placed_tiles = [placed.copy() for placed in game_state.placed_tiles]
    by_id = {placed.id: placed for placed in placed_tiles}
    board = [
        [by_id[cell.id] if cell is not None else None for cell in row]
        for row in game_state.board
    ]
    return GameState(
        game_id=game_state.game_id,
        board_size=game_state.board_size,
        houses_per_player=game_state.houses_per_player,
        board=board,
        placed_tiles=placed_tiles,
        reedbed=[tile.copy() for tile in game_state.reedbed],
        players=[Player(id=p.id, houses=p.houses) for p in game_state.players],
        current_player=game_state.current_player,
        is_first_turn=game_state.is_first_turn,
        placements_this_turn=game_state.placements_this_turn,
        placements_required=game_state.placements_required,
        game_over=game_state.game_over,
        winner=game_state.winner,
        final_scores={
            pid: VillageScore(score.size, score.islands)
            for pid, score in game_state.final_scores.items()
        },
        move_count=game_state.move_count,
        log=[],
        record_log=False,
    )


def play_random_game(game_state: GameState, rng: random.Random,
                     max_moves: Optional[int] = None) -> GameState:
    """
    Play uniformly random legal moves until the game ends or the cap is hit.

    Mutates the given state; callers pass a clone they own.

    Args:
        game_state: State to play out
        rng: Random source for move choice
        max_moves: Move cap (default: board_size squared)

    Returns:
        The same state, finished or capped
    """
    if max_moves is None:
        max_moves = game_state.board_size ** 2
    played = 0
    while not game_state.game_over and played < max_moves:
        move = random_legal_move(game_state, rng)
        if move is None:
            break
        apply_move(game_state, move)
        played += 1
    return game_state


def outcome_score(game_state: GameState, player_id: str) -> float:
    """
    Score a position from one player's point of view.

    +1/-1 for a win or loss on largest village size, +0.5/-0.5 when sizes are
    equal and islands spanned decide it, 0 for a full draw. A finished game
    uses its latched scores; an unfinished one is judged on the current board.
    """
    scores = game_state.final_scores if game_state.game_over else score_players(game_state)
    own = scores.get(player_id, VillageScore())
    other = scores.get(opponent_of(player_id), VillageScore())

    if own.size != other.size:
        return 1.0 if own.size > other.size else -1.0
    if own.islands != other.islands:
        return 0.5 if own.islands > other.islands else -0.5
    return 0.0


@dataclass
class GameRecord:
    """Post-mortem record of a bot-vs-bot game."""
    red_strategy: str
    blue_strategy: str
    winner: Optional[str] = None
    finished: bool = False  # False if the move cap ended the game
    moves: int = 0
    scores: Dict[str, Dict[str, int]] = field(default_factory=dict)
    think_ms: Dict[str, float] = field(default_factory=lambda: {RED: 0.0, BLUE: 0.0})
    statuses: List[str] = field(default_factory=list)  # Search status per bot move
    history: List[Dict[str, Any]] = field(default_factory=list)


def run_match(red_bot, blue_bot, engine=None, seed: Optional[int] = None,
              max_moves: int = MAX_MATCH_MOVES,
              on_move: Optional[Callable[[GameState, str, Move], None]] = None) -> GameRecord:
    """
    Run a complete game between two strategies.

    Any object with a name and a choose_move method can play, including a
    human at a prompt. A strategy that returns None ends the game early.

    Args:
        red_bot: Strategy playing red
        blue_bot: Strategy playing blue
        engine: Engine to play on (default: a fresh one seeded with `seed`)
        seed: Seed for a fresh engine
        max_moves: Safety valve on the number of committed moves
        on_move: Called with (state, player id, move) after each committed move

    Returns:
        GameRecord for the game
    """
    from engine import Engine

    if engine is None:
        engine = Engine(seed=seed)
    bots = {RED: red_bot, BLUE: blue_bot}
    record = GameRecord(red_strategy=red_bot.name, blue_strategy=blue_bot.name)

    while not engine.is_game_over() and record.moves < max_moves:
        state = engine.get_game_state()
        player_id = state.current_player
        bot = bots[player_id]

        started = time.monotonic()
        move: Optional[Move] = bot.choose_move(state)
        record.think_ms[player_id] += (time.monotonic() - started) * 1000
        result = getattr(bot, 'last_result', None)
        if result is not None:
            record.statuses.append(result.status.value)

        if move is None or not engine.make_move(move):
            logger.warning("%s bot (%s) produced no legal move: %s", player_id, bot.name, move)
            break
        record.history.append(move.to_dict())
        record.moves += 1
        if on_move is not None:
            on_move(engine.get_game_state(), player_id, move)

    final = engine.get_game_state()
    record.finished = final.game_over
    record.winner = final.winner if final.game_over else None
    scores = final.final_scores if final.game_over else score_players(final)
    record.scores = {pid: score.to_dict() for pid, score in scores.items()}
    return record
