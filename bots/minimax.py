"""Minimax bot for Uros.

Depth-limited minimax with alpha-beta pruning inside an iterative-deepening
loop. ``thinking_time_ms`` is a hard upper bound on wall-clock search time:
the deadline is polled at every node, and a depth that cannot finish in time
is thrown away whole. The scores of the last fully completed depth decide the
move.

A node maximises when the side to move is the bot's side. Turns contain two
placements, so the side to move does not simply alternate with depth.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Iterator, Optional, Union

from bots.evaluation import evaluate_position
from bots.interface import (
    CANCELLED, BotConfig, Deadline, SearchResult, SearchStatus, _Cancelled, randomize_choice, run_search,
)
from moves import Move, apply_move, distinct_moves, get_valid_moves
from simulation import clone_state
from state import GameState

logger = logging.getLogger(__name__)

Score = Union[float, _Cancelled]


def distinct_children(game_state: GameState, moves: list[Move]
                      ) -> Iterator[tuple[Move, GameState]]:
    """
    Apply each move to its own clone, skipping moves with a repeated outcome.

    The first move of each outcome is kept, so enumeration order is preserved.
    """
    for move in distinct_moves(moves):
        child = clone_state(game_state)
        if apply_move(child, move):
            yield move, child


class MinimaxBot:
    """Alpha-beta minimax with iterative deepening under a time budget."""

    def __init__(self, player_id: str, config: Optional[BotConfig] = None):
        self.player_id = player_id
        self.config = config or BotConfig()
        self.rng = random.Random(self.config.seed)
        self.last_result: Optional[SearchResult] = None
        self._hit_horizon = False

    @property
    def name(self) -> str:
        return "minimax-some-rng" if self.config.randomize else "minimax"

    def choose_move(self, game_state: GameState) -> Optional[Move]:
        return run_search(self, game_state)

    def search(self, game_state: GameState, moves: list[Move], deadline: Deadline) -> SearchResult:
        me = game_state.current_player

        candidates: list[tuple[Move, GameState]] = []
        for move, child in distinct_children(game_state, moves):
            candidates.append((move, child))
            if deadline.expired():
                break
        if deadline.expired():
            logger.debug("Minimax: deadline passed while expanding %d root moves", len(moves))
            return SearchResult(move=moves[0], score=float('-inf'), status=SearchStatus.CANCELLED)

        completed_depth = 0
        completed_scores: list[float] = []
        for depth in range(1, max(1, self.config.max_search_depth) + 1):
            self._hit_horizon = False
            scores: list[float] = []
            for _, child in candidates:
                score = self._alphabeta(child, depth - 1, -math.inf, math.inf, me, deadline)
                if score is CANCELLED:
                    break
                scores.append(score)
            if len(scores) < len(candidates):
                logger.debug("Minimax: depth %d abandoned after %d/%d moves",
                             depth, len(scores), len(candidates))
                break

            completed_depth = depth
            completed_scores = scores
            if not self._hit_horizon:
                # Every line reached the end of the game; deeper search adds nothing
                break

        if completed_depth == 0:
            return SearchResult(move=moves[0], score=float('-inf'), status=SearchStatus.CANCELLED)

        move, score = randomize_choice([m for m, _ in candidates], completed_scores, self.config, self.rng)
        logger.debug("Minimax: depth %d over %d distinct moves, chose %s (%.2f)",
                     completed_depth, len(candidates), move, score)
        return SearchResult(move=move, score=score, status=SearchStatus.COMPLETED, depth=completed_depth)

    def _alphabeta(self, node: GameState, depth: int, alpha: float, beta: float,
                   me: str, deadline: Deadline) -> Score:
        if deadline.expired():
            return CANCELLED
        if node.game_over:
            return evaluate_position(node, me, self.config.weights)
        if depth == 0:
            self._hit_horizon = True
            return evaluate_position(node, me, self.config.weights)

        moves = get_valid_moves(node)
        if not moves:
            return evaluate_position(node, me, self.config.weights)

        maximizing = node.current_player == me
        best = -math.inf if maximizing else math.inf
        for _, child in distinct_children(node, moves):
            score = self._alphabeta(child, depth - 1, alpha, beta, me, deadline)
            if score is CANCELLED:
                return CANCELLED
            if maximizing:
                best = max(best, score)
                alpha = max(alpha, best)
            else:
                best = min(best, score)
                beta = min(beta, best)
            if beta <= alpha:
                break
        return best
