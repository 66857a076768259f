"""Monte-Carlo playout bot for Uros.

Flat Monte-Carlo over the root moves: each simulation picks the least-tried
move (ties broken at random), plays it on a clone, finishes the game with
uniformly random moves and scores the result with simulation.outcome_score.
Root moves that lead to the same position are sampled once, as one candidate.

Search stops when the time budget runs out or, once every move has at least
``mcts_min_simulations`` playouts, when every move's running win rate has
settled: over the last ``mcts_convergence_window`` samples, the older half and
the newer half average within ``mcts_convergence_threshold`` of each other.

If the budget runs out before every candidate has one finished playout, the
result is CANCELLED: the best sampled move is still returned, but unsampled
moves were never compared against it.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Optional

from bots.interface import (
    CANCELLED, BotConfig, Deadline, SearchResult, SearchStatus, randomize_choice, run_search,
)
from moves import Move, apply_move, distinct_moves, random_legal_move
from simulation import clone_state, outcome_score
from state import GameState

logger = logging.getLogger(__name__)


class MonteCarloBot:
    """Time-boxed random playouts with convergence-based early stopping."""

    name = "mcts"

    def __init__(self, player_id: str, config: Optional[BotConfig] = None):
        self.player_id = player_id
        self.config = config or BotConfig()
        self.rng = random.Random(self.config.seed)
        self.last_result: Optional[SearchResult] = None

    def choose_move(self, game_state: GameState) -> Optional[Move]:
        return run_search(self, game_state)

    def search(self, game_state: GameState, moves: list[Move], deadline: Deadline) -> SearchResult:
        me = game_state.current_player
        window = max(2, self.config.mcts_convergence_window)
        candidates = distinct_moves(moves)

        simulations = [0] * len(candidates)
        totals = [0.0] * len(candidates)
        recent_rates = [deque(maxlen=window) for _ in candidates]
        converged = False

        while not deadline.expired():
            fewest = min(simulations)
            index = self.rng.choice([i for i, n in enumerate(simulations) if n == fewest])

            score = self._simulate(game_state, candidates[index], me, deadline)
            if score is CANCELLED:
                break

            simulations[index] += 1
            totals[index] += score
            recent_rates[index].append(totals[index] / simulations[index])

            if min(simulations) >= self.config.mcts_min_simulations and self._converged(recent_rates, window):
                converged = True
                break

        averages = [
            totals[i] / simulations[i] if simulations[i] else float('-inf')
            for i in range(len(candidates))
        ]
        total_sims = sum(simulations)
        choice = randomize_choice(candidates, averages, self.config, self.rng)
        move, score = choice if choice else (moves[0], float('-inf'))

        status = SearchStatus.COMPLETED if min(simulations) > 0 else SearchStatus.CANCELLED
        logger.debug("MCTS: %d playouts over %d moves (%s, %d unsampled), chose %s (%.3f)",
                     total_sims, len(candidates), "converged" if converged else "time limit",
                     simulations.count(0), move, score)
        return SearchResult(move=move, score=score, status=status, simulations=total_sims)

    def _converged(self, recent_rates: list[deque], window: int) -> bool:
        half = window // 2
        for rates in recent_rates:
            if len(rates) < window:
                return False
            samples = list(rates)
            old = sum(samples[:half]) / half
            new = sum(samples[-half:]) / half
            if abs(new - old) > self.config.mcts_convergence_threshold:
                return False
        return True

    def _simulate(self, game_state: GameState, move: Move, me: str, deadline: Deadline):
        """One playout; CANCELLED if the deadline passes before it finishes."""
        sim = clone_state(game_state)
        if not apply_move(sim, move):
            return -1.0

        cap = sim.board_size ** 2
        played = 0
        while not sim.game_over and played < cap:
            if deadline.expired():
                return CANCELLED
            option = random_legal_move(sim, self.rng)
            if option is None:
                break
            apply_move(sim, option)
            played += 1
        return outcome_score(sim, me)
