"""
Strategy interface for Uros bots.

Every bot answers one question: given a game state, which move should the side
to move play? Bots read the state they are given and never mutate it; any
lookahead happens on clones from simulation.clone_state.

Usage:
    bot = create_bot('minimax', 'blue', thinking_time_ms=500, seed=7)
    move = bot.choose_move(engine.get_game_state())
    result = bot.last_result  # SearchResult with status, score, depth

Bots do not share a base class. Each one satisfies Strategy, and the search
bots route choose_move through run_search, which owns the deadline and the
move list and hands both to the bot's search method.

A search that runs out of time reports SearchStatus.CANCELLED in its result.
That is not an error, and it is distinct from NO_MOVES and from a completed
search that found only bad moves.
"""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from moves import Move, get_valid_moves
from state import DEFAULT_CONFIG, GameState


class SearchStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_MOVES = "no-moves"


class _Cancelled:
    """Marker returned by search routines whose deadline passed mid-unit."""

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = _Cancelled()


@dataclass
class BotConfig:
    thinking_time_ms: int = 1000
    randomize: bool = False
    random_threshold: float = 0.1
    seed: Optional[int] = None
    max_search_depth: int = 8
    mcts_min_simulations: int = 30
    mcts_convergence_window: int = 20
    mcts_convergence_threshold: float = 0.01
    weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG['evaluation_weights'])
    )

    @classmethod
    def from_config(cls, config: Optional[dict[str, Any]] = None, **overrides) -> BotConfig:
        """
        Build a bot config from the engine config plus per-bot overrides.

        Args:
            config: Engine config as returned by state.load_config
            **overrides: BotConfig fields; None values are ignored

        Raises:
            ValueError: for an unknown override name
        """
        config = config or DEFAULT_CONFIG
        bot_config = cls(
            thinking_time_ms=config.get('thinking_time_ms', 1000),
            random_threshold=config.get('random_threshold', 0.1),
            max_search_depth=config.get('max_search_depth', 8),
            mcts_min_simulations=config.get('mcts_min_simulations', 30),
            mcts_convergence_window=config.get('mcts_convergence_window', 20),
            mcts_convergence_threshold=config.get('mcts_convergence_threshold', 0.01),
            weights={**DEFAULT_CONFIG['evaluation_weights'], **config.get('evaluation_weights', {})},
        )
        for key, value in overrides.items():
            if not hasattr(bot_config, key):
                raise ValueError(f"Unknown bot option: {key}")
            if value is not None:
                setattr(bot_config, key, value)
        return bot_config


class Deadline:
    """Wall-clock budget for one search, on the monotonic clock."""

    def __init__(self, budget_ms: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.started = clock()
        self.budget_ms = budget_ms

    def elapsed_ms(self) -> float:
        return (self._clock() - self.started) * 1000

    def remaining_ms(self) -> float:
        return max(0.0, self.budget_ms - self.elapsed_ms())

    def expired(self) -> bool:
        return self.elapsed_ms() >= self.budget_ms


@dataclass
class SearchResult:
    move: Optional[Move]
    score: float = 0.0
    status: SearchStatus = SearchStatus.COMPLETED
    depth: int = 0  # Deepest completed minimax depth
    simulations: int = 0  # Monte-Carlo playouts counted
    elapsed_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            'move': self.move.to_dict() if self.move else None,
            'score': self.score if math.isfinite(self.score) else None,
            'status': self.status.value,
            'depth': self.depth,
            'simulations': self.simulations,
            'elapsed_ms': round(self.elapsed_ms, 1),
        }


@runtime_checkable
class Strategy(Protocol):
    """What drivers call: the engine, the API, the CLI and the match runner."""

    name: str
    last_result: Optional[SearchResult]

    def choose_move(self, game_state: GameState) -> Optional[Move]:
        ...


def randomize_choice(
    moves: Sequence[Move],
    scores: Sequence[float],
    config: BotConfig,
    rng: random.Random,
) -> Optional[tuple[Move, float]]:
    """
    Pick a move from scored candidates.

    Without randomization the first strictly best move wins. With it, every
    move within random_threshold * |best| of the best score is equally likely.
    NaN scores are never viable.

    Returns:
        (move, score), or None if there are no moves
    """
    if not moves:
        return None
    if len(scores) != len(moves):
        return moves[0], 0.0

    if not config.randomize:
        best_index = 0
        for i in range(1, len(scores)):
            if scores[i] > scores[best_index]:
                best_index = i
        return moves[best_index], scores[best_index]

    best = max((s for s in scores if not math.isnan(s)), default=float('nan'))
    viable = [
        (move, score) for move, score in zip(moves, scores)
        if not math.isnan(score) and best - score <= config.random_threshold * abs(best)
    ]
    if not viable:
        return moves[0], scores[0]
    return rng.choice(viable)


class Searcher(Protocol):
    """What run_search needs from a bot."""

    config: BotConfig
    last_result: Optional[SearchResult]

    def search(self, game_state: GameState, moves: list[Move], deadline: Deadline) -> SearchResult:
        """Pick among a non-empty list of legal moves before the deadline."""
        ...


def run_search(bot: Searcher, game_state: GameState) -> Optional[Move]:
    """
    Choose a move for the side to move with a bot's search.

    The deadline starts before the legal moves are enumerated, so enumeration
    is charged to the bot's thinking time. If it has already run out when the
    search would start, the first legal move is played and the result is
    CANCELLED.

    Returns:
        A move from get_valid_moves(game_state), or None if there is none
    """
    deadline = Deadline(bot.config.thinking_time_ms)
    moves = get_valid_moves(game_state)
    if not moves:
        result = SearchResult(move=None, score=float('-inf'), status=SearchStatus.NO_MOVES)
    elif deadline.expired():
        result = SearchResult(move=moves[0], score=float('-inf'), status=SearchStatus.CANCELLED)
    else:
        result = bot.search(game_state, moves, deadline)
    result.elapsed_ms = deadline.elapsed_ms()
    bot.last_result = result
    return result.move
