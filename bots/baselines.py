"""
Baseline bots for calibrating the search strategies.

1. DeterministicBot: first enumerated move, fully reproducible
2. RandomBot: uniform over legal moves, the absolute floor

A search strategy that cannot beat RandomBot is broken.
"""

from __future__ import annotations

import random
from typing import Optional

from bots.interface import BotConfig, Deadline, SearchResult, run_search
from moves import Move
from state import GameState


class DeterministicBot:
    """Plays the first move in enumeration order."""

    name = "deterministic"

    def __init__(self, player_id: str, config: Optional[BotConfig] = None):
        self.player_id = player_id
        self.config = config or BotConfig()
        self.last_result: Optional[SearchResult] = None

    def choose_move(self, game_state: GameState) -> Optional[Move]:
        return run_search(self, game_state)

    def search(self, game_state: GameState, moves: list[Move], deadline: Deadline) -> SearchResult:
        return SearchResult(move=moves[0])


class RandomBot:
    """Plays a uniformly random legal move from its own RNG."""

    name = "random"

    def __init__(self, player_id: str, config: Optional[BotConfig] = None):
        self.player_id = player_id
        self.config = config or BotConfig()
        self.rng = random.Random(self.config.seed)
        self.last_result: Optional[SearchResult] = None

    def choose_move(self, game_state: GameState) -> Optional[Move]:
        return run_search(self, game_state)

    def search(self, game_state: GameState, moves: list[Move], deadline: Deadline) -> SearchResult:
        return SearchResult(move=self.rng.choice(moves))
