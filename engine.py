"""
Engine facade for a single authoritative Uros game.

Drivers (the Flask API, the CLI, the match runner) talk to the rules only
through this class: query the state, enumerate legal moves, commit a move and
read the result. Bots get the state from here and return moves; they never
mutate it.
"""

import logging
import random
from typing import Any, Dict, List, Optional

from bots import Strategy, create_bot
from diagnostics import DiagnosticsClient
from models import PLAYER_IDS, Tile, VillageScore
from moves import Move, apply_move, get_valid_moves
from placement import rotate_tile
from state import GameState, get_game_summary, initialize_game, load_config, log_event
from villages import Village, calculate_villages

logger = logging.getLogger(__name__)


class Engine:
    """Owns one game state and every mutation made to it."""

    def __init__(self, tiles: Optional[List[Tile]] = None, board_size: Optional[int] = None,
                 houses_per_player: Optional[int] = None, seed: Optional[int] = None,
                 config: Optional[Dict[str, Any]] = None,
                 diagnostics: Optional[DiagnosticsClient] = None):
        self.config = config or load_config()
        self.tiles = tiles
        self.board_size = board_size or self.config['board_size']
        self.houses_per_player = (houses_per_player if houses_per_player is not None
                                  else self.config['houses_per_player'])
        self.seed = seed
        self.rng = random.Random(seed) if seed is not None else random.Random()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsClient.from_config(self.config)
        self.game_state: GameState = self.new_game()

    def new_game(self) -> GameState:
        """Start a fresh game with a full reedbed and empty board."""
        self.game_state = initialize_game(self.tiles, self.board_size, self.houses_per_player, self.config)
        logger.debug("New game %s: %dx%d board, %d tiles", self.game_state.game_id,
                     self.board_size, self.board_size, len(self.game_state.reedbed))
        if self.diagnostics:
            self.diagnostics.clear_session()
            self._forward(0)
        return self.game_state

    def get_game_state(self) -> GameState:
        return self.game_state

    def get_valid_moves(self) -> List[Move]:
        return get_valid_moves(self.game_state)

    def make_move(self, move: Move) -> bool:
        """
        Commit a move to the game.

        Returns:
            True if applied; False for an illegal move, with no state change
        """
        log_start = len(self.game_state.log)
        if not apply_move(self.game_state, move):
            return False
        if self.game_state.game_over:
            logger.info("Game %s over after %d moves: %s", self.game_state.game_id,
                        self.game_state.move_count, self.game_state.winner or "draw")
        self._forward(log_start)
        return True

    def _forward(self, log_start: int) -> None:
        if not self.diagnostics:
            return
        self.diagnostics.append_logs(self.game_state.log[log_start:])
        self.diagnostics.replace_snapshot(get_game_summary(self.game_state))

    def calculate_villages(self) -> Dict[str, List[Village]]:
        return calculate_villages(self.game_state)

    def is_game_over(self) -> bool:
        return self.game_state.game_over

    def get_winner(self) -> Optional[str]:
        """Winner of a finished game; None while running or for a draw."""
        return self.game_state.winner

    def get_final_scores(self) -> Dict[str, VillageScore]:
        return dict(self.game_state.final_scores)

    def get_random(self) -> float:
        """Next float from the engine's RNG, seeded when a seed was given."""
        return self.rng.random()

    def rotate_reedbed_tile(self, tile_id: int, direction: int = 1) -> bool:
        """
        Turn a reedbed tile in place, for drivers that let a person orient tiles.

        Rotation is not a move: it does not count as a placement or pass the turn.
        """
        if self.game_state.game_over:
            return False
        for index, tile in enumerate(self.game_state.reedbed):
            if tile.id == tile_id:
                rotated = rotate_tile(tile, direction)
                self.game_state.reedbed[index] = rotated
                log_event(self.game_state, f"Rotated reedbed tile {tile.name}", tile_id=tile_id,
                          rotation=rotated.rotation)
                return True
        return False

    def create_bot(self, strategy_id: str, player_id: str, **options) -> Strategy:
        """Create a bot using this engine's config for search defaults."""
        if player_id not in PLAYER_IDS:
            raise ValueError(f"Unknown player '{player_id}'")
        if 'seed' not in options and self.seed is not None:
            options['seed'] = self.rng.randrange(2 ** 32)
        return create_bot(strategy_id, player_id, config=self.config, **options)
