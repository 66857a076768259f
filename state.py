"""
Game state management for the Uros rule engine.
Implements the board, the reedbed of unplaced tiles, the two players and the
turn bookkeeping that every placement runs through.

Board: MxM cells (6x6 by default), each empty or pointing at a PlacedTile
Players: red and blue, 15 houses each by default; red opens with 1 placement,
every later turn needs 2
"""

from __future__ import annotations
import copy
import json
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from catalog import load_catalog
from models import (
    BLUE, RED, InvariantViolation, PlacedTile, Player, Tile,
    VillageScore, opponent_of,
)

CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config.json')

DEFAULT_CONFIG: Dict[str, Any] = {
    'board_size': 6,
    'houses_per_player': 15,
    'tile_catalog': 'tiles.json',
    'thinking_time_ms': 1000,
    'random_threshold': 0.1,
    'max_search_depth': 8,
    'mcts_min_simulations': 30,
    'mcts_convergence_window': 20,
    'mcts_convergence_threshold': 0.01,
    'evaluation_weights': {
        'largest_size': 10.0,
        'largest_islands': 3.0,
        'opponent_size': 8.0,
        'opponent_islands': 2.5,
        'village_count': 1.0,
        'houses_remaining': 0.2,
        'islands_touched': 1.5,
        'opponent_islands_touched': 1.0,
        'open_adjacency': 0.5,
        'blocking': 0.3,
        'terminal_score': 1000.0,
    },
    'diagnostics_url': None,
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load engine configuration, using defaults for anything missing.

    Args:
        path: Config file path (default: config.json beside this module)

    Returns:
        Dict with every DEFAULT_CONFIG key present
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            loaded = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        return config

    if not isinstance(loaded, dict):
        return config
    for key, value in loaded.items():
        if key not in config:
            continue
        if key == 'evaluation_weights' and isinstance(value, dict):
            config[key].update(value)
        else:
            config[key] = value
    return config


@dataclass
class GameState:
    """
    Complete game state containing all game information.

    Mutated only through tile placement, house placement and the turn advance
    that follows each of them. Once game_over is set the winner and scores are
    frozen.
    """
    game_id: str  # Unique game identifier
    board_size: int = 6  # M for the MxM board
    houses_per_player: int = 15  # Starting house pool per player
    board: List[List[Optional[PlacedTile]]] = field(default_factory=list)
    placed_tiles: List[PlacedTile] = field(default_factory=list)  # In placement order
    reedbed: List[Tile] = field(default_factory=list)  # Tiles not yet placed
    players: List[Player] = field(default_factory=list)
    current_player: str = RED
    is_first_turn: bool = True  # First turn needs 1 placement instead of 2
    placements_this_turn: int = 0
    placements_required: int = 1
    game_over: bool = False
    winner: Optional[str] = None  # None while running, and for a draw
    final_scores: Dict[str, VillageScore] = field(default_factory=dict)
    move_count: int = 0  # Successful placements so far
    log: List[Dict[str, Any]] = field(default_factory=list)
    record_log: bool = True  # Clones used for lookahead do not log

    def __post_init__(self):
        if not self.board:
            self.board = [[None] * self.board_size for _ in range(self.board_size)]

    def get_player_by_id(self, player_id: str) -> Optional[Player]:
        """Get a player by their ID."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_opponent(self, player_id: str) -> Optional[Player]:
        """Get the other player."""
        return self.get_player_by_id(opponent_of(player_id))

    def get_reedbed_tile(self, tile_id: int) -> Optional[Tile]:
        for tile in self.reedbed:
            if tile.id == tile_id:
                return tile
        return None

    def get_placed_tile(self, tile_id: int) -> Optional[PlacedTile]:
        for placed in self.placed_tiles:
            if placed.id == tile_id:
                return placed
        return None

    def find_tile(self, tile_id: int) -> Optional[Tile]:
        """Find a tile by id whether it is on the board or in the reedbed."""
        placed = self.get_placed_tile(tile_id)
        if placed is not None:
            return placed.tile
        return self.get_reedbed_tile(tile_id)

    def is_valid_position(self, position: Tuple[int, int]) -> bool:
        """Check if a position is within the board bounds."""
        row, col = position
        return 0 <= row < self.board_size and 0 <= col < self.board_size

    def cell(self, row: int, col: int) -> Optional[PlacedTile]:
        """The placed tile occupying a board cell, if any."""
        return self.board[row][col]

    def houses_placed(self, player_id: str) -> int:
        """Houses a player has put down anywhere (board or reedbed)."""
        count = 0
        for placed in self.placed_tiles:
            count += len(placed.tile.house_cells(player_id))
        for tile in self.reedbed:
            count += len(tile.house_cells(player_id))
        return count

    def total_houses_placed(self) -> int:
        return sum(self.houses_per_player - p.houses for p in self.players)


def log_event(game_state: GameState, event: str, **kwargs) -> None:
    """
    Add an event to the game state log.

    Args:
        game_state: Current game state
        event: Description of the event
        **kwargs: Additional event data to include
    """
    if not game_state.record_log:
        return
    log_entry = {
        'move': game_state.move_count,
        'current_player': game_state.current_player,
        'event': event,
        **kwargs
    }
    game_state.log.append(log_entry)


def create_player(player_id: str, starting_houses: int = 15) -> Player:
    """
    Create a new player with a full house pool.

    Args:
        player_id: Player identifier ('red' or 'blue')
        starting_houses: Houses in the pool (default: 15)

    Returns:
        New Player instance
    """
    return Player(id=player_id, houses=starting_houses)


def initialize_game(tiles: Optional[List[Tile]] = None,
                    board_size: Optional[int] = None,
                    houses_per_player: Optional[int] = None,
                    config: Optional[Dict[str, Any]] = None) -> GameState:
    """
    Initialize a new game state with an empty board and a full reedbed.

    Red moves first and places a single tile or house; after that each turn
    is two placements.

    Args:
        tiles: Tiles for the reedbed (default: the configured catalog)
        board_size: Board dimension (default: from config)
        houses_per_player: Starting house pool (default: from config)
        config: Preloaded config dict (default: load_config())

    Returns:
        New GameState instance ready for gameplay
    """
    config = config or load_config()
    board_size = board_size or config['board_size']
    if houses_per_player is None:
        houses_per_player = config['houses_per_player']

    if tiles is None:
        catalog_path = config.get('tile_catalog')
        if catalog_path and not os.path.isabs(catalog_path):
            catalog_path = os.path.join(os.path.dirname(__file__), catalog_path)
        tiles = load_catalog(catalog_path)

    reedbed = [tile.copy() for tile in tiles]
    seen_ids = set()
    for tile in reedbed:
        if tile.id in seen_ids:
            raise InvariantViolation(f"Duplicate tile id {tile.id} in reedbed")
        seen_ids.add(tile.id)

    game_state = GameState(
        game_id=str(uuid.uuid4()),
        board_size=board_size,
        houses_per_player=houses_per_player,
        reedbed=reedbed,
        players=[create_player(RED, houses_per_player), create_player(BLUE, houses_per_player)],
        current_player=RED,
        is_first_turn=True,
        placements_this_turn=0,
        placements_required=1,
    )
    log_event(game_state, "Game started", board_size=board_size,
              tiles=len(reedbed), houses_per_player=houses_per_player)
    return game_state


def check_state_invariants(game_state: GameState) -> None:
    """
    Verify the structural invariants of a game state.

    Raises:
        InvariantViolation: on any broken invariant
    """
    placed_ids = [p.id for p in game_state.placed_tiles]
    reedbed_ids = [t.id for t in game_state.reedbed]
    if len(set(placed_ids)) != len(placed_ids) or set(placed_ids) & set(reedbed_ids):
        raise InvariantViolation("A tile is placed twice or is both placed and in the reedbed")

    for placed in game_state.placed_tiles:
        placed.tile.check_invariants()
        for r, c in placed.tile.island_cells():
            br, bc = placed.to_board(r, c)
            if not game_state.is_valid_position((br, bc)) or game_state.board[br][bc] is not placed:
                raise InvariantViolation(f"Tile {placed.id} cell ({r}, {c}) is not on board cell ({br}, {bc})")

    occupied = sum(1 for row in game_state.board for cell in row if cell is not None)
    expected = sum(len(p.tile.island_cells()) for p in game_state.placed_tiles)
    if occupied != expected:
        raise InvariantViolation(f"Board has {occupied} occupied cells, placed tiles cover {expected}")

    for tile in game_state.reedbed:
        tile.check_invariants()

    for tile_owner in (game_state.placed_tiles, game_state.reedbed):
        for item in tile_owner:
            tile = item.tile if isinstance(item, PlacedTile) else item
            for r in range(tile.size):
                for c in range(tile.size):
                    if tile.houses[r, c] is not None and tile.shape[r, c] != 1:
                        raise InvariantViolation(f"Tile {tile.id} has a house on water at ({r}, {c})")

    for player in game_state.players:
        if player.houses < 0:
            raise InvariantViolation(f"Player {player.id} has negative houses")
        if player.houses + game_state.houses_placed(player.id) != game_state.houses_per_player:
            raise InvariantViolation(f"Player {player.id} house count is not conserved")


def get_game_summary(game_state: GameState) -> Dict:
    """
    Get a summary of the current game state for API responses.

    Args:
        game_state: Current game state

    Returns:
        Dictionary with game summary information
    """
    return {
        'game_id': game_state.game_id,
        'board_size': game_state.board_size,
        'current_player': game_state.current_player,
        'is_first_turn': game_state.is_first_turn,
        'placements_this_turn': game_state.placements_this_turn,
        'placements_required': game_state.placements_required,
        'move_count': game_state.move_count,
        'players': [
            {'id': player.id, 'houses': player.houses}
            for player in game_state.players
        ],
        'board': [
            [cell.id if cell is not None else None for cell in row]
            for row in game_state.board
        ],
        'placed_tiles': [placed.to_dict() for placed in game_state.placed_tiles],
        'reedbed': [tile.to_dict() for tile in game_state.reedbed],
        'game_over': game_state.game_over,
        'winner': game_state.winner,
        'final_scores': {
            player_id: score.to_dict() for player_id, score in game_state.final_scores.items()
        },
    }

