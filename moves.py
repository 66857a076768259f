"""
Moves for Uros: the two placement actions, the legal-move enumerator and the
single entry point that commits a move to a game state.

A tile move puts a reedbed tile on the board: the tile is first turned by
`rotation` quarter turns (counter-clockwise), then its island cell
(anchor_row, anchor_col) is pinned to board cell (row, col).

A house move puts one of the current player's houses on the island cell
(row, col) of a tile's own grid, whether that tile is on the board or still in
the reedbed.

Moves name tiles by id, so a move enumerated on one state can be applied to
any clone of it.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from placement import iter_tile_placements, place_house, place_tile, placement_groups, rotate_tile
from state import GameState
from upkeep import advance_turn

logger = logging.getLogger(__name__)


class MoveType(Enum):
    TILE = "tile-placement"
    HOUSE = "house-placement"


class MoveValidationError(Exception):
    """Exception raised when a move fails validation."""
    pass


@dataclass(frozen=True)
class Move:
    move_type: MoveType
    tile_id: int
    row: int  # Board row for tile moves, tile-grid row for house moves
    col: int  # Board column for tile moves, tile-grid column for house moves
    anchor_row: int = 0
    anchor_col: int = 0
    rotation: int = 0  # Quarter turns applied before placing, 0-3
    player: Optional[str] = None  # Acting player; house moves must match the side to move

    @classmethod
    def tile(cls, tile_id: int, row: int, col: int, anchor_row: int = 0, anchor_col: int = 0,
             rotation: int = 0, player: Optional[str] = None) -> 'Move':
        return cls(MoveType.TILE, tile_id, row, col, anchor_row, anchor_col, rotation, player)

    @classmethod
    def house(cls, tile_id: int, tile_row: int, tile_col: int,
              player: Optional[str] = None) -> 'Move':
        return cls(MoveType.HOUSE, tile_id, tile_row, tile_col, player=player)

    @property
    def is_tile(self) -> bool:
        return self.move_type == MoveType.TILE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'type': self.move_type.value,
            'tile_id': self.tile_id,
            'row': self.row,
            'col': self.col,
            'player': self.player,
        }
        if self.is_tile:
            data.update({
                'anchor_row': self.anchor_row,
                'anchor_col': self.anchor_col,
                'rotation': self.rotation,
            })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Move':
        """
        Parse a move from its API form.

        Raises:
            ValueError: if the payload is not a well-formed move
        """
        if not isinstance(data, dict):
            raise ValueError("Move must be a JSON object")
        try:
            move_type = MoveType(data['type'])
            tile_id = int(data['tile_id'])
            row = int(data['row'])
            col = int(data['col'])
            anchor_row = int(data.get('anchor_row', 0))
            anchor_col = int(data.get('anchor_col', 0))
            rotation = int(data.get('rotation', 0))
        except KeyError as e:
            raise ValueError(f"Move is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed move: {e}") from e

        player = data.get('player')
        if player is not None and not isinstance(player, str):
            raise ValueError("Move player must be a string")
        return cls(move_type, tile_id, row, col, anchor_row, anchor_col, rotation, player)

    def __str__(self) -> str:
        if self.is_tile:
            return (f"tile {self.tile_id} rot {self.rotation} anchor ({self.anchor_row}, {self.anchor_col})"
                    f" -> ({self.row}, {self.col})")
        return f"house on tile {self.tile_id} ({self.row}, {self.col})"


def get_valid_moves(game_state: GameState) -> List[Move]:
    """
    Enumerate every legal move for the player to move.

    Tile placements come first: reedbed order, then rotation, board row, board
    column and anchor. Rotations that reproduce an earlier rotation's grids
    are skipped. House placements follow if the player has houses left:
    unowned island cells on placed tiles in placement order, then on reedbed
    tiles in reedbed order.

    Returns:
        List of moves, empty once the game is over
    """
    if game_state.game_over:
        return []

    player_id = game_state.current_player
    moves: List[Move] = []

    for tile in game_state.reedbed:
        for steps, _, row, col, anchor_row, anchor_col in iter_tile_placements(game_state, tile):
            moves.append(Move.tile(tile.id, row, col, anchor_row, anchor_col, steps, player_id))

    for tile_id, r, c in open_house_cells(game_state):
        moves.append(Move.house(tile_id, r, c, player_id))

    return moves


def open_house_cells(game_state: GameState) -> List[Tuple[int, int, int]]:
    """
    Cells the player to move may put a house on, as (tile id, row, col).

    Empty when the player has no houses left.
    """
    player = game_state.get_player_by_id(game_state.current_player)
    if player is None or player.houses <= 0:
        return []
    cells = []
    tiles = [placed.tile for placed in game_state.placed_tiles] + list(game_state.reedbed)
    for tile in tiles:
        for r, c in tile.island_cells():
            if tile.houses[r, c] is None:
                cells.append((tile.id, r, c))
    return cells


def random_legal_move(game_state: GameState, rng: random.Random) -> Optional[Move]:
    """
    Draw one legal move uniformly at random.

    Same distribution as rng.choice(get_valid_moves(game_state)), but only the
    drawn move is built. Placements are counted per rotation as fitting
    offsets times anchors, then the index is decoded back into a move.

    Returns:
        A legal move, or None if there is none
    """
    if game_state.game_over:
        return None
    player_id = game_state.current_player

    groups = []
    total = 0
    for tile in game_state.reedbed:
        for steps, _, cells, offsets in placement_groups(game_state, tile):
            groups.append((tile.id, steps, cells, sorted(offsets)))
            total += len(cells) * len(offsets)
    houses = open_house_cells(game_state)
    if total + len(houses) == 0:
        return None

    index = rng.randrange(total + len(houses))
    if index >= total:
        tile_id, r, c = houses[index - total]
        return Move.house(tile_id, r, c, player_id)
    for tile_id, steps, cells, offsets in groups:
        count = len(cells) * len(offsets)
        if index < count:
            offset_row, offset_col = offsets[index // len(cells)]
            anchor_row, anchor_col = cells[index % len(cells)]
            return Move.tile(tile_id, offset_row + anchor_row, offset_col + anchor_col,
                             anchor_row, anchor_col, steps, player_id)
        index -= count
    return None


def outcome_key(move: Move) -> tuple:
    """
    Identify what a move does to the board, ignoring how it was spelled.

    Tile moves that differ only in which anchor they pin land on the same
    cells, so the key is the rotation plus the offset of the tile grid.
    """
    if move.move_type == MoveType.HOUSE:
        return ('house', move.tile_id, move.row, move.col)
    return ('tile', move.tile_id, move.rotation,
            move.row - move.anchor_row, move.col - move.anchor_col)


def distinct_moves(moves: List[Move]) -> List[Move]:
    """Drop moves whose outcome repeats an earlier move's, keeping order."""
    seen = set()
    kept = []
    for move in moves:
        key = outcome_key(move)
        if key not in seen:
            seen.add(key)
            kept.append(move)
    return kept


def validate_move(move: Move, game_state: GameState) -> bool:
    """
    Check the parts of a move that do not depend on board geometry.

    Raises:
        MoveValidationError: describing the first problem found
    """
    if game_state.game_over:
        raise MoveValidationError("Game is over")
    if move.player is not None and move.player != game_state.current_player:
        raise MoveValidationError(f"It is {game_state.current_player}'s turn, not {move.player}'s")

    if move.move_type == MoveType.TILE:
        if game_state.get_reedbed_tile(move.tile_id) is None:
            raise MoveValidationError(f"Tile {move.tile_id} is not in the reedbed")
        if not 0 <= move.rotation < 4:
            raise MoveValidationError(f"Rotation {move.rotation} is outside 0-3")
    else:
        if game_state.find_tile(move.tile_id) is None:
            raise MoveValidationError(f"Tile {move.tile_id} does not exist")
        player = game_state.get_player_by_id(game_state.current_player)
        if player is None or player.houses <= 0:
            raise MoveValidationError(f"Player {game_state.current_player} has no houses left")
    return True


def apply_move(game_state: GameState, move: Move) -> bool:
    """
    Apply a move and advance the turn.

    Illegal moves leave the state untouched.

    Args:
        game_state: State to mutate
        move: Move to apply

    Returns:
        True if the move was applied, False if it was illegal
    """
    try:
        validate_move(move, game_state)
    except MoveValidationError as e:
        logger.debug("Rejected move %s: %s", move, e)
        return False

    if move.move_type == MoveType.TILE:
        tile = game_state.get_reedbed_tile(move.tile_id)
        if move.rotation:
            tile = rotate_tile(tile, move.rotation)
        applied = place_tile(game_state, tile, move.row, move.col, move.anchor_row, move.anchor_col)
    else:
        tile = game_state.find_tile(move.tile_id)
        applied = place_house(game_state, tile, move.row, move.col, game_state.current_player)

    if not applied:
        logger.debug("Rejected move %s: placement not legal", move)
        return False

    advance_turn(game_state)
    return True
