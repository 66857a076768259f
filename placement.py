"""
Placement rules for Uros: rotating tiles, placing tiles from the reedbed onto
the board, and placing houses on island cells.

Illegal requests return False and leave the state untouched so a driver can
simply try another move. Only structural corruption raises.
"""

from typing import Iterator, List, Set, Tuple, Union

import numpy as np

from models import InvariantViolation, PlacedTile, Tile
from state import GameState, log_event


def rotate_tile(tile: Tile, direction: int = 1) -> Tile:
    """
    Rotate a tile by quarter turns, shape and houses together.

    Args:
        tile: Tile to rotate (not modified)
        direction: +1 for counter-clockwise, -1 for clockwise; the magnitude
            is the number of quarter turns

    Returns:
        New Tile with rotated grids and updated rotation counter
    """
    shape = np.rot90(tile.shape, k=direction).copy()
    houses = np.rot90(tile.houses, k=direction).copy()
    if shape.shape != houses.shape:
        raise InvariantViolation(f"Tile {tile.id} grids diverged after rotation")
    return Tile(
        id=tile.id,
        name=tile.name,
        shape=shape,
        houses=houses,
        rotation=(tile.rotation + direction) % 4,
    )


def can_place_tile(game_state: GameState, tile: Tile, row: int, col: int,
                   anchor_row: int = 0, anchor_col: int = 0) -> bool:
    """
    Check whether a tile fits with its anchor cell on board cell (row, col).

    Only island cells are checked; water cells may hang off the board.
    """
    if tile is None:
        return False
    for r, c in tile.island_cells():
        board_row = row + (r - anchor_row)
        board_col = col + (c - anchor_col)
        if not game_state.is_valid_position((board_row, board_col)):
            return False
        if game_state.board[board_row][board_col] is not None:
            return False
    return True


def _house_counts(tile: Tile) -> dict:
    counts: dict = {}
    for r, c in tile.house_cells():
        owner = tile.houses[r, c]
        counts[owner] = counts.get(owner, 0) + 1
    return counts


def place_tile(game_state: GameState, tile: Tile, row: int, col: int,
               anchor_row: int = 0, anchor_col: int = 0) -> bool:
    """
    Place a reedbed tile on the board.

    The tile may be the reedbed entry itself or a rotated copy of it; any
    houses already on it are kept as they are.

    Returns:
        True if the tile was placed, False if the placement is illegal
    """
    if tile is None or game_state.game_over:
        return False
    reedbed_tile = game_state.get_reedbed_tile(tile.id)
    if reedbed_tile is None:
        return False
    if tile is not reedbed_tile and _house_counts(tile) != _house_counts(reedbed_tile):
        raise InvariantViolation(f"Tile {tile.id} houses differ from its reedbed entry")
    if not can_place_tile(game_state, tile, row, col, anchor_row, anchor_col):
        return False

    placed = PlacedTile(tile=tile, row=row, col=col, anchor_row=anchor_row, anchor_col=anchor_col)
    game_state.placed_tiles.append(placed)
    for board_row, board_col in placed.board_cells():
        game_state.board[board_row][board_col] = placed
    game_state.reedbed = [t for t in game_state.reedbed if t.id != tile.id]

    log_event(game_state, f"Placed tile {tile.name} at ({row}, {col}) with anchor ({anchor_row}, {anchor_col})",
              tile_id=tile.id, row=row, col=col, anchor_row=anchor_row, anchor_col=anchor_col,
              rotation=tile.rotation)
    return True


def place_house(game_state: GameState, tile: Union[Tile, PlacedTile], tile_row: int, tile_col: int,
                player_id: str) -> bool:
    """
    Place a house for a player on an island cell of a tile.

    Works the same for tiles in the reedbed and tiles on the board; the cell is
    addressed in the tile's own grid.

    Returns:
        True if the house was placed, False if the placement is illegal
    """
    if tile is None or game_state.game_over:
        return False
    if isinstance(tile, PlacedTile):
        tile = tile.tile
    target = game_state.find_tile(tile.id)
    player = game_state.get_player_by_id(player_id)
    if target is None or player is None or player.houses <= 0:
        return False
    if not target.is_island(tile_row, tile_col) or target.houses[tile_row, tile_col] is not None:
        return False

    target.houses[tile_row, tile_col] = player_id
    player.update_houses(-1)

    location = 'board' if game_state.get_placed_tile(target.id) is not None else 'reedbed'
    log_event(game_state, f"Player {player_id} placed house on tile {target.name} ({tile_row}, {tile_col})",
              player_id=player_id, tile_id=target.id, tile_row=tile_row, tile_col=tile_col,
              location=location, houses_left=player.houses)
    return True


def distinct_rotations(tile: Tile) -> List[Tuple[int, Tile]]:
    """
    Rotations of a tile that produce different grids.

    Returns:
        List of (quarter turns, rotated tile), starting with (0, tile)
    """
    rotations: List[Tuple[int, Tile]] = [(0, tile)]
    for steps in range(1, 4):
        rotated = rotate_tile(tile, steps)
        if not any(rotated.same_layout(seen) for _, seen in rotations):
            rotations.append((steps, rotated))
    return rotations


def fitting_offsets(game_state: GameState, cells: List[Tuple[int, int]]) -> Set[Tuple[int, int]]:
    """
    Board offsets at which a set of island cells fits.

    An offset (dr, dc) puts tile cell (r, c) on board cell (r + dr, c + dc).
    Every covered cell must be on the board and empty.
    """
    if not cells:
        return set()
    size = game_state.board_size
    board = game_state.board
    min_r = min(r for r, _ in cells)
    max_r = max(r for r, _ in cells)
    min_c = min(c for _, c in cells)
    max_c = max(c for _, c in cells)
    offsets = set()
    for dr in range(-min_r, size - max_r):
        for dc in range(-min_c, size - max_c):
            if all(board[r + dr][c + dc] is None for r, c in cells):
                offsets.add((dr, dc))
    return offsets


def placement_groups(game_state: GameState, tile: Tile
                     ) -> Iterator[Tuple[int, Tile, List[Tuple[int, int]], Set[Tuple[int, int]]]]:
    """
    Yield (rotation steps, rotated tile, island cells, fitting offsets) for
    each distinct rotation of a tile that fits somewhere.

    Each (offset, island cell) pair is one legal placement: the island cell
    is the anchor and lands on board cell offset + cell.
    """
    for steps, rotated in distinct_rotations(tile):
        cells = rotated.island_cells()
        offsets = fitting_offsets(game_state, cells)
        if offsets:
            yield steps, rotated, cells, offsets


def iter_tile_placements(game_state: GameState, tile: Tile
                         ) -> Iterator[Tuple[int, Tile, int, int, int, int]]:
    """
    Yield every legal placement of a reedbed tile.

    Order: rotation, board row, board column, anchor row, anchor column. Only
    island cells are used as anchors.

    Yields:
        (rotation steps, rotated tile, row, col, anchor_row, anchor_col)
    """
    for steps, rotated, cells, offsets in placement_groups(game_state, tile):
        for row in range(game_state.board_size):
            for col in range(game_state.board_size):
                for anchor_row, anchor_col in cells:
                    if (row - anchor_row, col - anchor_col) in offsets:
                        yield steps, rotated, row, col, anchor_row, anchor_col


def has_placeable_tile(game_state: GameState) -> bool:
    """True if any reedbed tile fits anywhere on the board."""
    for tile in game_state.reedbed:
        for _ in placement_groups(game_state, tile):
            return True
    return False


def has_open_house_cell(game_state: GameState) -> bool:
    """True if any island cell, on the board or in the reedbed, is unowned."""
    tiles = [placed.tile for placed in game_state.placed_tiles] + list(game_state.reedbed)
    for tile in tiles:
        for r, c in tile.island_cells():
            if tile.houses[r, c] is None:
                return True
    return False
