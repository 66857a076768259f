# Models for Uros board elements: tiles, placed tiles, players, village scores

from dataclasses import dataclass
from typing import List, Tuple, Optional

import numpy as np

RED = 'red'
BLUE = 'blue'
PLAYER_IDS = (RED, BLUE)


class InvariantViolation(AssertionError):
    """Raised when a structural invariant of the board model is broken.

    Illegal moves are never reported this way; they return False. This is
    reserved for programming errors such as a house grid that no longer
    matches its shape grid.
    """
    pass


def opponent_of(player_id: str) -> str:
    """Return the other player's id."""
    return BLUE if player_id == RED else RED


def empty_houses(shape: np.ndarray) -> np.ndarray:
    """An unowned house grid sized like the given shape grid."""
    return np.full(shape.shape, None, dtype=object)


@dataclass(eq=False)
class Tile:
    """
    A reed island tile.

    The shape grid is a square 0/1 array: 1 marks an island cell (eligible for
    board occupancy and houses), 0 marks water that may hang off the board.
    The houses grid has the same dimensions and holds None or a player id for
    each cell. Both grids rotate together.
    """
    id: int  # Stable id assigned by catalog order
    name: str  # Display name, e.g. 'L-tromino'
    shape: np.ndarray  # NxN grid of 0/1
    houses: Optional[np.ndarray] = None  # NxN grid of None/'red'/'blue'
    rotation: int = 0  # Quarter turns applied since the catalog, 0-3

    def __post_init__(self):
        self.shape = np.asarray(self.shape, dtype=np.int8)
        if self.houses is None:
            self.houses = empty_houses(self.shape)
        self.check_invariants()

    @property
    def size(self) -> int:
        return self.shape.shape[0]

    def check_invariants(self) -> None:
        """Abort loudly if the shape and house grids have diverged."""
        if self.shape.ndim != 2 or self.shape.shape[0] != self.shape.shape[1]:
            raise InvariantViolation(f"Tile {self.id} shape grid is not square: {self.shape.shape}")
        if self.houses is None or self.houses.shape != self.shape.shape:
            raise InvariantViolation(
                f"Tile {self.id} house grid {getattr(self.houses, 'shape', None)} "
                f"does not match shape grid {self.shape.shape}"
            )
        if not 0 <= self.rotation < 4:
            raise InvariantViolation(f"Tile {self.id} has rotation {self.rotation}")

    def in_grid(self, r: int, c: int) -> bool:
        return 0 <= r < self.size and 0 <= c < self.size

    def is_island(self, r: int, c: int) -> bool:
        return self.in_grid(r, c) and self.shape[r, c] == 1

    def owner(self, r: int, c: int) -> Optional[str]:
        return self.houses[r, c]

    def island_cells(self) -> List[Tuple[int, int]]:
        """Island cells in row-major order."""
        return [(int(r), int(c)) for r, c in np.argwhere(self.shape == 1)]

    def house_cells(self, player_id: Optional[str] = None) -> List[Tuple[int, int]]:
        """Owned island cells, optionally filtered to one player."""
        cells = []
        for r, c in self.island_cells():
            owner = self.houses[r, c]
            if owner is not None and (player_id is None or owner == player_id):
                cells.append((r, c))
        return cells

    def copy(self) -> 'Tile':
        """Copy with independent shape and house grids."""
        return Tile(
            id=self.id,
            name=self.name,
            shape=self.shape.copy(),
            houses=self.houses.copy(),
            rotation=self.rotation,
        )

    def same_layout(self, other: 'Tile') -> bool:
        """True if both tiles have identical shape and house grids."""
        return (np.array_equal(self.shape, other.shape)
                and self.houses.shape == other.houses.shape
                and bool((self.houses == other.houses).all()))

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'shape_grid': self.shape.tolist(),
            'houses': self.houses.tolist(),
            'rotation': self.rotation,
        }


@dataclass(eq=False)
class PlacedTile:
    """
    A tile pinned to the board.

    The tile cell (anchor_row, anchor_col) sits on board cell (row, col); every
    other cell is offset from it. Only island cells occupy board cells.
    """
    tile: Tile
    row: int  # Board row of the anchor cell
    col: int  # Board column of the anchor cell
    anchor_row: int = 0  # Tile-local row pinned to (row, col)
    anchor_col: int = 0  # Tile-local column pinned to (row, col)

    @property
    def id(self) -> int:
        return self.tile.id

    def to_board(self, r: int, c: int) -> Tuple[int, int]:
        """Map a tile-local cell to its board coordinate."""
        return self.row + (r - self.anchor_row), self.col + (c - self.anchor_col)

    def to_local(self, board_row: int, board_col: int) -> Tuple[int, int]:
        """Map a board coordinate back into this tile's local grid."""
        return self.anchor_row + (board_row - self.row), self.anchor_col + (board_col - self.col)

    def board_cells(self) -> List[Tuple[int, int]]:
        """Board coordinates occupied by the island cells."""
        return [self.to_board(r, c) for r, c in self.tile.island_cells()]

    def copy(self) -> 'PlacedTile':
        return PlacedTile(
            tile=self.tile.copy(),
            row=self.row,
            col=self.col,
            anchor_row=self.anchor_row,
            anchor_col=self.anchor_col,
        )

    def to_dict(self) -> dict:
        data = self.tile.to_dict()
        data.update({
            'row': self.row,
            'col': self.col,
            'anchor': {'tile_row': self.anchor_row, 'tile_col': self.anchor_col},
        })
        return data


@dataclass
class Player:
    """A player and the houses still in their pool."""
    id: str  # 'red' or 'blue'
    houses: int = 15  # Houses remaining, never negative

    def update_houses(self, amount: int) -> None:
        """Update the remaining house count, never going below 0."""
        self.houses = max(0, self.houses + amount)


@dataclass(order=True)
class VillageScore:
    """Largest-village measure: house count, tie-broken by distinct islands."""
    size: int = 0
    islands: int = 0

    def key(self) -> Tuple[int, int]:
        return self.size, self.islands

    def to_dict(self) -> dict:
        return {'size': self.size, 'islands': self.islands}
