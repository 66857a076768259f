"""
Village detection and scoring for Uros.

A village is a maximal group of same-owner houses connected orthogonally
through island cells. Inside a tile, neighbours are looked up in the tile's own
grid; across tiles, a cell is mapped to the board through its tile's anchor and
the neighbouring board cell is mapped back into the neighbouring tile through
that tile's anchor. Only tiles on the board are scored.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from models import BLUE, PLAYER_IDS, RED, InvariantViolation, PlacedTile, VillageScore
from state import GameState

ORTHOGONAL = [(-1, 0), (1, 0), (0, -1), (0, 1)]

VisitKey = Tuple[str, int, int, int]


@dataclass
class Village:
    """A connected group of one player's houses."""
    player: str
    cells: List[Tuple[int, int, int]] = field(default_factory=list)  # (tile_id, row, col)

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def islands(self) -> int:
        """Number of distinct tiles the village spans."""
        return len({tile_id for tile_id, _, _ in self.cells})

    def score(self) -> VillageScore:
        return VillageScore(size=self.size, islands=self.islands)

    def to_dict(self) -> dict:
        return {
            'player': self.player,
            'size': self.size,
            'islands': self.islands,
            'cells': [{'tile_id': t, 'row': r, 'col': c} for t, r, c in self.cells],
        }


def house_neighbors(game_state: GameState, placed: PlacedTile, r: int, c: int
                    ) -> Iterator[Tuple[PlacedTile, int, int]]:
    """
    Yield the island cells orthogonally adjacent to a placed-tile cell.

    Same-tile neighbours come from the tile grid; neighbours on other tiles
    come from the board through both anchors.

    Raises:
        InvariantViolation: if an occupied board cell maps onto water
    """
    tile = placed.tile
    for dr, dc in ORTHOGONAL:
        nr, nc = r + dr, c + dc
        if tile.is_island(nr, nc):
            yield placed, nr, nc

    board_row, board_col = placed.to_board(r, c)
    for dr, dc in ORTHOGONAL:
        position = (board_row + dr, board_col + dc)
        if not game_state.is_valid_position(position):
            continue
        adjacent = game_state.board[position[0]][position[1]]
        if adjacent is None or adjacent is placed:
            continue
        local_row, local_col = adjacent.to_local(*position)
        if not adjacent.tile.is_island(local_row, local_col):
            raise InvariantViolation(f"Board cell {position} maps outside tile {adjacent.id}")
        yield adjacent, local_row, local_col


def flood_fill(game_state: GameState, start: PlacedTile, start_row: int, start_col: int,
               player_id: str, visited: Set[VisitKey]) -> Village:
    """
    Breadth-first search for the village containing a house.

    Args:
        game_state: Current game state
        start: Placed tile holding the starting house
        start_row, start_col: Starting cell in the tile grid
        player_id: Owner whose houses are collected
        visited: Keys already assigned to a village; updated in place

    Returns:
        The village, empty if the start cell was already visited or not owned
    """
    village = Village(player=player_id)
    queue = deque([(start, start_row, start_col)])

    while queue:
        placed, row, col = queue.popleft()
        key = ('placed', placed.id, row, col)
        if key in visited:
            continue
        tile = placed.tile
        if not tile.is_island(row, col) or tile.houses[row, col] != player_id:
            continue
        visited.add(key)
        village.cells.append((placed.id, row, col))

        for neighbor, nr, nc in house_neighbors(game_state, placed, row, col):
            if (('placed', neighbor.id, nr, nc) not in visited
                    and neighbor.tile.houses[nr, nc] == player_id):
                queue.append((neighbor, nr, nc))

    return village


def calculate_villages(game_state: GameState) -> Dict[str, List[Village]]:
    """
    Find every village on the board for both players.

    Tiles are scanned in placement order and cells row-major, so repeated calls
    on an unchanged state return identical partitions.
    """
    visited: Set[VisitKey] = set()
    villages: Dict[str, List[Village]] = {player_id: [] for player_id in PLAYER_IDS}

    for placed in game_state.placed_tiles:
        tile = placed.tile
        for r, c in tile.island_cells():
            player_id = tile.houses[r, c]
            if player_id is None or ('placed', placed.id, r, c) in visited:
                continue
            village = flood_fill(game_state, placed, r, c, player_id, visited)
            if village.cells:
                villages[player_id].append(village)

    return villages


def largest_village(villages: List[Village]) -> VillageScore:
    """Largest village by house count, ties broken by islands spanned."""
    largest = VillageScore()
    for village in villages:
        score = village.score()
        if score.key() > largest.key():
            largest = score
    return largest


def decide_winner(red: VillageScore, blue: VillageScore) -> Optional[str]:
    """Compare largest villages; None means a draw."""
    if red.key() > blue.key():
        return RED
    if blue.key() > red.key():
        return BLUE
    return None


def score_players(game_state: GameState) -> Dict[str, VillageScore]:
    """Largest village of each player on the current board."""
    villages = calculate_villages(game_state)
    return {player_id: largest_village(villages[player_id]) for player_id in PLAYER_IDS}
