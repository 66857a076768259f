"""
Tile catalog loading for the Uros rule engine.

The catalog is a JSON document of the form::

    {"tiles": [{"name": "Domino", "shape_grid": [[1, 1, 0], [0, 0, 0], [0, 0, 0]]}, ...]}

Tiles get stable integer ids in catalog order, rotation 0 and an unowned house
grid sized like their shape grid. When the catalog cannot be read at all the
engine falls back to a fixed set of polyominoes so a game can always start.
A catalog that is readable but describes malformed tiles is a programming
error and raises InvariantViolation.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from models import InvariantViolation, Tile

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), 'tiles.json')

# Built-in shapes used when no catalog is available (2 to 5 island cells)
FALLBACK_SHAPES: List[Tuple[str, List[List[int]]]] = [
    ("Domino", [[1, 1, 0], [0, 0, 0], [0, 0, 0]]),
    ("L-tromino", [[1, 1, 0], [1, 0, 0], [0, 0, 0]]),
    ("I-tromino", [[1, 1, 1], [0, 0, 0], [0, 0, 0]]),
    ("T-tetromino", [[1, 1, 1], [0, 1, 0], [0, 0, 0]]),
    ("S-tetromino", [[0, 1, 1], [1, 1, 0], [0, 0, 0]]),
    ("L-tetromino", [[1, 0, 0], [1, 0, 0], [1, 1, 0]]),
    ("P-pentomino", [[1, 1, 0], [1, 1, 0], [1, 0, 0]]),
    ("F-pentomino", [[0, 1, 1], [1, 1, 0], [0, 1, 0]]),
    ("C-pentomino", [[1, 1, 0], [1, 0, 0], [1, 1, 0]]),
]


def build_tile(tile_id: int, definition: Dict[str, Any]) -> Tile:
    """
    Build a Tile from one catalog entry.

    Args:
        tile_id: Id to assign (catalog position)
        definition: Mapping with 'name' and 'shape_grid'

    Returns:
        New Tile with rotation 0 and no houses

    Raises:
        InvariantViolation: if the entry is missing fields or the grid is malformed
    """
    if not isinstance(definition, dict) or 'shape_grid' not in definition:
        raise InvariantViolation(f"Catalog tile {tile_id} is missing 'shape_grid'")

    grid = definition['shape_grid']
    if (not isinstance(grid, list) or not grid
            or any(not isinstance(row, list) or len(row) != len(grid) for row in grid)):
        raise InvariantViolation(f"Catalog tile {tile_id} shape_grid must be a non-empty square grid")
    if any(value not in (0, 1) for row in grid for value in row):
        raise InvariantViolation(f"Catalog tile {tile_id} shape_grid may only contain 0 and 1")

    shape = np.array(grid, dtype=np.int8)
    if not shape.any():
        raise InvariantViolation(f"Catalog tile {tile_id} has no island cells")

    return Tile(id=tile_id, name=str(definition.get('name', f"Tile {tile_id}")), shape=shape)


def tiles_from_shapes(shapes: Iterable[Tuple[str, Sequence[Sequence[int]]]]) -> List[Tile]:
    """Build tiles from (name, grid) pairs, assigning ids in order."""
    return [
        build_tile(index, {'name': name, 'shape_grid': [list(row) for row in grid]})
        for index, (name, grid) in enumerate(shapes)
    ]


def fallback_tiles() -> List[Tile]:
    """The fixed built-in tile set."""
    return tiles_from_shapes(FALLBACK_SHAPES)


def load_catalog(path: Optional[str] = None) -> List[Tile]:
    """
    Load the tile catalog, falling back to the built-in shapes.

    Args:
        path: Catalog file path (default: tiles.json beside this module)

    Returns:
        List of tiles ordered by catalog position
    """
    catalog_path = path or DEFAULT_CATALOG_PATH
    try:
        with open(catalog_path, 'r') as f:
            data = json.load(f)
        definitions = data['tiles']
        if not isinstance(definitions, list) or not definitions:
            raise ValueError("catalog has no tiles")
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Failed to load tile catalog %s (%s); using built-in tiles", catalog_path, e)
        return fallback_tiles()

    tiles = [build_tile(index, definition) for index, definition in enumerate(definitions)]
    logger.debug("Loaded %d tiles from %s", len(tiles), catalog_path)
    return tiles
