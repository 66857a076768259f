"""Shared test fixtures and helpers."""

import copy
import random

import pytest

from models import Tile
from state import DEFAULT_CONFIG, GameState, initialize_game

# --- Standard shapes ---

DOMINO = [[1, 1], [0, 0]]
L_TROMINO = [[1, 1, 0], [1, 0, 0], [0, 0, 0]]
I_TROMINO = [[1, 1, 1], [0, 0, 0], [0, 0, 0]]
MONOMINO = [[1]]


# --- Fixtures ---


@pytest.fixture
def config():
    """Default engine config, independent of config.json on disk."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def game(config):
    """Fresh game on the standard 6x6 board with the bundled catalog."""
    return initialize_game(config=config)


@pytest.fixture
def small_game():
    """4x4 board, two dominoes and an L-tromino, 3 houses each."""
    return make_state([domino(0), domino(1), tile(2, L_TROMINO, "L-tromino")], board_size=4, houses=3)


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app, games

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
    games.clear()


# --- Helper functions ---


def tile(tile_id, grid, name=None):
    """Build a tile from a 0/1 grid."""
    return Tile(id=tile_id, name=name or f"Tile {tile_id}", shape=grid)


def domino(tile_id=0):
    return tile(tile_id, DOMINO, "Domino")


def monomino(tile_id=0):
    return tile(tile_id, MONOMINO, "Monomino")


def make_state(tiles, board_size=6, houses=15) -> GameState:
    """Game state with the given reedbed, independent of config.json and tiles.json."""
    return initialize_game(tiles, board_size=board_size, houses_per_player=houses,
                           config=copy.deepcopy(DEFAULT_CONFIG))


def play_moves(game_state, moves):
    """Apply moves in order, asserting each one is legal."""
    from moves import apply_move

    for move in moves:
        assert apply_move(game_state, move), f"move rejected: {move}"
    return game_state
