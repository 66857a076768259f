"""
Static position evaluation for Uros search.

The score is from one player's point of view: positive is good for them. Own
largest village dominates, the opponent's largest village counts against, and
a handful of smaller terms reward spreading across islands, room to grow and
contact with enemy houses. The total is scaled by game progress so that late
positions weigh more than early ones.
"""

from __future__ import annotations

from typing import Optional

from models import opponent_of
from state import DEFAULT_CONFIG, GameState
from villages import calculate_villages, house_neighbors, largest_village


def _weights(weights: Optional[dict[str, float]]) -> dict[str, float]:
    return {**DEFAULT_CONFIG['evaluation_weights'], **(weights or {})}


def game_progress(game_state: GameState) -> float:
    """Fraction of both house pools already placed, 0.0 to 1.0."""
    pool = 2 * game_state.houses_per_player
    if pool <= 0:
        return 1.0
    return min(1.0, game_state.total_houses_placed() / pool)


def _contact_terms(game_state: GameState, player_id: str) -> tuple[int, int]:
    """Open cells next to own houses, and own houses touching enemy houses."""
    opponent = opponent_of(player_id)
    open_cells = set()
    blocking = 0
    for placed in game_state.placed_tiles:
        tile = placed.tile
        for r, c in tile.house_cells(player_id):
            touches_enemy = False
            for neighbor, nr, nc in house_neighbors(game_state, placed, r, c):
                owner = neighbor.tile.houses[nr, nc]
                if owner is None:
                    open_cells.add((neighbor.id, nr, nc))
                elif owner == opponent:
                    touches_enemy = True
            if touches_enemy:
                blocking += 1
    return len(open_cells), blocking


def _islands_touched(game_state: GameState, player_id: str) -> int:
    return sum(1 for placed in game_state.placed_tiles if placed.tile.house_cells(player_id))


def evaluation_breakdown(game_state: GameState, player_id: str,
                         weights: Optional[dict[str, float]] = None) -> dict[str, float]:
    """
    Evaluate a position and report each weighted term.

    Args:
        game_state: Position to evaluate (not modified)
        player_id: Point of view
        weights: Overrides for the default evaluation weights

    Returns:
        Dict of weighted terms plus 'progress', 'scale' and 'total'
    """
    w = _weights(weights)
    opponent = opponent_of(player_id)

    if game_state.game_over:
        own = game_state.final_scores.get(player_id)
        other = game_state.final_scores.get(opponent)
        margin = (own.size - other.size) if own and other else 0
        if game_state.winner == player_id:
            total = w['terminal_score'] + margin
        elif game_state.winner == opponent:
            total = -w['terminal_score'] + margin
        else:
            total = 0.0
        return {'terminal': total, 'progress': 1.0, 'scale': 1.0, 'total': total}

    villages = calculate_villages(game_state)
    own = largest_village(villages[player_id])
    other = largest_village(villages[opponent])
    player = game_state.get_player_by_id(player_id)
    open_adjacency, blocking = _contact_terms(game_state, player_id)

    terms = {
        'largest_size': w['largest_size'] * own.size,
        'largest_islands': w['largest_islands'] * own.islands,
        'opponent_size': -w['opponent_size'] * other.size,
        'opponent_islands': -w['opponent_islands'] * other.islands,
        'village_count': w['village_count'] * len(villages[player_id]),
        'houses_remaining': w['houses_remaining'] * (player.houses if player else 0),
        'islands_touched': w['islands_touched'] * _islands_touched(game_state, player_id),
        'opponent_islands_touched': -w['opponent_islands_touched'] * _islands_touched(game_state, opponent),
        'open_adjacency': w['open_adjacency'] * open_adjacency,
        'blocking': w['blocking'] * blocking,
    }
    progress = game_progress(game_state)
    scale = 0.75 + 0.5 * progress
    terms['progress'] = progress
    terms['scale'] = scale
    terms['total'] = scale * sum(v for k, v in terms.items() if k not in ('progress', 'scale'))
    return terms


def evaluate_position(game_state: GameState, player_id: str,
                      weights: Optional[dict[str, float]] = None) -> float:
    """Score a position for one player; terminal positions are +/- terminal_score."""
    return evaluation_breakdown(game_state, player_id, weights)['total']
