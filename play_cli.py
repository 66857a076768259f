"""
CLI play mode for Uros.

Bot vs bot (or human vs bot) on the configured board. ASCII renderer,
numbered move entry for human players, result summary.

Usage:
    python play_cli.py --red minimax --blue mcts --time 500 --seed 7
    python play_cli.py --red human --blue random
"""

import argparse
import logging
import sys

from bots import BOTS
from engine import Engine
from models import BLUE, RED
from simulation import GameRecord, run_match
from state import GameState
from villages import score_players

HUMAN = "human"
OWNER_CHAR = {None: ".", RED: "r", BLUE: "b"}


# ---------------------------------------------------------------------------
# ASCII Renderer
# ---------------------------------------------------------------------------


def render_board(game: GameState) -> str:
    """Board cells as '<tile id><owner>', e.g. '3r'; '..' for open water."""
    lines = ["     " + " ".join(f"{c:>2}" for c in range(game.board_size))]
    for r in range(game.board_size):
        cells = []
        for c in range(game.board_size):
            placed = game.board[r][c]
            if placed is None:
                cells.append("..")
                continue
            local_r, local_c = placed.to_local(r, c)
            cells.append(f"{placed.id % 10}{OWNER_CHAR[placed.tile.houses[local_r, local_c]]}")
        lines.append(f"  {r:>2} " + " ".join(cells))
    return "\n".join(lines)


def render_reedbed(game: GameState) -> str:
    lines = []
    for tile in game.reedbed:
        rows = ["".join(OWNER_CHAR[tile.houses[r, c]] if tile.shape[r, c] else " "
                        for c in range(tile.size)) for r in range(tile.size)]
        lines.append(f"  [{tile.id}] {tile.name}: " + " | ".join(rows))
    return "\n".join(lines)


def show_status(game: GameState):
    scores = score_players(game)
    print(f"\n=== MOVE {game.move_count + 1}: {game.current_player.upper()} "
          f"(placement {game.placements_this_turn + 1} of {game.placements_required}) ===")
    for player in game.players:
        best = scores[player.id]
        print(f"  {player.id:<5} houses left: {player.houses:>2}   largest village: "
              f"{best.size} houses on {best.islands} islands")
    print(render_board(game))
    if game.reedbed:
        print("Reedbed:")
        print(render_reedbed(game))


# ---------------------------------------------------------------------------
# Human input
# ---------------------------------------------------------------------------


def get_human_move(engine: Engine):
    """Prompt for a move by number; 'auto' lets a random bot pick one."""
    moves = engine.get_valid_moves()
    for index, move in enumerate(moves):
        print(f"  {index:>4}: {move}")
    while True:
        try:
            line = input("Move number (or 'auto'): ").strip().lower()
        except EOFError:
            return None
        if line == "auto":
            return engine.create_bot("random", engine.get_game_state().current_player).choose_move(
                engine.get_game_state())
        try:
            return moves[int(line)]
        except (ValueError, IndexError):
            print(f"  Enter a number from 0 to {len(moves) - 1}.")


class HumanPlayer:
    """A player at the terminal, driven through the same interface as the bots."""

    name = HUMAN

    def __init__(self, engine: Engine):
        self.engine = engine
        self.last_result = None

    def choose_move(self, game: GameState):
        show_status(game)
        return get_human_move(self.engine)


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------


def play(engine: Engine, strategies: dict, thinking_time_ms: int, verbose: bool = False) -> GameRecord:
    """Play one game on the engine; bots think for thinking_time_ms per move."""
    players = {}
    for player_id, strategy in strategies.items():
        if strategy == HUMAN:
            players[player_id] = HumanPlayer(engine)
        else:
            players[player_id] = engine.create_bot(strategy, player_id, thinking_time_ms=thinking_time_ms)

    def report(game: GameState, player_id: str, move):
        print(f"  {player_id} plays {move}")
        # Human players print their own status before choosing
        if verbose and not game.game_over and strategies[game.current_player] != HUMAN:
            show_status(game)

    if verbose and strategies[engine.get_game_state().current_player] != HUMAN:
        show_status(engine.get_game_state())
    watched = verbose or HUMAN in strategies.values()
    return run_match(players[RED], players[BLUE], engine=engine, on_move=report if watched else None)


def parse_args(argv=None) -> argparse.Namespace:
    choices = sorted(BOTS) + [HUMAN]
    parser = argparse.ArgumentParser(description="Play a game of Uros in the terminal.")
    parser.add_argument("--red", choices=choices, default="minimax", help="strategy for red")
    parser.add_argument("--blue", choices=choices, default="mcts", help="strategy for blue")
    parser.add_argument("--time", type=int, default=1000, help="bot thinking time per move (ms)")
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible bots")
    parser.add_argument("--verbose", "-v", action="store_true", help="print every position and debug logs")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    print("=" * 50)
    print("  UROS  -  CLI Play Mode")
    print(f"  red: {args.red}   blue: {args.blue}")
    print("=" * 50)

    engine = Engine(seed=args.seed)
    record = play(engine, {RED: args.red, BLUE: args.blue}, args.time, args.verbose)

    game = engine.get_game_state()
    print()
    print(render_board(game))
    print("\n" + "=" * 50)
    if not record.finished:
        print("  Game stopped before the end.")
    elif record.winner:
        strategy = args.red if record.winner == RED else args.blue
        print(f"  RESULT: {record.winner.upper()} ({strategy}) wins")
    else:
        print("  RESULT: DRAW")
    for player_id, score in record.scores.items():
        print(f"  {player_id:<5} largest village: {score['size']} houses on {score['islands']} islands")
    print(f"  Moves: {record.moves}   think time red {record.think_ms[RED]:.0f} ms, "
          f"blue {record.think_ms[BLUE]:.0f} ms")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
