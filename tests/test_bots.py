"""Tests for the bot registry, the shared search helpers and each strategy."""

import math
import random

import pytest

from bots import BOTS, BotConfig, SearchStatus, Strategy, create_bot
from bots.interface import Deadline, SearchResult, randomize_choice
from bots.minimax import MinimaxBot, distinct_children
from bots.mcts import MonteCarloBot
from conftest import I_TROMINO, domino, make_state, monomino, play_moves, tile
from models import BLUE, RED
from moves import Move, get_valid_moves


def _last_house_position():
    """
    Blue to move with one house left and the board full.

    Housing tile 1 ties the game; housing the reedbed tromino loses it.
    """
    game_state = make_state([domino(0), domino(1), tile(2, I_TROMINO)], board_size=2, houses=2)
    play_moves(game_state, [
        Move.house(0, 0, 0), Move.tile(0, 0, 0), Move.house(1, 0, 0),
        Move.house(0, 0, 1), Move.tile(1, 1, 0),
    ])
    return game_state


def _finished_position():
    game_state = make_state([monomino(0)], board_size=1, houses=0)
    play_moves(game_state, [Move.tile(0, 0, 0)])
    return game_state


class _PollBudget:
    """Deadline stand-in that expires after a fixed number of polls."""

    def __init__(self, polls=None):
        self.limit = polls
        self.polls = 0

    def expired(self):
        self.polls += 1
        return self.limit is not None and self.polls > self.limit

    def elapsed_ms(self):
        return 0.0


class TestRandomizeChoice:
    moves = [Move.house(0, 0, 0), Move.house(0, 0, 1), Move.house(1, 0, 0)]

    def test_strict_first_best(self):
        config = BotConfig(randomize=False)
        assert randomize_choice(self.moves, [1.0, 3.0, 3.0], config, random.Random(0)) == (self.moves[1], 3.0)

    def test_empty(self):
        assert randomize_choice([], [], BotConfig(), random.Random(0)) is None

    def test_threshold_window(self):
        config = BotConfig(randomize=True, random_threshold=0.1)
        rng = random.Random(0)
        picks = {randomize_choice(self.moves, [10.0, 9.5, 5.0], config, rng)[0] for _ in range(50)}
        assert picks == {self.moves[0], self.moves[1]}

    def test_zero_best_only_keeps_ties(self):
        config = BotConfig(randomize=True, random_threshold=0.5)
        rng = random.Random(0)
        picks = {randomize_choice(self.moves, [0.0, -0.1, 0.0], config, rng)[0] for _ in range(50)}
        assert picks == {self.moves[0], self.moves[2]}

    def test_nan_is_never_viable(self):
        config = BotConfig(randomize=True, random_threshold=1.0)
        rng = random.Random(0)
        for _ in range(20):
            move, score = randomize_choice(self.moves, [float('nan'), 2.0, 2.0], config, rng)
            assert move != self.moves[0]
            assert score == 2.0

    def test_nothing_viable_falls_back_to_first(self):
        config = BotConfig(randomize=True)
        move, score = randomize_choice(self.moves, [float('-inf')] * 3, config, random.Random(0))
        assert move == self.moves[0]
        assert score == float('-inf')


class TestSearchPlumbing:
    def test_deadline_with_fake_clock(self):
        now = [100.0]
        deadline = Deadline(50, clock=lambda: now[0])
        assert not deadline.expired()
        now[0] += 0.02
        assert deadline.elapsed_ms() == pytest.approx(20.0)
        assert deadline.remaining_ms() == pytest.approx(30.0)
        now[0] += 0.04
        assert deadline.expired()
        assert deadline.remaining_ms() == 0.0

    def test_search_result_to_dict(self):
        result = SearchResult(move=Move.house(1, 0, 1), score=float('-inf'),
                              status=SearchStatus.CANCELLED, elapsed_ms=12.345)
        data = result.to_dict()
        assert data['score'] is None
        assert data['status'] == 'cancelled'
        assert data['move']['type'] == 'house-placement'
        assert data['elapsed_ms'] == 12.3
        assert SearchResult(move=None).to_dict()['move'] is None

    def test_bot_config_from_config(self, config):
        config['thinking_time_ms'] = 250
        config['evaluation_weights']['blocking'] = 4.0
        bot_config = BotConfig.from_config(config, seed=None, randomize=True)
        assert bot_config.thinking_time_ms == 250
        assert bot_config.weights['blocking'] == 4.0
        assert bot_config.weights['largest_size'] == 10.0
        assert bot_config.randomize is True
        assert bot_config.seed is None

    def test_bot_config_rejects_unknown_option(self):
        with pytest.raises(ValueError):
            BotConfig.from_config(None, search_harder=True)

    @pytest.mark.parametrize("strategy_id", ["minimax", "mcts"])
    def test_enumeration_counts_against_the_budget(self, small_game, monkeypatch, strategy_id):
        now = [0.0]
        monkeypatch.setattr("bots.interface.Deadline",
                            lambda budget_ms: Deadline(budget_ms, clock=lambda: now[0]))

        def slow_enumeration(game_state):
            now[0] += 0.5
            return get_valid_moves(game_state)

        monkeypatch.setattr("bots.interface.get_valid_moves", slow_enumeration)
        bot = create_bot(strategy_id, RED, thinking_time_ms=300, seed=1)
        assert bot.choose_move(small_game) == get_valid_moves(small_game)[0]
        result = bot.last_result
        assert result.status == SearchStatus.CANCELLED
        assert (result.depth, result.simulations) == (0, 0)
        assert result.elapsed_ms == pytest.approx(500.0)


class TestRegistry:
    @pytest.mark.parametrize("strategy_id", sorted(BOTS))
    def test_every_strategy_builds(self, strategy_id):
        bot = create_bot(strategy_id, BLUE, thinking_time_ms=10)
        assert bot.name == strategy_id
        assert bot.player_id == BLUE
        assert isinstance(bot, Strategy)

    def test_strategy_defaults(self):
        assert create_bot("minimax", RED).config.randomize is False
        assert create_bot("minimax-some-rng", RED).config.randomize is True
        assert create_bot("mcts", RED).config.randomize is True
        assert isinstance(create_bot("minimax-some-rng", RED), MinimaxBot)

    def test_options_override_defaults(self):
        bot = create_bot("minimax-some-rng", RED, random_threshold=0.5, thinking_time_ms=20)
        assert bot.config.random_threshold == 0.5
        assert bot.config.thinking_time_ms == 20

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            create_bot("alphazero", RED)

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            create_bot("random", RED, depth=3)


class TestBaselines:
    def test_deterministic_plays_first_move(self, small_game):
        bot = create_bot("deterministic", RED)
        assert bot.choose_move(small_game) == get_valid_moves(small_game)[0]
        assert bot.last_result.status == SearchStatus.COMPLETED

    def test_random_is_reproducible(self, small_game):
        first = [create_bot("random", RED, seed=9).choose_move(small_game) for _ in range(3)]
        assert len(set(first)) == 1
        assert first[0] in get_valid_moves(small_game)

    @pytest.mark.parametrize("strategy_id", sorted(BOTS))
    def test_no_moves_on_finished_game(self, strategy_id):
        game_state = _finished_position()
        bot = create_bot(strategy_id, BLUE, thinking_time_ms=50)
        assert bot.choose_move(game_state) is None
        assert bot.last_result.status == SearchStatus.NO_MOVES
        assert bot.last_result.move is None


class TestMinimax:
    def test_outcome_dedupe(self):
        square = tile(0, [[1, 1], [1, 1]])
        game_state = make_state([square], board_size=2, houses=0)
        moves = get_valid_moves(game_state)
        children = list(distinct_children(game_state, moves))
        # Four anchors, one resulting position
        assert len(moves) == 4
        assert [move for move, _ in children] == [moves[0]]
        assert children[0][1].get_placed_tile(0) is not None

    def test_does_not_mutate_state(self, small_game):
        before = (small_game.move_count, len(small_game.log), [t.id for t in small_game.reedbed])
        create_bot("minimax", RED, thinking_time_ms=100, max_search_depth=1).choose_move(small_game)
        assert (small_game.move_count, len(small_game.log), [t.id for t in small_game.reedbed]) == before

    def test_avoids_the_losing_house(self):
        game_state = _last_house_position()
        bot = create_bot("minimax", BLUE, thinking_time_ms=5000)
        move = bot.choose_move(game_state)
        assert move == Move.house(1, 0, 1, BLUE)
        result = bot.last_result
        assert result.status == SearchStatus.COMPLETED
        assert result.score == 0.0
        # Every line ends the game, so one ply is enough
        assert result.depth == 1

    def test_zero_budget_is_cancelled(self, small_game):
        bot = create_bot("minimax", RED, thinking_time_ms=0)
        moves = get_valid_moves(small_game)
        assert bot.choose_move(small_game) == moves[0]
        assert bot.last_result.status == SearchStatus.CANCELLED
        assert bot.last_result.depth == 0

    def test_abandoned_depth_keeps_the_last_completed_one(self, small_game):
        moves = get_valid_moves(small_game)
        unlimited = _PollBudget()
        depth_one = create_bot("minimax", RED, max_search_depth=1).search(small_game, moves, unlimited)
        assert (depth_one.status, depth_one.depth) == (SearchStatus.COMPLETED, 1)

        # Same polls as the depth-1 search, then three more: depth 2 starts but cannot finish
        bot = create_bot("minimax", RED, max_search_depth=2)
        result = bot.search(small_game, moves, _PollBudget(unlimited.polls + 3))
        assert result.status == SearchStatus.COMPLETED
        assert result.depth == 1
        assert (result.move, result.score) == (depth_one.move, depth_one.score)

    def test_respects_depth_cap(self, small_game):
        bot = create_bot("minimax", RED, thinking_time_ms=60000, max_search_depth=1)
        bot.choose_move(small_game)
        assert bot.last_result.status == SearchStatus.COMPLETED
        assert bot.last_result.depth == 1


class TestMonteCarlo:
    def test_avoids_the_losing_house(self):
        game_state = _last_house_position()
        bot = create_bot("mcts", BLUE, thinking_time_ms=5000, seed=1)
        assert isinstance(bot, MonteCarloBot)
        assert bot.choose_move(game_state) == Move.house(1, 0, 1, BLUE)
        result = bot.last_result
        assert result.status == SearchStatus.COMPLETED
        assert result.score == 0.0
        # Every playout is decided immediately, so the rates settle at the minimum
        assert result.simulations == 4 * bot.config.mcts_min_simulations

    def test_undersampled_search_is_cancelled(self, small_game):
        moves = get_valid_moves(small_game)
        bot = create_bot("mcts", RED, seed=1)
        # Room for a few playout steps, nowhere near one playout per move
        result = bot.search(small_game, moves, _PollBudget(5))
        assert result.status == SearchStatus.CANCELLED
        assert result.move in moves
        assert result.simulations < len(moves)

    def test_zero_budget_is_cancelled(self, small_game):
        bot = create_bot("mcts", RED, thinking_time_ms=0, seed=1)
        assert bot.choose_move(small_game) == get_valid_moves(small_game)[0]
        assert bot.last_result.status == SearchStatus.CANCELLED
        assert bot.last_result.simulations == 0
        assert math.isinf(bot.last_result.score)


@pytest.mark.parametrize("strategy_id", ["minimax", "minimax-some-rng", "mcts"])
def test_search_returns_a_legal_move(small_game, strategy_id):
    """Same seed, same budget, same state: the move is always one of the legal ones."""
    bot = create_bot(strategy_id, RED, thinking_time_ms=200, seed=11, max_search_depth=2)
    move = bot.choose_move(small_game)
    assert move in get_valid_moves(small_game)
    assert bot.last_result.elapsed_ms < 200 + 2000


@pytest.mark.parametrize("strategy_id", ["minimax", "mcts"])
def test_budget_holds_on_the_full_board(game, strategy_id):
    """The opening position of the standard game, where enumeration alone is a real cost."""
    budget = 300
    bot = create_bot(strategy_id, RED, thinking_time_ms=budget, seed=4)
    move = bot.choose_move(game)
    assert move in get_valid_moves(game)
    # One unit of work past the deadline at most
    assert bot.last_result.elapsed_ms <= budget + 200
