"""Tests for the Engine facade."""

from unittest.mock import MagicMock

import pytest

from conftest import I_TROMINO, domino, tile
from engine import Engine
from models import BLUE, RED, VillageScore
from moves import Move


def _engine(**kwargs):
    kwargs.setdefault('board_size', 4)
    kwargs.setdefault('houses_per_player', 2)
    return Engine(tiles=[domino(0), domino(1), tile(2, I_TROMINO)], **kwargs)


def test_default_engine_uses_catalog():
    engine = Engine(seed=1)
    game_state = engine.get_game_state()
    assert game_state.board_size == 6
    assert len(game_state.reedbed) == 9
    assert not engine.is_game_over()
    assert engine.get_winner() is None
    assert engine.get_final_scores() == {}


def test_make_move_and_query():
    engine = _engine()
    moves = engine.get_valid_moves()
    assert moves[0].is_tile
    assert engine.make_move(moves[0])
    assert engine.get_game_state().current_player == BLUE
    assert not engine.make_move(Move.tile(0, 0, 0))


def test_illegal_move_changes_nothing():
    engine = _engine()
    before = len(engine.get_game_state().log)
    assert not engine.make_move(Move.house(2, 2, 2))
    assert len(engine.get_game_state().log) == before
    assert engine.get_game_state().move_count == 0


def test_new_game_resets():
    engine = _engine()
    engine.make_move(Move.tile(0, 0, 0))
    old_id = engine.get_game_state().game_id
    game_state = engine.new_game()
    assert game_state is engine.get_game_state()
    assert game_state.game_id != old_id
    assert len(game_state.reedbed) == 3
    assert game_state.move_count == 0


def test_calculate_villages():
    engine = _engine()
    engine.make_move(Move.tile(0, 0, 0))
    engine.make_move(Move.house(0, 0, 0))
    engine.make_move(Move.house(0, 0, 1))
    villages = engine.calculate_villages()
    assert [v.size for v in villages[BLUE]] == [2]
    assert villages[RED] == []


def test_final_scores_after_game_over():
    engine = Engine(tiles=[tile(0, [[1]])], board_size=1, houses_per_player=0)
    assert engine.make_move(Move.tile(0, 0, 0))
    assert engine.is_game_over()
    assert engine.get_winner() is None
    assert engine.get_final_scores() == {RED: VillageScore(0, 0), BLUE: VillageScore(0, 0)}


class TestRandom:
    def test_seeded_engines_agree(self):
        first, second = _engine(seed=4), _engine(seed=4)
        assert [first.get_random() for _ in range(5)] == [second.get_random() for _ in range(5)]

    def test_range(self):
        engine = _engine(seed=8)
        assert all(0.0 <= engine.get_random() < 1.0 for _ in range(20))


class TestRotateReedbedTile:
    def test_rotates_in_place(self):
        engine = _engine()
        assert engine.rotate_reedbed_tile(0)
        rotated = engine.get_game_state().get_reedbed_tile(0)
        assert rotated.rotation == 1
        assert rotated.shape.tolist() == [[1, 0], [1, 0]]
        assert engine.get_game_state().move_count == 0
        assert engine.get_game_state().current_player == RED
        assert engine.get_game_state().log[-1]['tile_id'] == 0

    def test_rotated_tile_places_as_shown(self):
        engine = _engine()
        engine.rotate_reedbed_tile(0, -1)
        assert engine.make_move(Move.tile(0, 0, 1, anchor_row=0, anchor_col=1))
        assert engine.get_game_state().board[1][1] is not None
        assert engine.get_game_state().board[0][0] is None

    def test_unknown_tile(self):
        assert not _engine().rotate_reedbed_tile(42)


class TestCreateBot:
    def test_unknown_player(self):
        with pytest.raises(ValueError):
            _engine().create_bot("random", "green")

    def test_seeded_engine_gives_reproducible_bots(self):
        moves = []
        for _ in range(2):
            engine = _engine(seed=5)
            bot = engine.create_bot("random", RED)
            moves.append(bot.choose_move(engine.get_game_state()))
        assert moves[0] == moves[1]

    def test_uses_engine_config(self, config):
        config['thinking_time_ms'] = 77
        engine = Engine(config=config)
        assert engine.create_bot("mcts", RED).config.thinking_time_ms == 77


class TestDiagnostics:
    def test_no_sink_by_default(self):
        assert _engine().diagnostics is None

    def test_forwards_logs_and_snapshots(self):
        sink = MagicMock()
        engine = _engine(diagnostics=sink)
        sink.clear_session.assert_called_once()
        sink.replace_snapshot.assert_called_once()
        started = sink.append_logs.call_args[0][0]
        assert started[0]['event'] == "Game started"

        sink.reset_mock()
        engine.make_move(Move.tile(0, 0, 0))
        entries = sink.append_logs.call_args[0][0]
        assert [e['event'].split(' ')[0] for e in entries] == ["Placed", "Turn"]
        snapshot = sink.replace_snapshot.call_args[0][0]
        assert snapshot['game_id'] == engine.get_game_state().game_id

    def test_illegal_move_not_forwarded(self):
        sink = MagicMock()
        engine = _engine(diagnostics=sink)
        sink.reset_mock()
        engine.make_move(Move.tile(9, 0, 0))
        sink.append_logs.assert_not_called()
