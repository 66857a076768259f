from flask import Flask, request, jsonify
from flask_cors import CORS
from engine import Engine
from models import PLAYER_IDS
from moves import Move
from state import get_game_summary
from upkeep import get_final_result
from typing import Dict

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, Engine] = {}  # In-memory storage for running games


def _optional_int(data: dict, key: str):
    """Read an optional integer field; raises ValueError if present but not an integer."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f'{key} must be an integer')
    try:
        return int(value)
    except (ValueError, TypeError):
        raise ValueError(f'{key} must be an integer')


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new game, optionally seeded and sized."""
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        try:
            seed = _optional_int(data, 'seed')
            board_size = _optional_int(data, 'board_size')
            houses = _optional_int(data, 'houses_per_player')
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        if board_size is not None and board_size < 1:
            return jsonify({'error': 'board_size must be positive'}), 400
        if houses is not None and houses < 0:
            return jsonify({'error': 'houses_per_player must not be negative'}), 400

        engine = Engine(board_size=board_size, houses_per_player=houses, seed=seed)
        game_id = engine.get_game_state().game_id
        games[game_id] = engine

        return jsonify({'game_id': game_id})

    except Exception as e:
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the current game state for the given game ID."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        return jsonify(get_game_summary(games[game_id].get_game_state()))

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game state: {str(e)}'}), 500


@app.route('/api/game/<game_id>/moves', methods=['GET'])
def get_valid_moves(game_id: str):
    """List every legal move for the player to move."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        engine = games[game_id]
        moves = engine.get_valid_moves()
        return jsonify({
            'game_id': game_id,
            'current_player': engine.get_game_state().current_player,
            'moves': [move.to_dict() for move in moves],
        })

    except Exception as e:
        return jsonify({'error': f'Failed to list moves: {str(e)}'}), 500


@app.route('/api/game/<game_id>/move', methods=['POST'])
def make_move(game_id: str):
    """Apply a tile or house placement for the player to move."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        data = request.get_json(silent=True)
        if not isinstance(data, dict) or 'move' not in data:
            return jsonify({'error': 'Request must contain a move'}), 400

        try:
            move = Move.from_dict(data['move'])
        except ValueError as e:
            return jsonify({'error': f'Invalid move data: {str(e)}'}), 400

        engine = games[game_id]
        if not engine.make_move(move):
            return jsonify({'success': False, 'error': 'Illegal move'}), 400

        game_state = engine.get_game_state()
        return jsonify({
            'success': True,
            'state': get_game_summary(game_state),
            'result': get_final_result(game_state),
        })

    except Exception as e:
        return jsonify({'error': f'Failed to apply move: {str(e)}'}), 500


@app.route('/api/game/<game_id>/villages', methods=['GET'])
def get_villages(game_id: str):
    """Villages on the board for both players, with each player's largest."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        villages = games[game_id].calculate_villages()
        response = {}
        for player_id in PLAYER_IDS:
            player_villages = villages[player_id]
            largest = max((v.score() for v in player_villages), default=None)
            response[player_id] = {
                'villages': [v.to_dict() for v in player_villages],
                'largest': largest.to_dict() if largest else {'size': 0, 'islands': 0},
            }
        return jsonify({'game_id': game_id, 'villages': response})

    except Exception as e:
        return jsonify({'error': f'Failed to calculate villages: {str(e)}'}), 500


@app.route('/api/game/<game_id>/bot-move', methods=['POST'])
def bot_move(game_id: str):
    """Let a bot choose and play a move for the player to move."""
    try:
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data.get('strategy'):
            return jsonify({'error': 'Request must name a strategy'}), 400

        options = {}
        try:
            options['thinking_time_ms'] = _optional_int(data, 'thinking_time_ms')
            options['seed'] = _optional_int(data, 'seed')
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        if 'randomize' in data:
            if not isinstance(data['randomize'], bool):
                return jsonify({'error': 'randomize must be a boolean'}), 400
            options['randomize'] = data['randomize']
        if 'random_threshold' in data:
            try:
                options['random_threshold'] = float(data['random_threshold'])
            except (ValueError, TypeError):
                return jsonify({'error': 'random_threshold must be a number'}), 400

        engine = games[game_id]
        game_state = engine.get_game_state()
        if game_state.game_over:
            return jsonify({'success': False, 'error': 'Game is over'}), 400

        options = {key: value for key, value in options.items() if value is not None}
        try:
            bot = engine.create_bot(data['strategy'], game_state.current_player, **options)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        move = bot.choose_move(game_state)
        search = bot.last_result.to_dict() if bot.last_result else None
        if move is None or not engine.make_move(move):
            return jsonify({'success': False, 'error': 'Bot found no legal move', 'search': search}), 400

        return jsonify({
            'success': True,
            'move': move.to_dict(),
            'search': search,
            'state': get_game_summary(engine.get_game_state()),
            'result': get_final_result(engine.get_game_state()),
        })

    except Exception as e:
        return jsonify({'error': f'Failed to play bot move: {str(e)}'}), 500


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the full game log for analysis."""
    try:
        # Validate game_id exists
        if game_id not in games:
            return jsonify({'error': 'Game not found'}), 404

        game_state = games[game_id].get_game_state()

        log_response = {
            'game_id': game_id,
            'move_count': game_state.move_count,
            'current_player': game_state.current_player,
            'log': game_state.log
        }

        return jsonify(log_response)

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game log: {str(e)}'}), 500

if __name__ == '__main__':
    app.run(debug=True)
