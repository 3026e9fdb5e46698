from flask import Blueprint, current_app, jsonify

games = Blueprint('games', __name__)


@games.route('/<string:room_code>/state', methods=['GET'])
def get_game_state(room_code):
    """
    Returns the full snapshot of a live room, looked up by its room code.
    """
    snapshot = current_app.extensions['squareg'].snapshot_for_code(room_code)
    if snapshot is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(snapshot)
