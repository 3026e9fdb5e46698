from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Squareg game server!'})


@main.route('/api/status')
def status():
    """Read-only probe: live room and player counts."""
    gateway = current_app.extensions['squareg']
    return jsonify(gateway.stats())
