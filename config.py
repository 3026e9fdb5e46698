import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Match rules
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '7'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    DEFAULT_GRID_SIZE = int(os.environ.get('DEFAULT_GRID_SIZE', '3'))
    MIN_GRID_SIZE = int(os.environ.get('MIN_GRID_SIZE', '3'))
    MAX_GRID_SIZE = int(os.environ.get('MAX_GRID_SIZE', '5'))
    SCRAMBLE_MIN_MOVES = int(os.environ.get('SCRAMBLE_MIN_MOVES', '15'))
    SCRAMBLE_MAX_MOVES = int(os.environ.get('SCRAMBLE_MAX_MOVES', '35'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '20'))
    # Auto-start: begin the countdown once this many players are in a waiting room. 0 disables.
    AUTO_START_PLAYERS = int(os.environ.get('AUTO_START_PLAYERS', '2'))
    # Phase timers (seconds)
    AUTO_START_DELAY_SEC = float(os.environ.get('AUTO_START_DELAY_SEC', '2'))
    COUNTDOWN_SEC = float(os.environ.get('COUNTDOWN_SEC', '3'))
    NEXT_ROUND_DELAY_SEC = float(os.environ.get('NEXT_ROUND_DELAY_SEC', '3'))
    # Transition driver loop
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '0.1'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Idle room cleanup. 0 disables.
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', '1800'))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '60'))
