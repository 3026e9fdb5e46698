import random
import threading
import time
from typing import Any, Dict, Optional

from flask import request
from flask_socketio import emit, join_room, leave_room

from squareg.services.games.errors import InvalidMoveError, NoRoomError, ValidationError
from squareg.services.games.registry import Registry
from squareg.services.games.room import (
    MATCH_WIN,
    NEXT_ROUND,
    PLAY,
    ROUND_WIN,
    WAITING,
    Room,
)


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


class SessionGateway:
    """Translates client intents into Room operations and fans out snapshots.

    Every intent and every timer tick runs under one lock, so all room
    mutations in the process form a single ordered stream. The gateway owns
    the mapping from rooms to Socket.IO channels; rooms only ever see
    connection ids.
    """

    def __init__(self, registry: Registry, socketio, config, logger, namespace='/', clock=time.time):
        self.registry = registry
        self.socketio = socketio
        self.logger = logger
        self.namespace = namespace
        self.clock = clock
        self.auto_start_players = int(config.get('AUTO_START_PLAYERS', 2))
        self.auto_start_delay = float(config.get('AUTO_START_DELAY_SEC', 2))
        self.default_grid_size = int(config.get('DEFAULT_GRID_SIZE', 3))
        self.min_grid_size = int(config.get('MIN_GRID_SIZE', 3))
        self.max_grid_size = int(config.get('MAX_GRID_SIZE', 5))
        self.max_name_length = int(config.get('MAX_NAME_LENGTH', 20))
        self.idle_timeout = float(config.get('ROOM_IDLE_TIMEOUT_SEC', 1800))
        self.sweep_interval = float(config.get('ROOM_SWEEP_INTERVAL_SEC', 60))
        self.stopped = False
        self._lock = threading.RLock()
        self._auto_starts: Dict[str, float] = {}
        self._last_sweep: Optional[float] = None

    # ---- outbound helpers ----

    def _to_sender(self, sid: str, event: str, data: Dict[str, Any]) -> None:
        self.socketio.emit(event, data, to=sid, namespace=self.namespace)

    def _broadcast(self, room: Room, event: str, data: Dict[str, Any]) -> None:
        self.socketio.emit(event, data, to=room_channel(room.id), namespace=self.namespace)

    def _broadcast_state(self, room: Room) -> None:
        self._broadcast(room, 'gameStateUpdate', room.snapshot())

    def _broadcast_starting(self, room: Room) -> None:
        self._broadcast(room, 'gameStarting', {
            'countdown': room.countdown_seconds,
            'gameState': room.snapshot(),
        })

    # ---- input normalisation ----

    def _clean_name(self, raw) -> str:
        name = raw.strip() if isinstance(raw, str) else ''
        if not name:
            name = f"Player_{random.randint(0, 999)}"
        return name[:self.max_name_length]

    def _grid_size(self, raw) -> int:
        try:
            size = int(raw)
        except (TypeError, ValueError):
            return self.default_grid_size
        return max(self.min_grid_size, min(self.max_grid_size, size))

    def _bound_room(self, sid: str) -> Room:
        room = self.registry.room_for(sid)
        if room is None:
            raise NoRoomError('Not in a room')
        return room

    # ---- membership ----

    def _enter(self, sid: str, room: Room) -> None:
        self.registry.bind(sid, room.id)
        join_room(room_channel(room.id), sid=sid, namespace=self.namespace)

    def _leave_current(self, sid: str) -> None:
        room_id = self.registry.unbind(sid)
        room = self.registry.get(room_id)
        if room is None:
            return
        leave_room(room_channel(room.id), sid=sid, namespace=self.namespace)
        player = room.remove_player(sid)
        room.touch(self.clock())
        if room.is_empty:
            self._destroy(room, reason='empty')
            return
        if room.player_count < self.auto_start_players:
            self._auto_starts.pop(room.id, None)
        self._broadcast(room, 'playerLeft', {
            'playerId': sid,
            'playerName': player.name if player else None,
            'gameState': room.snapshot(),
        })
        self.logger.info(f"[player-leave] room={room.id} player={sid} remaining={room.player_count}")

    def _destroy(self, room: Room, reason: str) -> None:
        self.registry.destroy(room)
        self._release(room, reason)

    def _release(self, room: Room, reason: str) -> None:
        self._auto_starts.pop(room.id, None)
        self.socketio.close_room(room_channel(room.id), namespace=self.namespace)
        self.logger.info(f"[room-destroy] room={room.id} code={room.room_code} reason={reason}")

    def _maybe_schedule_auto_start(self, room: Room, now: float) -> None:
        if self.auto_start_players <= 0 or room.game_state != WAITING:
            return
        if room.player_count == self.auto_start_players and room.id not in self._auto_starts:
            self._auto_starts[room.id] = now + self.auto_start_delay
            self.logger.info(f"[auto-start-set] room={room.id} delay={self.auto_start_delay}s")

    # ---- intents ----

    def create_game(self, sid: str, data=None) -> Optional[Room]:
        data = _payload(data)
        with self._lock:
            now = self.clock()
            self._leave_current(sid)
            room = self.registry.create_room(self._grid_size(data.get('gridSize')), now=now)
            room.add_player(sid, self._clean_name(data.get('playerName')))
            self._enter(sid, room)
            self.logger.info(f"[room-create] room={room.id} code={room.room_code} size={room.size} player={sid}")
            self._to_sender(sid, 'gameCreated', {
                'playerId': sid,
                'roomId': room.id,
                'roomCode': room.room_code,
                'gameState': room.snapshot(),
            })
            return room

    def join_game(self, sid: str, data=None) -> Optional[Room]:
        data = _payload(data)
        code = data.get('roomCode')
        with self._lock:
            now = self.clock()
            try:
                if not code or not isinstance(code, str) or not code.strip():
                    raise ValidationError('Room code is required')
                room = self.registry.find_by_code(code)
                if room is None:
                    raise ValidationError('Room not found')
                if sid not in room.players:
                    # Validate before leaving the current room so a failed
                    # join leaves the connection where it was.
                    if room.game_state != WAITING:
                        raise ValidationError('Game already in progress')
                    if room.is_full:
                        raise ValidationError('Room is full')
            except ValidationError as exc:
                self.logger.info(f"[join-error] player={sid} code={code!r} reason={exc.message}")
                self._to_sender(sid, 'joinError', {'message': exc.message})
                return None

            if self.registry.room_for(sid) is not room:
                self._leave_current(sid)
            room.add_player(sid, self._clean_name(data.get('playerName')))
            room.touch(now)
            self._enter(sid, room)
            self.logger.info(f"[room-join] room={room.id} player={sid} players={room.player_count}")
            self._to_sender(sid, 'gameJoined', {
                'playerId': sid,
                'roomId': room.id,
                'roomCode': room.room_code,
                'gameState': room.snapshot(),
            })
            self._broadcast_state(room)
            self._maybe_schedule_auto_start(room, now)
            return room

    def start_game(self, sid: str, data=None) -> bool:
        with self._lock:
            now = self.clock()
            try:
                room = self._bound_room(sid)
                room.start_game(now)
            except (NoRoomError, ValidationError) as exc:
                self._to_sender(sid, 'error', {'message': exc.message})
                return False
            self._auto_starts.pop(room.id, None)
            room.touch(now)
            self.logger.info(f"[game-start] room={room.id} by={sid} countdown={room.countdown_seconds}s")
            self._broadcast_starting(room)
            return True

    def make_move(self, sid: str, data=None) -> Optional[str]:
        data = _payload(data)
        move_type = data.get('moveType')
        index = data.get('index')
        with self._lock:
            now = self.clock()
            try:
                room = self._bound_room(sid)
                reason = room.check_move(sid, move_type)
                if reason is None and (not isinstance(index, int) or isinstance(index, bool)):
                    reason = 'Move index must be an integer'
                if reason is not None:
                    raise InvalidMoveError(reason)
            except (NoRoomError, InvalidMoveError) as exc:
                self._to_sender(sid, 'invalidMove', {
                    'reason': exc.message,
                    'moveType': move_type,
                    'index': index,
                })
                return None

            outcome = room.apply_move(sid, move_type, index, now=now)
            room.touch(now)
            player = room.players[sid]
            if outcome == ROUND_WIN:
                self.logger.info(
                    f"[round-win] room={room.id} round={room.current_round} player={sid} score={player.round_wins}"
                )
                self._broadcast(room, 'roundWon', {
                    'winnerId': sid,
                    'winnerName': player.name,
                    'score': player.round_wins,
                    'round': room.current_round,
                    'gameState': room.snapshot(),
                })
            elif outcome == MATCH_WIN:
                self.logger.info(f"[match-win] room={room.id} player={sid} score={player.round_wins}")
                self._broadcast(room, 'matchWon', {
                    'winnerId': sid,
                    'winnerName': player.name,
                    'score': player.round_wins,
                    'gameState': room.snapshot(),
                })
            else:
                self._broadcast_state(room)
            return outcome

    def disconnect(self, sid: str) -> None:
        with self._lock:
            self._leave_current(sid)

    # ---- timers ----

    def tick(self, now: Optional[float] = None) -> None:
        """Fire due auto starts and room transitions, then sweep idle rooms."""
        with self._lock:
            now = self.clock() if now is None else now

            for room_id, due_at in sorted(self._auto_starts.items(), key=lambda item: item[1]):
                if due_at > now:
                    continue
                del self._auto_starts[room_id]
                room = self.registry.get(room_id)
                if room is None or room.game_state != WAITING or room.player_count < self.auto_start_players:
                    self.logger.info(f"[auto-start-abort] room={room_id}")
                    continue
                room.start_game(due_at)
                self.logger.info(f"[auto-start-fire] room={room.id} players={room.player_count}")
                self._broadcast_starting(room)

            for room in self.registry.rooms():
                for kind in room.advance(now):
                    self.logger.info(f"[timer-fire] room={room.id} kind={kind} round={room.current_round}")
                    if kind == PLAY:
                        self._broadcast_state(room)
                    elif kind == NEXT_ROUND:
                        self._broadcast(room, 'nextRoundStarting', {
                            'roundNumber': room.current_round,
                            'countdown': room.countdown_seconds,
                            'gameState': room.snapshot(),
                        })

            if self.idle_timeout > 0 and (self._last_sweep is None or now - self._last_sweep >= self.sweep_interval):
                self._last_sweep = now
                self.sweep(now)

    def sweep(self, now: float) -> None:
        for room in self.registry.sweep_idle(now, self.idle_timeout):
            self._broadcast(room, 'error', {'message': 'Room closed due to inactivity'})
            self._release(room, reason='idle')

    def stats(self):
        with self._lock:
            return self.registry.stats()

    def snapshot_for_code(self, code: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self.registry.find_by_code(code)
            return room.snapshot() if room else None

    def stop(self) -> None:
        self.stopped = True


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def register_socketio_handlers(gateway: SessionGateway) -> None:
    """Register Socket.IO event handlers bound to the given gateway."""
    socketio = gateway.socketio
    namespace = gateway.namespace

    def handle_connect(auth=None):
        emit('connected', {'message': 'Connected to Squareg'})

    def handle_disconnect(reason=None):
        gateway.disconnect(_get_sid())

    def handle_create_game(data=None):
        gateway.create_game(_get_sid(), data)

    def handle_join_game(data=None):
        gateway.join_game(_get_sid(), data)

    def handle_start_game(data=None):
        gateway.start_game(_get_sid(), data)

    def handle_make_move(data=None):
        gateway.make_move(_get_sid(), data)

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createGame', handle_create_game, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('makeMove', handle_make_move, namespace=namespace)
