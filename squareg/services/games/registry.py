import random
import string
import uuid
from typing import Callable, Dict, List, Optional

from .room import Room


ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length=ROOM_CODE_LENGTH):
    """Generate a short, human-shareable room code."""
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


class Registry:
    """In-memory directory of live rooms and the connections bound to them.

    Rooms are indexed both by internal id and by room code. Each connection
    belongs to at most one room at a time.
    """

    def __init__(self, code_factory: Callable[[], str] = generate_room_code, room_defaults: Optional[dict] = None):
        self.code_factory = code_factory
        self.room_defaults = dict(room_defaults or {})
        self._rooms: Dict[str, Room] = {}
        self._codes: Dict[str, str] = {}
        self._bindings: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config) -> 'Registry':
        """Build a registry whose rooms use the match settings from app config."""
        return cls(room_defaults={
            'max_rounds': int(config.get('MAX_ROUNDS', 7)),
            'max_players': int(config.get('MAX_PLAYERS', 4)),
            'countdown_seconds': float(config.get('COUNTDOWN_SEC', 3)),
            'next_round_delay': float(config.get('NEXT_ROUND_DELAY_SEC', 3)),
            'scramble_range': (
                int(config.get('SCRAMBLE_MIN_MOVES', 15)),
                int(config.get('SCRAMBLE_MAX_MOVES', 35)),
            ),
        })

    def _unique_code(self) -> str:
        while True:
            code = self.code_factory().upper()
            if code not in self._codes:
                return code

    def create_room(self, size: int, now: float = 0.0, **room_options) -> Room:
        options = dict(self.room_defaults)
        options.update(room_options)
        room_id = uuid.uuid4().hex
        while room_id in self._rooms:
            room_id = uuid.uuid4().hex
        room = Room(room_id, self._unique_code(), size=size, now=now, **options)
        self._rooms[room.id] = room
        self._codes[room.room_code] = room.id
        return room

    def get(self, room_id: Optional[str]) -> Optional[Room]:
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def find_by_code(self, code: Optional[str]) -> Optional[Room]:
        if not code or not isinstance(code, str):
            return None
        room_id = self._codes.get(code.strip().upper())
        return self._rooms.get(room_id) if room_id else None

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def destroy(self, room: Room) -> None:
        self._rooms.pop(room.id, None)
        if self._codes.get(room.room_code) == room.id:
            del self._codes[room.room_code]
        for connection_id in self.connections_in(room.id):
            del self._bindings[connection_id]
        room.destroy()

    def bind(self, connection_id: str, room_id: str) -> None:
        if room_id not in self._rooms:
            raise KeyError(room_id)
        self._bindings[connection_id] = room_id

    def unbind(self, connection_id: str) -> Optional[str]:
        return self._bindings.pop(connection_id, None)

    def room_for(self, connection_id: str) -> Optional[Room]:
        return self.get(self._bindings.get(connection_id))

    def connections_in(self, room_id: str) -> List[str]:
        return [cid for cid, rid in self._bindings.items() if rid == room_id]

    def sweep_idle(self, now: float, max_idle: float) -> List[Room]:
        """Destroy rooms with no activity for longer than ``max_idle`` seconds."""
        stale = [room for room in self._rooms.values() if now - room.last_activity > max_idle]
        for room in stale:
            self.destroy(room)
        return stale

    def stats(self):
        return {
            'rooms': len(self._rooms),
            'players': sum(room.player_count for room in self._rooms.values()),
        }
