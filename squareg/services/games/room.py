"""Room state machine for one match.

A Room knows nothing about sockets: players are keyed by an opaque
connection id, and timed phase changes are stored as a PendingTransition
that an outside driver fires by calling ``advance(now)``.
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .board import (
    DEFAULT_SCRAMBLE_RANGE,
    MOVE_TYPES,
    Board,
    generate_ordered,
    generate_scrambled,
    matches_by_color,
)
from .errors import ValidationError


WAITING = 'waiting'
COUNTDOWN = 'countdown'
PLAYING = 'playing'
ROUND_FINISHED = 'roundFinished'
MATCH_FINISHED = 'matchFinished'

# apply_move outcomes
INVALID = 'invalid'
MOVE = 'move'
ROUND_WIN = 'roundWin'
MATCH_WIN = 'matchWin'

# pending transition kinds
PLAY = 'play'
NEXT_ROUND = 'nextRound'

_EXPECTED_STATE = {
    PLAY: COUNTDOWN,
    NEXT_ROUND: ROUND_FINISHED,
}


@dataclass
class Player:
    id: str
    name: str
    board: Board
    moves: int = 0
    round_wins: int = 0

    def reset_board(self) -> None:
        self.board = generate_ordered(self.board.size)
        self.moves = 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'moves': self.moves,
            'roundWins': self.round_wins,
            'board': self.board.to_list(),
        }


@dataclass(frozen=True)
class PendingTransition:
    kind: str
    due_at: float
    round: int

    def to_dict(self):
        return {'kind': self.kind, 'dueAt': self.due_at}


class Room:
    def __init__(
        self,
        room_id: str,
        room_code: str,
        size: int = 3,
        max_rounds: int = 7,
        max_players: int = 4,
        countdown_seconds: float = 3,
        next_round_delay: float = 3,
        scramble_range: Tuple[int, int] = DEFAULT_SCRAMBLE_RANGE,
        rng: Optional[random.Random] = None,
        now: float = 0.0,
    ):
        if size < 2:
            raise ValueError(f"Board size must be at least 2, got {size}")
        if max_rounds < 1 or max_rounds % 2 == 0:
            raise ValueError(f"max_rounds must be a positive odd number, got {max_rounds}")
        if scramble_range[1] < 1 or scramble_range[0] > scramble_range[1]:
            raise ValueError(f"Invalid scramble range: {scramble_range}")
        self.id = room_id
        self.room_code = room_code
        self.size = size
        self.max_rounds = max_rounds
        self.max_players = max_players
        self.countdown_seconds = countdown_seconds
        self.next_round_delay = next_round_delay
        self.scramble_range = scramble_range
        self.rng = rng or random.Random()

        self.players: Dict[str, Player] = {}
        self.game_state = WAITING
        self.winner: Optional[str] = None
        self.match_winner: Optional[str] = None
        self.current_round = 1
        self.start_time: Optional[float] = None
        self.pending: Optional[PendingTransition] = None
        self.destroyed = False
        self.last_activity = now
        self.target_board = self._new_target()

    @property
    def rounds_to_win(self) -> int:
        return math.ceil(self.max_rounds / 2)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    @property
    def round_scores(self) -> Dict[str, int]:
        return {pid: p.round_wins for pid, p in self.players.items()}

    def _new_target(self) -> Board:
        # A target that already matches the ordered colours would be won by
        # any row rotation, so draw again.
        ordered = generate_ordered(self.size)
        while True:
            target = generate_scrambled(self.size, self.scramble_range, rng=self.rng)
            if not matches_by_color(target, ordered):
                return target

    def touch(self, now: float) -> None:
        self.last_activity = now

    def add_player(self, player_id: str, name: str) -> Player:
        if player_id in self.players:
            return self.players[player_id]
        if self.game_state != WAITING:
            raise ValidationError('Game already in progress')
        if self.is_full:
            raise ValidationError('Room is full')
        player = Player(id=player_id, name=name, board=generate_ordered(self.size))
        self.players[player_id] = player
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        return self.players.pop(player_id, None)

    def start_game(self, now: float) -> None:
        if self.game_state != WAITING:
            raise ValidationError('Game already in progress')
        if not self.players:
            raise ValidationError('Need at least one player to start')
        self.game_state = COUNTDOWN
        self.start_time = now
        self.pending = PendingTransition(PLAY, now + self.countdown_seconds, self.current_round)

    def check_move(self, player_id: str, move_type: str) -> Optional[str]:
        """Return why a move would be rejected, or None if it is acceptable."""
        if self.game_state != PLAYING:
            return 'Game is not in progress'
        if player_id not in self.players:
            return 'Not a player in this room'
        if move_type not in MOVE_TYPES:
            return f"Unknown move type: {move_type!r}"
        return None

    def apply_move(self, player_id: str, move_type: str, index: int, now: float = 0.0) -> str:
        """Apply one rotation to the mover's board and check for a win.

        Returns INVALID without touching anything when the room is not
        playing, the player is unknown or the move type is not recognised.
        Out-of-range indexes leave the board as it is but still count as a
        move.
        """
        if self.check_move(player_id, move_type) is not None:
            return INVALID

        player = self.players[player_id]
        player.board.apply(move_type, index)
        player.moves += 1
        if not matches_by_color(player.board, self.target_board):
            return MOVE

        player.round_wins += 1
        if player.round_wins >= self.rounds_to_win:
            self.match_winner = player_id
            self.game_state = MATCH_FINISHED
            self.pending = None
            return MATCH_WIN

        self.winner = player_id
        self.game_state = ROUND_FINISHED
        self.pending = PendingTransition(NEXT_ROUND, now + self.next_round_delay, self.current_round)
        return ROUND_WIN

    def start_next_round(self, now: float) -> None:
        if self.game_state != ROUND_FINISHED:
            raise ValidationError('Round is not finished')
        self.current_round += 1
        self.winner = None
        self.target_board = self._new_target()
        for player in self.players.values():
            player.reset_board()
        self.game_state = COUNTDOWN
        self.pending = PendingTransition(PLAY, now + self.countdown_seconds, self.current_round)

    def _begin_play(self) -> None:
        self.game_state = PLAYING
        self.pending = None

    def advance(self, now: float) -> List[str]:
        """Fire every pending transition that is due at ``now``.

        A transition whose expected state or round no longer holds is
        dropped. Returns the kinds that fired, in order.
        """
        fired = []
        while not self.destroyed and self.pending is not None and self.pending.due_at <= now:
            pending = self.pending
            if self.game_state != _EXPECTED_STATE[pending.kind] or self.current_round != pending.round:
                self.pending = None
                break
            if pending.kind == PLAY:
                self._begin_play()
            else:
                self.start_next_round(pending.due_at)
            fired.append(pending.kind)
        return fired

    def destroy(self) -> None:
        self.destroyed = True
        self.pending = None

    def snapshot(self):
        return {
            'id': self.id,
            'roomCode': self.room_code,
            'size': self.size,
            'gameState': self.game_state,
            'currentRound': self.current_round,
            'maxRounds': self.max_rounds,
            'roundsToWin': self.rounds_to_win,
            'targetBoard': self.target_board.to_list(),
            'players': [p.to_dict() for p in self.players.values()],
            'winner': self.winner,
            'matchWinner': self.match_winner,
            'roundScores': self.round_scores,
            'startTime': self.start_time,
            'pendingTransition': self.pending.to_dict() if self.pending else None,
        }
