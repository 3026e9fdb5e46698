class GameError(Exception):
    """Base class for failures scoped to a single connection or room."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    """Join/start precondition failed; room state is unchanged."""


class InvalidMoveError(GameError):
    """Move rejected; reported to the mover only."""


class NoRoomError(GameError):
    """The connection is not bound to any room."""
