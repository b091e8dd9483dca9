# engine_py/src/menteur_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class InvariantViolation(GameError):
    """The state machine reached a state that no legal sequence of actions produces."""
    def __init__(self, message: str):
        super().__init__(INTERNAL_ERROR, message)


# Specific error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_NOT_WAITING = "ROOM_NOT_WAITING"
ROOM_FULL = "ROOM_FULL"
NOT_IN_ROOM = "NOT_IN_ROOM"
NOT_HOST = "NOT_HOST"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
PLAYERS_NOT_READY = "PLAYERS_NOT_READY"
GAME_NOT_STARTED = "GAME_NOT_STARTED"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
EMPTY_PLAY = "EMPTY_PLAY"
ILLEGAL_JOKER_CLAIM = "ILLEGAL_JOKER_CLAIM"
INVALID_CLAIM = "INVALID_CLAIM"
CANNOT_CHALLENGE = "CANNOT_CHALLENGE"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
