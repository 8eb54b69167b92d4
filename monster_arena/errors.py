# monster_arena/errors.py
"""Battle-layer exceptions. Each carries a machine-readable code."""


class BattleError(Exception):
    """Base exception for recoverable battle errors."""

    status = 400
    default_code = "BATTLE_ERROR"

    def __init__(self, code=None, message=""):
        self.code = code or self.default_code
        super().__init__(message or self.code)

    def to_dict(self):
        return {"error": self.code, "message": str(self)}


class ValidationError(BattleError):
    """Raised when an action is malformed or not allowed right now."""

    default_code = "INVALID_ACTION"


class AuthorizationError(BattleError):
    """Raised when a session exists but belongs to another user."""

    status = 403
    default_code = "UNAUTHORIZED_ACCESS"


class SessionNotFoundError(BattleError):
    """Raised when a required session is missing or expired."""

    status = 404
    default_code = "BATTLE_NOT_FOUND"


class ConflictError(BattleError):
    """Raised when a user already has a live battle."""

    status = 409
    default_code = "BATTLE_ALREADY_IN_PROGRESS"


class TerminalStateError(BattleError):
    """Raised when a turn is submitted after the battle has ended."""

    status = 409
    default_code = "BATTLE_ALREADY_ENDED"
