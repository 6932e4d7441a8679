# app/exceptions/domain_exceptions.py

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base class for all domain exceptions"""

    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Exception raised when a resource is not found"""

    error_code = "NOT_FOUND"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=404,
            details=details,
            error_code=error_code
        )


class BadRequestException(DomainException):
    """Exception raised for invalid client requests"""

    error_code = "INVALID_ARGUMENT"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=400,
            details=details,
            error_code=error_code
        )


# ================ Lobby Exceptions ================

class LobbyNotFoundException(NotFoundException):
    """Raised when a lobby id does not exist (or was deleted by its creator)"""

    error_code = "LOBBY_NOT_FOUND"

    def __init__(self, lobby_id: str):
        super().__init__(
            message="Lobby not found",
            details={"lobby_id": lobby_id}
        )


class LobbyFullException(BadRequestException):
    """Raised when a join would exceed max_players"""

    error_code = "LOBBY_FULL"

    def __init__(self, lobby_id: str, max_players: int):
        super().__init__(
            message="Lobby is full",
            details={"lobby_id": lobby_id, "max_players": max_players}
        )


class AlreadyJoinedException(BadRequestException):
    """Raised when the user already has a participant row in the lobby"""

    error_code = "ALREADY_JOINED"

    def __init__(self, lobby_id: str):
        super().__init__(
            message="Already joined this lobby",
            details={"lobby_id": lobby_id}
        )


class NotAParticipantException(BadRequestException):
    """Raised when a non-participant tries to leave a lobby"""

    error_code = "NOT_A_PARTICIPANT"

    def __init__(self, lobby_id: str):
        super().__init__(
            message="You are not a participant of this lobby",
            details={"lobby_id": lobby_id}
        )
