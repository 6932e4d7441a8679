# app/client/results.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union
from schemas.lobby_schema import LobbyResponse

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Stable failure tags; callers branch on these, never on message wording"""
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    LOBBY_FULL = "LOBBY_FULL"
    ALREADY_JOINED = "ALREADY_JOINED"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    TRANSIENT = "TRANSIENT"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class LobbyError:
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    error: LobbyError

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


# Two states only: "pending" belongs to the controllers, not to results
Result = Union[Success[T], Failure]


def failure(kind: ErrorKind, message: str, **details: Any) -> Failure:
    return Failure(LobbyError(kind=kind, message=message, details=details))


@dataclass(frozen=True)
class LobbyDetails:
    """
    A lobby together with the current user's relationship to it.

    ``is_joined`` and ``is_creator`` are computed for whoever asked and are
    never stored. ``exists`` is False once the lobby was deleted (its creator
    left); ``lobby`` is then None.
    """
    lobby: Optional[LobbyResponse]
    is_joined: bool
    is_creator: bool
    exists: bool = True
