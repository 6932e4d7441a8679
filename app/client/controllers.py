# app/client/controllers.py

from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional
from pydantic import ValidationError
from config.settings import settings
from schemas.lobby_schema import CreateLobbyRequest, LobbyResponse
from client.gateway import RemoteLobbyGateway
from client.reconciler import LobbyReconciler
from client.results import ErrorKind, Failure, LobbyDetails, LobbyError
import logging

logger = logging.getLogger(__name__)


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    REMOVED = "removed"  # lobby deleted by its creator; not an error


MESSAGES = {
    ErrorKind.INVALID_ARGUMENT: "The lobby details are invalid.",
    ErrorKind.UNAUTHENTICATED: "Please sign in to continue.",
    ErrorKind.NOT_FOUND: "This lobby no longer exists.",
    ErrorKind.LOBBY_FULL: "This lobby is already full.",
    ErrorKind.TRANSIENT: "No connection. Check your network and try again.",
}
FALLBACK_MESSAGE = "Something went wrong. Please try again."


def user_message(error: LobbyError) -> str:
    """Text for the user, chosen by kind so server wording never leaks into the UI"""
    if error.kind in MESSAGES:
        return MESSAGES[error.kind]
    return FALLBACK_MESSAGE


# ================ Lobby list ================

@dataclass(frozen=True)
class LobbyListState:
    status: ViewStatus = ViewStatus.LOADING
    lobbies: List[LobbyResponse] = field(default_factory=list)
    message: Optional[str] = None


class LobbyListController:
    """Home screen: all lobbies from the server, joined lobbies from the cache"""

    def __init__(self, gateway: RemoteLobbyGateway, reconciler: LobbyReconciler):
        self._gateway = gateway
        self._reconciler = reconciler
        self.state = LobbyListState()

    async def load(self) -> LobbyListState:
        self.state = replace(self.state, status=ViewStatus.LOADING, message=None)

        result = await self._gateway.list_all()
        if isinstance(result, Failure):
            self.state = LobbyListState(status=ViewStatus.ERROR, message=user_message(result.error))
        else:
            self.state = LobbyListState(status=ViewStatus.SUCCESS, lobbies=result.value)
        return self.state

    async def refresh(self) -> LobbyListState:
        return await self.load()

    def joined_lobbies(self) -> AsyncIterator[List[LobbyResponse]]:
        return self._reconciler.joined_lobbies()


# ================ Lobby detail ================

@dataclass(frozen=True)
class LobbyDetailState:
    status: ViewStatus = ViewStatus.LOADING
    details: Optional[LobbyDetails] = None
    message: Optional[str] = None


class LobbyDetailController:
    """
    Detail screen state around the reconciler

    A second join/leave while one is in flight is ignored.
    """

    def __init__(self, reconciler: LobbyReconciler):
        self._reconciler = reconciler
        self.state = LobbyDetailState()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def load(self, lobby_id: str) -> LobbyDetailState:
        self.state = LobbyDetailState(status=ViewStatus.LOADING)

        result = await self._reconciler.load_details(lobby_id)
        if isinstance(result, Failure):
            self.state = LobbyDetailState(status=ViewStatus.ERROR, message=user_message(result.error))
        else:
            self.state = LobbyDetailState(status=ViewStatus.SUCCESS, details=result.value)
        return self.state

    async def join(self) -> LobbyDetailState:
        details = self.state.details
        if details is None or details.lobby is None or self._busy:
            return self.state

        self._busy = True
        try:
            result = await self._reconciler.join(details.lobby)
        finally:
            self._busy = False

        self._apply(result)
        return self.state

    async def leave(self) -> LobbyDetailState:
        details = self.state.details
        if details is None or details.lobby is None or self._busy:
            return self.state

        self._busy = True
        try:
            result = await self._reconciler.leave(details.lobby.id, on_left=self._on_left)
        finally:
            self._busy = False

        self._apply(result)
        return self.state

    def _on_left(self, lobby_id: str) -> None:
        if self.state.details is not None:
            self.state = LobbyDetailState(
                status=ViewStatus.SUCCESS,
                details=replace(self.state.details, is_joined=False),
            )

    def _apply(self, result) -> None:
        if isinstance(result, Failure):
            # Keep showing what we had; the message explains why nothing changed
            self.state = replace(self.state, status=ViewStatus.ERROR, message=user_message(result.error))
            return

        details: LobbyDetails = result.value
        if not details.exists:
            self.state = LobbyDetailState(status=ViewStatus.REMOVED, details=details)
        elif details.lobby is None:
            # Confirmed, but the re-fetch failed: keep the last lobby we showed
            previous = self.state.details
            kept = replace(previous, is_joined=details.is_joined) if previous else details
            self.state = LobbyDetailState(status=ViewStatus.SUCCESS, details=kept)
        else:
            self.state = LobbyDetailState(status=ViewStatus.SUCCESS, details=details)


# ================ Create lobby ================

@dataclass(frozen=True)
class CreateLobbyState:
    status: ViewStatus = ViewStatus.IDLE
    details: Optional[LobbyDetails] = None
    message: Optional[str] = None


class CreateLobbyController:
    """Validates the create form and submits it through the reconciler"""

    def __init__(self, reconciler: LobbyReconciler, clock: Callable[[], datetime] = lambda: datetime.now(UTC)):
        self._reconciler = reconciler
        self._clock = clock
        self.state = CreateLobbyState()

    def validate(
        self,
        sport_name: str,
        location: str,
        date: Optional[datetime],
        max_players: int,
    ) -> Optional[str]:
        """Error message for the first invalid field, or None"""
        if not sport_name or not sport_name.strip():
            return "Sport name is required"
        if not location or not location.strip():
            return "Location is required"
        if date is None:
            return "Date and time are required"
        if max_players <= 0:
            return "Max players must be a positive number"
        if max_players > settings.MAX_PLAYERS_LIMIT:
            return f"Max players cannot exceed {settings.MAX_PLAYERS_LIMIT}"

        when = date if date.tzinfo else date.replace(tzinfo=UTC)
        if when <= self._clock():
            return "Date and time must be in the future"
        return None

    async def submit(
        self,
        sport_name: str,
        location: str,
        date: Optional[datetime],
        max_players: int,
        description: Optional[str] = None,
        location_lat: Optional[float] = None,
        location_lng: Optional[float] = None,
    ) -> CreateLobbyState:
        error = self.validate(sport_name, location, date, max_players)
        if error:
            self.state = CreateLobbyState(status=ViewStatus.ERROR, message=error)
            return self.state

        try:
            draft = CreateLobbyRequest(
                sport_name=sport_name,
                location=location,
                location_lat=location_lat,
                location_lng=location_lng,
                date=date,
                max_players=max_players,
                description=description or None,
            )
        except ValidationError as e:
            logger.info(f"Rejected lobby draft: {e.error_count()} invalid field(s)")
            self.state = CreateLobbyState(status=ViewStatus.ERROR, message=MESSAGES[ErrorKind.INVALID_ARGUMENT])
            return self.state

        self.state = CreateLobbyState(status=ViewStatus.LOADING)
        result = await self._reconciler.create(draft)
        if isinstance(result, Failure):
            self.state = CreateLobbyState(status=ViewStatus.ERROR, message=user_message(result.error))
        else:
            self.state = CreateLobbyState(status=ViewStatus.SUCCESS, details=result.value)
        return self.state
