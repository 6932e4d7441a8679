# app/client/gateway.py

from abc import ABC, abstractmethod
from typing import Callable, List, TypeVar
from urllib.parse import quote
import httpx
from pydantic import TypeAdapter, ValidationError
from schemas.lobby_schema import CreateLobbyRequest, LobbyResponse, MessageResponse
from client.identity import IdentityProvider
from client.http import send
from client.results import ErrorKind, Failure, Result, Success, failure
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

_lobby_list = TypeAdapter(List[LobbyResponse])


def lobby_path(lobby_id: str, action: str = "") -> str:
    """Lobby URL with the id escaped as a single path segment"""
    path = f"/lobbies/{quote(lobby_id, safe='')}"
    return f"{path}/{action}" if action else path


class RemoteLobbyGateway(ABC):
    """
    Operations against the authoritative lobby server

    Every method returns Success or Failure; none raises for expected
    failures. join and leave are part of the contract so callers never need
    to know which implementation they hold.
    """

    @abstractmethod
    async def list_all(self) -> Result[List[LobbyResponse]]:
        """Lobby summaries (no participants)"""

    @abstractmethod
    async def get_by_id(self, lobby_id: str) -> Result[LobbyResponse]:
        """Full lobby including participants"""

    @abstractmethod
    async def create(self, draft: CreateLobbyRequest) -> Result[LobbyResponse]:
        """Persist a lobby; the caller becomes its first participant"""

    @abstractmethod
    async def join(self, lobby_id: str) -> Result[str]:
        """Join; success carries the server's confirmation message"""

    @abstractmethod
    async def leave(self, lobby_id: str) -> Result[str]:
        """Leave (deletes the lobby when the caller is its creator)"""


class HttpLobbyGateway(RemoteLobbyGateway):
    """RemoteLobbyGateway over the REST API"""

    def __init__(self, client: httpx.AsyncClient, identity: IdentityProvider):
        self._client = client
        self._identity = identity

    @staticmethod
    def _parse(result: Result[httpx.Response], parse: Callable[[httpx.Response], T]) -> Result[T]:
        if isinstance(result, Failure):
            return result
        try:
            return Success(parse(result.value))
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed response from {result.value.request.url}: {e}")
            return failure(ErrorKind.UNKNOWN, "Malformed server response")

    async def list_all(self) -> Result[List[LobbyResponse]]:
        result = await send(self._client, "GET", "/lobbies")
        return self._parse(result, lambda r: _lobby_list.validate_python(r.json()))

    async def get_by_id(self, lobby_id: str) -> Result[LobbyResponse]:
        result = await send(self._client, "GET", lobby_path(lobby_id))
        return self._parse(result, lambda r: LobbyResponse.model_validate(r.json()))

    async def create(self, draft: CreateLobbyRequest) -> Result[LobbyResponse]:
        result = await send(
            self._client, "POST", "/lobbies",
            identity=self._identity,
            authenticated=True,
            json=draft.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return self._parse(result, lambda r: LobbyResponse.model_validate(r.json()))

    async def join(self, lobby_id: str) -> Result[str]:
        result = await send(
            self._client, "POST", lobby_path(lobby_id, "join"),
            identity=self._identity,
            authenticated=True,
        )
        return self._parse(result, lambda r: MessageResponse.model_validate(r.json()).message)

    async def leave(self, lobby_id: str) -> Result[str]:
        result = await send(
            self._client, "DELETE", lobby_path(lobby_id, "leave"),
            identity=self._identity,
            authenticated=True,
        )
        return self._parse(result, lambda r: MessageResponse.model_validate(r.json()).message)
