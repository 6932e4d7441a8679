# app/client/reconciler.py

from typing import AsyncIterator, Callable, List, Optional
from schemas.lobby_schema import CreateLobbyRequest, LobbyResponse, LobbyParticipantResponse
from client.cache import LocalLobbyCache
from client.gateway import RemoteLobbyGateway
from client.identity import Identity, IdentityProvider
from client.results import ErrorKind, Failure, LobbyDetails, Result, Success, failure
import logging

logger = logging.getLogger(__name__)

# Remote outcomes that mean "the server already agrees, just resync"
JOIN_IDEMPOTENT = (ErrorKind.ALREADY_JOINED,)
LEAVE_IDEMPOTENT = (ErrorKind.NOT_A_PARTICIPANT, ErrorKind.NOT_FOUND)


def is_creator(lobby: LobbyResponse, identity: Optional[Identity]) -> bool:
    """Exact, case-sensitive email match against the lobby's creator"""
    if identity is None or not identity.email or not lobby.creator_email:
        return False
    return identity.email == lobby.creator_email


def is_participant(participants: List[LobbyParticipantResponse], identity: Identity) -> bool:
    """Match by user id first, then by email"""
    if identity.user_id and any(p.user_id == identity.user_id for p in participants):
        return True
    if identity.email and any(p.email == identity.email for p in participants):
        return True
    return False


class LobbyReconciler:
    """
    Resolves the current user's relationship to a lobby and performs
    join/leave against the server, keeping the local cache in line with it.

    Ordering inside join/leave is always: remote call, then cache, then a
    fresh fetch. The server wins every disagreement; cache writes are best
    effort and never turn a confirmed remote change into a failure.

    Holds no per-call state, so concurrent calls for different lobbies are
    independent. Callers should not overlap join/leave for the same lobby.
    """

    def __init__(self, gateway: RemoteLobbyGateway, cache: LocalLobbyCache, identity: IdentityProvider):
        self._gateway = gateway
        self._cache = cache
        self._identity = identity

    # ---------- reads ----------

    async def load_details(self, lobby_id: str) -> Result[LobbyDetails]:
        """
        Fetch a lobby and compute is_joined/is_creator for the current user

        Never writes the cache.
        """
        if not lobby_id or not lobby_id.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Lobby id is blank")

        result = await self._gateway.get_by_id(lobby_id)
        if isinstance(result, Failure):
            return result

        return Success(await self._describe(result.value))

    async def _describe(self, lobby: LobbyResponse) -> LobbyDetails:
        identity = await self._identity.get_identity()

        if identity is not None and not identity.is_anonymous:
            joined = is_participant(lobby.participants, identity)
        else:
            # Degraded path: nothing to match participants against
            joined = await self._cached(lobby.id)

        return LobbyDetails(lobby=lobby, is_joined=joined, is_creator=is_creator(lobby, identity))

    async def _cached(self, lobby_id: str) -> bool:
        try:
            return await self._cache.get_by_id(lobby_id) is not None
        except Exception as e:
            logger.warning(f"Cache read for lobby {lobby_id} failed, assuming not joined: {e}")
            return False

    def joined_lobbies(self) -> AsyncIterator[List[LobbyResponse]]:
        """Offline list of joined lobbies, updated on every cache change"""
        return self._cache.stream_all()

    # ---------- writes ----------

    async def create(self, draft: CreateLobbyRequest) -> Result[LobbyDetails]:
        """
        Create a lobby; the server auto-joins the creator, so it is mirrored
        into the cache like a join.
        """
        result = await self._gateway.create(draft)
        if isinstance(result, Failure):
            return result

        lobby = result.value
        await self._store(lobby)
        logger.info(f"Created lobby {lobby.id}")
        return Success(await self._describe(lobby))

    async def join(self, lobby: LobbyResponse) -> Result[LobbyDetails]:
        """
        Join remotely, mirror locally, then resync from the server

        ALREADY_JOINED is treated as success: the server says we are in.
        """
        if not lobby.id or not lobby.id.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Lobby id is blank")

        result = await self._gateway.join(lobby.id)
        if isinstance(result, Failure):
            if result.kind not in JOIN_IDEMPOTENT:
                return result
            logger.info(f"Lobby {lobby.id} already joined on the server, resyncing")

        await self._store(lobby)

        refreshed = await self.load_details(lobby.id)
        if isinstance(refreshed, Success):
            await self._mirror(refreshed.value)
            return refreshed

        if refreshed.kind is ErrorKind.NOT_FOUND:
            # Deleted between our join and the re-fetch
            await self._forget(lobby.id)
            return refreshed

        logger.warning(f"Joined lobby {lobby.id} but re-fetch failed ({refreshed.kind.value}), using local copy")
        identity = await self._identity.get_identity()
        return Success(LobbyDetails(lobby=lobby, is_joined=True, is_creator=is_creator(lobby, identity)))

    async def leave(
        self,
        lobby_id: str,
        on_left: Optional[Callable[[str], None]] = None,
    ) -> Result[LobbyDetails]:
        """
        Leave remotely, drop the cache entry, then resync from the server

        ``on_left`` is called as soon as the server confirms, before the
        re-fetch, so a UI can flip to "not joined" immediately. An exception
        from it is logged; the leave still counts. If the
        re-fetch finds nothing the lobby was deleted (we were its creator)
        and the result has ``exists=False``.

        NOT_A_PARTICIPANT and NOT_FOUND mean the server already agrees we are
        out; they resync instead of failing.
        """
        if not lobby_id or not lobby_id.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Lobby id is blank")

        result = await self._gateway.leave(lobby_id)
        if isinstance(result, Failure):
            if result.kind not in LEAVE_IDEMPOTENT:
                return result
            logger.info(f"Not in lobby {lobby_id} on the server ({result.kind.value}), resyncing")

        await self._forget(lobby_id)

        if on_left is not None:
            try:
                on_left(lobby_id)
            except Exception as e:
                logger.warning(f"on_left hook for lobby {lobby_id} failed, ignoring: {e}")

        refreshed = await self.load_details(lobby_id)
        if isinstance(refreshed, Success):
            await self._mirror(refreshed.value)
            return refreshed

        if refreshed.kind is ErrorKind.NOT_FOUND:
            return Success(LobbyDetails(lobby=None, is_joined=False, is_creator=False, exists=False))

        logger.warning(f"Left lobby {lobby_id} but re-fetch failed ({refreshed.kind.value})")
        return Success(LobbyDetails(lobby=None, is_joined=False, is_creator=False))

    # ---------- cache, best effort ----------

    async def _mirror(self, details: LobbyDetails) -> None:
        """Make the cache say what the server just said"""
        if details.lobby is None:
            return
        if details.is_joined:
            await self._store(details.lobby)
        else:
            await self._forget(details.lobby.id)

    async def _store(self, lobby: LobbyResponse) -> None:
        try:
            await self._cache.upsert(lobby)
        except Exception as e:
            logger.warning(f"Cache write for lobby {lobby.id} failed, ignoring: {e}")

    async def _forget(self, lobby_id: str) -> None:
        try:
            await self._cache.delete_by_id(lobby_id)
        except Exception as e:
            logger.warning(f"Cache delete for lobby {lobby_id} failed, ignoring: {e}")
