# app/client/cache.py

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, select, delete
from sqlalchemy.orm import declarative_base
from config.settings import settings
from infrastructure.database import DatabaseConnection
from schemas.lobby_schema import LobbyResponse
from utils.time_utils import as_utc, to_naive_utc
import logging

logger = logging.getLogger(__name__)


# Device-local tables; kept apart from the server's Base
CacheBase = declarative_base()


class CachedLobby(CacheBase):
    """A lobby the device user has joined, mirrored for offline display"""
    __tablename__ = "joined_lobbies"

    id = Column(String(36), primary_key=True)
    sport_name = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    date = Column(DateTime, nullable=False)
    max_players = Column(Integer, nullable=False)
    joined_players = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=True)
    creator_id = Column(String(36), nullable=True)
    creator_nickname = Column(String(255), nullable=True)
    creator_email = Column(String(320), nullable=True)

    @classmethod
    def from_lobby(cls, lobby: LobbyResponse) -> "CachedLobby":
        return cls(
            id=lobby.id,
            sport_name=lobby.sport_name,
            location=lobby.location,
            location_lat=lobby.location_lat,
            location_lng=lobby.location_lng,
            date=to_naive_utc(lobby.date),
            max_players=lobby.max_players,
            joined_players=lobby.joined_players,
            image_url=lobby.image_url,
            description=lobby.description,
            created_at=to_naive_utc(lobby.created_at),
            creator_id=lobby.creator_id,
            creator_nickname=lobby.creator_nickname,
            creator_email=lobby.creator_email,
        )

    def to_lobby(self) -> LobbyResponse:
        # Participants are not mirrored; the server is the only place to read them
        return LobbyResponse(
            id=self.id,
            sport_name=self.sport_name,
            location=self.location,
            location_lat=self.location_lat,
            location_lng=self.location_lng,
            date=as_utc(self.date),
            max_players=self.max_players,
            joined_players=self.joined_players,
            image_url=self.image_url,
            description=self.description,
            created_at=as_utc(self.created_at),
            creator_id=self.creator_id,
            creator_nickname=self.creator_nickname,
            creator_email=self.creator_email,
        )

    def __repr__(self):
        return f"<CachedLobby(id={self.id}, sport_name='{self.sport_name}')>"


class LocalLobbyCache(ABC):
    """
    Keyed store of joined lobbies; last write wins per id

    Not a system of record: the reconciler overwrites it with whatever the
    server says. Implementations may raise on storage errors; callers decide
    whether a failure matters.
    """

    @abstractmethod
    async def upsert(self, lobby: LobbyResponse) -> None:
        """Insert or replace the entry for lobby.id"""

    @abstractmethod
    async def delete_by_id(self, lobby_id: str) -> None:
        """Remove the entry; a missing id is not an error"""

    @abstractmethod
    async def get_by_id(self, lobby_id: str) -> Optional[LobbyResponse]:
        """The cached lobby or None"""

    @abstractmethod
    async def get_all(self) -> List[LobbyResponse]:
        """Current snapshot, soonest first"""

    @abstractmethod
    def stream_all(self) -> AsyncIterator[List[LobbyResponse]]:
        """Snapshot now, then a new snapshot after every change"""


class SqlLobbyCache(LocalLobbyCache):
    """LocalLobbyCache on an async SQLAlchemy engine (SQLite on device)"""

    def __init__(self, database_url: Optional[str] = None):
        self.connection = DatabaseConnection(database_url or settings.CACHE_DATABASE_URL, label="lobby cache")
        self._version = 0
        self._changed = asyncio.Condition()

    async def connect(self):
        """Open the cache database and create its table if needed"""
        await self.connection.connect(metadata=CacheBase.metadata)

    async def disconnect(self):
        await self.connection.disconnect()

    async def _notify(self):
        async with self._changed:
            self._version += 1
            self._changed.notify_all()

    async def upsert(self, lobby: LobbyResponse) -> None:
        async with self.connection.get_session_factory()() as session:
            await session.merge(CachedLobby.from_lobby(lobby))
            await session.commit()
        logger.debug(f"Cached lobby {lobby.id}")
        await self._notify()

    async def delete_by_id(self, lobby_id: str) -> None:
        async with self.connection.get_session_factory()() as session:
            await session.execute(delete(CachedLobby).where(CachedLobby.id == lobby_id))
            await session.commit()
        await self._notify()

    async def get_by_id(self, lobby_id: str) -> Optional[LobbyResponse]:
        async with self.connection.get_session_factory()() as session:
            cached = await session.get(CachedLobby, lobby_id)
            return cached.to_lobby() if cached else None

    async def get_all(self) -> List[LobbyResponse]:
        async with self.connection.get_session_factory()() as session:
            result = await session.execute(select(CachedLobby).order_by(CachedLobby.date))
            return [cached.to_lobby() for cached in result.scalars().all()]

    async def stream_all(self) -> AsyncIterator[List[LobbyResponse]]:
        seen = -1
        while True:
            async with self._changed:
                await self._changed.wait_for(lambda: self._version != seen)
                seen = self._version
            # Changes landing while we read are picked up on the next turn
            yield await self.get_all()
