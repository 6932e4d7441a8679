# app/services/lobby_service.py

from typing import List
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload
from models.lobby import Lobby, LobbyParticipant
from models.registered_user import RegisteredUser
from schemas.lobby_schema import CreateLobbyRequest, LobbyResponse, LobbyParticipantResponse
from exceptions.domain_exceptions import (
    LobbyNotFoundException,
    LobbyFullException,
    AlreadyJoinedException,
    NotAParticipantException,
)
from utils.time_utils import as_utc, to_naive_utc
import logging

logger = logging.getLogger(__name__)


class LobbyService:
    """Service for managing lobbies and their participants"""

    @staticmethod
    def _to_response(lobby: Lobby, joined_players: int, with_participants: bool) -> LobbyResponse:
        creator = lobby.creator
        participants: List[LobbyParticipantResponse] = []
        if with_participants:
            participants = [
                LobbyParticipantResponse(
                    user_id=str(p.user_id),
                    nickname=p.user.nickname,
                    email=p.user.email,
                    joined_at=as_utc(p.joined_at),
                )
                for p in lobby.participants
            ]

        return LobbyResponse(
            id=lobby.id,
            sport_name=lobby.sport_name,
            location=lobby.location,
            location_lat=lobby.location_lat,
            location_lng=lobby.location_lng,
            date=as_utc(lobby.date),
            max_players=lobby.max_players,
            joined_players=joined_players,
            image_url=lobby.image_url,
            description=lobby.description,
            created_at=as_utc(lobby.created_at),
            creator_id=str(lobby.creator_id),
            creator_nickname=creator.nickname if creator else None,
            creator_email=creator.email if creator else None,
            participants=participants,
        )

    @staticmethod
    async def list_lobbies(session: AsyncSession) -> List[LobbyResponse]:
        """
        Get all lobbies, newest first

        Participants are not loaded; joined_players is counted in SQL.
        """
        counts = (
            select(
                LobbyParticipant.lobby_id,
                func.count(LobbyParticipant.id).label("joined_players")
            )
            .group_by(LobbyParticipant.lobby_id)
            .subquery()
        )
        query = (
            select(Lobby, func.coalesce(counts.c.joined_players, 0))
            .outerjoin(counts, Lobby.id == counts.c.lobby_id)
            .options(joinedload(Lobby.creator))
            .order_by(Lobby.created_at.desc())
        )
        result = await session.execute(query)

        return [
            LobbyService._to_response(lobby, joined_players, with_participants=False)
            for lobby, joined_players in result.all()
        ]

    @staticmethod
    async def get_lobby(session: AsyncSession, lobby_id: str) -> LobbyResponse:
        """
        Get lobby details with participants ordered by join time

        Raises:
            LobbyNotFoundException: If the lobby does not exist
        """
        query = (
            select(Lobby)
            .where(Lobby.id == lobby_id)
            .options(
                joinedload(Lobby.creator),
                selectinload(Lobby.participants).joinedload(LobbyParticipant.user),
            )
            .execution_options(populate_existing=True)
        )
        result = await session.execute(query)
        lobby = result.scalar_one_or_none()

        if not lobby:
            raise LobbyNotFoundException(lobby_id)

        return LobbyService._to_response(lobby, len(lobby.participants), with_participants=True)

    @staticmethod
    async def create_lobby(
        session: AsyncSession,
        creator: RegisteredUser,
        request: CreateLobbyRequest
    ) -> LobbyResponse:
        """
        Create a new lobby; the creator becomes its first participant

        Args:
            session: Database session
            creator: Authenticated user creating the lobby
            request: Validated lobby fields

        Returns:
            The persisted lobby with joined_players == 1
        """
        lobby = Lobby(
            creator_id=creator.id,
            sport_name=request.sport_name,
            location=request.location,
            location_lat=request.location_lat,
            location_lng=request.location_lng,
            date=to_naive_utc(request.date),
            max_players=request.max_players,
            description=request.description,
        )
        session.add(lobby)
        await session.flush()

        session.add(LobbyParticipant(lobby_id=lobby.id, user_id=creator.id))
        await session.commit()

        logger.info(f"Lobby {lobby.id} ({lobby.sport_name}) created by user {creator.id}")

        return await LobbyService.get_lobby(session, lobby.id)

    @staticmethod
    async def join_lobby(session: AsyncSession, lobby_id: str, user_id: int) -> None:
        """
        Add the user to the lobby's participants

        Membership is checked before capacity, so a member re-joining a full
        lobby is told they already joined rather than that it is full.

        Raises:
            LobbyNotFoundException: If the lobby does not exist
            AlreadyJoinedException: If the user already has a participant row
            LobbyFullException: If the lobby reached max_players
        """
        # Lock the lobby row so concurrent joins cannot both pass the capacity check
        result = await session.execute(
            select(Lobby).where(Lobby.id == lobby_id).with_for_update()
        )
        lobby = result.scalar_one_or_none()

        if not lobby:
            raise LobbyNotFoundException(lobby_id)

        existing = await session.scalar(
            select(LobbyParticipant.id).where(
                LobbyParticipant.lobby_id == lobby_id,
                LobbyParticipant.user_id == user_id
            )
        )
        if existing is not None:
            raise AlreadyJoinedException(lobby_id)

        current_count = await session.scalar(
            select(func.count(LobbyParticipant.id)).where(LobbyParticipant.lobby_id == lobby_id)
        )
        if current_count >= lobby.max_players:
            raise LobbyFullException(lobby_id, lobby.max_players)

        session.add(LobbyParticipant(lobby_id=lobby_id, user_id=user_id))
        try:
            await session.commit()
        except IntegrityError:
            # Unique (lobby_id, user_id) constraint lost a race with a parallel join
            await session.rollback()
            raise AlreadyJoinedException(lobby_id)

        logger.info(f"User {user_id} joined lobby {lobby_id} ({current_count + 1}/{lobby.max_players})")

    @staticmethod
    async def leave_lobby(session: AsyncSession, lobby_id: str, user_id: int) -> bool:
        """
        Remove the user from the lobby

        If the user is the creator the whole lobby is deleted together with
        every participant row.

        Returns:
            True if the lobby was deleted, False if only the participant row was

        Raises:
            LobbyNotFoundException: If the lobby does not exist
            NotAParticipantException: If the user has no participant row
        """
        result = await session.execute(
            select(Lobby)
            .where(Lobby.id == lobby_id)
            .options(selectinload(Lobby.participants))
            .execution_options(populate_existing=True)
        )
        lobby = result.scalar_one_or_none()

        if not lobby:
            raise LobbyNotFoundException(lobby_id)

        if lobby.creator_id == user_id:
            await session.delete(lobby)
            await session.commit()
            logger.info(f"Lobby {lobby_id} deleted by its creator {user_id}")
            return True

        result = await session.execute(
            delete(LobbyParticipant).where(
                LobbyParticipant.lobby_id == lobby_id,
                LobbyParticipant.user_id == user_id
            )
        )
        if result.rowcount == 0:
            raise NotAParticipantException(lobby_id)

        await session.commit()
        logger.info(f"User {user_id} left lobby {lobby_id}")
        return False

    @staticmethod
    async def remove_user(session: AsyncSession, user_id: int) -> int:
        """
        Drop everything a user owns before their account is deleted

        Deletes the lobbies they created (with all participants) and their
        participant rows in other lobbies. Does not commit.

        Returns:
            Number of lobbies deleted
        """
        created = select(Lobby.id).where(Lobby.creator_id == user_id)
        await session.execute(
            delete(LobbyParticipant).where(
                (LobbyParticipant.user_id == user_id) | LobbyParticipant.lobby_id.in_(created)
            )
        )
        result = await session.execute(delete(Lobby).where(Lobby.creator_id == user_id))

        logger.info(f"Removed user {user_id} from all lobbies ({result.rowcount} created lobbies deleted)")
        return result.rowcount
