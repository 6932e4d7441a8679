"""
Unit tests for LobbyService

Tests cover:
- Creating lobbies (creator auto-joined)
- Listing and fetching lobbies
- Joining (full, already joined, missing lobby)
- Leaving (participant, creator deletes the lobby, non-participant)
- Removing a user before account deletion
"""
import pytest
from datetime import UTC
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from models.registered_user import RegisteredUser
from models.lobby import Lobby, LobbyParticipant
from schemas.lobby_schema import CreateLobbyRequest
from services.lobby_service import LobbyService
from exceptions.domain_exceptions import (
    LobbyNotFoundException,
    LobbyFullException,
    AlreadyJoinedException,
    NotAParticipantException,
)


@pytest.mark.unit
class TestCreateLobby:
    """Test cases for create_lobby method"""

    async def test_create_lobby_success(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test creating a lobby makes the creator its first participant"""
        # Act
        lobby = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        # Assert
        assert lobby.id
        assert lobby.sport_name == "Football"
        assert lobby.location == "Central Park"
        assert lobby.max_players == 3
        assert lobby.joined_players == 1
        assert lobby.creator_id == str(test_user_1.id)
        assert lobby.creator_email == "user1@test.com"
        assert lobby.creator_nickname == "TestUser1"
        assert [p.user_id for p in lobby.participants] == [str(test_user_1.id)]

    async def test_create_lobby_returns_utc_dates(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test that dates come back timezone-aware and unchanged"""
        lobby = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        assert lobby.date.tzinfo is not None
        assert lobby.date.astimezone(UTC).replace(microsecond=0) == lobby_request.date.astimezone(UTC).replace(microsecond=0)
        assert lobby.created_at is not None and lobby.created_at.tzinfo is not None

    async def test_create_lobby_persists_participant_row(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test the creator's participant row is stored"""
        lobby = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        count = await db_session.scalar(
            select(func.count(LobbyParticipant.id)).where(LobbyParticipant.lobby_id == lobby.id)
        )
        assert count == 1


@pytest.mark.unit
class TestListAndGetLobby:
    """Test cases for list_lobbies and get_lobby methods"""

    async def test_list_lobbies_empty(self, db_session: AsyncSession):
        """Test listing when no lobby exists"""
        assert await LobbyService.list_lobbies(db_session) == []

    async def test_list_lobbies_counts_without_participants(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test summaries carry joined_players but no participant list"""
        first = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        second = await LobbyService.create_lobby(
            db_session, test_user_2, lobby_request.model_copy(update={"sport_name": "Tennis"})
        )
        await LobbyService.join_lobby(db_session, first.id, test_user_2.id)

        lobbies = await LobbyService.list_lobbies(db_session)

        by_id = {lobby.id: lobby for lobby in lobbies}
        assert set(by_id) == {first.id, second.id}
        assert by_id[first.id].joined_players == 2
        assert by_id[second.id].joined_players == 1
        assert all(lobby.participants == [] for lobby in lobbies)

    async def test_get_lobby_orders_participants_by_join_time(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        test_user_3: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test participants come back in join order"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        await LobbyService.join_lobby(db_session, created.id, test_user_3.id)
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        lobby = await LobbyService.get_lobby(db_session, created.id)

        assert [p.user_id for p in lobby.participants] == [
            str(test_user_1.id), str(test_user_3.id), str(test_user_2.id)
        ]
        assert lobby.joined_players == 3

    async def test_get_lobby_not_found(self, db_session: AsyncSession):
        """Test getting a lobby that does not exist"""
        with pytest.raises(LobbyNotFoundException) as exc_info:
            await LobbyService.get_lobby(db_session, "missing-id")

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "LOBBY_NOT_FOUND"


@pytest.mark.unit
class TestJoinLobby:
    """Test cases for join_lobby method"""

    async def test_join_lobby_success(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test joining adds exactly one participant"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        lobby = await LobbyService.get_lobby(db_session, created.id)
        assert lobby.joined_players == 2
        assert str(test_user_2.id) in [p.user_id for p in lobby.participants]

    async def test_join_lobby_twice(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test a second join is rejected and the count is unchanged"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        with pytest.raises(AlreadyJoinedException) as exc_info:
            await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        assert exc_info.value.status_code == 400
        lobby = await LobbyService.get_lobby(db_session, created.id)
        assert lobby.joined_players == 2

    async def test_join_lobby_creator_already_joined(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test the creator cannot join their own lobby again"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        with pytest.raises(AlreadyJoinedException):
            await LobbyService.join_lobby(db_session, created.id, test_user_1.id)

    async def test_join_full_lobby(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        test_user_3: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test joining a lobby at capacity"""
        created = await LobbyService.create_lobby(
            db_session, test_user_1, lobby_request.model_copy(update={"max_players": 2})
        )
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        with pytest.raises(LobbyFullException) as exc_info:
            await LobbyService.join_lobby(db_session, created.id, test_user_3.id)

        assert exc_info.value.error_code == "LOBBY_FULL"
        assert exc_info.value.details["max_players"] == 2

    async def test_member_rejoining_full_lobby_is_already_joined(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test membership is checked before capacity"""
        created = await LobbyService.create_lobby(
            db_session, test_user_1, lobby_request.model_copy(update={"max_players": 2})
        )
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        with pytest.raises(AlreadyJoinedException):
            await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

    async def test_join_nonexistent_lobby(
        self,
        db_session: AsyncSession,
        test_user_2: RegisteredUser
    ):
        """Test joining a lobby that does not exist"""
        with pytest.raises(LobbyNotFoundException):
            await LobbyService.join_lobby(db_session, "missing-id", test_user_2.id)


@pytest.mark.unit
class TestLeaveLobby:
    """Test cases for leave_lobby method"""

    async def test_leave_lobby_participant(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test a participant leaving keeps the lobby"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        deleted = await LobbyService.leave_lobby(db_session, created.id, test_user_2.id)

        assert deleted is False
        lobby = await LobbyService.get_lobby(db_session, created.id)
        assert [p.user_id for p in lobby.participants] == [str(test_user_1.id)]

    async def test_leave_lobby_creator_deletes_lobby(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test the creator leaving deletes the lobby and every participant row"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        await LobbyService.join_lobby(db_session, created.id, test_user_2.id)

        deleted = await LobbyService.leave_lobby(db_session, created.id, test_user_1.id)

        assert deleted is True
        with pytest.raises(LobbyNotFoundException):
            await LobbyService.get_lobby(db_session, created.id)

        assert await db_session.scalar(select(func.count(Lobby.id))) == 0
        assert await db_session.scalar(select(func.count(LobbyParticipant.id))) == 0

    async def test_leave_lobby_not_participant(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test leaving a lobby the user never joined"""
        created = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)

        with pytest.raises(NotAParticipantException) as exc_info:
            await LobbyService.leave_lobby(db_session, created.id, test_user_2.id)

        assert exc_info.value.error_code == "NOT_A_PARTICIPANT"

    async def test_leave_nonexistent_lobby(
        self,
        db_session: AsyncSession,
        test_user_2: RegisteredUser
    ):
        """Test leaving a lobby that does not exist"""
        with pytest.raises(LobbyNotFoundException):
            await LobbyService.leave_lobby(db_session, "missing-id", test_user_2.id)


@pytest.mark.unit
class TestRemoveUser:
    """Test cases for remove_user method"""

    async def test_remove_user_drops_created_lobbies_and_memberships(
        self,
        db_session: AsyncSession,
        test_user_1: RegisteredUser,
        test_user_2: RegisteredUser,
        lobby_request: CreateLobbyRequest
    ):
        """Test the user's own lobbies go away and other lobbies just lose them"""
        # Arrange
        own = await LobbyService.create_lobby(db_session, test_user_1, lobby_request)
        await LobbyService.join_lobby(db_session, own.id, test_user_2.id)
        other = await LobbyService.create_lobby(db_session, test_user_2, lobby_request)
        await LobbyService.join_lobby(db_session, other.id, test_user_1.id)

        # Act
        deleted = await LobbyService.remove_user(db_session, test_user_1.id)
        await db_session.commit()

        # Assert
        assert deleted == 1
        with pytest.raises(LobbyNotFoundException):
            await LobbyService.get_lobby(db_session, own.id)

        remaining = await LobbyService.get_lobby(db_session, other.id)
        assert [p.user_id for p in remaining.participants] == [str(test_user_2.id)]
        assert remaining.joined_players == 1

    async def test_remove_user_without_lobbies(
        self,
        db_session: AsyncSession,
        test_user_3: RegisteredUser
    ):
        assert await LobbyService.remove_user(db_session, test_user_3.id) == 0
