# app/api/routes/lobby.py

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from infrastructure.database import get_db_session
from api.routes.auth import current_active_user
from models.registered_user import RegisteredUser
from services.lobby_service import LobbyService
from schemas.lobby_schema import (
    CreateLobbyRequest,
    LobbyResponse,
    MessageResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/lobbies", tags=["lobbies"])

LOBBY_ERRORS = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
}


@router.get("", response_model=List[LobbyResponse])
async def list_lobbies(session: AsyncSession = Depends(get_db_session)):
    """
    Get all lobbies, newest first

    Summaries only: `joinedPlayers` is precomputed and `participants` is empty.
    """
    return await LobbyService.list_lobbies(session)


@router.get("/{lobby_id}", response_model=LobbyResponse, responses=LOBBY_ERRORS)
async def get_lobby(lobby_id: str, session: AsyncSession = Depends(get_db_session)):
    """
    Get lobby by id, including participants ordered by join time
    """
    return await LobbyService.get_lobby(session, lobby_id)


@router.post("", response_model=LobbyResponse, status_code=status.HTTP_201_CREATED)
async def create_lobby(
    request: CreateLobbyRequest,
    current_user: RegisteredUser = Depends(current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a new lobby

    - **sportName**, **location**, **date** (ISO-8601), **maxPlayers** (> 0) are required

    The creator joins automatically, so the response has `joinedPlayers=1`.
    """
    return await LobbyService.create_lobby(session, current_user, request)


@router.post("/{lobby_id}/join", response_model=MessageResponse, responses=LOBBY_ERRORS)
async def join_lobby(
    lobby_id: str,
    current_user: RegisteredUser = Depends(current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Join a lobby

    Fails with `LOBBY_FULL`, `ALREADY_JOINED` (400) or `LOBBY_NOT_FOUND` (404).
    """
    await LobbyService.join_lobby(session, lobby_id, current_user.id)
    return MessageResponse(message="Successfully joined lobby")


@router.delete("/{lobby_id}/leave", response_model=MessageResponse, responses=LOBBY_ERRORS)
async def leave_lobby(
    lobby_id: str,
    current_user: RegisteredUser = Depends(current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Leave a lobby

    If the caller is the creator the whole lobby is deleted. Fails with
    `NOT_A_PARTICIPANT` (400) or `LOBBY_NOT_FOUND` (404).
    """
    deleted = await LobbyService.leave_lobby(session, lobby_id, current_user.id)
    if deleted:
        return MessageResponse(message="Lobby deleted successfully")
    return MessageResponse(message="Left lobby successfully")
