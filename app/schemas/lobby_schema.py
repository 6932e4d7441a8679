# app/schemas/lobby_schema.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime
from config.settings import settings


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ================ Request Models ================

class CreateLobbyRequest(CamelModel):
    """Request to create a new lobby (the creator is auto-joined)"""
    sport_name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=255)
    location_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    location_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    date: datetime = Field(..., description="Scheduled start, ISO-8601")
    max_players: int = Field(..., gt=0, le=settings.MAX_PLAYERS_LIMIT, description="Capacity including the creator")
    description: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sportName": "Football",
                "location": "Parcul Tineretului",
                "date": "2030-03-15T18:00:00Z",
                "maxPlayers": 10,
                "description": "5v5, bring water"
            }
        }
    )

    @field_validator('sport_name', 'location')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Field cannot be empty or only whitespace')
        return v


# ================ Response Models ================

class LobbyParticipantResponse(CamelModel):
    """A user who has joined a lobby"""
    user_id: str
    nickname: str
    email: str
    joined_at: datetime


class LobbyResponse(CamelModel):
    """
    Lobby as seen on the wire.

    List responses leave ``participants`` empty and only carry
    ``joined_players``; detail responses carry both.
    """
    id: str = ""
    sport_name: str
    location: str
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    date: datetime
    max_players: int
    joined_players: int = 0
    image_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    creator_id: Optional[str] = None
    creator_nickname: Optional[str] = None
    creator_email: Optional[str] = None
    participants: List[LobbyParticipantResponse] = Field(default_factory=list)


class MessageResponse(CamelModel):
    """Confirmation for join/leave"""
    message: str


class ErrorResponse(CamelModel):
    """Body returned for every domain exception"""
    error: str
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    path: Optional[str] = None
