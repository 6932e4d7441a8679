# app/models/lobby.py

import uuid
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from infrastructure.database import Base
from utils.time_utils import utcnow


def new_lobby_id() -> str:
    return str(uuid.uuid4())


class Lobby(Base):
    """Scheduled pick-up sports event created by a registered user"""
    __tablename__ = "lobbies"

    id = Column(String(36), primary_key=True, default=new_lobby_id)
    creator_id = Column(Integer, ForeignKey("registered_users.id", ondelete="CASCADE"), nullable=False, index=True)
    sport_name = Column(String(100), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    max_players = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("RegisteredUser")
    participants = relationship(
        "LobbyParticipant",
        back_populates="lobby",
        cascade="all, delete-orphan",
        order_by=lambda: [LobbyParticipant.joined_at, LobbyParticipant.id],
    )

    def __repr__(self):
        return f"<Lobby(id={self.id}, sport_name='{self.sport_name}', creator_id={self.creator_id}, max_players={self.max_players})>"


class LobbyParticipant(Base):
    """Membership row; at most one per (lobby, user)"""
    __tablename__ = "lobby_participants"
    __table_args__ = (
        UniqueConstraint("lobby_id", "user_id", name="uq_lobby_participants_lobby_user"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    lobby_id = Column(String(36), ForeignKey("lobbies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("registered_users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime, default=utcnow, nullable=False)

    lobby = relationship("Lobby", back_populates="participants")
    user = relationship("RegisteredUser")

    def __repr__(self):
        return f"<LobbyParticipant(lobby_id={self.lobby_id}, user_id={self.user_id})>"
