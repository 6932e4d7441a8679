# app/models/__init__.py

from models.registered_user import RegisteredUser
from models.lobby import Lobby, LobbyParticipant

__all__ = ["RegisteredUser", "Lobby", "LobbyParticipant"]
