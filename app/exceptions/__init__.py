# app/exceptions/__init__.py

from exceptions.domain_exceptions import (
    DomainException,
    NotFoundException,
    BadRequestException,
    LobbyNotFoundException,
    LobbyFullException,
    AlreadyJoinedException,
    NotAParticipantException,
)

__all__ = [
    'DomainException',
    'NotFoundException',
    'BadRequestException',
    'LobbyNotFoundException',
    'LobbyFullException',
    'AlreadyJoinedException',
    'NotAParticipantException',
]
