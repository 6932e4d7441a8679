# app/client/identity.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Who the current device user is, as far as the server knows"""
    user_id: Optional[str] = None
    email: Optional[str] = None
    nickname: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.user_id and not self.email


class IdentityProvider(ABC):
    """Source of the current user's identity and bearer credential"""

    @abstractmethod
    async def get_identity(self) -> Optional[Identity]:
        """Current identity, or None when nobody is signed in"""

    @abstractmethod
    async def get_credential(self) -> Optional[str]:
        """Bearer token for protected calls, or None"""


class SessionIdentityProvider(IdentityProvider):
    """In-memory session, populated after login and cleared on logout"""

    def __init__(self, credential: Optional[str] = None, identity: Optional[Identity] = None):
        self._credential = credential
        self._identity = identity

    def sign_in(self, credential: str, identity: Identity) -> None:
        self._credential = credential
        self._identity = identity
        logger.info(f"Signed in as user {identity.user_id} ({identity.email})")

    def sign_out(self) -> None:
        self._credential = None
        self._identity = None

    async def get_identity(self) -> Optional[Identity]:
        return self._identity

    async def get_credential(self) -> Optional[str]:
        return self._credential
