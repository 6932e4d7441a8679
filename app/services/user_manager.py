# app/services/user_manager.py

from typing import Optional
from fastapi import Depends, Request
from fastapi_users import BaseUserManager, IntegerIDMixin
from sqlalchemy import select
from models.registered_user import RegisteredUser
from infrastructure.user_database import get_user_db
from config.settings import settings
from schemas.user_schema import UserCreate, UserUpdate
from exceptions.domain_exceptions import BadRequestException
from services.lobby_service import LobbyService
import logging

logger = logging.getLogger(__name__)


class NicknameAlreadyExists(BadRequestException):
    """Exception raised when nickname is already taken"""

    error_code = "NICKNAME_TAKEN"

    def __init__(self, nickname: str):
        super().__init__(
            message=f"Nickname '{nickname}' is already taken",
            details={"field": "nickname"}
        )


class EmailAlreadyExists(BadRequestException):
    """Exception raised when email is already registered"""

    error_code = "EMAIL_TAKEN"

    def __init__(self, email: str):
        super().__init__(
            message=f"Email '{email}' is already registered",
            details={"field": "email"}
        )


class UserManager(IntegerIDMixin, BaseUserManager[RegisteredUser, int]):
    """User manager for registered users with custom hooks"""

    reset_password_token_secret = settings.SECRET_KEY
    verification_token_secret = settings.SECRET_KEY

    async def validate_email_unique(self, email: str, exclude_user_id: Optional[int] = None):
        """
        Validate that email is unique in the database

        Raises:
            EmailAlreadyExists: If email is already registered.
        """
        query = select(RegisteredUser).where(RegisteredUser.email == email)
        if exclude_user_id is not None:
            query = query.where(RegisteredUser.id != exclude_user_id)

        result = await self.user_db.session.execute(query)
        if result.scalar_one_or_none() is not None:
            raise EmailAlreadyExists(email)

    async def validate_nickname_unique(self, nickname: str, exclude_user_id: Optional[int] = None):
        """
        Validate that nickname is unique in the database

        Raises:
            NicknameAlreadyExists: If nickname is already taken
        """
        query = select(RegisteredUser).where(RegisteredUser.nickname == nickname)
        if exclude_user_id is not None:
            query = query.where(RegisteredUser.id != exclude_user_id)

        result = await self.user_db.session.execute(query)
        if result.scalar_one_or_none() is not None:
            raise NicknameAlreadyExists(nickname)

    async def on_after_register(self, user: RegisteredUser, request: Optional[Request] = None):
        """Hook called after user registration"""
        logger.info(f"User {user.id} (nickname: {user.nickname}) has registered with email: {user.email}")

    async def on_after_login(
        self,
        user: RegisteredUser,
        request: Optional[Request] = None,
        response=None
    ):
        """Hook called after successful login"""
        logger.info(f"User {user.id} ({user.nickname}) has logged in")

    async def on_after_forgot_password(
        self, user: RegisteredUser, token: str, request: Optional[Request] = None
    ):
        """Hook called after forgot password request; the token is not mailed anywhere"""
        logger.info(f"User {user.id} ({user.email}) requested a password reset")

    async def on_after_reset_password(self, user: RegisteredUser, request: Optional[Request] = None):
        """Hook called after a successful password reset"""
        logger.info(f"User {user.id} has reset their password")

    async def on_after_request_verify(
        self, user: RegisteredUser, token: str, request: Optional[Request] = None
    ):
        """Hook called after verification request"""
        logger.info(f"Verification requested for user {user.id} ({user.email})")

    async def on_after_verify(self, user: RegisteredUser, request: Optional[Request] = None):
        """Hook called after the email has been verified"""
        logger.info(f"User {user.id} has verified {user.email}")

    async def on_before_delete(self, user: RegisteredUser, request: Optional[Request] = None):
        """Remove the user's lobbies and memberships in the same transaction as the account"""
        await LobbyService.remove_user(self.user_db.session, user.id)

    async def on_after_delete(self, user: RegisteredUser, request: Optional[Request] = None):
        """Hook called after the account is gone"""
        logger.info(f"User {user.id} ({user.nickname}) deleted their account")

    async def create(self, user_create: UserCreate, safe: bool = False, request: Optional[Request] = None) -> RegisteredUser:
        """Override create to validate nickname and email uniqueness before creating user"""
        await self.validate_email_unique(user_create.email)
        await self.validate_nickname_unique(user_create.nickname)

        return await super().create(user_create, safe=safe, request=request)

    async def update(
        self,
        user_update: UserUpdate,
        user: RegisteredUser,
        safe: bool = False,
        request: Optional[Request] = None,
    ) -> RegisteredUser:
        """Override update to validate nickname and email uniqueness when being changed"""
        if user_update.email is not None and user_update.email != user.email:
            await self.validate_email_unique(user_update.email, exclude_user_id=user.id)

        if user_update.nickname is not None and user_update.nickname != user.nickname:
            await self.validate_nickname_unique(user_update.nickname, exclude_user_id=user.id)

        return await super().update(user_update, user, safe=safe, request=request)


async def get_user_manager(user_db=Depends(get_user_db)):
    """Dependency to get the user manager"""
    yield UserManager(user_db)
