# app/client/auth_client.py

from typing import Optional
import httpx
from fastapi_users.router.common import ErrorCode
from pydantic import ValidationError
from schemas.user_schema import UserRead
from client.http import send
from client.identity import Identity, SessionIdentityProvider
from client.results import ErrorKind, Failure, Result, Success, failure
import logging

logger = logging.getLogger(__name__)

# fastapi-users answers these with a plain 400 and the code as "detail"
BAD_TOKEN_CODES = (ErrorCode.RESET_PASSWORD_BAD_TOKEN, ErrorCode.VERIFY_USER_BAD_TOKEN)


def to_identity(user: UserRead) -> Identity:
    return Identity(user_id=str(user.id), email=user.email, nickname=user.nickname)


class AuthClient:
    """Account calls against the auth endpoints; keeps a SessionIdentityProvider in sync"""

    def __init__(self, client: httpx.AsyncClient, session: SessionIdentityProvider):
        self._client = client
        self._session = session

    @staticmethod
    def _parse_user(result: Result[httpx.Response]) -> Result[UserRead]:
        if isinstance(result, Failure):
            return result
        try:
            return Success(UserRead.model_validate(result.value.json()))
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed profile response: {e}")
            return failure(ErrorKind.UNKNOWN, "Malformed server response")

    @staticmethod
    def _bad_token(result: Result) -> Result:
        if isinstance(result, Failure) and result.error.message in BAD_TOKEN_CODES:
            return failure(ErrorKind.INVALID_ARGUMENT, "The code is invalid or has expired")
        return result

    async def register(self, email: str, password: str, nickname: str) -> Result[Identity]:
        """
        Create an account; does not sign in

        A taken email or nickname comes back as INVALID_ARGUMENT with
        ``details["field"]`` naming the field.
        """
        if not email.strip() or not password or not nickname.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Email, password and nickname are required")

        result = await send(
            self._client, "POST", "/auth/register",
            json={"email": email.strip(), "password": password, "nickname": nickname.strip()},
        )
        user = self._parse_user(result)
        if isinstance(user, Failure):
            return user
        return Success(to_identity(user.value))

    async def login(self, email: str, password: str) -> Result[Identity]:
        """
        Exchange credentials for a bearer token, then load the profile

        The session is only signed in once both calls succeeded.
        """
        if not email.strip() or not password:
            return failure(ErrorKind.INVALID_ARGUMENT, "Email and password are required")

        result = await send(
            self._client, "POST", "/auth/jwt/login",
            data={"username": email, "password": password},
        )
        if isinstance(result, Failure):
            if result.error.message == ErrorCode.LOGIN_BAD_CREDENTIALS:
                return failure(ErrorKind.UNAUTHENTICATED, "Invalid email or password")
            return result

        try:
            token = result.value.json().get("access_token")
        except ValueError:
            token = None
        if not token:
            return failure(ErrorKind.UNKNOWN, "Login response carried no token")

        me = await send(
            self._client, "GET", "/users/me",
            headers={"Authorization": f"Bearer {token}"},
        )
        user = self._parse_user(me)
        if isinstance(user, Failure):
            return user

        identity = to_identity(user.value)
        self._session.sign_in(token, identity)
        return Success(identity)

    def logout(self) -> None:
        self._session.sign_out()

    async def update_profile(self, nickname: Optional[str] = None, bio: Optional[str] = None) -> Result[UserRead]:
        """Patch the signed-in user's nickname and/or bio; the session picks up the new nickname"""
        changes = {key: value for key, value in (("nickname", nickname), ("bio", bio)) if value is not None}
        if not changes:
            return failure(ErrorKind.INVALID_ARGUMENT, "Nothing to update")

        result = await send(
            self._client, "PATCH", "/users/me",
            identity=self._session,
            authenticated=True,
            json=changes,
        )
        user = self._parse_user(result)
        if isinstance(user, Success):
            self._session.sign_in(await self._session.get_credential(), to_identity(user.value))
        return user

    async def delete_account(self) -> Result[None]:
        """
        Delete the signed-in account and sign out

        The server deletes the lobbies this user created along with it.
        """
        result = await send(
            self._client, "DELETE", "/users/me",
            identity=self._session,
            authenticated=True,
        )
        if isinstance(result, Failure):
            return result

        self._session.sign_out()
        return Success(None)

    async def forgot_password(self, email: str) -> Result[None]:
        """Ask for a reset code; succeeds whether or not the email is registered"""
        if not email.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Email is required")

        result = await send(self._client, "POST", "/auth/forgot-password", json={"email": email.strip()})
        if isinstance(result, Failure):
            return result
        return Success(None)

    async def reset_password(self, token: str, password: str) -> Result[None]:
        if not token.strip() or not password:
            return failure(ErrorKind.INVALID_ARGUMENT, "Code and new password are required")

        result = await send(
            self._client, "POST", "/auth/reset-password",
            json={"token": token.strip(), "password": password},
        )
        result = self._bad_token(result)
        if isinstance(result, Failure):
            return result
        return Success(None)

    async def request_verification(self, email: str) -> Result[None]:
        if not email.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Email is required")

        result = await send(self._client, "POST", "/auth/request-verify-token", json={"email": email.strip()})
        if isinstance(result, Failure):
            return result
        return Success(None)

    async def verify_email(self, token: str) -> Result[UserRead]:
        if not token.strip():
            return failure(ErrorKind.INVALID_ARGUMENT, "Code is required")

        result = await send(self._client, "POST", "/auth/verify", json={"token": token.strip()})
        return self._bad_token(self._parse_user(result))
