"""
Tests for AuthClient against the real auth endpoints

Tests cover:
- Login, logout and registration
- Profile updates (nickname, bio)
- Password reset and email verification tokens
- Account deletion taking the user's lobbies with it
"""
import pytest
from unittest.mock import AsyncMock, patch
from client.auth_client import AuthClient
from client.gateway import HttpLobbyGateway
from client.identity import SessionIdentityProvider
from client.results import ErrorKind, Success
from services.user_manager import UserManager
from test_helpers import auth_headers


async def register(api_client, email: str, nickname: str, password: str = "correct-horse"):
    response = await api_client.post(
        "/auth/register",
        json={"email": email, "password": password, "nickname": nickname},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.unit
class TestAuthClient:
    """Test cases for login/logout"""

    async def test_login_fills_session(self, api_client):
        user = await register(api_client, "striker@sportlink.app", "striker")
        session = SessionIdentityProvider()

        result = await AuthClient(api_client, session).login("striker@sportlink.app", "correct-horse")

        assert isinstance(result, Success)
        assert result.value.user_id == str(user["id"])
        assert result.value.nickname == "striker"
        assert await session.get_identity() == result.value
        assert await session.get_credential()

    async def test_wrong_password(self, api_client):
        """Test bad credentials are UNAUTHENTICATED and leave the session empty"""
        await register(api_client, "keeper@sportlink.app", "keeper")
        session = SessionIdentityProvider()

        result = await AuthClient(api_client, session).login("keeper@sportlink.app", "wrong-password")

        assert result.kind is ErrorKind.UNAUTHENTICATED
        assert await session.get_credential() is None
        assert await session.get_identity() is None

    async def test_blank_input_is_rejected_locally(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).login("  ", "")

        assert result.kind is ErrorKind.INVALID_ARGUMENT

    async def test_logout_clears_session(self, api_client):
        await register(api_client, "winger@sportlink.app", "winger")
        session = SessionIdentityProvider()
        auth = AuthClient(api_client, session)
        await auth.login("winger@sportlink.app", "correct-horse")

        auth.logout()

        assert await session.get_identity() is None
        assert await session.get_credential() is None


@pytest.mark.unit
class TestRegistration:
    """Test cases for the registration endpoint's uniqueness errors"""

    async def test_duplicate_nickname(self, api_client):
        await register(api_client, "first@sportlink.app", "samename")

        response = await api_client.post(
            "/auth/register",
            json={"email": "second@sportlink.app", "password": "correct-horse", "nickname": "samename"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "NICKNAME_TAKEN"

    async def test_duplicate_email(self, api_client):
        await register(api_client, "first@sportlink.app", "firstname")

        response = await api_client.post(
            "/auth/register",
            json={"email": "first@sportlink.app", "password": "correct-horse", "nickname": "othername"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "EMAIL_TAKEN"

    async def test_register_through_client(self, api_client):
        """Test registering returns the new identity without signing in"""
        session = SessionIdentityProvider()

        result = await AuthClient(api_client, session).register(" midfield@sportlink.app ", "correct-horse", "midfield")

        assert isinstance(result, Success)
        assert result.value.email == "midfield@sportlink.app"
        assert result.value.nickname == "midfield"
        assert await session.get_credential() is None

    async def test_register_taken_nickname_through_client(self, api_client):
        await register(api_client, "first@sportlink.app", "samename")

        result = await AuthClient(api_client, SessionIdentityProvider()).register(
            "second@sportlink.app", "correct-horse", "samename"
        )

        assert result.kind is ErrorKind.INVALID_ARGUMENT
        assert result.error.details["field"] == "nickname"


async def signed_in_client(api_client, email: str, nickname: str):
    await register(api_client, email, nickname)
    session = SessionIdentityProvider()
    auth = AuthClient(api_client, session)
    await auth.login(email, "correct-horse")
    return auth, session


@pytest.mark.unit
class TestProfile:
    """Test cases for update_profile"""

    async def test_update_nickname_and_bio(self, api_client):
        auth, session = await signed_in_client(api_client, "libero@sportlink.app", "libero")

        result = await auth.update_profile(nickname="sweeper", bio="Sunday league, left foot")

        assert isinstance(result, Success)
        assert result.value.nickname == "sweeper"
        assert result.value.bio == "Sunday league, left foot"
        assert (await session.get_identity()).nickname == "sweeper"

        me = await api_client.get("/users/me", headers={"Authorization": f"Bearer {await session.get_credential()}"})
        assert me.json()["bio"] == "Sunday league, left foot"

    async def test_taken_nickname_keeps_session(self, api_client):
        await register(api_client, "other@sportlink.app", "taken")
        auth, session = await signed_in_client(api_client, "pivot@sportlink.app", "pivot")

        result = await auth.update_profile(nickname="taken")

        assert result.kind is ErrorKind.INVALID_ARGUMENT
        assert (await session.get_identity()).nickname == "pivot"

    async def test_empty_update_is_rejected_locally(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).update_profile()

        assert result.kind is ErrorKind.INVALID_ARGUMENT

    async def test_signed_out_update(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).update_profile(bio="hi")

        assert result.kind is ErrorKind.UNAUTHENTICATED


@pytest.mark.unit
class TestPasswordReset:
    """Test cases for forgot_password/reset_password"""

    async def test_reset_with_issued_token(self, api_client):
        """Test the token handed to the forgot-password hook resets the password"""
        await register(api_client, "anchor@sportlink.app", "anchor")
        auth = AuthClient(api_client, SessionIdentityProvider())

        with patch.object(UserManager, "on_after_forgot_password", new_callable=AsyncMock) as hook:
            assert isinstance(await auth.forgot_password("anchor@sportlink.app"), Success)
        token = hook.await_args.args[1]

        result = await auth.reset_password(token, "new-password-9")

        assert isinstance(result, Success)
        assert (await auth.login("anchor@sportlink.app", "correct-horse")).kind is ErrorKind.UNAUTHENTICATED
        assert isinstance(await auth.login("anchor@sportlink.app", "new-password-9"), Success)

    async def test_unknown_email_still_succeeds(self, api_client):
        with patch.object(UserManager, "on_after_forgot_password", new_callable=AsyncMock) as hook:
            result = await AuthClient(api_client, SessionIdentityProvider()).forgot_password("nobody@sportlink.app")

        assert isinstance(result, Success)
        hook.assert_not_awaited()

    async def test_bad_token(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).reset_password("not-a-token", "new-password-9")

        assert result.kind is ErrorKind.INVALID_ARGUMENT
        assert result.error.message == "The code is invalid or has expired"


@pytest.mark.unit
class TestEmailVerification:
    """Test cases for request_verification/verify_email"""

    async def test_verify_with_issued_token(self, api_client):
        user = await register(api_client, "stopper@sportlink.app", "stopper")
        assert user["is_verified"] is False
        auth = AuthClient(api_client, SessionIdentityProvider())

        with patch.object(UserManager, "on_after_request_verify", new_callable=AsyncMock) as hook:
            assert isinstance(await auth.request_verification("stopper@sportlink.app"), Success)
        token = hook.await_args.args[1]

        result = await auth.verify_email(token)

        assert isinstance(result, Success)
        assert result.value.is_verified is True

    async def test_bad_token(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).verify_email("not-a-token")

        assert result.kind is ErrorKind.INVALID_ARGUMENT


@pytest.mark.unit
class TestDeleteAccount:
    """Test cases for delete_account"""

    async def test_delete_account_removes_lobbies(self, api_client, test_user_1, lobby_request):
        """Test the user's own lobbies are deleted and their memberships dropped"""
        auth, session = await signed_in_client(api_client, "keeper@sportlink.app", "keeper")
        gateway = HttpLobbyGateway(api_client, session)
        own = (await gateway.create(lobby_request)).value

        other = await api_client.post(
            "/lobbies",
            json=lobby_request.model_dump(mode="json", by_alias=True, exclude_none=True),
            headers=await auth_headers(test_user_1),
        )
        other_id = other.json()["id"]
        assert isinstance(await gateway.join(other_id), Success)

        result = await auth.delete_account()

        assert isinstance(result, Success)
        assert await session.get_credential() is None
        assert (await gateway.get_by_id(own.id)).kind is ErrorKind.NOT_FOUND
        remaining = (await gateway.get_by_id(other_id)).value
        assert [p.user_id for p in remaining.participants] == [str(test_user_1.id)]
        assert (await auth.login("keeper@sportlink.app", "correct-horse")).kind is ErrorKind.UNAUTHENTICATED

    async def test_signed_out_delete(self, api_client):
        result = await AuthClient(api_client, SessionIdentityProvider()).delete_account()

        assert result.kind is ErrorKind.UNAUTHENTICATED
