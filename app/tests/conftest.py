"""
Pytest configuration and fixtures for testing
"""
import pytest
import httpx
from typing import AsyncGenerator
from datetime import datetime, timedelta, UTC
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from infrastructure.database import Base, get_db_session
from models.registered_user import RegisteredUser
from models.lobby import Lobby, LobbyParticipant  # Import to register with Base
from schemas.lobby_schema import CreateLobbyRequest
from client.cache import SqlLobbyCache
from client.identity import SessionIdentityProvider
from client.reconciler import LobbyReconciler
from test_helpers import ALICE, FakeLobbyGateway


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine"""
    # File-based SQLite so every session sees the same database
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables and close
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session"""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


async def _create_user(db_session: AsyncSession, number: int) -> RegisteredUser:
    user = RegisteredUser(
        email=f"user{number}@test.com",
        hashed_password=f"hashed_password_{number}",
        nickname=f"TestUser{number}",
        is_active=True,
        is_superuser=False,
        is_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user_1(db_session: AsyncSession) -> RegisteredUser:
    """Create a test user 1 (creates the lobbies in most tests)"""
    return await _create_user(db_session, 1)


@pytest.fixture
async def test_user_2(db_session: AsyncSession) -> RegisteredUser:
    """Create a test user 2"""
    return await _create_user(db_session, 2)


@pytest.fixture
async def test_user_3(db_session: AsyncSession) -> RegisteredUser:
    """Create a test user 3"""
    return await _create_user(db_session, 3)


@pytest.fixture
def lobby_request() -> CreateLobbyRequest:
    """A valid create payload three days out"""
    return CreateLobbyRequest(
        sport_name="Football",
        location="Central Park",
        date=datetime.now(UTC) + timedelta(days=3),
        max_players=3,
        description="5v5, bring water",
    )


# ================ API ================

@pytest.fixture
async def api_client(db_engine) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client talking to the FastAPI app in-process, on the test database"""
    from main import app

    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/v1") as client:
        yield client
    app.dependency_overrides.clear()


# ================ Client ================

@pytest.fixture
async def cache(tmp_path) -> AsyncGenerator[SqlLobbyCache, None]:
    """Empty lobby cache in its own SQLite file"""
    lobby_cache = SqlLobbyCache(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await lobby_cache.connect()
    yield lobby_cache
    await lobby_cache.disconnect()


@pytest.fixture
def device_session() -> SessionIdentityProvider:
    """Signed-in device session for ALICE"""
    return SessionIdentityProvider(credential="token-alice", identity=ALICE)


@pytest.fixture
def gateway(device_session: SessionIdentityProvider) -> FakeLobbyGateway:
    return FakeLobbyGateway(device_session)


@pytest.fixture
def reconciler(gateway, cache, device_session) -> LobbyReconciler:
    return LobbyReconciler(gateway, cache, device_session)
