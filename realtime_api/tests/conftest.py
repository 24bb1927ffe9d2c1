# realtime_api/tests/conftest.py

import logging
import random
import string
from unittest.mock import AsyncMock

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from realtime_api.api import dependencies
from realtime_api.config import AppConfig
from realtime_api.gateways.chat_gateway import ChatGateway
from realtime_api.gateways.delivery_gateway import DeliveryGateway
from realtime_api.gateways.message_gateway import MessageGateway
from realtime_api.gateways.notification_gateway import NotificationGateway
from realtime_api.gateways.user_gateway import UserGateway
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.database import Base, create_database
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.uow import UnitOfWork
from realtime_api.interactors.chat_interactor import ChatInteractor
from realtime_api.interactors.delivery_interactor import DeliveryInteractor
from realtime_api.interactors.message_interactor import MessageInteractor
from realtime_api.interactors.notification_interactor import NotificationInteractor
from realtime_api.main import Application

TEST_PASSWORD = "testpassword"


@pytest.fixture(scope="function")
def app_config():
    """
    Provide a test configuration with an in-memory SQLite database.
    """
    return AppConfig(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        SECRET_KEY="test_secret_key",
        SERVICE_API_KEY="test_service_key",
        PROJECT_NAME="Test Realtime API",
        PROJECT_VERSION="1.0.0",
        PROJECT_DESCRIPTION="Test Realtime API",
        API_V1_STR="/api/v1",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=5,
    )


@pytest.fixture
def test_logger():
    logger = logging.getLogger("test_realtime")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture(scope="function")
async def mock_redis():
    """Provide a fake Redis client for testing."""
    redis = aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(scope="function")
async def engine(app_config):
    """Create an engine whose sessions all share one in-memory connection."""
    engine = create_async_engine(
        app_config.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        from realtime_api.infrastructure import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
def database(engine, session_factory):
    return create_database(engine, session_factory)


@pytest.fixture(scope="function")
async def db_session(session_factory):
    """Provide a SQLAlchemy session for testing."""
    session = session_factory()
    yield session
    await session.close()


@pytest.fixture(scope="function")
async def uow():
    """Provide a UnitOfWork instance for testing."""
    return UnitOfWork()


@pytest.fixture(scope="function")
def security_service(app_config):
    return SecurityService(app_config)


@pytest.fixture
def dispatcher():
    """A dispatcher double recording every emission helper call."""
    return AsyncMock(spec=RealtimeDispatcher)


@pytest.fixture
def user_gateway(db_session, uow):
    return UserGateway(db_session, uow)


@pytest.fixture
def chat_gateway(db_session, uow):
    return ChatGateway(db_session, uow)


@pytest.fixture
def message_gateway(db_session, uow):
    return MessageGateway(db_session, uow)


@pytest.fixture
def delivery_gateway(db_session, uow):
    return DeliveryGateway(db_session, uow)


@pytest.fixture
def notification_gateway(db_session, uow):
    return NotificationGateway(db_session, uow)


@pytest.fixture
def delivery_interactor(uow, delivery_gateway, message_gateway, chat_gateway, dispatcher):
    return DeliveryInteractor(
        uow, delivery_gateway, message_gateway, chat_gateway, dispatcher
    )


@pytest.fixture
def chat_interactor(uow, chat_gateway, message_gateway, delivery_gateway, user_gateway, dispatcher):
    return ChatInteractor(
        uow, chat_gateway, message_gateway, delivery_gateway, user_gateway, dispatcher
    )


@pytest.fixture
def message_interactor(uow, message_gateway, chat_gateway, delivery_gateway, dispatcher):
    return MessageInteractor(uow, message_gateway, chat_gateway, delivery_gateway, dispatcher)


@pytest.fixture
def notification_interactor(uow, notification_gateway, user_gateway, dispatcher):
    return NotificationInteractor(uow, notification_gateway, user_gateway, dispatcher)


@pytest.fixture
def make_user(db_session, user_gateway, security_service):
    """Factory creating committed users with the shared test password."""

    async def _make_user(prefix: str = "user", **fields):
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=8))
        user_create = schemas.UserCreate(
            username=f"{prefix}_{suffix}",
            email=f"{prefix}_{suffix}@example.com",
            password=TEST_PASSWORD,
            **fields,
        )
        user = await user_gateway.create_user(user_create, security_service)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
async def test_user(make_user):
    return await make_user("alice", first_name="Alice", last_name="Anders")


@pytest.fixture(scope="function")
async def test_user2(make_user):
    return await make_user("bob", first_name="Bob", last_name="Baker")


@pytest.fixture(scope="function")
async def test_user3(make_user):
    return await make_user("carol", first_name="Carol", last_name="Clark")


@pytest.fixture(scope="function")
async def application(app_config, mock_redis, database):
    application = Application(config=app_config, database=database)
    application.redis_client.client = mock_redis
    return application


@pytest.fixture(scope="function")
async def app(application):
    """Create the FastAPI app with the test database."""
    return application.create_app()


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Route request sessions to the test session."""

    async def _override_get_db():
        yield db_session
        await db_session.commit()

    return _override_get_db


@pytest.fixture(scope="function")
async def app_with_db(app, override_get_db):
    app.dependency_overrides[dependencies.get_session] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app_with_db):
    """Provide an HTTP client with the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app_with_db), base_url="http://test"
    ) as ac:
        yield ac


def bearer(security_service: SecurityService, user_id: int) -> dict:
    token, _ = security_service.create_access_token(user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
async def auth_header(client, test_user):
    """Provide an authorization header obtained through the login route."""
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": test_user.username, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    access_token = response.json().get("access_token")
    assert access_token is not None, "Access token was not returned in the response"
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
def auth_header2(security_service, test_user2):
    return bearer(security_service, test_user2.id)


@pytest.fixture(scope="function")
def auth_header3(security_service, test_user3):
    return bearer(security_service, test_user3.id)
