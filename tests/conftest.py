import os

# portal.main builds a module-level app on import; give it a usable key.
os.environ.setdefault("JWT_SECRET", "test-signing-key-not-for-production")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fakeredis.aioredis import FakeRedis  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from portal import database  # noqa: E402
from portal.auth.constants import DoctorStatus  # noqa: E402
from portal.auth.dependencies import get_otp_notifier, get_redis  # noqa: E402
from portal.auth.models import Admin, Doctor, Patient, SuperAdmin  # noqa: E402
from portal.auth.tokens import TokenCodec  # noqa: E402
from portal.auth.utils import hash_password  # noqa: E402
from portal.config import Settings  # noqa: E402
from portal.main import create_app  # noqa: E402
from portal.rate_limit import limiter  # noqa: E402
from portal_shared.database import AsyncSessionFactory, Base  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-signing-key-not-for-production"
PASSWORD = "correct-horse-battery"


class RecordingNotifier:
    """Stands in for the Twilio notifier and keeps every code it was asked to send."""

    is_configured = True

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_otp(self, phone: str, code: str) -> bool:
        self.sent.append((phone, code))
        return True

    def last_code(self, phone: str) -> str:
        return [code for to, code in self.sent if to == phone][-1]


class Seeder:
    """Writes committed fixtures through a fresh session, like a separate client would."""

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._factory = session_factory

    async def _add(self, record):
        async with self._factory() as session:
            session.add(record)
            await session.commit()
        return record

    async def super_admin(self, email: str = "root@example.com", password: str = PASSWORD) -> SuperAdmin:
        return await self._add(SuperAdmin(email=email, password_hash=hash_password(password)))

    async def admin(self, email: str = "admin@example.com", password: str = PASSWORD) -> Admin:
        return await self._add(Admin(email=email, password_hash=hash_password(password)))

    async def doctor(
        self,
        email: str = "doc@example.com",
        password: str | None = PASSWORD,
        status: DoctorStatus = DoctorStatus.APPROVED,
    ) -> Doctor:
        return await self._add(
            Doctor(
                email=email,
                password_hash=hash_password(password) if password else None,
                full_name="Dr. Test",
                status=status,
            )
        )

    async def patient(self, phone: str = "+15551234567", password: str | None = None) -> Patient:
        return await self._add(
            Patient(
                phone=phone,
                password_hash=hash_password(password) if password else None,
                otp_attempts_remaining=0,
            )
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        jwt_secret=TEST_SECRET,
        env_name="test",
        otp_debug_echo=True,
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
    )


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings.jwt_secret, issuer=settings.jwt_issuer)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[AsyncSessionFactory, None]:
    factory = database.init_db(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with factory.kw["bind"].begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield factory
    await database.dispose_db()


@pytest_asyncio.fixture
async def db_session(session_factory: AsyncSessionFactory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory: AsyncSessionFactory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def _no_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def app(
    settings: Settings,
    session_factory: AsyncSessionFactory,
    notifier: RecordingNotifier,
    fake_redis: FakeRedis,
) -> FastAPI:
    application = create_app(settings)
    application.dependency_overrides[get_otp_notifier] = lambda: notifier
    application.dependency_overrides[get_redis] = lambda: fake_redis
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
