"""
Test fixtures for the Card Vault test suite.

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - cipher: CardCipher with a fixed test passphrase
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a registered user's JWT
  - make_batch_file: Builds fixed-width batch files

Key design decisions:
  - Required settings are set in the environment before the application is
    imported, so no .env file is needed to run the tests.
  - In-memory SQLite (sqlite+aiosqlite://) keeps each test isolated.
  - get_db is overridden so requests hit the test database; the override
    keeps the production behaviour of rolling back on any exception.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CARD_ENCRYPTION_PASSPHRASE", "test-card-encryption-passphrase")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from card_vault.crypto import CardCipher
from card_vault.database import Base, get_db
from card_vault.dependencies import get_card_cipher
from card_vault.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSPHRASE = "test-card-encryption-passphrase"

HEADER = "DESAFIO-HYPERATIVA           20180524LOTE0001000010"


def record_line(sequence: str, card_number: str) -> str:
    """A record line with the number in columns 8-26, padded to 26 chars."""
    return f"{sequence:<7}{card_number:<19}"


@pytest.fixture
def make_batch_file():
    """
    Build the bytes of a batch file.

    make_batch_file(["4456897922969999", ...]) writes one record line per
    number between the standard header and a matching footer. Pass
    lines=[...] to control the record lines exactly.
    """
    def _make(card_numbers=(), lines=None, header=HEADER, footer=None):
        if lines is None:
            lines = [record_line(f"C{i}", n) for i, n in enumerate(card_numbers, start=1)]
        if footer is None:
            footer = f"LOTE0001{len(lines):06d}"
        return ("\n".join([header, *lines, footer]) + "\n").encode("utf-8")

    return _make


@pytest.fixture
def cipher():
    return CardCipher(TEST_PASSPHRASE)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    """Async HTTP test client with the test database injected."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_card_cipher] = lambda: CardCipher(TEST_PASSPHRASE)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client with a registered user and JWT token.

    Registers and logs in through the real endpoints, then sets the
    Authorization header for all subsequent requests.
    """
    credentials = {"username": "cardadmin", "password": "SecurePass123!"}

    response = await client.post("/v1/auth/register", json=credentials)
    assert response.status_code == 201, f"Register failed: {response.text}"

    response = await client.post("/v1/auth/login", json=credentials)
    assert response.status_code == 200, f"Login failed: {response.text}"

    client.headers["Authorization"] = f"Bearer {response.json()['token']}"
    return client
