# streamseen/tests/conftest.py
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from streamseen.db.models import Base, User


@pytest.fixture
async def engine():
    """
    One in-memory SQLite database per test.
    The connect/begin hooks let SQLAlchemy own BEGIN so SAVEPOINTs behave.
    """
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def users(db):
    alice = User(id="u-alice", email="alice@example.com", first_name="Alice", last_name="Smith")
    bob = User(id="u-bob", email="bob@example.com", first_name="Bob", last_name="Jones")
    carol = User(id="u-carol", email="carol@example.com", first_name="Carol")
    db.add_all([alice, bob, carol])
    await db.commit()
    return alice, bob, carol


@pytest.fixture
async def client(session_maker):
    """ASGI client whose requests each get their own session on the test database."""
    from streamseen.database import get_async_db
    from streamseen.main import app

    async def _override():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_db] = _override
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from streamseen.routes.auth import create_access_token

    def _make(sub: str, **claims):
        token = create_access_token({"sub": sub, **claims})
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def film():
    def _make(title: str = "Dune", year: int = 2021, **extra):
        data = {
            "title": title,
            "year": year,
            "summary": "A summary.",
            "genre": "Sci-Fi",
            "streaming_service": "Netflix",
            "reason": "Because.",
            "content_type": "Movie",
        }
        data.update(extra)
        return data

    return _make
