import os

# Vor dem App-Import setzen: keine MySQL-Verbindung, kein Mailversand
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET", "test-secret")
os.environ.pop("SMTP_USER", None)

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from helpers.accounts import login, make_user
from main import app


@pytest.fixture
def session_local():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield testing_session_local
    engine.dispose()


@pytest.fixture
def db(session_local):
    session = session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_local):
    def override_get_db():
        session = session_local()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def async_client(session_local):
    """Async-Client über ASGITransport (gleiche DB-Override wie `client`)."""
    def override_get_db():
        session = session_local()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def member(client, session_local):
    """Eingeloggtes Mitglied; liefert die User-ID."""
    user_id = make_user(session_local, "mila")
    login(client, "mila")
    return user_id


@pytest.fixture
def admin(client, session_local):
    user_id = make_user(session_local, "root", role="admin")
    login(client, "root")
    return user_id
