"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
for path in (ROOT_DIR, ROOT_DIR / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.api.deps import make_token_verifier
from app.config import get_settings
from app.database import get_db
from app.main import app
from app.models import Base, Friendship, User
from app.services import NewsflashServices, build_services

from support import RecordingGateway


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return sessionmaker(bind=test_engine, future=True)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture()
def client(session_factory, gateway) -> Iterator[TestClient]:
    """Yield a TestClient whose database and push gateway are test doubles."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        app.state.services = build_services(
            get_settings(),
            session_factory,
            make_token_verifier(session_factory),
            gateway=gateway,
        )
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def services(client) -> NewsflashServices:
    return client.app.state.services


@pytest.fixture()
def drain(client) -> Callable[[], None]:
    """Wait for every fan-out scheduled so far to finish."""

    def _drain() -> None:
        client.portal.call(client.app.state.services.orchestrator.drain, 5)

    return _drain


@pytest.fixture()
def make_user(session_factory) -> Callable[..., int]:
    def _make_user(username: str, display_name: str | None = None) -> int:
        with session_factory() as session:
            user = User(username=username, display_name=display_name)
            session.add(user)
            session.commit()
            return user.id

    return _make_user


@pytest.fixture()
def befriend(session_factory) -> Callable[[int, int], None]:
    def _befriend(left: int, right: int) -> None:
        with session_factory() as session:
            session.add_all(
                [
                    Friendship(user_id=left, friend_id=right),
                    Friendship(user_id=right, friend_id=left),
                ]
            )
            session.commit()

    return _befriend


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
