"""Shared pytest fixtures for the Chirpy API.

Every fixture builds its own in-memory SQLite database (``sqlite://`` with a
StaticPool), so tests never share accounts or refresh tokens.
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask

from api import create_app
from models.db_storage import DBStorage
from utils.sessions import SessionManager

SECRET = "test-secret-key-that-is-long-enough-for-hs256"
OTHER_SECRET = "another-secret-key-that-is-also-long-enough"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def storage() -> Generator[DBStorage, None, None]:
    store = DBStorage("sqlite://")
    store.reload()
    yield store
    store.close()


@pytest.fixture()
def clock() -> FakeClock:
    # Half an hour behind the real clock: access tokens issued at the start
    # are still valid when PyJWT checks them against the wall clock.
    return FakeClock(datetime.now(timezone.utc) - timedelta(minutes=30))


@pytest.fixture()
def sessions(storage: DBStorage, clock: FakeClock) -> SessionManager:
    return SessionManager(storage, SECRET, clock=clock)


@pytest.fixture()
def account(sessions: SessionManager):
    return sessions.register("a@x.com", "hunter2")


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    application = create_app("testing")
    yield application


@pytest.fixture()
def client(app: Flask):
    return app.test_client()


@pytest.fixture()
def login(client):
    """Register and log in ``a@x.com``; returns the login response body."""

    credentials = {"email": "a@x.com", "password": "hunter2"}
    resp = client.post("/api/v1/auth/register", json=credentials)
    assert resp.status_code == 201
    resp = client.post("/api/v1/auth/login", json=credentials)
    assert resp.status_code == 200
    return resp.get_json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
