"""Tests for SessionManager: the login / refresh / revoke lifecycle."""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tests.conftest import SECRET
from utils.exceptions import DuplicateEmailError, Unauthenticated
from utils.security import make_jwt, validate_jwt, verify_password
from utils.sessions import BAD_LOGIN, BAD_TOKEN, DEFAULT_ACCESS_TOKEN_TTL, SessionManager


def _subject(token: str) -> uuid.UUID:
    # Tokens minted on the fake clock can carry an iat ahead of the wall clock
    claims = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_iat": False})
    return uuid.UUID(claims["sub"])


class TestRegister:
    def test_stores_only_the_hash(self, sessions, storage):
        user = sessions.register("a@x.com", "hunter2")
        stored = storage.get_account_by_email("a@x.com")
        assert stored.id == user.id
        assert stored.hashed_password != "hunter2"
        assert verify_password("hunter2", stored.hashed_password)
        assert stored.is_chirpy_red is False

    def test_duplicate_email(self, sessions, account):
        with pytest.raises(DuplicateEmailError):
            sessions.register("a@x.com", "different")

    def test_empty_password_is_allowed(self, sessions):
        sessions.register("empty@x.com", "")
        assert sessions.login("empty@x.com", "").account.email == "empty@x.com"


class TestLogin:
    def test_returns_both_tokens(self, sessions, account):
        result = sessions.login("a@x.com", "hunter2")
        assert result.account.id == account.id
        assert validate_jwt(result.access_token, SECRET) == uuid.UUID(account.id)
        assert re.fullmatch(r"[0-9a-f]{64}", result.refresh_token)
        assert result.expires_in == DEFAULT_ACCESS_TOKEN_TTL

    def test_unknown_email_and_wrong_password_look_the_same(self, sessions, account):
        with pytest.raises(Unauthenticated) as unknown:
            sessions.login("nobody@x.com", "hunter2")
        with pytest.raises(Unauthenticated) as wrong:
            sessions.login("a@x.com", "hunter3")
        assert unknown.value.message == wrong.value.message == BAD_LOGIN

    def test_each_login_gets_its_own_refresh_token(self, sessions, account):
        first = sessions.login("a@x.com", "hunter2").refresh_token
        second = sessions.login("a@x.com", "hunter2").refresh_token
        assert first != second
        # Both stay usable; single-active-token is not enforced
        sessions.refresh(first)
        sessions.refresh(second)

    @pytest.mark.parametrize(
        "requested, expected",
        [
            (None, timedelta(hours=1)),
            (timedelta(0), timedelta(hours=1)),
            (timedelta(seconds=-10), timedelta(hours=1)),
            (timedelta(minutes=5), timedelta(minutes=5)),
            (timedelta(hours=5), timedelta(hours=1)),
        ],
    )
    def test_access_token_lifetime(self, sessions, account, requested, expected):
        result = sessions.login("a@x.com", "hunter2", expires_in=requested)
        assert result.expires_in == expected
        claims = jwt.decode(
            result.access_token, SECRET, algorithms=["HS256"], options={"verify_exp": False}
        )
        assert claims["exp"] - claims["iat"] == int(expected.total_seconds())


class TestRefresh:
    def test_scenario_login_refresh_revoke(self, sessions, account, clock):
        result = sessions.login("a@x.com", "hunter2")
        assert validate_jwt(result.access_token, SECRET) == uuid.UUID(account.id)
        assert len(result.refresh_token) == 64

        clock.advance(timedelta(hours=1))
        grant = sessions.refresh(result.refresh_token)
        assert grant.access_token != result.access_token
        assert _subject(grant.access_token) == uuid.UUID(account.id)

        sessions.revoke(result.refresh_token)
        with pytest.raises(Unauthenticated):
            sessions.refresh(result.refresh_token)

    def test_refresh_does_not_rotate(self, sessions, account):
        token = sessions.login("a@x.com", "hunter2").refresh_token
        sessions.refresh(token)
        sessions.refresh(token)
        assert sessions.refresh_tokens.lookup(token).revoked_at is None

    def test_expired_refresh_token(self, sessions, account, clock):
        token = sessions.login("a@x.com", "hunter2").refresh_token
        clock.advance(timedelta(days=60))
        with pytest.raises(Unauthenticated) as exc:
            sessions.refresh(token)
        assert exc.value.message == BAD_TOKEN

    def test_unknown_revoked_and_expired_share_one_message(self, sessions, account, clock):
        revoked = sessions.login("a@x.com", "hunter2").refresh_token
        sessions.revoke(revoked)
        expired = sessions.login("a@x.com", "hunter2").refresh_token

        messages = []
        for token in (revoked, "0" * 64):
            with pytest.raises(Unauthenticated) as exc:
                sessions.refresh(token)
            messages.append(exc.value.message)
        clock.advance(timedelta(days=61))
        with pytest.raises(Unauthenticated) as exc:
            sessions.refresh(expired)
        messages.append(exc.value.message)

        assert set(messages) == {BAD_TOKEN}


class TestRevoke:
    def test_twice_is_fine(self, sessions, account):
        token = sessions.login("a@x.com", "hunter2").refresh_token
        sessions.revoke(token)
        sessions.revoke(token)

    def test_unknown_token_is_fine(self, sessions):
        sessions.revoke("not-a-real-token")

    def test_only_the_given_token_is_revoked(self, sessions, account):
        kept = sessions.login("a@x.com", "hunter2").refresh_token
        dropped = sessions.login("a@x.com", "hunter2").refresh_token
        sessions.revoke(dropped)
        sessions.refresh(kept)


class TestAuthenticate:
    def test_valid(self, sessions, account):
        token = sessions.login("a@x.com", "hunter2").access_token
        assert sessions.authenticate(token) == uuid.UUID(account.id)

    def test_expired_and_forged_both_unauthenticated(self, sessions, account):
        issued = datetime.now(timezone.utc) - timedelta(hours=1)
        expired = make_jwt(account.id, SECRET, timedelta(minutes=1), now=issued)
        forged = make_jwt(account.id, "x" * 48, timedelta(minutes=1))
        for token in (expired, forged):
            with pytest.raises(Unauthenticated) as exc:
                sessions.authenticate(token)
            assert exc.value.message == BAD_TOKEN


class TestCredentials:
    def test_update_then_login_with_new_password(self, sessions, account):
        sessions.update_credentials(account.id, "b@x.com", "hunter3")
        with pytest.raises(Unauthenticated):
            sessions.login("a@x.com", "hunter2")
        assert sessions.login("b@x.com", "hunter3").account.id == account.id

    def test_update_unknown_account(self, sessions):
        with pytest.raises(Unauthenticated):
            sessions.update_credentials(uuid.uuid4(), "c@x.com", "pw")

    def test_upgrade(self, sessions, storage, account):
        assert sessions.upgrade_account(account.id) is True
        assert storage.get_account(account.id).is_chirpy_red is True
        assert sessions.upgrade_account(uuid.uuid4()) is False


def test_secret_is_required(storage):
    with pytest.raises(ValueError):
        SessionManager(storage, "")


def test_non_positive_default_ttl_falls_back_to_an_hour(storage):
    manager = SessionManager(storage, SECRET, access_token_ttl=timedelta(0))
    assert manager.access_token_ttl == timedelta(hours=1)
