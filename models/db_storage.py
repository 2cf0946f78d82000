"""
DBStorage: the persistence collaborator of the auth core.

Exposes the narrow account/refresh-token interface that
utils.sessions.SessionManager consumes. Every call commits (or rolls
back) on its own; atomicity of the revoke transition is left to the
database through a single conditional UPDATE.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.base_model import Base, utcnow
from models.user import User
from models.refresh_token import RefreshToken
from utils.exceptions import DuplicateEmailError, StoreError

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _is_email_conflict(message: str) -> bool:
    """SQLite names the column, PostgreSQL the unique index."""
    return "users.email" in message or "ix_users_email" in message

class DBStorage:
    __engine = None
    __session = None

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize engine for ``database_url``"""
        if _is_memory_sqlite(database_url):
            # One shared connection, otherwise every thread sees a blank schema
            self.__engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.__engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

        # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except IntegrityError as exc:
            self.__session.rollback()
            message = str(getattr(exc, "orig", exc)).lower()
            if ("unique" in message or "duplicate" in message) and _is_email_conflict(message):
                raise DuplicateEmailError() from exc
            raise StoreError(f"Integrity error: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self.__session.rollback()
            logger.exception("Database commit failed")
            raise StoreError() from exc

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def _read(self, query):
        try:
            return query()
        except SQLAlchemyError as exc:
            self.__session.rollback()
            logger.exception("Database read failed")
            raise StoreError() from exc

    # accounts

    def create_account(self, email: str, hashed_password: str) -> User:
        user = User(email=email, hashed_password=hashed_password)
        self.new(user)
        self.save()
        return user

    def get_account_by_email(self, email: str) -> User | None:
        return self._read(lambda: self.__session.query(User).filter(User.email == email).first())

    def get_account(self, account_id) -> User | None:
        return self._read(lambda: self.__session.get(User, str(account_id)))

    def update_account(self, account_id, email: str, hashed_password: str) -> User | None:
        user = self.get_account(account_id)
        if user is None:
            return None
        user.email = email
        user.hashed_password = hashed_password
        self.new(user)
        self.save()
        return user

    def upgrade_account(self, account_id) -> bool:
        """Flag the account as Chirpy Red. False if there is no such account."""
        user = self.get_account(account_id)
        if user is None:
            return False
        user.is_chirpy_red = True
        self.new(user)
        self.save()
        return True

    def reset_accounts(self) -> int:
        """Hard delete every account together with its refresh tokens."""
        try:
            self.__session.query(RefreshToken).delete(synchronize_session=False)
            deleted = self.__session.query(User).delete(synchronize_session=False)
        except SQLAlchemyError as exc:
            self.__session.rollback()
            raise StoreError() from exc
        self.save()
        return deleted

    # refresh tokens

    def create_refresh_token(
        self, token: str, account_id, expires_at: datetime, created_at: datetime | None = None
    ) -> RefreshToken:
        record = RefreshToken(token=token, user_id=str(account_id), expires_at=expires_at)
        if created_at is not None:
            record.created_at = created_at
            record.updated_at = created_at
        self.new(record)
        self.save()
        return record

    def get_refresh_token(self, token: str) -> RefreshToken | None:
        return self._read(
            lambda: self.__session.query(RefreshToken)
            .populate_existing()
            .filter(RefreshToken.token == token)
            .first()
        )

    def revoke_refresh_token(self, token: str, revoked_at: datetime | None = None) -> None:
        """Idempotent: an already revoked (or unknown) token is left untouched."""
        revoked_at = revoked_at or utcnow()
        try:
            self.__session.query(RefreshToken).filter(
                RefreshToken.token == token, RefreshToken.revoked_at.is_(None)
            ).update(
                {RefreshToken.revoked_at: revoked_at, RefreshToken.updated_at: revoked_at},
                synchronize_session=False,
            )
        except SQLAlchemyError as exc:
            self.__session.rollback()
            raise StoreError() from exc
        self.save()
