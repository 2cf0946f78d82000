"""
Environment-aware configuration.
Values are read once at import (after loading .env) and handed to the
app factory; nothing writes to them afterwards.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


class BaseConfig:
    # Signs every access token. create_app refuses to start without it.
    SECRET = os.getenv("SECRET")
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    # Keep a copy of env for visibility
    APP_ENV = os.getenv("APP_ENV", "dev")
    # "dev" unlocks /admin/reset
    PLATFORM = os.getenv("PLATFORM", "prod")
    POLKA_KEY = os.getenv("POLKA_KEY")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///chirpy.db")
    SQL_ECHO = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=60)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    SQL_ECHO = os.getenv("SQL_ECHO", "0") in ("1", "true", "yes")


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET = "test-secret-key-that-is-long-enough-for-hs256"
    DATABASE_URL = "sqlite://"
    PLATFORM = "dev"
    POLKA_KEY = "test-polka-key"
    CORS_ORIGINS = "*"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/testing).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
