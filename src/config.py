"""Centralized configuration for the OAuth consumer registry.

All configurations can be overridden via environment variables with the same name.
"""

import os
import secrets

from dotenv import load_dotenv

# Values from a local .env file, without overriding the real environment
load_dotenv()


def get_env(name: str, default: str) -> str:
    """Get environment variable or return default."""
    return os.getenv(name, default)


def get_env_int(name: str, default: int) -> int:
    """Get environment variable as integer or return default."""
    value = os.getenv(name)
    if value is not None:
        return int(value)
    return default


def get_env_bool(name: str, default: bool) -> bool:
    """Get environment variable as boolean or return default."""
    value = os.getenv(name)
    if value is not None:
        return value.lower() in ("true", "1", "yes")
    return default


# Flask settings
SECRET_KEY = get_env("SECRET_KEY", secrets.token_hex(32))
DEBUG = get_env_bool("DEBUG", True)
HOST = get_env("HOST", "127.0.0.1")
PORT = get_env_int("PORT", 8083)

# Database
DATABASE_PATH = get_env("DATABASE_PATH", "consumers.db")

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "INFO")
LOG_JSON = get_env_bool("LOG_JSON", False)

# Administrator account (created on startup)
ADMIN_USERNAME = get_env("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = get_env("ADMIN_PASSWORD", "admin")

# Demo consumer (created on startup, set TEST_CONSUMER_KEY empty to skip)
TEST_CONSUMER_KEY = get_env("TEST_CONSUMER_KEY", "test-consumer")
TEST_CONSUMER_NAME = get_env("TEST_CONSUMER_NAME", "Test Consumer")
TEST_CONSUMER_SECRET = get_env("TEST_CONSUMER_SECRET", "test-secret")
TEST_CONSUMER_CALLBACK = get_env(
    "TEST_CONSUMER_CALLBACK", "http://localhost:8080/callback"
)
