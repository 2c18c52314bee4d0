"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This pattern keeps secrets out of source code — the .env file is
gitignored, and .env.example provides a safe template for developers.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

There is deliberately no default for SECRET_KEY. If it is missing, building
the settings object raises a ValidationError at import time and the process
refuses to start — a signing secret must never silently fall back to a
hardcoded value.

Usage:
    from banking_portal.config import settings
    print(settings.SECRET_KEY)
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Banking Portal API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign the session JWTs
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Banking Portal API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for development; swap to a PostgreSQL (asyncpg) URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./bank.db"

    # --- Signed session token (cookie) ---
    # REQUIRED: No default — forces the developer to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    JWT_ISSUER: str = "banking-portal"
    JWT_AUDIENCE: str = "banking-users"

    # --- Opaque access token (bearer) ---
    ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    # Seconds between background sweeps of expired sessions. 0 disables the sweeper.
    SESSION_SWEEP_INTERVAL_SECONDS: int = 3600

    # --- Password hashing ---
    # Argon2 time cost. Raise it as hardware gets faster.
    PASSWORD_HASH_ROUNDS: int = 3

    # --- CORS ---
    # Origins allowed to make cross-origin requests (frontend URLs)
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    @property
    def cookie_secure(self) -> bool:
        """Auth cookies are only marked Secure in production (HTTPS)."""
        return self.ENVIRONMENT == "production"


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
