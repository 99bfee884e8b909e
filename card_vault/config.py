"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env
file as a fallback. Secrets (the JWT signing key and the card encryption
passphrase) have no defaults, so the service refuses to start without them.

Precedence:
  1. Environment variables
  2. .env file values
  3. Defaults defined here

The core components never read this module directly. The cipher and the file
parser are built from these values in card_vault.dependencies and handed to
the services, so tests can construct them with their own values.

Usage:
    from card_vault.config import settings
    print(settings.MAX_UPLOAD_SIZE_BYTES)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Card Vault API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
      - CARD_ENCRYPTION_PASSPHRASE: High-entropy secret the AES-256 key is derived from
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Card Vault API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/cards.db"

    # --- Authentication ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Card Encryption ---
    # Not a user password: treated as a high-entropy secret and hashed once
    # with SHA-256 to obtain the AES-256-GCM key.
    CARD_ENCRYPTION_PASSPHRASE: str

    # --- Batch upload ---
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
