"""
Centralized application configuration implementing the 12-Factor App methodology.
Every value can be overridden through environment variables or a .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable configuration schema backed by environment variables."""

    APP_NAME: str = "Recebedores API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # SQLite for local development; any SQLAlchemy URL (e.g. PostgreSQL) works in production
    DATABASE_URL: str = "sqlite:///./recebedores.db"

    API_PREFIX: str = "/api/v1"

    LOG_LEVEL: str = "INFO"

    # Rejects create/edit when another payee already holds the same Pix key
    ENFORCE_UNIQUE_PIX_KEY: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
