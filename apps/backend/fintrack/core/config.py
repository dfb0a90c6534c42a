from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "fintrack"
    ENV: str = "dev"

    # Default SQLite file DB, pinned to apps/backend/db.sqlite3 so the CWD does not matter
    _default_db_path = Path(__file__).resolve().parents[2] / "db.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    TIMEZONE: str = "America/Sao_Paulo"

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path | None = None

    # Fixed transactions: months generated per "generate" action
    FIXED_HORIZON_MONTHS: int = 12
    MAX_INSTALLMENTS: int = 360
    MAX_TRANSACTION_AMOUNT: int = 1_000_000_000

    DEFAULT_CLOSING_DAY: int = 1
    DEFAULT_DUE_DAY: int = 10

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="FINTRACK_", case_sensitive=False)


settings = Settings()
