# File: /app/core/config.py | Version: 2.0 | Title: Central App Settings (Pydantic v2)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./gridbase.db"

    # --- Security / JWT ---
    SECRET_KEY: str = "CHANGE_ME_FOR_DEV_ONLY"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # --- API behavior toggles ---
    ENABLE_STD_ERRORS: bool = (
        False  # set True in .env to wrap every error in {"error": {...}}
    )

    # --- Row paging ---
    ROW_PAGE_MIN: int = 10
    ROW_PAGE_MAX: int = 500
    ROW_PAGE_DEFAULT: int = 50

    # --- Row insertion ---
    ROW_INSERT_BATCH_SIZE: int = 5_000
    ADD_ROWS_MAX: int = 1_000_000
    TABLE_SEED_ROWS: int = 50
    # Fill seed rows with faker names, sentences and amounts
    TABLE_SEED_FAKE_DATA: bool = True

    # --- Column ordering ---
    # Must exceed any realistic column count so shifted orders never collide
    COLUMN_ORDER_SHIFT: int = 1_000_000

    # --- Observability ---
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    # v2-style config
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
