from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Fitbook Studio API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "sql"  # "sql" | "memory"
    DATABASE_URL: str = "sqlite:///./data/fitbook.db"
    DB_TIMEOUT_SECONDS: float = 5.0

    STUDIO_CONFIG_PATH: str | None = None
    STUDIO_TIMEZONE: str = "Asia/Bangkok"

    # How far ahead a user may pick a date, and how far the next-available scan looks.
    BOOKING_WINDOW_DAYS: int = 45
    AVAILABILITY_SEARCH_DAYS: int = 60


settings = Settings()
