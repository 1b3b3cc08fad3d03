from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = Field(default="dev")  # dev|prod
    TZ: str = Field(default="Europe/Madrid")

    # DB
    DATABASE_URL: str = Field(default="postgresql+psycopg://app:app@db:5432/app")

    # CORS
    CORS_ORIGINS: str = Field(default="http://localhost:3000,http://localhost")

    # Indicator windows
    DEFAULT_WINDOW_DAYS: int = Field(default=30, ge=1)

    # Billing statistics
    RECENT_DAYS: int = Field(default=30, ge=1)
    STATISTICS_MONTHS: int = Field(default=6, ge=1)
    TOP_CLIENTS: int = Field(default=5, ge=1)

    # Seed (dev)
    SEED_DEMO: bool = Field(default=True)
    DEMO_WORKSHOP_NAME: str = Field(default="Taller Demo")


settings = Settings()
