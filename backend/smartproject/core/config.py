from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = Field(default="dev")  # dev|prod

    # HTTP
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Logging: defaults to DEBUG in dev, INFO in prod
    LOG_LEVEL: str | None = Field(default=None)

    # DB
    DATABASE_URL: str = Field(default="postgresql+psycopg://app:app@db:5432/smartproject")
    CREATE_TABLES: bool = Field(default=True)

    # CORS
    CORS_ORIGINS: str = Field(default="http://localhost:5173,http://localhost:3000")

    # Files
    EXPORT_DIR: str = Field(default="/app/data/exports")

    # Seed (dev)
    SEED_DEMO: bool = Field(default=False)


settings = Settings()
