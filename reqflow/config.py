"""All settings, loaded from the environment or the .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    app_env: str = "development"
    secret_key: str = "change-me"
    database_url: str = "sqlite:///./reqflow.db"
    log_level: str = "INFO"

    # Requisitions
    default_currency: str = "ZAR"
    transaction_id_suffix_length: int = 6
    transaction_id_retries: int = 5

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
