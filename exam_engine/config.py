"""Runtime configuration read from the environment."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EXAM_ENGINE_", env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./exam_engine.db"
    # echo=False to avoid noisy logs; toggle for debugging
    sql_echo: bool = False
    session_secret: str = "CHANGE_ME_TO_A_RANDOM_SECRET"
    log_level: str = "INFO"
    seed_demo_data: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
