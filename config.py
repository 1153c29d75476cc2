from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_version: str = "dev"

    database_url: str = ""
    redis_url: str = ""

    # підпис сесійних токенів
    session_secret: str = "CHANGE_ME"
    session_max_age: int = 86400 * 7

    content_dir: str = "data/content"

    # idle expiry бою + лок на хід
    battle_ttl: int = 1800
    turn_lock_ttl: int = 12

    frontend_origin: str = ""


settings = Settings()
