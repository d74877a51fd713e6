from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    debug: bool = Field(default=False)
    api_prefix: str = Field(default="/api")
    project_name: str = Field(default="Room Chat Relay")
    database_url: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/roomchat",
        validation_alias="DATABASE_URL",
    )
    auto_create_schema: bool = Field(default=True)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=True)
    websocket_ping_interval: int = Field(default=20, ge=1)
    websocket_ping_timeout: int | None = Field(default=None, ge=1)
    websocket_max_payload_bytes: int = Field(default=1_000_000, ge=1)
    socketio_path: str = Field(default="/socket.io")
    chat_history_limit: int | None = Field(default=None, ge=1)
    static_dir: str | None = Field(default=None)
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Annotated[Settings, "Application settings"] = get_settings()
