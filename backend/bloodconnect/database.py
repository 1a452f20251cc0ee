from __future__ import annotations

import motor.motor_asyncio
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]
ENV_FILES = [BASE_DIR / ".env.local", BASE_DIR / ".env"]


class Settings(BaseSettings):
    mongodb_url: str = "mongodb://localhost:27017/bloodconnect"
    mongo_server_timeout_ms: int = 2000
    mongo_connect_timeout_ms: int = 2000
    mongo_socket_timeout_ms: int = 2000
    ai_gateway_api_key: str | None = None
    ai_gateway_base_url: str = "https://openrouter.ai/api/v1"
    ai_model: str = "google/gemini-2.5-flash"
    ai_temperature: float = 0.3
    ai_timeout_seconds: float = 20.0
    match_limit: int = 10
    recommendations_preview_chars: int = 200
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=[str(path) for path in ENV_FILES],
        case_sensitive=False,
        env_prefix="",
    )


def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def create_client(current: Settings) -> motor.motor_asyncio.AsyncIOMotorClient:
    logger.debug("Connecting to MongoDB with {}ms server selection timeout", current.mongo_server_timeout_ms)
    return motor.motor_asyncio.AsyncIOMotorClient(
        current.mongodb_url,
        serverSelectionTimeoutMS=current.mongo_server_timeout_ms,
        connectTimeoutMS=current.mongo_connect_timeout_ms,
        socketTimeoutMS=current.mongo_socket_timeout_ms,
    )


client = create_client(settings)
# The database named in the URI path wins; bare host URIs use "bloodconnect".
db = client.get_default_database(default="bloodconnect")
