from __future__ import annotations
from dotenv import load_dotenv, find_dotenv; load_dotenv(find_dotenv(usecwd=True), override=True)

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # General
    TZ: str = Field(default="Europe/Sarajevo")
    LOG_LEVEL: str = Field(default="INFO")

    # Apple Health export (Settings > Health > Export All Health Data)
    HEALTH_EXPORT_PATH: str = Field(
        default="./data/apple_health/export.xml",
        description="Path to export.xml from an Apple Health export",
    )


def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
