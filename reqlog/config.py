from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reqlog.observability.records import Level


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")
    log_add_source: bool = Field(default=True, alias="LOG_ADD_SOURCE")
    correlation_id_fallback_length: int = Field(default=32, ge=1, alias="CORRELATION_ID_FALLBACK_LENGTH")

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        return Level.parse(value).name

    @property
    def level(self) -> Level:
        return Level[self.log_level]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
