import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="TRAILMARK_DATABASE_URL")
    database_pool_size: int = Field(10, alias="TRAILMARK_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="TRAILMARK_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="TRAILMARK_DATABASE_ECHO")
    curriculum_path: Optional[str] = Field(None, alias="TRAILMARK_CURRICULUM_PATH")
    unsubmit_window_seconds: int = Field(600, ge=0, alias="TRAILMARK_UNSUBMIT_WINDOW_SECONDS")
    notify_scope: Literal["team", "reviewers"] = Field("team", alias="TRAILMARK_NOTIFY_SCOPE")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
