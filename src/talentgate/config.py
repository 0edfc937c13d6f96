from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Talentgate"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    timezone: str = "Africa/Algiers"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/talentgate.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads")

    page_size: int = 10
    recent_applications_limit: int = 5

    max_upload_bytes: int = 5 * 1024 * 1024
    image_extensions: str = "jpg,jpeg,png"
    document_extensions: str = "pdf"

    session_ttl_min: int = 720
    session_cookie_name: str = "session"
    bcrypt_rounds: int = 12

    status_transition_policy: str = "permissive"
    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("status_transition_policy")
    @classmethod
    def validate_transition_policy(cls, value: str) -> str:
        allowed = {"permissive", "strict"}
        if value not in allowed:
            raise ValueError(f"status_transition_policy must be one of {sorted(allowed)}")
        return value

    @field_validator("page_size", "recent_applications_limit")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_extensions(self) -> dict[str, set[str]]:
        return {
            "image": _split_extensions(self.image_extensions),
            "document": _split_extensions(self.document_extensions),
        }


def _split_extensions(value: str) -> set[str]:
    return {item.strip().lower().lstrip(".") for item in value.split(",") if item.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
