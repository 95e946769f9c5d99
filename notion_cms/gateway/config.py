import os
from enum import StrEnum, auto

from pydantic_settings import BaseSettings, SettingsConfigDict


class MediaStorages(StrEnum):
    LOCAL = auto()
    R2 = auto()


class Settings(BaseSettings):
    redis_url: str = "redis://redis:6379/0"
    log_dir: str = "logs"
    log_level: str = "INFO"

    notion_api_base: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    notion_timeout_seconds: float = 30.0
    notion_page_size: int = 100  # maximum allowed by the Notion API
    max_list_depth: int = 4

    webhook_record_ttl_seconds: int = 180 * 24 * 60 * 60

    media_secret_key: str | None = None
    media_storage_type: MediaStorages = MediaStorages.LOCAL
    media_local_path: str = "media"
    media_max_download_size: int = 100 * 1024 * 1024  # 100MB default

    r2_account_id: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_bucket: str | None = None
    r2_public_url: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=[os.getenv("ENV_FILE", ""), ".env"],
        extra="ignore",
        env_nested_delimiter="__",
    )


def get_settings() -> Settings:  # ty: ignore[invalid-return-type]
    """This is only used for dependency references, see __init__.py:

    app.dependency_overrides[get_settings] = lambda: settings
    """
    ...
