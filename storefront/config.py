# storefront/config.py
"""
Runtime settings for the storefront service.

Values are read from the environment (or a ``.env`` file next to the
process). Names match the variables the service has always used, e.g.
``PRODUCT_PER_PAGE`` controls the page size of the product search.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    product_per_page: int = Field(default=8, gt=0)
    # Multipart uploads are staged here before being pushed to the blob store.
    upload_dir: Path = Path("uploads")
    media_dir: Path = Path("media")
    media_base_url: str = "/media"
    log_level: str = "info"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
