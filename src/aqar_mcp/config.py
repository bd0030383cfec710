"""Configuration for the Aqar search core."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class AqarConfig(BaseSettings):
    cache_max_entries: int = 500
    cache_cleanup_interval_seconds: float = 60.0
    cache_coalesce_fetches: bool = False
    default_page_size: int = 12
    featured_limit: int = 6
    data_file: Optional[Path] = None

    model_config = {"env_prefix": "AQAR_"}
