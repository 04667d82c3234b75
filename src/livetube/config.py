"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (LIVETUBE__SERVER__PORT=8080)
  2. livetube.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("livetube")
_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def _find_config_file() -> str | None:
    """Return the path of the first livetube.yaml found, or None."""
    candidates = [
        Path("livetube.yaml"),
        Path(platformdirs.user_config_dir("livetube")) / "livetube.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    api_key: str | None = None
    cors_origin: str = "*"


class CacheSettings(BaseModel):
    # <= 0 disables every cache layer, including yt-dlp's on-disk cache
    ttl_minutes: float = 30
    max_entries: int = Field(default=1000, ge=1)
    dir: str = _DEFAULT_CACHE_DIR

    @property
    def enabled(self) -> bool:
        return self.ttl_minutes > 0


class ValidatorSettings(BaseModel):
    header_param: str = "livetube_headers"
    timeout_seconds: float = 10.0


class UpstreamSettings(BaseModel):
    lang: str = "en"
    location: str = "US"
    user_agent: str = _DEFAULT_USER_AGENT


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: LIVETUBE__CACHE__TTL_MINUTES=5
        env_prefix="LIVETUBE__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    validator: ValidatorSettings = ValidatorSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
