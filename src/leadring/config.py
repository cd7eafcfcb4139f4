"""
Settings are layered, lowest first: defaults, ~/.leadring/config.json,
LEADRING_* environment variables, explicit overrides (CLI options).
"""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from leadring.polling import DEFAULT_POLL_INTERVAL_S
from leadring.sheets import DEFAULT_RANGE, DEFAULT_SHEETS_BASE_URL

CONFIG_FILE = Path.home() / ".leadring" / "config.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LEADRING_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_S, gt=0)
    sheet_range: str = DEFAULT_RANGE
    sheets_base_url: str = DEFAULT_SHEETS_BASE_URL
    request_timeout: float = Field(default=30.0, gt=0)
    cors_allowed_origins: str = "*"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    # Only used by `leadring watch`; the server takes tokens from each connection.
    access_token: Optional[str] = Field(default=None, repr=False)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, JsonConfigSettingsSource(settings_cls))

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def load_settings(path: Optional[Path] = None, **overrides: Any) -> Settings:
    """Build Settings with a JSON config file underneath the environment.

    Overrides that are None are ignored, so unset CLI options fall through.
    """
    json_file = path or CONFIG_FILE

    class FileSettings(Settings):
        model_config = SettingsConfigDict(json_file=json_file)

    return FileSettings(**{k: v for k, v in overrides.items() if v is not None})
