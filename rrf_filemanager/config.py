import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("RRF_FILEMANAGER_CONFIG", "config.toml")
_ENV_PATH = os.getenv("RRF_FILEMANAGER_ENV", ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RRF_",
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        extra="ignore",
    )

    host: str = "localhost"
    port: int = Field(default=80, ge=1, le=65535)
    password: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0)
    debug: bool = False

    logs_dir: Optional[Path] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
