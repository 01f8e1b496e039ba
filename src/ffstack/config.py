"""
Runtime settings, read from FFSTACK_* environment variables or a .env file.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Where stacks are stored and how the tool logs."""

    home: Path = Field(
        default_factory=lambda: Path.home() / ".ffstack",
        description="Root directory for all ffstack data",
    )
    log_level: str = Field("INFO", description="Log level for the ffstack logger")
    log_dir: Optional[Path] = Field(None, description="Directory for rotating log files; console only when unset")

    model_config = SettingsConfigDict(env_prefix="FFSTACK_", env_file=".env", extra="ignore")

    @property
    def stacks_dir(self) -> Path:
        return self.home / "stacks"


def get_settings(**overrides) -> Settings:
    return Settings(**overrides)
