"""
SettleWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


def _split_csv(v: str | list[str]) -> list[str]:
    if isinstance(v, str):
        return [p.strip() for p in v.split(",") if p.strip()]
    return v


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    quiescence_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Inactivity required before a file is declared stable",
    )
    poll_interval_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Cadence of the settle-check pass",
    )
    recursive: bool = Field(default=True)
    queue_size: int = Field(
        default=0,
        ge=0,
        description="Per-subscriber queue bound (0 means unbounded)",
    )
    stop_timeout_seconds: float = Field(default=5.0, gt=0)


class PipelineSettings(BaseSettings):
    """Conversion pipeline settings, read from the deployment variables."""

    model_config = SettingsConfigDict(env_prefix="")

    source_dir: Annotated[list[Path], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated roots to watch",
    )
    dest_dir: Path = Field(default=Path("."))
    data_dir: Path = Field(default=Path("."))
    file_exts: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated extension allow-list (empty accepts all)",
    )
    converter_command: str = Field(
        default="dnglab -d -v convert {source} {dest}",
        description="Command template with {source} and {dest} placeholders",
    )
    dest_suffix: str = Field(default=".dng")
    index_db_name: str = Field(default="indexdb.db")

    @field_validator("source_dir", mode="before")
    @classmethod
    def parse_source_dir(cls, v: str | list[str]) -> list[str]:
        """Parse watched roots from comma-separated string or list."""
        return _split_csv(v)

    @field_validator("file_exts", mode="before")
    @classmethod
    def parse_file_exts(cls, v: str | list[str]) -> list[str]:
        """Parse extensions from comma-separated string or list."""
        return _split_csv(v)

    @property
    def index_db_path(self) -> Path:
        """Location of the SQLite dedup index."""
        return self.data_dir / self.index_db_name


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="SettleWatch")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings. Components take their
    settings explicitly; this is only used at the application edge.
    """
    return Settings()
