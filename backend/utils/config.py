"""
TagWeave Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


MONITOR_KEY = "monitor:"


class EngineSettings(BaseSettings):
    """Tag engine settings. Frozen so a running engine cannot be reconfigured."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_", frozen=True)

    monitor_path: Path | None = Field(
        default=None,
        description="Root directory to watch; falls back to the sidecar config, then base_dir",
    )
    base_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory holding the sidecar config and anchoring relative paths",
    )
    extensions: list[str] = Field(
        default=[".dnaweb"],
        description="Filename extensions to monitor, '.*' for all files",
    )
    output_extension: str = Field(default=".dna", description="Default output extension")
    process_delay_ms: int = Field(default=100, ge=0, le=60000)
    config_file_name: str = Field(default="dna.config")
    write_outputs: bool = Field(default=True)
    cascade_dependents: bool = Field(default=True)
    transitive_dependents: bool = Field(default=False)

    @field_validator("extensions", mode="before")
    @classmethod
    def parse_extensions(cls, v: str | list[str]) -> list[str]:
        """Parse extensions from comma-separated string or list."""
        if isinstance(v, str):
            return [e.strip() for e in v.split(",") if e.strip()]
        return [e.strip() for e in v if e.strip()]


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    recursive: bool = Field(default=True)
    ignore_patterns: list[str] = Field(
        default=[
            ".git",
            ".venv",
            "venv",
            ".idea",
            ".vscode",
            "node_modules",
            "__pycache__",
            "*.swp",
            "*~",
        ],
        description="Glob patterns to ignore while watching",
    )

    @field_validator("ignore_patterns", mode="before")
    @classmethod
    def parse_ignore_patterns(cls, v: str | list[str]) -> list[str]:
        """Parse ignore patterns from comma-separated string or list."""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="TagWeave")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    engine: EngineSettings = Field(default_factory=EngineSettings)
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()


def read_monitor_path(config_file: Path) -> str | None:
    """
    Read the ``monitor:`` entry from a sidecar config file.

    Args:
        config_file: Path to the sidecar config (e.g. dna.config)

    Returns:
        The raw monitor value, or None if the file or the entry is absent

    Raises:
        OSError: If the file exists but cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
        ValueError: If the monitor entry has no value
    """
    if not config_file.is_file():
        return None

    for line in config_file.read_text(encoding="utf-8").splitlines():
        if not line.startswith(MONITOR_KEY):
            continue
        value = line[len(MONITOR_KEY):].strip()
        if not value:
            raise ValueError(f"Empty monitor entry in {config_file}")
        return value

    return None

