"""Configuration management for Cycle Roadmap."""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import tomli_w

VIEW_ROADMAP = "roadmap"
VIEW_CYCLE_OVERVIEW = "cycle-overview"
VIEWS: tuple[str, ...] = (VIEW_ROADMAP, VIEW_CYCLE_OVERVIEW)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Configuration for the cycle data source, views and logging."""

    data_file: str
    default_view: str = VIEW_CYCLE_OVERVIEW
    log_level: str = "INFO"
    browse_url: str | None = None

    def validate(self) -> list[str]:
        """Validate configuration values. Returns list of error messages."""
        errors: list[str] = []

        if not self.data_file:
            errors.append("Data file is required")

        if self.default_view not in VIEWS:
            errors.append(f"Default view must be one of: {', '.join(VIEWS)}")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"Log level must be one of: {', '.join(LOG_LEVELS)}")

        if self.browse_url:
            parsed = urlparse(self.browse_url)
            if parsed.scheme not in ("http", "https"):
                errors.append("Browse URL must start with http:// or https://")
            if not parsed.netloc:
                errors.append("Browse URL must include a domain")

        return errors

    @property
    def data_path(self) -> Path:
        """Data file path, relative paths resolved against the config directory."""
        path = Path(self.data_file).expanduser()
        if not path.is_absolute():
            path = get_config_dir() / path
        return path

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".cycle-roadmap"


def get_config_path() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.toml"


def config_exists() -> bool:
    """Check if configuration file exists."""
    return get_config_path().exists()


def load_config() -> Config:
    """Load configuration from TOML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration not found at {config_path}. "
            "Create ~/.cycle-roadmap/config.toml to set up."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML: {e}") from e

    data_section = data.get("data", {})
    views_section = data.get("views", {})
    logging_section = data.get("logging", {})

    config = Config(
        data_file=data_section.get("file", ""),
        browse_url=data_section.get("browse_url"),
        default_view=views_section.get("default", VIEW_CYCLE_OVERVIEW),
        log_level=logging_section.get("level", "INFO"),
    )

    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    return config


def save_config(config: Config) -> None:
    """Save configuration to TOML file."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = get_config_path()

    data_section: dict[str, str] = {"file": config.data_file}
    if config.browse_url:
        data_section["browse_url"] = config.browse_url

    data: dict = {
        "data": data_section,
        "views": {"default": config.default_view},
        "logging": {"level": config.log_level},
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
