"""Configuration loading from CLI args, env vars, and optional YAML file."""

import os
import shlex
import logging
from dataclasses import dataclass, field

import yaml

from dropwatch.models import Category

logger = logging.getLogger(__name__)

SOURCES = ("command", "file", "stdin")
DEFAULT_COMMAND = ["journalctl", "-exf"]


@dataclass(frozen=True)
class Config:
    source: str = "command"
    command: list[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    path: str | None = None
    from_start: bool = False
    external_marker: str = "EXTERNAL_DROPPED:"
    internal_marker: str = "INTERNAL_DROPPED:"
    refresh_interval: float = 1.0
    include_newest: bool = False
    headless: bool = False
    stats_interval: float = 10.0
    log_file: str = "dropwatch.log"
    log_level: str = "INFO"

    def markers(self) -> dict[str, Category]:
        return {
            self.external_marker: Category.EXTERNAL,
            self.internal_marker: Category.INTERNAL,
        }


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def _pick(cli_value, env_name: str | None, yaml_value, default, cast=str):
    """First value set among CLI, environment and YAML, else the default."""
    if cli_value is not None:
        return cast(cli_value)
    if env_name and os.environ.get(env_name) is not None:
        return cast(os.environ[env_name])
    if yaml_value is not None:
        return cast(yaml_value)
    return default


def _split_command(value) -> list[str]:
    if isinstance(value, str):
        return shlex.split(value)
    return [str(part) for part in value]


def load_config(cli_args, yaml_data: dict) -> Config:
    """Build Config from CLI args, env vars, and parsed YAML data.

    CLI options left unset must be None so lower layers can apply.
    """
    source_yaml = yaml_data.get("source", {}) or {}
    markers_yaml = yaml_data.get("markers", {}) or {}
    display_yaml = yaml_data.get("display", {}) or {}
    headless_yaml = yaml_data.get("headless", {}) or {}
    logging_yaml = yaml_data.get("logging", {}) or {}
    defaults = Config()

    config = Config(
        source=_pick(getattr(cli_args, "source", None), "DROPWATCH_SOURCE",
                     source_yaml.get("type"), defaults.source),
        command=_pick(getattr(cli_args, "command", None), None,
                      source_yaml.get("command"), defaults.command, cast=_split_command),
        path=_pick(getattr(cli_args, "path", None), "DROPWATCH_PATH",
                   source_yaml.get("path"), defaults.path),
        from_start=_pick(getattr(cli_args, "from_start", None), None,
                         source_yaml.get("from_start"), defaults.from_start, cast=bool),
        external_marker=str(markers_yaml.get("external", defaults.external_marker)),
        internal_marker=str(markers_yaml.get("internal", defaults.internal_marker)),
        refresh_interval=_pick(getattr(cli_args, "refresh_interval", None),
                               "DROPWATCH_REFRESH_INTERVAL",
                               display_yaml.get("refresh_interval"),
                               defaults.refresh_interval, cast=float),
        include_newest=_pick(getattr(cli_args, "include_newest", None), None,
                             display_yaml.get("include_newest"),
                             defaults.include_newest, cast=bool),
        headless=bool(getattr(cli_args, "headless", None) or False),
        stats_interval=_pick(None, "DROPWATCH_STATS_INTERVAL",
                             headless_yaml.get("stats_interval"),
                             defaults.stats_interval, cast=float),
        log_file=_pick(getattr(cli_args, "log_file", None), "DROPWATCH_LOG_FILE",
                       logging_yaml.get("file"), defaults.log_file),
        log_level=_pick(getattr(cli_args, "log_level", None), "DROPWATCH_LOG_LEVEL",
                        logging_yaml.get("level"), defaults.log_level).upper(),
    )
    validate_config(config)
    return config


def validate_config(config: Config):
    if config.source not in SOURCES:
        raise ValueError(f"source must be one of {', '.join(SOURCES)}, got {config.source!r}")
    if config.source == "file" and not config.path:
        raise ValueError("source 'file' needs a path")
    if config.source == "stdin" and not config.headless:
        raise ValueError("source 'stdin' needs --headless, the UI reads keys from the terminal")
    if not config.command:
        raise ValueError("command must not be empty")
    if config.refresh_interval <= 0:
        raise ValueError("refresh_interval must be positive")
    if config.stats_interval <= 0:
        raise ValueError("stats_interval must be positive")
    if config.external_marker == config.internal_marker:
        raise ValueError("external and internal markers must differ")
