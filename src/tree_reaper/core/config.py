"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .signals import parse_signal

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("tree-reaper.yaml")


class ReaperConfig(BaseSettings):
    """Settings for the tree terminators and the CLI.

    Every field can be overridden with a ``TREE_REAPER_<FIELD>`` environment
    variable.
    """
    model_config = SettingsConfigDict(env_prefix="TREE_REAPER_")

    # Signal the CLI sends when --signal is not given
    default_signal: str = "SIGKILL"

    # External process-table tools
    pgrep_executable: str = "pgrep"
    ps_executable: str = "ps"
    taskkill_executable: str = "taskkill"

    # Per-command timeout in seconds; None imposes no deadline
    command_timeout: Optional[float] = None

    log_level: str = "WARNING"

    @field_validator('default_signal')
    @classmethod
    def validate_default_signal(cls, v: str) -> str:
        parse_signal(v)
        return v

    @field_validator('command_timeout')
    @classmethod
    def validate_command_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"command_timeout must be > 0, got {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a logging level name, got '{v}'")
        return level


_config_cache: Dict[str, tuple] = {}


def _get_cached_or_load(resolved_path: Path, loader):
    """Return cached config if file mtime unchanged, else reload."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_result, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_result

    result = loader(resolved_path)
    _config_cache[key] = (result, current_mtime)
    return result


def _load_config_from_file(config_path: Path) -> ReaperConfig:
    """Internal loader for reaper config (no caching)."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Accept both a top-level mapping and a `reaper:` section
    if isinstance(data, dict) and "reaper" in data:
        data = data["reaper"] or {}

    data = _expand_env_vars(data)
    return ReaperConfig(**data)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ReaperConfig:
    """Load reaper configuration from YAML file.

    Uses mtime-based caching. Returns defaults (plus environment overrides)
    when the file doesn't exist.
    """
    if not config_path.exists():
        logger.warning(
            f"Config file not found: {config_path}. Using default configuration."
        )
        return ReaperConfig()

    resolved = config_path.resolve()
    result = _get_cached_or_load(resolved, _load_config_from_file)
    return result if result is not None else ReaperConfig()


def clear_config_cache() -> None:
    """Clear the module-level config cache. Useful for tests."""
    _config_cache.clear()


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ``${VAR}`` string values in config data."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used."
            )
            return data
        return value
    return data
