"""Configuration loading for go2make (.go2make.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".go2make.yml"


class ConfigError(RuntimeError):
    """Raised when configuration is missing, malformed or invalid."""


@dataclass
class Go2MakeConfig:
    """Settings shared by the config file and the command line."""

    roots: List[str] = field(default_factory=list)
    prune: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    imports: bool = False
    relative_to: str = "."
    state_dir: str = ".go2make"
    output: str = "make"
    ignore_errors: bool = False
    fail_fast: bool = False
    source_glob: str = "*.go"
    path: Optional[Path] = None


def load_config(config_path: Path) -> Go2MakeConfig:
    """Load configuration from ``config_path`` (a file or a directory).

    A missing file yields the defaults.
    """
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return Go2MakeConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    config = Go2MakeConfig(path=config_file)
    config.roots = _as_str_list(data.get("roots"))
    config.prune = _as_str_list(data.get("prune"))
    config.tags = _as_str_list(data.get("tags"))
    config.imports = _as_bool(data.get("imports"), "imports", default=config.imports)
    config.ignore_errors = _as_bool(data.get("ignore_errors"), "ignore_errors", default=config.ignore_errors)
    config.fail_fast = _as_bool(data.get("fail_fast"), "fail_fast", default=config.fail_fast)

    for key in ("relative_to", "state_dir", "output", "source_glob"):
        if key not in data:
            continue
        value = data.get(key)
        if not isinstance(value, str):
            raise ConfigError(f"{config_file.name}: {key} must be a string")
        setattr(config, key, value)

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_bool(value: Any, key: str, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{key} must be true or false")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "Go2MakeConfig", "load_config"]
