"""Waterfall configuration management.

Handles:
- .env file loading with precedence: CLI > .env > env vars
- Rendering settings (bar width floor, indentation, text timeline width)
- Strict mode (treat layout diagnostics as a failure)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

ENV_PREFIX = "WATERFALL_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class Config:
    """Waterfall runtime configuration."""

    min_bar_width: float = 0.5
    indent_px: int = 20
    text_width: int = 60
    strict: bool = False
    log_level: str = "WARNING"
    env_file_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min_bar_width": self.min_bar_width,
            "indent_px": self.indent_px,
            "text_width": self.text_width,
            "strict": self.strict,
            "log_level": self.log_level,
            "env_file_path": str(self.env_file_path) if self.env_file_path else None,
        }


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Parse a .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - KEY='single quoted'
    - export KEY=value
    - # comments
    - Empty lines
    """
    result: dict[str, str] = {}

    if not env_file.exists():
        return result

    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[7:]

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]

        result[key] = value

    return result


def _find_env_file(start: Path | None = None) -> Path | None:
    """Find .env file by walking up directory tree.

    Stops at git root, home directory, or filesystem root.
    Returns None if not found.
    """
    current = (start or Path.cwd()).resolve()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    for _ in range(20):  # Max depth
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        if home and current == home:
            break
        if current == current.parent:
            break

        # Stop at git root (but check .env first)
        if (current / ".git").exists():
            break

        current = current.parent

    return None


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be true or false, got {value!r}")


def _parse_number(key: str, value: str, kind: type, minimum: float) -> Any:
    try:
        number = kind(value)
    except ValueError as e:
        raise ValueError(f"{key} must be a {kind.__name__}, got {value!r}") from e
    if number < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {number}")
    return number


def _parse_log_level(key: str, value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{key} is not a logging level: {value!r}")
    return level


def load_config(
    env_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Load configuration with precedence: CLI > .env > env vars.

    Args:
        env_file: Path to .env file to load (auto-discovered when omitted)
        cli_overrides: Config field values given on the command line;
            ``None`` values are ignored

    Returns:
        Loaded Config instance

    Raises:
        ValueError: If a setting has an invalid value
    """
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    env_vars = dict(os.environ)

    env_file_path: Path | None
    if env_file:
        env_file_path = Path(env_file)
    else:
        env_file_path = _find_env_file()
    if env_file_path and env_file_path.exists():
        env_vars.update(parse_env_file(env_file_path))
    else:
        env_file_path = None

    def setting(name: str, default: str) -> str:
        return env_vars.get(ENV_PREFIX + name, default)

    config = Config(
        min_bar_width=_parse_number(
            "WATERFALL_MIN_BAR_WIDTH", setting("MIN_BAR_WIDTH", "0.5"), float, 0.0
        ),
        indent_px=_parse_number("WATERFALL_INDENT_PX", setting("INDENT_PX", "20"), int, 0),
        text_width=_parse_number("WATERFALL_TEXT_WIDTH", setting("TEXT_WIDTH", "60"), int, 10),
        strict=_parse_bool("WATERFALL_STRICT", setting("STRICT", "false")),
        log_level=_parse_log_level("WATERFALL_LOG_LEVEL", setting("LOG_LEVEL", "WARNING")),
        env_file_path=env_file_path,
    )

    for key, value in cli_overrides.items():
        if not hasattr(config, key):
            raise ValueError(f"Unknown config setting: {key}")
        setattr(config, key, value)

    if config.text_width < 10:
        raise ValueError(f"text width must be >= 10, got {config.text_width}")

    return config
