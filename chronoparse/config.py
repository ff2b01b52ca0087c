"""
Engine configuration: which locale pack to build and how to parse with it.

Values come from code defaults, a YAML file, or CHRONOPARSE_* environment
variables (a .env file is honoured).
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import pendulum
import yaml
from dotenv import load_dotenv

from chronoparse.context import ParsingOptions
from chronoparse.errors import ConfigurationError
from chronoparse.logger import VALID_LOG_LEVELS

ENV_PREFIX = "CHRONOPARSE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name}: expected a boolean, got {raw!r}")


@dataclass(frozen=True)
class ChronoConfig:
    """Configuration for building and running an engine."""
    # Locale pack
    locale: str = "en"
    strict: bool = False

    # Parsing options
    forward_date: bool = False

    # Zone for naive or missing reference instants
    timezone: str = "UTC"

    # Package log level; None keeps CHRONOPARSE_LOG_LEVEL / the default
    log_level: Optional[str] = None

    def __post_init__(self):
        try:
            pendulum.timezone(self.timezone)
        except Exception as e:
            raise ConfigurationError(f"timezone: unknown zone {self.timezone!r}") from e
        if self.log_level is not None and self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"log_level: expected one of {VALID_LOG_LEVELS}, got {self.log_level!r}")

    def options(self) -> ParsingOptions:
        return ParsingOptions(forward_date=self.forward_date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChronoConfig":
        """Build from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = dict(data)
        for flag in ("strict", "forward_date"):
            if flag in values:
                values[flag] = _parse_bool(flag, values[flag])
        for text in ("locale", "timezone"):
            if text in values:
                values[text] = str(values[text])
        if "locale" in values:
            values["locale"] = values["locale"].lower()
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> "ChronoConfig":
        """Load from a YAML mapping (optionally nested under a `chronoparse:` key)."""
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return cls()
        if isinstance(data, dict) and isinstance(data.get("chronoparse"), dict):
            data = data["chronoparse"]
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a mapping at the top level")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "ChronoConfig":
        """Read CHRONOPARSE_* variables (after loading a .env file if present)."""
        load_dotenv(dotenv_path=dotenv_path)
        data: Dict[str, Any] = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is not None:
                data[f.name] = raw
        return cls.from_dict(data)
