"""
Configuration loading for batch runs.

Values are merged as built-in defaults < YAML file < explicit overrides and
validated into an immutable BatchConfig. Any problem is reported as a
ConfigurationError before a single job is created.
"""

import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from .models import BatchConfig

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("total", "batch", "prefix", "command", "ticks")


class ConfigurationError(ValueError):
    """Invalid total/batch/prefix/command/ticks combination or config file."""


def _normalize_command(value: Any) -> List[str]:
    if isinstance(value, str):
        try:
            return shlex.split(value)
        except ValueError as e:
            raise ConfigurationError(f"cannot parse command {value!r}: {e}") from e
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigurationError(f"command must be a list or a string, got {type(value).__name__}")


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML mapping of run settings; unknown keys are rejected."""
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read config file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"malformed YAML in {p}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {p} must contain a mapping")
    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigurationError(f"unknown config keys in {p}: {', '.join(unknown)}")
    if "command" in data:
        data["command"] = _normalize_command(data["command"])
    return data


def build_config(config_file: Optional[Union[str, Path]] = None, **overrides: Any) -> BatchConfig:
    """Return a validated BatchConfig.

    Overrides set to None are ignored so argparse namespaces can be passed
    straight through; an empty command override keeps the configured command.
    """
    values: Dict[str, Any] = {}
    if config_file is not None:
        values.update(load_config_file(config_file))
        logger.debug(f"Loaded config file {config_file}: {values}")
    for key, val in overrides.items():
        if key not in CONFIG_KEYS:
            raise ConfigurationError(f"unknown setting: {key}")
        if val is None:
            continue
        if key == "command":
            if not val:
                continue
            val = _normalize_command(val)
        values[key] = val
    try:
        return BatchConfig(**values)
    except ValidationError as e:
        msgs = "; ".join(
            f"{'.'.join(str(x) for x in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(msgs) from e
