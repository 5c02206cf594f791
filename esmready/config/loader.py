"""Helpers for loading CheckerConfig from TOML/JSON sources.

``load_config`` accepts:

* None -> default CheckerConfig
* dict -> CheckerConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Union

from esmready.config.schema import CheckerConfig
from esmready.errors import ConfigurationError
from esmready.utils.path_utils import is_file

logger = logging.getLogger("esmready.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], CheckerConfig, None]

_CONFIG_SUFFIXES = {".toml", ".tml", ".json"}


def _guess_format(text: str) -> str:
    return "json" if text.lstrip().startswith(("{", "[")) else "toml"


def _decode(text: str, fmt: str) -> Any:
    try:
        if fmt == "json":
            return json.loads(text)
        return tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid {fmt.upper()} configuration: {e}") from e


def load_config(source: ConfigSource = None) -> CheckerConfig:
    """Load CheckerConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns the defaults
            * CheckerConfig: returned unchanged
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        CheckerConfig instance.

    Raises:
        ConfigurationError: If the source cannot be decoded.
        pydantic.ValidationError: If values fail validation.
    """
    if source is None:
        logger.debug("No config source provided; using default CheckerConfig")
        return CheckerConfig()

    if isinstance(source, CheckerConfig):
        return source

    if isinstance(source, dict):
        logger.debug("Loading CheckerConfig from provided dict")
        return CheckerConfig.from_dict(source)

    if isinstance(source, (str, Path)):
        path = Path(source)
        looks_like_path = path.suffix.lower() in _CONFIG_SUFFIXES and "\n" not in str(source)
        if isinstance(source, Path) or looks_like_path or is_file(path):
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _guess_format(text)
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            fmt = _guess_format(text)
            logger.info("Loading configuration from inline %s string", fmt)

        data = _decode(text, fmt)
        if not isinstance(data, dict):
            raise ConfigurationError("Top-level configuration must be a mapping")
        # A [esmready] table is accepted so the settings can live in a shared file.
        if isinstance(data.get("esmready"), dict):
            data = data["esmready"]
        return CheckerConfig.from_dict(data)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["ConfigSource", "load_config"]
