"""Configuration schema and loading for esmready."""

from .loader import ConfigSource, load_config
from .schema import CheckerConfig

__all__ = ["CheckerConfig", "ConfigSource", "load_config"]
