"""mailfetch configuration package.

What:
  Provide one import surface for configuration loading and the pydantic
  schema classes.

Interfaces:
  - get_runtime_config / load_runtime_config / reset_runtime_config: Resolve
    ``config.yaml`` and expose a cached runtime configuration object.
  - ConfigLoadError / RuntimeConfigError: Loading failures.
  - RuntimeConfig / ImapSettings / FetchSettings / ValidationError: Schema.
"""

from .loader import (
    ConfigLoadError,
    RuntimeConfigError,
    get_runtime_config,
    load_runtime_config,
    reset_runtime_config,
)
from .schema import FetchSettings, ImapSettings, RuntimeConfig, ValidationError

__all__ = [
    "ConfigLoadError",
    "RuntimeConfigError",
    "get_runtime_config",
    "load_runtime_config",
    "reset_runtime_config",
    "FetchSettings",
    "ImapSettings",
    "RuntimeConfig",
    "ValidationError",
]
