"""Locate, parse and cache the mailfetch runtime configuration.

What:
  Provide helpers that find ``config.yaml``, parse it with PyYAML and validate
  it against :class:`~mailfetch.config.schema.RuntimeConfig`.

Why:
  Configuration lives outside the package and can be missing or malformed.
  Centralising the parsing gives every failure the same exception type, with
  the offending path in the message, and lets the rest of the code rely on a
  validated model.

How:
  Resolve candidate paths from an explicit argument, the
  ``MAILFETCH_CONFIG_PATH`` environment variable and a list of defaults. The
  first existing file is parsed with ``yaml.safe_load``, validated with
  pydantic, and cached until :func:`reset_runtime_config` or a ``reload``.

Interfaces:
  :func:`load_runtime_config`, :func:`get_runtime_config`,
  :func:`reset_runtime_config`, :class:`ConfigLoadError`,
  :class:`RuntimeConfigError`.

Invariants:
  - The cache respects explicit reload requests and the precedence order of
    candidate paths.
  - OS and YAML errors are converted into :class:`RuntimeConfigError`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from .schema import RuntimeConfig


class ConfigLoadError(Exception):
    """Base error for configuration parsing or validation failures.

    What:
      Represent fatal issues encountered while reading or validating the
      configuration document.

    Why:
      Grouping failures under one type lets callers handle user input mistakes
      separately from mailbox errors such as a refused login.
    """


class RuntimeConfigError(ConfigLoadError):
    """Error raised when ``config.yaml`` cannot be loaded, validated or resolved."""


_CONFIG_ENV = "MAILFETCH_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("config.yaml"),
    Path("~/.config/mailfetch/config.yaml"),
    Path("/etc/mailfetch/config.yaml"),
)
_RUNTIME_CACHE: Optional[Tuple[Path, RuntimeConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration file locations in priority order.

    What:
      Produce the explicit path, then ``MAILFETCH_CONFIG_PATH``, then the
      default locations, each expanded and without duplicates.

    Args:
      path: Explicit path requested by the caller, or ``None``.

    Yields:
      Candidate paths from most to least specific.
    """

    seen: set[Path] = set()
    candidates = []
    if path is not None:
        candidates.append(path)
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(_DEFAULT_LOCATIONS)
    for candidate in candidates:
        candidate = candidate.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def _parse_config_payload(text: str, source: Path) -> dict[str, Any]:
    """Parse ``config.yaml`` text into a mapping.

    Raises:
      RuntimeConfigError: If the text is not valid YAML or not a mapping.
    """

    try:
        payload = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeConfigError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeConfigError(f"{source} must contain a mapping at the top-level")
    return payload


def _load_runtime_from_path(path: Path) -> RuntimeConfig:
    """Read and validate the configuration file at ``path``.

    What:
      Turns one file into a validated :class:`RuntimeConfig`.

    Why:
      Splitting IO and validation out keeps :func:`load_runtime_config`
      focused on discovery and caching.

    Raises:
      RuntimeConfigError: If the file cannot be read or fails validation.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeConfigError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise RuntimeConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    payload = _parse_config_payload(text, path)
    try:
        return RuntimeConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise RuntimeConfigError(f"Invalid configuration in {path}: {exc}") from exc


def load_runtime_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> RuntimeConfig:
    """Resolve, parse, and cache the runtime configuration.

    What:
      Locate ``config.yaml`` using the precedence chain, parse it, and return a
      validated :class:`RuntimeConfig`.

    Why:
      Building clients repeatedly should not re-read the file; ``reload``
      allows deterministic refreshes in tests or after edits.

    How:
      Return the cached model unless ``reload`` is set or a different explicit
      path is requested, otherwise load the first existing candidate and cache
      it.

    Args:
      path: Optional explicit location of ``config.yaml``.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Returns:
      The validated runtime configuration.

    Raises:
      RuntimeConfigError: If no candidate exists or the file is invalid.
    """

    global _RUNTIME_CACHE

    requested_path = Path(path).expanduser() if path is not None else None
    if not reload and _RUNTIME_CACHE is not None:
        cached_path, cached_config = _RUNTIME_CACHE
        if requested_path is None or cached_path == requested_path:
            return cached_config

    searched: list[str] = []
    for candidate in _candidate_paths(requested_path):
        if not candidate.exists():
            searched.append(str(candidate))
            continue
        config = _load_runtime_from_path(candidate)
        _RUNTIME_CACHE = (candidate, config)
        return config

    raise RuntimeConfigError(f"Unable to locate config.yaml (searched: {', '.join(searched)})")


def get_runtime_config() -> RuntimeConfig:
    """Return the cached runtime configuration, loading it on demand."""

    return load_runtime_config()


def reset_runtime_config() -> None:
    """Forget the cached configuration so the next access reloads from disk."""

    global _RUNTIME_CACHE
    _RUNTIME_CACHE = None
