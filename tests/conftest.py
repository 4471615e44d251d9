"""Pytest configuration shared by every suite.

What:
  Establish project import paths and apply a canned runtime configuration to
  every test.

Why:
  Tests should import ``mailfetch`` from the source tree rather than an
  installed wheel, and the configuration cache is global, so it must be reset
  around each test to keep them order independent.

How:
  Prepend ``mailfetch/src`` to ``sys.path`` when present and define the
  autouse :func:`runtime_config` fixture that points ``MAILFETCH_CONFIG_PATH``
  at ``tests/data/config.yaml``.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mailfetch" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from mailfetch.config.loader import reset_runtime_config

CONFIG_PATH = Path(__file__).resolve().parent / "data" / "config.yaml"


@pytest.fixture(autouse=True)
def runtime_config(monkeypatch: pytest.MonkeyPatch):
    """Apply the canned configuration file for every test.

    What:
      Sets ``MAILFETCH_CONFIG_PATH`` and ``MAILFETCH_TEST_PASSWORD`` and clears
      the runtime configuration cache before and after each test.

    Args:
      monkeypatch: Pytest helper injected automatically for environment control.
    """

    monkeypatch.setenv("MAILFETCH_CONFIG_PATH", str(CONFIG_PATH))
    monkeypatch.setenv("MAILFETCH_TEST_PASSWORD", "pass")
    reset_runtime_config()
    try:
        yield
    finally:
        reset_runtime_config()
