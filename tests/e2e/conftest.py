"""Fixtures for end-to-end mailbox passes.

What:
  Reuse :class:`FakeImapBackend` from ``tests/unit`` and install it as the
  ``IMAPClient`` constructor so passes built from the canned configuration
  talk to it.
"""

import sys
from pathlib import Path

import pytest

UNIT_DIR = Path(__file__).resolve().parents[1] / "unit"
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeImapBackend


@pytest.fixture
def server(monkeypatch: pytest.MonkeyPatch) -> FakeImapBackend:
    fake = FakeImapBackend()
    monkeypatch.setattr("mailfetch.imap.transport.IMAPClient", fake)
    return fake
