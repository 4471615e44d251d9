"""Pytest fixtures for unit tests requiring IMAP fakes.

What:
  Make ``tests/unit`` importable and expose fixtures backed by
  :class:`FakeImapBackend`.

Why:
  Most suites drive the real :class:`ImapClientTransport` against the fake so
  that the adapter, the state guard and the handles are tested together
  without network access.

How:
  Monkeypatch ``mailfetch.imap.transport.IMAPClient`` with the backend (which
  is callable like the constructor) and build an unopened
  :class:`MailClient` on top.

Interfaces:
  :func:`backend`, :func:`imap_config`, :func:`mail_client` (pytest fixtures).
"""

import sys
from pathlib import Path

import pytest

from mailfetch.imap.client import ImapConfig, MailClient

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeImapBackend


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeImapBackend:
    """Fresh in-memory server installed as the ``IMAPClient`` constructor."""

    fake = FakeImapBackend()
    monkeypatch.setattr("mailfetch.imap.transport.IMAPClient", fake)
    return fake


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(host="localhost", username="user", password="pass")


@pytest.fixture
def mail_client(backend: FakeImapBackend, imap_config: ImapConfig) -> MailClient:
    """Unopened :class:`MailClient` talking to :func:`backend`.

    Yields:
      The client; it is closed after the test if still open.
    """

    client = MailClient(imap_config)
    yield client
    client.close()
