"""Facade for the mailbox access layer.

What:
  Surface the connection (:class:`MailClient`), message handle (:class:`Mail`),
  mailbox iterator (:class:`MailFetcher`), their enums and error types.

Why:
  Keeping the import surface here lets call sites avoid depending on the
  internal module layout, e.g. ``from mailfetch.imap import MailFetcher``.

Invariants & Safety:
  - All mailbox operations go through :class:`MailClient` so they inherit the
    connected-state guard.
"""

from .client import ImapConfig, MailClient
from .errors import ConnectionFailedError, MailClientError, MessageNotFoundError, NotConnectedError
from .fetcher import FetchReport, MailFetcher
from .message import Mail, MailVisitor
from .search import Flag, SearchFilter
from .transport import ImapClientTransport, MailTransport, MessageOverview

__all__ = [
    "ImapConfig",
    "MailClient",
    "MailClientError",
    "ConnectionFailedError",
    "NotConnectedError",
    "MessageNotFoundError",
    "FetchReport",
    "MailFetcher",
    "Mail",
    "MailVisitor",
    "Flag",
    "SearchFilter",
    "ImapClientTransport",
    "MailTransport",
    "MessageOverview",
]
