"""
Module: mailfetch.__init__

What:
  Aggregate package exports for mailfetch, a small synchronous facade for
  reading, flagging and deleting mail in one IMAP mailbox.

How:
  Re-export the primary entry points from ``imap`` and ``utils`` and keep an
  explicit ``__all__`` so helper modules are not exposed by accident.

Interfaces:
  - config: Configuration schema and loader.
  - imap: Connection, message handle, mailbox iterator and transports.
  - utils: JSON logging and header decoding helpers.
"""

from .imap import (
    ConnectionFailedError,
    Flag,
    ImapConfig,
    Mail,
    MailClient,
    MailClientError,
    MailFetcher,
    MailVisitor,
    NotConnectedError,
    SearchFilter,
)
from .utils.mime import decode_mime_field, parse_address_list, strip_headers

__all__ = [
    "config",
    "imap",
    "utils",
    "ConnectionFailedError",
    "Flag",
    "ImapConfig",
    "Mail",
    "MailClient",
    "MailClientError",
    "MailFetcher",
    "MailVisitor",
    "NotConnectedError",
    "SearchFilter",
    "decode_mime_field",
    "parse_address_list",
    "strip_headers",
]
