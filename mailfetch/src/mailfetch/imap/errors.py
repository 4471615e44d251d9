"""Exception hierarchy for mailbox sessions.

What:
  Define the typed failures raised by :class:`~mailfetch.imap.client.MailClient`
  and its transports.

Why:
  Callers need to tell a server that refused the session apart from code that
  forgot to open one. Both are rooted at :class:`MailClientError` so a single
  ``except`` clause can still catch everything mailbox related.

Interfaces:
  :class:`MailClientError`, :class:`ConnectionFailedError`,
  :class:`NotConnectedError`, :class:`MessageNotFoundError`.
"""
from __future__ import annotations


class MailClientError(Exception):
    """Base error for every mailbox session failure."""


class ConnectionFailedError(MailClientError):
    """Raised when a session cannot be established.

    What:
      Signals that login, TLS negotiation, socket connection or mailbox
      selection failed while opening a session.

    Why:
      The underlying transport reports these conditions with a mix of library
      and socket exceptions. Translating them at the boundary gives callers one
      type to build a retry policy around.

    How:
      Raised by transports from :meth:`open` with the original exception
      chained as ``__cause__``.
    """


class NotConnectedError(MailClientError):
    """Raised when a session operation runs while the client is closed."""


class MessageNotFoundError(MailClientError):
    """Raised when the server returns no data for the requested message."""

    def __init__(self, uid: int) -> None:
        super().__init__(f"message {uid} not found in the selected mailbox")
        self.uid = uid
