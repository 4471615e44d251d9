"""Transport boundary between the mailbox facade and the IMAP library.

What:
  Declare the narrow :class:`MailTransport` capability the core depends on and
  implement it on top of the third-party ``imapclient`` library.

Why:
  The facade only needs a handful of blocking calls (open, search, fetch,
  flag, delete, expunge, close). Pinning them behind an abstract base class
  lets tests and alternative backends plug in without touching the
  connection state machine, and confines library quirks (empty search
  results, bytes-keyed fetch responses, login exceptions) to one adapter.

How:
  :class:`ImapClientTransport` logs in, selects the configured folder and runs
  every operation in UID mode. Fetches use ``BODY.PEEK`` so that reading a
  message never flips ``\\Seen`` on the server. Header blocks are decoded as
  UTF-8 (RFC 6532 allows raw 8-bit header text) and parsed with the
  ``compat32`` policy so values stay exactly as stored, MIME encoded-words
  included.

Interfaces:
  :class:`MailTransport`, :class:`MessageOverview`,
  :class:`ImapClientTransport`.

Invariants & Safety:
  - ``search`` always returns a list; "no matches" is ``[]``.
  - Connection and login failures surface as
    :class:`~mailfetch.imap.errors.ConnectionFailedError`; all other library
    errors propagate unchanged.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from email.parser import HeaderParser
from email.policy import compat32
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from .errors import ConnectionFailedError, MessageNotFoundError, NotConnectedError
from .search import Flag, SearchFilter, build_search, imap_flag

if TYPE_CHECKING:  # pragma: no cover
    from .client import ImapConfig


@dataclass(frozen=True)
class MessageOverview:
    """Lightweight envelope record for one message.

    Attributes:
      uid: Server-assigned identifier, valid within the current session.
      sender: Raw ``From`` header value (may contain encoded-words).
      to: Raw ``To`` header value.
      subject: Raw ``Subject`` header value.
      date: Raw ``Date`` header value.
      message_id: Raw ``Message-ID`` header value.
      size: Message size in bytes as reported by the server.
      flags: Flags currently set on the message, e.g. ``("\\Seen",)``.
    """

    uid: int
    sender: str = ""
    to: str = ""
    subject: str = ""
    date: str = ""
    message_id: str = ""
    size: int = 0
    flags: Tuple[str, ...] = field(default_factory=tuple)


class MailTransport(abc.ABC):
    """Blocking mailbox operations implemented by a concrete backend."""

    @abc.abstractmethod
    def open(self) -> None:
        """Establish an authenticated session with the mailbox selected.

        Raises:
          ConnectionFailedError: If the session cannot be established.
        """

    @abc.abstractmethod
    def search(self, search_filter: SearchFilter) -> List[int]:
        """Return the uids matching ``search_filter`` in server order."""

    @abc.abstractmethod
    def fetch_overview(self, uid: int) -> MessageOverview:
        """Return the envelope record for ``uid``."""

    @abc.abstractmethod
    def fetch_body(self, uid: int) -> str:
        """Return the raw body text of ``uid``."""

    @abc.abstractmethod
    def fetch_header(self, uid: int) -> str:
        """Return the raw header block of ``uid``."""

    @abc.abstractmethod
    def set_flag(self, uid: int, flag: Flag, on: bool) -> None:
        """Add (``on``) or remove ``flag`` on ``uid``."""

    @abc.abstractmethod
    def delete(self, uid: int) -> None:
        """Mark ``uid`` for deletion."""

    @abc.abstractmethod
    def expunge(self) -> None:
        """Remove every message marked for deletion."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the session. Must tolerate being called when not open."""


def _decode(raw: Union[bytes, str, None]) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="surrogateescape")
    return str(raw)


class ImapClientTransport(MailTransport):
    """:class:`MailTransport` backed by ``imapclient.IMAPClient``.

    What:
      Owns one ``IMAPClient`` connection for the lifetime of a session and maps
      the abstract operations onto UID-mode commands.

    Why:
      ``imapclient`` already handles the wire protocol, literal parsing and
      TLS; the adapter only normalises its results to the shapes the facade
      promises.

    How:
      :meth:`open` connects, logs in and selects :attr:`ImapConfig.folder`,
      translating failures into :class:`ConnectionFailedError`. Every other
      method goes through :attr:`client`, which refuses to run without a live
      connection.
    """

    OVERVIEW_ITEMS = [b"BODY.PEEK[HEADER]", b"RFC822.SIZE", b"FLAGS"]

    def __init__(self, config: "ImapConfig"):
        self._config = config
        self._client: Optional[IMAPClient] = None

    @property
    def client(self) -> IMAPClient:
        """Return the live ``IMAPClient`` or raise :class:`NotConnectedError`."""

        if self._client is None:
            raise NotConnectedError("IMAP transport not connected")
        return self._client

    def open(self) -> None:
        """Connect, log in and select the configured folder.

        What:
          Builds the ``IMAPClient`` connection and leaves the configured folder
          selected read-write.

        Why:
          Flag and delete operations need a read-write selection; doing it here
          keeps the rest of the adapter free of mailbox bookkeeping.

        How:
          Any ``IMAPClientError`` or ``OSError`` (DNS, refused connection, TLS,
          timeout) raised by the three steps is wrapped in
          :class:`ConnectionFailedError`. A half-open connection is shut down
          before the error is raised.

        Raises:
          ConnectionFailedError: If any step fails.
        """

        config = self._config
        client = None
        try:
            client = IMAPClient(config.host, port=config.port, ssl=config.ssl, timeout=config.timeout)
            client.login(config.username, config.password)
            client.select_folder(config.folder)
        except (IMAPClientError, OSError) as exc:
            if client is not None:
                _shutdown(client)
            raise ConnectionFailedError(f"unable to open {config.host}:{config.port}/{config.folder}: {exc}") from exc
        self._client = client

    def search(self, search_filter: SearchFilter) -> List[int]:
        uids = self.client.search(build_search(search_filter))
        return [int(uid) for uid in uids or ()]

    def fetch_overview(self, uid: int) -> MessageOverview:
        """Fetch and parse the header block, size and flags of ``uid``.

        Returns:
          :class:`MessageOverview` with raw header values.

        Raises:
          MessageNotFoundError: If the server returns nothing for ``uid``.
        """

        data = self._fetch_one(uid, self.OVERVIEW_ITEMS)
        headers = HeaderParser(policy=compat32).parsestr(_decode(data.get(b"BODY[HEADER]")))
        flags = tuple(_decode(flag) for flag in data.get(b"FLAGS") or ())
        return MessageOverview(
            uid=uid,
            sender=str(headers.get("From", "")),
            to=str(headers.get("To", "")),
            subject=str(headers.get("Subject", "")),
            date=str(headers.get("Date", "")),
            message_id=str(headers.get("Message-ID", "")),
            size=int(data.get(b"RFC822.SIZE") or 0),
            flags=flags,
        )

    def fetch_body(self, uid: int) -> str:
        data = self._fetch_one(uid, [b"BODY.PEEK[TEXT]"])
        return _decode(data.get(b"BODY[TEXT]"))

    def fetch_header(self, uid: int) -> str:
        data = self._fetch_one(uid, [b"BODY.PEEK[HEADER]"])
        return _decode(data.get(b"BODY[HEADER]"))

    def set_flag(self, uid: int, flag: Flag, on: bool) -> None:
        if on:
            self.client.add_flags([uid], [imap_flag(flag)])
        else:
            self.client.remove_flags([uid], [imap_flag(flag)])

    def delete(self, uid: int) -> None:
        self.client.delete_messages([uid])

    def expunge(self) -> None:
        self.client.expunge()

    def close(self) -> None:
        """Log out and drop the connection; no-op when not connected."""

        if self._client is None:
            return
        try:
            self._client.logout()
        finally:
            self._client = None

    def _fetch_one(self, uid: int, items: List[bytes]) -> dict:
        response = self.client.fetch([uid], items)
        data = response.get(uid)
        if data is None:
            raise MessageNotFoundError(uid)
        return data


def _shutdown(client: IMAPClient) -> None:
    """Best-effort teardown of a connection that never finished opening."""

    try:
        client.shutdown()
    except (IMAPClientError, OSError):  # pragma: no cover - socket already gone
        pass
