"""Guarded mailbox session built on a pluggable transport.

What:
  Provide :class:`ImapConfig`, the connection parameters of one mailbox, and
  :class:`MailClient`, the object every other component uses to talk to it.

Why:
  Forwarding calls to a dead or never-opened connection produces confusing
  library errors deep inside the transport. The client keeps an explicit
  Closed/Open state and fails fast with
  :class:`~mailfetch.imap.errors.NotConnectedError` instead, so sequencing
  mistakes are reported as exactly that.

How:
  Each session operation calls :meth:`MailClient._check_connected` before
  delegating to the :class:`~mailfetch.imap.transport.MailTransport`. The
  state only becomes Open after the transport reports a successful open, and
  :meth:`MailClient.close` always leaves it Closed. The client is also a
  context manager that opens on entry and closes on exit.

Interfaces:
  :class:`ImapConfig`, :class:`MailClient`.

Invariants & Safety:
  - A failed :meth:`MailClient.open` leaves the client Closed.
  - :meth:`MailClient.close` is idempotent and safe before any open.
  - The client is not thread-safe; one session per instance.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional, Union

from ..config.loader import RuntimeConfigError, get_runtime_config
from ..config.schema import RuntimeConfig
from ..utils.logging import get_logger
from .errors import ConnectionFailedError, NotConnectedError
from .search import Flag, SearchFilter, coerce_filter
from .transport import ImapClientTransport, MailTransport, MessageOverview

logger = get_logger("mailfetch.imap.client")


@dataclass
class ImapConfig:
    """Connection parameters for an IMAP mailbox.

    What:
      Captures host, credentials and the mailbox folder a session works on.

    Why:
      A typed envelope makes the defaults explicit and lets callers build a
      client either by hand or from the YAML runtime configuration.

    Attributes:
      host: IMAP hostname.
      username: Login credential.
      password: Password or app-specific token.
      port: IMAP port (defaults to 993).
      ssl: Whether to use TLS.
      folder: Mailbox selected after login.
      timeout: Socket timeout in seconds passed to the transport.
    """

    host: str
    username: str
    password: str
    port: int = 993
    ssl: bool = True
    folder: str = "INBOX"
    timeout: Optional[float] = None

    @classmethod
    def from_runtime(cls, settings: Optional[RuntimeConfig] = None) -> "ImapConfig":
        """Build an :class:`ImapConfig` from the runtime configuration.

        What:
          Copies the ``imap`` section of the configuration document into a
          dataclass, resolving ``password_env`` from the environment.

        Why:
          Keeping secrets in the environment rather than in ``config.yaml`` is
          the common deployment choice; resolution happens here, at the last
          moment, so the cached configuration never holds the password.

        Args:
          settings: Explicit configuration; defaults to
            :func:`~mailfetch.config.loader.get_runtime_config`.

        Raises:
          RuntimeConfigError: If ``password_env`` names an unset variable.
        """

        settings = settings or get_runtime_config()
        imap = settings.imap
        password = imap.password
        if password is None:
            password = os.environ.get(imap.password_env or "")
            if password is None:
                raise RuntimeConfigError(f"environment variable {imap.password_env} is not set")
        return cls(
            host=imap.host,
            username=imap.username,
            password=password,
            port=imap.port,
            ssl=imap.ssl,
            folder=imap.folder,
            timeout=imap.timeout,
        )


class MailClient:
    """Connection to one mailbox with an explicit Closed/Open state.

    What:
      Exposes search, overview, raw body/header fetches, flagging, soft
      deletion and expunge for the configured folder.

    Why:
      Centralising the state check means no operation can reach a transport
      that is not connected, and callers get a typed error that points at the
      sequencing mistake.

    How:
      Delegates each call to a :class:`MailTransport`. When no transport is
      supplied an :class:`ImapClientTransport` is created from ``config``.
    """

    def __init__(self, config: ImapConfig, transport: Optional[MailTransport] = None):
        self._config = config
        self._transport = transport if transport is not None else ImapClientTransport(config)
        self._open = False

    def __enter__(self) -> "MailClient":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Close the session without masking an error raised by the block.

        When the block raised and closing fails too, the close failure is
        attached to the original exception as a note and the original keeps
        propagating.
        """

        try:
            self.close()
        except Exception as cleanup_exc:
            if exc is None:
                raise
            logger.warning("close failed during error handling", host=self._config.host, error=repr(cleanup_exc))
            exc.add_note(f"while handling this error, close() also failed: {cleanup_exc!r}")

    @property
    def config(self) -> ImapConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        """``True`` while a session is established."""

        return self._open

    def open(self) -> None:
        """Establish the session.

        Opening a client that is already open does nothing.

        Raises:
          ConnectionFailedError: If the transport cannot establish the session;
            the client stays Closed.
        """

        if self._open:
            return
        try:
            self._transport.open()
        except ConnectionFailedError as exc:
            logger.error("connection failed", host=self._config.host, folder=self._config.folder, error=str(exc))
            raise
        self._open = True
        logger.info("session opened", host=self._config.host, folder=self._config.folder)

    def close(self) -> None:
        """Release the session; a no-op when the client is not open."""

        if not self._open:
            return
        try:
            self._transport.close()
        finally:
            self._open = False
        logger.info("session closed", host=self._config.host)

    def _check_connected(self) -> None:
        if not self._open:
            raise NotConnectedError(f"no open session for {self._config.host}")

    def search(self, search_filter: Union[SearchFilter, str] = SearchFilter.ALL) -> List[int]:
        """Return the uids matching ``search_filter`` in server order.

        An empty mailbox or a filter without matches yields ``[]``.

        Raises:
          NotConnectedError: If the client is not open.
          ValueError: If ``search_filter`` is not a supported filter.
        """

        self._check_connected()
        return list(self._transport.search(coerce_filter(search_filter)))

    def fetch_overview(self, uid: int) -> MessageOverview:
        """Return the envelope record of ``uid`` (raw, undecoded header values)."""

        self._check_connected()
        return self._transport.fetch_overview(uid)

    def raw_body(self, uid: int) -> str:
        """Return the unparsed body of ``uid`` without marking it seen."""

        self._check_connected()
        return self._transport.fetch_body(uid)

    def raw_header(self, uid: int) -> str:
        """Return the unparsed header block of ``uid``."""

        self._check_connected()
        return self._transport.fetch_header(uid)

    def set_flag(self, uid: int, flag: Union[Flag, str], on: bool = True) -> None:
        """Set (``on=True``) or clear ``flag`` on ``uid``."""

        self._check_connected()
        if not isinstance(flag, Flag):
            flag = Flag(str(flag).upper())
        self._transport.set_flag(uid, flag, on)

    def delete(self, uid: int) -> None:
        """Mark ``uid`` for deletion; it disappears on :meth:`expunge`."""

        self._check_connected()
        self._transport.delete(uid)

    def expunge(self) -> None:
        """Permanently remove every message marked for deletion."""

        self._check_connected()
        self._transport.expunge()
