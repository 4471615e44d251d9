"""Handle for one server-side message.

What:
  :class:`Mail` wraps a uid together with the :class:`MailClient` that found
  it, exposing decoded envelope fields plus on-demand access to the raw body,
  raw header and flags. :class:`MailVisitor` is the callback protocol used by
  :class:`~mailfetch.imap.fetcher.MailFetcher`.

Why:
  Visitors should not juggle uids and client calls. A handle gives them a
  small object with readable fields and the few mutations that make sense for
  a single message.

How:
  Construction performs exactly one overview fetch and decodes ``From``,
  ``To`` and ``Subject`` with :func:`~mailfetch.utils.mime.decode_mime_field`.
  Everything else is forwarded to the client on each call, without caching.

Invariants & Safety:
  - Envelope attributes never change after construction.
  - The handle does not own the client and is only usable while the session
    that produced the uid is open; expunge invalidates uids.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Protocol, Union, runtime_checkable

from ..utils.mime import decode_mime_field, parse_address_list
from .search import Flag

if TYPE_CHECKING:  # pragma: no cover
    from .client import MailClient


class Mail:
    """A message stored on the server, addressed by uid.

    Attributes:
      uid: Server-assigned identifier, valid within the current session.
      sender: Decoded ``From`` header.
      to: Decoded ``To`` header.
      subject: Decoded ``Subject`` header.
      date: ``Date`` header as sent.
      message_id: ``Message-ID`` header as sent.
      size: Size in bytes reported by the server.
      flags: Flags set on the message when the handle was built, e.g.
        ``("\\Seen",)``. Not refreshed by :meth:`set_flag`.
    """

    def __init__(self, client: "MailClient", uid: int):
        self._client = client
        self.uid = uid
        overview = client.fetch_overview(uid)
        self.sender = decode_mime_field(overview.sender)
        self.to = decode_mime_field(overview.to)
        self.subject = decode_mime_field(overview.subject)
        self.date = overview.date
        self.message_id = overview.message_id
        self.size = overview.size
        self.flags = overview.flags

    def __repr__(self) -> str:
        return f"Mail(uid={self.uid!r}, sender={self.sender!r})"

    def recipients(self) -> List[str]:
        """Return the mailbox local parts of the ``To`` header."""

        return parse_address_list(self.to)

    def raw_body(self) -> str:
        """Fetch the raw body; every call is a server round trip."""

        return self._client.raw_body(self.uid)

    def raw_header(self) -> str:
        """Fetch the raw header block; every call is a server round trip."""

        return self._client.raw_header(self.uid)

    def set_flag(self, flag: Union[Flag, str], on: bool = True) -> None:
        self._client.set_flag(self.uid, flag, on)

    def set_seen(self, on: bool = True) -> None:
        """Set (``on=True``) or clear (``on=False``) the ``\\Seen`` flag."""

        self._client.set_flag(self.uid, Flag.SEEN, on)

    def delete(self) -> None:
        """Mark the message for deletion; it is removed on expunge."""

        self._client.delete(self.uid)


@runtime_checkable
class MailVisitor(Protocol):
    """Callback invoked once per fetched message."""

    def handle_mail(self, mail: Mail) -> None:
        ...


Visitor = Union[MailVisitor, Callable[[Mail], None]]
