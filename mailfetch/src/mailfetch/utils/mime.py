"""Header helpers: encoded-word decoding, address parsing, header stripping.

What:
  Pure functions that turn raw header values into readable text, extract
  mailbox names from address lists, and remove selected header lines from a
  raw header block.

Why:
  Envelope fields arrive exactly as stored on the server, often wrapped in
  RFC 2047 encoded-words and folded across lines. Callers that relay or
  inspect mail need readable strings without pulling in a full MIME parser.

How:
  Lean on the standard :mod:`email` package (``decode_header`` and
  ``getaddresses``) and a couple of regular expressions for line handling.
  None of the functions keep state.

Interfaces:
  :func:`decode_mime_field`, :func:`parse_address_list`,
  :func:`strip_headers`.

Invariants & Safety:
  - Decoding never raises on unknown charsets or malformed bytes; offending
    characters become U+FFFD.
  - :func:`strip_headers` never drops a folded continuation line. A stripped
    header's continuation therefore survives as an orphan line.
"""
from __future__ import annotations

import re
from email.errors import HeaderParseError
from email.header import decode_header
from email.utils import getaddresses
from typing import Iterable, List, Optional

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_HEADER_NAME_RE = re.compile(r"([^:]+): ?(.*)$")
_CONTINUATION_START = re.compile(r"(?:\r\n|\r|\n)(?=[ \t])")


def decode_mime_field(raw: Optional[str]) -> str:
    """Decode RFC 2047 encoded-words in a header value.

    What:
      Converts values such as ``=?UTF-8?B?SGVsbG8=?=`` into ``"Hello"`` and
      returns plain ASCII input unchanged.

    Why:
      ``From``, ``To`` and ``Subject`` must be readable before callers match on
      them or show them to a person.

    How:
      Unfolds continuation lines, hands the value to
      :func:`email.header.decode_header`, and decodes each encoded-word with
      its declared charset, substituting replacement characters for anything
      undecodable. An unknown charset falls back to UTF-8. Plain runs between
      encoded-words keep their original text, non-ASCII characters included.

    Args:
      raw: Header value as stored on the server. ``None`` is treated as empty.

    Returns:
      Decoded text.
    """

    if not raw:
        return ""
    unfolded = _CONTINUATION_START.sub("", raw)
    unfolded = _NEWLINE_RE.sub(" ", unfolded)
    try:
        fragments = decode_header(unfolded)
    except HeaderParseError:
        return unfolded
    decoded: List[str] = []
    for fragment, charset in fragments:
        if isinstance(fragment, str):
            decoded.append(fragment)
            continue
        if charset is None:
            # decode_header re-encodes unencoded runs with raw-unicode-escape
            try:
                decoded.append(fragment.decode("raw-unicode-escape"))
            except UnicodeDecodeError:
                decoded.append(fragment.decode("latin-1"))
            continue
        try:
            decoded.append(fragment.decode(charset, errors="replace"))
        except LookupError:
            decoded.append(fragment.decode("utf-8", errors="replace"))
    return "".join(decoded)


def parse_address_list(field: Optional[str]) -> List[str]:
    """Return the mailbox local parts of every address in ``field``.

    ``"Alice <a@b.com>, c@d.com"`` yields ``["a", "c"]``. The result is always a
    list, including for a single address (``["a"]``) and for an empty field
    (``[]``). An address without ``@`` is returned whole.
    """

    if not field:
        return []
    mailboxes: List[str] = []
    for _name, address in getaddresses([field]):
        if not address:
            continue
        mailboxes.append(address.split("@", 1)[0])
    return mailboxes


def strip_headers(raw_headers: str, names: Iterable[str]) -> str:
    """Remove header lines whose name is in ``names``.

    What:
      Splits ``raw_headers`` on CRLF, CR or LF, drops every line that starts
      with a letter and whose ``Name:`` token exactly matches an entry of
      ``names`` (case-sensitive), and joins the rest with CRLF.

    Why:
      Relaying a message under a new envelope requires removing headers such
      as ``To`` and ``Subject`` while keeping the rest of the block intact.

    How:
      Each kept line is emitted followed by CRLF. The empty piece produced by
      a trailing line terminator is not emitted, so a header block ending in
      one newline keeps exactly one. Lines starting with whitespace are folded
      continuations and are always kept.

    Args:
      raw_headers: Raw header block.
      names: Header names to remove, e.g. ``{"To", "Subject"}``.

    Returns:
      Header block with CRLF line endings.
    """

    strip = frozenset(names)
    lines = _NEWLINE_RE.split(raw_headers)
    if lines and lines[-1] == "":
        lines.pop()
    kept: List[str] = []
    for line in lines:
        if line[:1].isascii() and line[:1].isalpha():
            match = _HEADER_NAME_RE.match(line)
            if match and match.group(1) in strip:
                continue
        kept.append(line + "\r\n")
    return "".join(kept)
