"""Translate mailbox filters and flags into ``imapclient`` arguments.

What:
  Provide the :class:`SearchFilter` and :class:`Flag` enumerations used across
  the public API, plus deterministic mappings to the criteria lists and flag
  constants consumed by ``imapclient``.

Why:
  Keeping the translation centralised means call sites never build raw IMAP
  search syntax, which keeps injection out of queries and makes the mapping
  trivially testable.

How:
  Each enum member carries its IMAP keyword as value. :func:`build_search`
  returns the criteria list for a filter and :func:`imap_flag` returns the
  bytes flag constant exported by ``imapclient``.

Interfaces:
  :class:`SearchFilter`, :class:`Flag`, :func:`coerce_filter`,
  :func:`build_search`, :func:`imap_flag`.

Invariants & Safety:
  - Only enumerated filters reach the server; unknown strings raise
    ``ValueError`` before any I/O happens.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Union

from imapclient import ANSWERED, FLAGGED, SEEN


class SearchFilter(str, Enum):
    """Predicates selecting which messages a search returns."""

    ALL = "ALL"
    UNSEEN = "UNSEEN"
    SEEN = "SEEN"
    FLAGGED = "FLAGGED"
    UNFLAGGED = "UNFLAGGED"
    DELETED = "DELETED"


class Flag(str, Enum):
    """Message flags that can be set or cleared."""

    SEEN = "SEEN"
    FLAGGED = "FLAGGED"
    ANSWERED = "ANSWERED"


_FLAG_CONSTANTS: Dict[Flag, bytes] = {
    Flag.SEEN: SEEN,
    Flag.FLAGGED: FLAGGED,
    Flag.ANSWERED: ANSWERED,
}


def coerce_filter(value: Union[SearchFilter, str]) -> SearchFilter:
    """Return ``value`` as a :class:`SearchFilter`.

    Accepts enum members or their string values in any case (``"unseen"``).

    Raises:
      ValueError: If ``value`` does not name a supported filter.
    """

    if isinstance(value, SearchFilter):
        return value
    try:
        return SearchFilter(str(value).upper())
    except ValueError:
        supported = ", ".join(member.value for member in SearchFilter)
        raise ValueError(f"unsupported search filter {value!r} (expected one of {supported})") from None


def build_search(search_filter: Union[SearchFilter, str]) -> List[str]:
    """Convert a filter into ``imapclient`` search criteria.

    What:
      Produces the criteria list passed to ``IMAPClient.search``.

    Why:
      ``imapclient`` accepts criteria as a list of keywords; every filter we
      support is a single keyword, so the mapping is the member value itself.

    Args:
      search_filter: Filter member or its string value.

    Returns:
      Single-element criteria list such as ``["UNSEEN"]``.
    """

    return [coerce_filter(search_filter).value]


def imap_flag(flag: Union[Flag, str]) -> bytes:
    """Return the ``imapclient`` flag constant (e.g. ``b"\\\\Seen"``) for ``flag``."""

    if not isinstance(flag, Flag):
        flag = Flag(str(flag).upper())
    return _FLAG_CONSTANTS[flag]
