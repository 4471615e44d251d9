"""Tests for the ``imapclient`` adapter.

What:
  Check that :class:`ImapClientTransport` maps each operation to the right
  ``IMAPClient`` call and normalises the responses.

Why:
  The adapter is the only place that knows about bytes-keyed fetch responses
  and library exceptions; everything above it trusts its output shapes.
"""

import pytest
from imapclient import DELETED, FLAGGED, SEEN

from mailfetch.imap.errors import NotConnectedError
from mailfetch.imap.search import Flag, SearchFilter, build_search, imap_flag
from mailfetch.imap.transport import ImapClientTransport, MessageOverview


@pytest.fixture
def transport(backend, imap_config):
    adapter = ImapClientTransport(imap_config)
    adapter.open()
    yield adapter
    adapter.close()


def test_build_search_and_flag_mapping():
    assert build_search(SearchFilter.UNSEEN) == ["UNSEEN"]
    assert build_search("all") == ["ALL"]
    assert imap_flag(Flag.SEEN) == SEEN
    assert imap_flag("flagged") == FLAGGED


def test_client_property_requires_connection(imap_config):
    with pytest.raises(NotConnectedError):
        ImapClientTransport(imap_config).client


def test_fetch_overview_keeps_raw_values(transport, backend):
    uid = backend.add_message(
        sender="=?UTF-8?Q?Caf=C3=A9?= <cafe@example.org>",
        to="a@b.com, c@d.com",
        subject="Status",
        flags=[SEEN],
    )
    overview = transport.fetch_overview(uid)
    assert isinstance(overview, MessageOverview)
    assert overview.uid == uid
    assert overview.sender == "=?UTF-8?Q?Caf=C3=A9?= <cafe@example.org>"
    assert overview.to == "a@b.com, c@d.com"
    assert overview.subject == "Status"
    assert overview.message_id == f"<{uid}@fake.example.org>"
    assert overview.date == "Mon, 05 Oct 2026 10:00:00 +0000"
    assert overview.flags == ("\\Seen",)
    assert overview.size == backend.messages[uid].size


def test_fetch_overview_decodes_8bit_header_values(transport, backend):
    uid = backend.add_message(subject="Café crème", to="Zoë <zoe@example.org>")
    overview = transport.fetch_overview(uid)
    assert overview.subject == "Café crème"
    assert overview.to == "Zoë <zoe@example.org>"


def test_fetch_body_and_header(transport, backend):
    uid = backend.add_message(subject="Hi", body="line one\r\nline two\r\n")
    assert transport.fetch_body(uid) == "line one\r\nline two\r\n"
    header = transport.fetch_header(uid)
    assert header.startswith("From: alice@example.org\r\n")
    assert header.endswith("\r\n\r\n")
    assert "Subject: Hi\r\n" in header


def test_fetch_body_preserves_undecodable_bytes(transport, backend):
    uid = backend.add_message()
    backend.messages[uid].body = b"caf\xe9\r\n"
    body = transport.fetch_body(uid)
    assert body.encode("utf-8", "surrogateescape") == b"caf\xe9\r\n"


def test_reading_does_not_mark_seen(transport, backend):
    uid = backend.add_message()
    transport.fetch_overview(uid)
    transport.fetch_body(uid)
    transport.fetch_header(uid)
    assert SEEN not in backend.flags_of(uid)


def test_set_flag_on_and_off(transport, backend):
    uid = backend.add_message()
    transport.set_flag(uid, Flag.SEEN, True)
    transport.set_flag(uid, Flag.FLAGGED, True)
    assert backend.flags_of(uid) == {SEEN, FLAGGED}
    transport.set_flag(uid, Flag.SEEN, False)
    assert backend.flags_of(uid) == {FLAGGED}


def test_delete_is_soft_until_expunge(transport, backend):
    keep = backend.add_message()
    drop = backend.add_message()
    transport.delete(drop)
    assert DELETED in backend.flags_of(drop)
    assert transport.search(SearchFilter.ALL) == [keep, drop]
    assert transport.search(SearchFilter.DELETED) == [drop]
    transport.expunge()
    assert transport.search(SearchFilter.ALL) == [keep]


def test_search_returns_list_for_empty_response(transport, backend, monkeypatch):
    monkeypatch.setattr(backend, "search", lambda criteria: None)
    assert transport.search(SearchFilter.UNSEEN) == []


def test_close_logs_out_once(backend, imap_config):
    adapter = ImapClientTransport(imap_config)
    adapter.close()
    adapter.open()
    adapter.close()
    adapter.close()
    assert backend.count("logout") == 1
