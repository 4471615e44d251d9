"""
Module: tests/unit/test_fetcher.py

What:
    Validate :class:`MailFetcher` passes: ordering, expunge/close sequencing,
    cleanup on visitor failure and the continue-on-error policy.

Why:
    The fetcher is the part that guarantees sessions are released. A missed
    ``close`` leaks server sessions; a premature expunge makes deletions from a
    failed pass permanent.

How:
    Run passes over :class:`FakeImapBackend` with small visitors and assert
    on backend state and the recorded command sequence.

Invariants & Safety Rules:
    - ``logout`` happens exactly once per pass, whatever the visitor does.
    - ``expunge`` only runs when the pass completes.
"""

import pytest
from imapclient import SEEN

from mailfetch.imap.client import MailClient
from mailfetch.imap.errors import ConnectionFailedError
from mailfetch.imap.fetcher import FetchReport, MailFetcher
from mailfetch.imap.search import SearchFilter


class RecordingVisitor:
    def __init__(self):
        self.seen = []

    def handle_mail(self, mail):
        self.seen.append(mail.uid)


def test_fetch_visits_in_server_order(mail_client, backend):
    uids = [backend.add_message(subject=f"m{idx}") for idx in range(3)]
    backend.search_order = [uids[2], uids[0], uids[1]]
    visitor = RecordingVisitor()
    report = MailFetcher(mail_client).fetch(visitor)
    assert visitor.seen == [uids[2], uids[0], uids[1]]
    assert report.uids == report.processed == visitor.seen
    assert report.ok


def test_fetch_sequence_ends_with_expunge_and_logout(mail_client, backend):
    backend.add_message()
    MailFetcher(mail_client).fetch(lambda mail: None)
    assert backend.commands[-2:] == ["expunge", "logout"]
    assert not mail_client.is_open


def test_fetch_accepts_plain_callable_and_filter_string(mail_client, backend):
    backend.add_message(flags=[SEEN])
    unseen = backend.add_message()
    subjects = []
    report = MailFetcher(mail_client).fetch(lambda mail: subjects.append(mail.subject), "unseen")
    assert report.uids == [unseen]
    assert subjects == ["Hello"]


def test_fetch_rejects_non_callable_visitor(mail_client, backend):
    with pytest.raises(TypeError):
        MailFetcher(mail_client).fetch(object())
    assert backend.commands == []


def test_fetch_empty_mailbox(mail_client, backend):
    report = MailFetcher(mail_client).fetch(RecordingVisitor(), SearchFilter.UNSEEN)
    assert report == FetchReport()
    assert backend.count("expunge") == 1


def test_visitor_failure_closes_without_expunge(mail_client, backend):
    first = backend.add_message()
    second = backend.add_message()
    visited = []

    def visitor(mail):
        visited.append(mail.uid)
        mail.delete()
        raise ValueError("cannot relay")

    with pytest.raises(ValueError, match="cannot relay"):
        MailFetcher(mail_client).fetch(visitor)
    assert visited == [first]
    assert backend.count("expunge") == 0
    assert backend.count("logout") == 1
    assert not mail_client.is_open
    assert set(backend.messages) == {first, second}


def test_continue_on_error_records_failures(mail_client, backend):
    first = backend.add_message(subject="bad")
    second = backend.add_message(subject="good")

    def visitor(mail):
        if mail.subject == "bad":
            raise ValueError("bad message")
        mail.delete()

    report = MailFetcher(mail_client, continue_on_error=True).fetch(visitor)
    assert report.processed == [second]
    assert [uid for uid, _ in report.failures] == [first]
    assert isinstance(report.failures[0][1], ValueError)
    assert not report.ok
    assert backend.count("expunge") == 1
    assert list(backend.messages) == [first]


def test_cleanup_failure_is_attached_to_visitor_error(mail_client, backend, monkeypatch):
    backend.add_message()

    def broken_logout():
        raise OSError("connection reset")

    monkeypatch.setattr(backend, "logout", broken_logout)
    with pytest.raises(KeyError) as excinfo:
        MailFetcher(mail_client).fetch(lambda mail: {}["missing"])
    assert any("connection reset" in note for note in excinfo.value.__notes__)
    assert not mail_client.is_open


def test_open_failure_propagates_and_client_stays_closed(mail_client, backend):
    backend.fail_login = True
    visitor = RecordingVisitor()
    with pytest.raises(ConnectionFailedError):
        MailFetcher(mail_client).fetch(visitor)
    assert visitor.seen == []
    assert not mail_client.is_open


def test_unseen_scenario_deletes_across_sessions(backend, imap_config):
    """
    What:
        Two unseen messages are marked seen, one of them is deleted; a fresh
        session no longer sees the deleted uid.

    Why:
        This is the end-to-end contract of a polling pass: deletions become
        permanent only through the fetcher's expunge.
    """
    keep = backend.add_message(to="ops@example.org")
    drop = backend.add_message(to="noreply@example.org")
    backend.add_message(flags=[SEEN])

    def visitor(mail):
        mail.set_seen(True)
        if "noreply" in mail.recipients():
            mail.delete()

    report = MailFetcher(MailClient(imap_config)).fetch(visitor, SearchFilter.UNSEEN)
    assert report.uids == [keep, drop]
    assert SEEN in backend.flags_of(keep)

    client = MailClient(imap_config)
    with client:
        remaining = client.search(SearchFilter.ALL)
    assert drop not in remaining
    assert keep in remaining


def test_from_config_uses_runtime_settings(backend):
    fetcher = MailFetcher.from_config()
    assert fetcher.default_filter is SearchFilter.UNSEEN
    assert fetcher.continue_on_error is False
    assert fetcher.client.config.timeout == 10
    backend.add_message(flags=[SEEN])
    assert fetcher.fetch(RecordingVisitor()).uids == []
    assert backend.connect_args["timeout"] == 10
