"""Visit every message matching a filter, then expunge and close.

What:
  :class:`MailFetcher` runs one complete mailbox pass: open, search, build a
  :class:`~mailfetch.imap.message.Mail` per uid, hand it to a visitor, expunge
  and close. :class:`FetchReport` summarises the pass.

Why:
  Most callers want "process new mail" rather than session bookkeeping. The
  fetcher owns the sequencing and guarantees the session is released whatever
  the visitor does.

How:
  The pass runs inside the client's context manager, so ``close`` happens on
  every exit path and a close failure never hides the visitor's error. The
  expunge is the last step inside the block, which means a failed pass leaves
  soft-deleted messages recoverable. With ``continue_on_error`` a failing
  message is logged and recorded instead of aborting the pass.

Interfaces:
  :class:`MailFetcher`, :class:`FetchReport`.

Invariants & Safety:
  - Messages are visited in the order the server returned them, one at a
    time, on the calling thread.
  - ``close`` runs exactly once per pass.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..config.loader import get_runtime_config
from ..config.schema import RuntimeConfig
from ..utils.logging import get_logger
from .client import ImapConfig, MailClient
from .message import Mail, MailVisitor, Visitor
from .search import SearchFilter, coerce_filter

logger = get_logger("mailfetch.imap.fetcher")


@dataclass
class FetchReport:
    """Outcome of one :meth:`MailFetcher.fetch` pass.

    Attributes:
      uids: Uids returned by the search, in server order.
      processed: Uids whose visitor call completed.
      failures: ``(uid, exception)`` pairs recorded under ``continue_on_error``.
    """

    uids: List[int] = field(default_factory=list)
    processed: List[int] = field(default_factory=list)
    failures: List[Tuple[int, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class MailFetcher:
    """Runs visitor passes over one mailbox.

    Args:
      client: Closed :class:`MailClient` the fetcher opens for every pass.
      continue_on_error: Keep going when a single message fails instead of
        aborting the pass.
      default_filter: Filter used when :meth:`fetch` is called without one.
    """

    def __init__(
        self,
        client: MailClient,
        *,
        continue_on_error: bool = False,
        default_filter: Union[SearchFilter, str] = SearchFilter.ALL,
    ):
        self._client = client
        self.continue_on_error = continue_on_error
        self.default_filter = coerce_filter(default_filter)

    @classmethod
    def from_config(cls, settings: Optional[RuntimeConfig] = None) -> "MailFetcher":
        """Build a fetcher from the runtime configuration.

        What:
          Creates the :class:`MailClient` from the ``imap`` section and applies
          the ``fetch`` section (default filter and error policy).

        Args:
          settings: Explicit configuration; defaults to
            :func:`~mailfetch.config.loader.get_runtime_config`.
        """

        settings = settings or get_runtime_config()
        return cls(
            MailClient(ImapConfig.from_runtime(settings)),
            continue_on_error=settings.fetch.continue_on_error,
            default_filter=settings.fetch.filter,
        )

    @property
    def client(self) -> MailClient:
        return self._client

    def fetch(
        self,
        visitor: Visitor,
        search_filter: Union[SearchFilter, str, None] = None,
    ) -> FetchReport:
        """Open the mailbox and invoke ``visitor`` on every matching message.

        What:
          Searches with ``search_filter``, wraps each uid in a :class:`Mail` and
          calls the visitor, then expunges and closes the session.

        Why:
          Visitors may flag or delete the message they receive; the expunge at
          the end makes those deletions permanent in one step.

        How:
          Runs inside ``with self._client`` so the session is closed even when
          the visitor raises. Without ``continue_on_error`` the first failure
          propagates after cleanup and expunge is skipped.

        Args:
          visitor: Object with ``handle_mail(mail)`` or a plain callable.
          search_filter: Filter to apply; defaults to :attr:`default_filter`.

        Returns:
          :class:`FetchReport` describing the pass.

        Raises:
          ConnectionFailedError: If the session cannot be opened.
        """

        handle = _resolve_visitor(visitor)
        search_filter = coerce_filter(search_filter or self.default_filter)
        report = FetchReport()
        with self._client as client:
            report.uids = client.search(search_filter)
            logger.info("fetch started", filter=search_filter.value, messages=len(report.uids))
            for uid in report.uids:
                try:
                    handle(Mail(client, uid))
                except Exception as exc:
                    if not self.continue_on_error:
                        logger.error("visitor failed, aborting", uid=uid, error=repr(exc))
                        raise
                    logger.error("visitor failed, continuing", uid=uid, error=repr(exc))
                    report.failures.append((uid, exc))
                    continue
                report.processed.append(uid)
            client.expunge()
        logger.info(
            "fetch finished",
            filter=search_filter.value,
            processed=len(report.processed),
            failed=len(report.failures),
        )
        return report


def _resolve_visitor(visitor: Visitor):
    if isinstance(visitor, MailVisitor):
        return visitor.handle_mail
    if callable(visitor):
        return visitor
    raise TypeError(f"visitor must define handle_mail() or be callable, got {type(visitor).__name__}")
