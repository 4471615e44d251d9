"""JSON-lines logging that never records message content or credentials.

What:
  :class:`JsonLogger` writes one JSON object per line with ``ts``, ``lvl``,
  ``msg`` and ``component``, plus whatever keyword context the caller passes
  (uids, hosts, folders, filters, error text).

Why:
  A fetch pass touches other people's mail. The connection, fetcher and
  transport log uids and outcomes freely, but a subject, a header block, a body
  or a login secret must not reach the log even when a caller passes one by
  mistake.

How:
  Context keys are compared case-insensitively against :data:`SENSITIVE_KEYS`
  and masked with :data:`REDACTED`. Nested dictionaries and dictionaries
  inside lists or tuples are walked too. Anything :mod:`json` cannot encode,
  such as an exception, is written through ``str``. ``stream=None`` resolves
  ``sys.stdout`` at write time.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - ``subject``, ``sender``, ``to``, ``body``, ``header`` and ``password``
    values are always masked, at any nesting depth.
  - Envelope fields never appear in records written by this package; only the
    uid identifies a message.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"subject", "sender", "to", "body", "header", "password"})


@dataclass
class JsonLogger:
    """Structured JSON logger for mailbox passes.

    Attributes:
      stream: Destination with ``write``/``flush``; ``None`` writes to the
        current ``sys.stdout``.
      component: Label identifying the emitting module, e.g.
        ``"mailfetch.fetcher"``.
    """

    stream: Any = None
    component: str = "mailfetch"

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Write one record and flush.

        Args:
          level: Severity such as ``"info"``; emitted upper-cased.
          message: Short event description, e.g. ``"fetch finished"``.
          extra: Context merged into the record after masking.
        """

        record: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            record.update(_mask(extra))
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(json.dumps(record, separators=(",", ":"), default=str) + "\n")
        stream.flush()

    def info(self, message: str, **context: Any) -> None:
        self.log("INFO", message, extra=context)

    def warning(self, message: str, **context: Any) -> None:
        self.log("WARN", message, extra=context)

    def error(self, message: str, **context: Any) -> None:
        self.log("ERROR", message, extra=context)


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _mask(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_mask(item) for item in value]
    return value


def get_logger(component: str) -> JsonLogger:
    """Return a :class:`JsonLogger` bound to ``component`` writing to stdout."""

    return JsonLogger(component=component)
