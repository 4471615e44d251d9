"""Expose the public utility surface for mailfetch.

What:
  Re-export the logging and header helpers so callers can write
  ``from mailfetch.utils import strip_headers`` without knowing module names.

Interfaces:
  ``get_logger``, ``JsonLogger``, ``decode_mime_field``,
  ``parse_address_list``, ``strip_headers``.
"""

from .logging import JsonLogger, get_logger
from .mime import decode_mime_field, parse_address_list, strip_headers

__all__ = [
    "JsonLogger",
    "get_logger",
    "decode_mime_field",
    "parse_address_list",
    "strip_headers",
]
