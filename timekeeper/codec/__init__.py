"""Compact value codec used inside console addresses."""

from .jsurl import (
    MISSING,
    JsurlDecodeError,
    Value,
    parse,
    parse_prefix,
    stringify,
    try_parse,
)

__all__ = [
    "MISSING",
    "JsurlDecodeError",
    "Value",
    "parse",
    "parse_prefix",
    "stringify",
    "try_parse",
]
