"""
Address text helpers.

An address is treated as immutable text: parsers read spans of it and
injectors produce a new string with exactly one span replaced. Component
views (host, path, query, fragment) are derived on demand and never used
to rebuild the text, so every character outside the replaced span
survives byte-for-byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit


@dataclass(frozen=True)
class Address:
    """Full location text: scheme, host, path, query and fragment."""

    text: str

    @property
    def _hash_index(self) -> int:
        idx = self.text.find("#")
        return len(self.text) if idx < 0 else idx

    @property
    def _question_index(self) -> int:
        return self.text.find("?", 0, self._hash_index)

    @property
    def query_span(self) -> Tuple[int, int]:
        """Span of the query string, without the ``?`` and ``#`` delimiters."""
        end = self._hash_index
        q = self._question_index
        return (end, end) if q < 0 else (q + 1, end)

    @property
    def fragment_span(self) -> Tuple[int, int]:
        """Span of the fragment, without the leading ``#``."""
        return min(self._hash_index + 1, len(self.text)), len(self.text)

    @property
    def host(self) -> str:
        try:
            return (urlsplit(self.text).hostname or "").lower()
        except ValueError:
            return ""

    @property
    def path(self) -> str:
        q = self._question_index
        head = self.text[: q if q >= 0 else self._hash_index]
        try:
            return urlsplit(head).path
        except ValueError:
            return ""

    @property
    def query(self) -> str:
        start, end = self.query_span
        return self.text[start:end]

    @property
    def fragment(self) -> str:
        start, end = self.fragment_span
        return self.text[start:end]

    def search(self, pattern: "re.Pattern[str]", region: str = "fragment") -> Optional["re.Match[str]"]:
        """Search a compiled pattern inside one region; match spans index the full text."""
        start, end = self.query_span if region == "query" else self.fragment_span
        return pattern.search(self.text, start, end)

    def splice(self, start: int, end: int, replacement: str) -> str:
        """Return the text with ``[start, end)`` replaced."""
        return self.text[:start] + replacement + self.text[end:]

    def __str__(self) -> str:
        return self.text
