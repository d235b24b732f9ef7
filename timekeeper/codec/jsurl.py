"""
JSURL Compact Value Codec

A URL-friendly rendition of JSON values used by the console pages to
keep view state inside the address text:

    None            -> ~null
    True / 42 / -3  -> ~true / ~42 / ~-3
    "a b"           -> ~'a*20b
    [1, "x"]        -> ~(~1~'x)
    {"a": 1, "b": 2} -> ~(a~1~b~2)

Text cut off before a container closes decodes to whatever was built so
far; callers slice values out of addresses at delimiters they do not
control.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple, Union


class _Missing:
    """Marker for an absent value (JavaScript ``undefined``)."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

Value = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

# Printable ASCII that never needs escaping inside a string body or key.
# Everything else, plus the structural and URL-reserved characters, goes
# through *HH / **HHHH.
_RESERVED = frozenset("~()'!*%$&#;?=+\"<>\\^`{|}[] ")
_LITERALS = ("null", "true", "false")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class JsurlDecodeError(ValueError):
    """Raised when text is not a valid JSURL value."""

    def __init__(self, message: str, text: str = "", position: int = 0):
        self.text = text
        self.position = position
        super().__init__(f"{message} (at {position})")


class _Truncated(Exception):
    """Input ended inside a token."""


# ---------- Encoding ----------


def _escape_char(ch: str) -> str:
    if ch == "'":
        return "!"
    code = ord(ch)
    if 0x20 <= code < 0x7F and ch not in _RESERVED:
        return ch
    if code < 0x80:
        return "*%02X" % code
    if code > 0xFFFF:
        # Astral characters travel as two UTF-16 code units.
        code -= 0x10000
        high = 0xD800 + (code >> 10)
        low = 0xDC00 + (code & 0x3FF)
        return "**%04X**%04X" % (high, low)
    return "**%04X" % code


def _escape(text: str) -> str:
    return "".join(_escape_char(ch) for ch in text)


def _stringify_number(v: Union[int, float]) -> str:
    if isinstance(v, float):
        if not math.isfinite(v):
            return "~null"
        if v.is_integer() and abs(v) < 1e21:
            return "~" + str(int(v))
        return "~" + repr(v)
    return "~" + str(v)


def stringify(value: Any) -> str:
    """
    Encode a value as a single JSURL token.

    Args:
        value: None, bool, int, float, str, list/tuple or dict with str keys,
            or MISSING.

    Returns:
        The encoded text; MISSING encodes to the empty string.

    Raises:
        TypeError: If the value (or a nested one) is not JSON-like.
        ValueError: If an object's first encoded key is empty; ``~(~1)``
            already means the array ``[1]``.
    """
    if value is MISSING:
        return ""
    if value is None:
        return "~null"
    if isinstance(value, bool):
        return "~true" if value else "~false"
    if isinstance(value, (int, float)):
        return _stringify_number(value)
    if isinstance(value, str):
        return "~'" + _escape(value)
    if isinstance(value, (list, tuple)):
        items = "".join(stringify(item) or "~null" for item in value)
        return "~(" + (items or "~") + ")"
    if isinstance(value, dict):
        pairs = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"JSURL object keys must be str, got {type(key).__name__}")
            encoded = stringify(item)
            if not encoded:
                continue
            if not key and not pairs:
                raise ValueError("JSURL objects cannot start with an empty key")
            pairs.append(_escape(key) + encoded)
        return "~(" + "~".join(pairs) + ")"
    raise TypeError(f"Cannot encode {type(value).__name__} as JSURL")


# ---------- Decoding ----------


class _Decoder:
    """Single-pass cursor over JSURL text."""

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos
        self.end = len(text)

    def error(self, message: str) -> JsurlDecodeError:
        return JsurlDecodeError(message, self.text, self.pos)

    def peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.text[i] if i < self.end else ""

    def read_value(self) -> Value:
        if self.pos >= self.end:
            raise _Truncated()
        if self.peek() != "~":
            raise self.error("Expected '~'")
        self.pos += 1
        ch = self.peek()
        if not ch:
            raise _Truncated()
        if ch == "(":
            self.pos += 1
            return self.read_container()
        if ch == "'":
            self.pos += 1
            return self.read_text(stop="~)")
        for literal in _LITERALS:
            if ch == literal[0]:
                return self.read_literal(literal)
        return self.read_number()

    def read_literal(self, literal: str) -> Value:
        chunk = self.text[self.pos:self.pos + len(literal)]
        if chunk == literal:
            self.pos += len(literal)
            return {"null": None, "true": True, "false": False}[literal]
        if literal.startswith(chunk) and self.pos + len(chunk) == self.end:
            self.pos = self.end
            raise _Truncated()
        raise self.error(f"Unknown literal {chunk!r}")

    def read_number(self) -> Union[int, float]:
        start = self.pos
        while self.pos < self.end and self.text[self.pos] not in "~)":
            self.pos += 1
        raw = self.text[start:self.pos]
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw)
        except ValueError:
            if self.pos == self.end:
                raise _Truncated()
            self.pos = start
            raise self.error(f"Invalid number {raw!r}")
        if not math.isfinite(number):
            self.pos = start
            raise self.error(f"Invalid number {raw!r}")
        return number

    def read_text(self, stop: str) -> str:
        """Read an escaped string body or object key up to a stop character."""
        units: List[int] = []
        while self.pos < self.end:
            ch = self.text[self.pos]
            if ch in stop:
                break
            if ch == "!":
                units.append(ord("'"))
                self.pos += 1
            elif ch == "*":
                width = 4 if self.peek(1) == "*" else 2
                digits_at = self.pos + (2 if width == 4 else 1)
                digits = self.text[digits_at:digits_at + width]
                if len(digits) < width:
                    # Escape cut off by the end of the input.
                    self.pos = self.end
                    break
                if not all(c in _HEX_DIGITS for c in digits):
                    raise self.error(f"Invalid escape {digits!r}")
                units.append(int(digits, 16))
                self.pos = digits_at + width
            else:
                units.extend(_utf16_units(ch))
                self.pos += 1
        return _from_utf16(units)

    def read_container(self) -> Value:
        if self.peek() == "~":
            if self.peek(1) == ")":
                self.pos += 2
                return []
            return self.read_array()
        return self.read_object()

    def read_array(self) -> List[Any]:
        items: List[Any] = []
        while self.pos < self.end:
            if self.peek() == ")":
                self.pos += 1
                return items
            try:
                items.append(self.read_value())
            except _Truncated:
                return items
        return items

    def read_object(self) -> Dict[str, Any]:
        obj: Dict[str, Any] = {}
        while self.pos < self.end:
            if self.peek() == ")":
                self.pos += 1
                return obj
            key = self.read_text(stop="~()")
            if self.pos >= self.end:
                return obj
            if self.peek() != "~":
                raise self.error(f"Expected value after key {key!r}")
            try:
                obj[key] = self.read_value()
            except _Truncated:
                return obj
            if self.peek() == "~":
                self.pos += 1
            elif self.pos < self.end and self.peek() != ")":
                raise self.error("Expected '~' or ')' after object value")
        return obj


def _utf16_units(ch: str) -> List[int]:
    code = ord(ch)
    if code <= 0xFFFF:
        return [code]
    code -= 0x10000
    return [0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)]


def _from_utf16(units: List[int]) -> str:
    raw = b"".join(unit.to_bytes(2, "big") for unit in units)
    return raw.decode("utf-16-be", errors="surrogatepass")


def parse_prefix(text: str, pos: int = 0) -> Tuple[Value, int]:
    """
    Decode one value starting at ``pos`` and report where it stopped.

    Trailing text after the value is left alone; the returned index points
    at its first character. A container cut off by the end of the input is
    returned partially built.

    Raises:
        JsurlDecodeError: If the text at ``pos`` is not a JSURL value.
    """
    decoder = _Decoder(text, pos)
    try:
        value = decoder.read_value()
    except _Truncated:
        raise decoder.error("Unexpected end of input")
    return value, decoder.pos


def parse(text: str) -> Any:
    """
    Decode a complete JSURL token.

    Returns:
        The decoded value, or MISSING for empty text.

    Raises:
        JsurlDecodeError: If the text is malformed or has trailing characters.
    """
    if not text:
        return MISSING
    value, end = parse_prefix(text)
    if end != len(text):
        raise JsurlDecodeError("Unexpected trailing characters", text, end)
    return value


def try_parse(text: str, default: Any = None) -> Any:
    """Decode ``text`` like :func:`parse`, returning ``default`` on any failure."""
    try:
        value = parse(text)
    except Exception:
        return default
    if value is MISSING:
        return default
    return value
