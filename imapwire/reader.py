"""Low-level reader for the IMAP wire format (RFC 3501 section 4)."""

from __future__ import annotations

import io
import re
from typing import Any, BinaryIO, Callable, Optional, Union

SP = " "
CR = "\r"
LF = "\n"
DQUOTE = '"'
LITERAL_START = "{"
LITERAL_END = "}"
LIST_START = "("
LIST_END = ")"
RESP_CODE_START = "["
RESP_CODE_END = "]"

QUOTED_SPECIALS = '"\\'
RESP_SPECIALS = "]"
ATOM_SPECIALS = "(){ %*" + QUOTED_SPECIALS + RESP_SPECIALS

_UINT32_MAX = 0xFFFFFFFF
_DIGITS = re.compile(r"[0-9]+")


class ParseError(ValueError):
    """Raised when input does not follow the IMAP syntax."""


class RawString(str):
    """A string that is written to the wire as-is, without quoting."""


class Literal:
    """A literal string, as defined in RFC 3501 section 4.3."""

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def __repr__(self) -> str:
        return f"Literal({self._data[self._pos:]!r})"

    def read(self, size: Optional[int] = -1) -> bytes:
        """Read up to ``size`` bytes, or everything left if size is negative."""
        if size is None or size < 0:
            end = len(self._data)
        else:
            end = min(len(self._data), self._pos + size)
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk


def parse_number(f: Any) -> int:
    """Parse an unsigned 32-bit number from a field."""
    if isinstance(f, int) and not isinstance(f, bool):
        if 0 <= f <= _UINT32_MAX:
            return f
        raise ParseError(f"number out of range: {f}")
    if not isinstance(f, str):
        raise ParseError("expected a number, got a non-atom")
    if not _DIGITS.fullmatch(f):
        raise ParseError(f"invalid number: {f!r}")
    n = int(f)
    if n > _UINT32_MAX:
        raise ParseError(f"number out of range: {f}")
    return n


def parse_string(f: Any) -> str:
    """Parse a string, which is either a literal, a quoted string or an atom."""
    if isinstance(f, str):
        return str(f)
    if isinstance(f, Literal):
        size = len(f)
        data = f.read(size)
        if len(data) != size:
            raise EOFError("literal is shorter than announced")
        return data.decode("utf-8", errors="replace")
    raise ParseError("expected a string")


def parse_string_list(f: Any) -> list[str]:
    """Convert a field list to a list of strings."""
    if not isinstance(f, list):
        raise ParseError("expected a string list, got a non-list")
    try:
        return [parse_string(item) for item in f]
    except ParseError as exc:
        raise ParseError(f"cannot parse string in string list: {exc}") from exc


def _utf8_extra(first: int) -> int:
    if first < 0x80:
        return 0
    if first >> 5 == 0b110:
        return 1
    if first >> 4 == 0b1110:
        return 2
    if first >> 3 == 0b11110:
        return 3
    return 0


class Reader:
    """Reads IMAP syntax elements from a binary stream."""

    def __init__(
        self,
        stream: Union[BinaryIO, bytes, bytearray, str],
        continues: Optional[Callable[[], Any]] = None,
        max_literal_size: int = 0,
    ) -> None:
        if isinstance(stream, str):
            stream = io.BytesIO(stream.encode("utf-8"))
        elif isinstance(stream, (bytes, bytearray)):
            stream = io.BytesIO(bytes(stream))
        self._stream = stream
        self.continues = continues
        self.max_literal_size = max_literal_size
        self._pushback: Optional[str] = None
        self._last: Optional[str] = None
        self._brackets = 0
        self._in_resp_code = False

    # -- character level -------------------------------------------------

    def _read_char(self) -> str:
        if self._pushback is not None:
            char, self._pushback = self._pushback, None
            self._last = char
            return char
        first = self._stream.read(1)
        if not first:
            raise EOFError("unexpected end of input")
        extra = _utf8_extra(first[0])
        data = first + (self._stream.read(extra) if extra else b"")
        char = data.decode("utf-8", errors="replace")[0]
        self._last = char
        return char

    def _unread(self) -> None:
        if self._last is None:
            return
        self._pushback, self._last = self._last, None

    def _take_pushback(self) -> bytes:
        self._last = None
        if self._pushback is None:
            return b""
        data = self._pushback.encode("utf-8")
        self._pushback = None
        return data

    def _read_until(self, delim: str) -> str:
        target = delim.encode("utf-8")
        buf = bytearray(self._take_pushback())
        if buf.endswith(target):
            return buf.decode("utf-8", errors="replace")
        while True:
            b = self._stream.read(1)
            if not b:
                raise EOFError("unexpected end of input")
            buf += b
            if buf.endswith(target):
                return buf.decode("utf-8", errors="replace")

    def _read_exact(self, n: int) -> bytes:
        buf = bytearray(self._take_pushback())
        while len(buf) < n:
            chunk = self._stream.read(n - len(buf))
            if not chunk:
                raise EOFError("unexpected end of input")
            buf += chunk
        return bytes(buf)

    # -- syntax elements -------------------------------------------------

    def read_sp(self) -> None:
        if self._read_char() != SP:
            raise ParseError("expected a space")

    def read_crlf(self) -> None:
        char = self._read_char()
        if char == LF:
            return
        if char != CR:
            raise ParseError("line doesn't end with a CR")
        if self._read_char() != LF:
            raise ParseError("line doesn't end with a LF")

    def read_atom(self) -> Optional[str]:
        """Read an atom; the atom NIL yields None."""
        self._brackets = 0
        chars: list[str] = []
        while True:
            char = self._read_char()
            if self._brackets == 0 and char in (LIST_START, LITERAL_START, DQUOTE):
                raise ParseError("atom contains forbidden char: " + char)
            if char in (CR, LF):
                break
            if self._brackets == 0 and char in (SP, LIST_END):
                break
            if char == RESP_CODE_END:
                if self._brackets == 0:
                    if self._in_resp_code:
                        break
                    raise ParseError("atom contains bad brackets nesting")
                self._brackets -= 1
            if char == RESP_CODE_START:
                self._brackets += 1
            chars.append(char)
        self._unread()
        atom = "".join(chars)
        return None if atom == "NIL" else atom

    def read_literal(self) -> Literal:
        if self._read_char() != LITERAL_START:
            raise ParseError("literal string doesn't start with an open brace")
        length = self._read_until(LITERAL_END)[:-1]
        non_sync = length.endswith("+")
        if non_sync:
            length = length[:-1]
        if not _DIGITS.fullmatch(length) or int(length) > _UINT32_MAX:
            raise ParseError(f"cannot parse literal length: {length!r}")
        n = int(length)
        if self.max_literal_size > 0 and n > self.max_literal_size:
            raise ParseError("literal exceeding maximum size")
        self.read_crlf()
        if self.continues is not None and not non_sync:
            self.continues()
        return Literal(self._read_exact(n))

    def read_quoted_string(self) -> str:
        if self._read_char() != DQUOTE:
            raise ParseError("quoted string doesn't start with a double quote")
        chars: list[str] = []
        escaped = False
        while True:
            char = self._read_char()
            if char == "\\" and not escaped:
                escaped = True
                continue
            if char in (CR, LF):
                self._unread()
                raise ParseError("CR or LF not allowed in quoted string")
            if char == DQUOTE and not escaped:
                break
            if escaped and char not in QUOTED_SPECIALS:
                raise ParseError(
                    "quoted string cannot contain backslash followed by a "
                    "non-quoted-specials char"
                )
            chars.append(char)
            escaped = False
        return "".join(chars)

    def read_fields(self) -> list[Any]:
        fields: list[Any] = []
        while True:
            char = self._read_char()
            self._unread()

            if char == LITERAL_START:
                fields.append(self.read_literal())
            elif char == DQUOTE:
                fields.append(self.read_quoted_string())
            elif char == LIST_START:
                fields.append(self.read_list())
            elif char == CR:
                return fields
            elif char != LIST_END:
                fields.append(self.read_atom())

            char = self._read_char()
            if char in (CR, LF, LIST_END, RESP_CODE_END):
                if char in (CR, LF):
                    self._unread()
                return fields
            if char == LIST_START:
                self._unread()
                continue
            if char != SP:
                raise ParseError("fields are not separated by a space")

    def read_list(self) -> list[Any]:
        if self._read_char() != LIST_START:
            raise ParseError("list doesn't start with an open parenthesis")
        fields = self.read_fields()
        self._unread()
        if self._read_char() != LIST_END:
            raise ParseError("list doesn't end with a close parenthesis")
        return fields

    def read_line(self) -> list[Any]:
        fields = self.read_fields()
        self._unread()
        self.read_crlf()
        return fields

    def read_resp_code(self) -> tuple[str, list[Any]]:
        """Read a bracketed response code; return the code and its arguments."""
        if self._read_char() != RESP_CODE_START:
            raise ParseError("response code doesn't start with an open bracket")
        self._in_resp_code = True
        try:
            fields = self.read_fields()
        finally:
            self._in_resp_code = False
        if not fields:
            raise ParseError("response code doesn't contain any field")
        code = fields[0]
        if not isinstance(code, str):
            raise ParseError("response code doesn't start with a string atom")
        if code == "":
            raise ParseError("response code is empty")
        self._unread()
        if self._read_char() != RESP_CODE_END:
            raise ParseError("response code doesn't end with a close bracket")
        return code.upper(), fields[1:]

    def read_info(self) -> str:
        info = self._read_until(LF)
        info = info.removesuffix(LF).removesuffix(CR)
        return info.lstrip(" ")