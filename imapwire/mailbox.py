"""Mailbox names, mailbox info (LIST responses) and mailbox status."""

from __future__ import annotations

import base64
import binascii
import re
import threading
from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, Iterable, Union

from .items import StatusItem
from .reader import ParseError, RawString, parse_number, parse_string, parse_string_list

INBOX_NAME = "INBOX"

NO_INFERIORS_ATTR = "\\Noinferiors"
NO_SELECT_ATTR = "\\Noselect"
MARKED_ATTR = "\\Marked"
UNMARKED_ATTR = "\\Unmarked"

_NUMERIC_ITEMS = {
    StatusItem.MESSAGES: "messages",
    StatusItem.RECENT: "recent",
    StatusItem.UNSEEN: "unseen",
    StatusItem.UIDNEXT: "uid_next",
    StatusItem.UIDVALIDITY: "uid_validity",
}

_ENCODED_RUN = re.compile(r"(&[^-]*-)")


def _printable(char: str) -> bool:
    return " " <= char <= "~"


def _encode_mailbox(text: str) -> str:
    """Encode a mailbox name in modified UTF-7 (RFC 3501 section 5.1.3)."""
    out = []
    for printable, group in groupby(text, key=_printable):
        chunk = "".join(group)
        if printable:
            out.append(chunk.replace("&", "&-"))
        else:
            data = base64.b64encode(chunk.encode("utf-16-be")).decode("ascii")
            out.append("&" + data.rstrip("=").replace("/", ",") + "-")
    return "".join(out)


def _decode_mailbox(text: str) -> str:
    """Decode a mailbox name from modified UTF-7."""
    out = []
    for part in _ENCODED_RUN.split(text):
        if part.startswith("&") and part.endswith("-") and len(part) >= 2:
            body = part[1:-1]
            if not body:
                out.append("&")
                continue
            raw = body.replace(",", "/")
            raw += "=" * (-len(raw) % 4)
            try:
                out.append(base64.b64decode(raw, validate=True).decode("utf-16-be"))
            except (binascii.Error, UnicodeDecodeError, ValueError):
                raise ParseError(f"invalid modified UTF-7 sequence: {part!r}") from None
            continue
        if "&" in part or not all(_printable(c) for c in part):
            raise ParseError(f"invalid character in mailbox name: {part!r}")
        out.append(part)
    return "".join(out)


def canonical_mailbox_name(name: str) -> str:
    """Return the canonical form of a mailbox name; INBOX is case-insensitive."""
    if name.upper() == INBOX_NAME:
        return INBOX_NAME
    return name


def format_mailbox_name(name: str) -> str:
    """Format a mailbox name; INBOX is sent unquoted."""
    if name.upper() == INBOX_NAME:
        return RawString(name)
    return name


@dataclass
class MailboxInfo:
    """Basic mailbox info, as returned by LIST and LSUB."""

    attributes: list[str] = field(default_factory=list)
    delimiter: str = ""
    name: str = ""

    def parse(self, fields: list[Any]) -> None:
        """Fill this info from response fields."""
        if len(fields) < 3:
            raise ParseError("Mailbox info needs at least 3 fields")
        self.attributes = parse_string_list(fields[0])
        if not isinstance(fields[1], str):
            raise ParseError("Mailbox delimiter must be a string")
        self.delimiter = str(fields[1])
        self.name = canonical_mailbox_name(_decode_mailbox(parse_string(fields[2])))

    def format(self) -> list[Any]:
        """Return response fields describing this mailbox."""
        attrs = [RawString(attr) for attr in self.attributes]
        # Delimiters stay quoted: some clients do not understand them otherwise.
        return [attrs, self.delimiter, format_mailbox_name(_encode_mailbox(self.name))]

    def _match(self, name: str, pattern: str) -> bool:
        found = re.search(r"[*%]", pattern)
        if found is None:
            return name == pattern
        i = found.start()
        chunk, wildcard, rest = pattern[:i], pattern[i], pattern[i + 1:]
        if chunk and not name.startswith(chunk):
            return False
        name = name[len(chunk):]

        stop = len(name)
        for j, char in enumerate(name):
            if wildcard == "%" and char == self.delimiter:
                stop = j
                break
            if self._match(name[j:], rest):
                return True
        return self._match(name[stop:], rest)

    def match(self, reference: str, pattern: str) -> bool:
        """Check whether a LIST reference and pattern match this mailbox name."""
        name = self.name
        if pattern.startswith(self.delimiter):
            reference = ""
            pattern = pattern[len(self.delimiter):]
        if reference:
            if not reference.endswith(self.delimiter):
                reference += self.delimiter
            if not name.startswith(reference):
                return False
            name = name[len(reference):]
        return self._match(name, pattern)


def _status_key(key: str) -> Union[StatusItem, str]:
    try:
        return StatusItem(key)
    except ValueError:
        return key


def _key_text(key: Union[StatusItem, str]) -> str:
    return key.value if isinstance(key, StatusItem) else str(key)


@dataclass
class MailboxStatus:
    """A mailbox status."""

    name: str = ""
    read_only: bool = False
    items: dict = field(default_factory=dict)
    flags: list[str] = field(default_factory=list)
    permanent_flags: list[str] = field(default_factory=list)
    unseen_seq_num: int = 0
    messages: int = 0
    recent: int = 0
    unseen: int = 0
    uid_next: int = 0
    uid_validity: int = 0
    items_lock: threading.Lock = field(
        default_factory=threading.Lock, compare=False, repr=False
    )

    def parse(self, fields: list[Any]) -> None:
        """Fill the status from a list of alternating keys and values."""
        self.items = {}
        key: Union[StatusItem, str] = ""
        for index, value in enumerate(fields):
            if index % 2 == 0:
                if not isinstance(value, str):
                    raise ParseError(
                        "cannot parse mailbox status: key is not a string, "
                        f"but a {type(value).__name__}"
                    )
                key = _status_key(value.upper())
                continue
            attr = _NUMERIC_ITEMS.get(key) if isinstance(key, StatusItem) else None
            if attr is None:
                self.items[key] = value
            else:
                self.items[key] = None
                setattr(self, attr, parse_number(value))

    def format(self) -> list[Any]:
        """Return alternating keys and values for the filled-in items."""
        fields: list[Any] = []
        for key, value in self.items.items():
            attr = _NUMERIC_ITEMS.get(key) if isinstance(key, StatusItem) else None
            if attr is not None:
                value = getattr(self, attr)
            fields.extend([RawString(_key_text(key)), value])
        return fields


def new_mailbox_status(name: str, items: Iterable[str]) -> MailboxStatus:
    """Create a mailbox status that will contain the given items."""
    return MailboxStatus(name=name, items={_status_key(str(_key_text(k))): None for k in items})