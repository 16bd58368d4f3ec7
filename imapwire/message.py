"""Messages, envelopes, addresses and body structures (RFC 3501 section 7.4.2)."""

from __future__ import annotations

import base64
import binascii
import codecs
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from .dates import (
    format_date_time,
    format_envelope_date_time,
    parse_date_time,
    parse_message_date_time,
)
from .items import (
    FETCH_BODY,
    FETCH_BODY_STRUCTURE,
    FETCH_ENVELOPE,
    FETCH_FLAGS,
    FETCH_INTERNAL_DATE,
    FETCH_RFC822_SIZE,
    FETCH_UID,
)
from .reader import (
    Literal,
    ParseError,
    RawString,
    parse_number,
    parse_string,
    parse_string_list,
)
from .section import BodySectionName, parse_body_section_name

SEEN_FLAG = "\\Seen"
ANSWERED_FLAG = "\\Answered"
FLAGGED_FLAG = "\\Flagged"
DELETED_FLAG = "\\Deleted"
DRAFT_FLAG = "\\Draft"
RECENT_FLAG = "\\Recent"

_FLAGS = {
    flag.lower(): flag
    for flag in (SEEN_FLAG, ANSWERED_FLAG, FLAGGED_FLAG, DELETED_FLAG, DRAFT_FLAG, RECENT_FLAG)
}


def canonical_flag(flag: str) -> str:
    """Return the canonical form of a flag; flags are case-insensitive."""
    lowered = flag.lower()
    return _FLAGS.get(lowered, lowered)


# -- RFC 2047 encoded words ----------------------------------------------

_ENCODED_WORD = re.compile(r"=\?([^?\s]+)\?([QqBb])\?([^?\s]*)\?=")
_BAD_Q_ESCAPE = re.compile(r"=(?![0-9A-Fa-f]{2})")
_Q_ESCAPE = re.compile(rb"=([0-9A-Fa-f]{2})")
_MAX_WORD_CONTENT = 63


class _MalformedWord(ValueError):
    pass


def _decode_word(charset: str, encoding: str, text: str) -> str:
    if encoding in "Bb":
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise _MalformedWord(text) from None
    else:
        if _BAD_Q_ESCAPE.search(text):
            raise _MalformedWord(text)
        raw = text.replace("_", " ").encode("utf-8")
        data = _Q_ESCAPE.sub(lambda m: bytes([int(m.group(1), 16)]), raw)
    codec = codecs.lookup(charset.lower())
    return data.decode(codec.name, errors="replace")


def _decode_header_words(value: str) -> str:
    parts: list[str] = []
    pos = 0
    after_word = False
    for m in _ENCODED_WORD.finditer(value):
        gap = value[pos:m.start()]
        pos = m.end()
        try:
            decoded = _decode_word(*m.groups())
        except _MalformedWord:
            parts.append(gap + m.group(0))
            after_word = False
            continue
        if not (after_word and gap.strip(" \t\r\n") == ""):
            parts.append(gap)
        parts.append(decoded)
        after_word = True
    parts.append(value[pos:])
    return "".join(parts)


def _decode_header(value: str) -> str:
    """Decode encoded words; an unknown charset leaves the value unchanged."""
    try:
        return _decode_header_words(value)
    except LookupError:
        return value


def _q_byte(b: int) -> str:
    if b == 0x20:
        return "_"
    if 0x21 <= b <= 0x7E and chr(b) not in "=?_":
        return chr(b)
    return f"={b:02X}"


def _encode_header(value: str) -> str:
    """Q-encode a header value as UTF-8 encoded words when it needs encoding."""
    if all(" " <= c <= "~" or c == "\t" for c in value):
        return value
    words: list[str] = []
    current: list[str] = []
    length = 0
    for char in value:
        encoded = "".join(_q_byte(b) for b in char.encode("utf-8", errors="replace"))
        if current and length + len(encoded) > _MAX_WORD_CONTENT:
            words.append("".join(current))
            current, length = [], 0
        current.append(encoded)
        length += len(encoded)
    words.append("".join(current))
    return " ".join(f"=?utf-8?q?{word}?=" for word in words)


# -- parameter lists -----------------------------------------------------

def parse_param_list(fields: Optional[list[Any]]) -> dict[str, str]:
    """Parse a list of alternating keys and values."""
    params: dict[str, str] = {}
    key = ""
    for index, item in enumerate(fields or []):
        try:
            text = parse_string(item)
        except ParseError as exc:
            raise ParseError(f"Parameter list contains a non-string: {exc}") from exc
        if index % 2 == 0:
            key = text
        else:
            params[key] = text
            key = ""
    if key:
        raise ParseError("Parameter list contains a key without a value")
    return params


def format_param_list(params: dict[str, str]) -> list[Any]:
    """Format a dictionary as a list of alternating keys and values."""
    return [item for pair in params.items() for item in pair]


def _parse_header_param_list(fields: Optional[list[Any]]) -> dict[str, str]:
    return {k: _decode_header(v) for k, v in parse_param_list(fields).items()}


def _format_header_param_list(params: Optional[dict[str, str]]) -> list[Any]:
    return format_param_list({k: _encode_header(v) for k, v in (params or {}).items()})


def _optional_header_params(value: Any) -> Optional[dict[str, str]]:
    try:
        return _parse_header_param_list(value if isinstance(value, list) else [])
    except ParseError:
        return None


def _optional_string_list(value: Any) -> Optional[list[str]]:
    try:
        return parse_string_list(value if isinstance(value, list) else [])
    except ParseError:
        return None


def _number_or_zero(value: Any) -> int:
    try:
        return parse_number(value)
    except ParseError:
        return 0


# -- addresses and envelopes ---------------------------------------------

@dataclass
class Address:
    """An address, as found in an envelope."""

    personal_name: str = ""
    at_domain_list: str = ""
    mailbox_name: str = ""
    host_name: str = ""

    def parse(self, fields: list[Any]) -> None:
        """Fill this address from its four fields."""
        if len(fields) < 4:
            raise ParseError("Address doesn't contain 4 fields")
        values = []
        for item in fields[:4]:
            try:
                values.append(_decode_header(parse_string(item)))
            except ParseError:
                values.append(None)
        names = ("personal_name", "at_domain_list", "mailbox_name", "host_name")
        for name, value in zip(names, values):
            if value is not None:
                setattr(self, name, value)

    def format(self) -> list[Any]:
        """Return the four fields of this address; empty parts become None."""
        return [
            _encode_header(self.personal_name) if self.personal_name else None,
            self.at_domain_list or None,
            self.mailbox_name or None,
            self.host_name or None,
        ]


def parse_address_list(fields: list[Any]) -> list[Optional[Address]]:
    """Parse an address list; malformed entries become None."""
    addrs: list[Optional[Address]] = []
    for item in fields:
        addr: Optional[Address] = None
        if isinstance(item, list):
            candidate = Address()
            try:
                candidate.parse(item)
                addr = candidate
            except ParseError:
                pass
        addrs.append(addr)
    return addrs


def format_address_list(addrs: Iterable[Optional[Address]]) -> list[Any]:
    """Format an address list to fields."""
    return [addr.format() if addr is not None else None for addr in addrs]


@dataclass
class Envelope:
    """Message metadata from its headers (RFC 3501 page 77)."""

    date: Optional[datetime] = None
    subject: str = ""
    from_: list[Optional[Address]] = field(default_factory=list)
    sender: list[Optional[Address]] = field(default_factory=list)
    reply_to: list[Optional[Address]] = field(default_factory=list)
    to: list[Optional[Address]] = field(default_factory=list)
    cc: list[Optional[Address]] = field(default_factory=list)
    bcc: list[Optional[Address]] = field(default_factory=list)
    in_reply_to: str = ""
    message_id: str = ""

    _ADDRESS_FIELDS = ("from_", "sender", "reply_to", "to", "cc", "bcc")

    def parse(self, fields: list[Any]) -> None:
        """Fill this envelope from its ten fields."""
        if len(fields) < 10:
            raise ParseError("ENVELOPE doesn't contain 10 fields")
        if isinstance(fields[0], str):
            try:
                self.date = parse_message_date_time(fields[0])
            except ValueError:
                self.date = None
        try:
            self.subject = _decode_header(parse_string(fields[1]))
        except ParseError:
            pass
        for name, value in zip(self._ADDRESS_FIELDS, fields[2:8]):
            if isinstance(value, list):
                setattr(self, name, parse_address_list(value))
        if isinstance(fields[8], str):
            self.in_reply_to = str(fields[8])
        if isinstance(fields[9], str):
            self.message_id = str(fields[9])

    def format(self) -> list[Any]:
        """Return the ten envelope fields."""
        date = format_envelope_date_time(self.date) if self.date is not None else None
        return [
            date,
            _encode_header(self.subject),
            *(format_address_list(getattr(self, name)) for name in self._ADDRESS_FIELDS),
            self.in_reply_to,
            self.message_id,
        ]


# -- body structures -----------------------------------------------------

@dataclass
class BodyStructure:
    """A body structure (RFC 3501 page 74)."""

    mime_type: str = ""
    mime_subtype: str = ""
    params: Optional[dict[str, str]] = None
    id: str = ""
    description: str = ""
    encoding: str = ""
    size: int = 0
    parts: list[BodyStructure] = field(default_factory=list)
    envelope: Optional[Envelope] = None
    body_structure: Optional[BodyStructure] = None
    lines: int = 0
    extended: bool = False
    disposition: str = ""
    disposition_params: Optional[dict[str, str]] = None
    language: Optional[list[str]] = None
    location: Optional[list[str]] = None
    md5: str = ""

    def _parse_common_extension(self, fields: list[Any], end: int) -> None:
        if len(fields) > end:
            disp = fields[end]
            if isinstance(disp, list) and len(disp) >= 2:
                if isinstance(disp[0], str):
                    self.disposition = _decode_header(disp[0])
                if isinstance(disp[1], list):
                    self.disposition_params = _optional_header_params(disp[1])
            end += 1
        if len(fields) > end:
            langs = fields[end]
            if isinstance(langs, str):
                self.language = [str(langs)]
            elif isinstance(langs, list):
                self.language = _optional_string_list(langs)
            else:
                self.language = None
            end += 1
        if len(fields) > end:
            self.location = _optional_string_list(fields[end])

    def _parse_multipart(self, fields: list[Any]) -> None:
        self.mime_type = "multipart"
        end = 0
        for index, item in enumerate(fields):
            if isinstance(item, list):
                part = BodyStructure()
                part.parse(item)
                self.parts.append(part)
            elif isinstance(item, str):
                end = index
            if end > 0:
                break

        subtype = fields[end]
        self.mime_subtype = str(subtype) if isinstance(subtype, str) else ""
        end += 1

        if len(fields) > end:
            self.extended = True
            self.params = _optional_header_params(fields[end])
            end += 1
        self._parse_common_extension(fields, end)

    def _parse_single(self, fields: list[Any]) -> None:
        if len(fields) < 7:
            raise ParseError("Non-multipart body part doesn't have 7 fields")

        def text(value: Any) -> str:
            return str(value) if isinstance(value, str) else ""

        self.mime_type = text(fields[0])
        self.mime_subtype = text(fields[1])
        self.params = _optional_header_params(fields[2])
        self.id = text(fields[3])
        try:
            self.description = _decode_header(parse_string(fields[4]))
        except ParseError:
            pass
        self.encoding = text(fields[5])
        self.size = _number_or_zero(fields[6])

        end = 7
        mime_type = self.mime_type.lower()
        if mime_type == "message" and self.mime_subtype.lower() == "rfc822":
            if len(fields) - end < 3:
                raise ParseError("Missing type-specific fields for message/rfc822")
            self.envelope = Envelope()
            env_fields = fields[end]
            try:
                self.envelope.parse(env_fields if isinstance(env_fields, list) else [])
            except ParseError:
                pass
            self.body_structure = BodyStructure()
            inner = fields[end + 1]
            try:
                self.body_structure.parse(inner if isinstance(inner, list) else [])
            except ParseError:
                pass
            self.lines = _number_or_zero(fields[end + 2])
            end += 3
        if mime_type == "text":
            if len(fields) - end < 1:
                raise ParseError("Missing type-specific fields for text/*")
            self.lines = _number_or_zero(fields[end])
            end += 1

        if len(fields) > end:
            self.extended = True
            self.md5 = text(fields[end])
            end += 1
        self._parse_common_extension(fields, end)

    def parse(self, fields: list[Any]) -> None:
        """Fill this body structure from BODY or BODYSTRUCTURE fields."""
        if not fields:
            return
        self.params = {}
        if isinstance(fields[0], list):
            self._parse_multipart(fields)
        elif isinstance(fields[0], str):
            self._parse_single(fields)

    def _format_extension(self, first: Any) -> list[Any]:
        disposition = None
        if self.disposition:
            disposition = [
                _encode_header(self.disposition),
                _format_header_param_list(self.disposition_params),
            ]
        return [
            first,
            disposition,
            list(self.language) if self.language is not None else None,
            list(self.location) if self.location is not None else None,
        ]

    def format(self) -> list[Any]:
        """Return the fields describing this body structure."""
        if self.mime_type.lower() == "multipart":
            fields: list[Any] = [part.format() for part in self.parts]
            fields.append(self.mime_subtype)
            if self.extended:
                params = (
                    _format_header_param_list(self.params) if self.params is not None else None
                )
                fields.extend(self._format_extension(params))
            return fields

        fields = [
            self.mime_type,
            self.mime_subtype,
            _format_header_param_list(self.params),
            self.id or None,
            _encode_header(self.description) if self.description else None,
            self.encoding or None,
            self.size,
        ]
        mime_type = self.mime_type.lower()
        if mime_type == "message" and self.mime_subtype.lower() == "rfc822":
            fields.append(self.envelope.format() if self.envelope is not None else None)
            fields.append(
                self.body_structure.format() if self.body_structure is not None else None
            )
            fields.append(self.lines)
        if mime_type == "text":
            fields.append(self.lines)
        if self.extended:
            fields.extend(self._format_extension(self.md5 or None))
        return fields


# -- messages ------------------------------------------------------------

@dataclass
class Message:
    """A message, as returned by FETCH."""

    seq_num: int = 0
    items: dict[str, Any] = field(default_factory=dict)
    envelope: Optional[Envelope] = None
    body_structure: Optional[BodyStructure] = None
    flags: list[str] = field(default_factory=list)
    internal_date: Optional[datetime] = None
    size: int = 0
    uid: int = 0
    body: dict[BodySectionName, Optional[Literal]] = field(default_factory=dict)
    # Some clients reject responses whose items are not in the requested order.
    _items_order: list[str] = field(default_factory=list, repr=False)

    def parse(self, fields: list[Any]) -> None:
        """Fill this message from alternating item names and values."""
        self.items = {}
        self.body = {}
        self._items_order = []
        key = ""
        for index, value in enumerate(fields):
            if index % 2 == 0:
                if not isinstance(value, str):
                    raise ParseError(
                        "cannot parse message: key is not a string, "
                        f"but a {type(value).__name__}"
                    )
                key = value.upper()
                continue
            self.items[key] = None
            self._items_order.append(key)
            self._parse_item(key, value)

    def _parse_item(self, key: str, value: Any) -> None:
        if key in (FETCH_BODY, FETCH_BODY_STRUCTURE):
            if not isinstance(value, list):
                raise ParseError(
                    "cannot parse message: BODYSTRUCTURE is not a list, "
                    f"but a {type(value).__name__}"
                )
            self.body_structure = BodyStructure(extended=key == FETCH_BODY_STRUCTURE)
            self.body_structure.parse(value)
        elif key == FETCH_ENVELOPE:
            if not isinstance(value, list):
                raise ParseError(
                    f"cannot parse message: ENVELOPE is not a list, but a {type(value).__name__}"
                )
            self.envelope = Envelope()
            self.envelope.parse(value)
        elif key == FETCH_FLAGS:
            if not isinstance(value, list):
                raise ParseError(
                    f"cannot parse message: FLAGS is not a list, but a {type(value).__name__}"
                )
            self.flags = [canonical_flag(_string_or_empty(flag)) for flag in value]
        elif key == FETCH_INTERNAL_DATE:
            try:
                self.internal_date = parse_date_time(value) if isinstance(value, str) else None
            except ValueError:
                self.internal_date = None
        elif key == FETCH_RFC822_SIZE:
            self.size = _number_or_zero(value)
        elif key == FETCH_UID:
            self.uid = _number_or_zero(value)
        else:
            try:
                section = parse_body_section_name(key)
            except ParseError:
                self.items[key] = value
            else:
                self.body[section] = value if isinstance(value, Literal) else None

    def _format_item(self, key: str) -> list[Any]:
        name: Any = RawString(key)
        value = self.items.get(key)
        if key in (FETCH_BODY, FETCH_BODY_STRUCTURE):
            if self.body_structure is not None:
                self.body_structure.extended = key == FETCH_BODY_STRUCTURE
                value = self.body_structure.format()
        elif key == FETCH_ENVELOPE:
            value = self.envelope.format() if self.envelope is not None else None
        elif key == FETCH_FLAGS:
            value = [RawString(flag) for flag in self.flags]
        elif key == FETCH_INTERNAL_DATE:
            value = format_date_time(self.internal_date) if self.internal_date else None
        elif key == FETCH_RFC822_SIZE:
            value = self.size
        elif key == FETCH_UID:
            value = self.uid
        else:
            for section, literal in self.body.items():
                if section.fetch_item() == key:
                    # Section names may contain spaces: never send them quoted.
                    name = RawString(section.resp().fetch_item())
                    value = literal
                    break
        return [name, value]

    def format(self) -> list[Any]:
        """Return alternating item names and values, requested items first."""
        fields: list[Any] = []
        processed: set[str] = set()
        for key in self._items_order:
            if key in self.items and key not in processed:
                fields.extend(self._format_item(key))
                processed.add(key)
        for key in self.items:
            if key not in processed:
                fields.extend(self._format_item(key))
        return fields

    def get_body(self, section: BodySectionName) -> Optional[Literal]:
        """Return the body section with the given name, or None."""
        wanted = section.resp()
        for name, literal in self.body.items():
            if wanted == name:
                return literal
        return None


def _string_or_empty(value: Any) -> str:
    try:
        return parse_string(value)
    except ParseError:
        return ""


def new_message(seq_num: int, items: Iterable[str]) -> Message:
    """Create an empty message that will contain the given items."""
    order = list(items)
    return Message(seq_num=seq_num, items={k: None for k in order}, _items_order=order)