"""Body section names, as used in FETCH (RFC 3501 page 55)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .reader import ParseError, Reader

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _atoi(text: str, what: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ParseError(f"{what}: invalid integer {text!r}")
    return int(text)


class PartSpecifier(str, Enum):
    """Which parts of a MIME entity should be returned."""

    ENTIRE = ""
    HEADER = "HEADER"
    TEXT = "TEXT"
    MIME = "MIME"


_SPECIFIERS = {s.value: s for s in PartSpecifier}


@dataclass(eq=False)
class BodyPartName:
    """A body part name: a part path, a specifier and optional header fields."""

    specifier: PartSpecifier = PartSpecifier.ENTIRE
    path: list[int] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    not_fields: bool = False

    def parse(self, fields: list[Any]) -> None:
        """Fill this part name from the fields found between brackets."""
        if not fields:
            return
        name = fields[0]
        if not isinstance(name, str):
            raise ParseError("Invalid body section name: part name must be a string")
        args = fields[1:]
        path = name.upper().split(".")

        end = 0
        for i, node in enumerate(path):
            specifier = _SPECIFIERS.get(node)
            if specifier is not None:
                self.specifier = specifier
                end = i + 1
                break
            index = _atoi(node, "Invalid body part name")
            if index <= 0:
                raise ParseError("Invalid body part name: index <= 0")
            self.path.append(index)

        if (
            self.specifier == PartSpecifier.HEADER
            and len(path) > end
            and path[end] == "FIELDS"
            and args
        ):
            end += 1
            if len(path) > end and path[end] == "NOT":
                self.not_fields = True
            names = args[0]
            if not isinstance(names, list):
                raise ParseError(
                    "Invalid body part name: HEADER.FIELDS must have a list argument"
                )
            self.fields.extend(str(n) for n in names if isinstance(n, str))

    def __str__(self) -> str:
        path = [str(index) for index in self.path]
        if self.specifier != PartSpecifier.ENTIRE:
            path.append(self.specifier.value)
        if self.specifier == PartSpecifier.HEADER and self.fields:
            path.append("FIELDS")
            if self.not_fields:
                path.append("NOT")
        text = ".".join(path)
        if self.fields:
            text += " (" + " ".join(self.fields) + ")"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BodyPartName):
            return NotImplemented
        if (self.specifier, self.not_fields, self.path) != (
            other.specifier,
            other.not_fields,
            other.path,
        ):
            return False
        if len(self.fields) != len(other.fields):
            return False
        theirs = [f.lower() for f in other.fields]
        return all(f.lower() in theirs for f in self.fields)

    def __hash__(self) -> int:
        return hash((self.specifier, tuple(self.path), self.not_fields, len(self.fields)))


@dataclass(eq=False)
class BodySectionName:
    """A body section name such as ``BODY.PEEK[1.HEADER]<0.512>``."""

    part: BodyPartName = field(default_factory=BodyPartName)
    peek: bool = False
    partial: list[int] = field(default_factory=list)
    _value: str = field(default="", repr=False)

    def fetch_item(self) -> str:
        """Return the fetch item naming this section."""
        if self._value:
            return self._value
        text = "BODY"
        if self.peek:
            text += ".PEEK"
        text += "[" + str(self.part) + "]"
        if self.partial:
            text += "<" + ".".join(str(n) for n in self.partial[:2]) + ">"
        return text

    def resp(self) -> BodySectionName:
        """Return the section name as it appears in a response."""
        return BodySectionName(part=self.part, peek=False, partial=list(self.partial[:1]))

    def extract_partial(self, data: bytes) -> bytes:
        """Return the slice of data selected by the partial range, if any."""
        if len(self.partial) != 2:
            return data
        start, length = self.partial
        if start > len(data):
            return b""
        return data[start:min(start + length, len(data))]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BodySectionName):
            return NotImplemented
        return (
            self.peek == other.peek
            and self.partial == other.partial
            and self.part == other.part
        )

    def __hash__(self) -> int:
        return hash((self.peek, tuple(self.partial), self.part))


_ALIASES = {
    "RFC822": "BODY[]",
    "RFC822.HEADER": "BODY.PEEK[HEADER]",
    "RFC822.TEXT": "BODY[TEXT]",
}


def parse_body_section_name(value: str) -> BodySectionName:
    """Parse a body section name; raise ParseError if it is invalid."""
    section = BodySectionName(_value=str(value))
    text = _ALIASES.get(value, str(value))

    part_start = text.find("[")
    if part_start == -1:
        raise ParseError("Invalid body section name: must contain an open bracket")
    part_end = text.rfind("]")
    if part_end == -1:
        raise ParseError("Invalid body section name: must contain a close bracket")
    if part_end < part_start:
        raise ParseError("Invalid body section name: brackets are out of order")

    name = text[:part_start]
    part = text[part_start + 1:part_end]
    partial = text[part_end + 1:]

    if name == "BODY.PEEK":
        section.peek = True
    elif name != "BODY":
        raise ParseError("Invalid body section name")

    try:
        fields = Reader(part + "\r\n").read_fields()
    except EOFError as exc:
        raise ParseError(f"Invalid body section name: {exc}") from exc
    section.part.parse(fields)

    if partial:
        if not (partial.startswith("<") and partial.endswith(">")) or len(partial) < 2:
            raise ParseError("Invalid body section name: invalid partial")
        bounds = partial[1:-1].split(".", 1)
        section.partial = [
            _atoi(bounds[0], "Invalid body section name: invalid partial: invalid from")
        ]
        if len(bounds) == 2:
            section.partial.append(
                _atoi(bounds[1], "Invalid body section name: invalid partial: invalid length")
            )
    return section