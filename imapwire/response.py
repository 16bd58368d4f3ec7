"""IMAP responses: data responses and continuation requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .reader import ParseError, parse_number


@dataclass
class DataResp:
    """A response carrying data.

    The tag is "" or "*" for untagged responses, "+" for continuation
    requests, or the tag of an earlier command.
    """

    tag: str = ""
    fields: list[Any] = field(default_factory=list)


@dataclass
class ContinuationReq:
    """A continuation request sent by the server."""

    info: str = ""


def new_untagged_resp(fields: Iterable[Any]) -> DataResp:
    """Create an untagged data response."""
    return DataResp(tag="*", fields=list(fields))


def parse_named_resp(resp: Any) -> Optional[tuple[str, list[Any]]]:
    """Split a data response into its upper-cased name and its fields.

    Returns None when the response is not a named data response.
    """
    if not isinstance(resp, DataResp) or not resp.fields:
        return None
    fields = resp.fields

    # Some responses (EXISTS, RECENT, FETCH...) put a number before the name.
    if len(fields) > 1 and isinstance(fields[1], str):
        try:
            parse_number(fields[0])
        except ParseError:
            pass
        else:
            return fields[1].upper(), [fields[0], *fields[2:]]

    if not isinstance(fields[0], str):
        return None
    return fields[0].upper(), list(fields[1:])