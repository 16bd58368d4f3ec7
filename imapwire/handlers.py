"""Handlers that turn server responses into structured data."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from .mailbox import MailboxInfo, MailboxStatus, _decode_mailbox, canonical_mailbox_name
from .message import Message
from .reader import ParseError, parse_number, parse_string
from .response import ContinuationReq, parse_named_resp

SEARCH_NAME = "SEARCH"
EXPUNGE_NAME = "EXPUNGE"
FETCH_NAME = "FETCH"
LIST_NAME = "LIST"
LSUB_NAME = "LSUB"
STATUS_NAME = "STATUS"


class UnhandledResponse(Exception):
    """Raised when a handler cannot process a response."""

    def __init__(self, message: str = "imap: unhandled response") -> None:
        super().__init__(message)


class NotEnoughFields(ParseError):
    """Raised when a response lacks required fields."""

    def __init__(self, message: str = "imap: not enough fields in response") -> None:
        super().__init__(message)


def _named(resp: Any, expected: str) -> list[Any]:
    named = parse_named_resp(resp)
    if named is None or named[0] != expected:
        raise UnhandledResponse()
    return named[1]


@dataclass
class SearchHandler:
    """Collects the message ids of a SEARCH response."""

    ids: list[int] = field(default_factory=list)

    def handle(self, resp: Any) -> None:
        fields = _named(resp, SEARCH_NAME)
        self.ids = [parse_number(f) for f in fields]


@dataclass
class ExpungeHandler:
    """Collects the sequence numbers of EXPUNGE responses."""

    seq_nums: list[int] = field(default_factory=list)

    def handle(self, resp: Any) -> None:
        fields = _named(resp, EXPUNGE_NAME)
        if not fields:
            raise NotEnoughFields()
        self.seq_nums.append(parse_number(fields[0]))


@dataclass
class FetchHandler:
    """Collects the messages of FETCH responses."""

    messages: list[Message] = field(default_factory=list)

    def handle(self, resp: Any) -> None:
        fields = _named(resp, FETCH_NAME)
        if not fields:
            raise NotEnoughFields()
        seq_num = parse_number(fields[0])
        msg_fields = fields[1] if len(fields) > 1 and isinstance(fields[1], list) else []
        msg = Message(seq_num=seq_num)
        msg.parse(msg_fields)
        self.messages.append(msg)


@dataclass
class ListHandler:
    """Collects the mailboxes of LIST, or LSUB if subscribed, responses."""

    mailboxes: list[MailboxInfo] = field(default_factory=list)
    subscribed: bool = False

    def name(self) -> str:
        return LSUB_NAME if self.subscribed else LIST_NAME

    def handle(self, resp: Any) -> None:
        fields = _named(resp, self.name())
        mbox = MailboxInfo()
        mbox.parse(fields)
        self.mailboxes.append(mbox)


@dataclass
class StatusHandler:
    """Fills a mailbox status from a STATUS response."""

    mailbox: MailboxStatus = field(default_factory=MailboxStatus)

    def handle(self, resp: Any) -> None:
        fields = _named(resp, STATUS_NAME)
        if len(fields) < 2:
            raise NotEnoughFields()
        name = _decode_mailbox(parse_string(fields[0]))
        self.mailbox.name = canonical_mailbox_name(name)
        items = fields[1]
        if not isinstance(items, list):
            raise ParseError("STATUS response expects a list as second argument")
        self.mailbox.parse(items)


class SaslClient(Protocol):
    """A client-side SASL mechanism."""

    def next(self, challenge: bytes) -> bytes:
        """Answer a server challenge."""
        ...


@dataclass
class AuthenticateHandler:
    """Answers the continuation requests of an AUTHENTICATE exchange.

    Each reply line to send to the server is appended to ``replies``.
    """

    mechanism: SaslClient
    initial_response: Optional[bytes] = None
    replies: list[bytes] = field(default_factory=list)

    def _write_line(self, line: str) -> None:
        self.replies.append((line + "\r\n").encode("ascii"))

    def _cancel(self) -> None:
        self._write_line("*")

    def handle(self, resp: Any) -> None:
        if not isinstance(resp, ContinuationReq):
            raise UnhandledResponse()

        # An empty challenge asks for the initial response (RFC 2222 section 5.1).
        if resp.info == "" and self.initial_response is not None:
            self._write_line(base64.b64encode(self.initial_response).decode("ascii"))
            self.initial_response = None
            return

        try:
            challenge = base64.b64decode(resp.info, validate=True)
        except ValueError:
            self._cancel()
            raise
        try:
            reply = self.mechanism.next(challenge)
        except Exception:
            self._cancel()
            raise
        self._write_line(base64.b64encode(reply).decode("ascii"))