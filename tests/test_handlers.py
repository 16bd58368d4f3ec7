import base64

import pytest

from imapwire.handlers import (
    AuthenticateHandler,
    ExpungeHandler,
    FetchHandler,
    ListHandler,
    NotEnoughFields,
    StatusHandler,
    SearchHandler,
    UnhandledResponse,
)
from imapwire.items import StatusItem
from imapwire.reader import ParseError
from imapwire.response import ContinuationReq, DataResp


def untagged(*fields):
    return DataResp(tag="*", fields=list(fields))


def test_search_collects_ids():
    handler = SearchHandler()
    handler.handle(untagged("SEARCH", "2", "84", "882"))
    assert handler.ids == [2, 84, 882]


def test_search_empty():
    handler = SearchHandler(ids=[5])
    handler.handle(untagged("SEARCH"))
    assert handler.ids == []


def test_search_unhandled():
    with pytest.raises(UnhandledResponse):
        SearchHandler().handle(untagged("CAPABILITY", "IMAP4rev1"))


def test_search_invalid_number():
    with pytest.raises(ParseError):
        SearchHandler().handle(untagged("SEARCH", "abc"))


def test_expunge_collects_seq_nums():
    handler = ExpungeHandler()
    handler.handle(untagged("42", "EXPUNGE"))
    handler.handle(untagged("7", "EXPUNGE"))
    assert handler.seq_nums == [42, 7]


def test_expunge_not_enough_fields():
    with pytest.raises(NotEnoughFields):
        ExpungeHandler().handle(untagged("EXPUNGE"))


def test_expunge_unhandled_on_continuation():
    with pytest.raises(UnhandledResponse):
        ExpungeHandler().handle(ContinuationReq())


def test_fetch_parses_message():
    handler = FetchHandler()
    handler.handle(untagged("1", "FETCH", ["UID", "42", "FLAGS", ["\\SEEN"]]))
    assert len(handler.messages) == 1
    msg = handler.messages[0]
    assert msg.seq_num == 1
    assert msg.uid == 42
    assert msg.flags == ["\\Seen"]


def test_fetch_not_enough_fields():
    with pytest.raises(NotEnoughFields):
        FetchHandler().handle(untagged("FETCH"))


def test_fetch_unhandled():
    with pytest.raises(UnhandledResponse):
        FetchHandler().handle(untagged("1", "EXPUNGE"))


def test_list_name():
    assert ListHandler().name() == "LIST"
    assert ListHandler(subscribed=True).name() == "LSUB"


def test_list_parses_mailbox():
    handler = ListHandler()
    handler.handle(untagged("LIST", ["\\Noselect"], "/", "inbox"))
    assert len(handler.mailboxes) == 1
    mbox = handler.mailboxes[0]
    assert mbox.attributes == ["\\Noselect"]
    assert mbox.delimiter == "/"
    assert mbox.name == "INBOX"


def test_lsub_ignores_list():
    with pytest.raises(UnhandledResponse):
        ListHandler(subscribed=True).handle(untagged("LIST", [], "/", "INBOX"))


def test_list_invalid_fields():
    with pytest.raises(ParseError):
        ListHandler().handle(untagged("LIST", [], "/"))


def test_status_parses_mailbox():
    handler = StatusHandler()
    handler.handle(untagged("STATUS", "inbox", ["MESSAGES", "42", "UIDNEXT", "7"]))
    mbox = handler.mailbox
    assert mbox.name == "INBOX"
    assert mbox.messages == 42
    assert mbox.uid_next == 7
    assert set(mbox.items) == {StatusItem.MESSAGES, StatusItem.UIDNEXT}


def test_status_not_enough_fields():
    with pytest.raises(NotEnoughFields):
        StatusHandler().handle(untagged("STATUS", "INBOX"))


def test_status_requires_list():
    with pytest.raises(ParseError):
        StatusHandler().handle(untagged("STATUS", "INBOX", "MESSAGES"))


class EchoMechanism:
    def __init__(self):
        self.challenges = []

    def next(self, challenge):
        self.challenges.append(challenge)
        return b"reply:" + challenge


class FailingMechanism:
    def next(self, challenge):
        raise RuntimeError("mechanism failed")


def test_authenticate_answers_challenge():
    mech = EchoMechanism()
    handler = AuthenticateHandler(mechanism=mech)
    handler.handle(ContinuationReq(info=base64.b64encode(b"challenge").decode()))
    assert mech.challenges == [b"challenge"]
    assert len(handler.replies) == 1
    line = handler.replies[0]
    assert line.endswith(b"\r\n")
    assert base64.b64decode(line[:-2]) == b"reply:challenge"


def test_authenticate_sends_initial_response():
    mech = EchoMechanism()
    handler = AuthenticateHandler(mechanism=mech, initial_response=b"initial")
    handler.handle(ContinuationReq(info=""))
    assert handler.initial_response is None
    assert mech.challenges == []
    assert base64.b64decode(handler.replies[0][:-2]) == b"initial"


def test_authenticate_invalid_base64_cancels():
    handler = AuthenticateHandler(mechanism=EchoMechanism())
    with pytest.raises(ValueError):
        handler.handle(ContinuationReq(info="!!!"))
    assert handler.replies == [b"*\r\n"]


def test_authenticate_mechanism_error_cancels():
    handler = AuthenticateHandler(mechanism=FailingMechanism())
    with pytest.raises(RuntimeError):
        handler.handle(ContinuationReq(info=base64.b64encode(b"x").decode()))
    assert handler.replies == [b"*\r\n"]


def test_authenticate_unhandled():
    handler = AuthenticateHandler(mechanism=EchoMechanism())
    with pytest.raises(UnhandledResponse):
        handler.handle(untagged("CAPABILITY"))
    assert handler.replies == []