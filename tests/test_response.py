import pytest

from imapwire.reader import RawString
from imapwire.response import (
    ContinuationReq,
    DataResp,
    new_untagged_resp,
    parse_named_resp,
)


@pytest.mark.parametrize(
    "fields, name, expected",
    [
        (["CAPABILITY", "IMAP4rev1"], "CAPABILITY", ["IMAP4rev1"]),
        (["42", "EXISTS"], "EXISTS", ["42"]),
        (["42", "FETCH", "blah"], "FETCH", ["42", "blah"]),
    ],
)
def test_parse_named_resp(fields, name, expected):
    assert parse_named_resp(DataResp(fields=fields)) == (name, expected)


def test_parse_named_resp_uppercases_name():
    assert parse_named_resp(DataResp(fields=["capability", "IMAP4rev1"])) == (
        "CAPABILITY",
        ["IMAP4rev1"],
    )


def test_parse_named_resp_rejects_continuation():
    assert parse_named_resp(ContinuationReq(info="send literal")) is None


def test_parse_named_resp_rejects_empty_fields():
    assert parse_named_resp(DataResp(tag="*", fields=[])) is None


def test_parse_named_resp_rejects_non_string_name():
    assert parse_named_resp(DataResp(fields=[["a"], "b"])) is None


def test_new_untagged_resp():
    fields = [RawString("76"), RawString("FETCH"), [RawString("UID"), 783]]
    resp = new_untagged_resp(fields)
    assert resp.tag == "*"
    assert resp.fields == fields


def test_new_untagged_resp_is_named():
    resp = new_untagged_resp(["76", "FETCH", ["UID", "783"]])
    assert parse_named_resp(resp) == ("FETCH", ["76", ["UID", "783"]])


def test_continuation_default_info():
    assert ContinuationReq().info == ""