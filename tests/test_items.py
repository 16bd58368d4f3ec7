import pytest

from imapwire.items import (
    FETCH_ALL,
    FETCH_BODY,
    FETCH_FAST,
    FETCH_FULL,
    FETCH_UID,
    FlagsOp,
    StatusItem,
    expand_fetch_item,
    format_flags_op,
    parse_flags_op,
)


def test_expand_macros():
    assert expand_fetch_item(FETCH_ALL) == ["FLAGS", "INTERNALDATE", "RFC822.SIZE", "ENVELOPE"]
    assert expand_fetch_item(FETCH_FAST) == ["FLAGS", "INTERNALDATE", "RFC822.SIZE"]
    assert expand_fetch_item(FETCH_FULL)[-1] == FETCH_BODY


def test_expand_plain_item():
    assert expand_fetch_item(FETCH_UID) == [FETCH_UID]
    assert expand_fetch_item("BODY[TEXT]") == ["BODY[TEXT]"]


def test_format_flags_op():
    assert format_flags_op(FlagsOp.ADD, True) == "+FLAGS.SILENT"
    assert format_flags_op(FlagsOp.SET, False) == "FLAGS"


@pytest.mark.parametrize("op", list(FlagsOp))
@pytest.mark.parametrize("silent", [True, False])
def test_flags_op_round_trip(op, silent):
    assert parse_flags_op(format_flags_op(op, silent)) == (op, silent)


@pytest.mark.parametrize("item", ["BODY", "FLAGS.LOUD", ".SILENT"])
def test_parse_flags_op_invalid(item):
    with pytest.raises(ValueError):
        parse_flags_op(item)


def test_status_item_values():
    assert StatusItem("UIDNEXT") is StatusItem.UIDNEXT