# imapwire

A pure-Python library for the IMAP4rev1 (RFC 3501) wire format. It reads the
syntax elements of IMAP traffic and converts between parsed field lists and
Python objects. It needs nothing outside the standard library.

## Modules

### `imapwire.reader`

- `Reader(stream, continues=None, max_literal_size=0)` reads from a binary stream,
  `bytes` or `str`. Its methods are:
  - `read_sp`, `read_crlf`, `read_atom` (the atom `NIL` gives `None`)
  - `read_quoted_string`, `read_literal`
  - `read_fields`, `read_list`, `read_line`
  - `read_resp_code`, which returns the upper-cased code and its arguments
  - `read_info`
- `continues`: if given, it is called before the data of each synchronizing literal
  (`{n}`). It is not called for non-synchronizing literals (`{n+}`).
- `max_literal_size`: if above zero, longer literals are refused.
- `Literal` holds the bytes of a literal. `len()` gives the bytes not yet read, and
  `read(size)` consumes them.
- `RawString` is a `str` subclass that marks a value to be sent unquoted.
- Field conversion:
  - `parse_number` gives an unsigned 32-bit integer.
  - `parse_string` accepts strings and literals.
  - `parse_string_list` converts a list of strings.
- Malformed input raises `ParseError`, a `ValueError`. Input that ends too early
  raises `EOFError`.

### `imapwire.items`

- `StatusItem` enumerates the STATUS items.
- `expand_fetch_item` expands the `ALL`, `FAST` and `FULL` macros. Any other item
  expands to itself.
- `FlagsOp` enumerates the flag operations `FLAGS`, `+FLAGS` and `-FLAGS`.
- `format_flags_op(op, silent)` builds the STORE item string.
- `parse_flags_op(item)` parses a STORE item string. It raises `ValueError` for an
  unsupported operation.

### `imapwire.dates`

- `parse_date_time` and `format_date_time` handle IMAP date-time values
  (`2-Nov-2009 23:00:00 -0600`).
- `parse_date` and `format_date` handle IMAP dates. Parsed dates are midnight UTC.
- `parse_message_date_time` accepts the RFC 5322 date layouts found in envelopes.
  `format_envelope_date_time` writes them.
- Parse functions raise `ValueError` on bad input.

### `imapwire.mailbox`

- `MailboxInfo`: a LIST/LSUB entry.
  - `parse` decodes the name from modified UTF-7.
  - `format` encodes it.
  - `match(reference, pattern)` applies LIST matching with the `*` and `%` wildcards.
- `MailboxStatus` holds mailbox counters. `parse` and `format` work on alternating
  key/value lists.
- `new_mailbox_status(name, items)` creates a status with the given items.
- `canonical_mailbox_name` treats `INBOX` case-insensitively.
- `format_mailbox_name` marks `INBOX` to be sent unquoted.

### `imapwire.section`

- `parse_body_section_name` parses names such as
  `BODY.PEEK[HEADER.FIELDS (From To)]<0.512>`. It also accepts `RFC822`,
  `RFC822.HEADER` and `RFC822.TEXT`.
- The result is a `BodySectionName` holding:
  - a `BodyPartName`
  - a `peek` flag
  - a `partial` range
- `BodySectionName` methods:
  - `fetch_item()` gives the item text.
  - `resp()` gives the form used in responses.
  - `extract_partial(data)` slices bytes to the requested range.

### `imapwire.message`

- `Message`, `Envelope`, `Address` and `BodyStructure` each have `parse(fields)` and
  `format()`. These convert between FETCH field lists and objects.
- `Message.get_body(section)` looks up a fetched body section.
- `new_message(seq_num, items)` creates an empty message for the requested items.
  `Message.format()` keeps the requested item order.
- Helper functions:
  - `canonical_flag`
  - `parse_param_list`, `format_param_list`
  - `parse_address_list`, `format_address_list`
- Header values such as subjects, personal names and parameters are decoded from
  RFC 2047 encoded words. When formatted, they are Q-encoded as UTF-8 where needed.

### `imapwire.response`

- `DataResp` and `ContinuationReq` are the data and continuation responses.
- `new_untagged_resp(fields)` creates an untagged data response.
- `parse_named_resp(resp)` returns `(name, fields)` or `None`. It handles
  number-first responses such as `42 EXISTS` and `42 FETCH (...)`.

### `imapwire.handlers`

Each handler has a `handle(resp)` method. It takes in the responses meant for it and
raises `UnhandledResponse` for any other response. A response that lacks required
fields raises `NotEnoughFields`.

| Handler | Responses | Result |
| --- | --- | --- |
| `SearchHandler` | SEARCH | `ids` |
| `ExpungeHandler` | EXPUNGE | appends to `seq_nums` |
| `FetchHandler` | FETCH | appends `Message` objects to `messages` |
| `ListHandler` | LIST, or LSUB when `subscribed` is true | appends to `mailboxes` |
| `StatusHandler` | STATUS | fills `mailbox` |
| `AuthenticateHandler` | AUTHENTICATE continuation requests | appends base64 reply lines to `replies` |

`AuthenticateHandler` answers each challenge through a SASL mechanism object that has
a `next(challenge)` method. If the challenge or the mechanism fails, it sends `*` to
cancel.

## What it does not do

This is a parsing library, not an IMAP client or server:

- It opens no connections and keeps no session state.
- It does not turn field lists back into bytes on the wire.
- It does not read tagged status responses (`OK`, `NO`, `BAD` and the like) into
  objects.
- It has no command classes.

These are left to the program that uses it.

## Installing

```
pip install imapwire
```

To run the tests:

```
pip install "imapwire[test]"
pytest
```

## Example

```python
import io
from imapwire.reader import Reader
from imapwire.section import parse_body_section_name
from imapwire.mailbox import MailboxInfo

reader = Reader(io.BytesIO(b'(field1 "field2" {6}\r\nfield3 field4)'))
fields = reader.read_list()  # ["field1", "field2", Literal(b"field3"), "field4"]

section = parse_body_section_name("BODY[]<6.5>")
print(section.extract_partial(b"Hello World!"))  # b"World"

info = MailboxInfo(name="Work/Reports", delimiter="/")
print(info.match("", "Work/%"))  # True
```