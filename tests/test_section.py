import pytest

from imapwire.reader import ParseError
from imapwire.section import (
    BodyPartName,
    BodySectionName,
    PartSpecifier,
    parse_body_section_name,
)

SECTION_CASES = [
    ("BODY[]", BodySectionName(part=BodyPartName()), ""),
    ("RFC822", BodySectionName(part=BodyPartName()), "BODY[]"),
    ("BODY[HEADER]", BodySectionName(part=BodyPartName(specifier=PartSpecifier.HEADER)), ""),
    ("BODY.PEEK[]", BodySectionName(part=BodyPartName(), peek=True), ""),
    ("BODY[TEXT]", BodySectionName(part=BodyPartName(specifier=PartSpecifier.TEXT)), ""),
    ("RFC822.TEXT", BodySectionName(part=BodyPartName(specifier=PartSpecifier.TEXT)), "BODY[TEXT]"),
    (
        "RFC822.HEADER",
        BodySectionName(part=BodyPartName(specifier=PartSpecifier.HEADER), peek=True),
        "BODY.PEEK[HEADER]",
    ),
    ("BODY[]<0.512>", BodySectionName(part=BodyPartName(), partial=[0, 512]), ""),
    ("BODY[]<512>", BodySectionName(part=BodyPartName(), partial=[512]), ""),
    ("BODY[1.2.3]", BodySectionName(part=BodyPartName(path=[1, 2, 3])), ""),
    (
        "BODY[1.2.3.HEADER]",
        BodySectionName(part=BodyPartName(specifier=PartSpecifier.HEADER, path=[1, 2, 3])),
        "",
    ),
    (
        "BODY[5.MIME]",
        BodySectionName(part=BodyPartName(specifier=PartSpecifier.MIME, path=[5])),
        "",
    ),
    (
        "BODY[HEADER.FIELDS (From To)]",
        BodySectionName(
            part=BodyPartName(specifier=PartSpecifier.HEADER, fields=["From", "To"])
        ),
        "",
    ),
    (
        "BODY[HEADER.FIELDS.NOT (Content-Id)]",
        BodySectionName(
            part=BodyPartName(
                specifier=PartSpecifier.HEADER, fields=["Content-Id"], not_fields=True
            )
        ),
        "",
    ),
]


@pytest.mark.parametrize("raw,parsed,formatted", SECTION_CASES)
def test_parse_body_section_name(raw, parsed, formatted):
    section = parse_body_section_name(raw)
    assert section.part == parsed.part
    assert section.part.path == parsed.part.path
    assert section.part.fields == parsed.part.fields
    assert section.peek == parsed.peek
    assert section.partial == parsed.partial


@pytest.mark.parametrize("raw,parsed,formatted", SECTION_CASES)
def test_body_section_name_fetch_item(raw, parsed, formatted):
    section = BodySectionName(
        part=BodyPartName(
            specifier=parsed.part.specifier,
            path=list(parsed.part.path),
            fields=list(parsed.part.fields),
            not_fields=parsed.part.not_fields,
        ),
        peek=parsed.peek,
        partial=list(parsed.partial),
    )
    item = section.fetch_item()
    assert item == (formatted or raw)
    reparsed = parse_body_section_name(item)
    assert reparsed.part == section.part
    assert reparsed.peek == section.peek
    assert reparsed.partial == section.partial


@pytest.mark.parametrize("raw,parsed,formatted", SECTION_CASES)
def test_parsed_section_keeps_original_name(raw, parsed, formatted):
    assert parse_body_section_name(raw).fetch_item() == raw


@pytest.mark.parametrize(
    "raw,whole,partial",
    [
        ("BODY[]", b"Hello World!", b"Hello World!"),
        ("BODY[]<6.5>", b"Hello World!", b"World"),
        ("BODY[]<6.1000>", b"Hello World!", b"World!"),
        ("BODY[]<0.1>", b"Hello World!", b"H"),
        ("BODY[]<1000.2000>", b"Hello World!", b""),
    ],
)
def test_extract_partial(raw, whole, partial):
    assert parse_body_section_name(raw).extract_partial(whole) == partial


@pytest.mark.parametrize(
    "raw",
    [
        "BODY",
        "BODY[",
        "FOO[]",
        "BODY]x[",
        "BODY[0]",
        "BODY[x]",
        "BODY[]<abc>",
        "BODY[]0.5",
        "BODY[]<1.x>",
        "BODY[]<>",
        "BODY[HEADER.FIELDS x]",
    ],
)
def test_parse_body_section_name_errors(raw):
    with pytest.raises(ParseError):
        parse_body_section_name(raw)


def test_resp_drops_peek_and_length():
    section = parse_body_section_name("BODY.PEEK[1.TEXT]<10.20>")
    resp = section.resp()
    assert resp.peek is False
    assert resp.partial == [10]
    assert resp.fetch_item() == "BODY[1.TEXT]<10>"
    assert section.peek is True


def test_section_equality_ignores_field_case():
    a = parse_body_section_name("BODY[HEADER.FIELDS (From To)]")
    b = parse_body_section_name("BODY[HEADER.FIELDS (to FROM)]")
    assert a == b
    assert hash(a) == hash(b)
    assert a != parse_body_section_name("BODY[HEADER.FIELDS.NOT (From To)]")


def test_section_equality_compares_partial():
    assert parse_body_section_name("BODY[]<0.5>") != parse_body_section_name("BODY[]<0.6>")
    assert parse_body_section_name("BODY[]<0>") == parse_body_section_name("BODY[]<0>")


def test_body_part_name_parse_from_fields():
    part = BodyPartName()
    part.parse(["2.header.fields", ["Subject", 42]])
    assert part.path == [2]
    assert part.specifier is PartSpecifier.HEADER
    assert part.fields == ["Subject"]
    assert str(part) == "2.HEADER.FIELDS (Subject)"


def test_body_part_name_parse_rejects_non_string():
    with pytest.raises(ParseError):
        BodyPartName().parse([None])