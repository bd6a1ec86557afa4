import pytest

from gemstonefs.filesystem.entries import ClassEntry, MethodEntry
from gemstonefs.filesystem.errors import UnsupportedEntryKind
from gemstonefs.filesystem.fileout import (
    find_method_source,
    method_blocks,
    parse_selector,
    SourceReader,
    tokenize,
    TokenType,
)
from gemstonefs.filesystem.queries import RemoteHelper
from gemstonefs.tests.test_filesystem.fixtures import FILEOUT


def method_entry(selector, class_name="Foo", class_oop=10):
    return MethodEntry(
        path=f"gs1:/UserGlobals/{class_name}/{selector}",
        name=selector,
        dictionary="UserGlobals",
        class_name=class_name,
        class_oop=class_oop,
    )


def test_tokenize():
    text = "\n".join(
        [
            "! ------------------- Instance methods for Foo",
            "set compile_env: 0",
            "category: 'accessing'",
            "method: Foo",
            "foo",
            "! not a section inside a block",
            "%",
        ]
    )

    tokens = list(tokenize(text))

    assert [t.type for t in tokens] == [
        TokenType.SECTION,
        TokenType.OTHER,
        TokenType.CATEGORY,
        TokenType.COMMAND,
        TokenType.BLOCK_LINE,
        TokenType.BLOCK_LINE,
        TokenType.TERMINATOR,
    ]

    assert tokens[0].text == "Instance methods for Foo"
    assert tokens[2].text == "accessing"
    assert tokens[5].line == 6


def test_tokenize_quoted_category():
    (token,) = tokenize("category: 'it''s complicated'")

    assert token.type == TokenType.CATEGORY
    assert token.text == "it's complicated"


def test_parse_unary_selector():
    assert parse_selector(["foo", "    ^1"]) == "foo"


def test_parse_binary_selector():
    assert parse_selector(["+ other"]) == "+"
    assert parse_selector(["<= other"]) == "<="
    assert parse_selector(["->anObject"]) == "->"


def test_parse_keyword_selector():
    assert parse_selector(["at: index put: anObject"]) == "at:put:"


def test_parse_keyword_selector_continuation():
    lines = ["at: index", "   put: anObject", "    ^super at: index put: anObject"]

    assert parse_selector(lines) == "at:put:"


def test_parse_selector_skips_leading_blank_lines():
    assert parse_selector(["", "  ", "foo"]) == "foo"


def test_parse_ambiguous_selector():
    assert parse_selector(["foo bar"]) is None
    assert parse_selector(["foo: x bar"]) is None
    assert parse_selector(["foo: x ^x"]) is None
    assert parse_selector([]) is None


def test_method_blocks_sections():
    blocks = list(method_blocks(FILEOUT))

    assert [(b.section, b.selector) for b in blocks] == [
        ("Instance methods for Foo", "foo:"),
        ("Instance methods for Foo", "foo"),
        ("Instance methods for Foo", "+"),
        ("Instance methods for Foo", "at:put:"),
    ]

    assert blocks[0].category == "accessing"
    assert blocks[3].category == "it's complicated"
    assert all(b.class_name == "Foo" for b in blocks)


def test_method_blocks_unterminated():
    text = "\n".join(
        [
            "! ------------------- Instance methods for Foo",
            "method: Foo",
            "foo",
            "    ^1",
            "%",
            "method: Foo",
            "bar",
            "    ^",
        ]
    )

    assert [b.selector for b in method_blocks(text)] == ["foo"]


def test_find_exact_selector():
    assert find_method_source(FILEOUT, "Foo", "foo") == "foo\n    ^value"
    source = find_method_source(FILEOUT, "Foo", "foo:")
    assert source == "foo: aValue\n    value := aValue"


def test_find_binary_selector():
    source = find_method_source(FILEOUT, "Foo", "+")
    assert source == "+ other\n    ^value + other value"


def test_find_ignores_class_methods():
    text = FILEOUT.replace("method: Foo\nfoo\n    ^value\n%\n", "")

    assert find_method_source(text, "Foo", "foo") is None


def test_find_other_class():
    assert find_method_source(FILEOUT, "Bar", "foo") is None


def test_find_first_match_wins():
    text = FILEOUT + "method: Foo\nfoo\n    ^nil\n%\n"

    assert find_method_source(text, "Foo", "foo") == "foo\n    ^value"


def test_read_source(session):
    session.responses[("fileOutClass:", 10)] = FILEOUT

    reader = SourceReader(RemoteHelper(session, 100), fileout_limit=10000)

    source = reader.read_source(method_entry("foo:"))
    assert source == b"foo: aValue\n    value := aValue"
    assert session.calls_of("perform") == [("perform", "fileOutClass:", (10,))]


def test_read_source_category(session):
    session.responses[("fileOutClass:", 10)] = FILEOUT

    reader = SourceReader(RemoteHelper(session, 100), fileout_limit=10000)

    entry = method_entry("+")
    reader.read_source(entry)
    assert entry.category == "arithmetic"

    missing = method_entry("baz")
    reader.read_source(missing)
    assert missing.category is None


def test_read_source_every_time(session):
    session.responses[("fileOutClass:", 10)] = FILEOUT

    reader = SourceReader(RemoteHelper(session, 100), fileout_limit=10000)

    reader.read_source(method_entry("foo"))
    reader.read_source(method_entry("foo"))

    assert len(session.calls_of("perform")) == 2


def test_read_source_placeholder(session):
    session.responses[("fileOutClass:", 10)] = FILEOUT

    reader = SourceReader(RemoteHelper(session, 100), fileout_limit=10000)

    source = reader.read_source(method_entry("baz"))

    assert source == b"We do not yet support 'Foo>>baz'!"


def test_read_source_of_directory(session):
    reader = SourceReader(RemoteHelper(session, 100), fileout_limit=10000)

    entry = ClassEntry(
        path="gs1:/UserGlobals/Foo", name="Foo", dictionary="UserGlobals", oop=10
    )

    with pytest.raises(UnsupportedEntryKind):
        reader.read_source(entry)

    assert session.calls == []
