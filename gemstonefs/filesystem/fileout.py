"""
Module that carves the source of a single method out of a class file-out.

GemStone has no query for the source of one method that fits the file system's query
protocol, so reading a method file files out its entire class in topaz format:

    ! ------------------- Class definition for Foo
    expectvalue /Class
    doit
    Object subclass: 'Foo' ...
    %
    ! ------------------- Instance methods for Foo
    set compile_env: 0
    category: 'accessing'
    method: Foo
    bar: aBar baz: aBaz
        ^aBar + aBaz
    %

The text is tokenized line by line. Section markers and commands are only recognized
outside of blocks, and a block (doit, run, printit, method:, classmethod:) runs up
to the next line that consists of just a "%". The selector of a method block is parsed
from its message pattern, and anything that isn't clearly a unary, binary or keyword
pattern is treated as not matching rather than guessed at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import auto, Enum
import re
from typing import Iterator, List, Optional

from gemstonefs.constants import UNSUPPORTED_SOURCE
from gemstonefs.filesystem.entries import Entry, MethodEntry
from gemstonefs.filesystem.errors import UnsupportedEntryKind
from gemstonefs.filesystem.queries import RemoteHelper
from gemstonefs.logger import log

BLOCK_TERMINATOR = "%"
BLOCK_COMMANDS = ("doit", "run", "printit", "method:", "classmethod:")

SECTION_PATTERN = re.compile(r"^!\s*-{3,}\s*(.*?)\s*$")
CATEGORY_PATTERN = re.compile(r"^category:\s*'((?:[^']|'')*)'\s*$")

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
UNARY_PATTERN = re.compile(IDENTIFIER)
BINARY_PATTERN = re.compile(rf"([-!%&*+,/<=>?@\\~|]+)\s*{IDENTIFIER}")
KEYWORD_PATTERN = re.compile(rf"(?:{IDENTIFIER}:\s*{IDENTIFIER}\s*)+")
KEYWORD_PART = re.compile(rf"({IDENTIFIER}:)\s*{IDENTIFIER}")


def instance_section(class_name: str) -> str:
    """Return the title of the section with the instance methods of a class."""
    return f"Instance methods for {class_name}"


class TokenType(Enum):
    """Types of lines in a file-out."""

    SECTION = auto()
    CATEGORY = auto()
    COMMAND = auto()
    BLOCK_LINE = auto()
    TERMINATOR = auto()
    OTHER = auto()


@dataclass
class Token:
    """A classified line of a file-out, with the relevant part of its text."""

    type: TokenType
    text: str
    line: int


def tokenize(text: str) -> Iterator[Token]:
    """Classify the lines of a file-out."""
    in_block = False

    for number, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        command = stripped.split(None, 1)[0] if stripped else ""

        section = SECTION_PATTERN.match(stripped)
        category = CATEGORY_PATTERN.match(stripped)

        if stripped == BLOCK_TERMINATOR:
            in_block = False
            yield Token(TokenType.TERMINATOR, stripped, number)
        elif in_block:
            yield Token(TokenType.BLOCK_LINE, line, number)
        elif section:
            yield Token(TokenType.SECTION, section.group(1), number)
        elif category:
            name = category.group(1).replace("''", "'")
            yield Token(TokenType.CATEGORY, name, number)
        elif command in BLOCK_COMMANDS:
            in_block = True
            yield Token(TokenType.COMMAND, stripped, number)
        else:
            yield Token(TokenType.OTHER, stripped, number)


def parse_selector(lines: List[str]) -> Optional[str]:
    """
    Determine the selector from the message pattern at the start of a method.

    Long keyword patterns may continue on the following lines, as long as those lines
    consist solely of keyword and argument pairs. Returns None if the pattern is not
    unambiguously unary, binary or keyword.
    """
    pattern_lines = [line.strip() for line in lines]

    while pattern_lines and not pattern_lines[0]:
        pattern_lines.pop(0)

    if not pattern_lines:
        return None

    first = pattern_lines[0]

    if UNARY_PATTERN.fullmatch(first):
        return first

    binary = BINARY_PATTERN.fullmatch(first)
    if binary:
        return binary.group(1)

    if not KEYWORD_PATTERN.fullmatch(first):
        return None

    keywords = KEYWORD_PART.findall(first)

    for continuation in pattern_lines[1:]:
        if not KEYWORD_PATTERN.fullmatch(continuation):
            break
        keywords += KEYWORD_PART.findall(continuation)

    return "".join(keywords)


@dataclass
class MethodBlock:
    """The block of a method definition in a file-out."""

    section: Optional[str]
    class_name: Optional[str]
    category: Optional[str]
    lines: List[str] = field(default_factory=list)

    @property
    def selector(self) -> Optional[str]:
        return parse_selector(self.lines)

    @property
    def source(self) -> str:
        """Return the method source, starting with its message pattern."""
        return "\n".join(self.lines).strip()


def method_blocks(text: str) -> Iterator[MethodBlock]:
    """
    Yield the instance method blocks of a file-out in order of appearance.

    A block that is still open at the end of the text was cut off (e.g. by the response
    size ceiling) and is not yielded.
    """
    section: Optional[str] = None
    category: Optional[str] = None
    block: Optional[MethodBlock] = None

    for token in tokenize(text):
        if token.type == TokenType.SECTION:
            section = token.text
            category = None
        elif token.type == TokenType.CATEGORY:
            category = token.text
        elif token.type == TokenType.COMMAND:
            command, *argument = token.text.split(None, 1)

            if command == "method:":
                class_name = argument[0].strip() if argument else None
                block = MethodBlock(section, class_name, category)
            else:
                block = None
        elif token.type == TokenType.BLOCK_LINE:
            if block is not None:
                block.lines.append(token.text)
        elif token.type == TokenType.TERMINATOR:
            if block is not None:
                yield block
            block = None


def find_method_block(
    text: str, class_name: str, selector: str
) -> Optional[MethodBlock]:
    """Return the block of an instance method in a file-out, or None if not found."""
    section = instance_section(class_name)

    for block in method_blocks(text):
        if block.section != section or block.class_name != class_name:
            continue

        if block.selector == selector:
            return block

    return None


def find_method_source(text: str, class_name: str, selector: str) -> Optional[str]:
    block = find_method_block(text, class_name, selector)
    return block.source if block else None


class SourceReader:
    """
    Reconstructs the source of method entries from file-outs of their classes.

    The source is not cached: every read files out the class again, so a read after a
    write always reflects the remote state. Only the category of the method is kept on
    its entry.
    """

    def __init__(self, helper: RemoteHelper, fileout_limit: int):
        """Instantiate a reader that files out classes with the helper."""
        self._helper = helper
        self._fileout_limit = fileout_limit

    def read_source(self, entry: Entry) -> bytes:
        """Return the source of a method, or a placeholder if it can't be found."""
        if not isinstance(entry, MethodEntry):
            raise UnsupportedEntryKind(f"{entry.path} is not a method")

        fileout = self._helper.perform(
            "fileOutClass:", [entry.class_oop], self._fileout_limit
        )

        block = find_method_block(fileout, entry.class_name, entry.selector)

        if block is None:
            log.info(f"no source for {entry.class_name}>>{entry.selector} in file-out")

            placeholder = UNSUPPORTED_SOURCE.format(
                class_name=entry.class_name, selector=entry.selector
            )
            return placeholder.encode()

        # Saving the method compiles it back into the same category
        entry.category = block.category

        return block.source.encode()
