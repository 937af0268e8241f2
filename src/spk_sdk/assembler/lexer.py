"""
SPK Source Lexer
================

SPK assembly is line oriented. Each line is trimmed and split on whitespace;
the first token decides what the line is:

    #build sps          directive
    .data               directive
    .data:              data segment header
    loop_start:         label definition
    push inline 3.14    instruction
    0 "hello"           data line (after .data:)

There is no comment syntax. Blank lines are skipped.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

# Header line separating the code segment from the data segment
DATA_HEADER = ".data:"

DATA_DIRECTIVE = ".data"
BUILD_DIRECTIVE = "#build"


@dataclass(frozen=True)
class SourceLine:
    """
    One non-blank line of source.

    Attributes:
        number: 1-based line number in the source text
        text: The trimmed line
        tokens: Whitespace-delimited tokens of text
    """
    number: int
    text: str
    tokens: tuple[str, ...]

    @property
    def head(self) -> str:
        """First token (directive, label or mnemonic)."""
        return self.tokens[0]

    def operand(self, index: int = 1) -> Optional[str]:
        """Return the token at index, or None if the line is too short."""
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    @property
    def is_data_header(self) -> bool:
        return self.text == DATA_HEADER

    @property
    def is_label(self) -> bool:
        return self.head.endswith(":")


def split_lines(source: str) -> Iterator[SourceLine]:
    """
    Yield the non-blank lines of source with their line numbers.

    Line numbers count every physical line, blank ones included, so they
    match what an editor shows.
    """
    for number, raw in enumerate(source.split("\n"), start=1):
        text = raw.strip()
        if not text:
            continue
        yield SourceLine(number, text, tuple(text.split()))
