"""
Immediate Expression Parser
===========================

Parses the literal operand of `push inline` and of .data lines into a
constant pool value.

Supported Forms
---------------
Numbers (always stored as float):
    42          -> 42.0
    -3.5        -> -3.5
    .5          -> 0.5
    1e3         -> 1000.0

Strings (double quotes, may span several tokens):
    "hello world"   -> hello world

A string literal runs to the end of the line. The tokens are re-joined with
single spaces and every double quote is dropped, so runs of whitespace
inside a string collapse to one space.
"""

import re
from typing import Optional, Sequence

from spk_sdk.errors import ExpressionError, SourceLocation
from spk_sdk.vm.bytecode import Constant

# Lexically valid decimal number
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(token: str) -> Optional[float]:
    """Return the float value of a decimal number token, or None."""
    if NUMBER_PATTERN.fullmatch(token) is None:
        return None
    return float(token)


def compile_immediate_expression(
    tokens: Sequence[str],
    offset: int,
    line: int,
    filename: str = "<input>",
    source_line: Optional[str] = None,
) -> Constant:
    """
    Parse the immediate expression starting at tokens[offset].

    Args:
        tokens: Whitespace-split tokens of the source line
        offset: Index of the expression's first token
        line: Source line number, for errors
        filename: Source name, for errors
        source_line: Source text, for errors

    Returns:
        A float for numeric literals, a str for quoted literals

    Raises:
        ExpressionError: If the tokens form neither a number nor a string
    """
    if offset < len(tokens):
        first = tokens[offset]

        number = parse_number(first)
        if number is not None:
            return number

        if first.startswith('"'):
            return " ".join(tokens[offset:]).replace('"', "")

    raise ExpressionError(
        "malformed inline expression",
        location=SourceLocation(filename, line),
        hint='expected a decimal number or a "quoted string"',
        source_line=source_line,
    )
