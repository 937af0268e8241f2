"""
Data Section Compiler
=====================

Builds the constant pool from the lines following the `.data:` header.

Each data line has the form:

    <index> <literal...>

where <index> is a non-negative integer that fits a 4-byte operand and
<literal> is an immediate expression (see expressions.py). Indices normally
count up from 0:

    .data:
    0 1.0
    1 "hello"
    2 42

Placement Rules
---------------
- The first literal of an empty pool is appended whatever its index.
- index == pool size: the literal is appended.
- index < pool size: the existing slot is overwritten.
- index > pool size: the gap is padded with PLACEHOLDER constants, then the
  literal is appended at index. A warning is logged, since a gap the
  virtual machine could read is an authoring mistake.
"""

import logging

from spk_sdk.errors import AssemblySyntaxError
from spk_sdk.assembler.context import CompilationContext
from spk_sdk.assembler.expressions import compile_immediate_expression
from spk_sdk.assembler.lexer import SourceLine
from spk_sdk.vm.bytecode import PLACEHOLDER
from spk_sdk.vm.intcodec import INT_MAX

logger = logging.getLogger(__name__)


def parse_index(token: str, ctx: CompilationContext, line: SourceLine, what: str) -> int:
    """
    Parse a non-negative decimal integer operand.

    Raises:
        AssemblySyntaxError: If token is not a non-negative integer or
            does not fit a 4-byte operand
    """
    if not (token.isascii() and token.isdigit()):
        raise AssemblySyntaxError(
            f"invalid {what} '{token}': expected a non-negative integer",
            location=ctx.location(line.number),
            source_line=line.text,
        )
    value = int(token)
    check_range(value, ctx, line, what)
    return value


def check_range(value: int, ctx: CompilationContext, line: SourceLine, what: str) -> None:
    """Reject integers that do not fit a 4-byte operand."""
    if value > INT_MAX:
        raise AssemblySyntaxError(
            f"{what} {value} does not fit in a 4-byte operand",
            location=ctx.location(line.number),
            source_line=line.text,
        )


def compile_data(ctx: CompilationContext, line: SourceLine) -> None:
    """
    Compile one data line into the constant pool.

    Raises:
        AssemblySyntaxError: If the index is malformed
        ExpressionError: If the literal is malformed
    """
    index = parse_index(line.head, ctx, line, "constant index")
    value = compile_immediate_expression(
        line.tokens, 1, line.number, ctx.filename, line.text
    )
    constants = ctx.writer.constants
    size = len(constants)

    if size == 0 or index == size:
        constants.append(value)
    elif index < size:
        constants[index] = value
    else:
        logger.warning(
            f"{ctx.location(line.number)}: constant index {index} leaves "
            f"{index - size} unfilled slot(s) after index {size - 1}"
        )
        constants.extend([PLACEHOLDER] * (index - size))
        constants.append(value)
