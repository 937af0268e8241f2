"""
SPK Instruction Encoder
=======================

This module encodes code-segment lines into the instruction stream. It is
the pass 2 worker of the assembler: for each line it handles directives,
records labels, and encodes instructions.

Dispatch
--------
The first token of an instruction line is looked up in the closed Mnemonic
enum. The mnemonic's InstructionInfo names its OperandKind, and each
OperandKind has exactly one handler:

    NONE      dup, pop, flip, swap, out, inp, halt, negate, sign
    PUSH      push inline <expr> | push <index>
    BINARY    binary '<op>'
    VARIABLE  create_var <name>, get_var <name>
    ADDRESS   jmp, je, jne, jl, jg, jle, jge, jln, jgn, jev, jue, loop, call
    RESERVED  chunks, curch, chusz

Address Operands
----------------
An operand starting with a digit is a literal stream offset. Anything else
is a label. Labels already defined are encoded directly; forward references
are encoded as 0 and patched by the label table after pass 2.
"""

from difflib import get_close_matches
from typing import Callable
import logging

from spk_sdk.errors import (
    AssemblySyntaxError,
    DirectiveError,
    MissingSpecificationError,
    UnknownMnemonicError,
)
from spk_sdk.assembler.context import (
    BuildTarget,
    CompilationContext,
    Fixup,
    Segment,
)
from spk_sdk.assembler.data import check_range, parse_index
from spk_sdk.assembler.expressions import compile_immediate_expression
from spk_sdk.assembler.lexer import SourceLine, DATA_DIRECTIVE, BUILD_DIRECTIVE
from spk_sdk.vm.instructions import (
    InstructionInfo,
    Mnemonic,
    MNEMONICS,
    OperandKind,
    get_binary_opcode,
    get_instruction_info,
)

logger = logging.getLogger(__name__)

PUSH_INLINE = "inline"


class InstructionEncoder:
    """
    Encodes one code-segment line at a time into a CompilationContext.

    The encoder itself is stateless; everything it reads or writes lives in
    the context passed to encode_line(), so one encoder can serve any number
    of compilations.

    Usage:
        encoder = InstructionEncoder()
        for line in split_lines(source):
            encoder.encode_line(ctx, line)
    """

    def __init__(self) -> None:
        self._handlers: dict[
            OperandKind,
            Callable[[CompilationContext, SourceLine, Mnemonic, InstructionInfo], None],
        ] = {
            OperandKind.NONE: self._emit_inherent,
            OperandKind.PUSH: self._emit_push,
            OperandKind.BINARY: self._emit_binary,
            OperandKind.VARIABLE: self._emit_variable,
            OperandKind.ADDRESS: self._emit_address,
            OperandKind.RESERVED: self._emit_reserved,
        }
        missing = set(OperandKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"no encoder for operand kinds: {sorted(map(str, missing))}")

    # =========================================================================
    # Line Dispatch
    # =========================================================================

    def encode_line(self, ctx: CompilationContext, line: SourceLine) -> None:
        """
        Process one line of the code segment.

        Raises:
            AssemblerError: If the line cannot be encoded
        """
        head = line.head

        if head == DATA_DIRECTIVE:
            ctx.state.segment = Segment.DATA
            logger.debug(f"Line {line.number}: switched to data segment")
            return

        if head == BUILD_DIRECTIVE:
            self._set_build_target(ctx, line)
            return

        if line.is_label:
            self._define_label(ctx, line)
            return

        mnemonic = Mnemonic.lookup(head)
        if mnemonic is None:
            self._unknown_mnemonic(ctx, line)
            return

        info = get_instruction_info(mnemonic)
        self._handlers[info.kind](ctx, line, mnemonic, info)

    # =========================================================================
    # Directives and Labels
    # =========================================================================

    def _set_build_target(self, ctx: CompilationContext, line: SourceLine) -> None:
        """Handle `#build <type>`."""
        name = self._require_operand(ctx, line, "build type")
        target = BuildTarget.from_name(name)
        if target is None:
            raise DirectiveError(
                "invalid build type specified",
                location=ctx.location(line.number),
                hint=f"supported build types: {BuildTarget.SPS.value}",
                source_line=line.text,
            )
        ctx.state.build_target = target
        logger.debug(f"Line {line.number}: build target {target.value}")

    def _define_label(self, ctx: CompilationContext, line: SourceLine) -> None:
        """Bind `name:` to the current stream length."""
        name = line.head[:-1]
        if not name:
            raise AssemblySyntaxError(
                "empty label name",
                location=ctx.location(line.number),
                source_line=line.text,
            )
        ctx.labels.record(
            name, ctx.writer.size, ctx.location(line.number), line.text
        )
        if len(line.tokens) > 1:
            logger.debug(
                f"Line {line.number}: ignoring tokens after label '{name}': "
                f"{' '.join(line.tokens[1:])}"
            )

    def _unknown_mnemonic(self, ctx: CompilationContext, line: SourceLine) -> None:
        """Reject (strict) or skip an unrecognized first token."""
        similar = get_close_matches(line.head.lower(), sorted(MNEMONICS))
        if ctx.strict:
            raise UnknownMnemonicError(
                line.head,
                location=ctx.location(line.number),
                source_line=line.text,
                similar_mnemonics=similar,
            )
        logger.warning(
            f"{ctx.location(line.number)}: unknown mnemonic '{line.head}' ignored"
        )

    # =========================================================================
    # Operand Kind Handlers
    # =========================================================================

    def _emit_inherent(self, ctx: CompilationContext, line: SourceLine,
                       mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """Emit an instruction without operand."""
        ctx.writer.write_instruction(info.opcode, line.number)

    def _emit_push(self, ctx: CompilationContext, line: SourceLine,
                   mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """
        Emit `push inline <expr>` or `push <index>`.

        The inline form appends its literal to the constant pool and pushes
        the new entry's index.
        """
        operand = self._require_operand(ctx, line, "constant index or 'inline'")

        if operand.lower() == PUSH_INLINE:
            value = compile_immediate_expression(
                line.tokens, 2, line.number, ctx.filename, line.text
            )
            index = ctx.writer.add_constant(value)
            check_range(index, ctx, line, "constant index")
        else:
            index = parse_index(operand, ctx, line, "constant index")

        ctx.writer.write_instruction(info.opcode, line.number)
        ctx.writer.write_int(index)

    def _emit_binary(self, ctx: CompilationContext, line: SourceLine,
                     mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """Emit `binary '<op>'`; the operator selects the opcode."""
        operand = self._require_operand(ctx, line, "operator")
        operator = operand.replace("'", "")
        opcode = get_binary_opcode(operator) if len(operator) == 1 else None
        if opcode is None:
            raise AssemblySyntaxError(
                f"unknown binary operator {operand}",
                location=ctx.location(line.number),
                hint="supported operators: '+' '-' '*' '/' '%' '^'",
                source_line=line.text,
            )
        ctx.writer.write_instruction(opcode, line.number)

    def _emit_variable(self, ctx: CompilationContext, line: SourceLine,
                       mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """Emit create_var/get_var with the name written inline."""
        name = self._require_operand(ctx, line, "variable name")
        try:
            name.encode("utf-8")
        except UnicodeEncodeError:
            raise AssemblySyntaxError(
                f"variable name {name!r} is not valid UTF-8",
                location=ctx.location(line.number),
                source_line=line.text,
            ) from None
        ctx.writer.write_instruction(info.opcode, line.number)
        ctx.writer.write_raw_constant(name)

    def _emit_address(self, ctx: CompilationContext, line: SourceLine,
                      mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """Emit a jump, loop or call to a literal address or a label."""
        target = self._require_operand(ctx, line, "address or label")

        if target[0].isdigit():
            address = parse_index(target, ctx, line, "address")
            ctx.writer.write_instruction(info.opcode, line.number)
            ctx.writer.write_int(address)
            return

        address = ctx.labels.lookup(target)
        ctx.writer.write_instruction(info.opcode, line.number)
        if address is not None:
            ctx.writer.write_int(address)
        else:
            operand_address = ctx.writer.write_int(0)
            ctx.labels.add_fixup(Fixup(
                operand_address=operand_address,
                label=target,
                location=ctx.location(line.number),
                source_line=line.text,
            ))

    def _emit_reserved(self, ctx: CompilationContext, line: SourceLine,
                       mnemonic: Mnemonic, info: InstructionInfo) -> None:
        """Reserved mnemonics have no encoding yet."""
        raise MissingSpecificationError(
            line.head,
            location=ctx.location(line.number),
            source_line=line.text,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_operand(self, ctx: CompilationContext, line: SourceLine,
                         what: str) -> str:
        """Return the first operand or raise if the line has none."""
        operand = line.operand(1)
        if operand is None:
            raise AssemblySyntaxError(
                f"'{line.head}' requires an operand ({what})",
                location=ctx.location(line.number),
                source_line=line.text,
            )
        return operand
