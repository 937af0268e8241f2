"""
SPK Assembler - Main Interface
==============================

This module provides the main Assembler class, which is the primary interface
for assembling SPK source code. It runs the two assembly passes and produces
an immutable Bytecode for the SPK virtual machine.

Example Usage
-------------
>>> from spk_sdk.assembler import Assembler
>>>
>>> asm = Assembler()
>>> bytecode = asm.assemble_string('''
... #build sps
... push 0
... out
... halt
... .data:
... 0 "Hello, world"
... ''')
>>> print(f"Generated {len(bytecode.code)} bytes")
>>> asm.write_bytecode("hello.spkb")

Assembly Process
----------------
Pass 1 (Constant Pool)
    - Skip everything up to the `.data:` header
    - Compile every following line into the constant pool

Pass 2 (Code Generation)
    - Rescan from the top, stopping at the `.data:` header
    - Record labels, handle #build, encode instructions
    - Patch forward label references

Finally the #build directive is checked: a program that never declared its
build target is rejected.

Command-Line Usage
------------------
    $ spkasm program.spk -o program.spkb -l program.lst
"""

from pathlib import Path
from typing import Optional, Union
import logging

from spk_sdk.errors import DirectiveError, SourceLocation, NO_LINE
from spk_sdk.assembler.context import BuildTarget, CompilationContext
from spk_sdk.assembler.data import compile_data
from spk_sdk.assembler.encoder import InstructionEncoder
from spk_sdk.assembler.lexer import SourceLine, split_lines
from spk_sdk.disassembler import BytecodeDisassembler
from spk_sdk.vm.bytecode import Bytecode, format_constant

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main SPK assembler class.

    Each call to assemble_string() or assemble_file() runs in its own
    CompilationContext; the assembler only keeps the last result around for
    the accessor and output methods.

    Attributes:
        strict: If True, unknown mnemonics are errors instead of warnings
    """

    def __init__(self, strict: bool = False):
        """
        Initialize the assembler.

        Args:
            strict: Reject lines whose first token is not a known mnemonic,
                    directive or label. By default such lines are skipped
                    with a warning.
        """
        self._strict = strict
        self._encoder = InstructionEncoder()
        self._bytecode: Optional[Bytecode] = None
        self._labels: dict[str, int] = {}
        self._source_lines: dict[int, str] = {}

    @property
    def strict(self) -> bool:
        return self._strict

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> Bytecode:
        """
        Assemble source code from a string.

        Args:
            source: SPK assembly source
            filename: Virtual filename for error messages

        Returns:
            The assembled Bytecode

        Raises:
            AssemblerError: If assembly fails
        """
        ctx = CompilationContext(filename=filename, strict=self._strict)
        lines = list(split_lines(source))

        self._pass1(ctx, lines)
        logger.debug(f"Pass 1: {len(ctx.writer.constants)} constants")

        self._pass2(ctx, lines)
        ctx.labels.resolve_fixups(ctx.writer)
        logger.debug(
            f"Pass 2: {ctx.writer.size} bytes, {len(ctx.labels)} labels"
        )

        if ctx.state.build_target is BuildTarget.UNDEFINED:
            raise DirectiveError(
                "no build type was specified",
                location=SourceLocation(filename, NO_LINE),
                hint="add '#build sps' to the code segment",
            )

        bytecode = ctx.writer.freeze()
        self._bytecode = bytecode
        self._labels = ctx.labels.as_dict()
        self._source_lines = {line.number: line.text for line in lines}

        logger.info(
            f"Assembled {filename}: {len(bytecode.code)} bytes, "
            f"{len(bytecode.constants)} constants"
        )
        return bytecode

    def assemble_file(self, filepath: Union[str, Path]) -> Bytecode:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.debug(f"Assembling {filepath}...")
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Passes
    # =========================================================================

    def _pass1(self, ctx: CompilationContext, lines: list[SourceLine]) -> None:
        """Build the constant pool from the lines after `.data:`."""
        in_data = False
        for line in lines:
            if line.is_data_header:
                in_data = True
                continue
            if in_data:
                compile_data(ctx, line)

    def _pass2(self, ctx: CompilationContext, lines: list[SourceLine]) -> None:
        """Encode the code segment and record labels."""
        for line in lines:
            if line.is_data_header:
                break
            self._encoder.encode_line(ctx, line)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_bytecode(self) -> Bytecode:
        """
        Get the last assembled Bytecode.

        Raises:
            RuntimeError: If nothing has been assembled yet
        """
        if self._bytecode is None:
            raise RuntimeError("no program has been assembled")
        return self._bytecode

    def get_labels(self) -> dict[str, int]:
        """Get the label table of the last assembly (name -> address)."""
        return dict(self._labels)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Each instruction shows its address, encoded bytes, source line
        number and source text, followed by the label and constant tables.
        """
        bytecode = self.get_bytecode()
        disassembler = BytecodeDisassembler()
        out = []

        for instr in disassembler.disassemble(bytecode.code):
            hex_bytes = " ".join(f"{b:02X}" for b in instr.raw_bytes)
            line = bytecode.line_for_address(instr.address) or 0
            text = self._source_lines.get(line, str(instr))
            out.append(f"{instr.address:06d}  {hex_bytes:<20s}  {line:4d}  {text}")

        if self._labels:
            out.append("")
            out.append("Labels:")
            for name, address in sorted(self._labels.items(), key=lambda item: item[1]):
                out.append(f"  {name:<20s} {address:6d}")

        if bytecode.constants:
            out.append("")
            out.append("Constants:")
            for index, value in enumerate(bytecode.constants):
                out.append(f"  {index:4d}  {format_constant(value)}")

        return "\n".join(out)

    def write_bytecode(self, filepath: Union[str, Path]) -> None:
        """Write the last Bytecode in the SPK container format."""
        self.get_bytecode().write(filepath)
        logger.debug(f"Wrote {filepath}")

    def write_listing(self, filepath: Union[str, Path]) -> None:
        """Write the assembly listing file."""
        Path(filepath).write_text(self.get_listing() + "\n", encoding="utf-8")
        logger.debug(f"Wrote listing to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>", strict: bool = False) -> Bytecode:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(strict=strict).assemble_string(source, filename)


def assemble_file(filepath: Union[str, Path], strict: bool = False) -> Bytecode:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
        FileNotFoundError: If source file not found
    """
    return Assembler(strict=strict).assemble_file(filepath)
