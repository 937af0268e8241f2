"""
SPK SDK - Assembler Toolchain for the SPK Stack Virtual Machine
===============================================================

This package provides the tools for producing programs for the SPK stack
virtual machine: a two-pass assembler that turns SPK assembly source into
Bytecode, the Bytecode container format, and a disassembler.

Main Components
---------------
- **assembler**: SPK assembler (spkasm)
    Converts assembly source (.spk) into Bytecode (.spkb)

- **vm**: Virtual machine definitions
    Instruction set, integer operand codec and the Bytecode container

- **disassembler**: Bytecode disassembler
    Decodes instruction streams for listings and inspection

Quick Start
-----------
Assemble a program:
    >>> from spk_sdk.assembler import Assembler
    >>> asm = Assembler()
    >>> bytecode = asm.assemble_file("hello.spk")
    >>> asm.write_bytecode("hello.spkb")

Read it back:
    >>> from spk_sdk import Bytecode
    >>> bytecode = Bytecode.read("hello.spkb")

Or use the command-line tool:
    $ spkasm hello.spk -o hello.spkb -l hello.lst
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from spk_sdk.assembler import Assembler, assemble, assemble_file
from spk_sdk.disassembler import BytecodeDisassembler
from spk_sdk.vm import Bytecode, Opcode, PLACEHOLDER
from spk_sdk.errors import (
    SPKError,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    ExpressionError,
    DirectiveError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    MissingSpecificationError,
    UnknownMnemonicError,
    BytecodeFormatError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    # Bytecode
    "Bytecode",
    "Opcode",
    "PLACEHOLDER",
    "BytecodeDisassembler",
    # Exception hierarchy
    "SPKError",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "ExpressionError",
    "DirectiveError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "MissingSpecificationError",
    "UnknownMnemonicError",
    "BytecodeFormatError",
]
