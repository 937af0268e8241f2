"""
SPK SDK Virtual Machine Definitions
===================================

This package contains the definitions shared between the assembler and
the tools that consume its output: the instruction set, the fixed-width
integer operand codec and the Bytecode container.

The virtual machine interpreter itself is not part of this package.

Usage:
    from spk_sdk.vm import Bytecode, Opcode, int_to_bytes
"""

from spk_sdk.vm.instructions import (
    Opcode,
    Mnemonic,
    OperandKind,
    InstructionInfo,
    INSTRUCTION_TABLE,
    BINARY_OPERATORS,
    MNEMONICS,
    OPCODE_INFO,
    OPERAND_SIZE,
    get_instruction_info,
    get_binary_opcode,
)
from spk_sdk.vm.intcodec import int_to_bytes, int_from_bytes, INT_SIZE
from spk_sdk.vm.bytecode import (
    Bytecode,
    BytecodeWriter,
    Constant,
    Placeholder,
    PLACEHOLDER,
    SourceMapEntry,
    format_constant,
)

__all__ = [
    # Instruction set
    "Opcode",
    "Mnemonic",
    "OperandKind",
    "InstructionInfo",
    "INSTRUCTION_TABLE",
    "BINARY_OPERATORS",
    "MNEMONICS",
    "OPCODE_INFO",
    "OPERAND_SIZE",
    "get_instruction_info",
    "get_binary_opcode",
    # Integer codec
    "int_to_bytes",
    "int_from_bytes",
    "INT_SIZE",
    # Bytecode container
    "Bytecode",
    "BytecodeWriter",
    "Constant",
    "Placeholder",
    "PLACEHOLDER",
    "SourceMapEntry",
    "format_constant",
]
