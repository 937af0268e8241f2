"""
SPK Instruction Set Definition
==============================

This module defines the SPK virtual machine instruction set: opcode bytes,
assembler mnemonics and the operand encoding each mnemonic uses. Both the
assembler (which encodes instructions) and the disassembler (which decodes
them) use these definitions.

Instruction Encoding
--------------------
Every instruction starts with a single opcode byte. Depending on its operand
kind, the opcode is followed by:

1. **NONE**: nothing (e.g. DUP, HALT)
   - 1 byte
   - Example: dup -> $03

2. **PUSH**: 4-byte constant pool index (big-endian, signed)
   - 5 bytes
   - Example: push 2 -> $01 $00 $00 $00 $02

3. **BINARY**: no operand, the operator selects the opcode
   - 1 byte
   - Example: binary '+' -> $10

4. **VARIABLE**: raw string constant (4-byte length + UTF-8 bytes)
   - 5 + len(name) bytes
   - Example: get_var x -> $21 $00 $00 $00 $01 $78

5. **ADDRESS**: 4-byte instruction stream offset
   - 5 bytes
   - Example: jmp 0 -> $30 $00 $00 $00 $00

6. **RESERVED**: mnemonic is reserved but has no encoding yet
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Opcodes
# =============================================================================

class Opcode(IntEnum):
    """SPK virtual machine opcode bytes."""

    # Stack
    OP_PUSH = 0x01
    OP_POP = 0x02
    OP_DUP = 0x03
    OP_FLIP = 0x04
    OP_SWAP = 0x05

    # I/O and control
    OP_OUT = 0x06
    OP_INP = 0x07
    OP_HALT = 0x08

    # Arithmetic
    OP_ADD = 0x10
    OP_SUB = 0x11
    OP_MUL = 0x12
    OP_DIV = 0x13
    OP_MOD = 0x14
    OP_POW = 0x15
    OP_NEGATE = 0x16
    OP_SIGN = 0x17

    # Variables
    OP_CREATE_VAR = 0x20
    OP_GET_VAR = 0x21

    # Jumps
    OP_JMP = 0x30
    OP_JE = 0x31
    OP_JNE = 0x32
    OP_JL = 0x33
    OP_JG = 0x34
    OP_JLE = 0x35
    OP_JGE = 0x36
    OP_JLN = 0x37
    OP_JGN = 0x38
    OP_JEV = 0x39
    OP_JUE = 0x3A
    OP_LOOP = 0x3B
    OP_CALL = 0x3C


# Operator character of `binary '<op>'` -> opcode
BINARY_OPERATORS: dict[str, Opcode] = {
    "+": Opcode.OP_ADD,
    "-": Opcode.OP_SUB,
    "*": Opcode.OP_MUL,
    "/": Opcode.OP_DIV,
    "%": Opcode.OP_MOD,
    "^": Opcode.OP_POW,
}


# =============================================================================
# Mnemonics
# =============================================================================

class OperandKind(Enum):
    """How the operand of an instruction is written to the stream."""
    NONE = auto()       # Opcode byte only
    PUSH = auto()       # push inline <expr> | push <index>
    BINARY = auto()     # binary '<op>'
    VARIABLE = auto()   # raw string constant
    ADDRESS = auto()    # literal address or label
    RESERVED = auto()   # reserved, no encoding

    def __str__(self) -> str:
        return self.name.lower()


class Mnemonic(Enum):
    """Every mnemonic the assembler recognizes, keyed by its lowercase text."""
    PUSH = "push"
    DUP = "dup"
    POP = "pop"
    FLIP = "flip"
    SWAP = "swap"
    OUT = "out"
    INP = "inp"
    HALT = "halt"
    BINARY = "binary"
    NEGATE = "negate"
    SIGN = "sign"
    CREATE_VAR = "create_var"
    GET_VAR = "get_var"
    JMP = "jmp"
    JE = "je"
    JNE = "jne"
    JL = "jl"
    JG = "jg"
    JLE = "jle"
    JGE = "jge"
    JLN = "jln"
    JGN = "jgn"
    JEV = "jev"
    JUE = "jue"
    LOOP = "loop"
    CALL = "call"
    CHUNKS = "chunks"
    CURCH = "curch"
    CHUSZ = "chusz"

    @classmethod
    def lookup(cls, text: str) -> Optional["Mnemonic"]:
        """Return the mnemonic for source text (case-insensitive), or None."""
        try:
            return cls(text.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding information for one mnemonic.

    Attributes:
        opcode: Opcode byte, None for BINARY (operator chooses) and RESERVED
        kind: Operand kind
    """
    opcode: Optional[Opcode]
    kind: OperandKind

    @property
    def size(self) -> Optional[int]:
        """Encoded size in bytes, None when it depends on the operand."""
        if self.kind in (OperandKind.NONE, OperandKind.BINARY):
            return 1
        if self.kind in (OperandKind.PUSH, OperandKind.ADDRESS):
            return 1 + OPERAND_SIZE
        return None


# Width of integer operands (pool indices, addresses, string lengths)
OPERAND_SIZE = 4


# =============================================================================
# Instruction Table
# =============================================================================

INSTRUCTION_TABLE: dict[Mnemonic, InstructionInfo] = {
    Mnemonic.PUSH: InstructionInfo(Opcode.OP_PUSH, OperandKind.PUSH),
    Mnemonic.DUP: InstructionInfo(Opcode.OP_DUP, OperandKind.NONE),
    Mnemonic.POP: InstructionInfo(Opcode.OP_POP, OperandKind.NONE),
    Mnemonic.FLIP: InstructionInfo(Opcode.OP_FLIP, OperandKind.NONE),
    Mnemonic.SWAP: InstructionInfo(Opcode.OP_SWAP, OperandKind.NONE),
    Mnemonic.OUT: InstructionInfo(Opcode.OP_OUT, OperandKind.NONE),
    Mnemonic.INP: InstructionInfo(Opcode.OP_INP, OperandKind.NONE),
    Mnemonic.HALT: InstructionInfo(Opcode.OP_HALT, OperandKind.NONE),
    Mnemonic.BINARY: InstructionInfo(None, OperandKind.BINARY),
    Mnemonic.NEGATE: InstructionInfo(Opcode.OP_NEGATE, OperandKind.NONE),
    Mnemonic.SIGN: InstructionInfo(Opcode.OP_SIGN, OperandKind.NONE),
    Mnemonic.CREATE_VAR: InstructionInfo(Opcode.OP_CREATE_VAR, OperandKind.VARIABLE),
    Mnemonic.GET_VAR: InstructionInfo(Opcode.OP_GET_VAR, OperandKind.VARIABLE),
    Mnemonic.JMP: InstructionInfo(Opcode.OP_JMP, OperandKind.ADDRESS),
    Mnemonic.JE: InstructionInfo(Opcode.OP_JE, OperandKind.ADDRESS),
    Mnemonic.JNE: InstructionInfo(Opcode.OP_JNE, OperandKind.ADDRESS),
    Mnemonic.JL: InstructionInfo(Opcode.OP_JL, OperandKind.ADDRESS),
    Mnemonic.JG: InstructionInfo(Opcode.OP_JG, OperandKind.ADDRESS),
    Mnemonic.JLE: InstructionInfo(Opcode.OP_JLE, OperandKind.ADDRESS),
    Mnemonic.JGE: InstructionInfo(Opcode.OP_JGE, OperandKind.ADDRESS),
    Mnemonic.JLN: InstructionInfo(Opcode.OP_JLN, OperandKind.ADDRESS),
    Mnemonic.JGN: InstructionInfo(Opcode.OP_JGN, OperandKind.ADDRESS),
    Mnemonic.JEV: InstructionInfo(Opcode.OP_JEV, OperandKind.ADDRESS),
    Mnemonic.JUE: InstructionInfo(Opcode.OP_JUE, OperandKind.ADDRESS),
    Mnemonic.LOOP: InstructionInfo(Opcode.OP_LOOP, OperandKind.ADDRESS),
    Mnemonic.CALL: InstructionInfo(Opcode.OP_CALL, OperandKind.ADDRESS),
    Mnemonic.CHUNKS: InstructionInfo(None, OperandKind.RESERVED),
    Mnemonic.CURCH: InstructionInfo(None, OperandKind.RESERVED),
    Mnemonic.CHUSZ: InstructionInfo(None, OperandKind.RESERVED),
}

MNEMONICS: frozenset[str] = frozenset(m.value for m in Mnemonic)

# Reverse map used by the disassembler: opcode -> (display name, operand kind)
OPCODE_INFO: dict[int, tuple[str, OperandKind]] = {}
for _mnemonic, _info in INSTRUCTION_TABLE.items():
    if _info.opcode is not None:
        OPCODE_INFO[_info.opcode] = (_mnemonic.value, _info.kind)
for _char, _opcode in BINARY_OPERATORS.items():
    OPCODE_INFO[_opcode] = (f"binary '{_char}'", OperandKind.BINARY)
del _mnemonic, _info, _char, _opcode


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(mnemonic: Mnemonic) -> InstructionInfo:
    """Return encoding information for a mnemonic."""
    return INSTRUCTION_TABLE[mnemonic]


def get_binary_opcode(operator: str) -> Optional[Opcode]:
    """Return the opcode for a binary operator character, or None."""
    return BINARY_OPERATORS.get(operator)
