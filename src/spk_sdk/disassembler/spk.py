"""
SPK Bytecode Disassembler
=========================

Disassembles an SPK instruction stream back into assembler mnemonics.
It is used to produce assembly listings and to inspect .spkb files.

Operand formats follow the instruction set definition:
    NONE, BINARY   opcode only
    PUSH, ADDRESS  opcode + 4-byte signed integer
    VARIABLE       opcode + 4-byte length + UTF-8 name

Example:
    >>> from spk_sdk.disassembler import BytecodeDisassembler
    >>> disasm = BytecodeDisassembler()
    >>> print(disasm.disassemble_to_text(bytes([0x03, 0x08])))
    000000: 03                 dup
    000001: 08                 halt
"""

from dataclasses import dataclass
from typing import List, Optional

from spk_sdk.vm.instructions import OPCODE_INFO, OPERAND_SIZE, OperandKind
from spk_sdk.vm.intcodec import int_from_bytes


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single decoded instruction.

    Attributes:
        address: Offset of the opcode byte
        opcode: The opcode byte
        mnemonic: Assembler mnemonic (or ???_XX for unknown opcodes)
        operand_str: Formatted operand
        size: Total size in bytes
        raw_bytes: All bytes of this instruction
        comment: Additional context (e.g. truncation)
    """
    address: int
    opcode: int
    mnemonic: str
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    def __str__(self) -> str:
        """Format as readable line."""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes[:6])
        if len(self.raw_bytes) > 6:
            hex_bytes += " .."
        hex_bytes = hex_bytes.ljust(17)

        asm = f"{self.mnemonic} {self.operand_str}" if self.operand_str else self.mnemonic

        if self.comment:
            return f"{self.address:06d}: {hex_bytes}  {asm:<20} ; {self.comment}"
        return f"{self.address:06d}: {hex_bytes}  {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# Disassembler
# =============================================================================

class BytecodeDisassembler:
    """
    Disassembler for SPK instruction streams.

    Usage:
        disasm = BytecodeDisassembler()
        for instr in disasm.disassemble(bytecode.code):
            print(instr)
    """

    def disassemble_one(self, data: bytes, offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble the instruction at offset.

        Raises:
            ValueError: If offset is past the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        if opcode not in OPCODE_INFO:
            return DisassembledInstruction(
                address=offset,
                opcode=opcode,
                mnemonic=f"???_{opcode:02X}",
                operand_str="",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="unknown opcode",
            )

        mnemonic, kind = OPCODE_INFO[opcode]
        if kind in (OperandKind.NONE, OperandKind.BINARY):
            return DisassembledInstruction(offset, opcode, mnemonic, "", 1, bytes([opcode]))

        operand_start = offset + 1
        if len(data) - operand_start < OPERAND_SIZE:
            return self._incomplete(data, offset, mnemonic)
        value = int_from_bytes(data, operand_start)

        if kind is OperandKind.VARIABLE:
            name_start = operand_start + OPERAND_SIZE
            if value < 0 or name_start + value > len(data):
                return self._incomplete(data, offset, mnemonic)
            end = name_start + value
            name = bytes(data[name_start:end]).decode("utf-8", errors="replace")
            return DisassembledInstruction(
                offset, opcode, mnemonic, name, end - offset, bytes(data[offset:end])
            )

        end = operand_start + OPERAND_SIZE
        return DisassembledInstruction(
            offset, opcode, mnemonic, str(value), end - offset, bytes(data[offset:end])
        )

    def _incomplete(self, data: bytes, offset: int, mnemonic: str) -> DisassembledInstruction:
        """Result for an instruction cut off by the end of the buffer."""
        raw = bytes(data[offset:])
        return DisassembledInstruction(
            address=offset,
            opcode=data[offset],
            mnemonic=mnemonic,
            operand_str="???",
            size=len(raw),
            raw_bytes=raw,
            comment="incomplete - truncated data",
        )

    def disassemble(
        self,
        data: bytes,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble instructions from the start of data.

        Args:
            data: Instruction stream
            count: Maximum number of instructions (None = all)
        """
        result = []
        offset = 0
        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, offset)
            result.append(instr)
            offset += instr.size
        return result

    def disassemble_to_text(self, data: bytes, count: Optional[int] = None) -> str:
        """Disassemble and return one formatted line per instruction."""
        return "\n".join(str(instr) for instr in self.disassemble(data, count))
