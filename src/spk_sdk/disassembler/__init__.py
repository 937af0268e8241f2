"""
SPK Disassembler
================

Decodes SPK instruction streams into readable assembler mnemonics.

Usage:
    from spk_sdk.disassembler import BytecodeDisassembler

    disasm = BytecodeDisassembler()
    print(disasm.disassemble_to_text(bytecode.code))
"""

from spk_sdk.disassembler.spk import BytecodeDisassembler, DisassembledInstruction

__all__ = [
    "BytecodeDisassembler",
    "DisassembledInstruction",
]
