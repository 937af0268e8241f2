# =============================================================================
# test_disassembler.py - Bytecode Disassembler Tests
# =============================================================================
# Tests for decoding instruction streams back into mnemonics.
# =============================================================================

import pytest

from spk_sdk.assembler import assemble
from spk_sdk.disassembler import BytecodeDisassembler
from spk_sdk.vm import Opcode


@pytest.fixture
def disasm():
    return BytecodeDisassembler()


class TestDecoding:
    """Test single-instruction decoding."""

    def test_zero_operand_is_one_byte(self, disasm):
        """Zero-operand instructions decode as one byte."""
        instr = disasm.disassemble_one(bytes([Opcode.OP_SWAP]))
        assert instr.mnemonic == "swap"
        assert instr.size == 1

    def test_jump_is_five_bytes(self, disasm):
        """Jumps decode as opcode plus a 4-byte address."""
        code = assemble("#build sps\njl 9").code
        instr = disasm.disassemble_one(code)
        assert instr.mnemonic == "jl"
        assert instr.operand_str == "9"
        assert instr.size == 1 + 4

    def test_binary_operator(self, disasm):
        """Binary opcodes show their operator."""
        instr = disasm.disassemble_one(bytes([Opcode.OP_MOD]))
        assert instr.mnemonic == "binary '%'"

    def test_variable_name(self, disasm):
        """Variable names are decoded from the raw constant."""
        code = assemble("#build sps\ncreate_var total").code
        instr = disasm.disassemble_one(code)
        assert instr.mnemonic == "create_var"
        assert instr.operand_str == "total"
        assert instr.size == len(code)

    def test_unknown_opcode(self, disasm):
        """Unknown bytes decode as single-byte placeholders."""
        instr = disasm.disassemble_one(bytes([0xFF]))
        assert instr.mnemonic == "???_FF"
        assert instr.size == 1

    def test_truncated_operand(self, disasm):
        """A cut-off operand is flagged, not raised."""
        instr = disasm.disassemble_one(bytes([Opcode.OP_PUSH, 0, 0]))
        assert "truncated" in instr.comment
        assert instr.size == 3

    def test_offset_past_end(self, disasm):
        """Offsets past the data raise ValueError."""
        with pytest.raises(ValueError):
            disasm.disassemble_one(b"", 0)


class TestStreams:
    """Test whole-stream disassembly."""

    def test_round_trip_mnemonics(self, disasm):
        """Disassembly recovers the assembled mnemonics."""
        source = "#build sps\npush 3\ndup\nget_var x\nbinary '*'\nloop 0\nhalt"
        names = [i.mnemonic for i in disasm.disassemble(assemble(source).code)]
        assert names == ["push", "dup", "get_var", "binary '*'", "loop", "halt"]

    def test_addresses(self, disasm):
        """Instruction addresses advance by instruction size."""
        code = assemble("#build sps\npush 0\ndup\ncall 0").code
        assert [i.address for i in disasm.disassemble(code)] == [0, 5, 6]

    def test_count_limit(self, disasm):
        """count limits the number of instructions."""
        code = bytes([Opcode.OP_DUP] * 5)
        assert len(disasm.disassemble(code, count=2)) == 2

    def test_text_output(self, disasm):
        """Text output has one line per instruction."""
        text = disasm.disassemble_to_text(bytes([Opcode.OP_DUP, Opcode.OP_HALT]))
        lines = text.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("000000: 03")
        assert lines[1].endswith("halt")

    def test_to_dict(self, disasm):
        """Instructions convert to JSON-friendly dicts."""
        d = disasm.disassemble_one(assemble("#build sps\njmp 1").code).to_dict()
        assert d["mnemonic"] == "jmp"
        assert d["opcode"] == "$30"
        assert d["size"] == 5
