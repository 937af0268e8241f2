# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end integration tests for the complete SPK assembler.
# These tests verify the full pipeline from source text to Bytecode.
#
# Test coverage includes:
#   - Complete program assembly
#   - #build and .data directives
#   - Error reporting with line numbers
#   - File I/O and listings
# =============================================================================

import pytest

from spk_sdk.assembler import Assembler, assemble, assemble_file
from spk_sdk.errors import (
    AssemblerError,
    DirectiveError,
    AssemblySyntaxError,
    MissingSpecificationError,
)
from spk_sdk.vm import Bytecode, Opcode, int_to_bytes


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to Bytecode."""

    def test_minimal_program(self):
        """Assemble minimal valid program."""
        bytecode = assemble("#build sps\nhalt")
        assert bytecode.code == bytes([Opcode.OP_HALT])
        assert bytecode.constants == ()

    def test_hello_world(self):
        """Assemble a program using the data segment."""
        source = """
            #build sps
            push 0
            out
            halt
            .data:
            0 "Hello, world"
        """
        bytecode = assemble(source)
        assert bytecode.code == (
            bytes([Opcode.OP_PUSH]) + int_to_bytes(0)
            + bytes([Opcode.OP_OUT, Opcode.OP_HALT])
        )
        assert bytecode.constants == ("Hello, world",)

    def test_countdown_loop(self):
        """Assemble a program mixing every operand kind."""
        source = """
            #build sps
            push inline 10
            create_var n
            top:
                get_var n
                out
                get_var n
                push inline 1
                binary '-'
                dup
                jg top
            halt
        """
        asm = Assembler()
        bytecode = asm.assemble_string(source)
        labels = asm.get_labels()
        # push(5) + create_var(1 + 4 + 1)
        assert labels["top"] == 11
        jg_operand = bytecode.code[-5:-1]
        assert jg_operand == int_to_bytes(11)
        assert bytecode.code[-1] == Opcode.OP_HALT
        assert bytecode.constants == (10.0, 1.0)

    def test_indented_source(self):
        """Leading and trailing whitespace is trimmed."""
        assert assemble("   #build sps  \n\t  halt\t\n").code == bytes([Opcode.OP_HALT])

    def test_windows_line_endings(self):
        """CRLF sources assemble the same as LF sources."""
        assert assemble("#build sps\r\ndup\r\nhalt\r\n") == assemble("#build sps\ndup\nhalt\n")

    def test_result_is_immutable(self):
        """The returned Bytecode cannot be modified."""
        bytecode = assemble("#build sps\nhalt")
        assert isinstance(bytecode.code, bytes)
        assert isinstance(bytecode.constants, tuple)
        with pytest.raises(AttributeError):
            bytecode.code = b""


# =============================================================================
# Directive Tests
# =============================================================================

class TestDirectives:
    """Test #build and .data handling."""

    def test_missing_build_directive(self):
        """A program without #build fails as a whole."""
        with pytest.raises(DirectiveError) as exc_info:
            assemble("push inline 1\nhalt")
        assert exc_info.value.line == -1
        assert "no build type was specified" in str(exc_info.value)

    def test_empty_source(self):
        """An empty source has no build directive either."""
        with pytest.raises(DirectiveError):
            assemble("")

    def test_build_directive_anywhere_in_code(self):
        """#build may appear after the instructions."""
        assert assemble("halt\n#build sps").code == bytes([Opcode.OP_HALT])

    def test_build_directive_in_data_segment_ignored(self):
        """A #build after .data: is not a directive."""
        with pytest.raises(AssemblerError):
            assemble("halt\n.data:\n#build sps")

    def test_invalid_build_type(self):
        """Unknown build types are rejected at their line."""
        with pytest.raises(DirectiveError) as exc_info:
            assemble("halt\n#build elf")
        assert exc_info.value.line == 2
        assert "invalid build type" in str(exc_info.value)

    def test_build_without_type(self):
        """#build needs an argument."""
        with pytest.raises(AssemblySyntaxError):
            assemble("#build")

    def test_data_directive_keeps_encoding(self):
        """Lines after a .data directive are still encoded."""
        bytecode = assemble("#build sps\ndup\n.data\npop")
        assert bytecode.code == bytes([Opcode.OP_DUP, Opcode.OP_POP])

    def test_build_directive_after_data_directive(self):
        """#build after a .data directive still sets the target."""
        assert assemble("dup\n.data\n#build sps").code == bytes([Opcode.OP_DUP])

    def test_data_header_ends_code(self):
        """Pass 2 stops at the .data: header."""
        bytecode = assemble("#build sps\ndup\n.data:\n0 1")
        assert bytecode.code == bytes([Opcode.OP_DUP])
        assert bytecode.constants == (1.0,)


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrorHandling:
    """Test error handling and reporting."""

    def test_chunks_line_number(self):
        """Reserved mnemonics report their line."""
        source = "#build sps\npush 0\n\nchunks\nhalt"
        with pytest.raises(MissingSpecificationError) as exc_info:
            assemble(source)
        assert exc_info.value.line == 4
        assert "chunks" in str(exc_info.value)

    def test_first_error_aborts(self):
        """Assembly stops at the first error."""
        source = "#build sps\ncurch\njmp missing"
        with pytest.raises(MissingSpecificationError):
            assemble(source)

    def test_error_message_includes_filename(self):
        """Errors show filename:line."""
        with pytest.raises(AssemblerError) as exc_info:
            Assembler().assemble_string("#build sps\nchusz", filename="prog.spk")
        assert str(exc_info.value).startswith("prog.spk:2: error:")

    def test_failed_assembly_keeps_previous_result(self):
        """A failed assembly does not publish a partial Bytecode."""
        asm = Assembler()
        good = asm.assemble_string("#build sps\nhalt")
        with pytest.raises(AssemblerError):
            asm.assemble_string("#build sps\ndup\nchunks")
        assert asm.get_bytecode() is good

    def test_no_result_before_assembly(self):
        """Accessing the result before assembling raises."""
        with pytest.raises(RuntimeError):
            Assembler().get_bytecode()


# =============================================================================
# File I/O Tests
# =============================================================================

class TestFileIO:
    """Test file-based assembly and output files."""

    def test_assemble_from_file(self, tmp_path):
        """Assemble source read from disk."""
        source_file = tmp_path / "prog.spk"
        source_file.write_text("#build sps\npush inline 1\nout\nhalt\n")
        bytecode = assemble_file(source_file)
        assert bytecode.constants == (1.0,)
        assert bytecode.code[-2:] == bytes([Opcode.OP_OUT, Opcode.OP_HALT])

    def test_file_errors_use_path(self, tmp_path):
        """Errors from a file name that file."""
        source_file = tmp_path / "bad.spk"
        source_file.write_text("#build sps\nchunks\n")
        with pytest.raises(MissingSpecificationError) as exc_info:
            assemble_file(source_file)
        assert "bad.spk:2" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        """A missing source file is an I/O error."""
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "nope.spk")

    def test_write_bytecode(self, tmp_path):
        """The written container reads back to the same Bytecode."""
        asm = Assembler()
        bytecode = asm.assemble_string('#build sps\npush inline "hi"\nout\nhalt')
        out_file = tmp_path / "prog.spkb"
        asm.write_bytecode(out_file)
        assert Bytecode.read(out_file) == bytecode

    def test_listing(self, tmp_path):
        """The listing shows addresses, bytes, lines and source text."""
        asm = Assembler()
        asm.assemble_string("#build sps\nstart:\npush inline 2\njmp start\n.data:\n0 1")
        listing = asm.get_listing()
        assert "000000  01 00 00 00 01" in listing
        assert "push inline 2" in listing
        assert "000005  30 00 00 00 00" in listing
        assert "jmp start" in listing
        assert "start" in listing.split("Labels:")[1]
        assert "Constants:" in listing

        listing_file = tmp_path / "prog.lst"
        asm.write_listing(listing_file)
        assert listing_file.read_text() == listing + "\n"
