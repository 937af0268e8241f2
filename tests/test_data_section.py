# =============================================================================
# test_data_section.py - Constant Pool Builder Tests
# =============================================================================
# Tests for pass 1: compiling the .data: segment into the constant pool.
#
# Test coverage includes:
#   - Sequential, overwriting and sparse indices
#   - Placeholder padding for gaps
#   - Interaction with push inline constants
#   - Malformed data lines
# =============================================================================

import logging

import pytest

from spk_sdk.assembler import assemble
from spk_sdk.assembler.context import CompilationContext
from spk_sdk.assembler.data import compile_data
from spk_sdk.assembler.lexer import split_lines
from spk_sdk.errors import AssemblySyntaxError, ExpressionError
from spk_sdk.vm import PLACEHOLDER
from spk_sdk.vm.intcodec import INT_MAX


def build_pool(*data_lines: str) -> list:
    """Compile data lines into a fresh context and return its pool."""
    ctx = CompilationContext()
    for line in split_lines("\n".join(data_lines)):
        compile_data(ctx, line)
    return ctx.writer.constants


# =============================================================================
# Index Placement
# =============================================================================

class TestPlacement:
    """Test where data lines land in the pool."""

    def test_sequential_indices(self):
        """Indices 0, 1, 2 fill the pool in order."""
        assert build_pool("0 1.0", '1 "two"', "2 3") == [1.0, "two", 3.0]

    def test_first_entry_ignores_index(self):
        """The first literal is appended whatever its index."""
        assert build_pool("5 1.0") == [1.0]

    def test_overwrite_existing_slot(self):
        """A smaller index overwrites the existing slot."""
        assert build_pool("0 1", "1 2", "0 9") == [9.0, 2.0]

    def test_sparse_index_pads_with_placeholder(self):
        """A gap is padded with the placeholder sentinel."""
        pool = build_pool("0 1.0", '2 "hi"')
        assert len(pool) == 3
        assert pool[0] == 1.0
        assert pool[1] is PLACEHOLDER
        assert pool[2] == "hi"

    def test_wide_gap(self):
        """Every skipped slot gets a placeholder."""
        pool = build_pool("0 1", "4 5")
        assert pool == [1.0, PLACEHOLDER, PLACEHOLDER, PLACEHOLDER, 5.0]

    def test_gap_filled_later(self):
        """A placeholder can be overwritten by a later line."""
        pool = build_pool("0 1", "2 3", "1 2")
        assert pool == [1.0, 2.0, 3.0]

    def test_gap_logs_warning(self, caplog):
        """Padding is reported as a warning."""
        with caplog.at_level(logging.WARNING, logger="spk_sdk.assembler.data"):
            build_pool("0 1", "3 4")
        assert "unfilled" in caplog.text

    def test_multi_word_string(self):
        """String literals may contain spaces."""
        assert build_pool('0 "hello big world"') == ["hello big world"]


# =============================================================================
# Data Segment in Full Programs
# =============================================================================

class TestDataSegment:
    """Test the .data: segment through the assembler."""

    def test_lines_before_header_are_not_data(self):
        """Only lines after .data: reach the pool."""
        bytecode = assemble("#build sps\nhalt\n.data:\n0 7")
        assert bytecode.constants == (7.0,)

    def test_inline_constants_follow_data(self):
        """push inline appends after the .data: constants."""
        bytecode = assemble('#build sps\npush inline "x"\n.data:\n0 1\n1 2')
        assert bytecode.constants == (1.0, 2.0, "x")
        # Operand is the index of the appended constant
        assert bytecode.code == bytes([0x01, 0, 0, 0, 2])

    def test_blank_lines_in_data(self):
        """Blank lines in the data segment are skipped."""
        bytecode = assemble("#build sps\n.data:\n0 1\n\n1 2\n")
        assert bytecode.constants == (1.0, 2.0)

    def test_no_data_segment(self):
        """Programs without .data: have an empty pool."""
        bytecode = assemble("#build sps\nhalt")
        assert bytecode.constants == ()


# =============================================================================
# Malformed Data Lines
# =============================================================================

class TestMalformedData:
    """Test rejection of malformed data lines."""

    @pytest.mark.parametrize("index", ["x", "-1", "1.5", "0x2"])
    def test_bad_index(self, index):
        """The index must be a non-negative integer."""
        with pytest.raises(AssemblySyntaxError):
            build_pool(f"{index} 1.0")

    def test_index_beyond_operand_range(self):
        """Indices that no push operand can address are rejected."""
        with pytest.raises(AssemblySyntaxError) as exc_info:
            assemble("#build sps\n.data:\n0 1\n1000000000000000 2")
        assert exc_info.value.line == 4

    def test_index_just_past_range(self):
        """The bound is the largest 4-byte operand."""
        with pytest.raises(AssemblySyntaxError):
            build_pool("0 1", f"{INT_MAX + 1} 2")

    def test_missing_literal(self):
        """A bare index has no expression."""
        with pytest.raises(ExpressionError):
            build_pool("0")

    def test_malformed_literal_line_number(self):
        """Errors report the physical line number."""
        source = "#build sps\nhalt\n.data:\n0 1\n1 bad"
        with pytest.raises(ExpressionError) as exc_info:
            assemble(source)
        assert exc_info.value.line == 5
