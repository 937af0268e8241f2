"""
SPK Assembler
=============

This module provides a two-pass assembler for SPK assembly source. It
converts line-oriented source text into Bytecode (an instruction stream
plus a constant pool) for the SPK stack virtual machine.

Main Components
---------------
- **Assembler**: Main assembler class that runs both passes
- **InstructionEncoder**: Encodes code-segment lines (pass 2)
- **compile_data**: Builds the constant pool from the .data: segment (pass 1)
- **compile_immediate_expression**: Parses number and string literals
- **CompilationContext**: Per-compilation state (labels, segment, build target)

Assembly Process
----------------
1. **Pass 1**: Lines after the `.data:` header fill the constant pool.
2. **Pass 2**: Lines before `.data:` are encoded; labels are recorded as
   they are reached and forward references are patched afterwards.
3. **Validation**: A `#build sps` directive must be present.

Example Usage
-------------
>>> from spk_sdk.assembler import assemble
>>> bytecode = assemble('''
... #build sps
... start:
...     push inline 1
...     out
...     jmp start
... ''')
>>> bytecode.code.hex()
'0100000000063000000000'
"""

from spk_sdk.assembler.assembler import Assembler, assemble, assemble_file
from spk_sdk.assembler.context import (
    BuildTarget,
    CompilationContext,
    CompilationState,
    Fixup,
    LabelTable,
    Segment,
)
from spk_sdk.assembler.data import compile_data
from spk_sdk.assembler.encoder import InstructionEncoder
from spk_sdk.assembler.expressions import compile_immediate_expression, parse_number
from spk_sdk.assembler.lexer import SourceLine, split_lines, DATA_HEADER

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Compilation state
    "BuildTarget",
    "CompilationContext",
    "CompilationState",
    "Fixup",
    "LabelTable",
    "Segment",
    # Passes
    "compile_data",
    "InstructionEncoder",
    # Expressions
    "compile_immediate_expression",
    "parse_number",
    # Lexer
    "SourceLine",
    "split_lines",
    "DATA_HEADER",
]
