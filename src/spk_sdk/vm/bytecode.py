"""
SPK Bytecode Container
======================

This module defines the artifact handed from the assembler to the virtual
machine: an instruction byte stream plus an index-addressed constant pool.

During assembly a mutable BytecodeWriter accumulates bytes and constants.
When assembly succeeds the writer is frozen into an immutable Bytecode,
which is never modified afterwards.

Container File Format
---------------------
Bytecode can be serialized for storage or transfer (all integers are
big-endian):

```
Offset  Size  Description
------  ----  -----------
0       3     Magic: "SPK" (ASCII)
3       1     Format version ($01)
4       4     Code length n
8       n     Instruction stream
8+n     4     Constant count c
...           c constants, each: tag byte + payload
                $00 placeholder   (no payload)
                $01 number        (8-byte IEEE 754 double)
                $02 string        (4-byte length + UTF-8 bytes)
...     4     Source map entry count m
...     8*m   m entries: 4-byte address, 4-byte signed line
```
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union
import struct

from spk_sdk.errors import BytecodeFormatError
from spk_sdk.vm.intcodec import int_to_bytes


# =============================================================================
# Constants
# =============================================================================

class Placeholder(Enum):
    """
    Filler for constant pool slots skipped by a sparse .data section.

    A placeholder reaching the virtual machine means the data section left
    a gap that was never filled.
    """
    PLACEHOLDER = "unfilled .data slot"

    def __repr__(self) -> str:
        return "PLACEHOLDER"


PLACEHOLDER = Placeholder.PLACEHOLDER

# A constant pool entry
Constant = Union[float, str, Placeholder]

TAG_PLACEHOLDER = 0x00
TAG_NUMBER = 0x01
TAG_STRING = 0x02

MAGIC = b"SPK"
FORMAT_VERSION = 0x01


def format_constant(value: Constant) -> str:
    """Render a constant the way it would be written in source."""
    if isinstance(value, Placeholder):
        return repr(value)
    if isinstance(value, str):
        return f'"{value}"'
    return repr(value)


# =============================================================================
# Source Map
# =============================================================================

@dataclass(frozen=True)
class SourceMapEntry:
    """
    Maps an instruction's address to the source line that produced it.

    Attributes:
        address: Offset of the instruction's opcode byte
        line: Source line number (1-based)
    """
    address: int
    line: int


# =============================================================================
# Immutable Bytecode
# =============================================================================

@dataclass(frozen=True)
class Bytecode:
    """
    Assembled SPK program.

    Attributes:
        code: Instruction byte stream
        constants: Constant pool, addressed by index
        source_map: Instruction address -> source line, in address order
    """
    code: bytes = b""
    constants: tuple[Constant, ...] = ()
    source_map: tuple[SourceMapEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.code)

    def line_for_address(self, address: int) -> Optional[int]:
        """
        Return the source line of the instruction covering address.

        Returns None for addresses before the first instruction or past
        the end of the stream.
        """
        if not 0 <= address < len(self.code) or not self.source_map:
            return None
        addresses = [entry.address for entry in self.source_map]
        index = bisect_right(addresses, address) - 1
        if index < 0:
            return None
        return self.source_map[index].line

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        """Serialize to the SPK container format."""
        result = bytearray()
        result.extend(MAGIC)
        result.append(FORMAT_VERSION)
        result.extend(struct.pack(">I", len(self.code)))
        result.extend(self.code)

        result.extend(struct.pack(">I", len(self.constants)))
        for value in self.constants:
            if isinstance(value, Placeholder):
                result.append(TAG_PLACEHOLDER)
            elif isinstance(value, str):
                encoded = value.encode("utf-8")
                result.append(TAG_STRING)
                result.extend(struct.pack(">I", len(encoded)))
                result.extend(encoded)
            else:
                result.append(TAG_NUMBER)
                result.extend(struct.pack(">d", value))

        result.extend(struct.pack(">I", len(self.source_map)))
        for entry in self.source_map:
            result.extend(struct.pack(">Ii", entry.address, entry.line))

        return bytes(result)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bytecode":
        """
        Parse a serialized SPK container.

        Raises:
            BytecodeFormatError: If the data is not a valid container
        """
        if data[0:3] != MAGIC:
            raise BytecodeFormatError(f"invalid bytecode magic: {data[0:3]!r}")
        if len(data) < 4 or data[3] != FORMAT_VERSION:
            version = data[3] if len(data) > 3 else None
            raise BytecodeFormatError(f"unsupported bytecode version: {version}")

        reader = _Reader(data, 4)
        code_len = reader.unpack(">I")
        code = reader.take(code_len)

        constants: list[Constant] = []
        for _ in range(reader.unpack(">I")):
            tag = reader.take(1)[0]
            if tag == TAG_PLACEHOLDER:
                constants.append(PLACEHOLDER)
            elif tag == TAG_NUMBER:
                constants.append(reader.unpack(">d"))
            elif tag == TAG_STRING:
                length = reader.unpack(">I")
                try:
                    constants.append(reader.take(length).decode("utf-8"))
                except UnicodeDecodeError as e:
                    raise BytecodeFormatError(f"invalid string constant: {e}") from e
            else:
                raise BytecodeFormatError(f"unknown constant tag 0x{tag:02X}")

        source_map = []
        for _ in range(reader.unpack(">I")):
            address = reader.unpack(">I")
            line = reader.unpack(">i")
            source_map.append(SourceMapEntry(address, line))

        if reader.offset != len(data):
            raise BytecodeFormatError(
                f"{len(data) - reader.offset} trailing bytes after bytecode"
            )

        return cls(code=code, constants=tuple(constants), source_map=tuple(source_map))

    def write(self, filepath: Union[str, Path]) -> None:
        """Write the serialized container to a file."""
        Path(filepath).write_bytes(self.to_bytes())

    @classmethod
    def read(cls, filepath: Union[str, Path]) -> "Bytecode":
        """Read a serialized container from a file."""
        return cls.from_bytes(Path(filepath).read_bytes())


class _Reader:
    """Bounds-checked cursor over serialized bytecode."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    def take(self, count: int) -> bytes:
        end = self.offset + count
        if end > len(self.data):
            raise BytecodeFormatError(
                f"bytecode truncated: need {count} bytes at offset {self.offset}"
            )
        chunk = bytes(self.data[self.offset:end])
        self.offset = end
        return chunk

    def unpack(self, fmt: str):
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


# =============================================================================
# Mutable Writer
# =============================================================================

@dataclass
class BytecodeWriter:
    """
    Accumulates the instruction stream and constant pool during assembly.

    Usage:
        writer = BytecodeWriter()
        writer.write_instruction(Opcode.OP_PUSH, line=3)
        writer.write_int(0)
        bytecode = writer.freeze()
    """
    code: bytearray = field(default_factory=bytearray)
    constants: list[Constant] = field(default_factory=list)
    source_map: list[SourceMapEntry] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Current length of the instruction stream."""
        return len(self.code)

    def write_instruction(self, opcode: int, line: int) -> int:
        """
        Emit an opcode byte and record its source line.

        Returns:
            Address of the emitted opcode
        """
        address = len(self.code)
        self.code.append(opcode & 0xFF)
        self.source_map.append(SourceMapEntry(address, line))
        return address

    def write_int(self, value: int) -> int:
        """
        Emit a 4-byte integer operand.

        Returns:
            Address of the operand's first byte (for later patching)
        """
        address = len(self.code)
        self.code.extend(int_to_bytes(value))
        return address

    def write_raw_constant(self, text: str) -> None:
        """Emit a string directly into the stream (length + UTF-8 bytes)."""
        encoded = text.encode("utf-8")
        self.write_int(len(encoded))
        self.code.extend(encoded)

    def patch_int(self, address: int, value: int) -> None:
        """Overwrite a previously emitted 4-byte operand."""
        self.code[address:address + 4] = int_to_bytes(value)

    def add_constant(self, value: Constant) -> int:
        """Append a constant to the pool and return its index."""
        self.constants.append(value)
        return len(self.constants) - 1

    def freeze(self) -> Bytecode:
        """Return the immutable Bytecode for the current contents."""
        return Bytecode(
            code=bytes(self.code),
            constants=tuple(self.constants),
            source_map=tuple(self.source_map),
        )
