"""
Compilation Context
===================

All mutable state of a single compilation lives here: the segment and build
target, the label table with its pending forward references, and the
bytecode being written. A fresh CompilationContext is created for every
top-level compile call, so independent compilations never share state and
may safely run in parallel.

Forward References
------------------
Labels are recorded during pass 2 as they are reached. A jump to a label
that is already known is encoded directly. A jump to a label not yet seen
emits a zero operand and records a Fixup; once pass 2 has walked the whole
code segment, every fixup is patched with the label's final address.
"""

from dataclasses import dataclass, field
from difflib import get_close_matches
from enum import Enum, auto
from typing import Optional
import logging

from spk_sdk.errors import (
    DuplicateSymbolError,
    UndefinedSymbolError,
    SourceLocation,
)
from spk_sdk.vm.bytecode import BytecodeWriter

logger = logging.getLogger(__name__)


# =============================================================================
# Compilation State
# =============================================================================

class Segment(Enum):
    """Source region currently being processed."""
    CODE = auto()
    DATA = auto()


class BuildTarget(Enum):
    """Output target declared by the #build directive."""
    UNDEFINED = "undefined"
    SPS = "sps"

    @classmethod
    def from_name(cls, name: str) -> Optional["BuildTarget"]:
        """Return the build target for a #build argument, or None if unknown."""
        if name.lower() == cls.UNDEFINED.value:
            return None
        try:
            return cls(name.lower())
        except ValueError:
            return None


@dataclass
class CompilationState:
    """Segment and build target, mutated only by directive lines."""
    segment: Segment = Segment.CODE
    build_target: BuildTarget = BuildTarget.UNDEFINED


# =============================================================================
# Label Table
# =============================================================================

@dataclass
class Label:
    """A label bound to an instruction stream offset."""
    name: str
    address: int
    location: SourceLocation


@dataclass
class Fixup:
    """
    A forward reference waiting for its label.

    Attributes:
        operand_address: Offset of the 4-byte operand to patch
        label: Referenced label name
        location: Line that made the reference
        source_line: Text of that line, for error messages
    """
    operand_address: int
    label: str
    location: SourceLocation
    source_line: Optional[str] = None


class LabelTable:
    """
    Label name -> instruction stream offset.

    Labels are case-sensitive. Defining the same label twice is an error.
    """

    def __init__(self) -> None:
        self._labels: dict[str, Label] = {}
        self._fixups: list[Fixup] = []

    def __contains__(self, name: str) -> bool:
        return name in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def record(self, name: str, address: int, location: SourceLocation,
               source_line: Optional[str] = None) -> None:
        """
        Bind a label to an address.

        Raises:
            DuplicateSymbolError: If the label is already defined
        """
        existing = self._labels.get(name)
        if existing is not None:
            raise DuplicateSymbolError(
                name,
                location=location,
                original_location=existing.location,
                source_line=source_line,
            )
        self._labels[name] = Label(name, address, location)
        logger.debug(f"Label '{name}' = {address} (line {location.line})")

    def lookup(self, name: str) -> Optional[int]:
        """Return the label's address, or None if not (yet) defined."""
        label = self._labels.get(name)
        return label.address if label is not None else None

    def add_fixup(self, fixup: Fixup) -> None:
        """Remember an operand to patch once its label is known."""
        self._fixups.append(fixup)

    @property
    def fixups(self) -> list[Fixup]:
        return list(self._fixups)

    def as_dict(self) -> dict[str, int]:
        """Return a name -> address snapshot."""
        return {name: label.address for name, label in self._labels.items()}

    def resolve_fixups(self, writer: BytecodeWriter) -> None:
        """
        Patch every pending forward reference.

        Raises:
            UndefinedSymbolError: For the first reference whose label was
                never defined
        """
        for fixup in self._fixups:
            address = self.lookup(fixup.label)
            if address is None:
                raise UndefinedSymbolError(
                    fixup.label,
                    location=fixup.location,
                    source_line=fixup.source_line,
                    similar_symbols=get_close_matches(fixup.label, self._labels.keys()),
                )
            writer.patch_int(fixup.operand_address, address)
        if self._fixups:
            logger.debug(f"Resolved {len(self._fixups)} forward references")
        self._fixups.clear()


# =============================================================================
# Compilation Context
# =============================================================================

@dataclass
class CompilationContext:
    """
    Per-compilation state threaded through every assembler stage.

    Attributes:
        filename: Source name used in error locations
        strict: Reject unknown mnemonics instead of skipping them
        state: Segment and build target
        labels: Label table and forward references
        writer: Bytecode being produced
    """
    filename: str = "<input>"
    strict: bool = False
    state: CompilationState = field(default_factory=CompilationState)
    labels: LabelTable = field(default_factory=LabelTable)
    writer: BytecodeWriter = field(default_factory=BytecodeWriter)

    def location(self, line: int) -> SourceLocation:
        """Build a SourceLocation for a line of this compilation."""
        return SourceLocation(self.filename, line)
