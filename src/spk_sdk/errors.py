"""
SPK SDK Error Hierarchy
=======================

This module defines the exception hierarchy for the entire SPK SDK.
All exceptions inherit from SPKError, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
SPKError (base)
├── AssemblerError (assembler-related)
│   ├── AssemblySyntaxError - malformed line or operand
│   ├── ExpressionError - malformed immediate expression
│   ├── DirectiveError - invalid or missing #build directive
│   ├── UndefinedSymbolError - reference to undefined label
│   ├── DuplicateSymbolError - label defined multiple times
│   ├── MissingSpecificationError - reserved but unimplemented mnemonic
│   └── UnknownMnemonicError - unrecognized mnemonic (strict mode)
└── BytecodeFormatError - invalid serialized bytecode container

Every assembler error carries a kind tag, a message and the 1-based source
line number at which it was detected. Errors that are not tied to a single
line (e.g. a missing #build directive) report line -1.

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class SPKError(Exception):
    """
    Base exception for all SPK SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            assemble_file("program.spk")
        except SPKError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

NO_LINE = -1


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed), or -1 when not line specific
    """
    filename: str
    line: int

    def __str__(self) -> str:
        """Format as 'filename:line' for error messages."""
        if self.line == NO_LINE:
            return self.filename
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(SPKError):
    """
    Base exception for all assembler-related errors.

    Assembly has no recovery mode: the first AssemblerError aborts the
    whole compilation and no partially built bytecode is returned.

    Attributes:
        kind: Error kind tag, always "AssemblerError"
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    kind = "AssemblerError"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> int:
        """1-based line number of the failure, or -1 if not line specific."""
        if self.location is None:
            return NO_LINE
        return self.location.line

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            loop.spk:7: error: undefined label 'strat'
                jmp strat
            hint: did you mean 'start'?
        """
        parts = []

        if self.location and self.location.line != NO_LINE:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised when a line cannot be encoded because of its shape rather than
    its meaning:
        - Missing operand (e.g. a bare `jmp`)
        - Malformed integer index or address
        - Operand that does not fit the 4-byte operand encoding
    """
    pass


class ExpressionError(AssemblerError):
    """
    Malformed immediate expression.

    An immediate expression must be a decimal number or a double-quoted
    string. Anything else (including a missing expression) is rejected.
    """
    pass


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive.

    Raised when #build names an unknown build type, or when a compilation
    finishes without any #build directive.
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised at the end of pass 2 when a jump, loop or call references a label
    that was never defined. Similarly-named labels are suggested as a hint,
    helping to catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label defined multiple times.

    Includes the line of the original definition as a hint.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingSpecificationError(AssemblerError):
    """
    Reserved mnemonic without an encoding.

    The chunk-related mnemonics (chunks, curch, chusz) are reserved by the
    instruction set but have no defined encoding yet.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"Missing compiler specification for '{mnemonic}'",
            location=location,
            source_line=source_line,
        )


class UnknownMnemonicError(AssemblerError):
    """
    Unrecognized mnemonic.

    Only raised in strict mode; by default unknown mnemonics are skipped
    with a warning.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_mnemonics: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        hint = None
        if similar_mnemonics:
            suggestions = ", ".join(f"'{m}'" for m in similar_mnemonics[:3])
            hint = f"did you mean {suggestions}?"
        super().__init__(
            f"unknown mnemonic '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Bytecode Container Exceptions
# =============================================================================

class BytecodeFormatError(SPKError):
    """
    Invalid serialized bytecode.

    Raised when reading a bytecode container that:
    - Has missing or invalid magic bytes ("SPK")
    - Has an unsupported format version
    - Is truncated or has inconsistent length fields
    - Contains an unknown constant tag
    """
    pass
