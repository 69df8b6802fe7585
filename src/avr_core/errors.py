"""
AVR Core Error Hierarchy
========================

This module defines the exception hierarchy for the AVR instruction core.
All exceptions inherit from AvrError, allowing callers to catch every
core-related error with a single except clause if desired.

Exception Hierarchy
-------------------
AvrError (base)
├── CoreError (instruction execution)
│   ├── InvalidRegisterIndexError - register index outside 0-31
│   ├── InvalidFlagIndexError - SREG bit index outside 0-7
│   ├── OperandRangeError - immediate, bit number, offset or address out of range
│   ├── UnknownInstructionError - mnemonic not implemented by the core
│   ├── UnsupportedInstructionError - instruction not available on the device
│   ├── StackUnavailableError - CALL/RET executed without a stack collaborator
│   └── StackUnderflowError - RET/RETI popped an empty return stack
├── SnapshotError - malformed CPU snapshot data
└── ScriptError - error in an avrrun instruction script

Design Philosophy
-----------------
Every error is local to a single instruction call and reported synchronously.
Nothing in the core prints or exits the process; the host program decides how
to react to a malformed instruction stream.

Error messages follow this format:
    error: ADD: register index 32 out of range (0-31)
    hint: the decoder must only pass register indices 0-31
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class AvrError(Exception):
    """
    Base exception for all AVR core errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every core-related error with a single except clause:

        try:
            core.bset(flag_index)
        except AvrError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in an instruction script for error reporting.

    Attributes:
        filename: Name of the script file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Instruction Execution Exceptions
# =============================================================================

class CoreError(AvrError):
    """
    Base exception for errors raised while executing an instruction.

    Attributes:
        message: The error description
        mnemonic: The instruction being executed when the error occurred
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        mnemonic: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.mnemonic = mnemonic
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with the mnemonic and hint.

        Example output:
            error: BSET: flag index 9 out of range (0-7)
            hint: SREG has eight bits, C=0 through I=7
        """
        if self.mnemonic:
            parts = [f"error: {self.mnemonic}: {self.message}"]
        else:
            parts = [f"error: {self.message}"]

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class InvalidRegisterIndexError(CoreError):
    """
    Register index outside the 32-entry register file.

    The decoder must never produce one, but the core rejects it rather than
    reading or writing out of bounds. Also raised for register pairs whose
    low index is odd or above 30, and for immediate-form instructions given
    a register outside their restricted range (e.g. R16-R31 for LDI).
    """

    def __init__(
        self,
        index: int,
        mnemonic: Optional[str] = None,
        valid: str = "0-31",
        hint: Optional[str] = None,
    ):
        self.index = index
        self.valid = valid
        super().__init__(
            f"register index {index} out of range ({valid})",
            mnemonic=mnemonic,
            hint=hint,
        )


class InvalidFlagIndexError(CoreError):
    """
    SREG bit index outside 0-7.

    Raised by BSET, BCLR, BRBS, BRBC and the StatusRegister accessors.
    """

    def __init__(
        self,
        index: int,
        mnemonic: Optional[str] = None,
        hint: Optional[str] = "SREG has eight bits, C=0 through I=7",
    ):
        self.index = index
        super().__init__(
            f"flag index {index} out of range (0-7)",
            mnemonic=mnemonic,
            hint=hint,
        )


class OperandRangeError(CoreError):
    """
    Operand value outside the range its instruction field can encode.

    Examples:
        - 8-bit immediate outside 0-255
        - bit number outside 0-7
        - branch offset outside -64..63
        - jump target beyond the end of program memory
    """

    def __init__(
        self,
        operand: str,
        value: int,
        low: int,
        high: int,
        mnemonic: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.operand = operand
        self.value = value
        self.low = low
        self.high = high
        super().__init__(
            f"{operand} {value} out of range ({low}..{high})",
            mnemonic=mnemonic,
            hint=hint,
        )


class UnknownInstructionError(CoreError):
    """Mnemonic not implemented by the instruction core."""

    def __init__(self, mnemonic: str, hint: Optional[str] = None):
        super().__init__(f"unknown instruction '{mnemonic}'", hint=hint)


class UnsupportedInstructionError(CoreError):
    """
    Instruction not available on the configured device.

    Small devices (ATmega8, ATtiny85) have no two-word JMP/CALL; programs
    for them must use RJMP/RCALL.
    """

    def __init__(self, mnemonic: str, device: str):
        self.device = device
        super().__init__(
            f"not supported on {device}",
            mnemonic=mnemonic,
            hint="use RJMP/RCALL on devices without JMP/CALL",
        )


class StackUnavailableError(CoreError):
    """CALL, RCALL, RET or RETI executed on a core built without a stack."""

    def __init__(self, mnemonic: str):
        super().__init__(
            "no stack collaborator attached to this core",
            mnemonic=mnemonic,
            hint="pass a StackProtocol implementation to AVRCore(stack=...)",
        )


class StackUnderflowError(CoreError):
    """
    RET or RETI executed with no return address on the stack.

    StackProtocol implementations raise it without a mnemonic; AVRCore
    re-raises it naming the instruction that popped.
    """

    def __init__(self, mnemonic: Optional[str] = None):
        super().__init__(
            "return stack is empty",
            mnemonic=mnemonic,
            hint="every RET/RETI needs a matching CALL or RCALL",
        )


# =============================================================================
# Snapshot and Script Exceptions
# =============================================================================

class SnapshotError(AvrError):
    """
    Invalid CPU snapshot data.

    Raised when a snapshot file has a bad header or is truncated.
    """
    pass


class ScriptError(AvrError):
    """
    Error in an avrrun instruction script.

    Attributes:
        message: The error description
        location: Where in the script the error occurred (optional)
        source_line: The script text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            parts = [f"{self.location}: error: {self.message}"]
        else:
            parts = [f"error: {self.message}"]
        if self.source_line is not None:
            parts.append(f"    {self.source_line}")
        return "\n".join(parts)
