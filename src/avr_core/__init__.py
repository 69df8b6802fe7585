"""
AVR Core - Instruction Execution Core for AVR 8-bit Microcontrollers
====================================================================

This package provides the instruction-execution core of an AVR emulator:
the 32-entry register file, the SREG status flags, and bit-exact
semantics for the arithmetic, logic, bit, data-move, flag-control and
control-transfer instructions that mutate them.

Decoding machine words, memory, I/O and interrupts are left to the host.
The core receives already-resolved operands and computes register, flag
and program-counter effects.

Main Components
---------------
- **cpu**: RegisterFile, StatusRegister, flag functions, AVRCore
- **errors**: Exception hierarchy rooted at AvrError
- **cli**: `avrrun`, a host harness that executes instruction scripts

Quick Start
-----------
Reproduce the classic ADD half-carry check:
    >>> from avr_core import AVRCore, Flag
    >>> core = AVRCore()
    >>> core.context.registers[0] = 250
    >>> core.context.registers[1] = 6
    >>> core.add(0, 1)
    >>> core.get_register(0), core.get_flag(Flag.H), core.get_flag(Flag.Z)
    (0, True, True)

Or use the command-line harness:
    $ avrrun program.avr --set r0=250 --set r1=6

Reference Documentation
-----------------------
- AVR Instruction Set Manual (Microchip DS40002198)
- ATmega328P datasheet, "AVR CPU Core" chapter

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from avr_core.errors import (
    AvrError,
    CoreError,
    InvalidRegisterIndexError,
    InvalidFlagIndexError,
    OperandRangeError,
    UnknownInstructionError,
    UnsupportedInstructionError,
    StackUnavailableError,
    StackUnderflowError,
    SnapshotError,
    ScriptError,
    SourceLocation,
)
from avr_core.cpu import (
    AVRCore,
    CoreConfig,
    CPUContext,
    Flag,
    ListStack,
    RegisterFile,
    StatusRegister,
    ProgramCounter,
    StackProtocol,
    get_device,
    sign_extend,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Core
    "AVRCore",
    "CoreConfig",
    "CPUContext",
    "Flag",
    "ListStack",
    "RegisterFile",
    "StatusRegister",
    "ProgramCounter",
    "StackProtocol",
    "get_device",
    "sign_extend",
    # Errors
    "AvrError",
    "CoreError",
    "InvalidRegisterIndexError",
    "InvalidFlagIndexError",
    "OperandRangeError",
    "UnknownInstructionError",
    "UnsupportedInstructionError",
    "StackUnavailableError",
    "StackUnderflowError",
    "SnapshotError",
    "ScriptError",
    "SourceLocation",
]
