"""
AVR CPU Core
============

Register file, status register, flag computation and instruction
semantics for the AVR 8-bit architecture.

Quick Start
-----------

    >>> from avr_core.cpu import AVRCore, Flag
    >>> core = AVRCore()
    >>> core.ldi(16, 0x7F)
    >>> core.inc(16)
    >>> core.get_register(16), core.get_flag(Flag.V)
    (128, True)

Module Structure
----------------

- `registers.py`: RegisterFile, ProgramCounter, pointer-pair constants
- `status.py`: Flag bit numbers and StatusRegister
- `flags.py`: Pure flag computation (zero, negative, carry, ...)
- `context.py`: CPUContext and snapshots
- `devices.py`: Supported AVR parts
- `branches.py`: Named branch to BRBS/BRBC equivalence table
- `core.py`: AVRCore instruction semantics

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from .registers import (
    NUM_REGISTERS,
    X_REG,
    Y_REG,
    Z_REG,
    POINTER_PAIRS,
    RegisterFile,
    ProgramCounter,
)
from .status import Flag, StatusRegister, parse_flag
from . import flags
from .context import CPUContext, SNAPSHOT_MAGIC, SNAPSHOT_SIZE
from .devices import AvrDevice, get_device, list_devices
from .branches import BRANCH_TABLE, BranchCondition, sign_extend
from .core import AVRCore, CoreConfig, ListStack, StackProtocol, INSTRUCTIONS

__all__ = [
    # Registers
    "NUM_REGISTERS",
    "X_REG",
    "Y_REG",
    "Z_REG",
    "POINTER_PAIRS",
    "RegisterFile",
    "ProgramCounter",
    # Status register
    "Flag",
    "StatusRegister",
    "parse_flag",
    "flags",
    # Context
    "CPUContext",
    "SNAPSHOT_MAGIC",
    "SNAPSHOT_SIZE",
    # Devices
    "AvrDevice",
    "get_device",
    "list_devices",
    # Branches
    "BRANCH_TABLE",
    "BranchCondition",
    "sign_extend",
    # Core
    "AVRCore",
    "CoreConfig",
    "ListStack",
    "StackProtocol",
    "INSTRUCTIONS",
]
