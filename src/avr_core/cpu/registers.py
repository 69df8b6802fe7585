"""
AVR Register File and Program Counter
=====================================

The AVR core has 32 general-purpose 8-bit registers, R0 through R31.
The upper six form three 16-bit pointer pairs:

    R27:R26 = X
    R29:R28 = Y
    R31:R30 = Z

Pairs are little-endian: the even register holds the low byte.

Every cell always holds a value in 0-255. Writes are truncated to 8 bits
(two's complement), so arithmetic overflow wraps and never traps.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import Iterator, Optional

from avr_core.errors import InvalidRegisterIndexError


NUM_REGISTERS = 32

# Low register index of each pointer pair
X_REG = 26
Y_REG = 28
Z_REG = 30

POINTER_PAIRS = {"X": X_REG, "Y": Y_REG, "Z": Z_REG}


def check_register(index: int, mnemonic: Optional[str] = None) -> int:
    """
    Validate a register index.

    Args:
        index: Register number
        mnemonic: Instruction name for the error message

    Returns:
        The index, unchanged

    Raises:
        InvalidRegisterIndexError: If index is outside 0-31
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < NUM_REGISTERS:
        raise InvalidRegisterIndexError(
            index,
            mnemonic=mnemonic,
            hint="the decoder must only pass register indices 0-31",
        )
    return index


def check_pair(low_index: int, mnemonic: Optional[str] = None) -> int:
    """Validate the low index of a register pair (even, 0-30)."""
    if (
        isinstance(low_index, bool)
        or not isinstance(low_index, int)
        or not 0 <= low_index < NUM_REGISTERS - 1
        or low_index % 2
    ):
        raise InvalidRegisterIndexError(
            low_index,
            mnemonic=mnemonic,
            valid="even 0-30",
            hint="register pairs start at an even register",
        )
    return low_index


class RegisterFile:
    """
    32 independent 8-bit registers.

    Example:
        >>> regs = RegisterFile()
        >>> regs[16] = 0x1FF
        >>> regs[16]
        255
        >>> regs.write_pair(X_REG, 0x1234)
        >>> regs[26], regs[27]
        (52, 18)
    """

    def __init__(self) -> None:
        self._cells = bytearray(NUM_REGISTERS)

    def read(self, index: int) -> int:
        """Read register R<index>."""
        return self._cells[check_register(index)]

    def write(self, index: int, value: int) -> None:
        """Write register R<index>, truncating value to 8 bits."""
        self._cells[check_register(index)] = value & 0xFF

    def read_pair(self, low_index: int) -> int:
        """Read the 16-bit value R<low+1>:R<low>."""
        check_pair(low_index)
        return self._cells[low_index] | (self._cells[low_index + 1] << 8)

    def write_pair(self, low_index: int, value: int) -> None:
        """Write a 16-bit value into R<low+1>:R<low>."""
        check_pair(low_index)
        self._cells[low_index] = value & 0xFF
        self._cells[low_index + 1] = (value >> 8) & 0xFF

    def reset(self) -> None:
        """Zero every register."""
        for i in range(NUM_REGISTERS):
            self._cells[i] = 0

    def as_bytes(self) -> bytes:
        """Return a copy of all 32 registers."""
        return bytes(self._cells)

    def load_bytes(self, data: bytes) -> None:
        """Replace all 32 registers from a 32-byte sequence."""
        if len(data) != NUM_REGISTERS:
            raise ValueError(
                f"register data must be {NUM_REGISTERS} bytes, got {len(data)}"
            )
        self._cells[:] = bytes(b & 0xFF for b in data)

    def __getitem__(self, index: int) -> int:
        return self.read(index)

    def __setitem__(self, index: int, value: int) -> None:
        self.write(index, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegisterFile):
            return NotImplemented
        return self._cells == other._cells

    def __len__(self) -> int:
        return NUM_REGISTERS

    def __iter__(self) -> Iterator[int]:
        return iter(self._cells)

    def __repr__(self) -> str:
        nonzero = ", ".join(
            f"R{i}=${v:02X}" for i, v in enumerate(self._cells) if v
        )
        return f"RegisterFile({nonzero})"


class ProgramCounter:
    """
    Word address of the next instruction.

    The counter wraps modulo the size of program memory, as the hardware
    does: a relative branch past the end of flash lands at the start.

    Attributes:
        size: Program memory size in 16-bit words
    """

    def __init__(self, size: int = 0x4000, value: int = 0) -> None:
        if size <= 0:
            raise ValueError(f"program memory size must be positive, got {size}")
        self.size = size
        self._value = value % size

    @property
    def value(self) -> int:
        """Current word address."""
        return self._value

    @value.setter
    def value(self, address: int) -> None:
        self._value = address % self.size

    def advance(self, words: int = 1) -> None:
        """Move past an instruction of `words` words."""
        self._value = (self._value + words) % self.size

    def relative(self, offset: int) -> None:
        """Relative transfer: PC <- PC + offset + 1."""
        self._value = (self._value + offset + 1) % self.size

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProgramCounter):
            return self._value == other._value and self.size == other.size
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"ProgramCounter(${self._value:04X})"
