"""
AVR Status Register (SREG)
==========================

Bit layout of SREG:
    7  6  5  4  3  2  1  0
    I  T  H  S  V  N  Z  C

Each bit is an independent boolean, indexed directly by its bit number.
Instructions touch only the flags their definition names; every other
flag keeps its previous value.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from enum import IntEnum
from typing import Optional, Union

from avr_core.errors import InvalidFlagIndexError


class Flag(IntEnum):
    """SREG bit numbers."""
    C = 0  # Carry
    Z = 1  # Zero
    N = 2  # Negative
    V = 3  # Two's complement overflow
    S = 4  # Sign, N xor V
    H = 5  # Half carry
    T = 6  # Bit copy storage
    I = 7  # Global interrupt enable


NUM_FLAGS = 8

FlagIndex = Union[Flag, int]


def check_flag(index: FlagIndex, mnemonic: Optional[str] = None) -> int:
    """
    Validate an SREG bit index.

    Raises:
        InvalidFlagIndexError: If index is outside 0-7
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < NUM_FLAGS:
        raise InvalidFlagIndexError(index, mnemonic=mnemonic)
    return int(index)


def parse_flag(name: str) -> Flag:
    """
    Look up a flag by its letter.

    Raises:
        ValueError: If name is not one of C Z N V S H T I
    """
    try:
        return Flag[name.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown flag '{name}'. Available: C Z N V S H T I") from None


class StatusRegister:
    """
    Eight independent SREG flags.

    Example:
        >>> sreg = StatusRegister()
        >>> sreg.z = True
        >>> sreg.get(Flag.Z)
        True
        >>> sreg.value
        2
    """

    def __init__(self) -> None:
        self._bits = [False] * NUM_FLAGS

    def get(self, index: FlagIndex) -> bool:
        """Read flag `index` (0-7)."""
        return self._bits[check_flag(index)]

    def set(self, index: FlagIndex, value: bool) -> None:
        """Write flag `index` (0-7)."""
        self._bits[check_flag(index)] = bool(value)

    def reset(self) -> None:
        """Clear all flags."""
        self._bits = [False] * NUM_FLAGS

    @property
    def value(self) -> int:
        """Packed SREG byte."""
        result = 0
        for bit, flag in enumerate(self._bits):
            if flag:
                result |= 1 << bit
        return result

    @value.setter
    def value(self, byte: int) -> None:
        self._bits = [bool((byte >> bit) & 1) for bit in range(NUM_FLAGS)]

    def as_dict(self) -> dict[str, bool]:
        """Flag letter -> state, in bit order C..I."""
        return {flag.name: self._bits[flag] for flag in Flag}

    # ========================================
    # Named Flag Properties
    # ========================================

    @property
    def c(self) -> bool:
        """Carry flag."""
        return self._bits[Flag.C]

    @c.setter
    def c(self, value: bool) -> None:
        self._bits[Flag.C] = bool(value)

    @property
    def z(self) -> bool:
        """Zero flag."""
        return self._bits[Flag.Z]

    @z.setter
    def z(self, value: bool) -> None:
        self._bits[Flag.Z] = bool(value)

    @property
    def n(self) -> bool:
        """Negative flag."""
        return self._bits[Flag.N]

    @n.setter
    def n(self, value: bool) -> None:
        self._bits[Flag.N] = bool(value)

    @property
    def v(self) -> bool:
        """Overflow flag."""
        return self._bits[Flag.V]

    @v.setter
    def v(self, value: bool) -> None:
        self._bits[Flag.V] = bool(value)

    @property
    def s(self) -> bool:
        """Sign flag."""
        return self._bits[Flag.S]

    @s.setter
    def s(self, value: bool) -> None:
        self._bits[Flag.S] = bool(value)

    @property
    def h(self) -> bool:
        """Half-carry flag."""
        return self._bits[Flag.H]

    @h.setter
    def h(self, value: bool) -> None:
        self._bits[Flag.H] = bool(value)

    @property
    def t(self) -> bool:
        """Bit copy storage."""
        return self._bits[Flag.T]

    @t.setter
    def t(self, value: bool) -> None:
        self._bits[Flag.T] = bool(value)

    @property
    def i(self) -> bool:
        """Global interrupt enable."""
        return self._bits[Flag.I]

    @i.setter
    def i(self, value: bool) -> None:
        self._bits[Flag.I] = bool(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusRegister):
            return NotImplemented
        return self._bits == other._bits

    def __repr__(self) -> str:
        letters = "".join(
            flag.name if self._bits[flag] else "-"
            for flag in reversed(Flag)
        )
        return f"StatusRegister({letters})"
