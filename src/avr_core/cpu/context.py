"""
AVR CPU Context
===============

A CPUContext bundles the three structures an instruction may mutate:
the register file, the status register and the program counter. Each
emulated CPU owns exactly one context; there is no module-level state, so
any number of independent CPUs can coexist.

Snapshot format (36 bytes):
    [R0 .. R31, SREG, PC bits 16-23, PC bits 8-15, PC bits 0-7]

Snapshot files prepend the magic header b"AVR\\x01".

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from avr_core.errors import SnapshotError
from avr_core.cpu.registers import (
    NUM_REGISTERS,
    POINTER_PAIRS,
    ProgramCounter,
    RegisterFile,
)
from avr_core.cpu.status import StatusRegister

logger = logging.getLogger(__name__)

SNAPSHOT_MAGIC = b"AVR\x01"
SNAPSHOT_SIZE = NUM_REGISTERS + 1 + 3


@dataclass
class CPUContext:
    """
    Complete CPU state for one emulated core.

    Attributes:
        registers: R0-R31
        sreg: Status register flags
        pc: Program counter (word address)
    """
    registers: RegisterFile = field(default_factory=RegisterFile)
    sreg: StatusRegister = field(default_factory=StatusRegister)
    pc: ProgramCounter = field(default_factory=ProgramCounter)

    @classmethod
    def for_flash(cls, flash_words: int, reset_vector: int = 0) -> "CPUContext":
        """Create a context whose PC wraps at `flash_words`."""
        return cls(pc=ProgramCounter(flash_words, reset_vector))

    def reset(self, vector: int = 0) -> None:
        """
        Reset to power-on state.

        Clears all registers and flags, and loads PC with the reset vector.
        """
        self.registers.reset()
        self.sreg.reset()
        self.pc.value = vector
        logger.debug("Context reset, PC=$%04X", self.pc.value)

    # ========================================
    # Read-only Views
    # ========================================

    def registers_dict(self) -> dict[str, int]:
        """
        Register values by name, for display and debugging.

        Returns:
            Dict with R0-R31, X, Y, Z, SREG and PC
        """
        result = {f"R{i}": value for i, value in enumerate(self.registers)}
        for name, low in POINTER_PAIRS.items():
            result[name] = self.registers.read_pair(low)
        result["SREG"] = self.sreg.value
        result["PC"] = self.pc.value
        return result

    # ========================================
    # Snapshot Support
    # ========================================

    def get_snapshot_data(self) -> list[int]:
        """
        Get CPU state as byte list for snapshot.

        Format: [R0..R31, SREG, PC23-16, PC15-8, PC7-0]
        """
        pc = self.pc.value
        return [
            *self.registers.as_bytes(),
            self.sreg.value,
            (pc >> 16) & 0xFF,
            (pc >> 8) & 0xFF,
            pc & 0xFF,
        ]

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """
        Restore CPU state from snapshot data.

        Returns:
            Number of bytes consumed from data (36)

        Raises:
            SnapshotError: If data is too short, or its PC is beyond program memory
        """
        if len(data) - offset < SNAPSHOT_SIZE:
            raise SnapshotError(
                f"Snapshot data truncated: need {SNAPSHOT_SIZE} bytes, "
                f"got {max(len(data) - offset, 0)}"
            )
        sreg_at = offset + NUM_REGISTERS
        pc = (
            (data[sreg_at + 1] << 16) | (data[sreg_at + 2] << 8) | data[sreg_at + 3]
        )
        if pc >= self.pc.size:
            raise SnapshotError(
                f"Snapshot PC ${pc:04X} is beyond program memory "
                f"({self.pc.size} words)"
            )
        self.registers.load_bytes(bytes(data[offset:sreg_at]))
        self.sreg.value = data[sreg_at]
        self.pc.value = pc
        return SNAPSHOT_SIZE

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Save CPU state to a file.

        Args:
            path: Path to save snapshot file
        """
        path = Path(path)
        path.write_bytes(SNAPSHOT_MAGIC + bytes(self.get_snapshot_data()))
        logger.debug("Snapshot saved to %s", path)

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Load CPU state from a snapshot file.

        Args:
            path: Path to snapshot file

        Raises:
            SnapshotError: If snapshot format is invalid
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        data = path.read_bytes()

        if data[:len(SNAPSHOT_MAGIC)] != SNAPSHOT_MAGIC:
            raise SnapshotError("Invalid snapshot format (bad header)")

        self.apply_snapshot_data(list(data), len(SNAPSHOT_MAGIC))
        logger.debug("Snapshot loaded from %s", path)
