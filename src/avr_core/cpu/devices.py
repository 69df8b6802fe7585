"""
AVR Device Definitions
======================

Defines the program-memory characteristics of the supported AVR parts.

Each device has specific characteristics:
- Flash size in 16-bit words (the program counter wraps at this size)
- Whether the two-word JMP/CALL instructions exist
- Reset vector (word address)

The device configuration is used by AVRCore to validate absolute jump
targets and to wrap relative branches.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AvrDevice:
    """
    Configuration for an AVR microcontroller.

    Attributes:
        name: Part name (e.g., "ATmega328P")
        flash_words: Program memory size in 16-bit words
        has_jmp_call: True if JMP and CALL are implemented
        reset_vector: Word address loaded into PC on reset
    """
    name: str
    flash_words: int
    has_jmp_call: bool
    reset_vector: int = 0x0000

    @property
    def flash_bytes(self) -> int:
        """Program memory size in bytes."""
        return self.flash_words * 2

    @property
    def pc_bits(self) -> int:
        """Width of the program counter in bits."""
        return (self.flash_words - 1).bit_length()


# =============================================================================
# Predefined Device Configurations
# =============================================================================

DEVICE_ATMEGA328P = AvrDevice(
    name="ATmega328P",
    flash_words=0x4000,      # 32 KB
    has_jmp_call=True,
)

DEVICE_ATMEGA8 = AvrDevice(
    name="ATmega8",
    flash_words=0x1000,      # 8 KB
    has_jmp_call=False,
)

DEVICE_ATTINY85 = AvrDevice(
    name="ATtiny85",
    flash_words=0x1000,      # 8 KB
    has_jmp_call=False,
)

DEVICE_ATMEGA2560 = AvrDevice(
    name="ATmega2560",
    flash_words=0x20000,     # 256 KB
    has_jmp_call=True,
)

DEVICE_DEFAULT = DEVICE_ATMEGA328P

_DEVICE_MAP = {
    device.name.upper(): device
    for device in (
        DEVICE_ATMEGA328P,
        DEVICE_ATMEGA8,
        DEVICE_ATTINY85,
        DEVICE_ATMEGA2560,
    )
}


# =============================================================================
# Device Selection Functions
# =============================================================================

def get_device(name: str) -> AvrDevice:
    """
    Get device configuration by part name.

    Args:
        name: Part name (case-insensitive), e.g. "atmega328p"

    Returns:
        AvrDevice configuration

    Raises:
        ValueError: If the part is not recognized
    """
    code = name.upper().strip()

    if code in _DEVICE_MAP:
        return _DEVICE_MAP[code]

    # Common shorthand without the suffix letter
    if code == "ATMEGA328":
        return DEVICE_ATMEGA328P
    if code in ("DEFAULT", ""):
        return DEVICE_DEFAULT

    available = ", ".join(d.name for d in list_devices())
    raise ValueError(f"Unknown device '{name}'. Available: {available}")


def list_devices() -> list[AvrDevice]:
    """
    Get list of all predefined device configurations.

    Returns:
        List of AvrDevice instances
    """
    return [
        DEVICE_ATMEGA328P,
        DEVICE_ATMEGA8,
        DEVICE_ATTINY85,
        DEVICE_ATMEGA2560,
    ]
