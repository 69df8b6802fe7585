"""
AVR Flag Computation
====================

Pure functions deriving SREG flag values from an operation's operands and
its 8-bit (or 16-bit) truncated result. Nothing here touches CPU state.

Addition and subtraction use different carry, half-carry and overflow
identities, so every arithmetic helper takes the operation kind explicitly.
The identities below are the ones in the AVR instruction set manual, where
Rd is the destination operand, Rr the source operand and R the result:

    Addition (ADD, ADC, INC-style):
        H = Rd3·Rr3 + Rr3·!R3 + !R3·Rd3
        V = Rd7·Rr7·!R7 + !Rd7·!Rr7·R7
        C = Rd7·Rr7 + Rr7·!R7 + !R7·Rd7

    Subtraction (SUB, SBC, CP, CPC, CPI, SUBI, SBCI):
        H = !Rd3·Rr3 + Rr3·R3 + R3·!Rd3
        V = Rd7·!Rr7·!R7 + !Rd7·Rr7·R7
        C = !Rd7·Rr7 + Rr7·R7 + R7·!Rd7

Because they are evaluated on the truncated result, the same identities
hold for the carry-in forms (ADC, SBC, CPC, SBCI).

Copyright (c) 2025 Hugo José Pinto & Contributors
"""


def _bit(value: int, n: int) -> bool:
    return bool((value >> n) & 1)


# =============================================================================
# Result Flags
# =============================================================================

def zero(result: int) -> bool:
    """Set if the 8-bit result is $00."""
    return (result & 0xFF) == 0


def zero16(result: int) -> bool:
    """Set if the 16-bit result is $0000."""
    return (result & 0xFFFF) == 0


def negative(result: int) -> bool:
    """Set if bit 7 of the result is set."""
    return (result & 0x80) != 0


def negative16(result: int) -> bool:
    """Set if bit 15 of the result is set."""
    return (result & 0x8000) != 0


def signed(n: bool, v: bool) -> bool:
    """S = N xor V, for signed tests."""
    return bool(n) != bool(v)


# =============================================================================
# Arithmetic Flags (8-bit)
# =============================================================================

def half_carry(rd: int, rr: int, result: int, is_subtraction: bool = False) -> bool:
    """
    Carry out of (or borrow into) bit 3.

    Args:
        rd: Destination operand before the operation
        rr: Source operand
        result: Truncated result
        is_subtraction: True for the SUB/CP family, False for the ADD family
    """
    rd3, rr3, r3 = _bit(rd, 3), _bit(rr, 3), _bit(result, 3)
    if is_subtraction:
        return (not rd3 and rr3) or (rr3 and r3) or (r3 and not rd3)
    return (rd3 and rr3) or (rr3 and not r3) or (not r3 and rd3)


def overflow(rd: int, rr: int, result: int, is_subtraction: bool) -> bool:
    """
    Two's complement overflow at bit 7.

    Addition overflows when both operands share a sign and the result's sign
    differs. Subtraction overflows when the operands differ in sign and the
    result's sign differs from Rd.
    """
    rd7, rr7, r7 = _bit(rd, 7), _bit(rr, 7), _bit(result, 7)
    if is_subtraction:
        return (rd7 and not rr7 and not r7) or (not rd7 and rr7 and r7)
    return (rd7 and rr7 and not r7) or (not rd7 and not rr7 and r7)


def carry(rd: int, rr: int, result: int, is_subtraction: bool) -> bool:
    """
    Carry out of bit 7 (addition) or borrow into bit 7 (subtraction).

    For subtraction C is set when |Rr| (plus any carry-in) exceeds |Rd|.
    """
    rd7, rr7, r7 = _bit(rd, 7), _bit(rr, 7), _bit(result, 7)
    if is_subtraction:
        return (not rd7 and rr7) or (rr7 and r7) or (r7 and not rd7)
    return (rd7 and rr7) or (rr7 and not r7) or (not r7 and rd7)


# =============================================================================
# Word Flags (ADIW/SBIW)
# =============================================================================
# ADIW/SBIW add or subtract a 6-bit constant, so only bit 15 of the source
# word and bit 15 of the result take part.

def overflow16_add(rdh: int, result: int) -> bool:
    """V for ADIW: !Rdh7·R15."""
    return not _bit(rdh, 7) and _bit(result, 15)


def carry16_add(rdh: int, result: int) -> bool:
    """C for ADIW: !R15·Rdh7."""
    return not _bit(result, 15) and _bit(rdh, 7)


def overflow16_sub(rdh: int, result: int) -> bool:
    """V for SBIW: Rdh7·!R15."""
    return _bit(rdh, 7) and not _bit(result, 15)


def carry16_sub(rdh: int, result: int) -> bool:
    """C for SBIW: R15·!Rdh7."""
    return _bit(result, 15) and not _bit(rdh, 7)
