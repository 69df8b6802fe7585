"""
Flag Computation Unit Tests
===========================

Tests for the pure SREG flag functions in avr_core.cpu.flags, checked
against the arithmetic definitions of carry, half-carry and overflow.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from avr_core.cpu import flags


def _to_signed(value: int) -> int:
    return value - 256 if value & 0x80 else value


# =============================================================================
# Result Flags
# =============================================================================

class TestResultFlags:
    """Test zero, negative and signed."""

    def test_zero(self):
        """Z is set only for a zero byte."""
        assert flags.zero(0x00) is True
        assert flags.zero(0x01) is False
        assert flags.zero(0x80) is False

    def test_zero_ignores_bits_above_byte(self):
        """A truncated 0x100 is zero."""
        assert flags.zero(0x100) is True

    def test_negative_uses_bit_7(self):
        """N is bit 7 of the result, not the truthiness of the result."""
        assert flags.negative(0x80) is True
        assert flags.negative(0xFF) is True
        assert flags.negative(0x7F) is False
        assert flags.negative(0x01) is False

    @pytest.mark.parametrize("n,v,expected", [
        (False, False, False),
        (True, False, True),
        (False, True, True),
        (True, True, False),
    ])
    def test_signed_is_xor(self, n, v, expected):
        """S = N xor V."""
        assert flags.signed(n, v) is expected

    def test_word_flags(self):
        """16-bit zero and negative."""
        assert flags.zero16(0x0000) is True
        assert flags.zero16(0x0100) is False
        assert flags.negative16(0x8000) is True
        assert flags.negative16(0x7FFF) is False


# =============================================================================
# Addition Flags
# =============================================================================

class TestAdditionFlags:
    """Test H, V and C for the ADD family."""

    def test_half_carry_250_plus_6(self):
        """$A + $6 carries out of the low nibble."""
        assert flags.half_carry(250, 6, 0) is True

    def test_no_half_carry(self):
        """$1 + $1 stays inside the low nibble."""
        assert flags.half_carry(1, 1, 2) is False

    def test_carry_out_of_bit_7(self):
        """$FA + $06 = $100 sets C."""
        assert flags.carry(0xFA, 0x06, 0x00, is_subtraction=False) is True

    def test_overflow_positive_boundary(self):
        """$7F + $01 overflows into the sign bit."""
        assert flags.overflow(0x7F, 0x01, 0x80, is_subtraction=False) is True

    def test_overflow_negative_boundary(self):
        """$80 + $FF (-128 + -1) overflows."""
        assert flags.overflow(0x80, 0xFF, 0x7F, is_subtraction=False) is True

    def test_mixed_signs_never_overflow(self):
        """Operands of opposite sign cannot overflow."""
        assert flags.overflow(0x7F, 0x80, 0xFF, is_subtraction=False) is False

    def test_all_operand_pairs(self):
        """Identities agree with integer arithmetic for every byte pair."""
        for rd in range(256):
            for rr in range(256):
                total = rd + rr
                result = total & 0xFF
                signed_total = _to_signed(rd) + _to_signed(rr)
                assert flags.carry(rd, rr, result, False) == (total > 0xFF)
                assert flags.half_carry(rd, rr, result) == (
                    (rd & 0x0F) + (rr & 0x0F) > 0x0F
                )
                assert flags.overflow(rd, rr, result, False) == (
                    not -128 <= signed_total <= 127
                )


# =============================================================================
# Subtraction Flags
# =============================================================================

class TestSubtractionFlags:
    """Test H, V and C for the SUB/CP family."""

    def test_borrow(self):
        """$00 - $01 borrows."""
        assert flags.carry(0x00, 0x01, 0xFF, is_subtraction=True) is True

    def test_no_borrow_when_equal(self):
        """$42 - $42 does not borrow."""
        assert flags.carry(0x42, 0x42, 0x00, is_subtraction=True) is False

    def test_half_borrow(self):
        """$10 - $01 borrows from bit 4."""
        assert flags.half_carry(0x10, 0x01, 0x0F, is_subtraction=True) is True

    def test_overflow_negative_boundary(self):
        """$80 - $01 (-128 - 1) overflows."""
        assert flags.overflow(0x80, 0x01, 0x7F, is_subtraction=True) is True

    def test_addition_identity_differs(self):
        """The addition identities give the wrong answer for subtraction."""
        assert flags.carry(0x00, 0x01, 0xFF, is_subtraction=False) is False
        assert flags.carry(0x00, 0x01, 0xFF, is_subtraction=True) is True

    def test_all_operand_pairs(self):
        """Identities agree with integer arithmetic for every byte pair."""
        for rd in range(256):
            for rr in range(256):
                result = (rd - rr) & 0xFF
                signed_diff = _to_signed(rd) - _to_signed(rr)
                assert flags.carry(rd, rr, result, True) == (rr > rd)
                assert flags.half_carry(rd, rr, result, True) == (
                    (rr & 0x0F) > (rd & 0x0F)
                )
                assert flags.overflow(rd, rr, result, True) == (
                    not -128 <= signed_diff <= 127
                )


# =============================================================================
# Word Flags
# =============================================================================

class TestWordFlags:
    """Test the ADIW/SBIW bit-15 identities."""

    def test_adiw_carry(self):
        """$FFFF + 1 carries out of bit 15."""
        assert flags.carry16_add(0xFF, 0x0000) is True
        assert flags.carry16_add(0x7F, 0x8000) is False

    def test_adiw_overflow(self):
        """$7FFF + 1 overflows."""
        assert flags.overflow16_add(0x7F, 0x8000) is True
        assert flags.overflow16_add(0x00, 0x0001) is False

    def test_sbiw_borrow(self):
        """$0000 - 1 borrows."""
        assert flags.carry16_sub(0x00, 0xFFFF) is True
        assert flags.carry16_sub(0x01, 0x00FF) is False

    def test_sbiw_overflow(self):
        """$8000 - 1 overflows."""
        assert flags.overflow16_sub(0x80, 0x7FFF) is True
        assert flags.overflow16_sub(0x80, 0x8000) is False
