"""
Register File, Status Register and Program Counter Tests
========================================================

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from avr_core.cpu import (
    Flag,
    ProgramCounter,
    RegisterFile,
    StatusRegister,
    X_REG,
    Y_REG,
    Z_REG,
    parse_flag,
)
from avr_core.errors import InvalidFlagIndexError, InvalidRegisterIndexError


# =============================================================================
# Register File
# =============================================================================

class TestRegisterFile:
    """Test the 32 general-purpose registers."""

    def test_starts_zeroed(self):
        """All registers are zero after construction."""
        regs = RegisterFile()
        assert len(regs) == 32
        assert list(regs) == [0] * 32

    def test_write_masks_to_8_bits(self):
        """Writes are truncated to a byte."""
        regs = RegisterFile()
        regs[5] = 0x1FF
        assert regs[5] == 0xFF

        regs.write(5, -1)  # Two's complement
        assert regs.read(5) == 0xFF

        regs[5] = 0x100
        assert regs[5] == 0x00

    def test_registers_are_independent(self):
        """Writing one register leaves the others alone."""
        regs = RegisterFile()
        regs[31] = 0xAA
        assert regs.as_bytes() == bytes(31) + b"\xAA"

    @pytest.mark.parametrize("index", [-1, 32, 100])
    def test_invalid_index(self, index):
        """Indices outside 0-31 are rejected."""
        regs = RegisterFile()
        with pytest.raises(InvalidRegisterIndexError) as exc:
            regs.read(index)
        assert exc.value.index == index

        with pytest.raises(InvalidRegisterIndexError):
            regs.write(index, 0)

    @pytest.mark.parametrize("index", [True, False])
    def test_bool_index(self, index):
        """Booleans are not register numbers."""
        regs = RegisterFile()
        with pytest.raises(InvalidRegisterIndexError):
            regs.read(index)
        with pytest.raises(InvalidRegisterIndexError):
            regs.read_pair(index)

    def test_pairs_are_little_endian(self):
        """The even register holds the low byte."""
        regs = RegisterFile()
        regs.write_pair(X_REG, 0x1234)
        assert regs[26] == 0x34
        assert regs[27] == 0x12
        assert regs.read_pair(X_REG) == 0x1234

    def test_pointer_pair_indices(self):
        """X, Y and Z live at R26, R28 and R30."""
        assert (X_REG, Y_REG, Z_REG) == (26, 28, 30)

    @pytest.mark.parametrize("low", [1, 27, 31, 32, -2])
    def test_invalid_pair(self, low):
        """Pairs must start at an even register 0-30."""
        regs = RegisterFile()
        with pytest.raises(InvalidRegisterIndexError):
            regs.read_pair(low)

    def test_reset(self):
        """reset() zeroes every register."""
        regs = RegisterFile()
        for i in range(32):
            regs[i] = i + 1
        regs.reset()
        assert list(regs) == [0] * 32

    def test_load_bytes(self):
        """load_bytes() replaces all 32 registers."""
        regs = RegisterFile()
        regs.load_bytes(bytes(range(32)))
        assert regs[0] == 0
        assert regs[31] == 31

    def test_load_bytes_wrong_length(self):
        """load_bytes() requires exactly 32 bytes."""
        regs = RegisterFile()
        with pytest.raises(ValueError):
            regs.load_bytes(bytes(31))

    def test_equality(self):
        """Register files compare by content."""
        a, b = RegisterFile(), RegisterFile()
        assert a == b
        a[3] = 1
        assert a != b


# =============================================================================
# Status Register
# =============================================================================

class TestStatusRegister:
    """Test SREG flag storage."""

    def test_flag_bit_numbers(self):
        """Flag enum matches the SREG bit layout."""
        assert [f.name for f in Flag] == ["C", "Z", "N", "V", "S", "H", "T", "I"]
        assert [int(f) for f in Flag] == list(range(8))

    def test_starts_cleared(self):
        """All flags are clear after construction."""
        sreg = StatusRegister()
        assert sreg.value == 0
        assert not any(sreg.as_dict().values())

    def test_get_set_by_index(self):
        """Flags are indexed directly by bit number."""
        sreg = StatusRegister()
        sreg.set(5, True)
        assert sreg.get(Flag.H) is True
        assert sreg.h is True
        assert sreg.value == 0x20

    def test_flags_are_independent(self):
        """Setting one flag leaves the others alone."""
        sreg = StatusRegister()
        for flag in Flag:
            sreg.reset()
            sreg.set(flag, True)
            assert sreg.value == 1 << flag

    @pytest.mark.parametrize("index", [-1, 8, 9, 255])
    def test_invalid_index(self, index):
        """Indices outside 0-7 raise instead of exiting."""
        sreg = StatusRegister()
        with pytest.raises(InvalidFlagIndexError) as exc:
            sreg.get(index)
        assert exc.value.index == index

        with pytest.raises(InvalidFlagIndexError):
            sreg.set(index, True)

    @pytest.mark.parametrize("index", [True, False])
    def test_bool_index(self, index):
        """Booleans are not flag numbers."""
        sreg = StatusRegister()
        with pytest.raises(InvalidFlagIndexError):
            sreg.get(index)
        assert sreg.value == 0

    def test_packed_value_roundtrip(self):
        """value setter unpacks the byte into flags."""
        sreg = StatusRegister()
        sreg.value = 0x83
        assert sreg.i and sreg.z and sreg.c
        assert not (sreg.t or sreg.h or sreg.s or sreg.v or sreg.n)
        assert sreg.value == 0x83

    def test_repr(self):
        """repr shows set flags as letters, I first."""
        sreg = StatusRegister()
        sreg.z = True
        sreg.c = True
        assert repr(sreg) == "StatusRegister(------ZC)"

    def test_parse_flag(self):
        """Flags can be looked up by letter."""
        assert parse_flag("z") == Flag.Z
        assert parse_flag(" I ") == Flag.I
        with pytest.raises(ValueError):
            parse_flag("Q")


# =============================================================================
# Program Counter
# =============================================================================

class TestProgramCounter:
    """Test word-address arithmetic and wrapping."""

    def test_advance(self):
        """advance() moves forward by whole words."""
        pc = ProgramCounter(0x4000, 0x10)
        pc.advance()
        assert pc.value == 0x11
        pc.advance(2)
        assert pc.value == 0x13

    def test_relative(self):
        """relative(k) lands at PC + k + 1."""
        pc = ProgramCounter(0x4000, 100)
        pc.relative(63)
        assert pc.value == 164

        pc.value = 100
        pc.relative(-64)
        assert pc.value == 37

    def test_wraps_at_flash_end(self):
        """PC wraps modulo the program memory size."""
        pc = ProgramCounter(0x1000, 0x0FFF)
        pc.advance()
        assert pc.value == 0

        pc.relative(-2)
        assert pc.value == 0x0FFF

    def test_setter_wraps(self):
        """Assigned addresses are reduced modulo the size."""
        pc = ProgramCounter(0x1000)
        pc.value = 0x1005
        assert pc.value == 5

    def test_compares_with_int(self):
        """A ProgramCounter equals its integer address."""
        pc = ProgramCounter(0x4000, 42)
        assert pc == 42
        assert int(pc) == 42
        assert hex(pc) == "0x2a"

    def test_invalid_size(self):
        """Program memory must have at least one word."""
        with pytest.raises(ValueError):
            ProgramCounter(0)
