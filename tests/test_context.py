"""
CPU Context, Snapshot and Device Tests
======================================

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from avr_core import AVRCore, CoreConfig, CPUContext, ListStack
from avr_core.cpu import SNAPSHOT_MAGIC, SNAPSHOT_SIZE, get_device, list_devices
from avr_core.errors import SnapshotError


# =============================================================================
# Context
# =============================================================================

class TestContext:
    """Test CPUContext state and reset."""

    def test_reset(self):
        """reset() zeroes registers and flags and loads the vector."""
        ctx = CPUContext()
        ctx.registers[3] = 9
        ctx.sreg.value = 0xFF
        ctx.reset(0x20)
        assert list(ctx.registers) == [0] * 32
        assert ctx.sreg.value == 0
        assert ctx.pc.value == 0x20

    def test_contexts_are_independent(self):
        """Default factories give each context its own structures."""
        a, b = CPUContext(), CPUContext()
        a.registers[0] = 1
        a.sreg.c = True
        a.pc.value = 5
        assert b.registers[0] == 0
        assert b.sreg.c is False
        assert b.pc.value == 0

    def test_registers_dict(self):
        """registers_dict() names every register plus pairs, SREG and PC."""
        ctx = CPUContext()
        ctx.registers.write_pair(30, 0x0102)
        ctx.sreg.z = True
        ctx.pc.value = 0x33
        regs = ctx.registers_dict()
        assert regs["R30"] == 0x02
        assert regs["Z"] == 0x0102
        assert regs["X"] == 0
        assert regs["SREG"] == 0x02
        assert regs["PC"] == 0x33
        assert len(regs) == 32 + 3 + 2


# =============================================================================
# Snapshots
# =============================================================================

class TestSnapshot:
    """Test snapshot data and files."""

    def test_snapshot_layout(self):
        """32 registers, SREG, then PC big-endian in three bytes."""
        ctx = CPUContext.for_flash(0x20000)
        ctx.registers[0] = 0xAA
        ctx.sreg.value = 0x81
        ctx.pc.value = 0x1ABCD
        data = ctx.get_snapshot_data()
        assert len(data) == SNAPSHOT_SIZE == 36
        assert data[0] == 0xAA
        assert data[32] == 0x81
        assert data[33:] == [0x01, 0xAB, 0xCD]

    def test_apply_snapshot_data(self):
        """apply_snapshot_data() restores state and reports bytes consumed."""
        src = CPUContext()
        src.registers[31] = 0x55
        src.sreg.t = True
        src.pc.value = 0x123
        dst = CPUContext()
        consumed = dst.apply_snapshot_data([0xEE] + src.get_snapshot_data(), offset=1)
        assert consumed == 36
        assert dst.registers == src.registers
        assert dst.sreg == src.sreg
        assert dst.pc.value == 0x123

    def test_truncated_data(self):
        """Short data raises SnapshotError."""
        with pytest.raises(SnapshotError):
            CPUContext().apply_snapshot_data([0] * 35)

    def test_pc_beyond_flash(self):
        """A PC from a larger device is rejected, not wrapped."""
        big = CPUContext.for_flash(get_device("ATmega2560").flash_words)
        big.registers[16] = 0x42
        big.pc.value = 0x1F000
        small = CPUContext.for_flash(get_device("ATmega328P").flash_words)
        small.pc.value = 0x10
        with pytest.raises(SnapshotError, match="beyond program memory"):
            small.apply_snapshot_data(big.get_snapshot_data())
        assert small.pc.value == 0x10
        assert small.registers[16] == 0

    def test_file_roundtrip(self, tmp_path):
        """save_snapshot()/load_snapshot() preserve the whole state."""
        core = AVRCore(stack=ListStack())
        core.ldi(16, 0x42)
        core.sec()
        core.context.save_snapshot(tmp_path / "state.sna")

        raw = (tmp_path / "state.sna").read_bytes()
        assert raw.startswith(SNAPSHOT_MAGIC)
        assert len(raw) == len(SNAPSHOT_MAGIC) + SNAPSHOT_SIZE

        other = AVRCore()
        other.context.load_snapshot(tmp_path / "state.sna")
        assert other.get_register(16) == 0x42
        assert other.context.sreg.c is True
        assert other.pc == 2

    def test_bad_header(self, tmp_path):
        """Files without the magic header are rejected."""
        path = tmp_path / "bad.sna"
        path.write_bytes(b"XXXX" + bytes(36))
        with pytest.raises(SnapshotError, match="bad header"):
            CPUContext().load_snapshot(path)

    def test_truncated_file(self, tmp_path):
        """A header followed by too little data is rejected."""
        path = tmp_path / "short.sna"
        path.write_bytes(SNAPSHOT_MAGIC + bytes(10))
        with pytest.raises(SnapshotError, match="truncated"):
            CPUContext().load_snapshot(path)

    def test_missing_file(self, tmp_path):
        """Missing snapshots raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CPUContext().load_snapshot(tmp_path / "nope.sna")


# =============================================================================
# Devices
# =============================================================================

class TestDevices:
    """Test the device table."""

    def test_default_device(self):
        """AVRCore defaults to the ATmega328P."""
        core = AVRCore()
        assert core.device.name == "ATmega328P"
        assert core.context.pc.size == 0x4000

    @pytest.mark.parametrize("name,words,jmp", [
        ("ATmega328P", 0x4000, True),
        ("ATmega8", 0x1000, False),
        ("ATtiny85", 0x1000, False),
        ("ATmega2560", 0x20000, True),
    ])
    def test_device_table(self, name, words, jmp):
        """Each part has its flash size and JMP/CALL support."""
        device = get_device(name)
        assert device.flash_words == words
        assert device.has_jmp_call is jmp
        assert device.flash_bytes == words * 2

    def test_case_insensitive(self):
        """Names match regardless of case."""
        assert get_device("attiny85").name == "ATtiny85"
        assert get_device("ATMEGA328").name == "ATmega328P"

    def test_unknown_device(self):
        """Unknown names list the alternatives."""
        with pytest.raises(ValueError, match="Available"):
            get_device("PIC16F84")

    def test_list_devices(self):
        """list_devices() returns every part."""
        assert len(list_devices()) == 4

    def test_pc_bits(self):
        """ATmega2560 needs a 17-bit program counter."""
        assert get_device("ATmega2560").pc_bits == 17
        assert get_device("ATmega328P").pc_bits == 14

    def test_core_sized_for_device(self):
        """The core's PC wraps at the configured flash size."""
        core = AVRCore(config=CoreConfig(device="ATmega2560"))
        core.jmp(0x1FFFF)
        assert core.pc == 0x1FFFF
