"""
Error Hierarchy Tests
=====================

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from avr_core.errors import (
    AvrError,
    CoreError,
    InvalidFlagIndexError,
    InvalidRegisterIndexError,
    OperandRangeError,
    ScriptError,
    SnapshotError,
    SourceLocation,
    StackUnavailableError,
    StackUnderflowError,
    UnknownInstructionError,
    UnsupportedInstructionError,
)


class TestHierarchy:
    """Every error is catchable as AvrError."""

    @pytest.mark.parametrize("error", [
        InvalidRegisterIndexError(40),
        InvalidFlagIndexError(9),
        OperandRangeError("offset", 64, -64, 63),
        UnknownInstructionError("FOO"),
        UnsupportedInstructionError("JMP", "ATtiny85"),
        StackUnavailableError("RET"),
        StackUnderflowError("RETI"),
    ])
    def test_core_errors(self, error):
        """Instruction errors derive from CoreError."""
        assert isinstance(error, CoreError)
        assert isinstance(error, AvrError)

    def test_other_errors(self):
        """Snapshot and script errors are not CoreErrors."""
        assert issubclass(SnapshotError, AvrError)
        assert issubclass(ScriptError, AvrError)
        assert not issubclass(ScriptError, CoreError)


class TestFormatting:
    """Test error message formats."""

    def test_core_error_with_mnemonic_and_hint(self):
        """Mnemonic prefixes the message, hint goes on its own line."""
        error = CoreError("bad thing", mnemonic="ADD", hint="do better")
        assert str(error) == "error: ADD: bad thing\nhint: do better"

    def test_core_error_plain(self):
        """Without mnemonic or hint only the message is shown."""
        assert str(CoreError("oops")) == "error: oops"

    def test_flag_index_message(self):
        """InvalidFlagIndexError carries the index and a default hint."""
        error = InvalidFlagIndexError(9, mnemonic="BSET")
        assert error.index == 9
        assert str(error) == (
            "error: BSET: flag index 9 out of range (0-7)\n"
            "hint: SREG has eight bits, C=0 through I=7"
        )

    def test_register_index_message(self):
        """InvalidRegisterIndexError names the valid range."""
        error = InvalidRegisterIndexError(5, mnemonic="LDI", valid="16-31")
        assert "register index 5 out of range (16-31)" in str(error)

    def test_operand_range_message(self):
        """OperandRangeError keeps its bounds."""
        error = OperandRangeError("immediate", 300, 0, 255, mnemonic="LDI")
        assert (error.low, error.high, error.value) == (0, 255, 300)
        assert "immediate 300 out of range (0..255)" in str(error)

    def test_script_error_with_location(self):
        """ScriptError prints file:line:column and the source line."""
        error = ScriptError(
            "unknown instruction 'foo'",
            SourceLocation("prog.avr", 3, 5),
            source_line="    foo r1",
        )
        assert str(error) == (
            "prog.avr:3:5: error: unknown instruction 'foo'\n"
            "        foo r1"
        )

    def test_script_error_without_location(self):
        """ScriptError without a location."""
        assert str(ScriptError("boom")) == "error: boom"
