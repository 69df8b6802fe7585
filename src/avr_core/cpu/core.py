"""
AVR Instruction Core
====================

Instruction semantics for the AVR 8-bit architecture.

AVRCore receives already-decoded instructions: one method per mnemonic,
called with resolved operands (register indices, 8-bit immediates, bit
numbers, signed word offsets). Each call validates its operands, reads the
registers it needs, updates exactly the SREG flags the instruction defines,
writes its result back and moves the program counter exactly once.

Instruction groups:
- Arithmetic: ADD ADC SUB SUBI SBC SBCI CP CPC CPI INC DEC NEG COM ADIW SBIW
- Logic: AND ANDI OR ORI SBR CBR EOR TST CLR SER
- Shift/rotate: LSL LSR ASR ROL ROR SWAP
- Data move: MOV MOVW LDI
- Bit and flag: BSET BCLR BST BLD and SEx/CLx for all eight flags
- Control transfer: JMP CALL RJMP RCALL RET RETI NOP BRBS BRBC and the
  named conditional branches (see branches.py)

Fetching and decoding machine words, program/data memory, I/O and interrupt
delivery belong to the host. CALL/RCALL/RET/RETI reach the stack only
through the StackProtocol collaborator.

Example:
    >>> core = AVRCore()
    >>> core.context.registers[0] = 250
    >>> core.context.registers[1] = 6
    >>> core.add(0, 1)
    >>> core.get_register(0), core.get_flag(Flag.Z), core.get_flag(Flag.C)
    (0, True, True)

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, TypeVar

from avr_core.errors import (
    CoreError,
    InvalidRegisterIndexError,
    OperandRangeError,
    StackUnavailableError,
    StackUnderflowError,
    UnknownInstructionError,
    UnsupportedInstructionError,
)
from avr_core.cpu import flags
from avr_core.cpu.branches import (
    BRANCH_OFFSET_MAX,
    BRANCH_OFFSET_MIN,
    BRANCH_TABLE,
    RJMP_OFFSET_MAX,
    RJMP_OFFSET_MIN,
)
from avr_core.cpu.context import CPUContext
from avr_core.cpu.devices import AvrDevice, get_device
from avr_core.cpu.registers import check_pair, check_register
from avr_core.cpu.status import Flag, FlagIndex, check_flag

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


# =============================================================================
# Collaborators and Configuration
# =============================================================================

class StackProtocol(Protocol):
    """
    Protocol for the return-address stack.

    The stack lives in data memory, which is outside this core. CALL and
    RCALL push the address of the following instruction; RET and RETI pop
    it back into PC.
    """
    def push_return_address(self, address: int) -> None:
        """Push a word address."""
        ...

    def pop_return_address(self) -> int:
        """
        Pop the most recently pushed word address.

        Raises:
            StackUnderflowError: If nothing has been pushed
        """
        ...


class ListStack:
    """
    In-memory StackProtocol implementation.

    Suitable for tests and for hosts that do not model data memory.
    """

    def __init__(self) -> None:
        self.addresses: list[int] = []

    def push_return_address(self, address: int) -> None:
        self.addresses.append(address)

    def pop_return_address(self) -> int:
        if not self.addresses:
            raise StackUnderflowError()
        return self.addresses.pop()

    def __len__(self) -> int:
        return len(self.addresses)


@dataclass(frozen=True)
class CoreConfig:
    """
    Configuration for AVRCore.

    Attributes:
        device: Part name understood by get_device() (default "ATmega328P")
        trace: Log every executed instruction at DEBUG level
    """
    device: str = "ATmega328P"
    trace: bool = False


# =============================================================================
# Instruction Registry
# =============================================================================

# Mnemonic -> AVRCore method name, filled by @instruction
INSTRUCTIONS: dict[str, str] = {}


def instruction(*mnemonics: str) -> Callable[[F], F]:
    """
    Register an AVRCore method as the implementation of `mnemonics`.

    The wrapper runs the on_instruction hook and trace logging once the
    instruction body has completed, with the PC it started at. Every entry
    point reports itself the same way whether it is called directly or
    through AVRCore.execute(), and an instruction rejected by operand
    validation is never reported.
    """
    def decorator(func: F) -> F:
        for mnemonic in mnemonics:
            INSTRUCTIONS[mnemonic] = func.__name__

        @functools.wraps(func)
        def wrapper(self: "AVRCore", *operands: Any) -> None:
            address = self.context.pc.value
            func(self, *operands)
            self._report(address, mnemonics[0], operands)

        wrapper.mnemonics = mnemonics  # type: ignore[attr-defined]
        return wrapper  # type: ignore
    return decorator


# =============================================================================
# Operand Validation
# =============================================================================

def _check_upper_register(index: int, mnemonic: str) -> int:
    """Immediate-form instructions only address R16-R31."""
    check_register(index, mnemonic)
    if index < 16:
        raise InvalidRegisterIndexError(
            index,
            mnemonic=mnemonic,
            valid="16-31",
            hint=f"{mnemonic} only addresses R16-R31",
        )
    return index


def _check_word_register(index: int, mnemonic: str) -> int:
    """ADIW/SBIW only address the pairs R25:R24, X, Y and Z."""
    if index not in (24, 26, 28, 30):
        raise InvalidRegisterIndexError(
            index,
            mnemonic=mnemonic,
            valid="24, 26, 28, 30",
            hint=f"{mnemonic} operates on R25:R24, X, Y or Z",
        )
    return index


def _check_range(operand: str, value: int, low: int, high: int, mnemonic: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise OperandRangeError(operand, value, low, high, mnemonic=mnemonic)
    return value


def _check_immediate(value: int, mnemonic: str) -> int:
    return _check_range("immediate", value, 0, 0xFF, mnemonic)


def _check_bit(value: int, mnemonic: str) -> int:
    return _check_range("bit number", value, 0, 7, mnemonic)


# =============================================================================
# Instruction Core
# =============================================================================

class AVRCore:
    """
    AVR instruction core operating on a caller-owned CPUContext.

    The core keeps no execution state of its own: registers, flags and PC
    all live in the context. Each instruction call is atomic; operands are
    validated before anything is modified, so a rejected instruction leaves
    the context untouched.

    Attributes:
        context: The CPUContext mutated by instructions
        device: The AvrDevice in use (flash size, JMP/CALL support)
        stack: Optional StackProtocol for CALL/RCALL/RET/RETI
        on_instruction: Optional hook called as (pc, mnemonic, operands)
                        after each instruction executes, with the PC
                        the instruction was executed at

    Example:
        >>> core = AVRCore(stack=ListStack())
        >>> core.ldi(16, 0x7F)
        >>> core.inc(16)
        >>> core.get_flag(Flag.V)
        True
    """

    def __init__(
        self,
        context: Optional[CPUContext] = None,
        stack: Optional[StackProtocol] = None,
        config: Optional[CoreConfig] = None,
    ):
        """
        Initialize the core.

        Args:
            context: CPU state to operate on. If None, a fresh context
                     sized for the configured device is created.
            stack: Return-address stack collaborator (optional)
            config: CoreConfig; defaults to ATmega328P without tracing

        Raises:
            ValueError: If the device is unknown, or the context's program
                        counter does not match the device flash size
        """
        self.config = config or CoreConfig()
        self.device: AvrDevice = get_device(self.config.device)

        if context is None:
            context = CPUContext.for_flash(
                self.device.flash_words, self.device.reset_vector
            )
        elif context.pc.size != self.device.flash_words:
            raise ValueError(
                f"Context program counter wraps at {context.pc.size} words, "
                f"but {self.device.name} has {self.device.flash_words}"
            )

        self.context = context
        self.stack = stack
        self.on_instruction: Optional[Callable[[int, str, tuple], None]] = None

    def _report(self, address: int, mnemonic: str, operands: tuple) -> None:
        if self.on_instruction:
            self.on_instruction(address, mnemonic, operands)
        if self.config.trace:
            logger.debug(
                "$%04X  %-5s %s",
                address,
                mnemonic,
                ", ".join(str(op) for op in operands),
            )

    def reset(self) -> None:
        """Zero registers and flags, load PC with the device reset vector."""
        self.context.reset(self.device.reset_vector)

    # ========================================
    # Read-only Accessors
    # ========================================

    @property
    def pc(self) -> int:
        """Program counter (word address)."""
        return self.context.pc.value

    def get_register(self, index: int) -> int:
        """Value of R<index>."""
        return self.context.registers.read(index)

    def get_flag(self, index: FlagIndex) -> bool:
        """
        Value of SREG bit `index`.

        Raises:
            InvalidFlagIndexError: If index is outside 0-7
        """
        return self.context.sreg.get(index)

    @property
    def flags(self) -> dict[str, bool]:
        """All SREG flags by letter."""
        return self.context.sreg.as_dict()

    # ========================================
    # Generic Dispatch
    # ========================================

    def execute(self, mnemonic: str, *operands: int) -> None:
        """
        Execute an instruction by mnemonic.

        Args:
            mnemonic: Instruction name, case-insensitive (e.g. "add", "BREQ")
            operands: Resolved operands in assembler order

        Raises:
            UnknownInstructionError: If the mnemonic is not implemented
            CoreError: If the operand count is wrong
        """
        name = mnemonic.upper()
        method_name = INSTRUCTIONS.get(name)
        if method_name is None:
            raise UnknownInstructionError(mnemonic)

        method = getattr(self, method_name)
        try:
            inspect.signature(method).bind(*operands)
        except TypeError:
            expected = len(inspect.signature(method).parameters)
            raise CoreError(
                f"expects {expected} operand(s), got {len(operands)}",
                mnemonic=name,
            ) from None
        method(*operands)

    @staticmethod
    def mnemonics() -> list[str]:
        """All mnemonics accepted by execute(), sorted."""
        return sorted(INSTRUCTIONS)

    # ========================================
    # Register Helpers
    # ========================================

    def _r(self, index: int) -> int:
        return self.context.registers.read(index)

    def _w(self, index: int, value: int) -> None:
        self.context.registers.write(index, value)

    def _next(self, words: int = 1) -> None:
        self.context.pc.advance(words)

    # ========================================
    # ALU Operations
    # ========================================

    def _add8(self, rd: int, rr: int, carry_in: bool = False) -> int:
        """Add 8-bit values, set H,S,V,N,Z,C."""
        result = (rd + rr + (1 if carry_in else 0)) & 0xFF
        sreg = self.context.sreg
        sreg.h = flags.half_carry(rd, rr, result)
        sreg.v = flags.overflow(rd, rr, result, is_subtraction=False)
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        sreg.c = flags.carry(rd, rr, result, is_subtraction=False)
        return result

    def _sub8(
        self, rd: int, rr: int, carry_in: bool = False, sticky_z: bool = False
    ) -> int:
        """
        Subtract 8-bit values, set H,S,V,N,Z,C.

        With sticky_z (SBC, SBCI, CPC) Z is only cleared, never set: it stays
        set when the result is zero and was already set, so multi-byte
        compares report equality only if every byte matched.
        """
        result = (rd - rr - (1 if carry_in else 0)) & 0xFF
        sreg = self.context.sreg
        sreg.h = flags.half_carry(rd, rr, result, is_subtraction=True)
        sreg.v = flags.overflow(rd, rr, result, is_subtraction=True)
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        if sticky_z:
            sreg.z = flags.zero(result) and sreg.z
        else:
            sreg.z = flags.zero(result)
        sreg.c = flags.carry(rd, rr, result, is_subtraction=True)
        return result

    def _logic8(self, result: int) -> int:
        """Logical result: set S,V=0,N,Z. C and H are untouched."""
        sreg = self.context.sreg
        sreg.v = False
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        return result

    def _shift8(self, result: int, carry_out: bool) -> int:
        """Shift/rotate result: C from the bit shifted out, V = N xor C."""
        sreg = self.context.sreg
        sreg.c = carry_out
        sreg.n = flags.negative(result)
        sreg.v = flags.signed(sreg.n, sreg.c)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        return result

    # ========================================
    # Arithmetic Instructions
    # ========================================

    @instruction("ADD")
    def add(self, rd: int, rr: int) -> None:
        """ADD Rd, Rr: Rd <- Rd + Rr."""
        check_register(rd, "ADD")
        check_register(rr, "ADD")
        self._w(rd, self._add8(self._r(rd), self._r(rr)))
        self._next()

    @instruction("ADC")
    def adc(self, rd: int, rr: int) -> None:
        """ADC Rd, Rr: Rd <- Rd + Rr + C."""
        check_register(rd, "ADC")
        check_register(rr, "ADC")
        self._w(rd, self._add8(self._r(rd), self._r(rr), self.context.sreg.c))
        self._next()

    @instruction("SUB")
    def sub(self, rd: int, rr: int) -> None:
        """SUB Rd, Rr: Rd <- Rd - Rr."""
        check_register(rd, "SUB")
        check_register(rr, "SUB")
        self._w(rd, self._sub8(self._r(rd), self._r(rr)))
        self._next()

    @instruction("SUBI")
    def subi(self, rd: int, k: int) -> None:
        """SUBI Rd, K: Rd <- Rd - K (R16-R31)."""
        _check_upper_register(rd, "SUBI")
        _check_immediate(k, "SUBI")
        self._w(rd, self._sub8(self._r(rd), k))
        self._next()

    @instruction("SBC")
    def sbc(self, rd: int, rr: int) -> None:
        """SBC Rd, Rr: Rd <- Rd - Rr - C."""
        check_register(rd, "SBC")
        check_register(rr, "SBC")
        self._w(
            rd,
            self._sub8(self._r(rd), self._r(rr), self.context.sreg.c, sticky_z=True),
        )
        self._next()

    @instruction("SBCI")
    def sbci(self, rd: int, k: int) -> None:
        """SBCI Rd, K: Rd <- Rd - K - C (R16-R31)."""
        _check_upper_register(rd, "SBCI")
        _check_immediate(k, "SBCI")
        self._w(rd, self._sub8(self._r(rd), k, self.context.sreg.c, sticky_z=True))
        self._next()

    @instruction("CP")
    def cp(self, rd: int, rr: int) -> None:
        """CP Rd, Rr: flags of Rd - Rr, no write-back."""
        check_register(rd, "CP")
        check_register(rr, "CP")
        self._sub8(self._r(rd), self._r(rr))
        self._next()

    @instruction("CPC")
    def cpc(self, rd: int, rr: int) -> None:
        """CPC Rd, Rr: flags of Rd - Rr - C, no write-back."""
        check_register(rd, "CPC")
        check_register(rr, "CPC")
        self._sub8(self._r(rd), self._r(rr), self.context.sreg.c, sticky_z=True)
        self._next()

    @instruction("CPI")
    def cpi(self, rd: int, k: int) -> None:
        """CPI Rd, K: flags of Rd - K, no write-back (R16-R31)."""
        _check_upper_register(rd, "CPI")
        _check_immediate(k, "CPI")
        self._sub8(self._r(rd), k)
        self._next()

    @instruction("INC")
    def inc(self, rd: int) -> None:
        """
        INC Rd: Rd <- Rd + 1.

        Sets S,V,N,Z; C and H are unchanged so INC can drive loop counters
        inside multi-byte arithmetic. V is set only when $7F becomes $80.
        """
        check_register(rd, "INC")
        result = (self._r(rd) + 1) & 0xFF
        sreg = self.context.sreg
        sreg.v = result == 0x80
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        self._w(rd, result)
        self._next()

    @instruction("DEC")
    def dec(self, rd: int) -> None:
        """DEC Rd: Rd <- Rd - 1. Sets S,V,N,Z; V only when $80 becomes $7F."""
        check_register(rd, "DEC")
        result = (self._r(rd) - 1) & 0xFF
        sreg = self.context.sreg
        sreg.v = result == 0x7F
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        self._w(rd, result)
        self._next()

    @instruction("NEG")
    def neg(self, rd: int) -> None:
        """
        NEG Rd: Rd <- $00 - Rd.

        $80 has no positive counterpart and negates to itself with V set.
        C is set for every non-zero result.
        """
        check_register(rd, "NEG")
        value = self._r(rd)
        result = (-value) & 0xFF
        sreg = self.context.sreg
        sreg.h = flags.half_carry(0, value, result, is_subtraction=True)
        sreg.v = result == 0x80
        sreg.n = flags.negative(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero(result)
        sreg.c = result != 0
        self._w(rd, result)
        self._next()

    @instruction("COM")
    def com(self, rd: int) -> None:
        """COM Rd: Rd <- $FF - Rd. C is always set, V always cleared."""
        check_register(rd, "COM")
        result = self._logic8(self._r(rd) ^ 0xFF)
        self.context.sreg.c = True
        self._w(rd, result)
        self._next()

    @instruction("ADIW")
    def adiw(self, rd: int, k: int) -> None:
        """ADIW Rd+1:Rd, K: add 0-63 to a word register pair."""
        _check_word_register(rd, "ADIW")
        _check_range("immediate", k, 0, 63, "ADIW")
        regs = self.context.registers
        rdh = regs[rd + 1]
        result = (regs.read_pair(rd) + k) & 0xFFFF
        sreg = self.context.sreg
        sreg.v = flags.overflow16_add(rdh, result)
        sreg.n = flags.negative16(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero16(result)
        sreg.c = flags.carry16_add(rdh, result)
        regs.write_pair(rd, result)
        self._next()

    @instruction("SBIW")
    def sbiw(self, rd: int, k: int) -> None:
        """SBIW Rd+1:Rd, K: subtract 0-63 from a word register pair."""
        _check_word_register(rd, "SBIW")
        _check_range("immediate", k, 0, 63, "SBIW")
        regs = self.context.registers
        rdh = regs[rd + 1]
        result = (regs.read_pair(rd) - k) & 0xFFFF
        sreg = self.context.sreg
        sreg.v = flags.overflow16_sub(rdh, result)
        sreg.n = flags.negative16(result)
        sreg.s = flags.signed(sreg.n, sreg.v)
        sreg.z = flags.zero16(result)
        sreg.c = flags.carry16_sub(rdh, result)
        regs.write_pair(rd, result)
        self._next()

    # ========================================
    # Logic Instructions
    # ========================================

    @instruction("AND")
    def and_(self, rd: int, rr: int) -> None:
        """AND Rd, Rr: Rd <- Rd & Rr."""
        check_register(rd, "AND")
        check_register(rr, "AND")
        self._w(rd, self._logic8(self._r(rd) & self._r(rr)))
        self._next()

    @instruction("ANDI")
    def andi(self, rd: int, k: int) -> None:
        """ANDI Rd, K: Rd <- Rd & K (R16-R31)."""
        _check_upper_register(rd, "ANDI")
        _check_immediate(k, "ANDI")
        self._w(rd, self._logic8(self._r(rd) & k))
        self._next()

    @instruction("CBR")
    def cbr(self, rd: int, k: int) -> None:
        """CBR Rd, K: clear the bits of K in Rd (ANDI with $FF - K)."""
        _check_upper_register(rd, "CBR")
        _check_immediate(k, "CBR")
        self._w(rd, self._logic8(self._r(rd) & (k ^ 0xFF)))
        self._next()

    @instruction("OR")
    def or_(self, rd: int, rr: int) -> None:
        """OR Rd, Rr: Rd <- Rd | Rr."""
        check_register(rd, "OR")
        check_register(rr, "OR")
        self._w(rd, self._logic8(self._r(rd) | self._r(rr)))
        self._next()

    @instruction("ORI", "SBR")
    def ori(self, rd: int, k: int) -> None:
        """ORI Rd, K (alias SBR): Rd <- Rd | K (R16-R31)."""
        _check_upper_register(rd, "ORI")
        _check_immediate(k, "ORI")
        self._w(rd, self._logic8(self._r(rd) | k))
        self._next()

    def sbr(self, rd: int, k: int) -> None:
        """SBR Rd, K: set the bits of K in Rd. Same opcode as ORI."""
        self.ori(rd, k)

    @instruction("EOR")
    def eor(self, rd: int, rr: int) -> None:
        """EOR Rd, Rr: Rd <- Rd ^ Rr."""
        check_register(rd, "EOR")
        check_register(rr, "EOR")
        self._w(rd, self._logic8(self._r(rd) ^ self._r(rr)))
        self._next()

    @instruction("TST")
    def tst(self, rd: int) -> None:
        """TST Rd: flags of Rd & Rd, no write-back."""
        check_register(rd, "TST")
        self._logic8(self._r(rd))
        self._next()

    @instruction("CLR")
    def clr(self, rd: int) -> None:
        """CLR Rd: Rd <- 0 (EOR Rd, Rd). Z=1, N=V=S=0; C and H unchanged."""
        check_register(rd, "CLR")
        sreg = self.context.sreg
        sreg.s = False
        sreg.v = False
        sreg.n = False
        sreg.z = True
        self._w(rd, 0)
        self._next()

    @instruction("SER")
    def ser(self, rd: int) -> None:
        """SER Rd: Rd <- $FF (R16-R31). No flags."""
        _check_upper_register(rd, "SER")
        self._w(rd, 0xFF)
        self._next()

    # ========================================
    # Shift and Rotate Instructions
    # ========================================

    @instruction("LSL")
    def lsl(self, rd: int) -> None:
        """
        LSL Rd: shift left, bit 7 into C, 0 into bit 0.

        LSL is ADD Rd, Rd, so H receives bit 3 of Rd.
        """
        check_register(rd, "LSL")
        value = self._r(rd)
        result = (value << 1) & 0xFF
        self.context.sreg.h = bool(value & 0x08)
        self._w(rd, self._shift8(result, bool(value & 0x80)))
        self._next()

    @instruction("LSR")
    def lsr(self, rd: int) -> None:
        """LSR Rd: shift right, bit 0 into C, 0 into bit 7. N is always 0."""
        check_register(rd, "LSR")
        value = self._r(rd)
        self._w(rd, self._shift8(value >> 1, bool(value & 0x01)))
        self._next()

    @instruction("ASR")
    def asr(self, rd: int) -> None:
        """ASR Rd: arithmetic shift right, bit 7 held, bit 0 into C."""
        check_register(rd, "ASR")
        value = self._r(rd)
        result = (value >> 1) | (value & 0x80)
        self._w(rd, self._shift8(result, bool(value & 0x01)))
        self._next()

    @instruction("ROL")
    def rol(self, rd: int) -> None:
        """ROL Rd: rotate left through carry (ADC Rd, Rd). H receives bit 3."""
        check_register(rd, "ROL")
        value = self._r(rd)
        result = ((value << 1) | (1 if self.context.sreg.c else 0)) & 0xFF
        self.context.sreg.h = bool(value & 0x08)
        self._w(rd, self._shift8(result, bool(value & 0x80)))
        self._next()

    @instruction("ROR")
    def ror(self, rd: int) -> None:
        """ROR Rd: rotate right through carry."""
        check_register(rd, "ROR")
        value = self._r(rd)
        result = (value >> 1) | (0x80 if self.context.sreg.c else 0)
        self._w(rd, self._shift8(result, bool(value & 0x01)))
        self._next()

    @instruction("SWAP")
    def swap(self, rd: int) -> None:
        """SWAP Rd: exchange high and low nibbles. No flags."""
        check_register(rd, "SWAP")
        value = self._r(rd)
        self._w(rd, ((value << 4) | (value >> 4)) & 0xFF)
        self._next()

    # ========================================
    # Data Move Instructions
    # ========================================

    @instruction("MOV")
    def mov(self, rd: int, rr: int) -> None:
        """MOV Rd, Rr: Rd <- Rr."""
        check_register(rd, "MOV")
        check_register(rr, "MOV")
        self._w(rd, self._r(rr))
        self._next()

    @instruction("MOVW")
    def movw(self, rd: int, rr: int) -> None:
        """MOVW Rd+1:Rd, Rr+1:Rr: copy a register pair."""
        check_pair(rd, "MOVW")
        check_pair(rr, "MOVW")
        regs = self.context.registers
        regs.write_pair(rd, regs.read_pair(rr))
        self._next()

    @instruction("LDI")
    def ldi(self, rd: int, k: int) -> None:
        """LDI Rd, K: Rd <- K (R16-R31)."""
        _check_upper_register(rd, "LDI")
        _check_immediate(k, "LDI")
        self._w(rd, k)
        self._next()

    # ========================================
    # Bit and Flag Instructions
    # ========================================

    def _write_flag(self, mnemonic: str, s: FlagIndex, value: bool) -> None:
        self.context.sreg.set(check_flag(s, mnemonic), value)
        self._next()

    @instruction("BSET")
    def bset(self, s: FlagIndex) -> None:
        """BSET s: set SREG bit s."""
        self._write_flag("BSET", s, True)

    @instruction("BCLR")
    def bclr(self, s: FlagIndex) -> None:
        """BCLR s: clear SREG bit s."""
        self._write_flag("BCLR", s, False)

    @instruction("BST")
    def bst(self, rd: int, b: int) -> None:
        """BST Rd, b: T <- Rd(b)."""
        check_register(rd, "BST")
        _check_bit(b, "BST")
        self.context.sreg.t = bool((self._r(rd) >> b) & 1)
        self._next()

    @instruction("BLD")
    def bld(self, rd: int, b: int) -> None:
        """BLD Rd, b: Rd(b) <- T."""
        check_register(rd, "BLD")
        _check_bit(b, "BLD")
        value = self._r(rd)
        if self.context.sreg.t:
            value |= 1 << b
        else:
            value &= ~(1 << b)
        self._w(rd, value)
        self._next()

    # Named SREG set/clear instructions, each BSET/BCLR on a fixed bit

    @instruction("SEC")
    def sec(self) -> None:
        self._write_flag("SEC", Flag.C, True)

    @instruction("CLC")
    def clc(self) -> None:
        self._write_flag("CLC", Flag.C, False)

    @instruction("SEZ")
    def sez(self) -> None:
        self._write_flag("SEZ", Flag.Z, True)

    @instruction("CLZ")
    def clz(self) -> None:
        self._write_flag("CLZ", Flag.Z, False)

    @instruction("SEN")
    def sen(self) -> None:
        self._write_flag("SEN", Flag.N, True)

    @instruction("CLN")
    def cln(self) -> None:
        self._write_flag("CLN", Flag.N, False)

    @instruction("SEV")
    def sev(self) -> None:
        self._write_flag("SEV", Flag.V, True)

    @instruction("CLV")
    def clv(self) -> None:
        self._write_flag("CLV", Flag.V, False)

    @instruction("SES")
    def ses(self) -> None:
        self._write_flag("SES", Flag.S, True)

    @instruction("CLS")
    def cls(self) -> None:
        self._write_flag("CLS", Flag.S, False)

    @instruction("SEH")
    def seh(self) -> None:
        self._write_flag("SEH", Flag.H, True)

    @instruction("CLH")
    def clh(self) -> None:
        self._write_flag("CLH", Flag.H, False)

    @instruction("SET")
    def set_(self) -> None:
        self._write_flag("SET", Flag.T, True)

    @instruction("CLT")
    def clt(self) -> None:
        self._write_flag("CLT", Flag.T, False)

    @instruction("SEI")
    def sei(self) -> None:
        self._write_flag("SEI", Flag.I, True)

    @instruction("CLI")
    def cli(self) -> None:
        self._write_flag("CLI", Flag.I, False)

    # ========================================
    # Control Transfer Instructions
    # ========================================

    def _require_jmp_call(self, mnemonic: str) -> None:
        if not self.device.has_jmp_call:
            raise UnsupportedInstructionError(mnemonic, self.device.name)

    def _require_stack(self, mnemonic: str) -> StackProtocol:
        if self.stack is None:
            raise StackUnavailableError(mnemonic)
        return self.stack

    def _check_address(self, k: int, mnemonic: str) -> int:
        return _check_range("address", k, 0, self.device.flash_words - 1, mnemonic)

    @instruction("NOP")
    def nop(self) -> None:
        """NOP: advance PC."""
        self._next()

    @instruction("JMP")
    def jmp(self, k: int) -> None:
        """JMP k: PC <- k."""
        self._require_jmp_call("JMP")
        self._check_address(k, "JMP")
        self.context.pc.value = k

    @instruction("CALL")
    def call(self, k: int) -> None:
        """
        CALL k: push the return address, PC <- k.

        CALL is a two-word instruction, so the return address is PC + 2.
        """
        self._require_jmp_call("CALL")
        self._check_address(k, "CALL")
        stack = self._require_stack("CALL")
        pc = self.context.pc
        stack.push_return_address((pc.value + 2) % pc.size)
        pc.value = k

    @instruction("RJMP")
    def rjmp(self, k: int) -> None:
        """RJMP k: PC <- PC + k + 1."""
        _check_range("offset", k, RJMP_OFFSET_MIN, RJMP_OFFSET_MAX, "RJMP")
        self.context.pc.relative(k)

    @instruction("RCALL")
    def rcall(self, k: int) -> None:
        """RCALL k: push PC + 1, PC <- PC + k + 1."""
        _check_range("offset", k, RJMP_OFFSET_MIN, RJMP_OFFSET_MAX, "RCALL")
        stack = self._require_stack("RCALL")
        pc = self.context.pc
        stack.push_return_address((pc.value + 1) % pc.size)
        pc.relative(k)

    def _pop_return(self, mnemonic: str) -> int:
        stack = self._require_stack(mnemonic)
        try:
            return stack.pop_return_address()
        except StackUnderflowError:
            raise StackUnderflowError(mnemonic) from None

    @instruction("RET")
    def ret(self) -> None:
        """RET: PC <- popped return address."""
        self.context.pc.value = self._pop_return("RET")

    @instruction("RETI")
    def reti(self) -> None:
        """RETI: PC <- popped return address, I <- 1."""
        self.context.pc.value = self._pop_return("RETI")
        self.context.sreg.i = True

    def _branch(self, mnemonic: str, s: FlagIndex, k: int, when_set: bool) -> None:
        """PC <- PC + k + 1 if SREG(s) == when_set, else PC <- PC + 1."""
        check_flag(s, mnemonic)
        _check_range("offset", k, BRANCH_OFFSET_MIN, BRANCH_OFFSET_MAX, mnemonic)
        if self.context.sreg.get(s) == when_set:
            self.context.pc.relative(k)
        else:
            self._next()

    @instruction("BRBS")
    def brbs(self, s: FlagIndex, k: int) -> None:
        """BRBS s, k: branch if SREG bit s is set."""
        self._branch("BRBS", s, k, True)

    @instruction("BRBC")
    def brbc(self, s: FlagIndex, k: int) -> None:
        """BRBC s, k: branch if SREG bit s is cleared."""
        self._branch("BRBC", s, k, False)

    def _named_branch(self, mnemonic: str, k: int) -> None:
        condition = BRANCH_TABLE[mnemonic]
        self._branch(mnemonic, condition.flag, k, condition.when_set)

    @instruction("BRCS", "BRLO")
    def brcs(self, k: int) -> None:
        """Branch if carry set (unsigned lower)."""
        self._named_branch("BRCS", k)

    def brlo(self, k: int) -> None:
        """Branch if lower, unsigned. Alias of BRCS."""
        self.brcs(k)

    @instruction("BRCC", "BRSH")
    def brcc(self, k: int) -> None:
        """Branch if carry cleared (unsigned same or higher)."""
        self._named_branch("BRCC", k)

    def brsh(self, k: int) -> None:
        """Branch if same or higher, unsigned. Alias of BRCC."""
        self.brcc(k)

    @instruction("BREQ")
    def breq(self, k: int) -> None:
        """Branch if equal (Z set)."""
        self._named_branch("BREQ", k)

    @instruction("BRNE")
    def brne(self, k: int) -> None:
        """Branch if not equal (Z cleared)."""
        self._named_branch("BRNE", k)

    @instruction("BRMI")
    def brmi(self, k: int) -> None:
        """Branch if minus (N set)."""
        self._named_branch("BRMI", k)

    @instruction("BRPL")
    def brpl(self, k: int) -> None:
        """Branch if plus (N cleared)."""
        self._named_branch("BRPL", k)

    @instruction("BRVS")
    def brvs(self, k: int) -> None:
        """Branch if overflow set."""
        self._named_branch("BRVS", k)

    @instruction("BRVC")
    def brvc(self, k: int) -> None:
        """Branch if overflow cleared."""
        self._named_branch("BRVC", k)

    @instruction("BRLT")
    def brlt(self, k: int) -> None:
        """Branch if less than, signed (S set)."""
        self._named_branch("BRLT", k)

    @instruction("BRGE")
    def brge(self, k: int) -> None:
        """Branch if greater or equal, signed (S cleared)."""
        self._named_branch("BRGE", k)

    @instruction("BRHS")
    def brhs(self, k: int) -> None:
        """Branch if half carry set."""
        self._named_branch("BRHS", k)

    @instruction("BRHC")
    def brhc(self, k: int) -> None:
        """Branch if half carry cleared."""
        self._named_branch("BRHC", k)

    @instruction("BRTS")
    def brts(self, k: int) -> None:
        """Branch if T set."""
        self._named_branch("BRTS", k)

    @instruction("BRTC")
    def brtc(self, k: int) -> None:
        """Branch if T cleared."""
        self._named_branch("BRTC", k)

    @instruction("BRIE")
    def brie(self, k: int) -> None:
        """Branch if global interrupts enabled."""
        self._named_branch("BRIE", k)

    @instruction("BRID")
    def brid(self, k: int) -> None:
        """Branch if global interrupts disabled."""
        self._named_branch("BRID", k)

    def __repr__(self) -> str:
        return (
            f"AVRCore({self.device.name}, PC=${self.pc:04X}, "
            f"SREG={self.context.sreg!r})"
        )
