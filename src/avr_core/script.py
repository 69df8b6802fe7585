"""
Instruction Scripts
===================

A small text format for driving AVRCore without a decoder: one resolved
instruction per line, laid out at consecutive word addresses so relative
branches land on other lines.

Syntax:
    ; comment
    ldi   r16, 5        ; register operands as r0-r31, pairs as X Y Z
    dec   r16
    brne  -2            ; offsets are signed words
    bset  Z             ; flags by letter or bit number
    ldi   r17, 0x1F     ; numbers: decimal, 0x.., $.., 0b..

JMP and CALL occupy two words, every other instruction one. A script ends
when PC leaves the addresses covered by its lines.

Example:
    >>> program = parse_script("ldi r16, 1\\nadd r16, r16\\n")
    >>> [line.mnemonic for line in program.lines]
    ['LDI', 'ADD']

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from avr_core.errors import CoreError, ScriptError, SourceLocation
from avr_core.cpu.core import INSTRUCTIONS, AVRCore
from avr_core.cpu.registers import POINTER_PAIRS
from avr_core.cpu.status import Flag

logger = logging.getLogger(__name__)

TWO_WORD_INSTRUCTIONS = frozenset({"JMP", "CALL"})

# Instructions whose first operand is an SREG bit
FLAG_OPERAND_INSTRUCTIONS = frozenset({"BSET", "BCLR", "BRBS", "BRBC"})

_REGISTER_RE = re.compile(r"^[rR](\d{1,2})$")


@dataclass(frozen=True)
class ScriptLine:
    """
    One parsed instruction.

    Attributes:
        address: Word address the instruction occupies
        mnemonic: Upper-case mnemonic
        operands: Resolved operand values
        location: Position in the script file
        text: Original source text (without comment)
    """
    address: int
    mnemonic: str
    operands: tuple[int, ...]
    location: SourceLocation
    text: str

    @property
    def size(self) -> int:
        """Instruction length in words."""
        return 2 if self.mnemonic in TWO_WORD_INSTRUCTIONS else 1


@dataclass
class Program:
    """Parsed script: lines indexed by word address."""
    lines: list[ScriptLine] = field(default_factory=list)
    by_address: dict[int, ScriptLine] = field(default_factory=dict)

    def add(self, line: ScriptLine) -> None:
        self.lines.append(line)
        self.by_address[line.address] = line

    def at(self, address: int) -> Optional[ScriptLine]:
        """Line starting at `address`, or None."""
        return self.by_address.get(address)


# =============================================================================
# Parsing
# =============================================================================

def parse_number(token: str) -> int:
    """
    Parse a numeric literal.

    Accepts decimal (optionally signed), 0x/$ hex and 0b binary.

    Raises:
        ValueError: If the token is not a number
    """
    text = token.strip()
    sign = 1
    if text.startswith(("+", "-")):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    lowered = text.lower()
    if lowered.startswith("0x"):
        value = int(lowered[2:], 16)
    elif lowered.startswith("$"):
        value = int(lowered[1:], 16)
    elif lowered.startswith("0b"):
        value = int(lowered[2:], 2)
    else:
        value = int(lowered, 10)
    return sign * value


def parse_operand(token: str, flag: bool = False) -> int:
    """
    Resolve one operand token to an integer.

    Registers (r0-r31) become their index and anything else a number.
    Letters are context dependent since Z names both a flag and a pair:
    with flag=True, C Z N V S H T I give their SREG bit number; otherwise
    X Y Z give the low register of the pointer pair.

    Raises:
        ValueError: If the token cannot be resolved
    """
    text = token.strip()
    if not text:
        raise ValueError("empty operand")

    match = _REGISTER_RE.match(text)
    if match:
        return int(match.group(1))

    upper = text.upper()
    if flag and upper in Flag.__members__:
        return int(Flag[upper])
    if not flag and upper in POINTER_PAIRS:
        return POINTER_PAIRS[upper]

    try:
        return parse_number(text)
    except ValueError:
        raise ValueError(f"cannot parse operand '{text}'") from None


def parse_script(source: str, filename: str = "<input>", origin: int = 0) -> Program:
    """
    Parse an instruction script.

    Args:
        source: Script text
        filename: Name used in error locations
        origin: Word address of the first instruction

    Returns:
        Program with every instruction placed at its word address

    Raises:
        ScriptError: On an unknown mnemonic or unparseable operand
    """
    program = Program()
    address = origin

    for line_no, raw in enumerate(source.splitlines(), start=1):
        text = raw.split(";", 1)[0].strip()
        if not text:
            continue

        location = SourceLocation(filename, line_no, raw.find(text) + 1)
        parts = text.split(None, 1)
        mnemonic = parts[0].upper()

        if mnemonic not in INSTRUCTIONS:
            raise ScriptError(
                f"unknown instruction '{parts[0]}'", location, source_line=raw
            )

        operands: list[int] = []
        if len(parts) > 1:
            for position, token in enumerate(parts[1].split(",")):
                is_flag = position == 0 and mnemonic in FLAG_OPERAND_INSTRUCTIONS
                try:
                    operands.append(parse_operand(token, flag=is_flag))
                except ValueError as e:
                    raise ScriptError(str(e), location, source_line=raw) from None

        line = ScriptLine(address, mnemonic, tuple(operands), location, text)
        program.add(line)
        address += line.size

    logger.debug("Parsed %d instruction(s) from %s", len(program.lines), filename)
    return program


# =============================================================================
# Execution
# =============================================================================

def run_program(
    core: AVRCore,
    program: Program,
    max_steps: int = 10_000,
    after_step: Optional[Callable[[ScriptLine], None]] = None,
) -> int:
    """
    Execute a program until PC leaves it.

    Args:
        core: Core to run on; its PC selects the first line
        program: Parsed script
        max_steps: Upper bound on executed instructions
        after_step: Called with each line once it has executed

    Returns:
        Number of instructions executed

    Raises:
        ScriptError: If max_steps is exceeded, or an instruction fails
                     (the CoreError is chained as the cause)
    """
    steps = 0
    while True:
        line = program.at(core.pc)
        if line is None:
            return steps
        if steps >= max_steps:
            raise ScriptError(
                f"stopped after {max_steps} steps at ${core.pc:04X}",
                line.location,
                source_line=line.text,
            )
        try:
            core.execute(line.mnemonic, *line.operands)
        except CoreError as e:
            detail = f"{e.mnemonic}: {e.message}" if e.mnemonic else e.message
            raise ScriptError(detail, line.location, source_line=line.text) from e
        steps += 1
        if after_step:
            after_step(line)
