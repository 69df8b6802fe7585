"""
AVR Conditional Branch Table
============================

Every named conditional branch is exactly one BRBS or BRBC on a single
SREG bit. This table is the single source of truth for that equivalence;
AVRCore's named branch methods are thin wrappers that look up their entry
here, so both forms always agree.

    Mnemonic   Test         Equivalent
    --------   ----------   ---------------
    BRCS       C = 1        BRBS 0, k
    BRLO       C = 1        BRBS 0, k
    BRCC       C = 0        BRBC 0, k
    BRSH       C = 0        BRBC 0, k
    BREQ       Z = 1        BRBS 1, k
    BRNE       Z = 0        BRBC 1, k
    BRMI       N = 1        BRBS 2, k
    BRPL       N = 0        BRBC 2, k
    BRVS       V = 1        BRBS 3, k
    BRVC       V = 0        BRBC 3, k
    BRLT       S = 1        BRBS 4, k
    BRGE       S = 0        BRBC 4, k
    BRHS       H = 1        BRBS 5, k
    BRHC       H = 0        BRBC 5, k
    BRTS       T = 1        BRBS 6, k
    BRTC       T = 0        BRBC 6, k
    BRIE       I = 1        BRBS 7, k
    BRID       I = 0        BRBC 7, k

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import NamedTuple

from avr_core.cpu.status import Flag


class BranchCondition(NamedTuple):
    """A named branch: the SREG bit it tests and the value that branches."""
    flag: Flag
    when_set: bool

    @property
    def generic(self) -> str:
        """The generalized mnemonic this branch is an alias of."""
        return "BRBS" if self.when_set else "BRBC"


BRANCH_TABLE: dict[str, BranchCondition] = {
    "BRCS": BranchCondition(Flag.C, True),
    "BRLO": BranchCondition(Flag.C, True),
    "BRCC": BranchCondition(Flag.C, False),
    "BRSH": BranchCondition(Flag.C, False),
    "BREQ": BranchCondition(Flag.Z, True),
    "BRNE": BranchCondition(Flag.Z, False),
    "BRMI": BranchCondition(Flag.N, True),
    "BRPL": BranchCondition(Flag.N, False),
    "BRVS": BranchCondition(Flag.V, True),
    "BRVC": BranchCondition(Flag.V, False),
    "BRLT": BranchCondition(Flag.S, True),
    "BRGE": BranchCondition(Flag.S, False),
    "BRHS": BranchCondition(Flag.H, True),
    "BRHC": BranchCondition(Flag.H, False),
    "BRTS": BranchCondition(Flag.T, True),
    "BRTC": BranchCondition(Flag.T, False),
    "BRIE": BranchCondition(Flag.I, True),
    "BRID": BranchCondition(Flag.I, False),
}


# Conditional branch displacement: 7-bit signed field "kkkkkkk"
BRANCH_OFFSET_MIN = -64
BRANCH_OFFSET_MAX = 63

# RJMP/RCALL displacement: 12-bit signed field
RJMP_OFFSET_MIN = -2048
RJMP_OFFSET_MAX = 2047


def sign_extend(value: int, bits: int) -> int:
    """
    Interpret the low `bits` bits of value as a two's complement number.

    This is the decode-to-core boundary for relative transfers: the decoder
    extracts the raw 7-bit field of BRBS/BRBC (or the 12-bit field of
    RJMP/RCALL) and sign-extends it before calling the core.

    Example:
        >>> sign_extend(0x7F, 7)
        -1
        >>> sign_extend(0x3F, 7)
        63
        >>> sign_extend(0x40, 7)
        -64
    """
    mask = (1 << bits) - 1
    value &= mask
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value
