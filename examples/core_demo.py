#!/usr/bin/env python3
"""
AVR Core Demo
=============

This script demonstrates how to drive the AVR instruction core directly:
1. Preload registers and execute ADD
2. Inspect the resulting flags
3. Run a counted loop with DEC/BRNE
4. Call a subroutine through a return-address stack

Usage:
    source .venv/bin/activate
    python examples/core_demo.py

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from avr_core import AVRCore, CoreConfig, Flag, ListStack


def main():
    # ==========================================================================
    # 1. The classic half-carry check: 250 + 6
    # ==========================================================================
    core = AVRCore(stack=ListStack(), config=CoreConfig(device="ATmega328P"))
    core.context.registers[0] = 250
    core.context.registers[1] = 6

    print(f"R0: {core.get_register(0)}")
    print(f"R1: {core.get_register(1)}")

    core.add(0, 1)
    print(f"Result: {core.get_register(0)}")

    # ==========================================================================
    # 2. Flags
    # ==========================================================================
    # $FA + $06: low nibbles A + 6 carry out of bit 3, the byte wraps to $00
    print(f"H: {int(core.get_flag(Flag.H))}")
    print(f"Z: {int(core.get_flag(Flag.Z))}")
    print(f"N: {int(core.get_flag(Flag.N))}")
    print(f"C: {int(core.get_flag(Flag.C))}")

    # ==========================================================================
    # 3. A counted loop
    # ==========================================================================
    # The host plays fetch/decode: it looks at PC and issues the instruction
    # stored there.
    #   $0010  dec  r16
    #   $0011  brne -2
    core.reset()
    core.ldi(16, 5)
    core.context.pc.value = 0x10
    iterations = 0
    while core.pc in (0x10, 0x11):
        if core.pc == 0x10:
            core.dec(16)
            iterations += 1
        else:
            core.brne(-2)
    print(f"\nLoop ran {iterations} times, PC=${core.pc:04X}")

    # ==========================================================================
    # 4. Subroutine call
    # ==========================================================================
    core.context.pc.value = 0x100
    core.call(0x200)
    print(f"CALL $0200: PC=${core.pc:04X}, return address=${core.stack.addresses[-1]:04X}")
    core.ret()
    print(f"RET: PC=${core.pc:04X}")

    print(f"\nFinal state: {core!r}")


if __name__ == "__main__":
    main()
