"""
avrrun - AVR Instruction Script Runner
======================================

This module implements the command-line host harness for the AVR core.
It executes an instruction script (see avr_core.script) on a fresh CPU
and prints the final register and flag state.

Usage Examples
--------------
Run a script:
    $ avrrun program.avr

Preload registers (the classic half-carry check):
    $ echo "add r0, r1" > add.avr
    $ avrrun add.avr --set r0=250 --set r1=6

Print every instruction as it executes:
    $ avrrun loop.avr --trace

Show the full state after each instruction:
    $ avrrun loop.avr --step

Save and restore CPU state:
    $ avrrun setup.avr --snapshot state.sna
    $ avrrun main.avr --restore state.sna

Select a device:
    $ avrrun tiny.avr --device ATtiny85

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
from pathlib import Path
from typing import Optional

import click

from avr_core import __version__
from avr_core.cli.errors import handle_cli_exception
from avr_core.cpu import AVRCore, CoreConfig, CPUContext, ListStack, get_device, list_devices
from avr_core.script import parse_number, parse_operand, parse_script, run_program

logger = logging.getLogger(__name__)


# =============================================================================
# Output Formatting
# =============================================================================

def format_state(context: CPUContext) -> str:
    """
    Format registers, pointer pairs, SREG and PC as a text block.

    Example output:
        R0 -R7 : 00 06 00 00 00 00 00 00
        ...
        X=$0000  Y=$0000  Z=$0000
        SREG=$23  I T H S V N Z C
                  0 0 1 0 0 0 1 1
        PC=$0001
    """
    regs = context.registers_dict()
    lines = []
    for base in range(0, 32, 8):
        label = f"R{base}-R{base + 7}".ljust(7)
        values = " ".join(f"{regs[f'R{i}']:02X}" for i in range(base, base + 8))
        lines.append(f"{label}: {values}")
    lines.append(f"X=${regs['X']:04X}  Y=${regs['Y']:04X}  Z=${regs['Z']:04X}")

    flag_states = context.sreg.as_dict()
    names = list(reversed(flag_states))
    header = f"SREG=${regs['SREG']:02X}"
    lines.append(f"{header}  " + " ".join(names))
    lines.append(" " * (len(header) + 2) + " ".join(
        "1" if flag_states[name] else "0" for name in names
    ))
    lines.append(f"PC=${regs['PC']:04X}")
    return "\n".join(lines)


def apply_assignment(context: CPUContext, assignment: str) -> None:
    """
    Apply a --set assignment such as "r0=250", "X=0x0100" or "sreg=$02".

    Raises:
        click.BadParameter: If the assignment is malformed
    """
    target, sep, value_text = assignment.partition("=")
    if not sep:
        raise click.BadParameter(
            f"'{assignment}' is not of the form NAME=VALUE", param_hint="--set"
        )
    target = target.strip().lower()
    try:
        value = parse_number(value_text)
        if target == "sreg":
            context.sreg.value = value & 0xFF
        elif target in ("x", "y", "z"):
            context.registers.write_pair(parse_operand(target), value)
        else:
            context.registers.write(parse_operand(target), value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--set") from None


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-d", "--device",
    default="ATmega328P",
    show_default=True,
    help="Target device (" + ", ".join(d.name for d in list_devices()) + ")",
)
@click.option(
    "-s", "--set", "assignments",
    multiple=True,
    metavar="NAME=VALUE",
    help="Initialise a register, pair or SREG before running (repeatable)",
)
@click.option(
    "--pc",
    type=str,
    default=None,
    help="Start address in words (hex with 0x/$ prefix or decimal). Default: reset vector",
)
@click.option(
    "--max-steps",
    type=int,
    default=10_000,
    show_default=True,
    help="Stop with an error after this many instructions",
)
@click.option(
    "-t", "--trace",
    is_flag=True,
    help="Print each instruction as it executes",
)
@click.option(
    "--step",
    is_flag=True,
    help="Print the CPU state after every instruction",
)
@click.option(
    "--restore",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Load CPU state from a snapshot file before running",
)
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Save CPU state to a snapshot file after running",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.version_option(version=__version__, prog_name="avrrun")
def main(
    script: Path,
    device: str,
    assignments: tuple[str, ...],
    pc: Optional[str],
    max_steps: int,
    trace: bool,
    step: bool,
    restore: Optional[Path],
    snapshot: Optional[Path],
    verbose: bool,
) -> None:
    """
    Execute an AVR instruction script and print the final CPU state.

    SCRIPT holds one resolved instruction per line, e.g. "add r0, r1" or
    "brne -2". Instructions are placed at consecutive word addresses and
    execution stops when PC leaves the script.

    Examples:

        # Add two preloaded registers
        avrrun add.avr --set r0=250 --set r1=6

        # Trace a countdown loop
        avrrun loop.avr --trace
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        get_device(device)
        core = AVRCore(stack=ListStack(), config=CoreConfig(device=device, trace=verbose))
        core.reset()

        if restore:
            core.context.load_snapshot(restore)

        for assignment in assignments:
            apply_assignment(core.context, assignment)

        if pc is not None:
            try:
                address = parse_number(pc)
            except ValueError:
                raise click.BadParameter(f"invalid address '{pc}'", param_hint="--pc") from None
            if not 0 <= address < core.device.flash_words:
                raise click.BadParameter(
                    f"address {pc} is outside {core.device.name} program memory "
                    f"(0-${core.device.flash_words - 1:X})",
                    param_hint="--pc",
                )
            core.context.pc.value = address

        program = parse_script(
            script.read_text(encoding="utf-8"),
            filename=script.name,
            origin=core.device.reset_vector,
        )

        if trace:
            core.on_instruction = lambda address, mnemonic, operands: click.echo(
                f"${address:04X}: {mnemonic} {', '.join(str(op) for op in operands)}".rstrip()
            )

        def show_step(line):
            click.echo(f"{line.location}: {line.text}")
            click.echo(format_state(core.context))
            click.echo()

        steps = run_program(
            core, program, max_steps=max_steps, after_step=show_step if step else None
        )
        logger.debug("Executed %d instruction(s)", steps)

        click.echo(format_state(core.context))

        if snapshot:
            core.context.save_snapshot(snapshot)
            if verbose:
                click.echo(f"Snapshot written to: {snapshot}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
