"""
smdisasm - SM83 Disassembler Command-Line Interface
===================================================

Disassembles SM83 machine code with an instruction table built from the
bundled description or from an Opcodes.json-style file.

Usage Examples
--------------
Disassemble a ROM from its entry point:
    $ smdisasm game.gb --skip 0x100 --address 0x0100 --count 16

Use a custom description:
    $ smdisasm code.bin --table Opcodes.json

Use a description that leaves codes undefined (they decode as .BYTE):
    $ smdisasm code.bin --table partial.json --allow-incomplete

Output to file without raw bytes:
    $ smdisasm code.bin --no-bytes -o listing.asm

Copyright (c) 2026 sm83-optable contributors
"""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from sm83_optable import __version__
from sm83_optable.cli.errors import ExitCode, handle_cli_exception
from sm83_optable.config import BuildConfig, CompletenessPolicy
from sm83_optable.decoder import SM83Decoder
from sm83_optable.isa import sm83_table
from sm83_optable.loader import load_description
from sm83_optable.table import build_table


def parse_number(text: str) -> int:
    """Parse '0x100', '$100' or '256'."""
    if text.lower().startswith("0x"):
        return int(text, 16)
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-t", "--table",
    "table_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Opcodes.json-style description (default: bundled SM83 table)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Base address for disassembly (hex with 0x/$ prefix or decimal). Default: 0",
)
@click.option(
    "-s", "--skip",
    type=str,
    default="0",
    help="Number of input bytes to skip before disassembling",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--allow-incomplete",
    is_flag=True,
    help="Accept a table with undefined codes (they disassemble as .BYTE)",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operands)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="smdisasm")
def main(
    input_file: Path,
    output: Optional[Path],
    table_file: Optional[Path],
    address: str,
    skip: str,
    count: Optional[int],
    allow_incomplete: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble SM83 (Game Boy) machine code.

    INPUT_FILE is the binary file to disassemble.
    """
    try:
        base_address = parse_number(address)
        skip_bytes = parse_number(skip)
    except ValueError:
        click.echo(f"Error: Invalid number '{address}' / '{skip}'", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if not 0 <= base_address <= 0xFFFF:
        click.echo("Error: Address must be 0-65535 (0x0000-0xFFFF)", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        data = input_file.read_bytes()[skip_bytes:]
        config = BuildConfig.from_env()
        if allow_incomplete:
            config = replace(config, completeness=CompletenessPolicy.WARN)
        if table_file is not None:
            table = build_table(load_description(table_file), config)
        else:
            table = sm83_table(config)
    except Exception as e:
        handle_cli_exception(e, verbose)

    if len(data) == 0:
        click.echo(f"Error: {input_file} has no bytes to disassemble", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:04X}", err=True)

    decoder = SM83Decoder(table)
    instructions = decoder.decode(data, start_address=base_address, count=count)

    output_lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        f"; Base address: ${base_address:04X}",
        "",
    ]
    for instr in instructions:
        if no_bytes:
            line = f"${instr.address:04X}: {instr.mnemonic}"
            if instr.operand_str:
                line += f" {instr.operand_str}"
            if instr.comment:
                line += f"  ; {instr.comment}"
            output_lines.append(line)
        else:
            output_lines.append(str(instr))

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.BUILD_ERROR)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
