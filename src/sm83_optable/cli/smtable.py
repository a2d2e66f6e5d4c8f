"""
smtable - Opcode Table Builder Command-Line Interface
=====================================================

Builds and validates SM83 opcode tables from an Opcodes.json-style
description, and prints reports about them. When no description file
is given, the bundled SM83 description is used.

Usage Examples
--------------
Validate a description and write the normalized table:
    $ smtable build Opcodes.json -o optable.json

Allow opcode spaces with undefined codes:
    $ smtable --allow-incomplete build partial.json

Store the taken-branch total instead of the extra:
    $ smtable --cycles total build Opcodes.json -o optable.json

List opcodes per mnemonic:
    $ smtable codes
    $ smtable codes --prefixed

List opcodes whose cost depends on a taken branch:
    $ smtable cycles
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional
import logging

import click

from sm83_optable import __version__
from sm83_optable.cli.errors import handle_cli_exception
from sm83_optable.config import BuildConfig, CompletenessPolicy, CycleConvention
from sm83_optable.isa import sm83_description
from sm83_optable.loader import load_description
from sm83_optable.records import OpcodeRecord
from sm83_optable.serializer import codes_by_mnemonic, conditional_timings, dump_table
from sm83_optable.table import InstructionTable, build_table

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the build options given before the subcommand.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.allow_incomplete: bool = False
        self.cycles: Optional[str] = None

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def build_config(self) -> BuildConfig:
        """Environment configuration with command-line overrides applied."""
        config = BuildConfig.from_env()
        if self.allow_incomplete:
            config = replace(config, completeness=CompletenessPolicy.WARN)
        if self.cycles:
            config = replace(config, cycle_convention=CycleConvention(self.cycles))
        return config

    def load_table(self, description: Optional[Path]) -> InstructionTable:
        """Build the table from a description file, or the bundled one."""
        if description is None:
            logger.debug("Using bundled SM83 description")
            source = sm83_description()
        else:
            source = load_description(description)
        return build_table(source, self.build_config())


pass_context = click.make_pass_decorator(Context, ensure=True)

description_argument = click.argument(
    "description",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


def format_record(record: OpcodeRecord) -> str:
    """One-line summary: 'CB 0x7C  BIT 7,H'."""
    prefix = "CB " if record.prefixed else "   "
    operands = ",".join(str(op.kind) for op in record.operands)
    asm = f"{record.mnemonic} {operands}" if operands else record.mnemonic
    return f"{prefix}0x{record.code:02X}  {asm}"


# =============================================================================
# CLI Definition
# =============================================================================

@click.group()
@click.option(
    "--allow-incomplete",
    is_flag=True,
    help="Warn instead of failing when an opcode space has undefined codes",
)
@click.option(
    "--cycles",
    type=click.Choice([c.value for c in CycleConvention]),
    default=None,
    help="Two-figure cycle storage: 'extra' (base + taken extra) or 'total' (base + taken total)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="smtable")
@pass_context
def main(ctx: Context, allow_incomplete: bool, cycles: Optional[str], verbose: bool) -> None:
    """
    Build and inspect SM83 opcode tables.

    DESCRIPTION arguments are Opcodes.json-style files; when omitted the
    bundled SM83 description is used.
    """
    ctx.allow_incomplete = allow_incomplete
    ctx.cycles = cycles
    ctx.verbose = verbose
    ctx.setup_logging()


@main.command()
@description_argument
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the normalized table as JSON",
)
@pass_context
def build(ctx: Context, description: Optional[Path], output: Optional[Path]) -> None:
    """
    Validate a description and build its opcode table.
    """
    try:
        table = ctx.load_table(description)
        if output:
            size = dump_table(table, output)
            if ctx.verbose:
                click.echo(f"Output written to: {output} ({size} bytes)", err=True)
    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Build")

    click.echo(f"unprefixed: {len(table.unprefixed)} opcodes")
    click.echo(f"cbprefixed: {len(table.prefixed)} opcodes")
    click.echo(f"conditional timings: {len(conditional_timings(table))}")


@main.command()
@description_argument
@click.option(
    "--prefixed",
    is_flag=True,
    help="Report the CB-prefixed opcode space",
)
@pass_context
def codes(ctx: Context, description: Optional[Path], prefixed: bool) -> None:
    """
    List the opcodes of each mnemonic.
    """
    try:
        table = ctx.load_table(description)
    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Build")

    index = codes_by_mnemonic(table, prefixed=prefixed)
    width = max((len(m) for m in index), default=0)
    for mnemonic, code_list in index.items():
        listed = " ".join(f"0x{code:02X}" for code in code_list)
        click.echo(f"{mnemonic:<{width}}  {listed}")


@main.command()
@description_argument
@pass_context
def cycles(ctx: Context, description: Optional[Path]) -> None:
    """
    List opcodes whose cycle cost depends on a taken branch.
    """
    try:
        table = ctx.load_table(description)
    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Build")

    for record in conditional_timings(table):
        click.echo(
            f"{format_record(record):<24} base={record.cycles.base} "
            f"extra={record.cycles.extra} taken={record.cycles.taken}"
        )


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
