"""
SM83 Optable - Typed Opcode Tables for the Game Boy CPU
========================================================

This package turns a machine-readable description of the SM83 instruction
set (the Opcodes.json format: one entry per opcode byte with mnemonic,
length, timing and operand list) into a validated, strongly typed opcode
table for instruction decoders.

Main Components
---------------
- **operands**: operand descriptors, typed operand kinds, the classifier
- **corrector**: resolves the carry-condition / C-register name collision
- **records**: per-opcode records with normalized cycle costs
- **table**: assembles and validates the two opcode spaces
- **loader** / **serializer**: JSON in, JSON and reports out
- **isa**: bundled SM83 description
- **decoder**: table-driven SM83 decoder

Quick Start
-----------
Build the bundled table:
    >>> from sm83_optable import sm83_table
    >>> table = sm83_table()
    >>> table.lookup(0xCA).mnemonic
    'JP'

Build from a description file:
    >>> from sm83_optable import build_table, load_description
    >>> table = build_table(load_description("Opcodes.json"))

Or use the command-line tools:
    $ smtable build Opcodes.json -o optable.json
    $ smtable codes --prefixed
    $ smdisasm game.gb --address 0x0100 --count 16
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from sm83_optable.config import (
    BuildConfig,
    CompletenessPolicy,
    ConfigError,
    CycleConvention,
    SM83_AMBIGUOUS_CODES,
)
from sm83_optable.errors import (
    OpcodeTableError,
    OpcodeLocation,
    MalformedInterruptVector,
    BitIndexOutOfRange,
    UnknownMnemonicFormat,
    MalformedOpcodeCode,
    DuplicateOpcode,
    IncompleteOpcodeSpace,
    DescriptionLoadError,
)
from sm83_optable.operands import (
    OperandDescriptor,
    OperandKind,
    Register,
    Condition,
    ConditionCode,
    Bit,
    Literal,
    LiteralWidth,
    Interrupt,
    classify,
)
from sm83_optable.corrector import correct_operands
from sm83_optable.records import Cycles, Operand, OpcodeRecord, build_record, normalize_cycles
from sm83_optable.table import InstructionTable, assemble_space, build_table
from sm83_optable.loader import load_description, parse_description
from sm83_optable.isa import sm83_description, sm83_table
from sm83_optable.decoder import SM83Decoder, DecodedInstruction

__all__ = [
    "__version__",
    # Configuration
    "BuildConfig",
    "CompletenessPolicy",
    "ConfigError",
    "CycleConvention",
    "SM83_AMBIGUOUS_CODES",
    # Errors
    "OpcodeTableError",
    "OpcodeLocation",
    "MalformedInterruptVector",
    "BitIndexOutOfRange",
    "UnknownMnemonicFormat",
    "MalformedOpcodeCode",
    "DuplicateOpcode",
    "IncompleteOpcodeSpace",
    "DescriptionLoadError",
    # Operands
    "OperandDescriptor",
    "OperandKind",
    "Register",
    "Condition",
    "ConditionCode",
    "Bit",
    "Literal",
    "LiteralWidth",
    "Interrupt",
    "classify",
    "correct_operands",
    # Records and tables
    "Cycles",
    "Operand",
    "OpcodeRecord",
    "build_record",
    "normalize_cycles",
    "InstructionTable",
    "assemble_space",
    "build_table",
    # Collaborators
    "load_description",
    "parse_description",
    "sm83_description",
    "sm83_table",
    "SM83Decoder",
    "DecodedInstruction",
]
