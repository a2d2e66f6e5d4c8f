"""
Table Serialization and Reports
===============================

Turns a built InstructionTable back into plain data:

- table_to_dict / dump_table: normalized JSON export with typed operands
- table_to_description / record_to_entry: Opcodes.json-shaped entries that
  rebuild to the same operand kinds (used to check classification is stable)
- codes_by_mnemonic: mnemonic -> opcodes index
- conditional_timings: opcodes whose cost depends on a taken branch

Export format:

    {
      "unprefixed": {
        "0xCA": {
          "mnemonic": "JP", "bytes": 3, "cycles": [12, 4], "immediate": true,
          "operands": [
            {"kind": "condition", "value": "Z", "immediate": true},
            {"kind": "literal", "value": "a16", "immediate": true}
          ]
        }, ...
      },
      "cbprefixed": {...}
    }

"cycles" is the stored Cycles pair [base, second figure]: [12, 4] when
built with CycleConvention.TAKEN_EXTRA, [12, 16] with TAKEN_TOTAL.

Copyright (c) 2026 sm83-optable contributors
"""

from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging

from sm83_optable.operands import (
    Bit,
    Condition,
    Interrupt,
    Literal,
    OperandKind,
    Register,
    operand_name,
)
from sm83_optable.records import Cycles, Operand, OpcodeRecord
from sm83_optable.table import InstructionTable, PREFIXED_KEY, UNPREFIXED_KEY

logger = logging.getLogger(__name__)


# =============================================================================
# Normalized Export
# =============================================================================

def kind_to_dict(kind: OperandKind) -> Dict[str, Any]:
    """Describe an operand kind as {'kind': ..., 'value': ...}."""
    if isinstance(kind, Register):
        return {"kind": "register", "value": kind.name}
    if isinstance(kind, Condition):
        return {"kind": "condition", "value": kind.code.value}
    if isinstance(kind, Bit):
        return {"kind": "bit", "value": kind.index}
    if isinstance(kind, Literal):
        return {"kind": "literal", "value": kind.width.value}
    if isinstance(kind, Interrupt):
        return {"kind": "interrupt", "value": kind.vector}
    raise TypeError(f"not an operand kind: {kind!r}")


def _operand_flags(operand: Operand) -> Dict[str, Any]:
    flags: Dict[str, Any] = {"immediate": operand.immediate}
    if operand.increment:
        flags["increment"] = True
    if operand.decrement:
        flags["decrement"] = True
    return flags


def record_to_dict(record: OpcodeRecord) -> Dict[str, Any]:
    """Normalized export of one record."""
    return {
        "mnemonic": record.mnemonic,
        "bytes": record.byte_length,
        "cycles": [record.cycles.base, record.cycles.branch_taken_extra],
        "immediate": record.immediate,
        "operands": [
            {**kind_to_dict(op.kind), **_operand_flags(op)} for op in record.operands
        ],
    }


def table_to_dict(table: InstructionTable) -> Dict[str, Dict[str, Any]]:
    """Normalized export of a whole table, keyed like the source description."""
    return {
        UNPREFIXED_KEY: {f"0x{code:02X}": record_to_dict(r) for code, r in table.unprefixed.items()},
        PREFIXED_KEY: {f"0x{code:02X}": record_to_dict(r) for code, r in table.prefixed.items()},
    }


def dump_table(table: InstructionTable, path: Union[str, Path]) -> int:
    """
    Write the normalized export as JSON.

    Returns:
        Number of bytes written
    """
    text = json.dumps(table_to_dict(table), indent=2) + "\n"
    data = text.encode("utf-8")
    Path(path).write_bytes(data)
    logger.info(f"Wrote {len(table)} records to {path}")
    return len(data)


# =============================================================================
# Source Description Round Trip
# =============================================================================

def _source_cycles(cycles: Cycles) -> List[int]:
    if not cycles.is_conditional:
        return [cycles.base]
    return [cycles.taken, cycles.base]


def record_to_entry(record: OpcodeRecord) -> Dict[str, Any]:
    """
    Re-derive a source description entry from a record.

    Operand names are spelled from their kinds, so corrected carry
    conditions come back as 'CY' rather than the ambiguous 'C'. Cycle
    figures come back in source order, [taken, not_taken], whichever
    convention the record was built with.
    """
    operands = []
    for op in record.operands:
        entry: Dict[str, Any] = {"name": operand_name(op.kind)}
        if isinstance(op.kind, Literal):
            entry["bytes"] = op.kind.width.size
        entry.update(_operand_flags(op))
        operands.append(entry)

    return {
        "mnemonic": record.mnemonic,
        "bytes": record.byte_length,
        "cycles": _source_cycles(record.cycles),
        "operands": operands,
        "immediate": record.immediate,
    }


def table_to_description(table: InstructionTable) -> Dict[str, Dict[str, Any]]:
    """Re-derive a complete source description from a table."""
    return {
        UNPREFIXED_KEY: {
            f"0x{code:02X}": record_to_entry(r) for code, r in table.unprefixed.items()
        },
        PREFIXED_KEY: {
            f"0x{code:02X}": record_to_entry(r) for code, r in table.prefixed.items()
        },
    }


# =============================================================================
# Reports
# =============================================================================

def codes_by_mnemonic(table: InstructionTable, prefixed: bool = False) -> Dict[str, List[int]]:
    """
    Group opcodes by mnemonic.

    Returns:
        mnemonic -> ascending codes, mnemonics in order of first code
    """
    index: Dict[str, List[int]] = {}
    space = table.space(prefixed)
    for code in sorted(space):
        index.setdefault(space[code].mnemonic, []).append(code)
    return index


def conditional_timings(table: InstructionTable) -> List[OpcodeRecord]:
    """Records whose cycle cost has a branch-taken component, in table order."""
    return [record for record in table if record.cycles.is_conditional]

