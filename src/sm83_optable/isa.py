"""
SM83 Instruction Set Description
================================

Generates the complete SM83 (Game Boy CPU) description in the
Opcodes.json shape consumed by build_table(), so a table can be built
without an external data file.

Opcode Decomposition
--------------------
Both opcode spaces are regular when the byte is split into fields:

    bit   7 6 | 5 4 3 | 2 1 0
          x   |   y   |   z
              | p   q |

- x selects the block (misc, LD r,r, ALU, control flow)
- y selects the destination register, condition or operation
- z selects the source register or instruction group
- p = y >> 1 selects a register pair, q = y & 1 a variant

Register tables:
    r   = B C D E H L [HL] A
    rp  = BC DE HL SP
    rp2 = BC DE HL AF
    cc  = NZ Z NC C

Cycle figures are T-states. Conditional instructions list
[taken, not_taken]. The carry condition is spelled "C" exactly as in the
published description, so the ambiguity corrector sees real input.

The 11 unused base opcodes (0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC,
0xED, 0xF4, 0xFC, 0xFD) are described as one-byte ILLEGAL_xx entries so
the base space is complete.

Reference
---------
- https://gbdev.io/gb-opcodes/optables/
- Decoding Gameboy Z80 Opcodes (gb-archive salvage)

Copyright (c) 2026 sm83-optable contributors
"""

from typing import Any, Dict, List, Optional

from sm83_optable.config import BuildConfig
from sm83_optable.table import InstructionTable, PREFIXED_KEY, UNPREFIXED_KEY, build_table

Entry = Dict[str, Any]


# =============================================================================
# Field Tables
# =============================================================================

R = ("B", "C", "D", "E", "H", "L", "HL", "A")
HL_INDIRECT = 6
RP = ("BC", "DE", "HL", "SP")
RP2 = ("BC", "DE", "HL", "AF")
CC = ("NZ", "Z", "NC", "C")

ALU = ("ADD", "ADC", "SUB", "SBC", "AND", "XOR", "OR", "CP")
ROT = ("RLC", "RRC", "RL", "RR", "SLA", "SRA", "SWAP", "SRL")
ACCUMULATOR_OPS = ("RLCA", "RRCA", "RLA", "RRA", "DAA", "CPL", "SCF", "CCF")

LITERAL_SIZES = {"n8": 1, "a8": 1, "e8": 1, "n16": 2, "a16": 2}


# =============================================================================
# Entry Helpers
# =============================================================================

def _op(name: str, immediate: bool = True, increment: bool = False, decrement: bool = False) -> Entry:
    operand: Entry = {"name": name}
    if name in LITERAL_SIZES:
        operand["bytes"] = LITERAL_SIZES[name]
    if increment:
        operand["increment"] = True
    if decrement:
        operand["decrement"] = True
    operand["immediate"] = immediate
    return operand


def _r(index: int) -> Entry:
    """Operand for r[index]; index 6 is [HL]."""
    return _op("HL", immediate=False) if index == HL_INDIRECT else _op(R[index])


def _entry(mnemonic: str, length: int, cycles: List[int], *operands: Entry) -> Entry:
    return {
        "mnemonic": mnemonic,
        "bytes": length,
        "cycles": list(cycles),
        "operands": list(operands),
        "immediate": all(op["immediate"] for op in operands),
    }


def _illegal(code: int) -> Entry:
    return _entry(f"ILLEGAL_{code:02X}", 1, [4])


# =============================================================================
# Base Opcode Space
# =============================================================================

def _block0(y: int, z: int, p: int, q: int) -> Entry:
    if z == 0:
        if y == 0:
            return _entry("NOP", 1, [4])
        if y == 1:
            return _entry("LD", 3, [20], _op("a16", immediate=False), _op("SP"))
        if y == 2:
            return _entry("STOP", 2, [4], _op("n8"))
        if y == 3:
            return _entry("JR", 2, [12], _op("e8"))
        return _entry("JR", 2, [12, 8], _op(CC[y - 4]), _op("e8"))

    if z == 1:
        if q == 0:
            return _entry("LD", 3, [12], _op(RP[p]), _op("n16"))
        return _entry("ADD", 1, [8], _op("HL"), _op(RP[p]))

    if z == 2:
        indirect = (
            _op("BC", immediate=False),
            _op("DE", immediate=False),
            _op("HL", immediate=False, increment=True),
            _op("HL", immediate=False, decrement=True),
        )[p]
        if q == 0:
            return _entry("LD", 1, [8], indirect, _op("A"))
        return _entry("LD", 1, [8], _op("A"), indirect)

    if z == 3:
        return _entry("INC" if q == 0 else "DEC", 1, [8], _op(RP[p]))

    if z in (4, 5):
        cycles = 12 if y == HL_INDIRECT else 4
        return _entry("INC" if z == 4 else "DEC", 1, [cycles], _r(y))

    if z == 6:
        cycles = 12 if y == HL_INDIRECT else 8
        return _entry("LD", 2, [cycles], _r(y), _op("n8"))

    return _entry(ACCUMULATOR_OPS[y], 1, [4])


def _block3(code: int, y: int, z: int, p: int, q: int) -> Entry:
    if z == 0:
        if y < 4:
            return _entry("RET", 1, [20, 8], _op(CC[y]))
        return (
            _entry("LDH", 2, [12], _op("a8", immediate=False), _op("A")),
            _entry("ADD", 2, [16], _op("SP"), _op("e8")),
            _entry("LDH", 2, [12], _op("A"), _op("a8", immediate=False)),
            _entry("LD", 2, [12], _op("HL"), _op("SP", increment=True), _op("e8")),
        )[y - 4]

    if z == 1:
        if q == 0:
            return _entry("POP", 1, [12], _op(RP2[p]))
        return (
            _entry("RET", 1, [16]),
            _entry("RETI", 1, [16]),
            _entry("JP", 1, [4], _op("HL")),
            _entry("LD", 1, [8], _op("SP"), _op("HL")),
        )[p]

    if z == 2:
        if y < 4:
            return _entry("JP", 3, [16, 12], _op(CC[y]), _op("a16"))
        return (
            _entry("LDH", 1, [8], _op("C", immediate=False), _op("A")),
            _entry("LD", 3, [16], _op("a16", immediate=False), _op("A")),
            _entry("LDH", 1, [8], _op("A"), _op("C", immediate=False)),
            _entry("LD", 3, [16], _op("A"), _op("a16", immediate=False)),
        )[y - 4]

    if z == 3:
        named = {
            0: _entry("JP", 3, [16], _op("a16")),
            1: _entry("PREFIX", 1, [4]),
            6: _entry("DI", 1, [4]),
            7: _entry("EI", 1, [4]),
        }
        return named.get(y) or _illegal(code)

    if z == 4:
        if y < 4:
            return _entry("CALL", 3, [24, 12], _op(CC[y]), _op("a16"))
        return _illegal(code)

    if z == 5:
        if q == 0:
            return _entry("PUSH", 1, [16], _op(RP2[p]))
        if p == 0:
            return _entry("CALL", 3, [24], _op("a16"))
        return _illegal(code)

    if z == 6:
        return _entry(ALU[y], 2, [8], _op("A"), _op("n8"))

    return _entry("RST", 1, [16], _op(f"${y * 8:02X}"))


def base_entry(code: int) -> Entry:
    """Describe one base-space opcode."""
    x, y, z = code >> 6, (code >> 3) & 7, code & 7
    p, q = y >> 1, y & 1

    if x == 0:
        return _block0(y, z, p, q)
    if x == 1:
        if y == HL_INDIRECT and z == HL_INDIRECT:
            return _entry("HALT", 1, [4])
        cycles = 8 if HL_INDIRECT in (y, z) else 4
        return _entry("LD", 1, [cycles], _r(y), _r(z))
    if x == 2:
        cycles = 8 if z == HL_INDIRECT else 4
        return _entry(ALU[y], 1, [cycles], _op("A"), _r(z))
    return _block3(code, y, z, p, q)


# =============================================================================
# CB-Prefixed Opcode Space
# =============================================================================

def prefixed_entry(code: int) -> Entry:
    """Describe one CB-prefixed opcode (length includes the prefix byte)."""
    x, y, z = code >> 6, (code >> 3) & 7, code & 7
    indirect = z == HL_INDIRECT

    if x == 0:
        return _entry(ROT[y], 2, [16 if indirect else 8], _r(z))
    if x == 1:
        return _entry("BIT", 2, [12 if indirect else 8], _op(str(y)), _r(z))
    mnemonic = "RES" if x == 2 else "SET"
    return _entry(mnemonic, 2, [16 if indirect else 8], _op(str(y)), _r(z))


# =============================================================================
# Public API
# =============================================================================

def sm83_description() -> Dict[str, Dict[str, Entry]]:
    """
    Return a fresh Opcodes.json-shaped description of the SM83.

    The result is a new object on every call and may be modified freely.
    """
    return {
        UNPREFIXED_KEY: {f"0x{code:02X}": base_entry(code) for code in range(0x100)},
        PREFIXED_KEY: {f"0x{code:02X}": prefixed_entry(code) for code in range(0x100)},
    }


def sm83_table(config: Optional[BuildConfig] = None) -> InstructionTable:
    """Build the instruction table from the bundled SM83 description."""
    return build_table(sm83_description(), config)
