"""
Shared fixtures for the opcode table tests.
"""

import pytest

from sm83_optable.isa import sm83_description, sm83_table


def make_entry(mnemonic="NOP", length=1, cycles=(4,), operands=(), immediate=True):
    """Build one Opcodes.json-style entry."""
    return {
        "mnemonic": mnemonic,
        "bytes": length,
        "cycles": list(cycles),
        "operands": [dict(op) for op in operands],
        "immediate": immediate,
    }


def filler_space(**overrides):
    """A complete opcode space of NOPs with selected codes replaced."""
    space = {f"0x{code:02X}": make_entry() for code in range(0x100)}
    for code, entry in overrides.items():
        space[code] = entry
    return space


@pytest.fixture
def description():
    """Fresh bundled SM83 description (safe to modify)."""
    return sm83_description()


@pytest.fixture(scope="session")
def table():
    """Instruction table built from the bundled description."""
    return sm83_table()
