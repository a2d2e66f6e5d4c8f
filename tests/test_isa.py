"""
Tests for the Bundled SM83 Description
======================================

Checks the generated description against well-known SM83 opcodes and
verifies that the table built from it is classified as expected.

Run tests with:
    pytest tests/test_isa.py -v

Copyright (c) 2026 sm83-optable contributors
"""

import pytest

from sm83_optable.config import BuildConfig, CycleConvention
from sm83_optable.isa import base_entry, prefixed_entry, sm83_description, sm83_table
from sm83_optable.operands import (
    REGISTER_NAMES,
    Bit,
    Condition,
    ConditionCode,
    Interrupt,
    Literal,
    LiteralWidth,
    Register,
)
from sm83_optable.records import Cycles, Operand


ILLEGAL_CODES = [0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD]


def names(entry):
    return [op["name"] for op in entry["operands"]]


# =============================================================================
# Description Tests
# =============================================================================

class TestSM83Description:
    """Tests for the generated Opcodes.json-shaped description."""

    def test_keys(self, description):
        assert set(description) == {"unprefixed", "cbprefixed"}
        assert len(description["unprefixed"]) == 256
        assert len(description["cbprefixed"]) == 256
        assert "0xCA" in description["unprefixed"]

    def test_fresh_copy(self):
        first = sm83_description()
        first["unprefixed"]["0x00"]["mnemonic"] = "XXX"
        assert sm83_description()["unprefixed"]["0x00"]["mnemonic"] == "NOP"

    @pytest.mark.parametrize("code,mnemonic,operands,length", [
        (0x00, "NOP", [], 1),
        (0x01, "LD", ["BC", "n16"], 3),
        (0x08, "LD", ["a16", "SP"], 3),
        (0x10, "STOP", ["n8"], 2),
        (0x18, "JR", ["e8"], 2),
        (0x20, "JR", ["NZ", "e8"], 2),
        (0x22, "LD", ["HL", "A"], 1),
        (0x31, "LD", ["SP", "n16"], 3),
        (0x36, "LD", ["HL", "n8"], 2),
        (0x38, "JR", ["C", "e8"], 2),
        (0x76, "HALT", [], 1),
        (0x7E, "LD", ["A", "HL"], 1),
        (0x86, "ADD", ["A", "HL"], 1),
        (0xC3, "JP", ["a16"], 3),
        (0xC9, "RET", [], 1),
        (0xCB, "PREFIX", [], 1),
        (0xCD, "CALL", ["a16"], 3),
        (0xD9, "RETI", [], 1),
        (0xE0, "LDH", ["a8", "A"], 2),
        (0xE2, "LDH", ["C", "A"], 1),
        (0xE8, "ADD", ["SP", "e8"], 2),
        (0xE9, "JP", ["HL"], 1),
        (0xEA, "LD", ["a16", "A"], 3),
        (0xF1, "POP", ["AF"], 1),
        (0xF3, "DI", [], 1),
        (0xF8, "LD", ["HL", "SP", "e8"], 2),
        (0xFE, "CP", ["A", "n8"], 2),
        (0xFF, "RST", ["$38"], 1),
    ])
    def test_base_entries(self, code, mnemonic, operands, length):
        entry = base_entry(code)
        assert entry["mnemonic"] == mnemonic
        assert names(entry) == operands
        assert entry["bytes"] == length

    @pytest.mark.parametrize("code,cycles", [
        (0x00, [4]),
        (0x20, [12, 8]),
        (0x34, [12]),
        (0xC0, [20, 8]),
        (0xC2, [16, 12]),
        (0xC4, [24, 12]),
        (0xCA, [16, 12]),
        (0xCD, [24]),
        (0xF8, [12]),
    ])
    def test_base_cycles(self, code, cycles):
        assert base_entry(code)["cycles"] == cycles

    @pytest.mark.parametrize("code", ILLEGAL_CODES)
    def test_illegal_placeholders(self, code):
        entry = base_entry(code)
        assert entry["mnemonic"] == f"ILLEGAL_{code:02X}"
        assert entry["bytes"] == 1
        assert entry["operands"] == []

    def test_indirect_flags(self):
        """[HL+] and [HL-] carry their addressing flags."""
        hli = base_entry(0x22)["operands"][0]
        hld = base_entry(0x32)["operands"][0]
        assert hli == {"name": "HL", "increment": True, "immediate": False}
        assert hld == {"name": "HL", "decrement": True, "immediate": False}
        assert base_entry(0x22)["immediate"] is False

    def test_literal_bytes(self):
        assert base_entry(0xC3)["operands"][0] == {"name": "a16", "bytes": 2, "immediate": True}
        assert base_entry(0x3E)["operands"][1] == {"name": "n8", "bytes": 1, "immediate": True}

    @pytest.mark.parametrize("code,mnemonic,operands,cycles", [
        (0x00, "RLC", ["B"], [8]),
        (0x06, "RLC", ["HL"], [16]),
        (0x37, "SWAP", ["A"], [8]),
        (0x3F, "SRL", ["A"], [8]),
        (0x46, "BIT", ["0", "HL"], [12]),
        (0x7C, "BIT", ["7", "H"], [8]),
        (0x87, "RES", ["0", "A"], [8]),
        (0xD9, "SET", ["3", "C"], [8]),
        (0xFE, "SET", ["7", "HL"], [16]),
    ])
    def test_prefixed_entries(self, code, mnemonic, operands, cycles):
        entry = prefixed_entry(code)
        assert entry["mnemonic"] == mnemonic
        assert names(entry) == operands
        assert entry["cycles"] == cycles
        assert entry["bytes"] == 2


# =============================================================================
# Built Table Tests
# =============================================================================

class TestSM83Table:
    """Tests for the table built from the bundled description."""

    def test_complete(self, table):
        assert len(table.unprefixed) == 256
        assert len(table.prefixed) == 256

    def test_jp_z(self, table):
        record = table.lookup(0xCA)
        assert record.mnemonic == "JP"
        assert record.byte_length == 3
        assert record.cycles == Cycles(12, 4)
        assert record.kinds == (Condition(ConditionCode.ZERO), Literal(LiteralWidth.ADDRESS))

    @pytest.mark.parametrize("code", [0x38, 0xD8, 0xDA, 0xDC])
    def test_carry_conditions(self, table, code):
        """Every carry branch is classified as the carry condition."""
        assert table.lookup(code).kinds[0] == Condition(ConditionCode.CARRY)

    @pytest.mark.parametrize("code,condition", [
        (0x20, ConditionCode.NOT_ZERO),
        (0x28, ConditionCode.ZERO),
        (0x30, ConditionCode.NO_CARRY),
        (0xC0, ConditionCode.NOT_ZERO),
        (0xD2, ConditionCode.NO_CARRY),
        (0xC4, ConditionCode.NOT_ZERO),
    ])
    def test_other_conditions(self, table, code, condition):
        assert table.lookup(code).kinds[0] == Condition(condition)

    def test_c_register_elsewhere(self, table):
        """Opcodes outside the carry branches keep C as the register."""
        assert table.lookup(0x0E).kinds[0] == Register("C")
        assert table.lookup(0xE2).operands[0] == Operand(Register("C"), immediate=False)
        assert table.lookup(0xF2).operands[1] == Operand(Register("C"), immediate=False)
        assert table.lookup(0xD9, prefixed=True).kinds == (Bit(3), Register("C"))

    def test_register_operands_are_known_names(self, table):
        """Every register operand in the bundled table is an SM83 register."""
        used = {kind.name for record in table for kind in record.kinds if isinstance(kind, Register)}
        assert used <= REGISTER_NAMES
        assert {"A", "C", "HL", "SP", "AF"} <= used

    def test_no_carry_condition_in_prefixed_space(self, table):
        carry = Condition(ConditionCode.CARRY)
        assert all(carry not in record.kinds for record in table.prefixed.values())

    def test_carry_condition_only_in_ambiguous_codes(self, table):
        carry = Condition(ConditionCode.CARRY)
        codes = {r.code for r in table.unprefixed.values() if carry in r.kinds}
        assert codes == {0x38, 0xD8, 0xDA, 0xDC}

    @pytest.mark.parametrize("code", range(0xC7, 0x100, 8))
    def test_rst_vectors(self, table, code):
        assert table.lookup(code).kinds == (Interrupt(code - 0xC7),)

    def test_bit_operands(self, table):
        for code in range(0x40, 0x100):
            record = table.lookup(code, prefixed=True)
            assert record.kinds[0] == Bit((code >> 3) & 7)

    def test_sp_plus_e8(self, table):
        record = table.lookup(0xF8)
        assert record.operands[1] == Operand(Register("SP"), increment=True)
        assert record.kinds[2] == Literal(LiteralWidth.SIGNED8)

    def test_conditional_timings(self, table):
        conditional = [r.code for r in table if r.cycles.is_conditional]
        assert len(conditional) == 16
        assert table.lookup(0xC4).cycles == Cycles(12, 12)
        assert table.lookup(0xC0).cycles == Cycles(8, 12)
        assert table.lookup(0x20).cycles == Cycles(8, 4)

    def test_total_convention(self):
        total = CycleConvention.TAKEN_TOTAL
        table = sm83_table(BuildConfig(cycle_convention=total))
        assert table.lookup(0xCA).cycles == Cycles(12, 16, total)
        assert table.lookup(0xCA).cycles.taken == 16
        assert table.lookup(0xC4).cycles.taken == 24
        assert table.lookup(0x00).cycles == Cycles(4, 0, total)

    def test_byte_lengths_match_literals(self, table):
        """Every record's length is opcode bytes plus literal bytes."""
        for record in table:
            literal_bytes = sum(
                kind.width.size for kind in record.kinds if isinstance(kind, Literal)
            )
            header = 2 if record.prefixed else 1
            assert record.byte_length == header + literal_bytes, record
