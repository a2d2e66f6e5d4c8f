"""
Instruction Table
=================

Assembles opcode records into the two SM83 opcode spaces:

- **unprefixed**: single-byte opcodes 0x00-0xFF
- **prefixed**: opcodes following the 0xCB prefix byte

Each space is keyed by opcode byte. Assembly validates that codes are
unique within a space and, by default, that the space covers the whole
0x00-0xFF domain. The finished table is read-only.

Usage:
    table = build_table(load_description("Opcodes.json"))
    record = table.lookup(0xCA)
    record.mnemonic          # 'JP'
    table.lookup(0x7C, prefixed=True).mnemonic   # 'BIT'
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union
import logging
import string

from sm83_optable.config import BuildConfig, CompletenessPolicy, DEFAULT_CONFIG
from sm83_optable.errors import (
    DuplicateOpcode,
    IncompleteOpcodeSpace,
    MalformedOpcodeCode,
    OpcodeLocation,
)
from sm83_optable.records import OpcodeRecord, build_record

logger = logging.getLogger(__name__)

UNPREFIXED_KEY = "unprefixed"
PREFIXED_KEY = "cbprefixed"
PREFIX_BYTE = 0xCB

EntrySource = Union[Mapping[Any, Any], Iterable[Tuple[Any, Any]]]


# =============================================================================
# Instruction Table
# =============================================================================

@dataclass(frozen=True)
class InstructionTable:
    """
    Read-only lookup of opcode records by (code, prefixed).

    Attributes:
        unprefixed: code -> record for the base opcode space
        prefixed: code -> record for the CB-prefixed space
    """
    unprefixed: Mapping[int, OpcodeRecord] = field(default_factory=lambda: MappingProxyType({}))
    prefixed: Mapping[int, OpcodeRecord] = field(default_factory=lambda: MappingProxyType({}))

    def space(self, prefixed: bool = False) -> Mapping[int, OpcodeRecord]:
        return self.prefixed if prefixed else self.unprefixed

    def lookup(self, code: int, prefixed: bool = False) -> Optional[OpcodeRecord]:
        """
        Look up the record for an opcode.

        Returns:
            The record, or None if the code has no entry
        """
        return self.space(prefixed).get(code)

    def __contains__(self, key: Tuple[int, bool]) -> bool:
        code, prefixed = key
        return code in self.space(prefixed)

    def __iter__(self) -> Iterator[OpcodeRecord]:
        """Iterate all records, base space first, in code order."""
        for prefixed in (False, True):
            space = self.space(prefixed)
            for code in sorted(space):
                yield space[code]

    def __len__(self) -> int:
        return len(self.unprefixed) + len(self.prefixed)


# =============================================================================
# Assembly
# =============================================================================

def parse_code(key: Any, prefixed: bool = False) -> int:
    """
    Parse an opcode key into a byte value.

    Keys are hexadecimal text ("0xDC", "dc", "0XDC"); integers are
    accepted as-is.

    Raises:
        MalformedOpcodeCode: If the key is not a byte in hexadecimal
    """
    if isinstance(key, bool):
        raise MalformedOpcodeCode(repr(key), prefixed)
    if isinstance(key, int):
        code = key
    elif isinstance(key, str):
        text = key.strip()
        digits = text[2:] if text[:2].lower() == "0x" else text
        if not digits or any(ch not in string.hexdigits for ch in digits):
            raise MalformedOpcodeCode(key, prefixed)
        code = int(digits, 16)
    else:
        raise MalformedOpcodeCode(repr(key), prefixed)

    if not 0 <= code <= 0xFF:
        raise MalformedOpcodeCode(str(key), prefixed)
    return code


def _entry_pairs(entries: EntrySource) -> Iterable[Tuple[Any, Any]]:
    if isinstance(entries, Mapping):
        return entries.items()
    return entries


def assemble_space(
    entries: EntrySource,
    prefixed: bool = False,
    config: Optional[BuildConfig] = None,
) -> Mapping[int, OpcodeRecord]:
    """
    Build the mapping for one opcode space.

    Args:
        entries: Mapping or iterable of (code key, entry) pairs. Pairs
                 keep duplicate keys visible; see loader.parse_description
        prefixed: True for the CB-prefixed space
        config: Build configuration (defaults to DEFAULT_CONFIG)

    Returns:
        Read-only mapping code -> OpcodeRecord

    Raises:
        DuplicateOpcode: Two entries declare the same code
        IncompleteOpcodeSpace: Codes missing under CompletenessPolicy.FAIL
        OpcodeTableError: Any record builder failure
    """
    config = config or DEFAULT_CONFIG
    records: Dict[int, OpcodeRecord] = {}
    keys: Dict[int, Any] = {}

    for key, entry in _entry_pairs(entries):
        code = parse_code(key, prefixed)
        if code in records:
            raise DuplicateOpcode(OpcodeLocation(code, prefixed), original_key=str(keys[code]))
        keys[code] = key
        records[code] = build_record(code, entry, prefixed, config)

    missing = [code for code in config.code_domain if code not in records]
    if missing:
        error = IncompleteOpcodeSpace(prefixed, missing)
        if config.completeness is CompletenessPolicy.FAIL:
            raise error
        logger.warning(str(error).splitlines()[0])

    space = PREFIXED_KEY if prefixed else UNPREFIXED_KEY
    logger.debug(f"Assembled {space}: {len(records)} records")
    return MappingProxyType(dict(sorted(records.items())))


def build_table(
    description: Mapping[str, EntrySource],
    config: Optional[BuildConfig] = None,
) -> InstructionTable:
    """
    Build both opcode spaces from a full description.

    Args:
        description: Object with 'unprefixed' and 'cbprefixed' members
                     ('prefixed' is accepted in place of 'cbprefixed')
        config: Build configuration (defaults to DEFAULT_CONFIG)

    Returns:
        The read-only InstructionTable
    """
    config = config or DEFAULT_CONFIG

    base_entries = description.get(UNPREFIXED_KEY) or ()
    if PREFIXED_KEY in description:
        cb_entries = description.get(PREFIXED_KEY) or ()
    else:
        cb_entries = description.get("prefixed") or ()

    table = InstructionTable(
        unprefixed=assemble_space(base_entries, prefixed=False, config=config),
        prefixed=assemble_space(cb_entries, prefixed=True, config=config),
    )
    logger.info(
        f"Built instruction table: {len(table.unprefixed)} unprefixed, "
        f"{len(table.prefixed)} prefixed opcodes"
    )
    return table
