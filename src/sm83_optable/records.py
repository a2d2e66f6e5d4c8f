"""
Opcode Records
==============

One immutable record per opcode, built from one entry of the source
description:

    "0xCA": {
        "mnemonic": "JP",
        "bytes": 3,
        "cycles": [16, 12],
        "immediate": true,
        "operands": [
            {"name": "Z", "immediate": true},
            {"name": "a16", "bytes": 2, "immediate": true}
        ]
    }

becomes

    OpcodeRecord(code=0xCA, prefixed=False, mnemonic="JP", byte_length=3,
                 cycles=Cycles(12, 4), immediate=True,
                 operands=(Operand(Condition(ConditionCode.ZERO)),
                           Operand(Literal(LiteralWidth.ADDRESS))))

Cycle Costs
-----------
Cycle figures are T-states. Conditional instructions list two figures,
[taken, not_taken]; everything else lists one. See CycleConvention for
how the pair is stored. Missing or non-numeric figures count as 0.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple
import logging

from sm83_optable.config import BuildConfig, CycleConvention, DEFAULT_CONFIG
from sm83_optable.corrector import correct_operands
from sm83_optable.errors import OpcodeLocation, OpcodeTableError, UnknownMnemonicFormat
from sm83_optable.operands import OperandDescriptor, OperandKind, classify

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class Cycles:
    """
    Cycle cost of an instruction.

    The meaning of the second figure depends on the convention the
    record was built with:

        TAKEN_EXTRA  JP Z,a16 -> Cycles(12, 4)    12 not taken, 12+4 taken
        TAKEN_TOTAL  JP Z,a16 -> Cycles(12, 16)   12 not taken, 16 taken

    Use the taken and extra properties rather than reading the second
    figure directly.

    Attributes:
        base: Cost always paid (the not-taken cost of a conditional branch)
        branch_taken_extra: Taken extra (TAKEN_EXTRA) or taken total
                            (TAKEN_TOTAL); 0 for unconditional instructions
        convention: Convention the second figure follows
    """
    base: int = 0
    branch_taken_extra: int = 0
    convention: CycleConvention = CycleConvention.TAKEN_EXTRA

    @property
    def taken(self) -> int:
        """Total cost when the branch is taken."""
        if self.convention is CycleConvention.TAKEN_TOTAL:
            return self.branch_taken_extra or self.base
        return self.base + self.branch_taken_extra

    @property
    def extra(self) -> int:
        """Cost added on top of base when the branch is taken."""
        return self.taken - self.base

    @property
    def is_conditional(self) -> bool:
        return self.extra != 0

    def __str__(self) -> str:
        if self.is_conditional:
            return f"{self.base}+{self.extra}"
        return str(self.base)


@dataclass(frozen=True)
class Operand:
    """A classified operand of an opcode record."""
    kind: OperandKind
    immediate: bool = True
    increment: bool = False
    decrement: bool = False


@dataclass(frozen=True)
class OpcodeRecord:
    """
    A fully classified opcode.

    Attributes:
        code: Opcode byte, unique within its space
        prefixed: True for the CB-prefixed space
        mnemonic: Instruction mnemonic ("LD", "JP", "ILLEGAL_D3", ...)
        byte_length: Instruction length including prefix and opcode
        cycles: Normalized cycle cost
        immediate: False when any operand is accessed indirectly
        operands: Classified operands in source order
    """
    code: int
    prefixed: bool
    mnemonic: str
    byte_length: int
    cycles: Cycles
    immediate: bool
    operands: Tuple[Operand, ...] = ()

    @property
    def kinds(self) -> Tuple[OperandKind, ...]:
        return tuple(op.kind for op in self.operands)

    def __repr__(self) -> str:
        prefix = "CB " if self.prefixed else ""
        ops = ",".join(str(op.kind) for op in self.operands)
        return f"OpcodeRecord({prefix}${self.code:02X} {self.mnemonic} {ops}, cycles={self.cycles})"


# =============================================================================
# Cycle Normalization
# =============================================================================

def _cycle_figure(value: Any) -> Optional[int]:
    """Return a non-negative cycle count, or None when not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def normalize_cycles(
    figures: Any,
    convention: CycleConvention = CycleConvention.TAKEN_EXTRA,
) -> Cycles:
    """
    Normalize the source cycle figures into a Cycles pair.

    Args:
        figures: A number, a one- or two-element list, or anything else
        convention: How a two-figure cost is stored

    Returns:
        Cycles; a missing or non-numeric first figure yields base 0, a
        missing or non-numeric second figure (or one equal to the first)
        yields an unconditional cost. The pair may be given in either
        order: the smaller figure is always the not-taken cost.
    """
    if isinstance(figures, (list, tuple)):
        values = list(figures)
    elif figures is None:
        values = []
    else:
        values = [figures]

    first = _cycle_figure(values[0]) if len(values) > 0 else None
    second = _cycle_figure(values[1]) if len(values) > 1 else None

    if first is None:
        first = 0
    if second is None or second == first:
        return Cycles(first, 0, convention)

    # Listed order is [taken, not_taken]; the cheaper figure is the base
    # whichever way round the pair is given.
    taken, not_taken = max(first, second), min(first, second)
    if first < second:
        logger.debug(f"Cycle figures {[first, second]} listed not-taken first")

    if convention is CycleConvention.TAKEN_TOTAL:
        return Cycles(not_taken, taken, convention)
    return Cycles(not_taken, taken - not_taken, convention)


# =============================================================================
# Record Builder
# =============================================================================

def build_record(
    code: int,
    entry: Mapping[str, Any],
    prefixed: bool = False,
    config: Optional[BuildConfig] = None,
) -> OpcodeRecord:
    """
    Build one opcode record from a source description entry.

    Args:
        code: Opcode byte
        entry: The entry object (mnemonic, bytes, cycles, immediate, operands)
        prefixed: True for the CB-prefixed space
        config: Build configuration (defaults to DEFAULT_CONFIG)

    Returns:
        The immutable record

    Raises:
        UnknownMnemonicFormat: Missing mnemonic, byte length or operand name
        MalformedInterruptVector: Invalid RST vector operand
        BitIndexOutOfRange: Bit operand outside 0-7
    """
    config = config or DEFAULT_CONFIG
    location = OpcodeLocation(code, prefixed)

    if not isinstance(entry, Mapping):
        raise UnknownMnemonicFormat("entry is not an object", location=location)

    mnemonic = entry.get("mnemonic")
    if not isinstance(mnemonic, str) or not mnemonic:
        raise UnknownMnemonicFormat("missing mnemonic", location=location, field="mnemonic")

    byte_length = entry.get("bytes")
    if isinstance(byte_length, bool) or not isinstance(byte_length, int) or byte_length < 1:
        raise UnknownMnemonicFormat(
            f"missing or invalid byte length {byte_length!r}",
            location=location,
            field="bytes",
        )

    raw_operands = entry.get("operands") or []
    descriptors = []
    for index, raw in enumerate(raw_operands):
        try:
            descriptors.append(OperandDescriptor.from_dict(raw))
        except (KeyError, TypeError, AttributeError):
            raise UnknownMnemonicFormat(
                "operand without a name",
                location=location,
                field=f"operands[{index}].name",
            ) from None

    corrected = correct_operands(code, descriptors, prefixed, config.ambiguous_codes)

    operands = []
    for index, descriptor in enumerate(corrected):
        try:
            kind = classify(descriptor)
        except OpcodeTableError as e:
            raise e.at(location, f"operands[{index}].name")
        operands.append(Operand(kind, descriptor.immediate, descriptor.increment, descriptor.decrement))

    record = OpcodeRecord(
        code=code,
        prefixed=prefixed,
        mnemonic=mnemonic,
        byte_length=byte_length,
        cycles=normalize_cycles(entry.get("cycles"), config.cycle_convention),
        immediate=bool(entry.get("immediate", True)),
        operands=tuple(operands),
    )
    logger.debug(f"Built {record!r}")
    return record
