"""
Ambiguity Corrector
===================

The source description spells the carry condition of JR C, RET C, JP C and
CALL C as "C", the same text as the C register used by hundreds of other
opcodes. Classification alone cannot tell them apart, so the first operand
of those specific base-space opcodes is rewritten to the distinct "CY"
token before classifying.

The rewrite is deliberately narrow: only enumerated codes, only the first
operand, only when its name is exactly "C", and never in the CB-prefixed
space (where 0xD8-0xDC are SET 3,r). The code set belongs to the SM83
encoding; a different instruction set needs its own.
"""

from typing import AbstractSet, Sequence, Tuple
import logging

from sm83_optable.config import SM83_AMBIGUOUS_CODES
from sm83_optable.operands import CARRY_TOKEN, OperandDescriptor

logger = logging.getLogger(__name__)

AMBIGUOUS_TOKEN = "C"


def correct_operands(
    code: int,
    operands: Sequence[OperandDescriptor],
    prefixed: bool = False,
    codes: AbstractSet[int] = SM83_AMBIGUOUS_CODES,
) -> Tuple[OperandDescriptor, ...]:
    """
    Resolve the carry-condition/C-register collision for one opcode.

    Args:
        code: Opcode byte
        operands: Raw operand descriptors of the entry
        prefixed: True for the CB-prefixed space (never corrected)
        codes: Base-space codes whose first operand may be the carry condition

    Returns:
        A new tuple of descriptors; the input is never modified
    """
    result = tuple(operands)

    if prefixed or code not in codes or not result:
        return result

    first = result[0]
    if first.name != AMBIGUOUS_TOKEN:
        return result

    logger.debug(f"0x{code:02X}: operand '{first.name}' read as carry condition")
    return (first.renamed(CARRY_TOKEN),) + result[1:]
