"""
SM83 Operand Classification
===========================

The source description names every operand with free text drawn from a
small, fixed vocabulary. This module turns that text into a closed set of
typed operand kinds so that decoders can match on them exhaustively
instead of re-parsing strings.

Operand Vocabulary
------------------
1. **Interrupt vectors**: '$' marker followed by hex (RST $38 -> '$38')
2. **Bit indices**: '0' to '7' (BIT/RES/SET)
3. **Conditions**: 'CY', 'NC', 'Z', 'NZ'
4. **Literals**: 'n8', 'n16', 'a8', 'a16', 'e8'
5. **Registers**: anything else, kept verbatim ('A', 'HL', 'SP', ...)

The carry condition appears in the raw description as 'C', colliding with
the C register. The ambiguity corrector (corrector.py) rewrites it to 'CY'
for the affected opcodes before classification.

Literal Widths
--------------
    n8   8-bit unsigned immediate data
    n16  16-bit unsigned immediate data (little-endian)
    a8   8-bit offset into the $FF00 I/O page (LDH)
    a16  16-bit address (little-endian)
    e8   signed 8-bit offset (JR target, SP adjustment)
"""

from dataclasses import dataclass
from enum import Enum
import string
from typing import Any, FrozenSet, Mapping, Union

from sm83_optable.errors import BitIndexOutOfRange, MalformedInterruptVector


# =============================================================================
# Vocabulary
# =============================================================================

INTERRUPT_MARKER = "$"
CARRY_TOKEN = "CY"


class ConditionCode(Enum):
    """Flag conditions tested by conditional JR, JP, CALL and RET."""
    CARRY = "CY"
    NO_CARRY = "NC"
    ZERO = "Z"
    NOT_ZERO = "NZ"

    def __str__(self) -> str:
        # Assembler syntax spells the carry condition "C"
        return "C" if self is ConditionCode.CARRY else self.value


class LiteralWidth(Enum):
    """Width and signedness of an operand read from the instruction stream."""
    DATA8 = "n8"
    DATA16 = "n16"
    ADDRESS_IO = "a8"
    ADDRESS = "a16"
    SIGNED8 = "e8"

    @property
    def size(self) -> int:
        """Number of instruction bytes this literal occupies."""
        return 2 if self in (LiteralWidth.DATA16, LiteralWidth.ADDRESS) else 1

    def __str__(self) -> str:
        return self.value


CONDITION_TOKENS: Mapping[str, ConditionCode] = {c.value: c for c in ConditionCode}
LITERAL_TOKENS: Mapping[str, LiteralWidth] = {w.value: w for w in LiteralWidth}
BIT_RANGE = range(8)

# Every register the SM83 operands name. classify() does not consult it.
REGISTER_NAMES: FrozenSet[str] = frozenset({
    "A", "B", "C", "D", "E", "F", "H", "L",
    "AF", "BC", "DE", "HL", "SP",
})


# =============================================================================
# Operand Descriptor
# =============================================================================

@dataclass(frozen=True)
class OperandDescriptor:
    """
    Raw operand as read from the source description.

    Attributes:
        name: Operand text ('A', 'n16', '$38', 'C', ...)
        immediate: False when the operand is used indirectly ([HL], [a16])
        increment: Post-increment marker ([HL+], SP+e8)
        decrement: Post-decrement marker ([HL-])
    """
    name: str
    immediate: bool = True
    increment: bool = False
    decrement: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OperandDescriptor":
        """
        Build a descriptor from one JSON operand object.

        Raises:
            KeyError: If 'name' is absent
            TypeError: If 'name' is not a string
        """
        name = data["name"]
        if not isinstance(name, str):
            raise TypeError(f"operand name must be a string, got {type(name).__name__}")
        return cls(
            name=name,
            immediate=bool(data.get("immediate", True)),
            increment=bool(data.get("increment", False)),
            decrement=bool(data.get("decrement", False)),
        )

    def renamed(self, name: str) -> "OperandDescriptor":
        """Return a copy of this descriptor with a different name."""
        return OperandDescriptor(name, self.immediate, self.increment, self.decrement)


# =============================================================================
# Operand Kinds
# =============================================================================

@dataclass(frozen=True)
class Register:
    """Named register or register pair; unknown names pass through."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Condition:
    """Flag condition of a conditional branch."""
    code: ConditionCode

    def __str__(self) -> str:
        return str(self.code)


@dataclass(frozen=True)
class Bit:
    """Bit index 0-7 of BIT, RES and SET."""
    index: int

    def __str__(self) -> str:
        return str(self.index)


@dataclass(frozen=True)
class Literal:
    """Value encoded in the bytes following the opcode."""
    width: LiteralWidth

    def __str__(self) -> str:
        return str(self.width)


@dataclass(frozen=True)
class Interrupt:
    """Fixed RST target address."""
    vector: int

    def __str__(self) -> str:
        return f"${self.vector:02X}"


OperandKind = Union[Register, Condition, Bit, Literal, Interrupt]


# =============================================================================
# Classifier
# =============================================================================

def classify(descriptor: OperandDescriptor) -> OperandKind:
    """
    Map an operand descriptor to its operand kind.

    Checks run in a fixed order, first match wins:
    interrupt marker, all-digit bit index, condition token, literal token,
    and finally the register fallback. Names outside the vocabulary are
    treated as register references, not errors.

    Args:
        descriptor: The (already corrected) operand descriptor

    Returns:
        The operand kind

    Raises:
        MalformedInterruptVector: '$' not followed by hexadecimal digits
        BitIndexOutOfRange: Numeric name outside 0-7
    """
    name = descriptor.name

    if name.startswith(INTERRUPT_MARKER):
        text = name[len(INTERRUPT_MARKER):]
        # int() alone would accept '0x', '_' and surrounding whitespace
        if not text or any(ch not in string.hexdigits for ch in text):
            raise MalformedInterruptVector(name)
        return Interrupt(int(text, 16))

    if name.isdigit() and name.isascii():
        index = int(name)
        if index not in BIT_RANGE:
            raise BitIndexOutOfRange(index)
        return Bit(index)

    if name in CONDITION_TOKENS:
        return Condition(CONDITION_TOKENS[name])

    if name in LITERAL_TOKENS:
        return Literal(LITERAL_TOKENS[name])

    return Register(name)


def operand_name(kind: OperandKind) -> str:
    """
    Spell an operand kind the way the source description does.

    This is the inverse of classify(): for every kind that classify()
    produces, classify(OperandDescriptor(operand_name(kind))) == kind.
    """
    if isinstance(kind, Register):
        return kind.name
    if isinstance(kind, Condition):
        return kind.code.value
    if isinstance(kind, Bit):
        return str(kind.index)
    if isinstance(kind, Literal):
        return kind.width.value
    if isinstance(kind, Interrupt):
        return f"{INTERRUPT_MARKER}{kind.vector:02X}"
    raise TypeError(f"not an operand kind: {kind!r}")
