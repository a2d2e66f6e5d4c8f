"""
SM83 Opcode Table Error Hierarchy
=================================

This module defines the exception hierarchy for the opcode table builder.
All exceptions inherit from OpcodeTableError, allowing callers to catch
every build failure with a single except clause if desired.

Exception Hierarchy
-------------------
OpcodeTableError (base)
├── MalformedInterruptVector - RST vector text is not valid hexadecimal
├── BitIndexOutOfRange - numeric operand outside 0-7
├── UnknownMnemonicFormat - entry missing its mnemonic or byte length
├── MalformedOpcodeCode - opcode key is not a byte in hexadecimal
├── DuplicateOpcode - same code declared twice in one opcode space
├── IncompleteOpcodeSpace - codes of the declared domain have no entry
└── DescriptionLoadError - description file cannot be read or decoded

Design Philosophy
-----------------
Every failure is a build-time failure: a table is either fully valid or
not produced at all. Each exception records which opcode (code and space)
and which field of the entry caused it, so messages read like:

    unprefixed 0xC7: operands[0].name: malformed interrupt vector '$G0'
    hint: vector must be hexadecimal after the '$' marker
"""

from dataclasses import dataclass
from typing import Iterable, Optional


# =============================================================================
# Opcode Location Tracking
# =============================================================================

@dataclass(frozen=True)
class OpcodeLocation:
    """
    Identifies one entry of the source description for error reporting.

    Attributes:
        code: The opcode byte (0x00-0xFF)
        prefixed: True for the CB-prefixed opcode space
    """
    code: int
    prefixed: bool = False

    @property
    def space(self) -> str:
        """Name of the opcode space as spelled in the source description."""
        return "cbprefixed" if self.prefixed else "unprefixed"

    def __str__(self) -> str:
        """Format as 'space 0xNN' for error messages."""
        return f"{self.space} 0x{self.code:02X}"


# =============================================================================
# Base Exception Class
# =============================================================================

class OpcodeTableError(Exception):
    """
    Base exception for all opcode table build errors.

        try:
            table = build_table(description)
        except OpcodeTableError as e:
            print(f"Error: {e}")

    Attributes:
        message: The error description
        location: Which opcode entry failed (optional)
        field: Which field of the entry failed (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[OpcodeLocation] = None,
        field: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.field = field
        self.hint = hint
        super().__init__(self._format_message())

    @property
    def code(self) -> Optional[int]:
        return self.location.code if self.location else None

    @property
    def prefixed(self) -> Optional[bool]:
        return self.location.prefixed if self.location else None

    def _format_message(self) -> str:
        parts = []
        if self.location is not None:
            parts.append(str(self.location))
        if self.field:
            parts.append(self.field)
        parts.append(self.message)

        text = ": ".join(parts)
        if self.hint:
            text += f"\nhint: {self.hint}"
        return text

    def at(self, location: OpcodeLocation, field: Optional[str] = None) -> "OpcodeTableError":
        """
        Attach this error to an opcode entry and return it.

        Classifier errors are raised without knowing which opcode they
        belong to; the record builder re-raises them with the location
        and field filled in.
        """
        self.location = location
        if field is not None:
            self.field = field
        self.args = (self._format_message(),)
        return self


# =============================================================================
# Operand Classification Errors
# =============================================================================

class MalformedInterruptVector(OpcodeTableError):
    """
    Interrupt operand whose vector is not hexadecimal.

    Operands starting with the '$' marker name a fixed RST vector
    (e.g. '$38'). The remainder must parse as hexadecimal; an empty or
    invalid remainder is never silently defaulted.
    """

    def __init__(
        self,
        name: str,
        location: Optional[OpcodeLocation] = None,
        field: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            f"malformed interrupt vector '{name}'",
            location=location,
            field=field,
            hint="vector must be hexadecimal after the '$' marker",
        )


class BitIndexOutOfRange(OpcodeTableError):
    """Numeric operand that is not a valid bit index (0-7)."""

    def __init__(
        self,
        index: int,
        location: Optional[OpcodeLocation] = None,
        field: Optional[str] = None,
    ):
        self.index = index
        super().__init__(
            f"bit index {index} out of range",
            location=location,
            field=field,
            hint="bit operands must be between 0 and 7",
        )


# =============================================================================
# Entry and Table Errors
# =============================================================================

class UnknownMnemonicFormat(OpcodeTableError):
    """
    Opcode entry missing a required field.

    Raised when an entry lacks a mnemonic, lacks a byte length (or has
    one below 1), or lists an operand without a name.
    """
    pass


class MalformedOpcodeCode(OpcodeTableError):
    """Opcode key that does not parse as a hexadecimal byte."""

    def __init__(self, text: str, prefixed: bool = False):
        self.text = text
        self.space_prefixed = prefixed
        space = "cbprefixed" if prefixed else "unprefixed"
        super().__init__(
            f"{space}: malformed opcode code {text!r}",
            hint="codes are hexadecimal text such as '0xDC'",
        )


class DuplicateOpcode(OpcodeTableError):
    """Same opcode code declared more than once within one opcode space."""

    def __init__(self, location: OpcodeLocation, original_key: Optional[str] = None):
        hint = None
        if original_key is not None:
            hint = f"first declared as '{original_key}'"
        super().__init__("duplicate opcode", location=location, field="code", hint=hint)


class IncompleteOpcodeSpace(OpcodeTableError):
    """
    Opcode space missing codes from its declared domain.

    Consumers such as a table-driven decoder assume every byte has a
    record. Instruction sets that leave codes undefined should either
    declare placeholder entries or build with CompletenessPolicy.WARN.

    Attributes:
        missing: Sorted tuple of codes with no record
    """

    def __init__(self, prefixed: bool, missing: Iterable[int]):
        self.missing = tuple(sorted(missing))
        self.space_prefixed = prefixed
        space = "cbprefixed" if prefixed else "unprefixed"

        shown = ", ".join(f"0x{code:02X}" for code in self.missing[:8])
        if len(self.missing) > 8:
            shown += f", ... ({len(self.missing) - 8} more)"

        super().__init__(
            f"{space}: {len(self.missing)} code(s) missing: {shown}",
            hint="declare ILLEGAL_xx placeholders or allow incomplete spaces",
        )


class DescriptionLoadError(OpcodeTableError):
    """Description file could not be read or is not valid JSON."""
    pass
