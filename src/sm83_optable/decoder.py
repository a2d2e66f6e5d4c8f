"""
SM83 Decoder
============

Decodes SM83 machine code using a built InstructionTable. This is the
table's main consumer: every opcode byte is resolved through
table.lookup(code, prefixed) and its classified operands drive the
formatting, so no instruction knowledge lives here.

Architecture:
    - 8-bit data bus, 16-bit address bus
    - Little-endian immediates (low byte first)
    - 0xCB prefix selects the second opcode space

Operand syntax follows rgbds:
    LD [HL+], A        indirect with post-increment
    LDH [$FF44], A     a8 is an offset into the $FF00 page
    JR NZ, $0150       e8 shown as the branch target
    LD HL, SP+5        SP plus signed offset

Usage:
    decoder = SM83Decoder(sm83_table())
    for instr in decoder.decode(rom_bytes, start_address=0x0100, count=4):
        print(instr)

Copyright (c) 2026 sm83-optable contributors
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from sm83_optable.operands import Literal, LiteralWidth, Register
from sm83_optable.records import OpcodeRecord
from sm83_optable.table import InstructionTable, PREFIX_BYTE

logger = logging.getLogger(__name__)

IO_PAGE = 0xFF00
RELATIVE_MNEMONICS = frozenset({"JR"})


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DecodedInstruction:
    """
    A single decoded SM83 instruction.

    Attributes:
        address: Memory address of the first byte
        opcode: Opcode byte (the byte after 0xCB for prefixed opcodes)
        prefixed: True for CB-prefixed opcodes
        mnemonic: Instruction mnemonic
        operand_str: Formatted operands
        size: Number of bytes consumed
        raw_bytes: All bytes of the instruction
        record: Table record, None for unknown opcodes
        comment: Optional annotation (branch displacement, errors)
    """
    address: int
    opcode: int
    prefixed: bool
    mnemonic: str
    operand_str: str
    size: int
    raw_bytes: bytes
    record: Optional[OpcodeRecord] = None
    comment: str = ""

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: BYTES  MNEMONIC OPERANDS"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(8)
        asm = f"{self.mnemonic} {self.operand_str}" if self.operand_str else self.mnemonic

        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {asm:<20} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {asm}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "prefixed": self.prefixed,
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "cycles": str(self.record.cycles) if self.record else None,
            "comment": self.comment,
        }


# =============================================================================
# SM83 Decoder
# =============================================================================

class SM83Decoder:
    """
    Table-driven decoder for SM83 machine code.

    Attributes:
        table: The instruction table opcodes are resolved against
    """

    def __init__(self, table: InstructionTable):
        self.table = table

    def decode_one(self, data: bytes, address: int = 0, offset: int = 0) -> DecodedInstruction:
        """
        Decode a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data where the instruction starts

        Returns:
            DecodedInstruction; unknown opcodes decode as one-byte .BYTE
            and truncated instructions consume the remaining bytes

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        prefixed = False
        header = 1

        if opcode == PREFIX_BYTE and self.table.prefixed:
            if offset + 1 >= len(data):
                return self._truncated(data, address, offset, opcode, False, "PREFIX")
            opcode = data[offset + 1]
            prefixed = True
            header = 2

        record = self.table.lookup(opcode, prefixed)
        if record is None:
            logger.debug(f"No record for opcode ${opcode:02X} at ${address:04X}")
            return self._unknown(data[offset], address)

        size = max(record.byte_length, header)
        if offset + size > len(data):
            return self._truncated(data, address, offset, opcode, prefixed, record.mnemonic, record)

        raw_bytes = bytes(data[offset:offset + size])
        operand_str, comment = self._format_operands(record, raw_bytes[header:], address)

        return DecodedInstruction(
            address=address,
            opcode=opcode,
            prefixed=prefixed,
            mnemonic=record.mnemonic,
            operand_str=operand_str,
            size=size,
            raw_bytes=raw_bytes,
            record=record,
            comment=comment,
        )

    def decode(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> List[DecodedInstruction]:
        """
        Decode consecutive instructions.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of the first byte
            count: Maximum number of instructions (None = all)
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break

            instr = self.decode_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def decode_to_text(self, data: bytes, start_address: int = 0, count: Optional[int] = None) -> str:
        """Decode and return a multi-line listing."""
        return "\n".join(str(instr) for instr in self.decode(data, start_address, count))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _unknown(opcode: int, address: int) -> DecodedInstruction:
        return DecodedInstruction(
            address=address,
            opcode=opcode,
            prefixed=False,
            mnemonic=".BYTE",
            operand_str=f"${opcode:02X}",
            size=1,
            raw_bytes=bytes([opcode]),
            comment="unknown opcode",
        )

    @staticmethod
    def _truncated(
        data: bytes,
        address: int,
        offset: int,
        opcode: int,
        prefixed: bool,
        mnemonic: str,
        record: Optional[OpcodeRecord] = None,
    ) -> DecodedInstruction:
        partial = bytes(data[offset:])
        return DecodedInstruction(
            address=address,
            opcode=opcode,
            prefixed=prefixed,
            mnemonic=mnemonic,
            operand_str="???",
            size=len(partial),
            raw_bytes=partial,
            record=record,
            comment="incomplete instruction",
        )

    def _format_operands(
        self,
        record: OpcodeRecord,
        operand_bytes: bytes,
        address: int,
    ) -> Tuple[str, str]:
        """
        Render the record's operands, consuming literal bytes in order.

        Returns:
            Tuple of (operand_string, comment_string)
        """
        parts: List[str] = []
        comment = ""
        position = 0
        operands = record.operands
        index = 0

        while index < len(operands):
            operand = operands[index]
            kind = operand.kind

            if isinstance(kind, Literal):
                value = _read_literal(kind.width, operand_bytes, position)
                position += kind.width.size
                text, note = self._format_literal(record, kind.width, value, address)
                comment = comment or note
            elif isinstance(kind, Register):
                text = kind.name
                if operand.increment:
                    text += "+"
                elif operand.decrement:
                    text += "-"
                # SP+e8: fold the offset into the register operand
                if operand.increment and operand.immediate and index + 1 < len(operands):
                    following = operands[index + 1].kind
                    if isinstance(following, Literal) and following.width is LiteralWidth.SIGNED8:
                        offset = _signed(_read_literal(following.width, operand_bytes, position))
                        position += 1
                        text = f"{kind.name}{offset:+d}"
                        index += 1
            else:
                text = str(kind)

            parts.append(text if operand.immediate else f"[{text}]")
            index += 1

        return ", ".join(parts), comment

    @staticmethod
    def _format_literal(
        record: OpcodeRecord,
        width: LiteralWidth,
        value: int,
        address: int,
    ) -> Tuple[str, str]:
        if width is LiteralWidth.DATA8:
            return f"${value:02X}", ""
        if width in (LiteralWidth.DATA16, LiteralWidth.ADDRESS):
            return f"${value:04X}", ""
        if width is LiteralWidth.ADDRESS_IO:
            return f"${IO_PAGE + value:04X}", ""

        disp = _signed(value)
        if record.mnemonic in RELATIVE_MNEMONICS:
            target = (address + record.byte_length + disp) & 0xFFFF
            return f"${target:04X}", f"{disp:+d}"
        return f"{disp:+d}", ""


def _read_literal(width: LiteralWidth, operand_bytes: bytes, position: int) -> int:
    """Read a little-endian literal; missing bytes read as zero."""
    chunk = operand_bytes[position:position + width.size]
    return int.from_bytes(bytes(chunk).ljust(width.size, b"\x00"), "little")


def _signed(value: int) -> int:
    return value - 0x100 if value >= 0x80 else value
