"""
SM83 Optable Command-Line Interface
===================================

This package provides command-line tools:

- **smtable**: build, validate and report on opcode tables
- **smdisasm**: table-driven SM83 disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["smtable", "smdisasm"]
