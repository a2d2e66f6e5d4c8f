"""
Description Loader
==================

Reads an Opcodes.json-style description:

    {
        "unprefixed": {"0x00": {...}, "0x01": {...}, ...},
        "cbprefixed": {"0x00": {...}, ...}
    }

A plain json.load() keeps only the last of two identical keys, which
would hide duplicate opcode declarations from the table assembler. The
two opcode spaces are therefore returned as ordered lists of
(code key, entry) pairs with every declaration preserved.

Copyright (c) 2026 sm83-optable contributors
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union
import json
import logging

from sm83_optable.errors import DescriptionLoadError
from sm83_optable.table import PREFIXED_KEY, UNPREFIXED_KEY

logger = logging.getLogger(__name__)

SPACE_KEYS = (UNPREFIXED_KEY, PREFIXED_KEY)


class _PairedDict(dict):
    """dict that also remembers every (key, value) pair, duplicates included."""

    def __init__(self, pairs: List[Tuple[str, Any]]):
        super().__init__(pairs)
        self.pairs = pairs


def parse_description(text: str) -> Dict[str, Any]:
    """
    Decode a description from JSON text.

    Args:
        text: JSON document

    Returns:
        Description dict whose opcode spaces are lists of (key, entry) pairs

    Raises:
        DescriptionLoadError: Invalid JSON or no opcode spaces present
    """
    try:
        data = json.loads(text, object_pairs_hook=_PairedDict)
    except json.JSONDecodeError as e:
        raise DescriptionLoadError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DescriptionLoadError("description must be a JSON object")
    if not any(key in data for key in SPACE_KEYS):
        raise DescriptionLoadError(
            "description has no opcode spaces",
            hint=f"expected '{UNPREFIXED_KEY}' and/or '{PREFIXED_KEY}' members",
        )

    description: Dict[str, Any] = dict(data)
    for key in SPACE_KEYS:
        space = data.get(key)
        if space is None:
            continue
        if not isinstance(space, _PairedDict):
            raise DescriptionLoadError(f"'{key}' must be a JSON object")
        description[key] = list(space.pairs)
        logger.debug(f"Loaded {len(space.pairs)} {key} entries")

    return description


def load_description(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read and decode a description file.

    Raises:
        DescriptionLoadError: File unreadable or not a valid description
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DescriptionLoadError(f"cannot read {path}: {e}") from e

    logger.info(f"Loading opcode description from {path}")
    return parse_description(text)
