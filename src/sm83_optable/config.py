"""
Build Configuration
===================

Settings that change how a description is turned into a table. Values
come from:
- Default values (defined here)
- Keyword arguments / dataclasses.replace()
- Environment variables (BuildConfig.from_env)

Environment variables (all optional):
    SM83_OPTABLE_COMPLETENESS: "fail" or "warn"
    SM83_OPTABLE_CYCLES: "extra" or "total"

An unknown value raises ConfigError, a ValueError naming the variable.

Copyright (c) 2026 sm83-optable contributors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Type, TypeVar
import os


E = TypeVar("E", bound=Enum)


class ConfigError(ValueError):
    """An SM83_OPTABLE_* environment variable holds an unknown value."""

    def __init__(self, variable: str, value: str, choices: Type[Enum]):
        self.variable = variable
        self.value = value
        allowed = ", ".join(member.value for member in choices)
        super().__init__(f"{variable}={value!r} is not one of: {allowed}")


class CompletenessPolicy(Enum):
    """What to do when an opcode space has gaps in its code domain."""
    FAIL = "fail"   # raise IncompleteOpcodeSpace
    WARN = "warn"   # log a warning and build a partial table

    def __str__(self) -> str:
        return self.value


class CycleConvention(Enum):
    """
    How a two-figure cycle cost is stored.

    The source lists conditional instructions as [taken, not_taken]
    (JP Z,a16 is [16, 12]).

    Both conventions store the not-taken cost as the base. They differ in
    the second figure:

    TAKEN_EXTRA stores the extra paid when the branch is taken:
    [16, 12] -> (12, 4).

    TAKEN_TOTAL stores the total cost of the taken branch:
    [16, 12] -> (12, 16).
    """
    TAKEN_EXTRA = "extra"
    TAKEN_TOTAL = "total"

    def __str__(self) -> str:
        return self.value


# Conditional JR/RET/JP/CALL whose carry condition is spelled "C", the
# same name as the C register.
SM83_AMBIGUOUS_CODES: FrozenSet[int] = frozenset({0x38, 0xD8, 0xDA, 0xDC})

OPCODE_DOMAIN = range(0x100)


@dataclass(frozen=True)
class BuildConfig:
    """
    Configuration for building an instruction table.

    Attributes:
        completeness: Policy for codes of the domain with no entry
        cycle_convention: Storage convention for two-figure cycle costs
        ambiguous_codes: Base-space codes whose first operand "C" means carry
        code_domain: Codes every opcode space is expected to cover
    """

    completeness: CompletenessPolicy = CompletenessPolicy.FAIL
    cycle_convention: CycleConvention = CycleConvention.TAKEN_EXTRA
    ambiguous_codes: FrozenSet[int] = SM83_AMBIGUOUS_CODES
    code_domain: range = field(default=OPCODE_DOMAIN)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildConfig":
        """
        Create a BuildConfig from environment variables.

        Raises:
            ConfigError: If a variable holds an unknown value
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        if value := env.get("SM83_OPTABLE_COMPLETENESS"):
            kwargs["completeness"] = _parse_choice("SM83_OPTABLE_COMPLETENESS", value, CompletenessPolicy)
        if value := env.get("SM83_OPTABLE_CYCLES"):
            kwargs["cycle_convention"] = _parse_choice("SM83_OPTABLE_CYCLES", value, CycleConvention)

        return cls(**kwargs)


def _parse_choice(variable: str, value: str, choices: Type[E]) -> E:
    try:
        return choices(value.strip().lower())
    except ValueError as e:
        raise ConfigError(variable, value, choices) from e


DEFAULT_CONFIG = BuildConfig()
