"""
Error types for chart computation.

OutOfRangeDate and InvalidBirthData are caller errors and surface directly.
LookupMiss is recovered where it is raised (missing meaning text).
InternalInvariantViolation means a static table is broken.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")


class ZiweiError(Exception):
    """Base class for all chart computation errors."""


class OutOfRangeDate(ZiweiError, ValueError):
    """Date falls outside the lunar table (lunar years 1900-2100)."""


class InvalidBirthData(ZiweiError, ValueError):
    """Month, day, hour or gender outside valid calendar bounds."""


class LookupMiss(ZiweiError, KeyError):
    """No meaning text for a (transformation, palace) pair."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class InternalInvariantViolation(ZiweiError, RuntimeError):
    """A static table lookup failed for structurally valid input."""


def table_lookup(table: Sequence[T], index: int, name: str) -> T:
    """
    Bounds-checked read from a constant table.

    Negative indices raise instead of wrapping around.
    """
    if not 0 <= index < len(table):
        raise InternalInvariantViolation(
            f"{name}: index {index} outside [0, {len(table) - 1}]"
        )
    return table[index]
