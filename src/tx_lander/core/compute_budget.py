"""
Compute budget selection.

ComputeBudget is a tagged union of two frozen dataclasses:

    Dynamic()      -> always the configured ceiling (no simulation)
    Fixed(limit)   -> exactly `limit` compute units
"""

from dataclasses import dataclass
from typing import Union

MAX_COMPUTE_UNITS = 1_400_000
U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class Dynamic:
    """Use the compute-unit ceiling."""
    pass


@dataclass(frozen=True)
class Fixed:
    """Use an explicit compute-unit limit."""
    limit: int

    def __post_init__(self):
        if not 0 <= self.limit <= U32_MAX:
            raise ValueError(f"Compute unit limit must fit in u32, got {self.limit}")


ComputeBudget = Union[Dynamic, Fixed]


def resolve_compute_unit_limit(
    budget: ComputeBudget, max_units: int = MAX_COMPUTE_UNITS
) -> int:
    """Resolve a compute budget selector to a unit count."""
    if isinstance(budget, Fixed):
        return budget.limit
    if isinstance(budget, Dynamic):
        # Not measured: the ceiling is returned regardless of instructions
        return max_units
    raise TypeError(f"Unknown compute budget: {budget!r}")
