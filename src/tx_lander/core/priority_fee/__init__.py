"""Priority fee plugins and the fee policy built on them."""

from abc import ABC, abstractmethod
from typing import Protocol


class PriorityFeePlugin(ABC):
    """Base class for priority fee sources."""

    @abstractmethod
    async def get_priority_fee(self) -> int | None:
        """
        Return the priority fee in microlamports per compute unit.

        Returns:
            Optional[int]: Fee, or None if this source has no opinion.
        """
        pass


class FeeOracle(Protocol):
    """Call contract of a dynamic fee endpoint."""

    async def resolve_fee(self, strategy: str) -> int:
        """Return the price for `strategy`, raising FeeOracleError on failure."""
        ...
