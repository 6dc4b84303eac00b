import asyncio
import json
import statistics
from enum import Enum

import aiohttp

from tx_lander.core.client import SolanaClient
from tx_lander.core.errors import FeeOracleError
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class FeeStrategy(Enum):
    """Priority fee APIs, keyed by the provider that serves them."""
    HELIUS = "helius"        # getPriorityFeeEstimate, "high" level
    TRITON = "triton"        # getRecentPrioritizationFees with percentile option
    ALCHEMY = "alchemy"      # plain getRecentPrioritizationFees
    QUIKNODE = "quiknode"    # plain getRecentPrioritizationFees


class DynamicPriorityFee:
    """Dynamic priority fee oracle backed by a dedicated fee endpoint."""

    TRITON_PERCENTILE = 5000  # basis points, i.e. the median

    def __init__(
        self,
        client: SolanaClient,
        fee_url: str,
        strategy: FeeStrategy | str = FeeStrategy.HELIUS,
        max_fee: int | None = None,
        accounts: list[str] | None = None,
    ):
        """
        Initialize the dynamic fee oracle.

        Args:
            client: Solana client used for raw JSON-RPC calls.
            fee_url: Endpoint serving the priority fee API.
            strategy: Which API flavour the endpoint speaks.
            max_fee: Optional cap in microlamports.
            accounts: Writable accounts to scope the estimate to.
        """
        self.client = client
        self.fee_url = fee_url
        self.strategy = self._parse_strategy(strategy)
        self.max_fee = max_fee
        self.accounts = accounts or []

    @staticmethod
    def _parse_strategy(strategy: FeeStrategy | str) -> FeeStrategy:
        if isinstance(strategy, FeeStrategy):
            return strategy
        try:
            return FeeStrategy(strategy.lower())
        except ValueError as e:
            raise FeeOracleError(f"Unknown dynamic fee strategy: {strategy}") from e

    async def resolve_fee(self, strategy: FeeStrategy | str) -> int:
        """
        Fetch the priority fee for `strategy`.

        Raises:
            FeeOracleError: On HTTP, JSON-RPC or empty-sample failures.
        """
        strategy = self._parse_strategy(strategy)
        body = self._build_request(strategy)

        try:
            response = await self.client.post_rpc(body, endpoint=self.fee_url)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise FeeOracleError(f"Priority fee request failed: {e}") from e

        if not isinstance(response, dict):
            raise FeeOracleError(f"Unexpected priority fee response: {response!r}")
        if "error" in response:
            raise FeeOracleError(f"Priority fee RPC error: {response['error']}")

        fee = self._parse_response(strategy, response.get("result"))
        if self.max_fee is not None and fee > self.max_fee:
            logger.warning(f"Dynamic fee {fee:,} exceeds cap {self.max_fee:,}, capping")
            fee = self.max_fee

        logger.info(f"Dynamic priority fee: {fee:,} µL (strategy={strategy.value})")
        return fee

    def _build_request(self, strategy: FeeStrategy) -> dict:
        if strategy == FeeStrategy.HELIUS:
            params = {"options": {"includeAllPriorityFeeLevels": True}}
            if self.accounts:
                params["accountKeys"] = self.accounts
            return {
                "jsonrpc": "2.0",
                "id": "priority-fee-estimate",
                "method": "getPriorityFeeEstimate",
                "params": [params],
            }

        params = [self.accounts]
        if strategy == FeeStrategy.TRITON:
            params.append({"percentile": self.TRITON_PERCENTILE})
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getRecentPrioritizationFees",
            "params": params,
        }

    def _parse_response(self, strategy: FeeStrategy, result) -> int:
        if result is None:
            raise FeeOracleError("Priority fee response has no result")

        if strategy == FeeStrategy.HELIUS:
            try:
                return int(result["priorityFeeLevels"]["high"])
            except (KeyError, TypeError, ValueError) as e:
                raise FeeOracleError(f"Malformed priority fee estimate: {result}") from e

        try:
            fees = [
                fee["prioritizationFee"]
                for fee in result
                if fee.get("prioritizationFee", 0) > 0
            ]
        except (AttributeError, TypeError) as e:
            raise FeeOracleError(f"Malformed prioritization fees: {result}") from e
        if not fees:
            raise FeeOracleError("No recent prioritization fee samples")
        return int(statistics.median(fees))
