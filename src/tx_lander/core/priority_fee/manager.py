from tx_lander.config import SubmitConfig
from tx_lander.core.client import SolanaClient
from tx_lander.core.compute_budget import ComputeBudget, resolve_compute_unit_limit
from tx_lander.core.priority_fee import FeeOracle
from tx_lander.core.priority_fee.dynamic_fee import DynamicPriorityFee
from tx_lander.core.priority_fee.fixed_fee import FixedPriorityFee
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class PriorityFeeManager:
    """Resolves the compute-unit limit and priority fee for a transaction."""

    def __init__(
        self,
        config: SubmitConfig,
        client: SolanaClient | None = None,
        oracle: FeeOracle | None = None,
    ):
        """
        Initialize the priority fee manager.

        Args:
            config: Submission config (fee sources, compute ceiling).
            client: Solana client, needed to build the default oracle.
            oracle: Dynamic fee oracle; built from config.dynamic_fee_url if omitted.
        """
        self.config = config
        self.fixed_fee_plugin = FixedPriorityFee(config.priority_fee or 0)

        if oracle is None and config.uses_dynamic_fee:
            if client is None:
                raise ValueError("A SolanaClient is required to use a dynamic fee URL")
            oracle = DynamicPriorityFee(
                client,
                config.dynamic_fee_url,
                strategy=config.dynamic_fee_strategy,
                max_fee=config.dynamic_fee_max,
                accounts=config.dynamic_fee_accounts,
            )
        self.oracle = oracle

        logger.info(
            f"PriorityFeeManager initialized: "
            f"dynamic={self.is_dynamic}, static={config.priority_fee or 0:,}, "
            f"strategy={config.dynamic_fee_strategy}, "
            f"max_cu={config.max_compute_units:,}"
        )

    @property
    def is_dynamic(self) -> bool:
        return self.oracle is not None and self.config.uses_dynamic_fee

    def compute_unit_limit(self, budget: ComputeBudget) -> int:
        return resolve_compute_unit_limit(budget, self.config.max_compute_units)

    async def calculate_priority_fee(self) -> int:
        """
        Resolve the priority fee in microlamports per compute unit.

        Not retried here: an oracle failure propagates to the caller.

        Raises:
            FeeOracleError: If the dynamic fee endpoint fails.
        """
        if self.is_dynamic:
            return await self.oracle.resolve_fee(self.config.dynamic_fee_strategy)
        return await self.fixed_fee_plugin.get_priority_fee()

    def describe(self, priority_fee: int) -> str:
        """Human-readable fee source, used in progress messages."""
        if self.is_dynamic:
            return (
                f"dynamic priority fee of {priority_fee} "
                f"via {self.config.dynamic_fee_strategy}"
            )
        return f"static priority fee of {priority_fee}"
