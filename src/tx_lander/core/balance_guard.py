"""
Pre-flight funds check for the fee payer.
"""

from solders.pubkey import Pubkey

from tx_lander.core.client import SolanaClient
from tx_lander.core.errors import InsufficientBalanceError
from tx_lander.utils.lamports import lamports_to_sol, sol_to_lamports
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class BalanceGuard:
    """Refuses to proceed when the fee payer cannot cover operating costs."""

    def __init__(self, client: SolanaClient, min_sol_balance: float = 0.005):
        self.client = client
        self.min_sol_balance = min_sol_balance
        self.min_lamports = sol_to_lamports(min_sol_balance)

    async def check(self, payer: Pubkey) -> None:
        """
        Raise if the payer balance is at or below the minimum.

        A failed balance query does not block submission; the guard is
        skipped and the loop proceeds as if funds were sufficient.

        Raises:
            InsufficientBalanceError: balance <= minimum threshold.
        """
        try:
            balance = await self.client.get_balance(payer)
        except Exception as e:
            logger.warning(f"Balance check skipped for {payer}: {e}")
            return

        if balance <= self.min_lamports:
            logger.error(
                f"Insufficient balance: {lamports_to_sol(balance)} SOL "
                f"(minimum {self.min_sol_balance} SOL) for {payer}"
            )
            raise InsufficientBalanceError(balance, self.min_lamports, self.min_sol_balance)

        logger.debug(f"Balance OK: {lamports_to_sol(balance)} SOL for {payer}")
