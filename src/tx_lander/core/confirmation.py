"""
Signature status classification.

    UNKNOWN / PROCESSED      -> non-terminal, outer loop resubmits
    CONFIRMED / FINALIZED    -> success
    ON_CHAIN_ERROR           -> terminal failure, never retried
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus, TransactionStatus

from tx_lander.core.client import SolanaClient
from tx_lander.core.errors import StatusQueryError
from tx_lander.core.progress import SafeReporter
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class ConfirmationStatus(Enum):
    UNKNOWN = 'unknown'
    PROCESSED = 'processed'
    CONFIRMED = 'confirmed'
    FINALIZED = 'finalized'
    ON_CHAIN_ERROR = 'on_chain_error'


_SUCCESS = (ConfirmationStatus.CONFIRMED, ConfirmationStatus.FINALIZED)


@dataclass
class ConfirmResult:
    """Outcome of one confirmation cycle."""
    status: ConfirmationStatus
    signature: Signature
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in _SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == ConfirmationStatus.ON_CHAIN_ERROR

    @property
    def is_terminal(self) -> bool:
        return self.is_success or self.is_failure


def classify_status(status: TransactionStatus | None) -> tuple[ConfirmationStatus, Optional[str]]:
    """Map a raw signature status to (outcome, error detail)."""
    if status is None:
        return ConfirmationStatus.UNKNOWN, None
    if status.err is not None:
        return ConfirmationStatus.ON_CHAIN_ERROR, str(status.err)

    level = status.confirmation_status
    if level == TransactionConfirmationStatus.Finalized:
        return ConfirmationStatus.FINALIZED, None
    if level == TransactionConfirmationStatus.Confirmed:
        return ConfirmationStatus.CONFIRMED, None
    if level == TransactionConfirmationStatus.Processed:
        return ConfirmationStatus.PROCESSED, None
    return ConfirmationStatus.UNKNOWN, None


class ConfirmationPoller:
    """Bounded signature status polling."""

    def __init__(
        self,
        client: SolanaClient,
        reporter: SafeReporter,
        confirm_retries: int = 1,
        confirm_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.reporter = reporter
        self.confirm_retries = confirm_retries
        self.confirm_delay = confirm_delay
        self._sleep = sleep

    async def _query(self, signature: Signature) -> TransactionStatus | None:
        try:
            return await self.client.get_signature_status(signature)
        except Exception as e:
            raise StatusQueryError(str(e)) from e

    async def poll(self, signature: Signature) -> ConfirmResult:
        """
        Check the signature up to `confirm_retries` times.

        Returns a terminal result as soon as one is seen. Query errors,
        unknown and processed states are non-terminal; when the budget runs
        out the last non-terminal result is returned.
        """
        result = ConfirmResult(ConfirmationStatus.UNKNOWN, signature)

        for _ in range(self.confirm_retries):
            await self._sleep(self.confirm_delay)

            try:
                raw = await self._query(signature)
            except StatusQueryError as e:
                logger.warning(f"Status query failed for {signature}: {e}")
                self.reporter.set_message(f"ERROR: {e}")
                result = ConfirmResult(ConfirmationStatus.UNKNOWN, signature, str(e))
                continue

            status, detail = classify_status(raw)
            result = ConfirmResult(status, signature, detail)

            if result.is_failure:
                logger.error(f"Transaction {signature} failed on-chain: {detail}")
                return result
            if result.is_success:
                logger.info(f"Transaction {signature} {status.value}")
                return result

            logger.debug(f"Transaction {signature} not final yet: {status.value}")

        return result
