"""
Transaction sender - submit with bounded retries, then confirm.

Flow for one request:
1. BalanceGuard refuses to start if the fee payer is underfunded
2. PriorityFeeManager resolves the compute-unit limit and price
3. TransactionBuilder signs the transaction once
4. The loop submits it (preflight off, zero RPC-side retries) and polls
   its status; non-terminal outcomes resubmit the same transaction after
   `gateway_delay`, until `gateway_retries` is exhausted

Usage:
    sender = TransactionSender(client, fee_payer=payer, config=cfg)
    sig = await sender.send_request(instructions, Fixed(200_000))
"""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence

from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.signature import Signature

from tx_lander.config import SubmitConfig
from tx_lander.core.balance_guard import BalanceGuard
from tx_lander.core.client import SolanaClient
from tx_lander.core.compute_budget import ComputeBudget, Dynamic
from tx_lander.core.confirmation import ConfirmationPoller
from tx_lander.core.errors import (
    FeeOracleError,
    InsufficientBalanceError,
    MaxRetriesExceededError,
    OnChainError,
    SkipConfirmPolicyError,
    StatusQueryError,
    SubmitError,
    UnconfirmedError,
)
from tx_lander.core.priority_fee import FeeOracle
from tx_lander.core.priority_fee.manager import PriorityFeeManager
from tx_lander.core.progress import ProgressReporter, SafeReporter
from tx_lander.core.tx_builder import SignedTransaction, TransactionBuilder
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


class TransactionSender:
    """Lands one transaction per call; attempts are strictly sequential."""

    def __init__(
        self,
        client: SolanaClient,
        fee_payer: Keypair,
        authority: Optional[Keypair] = None,
        config: Optional[SubmitConfig] = None,
        reporter: Optional[ProgressReporter] = None,
        oracle: Optional[FeeOracle] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            client: Shared Solana client.
            fee_payer: Keypair paying fees.
            authority: Keypair authorizing the instructions, defaults to fee_payer.
            config: Retry/fee settings, defaults to SubmitConfig().
            reporter: Progress sink; failures in it are ignored.
            oracle: Dynamic fee oracle override.
            sleep: Backoff coroutine, replaceable for accelerated tests.
        """
        self.client = client
        self.config = config or SubmitConfig()
        self.fee_payer = fee_payer
        self.authority = authority or fee_payer
        self.reporter = SafeReporter(reporter)
        self._sleep = sleep

        self.balance_guard = BalanceGuard(client, self.config.min_sol_balance)
        self.fee_manager = PriorityFeeManager(self.config, client=client, oracle=oracle)
        self.builder = TransactionBuilder(client, self.config.commitment)
        self.poller = ConfirmationPoller(
            client,
            self.reporter,
            confirm_retries=self.config.confirm_retries,
            confirm_delay=self.config.confirm_delay,
            sleep=sleep,
        )

    def _send_opts(self) -> TxOpts:
        return TxOpts(
            skip_confirmation=True,
            skip_preflight=True,
            preflight_commitment=Commitment(self.config.commitment),
            max_retries=self.config.rpc_retries,
        )

    async def _submit(self, signed: SignedTransaction) -> Signature:
        try:
            return await self.client.send_transaction(signed.transaction, self._send_opts())
        except Exception as e:
            raise SubmitError(str(e)) from e

    async def send_request(
        self,
        instructions: Sequence[Instruction],
        compute_budget: ComputeBudget = Dynamic(),
        skip_confirm: bool = False,
        best_diff: Optional[int] = None,
    ) -> Signature:
        """
        Submit instructions and wait for a confirmed/finalized status.

        Args:
            instructions: Caller instructions, executed after the compute budget ones.
            compute_budget: Dynamic() or Fixed(limit).
            skip_confirm: Stop after the first accepted submission.
            best_diff: Caller-observed difficulty; recorded, not acted on.

        Returns:
            Signature of the confirmed transaction.

        Raises:
            InsufficientBalanceError: Fee payer underfunded, nothing was sent.
            FeeOracleError: Dynamic fee endpoint failed, nothing was sent.
            OnChainError: Transaction landed and failed.
            SkipConfirmPolicyError: Accepted, confirmation skipped by request.
            MaxRetriesExceededError: Attempt budget exhausted.
        """
        if best_diff is not None:
            logger.debug(f"send_request called with best_diff={best_diff}")

        try:
            await self.balance_guard.check(self.fee_payer.pubkey())
            priority_fee = await self.fee_manager.calculate_priority_fee()
        except (InsufficientBalanceError, FeeOracleError) as e:
            self.reporter.finish_with_message(f"ERROR: {e}")
            raise

        compute_unit_limit = self.fee_manager.compute_unit_limit(compute_budget)
        fee_label = self.fee_manager.describe(priority_fee)

        signed = await self.builder.build(
            instructions,
            compute_unit_limit,
            priority_fee,
            fee_payer=self.fee_payer,
            authority=self.authority,
        )
        logger.info(f"Prepared transaction {signed.signature}")

        attempts = 0
        last_error: Optional[Exception] = None

        while True:
            self.reporter.set_message(
                f"Submitting transaction... (attempt {attempts} with {fee_label})"
            )

            try:
                signature = await self._submit(signed)
            except SubmitError as e:
                last_error = e
                logger.warning(f"Submit attempt {attempts} failed: {e}")
                self.reporter.set_message(f"ERROR: {e}")
            else:
                if skip_confirm:
                    logger.info(f"Transaction {signature} accepted, confirmation skipped")
                    self.reporter.finish_with_message(
                        f"ERROR: confirmation skipped for {signature}"
                    )
                    raise SkipConfirmPolicyError(signature)

                result = await self.poller.poll(signature)
                if result.is_success:
                    self.reporter.finish_with_message(f"OK {signature}")
                    return signature
                if result.is_failure:
                    self.reporter.finish_with_message(f"ERROR: {result.error}")
                    raise OnChainError(signature, result.error)

                if result.error:
                    last_error = StatusQueryError(result.error)
                else:
                    last_error = UnconfirmedError(signature, result.status.value)
                logger.info(
                    f"Transaction {signature} still {result.status.value} "
                    f"after attempt {attempts}, resubmitting"
                )

            await self._sleep(self.config.gateway_delay)
            attempts += 1
            if attempts > self.config.gateway_retries:
                logger.error(f"Giving up after {attempts} attempts: {last_error}")
                self.reporter.finish_with_message("ERROR: Max retries")
                raise MaxRetriesExceededError(attempts, last_error)
