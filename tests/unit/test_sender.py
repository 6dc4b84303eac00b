"""Tests for TransactionSender.send_request"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from solana.rpc.types import TxOpts

from tx_lander.config import SubmitConfig
from tx_lander.core.compute_budget import Dynamic, Fixed
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
from tx_lander.core.sender import TransactionSender


@pytest.fixture
def make_sender(mock_rpc_client, fee_payer, fast_config, reporter, fake_sleep):
    def _make(config=None, **kwargs):
        kwargs.setdefault("reporter", reporter)
        kwargs.setdefault("sleep", fake_sleep)
        return TransactionSender(
            mock_rpc_client, fee_payer=fee_payer, config=config or fast_config, **kwargs
        )
    return _make


@pytest.fixture
def ixs(fee_payer, make_instruction):
    return [make_instruction(fee_payer.pubkey())]


class TestScenarios:

    @pytest.mark.asyncio
    async def test_transport_always_fails(self, make_sender, mock_rpc_client, reporter, ixs):
        mock_rpc_client.send_transaction = AsyncMock(side_effect=ConnectionError("503"))
        sender = make_sender(SubmitConfig(gateway_retries=150, gateway_delay=0.3))

        with pytest.raises(MaxRetriesExceededError) as exc_info:
            await sender.send_request(ixs, Dynamic())

        assert mock_rpc_client.send_transaction.await_count == 151
        mock_rpc_client.get_signature_status.assert_not_awaited()
        assert exc_info.value.attempts == 151
        assert isinstance(exc_info.value.last_error, SubmitError)
        assert reporter.final == "ERROR: Max retries"

    @pytest.mark.asyncio
    async def test_first_attempt_finalized(self, make_sender, mock_rpc_client, reporter, ixs):
        sender = make_sender()

        signature = await sender.send_request(ixs, Fixed(200_000))

        assert mock_rpc_client.send_transaction.await_count == 1
        assert mock_rpc_client.get_signature_status.await_count == 1
        sent_tx = mock_rpc_client.send_transaction.await_args.args[0]
        assert signature == sent_tx.signatures[0]
        assert reporter.final == f"OK {signature}"

    @pytest.mark.asyncio
    async def test_skip_confirm(self, make_sender, mock_rpc_client, ixs):
        sender = make_sender()

        with pytest.raises(SkipConfirmPolicyError) as exc_info:
            await sender.send_request(ixs, Dynamic(), skip_confirm=True)

        assert mock_rpc_client.send_transaction.await_count == 1
        mock_rpc_client.get_signature_status.assert_not_awaited()
        sent_tx = mock_rpc_client.send_transaction.await_args.args[0]
        assert exc_info.value.signature == sent_tx.signatures[0]


class TestPreflight:

    @pytest.mark.asyncio
    async def test_insufficient_balance_sends_nothing(self, make_sender, mock_rpc_client, reporter, ixs):
        mock_rpc_client.get_balance = AsyncMock(return_value=5_000_000)
        sender = make_sender()

        with pytest.raises(InsufficientBalanceError):
            await sender.send_request(ixs)

        mock_rpc_client.get_latest_blockhash.assert_not_awaited()
        mock_rpc_client.send_transaction.assert_not_awaited()
        assert reporter.final.startswith("ERROR: Insufficient balance")

    @pytest.mark.asyncio
    async def test_fee_oracle_failure_sends_nothing(self, make_sender, mock_rpc_client, reporter, ixs):
        oracle = MagicMock()
        oracle.resolve_fee = AsyncMock(side_effect=FeeOracleError("down"))
        sender = make_sender(
            SubmitConfig(gateway_delay=0.0, dynamic_fee_url="https://fees.example"),
            oracle=oracle,
        )

        with pytest.raises(FeeOracleError):
            await sender.send_request(ixs)

        mock_rpc_client.send_transaction.assert_not_awaited()
        assert reporter.final == "ERROR: down"


class TestRetryLoop:

    @pytest.mark.asyncio
    async def test_on_chain_error_stops_immediately(self, make_sender, mock_rpc_client, statuses, reporter, ixs):
        mock_rpc_client.get_signature_status = AsyncMock(
            return_value=statuses.make(None, err="InstructionError(2, Custom(6001))")
        )
        sender = make_sender()

        with pytest.raises(OnChainError) as exc_info:
            await sender.send_request(ixs)

        assert exc_info.value.detail == "InstructionError(2, Custom(6001))"
        assert mock_rpc_client.send_transaction.await_count == 1
        assert reporter.final == "ERROR: InstructionError(2, Custom(6001))"

    @pytest.mark.asyncio
    async def test_processed_resubmits_same_transaction(
        self, make_sender, mock_rpc_client, statuses, fake_sleep, ixs
    ):
        mock_rpc_client.get_signature_status = AsyncMock(
            side_effect=[statuses.processed, None, statuses.confirmed]
        )
        sender = make_sender(SubmitConfig(gateway_delay=0.3))

        signature = await sender.send_request(ixs)

        assert mock_rpc_client.send_transaction.await_count == 3
        sent = [call.args[0] for call in mock_rpc_client.send_transaction.await_args_list]
        assert all(tx == sent[0] for tx in sent)
        assert signature == sent[0].signatures[0]
        # one blockhash fetch, the signed transaction is reused
        assert mock_rpc_client.get_latest_blockhash.await_count == 1
        assert [c.args[0] for c in fake_sleep.await_args_list].count(0.3) == 2

    @pytest.mark.asyncio
    async def test_transient_failures_then_success(self, make_sender, mock_rpc_client, ixs):
        sent = []

        async def flaky_send(tx, opts):
            sent.append(tx)
            if len(sent) < 3:
                raise ConnectionError("connection reset")
            return tx.signatures[0]

        mock_rpc_client.send_transaction = AsyncMock(side_effect=flaky_send)
        sender = make_sender()

        signature = await sender.send_request(ixs)

        assert len(sent) == 3
        assert signature == sent[0].signatures[0]

    @pytest.mark.asyncio
    async def test_status_query_errors_exhaust_budget(self, make_sender, mock_rpc_client, ixs):
        mock_rpc_client.get_signature_status = AsyncMock(side_effect=TimeoutError("slow"))
        sender = make_sender(SubmitConfig(gateway_retries=2, gateway_delay=0.0))

        with pytest.raises(MaxRetriesExceededError) as exc_info:
            await sender.send_request(ixs)

        assert mock_rpc_client.send_transaction.await_count == 3
        assert mock_rpc_client.get_signature_status.await_count == 3
        assert isinstance(exc_info.value.last_error, StatusQueryError)
        assert "slow" in str(exc_info.value.last_error)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("label", ["unknown", "processed"])
    async def test_unconfirmed_cycles_record_last_error(
        self, make_sender, mock_rpc_client, statuses, ixs, label
    ):
        status = statuses.processed if label == "processed" else None
        mock_rpc_client.get_signature_status = AsyncMock(return_value=status)
        sender = make_sender(SubmitConfig(gateway_retries=1, gateway_delay=0.0))

        with pytest.raises(MaxRetriesExceededError) as exc_info:
            await sender.send_request(ixs)

        last_error = exc_info.value.last_error
        assert isinstance(last_error, UnconfirmedError)
        assert last_error.status == label
        assert last_error.signature == mock_rpc_client.send_transaction.await_args.args[0].signatures[0]

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, make_sender, mock_rpc_client, ixs):
        mock_rpc_client.send_transaction = AsyncMock(side_effect=ConnectionError("down"))
        sender = make_sender(SubmitConfig(gateway_retries=0, gateway_delay=0.0))

        with pytest.raises(MaxRetriesExceededError):
            await sender.send_request(ixs)

        assert mock_rpc_client.send_transaction.await_count == 1


class TestTransportOptions:

    @pytest.mark.asyncio
    async def test_send_options(self, make_sender, mock_rpc_client, ixs):
        sender = make_sender()

        await sender.send_request(ixs)

        opts = mock_rpc_client.send_transaction.await_args.args[1]
        assert isinstance(opts, TxOpts)
        assert opts.skip_preflight is True
        assert opts.max_retries == 0
        assert opts.preflight_commitment == "confirmed"

    @pytest.mark.asyncio
    async def test_separate_authority_signs(
        self, make_sender, mock_rpc_client, authority, make_instruction
    ):
        sender = make_sender(authority=authority)

        await sender.send_request([make_instruction(authority.pubkey())])

        sent_tx = mock_rpc_client.send_transaction.await_args.args[0]
        assert len(sent_tx.signatures) == 2
        sent_tx.verify()

    @pytest.mark.asyncio
    async def test_progress_messages(self, make_sender, mock_rpc_client, reporter, statuses, ixs):
        mock_rpc_client.get_signature_status = AsyncMock(
            side_effect=[statuses.processed, statuses.finalized]
        )
        sender = make_sender(SubmitConfig(gateway_delay=0.0, priority_fee=900))

        await sender.send_request(ixs)

        assert reporter.messages[0] == (
            "Submitting transaction... (attempt 0 with static priority fee of 900)"
        )
        assert reporter.messages[1] == (
            "Submitting transaction... (attempt 1 with static priority fee of 900)"
        )
        assert reporter.final.startswith("OK ")

    @pytest.mark.asyncio
    async def test_broken_reporter_does_not_change_outcome(self, make_sender, mock_rpc_client, ixs):
        broken = MagicMock()
        broken.set_message.side_effect = RuntimeError("terminal closed")
        broken.finish_with_message.side_effect = RuntimeError("terminal closed")
        sender = make_sender(reporter=broken)

        signature = await sender.send_request(ixs)

        assert signature == mock_rpc_client.send_transaction.await_args.args[0].signatures[0]

    @pytest.mark.asyncio
    async def test_best_diff_is_accepted_and_unused(self, make_sender, mock_rpc_client, ixs):
        sender = make_sender()

        low = await sender.send_request(ixs, best_diff=1)
        high = await sender.send_request(ixs, best_diff=64)

        assert low == high
        assert mock_rpc_client.send_transaction.await_count == 2
