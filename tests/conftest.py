"""
Pytest fixtures for tx-lander tests
"""
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction_status import TransactionConfirmationStatus

from tx_lander.config import SubmitConfig
from tx_lander.core.client import SolanaClient


def make_status(confirmation_status=None, err=None):
    """Stand-in for solders TransactionStatus (only err/confirmation_status are read)."""
    return SimpleNamespace(err=err, confirmation_status=confirmation_status)


PROCESSED = make_status(TransactionConfirmationStatus.Processed)
CONFIRMED = make_status(TransactionConfirmationStatus.Confirmed)
FINALIZED = make_status(TransactionConfirmationStatus.Finalized)


class RecordingReporter:
    """Progress sink that keeps every message"""

    def __init__(self):
        self.messages = []
        self.final = None

    def set_message(self, message: str) -> None:
        self.messages.append(message)

    def finish_with_message(self, message: str) -> None:
        self.messages.append(message)
        self.final = message


@pytest.fixture
def fee_payer():
    return Keypair()


@pytest.fixture
def authority():
    return Keypair()


@pytest.fixture
def fast_config():
    """Default limits, no waiting"""
    return SubmitConfig(gateway_delay=0.0, confirm_delay=0.0)


@pytest.fixture
def mock_rpc_client():
    """Mock SolanaClient: funded payer, accepting node, finalized status"""
    client = MagicMock(spec=SolanaClient)
    client.get_balance = AsyncMock(return_value=1_000_000_000)  # 1 SOL
    client.get_latest_blockhash = AsyncMock(return_value=(Hash.new_unique(), 250_000_000))
    client.send_transaction = AsyncMock(side_effect=lambda tx, opts: tx.signatures[0])
    client.get_signature_status = AsyncMock(return_value=FINALIZED)
    client.post_rpc = AsyncMock()
    return client


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def make_instruction():
    """Factory: opaque instruction that requires `signer`"""
    def _make(signer: Pubkey, data: bytes = b"\x01") -> Instruction:
        return Instruction(
            Pubkey.new_unique(),
            data,
            [AccountMeta(signer, True, True)],
        )
    return _make


@pytest.fixture
def statuses():
    return SimpleNamespace(
        processed=PROCESSED,
        confirmed=CONFIRMED,
        finalized=FINALIZED,
        make=make_status,
    )
