"""tx-lander - land Solana transactions over a flaky RPC channel."""

from tx_lander.config import SubmitConfig, load_config
from tx_lander.core.client import SolanaClient
from tx_lander.core.compute_budget import ComputeBudget, Dynamic, Fixed
from tx_lander.core.confirmation import ConfirmationStatus, ConfirmResult
from tx_lander.core.errors import (
    ConfigError,
    FeeOracleError,
    InsufficientBalanceError,
    MaxRetriesExceededError,
    OnChainError,
    SkipConfirmPolicyError,
    StatusQueryError,
    SubmitError,
    TxLanderError,
    UnconfirmedError,
)
from tx_lander.core.progress import LoggingProgressReporter, ProgressReporter
from tx_lander.core.sender import TransactionSender

__version__ = "0.1.0"

__all__ = [
    # Config
    "SubmitConfig",
    "load_config",
    # Sending
    "SolanaClient",
    "TransactionSender",
    "ComputeBudget",
    "Dynamic",
    "Fixed",
    "ConfirmationStatus",
    "ConfirmResult",
    "ProgressReporter",
    "LoggingProgressReporter",
    # Errors
    "TxLanderError",
    "ConfigError",
    "FeeOracleError",
    "InsufficientBalanceError",
    "SubmitError",
    "StatusQueryError",
    "OnChainError",
    "SkipConfirmPolicyError",
    "MaxRetriesExceededError",
    "UnconfirmedError",
]
