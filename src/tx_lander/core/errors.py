"""
Error taxonomy for the submit/confirm protocol.

Only OnChainError and the policy sentinels stop the retry loop early;
SubmitError and StatusQueryError are absorbed and retried.
"""

from typing import Optional

from solders.signature import Signature

from tx_lander.utils.lamports import lamports_to_sol


class TxLanderError(Exception):
    """Base class for all tx-lander errors."""
    pass


class ConfigError(TxLanderError):
    """Invalid or missing configuration."""
    pass


class InsufficientBalanceError(TxLanderError):
    """Fee payer is at or below the minimum operating balance."""

    def __init__(self, balance_lamports: int, minimum_lamports: int, min_sol: float):
        self.balance_lamports = balance_lamports
        self.minimum_lamports = minimum_lamports
        self.min_sol = min_sol
        super().__init__(
            f"Insufficient balance: {lamports_to_sol(balance_lamports)} SOL. "
            f"Please top up with at least {min_sol} SOL"
        )


class FeeOracleError(TxLanderError):
    """Dynamic priority fee could not be resolved."""
    pass


class SubmitError(TxLanderError):
    """Transport rejected or failed to deliver the transaction."""
    pass


class StatusQueryError(TxLanderError):
    """Signature status query failed."""
    pass


class OnChainError(TxLanderError):
    """Transaction landed and failed on-chain. Never retried."""

    def __init__(self, signature: Signature, detail: str):
        self.signature = signature
        self.detail = detail
        super().__init__(detail)


class SkipConfirmPolicyError(TxLanderError):
    """Transaction was accepted but confirmation was skipped by caller policy."""

    def __init__(self, signature: Signature):
        self.signature = signature
        super().__init__(f"Confirmation skipped by policy for {signature}")


class MaxRetriesExceededError(TxLanderError):
    """Attempt budget exhausted without a terminal outcome."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__("Max retries")


class UnconfirmedError(TxLanderError):
    """Accepted, but no terminal status within the check budget. Retried."""

    def __init__(self, signature: Signature, status: str):
        self.signature = signature
        self.status = status
        super().__init__(f"Transaction {signature} still {status}")
