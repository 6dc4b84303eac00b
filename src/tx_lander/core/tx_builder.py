"""
Transaction assembly and signing.

Builds the final instruction list

    [set_compute_unit_limit, set_compute_unit_price, *caller_instructions]

fetches a fresh blockhash and signs with the authority (and the fee payer
when it is a different key). Nothing is sent from here.
"""

from dataclasses import dataclass
from typing import Sequence

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.transaction import Transaction

from tx_lander.core.client import SolanaClient
from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SignedTransaction:
    """A signed transaction and the blockhash window it is valid for."""
    transaction: Transaction
    blockhash: Hash
    last_valid_block_height: int

    @property
    def signature(self):
        return self.transaction.signatures[0]


def assemble_instructions(
    instructions: Sequence[Instruction], compute_unit_limit: int, priority_fee: int
) -> list[Instruction]:
    """Prepend compute budget instructions, keeping caller order."""
    return [
        set_compute_unit_limit(compute_unit_limit),
        set_compute_unit_price(priority_fee),
        *instructions,
    ]


class TransactionBuilder:
    """Builds signed transactions ready for transport."""

    def __init__(self, client: SolanaClient, commitment: str = "confirmed"):
        self.client = client
        self.commitment = commitment

    async def build(
        self,
        instructions: Sequence[Instruction],
        compute_unit_limit: int,
        priority_fee: int,
        fee_payer: Keypair,
        authority: Keypair,
    ) -> SignedTransaction:
        """
        Assemble and sign a transaction.

        The blockhash fetch is not retried; its errors propagate.

        Args:
            instructions: Caller instructions, in execution order.
            compute_unit_limit: Compute units to request.
            priority_fee: Microlamports per compute unit.
            fee_payer: Keypair paying network fees.
            authority: Keypair authorizing the instructions.

        Returns:
            SignedTransaction with one signature when authority is the fee
            payer, two otherwise.
        """
        final_instructions = assemble_instructions(
            instructions, compute_unit_limit, priority_fee
        )
        message = Message(final_instructions, fee_payer.pubkey())

        blockhash, last_valid_block_height = await self.client.get_latest_blockhash(
            self.commitment
        )

        if authority.pubkey() == fee_payer.pubkey():
            signers = [authority]
        else:
            signers = [authority, fee_payer]
        transaction = Transaction(signers, message, blockhash)

        logger.debug(
            f"Built tx {transaction.signatures[0]} with {len(final_instructions)} ixs, "
            f"cu_limit={compute_unit_limit:,}, cu_price={priority_fee:,}, "
            f"signers={len(signers)}"
        )
        return SignedTransaction(transaction, blockhash, last_valid_block_height)
