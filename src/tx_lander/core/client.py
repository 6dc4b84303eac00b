"""
Solana client abstraction for the submit/confirm protocol.

Thin, shared, read-mostly wrapper around solana-py's AsyncClient plus a raw
JSON-RPC helper for methods solana-py does not wrap (priority fee APIs).
"""

import json
from typing import Any

import aiohttp
from solana.rpc.async_api import AsyncClient
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionStatus

from tx_lander.utils.logger import get_logger

logger = get_logger(__name__)

RPC_TIMEOUT = 10  # seconds


class SolanaClient:
    """Abstraction for Solana RPC client operations."""

    def __init__(self, rpc_endpoint: str, commitment: str = "confirmed"):
        """Initialize Solana client with RPC endpoint.

        Args:
            rpc_endpoint: URL of the Solana RPC endpoint
            commitment: Default commitment used for blockhash fetches
        """
        self.rpc_endpoint = rpc_endpoint
        self.commitment = commitment
        self._client = None

    async def get_client(self) -> AsyncClient:
        """Get or create the AsyncClient instance."""
        if self._client is None:
            self._client = AsyncClient(self.rpc_endpoint, commitment=self.commitment)
        return self._client

    async def close(self):
        """Close the client connection."""
        if self._client:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> "SolanaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_balance(self, pubkey: Pubkey) -> int:
        """Get account balance in lamports."""
        client = await self.get_client()
        response = await client.get_balance(pubkey)
        return response.value

    async def get_latest_blockhash(self, commitment: str | None = None) -> tuple[Hash, int]:
        """Get the latest blockhash.

        Args:
            commitment: Commitment level, defaults to the client's own

        Returns:
            (blockhash, last_valid_block_height)
        """
        client = await self.get_client()
        response = await client.get_latest_blockhash(
            commitment=commitment or self.commitment
        )
        return response.value.blockhash, response.value.last_valid_block_height

    async def send_transaction(self, transaction: Transaction, opts: TxOpts) -> Signature:
        """Submit a signed transaction. Returns the signature the node accepted."""
        client = await self.get_client()
        response = await client.send_transaction(transaction, opts=opts)
        return response.value

    async def get_signature_status(self, signature: Signature) -> TransactionStatus | None:
        """Get status for one signature, None if the node has not seen it."""
        client = await self.get_client()
        response = await client.get_signature_statuses([signature])
        if not response.value:
            return None
        return response.value[0]

    async def post_rpc(
        self, body: dict[str, Any], endpoint: str | None = None
    ) -> dict[str, Any]:
        """
        Send a raw JSON-RPC request.

        Args:
            body: JSON-RPC request body.
            endpoint: Override URL (e.g. a dedicated priority fee endpoint).

        Returns:
            Parsed JSON response.

        Raises:
            aiohttp.ClientError: On HTTP failure.
            json.JSONDecodeError: On a non-JSON body.
        """
        url = endpoint or self.rpc_endpoint
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                json=body,
                timeout=aiohttp.ClientTimeout(RPC_TIMEOUT),
            ) as response:
                response.raise_for_status()
                text = await response.text()
                return json.loads(text)
