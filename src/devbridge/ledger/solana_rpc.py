"""Solana JSON-RPC ledger client over httpx."""

import asyncio
import base64
import itertools
import logging
from typing import Any, Optional

import httpx
from solders.hash import Hash, ParseHashError
from solders.pubkey import Pubkey

from devbridge.config import get_settings
from devbridge.ledger.base import (
    BlockReference,
    LedgerClient,
    LedgerRpcError,
    SendOptions,
    TransactionFailedError,
)

logger = logging.getLogger(__name__)

CONFIRMED_STATUSES = ("confirmed", "finalized")


class SolanaRpcClient(LedgerClient):
    """Ledger client for a single Solana RPC endpoint."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        commitment: Optional[str] = None,
        timeout: Optional[float] = None,
        confirmation_poll_interval: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            rpc_url: JSON-RPC endpoint (defaults to settings)
            commitment: Commitment level for reads and confirmation
            timeout: Per-request timeout in seconds
            confirmation_poll_interval: Seconds between status polls
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        settings = get_settings()
        self.rpc_url = rpc_url or settings.solana_rpc_url
        self.commitment = commitment or settings.commitment
        self.confirmation_poll_interval = (
            settings.confirmation_poll_interval
            if confirmation_poll_interval is None
            else confirmation_poll_interval
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.rpc_timeout
        )
        self._ids = itertools.count(1)

    async def _call(self, method: str, params: Optional[list] = None) -> Any:
        """Send a JSON-RPC request and return its ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise LedgerRpcError(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise LedgerRpcError(f"{method} returned invalid JSON: {e}") from e

        if "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                raise LedgerRpcError(
                    f"{method} error: {error.get('message', error)}",
                    code=error.get("code"),
                )
            raise LedgerRpcError(f"{method} error: {error}")

        if "result" not in data:
            raise LedgerRpcError(f"{method} returned no result")

        return data["result"]

    async def get_balance(self, account: Pubkey) -> int:
        result = await self._call(
            "getBalance", [str(account), {"commitment": self.commitment}]
        )
        try:
            return int(result["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerRpcError(f"getBalance returned malformed result: {result}") from e

    async def get_latest_blockhash(self) -> BlockReference:
        result = await self._call(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        try:
            value = result["value"]
            blockhash = str(Hash.from_string(value["blockhash"]))
            return BlockReference(
                blockhash=blockhash,
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (KeyError, TypeError, ValueError, ParseHashError) as e:
            raise LedgerRpcError(
                f"getLatestBlockhash returned malformed result: {result}"
            ) from e

    async def get_block_height(self) -> int:
        result = await self._call("getBlockHeight", [{"commitment": self.commitment}])
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise LedgerRpcError(f"getBlockHeight returned malformed result: {result}") from e

    async def send_transaction(self, raw_transaction: bytes, options: SendOptions) -> str:
        encoded = base64.b64encode(raw_transaction).decode()
        signature = await self._call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": options.skip_preflight,
                    "preflightCommitment": options.preflight_commitment,
                },
            ],
        )
        logger.info(f"Transaction broadcast via {self.rpc_url}: {signature}")
        return signature

    async def confirm_transaction(self, signature: str, reference: BlockReference) -> bool:
        """Poll signature status until confirmed or the blockhash expires.

        Raises:
            TransactionFailedError: If the transaction landed with an error
            LedgerRpcError: If a status query fails
        """
        while True:
            result = await self._call(
                "getSignatureStatuses",
                [[signature], {"searchTransactionHistory": False}],
            )
            status = self._first_status(result)

            if status is not None:
                if status.get("err") is not None:
                    raise TransactionFailedError(f"Transaction {signature} failed: {status['err']}")
                if status.get("confirmationStatus") in CONFIRMED_STATUSES:
                    logger.info(f"Transaction confirmed: {signature}")
                    return True

            block_height = await self.get_block_height()
            if block_height > reference.last_valid_block_height:
                logger.warning(
                    f"Blockhash expired at height {block_height} "
                    f"(last valid {reference.last_valid_block_height}): {signature}"
                )
                return False

            await asyncio.sleep(self.confirmation_poll_interval)

    @staticmethod
    def _first_status(result: Any) -> Optional[dict]:
        """Status of the single queried signature, None if not yet seen."""
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, list):
            raise LedgerRpcError(f"getSignatureStatuses returned malformed result: {result}")
        status = value[0] if value else None
        if status is not None and not isinstance(status, dict):
            raise LedgerRpcError(f"getSignatureStatuses returned malformed status: {status}")
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
