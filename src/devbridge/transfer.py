"""Sweep transfer executor.

Flow:
1. Read the current balance and subtract the fee buffer
2. Fetch a fresh blockhash (never cached: blockhashes expire)
3. Build one system transfer to the fixed destination, account pays fees
4. Signer authorizes and submits; we only get the signature back
5. Await confirmation up to the blockhash's last valid block height

Nothing is retried. A ledger transfer is irreversible.
"""

import logging
from typing import Callable, Optional

from solders.hash import Hash, ParseHashError
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from devbridge.config import get_settings
from devbridge.eligibility import parse_address
from devbridge.errors import (
    BalanceQueryFailedError,
    BlockReferenceFetchFailedError,
    ConfirmationTimedOutError,
    InsufficientBalanceError,
    NoWalletError,
    SubmissionRejectedError,
    SweepDestinationError,
)
from devbridge.ledger.base import (
    BlockReference,
    LedgerClient,
    LedgerRpcError,
    SendOptions,
    SubmissionResult,
    TransactionFailedError,
)
from devbridge.signing.base import Signer

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_BUFFER_LAMPORTS = 50_000

SubmittedCallback = Callable[[str], None]


def amount_to_send(balance_lamports: int, safety_buffer_lamports: int) -> int:
    """Lamports left to sweep after the fee buffer, never negative."""
    return max(0, balance_lamports - safety_buffer_lamports)


def build_transfer_instruction(source: Pubkey, destination: Pubkey, lamports: int) -> Instruction:
    return transfer(TransferParams(from_pubkey=source, to_pubkey=destination, lamports=lamports))


def build_transfer_transaction(
    source: Pubkey,
    destination: Pubkey,
    lamports: int,
    reference: BlockReference,
) -> Transaction:
    """Unsigned single-instruction transfer, ``source`` as fee payer."""
    instruction = build_transfer_instruction(source, destination, lamports)
    message = Message.new_with_blockhash(
        [instruction], source, Hash.from_string(reference.blockhash)
    )
    return Transaction.new_unsigned(message)


class TransferExecutor:
    """Moves the account's balance, minus a buffer, to a fixed destination."""

    def __init__(
        self,
        client: LedgerClient,
        destination: Optional[str] = None,
        safety_buffer_lamports: Optional[int] = None,
        commitment: Optional[str] = None,
    ):
        """Initialize executor.

        Args:
            client: Ledger client
            destination: Sweep destination (defaults to settings.sweep_destination)
            safety_buffer_lamports: Lamports kept back for fees
            commitment: Preflight commitment for submission

        Raises:
            SweepDestinationError: If the destination is missing or malformed
        """
        settings = get_settings()
        raw_destination = destination or settings.sweep_destination
        parsed = parse_address(raw_destination)
        if parsed is None:
            raise SweepDestinationError(
                f"Sweep destination is missing or invalid: {raw_destination!r}"
            )

        self.client = client
        self.destination = parsed
        self.safety_buffer_lamports = (
            settings.safety_buffer_lamports
            if safety_buffer_lamports is None
            else safety_buffer_lamports
        )
        self.send_options = SendOptions(preflight_commitment=commitment or settings.commitment)

    async def execute(
        self,
        signer: Optional[Signer],
        on_submitted: Optional[SubmittedCallback] = None,
    ) -> SubmissionResult:
        """Sweep the signer's account.

        Args:
            signer: Connected wallet, None if disconnected
            on_submitted: Called with the signature right after submission

        Returns:
            Confirmed SubmissionResult

        Raises:
            TransferError: One subclass per failed step
        """
        if signer is None:
            raise NoWalletError()
        account = signer.public_key

        try:
            balance = await self.client.get_balance(account)
        except LedgerRpcError as e:
            logger.error(f"Balance query failed for {account}: {e}")
            raise BalanceQueryFailedError() from e

        lamports = amount_to_send(balance, self.safety_buffer_lamports)
        if lamports <= 0:
            logger.info(
                f"Nothing to sweep for {account}: {balance} lamports "
                f"<= buffer {self.safety_buffer_lamports}"
            )
            raise InsufficientBalanceError()

        try:
            reference = await self.client.get_latest_blockhash()
        except LedgerRpcError as e:
            logger.error(f"Blockhash fetch failed: {e}")
            raise BlockReferenceFetchFailedError() from e

        try:
            transaction = build_transfer_transaction(account, self.destination, lamports, reference)
        except (ParseHashError, ValueError) as e:
            logger.error(f"Malformed blockhash {reference.blockhash!r}: {e}")
            raise BlockReferenceFetchFailedError() from e

        logger.info(f"Sweeping {lamports} lamports from {account} to {self.destination}")

        try:
            signature = await signer.sign_and_send(transaction, self.client, self.send_options)
        except LedgerRpcError as e:
            logger.error(f"Submission rejected: {e}")
            raise SubmissionRejectedError(f"Transaction was rejected by the network: {e}") from e

        if on_submitted is not None:
            on_submitted(signature)

        try:
            confirmed = await self.client.confirm_transaction(signature, reference)
        except TransactionFailedError as e:
            logger.error(f"Transaction failed on-chain: {e}")
            raise SubmissionRejectedError(f"Transaction failed on-chain: {e}") from e
        except Exception as e:
            logger.error(f"Confirmation failed for {signature}: {e}")
            raise ConfirmationTimedOutError(SubmissionResult(signature, confirmed=False)) from e

        if not confirmed:
            raise ConfirmationTimedOutError(SubmissionResult(signature, confirmed=False))

        logger.info(f"Sweep confirmed: {signature}")
        return SubmissionResult(signature, confirmed=True)
