"""Keypair-backed signer (hot wallet, key held in memory).

Supports three key sources:
- raw 32-byte ed25519 seed
- base58 encoded 64-byte secret (Phantom/Solflare export format)
- BIP39 seed phrase, derived at m/44'/501'/index'/0'
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from devbridge.errors import SigningDeclinedError
from devbridge.ledger.base import LedgerClient, SendOptions
from devbridge.signing.base import Signer

logger = logging.getLogger(__name__)

ApprovalHook = Callable[[Transaction], Union[bool, Awaitable[bool]]]


class KeypairSigner(Signer):
    """Signs with an in-memory solders ``Keypair``.

    An optional approval hook stands in for the wallet confirmation prompt:
    returning False declines the transaction.
    """

    def __init__(self, keypair: Keypair, approve: Optional[ApprovalHook] = None):
        self._keypair = keypair
        self._approve = approve

    @classmethod
    def from_seed(cls, seed: bytes, approve: Optional[ApprovalHook] = None) -> "KeypairSigner":
        return cls(Keypair.from_seed(seed[:32]), approve)

    @classmethod
    def from_base58(cls, secret: str, approve: Optional[ApprovalHook] = None) -> "KeypairSigner":
        return cls(Keypair.from_base58_string(secret), approve)

    @classmethod
    def from_seed_phrase(
        cls,
        seed_phrase: str,
        index: int = 0,
        approve: Optional[ApprovalHook] = None,
    ) -> "KeypairSigner":
        """Derive a Solana keypair from a BIP39 seed phrase.

        Uses m/44'/501'/index'/0' (Phantom / Trust Wallet layout).
        """
        from bip_utils import Bip39SeedGenerator, Bip44, Bip44Changes, Bip44Coins

        seed = Bip39SeedGenerator(seed_phrase).Generate()
        bip44 = Bip44.FromSeed(seed, Bip44Coins.SOLANA)
        account = bip44.Purpose().Coin().Account(index).Change(Bip44Changes.CHAIN_EXT)
        private_key = account.PrivateKey().Raw().ToBytes()

        return cls.from_seed(private_key, approve)

    @property
    def public_key(self) -> Pubkey:
        return self._keypair.pubkey()

    async def _is_approved(self, transaction: Transaction) -> bool:
        if self._approve is None:
            return True
        decision = self._approve(transaction)
        if inspect.isawaitable(decision):
            decision = await decision
        return bool(decision)

    async def sign_and_send(
        self,
        transaction: Transaction,
        client: LedgerClient,
        options: SendOptions,
    ) -> str:
        message = transaction.message
        if message.account_keys[0] != self.public_key:
            raise SigningDeclinedError("Wallet does not control the fee payer account.")

        if not await self._is_approved(transaction):
            logger.info(f"Signing declined by wallet {self.public_key}")
            raise SigningDeclinedError()

        signed = Transaction([self._keypair], message, message.recent_blockhash)
        logger.debug(f"Transaction signed by {self.public_key}")

        return await client.send_transaction(bytes(signed), options)
