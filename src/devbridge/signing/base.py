"""Base interface for the external signer.

Signing flow:
1. Core builds an unsigned transaction with the account as fee payer
2. Signer authorizes it (wallet approval) and signs with its own key
3. Signer submits the signed bytes through the ledger client
4. Core receives only the signature, never key material
"""

import logging
from abc import ABC, abstractmethod

from solders.pubkey import Pubkey
from solders.transaction import Transaction

from devbridge.errors import SigningDeclinedError
from devbridge.ledger.base import LedgerClient, SendOptions

logger = logging.getLogger(__name__)


class Signer(ABC):
    """Abstract base class for signing backends.

    Implementations should NEVER expose raw private keys.
    """

    @property
    @abstractmethod
    def public_key(self) -> Pubkey:
        """Account controlled by this signer."""
        pass

    @abstractmethod
    async def sign_and_send(
        self,
        transaction: Transaction,
        client: LedgerClient,
        options: SendOptions,
    ) -> str:
        """Authorize, sign and submit a transaction.

        Returns:
            Transaction signature

        Raises:
            SigningDeclinedError: If the wallet refuses to sign
            LedgerRpcError: If submission fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(pubkey={self.public_key})"


__all__ = ["Signer", "SigningDeclinedError"]
