"""Session context shared by the monitor, the gate and both workflows.

Holds the connection (account and signer), the latest balance snapshot and
every task started on the session's behalf, so ``close()`` can tear all of
it down and guarantee no state update lands afterwards.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Coroutine, Optional

from solders.pubkey import Pubkey

from devbridge.ledger.base import LedgerClient
from devbridge.notifications import StatusChannel
from devbridge.signing.base import Signer
from devbridge.utils.formatting import lamports_to_sol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    """Latest observed balance of the connected account."""
    lamports: int
    amount: Decimal
    observed_at: datetime

    @classmethod
    def from_lamports(cls, lamports: int, observed_at: Optional[datetime] = None) -> "BalanceSnapshot":
        return cls(
            lamports=lamports,
            amount=lamports_to_sol(lamports),
            observed_at=observed_at or datetime.now(timezone.utc),
        )


class SessionClosedError(RuntimeError):
    """Raised when work is scheduled on a closed session."""


class BridgeSession:
    """Explicit per-session state."""

    def __init__(self, client: LedgerClient, channel: Optional[StatusChannel] = None):
        self.client = client
        self.channel = channel or StatusChannel()
        self.signer: Optional[Signer] = None
        self.snapshot: Optional[BalanceSnapshot] = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def account(self) -> Optional[Pubkey]:
        return self.signer.public_key if self.signer else None

    @property
    def balance(self) -> Optional[Decimal]:
        """Latest known balance in SOL, None when unknown."""
        return self.snapshot.amount if self.snapshot else None

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Run a coroutine as a task owned by this session."""
        if self._closed:
            coro.close()
            raise SessionClosedError("Session is closed")

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        """Cancel owned tasks, drop notifications, release the client."""
        if self._closed:
            return
        self._closed = True
        self.channel.close()

        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self.signer = None
        self.snapshot = None
        await self.client.aclose()
        logger.info(f"Session closed ({len(tasks)} pending task(s) cancelled)")
