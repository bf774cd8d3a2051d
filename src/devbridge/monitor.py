"""Balance monitor for the connected account.

Polls the ledger on a fixed cadence and keeps only the latest snapshot on
the session. A failed query degrades the balance to unknown (None), never
to zero, and polling continues.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from devbridge.config import get_settings
from devbridge.session import BalanceSnapshot, BridgeSession

logger = logging.getLogger(__name__)

BalanceListener = Callable[[Optional[BalanceSnapshot]], None]
Sleep = Callable[[float], Awaitable[None]]


class BalanceMonitor:
    """Periodic balance poller bound to a session.

    Each start/stop bumps a generation counter; a poll that completes under
    an older generation, after the account changed, or after the session
    closed is discarded.
    """

    def __init__(
        self,
        session: BridgeSession,
        interval: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.session = session
        self.interval = get_settings().balance_poll_interval if interval is None else interval
        self._sleep = sleep
        self._listeners: list[BalanceListener] = []
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: BalanceListener) -> None:
        """Called with the new snapshot whenever the observable balance changes."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Start polling the session's account (restarts if already running)."""
        self._cancel_task()
        self._generation += 1

        if self.session.account is None:
            self._apply(None)
            return

        logger.info(
            f"Balance monitor started for {self.session.account} (every {self.interval}s)"
        )
        self._task = self.session.spawn(
            self._run(self._generation), name="balance-monitor"
        )

    def stop(self) -> None:
        """Stop polling and reset the balance to unknown."""
        self._cancel_task()
        self._generation += 1
        if not self.session.closed:
            self._apply(None)
        logger.info("Balance monitor stopped")

    async def refresh(self) -> Optional[BalanceSnapshot]:
        """Poll once now and return the resulting snapshot."""
        await self._poll(self._generation)
        return self.session.snapshot

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            await self._poll(generation)
            await self._sleep(self.interval)

    def _is_current(self, generation: int, account) -> bool:
        return (
            generation == self._generation
            and not self.session.closed
            and self.session.account == account
        )

    async def _poll(self, generation: int) -> None:
        account = self.session.account
        if account is None:
            if self._is_current(generation, account):
                self._apply(None)
            return

        try:
            lamports = await self.session.client.get_balance(account)
        except Exception as e:
            logger.error(f"Failed to get balance for {account}: {e}")
            if self._is_current(generation, account):
                self._apply(None)
            return

        if not self._is_current(generation, account):
            logger.debug(f"Discarded stale balance result for {account}")
            return

        logger.debug(f"Balance for {account}: {lamports} lamports")
        self._apply(BalanceSnapshot.from_lamports(lamports))

    def _apply(self, snapshot: Optional[BalanceSnapshot]) -> None:
        previous = self.session.snapshot
        self.session.snapshot = snapshot

        before = previous.lamports if previous else None
        after = snapshot.lamports if snapshot else None
        if before == after:
            return

        for listener in list(self._listeners):
            listener(snapshot)
