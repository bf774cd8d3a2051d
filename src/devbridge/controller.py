"""Bridge controller: the two entry points presentation calls.

- start_simulated_workflow: gate, then the illustrative stage sequence
- execute_transfer: the real sweep transfer

The two paths share only the session; neither reads the other's state.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from devbridge.config import Settings, get_settings
from devbridge.eligibility import EligibilityDecision, validate
from devbridge.errors import ErrorCode, SweepDestinationError, TransferError
from devbridge.ledger.base import LedgerClient
from devbridge.monitor import BalanceMonitor
from devbridge.notifications import StatusChannel
from devbridge.session import BridgeSession
from devbridge.signing.base import Signer
from devbridge.stages import Stage, StageSimulator, progress
from devbridge.transfer import TransferExecutor
from devbridge.utils.formatting import Number, estimate_mainnet, format_sol, shorten

logger = logging.getLogger(__name__)

TRANSFER_TOAST_ID = "drain"


@dataclass
class TransferOutcome:
    """Result of execute_transfer, reported to presentation."""
    success: bool
    signature: Optional[str] = None
    confirmed: bool = False
    error: Optional[ErrorCode] = None
    message: str = ""


@dataclass(frozen=True)
class ControlState:
    """Everything the presentation layer renders from the core."""
    connected: bool
    balance_display: str
    start_enabled: bool
    start_label: str
    transfer_enabled: bool
    transfer_label: str
    estimated_mainnet: Decimal
    stage: Stage
    progress_index: int
    progress_label: str


class BridgeController:
    """Owns one session and wires the components to it."""

    def __init__(
        self,
        client: LedgerClient,
        settings: Optional[Settings] = None,
        channel: Optional[StatusChannel] = None,
        simulator: Optional[StageSimulator] = None,
        executor: Optional[TransferExecutor] = None,
        monitor: Optional[BalanceMonitor] = None,
    ):
        self.settings = settings or get_settings()
        self.session = BridgeSession(client, channel)
        self.monitor = monitor or BalanceMonitor(
            self.session, interval=self.settings.balance_poll_interval
        )
        self.simulator = simulator or StageSimulator(self.session.channel)
        self._executor = executor
        self._simulation: Optional[asyncio.Task] = None

    @property
    def channel(self) -> StatusChannel:
        return self.session.channel

    @property
    def checking(self) -> bool:
        """True while a stage sequence is running."""
        return self._simulation is not None and not self._simulation.done()

    def get_executor(self) -> TransferExecutor:
        """Executor for the configured destination, built on first use.

        Raises:
            SweepDestinationError: No usable destination is configured
        """
        if self._executor is None:
            if not self.settings.has_sweep_destination:
                raise SweepDestinationError()
            self._executor = TransferExecutor(
                self.session.client,
                destination=self.settings.sweep_destination,
                safety_buffer_lamports=self.settings.safety_buffer_lamports,
                commitment=self.settings.commitment,
            )
        return self._executor

    # ======================
    # Connection
    # ======================

    def connect(self, signer: Signer) -> None:
        """Bind a wallet to the session and start observing its balance."""
        self.session.signer = signer
        logger.info(f"Wallet connected: {signer.public_key}")
        self.monitor.start()

    def disconnect(self) -> None:
        self.session.signer = None
        self.monitor.stop()
        logger.info("Wallet disconnected")

    async def close(self) -> None:
        """Tear down the session; nothing is observable afterwards."""
        await self.session.close()
        self.monitor.stop()

    # ======================
    # Simulated workflow
    # ======================

    def check_eligibility(
        self,
        destination: Optional[str],
        requested_amount: Optional[Number],
    ) -> EligibilityDecision:
        """Evaluate the gate against the latest snapshot, right now."""
        return validate(
            self.session.account,
            self.session.balance,
            destination,
            requested_amount,
            min_required=self.settings.min_required_sol,
        )

    async def start_simulated_workflow(
        self,
        destination: Optional[str],
        requested_amount: Optional[Number],
    ) -> EligibilityDecision:
        """Gate the action, then run the illustrative stage sequence.

        A fresh trigger cancels any sequence still running and restarts it.
        """
        decision = self.check_eligibility(destination, requested_amount)
        if not decision.accepted:
            logger.info(f"Bridge rejected: {decision.reason.value}")
            self.channel.error(decision.message)
            return decision

        if self.checking:
            self._simulation.cancel()
        self.simulator.reset()

        self._simulation = self.session.spawn(self.simulator.run(), name="stage-simulator")
        await asyncio.wait({self._simulation})
        return decision

    # ======================
    # Real transfer
    # ======================

    async def execute_transfer(self) -> TransferOutcome:
        """Sweep the connected account to the configured destination."""
        task = self.session.spawn(self._execute_transfer(), name="transfer-executor")
        await asyncio.wait({task})
        if task.cancelled():
            return TransferOutcome(success=False, message="Session closed")
        return task.result()

    async def _execute_transfer(self) -> TransferOutcome:
        def on_submitted(signature: str) -> None:
            self.channel.loading("Transferring Devnet SOL…", TRANSFER_TOAST_ID)

        try:
            executor = self.get_executor()
        except SweepDestinationError as e:
            logger.error(f"Transfer unavailable: {e.message}")
            self.channel.error(e.message, TRANSFER_TOAST_ID)
            return TransferOutcome(success=False, error=e.code, message=e.message)

        try:
            result = await executor.execute(self.session.signer, on_submitted)
        except TransferError as e:
            logger.error(f"Transfer failed ({e.code.value if e.code else 'unknown'}): {e.message}")
            self.channel.error(e.message, TRANSFER_TOAST_ID)
            unconfirmed = getattr(e, "result", None)
            return TransferOutcome(
                success=False,
                signature=unconfirmed.signature if unconfirmed else None,
                error=e.code,
                message=e.message,
            )

        message = f"Transfer complete: {result.signature}"
        self.channel.success(message, TRANSFER_TOAST_ID)
        return TransferOutcome(
            success=True,
            signature=result.signature,
            confirmed=result.confirmed,
            message=message,
        )

    # ======================
    # Presentation state
    # ======================

    def control_state(self, requested_amount: Optional[Number] = None) -> ControlState:
        balance = self.session.balance
        minimum = self.settings.min_required_sol
        connected = self.session.account is not None
        below = (balance or Decimal(0)) < minimum

        if self.checking:
            start_label = "Checking…"
        elif below:
            start_label = f"Requires {minimum.normalize():,f}+ Devnet SOL"
        else:
            start_label = "Start Bridge"

        try:
            destination = self.get_executor().destination
            transfer_label = f"Transfer All Devnet SOL → {shorten(str(destination))}"
        except SweepDestinationError:
            destination = None
            transfer_label = ""

        index, label = progress(self.simulator.stage)

        return ControlState(
            connected=connected,
            balance_display=format_sol(balance),
            start_enabled=connected and not below and not self.checking,
            start_label=start_label,
            transfer_enabled=(
                connected and destination is not None and (balance or Decimal(0)) > 0
            ),
            transfer_label=transfer_label,
            estimated_mainnet=estimate_mainnet(
                requested_amount,
                self.settings.exchange_rate_dev_to_main,
                self.settings.mainnet_sol_per_rate,
            ),
            stage=self.simulator.stage,
            progress_index=index,
            progress_label=label,
        )
