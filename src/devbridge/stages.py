"""Simulated bridge progress.

Purely illustrative: no ledger reads or writes happen here. The state
machine (states, transition table, delay table) is kept separate from the
timer-driven runner so tests can step it without waiting.
"""

import asyncio
import logging
import math
from enum import Enum
from typing import Awaitable, Callable, Optional

from devbridge.notifications import StatusChannel

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    ELIGIBILITY = "eligibility"
    ROUTING = "routing"
    BRIDGING = "bridging"
    FINALIZING = "finalizing"
    COMPLETE = "complete"


TRANSITIONS: dict[Stage, Stage] = {
    Stage.IDLE: Stage.ELIGIBILITY,
    Stage.ELIGIBILITY: Stage.ROUTING,
    Stage.ROUTING: Stage.BRIDGING,
    Stage.BRIDGING: Stage.FINALIZING,
    Stage.FINALIZING: Stage.COMPLETE,
}

# Milliseconds spent in each stage before advancing
STAGE_DELAYS_MS: dict[Stage, int] = {
    Stage.ELIGIBILITY: 1600,
    Stage.ROUTING: 2200,
    Stage.BRIDGING: 2400,
    Stage.FINALIZING: 2000,
}

STAGE_MESSAGES: dict[Stage, str] = {
    Stage.ELIGIBILITY: "Checking eligibility and KYC-lite…",
    Stage.ROUTING: "Routing through cross-shard ultra-bridge…",
    Stage.BRIDGING: "Atomically compressing Devnet liquidity…",
    Stage.FINALIZING: "Finalizing on-chain proofs (0/2048)…",
    Stage.COMPLETE: "Bridge queued! ETA: ∞ (Devnet liquidity unavailable)",
}

STAGE_LABELS: dict[Stage, str] = {
    Stage.IDLE: "Idle",
    Stage.ELIGIBILITY: "Eligibility",
    Stage.ROUTING: "Routing",
    Stage.BRIDGING: "Bridging",
    Stage.FINALIZING: "Finalizing",
    Stage.COMPLETE: "Complete",
}

# Stages shown on the progress timeline, in order
TIMELINE: tuple[Stage, ...] = (
    Stage.ELIGIBILITY,
    Stage.ROUTING,
    Stage.BRIDGING,
    Stage.FINALIZING,
    Stage.COMPLETE,
)

PROGRESS_TICK_MS = 300
STAGE_TOAST_ID = "stage"
PROGRESS_TOAST_ID = "compress"


class StageError(RuntimeError):
    """Raised when advancing past the terminal stage."""


def progress(stage: Stage) -> tuple[int, str]:
    """Timeline position and label; idle is -1."""
    index = TIMELINE.index(stage) if stage in TIMELINE else -1
    return index, STAGE_LABELS[stage]


class StageMachine:
    """Forward-only stage state machine."""

    def __init__(self, delays_ms: Optional[dict[Stage, int]] = None):
        self.stage = Stage.IDLE
        self.delays_ms = dict(STAGE_DELAYS_MS if delays_ms is None else delays_ms)

    @property
    def is_terminal(self) -> bool:
        return self.stage == Stage.COMPLETE

    @property
    def delay_ms(self) -> int:
        """Time to spend in the current stage."""
        return self.delays_ms.get(self.stage, 0)

    def progress_steps(self) -> int:
        """Sub-steps reported while bridging, zero for other stages."""
        if self.stage != Stage.BRIDGING:
            return 0
        return math.ceil(self.delay_ms / PROGRESS_TICK_MS)

    def advance(self) -> Stage:
        if self.is_terminal:
            raise StageError("Simulation already complete")
        self.stage = TRANSITIONS[self.stage]
        return self.stage

    def reset(self) -> None:
        self.stage = Stage.IDLE


StageListener = Callable[[Stage], None]
Sleep = Callable[[float], Awaitable[None]]


class StageSimulator:
    """Drives a ``StageMachine`` on timers and reports each transition.

    ``sleep`` is injectable; pass a no-wait coroutine in tests.
    """

    def __init__(
        self,
        channel: StatusChannel,
        sleep: Sleep = asyncio.sleep,
        delays_ms: Optional[dict[Stage, int]] = None,
    ):
        self.channel = channel
        self.machine = StageMachine(delays_ms)
        self._sleep = sleep
        self._listeners: list[StageListener] = []

    @property
    def stage(self) -> Stage:
        return self.machine.stage

    def subscribe(self, listener: StageListener) -> None:
        self._listeners.append(listener)

    def reset(self) -> None:
        self.machine.reset()

    async def run(self) -> Stage:
        """Run the full sequence from idle to complete."""
        self.machine.reset()

        while not self.machine.is_terminal:
            stage = self.machine.advance()
            logger.info(f"Simulated bridge stage: {stage.value}")
            for listener in list(self._listeners):
                listener(stage)

            if stage == Stage.COMPLETE:
                self.channel.success(STAGE_MESSAGES[stage], STAGE_TOAST_ID)
                break

            self.channel.loading(STAGE_MESSAGES[stage], STAGE_TOAST_ID)
            if stage == Stage.BRIDGING:
                await self._report_progress()
            else:
                await self._sleep(self.machine.delay_ms / 1000)

        return self.machine.stage

    async def _report_progress(self) -> None:
        steps = self.machine.progress_steps()
        try:
            for i in range(steps):
                self.channel.loading(f"Compressing packets {i + 1}/{steps}…", PROGRESS_TOAST_ID)
                await self._sleep(PROGRESS_TICK_MS / 1000)
        finally:
            self.channel.dismiss(PROGRESS_TOAST_ID)
