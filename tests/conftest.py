"""Pytest configuration and fixtures."""

import asyncio
import os
import struct
from typing import Optional

import pytest
import pytest_asyncio
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction

SWEEP_DESTINATION = str(Keypair.from_seed(bytes([7] * 32)).pubkey())

# Set test environment
os.environ["SOLANA_RPC_URL"] = "http://rpc.test"
os.environ["SWEEP_DESTINATION"] = SWEEP_DESTINATION

from devbridge.config import Settings
from devbridge.ledger.base import (
    BlockReference,
    LedgerClient,
    SendOptions,
)
from devbridge.notifications import Notification, StatusChannel
from devbridge.session import BridgeSession
from devbridge.signing.local import KeypairSigner
from devbridge.utils.formatting import LAMPORTS_PER_SOL


def sol(amount) -> int:
    """SOL to lamports for test balances."""
    return int(amount * LAMPORTS_PER_SOL)


def decode_sent_transfer(tx):
    """Return (source, destination, lamports) of a single system transfer."""
    message = tx.message
    assert len(message.instructions) == 1
    ix = message.instructions[0]
    assert message.account_keys[ix.program_id_index] == SYSTEM_PROGRAM_ID
    index, lamports = struct.unpack("<IQ", bytes(ix.data))
    assert index == 2  # SystemInstruction::Transfer
    source = message.account_keys[ix.accounts[0]]
    destination = message.account_keys[ix.accounts[1]]
    return source, destination, lamports


class FakeLedgerClient(LedgerClient):
    """In-memory ledger client recording every call."""

    def __init__(self, balance: int = 0):
        self.balance = balance
        self.balance_error: Optional[Exception] = None
        self.blockhash_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.confirm_error: Optional[Exception] = None
        self.confirm_result = True
        self.balance_gate: Optional[asyncio.Event] = None
        self.reference = BlockReference(str(Hash.default()), 1_000)
        self.calls: list[str] = []
        self.sent: list[Transaction] = []
        self.closed = False

    def count(self, method: str) -> int:
        return self.calls.count(method)

    async def get_balance(self, account: Pubkey) -> int:
        self.calls.append("get_balance")
        if self.balance_gate is not None:
            await self.balance_gate.wait()
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance

    async def get_latest_blockhash(self) -> BlockReference:
        self.calls.append("get_latest_blockhash")
        if self.blockhash_error is not None:
            raise self.blockhash_error
        return self.reference

    async def send_transaction(self, raw_transaction: bytes, options: SendOptions) -> str:
        self.calls.append("send_transaction")
        if self.send_error is not None:
            raise self.send_error
        tx = Transaction.from_bytes(raw_transaction)
        self.sent.append(tx)
        return str(tx.signatures[0])

    async def confirm_transaction(self, signature: str, reference: BlockReference) -> bool:
        self.calls.append("confirm_transaction")
        if self.confirm_error is not None:
            raise self.confirm_error
        return self.confirm_result

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """No-wait replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


class BlockingSleep:
    """Sleep that never returns until released.

    With ``only`` set, delays of any other length pass straight through.
    """

    def __init__(self, only: Optional[float] = None):
        self.only = only
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, seconds: float) -> None:
        if self.only is not None and seconds != self.only:
            await asyncio.sleep(0)
            return
        self.entered.set()
        await self.release.wait()


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def signer() -> KeypairSigner:
    return KeypairSigner(Keypair.from_seed(bytes([1] * 32)))


@pytest.fixture
def channel() -> StatusChannel:
    return StatusChannel()


@pytest.fixture
def notifications(channel: StatusChannel) -> list[Notification]:
    received: list[Notification] = []
    channel.subscribe(received.append)
    return received


@pytest_asyncio.fixture
async def session(ledger: FakeLedgerClient, channel: StatusChannel):
    session = BridgeSession(ledger, channel)
    yield session
    await session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        sweep_destination=SWEEP_DESTINATION,
        balance_poll_interval=3600,
        safety_buffer_lamports=50_000,
    )

