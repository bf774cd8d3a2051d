"""Component tests for devbridge modules.

Tests formatting, notifications, signing, config and session lifecycle.
"""

import asyncio
from decimal import Decimal

import pytest
from solders.keypair import Keypair

from conftest import FakeLedgerClient, decode_sent_transfer
from devbridge.config import Settings
from devbridge.errors import SigningDeclinedError
from devbridge.ledger.base import BlockReference, SendOptions
from devbridge.notifications import NotificationKind, StatusChannel
from devbridge.session import BridgeSession, SessionClosedError
from devbridge.signing.local import KeypairSigner
from devbridge.transfer import build_transfer_transaction
from devbridge.utils.formatting import (
    estimate_mainnet,
    format_sol,
    lamports_to_sol,
    parse_amount,
    shorten,
    sol_to_lamports,
)

TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)


class TestFormatting:
    """Tests for unit conversion and display helpers."""

    def test_lamport_conversion(self):
        assert lamports_to_sol(1_500_000_000) == Decimal("1.5")
        assert sol_to_lamports(Decimal("1.5")) == 1_500_000_000

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "-"),
            (Decimal("0"), "0 SOL"),
            (Decimal("1500"), "1,500 SOL"),
            (Decimal("1234567.123456"), "1,234,567.1235 SOL"),
            (Decimal("0.5"), "0.5 SOL"),
            (Decimal("0.00005"), "0.0001 SOL"),
            (Decimal("2.00025"), "2.0003 SOL"),
        ],
    )
    def test_format_sol(self, value, expected):
        assert format_sol(value) == expected

    def test_shorten(self):
        assert shorten("So11111111111111111111111111111111111111112") == "So11…1112"
        assert shorten("short") == "short"

    def test_parse_amount(self):
        assert parse_amount(" 12.5 ") == Decimal("12.5")
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount("1e3") == Decimal("1000")
        assert parse_amount("abc") is None
        assert parse_amount("inf") is None

    def test_estimate_mainnet(self):
        assert estimate_mainnet("1000000") == Decimal("0.01")
        assert estimate_mainnet("2000") == Decimal("0.00002")
        assert estimate_mainnet("") == 0
        assert estimate_mainnet("-5") == 0


class TestNotifications:
    """Tests for the status channel."""

    def test_publish_to_subscribers(self):
        channel = StatusChannel()
        received = []
        channel.subscribe(received.append)

        channel.loading("working", "stage")
        channel.success("done", "stage")

        assert [(n.kind, n.message, n.toast_id) for n in received] == [
            (NotificationKind.LOADING, "working", "stage"),
            (NotificationKind.SUCCESS, "done", "stage"),
        ]

    def test_unsubscribe(self):
        channel = StatusChannel()
        received = []
        unsubscribe = channel.subscribe(received.append)

        unsubscribe()
        channel.info("ignored")

        assert received == []

    def test_closed_channel_drops_notifications(self):
        channel = StatusChannel()
        received = []
        channel.subscribe(received.append)

        channel.close()
        channel.error("late")

        assert received == []
        assert channel.closed

    def test_failing_subscriber_does_not_block_others(self):
        channel = StatusChannel()
        received = []

        def broken(notification):
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(received.append)
        channel.info("hello")

        assert len(received) == 1


class TestKeypairSigner:
    """Tests for the keypair-backed signer."""

    def test_seed_phrase_derivation_is_deterministic(self):
        first = KeypairSigner.from_seed_phrase(TEST_MNEMONIC)
        second = KeypairSigner.from_seed_phrase(TEST_MNEMONIC)
        other = KeypairSigner.from_seed_phrase(TEST_MNEMONIC, index=1)

        assert first.public_key == second.public_key
        assert first.public_key != other.public_key

    def test_from_base58(self):
        keypair = Keypair()

        signer = KeypairSigner.from_base58(str(keypair))

        assert signer.public_key == keypair.pubkey()

    @pytest.mark.asyncio
    async def test_signs_and_submits(self):
        ledger = FakeLedgerClient()
        signer = KeypairSigner(Keypair())
        destination = Keypair().pubkey()
        tx = build_transfer_transaction(signer.public_key, destination, 42, ledger.reference)

        signature = await signer.sign_and_send(tx, ledger, SendOptions())

        sent = ledger.sent[0]
        assert str(sent.signatures[0]) == signature
        assert decode_sent_transfer(sent) == (signer.public_key, destination, 42)

    @pytest.mark.asyncio
    async def test_async_approval_hook(self):
        ledger = FakeLedgerClient()
        seen = []

        async def approve(tx):
            seen.append(tx)
            return False

        signer = KeypairSigner(Keypair(), approve=approve)
        tx = build_transfer_transaction(
            signer.public_key, Keypair().pubkey(), 42, ledger.reference
        )

        with pytest.raises(SigningDeclinedError):
            await signer.sign_and_send(tx, ledger, SendOptions())

        assert len(seen) == 1
        assert ledger.sent == []

    @pytest.mark.asyncio
    async def test_refuses_foreign_fee_payer(self):
        ledger = FakeLedgerClient()
        signer = KeypairSigner(Keypair())
        tx = build_transfer_transaction(
            Keypair().pubkey(), Keypair().pubkey(), 42, ledger.reference
        )

        with pytest.raises(SigningDeclinedError):
            await signer.sign_and_send(tx, ledger, SendOptions())


class TestSettings:
    """Tests for configuration."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.balance_poll_interval == 10.0
        assert settings.min_required_sol == Decimal(1000)
        assert settings.safety_buffer_lamports == 50_000

    def test_safe_dict_redacts_rpc_key(self):
        settings = Settings(solana_rpc_url="https://rpc.example/?api-key=secret")

        assert "secret" not in str(settings.get_safe_dict())

    @pytest.mark.parametrize("value,expected", [(None, False), ("  ", False), ("dest", True)])
    def test_has_sweep_destination(self, value, expected):
        assert Settings(_env_file=None, sweep_destination=value).has_sweep_destination is expected


class TestSession:
    """Tests for session lifecycle."""

    @pytest.mark.asyncio
    async def test_close_cancels_owned_tasks(self):
        ledger = FakeLedgerClient()
        session = BridgeSession(ledger)
        task = session.spawn(asyncio.sleep(3600))

        await session.close()

        assert task.cancelled()
        assert ledger.closed

    @pytest.mark.asyncio
    async def test_spawn_after_close_raises(self):
        session = BridgeSession(FakeLedgerClient())
        await session.close()

        with pytest.raises(SessionClosedError):
            session.spawn(asyncio.sleep(0))
