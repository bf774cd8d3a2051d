"""Application configuration using pydantic-settings.

Single network (Solana devnet), single connected account per session.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Ledger RPC
    # ======================
    solana_rpc_url: str = Field(
        default="https://api.devnet.solana.com", description="Solana devnet RPC URL"
    )
    commitment: str = Field(default="confirmed", description="RPC commitment level")
    rpc_timeout: float = Field(default=15.0, description="RPC request timeout in seconds")

    # ======================
    # Balance Monitor
    # ======================
    balance_poll_interval: float = Field(
        default=10.0, description="Seconds between balance polls"
    )

    # ======================
    # Eligibility
    # ======================
    min_required_sol: Decimal = Field(
        default=Decimal(1000), description="Minimum devnet SOL balance to start the bridge"
    )

    # ======================
    # Sweep Transfer
    # ======================
    sweep_destination: Optional[str] = Field(
        default=None, description="Fixed destination address for the sweep transfer"
    )
    safety_buffer_lamports: int = Field(
        default=50_000, description="Lamports left behind to cover network fees"
    )
    confirmation_poll_interval: float = Field(
        default=1.0, description="Seconds between signature status polls"
    )

    # ======================
    # Quote
    # ======================
    exchange_rate_dev_to_main: int = Field(
        default=1_000_000, description="Devnet SOL per quoted unit"
    )
    mainnet_sol_per_rate: Decimal = Field(
        default=Decimal("0.01"), description="Mainnet SOL quoted per exchange_rate_dev_to_main devnet SOL"
    )

    @property
    def has_sweep_destination(self) -> bool:
        """Check if a sweep destination is configured."""
        return bool(self.sweep_destination and self.sweep_destination.strip())

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "rpc": self._redact_url(self.solana_rpc_url),
            "commitment": self.commitment,
            "balance_poll_interval": self.balance_poll_interval,
            "min_required_sol": self.min_required_sol,
            "sweep": {
                "destination": self.sweep_destination or "(not set)",
                "safety_buffer_lamports": self.safety_buffer_lamports,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact API keys passed as query parameters (e.g. ?api-key=...)."""
        if "?" in url:
            base, _ = url.split("?", 1)
            return f"{base}?***"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
