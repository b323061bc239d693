"""Application configuration using pydantic-settings.

Describes the single AMM pair the client trades against and the chain it lives on.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Union

from eth_utils import is_hex_address, to_checksum_address
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from simpledex.models import PairDescriptor, TokenSide


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Network
    # ======================
    target_chain_id: int = Field(default=11155111, description="Chain ID the AMM is deployed on (Sepolia)")
    rpc_url: str = Field(
        default="http://127.0.0.1:8545", description="JSON-RPC endpoint exposing the wallet accounts"
    )
    rpc_timeout: float = Field(default=30.0, description="Timeout for a single RPC request in seconds")

    # ======================
    # Contracts
    # ======================
    amm_address: str = Field(
        default="0x5FbDB2315678afecb367f032d93F642f64180aa3", description="AMM pool contract address"
    )
    token0_address: str = Field(
        default="0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512", description="token0 contract address"
    )
    token1_address: str = Field(
        default="0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0", description="token1 contract address"
    )
    token0_symbol: str = Field(default="TKA", description="token0 display symbol")
    token1_symbol: str = Field(default="TKB", description="token1 display symbol")
    token_decimals: int = Field(default=18, ge=0, le=77, description="Decimals shared by both tokens")

    # ======================
    # Transactions
    # ======================
    confirmation_timeout: float = Field(default=120.0, description="Seconds to wait for a receipt")
    confirmation_poll_interval: float = Field(default=2.0, description="Seconds between receipt polls")
    pool_max_age_seconds: float = Field(
        default=30.0, ge=0, description="Cached reserves older than this are re-read before serving"
    )
    quote_debounce_seconds: float = Field(
        default=0.0, ge=0, description="Delay before a quote read is issued (0 = no debounce)"
    )

    # ======================
    # Dry run
    # ======================
    dry_run: bool = Field(default=True, description="Use the in-memory simulated ledger")
    dry_run_account: str = Field(
        default="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266", description="Account exposed by the dry-run wallet"
    )

    # ======================
    # API / Environment
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    @field_validator("amm_address", "token0_address", "token1_address", "dry_run_account")
    @classmethod
    def _checksum(cls, value: str) -> str:
        if not is_hex_address(value):
            raise ValueError(f"Not a valid address: {value}")
        return to_checksum_address(value)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def pair(self) -> PairDescriptor:
        """The configured token pair."""
        return PairDescriptor(
            token0=self.token0_address,
            token1=self.token1_address,
            symbol0=self.token0_symbol,
            symbol1=self.token1_symbol,
        )

    def token_address(self, side: TokenSide) -> str:
        """Get the contract address of one side of the pair."""
        return self.token0_address if side is TokenSide.TOKEN0 else self.token1_address

    def token_symbol(self, side: TokenSide) -> str:
        """Get the display symbol of one side of the pair."""
        return self.token0_symbol if side is TokenSide.TOKEN0 else self.token1_symbol

    def get_safe_dict(self) -> dict:
        """Return a printable settings summary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "target_chain_id": self.target_chain_id,
            "rpc_url": self.rpc_url,
            "amm_address": self.amm_address,
            "pair": {
                self.token0_symbol: self.token0_address,
                self.token1_symbol: self.token1_address,
            },
            "decimals": self.token_decimals,
            "confirmation_timeout": self.confirmation_timeout,
        }


# Keys used by the browser dApp's config.json
_CONFIG_FILE_KEYS = {
    "chainId": "target_chain_id",
    "ammAddress": "amm_address",
    "token0": "token0_address",
    "token1": "token1_address",
    "token0Symbol": "token0_symbol",
    "token1Symbol": "token1_symbol",
    "decimals": "token_decimals",
    "rpcUrl": "rpc_url",
}


def load_settings_file(path: Union[str, Path], **overrides) -> Settings:
    """Build settings from a dApp-style config.json.

    Unknown keys are ignored; explicit keyword overrides win over file values.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    values = {field: data[key] for key, field in _CONFIG_FILE_KEYS.items() if key in data}
    values.update(overrides)
    return Settings(**values)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
