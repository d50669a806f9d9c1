from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

# ERC-4337 v0.6 EntryPoint, deployed at the same address on every EVM chain.
ENTRY_POINT_V06_ADDRESS = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"


@dataclass(frozen=True)
class RelayConfig:
    """Connection settings for the gasless relay API."""

    base_url: str
    api_key: str
    api_version: str = "v2"
    timeout_s: float = 20.0


@dataclass(frozen=True)
class SwapConfig:
    """Explicit per-run configuration handed to the orchestrator."""

    chain_id: int
    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 60


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Derive provider URLs that depend on other settings."""

        super().model_post_init(__context)

        if not self.bundler_url and self.pimlico_api_key:
            derived = f"https://api.pimlico.io/v2/{self.chain_name}/rpc?apikey={self.pimlico_api_key}"
            object.__setattr__(self, "bundler_url", derived)
        if not self.paymaster_url and self.bundler_url:
            object.__setattr__(self, "paymaster_url", self.bundler_url)

    log_level: str = Field(default="INFO", description="Logging level")

    # Relay
    zerox_api_key: str = Field(
        default="",
        description="0x API key sent with every relay request",
        validation_alias=AliasChoices("zerox_api_key", "ZEROX_API_KEY", "ZEROEX_API_KEY"),
    )
    zerox_api_url: str = Field(default="https://api.0x.org", description="0x API base URL")
    zerox_api_version: str = Field(default="v2", description="Value of the 0x-version header")
    request_timeout_seconds: float = Field(default=20.0, description="Relay request timeout")

    # Account abstraction
    pimlico_api_key: str = Field(default="", description="Pimlico API key for bundler and paymaster")
    bundler_url: str = Field(default="", description="ERC-4337 bundler RPC URL")
    paymaster_url: str = Field(default="", description="ERC-4337 paymaster RPC URL")
    paymaster_rpc_method: str = Field(
        default="pm_sponsorUserOperation",
        description="JSON-RPC method used for gas sponsorship",
    )
    entry_point_address: str = Field(
        default=ENTRY_POINT_V06_ADDRESS,
        description="ERC-4337 EntryPoint contract address",
    )
    smart_account_address: str = Field(
        default="",
        description="Deployed smart account address (defaults to the owner address for EIP-7702 accounts)",
    )

    # Chain
    private_key: str = Field(default="", description="Owner private key (hex)")
    rpc_url: str = Field(
        default="https://mainnet.base.org",
        description="Chain JSON-RPC endpoint",
        validation_alias=AliasChoices("rpc_url", "RPC_URL", "BASE_RPC_URL"),
    )
    chain_id: int = Field(default=8453, description="EVM chain id")
    chain_name: str = Field(default="base", description="Chain slug used by the bundler")

    # Swap defaults (USDC -> USDT on Base)
    sell_token: str = Field(default="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", description="Token to sell")
    buy_token: str = Field(default="0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2", description="Token to buy")
    sell_amount: str = Field(default="1", description="Sell amount in UI units")
    sell_decimals: int = Field(default=6, ge=0, le=77, description="Decimals of the sell token")
    slippage_bps: int = Field(default=100, ge=0, le=10_000, description="Slippage tolerance in basis points")

    # Polling
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Delay between status checks")
    max_poll_attempts: int = Field(default=60, ge=1, description="Maximum number of status checks")

    @property
    def has_zerox_key(self) -> bool:
        return bool(self.zerox_api_key)

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)

    @property
    def has_bundler(self) -> bool:
        return bool(self.bundler_url)

    def relay_config(self) -> RelayConfig:
        return RelayConfig(
            base_url=self.zerox_api_url.rstrip("/"),
            api_key=self.zerox_api_key,
            api_version=self.zerox_api_version,
            timeout_s=self.request_timeout_seconds,
        )

    def swap_config(self) -> SwapConfig:
        return SwapConfig(
            chain_id=self.chain_id,
            poll_interval_seconds=self.poll_interval_seconds,
            max_poll_attempts=self.max_poll_attempts,
        )


def get_settings() -> Settings:
    """Load settings from the environment and the optional ``.env`` file."""

    return Settings()
