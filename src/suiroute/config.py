"""Client configuration using pydantic-settings.

Values are read from ``SUIROUTE_*`` environment variables or a ``.env`` file.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SuiNetwork(str, Enum):
    """Sui networks served by the routing backend."""

    MAINNET = "MAINNET"
    TESTNET = "TESTNET"
    DEVNET = "DEVNET"
    LOCAL = "LOCAL"


# Backend base URLs per network
NETWORK_API_URLS = {
    SuiNetwork.MAINNET: "https://api.mainnet.sui-router.io/api",
    SuiNetwork.TESTNET: "https://api.testnet.sui-router.io/api",
    SuiNetwork.DEVNET: "https://api.devnet.sui-router.io/api",
    SuiNetwork.LOCAL: "http://localhost:3000/api",
}


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SUIROUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Backend
    # ======================
    network: SuiNetwork = Field(default=SuiNetwork.MAINNET, description="Sui network")
    api_url: Optional[str] = Field(
        default=None, description="Override for the backend base URL"
    )

    # ======================
    # Timeouts
    # ======================
    request_timeout: float = Field(
        default=30.0, description="Timeout for quote and transaction requests (seconds)"
    )
    stream_timeout: Optional[float] = Field(
        default=None, description="Read timeout for event streams (None = wait forever)"
    )
    lock_timeout: float = Field(
        default=30.0, description="Max wait for a transaction's augmentation lock"
    )

    # ======================
    # Trading defaults
    # ======================
    default_slippage: float = Field(
        default=0.01, ge=0, lt=1, description="Default slippage tolerance (1%)"
    )

    # ======================
    # Environment
    # ======================
    debug: bool = Field(default=False, description="Enable debug logging")

    def get_api_url(self, network: Optional[SuiNetwork] = None) -> str:
        """Get backend base URL, honouring an explicit override."""
        if self.api_url:
            return self.api_url.rstrip("/")
        return NETWORK_API_URLS[network or self.network]

    def get_safe_dict(self) -> dict:
        """Return settings as a plain dict for diagnostics."""
        return {
            "network": self.network.value,
            "api_url": self.get_api_url(),
            "timeouts": {
                "request": self.request_timeout,
                "stream": self.stream_timeout,
                "lock": self.lock_timeout,
            },
            "default_slippage": self.default_slippage,
            "debug": self.debug,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
