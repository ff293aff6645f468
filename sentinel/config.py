"""
Configuration management for Research Sentinel.

Settings are read from environment variables (case-insensitive) and an
optional ``.env`` file.
"""

from typing import List, Optional
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

BIO_TOKEN_MINT_MAINNET = "bioJ9JTqW62MLz7UKHU69gtKhPpGi1BQhccj2kmSvUJ"

DEFAULT_PUBLIC_GATEWAYS = [
    "https://dweb.link/ipfs/",
    "https://ipfs.io/ipfs/",
    "https://gateway.ipfs.io/ipfs/",
]


class SentinelConfig(BaseSettings):
    """Service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Content gateways
    pinata_jwt: Optional[str] = None
    pinata_gateway_url: str = "https://gateway.pinata.cloud/ipfs/"
    pinata_api_url: str = "https://api.pinata.cloud"
    public_gateways: List[str] = Field(default_factory=lambda: list(DEFAULT_PUBLIC_GATEWAYS))
    gateway_timeout: float = 15.0
    gateway_max_retries: int = Field(default=2, ge=0)
    gateway_retry_base_delay: float = Field(default=1.0, ge=0.0)

    # Freshness search
    tavily_api_key: Optional[str] = None
    tavily_search_url: str = "https://api.tavily.com/search"
    search_timeout: float = 15.0
    search_max_results: int = 5

    # Ledger
    solana_rpc_url: str = "https://api.devnet.solana.com"
    agent_private_key: Optional[str] = None  # JSON array of 64 secret key bytes
    bio_token_mint: str = BIO_TOKEN_MINT_MAINNET
    bio_grant_amount: float = 100.0
    sol_grant_lamports: int = 50_000_000  # 0.05 SOL
    compute_unit_price: int = 1000  # micro-lamports

    # Partner token lists
    bio_token_list_url: str = "https://tokenlists.bio.xyz/bio-token-list.json"
    bio_bidding_token_list_url: str = "https://tokenlists.bio.xyz/bidding-token-list.json"
    bio_solana_chain_ids: List[int] = Field(default_factory=lambda: [101, 102, 103])
    token_list_timeout: float = 8.0
    token_list_cache_ttl: float = 600.0

    # Registry and persistence
    funded_registry_path: str = "funded_hashes.json"
    database_url: Optional[str] = None

    # Ingress
    rate_limit_max: int = Field(default=5, ge=1)
    rate_limit_window_seconds: int = Field(default=900, ge=1)
    allowed_origins: str = "*"
    broadcast_queue_size: int = Field(default=100, ge=1)

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def origins(self) -> List[str]:
        """Allowed CORS origins as a list."""
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def rate_limit(self) -> str:
        """Fixed-window limit string understood by slowapi."""
        return f"{self.rate_limit_max}/{self.rate_limit_window_seconds} seconds"

    @property
    def is_devnet(self) -> bool:
        return "devnet" in self.solana_rpc_url or "localhost" in self.solana_rpc_url


_config: Optional[SentinelConfig] = None


def get_config() -> SentinelConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = SentinelConfig()
        logger.debug("Loaded Sentinel configuration")
    return _config


def reset_config():
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
