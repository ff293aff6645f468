"""
Partner DAO token lists.

Tokens are read from the published BIO token list and bidding token list,
filtered to the partner DAOs, and cached. Optionally each token's mint is
looked up on Solana.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

import httpx
from pydantic import BaseModel
from solders.pubkey import Pubkey

from sentinel.validation.ownership import is_valid_address

logger = logging.getLogger(__name__)

DEFAULT_BIO_TOKEN_LIST_URL = "https://tokenlists.bio.xyz/bio-token-list.json"
DEFAULT_BIDDING_TOKEN_LIST_URL = "https://tokenlists.bio.xyz/bidding-token-list.json"
DEFAULT_SOLANA_CHAIN_IDS = (101, 102, 103)

DAO_NAMES = [
    "vitadao",
    "hairdao",
    "valleydao",
    "athenadao",
    "cryodao",
    "psydao",
    "cerebrumdao",
    "curetopia",
    "long covid labs",
    "quantum biology dao",
]


class TokenSource(str, Enum):
    """Where a token entry came from."""
    BIO_LIST = "bio-token-list"
    BIDDING_LIST = "bidding-token-list"
    FALLBACK = "fallback"


class OnChainError(str, Enum):
    """Why a token could not be confirmed on Solana."""
    UNSUPPORTED_CHAIN = "unsupported-chain"
    EVM_ADDRESS = "evm-address"
    INVALID_ADDRESS = "invalid-address"
    NOT_FOUND = "not-found"
    NO_LEDGER = "no-ledger"


class OnChainStatus(BaseModel):
    exists: bool
    decimals: Optional[int] = None
    supply: Optional[int] = None
    error: Optional[OnChainError] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"exists": self.exists, "decimals": self.decimals, "supply": self.supply}
        if self.error is not None:
            data["error"] = self.error.value
        return {k: v for k, v in data.items() if v is not None}


class DaoToken(BaseModel):
    """A partner DAO token from a published token list."""

    name: str
    symbol: str
    address: str = ""
    chain_id: Optional[int] = None
    logo_uri: Optional[str] = None
    source: TokenSource
    on_chain: Optional[OnChainStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "source": self.source.value,
        }
        if self.chain_id is not None:
            data["chainId"] = self.chain_id
        if self.logo_uri is not None:
            data["logoURI"] = self.logo_uri
        if self.on_chain is not None:
            data["onChain"] = self.on_chain.to_dict()
        return data


FALLBACK_TOKENS = [
    DaoToken(name="VitaDAO", symbol="VITA", source=TokenSource.FALLBACK),
    DaoToken(name="HairDAO", symbol="HAIR", source=TokenSource.FALLBACK),
    DaoToken(name="ValleyDAO", symbol="VALLEY", source=TokenSource.FALLBACK),
    DaoToken(name="AthenaDAO", symbol="ATHENA", source=TokenSource.FALLBACK),
]


def is_dao_token(name: Optional[str], symbol: Optional[str]) -> bool:
    """
    Check whether a token list entry belongs to a partner DAO.

    The name must contain a DAO name, or the symbol the DAO name with its
    first "dao" removed (``vitadao`` matches symbol ``VITA``).
    """
    name = (name or "").lower()
    symbol = (symbol or "").lower()
    return any(dao in name or dao.replace("dao", "", 1) in symbol for dao in DAO_NAMES)


def parse_token_list(data: Any, source: TokenSource) -> List[DaoToken]:
    """Partner DAO tokens from a token list document; malformed entries are skipped."""
    entries = data.get("tokens") if isinstance(data, dict) else None
    tokens = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not is_dao_token(entry.get("name"), entry.get("symbol")):
            continue
        chain_id = entry.get("chainId")
        tokens.append(
            DaoToken(
                name=entry.get("name") or "Unknown",
                symbol=entry.get("symbol") or "UNKNOWN",
                address=entry.get("address") or "",
                chain_id=chain_id if isinstance(chain_id, int) else None,
                logo_uri=entry.get("logoURI"),
                source=source,
            )
        )
    return tokens


class TokenListClient:
    """
    Fetches and caches partner DAO tokens.

    Example:
        ```python
        token_lists = TokenListClient.from_config(config, ledger=ledger)
        tokens, updated_at = await token_lists.get_tokens_with_onchain()
        ```
    """

    def __init__(
        self,
        bio_list_url: str = DEFAULT_BIO_TOKEN_LIST_URL,
        bidding_list_url: str = DEFAULT_BIDDING_TOKEN_LIST_URL,
        ledger=None,
        solana_chain_ids: Iterable[int] = DEFAULT_SOLANA_CHAIN_IDS,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 8.0,
        cache_ttl: float = 600.0
    ):
        """
        Initialize the client.

        Args:
            bio_list_url: BIO token list document
            bidding_list_url: Bidding token list document
            ledger: ``SolanaLedger`` used for mint lookups (optional)
            solana_chain_ids: Token list chain ids that denote Solana
            client: Shared HTTP client; one is created when omitted
            timeout: Request timeout in seconds
            cache_ttl: Seconds a fetched list stays fresh
        """
        self.bio_list_url = bio_list_url
        self.bidding_list_url = bidding_list_url
        self.ledger = ledger
        self.solana_chain_ids = set(solana_chain_ids)
        self.cache_ttl = cache_ttl
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._tokens: List[DaoToken] = []
        self._cached_at = 0.0

    @classmethod
    def from_config(cls, config, ledger=None, client: Optional[httpx.AsyncClient] = None) -> "TokenListClient":
        return cls(
            bio_list_url=config.bio_token_list_url,
            bidding_list_url=config.bio_bidding_token_list_url,
            ledger=ledger,
            solana_chain_ids=config.bio_solana_chain_ids,
            client=client,
            timeout=config.token_list_timeout,
            cache_ttl=config.token_list_cache_ttl,
        )

    async def get_tokens(self) -> Tuple[List[DaoToken], int]:
        """
        Partner tokens from both lists, BIO list first.

        Falls back to a static set when either list cannot be fetched or
        neither yields a partner token.

        Returns:
            (tokens, updated_at in epoch milliseconds)
        """
        now = time.time()
        if self._tokens and now - self._cached_at < self.cache_ttl:
            return list(self._tokens), int(self._cached_at * 1000)

        try:
            bio_list, bidding_list = await asyncio.gather(
                self._fetch_list(self.bio_list_url),
                self._fetch_list(self.bidding_list_url),
            )
            tokens = (
                parse_token_list(bio_list, TokenSource.BIO_LIST)
                + parse_token_list(bidding_list, TokenSource.BIDDING_LIST)
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Token list fetch failed: {e}; using fallback tokens")
            tokens = []

        self._tokens = tokens or [token.model_copy() for token in FALLBACK_TOKENS]
        self._cached_at = now
        logger.info(f"Loaded {len(self._tokens)} partner tokens")
        return list(self._tokens), int(now * 1000)

    async def get_tokens_with_onchain(self) -> Tuple[List[DaoToken], int]:
        """Partner tokens, each annotated with its Solana mint status."""
        tokens, updated_at = await self.get_tokens()
        enriched = []
        for token in tokens:
            status = await self.on_chain_status(token)
            enriched.append(token.model_copy(update={"on_chain": status}))
        return enriched, updated_at

    async def on_chain_status(self, token: DaoToken) -> OnChainStatus:
        """Look up a token's mint on Solana."""
        if not token.address:
            return OnChainStatus(exists=False, error=OnChainError.INVALID_ADDRESS)
        if token.address.startswith("0x"):
            return OnChainStatus(exists=False, error=OnChainError.EVM_ADDRESS)
        if token.chain_id is not None and token.chain_id not in self.solana_chain_ids:
            return OnChainStatus(exists=False, error=OnChainError.UNSUPPORTED_CHAIN)
        if not is_valid_address(token.address):
            return OnChainStatus(exists=False, error=OnChainError.INVALID_ADDRESS)
        if self.ledger is None:
            return OnChainStatus(exists=False, error=OnChainError.NO_LEDGER)

        try:
            info = await self.ledger.get_mint_info(Pubkey.from_string(token.address))
        except Exception as e:
            logger.info(f"Mint {token.address} ({token.symbol}) not found: {e}")
            return OnChainStatus(exists=False, error=OnChainError.NOT_FOUND)
        return OnChainStatus(exists=True, decimals=info["decimals"], supply=info["supply"])

    async def _fetch_list(self, url: str) -> Any:
        response = await self.client.get(url)
        response.raise_for_status()
        return response.json()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
