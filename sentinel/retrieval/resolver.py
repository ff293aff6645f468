"""
Content resolver: ordered provider fallback with per-provider retries.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from sentinel.core.retry import RetryStrategy
from sentinel.retrieval.base import (
    ContentProvider,
    ContentUnavailableError,
    MetadataSource,
    ResolvedContent,
    normalize_cid,
)
from sentinel.retrieval.gateways import PinataGateway, PinataMetadataSource, PublicGateway

logger = logging.getLogger(__name__)


class ContentResolver:
    """
    Fetch submission content from a ranked list of providers.

    The first provider that returns content wins. Each provider gets its own
    bounded retries; failures are logged and the next provider is tried.
    Metadata is best-effort and never aborts resolution.

    Example:
        ```python
        resolver = ContentResolver.from_config(get_config())
        resolved = await resolver.resolve("ipfs://bafy...")
        print(resolved.provider, len(resolved.content), resolved.metadata)
        ```
    """

    def __init__(
        self,
        providers: List[ContentProvider],
        metadata_source: Optional[MetadataSource] = None,
        retry: Optional[RetryStrategy] = None
    ):
        self.providers = list(providers)
        self.metadata_source = metadata_source
        self.retry = retry or RetryStrategy(max_retries=2, base_delay=1.0)

    @classmethod
    def from_config(cls, config, client: Optional[httpx.AsyncClient] = None) -> "ContentResolver":
        """
        Build the default gateway chain from configuration.

        The authenticated Pinata gateway leads when a JWT is configured,
        followed by the public gateways in configured order.
        """
        providers: List[ContentProvider] = []
        metadata_source = None

        if config.pinata_jwt:
            providers.append(
                PinataGateway(
                    config.pinata_jwt,
                    base_url=config.pinata_gateway_url,
                    client=client,
                    timeout=config.gateway_timeout,
                )
            )
            metadata_source = PinataMetadataSource(
                config.pinata_jwt,
                api_url=config.pinata_api_url,
                client=client,
                timeout=config.gateway_timeout,
            )
        else:
            logger.warning("No PINATA_JWT configured; using public gateways only")

        for gateway in config.public_gateways:
            providers.append(PublicGateway(gateway, client=client, timeout=config.gateway_timeout))

        retry = RetryStrategy(
            max_retries=config.gateway_max_retries,
            base_delay=config.gateway_retry_base_delay,
        )
        return cls(providers, metadata_source=metadata_source, retry=retry)

    async def fetch_content(self, locator: str) -> ResolvedContent:
        """
        Fetch raw content, walking the provider chain.

        Raises:
            ContentUnavailableError: If every provider failed
        """
        cid = normalize_cid(locator)
        failures: Dict[str, str] = {}

        for provider in self.providers:
            logger.info(f"Trying {provider.name} for {cid}")
            try:
                content = await self.retry.run(
                    lambda provider=provider: provider.fetch(cid),
                    label=f"Gateway {provider.name}",
                )
                return ResolvedContent(cid=cid, content=content, provider=provider.name)
            except Exception as e:
                failures[provider.name] = str(e)
                logger.warning(f"Gateway {provider.name} failed: {e}")

        raise ContentUnavailableError(cid, failures)

    async def fetch_metadata(self, locator: str) -> Dict[str, Any]:
        """Fetch pin metadata; any failure yields an empty dict."""
        if self.metadata_source is None:
            logger.debug("No metadata source configured; metadata fetch skipped")
            return {}

        cid = normalize_cid(locator)
        try:
            return await self.metadata_source.fetch_metadata(cid)
        except Exception as e:
            logger.error(f"Failed to fetch metadata for {cid}: {e}")
            return {}

    async def resolve(self, locator: str) -> ResolvedContent:
        """
        Fetch content and metadata concurrently.

        Raises:
            ContentUnavailableError: If the content could not be fetched
        """
        resolved, metadata = await asyncio.gather(
            self.fetch_content(locator),
            self.fetch_metadata(locator),
        )
        resolved.metadata = metadata
        return resolved

    async def aclose(self):
        for provider in self.providers:
            await provider.aclose()
        if self.metadata_source is not None:
            await self.metadata_source.aclose()
