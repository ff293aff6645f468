"""
IPFS gateway providers.

- PinataGateway: dedicated gateway authenticated with a Pinata JWT
- PublicGateway: unauthenticated public gateway (dweb.link, ipfs.io, ...)
- PinataMetadataSource: pin key-value metadata via the Pinata pin list API
"""

import logging
from typing import Any, Dict, Optional

import httpx

from sentinel.retrieval.base import ContentProvider, MetadataSource, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class HttpGateway(ContentProvider):
    """Fetches ``<base_url><cid>`` over HTTP."""

    def __init__(
        self,
        base_url: str,
        name: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        """
        Initialize gateway.

        Args:
            base_url: Gateway prefix ending in ``/ipfs/``
            name: Display name used in logs and errors (default: base_url)
            headers: Extra request headers
            client: Shared HTTP client; one is created when omitted
            timeout: Request timeout in seconds
        """
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.name = name or self.base_url
        self.headers = headers or {}
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch(self, cid: str) -> str:
        url = f"{self.base_url}{cid}"
        try:
            response = await self.client.get(url, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderError(self.name, str(e) or e.__class__.__name__, raw_error=e) from e

        body = response.text
        if not body:
            raise ProviderError(self.name, f"Empty response from {url}")

        logger.info(f"Fetched {len(body)} bytes from {self.name}")
        return body

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()


class PinataGateway(HttpGateway):
    """Authenticated Pinata dedicated gateway."""

    def __init__(
        self,
        jwt: str,
        base_url: str = "https://gateway.pinata.cloud/ipfs/",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        super().__init__(
            base_url,
            name="pinata",
            headers={"Authorization": f"Bearer {jwt}"},
            client=client,
            timeout=timeout,
        )


class PublicGateway(HttpGateway):
    """Unauthenticated public gateway."""
    pass


class PinataMetadataSource(MetadataSource):
    """Reads pin key-values, which carry the uploader's declared wallet."""

    name = "pinata-metadata"

    def __init__(
        self,
        jwt: str,
        api_url: str = "https://api.pinata.cloud",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        self.api_url = api_url.rstrip("/")
        self.headers = {"Authorization": f"Bearer {jwt}"}
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_metadata(self, cid: str) -> Dict[str, Any]:
        response = await self.client.get(
            f"{self.api_url}/data/pinList",
            params={"cid": cid, "status": "pinned"},
            headers=self.headers,
        )
        response.raise_for_status()

        rows = (response.json() or {}).get("rows") or []
        if rows:
            keyvalues = (rows[0].get("metadata") or {}).get("keyvalues")
            if isinstance(keyvalues, dict):
                logger.info(f"Fetched Pinata metadata for {cid}")
                return keyvalues
        return {}

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
