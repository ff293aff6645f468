"""
Base interfaces for content providers.

A provider fetches raw submission content for a content id; a metadata
source fetches the key-value metadata attached to a pin. The resolver walks
an ordered list of providers and never branches on a concrete type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ProviderError(Exception):
    """Raised by a provider when a single fetch attempt fails."""

    def __init__(self, provider: str, message: str, raw_error: Optional[Exception] = None):
        self.provider = provider
        self.raw_error = raw_error
        super().__init__(f"[{provider}] {message}")


class ContentUnavailableError(Exception):
    """Raised when every provider failed for a content id."""

    def __init__(self, cid: str, failures: Dict[str, str]):
        self.cid = cid
        self.failures = failures
        names = ", ".join(failures) or "no providers configured"
        super().__init__(f"All IPFS gateways failed for CID: {cid} ({names})")


def normalize_cid(locator: str) -> str:
    """Strip the ``ipfs://`` scheme and surrounding whitespace."""
    return locator.replace("ipfs://", "").strip()


@dataclass
class ResolvedContent:
    """Content and metadata resolved for one submission."""

    cid: str
    content: str
    provider: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class ContentProvider(ABC):
    """A remote source of submission bytes."""

    name: str = "provider"

    @abstractmethod
    async def fetch(self, cid: str) -> str:
        """
        Fetch content for a normalized content id.

        Raises:
            ProviderError: If the fetch failed
        """
        pass

    async def aclose(self):
        """Release network resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class MetadataSource(ABC):
    """A remote source of pin key-value metadata."""

    name: str = "metadata"

    @abstractmethod
    async def fetch_metadata(self, cid: str) -> Dict[str, Any]:
        """Fetch metadata; may raise on transport errors."""
        pass

    async def aclose(self):
        pass
