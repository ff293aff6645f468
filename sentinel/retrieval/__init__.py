"""Content retrieval from IPFS gateways."""

from sentinel.retrieval.base import (
    ContentProvider,
    ContentUnavailableError,
    MetadataSource,
    ProviderError,
    ResolvedContent,
    normalize_cid,
)
from sentinel.retrieval.gateways import (
    HttpGateway,
    PinataGateway,
    PinataMetadataSource,
    PublicGateway,
)
from sentinel.retrieval.resolver import ContentResolver

__all__ = [
    "ContentProvider",
    "ContentUnavailableError",
    "MetadataSource",
    "ProviderError",
    "ResolvedContent",
    "normalize_cid",
    "HttpGateway",
    "PinataGateway",
    "PinataMetadataSource",
    "PublicGateway",
    "ContentResolver",
]
