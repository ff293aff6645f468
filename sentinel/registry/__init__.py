"""Funding destination registry and partner token lists."""

from sentinel.registry.partners import PARTNER_REGISTRY, Partner, get_partner, list_partners
from sentinel.registry.tokens import DaoToken, OnChainStatus, TokenListClient, TokenSource

__all__ = [
    "PARTNER_REGISTRY",
    "Partner",
    "get_partner",
    "list_partners",
    "DaoToken",
    "OnChainStatus",
    "TokenListClient",
    "TokenSource",
]
