"""
Trust checks run before scoring.

- Ownership: wallet signature and declared-wallet matching
- Fingerprint: duplicate detection against funded content
- Freshness: prior publication check via web search
"""

from sentinel.validation.fingerprint import FingerprintRegistry, fingerprint, normalize_content
from sentinel.validation.freshness import FreshnessOracle, FreshnessResult
from sentinel.validation.ownership import (
    OwnershipResult,
    OwnershipVerifier,
    canonical_claim_message,
    is_valid_address,
    verify_signature,
)

__all__ = [
    "FingerprintRegistry",
    "fingerprint",
    "normalize_content",
    "FreshnessOracle",
    "FreshnessResult",
    "OwnershipResult",
    "OwnershipVerifier",
    "canonical_claim_message",
    "is_valid_address",
    "verify_signature",
]
