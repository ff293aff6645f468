"""
Ownership verification for grant claims.

A claimant proves intent by signing the canonical claim message with the
wallet it claims. Ownership of the content is then checked against the wallet
declared by the uploader, first in pin metadata and then inside the content
itself when it is JSON.

A bad signature fails the submission. Missing ownership metadata does not:
the signature alone is accepted as proof of claim intent and the stage is
reported as skipped.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from solders.pubkey import Pubkey
from solders.signature import Signature

from sentinel.models.submission import StageStatus

logger = logging.getLogger(__name__)

CLAIM_MESSAGE_PREFIX = "Claiming grant for content: "

METADATA_WALLET_KEYS = ("author_wallet", "reward_address", "wallet", "Wallet address")
CONTENT_WALLET_KEYS = ("author_wallet", "reward_address", "wallet", "authorWallet")


def canonical_claim_message(locator: str) -> str:
    """The message a claimant signs for a content locator."""
    return f"{CLAIM_MESSAGE_PREFIX}{locator}"


def is_valid_address(address: Optional[str]) -> bool:
    """Check that ``address`` is a base58 encoded 32-byte public key."""
    if not address:
        return False
    try:
        Pubkey.from_string(address)
        return True
    except Exception:
        return False


def verify_signature(signature_b64: str, message: str, public_key: str) -> bool:
    """
    Verify a detached ed25519 signature.

    Args:
        signature_b64: Base64 encoded 64-byte signature
        message: Signed message (UTF-8)
        public_key: Base58 signer public key

    Returns:
        True if the signature is valid; malformed inputs return False
    """
    try:
        signature_bytes = base64.b64decode(signature_b64, validate=True)
        signature = Signature.from_bytes(signature_bytes)
        pubkey = Pubkey.from_string(public_key)
        return signature.verify(pubkey, message.encode("utf-8"))
    except Exception as e:
        logger.error(f"Signature verification error: {e}")
        return False


@dataclass
class OwnershipResult:
    """Outcome of ownership verification."""

    status: StageStatus
    reason: str = ""
    declared_wallet: Optional[str] = None
    source: Optional[str] = None  # "metadata" or "content"

    @property
    def failed(self) -> bool:
        return self.status == StageStatus.FAILED


def find_metadata_wallet(claimant: str, metadata: Dict[str, Any]) -> Optional[str]:
    """
    Find the wallet declared in pin metadata.

    The exact-value pass runs first: any value equal to the claimant confirms
    it. Only when that finds nothing are the well-known keys consulted, which
    may yield a different wallet and therefore a mismatch.
    """
    if not metadata:
        return None

    for value in metadata.values():
        if isinstance(value, str) and value.strip() == claimant:
            return value.strip()

    for key in METADATA_WALLET_KEYS:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def find_content_wallet(content: str) -> Optional[str]:
    """Find a wallet declared inside JSON content, if the content is JSON."""
    try:
        data = json.loads(content)
    except (TypeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    for key in CONTENT_WALLET_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class OwnershipVerifier:
    """Decides the ownership stage for a submission."""

    def verify(
        self,
        claimant: Optional[str],
        proof: Optional[str],
        locator: str,
        metadata: Optional[Dict[str, Any]] = None,
        content: str = ""
    ) -> OwnershipResult:
        """
        Verify a claim.

        Args:
            claimant: Claimed wallet address (None when no claim was made)
            proof: Base64 signature over the canonical claim message
            locator: Content locator as submitted
            metadata: Pin key-value metadata (may be empty)
            content: Raw content, searched when metadata declares no wallet

        Returns:
            OwnershipResult with status VERIFIED, FAILED or SKIPPED
        """
        if not claimant:
            return OwnershipResult(StageStatus.SKIPPED, "No ownership claim submitted.")

        message = canonical_claim_message(locator)
        if not proof or not verify_signature(proof, message, claimant):
            logger.error(f"Invalid signature from {claimant} for {locator}")
            return OwnershipResult(
                StageStatus.FAILED,
                "Invalid cryptographic signature. Ownership verification failed.",
            )

        declared = find_metadata_wallet(claimant, metadata or {})
        source = "metadata" if declared else None
        if declared is None:
            declared = find_content_wallet(content)
            source = "content" if declared else None

        if declared is None:
            logger.info(f"No ownership metadata for {locator}; baseline signature check used")
            return OwnershipResult(
                StageStatus.SKIPPED,
                "No ownership metadata found; signature accepted as proof of claim.",
            )

        if declared != claimant:
            logger.error(f"Ownership mismatch: declared {declared} vs signer {claimant}")
            return OwnershipResult(
                StageStatus.FAILED,
                (
                    f"Absolute Ownership Verification Failed: The wallet address linked to "
                    f"this CID ({declared}) does not match the claimant wallet ({claimant}). "
                    f"Unauthorized claim attempt detected."
                ),
                declared_wallet=declared,
                source=source,
            )

        logger.info(f"Ownership verified via {source} for {locator}")
        return OwnershipResult(
            StageStatus.VERIFIED,
            f"Ownership verified via {source}.",
            declared_wallet=declared,
            source=source,
        )
