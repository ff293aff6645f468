"""
Tests for ownership verification.
"""

import base64
import json

import pytest
from solders.keypair import Keypair

from sentinel.models.submission import StageStatus
from sentinel.validation.ownership import (
    OwnershipVerifier,
    canonical_claim_message,
    find_content_wallet,
    find_metadata_wallet,
    is_valid_address,
    verify_signature,
)

LOCATOR = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


@pytest.fixture
def verifier():
    return OwnershipVerifier()


@pytest.fixture
def other_wallet():
    return str(Keypair().pubkey())


class TestSignature:

    def test_canonical_message(self):
        assert canonical_claim_message("bafy") == "Claiming grant for content: bafy"

    def test_valid_signature(self, keypair, wallet, sign_claim):
        proof = sign_claim(keypair, LOCATOR)
        assert verify_signature(proof, canonical_claim_message(LOCATOR), wallet)

    def test_signature_over_other_message(self, keypair, wallet, sign_claim):
        proof = sign_claim(keypair, "some-other-cid")
        assert not verify_signature(proof, canonical_claim_message(LOCATOR), wallet)

    def test_signature_by_other_key(self, keypair, sign_claim, other_wallet):
        proof = sign_claim(keypair, LOCATOR)
        assert not verify_signature(proof, canonical_claim_message(LOCATOR), other_wallet)

    @pytest.mark.parametrize("proof", ["not base64!!", base64.b64encode(b"short").decode(), ""])
    def test_malformed_signature(self, wallet, proof):
        assert not verify_signature(proof, canonical_claim_message(LOCATOR), wallet)

    def test_malformed_public_key(self, keypair, sign_claim):
        proof = sign_claim(keypair, LOCATOR)
        assert not verify_signature(proof, canonical_claim_message(LOCATOR), "not-a-key")

    def test_address_validation(self, wallet):
        assert is_valid_address(wallet)
        assert not is_valid_address("Unknown Researcher")
        assert not is_valid_address("")
        assert not is_valid_address(None)


class TestWalletDiscovery:

    def test_exact_value_pass_wins_over_known_keys(self, wallet, other_wallet):
        metadata = {"author_wallet": other_wallet, "co_signer": f"  {wallet} "}
        assert find_metadata_wallet(wallet, metadata) == wallet

    def test_known_keys_used_when_no_exact_value(self, wallet, other_wallet):
        metadata = {"project": "longevity", "reward_address": other_wallet}
        assert find_metadata_wallet(wallet, metadata) == other_wallet

    def test_known_key_order(self, wallet):
        metadata = {"wallet": "third", "reward_address": "second", "Wallet address": "fourth"}
        assert find_metadata_wallet(wallet, metadata) == "second"

    def test_empty_metadata(self, wallet):
        assert find_metadata_wallet(wallet, {}) is None
        assert find_metadata_wallet(wallet, {"note": 12}) is None

    def test_content_wallet(self, wallet):
        assert find_content_wallet(json.dumps({"authorWallet": wallet})) == wallet
        assert find_content_wallet("plain text paper") is None
        assert find_content_wallet(json.dumps([wallet])) is None


class TestOwnershipVerifier:

    def test_no_claim_skipped(self, verifier):
        result = verifier.verify(None, None, LOCATOR)
        assert result.status == StageStatus.SKIPPED

    def test_bad_signature_fails(self, verifier, wallet):
        result = verifier.verify(wallet, base64.b64encode(bytes(64)).decode(), LOCATOR)

        assert result.failed
        assert result.reason == "Invalid cryptographic signature. Ownership verification failed."

    def test_metadata_match_verified(self, verifier, keypair, wallet, sign_claim):
        result = verifier.verify(wallet, sign_claim(keypair, LOCATOR), LOCATOR, metadata={"wallet": wallet})

        assert result.status == StageStatus.VERIFIED
        assert result.source == "metadata"
        assert result.declared_wallet == wallet

    def test_metadata_mismatch_fails(self, verifier, keypair, wallet, sign_claim, other_wallet):
        result = verifier.verify(
            wallet, sign_claim(keypair, LOCATOR), LOCATOR, metadata={"author_wallet": other_wallet}
        )

        assert result.failed
        assert result.reason.startswith("Absolute Ownership Verification Failed")
        assert other_wallet in result.reason

    def test_ambiguous_metadata_confirms_claimant(self, verifier, keypair, wallet, sign_claim, other_wallet):
        metadata = {"author_wallet": other_wallet, "Wallet address": wallet}
        result = verifier.verify(wallet, sign_claim(keypair, LOCATOR), LOCATOR, metadata=metadata)

        assert result.status == StageStatus.VERIFIED

    def test_content_fallback(self, verifier, keypair, wallet, sign_claim):
        content = json.dumps({"title": "Paper", "author_wallet": wallet})
        result = verifier.verify(wallet, sign_claim(keypair, LOCATOR), LOCATOR, content=content)

        assert result.status == StageStatus.VERIFIED
        assert result.source == "content"

    def test_content_ignored_when_metadata_declares_wallet(
        self, verifier, keypair, wallet, sign_claim, other_wallet
    ):
        content = json.dumps({"author_wallet": wallet})
        result = verifier.verify(
            wallet, sign_claim(keypair, LOCATOR), LOCATOR,
            metadata={"wallet": other_wallet}, content=content,
        )

        assert result.failed

    def test_nothing_declared_skipped(self, verifier, keypair, wallet, sign_claim):
        result = verifier.verify(wallet, sign_claim(keypair, LOCATOR), LOCATOR, content="plain text")
        assert result.status == StageStatus.SKIPPED
