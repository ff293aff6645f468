"""
Shared fixtures and fakes for Research Sentinel tests.
"""

import asyncio
import base64
from typing import Any, Dict, List, Optional

import pytest
from solders.keypair import Keypair

from sentinel.config import SentinelConfig
from sentinel.coordinator import EventBroadcaster, RecordStore, SubmissionCoordinator
from sentinel.core.retry import RetryStrategy
from sentinel.models.submission import PayoutInstrumentKind
from sentinel.payout.base import PayoutError, PayoutInstrument, PayoutReceipt
from sentinel.payout.orchestrator import PayoutOrchestrator
from sentinel.retrieval.base import ContentProvider, MetadataSource, ProviderError
from sentinel.retrieval.resolver import ContentResolver
from sentinel.validation.fingerprint import FingerprintRegistry
from sentinel.validation.freshness import FreshnessOracle
from sentinel.validation.ownership import canonical_claim_message


# ============================================================================
# Content
# ============================================================================

# reproducibility 25, methodology 25, novelty 25, impact 10 → trust 85
FUNDABLE_CONTENT = (
    "We release an open dataset on IPFS with a public repository, the full protocol "
    "and supplementary files. A randomized double-blind placebo-controlled cohort "
    "study with statistical analysis. This novel breakthrough is the first "
    "unprecedented new approach of its kind."
)

# every sub-score 13 → trust 52
LOW_SIGNAL_CONTENT = "A randomized trial using a novel dataset for clinical use."


# ============================================================================
# Fakes
# ============================================================================

class FakeProvider(ContentProvider):
    """Content provider returning fixed content or failing."""

    def __init__(self, name: str = "fake", content: Optional[str] = None, delay: float = 0.0):
        self.name = name
        self.content = content
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, cid: str) -> str:
        self.calls.append(cid)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.content is None:
            raise ProviderError(self.name, "unreachable")
        return self.content


class FakeMetadataSource(MetadataSource):
    def __init__(self, metadata: Optional[Dict[str, Any]] = None):
        self.metadata = metadata or {}

    async def fetch_metadata(self, cid: str) -> Dict[str, Any]:
        return dict(self.metadata)


class FakeInstrument(PayoutInstrument):
    """Payout instrument recording transfers; optionally failing."""

    def __init__(self, kind: PayoutInstrumentKind, fail: bool = False, delay: float = 0.0):
        self.kind = kind
        self.fail = fail
        self.delay = delay
        self.transfers: List[Dict[str, str]] = []

    @property
    def amount(self) -> float:
        return 100.0 if self.kind == PayoutInstrumentKind.BIO else 0.05

    async def transfer(self, recipient: str, memo: str) -> PayoutReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise PayoutError(self.kind.value, "simulated failure")
        self.transfers.append({"recipient": recipient, "memo": memo})
        return PayoutReceipt(
            signature=f"{self.kind.value.lower()}-tx-{len(self.transfers)}",
            instrument=self.kind,
            amount=self.amount,
            recipient=recipient,
            memo=memo,
        )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def keypair():
    """Claimant keypair."""
    return Keypair()


@pytest.fixture
def wallet(keypair):
    return str(keypair.pubkey())


@pytest.fixture
def sign_claim():
    """Sign the canonical claim message for a locator; returns base64."""
    def _sign(keypair: Keypair, locator: str) -> str:
        signature = keypair.sign_message(canonical_claim_message(locator).encode("utf-8"))
        return base64.b64encode(bytes(signature)).decode("ascii")
    return _sign


@pytest.fixture
def registry(tmp_path):
    return FingerprintRegistry(tmp_path / "funded_hashes.json")


@pytest.fixture
def primary():
    return FakeInstrument(PayoutInstrumentKind.BIO)


@pytest.fixture
def fallback():
    return FakeInstrument(PayoutInstrumentKind.SOL)


@pytest.fixture
def make_coordinator(registry, primary, fallback):
    """
    Build a coordinator around fake providers and instruments.

    Keyword arguments override the content, metadata, instruments or
    provider list.
    """
    def _make(
        content: Optional[str] = FUNDABLE_CONTENT,
        metadata: Optional[Dict[str, Any]] = None,
        providers: Optional[List[ContentProvider]] = None,
        instruments: Optional[List[PayoutInstrument]] = None,
        oracle: Optional[FreshnessOracle] = None,
    ) -> SubmissionCoordinator:
        resolver = ContentResolver(
            providers or [FakeProvider("primary-gateway", content)],
            metadata_source=FakeMetadataSource(metadata),
            retry=RetryStrategy(max_retries=0, base_delay=0.0),
        )
        return SubmissionCoordinator(
            resolver=resolver,
            registry=registry,
            oracle=oracle or FreshnessOracle(api_key=None),
            orchestrator=PayoutOrchestrator(instruments or [primary, fallback]),
            store=RecordStore(),
            broadcaster=EventBroadcaster(queue_size=100),
        )
    return _make


@pytest.fixture
def test_config(tmp_path):
    """Configuration isolated from the environment and .env files."""
    return SentinelConfig(
        _env_file=None,
        funded_registry_path=str(tmp_path / "funded_hashes.json"),
        rate_limit_max=5,
        rate_limit_window_seconds=900,
    )


@pytest.fixture
def fundable_content():
    return FUNDABLE_CONTENT


@pytest.fixture
def low_signal_content():
    return LOW_SIGNAL_CONTENT


@pytest.fixture
def make_instrument():
    """Factory for fake payout instruments."""
    def _make(kind: PayoutInstrumentKind, fail: bool = False, delay: float = 0.0) -> FakeInstrument:
        return FakeInstrument(kind, fail=fail, delay=delay)
    return _make


@pytest.fixture
def make_provider():
    """Factory for fake content providers (content=None fails every fetch)."""
    def _make(name: str, content: Optional[str] = None, delay: float = 0.0) -> FakeProvider:
        return FakeProvider(name, content, delay=delay)
    return _make
