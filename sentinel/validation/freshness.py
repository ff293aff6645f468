"""
External freshness check.

Looks for the submission title in the public record via the Tavily search
API. Without an API key, falls back to a static list of marker terms for
landmark results that should never be claimed as new work.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

FAMOUS_MARKERS = ["crispr", "mrna", "qubit", "relativity", "string theory", "dna structure"]

TITLE_MATCH_PREFIX = 30
EXCERPT_LENGTH = 1000

CONFIDENCE_MATCH = 0.95
CONFIDENCE_SEARCH_CLEAR = 0.9
CONFIDENCE_MARKER_CLEAR = 0.8
CONFIDENCE_SEARCH_ERROR = 0.5


@dataclass
class FreshnessResult:
    """Outcome of the freshness check."""

    is_original: bool
    confidence: float
    reason: Optional[str] = None


def titles_match(candidate: str, target: str, prefix: int = TITLE_MATCH_PREFIX) -> bool:
    """
    Substring match of title prefixes in either direction.

    Empty titles never match.
    """
    candidate = (candidate or "").lower().strip()
    target = (target or "").lower().strip()
    if not candidate or not target:
        return False
    return target[:prefix] in candidate or candidate[:prefix] in target


class FreshnessOracle:
    """
    Checks whether a submission already exists in the public record.

    Example:
        ```python
        oracle = FreshnessOracle(api_key=config.tavily_api_key)
        result = await oracle.check("Senolytic cocktail in aged mice", content[:1000])
        if not result.is_original:
            print(result.reason)
        ```
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        search_url: str = "https://api.tavily.com/search",
        max_results: int = 5,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        self.api_key = api_key
        self.search_url = search_url
        self.max_results = max_results
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config, client: Optional[httpx.AsyncClient] = None) -> "FreshnessOracle":
        return cls(
            api_key=config.tavily_api_key,
            search_url=config.tavily_search_url,
            max_results=config.search_max_results,
            client=client,
            timeout=config.search_timeout,
        )

    @property
    def uses_live_search(self) -> bool:
        return bool(self.api_key)

    async def check(self, title: str, excerpt: str = "") -> FreshnessResult:
        """
        Check a submission for prior publication.

        Search transport errors never fail the submission; they degrade to
        ``is_original=True`` with reduced confidence.
        """
        if not self.uses_live_search:
            logger.info("No TAVILY_API_KEY configured; using famous marker check")
            return self.check_markers(title)

        logger.info(f"Grounded search for: \"{title[:50]}...\"")
        try:
            results = await self._search(title)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Tavily search failed: {e}")
            return FreshnessResult(
                is_original=True,
                confidence=CONFIDENCE_SEARCH_ERROR,
                reason="Search skipped due to technical error.",
            )

        matches = [r for r in results if titles_match(str(r.get("title") or ""), title)]
        if matches:
            top = matches[0]
            return FreshnessResult(
                is_original=False,
                confidence=CONFIDENCE_MATCH,
                reason=(
                    f"High Similarity Detected on Web: Matches found at "
                    f"{top.get('url', 'unknown source')} ({top.get('title')})"
                ),
            )

        return FreshnessResult(is_original=True, confidence=CONFIDENCE_SEARCH_CLEAR)

    def check_markers(self, title: str) -> FreshnessResult:
        """Static fallback: landmark terms in the title mean prior publication."""
        normalized = title.lower()
        for marker in FAMOUS_MARKERS:
            if marker in normalized:
                return FreshnessResult(
                    is_original=False,
                    confidence=CONFIDENCE_MATCH,
                    reason=(
                        "Evidence of Prior Publication: This research matches historical "
                        "breakthroughs or highly cited literature."
                    ),
                )
        return FreshnessResult(is_original=True, confidence=CONFIDENCE_MARKER_CLEAR)

    async def _search(self, title: str) -> List[Dict[str, Any]]:
        payload = {
            "api_key": self.api_key,
            "query": f"scientific research paper titled \"{title}\" published literature",
            "search_depth": "basic",
            "include_answer": False,
            "max_results": self.max_results,
        }
        response = await self.client.post(self.search_url, json=payload)
        response.raise_for_status()
        data = response.json()
        results = data.get("results") if isinstance(data, dict) else None
        return [r for r in (results or []) if isinstance(r, dict)]

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
