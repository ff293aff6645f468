"""
Research Sentinel - research submission evaluation and grant payouts.

Pipeline:
1. Content retrieval (IPFS gateways with fallback)
2. Ownership verification (wallet signature + pin metadata)
3. Duplicate detection (fingerprint registry of funded content)
4. Freshness check (web search, static marker fallback)
5. Deterministic scoring and funding recommendation
6. Grant payout (BIO token, SOL fallback)
"""

__version__ = "3.0.0"
