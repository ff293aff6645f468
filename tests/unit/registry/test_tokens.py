"""
Tests for partner DAO token lists.
"""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from solders.keypair import Keypair

from sentinel.registry import TokenListClient, TokenSource
from sentinel.registry.tokens import DaoToken, is_dao_token

BIO_LIST_URL = "https://tokens.test/bio.json"
BIDDING_LIST_URL = "https://tokens.test/bidding.json"

VITA_MINT = str(Keypair().pubkey())
HAIR_MINT = str(Keypair().pubkey())

BIO_LIST = {
    "name": "BIO Token List",
    "tokens": [
        {"chainId": 101, "address": VITA_MINT, "name": "VitaDAO Token", "symbol": "VITA",
         "logoURI": "https://logo.test/vita.png"},
        {"chainId": 101, "address": str(Keypair().pubkey()), "name": "Wrapped SOL", "symbol": "WSOL"},
        {"chainId": 1, "address": "0xabc", "name": "CryoDAO", "symbol": "CRYO"},
        "not-a-token",
    ],
}
BIDDING_LIST = {
    "tokens": [
        {"chainId": 101, "address": HAIR_MINT, "name": "Hair", "symbol": "HAIR"},
        {"chainId": 42161, "address": str(Keypair().pubkey()), "name": "PsyDAO", "symbol": "PSY"},
    ],
}


def make_client(handler, ledger=None, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TokenListClient(BIO_LIST_URL, BIDDING_LIST_URL, ledger=ledger, client=client, **kwargs)


def serve_lists(requests=None):
    def handler(request):
        if requests is not None:
            requests.append(str(request.url))
        if str(request.url) == BIO_LIST_URL:
            return httpx.Response(200, json=BIO_LIST)
        return httpx.Response(200, json=BIDDING_LIST)
    return handler


@pytest.fixture
def ledger():
    ledger = Mock()
    ledger.get_mint_info = AsyncMock(return_value={"decimals": 18, "supply": 64_298_880, "isInitialized": True})
    return ledger


@pytest.mark.parametrize("name,symbol,expected", [
    ("VitaDAO Token", "VITA", True),
    ("Something", "VITA", True),
    ("Long COVID Labs", "LCL", True),
    ("Quantum Biology DAO", "QBIO", True),
    ("Wrapped SOL", "WSOL", False),
    (None, None, False),
])
def test_is_dao_token(name, symbol, expected):
    assert is_dao_token(name, symbol) is expected


class TestGetTokens:

    async def test_merges_partner_tokens_in_list_order(self):
        tokens, updated_at = await make_client(serve_lists()).get_tokens()

        assert [t.symbol for t in tokens] == ["VITA", "CRYO", "HAIR", "PSY"]
        assert [t.source for t in tokens] == [
            TokenSource.BIO_LIST, TokenSource.BIO_LIST, TokenSource.BIDDING_LIST, TokenSource.BIDDING_LIST,
        ]
        assert updated_at > 0
        assert tokens[0].to_dict() == {
            "name": "VitaDAO Token",
            "symbol": "VITA",
            "address": VITA_MINT,
            "source": "bio-token-list",
            "chainId": 101,
            "logoURI": "https://logo.test/vita.png",
        }

    async def test_cached_within_ttl(self):
        requests = []
        client = make_client(serve_lists(requests))

        await client.get_tokens()
        await client.get_tokens()

        assert len(requests) == 2

    async def test_refetched_after_ttl(self):
        requests = []
        client = make_client(serve_lists(requests), cache_ttl=0.0)

        await client.get_tokens()
        await client.get_tokens()

        assert len(requests) == 4

    async def test_fetch_failure_uses_fallback(self, caplog):
        client = make_client(lambda request: httpx.Response(503))

        tokens, _ = await client.get_tokens()

        assert [t.symbol for t in tokens] == ["VITA", "HAIR", "VALLEY", "ATHENA"]
        assert all(t.source == TokenSource.FALLBACK and t.address == "" for t in tokens)
        assert "fallback" in caplog.text

    async def test_invalid_json_uses_fallback(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

        tokens, _ = await client.get_tokens()

        assert tokens[0].source == TokenSource.FALLBACK

    async def test_no_partner_tokens_uses_fallback(self):
        client = make_client(lambda request: httpx.Response(200, json={"tokens": []}))

        tokens, _ = await client.get_tokens()

        assert len(tokens) == 4


class TestOnChain:

    async def test_statuses(self, ledger):
        client = make_client(serve_lists(), ledger=ledger)

        tokens, _ = await client.get_tokens_with_onchain()
        statuses = {t.symbol: t.on_chain.to_dict() for t in tokens}

        assert statuses == {
            "VITA": {"exists": True, "decimals": 18, "supply": 64_298_880},
            "CRYO": {"exists": False, "error": "evm-address"},
            "HAIR": {"exists": True, "decimals": 18, "supply": 64_298_880},
            "PSY": {"exists": False, "error": "unsupported-chain"},
        }
        assert ledger.get_mint_info.await_count == 2

    async def test_missing_mint(self, ledger):
        ledger.get_mint_info.side_effect = RuntimeError("could not find mint")
        client = make_client(serve_lists(), ledger=ledger)

        status = await client.on_chain_status(DaoToken(name="Hair", symbol="HAIR", address=HAIR_MINT,
                                                       source=TokenSource.BIDDING_LIST))

        assert status.to_dict() == {"exists": False, "error": "not-found"}

    @pytest.mark.parametrize("address,error", [
        ("", "invalid-address"),
        ("not base58!", "invalid-address"),
        ("0x1234", "evm-address"),
    ])
    async def test_unusable_addresses(self, ledger, address, error):
        client = make_client(serve_lists(), ledger=ledger)
        token = DaoToken(name="VitaDAO", symbol="VITA", address=address, source=TokenSource.FALLBACK)

        assert (await client.on_chain_status(token)).error.value == error
        ledger.get_mint_info.assert_not_awaited()

    async def test_without_ledger(self):
        client = make_client(serve_lists())
        token = DaoToken(name="VitaDAO", symbol="VITA", address=VITA_MINT, source=TokenSource.BIO_LIST)

        assert (await client.on_chain_status(token)).error.value == "no-ledger"

    async def test_fallback_tokens_not_mutated(self, ledger):
        client = make_client(lambda request: httpx.Response(503), ledger=ledger)

        tokens, _ = await client.get_tokens_with_onchain()
        cached, _ = await client.get_tokens()

        assert all(t.on_chain is not None for t in tokens)
        assert all(t.on_chain is None for t in cached)
