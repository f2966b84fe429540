"""
tests/unit/test_gateway.py - Tests for chains/gateway.py

The RPC provider is an AsyncMock answering eth_call by (to, selector).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chains import abi
from chains.cache import TTLCache
from chains.gateway import RPCDataGateway, pair_cache_key
from chains.providers import RPCResponse
from core.constants import CacheCategory, ZERO_ADDRESS
from core.exceptions import ErrorCode, TokenNotFoundError, UpstreamUnavailableError
from core.time import ManualClock


FACTORY = "0xcA143Ce32Fe78f1f7019d7d551a6402fC5350c73"
CAKE = "0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82"
WBNB = "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c"
PAIR = "0x0eD7e52944161450477ee417DE9Cd3a859b14fD0"


def word(value: int) -> str:
    return format(value, "064x")


def string_result(text: str) -> str:
    data = text.encode()
    return "0x" + word(32) + word(len(data)) + data.hex().ljust(64, "0")


def address_result(address: str) -> str:
    return "0x" + abi.encode_address(address)


class FakeChain:
    """Answers eth_call for one ERC20, one factory and one pair."""

    def __init__(self):
        self.pair_for_factory = PAIR
        self.reserves = (2_000_000 * 10**18, 10_000 * 10**18, 1_700_000_000)
        self.calls: list[tuple[str, str]] = []

    async def eth_call(self, to: str, data: str, block: str = "latest") -> RPCResponse:
        self.calls.append((to, data))
        selector = data[2:10]
        if to == FACTORY and selector == abi.SELECTOR_GET_PAIR:
            return RPCResponse(address_result(self.pair_for_factory), 5, "mock")
        if to == PAIR:
            if selector == abi.SELECTOR_GET_RESERVES:
                r0, r1, ts = self.reserves
                return RPCResponse("0x" + word(r0) + word(r1) + word(ts), 5, "mock")
            if selector == abi.SELECTOR_TOKEN0:
                return RPCResponse(address_result(CAKE), 5, "mock")
            if selector == abi.SELECTOR_TOKEN1:
                return RPCResponse(address_result(WBNB), 5, "mock")
        if to == CAKE:
            results = {
                abi.SELECTOR_NAME: string_result("PancakeSwap Token"),
                abi.SELECTOR_SYMBOL: string_result("Cake"),
                abi.SELECTOR_DECIMALS: "0x" + word(18),
                abi.SELECTOR_TOTAL_SUPPLY: "0x" + word(400_000_000 * 10**18),
            }
            return RPCResponse(results[selector], 5, "mock")
        # EOA or unknown contract: empty return data
        return RPCResponse("0x", 5, "mock")


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def gateway(chain, clock) -> RPCDataGateway:
    provider = MagicMock()
    provider.eth_call = AsyncMock(side_effect=chain.eth_call)
    return RPCDataGateway(provider, FACTORY, TTLCache(clock=clock))


class TestPairCacheKey:

    def test_order_independent(self):
        assert pair_cache_key(CAKE, WBNB) == pair_cache_key(WBNB, CAKE)

    def test_lower_cased(self):
        assert pair_cache_key(CAKE, WBNB) == pair_cache_key(CAKE.lower(), WBNB.upper().replace("0X", "0x"))


class TestTokenInfo:

    @pytest.mark.asyncio
    async def test_fetch(self, gateway):
        info = await gateway.get_token_info(CAKE)

        assert info.symbol == "Cake"
        assert info.name == "PancakeSwap Token"
        assert info.decimals == 18
        assert info.total_supply == 400_000_000 * 10**18

    @pytest.mark.asyncio
    async def test_cached(self, gateway, chain):
        await gateway.get_token_info(CAKE)
        calls = len(chain.calls)
        await gateway.get_token_info(CAKE.lower())

        assert len(chain.calls) == calls

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self, gateway, chain, clock):
        await gateway.get_token_info(CAKE)
        calls = len(chain.calls)
        clock.advance(300)
        await gateway.get_token_info(CAKE)

        assert len(chain.calls) == calls + 4

    @pytest.mark.asyncio
    async def test_not_a_token(self, gateway):
        with pytest.raises(TokenNotFoundError):
            await gateway.get_token_info("0x000000000000000000000000000000000000dEaD")

    @pytest.mark.asyncio
    async def test_rpc_failure_propagates(self, chain, clock):
        provider = MagicMock()
        provider.eth_call = AsyncMock(side_effect=UpstreamUnavailableError("all endpoints down"))
        gateway = RPCDataGateway(provider, FACTORY, TTLCache(clock=clock))

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await gateway.get_token_info(CAKE)
        assert exc_info.value.code == ErrorCode.UPSTREAM_UNAVAILABLE


class TestPairAddress:

    @pytest.mark.asyncio
    async def test_found_and_cached(self, gateway, chain):
        assert await gateway.get_pair_address(CAKE, WBNB) == PAIR.lower()
        assert await gateway.get_pair_address(WBNB, CAKE) == PAIR.lower()

        factory_calls = [c for c in chain.calls if c[0] == FACTORY]
        assert len(factory_calls) == 1

    @pytest.mark.asyncio
    async def test_missing_pair_not_cached(self, gateway, chain):
        chain.pair_for_factory = ZERO_ADDRESS

        assert await gateway.get_pair_address(CAKE, WBNB) is None
        assert not gateway.cache.is_valid(pair_cache_key(CAKE, WBNB), CacheCategory.PAIR_ADDRESS)

        chain.pair_for_factory = PAIR
        assert await gateway.get_pair_address(CAKE, WBNB) == PAIR.lower()


class TestReserves:

    @pytest.mark.asyncio
    async def test_oriented_to_caller(self, gateway):
        forward = await gateway.get_reserves(PAIR, CAKE, WBNB)
        backward = await gateway.get_reserves(PAIR, WBNB, CAKE)

        assert forward.reserve_a == 2_000_000 * 10**18
        assert forward.reserve_b == 10_000 * 10**18
        assert backward.reserve_a == 10_000 * 10**18
        assert backward.reserve_b == 2_000_000 * 10**18
        assert forward.block_timestamp == 1_700_000_000

    @pytest.mark.asyncio
    async def test_cached_for_30_seconds(self, gateway, chain, clock):
        await gateway.get_reserves(PAIR, CAKE, WBNB)
        chain.reserves = (1, 1, 1)

        cached = await gateway.get_reserves(PAIR, CAKE, WBNB)
        assert cached.reserve_a == 2_000_000 * 10**18

        clock.advance(30)
        fresh = await gateway.get_reserves(PAIR, CAKE, WBNB)
        assert fresh.reserve_a == 1

    @pytest.mark.asyncio
    async def test_bypass_cache(self, gateway, chain):
        await gateway.get_reserves(PAIR, CAKE, WBNB)
        chain.reserves = (5, 7, 1)

        fresh = await gateway.get_reserves(PAIR, CAKE, WBNB, use_cache=False)
        assert (fresh.reserve_a, fresh.reserve_b) == (5, 7)

    @pytest.mark.asyncio
    async def test_foreign_token(self, gateway):
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await gateway.get_reserves(PAIR, "0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56", WBNB)
        assert exc_info.value.code == ErrorCode.UPSTREAM_BAD_RESPONSE
