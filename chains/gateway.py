"""
chains/gateway.py - Data gateway: token metadata, pair lookup, reserves.

The analytics core depends only on the DataGateway protocol. RPCDataGateway
implements it with eth_call through RPCProvider and keeps reads in a
TTLCache (token info 5 min, pair address 10 min, reserves 30 s).
"""

import asyncio
from typing import Protocol

from chains import abi
from chains.cache import TTLCache
from chains.providers import RPCProvider
from core.constants import CacheCategory, MAX_TOKEN_DECIMALS, MAX_UINT32, ZERO_ADDRESS
from core.exceptions import AmmError, ErrorCode, TokenNotFoundError, UpstreamUnavailableError
from core.logging import get_logger
from core.models import ReserveSnapshot, TokenInfo

logger = get_logger(__name__)


class DataGateway(Protocol):
    """Read interface the engine consumes."""

    async def get_token_info(self, address: str) -> TokenInfo:
        ...

    async def get_pair_address(self, token_a: str, token_b: str) -> str | None:
        ...

    async def get_reserves(
        self,
        pair_address: str,
        token_a: str,
        token_b: str,
        use_cache: bool = True,
    ) -> ReserveSnapshot:
        ...


def pair_cache_key(token_a: str, token_b: str) -> str:
    """Order-independent cache key for a token pair."""
    a, b = sorted((token_a.lower(), token_b.lower()))
    return f"{a}-{b}"


class RPCDataGateway:
    """
    DataGateway backed by a JSON-RPC endpoint.

    Usage:
        gateway = RPCDataGateway(provider, factory_address, TTLCache())
        info = await gateway.get_token_info(cake)
    """

    def __init__(
        self,
        provider: RPCProvider,
        factory_address: str,
        cache: TTLCache | None = None,
    ):
        self.provider = provider
        self.factory_address = factory_address
        self.cache = cache or TTLCache()

    async def _call(self, to: str, data: str) -> str:
        response = await self.provider.eth_call(to=to, data=data)
        return response.result

    # -------------------------------------------------------------------------
    # Token metadata
    # -------------------------------------------------------------------------

    async def get_token_info(self, address: str) -> TokenInfo:
        """
        Fetch ERC20 name/symbol/decimals/totalSupply.

        Raises:
            TokenNotFoundError: address does not answer as an ERC20
            UpstreamUnavailableError: RPC failure
        """
        cached = self.cache.get(address, CacheCategory.TOKEN_INFO)
        if cached is not None:
            return cached

        name_raw, symbol_raw, decimals_raw, supply_raw = await asyncio.gather(
            self._call(address, "0x" + abi.SELECTOR_NAME),
            self._call(address, "0x" + abi.SELECTOR_SYMBOL),
            self._call(address, "0x" + abi.SELECTOR_DECIMALS),
            self._call(address, "0x" + abi.SELECTOR_TOTAL_SUPPLY),
        )

        try:
            decimals = abi.decode_uint(decimals_raw)
            info = TokenInfo(
                address=address,
                name=abi.decode_string(name_raw),
                symbol=abi.decode_string(symbol_raw),
                decimals=decimals,
                total_supply=abi.decode_uint(supply_raw),
            )
        except AmmError as e:
            if e.code != ErrorCode.UPSTREAM_BAD_RESPONSE:
                raise
            raise TokenNotFoundError(
                f"No ERC20 token at {address}",
                details={"address": address, "reason": e.message},
            )

        if decimals > MAX_TOKEN_DECIMALS:
            raise TokenNotFoundError(
                f"Token {address} reports invalid decimals {decimals}",
                details={"address": address, "decimals": decimals},
            )

        self.cache.set(address, info, CacheCategory.TOKEN_INFO)
        logger.debug(
            f"Token info fetched: {info.symbol}",
            extra={"context": {"address": address, "decimals": decimals}},
        )
        return info

    # -------------------------------------------------------------------------
    # Pairs
    # -------------------------------------------------------------------------

    async def get_pair_address(self, token_a: str, token_b: str) -> str | None:
        """
        Look up the pool for a token pair via factory.getPair.

        Returns None if the pair does not exist. That answer is not
        cached: pairs can be created at any time.
        """
        key = pair_cache_key(token_a, token_b)
        cached = self.cache.get(key, CacheCategory.PAIR_ADDRESS)
        if cached is not None:
            return cached

        raw = await self._call(self.factory_address, abi.encode_get_pair(token_a, token_b))
        pair_address = abi.decode_address(raw)

        if pair_address.lower() == ZERO_ADDRESS:
            logger.debug(
                "Pair does not exist",
                extra={"context": {"token_a": token_a, "token_b": token_b}},
            )
            return None

        self.cache.set(key, pair_address, CacheCategory.PAIR_ADDRESS)
        return pair_address

    # -------------------------------------------------------------------------
    # Reserves
    # -------------------------------------------------------------------------

    async def get_reserves(
        self,
        pair_address: str,
        token_a: str,
        token_b: str,
        use_cache: bool = True,
    ) -> ReserveSnapshot:
        """
        Read getReserves/token0/token1 and orient to (token_a, token_b).

        use_cache=False forces a live read (the fresh value still
        refreshes the cache).
        """
        snapshot = self.cache.get(pair_address, CacheCategory.RESERVES) if use_cache else None

        if snapshot is None:
            reserves_raw, token0_raw, token1_raw = await asyncio.gather(
                self._call(pair_address, "0x" + abi.SELECTOR_GET_RESERVES),
                self._call(pair_address, "0x" + abi.SELECTOR_TOKEN0),
                self._call(pair_address, "0x" + abi.SELECTOR_TOKEN1),
            )
            reserve0, reserve1, block_ts = abi.decode_reserves(reserves_raw)
            snapshot = ReserveSnapshot(
                pair_address=pair_address,
                token0=abi.decode_address(token0_raw),
                token1=abi.decode_address(token1_raw),
                reserve0=reserve0,
                reserve1=reserve1,
                block_timestamp=block_ts & MAX_UINT32,
            )
            self.cache.set(pair_address, snapshot, CacheCategory.RESERVES)

        if token_a.lower() not in (snapshot.token0.lower(), snapshot.token1.lower()):
            raise UpstreamUnavailableError(
                f"Pair {pair_address} does not hold {token_a}",
                code=ErrorCode.UPSTREAM_BAD_RESPONSE,
                details={
                    "pair_address": pair_address,
                    "token_a": token_a,
                    "token0": snapshot.token0,
                    "token1": snapshot.token1,
                },
            )

        return snapshot.oriented(token_a, token_b)
