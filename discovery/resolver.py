"""
discovery/resolver.py - Counter-token resolution over the base token list.

Base tokens are probed in configured priority order (WBNB, BUSD, USDT,
USDC by default). The first one with an existing pair wins, so the result
is deterministic for a given gateway state.

Gateway failures propagate unchanged: an RPC outage is never reported as
"pair missing".
"""

from typing import Optional

from chains.gateway import DataGateway
from core.exceptions import InvalidInputError, PairNotFoundError
from core.logging import get_logger
from core.models import BaseToken, same_address

logger = get_logger(__name__)


class PairResolver:
    """
    Picks the counter-token a token is traded against.

    Usage:
        resolver = PairResolver(gateway, settings.base_tokens)
        base = await resolver.resolve_counter_token(cake)
    """

    def __init__(self, gateway: DataGateway, base_tokens: list[BaseToken]):
        if not base_tokens:
            raise InvalidInputError("PairResolver needs at least one base token")
        self.gateway = gateway
        self.base_tokens = list(base_tokens)

    def _candidates(self, token: str) -> list[BaseToken]:
        return [base for base in self.base_tokens if not base.matches(token)]

    def lookup(self, address: str) -> Optional[BaseToken]:
        """Base token entry for an address, if it is configured."""
        for base in self.base_tokens:
            if base.matches(address):
                return base
        return None

    async def find_best_base_pair(self, token: str) -> Optional[BaseToken]:
        """First base token (in priority order) that has a pair with token."""
        for base in self._candidates(token):
            pair_address = await self.gateway.get_pair_address(token, base.address)
            if pair_address is not None:
                logger.debug(
                    f"Best base pair for {token}: {base.symbol}",
                    extra={"context": {"token": token, "pair_address": pair_address}},
                )
                return base
        return None

    async def suggest_alternative_pairs(self, token: str) -> list[BaseToken]:
        """Every base token that has a pair with token, in priority order."""
        found = []
        for base in self._candidates(token):
            if await self.gateway.get_pair_address(token, base.address) is not None:
                found.append(base)
        return found

    async def resolve_counter_token(
        self,
        token: str,
        counter: Optional[str] = None,
    ) -> BaseToken:
        """
        Explicit counter-token if given and distinct, else the best base pair.

        A counter equal to token is treated as absent.

        Raises:
            PairNotFoundError: no base token pairs with token
        """
        if counter is not None and not same_address(counter, token):
            known = self.lookup(counter)
            return known or BaseToken(address=counter, symbol=counter[:10])

        best = await self.find_best_base_pair(token)
        if best is None:
            raise PairNotFoundError(
                f"No pair found for {token} against any base token",
                suggestions=[],
                details={
                    "token": token,
                    "base_tokens": [b.symbol for b in self.base_tokens],
                },
            )
        return best
