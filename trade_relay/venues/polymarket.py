"""
Polymarket venue: resolves a market question through Gamma and trades its
YES outcome on the CLOB.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import Optional

from ..clients.clob_client import CLOBClient, OrderSide
from ..clients.gamma_client import GammaClient
from ..models import Platform, TradeAction
from ..utils.logger import get_logger
from .base import ExecutionResult, VenueAdapter

logger = get_logger("venues.polymarket")

TICK = Decimal("0.01")
MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("0.99")


def limit_price(mid: Decimal, action: TradeAction, slippage: Decimal) -> Decimal:
    """Marketable limit on the tick grid, clamped to the valid (0, 1) range."""
    if action is TradeAction.BUY:
        px = (mid + slippage).quantize(TICK, rounding=ROUND_UP)
    else:
        px = (mid - slippage).quantize(TICK, rounding=ROUND_DOWN)
    return min(MAX_PRICE, max(MIN_PRICE, px))


class PolymarketVenue(VenueAdapter):
    """
    Prediction-market trades. The asset is free-text market question,
    amount is a share count.

    Orders are placed fill-or-kill from the operator's CLOB account.
    """

    platform = Platform.POLYMARKET

    def __init__(
        self,
        gamma: GammaClient,
        clob: CLOBClient,
        simulation_mode: bool = True,
        slippage: Decimal = Decimal("0.02")
    ):
        super().__init__(simulation_mode=simulation_mode)
        self.gamma = gamma
        self.clob = clob
        self.slippage = slippage

    async def initialize(self) -> None:
        await self.gamma.initialize()
        await self.clob.initialize()

    async def close(self) -> None:
        await self.gamma.close()

    async def get_price(self, asset: str) -> Optional[Decimal]:
        market = await self.gamma.find_market(asset)
        if market is None:
            return None
        token = market.get_yes_token()
        if token is None:
            return None

        mid = await self.clob.get_midpoint(token.token_id)
        return mid if mid is not None else token.price

    async def _submit(
        self,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        market = await self.gamma.find_market(asset)
        if market is None:
            return ExecutionResult.failed(f"No open market matching '{asset}'")
        if market.closed or not market.active:
            return ExecutionResult.failed(f"Market closed: {market.question}")

        token = market.get_yes_token()
        if token is None:
            return ExecutionResult.failed(f"Market has no tradable outcome: {market.question}")

        mid = await self.clob.get_midpoint(token.token_id)
        if mid is None:
            mid = token.price
        if mid is None:
            return ExecutionResult.failed("No price available for market")

        px = limit_price(mid, action, self.slippage)

        logger.info(
            "Submitting Polymarket order",
            extra={
                "market": market.question,
                "token_id": token.token_id,
                "action": action.value,
                "size": str(amount),
                "price": str(px),
                "wallet_reference": wallet_reference
            }
        )

        result = await self.clob.place_order(
            token_id=token.token_id,
            side=OrderSide.BUY if action is TradeAction.BUY else OrderSide.SELL,
            size=float(amount),
            price=float(px),
            neg_risk=market.neg_risk
        )
        if not result.success:
            return ExecutionResult.failed(result.error or "Order rejected")

        # None when the CLOB omits matched amounts; callers fall back to their quote
        return ExecutionResult.filled(result.avg_price, result.order_id)
