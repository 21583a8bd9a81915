"""
Hyperliquid perpetuals venue: immediate-or-cancel orders around the mid,
signed as EIP-712 typed data by the user's Privy custody wallet.
"""

import time
from decimal import Decimal, ROUND_DOWN
from typing import Optional

from ..clients.hyperliquid_client import HyperliquidClient
from ..clients.privy_client import PrivyClient
from ..models import Platform, TradeAction
from ..utils.logger import get_logger
from .base import ExecutionResult, VenueAdapter

logger = get_logger("venues.hyperliquid")

SIGNING_DOMAIN = {
    "name": "HyperliquidSign",
    "version": "1",
    "chainId": 1337,
    "verifyingContract": "0x0000000000000000000000000000000000000000",
}

SIGNING_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Order": [
        {"name": "asset", "type": "uint32"},
        {"name": "isBuy", "type": "bool"},
        {"name": "reduceOnly", "type": "bool"},
        {"name": "size", "type": "string"},
        {"name": "limitPx", "type": "string"},
        {"name": "tif", "type": "string"},
    ],
    "OrderRequest": [
        {"name": "type", "type": "string"},
        {"name": "grouping", "type": "string"},
        {"name": "nonce", "type": "uint64"},
        {"name": "orders", "type": "Order[]"},
    ],
}


def round_price(px: Decimal, sz_decimals: int) -> Decimal:
    """Five significant figures, at most 6 - szDecimals decimals; integers always allowed."""
    if px >= 100000:
        return px.quantize(Decimal(1))
    rounded = px.quantize(Decimal(1).scaleb(px.adjusted() - 4))
    max_places = Decimal(1).scaleb(-(6 - sz_decimals))
    if rounded.as_tuple().exponent < max_places.as_tuple().exponent:
        rounded = rounded.quantize(max_places)
    return rounded


def wire(value: Decimal) -> str:
    """Decimal to the exchange's string form, no exponent or trailing zeros."""
    return format(value.normalize(), "f")


def split_signature(signature: str) -> dict:
    """0x-prefixed 65-byte signature into r, s, v."""
    raw = signature[2:] if signature.startswith("0x") else signature
    return {
        "r": "0x" + raw[0:64],
        "s": "0x" + raw[64:128],
        "v": int(raw[128:130], 16),
    }


class HyperliquidVenue(VenueAdapter):
    """
    Market-style trades on Hyperliquid perps.

    Orders are IOC limits slippage_pct away from the mid, so they fill
    immediately or not at all.
    """

    platform = Platform.HYPERLIQUID

    def __init__(
        self,
        client: HyperliquidClient,
        privy: PrivyClient,
        simulation_mode: bool = True,
        slippage_pct: Decimal = Decimal("0.01")
    ):
        super().__init__(simulation_mode=simulation_mode)
        self.client = client
        self.privy = privy
        self.slippage_pct = slippage_pct

    async def initialize(self) -> None:
        await self.client.initialize()

    async def close(self) -> None:
        await self.client.close()

    async def get_price(self, asset: str) -> Optional[Decimal]:
        return await self.client.get_mid(asset)

    async def _submit(
        self,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        meta = await self.client.get_asset_meta(asset)
        if meta is None:
            return ExecutionResult.failed(f"Asset {asset} not found on Hyperliquid")

        mid = await self.client.get_mid(asset)
        if mid is None:
            return ExecutionResult.failed(f"No mid price for {asset}")

        is_buy = action is TradeAction.BUY
        factor = 1 + self.slippage_pct if is_buy else 1 - self.slippage_pct
        limit_px = round_price(mid * factor, meta.sz_decimals)

        size = amount.quantize(Decimal(1).scaleb(-meta.sz_decimals), rounding=ROUND_DOWN)
        if size <= 0:
            return ExecutionResult.failed(
                f"Size {amount} below minimum increment for {meta.name}"
            )

        nonce = int(time.time() * 1000)
        order = {
            "a": meta.index,
            "b": is_buy,
            "p": wire(limit_px),
            "s": wire(size),
            "r": False,
            "t": {"limit": {"tif": "Ioc"}},
        }
        action_payload = {"type": "order", "orders": [order], "grouping": "na"}

        typed_data = {
            "types": SIGNING_TYPES,
            "primaryType": "OrderRequest",
            "domain": SIGNING_DOMAIN,
            "message": {
                "type": "order",
                "grouping": "na",
                "nonce": nonce,
                "orders": [{
                    "asset": meta.index,
                    "isBuy": is_buy,
                    "reduceOnly": False,
                    "size": wire(size),
                    "limitPx": wire(limit_px),
                    "tif": "Ioc",
                }],
            },
        }

        signature = await self.privy.sign_typed_data(wallet_reference, typed_data)
        response = await self.client.place_order(action_payload, nonce, split_signature(signature))

        if not response.success:
            return ExecutionResult.failed(response.error or "Order rejected")
        if response.resting or not response.filled_size:
            return ExecutionResult.failed("IOC order did not fill")

        logger.info(
            "Hyperliquid order filled",
            extra={
                "order_id": response.order_id,
                "asset": meta.name,
                "filled_size": str(response.filled_size),
                "avg_price": str(response.avg_price)
            }
        )
        return ExecutionResult.filled(response.avg_price or mid, response.order_id)
