"""
CLOB client wrapper for Polymarket order operations.
Wraps py-clob-client with async support and error handling.
"""

import asyncio
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from py_clob_client.client import ClobClient
from py_clob_client.clob_types import ApiCreds, OrderArgs, OrderType, PartialCreateOrderOptions
from py_clob_client.exceptions import PolyApiException
from py_clob_client.order_builder.constants import BUY, SELL

from ..errors import AdapterUnavailable
from ..utils.logger import get_logger
from ..utils.numbers import parse_decimal

logger = get_logger("clob")


class OrderSide(Enum):
    """Order side enum."""
    BUY = "BUY"
    SELL = "SELL"


@dataclass
class OrderResult:
    """Result of an order placement."""
    order_id: str
    success: bool
    status: str
    error: Optional[str] = None
    timestamp: float = 0.0
    avg_price: Optional[Decimal] = None  # from matched amounts, when reported


def is_missing_book(error: PolyApiException) -> bool:
    """CLOB answers 404 "No orderbook exists" for tokens without a book."""
    return error.status_code == 404 or "no orderbook" in str(error.error_msg).lower()


def fill_price(
    side: OrderSide,
    making_amount: Optional[Decimal],
    taking_amount: Optional[Decimal]
) -> Optional[Decimal]:
    """
    Average price of a matched order.

    A buy makes USDC and takes shares; a sell makes shares and takes USDC.
    """
    if not making_amount or not taking_amount:
        return None
    if side == OrderSide.BUY:
        return making_amount / taking_amount
    return taking_amount / making_amount


class CLOBClient:
    """
    Async wrapper for Polymarket CLOB client.

    Handles midpoint quotes and order placement. Uses the official
    py-clob-client under the hood; its blocking calls run in the default
    executor.
    """

    HOST = "https://clob.polymarket.com"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        api_passphrase: str,
        private_key: str,
        chain_id: int = 137  # Polygon Mainnet
    ):
        """
        Initialize CLOB client.

        Args:
            api_key: Polymarket API key
            api_secret: Polymarket API secret
            api_passphrase: Polymarket API passphrase
            private_key: Signing key of the CLOB account
            chain_id: Blockchain chain ID (137 for Polygon)
        """
        self.api_key = api_key
        self.api_secret = api_secret
        self.api_passphrase = api_passphrase
        self.private_key = private_key
        self.chain_id = chain_id

        self._client: Optional[ClobClient] = None

    async def initialize(self) -> None:
        """Initialize the CLOB client."""
        logger.info("Initializing CLOB client")

        # Create client in executor since it may do blocking I/O
        loop = asyncio.get_running_loop()
        self._client = await loop.run_in_executor(
            None,
            self._create_client
        )

        logger.info("CLOB client initialized successfully")

    def _create_client(self) -> ClobClient:
        """Create the underlying py-clob-client instance."""
        return ClobClient(
            self.HOST,
            key=self.private_key,
            chain_id=self.chain_id,
            creds=ApiCreds(
                api_key=self.api_key,
                api_secret=self.api_secret,
                api_passphrase=self.api_passphrase
            )
        )

    async def _ensure_client(self) -> ClobClient:
        if not self._client:
            await self.initialize()
        return self._client

    async def get_midpoint(self, token_id: str) -> Optional[Decimal]:
        """
        Midpoint price of a token's order book.

        Returns:
            Midpoint, or None when the book is empty or missing

        Raises:
            AdapterUnavailable: when the CLOB cannot be reached
        """
        client = await self._ensure_client()
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: client.get_midpoint(token_id)
            )
        except PolyApiException as e:
            if is_missing_book(e):
                logger.debug(f"No order book for token {token_id}")
                return None
            logger.error(f"CLOB midpoint request failed: {e}", extra={"token_id": token_id})
            raise AdapterUnavailable("polymarket", f"midpoint request failed: {e.error_msg}")
        return parse_decimal((result or {}).get("mid"))

    async def place_order(
        self,
        token_id: str,
        side: OrderSide,
        size: float,
        price: float,
        neg_risk: bool = False
    ) -> OrderResult:
        """
        Place a fill-or-kill order on the CLOB.

        Args:
            token_id: Token ID (asset ID) to trade
            side: BUY or SELL
            size: Order size in shares
            price: Limit price (0-1)
            neg_risk: Market uses the neg-risk exchange

        Returns:
            OrderResult with order ID and status
        """
        client = await self._ensure_client()

        logger.debug(
            f"Placing order: {side.value} {size} @ {price} for {token_id}"
        )

        try:
            loop = asyncio.get_running_loop()

            order_args = OrderArgs(
                token_id=token_id,
                price=price,
                size=size,
                side=BUY if side == OrderSide.BUY else SELL
            )

            signed_order = await loop.run_in_executor(
                None,
                lambda: client.create_order(
                    order_args,
                    PartialCreateOrderOptions(neg_risk=neg_risk)
                )
            )

            result = await loop.run_in_executor(
                None,
                lambda: client.post_order(signed_order, OrderType.FOK)
            )

            if not result or result.get("success") is False:
                error = (result or {}).get("errorMsg") or "Order rejected"
                raise RuntimeError(error)

            order_id = result.get("orderID", "")

            logger.info(
                "Order placed successfully",
                extra={
                    "order_id": order_id,
                    "token_id": token_id,
                    "side": side.value,
                    "size": size,
                    "price": price
                }
            )

            return OrderResult(
                order_id=order_id,
                success=True,
                status=str(result.get("status", "matched")).upper(),
                timestamp=time.time(),
                avg_price=fill_price(
                    side,
                    parse_decimal(result.get("makingAmount")),
                    parse_decimal(result.get("takingAmount"))
                )
            )

        except Exception as e:
            logger.error(f"Failed to place order: {e}")
            return OrderResult(
                order_id="",
                success=False,
                status="FAILED",
                error=str(e),
                timestamp=time.time()
            )
