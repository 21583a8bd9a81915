"""
Jupiter API client for Solana token prices and Ultra swaps.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import aiohttp

from ..utils.logger import get_logger
from ..utils.numbers import parse_decimal

logger = get_logger("jupiter")

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDC_DECIMALS = 6


@dataclass
class TokenInfo:
    """Token metadata from the Token API."""
    mint: str
    symbol: str
    name: str
    decimals: int
    usd_price: Optional[Decimal] = None


@dataclass
class UltraOrder:
    """Unsigned swap returned by Ultra /order."""
    request_id: str
    transaction: Optional[str]
    in_amount: int
    out_amount: int
    price_impact_pct: Optional[str] = None


@dataclass
class UltraExecution:
    """Result of Ultra /execute."""
    success: bool
    signature: Optional[str]
    input_amount: Optional[int] = None
    output_amount: Optional[int] = None
    error: Optional[str] = None


class JupiterClient:
    """
    Client for Jupiter Token API v2 and Ultra swap API.

    Without an API key the free lite-api host is used.
    """

    LITE_URL = "https://lite-api.jup.ag"
    PRO_URL = "https://api.jup.ag"

    def __init__(self, api_key: Optional[str] = None, slippage_bps: int = 50):
        """
        Initialize Jupiter client.

        Args:
            api_key: Optional Jupiter API key
            slippage_bps: Max slippage for swaps (50 = 0.5%)
        """
        self.api_key = api_key
        self.slippage_bps = slippage_bps
        self.base_url = self.PRO_URL if api_key else self.LITE_URL
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            headers = {"x-api-key": self.api_key} if self.api_key else {}
            self._session = aiohttp.ClientSession(headers=headers)
        logger.info("Jupiter client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        payload: Optional[dict] = None
    ):
        """Make HTTP request to Jupiter."""
        if not self._session:
            await self.initialize()

        url = f"{self.base_url}{endpoint}"

        try:
            async with self._session.request(method, url, params=params, json=payload) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Jupiter API request failed: {e}", extra={"endpoint": endpoint})
            raise

    async def search_token(self, query: str) -> Optional[TokenInfo]:
        """
        Find a token by symbol or mint.

        Prefers an exact mint or symbol match; otherwise the top result.
        """
        data = await self._request(
            "GET",
            "/tokens/v2/search",
            params={"query": query, "limit": 10}
        )
        if not data or not isinstance(data, list):
            return None

        wanted = query.strip().lower()
        best = next(
            (t for t in data if str(t.get("id", "")).lower() == wanted),
            None
        ) or next(
            (t for t in data if str(t.get("symbol", "")).lower() == wanted),
            None
        ) or data[0]

        if not best.get("id") or best.get("decimals") is None:
            return None

        return TokenInfo(
            mint=best["id"],
            symbol=best.get("symbol", ""),
            name=best.get("name", ""),
            decimals=int(best["decimals"]),
            usd_price=parse_decimal(best.get("usdPrice"))
        )

    async def get_order(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        taker: str
    ) -> UltraOrder:
        """Request an unsigned swap transaction for an exact input amount."""
        data = await self._request(
            "GET",
            "/ultra/v1/order",
            params={
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": str(amount),
                "taker": taker,
                "slippageBps": str(self.slippage_bps)
            }
        )
        return UltraOrder(
            request_id=data.get("requestId", ""),
            transaction=data.get("transaction"),
            in_amount=int(data.get("inAmount", 0) or 0),
            out_amount=int(data.get("outAmount", 0) or 0),
            price_impact_pct=data.get("priceImpactPct")
        )

    async def execute(self, signed_transaction: str, request_id: str) -> UltraExecution:
        """Submit a signed Ultra transaction."""
        data = await self._request(
            "POST",
            "/ultra/v1/execute",
            payload={
                "signedTransaction": signed_transaction,
                "requestId": request_id
            }
        )
        success = data.get("status") == "Success"
        return UltraExecution(
            success=success,
            signature=data.get("signature"),
            input_amount=int(data["inputAmountResult"]) if data.get("inputAmountResult") else None,
            output_amount=int(data["outputAmountResult"]) if data.get("outputAmountResult") else None,
            error=None if success else str(data.get("error") or data.get("code") or "Swap failed")
        )
