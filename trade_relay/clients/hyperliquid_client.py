"""
Hyperliquid API client for perpetuals prices and order submission.
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import aiohttp

from ..utils.logger import get_logger
from ..utils.numbers import parse_decimal

logger = get_logger("hyperliquid")


@dataclass
class AssetMeta:
    """Perpetual asset metadata from the meta universe."""
    index: int
    name: str
    sz_decimals: int
    max_leverage: int = 0


@dataclass
class OrderResponse:
    """Exchange response for a single order."""
    success: bool
    order_id: Optional[str] = None
    filled_size: Optional[Decimal] = None
    avg_price: Optional[Decimal] = None
    resting: bool = False
    error: Optional[str] = None


class HyperliquidClient:
    """
    Client for the Hyperliquid info and exchange endpoints.

    The asset universe is cached; mids are fetched fresh on every call.
    """

    MAINNET_URL = "https://api.hyperliquid.xyz"
    TESTNET_URL = "https://api.hyperliquid-testnet.xyz"

    def __init__(self, testnet: bool = False, meta_ttl_seconds: int = 300):
        """
        Initialize Hyperliquid client.

        Args:
            testnet: Use the testnet endpoints
            meta_ttl_seconds: How long to cache asset metadata
        """
        self.testnet = testnet
        self.base_url = self.TESTNET_URL if testnet else self.MAINNET_URL
        self.meta_ttl_seconds = meta_ttl_seconds
        self._session: Optional[aiohttp.ClientSession] = None

        self._meta_cache: dict[str, AssetMeta] = {}
        self._meta_timestamp: float = 0.0

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession()
        logger.info("Hyperliquid client initialized", extra={"testnet": self.testnet})

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _post(self, endpoint: str, payload: dict):
        """POST JSON to an endpoint."""
        if not self._session:
            await self.initialize()

        url = f"{self.base_url}{endpoint}"

        try:
            async with self._session.post(url, json=payload) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Hyperliquid API request failed: {e}", extra={"endpoint": endpoint})
            raise

    async def get_all_mids(self) -> dict[str, Decimal]:
        """Mid prices for every listed coin."""
        data = await self._post("/info", {"type": "allMids"})
        mids = {}
        for name, raw in (data or {}).items():
            price = parse_decimal(raw)
            if price is not None:
                mids[name.upper()] = price
        return mids

    async def get_mid(self, coin: str) -> Optional[Decimal]:
        """Mid price for one coin, None when not listed."""
        mids = await self.get_all_mids()
        return mids.get(coin.upper())

    async def get_asset_meta(self, coin: str) -> Optional[AssetMeta]:
        """Metadata for one coin from the (cached) universe."""
        if not self._meta_cache or time.time() - self._meta_timestamp > self.meta_ttl_seconds:
            await self.refresh_meta()
        return self._meta_cache.get(coin.upper())

    async def refresh_meta(self) -> None:
        """Reload the perpetuals universe."""
        data = await self._post("/info", {"type": "meta"})
        cache = {}
        for index, asset in enumerate((data or {}).get("universe", [])):
            name = str(asset.get("name", "")).upper()
            if not name:
                continue
            cache[name] = AssetMeta(
                index=index,
                name=name,
                sz_decimals=int(asset.get("szDecimals", 0)),
                max_leverage=int(asset.get("maxLeverage", 0))
            )
        self._meta_cache = cache
        self._meta_timestamp = time.time()
        logger.info(f"Loaded {len(cache)} Hyperliquid assets")

    async def place_order(self, action: dict, nonce: int, signature: dict) -> OrderResponse:
        """Submit a signed order action to the exchange."""
        data = await self._post(
            "/exchange",
            {
                "action": action,
                "nonce": nonce,
                "signature": signature,
                "vaultAddress": None
            }
        )
        return self._parse_order_response(data)

    @staticmethod
    def _parse_order_response(data: dict) -> OrderResponse:
        if not data or data.get("status") != "ok":
            error = data.get("response") if isinstance(data, dict) else None
            return OrderResponse(success=False, error=str(error or "Order submission failed"))

        statuses = (
            data.get("response", {}).get("data", {}).get("statuses", [])
        )
        if not statuses:
            return OrderResponse(success=False, error="Empty order status")

        status = statuses[0]
        if "error" in status:
            return OrderResponse(success=False, error=str(status["error"]))

        if "filled" in status:
            filled = status["filled"]
            return OrderResponse(
                success=True,
                order_id=str(filled.get("oid", "")),
                filled_size=parse_decimal(filled.get("totalSz")),
                avg_price=parse_decimal(filled.get("avgPx"))
            )

        if "resting" in status:
            return OrderResponse(
                success=True,
                order_id=str(status["resting"].get("oid", "")),
                resting=True
            )

        return OrderResponse(success=False, error=f"Unknown order status: {status}")
