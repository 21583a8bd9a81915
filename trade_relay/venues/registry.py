"""
Venue registry: dispatches price lookups and trades by platform and bounds
every venue call with a timeout.
"""

import asyncio
from decimal import Decimal
from typing import Iterable, Optional

import aiohttp
from py_clob_client.exceptions import PolyApiException

from ..errors import AdapterUnavailable
from ..models import Platform, TradeAction
from ..utils.logger import get_logger
from .base import ExecutionResult, VenueAdapter

logger = get_logger("registry")

DEFAULT_TIMEOUT_SECONDS = 15.0


class VenueRegistry:
    """
    Closed set of venue adapters behind the uniform contract.

    Timeouts and upstream request errors surface as AdapterUnavailable.
    """

    def __init__(
        self,
        adapters: Iterable[VenueAdapter],
        timeouts: Optional[dict[Platform, float]] = None
    ):
        """
        Initialize registry.

        Args:
            adapters: One adapter per platform
            timeouts: Per-platform call timeout in seconds
        """
        self._adapters: dict[Platform, VenueAdapter] = {}
        for adapter in adapters:
            self._adapters[adapter.platform] = adapter
        self._timeouts = dict(timeouts or {})

    @property
    def platforms(self) -> list[Platform]:
        return list(self._adapters)

    def supports(self, platform: Platform) -> bool:
        return platform in self._adapters

    def get_adapter(self, platform: Platform) -> VenueAdapter:
        adapter = self._adapters.get(platform)
        if adapter is None:
            raise AdapterUnavailable(platform.value, "venue not configured")
        return adapter

    def timeout_for(self, platform: Platform) -> float:
        return self._timeouts.get(platform, DEFAULT_TIMEOUT_SECONDS)

    async def initialize(self) -> None:
        """Initialize all adapters."""
        for adapter in self._adapters.values():
            await adapter.initialize()

    async def close(self) -> None:
        """Close all adapters, logging individual failures."""
        for adapter in self._adapters.values():
            try:
                await adapter.close()
            except Exception as e:
                logger.error(f"Failed to close {adapter.platform.value} adapter: {e}")

    async def get_price(self, platform: Platform, asset: str) -> Optional[Decimal]:
        """
        Resolve the current reference price.

        Returns:
            Price, or None when the venue cannot resolve the asset

        Raises:
            AdapterUnavailable: on timeouts and transport failures
        """
        adapter = self.get_adapter(platform)
        return await self._call(platform, "price lookup", adapter.get_price(asset))

    async def execute(
        self,
        platform: Platform,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        """
        Submit a trade.

        Raises:
            AdapterUnavailable: on timeouts and transport failures
        """
        adapter = self.get_adapter(platform)
        return await self._call(
            platform,
            "execution",
            adapter.execute(action, amount, asset, wallet_reference)
        )

    async def _call(self, platform: Platform, operation: str, coro):
        timeout = self.timeout_for(platform)
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except AdapterUnavailable:
            raise
        except asyncio.TimeoutError:
            raise AdapterUnavailable(platform.value, f"{operation} timed out after {timeout}s")
        except (aiohttp.ClientError, PolyApiException) as e:
            raise AdapterUnavailable(platform.value, f"{operation} failed: {e}")
