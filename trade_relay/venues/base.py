"""
Uniform venue adapter contract.

Every venue answers two questions for the rest of the relay: what is the
current reference price of an asset, and did a market trade for a custody
wallet go through.
"""

import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..errors import AdapterUnavailable
from ..models import Platform, TradeAction
from ..utils.logger import get_logger

logger = get_logger("venues")


@dataclass
class ExecutionResult:
    """Outcome of a trade submitted to a venue."""
    success: bool
    executed_price: Optional[Decimal] = None
    reference: Optional[str] = None
    error: Optional[str] = None
    simulated: bool = False
    timestamp: float = 0.0

    @classmethod
    def filled(
        cls,
        executed_price: Optional[Decimal],
        reference: Optional[str],
        simulated: bool = False
    ) -> "ExecutionResult":
        return cls(
            success=True,
            executed_price=executed_price,
            reference=reference,
            simulated=simulated,
            timestamp=time.time()
        )

    @classmethod
    def failed(cls, error: str) -> "ExecutionResult":
        return cls(success=False, error=error, timestamp=time.time())


class VenueAdapter(ABC):
    """
    Base class for the three venue adapters.

    Subclasses implement get_price and _submit. In simulation mode execute
    quotes the price and reports a fill at that price without submitting
    anything to the venue.
    """

    platform: Platform

    def __init__(self, simulation_mode: bool = True):
        self.simulation_mode = simulation_mode

    async def initialize(self) -> None:
        """Open sessions / clients. Default is a no-op."""

    async def close(self) -> None:
        """Release sessions / clients. Default is a no-op."""

    @abstractmethod
    async def get_price(self, asset: str) -> Optional[Decimal]:
        """
        Current reference price in USD.

        Returns:
            Price, or None when the asset is not resolvable on this venue

        Raises:
            AdapterUnavailable: on transport failures
        """

    async def execute(
        self,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        """
        Run a market trade for the given custody wallet.

        Raises:
            AdapterUnavailable: on transport failures
        """
        if self.simulation_mode:
            price = await self.get_price(asset)
            if price is None:
                return ExecutionResult.failed(f"No price for {asset} on {self.platform.value}")
            reference = f"sim-{uuid.uuid4().hex[:8]}"
            logger.info(
                "[SIMULATION] Would execute trade",
                extra={
                    "platform": self.platform.value,
                    "action": action.value,
                    "amount": str(amount),
                    "asset": asset,
                    "price": str(price),
                    "reference": reference
                }
            )
            return ExecutionResult.filled(price, reference, simulated=True)

        return await self._submit(action, amount, asset, wallet_reference)

    @abstractmethod
    async def _submit(
        self,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        """Submit a real trade to the venue."""

    def _unavailable(self, message: str) -> AdapterUnavailable:
        return AdapterUnavailable(self.platform.value, message)
