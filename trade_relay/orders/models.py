"""
Limit order model.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..models import Platform, TradeAction


class OrderStatus(Enum):
    """Lifecycle of a limit order. EXECUTED and CANCELLED are terminal."""
    ACTIVE = "active"
    EXECUTED = "executed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.ACTIVE


@dataclass
class LimitOrder:
    """
    Conditional instruction to run a market trade once the observed price
    crosses target_price.

    Only the order store mutates status and the execution fields.
    """
    id: int
    owner: str
    platform: Platform
    action: TradeAction
    amount: Decimal
    asset: str
    target_price: Decimal
    wallet_reference: str
    notification_channel: str
    created_at: datetime
    status: OrderStatus = OrderStatus.ACTIVE
    executed_at: Optional[datetime] = None
    executed_price: Optional[Decimal] = None
    execution_reference: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is OrderStatus.ACTIVE

    def is_triggered(self, current_price: Decimal) -> bool:
        """Buy at or below target, sell at or above target."""
        if self.action is TradeAction.BUY:
            return current_price <= self.target_price
        return current_price >= self.target_price

    @property
    def comparator(self) -> str:
        return "≤" if self.action is TradeAction.BUY else "≥"
