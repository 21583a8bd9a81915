"""
In-memory registry of limit orders, partitioned by owner.

Orders live for the lifetime of the process and are never deleted:
cancelled and executed orders stay listed for inspection.
"""

import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..models import Platform, TradeAction
from ..utils.logger import get_logger, OrderLogger
from ..utils.numbers import Number, to_decimal
from .models import LimitOrder, OrderStatus

logger = get_logger("store")
order_logger = OrderLogger()

DEFAULT_LIMIT_PLATFORMS = (Platform.SOLANA, Platform.HYPERLIQUID)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStore:
    """
    Shared registry used by the command router and the order monitor.

    All operations are synchronous and serialized by a single lock, so
    create / cancel / mark_executed are mutually exclusive across the
    whole store.
    """

    def __init__(
        self,
        allowed_platforms: Iterable[Platform] = DEFAULT_LIMIT_PLATFORMS,
        clock: Callable[[], datetime] = _utcnow
    ):
        """
        Initialize order store.

        Args:
            allowed_platforms: Venues that accept limit orders
            clock: Source of timestamps (UTC)
        """
        self.allowed_platforms = frozenset(allowed_platforms)
        self._clock = clock
        self._orders: dict[str, list[LimitOrder]] = {}
        self._last_id = 0
        self._lock = threading.RLock()

    def create(
        self,
        owner: str,
        platform: Union[Platform, str],
        action: Union[TradeAction, str],
        amount: Number,
        asset: str,
        target_price: Number,
        wallet_reference: str,
        notification_channel: str
    ) -> LimitOrder:
        """
        Validate and register a new active order.

        Raises:
            ValidationError: if any parameter is out of range
        """
        platform = self._validate_platform(platform)
        action = self._validate_action(action)
        amount = self._validate_positive("amount", amount)
        target_price = self._validate_positive("target price", target_price)

        asset = (asset or "").strip()
        if not asset:
            raise ValidationError("Asset is required")

        with self._lock:
            self._last_id += 1
            order = LimitOrder(
                id=self._last_id,
                owner=str(owner),
                platform=platform,
                action=action,
                amount=amount,
                asset=asset,
                target_price=target_price,
                wallet_reference=wallet_reference,
                notification_channel=str(notification_channel),
                created_at=self._clock(),
            )
            self._orders.setdefault(order.owner, []).append(order)

        order_logger.order_created(
            order_id=order.id,
            owner=order.owner,
            platform=platform.value,
            action=action.value,
            amount=str(amount),
            asset=asset,
            target_price=str(target_price)
        )
        return order

    def list_by_owner(self, owner: str) -> list[LimitOrder]:
        """Orders of one owner in creation order; empty when none."""
        with self._lock:
            return list(self._orders.get(str(owner), []))

    def get(self, owner: str, order_id: int) -> LimitOrder:
        """
        Look up one of the owner's orders.

        Raises:
            NotFoundError: if the owner has no order with this id
        """
        with self._lock:
            return self._find(str(owner), order_id)

    def is_active(self, owner: str, order_id: int) -> bool:
        """Current status check, used right before execution."""
        with self._lock:
            try:
                return self._find(str(owner), order_id).is_active
            except NotFoundError:
                return False

    def active_orders(self) -> list[LimitOrder]:
        """Snapshot of every active order across all owners."""
        with self._lock:
            return [
                order
                for orders in self._orders.values()
                for order in orders
                if order.is_active
            ]

    def cancel(self, owner: str, order_id: int) -> LimitOrder:
        """
        Cancel an active order on behalf of its owner.

        Raises:
            NotFoundError: unknown id, or the order belongs to someone else
            InvalidStateError: the order is already executed or cancelled
        """
        with self._lock:
            order = self._find(str(owner), order_id)
            if not order.is_active:
                raise InvalidStateError(order.id, order.status.value, "cancel")
            order.status = OrderStatus.CANCELLED

        order_logger.order_cancelled(order_id=order.id, owner=order.owner)
        return order

    def mark_executed(
        self,
        owner: str,
        order_id: int,
        executed_price: Number,
        reference: Optional[str] = None
    ) -> LimitOrder:
        """
        Record a fill. Only the order monitor calls this.

        Raises:
            NotFoundError: unknown id
            InvalidStateError: the order is no longer active
        """
        price = to_decimal(executed_price)

        with self._lock:
            order = self._find(str(owner), order_id)
            if not order.is_active:
                raise InvalidStateError(order.id, order.status.value, "execute")
            order.status = OrderStatus.EXECUTED
            order.executed_at = self._clock()
            order.executed_price = price
            order.execution_reference = reference

        return order

    def __len__(self) -> int:
        with self._lock:
            return sum(len(orders) for orders in self._orders.values())

    def _find(self, owner: str, order_id: int) -> LimitOrder:
        for order in self._orders.get(owner, []):
            if order.id == order_id:
                return order
        raise NotFoundError(owner, order_id)

    def _validate_platform(self, platform: Union[Platform, str]) -> Platform:
        if not isinstance(platform, Platform):
            try:
                platform = Platform.parse(str(platform))
            except ValueError as e:
                raise ValidationError(str(e))
        if platform not in self.allowed_platforms:
            supported = ", ".join(sorted(p.value for p in self.allowed_platforms))
            raise ValidationError(
                f"Limit orders are not supported on {platform.value}. Supported: {supported}"
            )
        return platform

    @staticmethod
    def _validate_action(action: Union[TradeAction, str]) -> TradeAction:
        if isinstance(action, TradeAction):
            return action
        try:
            return TradeAction.parse(str(action))
        except ValueError as e:
            raise ValidationError(str(e))

    @staticmethod
    def _validate_positive(name: str, value: Number) -> Decimal:
        try:
            result = to_decimal(value)
        except ValueError:
            raise ValidationError(f"Invalid {name}: must be a positive number")
        if result <= 0:
            raise ValidationError(f"Invalid {name}: must be a positive number")
        return result
