"""
Limit order monitor.

Periodically checks every active order against the venue's current price
and executes the ones whose trigger condition holds.
"""

import asyncio
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from .. import messages
from ..errors import AdapterUnavailable, InvalidStateError
from ..models import Platform
from ..utils.logger import get_logger, OrderLogger
from ..venues.base import ExecutionResult
from ..venues.registry import VenueRegistry
from .models import LimitOrder
from .store import OrderStore

logger = get_logger("monitor")
order_logger = OrderLogger()


class Notifier(Protocol):
    """Best-effort delivery of a message to a chat channel. Never raises."""

    async def notify(self, channel: str, message: str) -> None:
        ...


@dataclass
class CycleReport:
    """Outcome of one monitor cycle."""
    checked: int = 0
    skipped: int = 0      # no price, or cancelled before execution
    triggered: int = 0
    executed: int = 0
    failed: int = 0
    duration_ms: float = 0.0


class OrderMonitor:
    """
    Background task that advances active limit orders toward execution.

    Key behaviours:
    - Cycles never overlap; a tick that finds a cycle running is skipped
    - A failure on one order never stops evaluation of the others
    - Status is re-checked right before execution so cancelled orders
      do not trade
    - Failed executions stay active and are retried next cycle; the owner
      is told once after max_execution_failures consecutive failures
    """

    def __init__(
        self,
        store: OrderStore,
        venues: VenueRegistry,
        notifier: Notifier,
        interval_seconds: float = 30.0,
        max_execution_failures: int = 3,
        kill_switch: bool = False
    ):
        """
        Initialize order monitor.

        Args:
            store: Shared order store
            venues: Venue registry for prices and execution
            notifier: Chat notification sink
            interval_seconds: Time between cycle starts
            max_execution_failures: Consecutive failures before the owner is told
            kill_switch: Evaluate orders but never execute
        """
        self.store = store
        self.venues = venues
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self.max_execution_failures = max_execution_failures
        self.kill_switch = kill_switch

        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._running = False

        # order id -> consecutive failed execution attempts
        self._failures: dict[int, int] = {}

        # Stats
        self._cycles_run = 0
        self._ticks_skipped = 0
        self._orders_executed = 0
        self._execution_failures = 0
        self._last_report: Optional[CycleReport] = None

    async def run(self) -> None:
        """Run cycles on a fixed interval until stop() is called."""
        self._running = True
        self._stop_event.clear()

        logger.info(
            "Order monitor started",
            extra={"interval_seconds": self.interval_seconds}
        )

        while self._running:
            started = time.monotonic()
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Monitor cycle error: {e}", exc_info=True)

            elapsed = time.monotonic() - started
            delay = max(0.0, self.interval_seconds - elapsed)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info("Order monitor stopped")

    def stop(self) -> None:
        """Ask the run loop to exit after the current cycle."""
        self._running = False
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_cycle(self) -> Optional[CycleReport]:
        """
        Evaluate every active order once.

        Returns:
            CycleReport, or None when the tick was skipped because a
            previous cycle is still in progress
        """
        if self._cycle_lock.locked():
            self._ticks_skipped += 1
            logger.warning("Previous monitor cycle still running, skipping tick")
            return None

        async with self._cycle_lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> CycleReport:
        started = time.monotonic()
        report = CycleReport()

        orders = self.store.active_orders()
        self._prune_failures(orders)

        prices: dict[tuple[Platform, str], Optional[Decimal]] = {}

        for order in orders:
            report.checked += 1
            try:
                await self._process_order(order, prices, report)
            except Exception as e:
                report.failed += 1
                logger.error(
                    f"Error processing order #{order.id}: {e}",
                    extra={"order_id": order.id, "platform": order.platform.value},
                    exc_info=True
                )

        report.duration_ms = (time.monotonic() - started) * 1000
        self._cycles_run += 1
        self._last_report = report

        if report.checked:
            logger.debug(
                "Monitor cycle complete",
                extra={
                    "checked": report.checked,
                    "triggered": report.triggered,
                    "executed": report.executed,
                    "failed": report.failed,
                    "duration_ms": report.duration_ms
                }
            )

        return report

    async def _process_order(
        self,
        order: LimitOrder,
        prices: dict[tuple[Platform, str], Optional[Decimal]],
        report: CycleReport
    ) -> None:
        current_price = await self._resolve_price(order, prices)
        if current_price is None:
            report.skipped += 1
            return

        if not order.is_triggered(current_price):
            return

        report.triggered += 1
        order_logger.order_triggered(
            order_id=order.id,
            platform=order.platform.value,
            asset=order.asset,
            current_price=str(current_price),
            target_price=str(order.target_price)
        )

        if self.kill_switch:
            logger.info(
                "Kill switch enabled - not executing",
                extra={"order_id": order.id}
            )
            return

        # Owner may have cancelled since the snapshot
        if not self.store.is_active(order.owner, order.id):
            report.skipped += 1
            logger.info(
                "Order no longer active, skipping execution",
                extra={"order_id": order.id}
            )
            return

        started = time.monotonic()
        try:
            result = await self.venues.execute(
                order.platform,
                order.action,
                order.amount,
                order.asset,
                order.wallet_reference
            )
        except AdapterUnavailable as e:
            result = ExecutionResult.failed(str(e))

        if not result.success:
            report.failed += 1
            await self._record_failure(order, result.error)
            return

        self._failures.pop(order.id, None)

        # Venue price can move between the trigger check and the fill
        executed_price = (
            result.executed_price if result.executed_price is not None else current_price
        )

        try:
            self.store.mark_executed(
                order.owner,
                order.id,
                executed_price,
                reference=result.reference
            )
        except InvalidStateError as e:
            report.failed += 1
            logger.error(
                f"Trade filled for order that is no longer active: {e}",
                extra={
                    "order_id": order.id,
                    "reference": result.reference,
                    "executed_price": str(executed_price)
                }
            )
            await self.notifier.notify(
                order.notification_channel,
                messages.order_filled_after_cancel(order, executed_price, result.reference)
            )
            return

        report.executed += 1
        self._orders_executed += 1
        order_logger.order_executed(
            order_id=order.id,
            platform=order.platform.value,
            executed_price=str(executed_price),
            reference=result.reference,
            latency_ms=(time.monotonic() - started) * 1000
        )

        await self.notifier.notify(
            order.notification_channel,
            messages.order_executed(order)
        )

    async def _resolve_price(
        self,
        order: LimitOrder,
        prices: dict[tuple[Platform, str], Optional[Decimal]]
    ) -> Optional[Decimal]:
        """Price for the order's asset, looked up at most once per cycle."""
        key = (order.platform, order.asset.lower())
        if key in prices:
            return prices[key]

        try:
            price = await self.venues.get_price(order.platform, order.asset)
        except AdapterUnavailable as e:
            logger.warning(
                f"Price unavailable: {e}",
                extra={"order_id": order.id, "asset": order.asset}
            )
            price = None

        if price is None:
            logger.debug(
                "No price for order, skipping this cycle",
                extra={"order_id": order.id, "asset": order.asset}
            )

        prices[key] = price
        return price

    async def _record_failure(self, order: LimitOrder, error: Optional[str]) -> None:
        attempts = self._failures.get(order.id, 0) + 1
        self._failures[order.id] = attempts
        self._execution_failures += 1

        order_logger.execution_failed(
            order_id=order.id,
            platform=order.platform.value,
            reason="Execution failed, will retry next cycle",
            attempts=attempts,
            error=error
        )

        if attempts == self.max_execution_failures:
            await self.notifier.notify(
                order.notification_channel,
                messages.order_retrying(order, attempts, error)
            )

    def _prune_failures(self, active: list[LimitOrder]) -> None:
        active_ids = {order.id for order in active}
        for order_id in list(self._failures):
            if order_id not in active_ids:
                del self._failures[order_id]

    def failure_count(self, order_id: int) -> int:
        """Consecutive failed execution attempts for an active order."""
        return self._failures.get(order_id, 0)

    def get_stats(self) -> dict:
        """Cumulative monitor statistics."""
        return {
            "cycles_run": self._cycles_run,
            "ticks_skipped": self._ticks_skipped,
            "orders_executed": self._orders_executed,
            "execution_failures": self._execution_failures,
            "active_orders": len(self.store.active_orders()),
            "last_cycle_ms": self._last_report.duration_ms if self._last_report else 0.0,
        }
