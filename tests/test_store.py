"""
Tests for the in-memory order store.
"""

import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from trade_relay.errors import InvalidStateError, NotFoundError, ValidationError
from trade_relay.models import Platform, TradeAction
from trade_relay.orders.models import OrderStatus
from trade_relay.orders.store import OrderStore


FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """Store with a fixed clock."""
    return OrderStore(clock=lambda: FIXED_NOW)


def create_order(store, owner="u1", **overrides):
    params = {
        "platform": "solana",
        "action": "buy",
        "amount": "1",
        "asset": "SOL",
        "target_price": "100",
        "wallet_reference": "wallet-1",
        "notification_channel": "chat-1",
    }
    params.update(overrides)
    return store.create(owner, **params)


class TestCreate:
    """Tests for order creation."""

    def test_assigns_increasing_ids(self, store):
        """Each new order gets an id greater than every previous one."""
        first = create_order(store)
        second = create_order(store, owner="u2")
        third = create_order(store)

        assert (first.id, second.id, third.id) == (1, 2, 3)

    def test_new_order_is_active(self, store):
        order = create_order(store)

        assert order.status == OrderStatus.ACTIVE
        assert order.is_active
        assert order.created_at == FIXED_NOW
        assert order.executed_at is None
        assert order.executed_price is None

    def test_coerces_values(self, store):
        """Strings, floats and enums are normalized."""
        order = create_order(
            store,
            platform=Platform.HYPERLIQUID,
            action="SELL",
            amount=0.1,
            target_price=95000,
        )

        assert order.platform == Platform.HYPERLIQUID
        assert order.action == TradeAction.SELL
        assert order.amount == Decimal("0.1")
        assert order.target_price == Decimal("95000")

    @pytest.mark.parametrize("overrides", [
        {"action": "hold"},
        {"amount": "0"},
        {"amount": "-1"},
        {"amount": "abc"},
        {"target_price": "0"},
        {"target_price": "nan"},
        {"asset": "  "},
        {"platform": "binance"},
    ])
    def test_rejects_invalid_parameters(self, store, overrides):
        """Invalid input raises and nothing is stored."""
        with pytest.raises(ValidationError):
            create_order(store, **overrides)

        assert len(store) == 0
        assert store.list_by_owner("u1") == []

    def test_rejects_platform_outside_allow_list(self, store):
        with pytest.raises(ValidationError) as exc_info:
            create_order(store, platform="polymarket")

        assert "not supported on polymarket" in str(exc_info.value)

    def test_custom_allow_list(self):
        store = OrderStore(allowed_platforms=[Platform.POLYMARKET])

        order = create_order(store, platform="polymarket", asset="Will BTC hit 200k?")

        assert order.platform == Platform.POLYMARKET

    def test_failed_create_does_not_consume_id(self, store):
        with pytest.raises(ValidationError):
            create_order(store, amount="-5")

        assert create_order(store).id == 1

    def test_concurrent_creates_get_unique_ids(self, store):
        """Creates from many threads never share an id."""
        def worker(owner):
            for _ in range(50):
                create_order(store, owner=owner)

        threads = [threading.Thread(target=worker, args=(f"u{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [order.id for i in range(8) for order in store.list_by_owner(f"u{i}")]
        assert len(ids) == 400
        assert len(set(ids)) == 400
        assert max(ids) == 400


class TestListByOwner:
    """Tests for listing orders."""

    def test_unknown_owner_returns_empty(self, store):
        assert store.list_by_owner("nobody") == []

    def test_insertion_order_and_isolation(self, store):
        a = create_order(store, asset="SOL")
        create_order(store, owner="u2", asset="JUP")
        b = create_order(store, asset="BONK")

        orders = store.list_by_owner("u1")

        assert [o.id for o in orders] == [a.id, b.id]

    def test_includes_terminal_orders(self, store):
        order = create_order(store)
        store.cancel("u1", order.id)

        orders = store.list_by_owner("u1")

        assert len(orders) == 1
        assert orders[0].status == OrderStatus.CANCELLED

    def test_returns_a_copy(self, store):
        create_order(store)

        store.list_by_owner("u1").clear()

        assert len(store.list_by_owner("u1")) == 1


class TestCancel:
    """Tests for cancellation."""

    def test_cancel_active_order(self, store):
        order = create_order(store)

        cancelled = store.cancel("u1", order.id)

        assert cancelled.status == OrderStatus.CANCELLED
        assert store.get("u1", order.id).status == OrderStatus.CANCELLED
        assert store.active_orders() == []

    def test_cancel_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            store.cancel("u1", 42)

    def test_cancel_other_owners_order(self, store):
        """Another user's order is reported as not found and left untouched."""
        order = create_order(store, owner="u1")

        with pytest.raises(NotFoundError):
            store.cancel("u2", order.id)

        assert store.get("u1", order.id).status == OrderStatus.ACTIVE

    def test_double_cancel_fails(self, store):
        order = create_order(store)
        store.cancel("u1", order.id)

        with pytest.raises(InvalidStateError) as exc_info:
            store.cancel("u1", order.id)

        assert exc_info.value.status == "cancelled"
        assert store.get("u1", order.id).status == OrderStatus.CANCELLED

    def test_cancel_executed_order_fails(self, store):
        order = create_order(store)
        store.mark_executed("u1", order.id, Decimal("99"))

        with pytest.raises(InvalidStateError):
            store.cancel("u1", order.id)

        stored = store.get("u1", order.id)
        assert stored.status == OrderStatus.EXECUTED
        assert stored.executed_price == Decimal("99")


class TestMarkExecuted:
    """Tests for recording fills."""

    def test_sets_execution_fields(self, store):
        order = create_order(store)

        executed = store.mark_executed("u1", order.id, "97.25", reference="tx-1")

        assert executed.status == OrderStatus.EXECUTED
        assert executed.executed_at == FIXED_NOW
        assert executed.executed_price == Decimal("97.25")
        assert executed.execution_reference == "tx-1"
        assert not store.is_active("u1", order.id)

    def test_double_execute_fails(self, store):
        order = create_order(store)
        store.mark_executed("u1", order.id, Decimal("97"))

        with pytest.raises(InvalidStateError):
            store.mark_executed("u1", order.id, Decimal("96"))

        assert store.get("u1", order.id).executed_price == Decimal("97")

    def test_execute_cancelled_order_fails(self, store):
        order = create_order(store)
        store.cancel("u1", order.id)

        with pytest.raises(InvalidStateError):
            store.mark_executed("u1", order.id, Decimal("97"))

        stored = store.get("u1", order.id)
        assert stored.status == OrderStatus.CANCELLED
        assert stored.executed_at is None
        assert stored.executed_price is None


class TestActiveOrders:
    """Tests for the monitor's snapshot."""

    def test_only_active_orders_across_owners(self, store):
        a = create_order(store, owner="u1")
        b = create_order(store, owner="u2")
        c = create_order(store, owner="u3")
        store.cancel("u2", b.id)

        assert [o.id for o in store.active_orders()] == [a.id, c.id]

    def test_is_active_unknown_order(self, store):
        assert store.is_active("u1", 7) is False
