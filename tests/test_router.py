"""
Tests for chat command handling.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from trade_relay.bot.router import CommandRouter
from trade_relay.clients.gamma_client import GammaClient, Market, Token
from trade_relay.clients.jupiter_client import JupiterClient, TokenInfo
from trade_relay.clients.privy_client import PrivyClient, Wallet
from trade_relay.clients.telegram_client import ChatMessage
from trade_relay.errors import AdapterUnavailable
from trade_relay.models import ChainType, Platform, TradeAction
from trade_relay.orders.models import OrderStatus
from trade_relay.orders.store import OrderStore
from trade_relay.venues.base import ExecutionResult
from trade_relay.venues.registry import VenueRegistry


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
def venues():
    registry = AsyncMock(spec=VenueRegistry)
    registry.platforms = [Platform.SOLANA, Platform.HYPERLIQUID, Platform.POLYMARKET]
    registry.supports = MagicMock(return_value=True)
    registry.get_price.return_value = Decimal("187.5")
    registry.execute.return_value = ExecutionResult.filled(
        Decimal("188"), "sim-abc", simulated=True
    )
    return registry


@pytest.fixture
def wallets():
    client = AsyncMock(spec=PrivyClient)

    async def get_or_create_wallet(user_id, chain_type):
        return Wallet(
            wallet_id=f"wallet-{chain_type.value}-{user_id}",
            address=f"addr-{chain_type.value}",
            chain_type=chain_type
        )

    client.get_or_create_wallet.side_effect = get_or_create_wallet
    return client


@pytest.fixture
def router(store, venues, wallets):
    return CommandRouter(store, venues, wallets, monitor_interval_seconds=30.0)


def message(text, user_id="u1", chat_id="c1"):
    return ChatMessage(update_id=1, chat_id=chat_id, user_id=user_id, text=text)


class TestParsing:
    """Tests for command tokenization."""

    def test_parse_command_with_bot_suffix(self):
        assert CommandRouter.parse_command("/Limit@SniffyBot solana buy 1 SOL 100") == (
            "limit", ["solana", "buy", "1", "SOL", "100"]
        )

    def test_plain_text_is_not_a_command(self):
        assert CommandRouter.parse_command("hello there") is None
        assert CommandRouter.parse_command("   ") is None

    @pytest.mark.asyncio
    async def test_plain_text_gets_no_reply(self, router):
        assert await router.handle(message("gm")) is None

    @pytest.mark.asyncio
    async def test_unknown_command(self, router):
        reply = await router.handle(message("/moon"))

        assert "Unknown command" in reply


class TestLimitOrders:
    """Tests for /limit, /orders and /cancel."""

    @pytest.mark.asyncio
    async def test_limit_creates_order(self, router, store, wallets):
        reply = await router.handle(message("/limit solana buy 0.01 SOL 200", chat_id="chat-9"))

        assert "Limit Order Created" in reply
        assert "every 30 seconds" in reply

        orders = store.list_by_owner("u1")
        assert len(orders) == 1
        order = orders[0]
        assert order.platform == Platform.SOLANA
        assert order.action == TradeAction.BUY
        assert order.amount == Decimal("0.01")
        assert order.target_price == Decimal("200")
        assert order.wallet_reference == "wallet-solana-u1"
        assert order.notification_channel == "chat-9"
        wallets.get_or_create_wallet.assert_called_once_with("u1", ChainType.SOLANA)

    @pytest.mark.asyncio
    async def test_limit_hyperliquid_uses_ethereum_wallet(self, router, store):
        await router.handle(message("/limit hyperliquid sell 1 BTC 100000"))

        order = store.list_by_owner("u1")[0]
        assert order.wallet_reference == "wallet-ethereum-u1"

    @pytest.mark.asyncio
    async def test_limit_rejects_polymarket(self, router, store, wallets):
        reply = await router.handle(message("/limit polymarket buy 10 btc-200k 0.4"))

        assert "only supported on" in reply
        assert store.list_by_owner("u1") == []
        wallets.get_or_create_wallet.assert_not_called()

    @pytest.mark.parametrize("text, expected", [
        ("/limit solana buy abc SOL 200", "Invalid amount"),
        ("/limit solana buy 1 SOL -5", "Invalid price"),
        ("/limit solana hodl 1 SOL 200", "Invalid action"),
        ("/limit binance buy 1 SOL 200", "Invalid platform"),
        ("/limit solana buy 1", "Usage: /limit"),
    ])
    @pytest.mark.asyncio
    async def test_limit_rejects_bad_input(self, router, store, text, expected):
        reply = await router.handle(message(text))

        assert expected in reply
        assert store.list_by_owner("u1") == []

    @pytest.mark.asyncio
    async def test_orders_empty(self, router):
        reply = await router.handle(message("/orders"))

        assert "No limit orders found" in reply

    @pytest.mark.asyncio
    async def test_orders_lists_own_orders(self, router):
        await router.handle(message("/limit solana buy 1 SOL 150", user_id="u1"))
        await router.handle(message("/limit solana buy 2 JUP 1", user_id="u2"))

        reply = await router.handle(message("/orders", user_id="u1"))

        assert "#1:" in reply
        assert "JUP" not in reply

    @pytest.mark.asyncio
    async def test_cancel_own_order(self, router, store):
        await router.handle(message("/limit solana buy 1 SOL 150"))

        reply = await router.handle(message("/cancel 1"))

        assert "Order Cancelled" in reply
        assert store.get("u1", 1).status == OrderStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_someone_elses_order(self, router, store):
        await router.handle(message("/limit solana buy 1 SOL 150", user_id="u1"))

        reply = await router.handle(message("/cancel 1", user_id="u2"))

        assert reply == "❌ Order #1 not found"
        assert store.get("u1", 1).status == OrderStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_cancel_twice(self, router):
        await router.handle(message("/limit solana buy 1 SOL 150"))
        await router.handle(message("/cancel 1"))

        reply = await router.handle(message("/cancel 1"))

        assert reply == "❌ Cannot cancel order #1 - status: cancelled"

    @pytest.mark.asyncio
    async def test_cancel_bad_id(self, router):
        assert "Invalid order ID" in await router.handle(message("/cancel abc"))
        assert "Usage: /cancel" in await router.handle(message("/cancel"))


class TestTrading:
    """Tests for /trade and /price."""

    @pytest.mark.asyncio
    async def test_trade_executes_with_user_wallet(self, router, venues):
        reply = await router.handle(message("/trade hyperliquid buy 0.001 BTC"))

        venues.execute.assert_called_once_with(
            Platform.HYPERLIQUID,
            TradeAction.BUY,
            Decimal("0.001"),
            "BTC",
            "wallet-ethereum-u1"
        )
        assert "[SIMULATION]" in reply
        assert "sim-abc" in reply

    @pytest.mark.asyncio
    async def test_trade_multiword_market(self, router, venues):
        await router.handle(message("/trade polymarket buy 50 Will BTC hit 200k?"))

        args = venues.execute.call_args[0]
        assert args[3] == "Will BTC hit 200k?"

    @pytest.mark.asyncio
    async def test_trade_failure(self, router, venues):
        venues.execute.return_value = ExecutionResult.failed("insufficient balance")

        reply = await router.handle(message("/trade solana sell 1 SOL"))

        assert reply == "❌ Trade failed: insufficient balance"

    @pytest.mark.asyncio
    async def test_disabled_venue(self, router, venues):
        venues.supports.return_value = False

        reply = await router.handle(message("/trade polymarket buy 5 some market"))

        assert "not enabled" in reply
        venues.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_price(self, router):
        reply = await router.handle(message("/price solana SOL"))

        assert "187.50" in reply

    @pytest.mark.asyncio
    async def test_price_venue_unavailable(self, router, venues):
        venues.get_price.side_effect = AdapterUnavailable("solana", "price lookup timed out after 30.0s")

        reply = await router.handle(message("/price solana SOL"))

        assert "Service unavailable" in reply

    @pytest.mark.asyncio
    async def test_unexpected_error_gets_generic_reply(self, router, venues):
        venues.get_price.side_effect = RuntimeError("boom")

        reply = await router.handle(message("/price solana SOL"))

        assert reply == "❌ Something went wrong. Please try again."


class TestWallets:
    """Tests for wallet commands."""

    @pytest.mark.asyncio
    async def test_start_creates_both_wallets(self, router, wallets):
        reply = await router.handle(message("/start"))

        assert "addr-solana" in reply
        assert "addr-ethereum" in reply
        assert wallets.get_or_create_wallet.call_count == 2

    @pytest.mark.asyncio
    async def test_createwallet_chain(self, router):
        reply = await router.handle(message("/createwallet ethereum"))

        assert "addr-ethereum" in reply

    @pytest.mark.asyncio
    async def test_createwallet_bad_chain(self, router):
        reply = await router.handle(message("/createwallet dogecoin"))

        assert "Usage: /createwallet" in reply

    @pytest.mark.asyncio
    async def test_help(self, router):
        reply = await router.handle(message("/help"))

        assert "/limit" in reply


class TestInformation:
    """Tests for market, token and status commands."""

    @pytest.fixture
    def markets(self):
        client = AsyncMock(spec=GammaClient)
        client.top_markets.return_value = [
            Market(
                condition_id="cond-1",
                question="Will BTC hit 200k in 2025?",
                tokens=[Token(token_id="yes-token", outcome="Yes", price=Decimal("0.38"))]
            ),
            Market(condition_id="cond-2", question="Who wins the cup?"),
        ]
        return client

    @pytest.fixture
    def tokens(self):
        client = AsyncMock(spec=JupiterClient)
        client.search_token.return_value = TokenInfo(
            mint="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
            symbol="Bonk",
            name="Bonk",
            decimals=5,
            usd_price=Decimal("0.00002")
        )
        return client

    @pytest.fixture
    def stats(self):
        return MagicMock(return_value={"active_orders": 2, "orders_executed": 5, "cycles_run": 40})

    @pytest.fixture
    def info_router(self, store, venues, wallets, markets, tokens, stats):
        return CommandRouter(
            store, venues, wallets,
            markets=markets,
            tokens=tokens,
            stats=stats
        )

    @pytest.mark.asyncio
    async def test_markets(self, info_router, markets):
        reply = await info_router.handle(message("/markets"))

        assert "1. Will BTC hit 200k in 2025?" in reply
        assert "38.0¢" in reply
        assert "2. Who wins the cup?" in reply
        markets.top_markets.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_markets_gamma_down(self, info_router, markets):
        markets.top_markets.side_effect = aiohttp.ClientConnectionError("reset")

        reply = await info_router.handle(message("/markets"))

        assert "Service temporarily unavailable" in reply

    @pytest.mark.asyncio
    async def test_markets_not_configured(self, router):
        reply = await router.handle(message("/markets"))

        assert "not enabled" in reply

    @pytest.mark.asyncio
    async def test_tokeninfo(self, info_router, tokens):
        reply = await info_router.handle(message("/tokeninfo bonk"))

        assert "Symbol: Bonk" in reply
        assert "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263" in reply
        tokens.search_token.assert_called_once_with("bonk")

    @pytest.mark.asyncio
    async def test_tokeninfo_not_found(self, info_router, tokens):
        tokens.search_token.return_value = None

        reply = await info_router.handle(message("/tokeninfo nothingcoin"))

        assert "No tokens found" in reply

    @pytest.mark.asyncio
    async def test_tokeninfo_usage(self, info_router, tokens):
        reply = await info_router.handle(message("/tokeninfo"))

        assert "Usage: /tokeninfo" in reply
        tokens.search_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_status(self, info_router, stats):
        reply = await info_router.handle(message("/status"))

        assert "Online" in reply
        assert "• polymarket ✅" in reply
        assert "Active orders: 2" in reply
        assert "Executed: 5" in reply
        stats.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_status_before_monitor_starts(self, router):
        reply = await router.handle(message("/status"))

        assert "Monitor not running" in reply
