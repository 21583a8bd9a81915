"""
Tests for the API clients.
"""

import time
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from py_clob_client.exceptions import PolyApiException

from trade_relay.clients.clob_client import CLOBClient, OrderSide, fill_price
from trade_relay.clients.gamma_client import GammaClient, Market
from trade_relay.clients.hyperliquid_client import HyperliquidClient
from trade_relay.clients.telegram_client import TelegramClient, split_long_message
from trade_relay.errors import AdapterUnavailable
from trade_relay.utils.numbers import format_price, from_base_units, parse_decimal, to_base_units


class TestTelegramParsing:
    """Tests for update parsing and message splitting."""

    def test_parse_text_message(self):
        update = {
            "update_id": 10,
            "message": {
                "text": " /orders ",
                "from": {"id": 111, "username": "alice"},
                "chat": {"id": -222},
            },
        }

        message = TelegramClient._parse_message(update)

        assert message.update_id == 10
        assert message.user_id == "111"
        assert message.chat_id == "-222"
        assert message.text == "/orders"
        assert message.username == "alice"

    def test_ignores_non_text_updates(self):
        assert TelegramClient._parse_message({"update_id": 1, "message": {"photo": []}}) is None
        assert TelegramClient._parse_message({"update_id": 2, "edited_message": {}}) is None

    def test_short_message_not_split(self):
        assert split_long_message("hello") == ["hello"]

    def test_split_on_line_boundaries(self):
        text = "\n".join(["x" * 30] * 10)

        chunks = split_long_message(text, max_len=100)

        assert all(len(chunk) <= 100 for chunk in chunks)
        assert "\n".join(chunks) == text

    def test_split_overlong_line(self):
        chunks = split_long_message("y" * 250, max_len=100)

        assert [len(c) for c in chunks] == [100, 100, 50]


class TestHyperliquidParsing:
    """Tests for exchange response parsing."""

    def test_filled(self):
        data = {
            "status": "ok",
            "response": {
                "type": "order",
                "data": {"statuses": [{"filled": {"totalSz": "0.02", "avgPx": "1891.4", "oid": 77738308}}]},
            },
        }

        response = HyperliquidClient._parse_order_response(data)

        assert response.success
        assert response.order_id == "77738308"
        assert response.filled_size == Decimal("0.02")
        assert response.avg_price == Decimal("1891.4")

    def test_resting(self):
        data = {
            "status": "ok",
            "response": {"data": {"statuses": [{"resting": {"oid": 5}}]}},
        }

        response = HyperliquidClient._parse_order_response(data)

        assert response.success
        assert response.resting

    def test_order_error(self):
        data = {
            "status": "ok",
            "response": {"data": {"statuses": [{"error": "Order must have minimum value of $10."}]}},
        }

        response = HyperliquidClient._parse_order_response(data)

        assert not response.success
        assert "minimum value" in response.error

    def test_request_error(self):
        response = HyperliquidClient._parse_order_response({"status": "err", "response": "bad sig"})

        assert not response.success
        assert response.error == "bad sig"


class TestGammaParsing:
    """Tests for market parsing."""

    def test_parse_market_with_json_string_fields(self):
        data = {
            "conditionId": "0xabc",
            "question": "Will BTC hit 200k in 2025?",
            "clobTokenIds": '["111", "222"]',
            "outcomes": '["Yes", "No"]',
            "outcomePrices": '["0.38", "0.62"]',
            "active": True,
            "closed": False,
            "negRisk": False,
            "endDate": "2025-12-31T12:00:00Z",
        }

        market = GammaClient()._parse_market(data)

        assert market.condition_id == "0xabc"
        assert len(market.tokens) == 2
        yes = market.get_yes_token()
        assert yes.token_id == "111"
        assert yes.price == Decimal("0.38")
        assert market.end_date.year == 2025

    def test_non_binary_market_uses_first_outcome(self):
        data = {
            "question": "Who wins?",
            "clobTokenIds": ["9", "8"],
            "outcomes": ["Alice", "Bob"],
        }

        market = GammaClient()._parse_market(data)

        assert market.get_yes_token().outcome == "Alice"
        assert market.get_yes_token().price is None

    @pytest.mark.asyncio
    async def test_top_markets_uses_fresh_cache(self):
        client = GammaClient()
        client._markets_cache = [
            Market(condition_id="a", question="Closed one", closed=True),
            Market(condition_id="b", question="Busiest"),
            Market(condition_id="c", question="Runner-up"),
        ]
        client._cache_timestamp = time.time()

        top = await client.top_markets(limit=1)

        assert [m.question for m in top] == ["Busiest"]


class TestCLOBClient:
    """Tests for the py-clob-client wrapper."""

    @pytest.fixture
    def clob(self):
        client = CLOBClient(
            api_key="k",
            api_secret="s",
            api_passphrase="p",
            private_key="0x" + "1" * 64
        )
        client._client = MagicMock()
        return client

    @pytest.mark.asyncio
    async def test_midpoint(self, clob):
        clob._client.get_midpoint.return_value = {"mid": "0.455"}

        assert await clob.get_midpoint("yes-token") == Decimal("0.455")

    @pytest.mark.asyncio
    async def test_missing_book_has_no_midpoint(self, clob):
        clob._client.get_midpoint.side_effect = PolyApiException(
            error_msg={"error": "No orderbook exists for the requested token id"}
        )

        assert await clob.get_midpoint("yes-token") is None

    @pytest.mark.asyncio
    async def test_request_failure_is_unavailable(self, clob):
        clob._client.get_midpoint.side_effect = PolyApiException(error_msg="Request exception!")

        with pytest.raises(AdapterUnavailable) as exc_info:
            await clob.get_midpoint("yes-token")

        assert exc_info.value.platform == "polymarket"

    @pytest.mark.asyncio
    async def test_order_reports_matched_price(self, clob):
        clob._client.post_order.return_value = {
            "success": True,
            "orderID": "0xorder",
            "status": "matched",
            "makingAmount": "4.1",
            "takingAmount": "10",
        }

        result = await clob.place_order("yes-token", OrderSide.BUY, size=10.0, price=0.42)

        assert result.success
        assert result.order_id == "0xorder"
        assert result.avg_price == Decimal("0.41")

    @pytest.mark.asyncio
    async def test_order_without_amounts_has_no_price(self, clob):
        clob._client.post_order.return_value = {"success": True, "orderID": "0xorder"}

        result = await clob.place_order("yes-token", OrderSide.BUY, size=10.0, price=0.42)

        assert result.success
        assert result.avg_price is None

    @pytest.mark.asyncio
    async def test_rejected_order(self, clob):
        clob._client.post_order.return_value = {"success": False, "errorMsg": "not enough balance"}

        result = await clob.place_order("yes-token", OrderSide.SELL, size=10.0, price=0.38)

        assert not result.success
        assert result.error == "not enough balance"

    def test_fill_price_by_side(self):
        assert fill_price(OrderSide.BUY, Decimal("4.1"), Decimal("10")) == Decimal("0.41")
        assert fill_price(OrderSide.SELL, Decimal("10"), Decimal("3.9")) == Decimal("0.39")
        assert fill_price(OrderSide.SELL, None, Decimal("3.9")) is None


class TestNumbers:
    """Tests for decimal helpers."""

    def test_base_units(self):
        assert to_base_units(Decimal("1.5"), 6) == 1_500_000
        assert to_base_units(Decimal("0.0000001"), 6) == 0
        assert to_base_units(Decimal("0.0000001"), 6, round_up=True) == 1
        assert from_base_units("2500000", 6) == Decimal("2.5")

    def test_parse_decimal(self):
        assert parse_decimal("1.25") == Decimal("1.25")
        assert parse_decimal(None) is None
        assert parse_decimal("abc") is None
        assert parse_decimal(True) is None

    def test_format_price(self):
        assert format_price(Decimal("95000")) == "95,000.00"
        assert format_price(Decimal("0.123456")) == "0.1235"
        assert format_price(None) == "n/a"
