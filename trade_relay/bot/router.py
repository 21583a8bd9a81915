"""
Chat command router.

Turns Telegram command text into calls on the order store, the venue
registry and the wallet service, and renders the reply.
"""

from decimal import Decimal
from typing import Awaitable, Callable, Optional

import aiohttp

from .. import messages
from ..clients.gamma_client import GammaClient
from ..clients.jupiter_client import JupiterClient
from ..clients.privy_client import PrivyClient
from ..clients.telegram_client import ChatMessage
from ..errors import AdapterUnavailable, RelayError
from ..models import ChainType, Platform, TradeAction
from ..orders.store import OrderStore
from ..utils.logger import get_logger
from ..utils.numbers import to_decimal
from ..venues.registry import VenueRegistry

logger = get_logger("router")

Handler = Callable[[ChatMessage, list[str]], Awaitable[str]]
StatsSource = Callable[[], dict]

TOP_MARKETS = 5


class CommandError(Exception):
    """Malformed command, rendered back to the user as-is."""


class CommandRouter:
    """
    Dispatches slash commands.

    Typed store errors and venue outages become user-facing replies;
    unexpected errors are logged and answered with a generic message.
    """

    def __init__(
        self,
        store: OrderStore,
        venues: VenueRegistry,
        wallets: PrivyClient,
        monitor_interval_seconds: float = 30.0,
        markets: Optional[GammaClient] = None,
        tokens: Optional[JupiterClient] = None,
        stats: Optional[StatsSource] = None
    ):
        """
        Initialize router.

        Args:
            store: Shared order store
            venues: Venue registry for prices and immediate trades
            wallets: Custody wallet service
            monitor_interval_seconds: Shown to users when an order is created
            markets: Gamma client for /markets
            tokens: Jupiter client for /tokeninfo
            stats: Returns monitor statistics for /status
        """
        self.store = store
        self.venues = venues
        self.wallets = wallets
        self.monitor_interval_seconds = monitor_interval_seconds
        self.markets = markets
        self.tokens = tokens
        self.stats = stats

        self._handlers: dict[str, Handler] = {
            "start": self._start,
            "wallet": self._wallet,
            "createwallet": self._create_wallet,
            "trade": self._trade,
            "price": self._price,
            "limit": self._limit,
            "orders": self._orders,
            "cancel": self._cancel,
            "markets": self._markets,
            "tokeninfo": self._token_info,
            "status": self._status,
            "help": self._help,
        }

    @staticmethod
    def parse_command(text: str) -> Optional[tuple[str, list[str]]]:
        """
        Split "/cmd@BotName arg1 arg2" into ("cmd", ["arg1", "arg2"]).

        Returns None for text that is not a command.
        """
        parts = text.strip().split()
        if not parts or not parts[0].startswith("/"):
            return None
        command = parts[0][1:].split("@", 1)[0].lower()
        return command, parts[1:]

    async def handle(self, message: ChatMessage) -> Optional[str]:
        """
        Handle one incoming message.

        Returns:
            Reply text, or None when the message is not a command
        """
        parsed = self.parse_command(message.text)
        if parsed is None:
            return None

        command, args = parsed
        handler = self._handlers.get(command)
        if handler is None:
            return "❓ Unknown command. Use /help to see available commands."

        logger.debug(
            "Handling command",
            extra={"command": command, "user_id": message.user_id}
        )

        try:
            return await handler(message, args)
        except CommandError as e:
            return str(e)
        except AdapterUnavailable as e:
            logger.warning(f"Venue unavailable: {e}", extra={"command": command})
            return f"❌ Service unavailable: {e}"
        except RelayError as e:
            return f"❌ {e}"
        except aiohttp.ClientError as e:
            logger.error(f"Upstream request failed: {e}", extra={"command": command})
            return "❌ Service temporarily unavailable. Please try again."
        except Exception as e:
            logger.error(
                f"Command /{command} failed: {e}",
                extra={"user_id": message.user_id},
                exc_info=True
            )
            return "❌ Something went wrong. Please try again."

    # Commands

    async def _start(self, message: ChatMessage, args: list[str]) -> str:
        return messages.welcome(await self._wallet_addresses(message.user_id))

    async def _wallet(self, message: ChatMessage, args: list[str]) -> str:
        return messages.wallets(await self._wallet_addresses(message.user_id))

    async def _create_wallet(self, message: ChatMessage, args: list[str]) -> str:
        chain = args[0].lower() if args else ChainType.SOLANA.value
        try:
            chain_type = ChainType(chain)
        except ValueError:
            raise CommandError("Usage: /createwallet [solana|ethereum]")

        wallet = await self.wallets.get_or_create_wallet(message.user_id, chain_type)
        return f"✅ {chain_type.value.capitalize()} wallet ready:\n{wallet.address}"

    async def _trade(self, message: ChatMessage, args: list[str]) -> str:
        usage = messages.TRADE_USAGE.format(platforms=self._venue_names())
        if len(args) < 4:
            raise CommandError(usage)

        platform = self._parse_platform(args[0])
        action = self._parse_action(args[1])
        amount = self._parse_positive(args[2], "amount")
        asset = " ".join(args[3:])
        self._require_venue(platform)

        wallet = await self.wallets.get_or_create_wallet(message.user_id, platform.chain_type)
        result = await self.venues.execute(platform, action, amount, asset, wallet.wallet_id)
        if not result.success:
            return f"❌ Trade failed: {result.error or 'unknown error'}"

        return messages.trade_result(
            platform=platform.value,
            action=action.value.upper(),
            amount=amount,
            asset=asset,
            executed_price=result.executed_price,
            reference=result.reference,
            simulated=result.simulated
        )

    async def _price(self, message: ChatMessage, args: list[str]) -> str:
        if len(args) < 2:
            raise CommandError(f"Usage: /price <platform> <asset>\n\nPlatforms: {self._venue_names()}")

        platform = self._parse_platform(args[0])
        asset = " ".join(args[1:])
        self._require_venue(platform)

        price = await self.venues.get_price(platform, asset)
        return messages.price_quote(platform.value, asset, price)

    async def _limit(self, message: ChatMessage, args: list[str]) -> str:
        usage = messages.LIMIT_USAGE.format(platforms=self._limit_platform_names())
        if len(args) < 5:
            raise CommandError(usage)

        platform = self._parse_platform(args[0])
        if platform not in self.store.allowed_platforms:
            raise CommandError(
                f"❌ Limit orders are only supported on: {self._limit_platform_names()}"
            )
        action = self._parse_action(args[1])
        amount = self._parse_positive(args[2], "amount")
        target_price = self._parse_positive(args[-1], "price")
        asset = " ".join(args[3:-1])
        self._require_venue(platform)

        wallet = await self.wallets.get_or_create_wallet(message.user_id, platform.chain_type)
        order = self.store.create(
            owner=message.user_id,
            platform=platform,
            action=action,
            amount=amount,
            asset=asset,
            target_price=target_price,
            wallet_reference=wallet.wallet_id,
            notification_channel=message.chat_id
        )
        return messages.order_created(order, self.monitor_interval_seconds)

    async def _orders(self, message: ChatMessage, args: list[str]) -> str:
        return messages.order_list(self.store.list_by_owner(message.user_id))

    async def _cancel(self, message: ChatMessage, args: list[str]) -> str:
        if not args:
            raise CommandError("Usage: /cancel <order_id>")
        try:
            order_id = int(args[0].lstrip("#"))
        except ValueError:
            raise CommandError("❌ Invalid order ID")

        order = self.store.cancel(message.user_id, order_id)
        return messages.order_cancelled(order)

    async def _markets(self, message: ChatMessage, args: list[str]) -> str:
        if self.markets is None:
            raise CommandError("❌ Market listing is not enabled on this bot")
        return messages.markets(await self.markets.top_markets(TOP_MARKETS))

    async def _token_info(self, message: ChatMessage, args: list[str]) -> str:
        if not args:
            raise CommandError(messages.TOKENINFO_USAGE)
        if self.tokens is None:
            raise CommandError("❌ Token lookup is not enabled on this bot")

        query = " ".join(args)
        return messages.token_info(query, await self.tokens.search_token(query))

    async def _status(self, message: ChatMessage, args: list[str]) -> str:
        return messages.status(
            venues=[p.value for p in self.venues.platforms],
            limit_platforms=sorted(p.value for p in self.store.allowed_platforms),
            interval_seconds=self.monitor_interval_seconds,
            stats=self.stats() if self.stats else {}
        )

    async def _help(self, message: ChatMessage, args: list[str]) -> str:
        return messages.HELP

    # Helpers

    async def _wallet_addresses(self, user_id: str) -> dict[str, str]:
        addresses = {}
        for chain_type in ChainType:
            wallet = await self.wallets.get_or_create_wallet(user_id, chain_type)
            addresses[chain_type.value] = wallet.address
        return addresses

    def _require_venue(self, platform: Platform) -> None:
        if not self.venues.supports(platform):
            raise CommandError(f"❌ {platform.value} is not enabled on this bot")

    def _venue_names(self) -> str:
        return ", ".join(p.value for p in self.venues.platforms)

    def _limit_platform_names(self) -> str:
        return ", ".join(sorted(p.value for p in self.store.allowed_platforms))

    @staticmethod
    def _parse_platform(value: str) -> Platform:
        try:
            return Platform.parse(value)
        except ValueError as e:
            raise CommandError(f"❌ {e}")

    @staticmethod
    def _parse_action(value: str) -> TradeAction:
        try:
            return TradeAction.parse(value)
        except ValueError as e:
            raise CommandError(f"❌ {e}")

    @staticmethod
    def _parse_positive(value: str, name: str) -> Decimal:
        try:
            result = to_decimal(value.lstrip("$").replace(",", ""))
        except ValueError:
            raise CommandError(f"❌ Invalid {name}: {value}")
        if result <= 0:
            raise CommandError(f"❌ Invalid {name}: must be a positive number")
        return result
