"""
Main entry point for the Sniffy trade relay.
Wires the chat front-end, order store, venues and order monitor and runs
the main event loop.
"""

import asyncio
import signal
import sys
from typing import Optional

# Use uvloop for better performance on Linux
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass  # uvloop not available (Windows)

import aiohttp

from .bot.router import CommandRouter
from .clients.clob_client import CLOBClient
from .clients.gamma_client import GammaClient
from .clients.hyperliquid_client import HyperliquidClient
from .clients.jupiter_client import JupiterClient
from .clients.privy_client import PrivyClient
from .clients.telegram_client import ChatMessage, TelegramClient
from .config import load_config, Config
from .models import Platform
from .orders.monitor import OrderMonitor
from .orders.store import OrderStore
from .utils.logger import setup_logging, get_logger
from .venues.base import VenueAdapter
from .venues.hyperliquid import HyperliquidVenue
from .venues.polymarket import PolymarketVenue
from .venues.registry import VenueRegistry
from .venues.solana import SolanaVenue

logger = get_logger("main")


def build_venues(config: Config, privy: PrivyClient) -> VenueRegistry:
    """Create the venue adapters enabled by configuration."""
    simulation = config.risk.simulation_mode
    venue_config = config.venues

    adapters: list[VenueAdapter] = [
        SolanaVenue(
            JupiterClient(api_key=venue_config.jupiter_api_key),
            privy,
            simulation_mode=simulation
        ),
        HyperliquidVenue(
            HyperliquidClient(testnet=venue_config.hyperliquid_testnet),
            privy,
            simulation_mode=simulation
        ),
    ]

    if venue_config.polymarket_enabled:
        adapters.append(
            PolymarketVenue(
                GammaClient(),
                CLOBClient(
                    api_key=venue_config.polymarket_api_key,
                    api_secret=venue_config.polymarket_api_secret,
                    api_passphrase=venue_config.polymarket_api_passphrase,
                    private_key=venue_config.polymarket_private_key
                ),
                simulation_mode=simulation
            )
        )
    else:
        logger.warning("Polymarket credentials not set - polymarket venue disabled")

    return VenueRegistry(
        adapters,
        timeouts={
            Platform.SOLANA: venue_config.solana_timeout_seconds,
            Platform.HYPERLIQUID: venue_config.hyperliquid_timeout_seconds,
            Platform.POLYMARKET: venue_config.polymarket_timeout_seconds,
        }
    )


class TradeRelayBot:
    """
    Main bot orchestrator.

    Coordinates:
    - Telegram long polling and command handling
    - Limit order monitoring and execution
    - Periodic statistics
    """

    def __init__(self, config: Config):
        """Initialize bot with configuration."""
        self.config = config
        self._running = False
        self._shutdown_event = asyncio.Event()

        self.telegram = TelegramClient(
            bot_token=config.telegram.bot_token,
            api_url=config.telegram.api_url,
            poll_timeout_seconds=config.telegram.poll_timeout_seconds
        )

        self.privy = PrivyClient(
            app_id=config.privy.app_id,
            app_secret=config.privy.app_secret,
            auth_key_id=config.privy.auth_key_id,
            api_url=config.privy.api_url
        )

        self.venues = build_venues(config, self.privy)

        allowed = [Platform.parse(p) for p in config.monitor.limit_order_platforms]
        self.store = OrderStore(allowed_platforms=allowed)

        # Gamma is public, so market listings work without CLOB credentials
        if self.venues.supports(Platform.POLYMARKET):
            self.gamma = self.venues.get_adapter(Platform.POLYMARKET).gamma
            self._owns_gamma = False
        else:
            self.gamma = GammaClient()
            self._owns_gamma = True

        self.router = CommandRouter(
            store=self.store,
            venues=self.venues,
            wallets=self.privy,
            monitor_interval_seconds=config.monitor.interval_seconds,
            markets=self.gamma,
            tokens=self.venues.get_adapter(Platform.SOLANA).jupiter,
            stats=self.monitor_stats
        )

        self.monitor: Optional[OrderMonitor] = None
        self._polling_task: Optional[asyncio.Future] = None

        # Stats
        self._commands_handled = 0

    async def initialize(self) -> None:
        """Initialize all components."""
        logger.info("Initializing trade relay")

        if self.config.risk.kill_switch:
            logger.warning("Kill switch is enabled - limit orders will not execute")
        if self.config.risk.simulation_mode:
            logger.warning("[SIMULATION] Trades are quoted but never submitted")

        await self.telegram.initialize()
        await self.privy.initialize()
        await self.venues.initialize()
        if self._owns_gamma:
            await self.gamma.initialize()

        self.monitor = OrderMonitor(
            store=self.store,
            venues=self.venues,
            notifier=self.telegram,
            interval_seconds=self.config.monitor.interval_seconds,
            max_execution_failures=self.config.monitor.max_execution_failures,
            kill_switch=self.config.risk.kill_switch
        )

        logger.info(
            "Trade relay initialized",
            extra={
                "venues": [p.value for p in self.venues.platforms],
                "limit_platforms": sorted(p.value for p in self.store.allowed_platforms)
            }
        )

    async def run(self) -> None:
        """Run the main bot loop."""
        self._running = True

        logger.info("Starting trade relay")

        self._polling_task = asyncio.ensure_future(self._run_polling())

        try:
            await asyncio.gather(
                self._polling_task,
                self._run_monitor(),
                self._run_stats_reporter(),
                self._wait_for_shutdown()
            )

        except Exception as e:
            logger.error(f"Bot error: {e}")
            raise

    async def _run_polling(self) -> None:
        """Long-poll Telegram and answer commands."""
        while self._running:
            try:
                updates = await self.telegram.get_updates()
            except asyncio.CancelledError:
                break  # shutdown interrupts the long poll
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Telegram polling error: {e}")
                await asyncio.sleep(5)
                continue

            for message in updates:
                await self._handle_message(message)

    async def _handle_message(self, message: ChatMessage) -> None:
        reply = await self.router.handle(message)
        if reply is None:
            return

        self._commands_handled += 1
        await self.telegram.notify(message.chat_id, reply)

    async def _run_monitor(self) -> None:
        """Run the limit order monitor until shutdown."""
        await self.monitor.run()

    async def _run_stats_reporter(self) -> None:
        """Periodically report statistics."""
        while self._running:
            try:
                await asyncio.sleep(60)  # Every minute

                if not self._running:
                    break

                self._log_stats()

            except Exception as e:
                logger.error(f"Stats reporter error: {e}")

    async def _wait_for_shutdown(self) -> None:
        """Wait for shutdown signal, then stop the loops."""
        await self._shutdown_event.wait()
        self._running = False
        if self.monitor:
            self.monitor.stop()
        if self._polling_task:
            self._polling_task.cancel()

    def monitor_stats(self) -> dict:
        """Monitor statistics, empty before initialization."""
        return self.monitor.get_stats() if self.monitor else {}

    def _log_stats(self) -> None:
        """Log current statistics."""
        monitor_stats = self.monitor_stats()

        logger.info(
            "Bot statistics",
            extra={
                "commands_handled": self._commands_handled,
                "orders_total": len(self.store),
                **monitor_stats
            }
        )

    async def shutdown(self) -> None:
        """Gracefully shutdown the bot."""
        logger.info("Shutting down trade relay")
        self._running = False

        if self.monitor:
            self.monitor.stop()

        # Close HTTP sessions
        await self.venues.close()
        if self._owns_gamma:
            await self.gamma.close()
        await self.privy.close()
        await self.telegram.close()

        # Log final stats
        self._log_stats()

        logger.info("Trade relay shutdown complete")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def setup_signal_handlers(bot: TradeRelayBot) -> None:
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        bot.request_shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


async def main() -> None:
    """Main entry point."""
    # Load configuration
    try:
        config = load_config()
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    # Set up logging
    setup_logging(
        level=config.logging.log_level,
        json_format=config.logging.json_logging
    )

    logger.info("Starting Sniffy trade relay")

    # Create and run bot
    bot = TradeRelayBot(config)
    setup_signal_handlers(bot)

    try:
        await bot.initialize()
        await bot.run()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        await bot.shutdown()


def cli() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
