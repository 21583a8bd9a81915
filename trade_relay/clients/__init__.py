# External service clients
from .telegram_client import TelegramClient
from .privy_client import PrivyClient
from .jupiter_client import JupiterClient
from .hyperliquid_client import HyperliquidClient
from .gamma_client import GammaClient
from .clob_client import CLOBClient

__all__ = [
    "TelegramClient",
    "PrivyClient",
    "JupiterClient",
    "HyperliquidClient",
    "GammaClient",
    "CLOBClient",
]
