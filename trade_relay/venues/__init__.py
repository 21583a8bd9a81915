# Venue adapters
from .base import ExecutionResult, VenueAdapter
from .registry import VenueRegistry
from .solana import SolanaVenue
from .hyperliquid import HyperliquidVenue
from .polymarket import PolymarketVenue

__all__ = [
    "ExecutionResult",
    "VenueAdapter",
    "VenueRegistry",
    "SolanaVenue",
    "HyperliquidVenue",
    "PolymarketVenue",
]
