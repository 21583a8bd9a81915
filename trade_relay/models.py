"""
Shared enums for venues, wallets and orders.
"""

from enum import Enum


class Platform(Enum):
    """Supported trading venues."""
    SOLANA = "solana"            # Jupiter spot-swap aggregator
    HYPERLIQUID = "hyperliquid"  # Perpetuals exchange
    POLYMARKET = "polymarket"    # Prediction-market exchange

    @property
    def chain_type(self) -> "ChainType":
        """Custody wallet chain used to trade on this venue."""
        if self is Platform.SOLANA:
            return ChainType.SOLANA
        return ChainType.ETHEREUM

    @classmethod
    def parse(cls, value: str) -> "Platform":
        try:
            return cls(value.strip().lower())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise ValueError(f"Invalid platform '{value}'. Supported: {supported}")


class TradeAction(Enum):
    """Trade direction."""
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: str) -> "TradeAction":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid action '{value}'. Supported: buy, sell")


class ChainType(Enum):
    """Custody wallet chain families."""
    SOLANA = "solana"
    ETHEREUM = "ethereum"
