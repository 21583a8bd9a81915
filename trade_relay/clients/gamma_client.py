"""
Gamma API client for Polymarket market metadata.
Resolves free-text market questions to markets and outcome tokens.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

import aiohttp

from ..utils.logger import get_logger
from ..utils.numbers import parse_decimal

logger = get_logger("gamma")


@dataclass
class Token:
    """Token (outcome) information."""
    token_id: str
    outcome: str  # "Yes" or "No" or custom outcome name
    price: Optional[Decimal] = None


@dataclass
class Market:
    """Market information."""
    condition_id: str
    question: str
    tokens: list[Token] = field(default_factory=list)
    active: bool = True
    closed: bool = False
    neg_risk: bool = False
    end_date: Optional[datetime] = None

    def get_yes_token(self) -> Optional[Token]:
        """Get the YES token (first outcome for non yes/no markets)."""
        for token in self.tokens:
            if token.outcome.lower() == "yes":
                return token
        return self.tokens[0] if self.tokens else None


def _parse_list(raw) -> list:
    """Gamma encodes lists as JSON strings, arrays or comma-separated text."""
    if isinstance(raw, list):
        return raw
    if not raw:
        return []
    if raw.startswith("["):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            pass
    return raw.strip("[]").split(",")


class GammaClient:
    """
    Client for Polymarket Gamma API.

    The Gamma API provides market metadata and indicative outcome prices
    without requiring authentication.
    """

    BASE_URL = "https://gamma-api.polymarket.com"

    def __init__(self, cache_ttl_seconds: int = 60, page_size: int = 100):
        """
        Initialize Gamma client.

        Args:
            cache_ttl_seconds: How long to cache the active market list
            page_size: Markets fetched per search request
        """
        self.cache_ttl_seconds = cache_ttl_seconds
        self.page_size = page_size
        self._session: Optional[aiohttp.ClientSession] = None

        self._markets_cache: list[Market] = []
        self._cache_timestamp: float = 0.0

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession()
        logger.info("Gamma client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(self, endpoint: str, params: Optional[dict] = None):
        """Make HTTP request to Gamma API."""
        if not self._session:
            await self.initialize()

        url = f"{self.BASE_URL}{endpoint}"

        try:
            async with self._session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Gamma API request failed: {e}")
            raise

    async def fetch_markets(self) -> list[Market]:
        """Fetch active, open markets (most liquid first)."""
        data = await self._request(
            "/markets",
            params={
                "active": "true",
                "closed": "false",
                "limit": self.page_size,
                "order": "volume24hr",
                "ascending": "false"
            }
        )
        markets = [self._parse_market(m) for m in data or []]
        self._markets_cache = markets
        self._cache_timestamp = time.time()
        logger.debug(f"Fetched {len(markets)} active markets")
        return markets

    def is_cache_stale(self) -> bool:
        """Check if cache needs refresh."""
        return time.time() - self._cache_timestamp > self.cache_ttl_seconds

    async def top_markets(self, limit: int = 5) -> list[Market]:
        """Most traded open markets over the last 24h."""
        if self.is_cache_stale():
            await self.fetch_markets()
        return [m for m in self._markets_cache if m.active and not m.closed][:limit]

    async def find_market(self, question: str) -> Optional[Market]:
        """
        Find an open market by question text.

        Case-insensitive containment in either direction, so both a
        fragment and an over-specified question match.
        """
        if self.is_cache_stale():
            await self.fetch_markets()

        wanted = question.strip().lower()
        if not wanted:
            return None

        for market in self._markets_cache:
            text = market.question.lower()
            if wanted in text or (text and text in wanted):
                return market
        return None

    def _parse_market(self, data: dict) -> Market:
        """Parse market from API response."""
        clob_token_ids = _parse_list(data.get("clobTokenIds", ""))
        outcomes = _parse_list(data.get("outcomes", ""))
        outcome_prices = [str(p) for p in _parse_list(data.get("outcomePrices", ""))]

        tokens = []
        for i, token_id in enumerate(clob_token_ids):
            token_id = str(token_id).strip().strip('"')
            if not token_id:
                continue

            outcome = str(outcomes[i]).strip().strip('"') if i < len(outcomes) else f"Outcome {i}"
            price = parse_decimal(outcome_prices[i].strip().strip('"')) if i < len(outcome_prices) else None

            tokens.append(Token(token_id=token_id, outcome=outcome, price=price))

        end_date = None
        end_date_str = data.get("endDate")
        if end_date_str:
            try:
                end_date = datetime.fromisoformat(end_date_str.replace("Z", "+00:00"))
            except (ValueError, TypeError):
                pass

        return Market(
            condition_id=data.get("conditionId", ""),
            question=data.get("question", ""),
            tokens=tokens,
            active=data.get("active", True),
            closed=data.get("closed", False),
            neg_risk=bool(data.get("negRisk", False)),
            end_date=end_date
        )
