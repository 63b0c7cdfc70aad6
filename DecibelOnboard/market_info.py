"""Helpers for picking markets out of a freshly fetched market list."""
import logging
from typing import Optional, Sequence

from .decibel_models import MarketSpec
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EXAMPLE_MARKET_NAME = "BTC/USD"


def find_market(markets: Sequence[MarketSpec], market_name: str) -> MarketSpec:
    """Return the market called ``market_name``.

    Raises:
        ConfigurationError: if the market is not listed; the message names
            the markets that are
    """
    for market in markets:
        if market.market_name == market_name:
            return market

    available = ", ".join(m.market_name for m in markets) or "(none)"
    raise ConfigurationError(f"Market {market_name} not found! Available markets: {available}")


def select_display_market(markets: Sequence[MarketSpec], preferred: Optional[str] = None) -> Optional[MarketSpec]:
    """Pick a market to show as an example: the configured one, else BTC/USD, else the first."""
    if not markets:
        return None

    for name in (preferred, EXAMPLE_MARKET_NAME):
        if not name:
            continue
        for market in markets:
            if market.market_name == name:
                return market

    return markets[0]
