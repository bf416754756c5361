"""Market data services package."""

from src.services.prices.coingecko import (
    NETWORK_ERROR_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    CoinGeckoClient,
)

__all__ = [
    "NETWORK_ERROR_MESSAGE",
    "RATE_LIMITED_MESSAGE",
    "SEARCH_FAILED_MESSAGE",
    "CoinGeckoClient",
]
