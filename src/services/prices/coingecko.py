"""
Market Data Service using CoinGecko

This service handles:
1. Current prices (with 7-day sparkline) for the coins in the portfolio
2. Free-text coin search for adding new assets
3. Historical price series for the asset detail chart

CRITICAL: Market data is optional. Every public method converts failure
into "no data" (an empty list, or a search response carrying an error
message) and never raises to the caller.
"""

from typing import Any, Iterable, Optional, Union

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.audit import AuditLogger
from src.config import get_settings
from src.config.settings import CoinGeckoSettings
from src.models.crypto import CoinPrice, CoinSearchResponse


RATE_LIMITED_MESSAGE = "Too many requests. Please wait a moment."
SEARCH_FAILED_MESSAGE = "Failed to fetch coins."
NETWORK_ERROR_MESSAGE = "Network error occurred."

logger = structlog.get_logger(__name__)


class CoinGeckoClient:
    """
    Async client for the CoinGecko v3 API.

    A new httpx.AsyncClient is opened per call; pass `transport` to route
    requests somewhere else (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        settings: Optional[CoinGeckoSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().coingecko
        self._transport = transport
        self._audit_logger = audit_logger

    def _params(self, **params: Any) -> dict[str, Any]:
        if self._settings.api_key:
            params["x_cg_demo_api_key"] = self._settings.api_key
        return params

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """
        GET a path and decode JSON.

        Transport errors are retried; HTTP error statuses are not.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
            ValueError: If the body is not JSON
        """
        async with httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_attempts),
                wait=wait_exponential(
                    multiplier=self._settings.retry_wait_seconds,
                    max=self._settings.retry_wait_seconds * 8,
                ),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(path, params=params)

        response.raise_for_status()
        return response.json()

    async def _report(self, operation: str, error: Exception, **details: Any) -> None:
        logger.warning(
            "coingecko_request_failed",
            operation=operation,
            error=str(error),
            **details,
        )
        if self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="coingecko",
                error_message=str(error),
                details={"operation": operation, **details},
            )

    async def fetch_prices(self, coin_ids: Iterable[str]) -> list[CoinPrice]:
        """
        Fetch current prices for a list of coin ids.

        Duplicate ids are requested once. Returns [] on any failure.
        """
        unique_ids = list(dict.fromkeys(i for i in coin_ids if i))
        if not unique_ids:
            return []

        try:
            data = await self._get_json(
                "/coins/markets",
                self._params(
                    vs_currency=self._settings.vs_currency,
                    ids=",".join(unique_ids),
                    order="market_cap_desc",
                    sparkline="true",
                    price_change_percentage="24h",
                ),
            )
            return [
                CoinPrice(
                    id=coin["id"],
                    symbol=coin.get("symbol") or "",
                    name=coin.get("name") or "",
                    image=coin.get("image"),
                    current_price=coin.get("current_price"),
                    price_change_percentage_24h=coin.get("price_change_percentage_24h"),
                    sparkline=(coin.get("sparkline_in_7d") or {}).get("price") or [],
                )
                for coin in data
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            await self._report("fetch_prices", e, coin_ids=unique_ids)
            return []

    async def search_coins(self, query: str) -> CoinSearchResponse:
        """
        Search coins by name or symbol.

        Failures come back as a response with `error` set to a
        user-facing message.
        """
        query = query.strip()
        if not query:
            return CoinSearchResponse()

        try:
            data = await self._get_json("/search", self._params(query=query))
        except httpx.HTTPStatusError as e:
            await self._report("search_coins", e, status_code=e.response.status_code)
            if e.response.status_code == 429:
                return CoinSearchResponse(error=RATE_LIMITED_MESSAGE)
            return CoinSearchResponse(error=SEARCH_FAILED_MESSAGE)
        except httpx.HTTPError as e:
            await self._report("search_coins", e)
            return CoinSearchResponse(error=NETWORK_ERROR_MESSAGE)
        except ValueError as e:
            await self._report("search_coins", e)
            return CoinSearchResponse(error=SEARCH_FAILED_MESSAGE)

        coins = data.get("coins") if isinstance(data, dict) else None
        return CoinSearchResponse(results=coins or [])

    async def fetch_market_chart(
        self,
        coin_id: str,
        days: Union[int, str],
    ) -> list[tuple[float, float]]:
        """
        Price history as (timestamp_ms, price) pairs over the last `days` days.

        Returns [] on any failure.
        """
        try:
            data = await self._get_json(
                f"/coins/{coin_id}/market_chart",
                self._params(vs_currency=self._settings.vs_currency, days=str(days)),
            )
            return [(float(ts), float(price)) for ts, price in data.get("prices") or []]
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            await self._report("fetch_market_chart", e, coin_id=coin_id, days=str(days))
            return []
