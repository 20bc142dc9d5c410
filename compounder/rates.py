"""Async USD/TRY rate client using the Twelve Data time-series API.

Fetches the latest 90 daily closes, derives a linear trend and caches the
result for the rest of the (UTC) calendar day.
Requires TWELVEDATA_API_KEY. Base URL: https://api.twelvedata.com
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

import httpx

from compounder.cache import RateCache
from compounder.calculator import round_half_up
from compounder.errors import ConfigurationError, DataUnavailableError
from compounder.models import RatePoint, RateResult

logger = logging.getLogger(__name__)

BASE_URL = "https://api.twelvedata.com"
API_KEY_ENV = "TWELVEDATA_API_KEY"
BASE_CURRENCY = "USD"
QUOTE_CURRENCY = "TRY"
OUTPUT_SIZE = 90
TARGET_HORIZON_DAYS = 30


def _utc_today() -> date:
    return datetime.now(UTC).date()


def cache_key(day: date) -> str:
    return f"{BASE_CURRENCY.lower()}_{QUOTE_CURRENCY.lower()}:{day.isoformat()}"


def _close(sample: dict[str, Any] | None, label: str) -> float:
    if not sample:
        raise DataUnavailableError(f"{label} rate data is missing")
    try:
        return float(sample["close"])
    except (KeyError, TypeError, ValueError) as exc:
        raise DataUnavailableError(f"{label} rate sample is malformed") from exc


def build_rate_result(values: list[dict[str, Any]]) -> RateResult:
    """Derive the trend projection from newest-first daily samples."""
    if not values:
        raise DataUnavailableError("No data found from API")

    latest = values[0]
    current_price = _close(latest, "Latest")
    original_price = _close(values[-1], "Historical")
    avg_daily_change = (current_price - original_price) / len(values)
    target_price = current_price + avg_daily_change * TARGET_HORIZON_DAYS

    try:
        history = tuple(
            RatePoint(date=v["datetime"], price=float(v["close"])) for v in values
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DataUnavailableError("Rate history is malformed") from exc

    return RateResult(
        current_price=round_half_up(current_price, 4),
        avg_daily_change=avg_daily_change,
        suggested_target_price=round_half_up(target_price, 4),
        last_update=latest["datetime"],
        history=history,
    )


class RateService:
    """USD rate lookup with a day-scoped cache.

    The cache and HTTP client are injected; the service owns neither's
    lifecycle. Concurrent misses may both fetch and both write the same key.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: RateCache,
        api_key: str | None = None,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._client = client
        self._cache = cache
        self._api_key = api_key
        self._today = today

    def _resolve_api_key(self) -> str:
        api_key = self._api_key or os.environ.get(API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(f"{API_KEY_ENV} not set")
        return api_key

    async def _fetch_values(self, api_key: str) -> list[dict[str, Any]]:
        try:
            resp = await self._client.get(
                f"{BASE_URL}/time_series/cross",
                params={
                    "base": BASE_CURRENCY,
                    "quote": QUOTE_CURRENCY,
                    "interval": "1day",
                    "outputsize": OUTPUT_SIZE,
                    "apikey": api_key,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Rate provider request failed: %s", exc)
            raise DataUnavailableError(f"Failed to fetch currency data: {exc}") from exc
        except ValueError as exc:
            raise DataUnavailableError("Rate provider returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise DataUnavailableError("Rate provider returned an unexpected payload")
        if data.get("status") == "error":
            message = data.get("message") or "TwelveData API Error"
            logger.warning("Rate provider reported an error: %s", message)
            raise DataUnavailableError(message)

        values = data.get("values")
        if not isinstance(values, list):
            raise DataUnavailableError("No data found from API")
        return values

    async def get_usd_rate(self) -> RateResult:
        api_key = self._resolve_api_key()
        key = cache_key(self._today())

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Rate cache hit for %s", key)
            return cached

        logger.debug("Rate cache miss for %s, fetching from provider", key)
        result = build_rate_result(await self._fetch_values(api_key))
        self._cache.set(key, result)
        return result
