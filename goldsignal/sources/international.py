"""International benchmark (XAU/USD) adapters.

FreeGoldAPI needs no key and serves both the latest price and a long daily
history.  GoldAPI.io and TwelveData are keyed backups; TwelveData also serves
up to 5000 daily closes.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from goldsignal.sources.base import Adapter
from goldsignal.sources.http import FetchError, get_json
from goldsignal.sources.models import (
    Err,
    FetchResult,
    HistoricalPrice,
    Ok,
    PerOunce,
    PriceHistory,
    RawQuote,
)

logger = logging.getLogger("goldsignal.sources.international")

COUNTRY = "International"

FREEGOLD_JSON = "https://freegoldapi.com/data/latest.json"
GOLDAPI_ENDPOINT = "https://www.goldapi.io/api/XAU/USD"
TWELVEDATA_BASE_URL = "https://api.twelvedata.com"

TWELVEDATA_MAX_OUTPUT = 5000


def history_cutoff(days: int) -> date:
    """First calendar date included in a *days*-long lookback."""
    return date.today() - timedelta(days=days)


def _parse_day(value: str) -> date:
    return date.fromisoformat(value[:10])


def _day_timestamp(value: str) -> datetime:
    d = _parse_day(value)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


class FreeGoldAdapter(Adapter):
    """freegoldapi.com — chronological records from several upstream feeds."""

    name = "FreeGoldAPI"
    country = COUNTRY

    # Upstream feeds trusted for the latest print.
    _RECENT_FEEDS = ("yahoo_finance", "kitco", "lbma")

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        records = await get_json(FREEGOLD_JSON, timeout=self._timeout)
        if not records:
            return Err("No price data in response")

        recent = [
            r for r in records
            if any(feed in str(r.get("source", "")) for feed in self._RECENT_FEEDS)
        ]
        latest = recent[-1] if recent else records[-1]
        logger.debug("FreeGoldAPI: latest record from %s", latest.get("source"))

        return Ok([
            RawQuote(
                source=f"FreeGoldAPI ({latest['source']})",
                country=COUNTRY,
                currency="USD",
                price=PerOunce(float(latest["price"])),
                timestamp=_day_timestamp(latest["date"]),
                raw=latest,
            )
        ])

    async def _fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        records = await get_json(FREEGOLD_JSON, timeout=self._timeout)
        cutoff = history_cutoff(days)

        by_day: dict[date, float] = {}
        for r in records:
            if r.get("source") != "yahoo_finance":
                continue
            day = _parse_day(r["date"])
            if day >= cutoff:
                by_day[day] = float(r["price"])

        if not by_day:
            return Err(f"No yahoo_finance records since {cutoff.isoformat()}")

        points = tuple(HistoricalPrice(d, p) for d, p in sorted(by_day.items()))
        return Ok(PriceHistory(self.name, COUNTRY, "USD", "ounce", points))


class GoldApiAdapter(Adapter):
    """goldapi.io spot price (keyed)."""

    name = "GoldAPI.io"
    country = COUNTRY
    credential_env = "GOLDAPI_KEY"

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        payload = await get_json(
            GOLDAPI_ENDPOINT,
            timeout=self._timeout,
            headers={"x-access-token": self.credential},
        )
        price = float(payload["price"])
        if price <= 0:
            return Err(f"non-positive price {price}")

        ts = payload.get("timestamp")
        timestamp = (
            datetime.fromtimestamp(int(ts), tz=timezone.utc)
            if ts else datetime.now(timezone.utc)
        )
        return Ok([
            RawQuote(
                source=self.name,
                country=COUNTRY,
                currency="USD",
                price=PerOunce(price),
                timestamp=timestamp,
                raw=payload,
            )
        ])


class TwelveDataAdapter(Adapter):
    """TwelveData XAU/USD daily time series (keyed)."""

    name = "TwelveData"
    country = COUNTRY
    credential_env = "TWELVEDATA_API_KEY"

    async def _time_series(self, outputsize: int) -> list[dict]:
        payload = await get_json(
            f"{TWELVEDATA_BASE_URL}/time_series",
            timeout=self._timeout,
            params={
                "symbol": "XAU/USD",
                "interval": "1day",
                "outputsize": outputsize,
                "apikey": self.credential,
            },
        )
        if payload.get("status") != "ok":
            raise FetchError(payload.get("message") or "API error")
        return payload.get("values") or []

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        values = await self._time_series(1)
        if not values:
            return Err("No data returned")

        latest = values[0]
        return Ok([
            RawQuote(
                source=self.name,
                country=COUNTRY,
                currency="USD",
                price=PerOunce(float(latest["close"])),
                timestamp=_day_timestamp(latest["datetime"]),
                raw=latest,
            )
        ])

    async def _fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        # Ask for extra rows to cover weekends and holidays.
        values = await self._time_series(min(days + 15, TWELVEDATA_MAX_OUTPUT))
        cutoff = history_cutoff(days)

        # Values arrive newest first.
        by_day: dict[date, float] = {}
        for v in values:
            day = _parse_day(v["datetime"])
            if day >= cutoff:
                by_day[day] = float(v["close"])

        if not by_day:
            return Err(f"No closes since {cutoff.isoformat()}")

        points = tuple(HistoricalPrice(d, p) for d, p in sorted(by_day.items()))
        return Ok(PriceHistory(self.name, COUNTRY, "USD", "ounce", points))
