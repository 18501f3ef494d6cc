"""Per-currency spot gold for markets without a reachable domestic feed.

goldprice.org publishes XAU in every major currency.  When it is down the
market falls back to a quote calculated from the benchmark and the cycle's
exchange-rate table, so no second FX request is made.
"""

from __future__ import annotations

from datetime import datetime, timezone

from goldsignal.config import Config
from goldsignal.sources.base import Adapter
from goldsignal.sources.http import BROWSER_HEADERS, get_json
from goldsignal.sources.models import (
    Err,
    ExchangeRateTable,
    FetchResult,
    Ok,
    PerOunce,
    RawQuote,
)

GOLDPRICE_RATES_URL = "https://data-asg.goldprice.org/dbXRates/{currency}"


class GoldPriceOrgAdapter(Adapter):
    """goldprice.org ``dbXRates`` feed for one currency (price per ounce)."""

    name = "goldprice.org"

    def __init__(self, config: Config, currency: str, country: str) -> None:
        super().__init__(config)
        self.currency = currency.upper()
        self.country = country

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        payload = await get_json(
            GOLDPRICE_RATES_URL.format(currency=self.currency),
            timeout=self._timeout,
            headers={**BROWSER_HEADERS, "Accept": "application/json"},
        )
        items = payload.get("items") or []
        if not items:
            return Err("No items in response")

        item = next((i for i in items if i.get("curr") == self.currency), None)
        if item is None:
            return Err(f"{self.currency} price not found")

        price = float(item["xauPrice"])
        if price <= 0:
            return Err(f"non-positive {self.currency} price {price}")

        return Ok([
            RawQuote(
                source=f"GoldPrice.org-{self.currency}",
                country=self.country,
                currency=self.currency,
                price=PerOunce(price),
                timestamp=datetime.now(timezone.utc),
                raw=item,
            )
        ])


class CalculatedAdapter(Adapter):
    """Benchmark USD/oz × USD→currency rate.  Performs no request."""

    name = "calculated"

    def __init__(
        self,
        config: Config,
        currency: str,
        country: str,
        benchmark_usd_per_ounce: float,
        rates: ExchangeRateTable,
    ) -> None:
        super().__init__(config)
        self.currency = currency.upper()
        self.country = country
        self._usd_per_ounce = benchmark_usd_per_ounce
        self._rates = rates

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        rate = self._rates.get(self.currency)
        if rate is None:
            return Err(f"{self.currency} rate not found")
        if self._usd_per_ounce <= 0:
            return Err("no benchmark price to convert")

        return Ok([
            RawQuote(
                source=f"Calculated (XAUUSD × USD/{self.currency})",
                country=self.country,
                currency=self.currency,
                price=PerOunce(self._usd_per_ounce * rate),
                timestamp=datetime.now(timezone.utc),
                raw={"xauusd": self._usd_per_ounce, "rate": rate},
            )
        ])
