"""Exchange-rate adapter — USD → local currency conversion factors."""

import logging
from typing import Sequence

from goldsignal.config import Config
from goldsignal.sources.base import Adapter
from goldsignal.sources.http import get_json
from goldsignal.sources.models import Err, ExchangeRateTable, FetchResult, Ok

logger = logging.getLogger("goldsignal.sources.exchange_rate")

EXCHANGE_RATE_API = "https://api.exchangerate-api.com/v4/latest/USD"

# Every currency a market adapter can quote in.
DEFAULT_CURRENCIES = ("VND", "CNY", "RUB", "INR")


class ExchangeRateAdapter(Adapter):
    """Fetches units-per-USD for the tracked currencies.

    VND is mandatory: without it nothing can be expressed in the canonical
    unit, so its absence is reported as a failure.
    """

    name = "exchangerate-api.com"
    country = "FX"

    def __init__(self, config: Config, currencies: Sequence[str] = DEFAULT_CURRENCIES) -> None:
        super().__init__(config)
        self._currencies = tuple(c.upper() for c in currencies)

    async def fetch_rates(self) -> FetchResult[ExchangeRateTable]:
        return await self._guard(self._fetch_rates)

    async def _fetch_rates(self) -> FetchResult[ExchangeRateTable]:
        payload = await get_json(EXCHANGE_RATE_API, timeout=self._timeout)
        rates = payload["rates"]

        found: dict[str, float] = {}
        for currency in self._currencies:
            rate = rates.get(currency)
            if rate:
                found[currency] = float(rate)
            else:
                logger.warning("%s rate missing from %s", currency, self.name)

        if "VND" not in found:
            return Err("VND rate not found")

        return Ok(ExchangeRateTable(found, source=self.name, as_of=payload.get("date")))
