"""India gold adapters — Metals.dev (keyed) and the IBJA rate table."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from goldsignal.sources.base import Adapter
from goldsignal.sources.http import BROWSER_HEADERS, get_json, get_text
from goldsignal.sources.models import Err, FetchResult, Ok, PerGram, RawQuote

COUNTRY = "India"

METALS_DEV_URL = "https://api.metals.dev/v1/latest"
IBJA_URL = "https://ibjarates.com/"

# IBJA publishes rates per 10 grams.
IBJA_UNIT_GRAMS = 10


class MetalsDevAdapter(Adapter):
    """metals.dev latest gold price in INR per gram."""

    name = "Metals.dev"
    country = COUNTRY
    credential_env = "METALS_DEV_KEY"

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        payload = await get_json(
            METALS_DEV_URL,
            timeout=self._timeout,
            params={"api_key": self.credential, "currency": "INR", "unit": "gram"},
        )
        price = float(payload["metals"]["gold"])
        if price <= 0:
            return Err(f"non-positive price {price}")

        return Ok([
            RawQuote(
                source=self.name,
                country=COUNTRY,
                currency="INR",
                price=PerGram(price),
                timestamp=datetime.now(timezone.utc),
                raw=payload.get("metals"),
            )
        ])


def parse_ibja(html: str, timestamp: datetime) -> list[RawQuote]:
    """Gold rows of the IBJA tables, converted from per-10 g to per gram."""
    soup = BeautifulSoup(html, "html.parser")
    quotes: list[RawQuote] = []

    for row in soup.select("table tr"):
        cells = row.find_all("td")
        if len(cells) < 2:
            continue
        label = cells[0].get_text().strip().lower()
        if "silver" in label or not any(key in label for key in ("gold", "999", "995")):
            continue

        digits = re.sub(r"[^0-9.]", "", cells[1].get_text())
        try:
            price = float(digits)
        except ValueError:
            continue
        if price <= 0:
            continue

        quotes.append(
            RawQuote(
                source=f"IBJA-{label}",
                country=COUNTRY,
                currency="INR",
                price=PerGram(price / IBJA_UNIT_GRAMS),
                timestamp=timestamp,
                raw={"label": label, "per_10g": price},
            )
        )

    return quotes


class IbjaAdapter(Adapter):
    """ibjarates.com — India Bullion and Jewellers Association reference rates."""

    name = "IBJA"
    country = COUNTRY

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        html = await get_text(IBJA_URL, timeout=self._timeout, headers=BROWSER_HEADERS)
        quotes = parse_ibja(html, datetime.now(timezone.utc))
        if not quotes:
            return Err("No IBJA price data found")
        return Ok(quotes)
