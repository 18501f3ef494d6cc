"""Vietnam gold adapters — SJC dealer boards and webgia.com SJC history.

Board prices are quoted per tael (lượng).  giavang.org prints them in
thousands of VND ("175.300"), VNAppMob returns plain VND strings.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timedelta, timezone

from bs4 import BeautifulSoup

from goldsignal.sources.base import Adapter
from goldsignal.sources.http import BROWSER_HEADERS, get_json, get_text
from goldsignal.sources.international import history_cutoff
from goldsignal.sources.models import (
    BuySell,
    Err,
    FetchResult,
    HistoricalPrice,
    Ok,
    PerGram,
    PerOunce,
    PriceHistory,
    RawQuote,
)

logger = logging.getLogger("goldsignal.sources.vietnam")

COUNTRY = "Vietnam"

GIAVANG_URL = "https://giavang.org/"
VNAPPMOB_URL = "https://vapi.vnappmob.com/api/v2/gold/sjc"
GOLDPRICE_VN_URL = "https://goldprice.org/gold-price-vietnam.html"
WEBGIA_1M_URL = "https://webgia.com/gia-vang/sjc/bieu-do-1-thang.html"
WEBGIA_1Y_URL = "https://webgia.com/gia-vang/sjc/bieu-do-1-nam.html"

VIETNAM_UTC_OFFSET = timedelta(hours=7)


def parse_board_number(text: str) -> float:
    """Parse a board figure such as ``"175.300"`` (dots/commas are grouping)."""
    digits = re.sub(r"[.,\s]", "", text)
    return float(digits) if digits else 0.0


class GiaVangAdapter(Adapter):
    """giavang.org SJC table scrape (bar "Miếng" and ring "Nhẫn" sections)."""

    name = "giavang.org"
    country = COUNTRY

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        html = await get_text(GIAVANG_URL, timeout=self._timeout, headers=BROWSER_HEADERS)
        quotes = parse_giavang(html, datetime.now(timezone.utc))
        if not quotes:
            return Err("No SJC prices found on giavang.org")
        logger.debug("giavang.org: %d SJC rows", len(quotes))
        return Ok(quotes)


def parse_giavang(html: str, timestamp: datetime) -> list[RawQuote]:
    """Extract SJC buy/sell rows; each ``h2`` switches the current gold type."""
    soup = BeautifulSoup(html, "html.parser")
    quotes: list[RawQuote] = []
    seen: set[tuple[str, float]] = set()
    gold_type = "Miếng"

    for el in soup.find_all(["h2", "table"]):
        if el.name == "h2":
            heading = el.get_text().lower()
            if "nhẫn" in heading:
                gold_type = "Nhẫn"
            elif "miếng" in heading:
                gold_type = "Miếng"
            continue

        for row in el.find_all("tr"):
            cells = row.find_all("td")
            if len(cells) < 3:
                continue
            label = cells[0].get_text().strip()
            buy = parse_board_number(cells[1].get_text())
            sell = parse_board_number(cells[2].get_text())
            if buy <= 0 or sell <= 0 or "sjc" not in label.lower():
                continue

            key = (gold_type, sell)
            if key in seen:
                continue
            seen.add(key)

            quotes.append(
                RawQuote(
                    source=f"SJC {gold_type}",
                    country=COUNTRY,
                    currency="VND",
                    price=BuySell(buy=buy * 1000, sell=sell * 1000),
                    timestamp=timestamp,
                    raw={"name": label, "type": gold_type},
                )
            )

    return quotes


class VNAppMobAdapter(Adapter):
    """vapi.vnappmob.com SJC price (keyed, current only)."""

    name = "VNAppMob"
    country = COUNTRY
    credential_env = "VNAPPMOB_API_KEY"

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        payload = await get_json(
            VNAPPMOB_URL,
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self.credential}",
                "Accept": "application/json",
            },
        )
        results = payload.get("results") or []
        if not results:
            return Err("No data in response")

        latest = results[0]
        return Ok([
            RawQuote(
                source="SJC Miếng (VNAppMob)",
                country=COUNTRY,
                currency="VND",
                price=BuySell(
                    buy=float(latest["buy_1l"]),
                    sell=float(latest["sell_1l"]),
                ),
                timestamp=datetime.now(timezone.utc),
                raw=latest,
            )
        ])


_VND_PER_GRAM = re.compile(
    r"(\d{1,3}(?:,\d{3})*(?:\.\d+)?)\s*VND\s*(?:per|/)\s*(?:gram|g)\b", re.I,
)
_VND_PER_OUNCE = re.compile(
    r"(\d{1,3}(?:,\d{3})*(?:\.\d+)?)\s*VND\s*(?:per|/)\s*(?:ounce|oz)\b", re.I,
)


class GoldPriceOrgVietnamAdapter(Adapter):
    """goldprice.org Vietnam page — spot gold expressed in VND."""

    name = "goldprice.org (VN)"
    country = COUNTRY

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        html = await get_text(GOLDPRICE_VN_URL, timeout=self._timeout, headers=BROWSER_HEADERS)
        text = BeautifulSoup(html, "html.parser").get_text(" ")
        now = datetime.now(timezone.utc)

        quotes: list[RawQuote] = []
        gram = _VND_PER_GRAM.search(text)
        if gram:
            quotes.append(
                RawQuote(
                    source="GoldPriceOrg-VN",
                    country=COUNTRY,
                    currency="VND",
                    price=PerGram(float(gram.group(1).replace(",", ""))),
                    timestamp=now,
                    raw={"matched": gram.group(0)},
                )
            )
        ounce = _VND_PER_OUNCE.search(text)
        if ounce:
            quotes.append(
                RawQuote(
                    source="GoldPriceOrg-VN-Oz",
                    country=COUNTRY,
                    currency="VND",
                    price=PerOunce(float(ounce.group(1).replace(",", ""))),
                    timestamp=now,
                    raw={"matched": ounce.group(0)},
                )
            )

        if not quotes:
            return Err("No Vietnam prices found on goldprice.org")
        return Ok(quotes)


# ── SJC history ──────────────────────────────────────────────────────────


def _chart_series(html: str, series_name: str) -> list[list[float]]:
    """Return the ``[[timestamp_ms, millions_vnd], ...]`` data of one chart series."""
    match = re.search(
        r'name:\s*"' + re.escape(series_name) + r'"\s*,\s*data:\s*(\[\[.*?\]\])',
        html,
        re.S,
    )
    if not match:
        return []
    try:
        return json.loads(match.group(1))
    except ValueError:
        return []


def vietnam_date(timestamp_ms: float) -> date:
    """Calendar date in Vietnam (UTC+7) for an epoch-millisecond timestamp."""
    utc = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return (utc + VIETNAM_UTC_OFFSET).date()


def parse_webgia_chart(html: str) -> list[tuple[date, float, float]]:
    """Parse ``(date, buy_vnd, sell_vnd)`` per-tael rows from the chart page.

    The sell series drives the rows; buy is ``0.0`` where no buy point
    shares the timestamp.
    """
    sell = _chart_series(html, "Bán ra")
    buy = {ts: price for ts, price in _chart_series(html, "Mua vào")}

    rows: dict[date, tuple[float, float]] = {}
    for ts, price in sell:
        rows[vietnam_date(ts)] = (buy.get(ts, 0.0) * 1_000_000, price * 1_000_000)

    return [(d, b, s) for d, (b, s) in sorted(rows.items())]


class WebGiaHistoryAdapter(Adapter):
    """webgia.com SJC sell-price chart (history only, 1 month or 1 year)."""

    name = "webgia.com"
    country = COUNTRY

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        return Err("webgia.com serves history only")

    async def _fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        url = WEBGIA_1M_URL if days <= 31 else WEBGIA_1Y_URL
        html = await get_text(url, timeout=self._timeout, headers=BROWSER_HEADERS)
        rows = parse_webgia_chart(html)
        if not rows:
            return Err("No data found in chart. Website format may have changed.")

        cutoff = history_cutoff(days)
        points = tuple(
            HistoricalPrice(d, sell, buy or None) for d, buy, sell in rows if d >= cutoff
        )
        if not points:
            return Err(f"No chart points since {cutoff.isoformat()}")
        return Ok(PriceHistory(self.name, COUNTRY, "VND", "tael", points))
