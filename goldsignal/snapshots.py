"""goldsignal — Daily Vietnam snapshot series.

One snapshot per Vietnam calendar date: the SJC bar ("Miếng") and ring
("Nhẫn") board prices, the benchmark in USD/oz and VND/tael, the USD→VND rate
used and the resulting premium.  Live collection replaces the current day's
entry; backfill only fills dates that have no entry yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from goldsignal.premium import benchmark_vnd_per_tael, premium
from goldsignal.sources.models import BuySell, PriceHistory, RawQuote
from goldsignal.sources.vietnam import VIETNAM_UTC_OFFSET

logger = logging.getLogger("goldsignal.snapshots")

# Board dates without a benchmark close borrow the nearest one within this range.
MAX_MATCH_OFFSET_DAYS = 3


@dataclass(frozen=True)
class DailySnapshot:
    date: date
    timestamp: datetime
    usd_per_ounce: float
    international_vnd_per_tael: float
    exchange_rate: float
    sjc_mieng: Optional[BuySell] = None
    sjc_nhan: Optional[BuySell] = None
    premium_pct: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "timestamp": self.timestamp.isoformat(),
            "sjc_mieng": _pair_to_dict(self.sjc_mieng),
            "sjc_nhan": _pair_to_dict(self.sjc_nhan),
            "international": {
                "usd_per_oz": self.usd_per_ounce,
                "vnd_per_tael": self.international_vnd_per_tael,
            },
            "exchange_rate": self.exchange_rate,
            "premium_pct": self.premium_pct,
        }

    @classmethod
    def from_dict(cls, row: dict) -> "DailySnapshot":
        intl = row["international"]
        return cls(
            date=date.fromisoformat(row["date"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            usd_per_ounce=float(intl["usd_per_oz"]),
            international_vnd_per_tael=float(intl["vnd_per_tael"]),
            exchange_rate=float(row["exchange_rate"]),
            sjc_mieng=_pair_from_dict(row.get("sjc_mieng")),
            sjc_nhan=_pair_from_dict(row.get("sjc_nhan")),
            premium_pct=row.get("premium_pct"),
        )


def _pair_to_dict(pair: Optional[BuySell]) -> Optional[dict]:
    if pair is None:
        return None
    return {"buy": pair.buy, "sell": pair.sell}


def _pair_from_dict(data: Optional[dict]) -> Optional[BuySell]:
    if not data:
        return None
    return BuySell(data.get("buy"), data.get("sell"))


def vietnam_today(now: Optional[datetime] = None) -> date:
    """Current calendar date in Vietnam (UTC+7)."""
    now = now or datetime.now(timezone.utc)
    return (now.astimezone(timezone.utc) + VIETNAM_UTC_OFFSET).date()


def _board(quotes: list[RawQuote], label: str) -> Optional[BuySell]:
    for q in quotes:
        if label in q.source and isinstance(q.price, BuySell) and q.price.sell:
            return q.price
    return None


def snapshot_from_quotes(
    vietnam_quotes: list[RawQuote],
    usd_per_ounce: float,
    usd_vnd: float,
    now: Optional[datetime] = None,
) -> DailySnapshot:
    """Build the current day's snapshot from one collection cycle."""
    now = now or datetime.now(timezone.utc)
    intl_tael = benchmark_vnd_per_tael(usd_per_ounce, usd_vnd)
    mieng = _board(vietnam_quotes, "Miếng")
    result = premium(mieng.sell, intl_tael) if mieng else None

    return DailySnapshot(
        date=vietnam_today(now),
        timestamp=now,
        usd_per_ounce=usd_per_ounce,
        international_vnd_per_tael=intl_tael,
        exchange_rate=usd_vnd,
        sjc_mieng=mieng,
        sjc_nhan=_board(vietnam_quotes, "Nhẫn"),
        premium_pct=result.premium_percent if result else None,
    )


def _nearest_close(closes: dict[date, float], day: date) -> Optional[float]:
    if day in closes:
        return closes[day]
    for offset in range(1, MAX_MATCH_OFFSET_DAYS + 1):
        for candidate in (day - timedelta(days=offset), day + timedelta(days=offset)):
            if candidate in closes:
                return closes[candidate]
    return None


def backfill_snapshots(
    board: PriceHistory,
    benchmark: PriceHistory,
    usd_vnd: float,
) -> tuple[list[DailySnapshot], int]:
    """Join a VND/tael board history with USD/oz benchmark closes.

    Returns the snapshots and the number of board dates left unmatched.
    """
    if (board.unit, board.currency.upper()) != ("tael", "VND"):
        raise ValueError(f"board history must be VND per tael, got {board.currency}/{board.unit}")
    if (benchmark.unit, benchmark.currency.upper()) != ("ounce", "USD"):
        raise ValueError(
            f"benchmark history must be USD per ounce, got {benchmark.currency}/{benchmark.unit}"
        )
    if usd_vnd <= 0:
        raise ValueError(f"USD/VND rate must be positive, got {usd_vnd}")

    closes = {p.date: p.price for p in benchmark.points}
    snapshots: list[DailySnapshot] = []
    unmatched = 0

    for point in board.points:
        usd_oz = _nearest_close(closes, point.date)
        if usd_oz is None:
            unmatched += 1
            continue
        intl_tael = benchmark_vnd_per_tael(usd_oz, usd_vnd)
        result = premium(point.price, intl_tael)
        snapshots.append(DailySnapshot(
            date=point.date,
            timestamp=datetime(point.date.year, point.date.month, point.date.day, tzinfo=timezone.utc),
            usd_per_ounce=usd_oz,
            international_vnd_per_tael=intl_tael,
            exchange_rate=usd_vnd,
            sjc_mieng=BuySell(point.buy, point.price),
            premium_pct=result.premium_percent if result else None,
        ))

    if unmatched:
        logger.info("%d board date(s) had no benchmark close nearby", unmatched)
    return snapshots, unmatched


def merge_snapshots(
    existing: Iterable[DailySnapshot],
    incoming: Iterable[DailySnapshot],
    replace: bool = True,
) -> list[DailySnapshot]:
    """One snapshot per date, oldest first.

    With *replace* an incoming snapshot wins over a stored one for the same
    date; without it stored dates are left untouched.
    """
    by_date = {s.date: s for s in existing}
    for s in incoming:
        if replace or s.date not in by_date:
            by_date[s.date] = s
    return [by_date[d] for d in sorted(by_date)]
