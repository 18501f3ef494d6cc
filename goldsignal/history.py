"""goldsignal — Daily historical series in USD/oz and VND.

A series is sorted ascending by date with at most one point per day.
Gaps (weekends, holidays) are allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Iterator, Optional

from goldsignal.config import Config
from goldsignal.sources.models import (
    TAEL_GRAMS,
    TROY_OUNCE_GRAMS,
    ExchangeRateTable,
    PriceHistory,
)

logger = logging.getLogger("goldsignal.history")


@dataclass(frozen=True)
class HistoricalPoint:
    """One trading day.  ``vnd_per_tael`` is derived from ``vnd_per_gram``."""

    date: date
    usd_per_ounce: float
    vnd_per_gram: float

    @property
    def vnd_per_tael(self) -> float:
        return self.vnd_per_gram * TAEL_GRAMS

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "usd_per_oz": self.usd_per_ounce,
            "vnd_per_gram": self.vnd_per_gram,
            "vnd_per_tael": self.vnd_per_tael,
        }


class HistoricalSeries:
    """Immutable, date-ascending sequence of ``HistoricalPoint``.

    Input is sorted on construction; two points on the same date raise
    ``ValueError``.
    """

    def __init__(self, points: Iterable[HistoricalPoint]) -> None:
        ordered = sorted(points, key=lambda p: p.date)
        for prev, cur in zip(ordered, ordered[1:]):
            if prev.date == cur.date:
                raise ValueError(f"duplicate date in series: {cur.date.isoformat()}")
        self._points = tuple(ordered)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[HistoricalPoint]:
        return iter(self._points)

    def __getitem__(self, index):
        return self._points[index]

    def __bool__(self) -> bool:
        return bool(self._points)

    def __repr__(self) -> str:
        if not self._points:
            return "HistoricalSeries([])"
        return (
            f"HistoricalSeries({len(self)} points, "
            f"{self.start.isoformat()}..{self.end.isoformat()})"
        )

    @property
    def points(self) -> tuple[HistoricalPoint, ...]:
        return self._points

    @property
    def start(self) -> Optional[date]:
        return self._points[0].date if self._points else None

    @property
    def end(self) -> Optional[date]:
        return self._points[-1].date if self._points else None

    def prices(self, field: str = "usd_per_ounce") -> list[float]:
        """The series' prices for one column, oldest first."""
        return [getattr(p, field) for p in self._points]


def resolve_usd_vnd(rates: Optional[ExchangeRateTable], config: Config) -> float:
    """Live USD→VND rate when one was captured this cycle, else the configured one."""
    if rates is not None:
        live = rates.get("VND")
        if live:
            return live
    logger.info(
        "No live USD/VND rate, using historical rate %.0f", config.historical_exchange_rate,
    )
    return config.historical_exchange_rate


def build_series(history: PriceHistory, usd_vnd_rate: float) -> HistoricalSeries:
    """Convert a provider history into a ``HistoricalSeries``.

    USD per-ounce histories get their VND columns from *usd_vnd_rate*; VND
    per-tael histories (Vietnam dealer boards) get their USD column from it.
    """
    if usd_vnd_rate <= 0:
        raise ValueError(f"USD/VND rate must be positive, got {usd_vnd_rate}")

    unit = (history.unit, history.currency.upper())
    points = []
    for hp in history.points:
        if unit == ("ounce", "USD"):
            usd_oz = hp.price
            vnd_gram = usd_oz / TROY_OUNCE_GRAMS * usd_vnd_rate
        elif unit == ("tael", "VND"):
            vnd_gram = hp.price / TAEL_GRAMS
            usd_oz = vnd_gram * TROY_OUNCE_GRAMS / usd_vnd_rate
        else:
            raise ValueError(
                f"unsupported history unit {history.unit}/{history.currency}"
            )
        points.append(HistoricalPoint(hp.date, usd_oz, vnd_gram))

    return HistoricalSeries(points)
