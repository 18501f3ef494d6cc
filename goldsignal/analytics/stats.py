"""Descriptive statistics over daily price series — pure functions.

Empty input is an invariant violation and raises ``InsufficientDataError``;
"not enough points for this statistic" is ``None``, never zero.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

import numpy as np

from goldsignal.analytics.drawdown import DrawdownSummary
from goldsignal.errors import InsufficientDataError
from goldsignal.history import HistoricalSeries
from goldsignal.premium import PremiumResult

TRADING_DAYS_PER_YEAR = 252

# Column the decision signals are computed on.
SIGNAL_PRICE = "vnd_per_tael"


def _require(prices: Sequence[float], what: str) -> None:
    if len(prices) == 0:
        raise InsufficientDataError(f"cannot compute {what} on an empty series")


def pct_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return (current - previous) / previous * 100.0


def daily_changes(prices: Sequence[float]) -> list[float]:
    """Day-over-day percentage changes (``len(prices) - 1`` values)."""
    return [pct_change(cur, prev) for prev, cur in zip(prices, prices[1:])]


def volatility(prices: Sequence[float]) -> Optional[float]:
    """Population standard deviation of day-over-day % changes."""
    _require(prices, "volatility")
    if len(prices) < 2:
        return None
    # np.std defaults to ddof=0 (divide by N).
    return float(np.std(daily_changes(prices)))


def annualized_volatility(prices: Sequence[float]) -> Optional[float]:
    """Std-dev of daily log returns scaled by √252, in percent."""
    _require(prices, "annualized volatility")
    arr = np.asarray(prices, dtype=float)
    if len(arr) < 2 or np.any(arr <= 0):
        return None
    log_returns = np.diff(np.log(arr))
    return float(np.std(log_returns) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100.0)


def moving_average(prices: Sequence[float], period: int) -> Optional[float]:
    """Mean of the trailing *period* points; ``None`` if there are fewer."""
    _require(prices, "moving average")
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")
    if len(prices) < period:
        return None
    return float(np.mean(prices[-period:]))


def percentile_rank(prices: Sequence[float], current: Optional[float] = None) -> Optional[float]:
    """Rank of *current* (default: the last price) within *prices*, 0–100.

    Counts the points ``<= current`` without tie-breaking, so the maximum of
    a strictly increasing series ranks 100 and its minimum 0.  ``None`` for a
    single-point series.
    """
    _require(prices, "percentile rank")
    if len(prices) < 2:
        return None
    if current is None:
        current = prices[-1]
    at_or_below = int(np.count_nonzero(np.asarray(prices, dtype=float) <= current))
    rank = (at_or_below - 1) / (len(prices) - 1) * 100.0
    return min(max(rank, 0.0), 100.0)


def pct_change_over(prices: Sequence[float], lookback: int) -> Optional[float]:
    """% change of the last price vs. the price *lookback* points earlier."""
    _require(prices, "change")
    if len(prices) < lookback + 1:
        return None
    return pct_change(prices[-1], prices[-1 - lookback])


def series_stats(series: HistoricalSeries, price: str = SIGNAL_PRICE) -> dict:
    """Range summary of one column of *series*."""
    prices = series.prices(price)
    _require(prices, "series stats")
    return {
        "start_date": series.start.isoformat(),
        "end_date": series.end.isoformat(),
        "points": len(prices),
        "first": prices[0],
        "current": prices[-1],
        "min": float(np.min(prices)),
        "max": float(np.max(prices)),
        "avg": float(np.mean(prices)),
        "total_change_pct": pct_change(prices[-1], prices[0]),
    }


# ── Signal snapshot ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class MarketSignals:
    """Decision inputs handed to the recommendation layer."""

    as_of: str
    current_vnd_per_tael: float
    change_7d_pct: Optional[float]
    change_30d_pct: Optional[float]
    volatility_daily_pct: Optional[float]
    annualized_volatility_pct: Optional[float]
    ma7_vnd_per_tael: Optional[float]
    ma30_vnd_per_tael: Optional[float]
    percentile: Optional[float]
    premium_pct: Optional[float]
    drawdowns: Optional[dict]

    def to_dict(self) -> dict:
        return asdict(self)


def build_signals(
    series: HistoricalSeries,
    snapshot_premium: Optional[PremiumResult],
    drawdown_summary: Optional[DrawdownSummary],
    long_series: Optional[HistoricalSeries] = None,
) -> MarketSignals:
    """Compute the signal snapshot from the recent series.

    The percentile uses *long_series* when given (a multi-year context),
    otherwise the recent series itself.
    """
    prices = series.prices(SIGNAL_PRICE)
    _require(prices, "signals")
    context = long_series.prices(SIGNAL_PRICE) if long_series is not None else prices

    return MarketSignals(
        as_of=series.end.isoformat(),
        current_vnd_per_tael=prices[-1],
        change_7d_pct=pct_change_over(prices, 7),
        change_30d_pct=pct_change_over(prices, 30),
        volatility_daily_pct=volatility(prices),
        annualized_volatility_pct=annualized_volatility(prices),
        ma7_vnd_per_tael=moving_average(prices, 7),
        ma30_vnd_per_tael=moving_average(prices, 30),
        percentile=percentile_rank(context, prices[-1]),
        premium_pct=snapshot_premium.premium_percent if snapshot_premium else None,
        drawdowns=drawdown_summary.to_dict() if drawdown_summary else None,
    )
