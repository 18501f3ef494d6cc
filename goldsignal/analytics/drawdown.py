"""Drawdown and recovery detection — pure math, no I/O.

Scans a daily series forward for peak → trough → recovery cycles whose
decline reaches a threshold (default 10 %).  Emitted windows never overlap.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from goldsignal.errors import InsufficientDataError
from goldsignal.history import HistoricalSeries

# Points after a candidate that it must not be exceeded by.
PEAK_LOOKAHEAD = 20


@dataclass(frozen=True)
class Drawdown:
    peak_date: date
    peak_price: float
    trough_date: date
    trough_price: float
    drawdown_pct: float
    recovery_date: Optional[date]
    days_to_trough: int
    days_to_recovery: Optional[int]
    recovered: bool

    def to_dict(self) -> dict:
        out = asdict(self)
        for key in ("peak_date", "trough_date", "recovery_date"):
            if out[key] is not None:
                out[key] = out[key].isoformat()
        return out


@dataclass(frozen=True)
class DrawdownSummary:
    total: int
    recovered: int
    not_recovered: int
    worst_drawdown_pct: Optional[float]
    longest_recovery_days: Optional[int]
    avg_recovery_days: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


def _is_peak(prices: list[float], i: int) -> bool:
    """No point inside the lookahead window rises above ``prices[i]``.

    The window ends early at the first point that climbs back to the
    candidate's level, so a dip fully recovered within it still counts.
    """
    lookahead = min(PEAK_LOOKAHEAD, len(prices) - i - 1)
    for j in range(i + 1, i + lookahead + 1):
        if prices[j] > prices[i]:
            return False
        if prices[j] == prices[i]:
            return True
    return True


def detect_drawdowns(
    series: HistoricalSeries,
    min_drawdown_pct: float = 10.0,
    price: str = "usd_per_ounce",
) -> list[Drawdown]:
    """Find every drawdown of at least *min_drawdown_pct* percent, oldest first.

    Args:
        series: Daily series, ascending by date.
        min_drawdown_pct: Inclusive threshold in percent.
        price: ``HistoricalPoint`` column to analyse.

    Raises:
        InsufficientDataError: If *series* is empty.
    """
    if not series:
        raise InsufficientDataError("cannot detect drawdowns on an empty series")

    points = series.points
    prices = series.prices(price)
    n = len(prices)
    drawdowns: list[Drawdown] = []

    i = 0
    while i < n - 1:
        if prices[i] <= 0 or not _is_peak(prices, i):
            i += 1
            continue

        peak = prices[i]
        trough_idx = i
        recovery_idx: Optional[int] = None

        for j in range(i + 1, n):
            if prices[j] < prices[trough_idx]:
                trough_idx = j
                recovery_idx = None
            if prices[j] >= peak and j > trough_idx:
                recovery_idx = j
                break

        pct = (peak - prices[trough_idx]) / peak * 100.0

        if pct >= min_drawdown_pct:
            peak_day = points[i].date
            trough_day = points[trough_idx].date
            recovery_day = points[recovery_idx].date if recovery_idx is not None else None
            drawdowns.append(
                Drawdown(
                    peak_date=peak_day,
                    peak_price=peak,
                    trough_date=trough_day,
                    trough_price=prices[trough_idx],
                    drawdown_pct=pct,
                    recovery_date=recovery_day,
                    days_to_trough=(trough_day - peak_day).days,
                    days_to_recovery=(
                        (recovery_day - peak_day).days if recovery_day else None
                    ),
                    recovered=recovery_idx is not None,
                )
            )
            i = recovery_idx if recovery_idx is not None else trough_idx

        i += 1

    return drawdowns


def summarize_drawdowns(drawdowns: list[Drawdown]) -> DrawdownSummary:
    """Counts, worst decline, and recovery durations (recovered events only)."""
    recovery_days = [d.days_to_recovery for d in drawdowns if d.recovered]
    return DrawdownSummary(
        total=len(drawdowns),
        recovered=len(recovery_days),
        not_recovered=len(drawdowns) - len(recovery_days),
        worst_drawdown_pct=max((d.drawdown_pct for d in drawdowns), default=None),
        longest_recovery_days=max(recovery_days, default=None),
        avg_recovery_days=(
            sum(recovery_days) / len(recovery_days) if recovery_days else None
        ),
    )


def ongoing_drawdowns(drawdowns: list[Drawdown], series: HistoricalSeries) -> list[dict]:
    """Unrecovered events with the days waited since their peak."""
    if not series:
        raise InsufficientDataError("cannot measure ongoing drawdowns on an empty series")
    end = series.end
    return [
        {
            "peak_date": d.peak_date.isoformat(),
            "peak_price": d.peak_price,
            "drawdown_pct": d.drawdown_pct,
            "days_waiting": (end - d.peak_date).days,
        }
        for d in drawdowns
        if not d.recovered
    ]


def by_severity(drawdowns: list[Drawdown]) -> list[Drawdown]:
    return sorted(drawdowns, key=lambda d: d.drawdown_pct, reverse=True)
