"""Tests for goldsignal.analytics.stats — descriptive statistics and signals."""

import math
from datetime import date, timedelta

import pytest

from goldsignal.analytics.drawdown import DrawdownSummary
from goldsignal.analytics.stats import (
    annualized_volatility,
    build_signals,
    daily_changes,
    moving_average,
    pct_change_over,
    percentile_rank,
    series_stats,
    volatility,
)
from goldsignal.errors import InsufficientDataError
from goldsignal.history import HistoricalPoint, HistoricalSeries
from goldsignal.premium import PremiumResult


def _series(tael_prices, start=date(2026, 1, 1)) -> HistoricalSeries:
    return HistoricalSeries(
        HistoricalPoint(start + timedelta(days=i), p / 100.0, p / 37.5)
        for i, p in enumerate(tael_prices)
    )


class TestVolatility:
    def test_population_std(self):
        # changes: +10 %, -10 %  → mean 0, population std 10
        assert volatility([100.0, 110.0, 99.0]) == pytest.approx(10.0)

    def test_constant_series(self):
        assert volatility([5.0, 5.0, 5.0]) == 0.0

    def test_single_point(self):
        assert volatility([100.0]) is None

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            volatility([])

    def test_daily_changes(self):
        assert daily_changes([100.0, 110.0, 99.0]) == pytest.approx([10.0, -10.0])

    def test_annualized(self):
        result = annualized_volatility([100.0, 110.0, 99.0])
        expected = math.log(1.1) - math.log(0.9)
        # two log returns ±x/2 around their mean → std = |r1 - r2| / 2
        assert result == pytest.approx(expected / 2 * math.sqrt(252) * 100)

    def test_annualized_rejects_non_positive(self):
        assert annualized_volatility([100.0, 0.0]) is None


class TestMovingAverage:
    def test_trailing_window(self):
        assert moving_average([1.0, 2.0, 3.0, 4.0], 2) == pytest.approx(3.5)

    def test_too_few_points(self):
        assert moving_average([1.0, 2.0], 7) is None

    def test_exact_period(self):
        assert moving_average([2.0, 4.0, 6.0], 3) == pytest.approx(4.0)

    def test_bad_period(self):
        with pytest.raises(ValueError):
            moving_average([1.0], 0)

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            moving_average([], 7)


class TestPercentileRank:
    def test_max_is_100(self):
        prices = [float(p) for p in range(1, 51)]
        assert percentile_rank(prices) == 100.0

    def test_min_is_0(self):
        prices = [float(p) for p in range(1, 51)]
        assert percentile_rank(prices, current=1.0) == 0.0

    def test_middle(self):
        assert percentile_rank([1.0, 2.0, 3.0, 4.0, 5.0], current=3.0) == pytest.approx(50.0)

    def test_ties_not_broken(self):
        assert percentile_rank([1.0, 2.0, 2.0, 3.0], current=2.0) == pytest.approx(200 / 3)

    def test_single_point(self):
        assert percentile_rank([42.0]) is None

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            percentile_rank([])


class TestChangeOver:
    def test_lookback(self):
        prices = [100.0] + [0.0] * 6 + [110.0]
        assert pct_change_over(prices, 7) == pytest.approx(10.0)

    def test_not_enough_points(self):
        assert pct_change_over([1.0, 2.0], 7) is None


class TestSeriesStats:
    def test_summary(self):
        stats = series_stats(_series([100.0, 120.0, 90.0, 110.0]))
        assert stats["points"] == 4
        assert stats["min"] == pytest.approx(90.0)
        assert stats["max"] == pytest.approx(120.0)
        assert stats["avg"] == pytest.approx(105.0)
        assert stats["total_change_pct"] == pytest.approx(10.0)
        assert stats["start_date"] == "2026-01-01"

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            series_stats(HistoricalSeries([]))


class TestBuildSignals:
    def test_full_snapshot(self):
        prices = [150_000_000.0 + i * 100_000 for i in range(40)]
        series = _series(prices)
        summary = DrawdownSummary(3, 2, 1, 18.5, 400, 250.0)
        prem = PremiumResult(premium_percent=12.5, benchmark_vnd=1.3e8, local_price_vnd=1.49e8)

        signals = build_signals(series, prem, summary)

        assert signals.as_of == series.end.isoformat()
        assert signals.current_vnd_per_tael == pytest.approx(prices[-1])
        assert signals.change_7d_pct == pytest.approx((prices[-1] - prices[-8]) / prices[-8] * 100)
        assert signals.ma7_vnd_per_tael == pytest.approx(sum(prices[-7:]) / 7)
        assert signals.ma30_vnd_per_tael == pytest.approx(sum(prices[-30:]) / 30)
        assert signals.percentile == 100.0
        assert signals.premium_pct == 12.5
        assert signals.drawdowns["total"] == 3

    def test_short_series(self):
        signals = build_signals(_series([1.5e8, 1.6e8]), None, None)
        assert signals.change_30d_pct is None
        assert signals.ma30_vnd_per_tael is None
        assert signals.premium_pct is None
        assert signals.drawdowns is None

    def test_long_series_context(self):
        recent = _series([1.5e8, 1.6e8])
        long = _series([1.0e8, 2.0e8, 3.0e8], start=date(2020, 1, 1))
        signals = build_signals(recent, None, None, long_series=long)
        # only the lowest long-run point is at or below 1.6e8
        assert signals.percentile == pytest.approx(0.0)

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            build_signals(HistoricalSeries([]), None, None)

    def test_empty_long_series_raises(self):
        with pytest.raises(InsufficientDataError):
            build_signals(_series([1.5e8, 1.6e8]), None, None, long_series=HistoricalSeries([]))
