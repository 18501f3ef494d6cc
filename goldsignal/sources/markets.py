"""Market registry — the fallback chain behind each market, in priority order."""

from __future__ import annotations

from goldsignal.config import Config
from goldsignal.sources.base import FallbackChain
from goldsignal.sources.goldprice import CalculatedAdapter, GoldPriceOrgAdapter
from goldsignal.sources.india import IbjaAdapter, MetalsDevAdapter
from goldsignal.sources.international import (
    FreeGoldAdapter,
    GoldApiAdapter,
    TwelveDataAdapter,
)
from goldsignal.sources.models import ExchangeRateTable
from goldsignal.sources.vietnam import (
    GiaVangAdapter,
    GoldPriceOrgVietnamAdapter,
    VNAppMobAdapter,
    WebGiaHistoryAdapter,
)

BENCHMARK = "International"
MARKET_ORDER = ("Vietnam", "China", "Russia", "India")

# Benchmark history providers selectable by name.
HISTORY_SOURCES = ("twelvedata", "freegold")


def build_benchmark(config: Config) -> FallbackChain:
    return FallbackChain(BENCHMARK, BENCHMARK, [
        FreeGoldAdapter(config),
        GoldApiAdapter(config),
        TwelveDataAdapter(config),
    ])


def build_benchmark_history(config: Config, prefer: str | None = None) -> FallbackChain:
    """Long-history chain.  TwelveData first unless *prefer* says otherwise."""
    adapters = {
        "twelvedata": TwelveDataAdapter(config),
        "freegold": FreeGoldAdapter(config),
    }
    if prefer is not None and prefer not in adapters:
        raise ValueError(f"unknown history source {prefer!r}")
    order = [prefer] if prefer else []
    order += [name for name in HISTORY_SOURCES if name not in order]
    return FallbackChain(BENCHMARK, BENCHMARK, [adapters[n] for n in order])


def build_vietnam_history(config: Config) -> FallbackChain:
    return FallbackChain("Vietnam", "Vietnam", [WebGiaHistoryAdapter(config)])


def build_markets(
    config: Config,
    benchmark_usd_per_ounce: float,
    rates: ExchangeRateTable,
) -> dict[str, FallbackChain]:
    """One chain per market, keyed and ordered as ``MARKET_ORDER``."""

    def spot(currency: str, country: str) -> FallbackChain:
        return FallbackChain(country, country, [
            GoldPriceOrgAdapter(config, currency, country),
            CalculatedAdapter(config, currency, country, benchmark_usd_per_ounce, rates),
        ])

    return {
        "Vietnam": FallbackChain("Vietnam", "Vietnam", [
            GiaVangAdapter(config),
            VNAppMobAdapter(config),
            GoldPriceOrgVietnamAdapter(config),
        ]),
        "China": spot("CNY", "China"),
        "Russia": spot("RUB", "Russia"),
        "India": FallbackChain("India", "India", [
            MetalsDevAdapter(config),
            IbjaAdapter(config),
        ]),
    }
