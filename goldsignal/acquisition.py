"""goldsignal — Acquisition orchestrator.

One cycle: exchange rates → international benchmark → every national market
concurrently.  A failed market becomes a warning; losing the rates, the
benchmark, or every market at once is fatal.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from goldsignal.config import Config
from goldsignal.errors import AcquisitionError
from goldsignal.sources.base import QuoteSource
from goldsignal.sources.exchange_rate import ExchangeRateAdapter
from goldsignal.sources.markets import MARKET_ORDER, build_benchmark, build_markets
from goldsignal.sources.models import (
    TROY_OUNCE_GRAMS,
    ExchangeRateTable,
    RawQuote,
)

logger = logging.getLogger("goldsignal.acquisition")

MarketFactory = Callable[[Config, float, ExchangeRateTable], Mapping[str, QuoteSource]]


@dataclass
class AggregateResult:
    """Everything gathered in one acquisition cycle."""

    timestamp: datetime
    rates: ExchangeRateTable
    benchmark: list[RawQuote]
    markets: dict[str, list[RawQuote]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def all_quotes(self) -> list[RawQuote]:
        """Benchmark first, then each market in registry order."""
        quotes = list(self.benchmark)
        for name in _ordered(self.markets):
            quotes.extend(self.markets[name])
        return quotes

    @property
    def benchmark_usd_per_ounce(self) -> Optional[float]:
        return _usd_per_ounce(self.benchmark)


def _ordered(names) -> list[str]:
    known = [n for n in MARKET_ORDER if n in names]
    return known + [n for n in names if n not in MARKET_ORDER]


def _usd_per_ounce(quotes: list[RawQuote]) -> Optional[float]:
    for q in quotes:
        if q.price_per_ounce:
            return q.price_per_ounce
        if q.price_per_gram:
            return q.price_per_gram * TROY_OUNCE_GRAMS
    return None


# ── Post-processing ──────────────────────────────────────────────────────


def dedupe_by_sell_price(quotes: list[RawQuote]) -> list[RawQuote]:
    """Keep the first quote per per-tael sell price (Vietnam boards repeat rows)."""
    seen: set[float] = set()
    unique: list[RawQuote] = []
    for q in quotes:
        key = q.price_per_tael or 0.0
        if key in seen:
            continue
        seen.add(key)
        unique.append(q)
    return unique


def dedupe_by_source(quotes: list[RawQuote]) -> list[RawQuote]:
    """One quote per source name, preferring one that carries a sell price."""
    chosen: dict[str, RawQuote] = {}
    for q in quotes:
        existing = chosen.get(q.source)
        if existing is None or (q.sell_price and not existing.sell_price):
            chosen[q.source] = q
    return list(chosen.values())


def pick_fine_gold(quotes: list[RawQuote]) -> list[RawQuote]:
    """Reduce India to its first 999-fineness quote when one exists."""
    for q in quotes:
        if "999" in q.source:
            return [q]
    return quotes


def postprocess(market: str, quotes: list[RawQuote]) -> list[RawQuote]:
    if market == "Vietnam":
        return dedupe_by_sell_price(quotes)
    quotes = dedupe_by_source(quotes)
    if market == "India":
        return pick_fine_gold(quotes)
    return quotes


# ── Orchestrator ─────────────────────────────────────────────────────────


class AcquisitionOrchestrator:
    """Runs one acquisition cycle per ``acquire_all`` call.

    Args:
        config: Run configuration.
        rate_source: Exchange-rate provider (``fetch_rates``).  Defaults to
            ``ExchangeRateAdapter``.
        benchmark: International benchmark source.  Defaults to the
            FreeGoldAPI → GoldAPI.io → TwelveData chain.
        market_factory: Builds the market sources once the benchmark price
            and rates are known.  Defaults to ``build_markets``.
    """

    def __init__(
        self,
        config: Config,
        rate_source: Optional[ExchangeRateAdapter] = None,
        benchmark: Optional[QuoteSource] = None,
        market_factory: Optional[MarketFactory] = None,
    ) -> None:
        self._config = config
        self._rate_source = rate_source or ExchangeRateAdapter(config)
        self._benchmark = benchmark or build_benchmark(config)
        self._market_factory = market_factory or build_markets

    async def fetch_rates(self) -> ExchangeRateTable:
        result = await self._rate_source.fetch_rates()
        if not result.ok:
            raise AcquisitionError(f"no exchange rate available: {result.error}")
        return result.data

    async def acquire_all(self) -> AggregateResult:
        rates = await self.fetch_rates()
        logger.info("Exchange rates: %s", ", ".join(
            f"{cur}={rate:g}" for cur, rate in rates.rates.items()
        ))

        bench = await self._benchmark.fetch()
        if not bench.ok:
            raise AcquisitionError(f"benchmark unavailable: {bench.error}")

        usd_oz = _usd_per_ounce(bench.data)
        if usd_oz is None:
            raise AcquisitionError("benchmark unavailable: no per-ounce price")
        logger.info("Benchmark XAU/USD %.2f", usd_oz)

        sources = self._market_factory(self._config, usd_oz, rates)
        names = list(sources)
        outcomes = await asyncio.gather(
            *(sources[n].fetch() for n in names), return_exceptions=True,
        )

        result = AggregateResult(
            timestamp=datetime.now(timezone.utc),
            rates=rates,
            benchmark=list(bench.data),
        )

        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                error = f"{type(outcome).__name__}: {outcome}"
            elif not outcome.ok:
                error = outcome.error
            else:
                result.markets[name] = postprocess(name, list(outcome.data))
                logger.info("%s: %d quote(s)", name, len(result.markets[name]))
                continue

            warning = f"{name} unavailable: {error}"
            logger.warning(warning)
            result.warnings.append(warning)

        if names and not result.markets:
            raise AcquisitionError("all markets unavailable")

        return result
