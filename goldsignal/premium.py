"""goldsignal — Local premium over the international benchmark.

An unavailable premium is ``None``.  A 0 % premium is a real observation and
is never used to stand in for missing data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

from goldsignal.normalize import NormalizedQuote
from goldsignal.sources.models import (
    TAEL_GRAMS,
    TROY_OUNCE_GRAMS,
    ExchangeRateTable,
    RawQuote,
)

BENCHMARK_COUNTRY = "International"


@dataclass(frozen=True)
class PremiumResult:
    premium_percent: float
    benchmark_vnd: float
    local_price_vnd: float

    def to_dict(self) -> dict:
        return asdict(self)


def premium(
    local_vnd_per_tael: Optional[float],
    benchmark_vnd_per_tael: Optional[float],
) -> Optional[PremiumResult]:
    """Percentage by which the local price exceeds the benchmark.

    ``None`` when either side is missing or the benchmark is not positive.
    """
    if local_vnd_per_tael is None or benchmark_vnd_per_tael is None:
        return None
    if benchmark_vnd_per_tael <= 0:
        return None
    pct = (local_vnd_per_tael - benchmark_vnd_per_tael) / benchmark_vnd_per_tael * 100
    return PremiumResult(
        premium_percent=pct,
        benchmark_vnd=benchmark_vnd_per_tael,
        local_price_vnd=local_vnd_per_tael,
    )


def benchmark_vnd_per_tael(usd_per_ounce: float, usd_vnd: float) -> float:
    """International price of one tael in VND."""
    return usd_per_ounce / TROY_OUNCE_GRAMS * TAEL_GRAMS * usd_vnd


def vietnam_premium(
    vietnam_quotes: list[RawQuote],
    benchmark_quotes: list[RawQuote],
    rates: ExchangeRateTable,
) -> Optional[PremiumResult]:
    """SJC sell price vs. XAU/USD converted at the cycle's USD→VND rate."""
    sjc = next(
        (q for q in vietnam_quotes if "sjc" in q.source.lower() and q.sell_price),
        None,
    )
    usd_oz = next(
        (q.price_per_ounce for q in benchmark_quotes if q.price_per_ounce),
        None,
    )
    usd_vnd = rates.get("VND")
    if sjc is None or usd_oz is None or usd_vnd is None:
        return None
    return premium(sjc.sell_price, benchmark_vnd_per_tael(usd_oz, usd_vnd))


def premium_table(normalized: list[NormalizedQuote]) -> list[dict]:
    """Each quote's percentage difference from the benchmark per-gram price."""
    bench = next(
        (q.vnd_per_gram for q in normalized if q.country == BENCHMARK_COUNTRY),
        None,
    )
    rows = []
    for q in normalized:
        result = premium(q.vnd_per_tael, bench * TAEL_GRAMS if bench else None)
        rows.append({
            "source": q.source,
            "country": q.country,
            "vnd_per_tael": q.vnd_per_tael,
            "premium_percent": result.premium_percent if result else None,
        })
    return rows
