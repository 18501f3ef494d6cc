"""goldsignal — Normalization to the canonical unit (VND per gram / per tael).

Pure transform: the same quotes and rate table always yield the same
output.  Quotes that cannot be expressed in VND are dropped and reported,
never substituted with a guessed value.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from goldsignal.errors import AcquisitionError
from goldsignal.sources.models import (
    TAEL_GRAMS,
    TROY_OUNCE_GRAMS,
    BuySell,
    ExchangeRateTable,
    PerGram,
    PerOunce,
    PerTael,
    PriceShape,
    RawQuote,
)

logger = logging.getLogger("goldsignal.normalize")


@dataclass(frozen=True)
class NormalizedQuote:
    """A quote expressed in VND per gram.  ``vnd_per_tael`` is derived."""

    source: str
    country: str
    original_currency: str
    original_price_per_gram: float
    vnd_per_gram: float

    @property
    def vnd_per_tael(self) -> float:
        return self.vnd_per_gram * TAEL_GRAMS

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "country": self.country,
            "original_currency": self.original_currency,
            "original_price_per_gram": self.original_price_per_gram,
            "vnd_per_gram": self.vnd_per_gram,
            "vnd_per_tael": self.vnd_per_tael,
        }


# ── Per-gram derivation, one function per price shape ────────────────────


def _from_gram(price: PerGram) -> Optional[float]:
    return price.value


def _from_ounce(price: PerOunce) -> Optional[float]:
    return price.value / TROY_OUNCE_GRAMS


def _from_tael(price: PerTael) -> Optional[float]:
    return price.value / TAEL_GRAMS


def _from_board(price: BuySell) -> Optional[float]:
    if price.sell is None:
        return None
    return price.sell / TAEL_GRAMS


_PER_GRAM: dict[type, Callable[..., Optional[float]]] = {
    PerGram: _from_gram,
    PerOunce: _from_ounce,
    PerTael: _from_tael,
    BuySell: _from_board,
}


def price_per_gram(price: PriceShape) -> Optional[float]:
    """Native-currency price per gram, or ``None`` when not derivable."""
    derive = _PER_GRAM.get(type(price))
    if derive is None:
        raise TypeError(f"unsupported price shape {type(price).__name__}")
    value = derive(price)
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def to_vnd(amount: float, currency: str, rates: ExchangeRateTable) -> Optional[float]:
    """Convert *amount* of *currency* to VND.

    Returns ``None`` when *currency* is absent from the table.  Raises
    ``AcquisitionError`` when a conversion is needed but VND itself is
    missing.
    """
    currency = currency.upper()
    if currency == "VND":
        return amount

    vnd = rates.get("VND")
    if vnd is None:
        raise AcquisitionError("no exchange rate available: VND")

    rate = rates.get(currency)
    if rate is None:
        return None
    # rate is units of currency per 1 USD
    return amount / rate * vnd


def normalize(
    quotes: list[RawQuote],
    rates: ExchangeRateTable,
    warnings: Optional[list[str]] = None,
) -> list[NormalizedQuote]:
    """Normalize *quotes* in order, dropping those that cannot be converted.

    Each drop is logged and, when *warnings* is given, appended to it.
    """
    out: list[NormalizedQuote] = []

    def drop(quote: RawQuote, reason: str) -> None:
        message = f"{quote.country}/{quote.source} dropped: {reason}"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)

    for quote in quotes:
        per_gram = price_per_gram(quote.price)
        if per_gram is None:
            drop(quote, "no usable price")
            continue

        vnd_per_gram = to_vnd(per_gram, quote.currency, rates)
        if vnd_per_gram is None:
            drop(quote, f"unknown currency {quote.currency}")
            continue

        out.append(
            NormalizedQuote(
                source=quote.source,
                country=quote.country,
                original_currency=quote.currency,
                original_price_per_gram=per_gram,
                vnd_per_gram=vnd_per_gram,
            )
        )

    return out
