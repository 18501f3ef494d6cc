"""Source data models — typed representations of provider observations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Generic, Mapping, Optional, TypeVar, Union


TROY_OUNCE_GRAMS = 31.1035
TAEL_GRAMS = 37.5


# ── Price shapes ─────────────────────────────────────────────────────────
# A quote carries exactly one of these; the shape decides how the
# per-gram price is derived during normalization.


@dataclass(frozen=True)
class PerGram:
    """Price per gram in the quote currency."""

    value: float


@dataclass(frozen=True)
class PerOunce:
    """Price per troy ounce in the quote currency."""

    value: float


@dataclass(frozen=True)
class PerTael:
    """Price per tael (lượng, 37.5 g) in the quote currency."""

    value: float


@dataclass(frozen=True)
class BuySell:
    """Dealer board prices per tael.  The sell side is the reference price."""

    buy: Optional[float]
    sell: Optional[float]


PriceShape = Union[PerGram, PerOunce, PerTael, BuySell]


@dataclass(frozen=True)
class RawQuote:
    """One provider's observation, in the provider's own currency and unit."""

    source: str
    country: str
    currency: str
    price: PriceShape
    timestamp: datetime
    raw: Optional[dict] = field(default=None, compare=False, repr=False)

    @property
    def price_per_gram(self) -> Optional[float]:
        if isinstance(self.price, PerGram):
            return self.price.value
        if isinstance(self.price, PerOunce):
            return self.price.value / TROY_OUNCE_GRAMS
        return None

    @property
    def price_per_ounce(self) -> Optional[float]:
        if isinstance(self.price, PerOunce):
            return self.price.value
        return None

    @property
    def price_per_tael(self) -> Optional[float]:
        if isinstance(self.price, PerTael):
            return self.price.value
        if isinstance(self.price, BuySell):
            return self.price.sell
        return None

    @property
    def buy_price(self) -> Optional[float]:
        return self.price.buy if isinstance(self.price, BuySell) else None

    @property
    def sell_price(self) -> Optional[float]:
        return self.price.sell if isinstance(self.price, BuySell) else None

    def to_dict(self) -> dict:
        """Flat field view used in persisted artifacts."""
        out = {
            "source": self.source,
            "country": self.country,
            "currency": self.currency,
            "timestamp": self.timestamp.isoformat(),
        }
        for key, value in (
            ("price_per_gram", self.price_per_gram),
            ("price_per_ounce", self.price_per_ounce),
            ("price_per_tael", self.price_per_tael),
            ("buy_price", self.buy_price),
            ("sell_price", self.sell_price),
        ):
            if value is not None:
                out[key] = value
        return out


# ── Fetch outcome ────────────────────────────────────────────────────────

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful fetch carrying its payload."""

    data: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed fetch carrying a human-readable reason."""

    error: str

    @property
    def ok(self) -> bool:
        return False


FetchResult = Union[Ok[T], Err]


# ── Exchange rates ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExchangeRateTable:
    """Units of each currency per 1 USD.  ``USD`` is always ``1.0``."""

    rates: Mapping[str, float]
    source: str = ""
    as_of: Optional[str] = None

    def __post_init__(self) -> None:
        table = {code.upper(): float(rate) for code, rate in self.rates.items()}
        table["USD"] = 1.0
        object.__setattr__(self, "rates", MappingProxyType(table))

    def get(self, currency: str) -> Optional[float]:
        return self.rates.get(currency.upper())

    def __contains__(self, currency: str) -> bool:
        return currency.upper() in self.rates

    def to_dict(self) -> dict[str, float]:
        return dict(self.rates)


# ── History ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HistoricalPrice:
    """One daily price observation in the owning history's currency/unit.

    ``price`` is the close (benchmarks) or the board sell price; ``buy`` is
    only set by dealer boards that publish both sides.
    """

    date: date
    price: float
    buy: Optional[float] = None


@dataclass(frozen=True)
class PriceHistory:
    """A provider's daily price history, oldest first.

    ``unit`` is ``"ounce"`` (benchmark feeds, USD) or ``"tael"`` (Vietnam
    dealer boards, VND).
    """

    source: str
    country: str
    currency: str
    unit: str
    points: tuple[HistoricalPrice, ...]
