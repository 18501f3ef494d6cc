"""Provider protocol, adapter base class and the fallback chain runner.

An adapter performs one request against one endpoint and always answers with
a ``FetchResult``; network and parsing exceptions are converted to ``Err``
here so nothing propagates past the adapter boundary.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol, Sequence, runtime_checkable

import httpx

from goldsignal.config import Config
from goldsignal.sources.http import FetchError
from goldsignal.sources.models import Err, FetchResult, PriceHistory, RawQuote

logger = logging.getLogger("goldsignal.sources")


@runtime_checkable
class QuoteSource(Protocol):
    """Interface every market source satisfies (single adapter or chain)."""

    name: str
    country: str

    async def fetch(self) -> FetchResult[list[RawQuote]]:
        """Fetch the current quotes."""
        ...


class Adapter:
    """Base class for single-endpoint adapters.

    Subclasses set ``name``, ``country`` and, when the endpoint needs a key,
    ``credential_env``; then implement ``_fetch`` and optionally
    ``_fetch_history``.
    """

    name: str = ""
    country: str = ""
    credential_env: Optional[str] = None

    def __init__(self, config: Config) -> None:
        self._config = config
        self._timeout = config.http_timeout_seconds

    @property
    def credential(self) -> Optional[str]:
        return self._config.credential(self.credential_env)

    @property
    def available(self) -> bool:
        """``False`` when a required credential is missing."""
        return self.credential_env is None or bool(self.credential)

    @property
    def supports_history(self) -> bool:
        return type(self)._fetch_history is not Adapter._fetch_history

    async def fetch(self) -> FetchResult[list[RawQuote]]:
        return await self._guard(self._fetch)

    async def fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        return await self._guard(self._fetch_history, days)

    async def _fetch(self) -> FetchResult[list[RawQuote]]:
        raise NotImplementedError

    async def _fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        raise NotImplementedError

    async def _guard(self, call: Callable[..., Awaitable[FetchResult]], *args) -> FetchResult:
        try:
            return await call(*args)
        except FetchError as exc:
            return Err(str(exc))
        except httpx.TimeoutException:
            return Err(f"timeout after {self._timeout:g}s")
        except httpx.HTTPError as exc:
            return Err(f"{type(exc).__name__}: {exc}")
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            return Err(f"malformed response: {type(exc).__name__}: {exc}")


class FallbackChain:
    """Ordered list of adapters backing one market.

    Adapters are tried strictly in order and the first success wins.  An
    adapter missing its credential is skipped and does not count as a
    failure.  When nothing succeeds the *last* error is returned.
    """

    credential_env: Optional[str] = None

    def __init__(self, name: str, country: str, adapters: Sequence) -> None:
        self.name = name
        self.country = country
        self._adapters = list(adapters)

    @property
    def available(self) -> bool:
        return True

    async def fetch(self) -> FetchResult[list[RawQuote]]:
        return await self._run(self._adapters, lambda a: a.fetch())

    async def fetch_history(self, days: int) -> FetchResult[PriceHistory]:
        capable = [
            a for a in self._adapters if getattr(a, "supports_history", False)
        ]
        return await self._run(capable, lambda a: a.fetch_history(days))

    async def _run(self, adapters: list, call: Callable[[object], Awaitable[FetchResult]]) -> FetchResult:
        last_error: Optional[Err] = None
        skipped: list[str] = []

        for adapter in adapters:
            if not getattr(adapter, "available", True):
                logger.debug(
                    "%s: skipping %s (%s not set)",
                    self.name, adapter.name, adapter.credential_env,
                )
                skipped.append(adapter.name)
                continue

            result = await call(adapter)
            if result.ok:
                logger.info("%s: served by %s", self.name, adapter.name)
                return result

            logger.info("%s: %s failed: %s", self.name, adapter.name, result.error)
            last_error = result

        if last_error is not None:
            return last_error
        if skipped:
            return Err(f"no adapter available (skipped: {', '.join(skipped)})")
        return Err("no adapter configured")
