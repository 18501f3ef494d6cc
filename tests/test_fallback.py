"""Tests for goldsignal.sources.base — fallback chain ordering and error rules."""

from datetime import datetime, timezone

import pytest

from goldsignal.config import Config
from goldsignal.sources.base import Adapter, FallbackChain, QuoteSource
from goldsignal.sources.http import FetchError
from goldsignal.sources.models import Err, Ok, PerOunce, RawQuote


def _quote(source: str) -> RawQuote:
    return RawQuote(
        source=source,
        country="International",
        currency="USD",
        price=PerOunce(2650.0),
        timestamp=datetime(2026, 10, 16, tzinfo=timezone.utc),
    )


class _StubAdapter:
    """Records calls; answers with a fixed result."""

    def __init__(self, name, result, credential_env=None, available=True):
        self.name = name
        self.country = "International"
        self.credential_env = credential_env
        self.available = available
        self.supports_history = False
        self.calls = 0
        self._result = result

    async def fetch(self):
        self.calls += 1
        return self._result


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_first_success_stops_chain(self):
        a = _StubAdapter("A", Err("a down"))
        b = _StubAdapter("B", Err("b down"))
        c = _StubAdapter("C", Ok([_quote("C")]))
        d = _StubAdapter("D", Ok([_quote("D")]))
        chain = FallbackChain("International", "International", [a, b, c, d])

        result = await chain.fetch()

        assert result.ok
        assert result.data[0].source == "C"
        assert (a.calls, b.calls, c.calls, d.calls) == (1, 1, 1, 0)

    @pytest.mark.asyncio
    async def test_returns_last_error(self):
        chain = FallbackChain("X", "X", [
            _StubAdapter("A", Err("first")),
            _StubAdapter("B", Err("second")),
            _StubAdapter("C", Err("third")),
        ])
        result = await chain.fetch()
        assert not result.ok
        assert result.error == "third"

    @pytest.mark.asyncio
    async def test_skipped_adapter_is_not_a_failure(self):
        keyed = _StubAdapter("Keyed", Err("should not run"), credential_env="GOLDAPI_KEY", available=False)
        failing = _StubAdapter("Failing", Err("real failure"))
        chain = FallbackChain("X", "X", [failing, keyed])

        result = await chain.fetch()

        assert keyed.calls == 0
        assert result.error == "real failure"

    @pytest.mark.asyncio
    async def test_all_skipped(self):
        chain = FallbackChain("X", "X", [
            _StubAdapter("A", Ok([]), credential_env="GOLDAPI_KEY", available=False),
        ])
        result = await chain.fetch()
        assert not result.ok
        assert "no adapter available" in result.error

    @pytest.mark.asyncio
    async def test_empty_chain(self):
        result = await FallbackChain("X", "X", []).fetch()
        assert not result.ok

    def test_chain_is_a_quote_source(self):
        assert isinstance(FallbackChain("X", "X", []), QuoteSource)


class _Boom(Adapter):
    name = "boom"
    country = "International"

    def __init__(self, config, exc):
        super().__init__(config)
        self._exc = exc

    async def _fetch(self):
        raise self._exc


class TestAdapterGuard:
    @pytest.mark.asyncio
    async def test_fetch_error(self):
        result = await _Boom(Config(), FetchError("HTTP 500")).fetch()
        assert result == Err("HTTP 500")

    @pytest.mark.asyncio
    async def test_parse_error(self):
        result = await _Boom(Config(), KeyError("price")).fetch()
        assert not result.ok
        assert result.error.startswith("malformed response")

    @pytest.mark.asyncio
    async def test_wrong_payload_type(self):
        exc = AttributeError("'str' object has no attribute 'get'")
        result = await _Boom(Config(), exc).fetch()
        assert not result.ok
        assert result.error.startswith("malformed response: AttributeError")

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self):
        with pytest.raises(RuntimeError):
            await _Boom(Config(), RuntimeError("bug")).fetch()

    def test_no_history_by_default(self):
        assert not _Boom(Config(), ValueError()).supports_history
