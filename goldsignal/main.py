"""goldsignal — command-line entry point.

    python -m goldsignal.main collect
    python -m goldsignal.main history --days 365 --source twelvedata
    python -m goldsignal.main drawdowns --min-pct 10
    python -m goldsignal.main signals
    python -m goldsignal.main backfill --days 365

Each command returns exit status 0 on success (warnings included) and 1 on a
fatal condition, which is logged before exiting.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from goldsignal.acquisition import AcquisitionOrchestrator
from goldsignal.analytics.drawdown import (
    DrawdownSummary,
    by_severity,
    detect_drawdowns,
    ongoing_drawdowns,
    summarize_drawdowns,
)
from goldsignal.analytics.stats import build_signals, series_stats
from goldsignal.config import Config, load_config
from goldsignal.errors import AcquisitionError, InsufficientDataError
from goldsignal.history import build_series, resolve_usd_vnd
from goldsignal.normalize import normalize
from goldsignal.premium import PremiumResult, premium_table, vietnam_premium
from goldsignal.repos.artifacts import HISTORY_FILE, ArtifactStore
from goldsignal.snapshots import (
    MAX_MATCH_OFFSET_DAYS,
    backfill_snapshots,
    snapshot_from_quotes,
)
from goldsignal.sources.base import FallbackChain
from goldsignal.sources.markets import (
    HISTORY_SOURCES,
    build_benchmark_history,
    build_vietnam_history,
)
from goldsignal.sources.models import ExchangeRateTable

logger = logging.getLogger("goldsignal")

VIETNAM_HISTORY_SOURCE = "webgia"
LATEST_RATES_SOURCE = "latest.json"


# ── Commands ─────────────────────────────────────────────────────────────


async def run_collect(
    config: Config,
    store: ArtifactStore,
    orchestrator: Optional[AcquisitionOrchestrator] = None,
) -> int:
    """Acquire, normalize and price every market.

    Writes ``latest.json`` and refreshes today's entry in ``vietnam-history.json``.
    """
    orchestrator = orchestrator or AcquisitionOrchestrator(config)
    try:
        result = await orchestrator.acquire_all()
        warnings = list(result.warnings)
        normalized = normalize(result.all_quotes(), result.rates, warnings)
    except AcquisitionError as exc:
        logger.error("Collection failed: %s", exc)
        return 1

    vn_premium = vietnam_premium(
        result.markets.get("Vietnam", []), result.benchmark, result.rates,
    )
    if vn_premium is None:
        logger.info("Vietnam premium unavailable")
    else:
        logger.info("Vietnam premium %.2f%%", vn_premium.premium_percent)

    store.save_latest({
        "timestamp": result.timestamp.isoformat(),
        "normalized": [q.to_dict() for q in normalized],
        "raw": {
            "international": [q.to_dict() for q in result.benchmark],
            **{
                market.lower(): [q.to_dict() for q in quotes]
                for market, quotes in result.markets.items()
            },
        },
        "exchange_rates": result.rates.to_dict(),
        "vietnam_premium": vn_premium.to_dict() if vn_premium else None,
        "premiums": premium_table(normalized),
        "warnings": warnings,
    })
    usd_oz = result.benchmark_usd_per_ounce
    usd_vnd = result.rates.get("VND")
    if usd_oz and usd_vnd:
        snapshot = snapshot_from_quotes(
            result.markets.get("Vietnam", []), usd_oz, usd_vnd, result.timestamp,
        )
        store.upsert_snapshots([snapshot])

    for warning in warnings:
        logger.warning("Collected with warning: %s", warning)
    return 0


def _history_chain(config: Config, source: Optional[str]) -> FallbackChain:
    if source == VIETNAM_HISTORY_SOURCE:
        return build_vietnam_history(config)
    return build_benchmark_history(config, prefer=source)


def _captured_rates(store: ArtifactStore) -> Optional[ExchangeRateTable]:
    latest = store.load_latest()
    if not latest or not latest.get("exchange_rates"):
        return None
    return ExchangeRateTable(latest["exchange_rates"], source=LATEST_RATES_SOURCE)


async def run_history(
    config: Config,
    store: ArtifactStore,
    days: int = 365,
    source: Optional[str] = None,
    chain: Optional[FallbackChain] = None,
) -> int:
    """Fetch *days* of daily prices; write ``history.json`` and ``history.csv``."""
    chain = chain or _history_chain(config, source)
    result = await chain.fetch_history(days)
    if not result.ok:
        logger.error("History unavailable: %s", result.error)
        return 1

    history = result.data
    rate = resolve_usd_vnd(_captured_rates(store), config)
    try:
        series = build_series(history, rate)
        stats = series_stats(series)
    except (ValueError, InsufficientDataError) as exc:
        logger.error("History rejected: %s", exc)
        return 1

    store.save_history(series, history.source)
    logger.info(
        "%s: %d days %s..%s, %+.2f%%",
        history.source, stats["points"], stats["start_date"], stats["end_date"],
        stats["total_change_pct"],
    )
    return 0


def run_drawdowns(
    config: Config,
    store: ArtifactStore,
    min_pct: Optional[float] = None,
    input_name: str = HISTORY_FILE,
) -> int:
    """Analyse a stored series for drawdowns; write ``drawdowns.json``."""
    threshold = config.min_drawdown_pct if min_pct is None else min_pct
    series = store.load_history(input_name)
    if series is None:
        logger.error("%s not found in %s", input_name, store.data_dir)
        return 1

    try:
        events = detect_drawdowns(series, threshold)
        ongoing = ongoing_drawdowns(events, series)
    except InsufficientDataError as exc:
        logger.error("Drawdown analysis failed: %s", exc)
        return 1

    summary = summarize_drawdowns(events)
    store.save_drawdowns({
        "analyzed_period": {
            "start": series.start.isoformat(),
            "end": series.end.isoformat(),
            "points": len(series),
        },
        "min_drawdown_pct": threshold,
        "summary": summary.to_dict(),
        "ongoing": ongoing,
        "drawdowns": [d.to_dict() for d in by_severity(events)],
    })
    logger.info(
        "%d drawdown(s) >= %g%%, %d recovered", summary.total, threshold, summary.recovered,
    )
    return 0


def run_signals(config: Config, store: ArtifactStore, long_input: Optional[str] = None) -> int:
    """Combine latest, history and drawdowns into ``signals.json``."""
    latest = store.load_latest()
    series = store.load_history()
    if latest is None or series is None:
        logger.error("signals need latest.json and history.json in %s", store.data_dir)
        return 1

    premium_data = latest.get("vietnam_premium")
    snapshot_premium = PremiumResult(**premium_data) if premium_data else None

    summary = None
    drawdowns = store.load_drawdowns()
    if drawdowns is not None:
        summary = DrawdownSummary(**drawdowns["summary"])

    long_series = store.load_history(long_input) if long_input else None

    try:
        signals = build_signals(series, snapshot_premium, summary, long_series)
    except InsufficientDataError as exc:
        logger.error("Signals unavailable: %s", exc)
        return 1

    payload = signals.to_dict()
    payload["generated_at"] = datetime.now(timezone.utc).isoformat()
    store.save_signals(payload)
    return 0


async def run_backfill(
    config: Config,
    store: ArtifactStore,
    days: int = 365,
    board_chain: Optional[FallbackChain] = None,
    benchmark_chain: Optional[FallbackChain] = None,
) -> int:
    """Fill past dates of ``vietnam-history.json`` from board and benchmark history.

    Dates already stored are kept.  Past USD/VND rates are not captured, so
    every backfilled snapshot uses ``HISTORICAL_EXCHANGE_RATE``.
    """
    board_chain = board_chain or build_vietnam_history(config)
    benchmark_chain = benchmark_chain or build_benchmark_history(config)
    board, benchmark = await asyncio.gather(
        board_chain.fetch_history(days),
        benchmark_chain.fetch_history(days + MAX_MATCH_OFFSET_DAYS),
    )
    if not board.ok:
        logger.error("Vietnam board history unavailable: %s", board.error)
        return 1
    if not benchmark.ok:
        logger.error("Benchmark history unavailable: %s", benchmark.error)
        return 1

    rate = config.historical_exchange_rate
    try:
        snapshots, unmatched = backfill_snapshots(board.data, benchmark.data, rate)
    except ValueError as exc:
        logger.error("Backfill rejected: %s", exc)
        return 1

    before = len(store.load_snapshots())
    merged = store.upsert_snapshots(snapshots, replace=False)
    logger.info(
        "Backfilled %d snapshot(s) at %.0f VND/USD (%d matched, %d unmatched), %d total",
        len(merged) - before, rate, len(snapshots), unmatched, len(merged),
    )
    return 0


# ── CLI ──────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goldsignal", description="Gold price aggregation and signals",
    )
    parser.add_argument("--env-file", help="Path to a .env file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("collect", help="Fetch current prices from every market")

    hist = sub.add_parser("history", help="Fetch daily price history")
    hist.add_argument("--days", type=int, default=365)
    hist.add_argument(
        "--source",
        choices=[*HISTORY_SOURCES, VIETNAM_HISTORY_SOURCE],
        help="Preferred provider (default: twelvedata, then freegold)",
    )

    dd = sub.add_parser("drawdowns", help="Detect drawdown/recovery cycles")
    dd.add_argument("--min-pct", type=float, help="Threshold in percent")
    dd.add_argument("--input", default=HISTORY_FILE, help="Series file in the data dir")

    sig = sub.add_parser("signals", help="Build the market signal snapshot")
    sig.add_argument("--long-input", help="Multi-year series file for the percentile")

    bf = sub.add_parser("backfill", help="Backfill the daily Vietnam snapshot history")
    bf.add_argument("--days", type=int, default=365)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.env_file)
    except ValueError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", exc)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    store = ArtifactStore(config.data_dir)

    if args.command == "collect":
        return asyncio.run(run_collect(config, store))
    if args.command == "history":
        return asyncio.run(run_history(config, store, args.days, args.source))
    if args.command == "drawdowns":
        return run_drawdowns(config, store, args.min_pct, args.input)
    if args.command == "backfill":
        return asyncio.run(run_backfill(config, store, args.days))
    return run_signals(config, store, args.long_input)


if __name__ == "__main__":
    sys.exit(main())
