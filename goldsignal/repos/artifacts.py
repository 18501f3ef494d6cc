"""Artifact repository — persists cycle outputs as flat JSON/CSV files.

Every write goes to a temporary file in the target directory and is moved
into place with ``os.replace``, so a reader never sees a partial artifact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from goldsignal.history import HistoricalPoint, HistoricalSeries
from goldsignal.snapshots import DailySnapshot, merge_snapshots

logger = logging.getLogger("goldsignal.repos.artifacts")

LATEST_FILE = "latest.json"
HISTORY_FILE = "history.json"
HISTORY_CSV = "history.csv"
DRAWDOWNS_FILE = "drawdowns.json"
SIGNALS_FILE = "signals.json"
VIETNAM_HISTORY_FILE = "vietnam-history.json"

HISTORY_COLUMNS = ["date", "usd_per_oz", "vnd_per_gram", "vnd_per_tael"]


def _atomic_write(path: Path, write) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            write(fh)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class ArtifactStore:
    """Reads and writes the artifact set under one data directory.

    Args:
        data_dir: Directory holding the artifacts.  Created on first write.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path(self, name: str) -> Path:
        return self._dir / name

    # ── Writes ───────────────────────────────────────────────────────────

    def write_json(self, name: str, payload: Any) -> Path:
        target = self.path(name)
        _atomic_write(
            target,
            lambda fh: json.dump(payload, fh, indent=2, ensure_ascii=False),
        )
        logger.info("Wrote %s", target)
        return target

    def save_latest(self, snapshot: dict) -> Path:
        return self.write_json(LATEST_FILE, snapshot)

    def save_history(self, series: HistoricalSeries, source: str) -> tuple[Path, Path]:
        """Write the series as ``history.json`` and ``history.csv``."""
        rows = [p.to_dict() for p in series]
        json_path = self.write_json(HISTORY_FILE, {
            "source": source,
            "start_date": series.start.isoformat() if series else None,
            "end_date": series.end.isoformat() if series else None,
            "data": rows,
        })

        df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
        csv_path = self.path(HISTORY_CSV)
        _atomic_write(csv_path, lambda fh: df.to_csv(fh, index=False))
        logger.info("Wrote %s (%d rows)", csv_path, len(df))
        return json_path, csv_path

    def save_drawdowns(self, report: dict) -> Path:
        return self.write_json(DRAWDOWNS_FILE, report)

    def save_signals(self, signals: dict) -> Path:
        return self.write_json(SIGNALS_FILE, signals)

    def save_snapshots(self, snapshots: list[DailySnapshot]) -> Path:
        return self.write_json(VIETNAM_HISTORY_FILE, {
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "snapshots": [s.to_dict() for s in snapshots],
        })

    def upsert_snapshots(
        self, incoming: list[DailySnapshot], replace: bool = True,
    ) -> list[DailySnapshot]:
        """Merge *incoming* into ``vietnam-history.json`` keyed by date."""
        merged = merge_snapshots(self.load_snapshots(), incoming, replace)
        self.save_snapshots(merged)
        return merged

    # ── Reads ────────────────────────────────────────────────────────────

    def read_json(self, name: str) -> Optional[Any]:
        """Parsed artifact, or ``None`` when the file does not exist."""
        target = self.path(name)
        if not target.exists():
            return None
        with target.open(encoding="utf-8") as fh:
            return json.load(fh)

    def load_latest(self) -> Optional[dict]:
        return self.read_json(LATEST_FILE)

    def load_drawdowns(self) -> Optional[dict]:
        return self.read_json(DRAWDOWNS_FILE)

    def load_history(self, name: str = HISTORY_FILE) -> Optional[HistoricalSeries]:
        """``history.json`` (or another file of the same layout) as a series."""
        payload = self.read_json(name)
        if payload is None:
            return None
        return series_from_rows(payload.get("data", []))

    def load_snapshots(self) -> list[DailySnapshot]:
        payload = self.read_json(VIETNAM_HISTORY_FILE)
        if payload is None:
            return []
        return [DailySnapshot.from_dict(row) for row in payload.get("snapshots", [])]


def series_from_rows(rows: list[dict]) -> HistoricalSeries:
    """Inverse of ``HistoricalPoint.to_dict``; ``vnd_per_tael`` is recomputed."""
    return HistoricalSeries(
        HistoricalPoint(
            date=date.fromisoformat(row["date"]),
            usd_per_ounce=float(row["usd_per_oz"]),
            vnd_per_gram=float(row["vnd_per_gram"]),
        )
        for row in rows
    )
