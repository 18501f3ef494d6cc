"""One-shot daily pipeline: collect → history → drawdowns → signals.

Usage (from the project root):
    python -m scripts.collect_daily --days 365
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from goldsignal.config import load_config
from goldsignal.main import run_collect, run_drawdowns, run_history, run_signals
from goldsignal.repos.artifacts import ArtifactStore


async def _main(days: int) -> int:
    config = load_config()
    store = ArtifactStore(config.data_dir)
    log = logging.getLogger(__name__)

    if await run_collect(config, store) != 0:
        return 1
    if await run_history(config, store, days) != 0:
        # Analytics can still run on the previous history.json
        log.warning("History refresh failed, keeping the stored series")
    if run_drawdowns(config, store) != 0:
        return 1
    code = run_signals(config, store)
    log.info("Done → %s", store.data_dir)
    return code


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the full daily gold pipeline")
    parser.add_argument("--days", type=int, default=365)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    sys.exit(asyncio.run(_main(args.days)))
