"""
Runner: creates/refreshes the rolling vaccination artifacts (eager table + lazy view).
"""
from __future__ import annotations

from pathlib import Path
import logging
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from covid_explorer.utils.config import DUCKDB_PATH
from covid_explorer.warehouse.materialize import build_artifacts

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    counts = build_artifacts(DUCKDB_PATH)
    for name, n in counts.items():
        print(f"[runner] gold.{name} rows={n}")

if __name__ == "__main__":
    main()
