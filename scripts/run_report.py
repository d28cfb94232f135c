# scripts/run_report.py
from __future__ import annotations
import argparse
import logging
from pathlib import Path
from datetime import datetime

from covid_explorer.report.generator import build_report
from covid_explorer.utils.config import REPORT_TOP_N, REPORTS_DIR
from covid_explorer.warehouse.sql_client import SQLClient

def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--out", default=str(REPORTS_DIR), help="Output folder for markdown.")
    parser.add_argument("--top", type=int, default=REPORT_TOP_N, help="Rows per ranking.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    with SQLClient() as sql:
        rpt = build_report(sql, top_n=args.top)
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    out_md = out_dir / f"covid_report_{ts}.md"
    out_md.write_text(rpt.report_md, encoding="utf-8")

    print(f"[runner] report saved: {out_md}")

if __name__ == "__main__":
    main()
