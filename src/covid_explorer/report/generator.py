# src/covid_explorer/report/generator.py
"""
Report generation for the COVID exploration queries.

This module pulls the global numbers, rankings and vaccination progress from
DuckDB and renders a Markdown report via Jinja2.

Design goals:
- Data fetch and rendering kept separate (`collect_*` vs `render_report_md`)
- SQL client injected so tests can point at a throwaway warehouse
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from covid_explorer.analysis.schemas import ReportOutput, VaccinationProgress
from covid_explorer.utils.config import (
    EXCLUDE_AGGREGATE_ROWS,
    REPORT_TOP_N,
    ROLLING_VIEW,
    SCHEMA_GOLD,
)
from covid_explorer.utils.duck import table_exists
from covid_explorer.utils.io import frame_records, parse_records
from covid_explorer.warehouse import queries as Q
from covid_explorer.warehouse.metrics import (
    death_counts,
    get_as_of_day,
    get_death_counts_by_continent,
    get_death_counts_by_location,
    get_global_numbers,
    get_highest_infection_rates,
    infection_summaries,
)
from covid_explorer.warehouse.materialize import check_unique_keys
from covid_explorer.warehouse.sql_client import SQLClient

# ------------------------------------------------------------------------------
# Constants & logger
# ------------------------------------------------------------------------------
TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

log = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _fmt_pct(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f}%"


def _fmt_int(value: Optional[int]) -> str:
    return "n/a" if value is None else f"{value:,}"


def collect_vaccination_progress(sql: SQLClient) -> List[VaccinationProgress]:
    """
    Latest rolling vaccination figure per location, read from the lazy view.

    Falls back to the on-the-fly query when the view has not been created yet.
    """
    check_unique_keys(sql.con)
    relation = f"{SCHEMA_GOLD}.{ROLLING_VIEW}"
    if not table_exists(sql.con, SCHEMA_GOLD, ROLLING_VIEW):
        log.warning("view %s missing; computing rolling vaccinations inline", relation)
        relation = f"({Q.rolling_vaccinations_sql(EXCLUDE_AGGREGATE_ROWS)}) AS rolling"
    df = sql.df(Q.latest_vaccination_sql(relation))
    return parse_records(VaccinationProgress, frame_records(df))


def render_report_md(out: ReportOutput) -> str:
    """
    Render the final Markdown report using the Jinja2 template.

    Parameters
    ----------
    out : ReportOutput
        Collected figures (report_md is ignored).

    Returns
    -------
    str
        Final Markdown content.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(disabled_extensions=("md",)),
    )
    env.filters["pct"] = _fmt_pct
    env.filters["num"] = _fmt_int
    tpl = env.get_template("report.md.j2")
    return tpl.render(r=out)


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------
def build_report(sql: Optional[SQLClient] = None, *, top_n: int = REPORT_TOP_N) -> ReportOutput:
    """
    Build the exploration report.

    Parameters
    ----------
    sql : Optional[SQLClient]
        Custom SQLClient (for tests). When omitted, a new SQLClient() is opened
        and closed once the figures are collected.
    top_n : int
        Rows kept in each ranking.

    Returns
    -------
    ReportOutput
        Structured figures plus the rendered Markdown.
    """
    if sql is None:
        with SQLClient() as owned:
            return build_report(owned, top_n=top_n)

    t0 = time.perf_counter()

    as_of_day = get_as_of_day(sql)
    out = ReportOutput(
        as_of_day=as_of_day,
        global_numbers=get_global_numbers(sql),
        top_infection=infection_summaries(get_highest_infection_rates(sql).head(top_n)),
        top_deaths_location=death_counts(get_death_counts_by_location(sql).head(top_n), "location"),
        deaths_continent=death_counts(get_death_counts_by_continent(sql), "continent"),
        vaccination_progress=collect_vaccination_progress(sql)[:top_n],
    )
    out.report_md = render_report_md(out)

    log.info(
        "report_generated_ms=%d as_of=%s locations_ranked=%d",
        int((time.perf_counter() - t0) * 1000),
        as_of_day,
        len(out.top_infection),
    )
    return out
