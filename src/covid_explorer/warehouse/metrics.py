from __future__ import annotations

from typing import List, Optional

import pandas as pd

from covid_explorer.analysis.schemas import DeathCount, GlobalNumbers, InfectionSummary
from covid_explorer.utils.config import DEATH_RATE_LOCATION_PATTERN, EXCLUDE_AGGREGATE_ROWS
from covid_explorer.utils.io import frame_records, parse_records

from . import queries as Q
from .sql_client import SQLClient


def _flag(exclude_aggregates: Optional[bool]) -> dict:
    return {"exclude_aggregates": EXCLUDE_AGGREGATE_ROWS if exclude_aggregates is None else exclude_aggregates}


def get_as_of_day(sql: SQLClient) -> str | None:
    """Return last available date in the case series as ISO string."""
    df = sql.df(Q.SQL_AS_OF_DAY)
    if df.empty or pd.isna(df.iloc[0]["as_of_day"]):
        return None
    return pd.Timestamp(df.iloc[0]["as_of_day"]).date().isoformat()


def get_case_overview(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    return sql.df(Q.SQL_CASE_OVERVIEW, _flag(exclude_aggregates))


def get_core_columns(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    return sql.df(Q.SQL_CORE_COLUMNS, _flag(exclude_aggregates))


def get_death_rates(
    sql: SQLClient,
    *,
    location_pattern: Optional[str] = None,
    exclude_aggregates: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Death percentage per (location, date).

    Args:
        location_pattern: Case-insensitive LIKE pattern; defaults to
            DEATH_RATE_LOCATION_PATTERN. Pass '%' for every location.
    """
    params = _flag(exclude_aggregates)
    params["location_pattern"] = DEATH_RATE_LOCATION_PATTERN if location_pattern is None else location_pattern
    return sql.df(Q.SQL_DEATH_RATES, params)


def get_infection_rates(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    return sql.df(Q.SQL_INFECTION_RATES, _flag(exclude_aggregates))


def get_highest_infection_rates(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    return sql.df(Q.SQL_HIGHEST_INFECTION, _flag(exclude_aggregates))


def get_death_counts_by_location(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    return sql.df(Q.SQL_DEATH_COUNT_BY_LOCATION, _flag(exclude_aggregates))


def get_death_counts_by_continent(sql: SQLClient) -> pd.DataFrame:
    return sql.df(Q.SQL_DEATH_COUNT_BY_CONTINENT)


def get_global_numbers(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> GlobalNumbers:
    df = sql.df(Q.SQL_GLOBAL_NUMBERS, _flag(exclude_aggregates))
    if df.empty:
        return GlobalNumbers()
    return parse_records(GlobalNumbers, frame_records(df))[0]


def get_rolling_vaccinations(sql: SQLClient, *, exclude_aggregates: Optional[bool] = None) -> pd.DataFrame:
    """Rolling vaccination rows computed on the fly (no artifact involved)."""
    flag = _flag(exclude_aggregates)["exclude_aggregates"]
    return sql.df(Q.rolling_vaccinations_sql(flag))


# -----------------------------
# Typed views used by the report
# -----------------------------

def infection_summaries(df: pd.DataFrame) -> List[InfectionSummary]:
    return parse_records(InfectionSummary, frame_records(df))


def death_counts(df: pd.DataFrame, group_col: str) -> List[DeathCount]:
    return parse_records(DeathCount, frame_records(df.rename(columns={group_col: "group"})))
